from __future__ import annotations
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(HTTPException):
	"""Base for every error a request handler raises on purpose.

	Subclasses pin the HTTP status and a stable machine readable ``code`` so
	clients can branch on the code instead of parsing ``detail``.
	"""

	status_code = 500
	code = "OPERATION_FAILED"
	default_detail = "operation failed"

	def __init__(self, detail: Optional[str] = None, *, code: Optional[str] = None) -> None:
		headers = {"WWW-Authenticate": "Bearer"} if type(self).status_code == 401 else None
		super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail, headers=headers)
		if code is not None:
			self.code = code


class AuthenticationMissing(ServiceError):
	status_code = 401
	code = "AUTHENTICATION_MISSING"
	default_detail = "Access token required"


class AuthenticationInvalid(ServiceError):
	status_code = 403
	code = "AUTHENTICATION_INVALID"
	default_detail = "Invalid token"


class InvalidCredentials(ServiceError):
	status_code = 401
	code = "INVALID_CREDENTIALS"
	default_detail = "Invalid credentials"


class AuthorizationDenied(ServiceError):
	status_code = 403
	code = "AUTHORIZATION_DENIED"
	default_detail = "Not allowed for this role"


class NotFound(ServiceError):
	status_code = 404
	code = "NOT_FOUND"
	default_detail = "Not found"


class Conflict(ServiceError):
	status_code = 409
	code = "CONFLICT"
	default_detail = "Conflict"


class ValidationFailure(ServiceError):
	status_code = 400
	code = "VALIDATION_FAILED"
	default_detail = "Invalid request"


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
	return JSONResponse(
		status_code=exc.status_code,
		content={"detail": exc.detail, "code": exc.code},
		headers=exc.headers,
	)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
	return JSONResponse(
		status_code=422,
		content={"detail": jsonable_encoder(exc.errors()), "code": ValidationFailure.code},
	)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
	logger.exception("Unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"detail": "operation failed", "code": "INTERNAL_ERROR"})


def install_error_handlers(app: FastAPI) -> None:
	app.add_exception_handler(ServiceError, _service_error_handler)
	app.add_exception_handler(RequestValidationError, _validation_error_handler)
	app.add_exception_handler(Exception, _unexpected_error_handler)
