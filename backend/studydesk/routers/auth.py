from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
import logging

from ..settings import settings
from sqlalchemy.orm import Session
from .. import crud
from ..db import get_db
from ..errors import AuthenticationInvalid, AuthenticationMissing, AuthorizationDenied, Conflict, InvalidCredentials
from ..models import Role
from ..schemas import (
	AuthResponse,
	LoginRequest,
	RegisterRequest,
	SelfStudyProfileOut,
	SelfStudyRegisterRequest,
	UserOut,
)

router = APIRouter(prefix="/auth", tags=["auth"])
self_study_router = APIRouter(prefix="/self-study", tags=["self-study"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
	id: str
	email: str
	role: Role


def _bcrypt_safe(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_safe(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(_bcrypt_safe(plain_password), hashed_password)


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		if minutes > 0:
			delta = timedelta(minutes=minutes)
		else:
			delta = timedelta(days=30)
	return datetime.now(timezone.utc) + delta


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	to_encode.update({"exp": _resolve_expiry(expires_delta)})
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def token_for(user) -> str:
	role = user.role.value if isinstance(user.role, Role) else str(user.role)
	return create_access_token({"sub": user.id, "email": user.email, "role": role})


def get_current_user(
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
	if credentials is None or not credentials.credentials:
		raise AuthenticationMissing()
	try:
		payload = jwt.decode(credentials.credentials, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError:
		raise AuthenticationInvalid()
	user_id = payload.get("sub")
	email = payload.get("email")
	role = payload.get("role")
	if not user_id or not email or role not in {r.value for r in Role}:
		raise AuthenticationInvalid()
	return CurrentUser(id=user_id, email=email, role=Role(role))


def require_role(role: Role) -> Callable[..., CurrentUser]:
	"""Dependency factory gating an operation on the caller's role.

	The check runs while FastAPI resolves dependencies, before the handler
	body, so a refused call has no side effect.
	"""

	def _dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
		if user.role != role:
			raise AuthorizationDenied(f"Only {role.value.lower()}s can perform this operation")
		return user

	return _dependency


require_instructor = require_role(Role.INSTRUCTOR)
require_student = require_role(Role.STUDENT)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	if crud.get_user_by_email(db, req.email):
		raise Conflict("User already exists")
	user = crud.create_user(
		db,
		email=req.email,
		password_hash=hash_password(req.password),
		name=req.name,
		role=req.role,
	)
	logger.info("Registered %s user %s", user.role.value, user.id)
	return AuthResponse(token=token_for(user), user=UserOut.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, db: Session = Depends(get_db)):
	user = crud.get_user_by_email(db, req.email)
	if not user or not verify_password(req.password, user.password_hash):
		raise InvalidCredentials()
	return AuthResponse(token=token_for(user), user=UserOut.model_validate(user))


@router.get("/me", response_model=CurrentUser)
async def me(user: CurrentUser = Depends(get_current_user)):
	return user


@self_study_router.post("/register", response_model=SelfStudyProfileOut, status_code=201)
async def register_self_study(req: SelfStudyRegisterRequest, db: Session = Depends(get_db)):
	if crud.get_self_study_profile_by_email(db, req.email):
		raise Conflict("User already exists")
	profile = crud.create_self_study_profile(db, name=req.name, email=req.email, preferences=req.preferences)
	return SelfStudyProfileOut.model_validate(profile)
