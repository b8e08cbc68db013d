from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import create_schema
from .errors import install_error_handlers
from .settings import settings
from .routers import auth
from .routers import tests
from .routers import students
from .routers import assignments
from .routers import attempts

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	create_schema()
	logger.info("Database schema ready")
	yield


def create_app(api_prefix: str | None = None) -> FastAPI:
	prefix = settings.api_prefix if api_prefix is None else api_prefix
	app = FastAPI(title="StudyDesk API", version="1.0.0", lifespan=lifespan)

	app.add_middleware(
		CORSMiddleware,
		allow_origins=settings.cors_origins,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	install_error_handlers(app)

	for module in (auth, tests, students, assignments, attempts):
		app.include_router(module.router, prefix=prefix)
	app.include_router(auth.self_study_router, prefix=prefix)

	@app.get("/info")
	def root():
		return {"status": "ok"}

	return app


app = create_app()
