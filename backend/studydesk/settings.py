from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	# <= 0 falls back to a 30 day lifetime
	access_token_expire_minutes: int = Field(default=120, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# HTTP surface; set API_PREFIX=/api to serve the legacy /api/... paths
	api_prefix: str = Field(default="", validation_alias="API_PREFIX")
	cors_origins: list[str] = Field(default=["*"], validation_alias="CORS_ORIGINS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Bind address for `python -m studydesk`
	host: str = Field(default="127.0.0.1", validation_alias="HOST")
	port: int = Field(default=8000, validation_alias="PORT")

	# Reject MCQ questions whose correct answer is not one of their options
	enforce_mcq_options: bool = Field(default=True, validation_alias="ENFORCE_MCQ_OPTIONS")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
