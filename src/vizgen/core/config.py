"""Application configuration using Pydantic BaseSettings."""

import logging

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database Configuration
    database_url: str = Field(default="sqlite+aiosqlite:///./vizgen.db", alias="DATABASE_URL")
    db_pool_size: int = Field(default=20, alias="DB_POOL_SIZE")

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # CORS Configuration
    cors_origins: str = Field(default="http://localhost:5173", alias="CORS_ORIGINS")

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # Ark (Volcano Engine) generation provider
    ark_api_key: str = Field(default="", alias="ARK_API_KEY")
    ark_base_url: str = Field(
        default="https://ark.cn-beijing.volces.com/api/v3", alias="ARK_BASE_URL"
    )
    ark_image_model: str = Field(default="doubao-seedream-3-0-t2i-250415", alias="ARK_IMAGE_MODEL")
    ark_video_model: str = Field(default="doubao-seedance-1-0-pro-250528", alias="ARK_VIDEO_MODEL")
    ark_request_timeout_seconds: float = Field(default=60.0, alias="ARK_REQUEST_TIMEOUT_SECONDS")

    # Generation jobs
    daily_generation_limit: int = Field(default=100, ge=1, alias="DAILY_GENERATION_LIMIT")
    video_poll_interval_seconds: float = Field(
        default=10.0, ge=0, alias="VIDEO_POLL_INTERVAL_SECONDS"
    )
    video_max_polls: int = Field(default=60, ge=1, alias="VIDEO_MAX_POLLS")
    recover_stale_jobs: bool = Field(default=True, alias="RECOVER_STALE_JOBS")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def video_polling_ceiling_seconds(self) -> float:
        """Longest time a video job can spend in the polling loop."""
        return self.video_poll_interval_seconds * self.video_max_polls

    @model_validator(mode="after")
    def validate_required_config(self) -> "Settings":
        """Validate required configuration on startup.

        Fails fast with clear error messages if configuration is incomplete.
        Validation is skipped in test environments to avoid breaking tests.
        """
        if self.app_env in ("test", "testing"):
            return self

        missing = []

        # ARK_API_KEY is required by every dispatched job
        if not self.ark_api_key:
            missing.append(
                "ARK_API_KEY: Create an API key in the Volcano Engine Ark console "
                "(https://console.volcengine.com/ark)"
            )

        if missing:
            error_msg = "CRITICAL: Missing required environment variables:\n\n" + "\n".join(
                f"  - {m}" for m in missing
            )
            error_msg += "\n\nThe application cannot start without these variables."
            error_msg += "\nPlease update your .env file and restart."
            raise ValueError(error_msg)

        return self


def configure_logging(settings: Settings) -> None:
    """Configure structlog based on application environment.

    - Production: JSON output for log aggregation
    - Development: Console output for human readability
    """
    if settings.app_env == "production":
        renderer = structlog.processors.JSONRenderer()
        extra_processors = [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
    else:
        renderer = structlog.dev.ConsoleRenderer()
        extra_processors = []

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *extra_processors,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
