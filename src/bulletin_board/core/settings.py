"""Service configuration, read from environment variables or a ``.env`` file."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Bulletin board settings; every field maps to an UPPER_CASE variable."""

    # Application metadata
    app_name: str = Field(default="Bulletin Board", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./bulletin.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    refresh_token_expire_days: int = Field(default=7, alias="REFRESH_TOKEN_EXPIRE_DAYS")
    password_bcrypt_rounds: int = Field(default=12, ge=4, le=31, alias="PASSWORD_BCRYPT_ROUNDS")

    # Realtime change feed
    change_feed_backend: Literal["memory", "redis"] = Field(
        default="memory",
        alias="CHANGE_FEED_BACKEND",
    )
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    change_feed_queue_size: int = Field(default=256, alias="CHANGE_FEED_QUEUE_SIZE")

    # Search
    search_default_limit: int = Field(default=50, alias="SEARCH_DEFAULT_LIMIT")
    popular_search_window_days: int = Field(default=30, alias="POPULAR_SEARCH_WINDOW_DAYS")

    # Announcement attachments
    attachment_dir: Path = Field(default=Path("./uploads/attachments"), alias="ATTACHMENT_DIR")
    attachment_max_bytes: int = Field(default=10 * 1024 * 1024, alias="ATTACHMENT_MAX_BYTES")
    attachment_max_files: int = Field(default=5, alias="ATTACHMENT_MAX_FILES")
    attachment_allowed_types: list[str] = Field(
        default=[
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/vnd.ms-excel",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "application/vnd.ms-powerpoint",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "image/jpeg",
            "image/png",
            "image/gif",
        ],
        alias="ATTACHMENT_ALLOWED_TYPES",
    )
    attachment_url_expire_minutes: int = Field(default=60, alias="ATTACHMENT_URL_EXPIRE_MINUTES")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Database URL in use, honouring ``USE_TEST_DATABASE``."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """Effective URL pinned to the psycopg 3 driver for PostgreSQL.

        Alembic and the engine both run synchronously, so asyncpg URLs and
        driverless ``postgres://`` URLs are rewritten.
        """
        url = self.effective_database_url
        for prefix in ("postgresql+asyncpg://", "postgresql://", "postgres://"):
            if url.startswith(prefix):
                return "postgresql+psycopg://" + url[len(prefix):]
        return url


settings = Settings()
