"""Application settings and configuration.

This module defines all configuration options for the Deadline Coach application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Deadline Coach", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./deadline_coach.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Content generation service
    generation_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    generation_model: str = Field(default="gemini-1.5-flash", alias="LLM_MODEL")
    generation_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="LLM_BASE_URL",
    )
    generation_http_timeout_seconds: float = Field(
        default=30.0,
        alias="LLM_HTTP_TIMEOUT_SECONDS",
    )
    generation_max_retries: int = Field(default=5, alias="LLM_MAX_RETRIES")
    generation_initial_backoff_seconds: float = Field(
        default=1.0,
        alias="LLM_INITIAL_BACKOFF_SECONDS",
    )

    # Countdown behaviour
    tick_interval_seconds: float = Field(default=1.0, alias="TICK_INTERVAL_SECONDS")
    deadline_hour: int = Field(default=7, ge=0, le=23, alias="DEADLINE_HOUR")
    deadline_timezone: str | None = Field(default=None, alias="DEADLINE_TIMEZONE")
    min_days: int = Field(default=1, alias="MIN_DAYS")
    max_days: int = Field(default=365, alias="MAX_DAYS")
    stale_record_delete_delay_seconds: float = Field(
        default=1.0,
        alias="STALE_RECORD_DELETE_DELAY_SECONDS",
    )
    controller_idle_seconds: float = Field(default=300.0, alias="CONTROLLER_IDLE_SECONDS")

    # Identity is supplied by an upstream auth layer through this header
    identity_header: str = Field(default="X-Countdown-Identity", alias="IDENTITY_HEADER")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def generation_backoff_schedule(self) -> list[float]:
        """Delays applied between rate-limited generation attempts."""
        base = self.generation_initial_backoff_seconds
        return [base * (2**attempt) for attempt in range(self.generation_max_retries)]


settings = Settings()
