"""Application settings and configuration.

This module defines all configuration options for the Rankshare application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    This class defines all configuration options for the Rankshare application.
    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Rankshare", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./rankshare.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Optional Redis used for the cross-process trend run lock
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Feed composition
    feed_default_page_size: int = Field(default=20, alias="FEED_DEFAULT_PAGE_SIZE")
    feed_max_page_size: int = Field(default=50, alias="FEED_MAX_PAGE_SIZE")
    feed_include_self: bool = Field(default=False, alias="FEED_INCLUDE_SELF")
    # Direct reference plus one additional hop.
    feed_reference_max_hops: int = Field(default=2, alias="FEED_REFERENCE_MAX_HOPS")
    post_max_length: int = Field(default=280, alias="POST_MAX_LENGTH")

    # Object storage used by the media URL broker
    media_bucket: str = Field(default="i-like", alias="MEDIA_BUCKET")
    media_region: str = Field(default="us-east-1", alias="MEDIA_REGION")
    media_endpoint_url: str | None = Field(default=None, alias="MEDIA_ENDPOINT_URL")
    media_access_key_id: str | None = Field(default=None, alias="MEDIA_ACCESS_KEY_ID")
    media_secret_access_key: str | None = Field(
        default=None,
        alias="MEDIA_SECRET_ACCESS_KEY",
    )
    # Stored values beginning with this prefix are public URLs of our own bucket.
    media_public_url_prefix: str | None = Field(
        default=None,
        alias="MEDIA_PUBLIC_URL_PREFIX",
    )
    media_feed_ttl_seconds: int = Field(default=60 * 60 * 24, alias="MEDIA_FEED_TTL_SECONDS")
    media_preview_ttl_seconds: int = Field(default=600, alias="MEDIA_PREVIEW_TTL_SECONDS")
    media_resolve_timeout_seconds: float = Field(
        default=5.0,
        alias="MEDIA_RESOLVE_TIMEOUT_SECONDS",
    )
    media_verify_exists: bool = Field(default=False, alias="MEDIA_VERIFY_EXISTS")

    # Trend aggregation
    trends_top_n: int = Field(default=100, alias="TRENDS_TOP_N")
    trends_weekly_window_days: int = Field(default=7, alias="TRENDS_WEEKLY_WINDOW_DAYS")
    trends_monthly_window_days: int = Field(default=30, alias="TRENDS_MONTHLY_WINDOW_DAYS")
    trends_scheduler_enabled: bool = Field(default=False, alias="TRENDS_SCHEDULER_ENABLED")
    trends_interval_seconds: float = Field(
        default=60 * 60 * 24,
        alias="TRENDS_INTERVAL_SECONDS",
    )
    trends_lock_timeout_seconds: int = Field(
        default=15 * 60,
        alias="TRENDS_LOCK_TIMEOUT_SECONDS",
    )

    # Suggestions and comments
    suggestions_min_prefix: int = Field(default=3, alias="SUGGESTIONS_MIN_PREFIX")
    suggestions_max_results: int = Field(default=10, alias="SUGGESTIONS_MAX_RESULTS")
    comment_max_length: int = Field(default=500, alias="COMMENT_MAX_LENGTH")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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
    def database_url_sync(self) -> str:
        """Return a URL usable by the synchronous engine.

        Async driver URLs (``postgresql+asyncpg``) are rewritten to psycopg.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

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
    def trend_windows(self) -> dict[str, int]:
        """Return the trailing window length in days for each trend period."""
        return {
            "WEEKLY": self.trends_weekly_window_days,
            "MONTHLY": self.trends_monthly_window_days,
        }


settings = Settings()  # type: ignore[call-arg]
