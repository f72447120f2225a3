"""Application settings and configuration.

This module defines all configuration options for the Ventbuddy Stage service.
Settings are loaded from environment variables with sensible defaults.
"""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Ventbuddy Stage", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security
    secret_key: str = Field(alias="SECRET_KEY")
    # URL-safe base64 Fernet key; derived from SECRET_KEY when unset.
    content_key: str | None = Field(default=None, alias="CONTENT_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Wallet sign-in and bearer tokens
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    challenge_ttl_seconds: int = Field(default=300, ge=1, alias="CHALLENGE_TTL_SECONDS")

    # Database configuration
    database_url: str = Field(default="sqlite:///./ventbuddy.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Reply composition
    max_reply_depth: int = Field(default=3, ge=0, alias="MAX_REPLY_DEPTH")
    reply_preview_length: int = Field(default=100, ge=1, alias="REPLY_PREVIEW_LENGTH")
    max_content_length: int = Field(default=10_000, ge=1, alias="MAX_CONTENT_LENGTH")

    # Payment confirmation via JSON-RPC node
    rpc_url: str | None = Field(default=None, alias="RPC_URL")
    payment_contract_address: str | None = Field(default=None, alias="PAYMENT_CONTRACT_ADDRESS")
    payment_confirmation_timeout_seconds: float = Field(
        default=60.0,
        alias="PAYMENT_CONFIRMATION_TIMEOUT_SECONDS",
    )
    payment_poll_interval_seconds: float = Field(
        default=2.0,
        alias="PAYMENT_POLL_INTERVAL_SECONDS",
    )
    rpc_http_timeout_seconds: float = Field(default=10.0, alias="RPC_HTTP_TIMEOUT_SECONDS")
    min_tip_amount: Decimal = Field(default=Decimal("0"), ge=0, alias="MIN_TIP_AMOUNT")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
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
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def rpc_enabled(self) -> bool:
        """Return True when an RPC node is configured for payment confirmation."""
        return bool(self.rpc_url)


settings = Settings()  # type: ignore[call-arg]
