# socdash/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr
from typing import List, Literal


class Settings(BaseSettings):
    """
    Settings for the SOC dashboard core service
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database Settings
    DATABASE_URL: str = Field(..., description="Async SQLAlchemy URL (postgresql+asyncpg or sqlite+aiosqlite)")

    # Principal verification (tokens are issued by the external auth service)
    JWT_SECRET_KEY: SecretStr = Field(..., description="Key used to verify principal tokens")
    ALGORITHM: str = "HS256"
    AUTH_TOKEN_URL: str = Field("/auth/login", description="Token endpoint of the external auth service")

    # Application Settings
    ENVIRONMENT: str = Field("development", description="Environment name")
    LOG_LEVEL: str = Field("INFO", description="Log level")

    # Logging Configuration
    ENABLE_JSON_LOGGING: bool = Field(False, description="Enable JSON structured logging")

    # OpenTelemetry Tracing Settings
    ENABLE_OTEL_EXPORTER: bool = Field(False, description="Enable OpenTelemetry tracing")
    ENABLE_OTEL_CONSOLE_EXPORT: bool = Field(False, description="Enable OpenTelemetry console export")
    ENABLE_EXTERNAL_TRACING: bool = Field(False, description="Enable external OTLP tracing")
    OTLP_ENDPOINT: str = Field("http://localhost:4317", description="OTLP endpoint for external tracing")

    # CORS Settings
    CORS_ORIGINS: str = Field(
        "http://localhost:5173,http://127.0.0.1:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # Rate Limiting Settings
    RATE_LIMIT_ENABLED: bool = Field(True, description="Enable rate limiting")
    DEFAULT_RATE_LIMIT: str = Field("300/minute", description="Default rate limit")
    INGEST_RATE_LIMIT: str = Field("600/minute", description="Alert ingestion rate limit")

    # Performance Settings
    DB_POOL_SIZE: int = Field(20, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(0, description="Database max overflow connections")

    # Query Settings
    DEFAULT_PAGE_SIZE: int = Field(50, description="Default page size for list endpoints")
    MAX_PAGE_SIZE: int = Field(500, description="Page sizes above this are clamped")
    QUERY_TIMEOUT_SECONDS: float = Field(10.0, description="Execution budget for a read query")
    STORAGE_READ_RETRIES: int = Field(3, description="Attempts for reads hitting transient storage errors")

    # Aggregation Settings
    THREAT_LEVEL_WINDOW_MINUTES: int = Field(60, description="Window for the Critical+High count")
    THREAT_LEVEL_YELLOW_THRESHOLD: int = Field(5, description="Count above which the level is Yellow")
    THREAT_LEVEL_RED_THRESHOLD: int = Field(10, description="Count above which the level is Red")
    GEO_WINDOW_HOURS: int = Field(24, description="Default window for geographic clusters")
    TOP_ALERT_TYPES_LIMIT: int = Field(5, description="Alert types listed on the dashboard")

    # Alert lifecycle
    STRICT_ALERT_TRANSITIONS: bool = Field(
        True, description="Require Assigned/In Progress before Resolved or False Positive"
    )

    # Live channel
    BROADCAST_SCOPE: Literal["global", "room"] = Field(
        "global", description="'global' delivers to every session, 'room' only to sessions that joined a role room"
    )
    SESSION_QUEUE_SIZE: int = Field(100, description="Outbound queue bound per live session")

    # Demo alert feed
    DEMO_FEED_ENABLED: bool = Field(False, description="Generate random alerts in the background")
    DEMO_FEED_INTERVAL_SECONDS: float = Field(10.0, description="Tick of the demo feed")
    DEMO_FEED_PROBABILITY: float = Field(0.3, description="Chance of an alert per tick")

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert CORS_ORIGINS string to list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def should_use_json_logging(self) -> bool:
        """Use JSON logging in production or when explicitly enabled"""
        return self.ENVIRONMENT == "production" or self.ENABLE_JSON_LOGGING

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


# Create settings instance
settings = Settings()
