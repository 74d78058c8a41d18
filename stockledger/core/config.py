"""
Core configuration module using Pydantic Settings.
Supports environment variables and .env files.
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow"
    )

    # Application
    app_name: str = Field(default="Stock Ledger", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/stockledger.db",
        alias="DATABASE_URL"
    )
    db_echo: bool = Field(default=False, alias="DB_ECHO")
    db_pool_size: int = Field(default=20, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=40, alias="DB_MAX_OVERFLOW")
    auto_create_tables: bool = Field(default=False, alias="AUTO_CREATE_TABLES")

    # JWT Authentication
    jwt_secret_key: str = Field(
        default="your-secret-key-change-this-in-production",
        alias="JWT_SECRET_KEY"
    )
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_access_token_expire_minutes: int = Field(default=60 * 24, alias="JWT_ACCESS_TOKEN_EXPIRE_MINUTES")
    jwt_refresh_token_expire_days: int = Field(default=7, alias="JWT_REFRESH_TOKEN_EXPIRE_DAYS")
    auth_cookie_name: str = Field(default="token", alias="AUTH_COOKIE_NAME")
    auth_cookie_secure: bool = Field(default=False, alias="AUTH_COOKIE_SECURE")

    # Security
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        alias="CORS_ORIGINS"
    )

    # Backup / restore (disabled while no key is configured)
    backup_api_key: Optional[str] = Field(default=None, alias="BACKUP_API_KEY")
    backup_page_size: int = Field(default=1000, alias="BACKUP_PAGE_SIZE")

    # Reports
    report_page_size: int = Field(default=20, alias="REPORT_PAGE_SIZE")
    popular_report_days: int = Field(default=30, alias="POPULAR_REPORT_DAYS")
    sales_chart_days: int = Field(default=7, alias="SALES_CHART_DAYS")

    # Server push
    event_stream_keepalive_seconds: float = Field(default=15.0, alias="EVENT_STREAM_KEEPALIVE_SECONDS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="./logs/app.log", alias="LOG_FILE")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    login_rate_limit: str = Field(default="10/minute", alias="LOGIN_RATE_LIMIT")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Dependency injection for FastAPI."""
    return settings
