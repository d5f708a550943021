"""
Application Configuration - Environment Variables & Settings
"""
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Application
    DEBUG: bool = Field(default=False)
    FRONTEND_URL: str = Field(default="http://localhost:5173")

    # Database - SQLite-compatible store (local file or hosted libsql)
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./travelle.db")
    DATABASE_AUTH_TOKEN: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=20)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # Key-value storage - Redis (sessions, trip lists)
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    SESSION_TTL_SECONDS: int = Field(default=60 * 60 * 24 * 7)  # 7 days

    # CORS - stored as comma-separated string
    ALLOWED_ORIGINS_STR: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        alias="ALLOWED_ORIGINS"
    )

    @computed_field
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """Parse comma-separated origins into list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS_STR.split(',') if origin.strip()]

    # Email - "console" logs instead of sending, "smtp" or "resend" deliver
    EMAIL_PROVIDER: str = Field(default="console")
    FROM_EMAIL: str = Field(default="noreply@travelle.app")
    FROM_NAME: str = Field(default="Travelle")

    SMTP_HOST: str = Field(default="smtp.gmail.com")
    SMTP_PORT: int = Field(default=587)
    SMTP_SECURE: bool = Field(default=False)  # implicit TLS; STARTTLS otherwise
    SMTP_USERNAME: str = Field(default="")
    SMTP_PASSWORD: str = Field(default="")

    RESEND_API_KEY: str = Field(default="")
    RESEND_API_URL: str = Field(default="https://api.resend.com/emails")

    # Password recovery
    PASSWORD_RESET_TOKEN_TTL_MINUTES: int = Field(default=60)
    PASSWORD_RESET_MAX_ATTEMPTS: int = Field(default=3)

    # Catalog & trip lists
    NEARBY_DEFAULT_RADIUS_KM: float = Field(default=50.0)
    NEARBY_MAX_RESULTS: int = Field(default=50)
    UPCOMING_TRIP_DAYS: int = Field(default=30)
    TRIP_REMINDER_MAX_ITEMS: int = Field(default=5)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
