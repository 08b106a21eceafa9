# certiai/core/settings.py
import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # === App ===
    APP_ENV: str = "local"  # local | development | production
    APP_NAME: str = "CertiAI"
    API_PREFIX: str = "/api"

    # === Database ===
    DATABASE_URL: str = "sqlite:///./certiai.db"

    # === Auth ===
    JWT_SECRET: str = "change-me"
    JWT_EXP_HOURS: int = 24 * 7
    CODE_TTL_MINUTES: int = 10

    # === ML classifier ===
    ML_SERVICE_URL: str = Field(
        "http://localhost:5000", description="Base URL of the authenticity classifier"
    )
    ML_SERVICE_TIMEOUT_SEC: float = 30.0

    # === Uploads ===
    UPLOAD_DIR: str = "./uploads"
    MAX_UPLOAD_MB: int = 10
    ALLOWED_MIMES: list[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "application/pdf",
    ]

    # === E-mail ===
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_SSL: bool = True
    SMTP_TIMEOUT_SEC: float = 10.0
    SMTP_FROM_EMAIL: str = "hello@certiai.com"
    SMTP_FROM_NAME: str = "CertiAI"

    # === CORS ===
    ALLOWED_ORIGINS: str = "http://localhost:5173"

    # === Logging ===
    LOG_LEVEL: str = "INFO"

    # === Rate limiting ===
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_AUTH: str = "20/minute"
    RATE_LIMIT_UPLOAD: str = "30/minute"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("ML_SERVICE_URL")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024

    @property
    def cors_origins(self) -> list[str]:
        """Comma-separated ALLOWED_ORIGINS, trailing slashes trimmed."""
        return [
            o.strip().rstrip("/") for o in self.ALLOWED_ORIGINS.split(",") if o.strip()
        ]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Singleton Settings instance met simpele env-overrides."""
    s = Settings()

    env = os.getenv("ENVIRONMENT", s.APP_ENV).lower()
    if env == "production":
        s.LOG_LEVEL = "WARNING"
    elif env == "development":
        s.LOG_LEVEL = "DEBUG"

    return s


settings = get_settings()
