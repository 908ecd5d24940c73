"""Application configuration loaded from environment variables."""

from __future__ import annotations

import datetime as dt
from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from account_service.core.exceptions import InvalidConfigurationError

BASE_DIR = Path(__file__).resolve().parents[2]
MIN_PRODUCTION_SECRET_LEN = 32


class Settings(BaseSettings):
    APP_NAME: str = "Account Service"
    ENV: str = "development"

    DATABASE_URL: str = "postgresql+psycopg://postgres@localhost:5432/accounts"

    # Signing secrets have no defaults; the process must be given them.
    ACCESS_TOKEN_SECRET: SecretStr
    REFRESH_TOKEN_SECRET: SecretStr
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10

    ACCESS_COOKIE_NAME: str = "accessToken"
    REFRESH_COOKIE_NAME: str = "refreshToken"
    COOKIE_SECURE: bool = True

    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENV.strip().lower() == "production"

    @property
    def access_token_ttl(self) -> dt.timedelta:
        return dt.timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)

    @property
    def refresh_token_ttl(self) -> dt.timedelta:
        return dt.timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS)

    def validate_runtime_security(self) -> None:
        access = self.ACCESS_TOKEN_SECRET.get_secret_value()
        refresh = self.REFRESH_TOKEN_SECRET.get_secret_value()
        if not access.strip() or not refresh.strip():
            raise InvalidConfigurationError("token secrets must not be blank", setting="ACCESS_TOKEN_SECRET")
        if access == refresh:
            raise InvalidConfigurationError(
                "access and refresh secrets must differ",
                setting="REFRESH_TOKEN_SECRET",
            )
        if self.ACCESS_TOKEN_EXPIRE_MINUTES <= 0 or self.REFRESH_TOKEN_EXPIRE_DAYS <= 0:
            raise InvalidConfigurationError("token lifetimes must be positive", setting="ACCESS_TOKEN_EXPIRE_MINUTES")
        if self.is_production:
            if min(len(access), len(refresh)) < MIN_PRODUCTION_SECRET_LEN:
                raise InvalidConfigurationError(
                    f"token secrets must be at least {MIN_PRODUCTION_SECRET_LEN} characters in production",
                    setting="ACCESS_TOKEN_SECRET",
                )
            if not self.COOKIE_SECURE:
                raise InvalidConfigurationError("COOKIE_SECURE must be enabled in production", setting="COOKIE_SECURE")


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment on first use and reuse them afterwards."""
    return Settings()
