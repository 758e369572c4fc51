"""Application settings loaded from the environment (and .env)."""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "wellbeing-groups"
    api_version: str = "v1"
    environment: str = "development"  # development | staging | production
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173"
    rate_limit: str = "100/15minute"  # slowapi format
    rate_limit_enabled: bool = True

    # Database - SQLite locally, PostgreSQL in production
    database_url: str = "sqlite:///./wellbeing.db"
    db_pool_size: int = 5  # PostgreSQL only
    db_max_overflow: int = 10

    # Tokens - the two secrets must differ so one leak does not expose the other
    jwt_secret: str = "change-this-secret"
    jwt_refresh_secret: str = "change-this-refresh-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 30
    bcrypt_rounds: int = 12

    # GDPR
    anonymization_delay_days: int = 30

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
