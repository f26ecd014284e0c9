from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "production"  # development | production
    APP_NAME: str = "natours"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite+pysqlite:///./natours.db"
    REDIS_URL: str = ""

    JWT_SECRET: str = "change_me_jwt_secret"
    JWT_EXPIRES_DAYS: int = 90
    JWT_COOKIE_NAME: str = "jwt"
    JWT_COOKIE_EXPIRES_DAYS: int = 90
    PASSWORD_RESET_TTL_MINUTES: int = 10

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Applied to every /api request, per client address
    RATE_LIMIT_MAX: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 3600
    # Only honour X-Forwarded-For when a trusted proxy sets it
    TRUST_PROXY_HEADERS: bool = False
    MAX_BODY_BYTES: int = 10 * 1024

    EMAIL_PROVIDER: str = "dummy"  # dummy | smtp
    EMAIL_FROM: str = "Natours <hello@natours.dev>"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.strip().lower() == "development"

settings = Settings()
