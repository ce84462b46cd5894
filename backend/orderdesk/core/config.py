from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DEBUG: bool = False
    APP_NAME: str = "orderdesk"
    APP_VERSION: str = "0.1.0"
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/orderdesk.db"

    # Bearer credentials
    JWT_SECRET: str = "dev-only-secret-change-me-in-production"
    JWT_ALGORITHM: str = "HS256"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Rate limiting
    RATE_LIMIT_COUPON_APPLY_PER_MINUTE: int = 60

    # Coupon listing upper bound for ?limit=
    COUPON_LIST_MAX_LIMIT: int = 1000

    # Stored Idempotency-Key responses are replayed for this long
    IDEMPOTENCY_TTL_HOURS: int = 24


settings = Settings()
