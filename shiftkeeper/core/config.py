from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # Database – SQLite für lokale Entwicklung
    DATABASE_URL: str = "sqlite+aiosqlite:///./shiftkeeper.db"
    # Nur für Postgres; SQLite ignoriert Pool-Sizing
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # Fallback when a company has no timezone of its own
    DEFAULT_TIMEZONE: str = "Europe/Amsterdam"

    # Redis (Celery broker; attendance locks only with USE_REDIS_LOCKS)
    REDIS_URL: str = "redis://localhost:6379/0"
    USE_REDIS_LOCKS: bool = False
    LOCK_TIMEOUT_SECONDS: int = 10

    # Security
    SECRET_KEY: str = "dev_secret_key_change_in_production_min_32_chars!!"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Telegram WebApp
    TELEGRAM_BOT_TOKEN: str = ""
    # Nur in APP_ENV=development wirksam
    TELEGRAM_AUTH_BYPASS: bool = False
    TELEGRAM_INIT_DATA_MAX_AGE_SECONDS: int = 86400

    # Shift generation
    MAX_GENERATION_DAYS: int = 365

    # Shift monitor thresholds (minutes)
    MONITOR_LATE_THRESHOLD_MINUTES: int = 15
    MONITOR_EARLY_END_THRESHOLD_MINUTES: int = 15
    MONITOR_LONG_BREAK_THRESHOLD_MINUTES: int = 90
    MONITOR_MISSED_SHIFT_THRESHOLD_MINUTES: int = 60

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
