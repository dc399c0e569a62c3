# 环境变量和配置
# pydantic-settings 读取 .env = core/config.py

from typing import Optional, List
from pydantic import SecretStr, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# 本机直接跑 uvicorn 时（不走 Docker），会读取 backend/.env

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # ========= project config =========
    PROJECT_NAME: str = "Travelsmart Booking Backend"
    ENVIRONMENT: str = "dev"
    API_PREFIX: str = "/api/v1"


    # ========= internal auth / CORS =========
    # Bearer key used by admin tooling and function-to-function calls
    SERVICE_ROLE_KEY: SecretStr = Field(SecretStr("CHANGE_ME"), alias="SERVICE_ROLE_KEY")
    BACKEND_CORS_ORIGINS: str = "*"


    # ========= Database =========
    DATABASE_URL: str = Field(
        default="postgresql+psycopg://ts_user:ts_pass@db:5432/travelsmart_dev",
        alias="DATABASE_URL"
    )


    # ========= celery config =========
    CELERY_BROKER_URL: Optional[str] = None
    CELERY_RESULT_BACKEND: Optional[str] = None
    CELERY_TIMEZONE: str = "America/Santo_Domingo"
    # True: fire-and-forget tasks run in the current process instead of going through the broker
    TASKS_INLINE: bool = Field(default=False, alias="TASKS_INLINE")
    COMMISSION_CRON_HOUR: int = Field(2, ge=0, le=23, alias="COMMISSION_CRON_HOUR")      # nightly settlement, CELERY_TIMEZONE wall clock
    COMMISSION_CRON_MINUTE: int = Field(15, ge=0, le=59, alias="COMMISSION_CRON_MINUTE")
    NO_SHOW_SWEEP_SECONDS: int = Field(600, ge=60, alias="NO_SHOW_SWEEP_SECONDS")


    # ========= quote pricing =========
    ROUNDTRIP_MULTIPLIER: float = 1.9
    QUOTE_TTL_HOURS: int = 24
    AIRPORT_CODES: List[str] = Field(default_factory=lambda: ["PUJ", "SDQ", "LRM", "POP"])
    FALLBACK_MINIMUM_FARE: float = 50.0       # multi-vehicle quote only, when no rule and no vehicle minimum
    QUOTE_CURRENCY: str = "USD"


    # ========= partner settlement =========
    PLATFORM_FEE_RATE: float = 0.03
    PAYOUT_THRESHOLD: float = 100.0


    # ========= booking lifecycle =========
    INVOICE_TAX_RATE: float = 0.15
    INVOICE_DUE_DAYS: int = 30
    REVIEW_REQUEST_TTL_DAYS: int = 7
    MILEAGE_PER_TRIP: int = 50                # placeholder until odometer readings exist
    AUTO_DISPATCH_WINDOW_HOURS: int = 24
    NO_SHOW_GRACE_MINUTES: int = 30
    NO_SHOW_PENALTY: float = 50.0


    # ========= email (Resend) =========
    RESEND_API_KEY: Optional[SecretStr] = Field(None, alias="RESEND_API_KEY")
    RESEND_BASE_URL: str = Field("https://api.resend.com", alias="RESEND_BASE_URL")
    EMAIL_FROM: str = Field("Travelsmart <bookings@travelsmart.com>", alias="EMAIL_FROM")
    ADMIN_NOTIFICATION_EMAIL: str = Field("admin@travelsmart.com", alias="ADMIN_NOTIFICATION_EMAIL")
    DISPATCH_NOTIFICATION_EMAIL: str = Field("dispatch@travelsmart.com", alias="DISPATCH_NOTIFICATION_EMAIL")
    EMAIL_HTTP_TIMEOUT: int = Field(15, ge=1, alias="EMAIL_HTTP_TIMEOUT")


settings = Settings()  # 只从环境读取（含 .env）
