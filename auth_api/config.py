import os
from functools import lru_cache

from pydantic import BaseModel


class Settings(BaseModel):
    database_url: str = os.getenv(
        "DATABASE_URL",
        "postgresql+asyncpg://marketplace:marketplace@db:5432/marketplace",
    )
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # OTP rules enforced server-side
    otp_ttl_sec: int = int(os.getenv("OTP_TTL_SEC", "300"))
    otp_cooldown_sec: int = int(os.getenv("OTP_COOLDOWN_SEC", "60"))
    otp_lock_sec: int = int(os.getenv("OTP_LOCK_SEC", "1800"))
    otp_spam_lock_sec: int = int(os.getenv("OTP_SPAM_LOCK_SEC", "3600"))
    otp_max_failed_attempts: int = int(os.getenv("OTP_MAX_FAILED_ATTEMPTS", "3"))
    otp_max_requests_per_hour: int = int(os.getenv("OTP_MAX_REQUESTS_PER_HOUR", "3"))

    session_ttl_sec: int = int(os.getenv("SESSION_TTL_SEC", str(7 * 24 * 3600)))
    mail_webhook_url: str | None = os.getenv("MAIL_WEBHOOK_URL")
    payment_redirect_base: str = os.getenv("PAYMENT_REDIRECT_BASE", "https://pay.example.com")
    payment_webhook_secret: str | None = os.getenv("PAYMENT_WEBHOOK_SECRET")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
