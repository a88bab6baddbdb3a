"""Workflow configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    API_BASE_URL: str = "http://localhost:5000/api"
    REQUEST_TIMEOUT_SEC: float = 15.0
    OTP_MAX_ATTEMPTS: int = 3
    OTP_RESEND_COOLDOWN_SEC: int = 60
    OTP_LOCKOUT_SEC: int | None = None  # unset → locked until the flow restarts
    OTP_TICK_INTERVAL_SEC: float = 1.0

    class Config:
        env_file = ".env"
        extra = "allow"


settings = Settings()
