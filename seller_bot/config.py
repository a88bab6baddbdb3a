"""Bot configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    TELEGRAM_BOT_TOKEN: str = ""
    SUPPORT_URL: str = "https://t.me/MarketplaceSupport"

    class Config:
        env_file = ".env"
        extra = "allow"


settings = Settings()
