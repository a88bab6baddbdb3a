"""
Seller Bot — entry point.

Telegram host for seller registration and password reset.
"""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from seller_bot.config import settings
from seller_bot.handlers import common, password_reset, seller_signup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def run() -> None:
    if not settings.TELEGRAM_BOT_TOKEN:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")

    bot = Bot(token=settings.TELEGRAM_BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()

    # common first: /start and /cancel must win over any FSM state
    dp.include_router(common.router)
    dp.include_router(seller_signup.router)
    dp.include_router(password_reset.router)

    logger.info("🤖 Seller bot starting...")
    await dp.start_polling(bot)


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
