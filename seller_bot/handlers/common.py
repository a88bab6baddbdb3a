"""Shared handlers: /start, /cancel and code entry."""

import logging
import re

from aiogram import Router, F
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from onboarding.otp_challenge import OTP_LENGTH, OtpChallenge, OtpOutcome
from onboarding.state_machine import OnboardingStateMachine
from seller_bot.keyboards import main_menu_keyboard
from seller_bot.registry import flows

router = Router()
logger = logging.getLogger(__name__)

CODE_RE = re.compile(rf"^\d{{{OTP_LENGTH}}}$")

WELCOME = (
    "━━━━━━━━━━━━━━━━━━━━━━\n"
    "🛍️ <b>Marketplace Seller Hub</b>\n"
    "━━━━━━━━━━━━━━━━━━━━━━\n\n"
    "Open your shop in a few minutes, or recover your account."
)


@router.message(CommandStart())
async def cmd_start(message: Message, state: FSMContext):
    flows.discard(message.chat.id)
    await state.clear()
    await message.answer(WELCOME, reply_markup=main_menu_keyboard())


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext):
    flows.discard(message.chat.id)
    await state.clear()
    await message.answer("❌ Cancelled. Nothing else will be sent.", reply_markup=main_menu_keyboard())


@router.callback_query(F.data == "flow_cancel")
async def cancel_callback(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    flows.discard(callback.message.chat.id)
    await state.clear()
    await callback.message.edit_text("❌ Cancelled.", reply_markup=main_menu_keyboard())


async def feed_code(flow: OnboardingStateMachine, text: str) -> OtpOutcome | None:
    """
    Type a whole code into the challenge one digit at a time.

    The last digit completes the buffer, which submits it.
    """
    challenge = flow.challenge
    if challenge is None:
        return None
    challenge.clear()
    outcome = None
    for index, digit in enumerate(text):
        outcome = await flow.enter_digit(index, digit)
    return outcome


def code_failure_text(challenge: OtpChallenge, outcome: OtpOutcome | None) -> str:
    if outcome == OtpOutcome.LOCKED:
        return f"🔒 {challenge.message}"
    if outcome == OtpOutcome.NETWORK_ERROR:
        return f"📡 {challenge.message}"
    if outcome in (OtpOutcome.REJECTED, OtpOutcome.CONFLICT, OtpOutcome.FAILED):
        return f"⚠️ {challenge.message}"
    return "⏳ Still checking your code..."


async def answer_resend(callback: CallbackQuery, flow: OnboardingStateMachine) -> None:
    """Resend button: sends a new code, or explains why it cannot yet."""
    challenge = flow.challenge
    if challenge is None:
        await callback.answer("No code is pending.", show_alert=True)
        return

    if await flow.resend_code():
        await callback.answer("📧 A new code is on its way.")
        await callback.message.answer(
            "📧 New code sent. The previous code no longer works.\n"
            f"Send the <b>{OTP_LENGTH}-digit</b> code:",
        )
        return

    if challenge.locked:
        await callback.answer(challenge.policy.lockout_message(), show_alert=True)
    elif challenge.timer.active:
        await callback.answer(f"⏳ You can request a new code in {challenge.timer.remaining}s.", show_alert=True)
    else:
        await callback.answer(challenge.message or "Please wait...", show_alert=True)
