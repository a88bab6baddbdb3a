"""Forgot-password chat: email → code → new password."""

import logging

from aiogram import Router, F
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from onboarding import PasswordResetFlow
from onboarding.errors import OnboardingError, ValidationError
from onboarding.otp_challenge import OTP_LENGTH, OtpOutcome
from onboarding.stages import PasswordResetStage
from seller_bot.handlers.common import CODE_RE, answer_resend, code_failure_text, feed_code
from seller_bot.keyboards import main_menu_keyboard, otp_keyboard, retry_keyboard
from seller_bot.registry import flows
from seller_bot.states import PasswordReset

router = Router()
logger = logging.getLogger(__name__)


def _flow(chat_id: int) -> PasswordResetFlow | None:
    return flows.get(chat_id, PasswordResetFlow)


async def _expired(message: Message, state: FSMContext) -> None:
    await state.clear()
    await message.answer("⌛ This reset session has ended. Send /start to begin again.")


@router.callback_query(F.data == "reset_start")
async def start_reset(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    flows.start_password_reset(callback.message.chat.id)
    await state.clear()
    await state.set_state(PasswordReset.email)
    await callback.message.edit_text(
        "🔑 <b>Reset your password</b>\n\n"
        "Enter the <b>email address</b> of your account:",
    )


@router.message(PasswordReset.email)
async def process_email(message: Message, state: FSMContext):
    await state.update_data(email=(message.text or "").strip())
    await _submit_email(message, state)


@router.callback_query(F.data == "reset_email_retry")
async def retry_email(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _submit_email(callback.message, state)


async def _submit_email(message: Message, state: FSMContext) -> None:
    flow = _flow(message.chat.id)
    if flow is None:
        await _expired(message, state)
        return

    data = await state.get_data()
    try:
        await flow.submit_email(data.get("email", ""))
    except ValidationError as e:
        await message.answer(f"⚠️ {e.message}\n\nEnter your email address:")
        return
    except OnboardingError as e:
        await message.answer(f"⚠️ {e.message}", reply_markup=retry_keyboard("reset_email_retry"))
        return

    if flow.stage != PasswordResetStage.OTP_PENDING:
        return
    await state.set_state(PasswordReset.otp)
    await message.answer(
        f"📧 We sent a {OTP_LENGTH}-digit code to <b>{flow.session.contact}</b>.\n\n"
        "Send the code here:",
        reply_markup=otp_keyboard("reset"),
    )


@router.message(PasswordReset.otp)
async def process_code(message: Message, state: FSMContext):
    flow = _flow(message.chat.id)
    if flow is None:
        await _expired(message, state)
        return

    code = (message.text or "").strip()
    if not CODE_RE.match(code):
        await message.answer(f"⚠️ Please send the {OTP_LENGTH}-digit code from your email.")
        return

    challenge = flow.challenge
    outcome = await feed_code(flow, code)
    if outcome == OtpOutcome.VERIFIED:
        await state.set_state(PasswordReset.new_password)
        await message.answer("✅ Code verified.\n\nChoose a <b>new password</b> (at least 6 characters), or /back for a new code:")
        return

    if challenge is not None:
        await message.answer(code_failure_text(challenge, outcome), reply_markup=otp_keyboard("reset"))


@router.callback_query(F.data == "reset_otp_resend")
async def resend_code(callback: CallbackQuery, state: FSMContext):
    flow = _flow(callback.message.chat.id)
    if flow is None:
        await callback.answer()
        await _expired(callback.message, state)
        return
    await answer_resend(callback, flow)


@router.callback_query(F.data == "reset_otp_back")
async def back_to_email(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    flow = _flow(callback.message.chat.id)
    if flow is None or flow.stage != PasswordResetStage.OTP_PENDING:
        return
    flow.back()
    await state.set_state(PasswordReset.email)
    await callback.message.answer("⬅️ Enter the <b>email address</b> of your account:")


@router.message(PasswordReset.confirm_password, F.text == "/back")
@router.message(PasswordReset.new_password, F.text == "/back")
async def back_to_code(message: Message, state: FSMContext):
    flow = _flow(message.chat.id)
    if flow is None or flow.stage != PasswordResetStage.RESETTING_PASSWORD:
        return
    flow.back()
    await state.set_state(PasswordReset.otp)
    await message.answer(
        "⬅️ Request a new code with the button below, then send it here.",
        reply_markup=otp_keyboard("reset"),
    )


@router.message(PasswordReset.new_password)
async def process_new_password(message: Message, state: FSMContext):
    await state.update_data(new_password=message.text or "")
    await state.set_state(PasswordReset.confirm_password)
    await message.answer("Type the new password again to <b>confirm</b>, or /back to get a new code:")


@router.message(PasswordReset.confirm_password)
async def process_confirm_password(message: Message, state: FSMContext):
    flow = _flow(message.chat.id)
    if flow is None:
        await _expired(message, state)
        return

    data = await state.get_data()
    try:
        await flow.submit_new_password(data.get("new_password", ""), message.text or "")
    except ValidationError as e:
        await state.set_state(PasswordReset.new_password)
        await message.answer(f"⚠️ {e.message}\n\nChoose a <b>new password</b>:")
        return
    except OnboardingError as e:
        await state.set_state(PasswordReset.new_password)
        await message.answer(f"⚠️ {e.message}\n\nChoose a <b>new password</b>:")
        return

    if flow.finished:
        flows.discard(message.chat.id)
        await state.clear()
        await message.answer(
            "🎉 <b>Password changed!</b> You can now sign in with your new password.",
            reply_markup=main_menu_keyboard(),
        )
