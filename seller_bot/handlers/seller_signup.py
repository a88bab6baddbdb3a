"""
Seller Signup Bot Handler — guided registration on top of SellerRegistrationFlow.

Flow:
  1. Account details (name → email → password → phone → country → city → terms)
  2. 6-digit email code (resend / back)
  3. Shop (name → bio → city → type)
  4. Payment (hosted provider, bank transfer, or skip)
"""

import logging

from aiogram import Router, F
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State
from aiogram.types import CallbackQuery, Message

from onboarding import SellerRegistrationFlow
from onboarding.errors import OnboardingError, ValidationError
from onboarding.otp_challenge import OTP_LENGTH, OtpOutcome
from onboarding.stages import PaymentLink, PaymentProvider, RegistrationStage
from seller_bot.config import settings
from seller_bot.handlers.common import CODE_RE, answer_resend, code_failure_text, feed_code
from seller_bot.keyboards import (
    otp_keyboard,
    payment_keyboard,
    payment_redirect_keyboard,
    retry_keyboard,
    shop_type_keyboard,
    support_keyboard,
    terms_keyboard,
)
from seller_bot.registry import flows
from seller_bot.states import SellerSignup

router = Router()
logger = logging.getLogger(__name__)

# Where to send the user back to when a form field is rejected
ACCOUNT_FIELD_STATES: dict[str | None, State] = {
    "name": SellerSignup.name,
    "email": SellerSignup.email,
    "password": SellerSignup.password,
    "confirm_password": SellerSignup.password,
    "phone": SellerSignup.phone,
    "country": SellerSignup.country,
    "city": SellerSignup.city,
}

SHOP_FIELD_STATES: dict[str | None, State] = {
    "name": SellerSignup.shop_name,
    "bio": SellerSignup.shop_bio,
    "address.city": SellerSignup.shop_city,
}

BANK_FIELD_STATES: dict[str | None, State] = {
    "bank_details.bank_name": SellerSignup.bank_name,
    "bank_details.account_name": SellerSignup.account_name,
    "bank_details.account_number": SellerSignup.account_number,
}

PROMPTS: dict[State, str] = {
    SellerSignup.name: "What is your <b>full name</b>?",
    SellerSignup.email: "Enter your <b>email address</b>:",
    SellerSignup.password: "Choose a <b>password</b> (at least 6 characters):",
    SellerSignup.phone: "Enter your <b>phone number</b> (with country code, e.g. +2348012345678):",
    SellerSignup.country: "Which <b>country</b> are you in? (e.g. NG)",
    SellerSignup.city: "Which <b>city</b>?",
    SellerSignup.shop_name: "What is your <b>shop name</b>?",
    SellerSignup.shop_bio: "Describe your shop in a sentence or two (at least 20 characters):",
    SellerSignup.shop_city: "Which <b>city</b> is your shop in?",
    SellerSignup.bank_name: "Enter your <b>bank name</b>:",
    SellerSignup.account_name: "Enter the <b>account name</b>:",
    SellerSignup.account_number: "Enter the <b>account number</b>:",
}


def _flow(chat_id: int) -> SellerRegistrationFlow | None:
    return flows.get(chat_id, SellerRegistrationFlow)


async def _expired(message: Message, state: FSMContext) -> None:
    await state.clear()
    await message.answer("⌛ This signup session has ended. Send /start to begin again.")


async def _ask(message: Message, state: FSMContext, target: State, prefix: str = "") -> None:
    await state.set_state(target)
    await message.answer(f"{prefix}{PROMPTS[target]}")


def _text(message: Message) -> str:
    return (message.text or "").strip()


# ── Entry Point ──────────────────────────────────────────

@router.callback_query(F.data == "signup_start")
async def start_signup(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    flows.start_registration(callback.message.chat.id)
    await state.clear()
    await state.set_state(SellerSignup.name)
    await callback.message.edit_text(
        "🛍️ <b>Seller Registration</b>\n\n"
        "We'll verify your email, then set up your shop and payments.\n\n"
        f"{PROMPTS[SellerSignup.name]}",
    )


# ── Step 1: Account ──────────────────────────────────────

@router.message(SellerSignup.name)
async def process_name(message: Message, state: FSMContext):
    await state.update_data(name=_text(message))
    await _ask(message, state, SellerSignup.email)


@router.message(SellerSignup.email)
async def process_email(message: Message, state: FSMContext):
    await state.update_data(email=_text(message))
    data = await state.get_data()
    if data.get("account_complete"):
        # Came back from the code step to fix the address
        await _submit_account(message, state)
        return
    await _ask(message, state, SellerSignup.password)


@router.message(SellerSignup.password)
async def process_password(message: Message, state: FSMContext):
    await state.update_data(password=message.text or "")
    await state.set_state(SellerSignup.confirm_password)
    await message.answer("Type the password again to <b>confirm</b>:")


@router.message(SellerSignup.confirm_password)
async def process_confirm_password(message: Message, state: FSMContext):
    await state.update_data(confirm_password=message.text or "")
    data = await state.get_data()
    if data.get("account_complete"):
        await _submit_account(message, state)
        return
    await _ask(message, state, SellerSignup.phone)


@router.message(SellerSignup.phone)
async def process_phone(message: Message, state: FSMContext):
    await state.update_data(phone=_text(message))
    data = await state.get_data()
    if data.get("account_complete"):
        await _submit_account(message, state)
        return
    await _ask(message, state, SellerSignup.country)


@router.message(SellerSignup.country)
async def process_country(message: Message, state: FSMContext):
    await state.update_data(country=(_text(message)).upper())
    data = await state.get_data()
    if data.get("account_complete"):
        await _submit_account(message, state)
        return
    await _ask(message, state, SellerSignup.city)


@router.message(SellerSignup.city)
async def process_city(message: Message, state: FSMContext):
    await state.update_data(city=_text(message))
    data = await state.get_data()
    if data.get("account_complete"):
        await _submit_account(message, state)
        return
    await state.set_state(SellerSignup.terms)
    await message.answer(
        "📜 Please review and accept our seller terms and conditions to continue.",
        reply_markup=terms_keyboard(),
    )


@router.callback_query(F.data == "signup_terms_accept")
async def accept_terms(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await state.update_data(terms_accepted=True, account_complete=True)
    await _submit_account(callback.message, state)


@router.callback_query(F.data == "signup_account_retry")
async def retry_account(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _submit_account(callback.message, state)


async def _submit_account(message: Message, state: FSMContext) -> None:
    flow = _flow(message.chat.id)
    if flow is None:
        await _expired(message, state)
        return

    data = await state.get_data()
    account = {
        key: data.get(key)
        for key in ("name", "email", "password", "confirm_password", "phone", "country", "city", "terms_accepted")
        if data.get(key) is not None
    }
    try:
        await flow.submit_account(account)
    except ValidationError as e:
        await _ask(message, state, ACCOUNT_FIELD_STATES.get(e.field, SellerSignup.password), f"⚠️ {e.message}\n\n")
        return
    except OnboardingError as e:
        await message.answer(f"⚠️ {e.message}", reply_markup=retry_keyboard("signup_account_retry"))
        return

    if flow.stage != RegistrationStage.OTP_PENDING:
        return

    await state.set_state(SellerSignup.otp)
    await message.answer(
        f"📧 We sent a {OTP_LENGTH}-digit code to <b>{flow.session.contact}</b>.\n\n"
        "Send the code here to verify your email.",
        reply_markup=otp_keyboard("signup"),
    )


# ── Step 2: Code ─────────────────────────────────────────

@router.message(SellerSignup.otp)
async def process_code(message: Message, state: FSMContext):
    flow = _flow(message.chat.id)
    if flow is None:
        await _expired(message, state)
        return

    code = _text(message)
    if not CODE_RE.match(code):
        await message.answer(f"⚠️ Please send the {OTP_LENGTH}-digit code from your email.")
        return

    challenge = flow.challenge
    outcome = await feed_code(flow, code)
    if outcome == OtpOutcome.VERIFIED:
        await _ask(
            message, state, SellerSignup.shop_name,
            "✅ <b>Email verified!</b> Your seller account is ready.\n\nNow let's set up your shop.\n\n",
        )
        return

    if challenge is not None:
        await message.answer(code_failure_text(challenge, outcome), reply_markup=otp_keyboard("signup"))


@router.callback_query(F.data == "signup_otp_resend")
async def resend_code(callback: CallbackQuery, state: FSMContext):
    flow = _flow(callback.message.chat.id)
    if flow is None:
        await callback.answer()
        await _expired(callback.message, state)
        return
    await answer_resend(callback, flow)


@router.callback_query(F.data == "signup_otp_back")
async def back_to_account(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    flow = _flow(callback.message.chat.id)
    if flow is None or flow.stage != RegistrationStage.OTP_PENDING:
        return
    flow.back()
    await _ask(
        callback.message, state, SellerSignup.email,
        "⬅️ Your other details are kept. Enter the correct email address and we'll send a new code.\n\n",
    )


# ── Step 3: Shop ─────────────────────────────────────────

@router.message(SellerSignup.shop_name)
async def process_shop_name(message: Message, state: FSMContext):
    await state.update_data(shop_name=_text(message))
    data = await state.get_data()
    if data.get("shop_complete"):
        await _submit_shop(message, state)
        return
    await _ask(message, state, SellerSignup.shop_bio)


@router.message(SellerSignup.shop_bio)
async def process_shop_bio(message: Message, state: FSMContext):
    await state.update_data(shop_bio=_text(message))
    data = await state.get_data()
    if data.get("shop_complete"):
        await _submit_shop(message, state)
        return
    await _ask(message, state, SellerSignup.shop_city)


@router.message(SellerSignup.shop_city)
async def process_shop_city(message: Message, state: FSMContext):
    await state.update_data(shop_city=_text(message))
    data = await state.get_data()
    if data.get("shop_complete"):
        await _submit_shop(message, state)
        return
    await state.set_state(SellerSignup.shop_type)
    await message.answer("How do you sell?", reply_markup=shop_type_keyboard())


@router.callback_query(F.data.startswith("shop_type_"))
async def process_shop_type(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await state.update_data(shop_type=callback.data.removeprefix("shop_type_"), shop_complete=True)
    await _submit_shop(callback.message, state)


@router.callback_query(F.data == "shop_retry")
async def retry_shop(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _submit_shop(callback.message, state)


async def _submit_shop(message: Message, state: FSMContext) -> None:
    flow = _flow(message.chat.id)
    if flow is None:
        await _expired(message, state)
        return

    data = await state.get_data()
    shop = {
        "name": data.get("shop_name", ""),
        "bio": data.get("shop_bio", ""),
        "address": {"city": data.get("shop_city", ""), "country": data.get("country", "NG")},
        "shop_type": data.get("shop_type", "both"),
    }
    try:
        await flow.submit_shop(shop)
    except ValidationError as e:
        await _ask(message, state, SHOP_FIELD_STATES.get(e.field, SellerSignup.shop_name), f"⚠️ {e.message}\n\n")
        return
    except OnboardingError as e:
        await message.answer(f"⚠️ {e.message}", reply_markup=retry_keyboard("shop_retry"))
        return

    if flow.stage != RegistrationStage.PROVISIONING_PAYMENT:
        return

    await state.set_state(SellerSignup.payment_choice)
    await message.answer(
        f"🏪 <b>{shop['name']}</b> is open!\n\n"
        "How would you like to receive payments?",
        reply_markup=payment_keyboard(),
    )


# ── Step 4: Payment ──────────────────────────────────────

@router.callback_query(F.data.in_({"pay_flutterwave", "pay_paystack", "pay_stripe"}))
async def choose_hosted_provider(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    provider = PaymentProvider(callback.data.removeprefix("pay_"))
    await _link_payment(callback.message, state, provider)


@router.callback_query(F.data == "pay_manual")
async def choose_bank_transfer(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _ask(callback.message, state, SellerSignup.bank_name, "🏦 <b>Bank transfer</b>\n\n")


@router.message(SellerSignup.bank_name)
async def process_bank_name(message: Message, state: FSMContext):
    await state.update_data(bank_name=_text(message))
    data = await state.get_data()
    if data.get("bank_complete"):
        await _link_payment(message, state, PaymentProvider.MANUAL)
        return
    await _ask(message, state, SellerSignup.account_name)


@router.message(SellerSignup.account_name)
async def process_account_name(message: Message, state: FSMContext):
    await state.update_data(account_name=_text(message))
    data = await state.get_data()
    if data.get("bank_complete"):
        await _link_payment(message, state, PaymentProvider.MANUAL)
        return
    await _ask(message, state, SellerSignup.account_number)


@router.message(SellerSignup.account_number)
async def process_account_number(message: Message, state: FSMContext):
    await state.update_data(account_number=(_text(message)).replace(" ", ""), bank_complete=True)
    await _link_payment(message, state, PaymentProvider.MANUAL)


async def _link_payment(message: Message, state: FSMContext, provider: PaymentProvider) -> None:
    flow = _flow(message.chat.id)
    if flow is None:
        await _expired(message, state)
        return

    bank_details = None
    if provider == PaymentProvider.MANUAL:
        data = await state.get_data()
        bank_details = {
            "bank_name": data.get("bank_name", ""),
            "account_name": data.get("account_name", ""),
            "account_number": data.get("account_number", ""),
        }
    try:
        await flow.link_payment(provider, bank_details)
    except ValidationError as e:
        await _ask(message, state, BANK_FIELD_STATES.get(e.field, SellerSignup.bank_name), f"⚠️ {e.message}\n\n")
        return
    except OnboardingError as e:
        await state.set_state(SellerSignup.payment_choice)
        await message.answer(f"⚠️ {e.message}", reply_markup=payment_keyboard())
        return

    if flow.finished:
        await _finish(message, state, flow)
        return
    if flow.session.payment_redirect_url:
        await state.set_state(SellerSignup.payment_redirect)
        await message.answer(
            f"🔗 Connect your <b>{provider.value.title()}</b> account, then tap <b>I've finished</b>.",
            reply_markup=payment_redirect_keyboard(flow.session.payment_redirect_url),
        )


@router.callback_query(F.data == "pay_check_status")
async def check_payment_status(callback: CallbackQuery, state: FSMContext):
    flow = _flow(callback.message.chat.id)
    if flow is None:
        await callback.answer()
        await _expired(callback.message, state)
        return
    try:
        await flow.refresh_payment_status()
    except OnboardingError as e:
        await callback.answer(e.message, show_alert=True)
        return

    if flow.finished:
        await callback.answer()
        await _finish(callback.message, state, flow)
    else:
        await callback.answer("⏳ Not connected yet. Finish on the provider's page, then try again.", show_alert=True)


@router.callback_query(F.data == "pay_skip")
async def skip_payment(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    flow = _flow(callback.message.chat.id)
    if flow is None:
        await _expired(callback.message, state)
        return
    try:
        await flow.skip_payment()
    except OnboardingError as e:
        await callback.message.answer(f"⚠️ {e.message}", reply_markup=payment_keyboard())
        return
    if flow.finished:
        await _finish(callback.message, state, flow)


async def _finish(message: Message, state: FSMContext, flow: SellerRegistrationFlow) -> None:
    payment_line = (
        "💳 Payments: <b>connected</b>"
        if flow.session.payment == PaymentLink.LINKED
        else "💳 Payments: <b>set up later from your dashboard</b>"
    )
    flows.discard(message.chat.id)
    await state.clear()
    await message.answer(
        "🎉 <b>You're all set!</b>\n\n"
        f"{payment_line}\n\n"
        "Your shop is live. Questions? We're here to help.",
        reply_markup=support_keyboard(settings.SUPPORT_URL),
    )
