"""Inline keyboard builders for the seller bot."""

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton


def main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🛍️ Become a Seller", callback_data="signup_start")],
        [InlineKeyboardButton(text="🔑 Forgot Password", callback_data="reset_start")],
    ])


def terms_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="✅ I accept the terms", callback_data="signup_terms_accept")],
        [InlineKeyboardButton(text="❌ Cancel", callback_data="flow_cancel")],
    ])


def otp_keyboard(prefix: str) -> InlineKeyboardMarkup:
    """Resend + back under the code prompt. `prefix` is "signup" or "reset"."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔁 Resend code", callback_data=f"{prefix}_otp_resend")],
        [InlineKeyboardButton(text="⬅️ Back", callback_data=f"{prefix}_otp_back")],
    ])


def shop_type_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🏬 Physical store", callback_data="shop_type_physical")],
        [InlineKeyboardButton(text="🌐 Online only", callback_data="shop_type_online")],
        [InlineKeyboardButton(text="🏬🌐 Both", callback_data="shop_type_both")],
    ])


def retry_keyboard(callback_data: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔁 Try again", callback_data=callback_data)],
        [InlineKeyboardButton(text="❌ Cancel", callback_data="flow_cancel")],
    ])


def payment_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text="💳 Flutterwave", callback_data="pay_flutterwave"),
            InlineKeyboardButton(text="💳 Paystack", callback_data="pay_paystack"),
        ],
        [
            InlineKeyboardButton(text="💳 Stripe", callback_data="pay_stripe"),
            InlineKeyboardButton(text="🏦 Bank transfer", callback_data="pay_manual"),
        ],
        [InlineKeyboardButton(text="⏩ Skip for now", callback_data="pay_skip")],
    ])


def payment_redirect_keyboard(url: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🔗 Connect account", url=url)],
        [InlineKeyboardButton(text="✅ I've finished", callback_data="pay_check_status")],
        [InlineKeyboardButton(text="⏩ Skip for now", callback_data="pay_skip")],
    ])


def support_keyboard(url: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="📞 Contact Support", url=url)],
    ])
