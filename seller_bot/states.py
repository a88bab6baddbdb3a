"""FSM states for the text prompts of the seller bot."""

from aiogram.fsm.state import StatesGroup, State


class SellerSignup(StatesGroup):
    """Seller registration: account → code → shop → payment."""
    name = State()
    email = State()
    password = State()
    confirm_password = State()
    phone = State()
    country = State()
    city = State()
    terms = State()
    otp = State()
    shop_name = State()
    shop_bio = State()
    shop_city = State()
    shop_type = State()
    payment_choice = State()
    bank_name = State()
    account_name = State()
    account_number = State()
    payment_redirect = State()


class PasswordReset(StatesGroup):
    email = State()
    otp = State()
    new_password = State()
    confirm_password = State()
