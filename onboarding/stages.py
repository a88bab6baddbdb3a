"""Stage enums for the registration and password-reset flows."""

from enum import Enum


class RegistrationStage(str, Enum):
    COLLECTING_ACCOUNT = "collecting-account"
    OTP_PENDING = "otp-pending"
    VERIFIED = "verified"
    PROVISIONING_SHOP = "provisioning-shop"
    PROVISIONING_PAYMENT = "provisioning-payment"
    COMPLETE = "complete"


class PasswordResetStage(str, Enum):
    COLLECTING_EMAIL = "collecting-email"
    OTP_PENDING = "otp-pending"
    RESETTING_PASSWORD = "resetting-password"
    DONE = "done"


class PaymentLink(str, Enum):
    UNSET = "unset"
    LINKED = "linked"
    SKIPPED = "explicitly-skipped"


class PaymentProvider(str, Enum):
    FLUTTERWAVE = "flutterwave"
    PAYSTACK = "paystack"
    STRIPE = "stripe"
    MANUAL = "manual"
