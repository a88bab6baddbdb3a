"""Pydantic schemas for the auth API request bodies (camelCase on the wire)."""

from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Enums ──────────────────────────────────────────────────

class PaymentProvider(str, Enum):
    FLUTTERWAVE = "flutterwave"
    PAYSTACK = "paystack"
    STRIPE = "stripe"
    MANUAL = "manual"


class ShopType(str, Enum):
    PHYSICAL = "physical"
    ONLINE = "online"
    BOTH = "both"


# ── Seller registration ───────────────────────────────────

class SellerRegistration(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: str = Field(..., pattern=r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
    password: str = Field(..., min_length=6)
    phone: str = Field(..., pattern=r"^\+?[1-9]\d{1,14}$")
    country: str = Field(..., min_length=2)
    region: str | None = None
    city: str = Field(..., min_length=1)
    seller_type: str = "fashion-retailer"
    business_registration: str | None = None
    years_in_business: str | None = None
    portfolio_link: str | None = None


class VerifySellerOtp(SellerRegistration):
    otp: str = Field(..., pattern=r"^\d{6}$")


# ── Shop ───────────────────────────────────────────────────

class ShopAddress(CamelModel):
    street: str = ""
    city: str = Field(..., min_length=1)
    state: str = ""
    country: str = "NG"
    postal_code: str = ""


class OpeningHours(CamelModel):
    day: str
    is_open: bool = True
    opening_time: str = "09:00"
    closing_time: str = "18:00"


class SocialLink(CamelModel):
    platform: str
    url: str


class CreateShop(CamelModel):
    seller_id: str
    name: str = Field(..., min_length=2, max_length=255)
    bio: str = Field(..., min_length=20)
    category: str = "ready-to-wear"
    address: ShopAddress
    opening_hours: list[OpeningHours] = Field(default_factory=list)
    shop_type: ShopType = ShopType.BOTH
    website: str | None = None
    social_links: list[SocialLink] = Field(default_factory=list)
    return_policy: str | None = None
    shipping_policy: str | None = None


# ── Payment ────────────────────────────────────────────────

class BankDetails(CamelModel):
    bank_name: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=10)
    account_name: str = Field(..., min_length=1)
    bank_code: str | None = None
    currency: str = "NGN"


class SetupPayment(CamelModel):
    seller_id: str
    shop_id: str
    provider: PaymentProvider
    bank_details: BankDetails | None = None


class SkipPayment(CamelModel):
    seller_id: str
    shop_id: str


class PaymentWebhook(CamelModel):
    seller_id: str
    status: str = "successful"
    reference: str | None = None


# ── Password reset ─────────────────────────────────────────

class ForgotPassword(CamelModel):
    email: str = Field(..., min_length=3)


class VerifyForgotPasswordOtp(CamelModel):
    email: str = Field(..., min_length=3)
    otp: str = Field(..., pattern=r"^\d{6}$")


class ResetPassword(CamelModel):
    email: str = Field(..., min_length=3)
    new_password: str = Field(..., min_length=6)
