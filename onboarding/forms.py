"""
Local form validation for the onboarding flows.

Forms are pydantic models; the first failing field is surfaced as
onboarding.errors.ValidationError before anything reaches the network.
"""

from __future__ import annotations
import re
from typing import Annotated, Any, Literal, TypeVar

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from onboarding.errors import ValidationError
from onboarding.stages import PaymentProvider

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")

DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

FormT = TypeVar("FormT", bound=BaseModel)


def _check_email(value: str) -> str:
    value = value.strip()
    if not EMAIL_RE.match(value):
        raise ValueError("Please enter a valid email address")
    return value


Email = Annotated[str, AfterValidator(_check_email)]


# ── Account ────────────────────────────────────────────────

class AccountForm(BaseModel):
    name: str = Field(..., min_length=2)
    email: Email
    password: str = Field(..., min_length=6)
    confirm_password: str
    phone: str
    country: str = Field("NG", min_length=2)
    region: str | None = None
    city: str = Field(..., min_length=1)
    seller_type: str = "fashion-retailer"
    terms_accepted: bool = False
    business_registration: str | None = None
    years_in_business: str = "<1"
    portfolio_link: str | None = None

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        value = value.strip().replace(" ", "").replace("-", "")
        if not PHONE_RE.match(value):
            raise ValueError("Please enter a valid phone number")
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> AccountForm:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if not self.terms_accepted:
            raise ValueError("You must accept the terms and conditions")
        return self

    def registration_payload(self) -> dict[str, Any]:
        """Body for /seller-registration (and, with the code, /verify-seller-otp)."""
        return {
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "phone": self.phone,
            "country": self.country,
            "region": self.region,
            "city": self.city,
            "sellerType": self.seller_type,
            "businessRegistration": self.business_registration,
            "yearsInBusiness": self.years_in_business,
            "portfolioLink": self.portfolio_link,
        }


# ── Shop ───────────────────────────────────────────────────

class ShopAddress(BaseModel):
    street: str = ""
    city: str = Field(..., min_length=1)
    state: str = ""
    country: str = "NG"
    postal_code: str = ""


class OpeningHours(BaseModel):
    day: str
    is_open: bool = True
    opening_time: str = "09:00"
    closing_time: str = "18:00"


def _default_opening_hours() -> list[OpeningHours]:
    return [OpeningHours(day=day, is_open=day != "sunday") for day in DAYS_OF_WEEK]


class SocialLink(BaseModel):
    platform: str
    url: str


class ShopForm(BaseModel):
    name: str = Field(..., min_length=2)
    bio: str = Field(..., min_length=20)
    category: str = "ready-to-wear"
    address: ShopAddress
    opening_hours: list[OpeningHours] = Field(default_factory=_default_opening_hours)
    shop_type: Literal["physical", "online", "both"] = "both"
    website: str | None = None
    social_links: list[SocialLink] = Field(default_factory=list)
    return_policy: str | None = None
    shipping_policy: str | None = None

    def payload(self, seller_id: str) -> dict[str, Any]:
        return {
            "name": self.name,
            "bio": self.bio,
            "category": self.category,
            "address": {
                "street": self.address.street,
                "city": self.address.city,
                "state": self.address.state,
                "country": self.address.country,
                "postalCode": self.address.postal_code,
            },
            "openingHours": [
                {
                    "day": h.day,
                    "isOpen": h.is_open,
                    "openingTime": h.opening_time,
                    "closingTime": h.closing_time,
                }
                for h in self.opening_hours
            ],
            "shopType": self.shop_type,
            "website": self.website,
            "socialLinks": [link.model_dump() for link in self.social_links],
            "returnPolicy": self.return_policy,
            "shippingPolicy": self.shipping_policy,
            "sellerId": seller_id,
        }


# ── Payment ────────────────────────────────────────────────

class BankDetails(BaseModel):
    bank_name: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=10)
    account_name: str = Field(..., min_length=1)
    bank_code: str | None = None
    currency: str = "NGN"

    def payload(self) -> dict[str, Any]:
        return {
            "bankName": self.bank_name,
            "accountNumber": self.account_number,
            "accountName": self.account_name,
            "bankCode": self.bank_code,
            "currency": self.currency,
        }


class PaymentChoice(BaseModel):
    provider: PaymentProvider
    bank_details: BankDetails | None = None

    @model_validator(mode="after")
    def _manual_needs_bank(self) -> PaymentChoice:
        if self.provider == PaymentProvider.MANUAL and self.bank_details is None:
            raise ValueError("Please fill in all required bank details")
        return self


# ── Password reset ─────────────────────────────────────────

class EmailForm(BaseModel):
    email: Email


class NewPasswordForm(BaseModel):
    new_password: str = Field(..., min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def _check_match(self) -> NewPasswordForm:
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


def validate_form(form_cls: type[FormT], data: FormT | dict[str, Any]) -> FormT:
    """Build a form from raw values, turning the first pydantic error into ValidationError."""
    if isinstance(data, form_cls):
        return data
    try:
        return form_cls.model_validate(data)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", "Invalid value")
        message = message.removeprefix("Value error, ")
        raise ValidationError(message, field=field) from None
