"""Tests for local form validation."""

import pytest

from conftest import ACCOUNT, BANK, SHOP
from onboarding.errors import ValidationError
from onboarding.forms import AccountForm, PaymentChoice, ShopForm, validate_form


@pytest.mark.parametrize("override, field, message", [
    ({"name": "A"}, "name", None),
    ({"phone": "012"}, "phone", "Please enter a valid phone number"),
    ({"password": "abc", "confirm_password": "abc"}, "password", None),
    ({"city": ""}, "city", None),
])
def test_account_field_errors(override, field, message):
    with pytest.raises(ValidationError) as exc_info:
        validate_form(AccountForm, {**ACCOUNT, **override})
    assert exc_info.value.field == field
    if message:
        assert exc_info.value.message == message


def test_account_password_mismatch():
    with pytest.raises(ValidationError) as exc_info:
        validate_form(AccountForm, {**ACCOUNT, "confirm_password": "other123"})
    assert exc_info.value.message == "Passwords do not match"
    assert exc_info.value.field is None


def test_account_requires_terms():
    with pytest.raises(ValidationError) as exc_info:
        validate_form(AccountForm, {**ACCOUNT, "terms_accepted": False})
    assert "terms" in exc_info.value.message


def test_phone_is_normalised():
    form = validate_form(AccountForm, {**ACCOUNT, "phone": "+234 801-234-5678"})
    assert form.phone == "+2348012345678"


def test_registration_payload_uses_wire_names():
    payload = validate_form(AccountForm, ACCOUNT).registration_payload()
    assert payload["sellerType"] == "fashion-retailer"
    assert payload["yearsInBusiness"] == "<1"
    assert "confirm_password" not in payload
    assert "terms_accepted" not in payload


def test_shop_bio_minimum():
    with pytest.raises(ValidationError) as exc_info:
        validate_form(ShopForm, {**SHOP, "bio": "Too short"})
    assert exc_info.value.field == "bio"


def test_shop_address_needs_city():
    with pytest.raises(ValidationError) as exc_info:
        validate_form(ShopForm, {**SHOP, "address": {"street": "1 Broad St"}})
    assert exc_info.value.field == "address.city"


def test_shop_payload_defaults_opening_hours():
    payload = validate_form(ShopForm, SHOP).payload("seller-1")
    assert payload["sellerId"] == "seller-1"
    assert payload["address"]["city"] == "Lagos"
    hours = {h["day"]: h for h in payload["openingHours"]}
    assert hours["monday"]["isOpen"] and hours["monday"]["openingTime"] == "09:00"
    assert not hours["sunday"]["isOpen"]


def test_bank_account_number_length():
    with pytest.raises(ValidationError) as exc_info:
        validate_form(PaymentChoice, {"provider": "manual", "bank_details": {**BANK, "account_number": "12345"}})
    assert exc_info.value.field == "bank_details.account_number"


def test_unknown_provider_rejected():
    with pytest.raises(ValidationError) as exc_info:
        validate_form(PaymentChoice, {"provider": "paypal"})
    assert exc_info.value.field == "provider"


def test_hosted_provider_needs_no_bank():
    choice = validate_form(PaymentChoice, {"provider": "flutterwave"})
    assert choice.bank_details is None
