"""Tests for the provisioning coordinator: HTTP calls and failure classification."""

import asyncio

import httpx
import pytest

from conftest import wait_until
from onboarding.errors import (
    DuplicateSubmissionError,
    OtpLockedError,
    OtpRejectedError,
    RateLimitedError,
    ResourceConflictError,
    TransientNetworkError,
    UpstreamError,
)
from onboarding.provisioning import SEND_OTP, SHOP, VERIFY_OTP, classify_failure
from onboarding.stages import PaymentProvider


# ── Classification ─────────────────────────────────────────

@pytest.mark.parametrize("group, status, body, expected", [
    (VERIFY_OTP, 400, {"message": "Invalid OTP"}, OtpRejectedError),
    (VERIFY_OTP, 401, {}, OtpRejectedError),
    (VERIFY_OTP, 410, {"message": "Code expired. Please request a new one."}, UpstreamError),
    (SEND_OTP, 400, {"message": "Bad request"}, UpstreamError),
    (SEND_OTP, 429, {"message": "Please wait 1 minute"}, RateLimitedError),
    (VERIFY_OTP, 423, {"message": "Locked"}, OtpLockedError),
    (SEND_OTP, 400, {"message": "Account locked due to multiple failed attempts"}, OtpLockedError),
    (SHOP, 503, {}, TransientNetworkError),
    (SHOP, 504, {}, TransientNetworkError),
    (SHOP, 500, {"error": "boom"}, UpstreamError),
    (SEND_OTP, 400, {"message": "Seller with this email already exists"}, ResourceConflictError),
])
def test_classify_failure(group, status, body, expected):
    assert isinstance(classify_failure(group, status, body), expected)


def test_lock_wording_outside_otp_is_not_a_lockout():
    error = classify_failure(SHOP, 400, {"message": "Shop is locked for review"})
    assert isinstance(error, UpstreamError)


def test_conflict_carries_existing_id():
    error = classify_failure(SHOP, 409, {"message": "Shop already exists", "data": {"shopId": "shop-9"}})
    assert isinstance(error, ResourceConflictError)
    assert error.existing_id == "shop-9"
    assert error.status_code == 409


def test_message_fallbacks():
    assert classify_failure(SHOP, 500, {"detail": "db down"}).message == "db down"
    assert classify_failure(SHOP, 500, {}).message == "Request failed with status 500"


# ── Calls ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_verify_returns_seller_and_token(coordinator, backend):
    account = {"name": "Ada", "email": "ada@example.com"}
    result = await coordinator.verify_registration_otp(account, "123456")
    assert result == {"seller_id": "seller-1", "token": "tok-1"}
    assert backend.calls == [("POST", "/verify-seller-otp", {**account, "otp": "123456"})]


@pytest.mark.asyncio
async def test_verify_without_seller_id_is_upstream_error(coordinator, backend):
    backend.on("/verify-seller-otp", (201, {"success": True}))
    with pytest.raises(UpstreamError):
        await coordinator.verify_registration_otp({}, "123456")


@pytest.mark.asyncio
async def test_create_shop_returns_id(coordinator, backend):
    assert await coordinator.create_shop({"name": "Shop", "sellerId": "seller-1"}, token="tok-1") == "shop-1"
    assert backend.headers[0]["Authorization"] == "Bearer tok-1"


@pytest.mark.asyncio
async def test_manual_payment_sends_bank_details(coordinator, backend):
    bank = {"bankName": "First Bank", "accountNumber": "0123456789", "accountName": "Ada"}
    redirect = await coordinator.setup_payment("seller-1", "shop-1", PaymentProvider.MANUAL, bank, token="tok-1")
    assert redirect is None
    _, path, body = backend.calls[0]
    assert path == "/setup-payment"
    assert body == {"sellerId": "seller-1", "shopId": "shop-1", "provider": "manual", "bankDetails": bank}


@pytest.mark.asyncio
async def test_hosted_payment_returns_redirect(coordinator, backend):
    backend.on("/setup-payment", (200, {"success": True, "redirectUrl": "https://pay.example.com/paystack"}))
    redirect = await coordinator.setup_payment("seller-1", "shop-1", PaymentProvider.PAYSTACK, token="tok-1")
    assert redirect == "https://pay.example.com/paystack"


@pytest.mark.asyncio
async def test_payment_status_reads_flag(coordinator, backend):
    assert await coordinator.payment_status("seller-1", token="tok-1") is True
    backend.on("/seller/seller-1/payment-status", (200, {"isPaymentSetup": False}))
    assert await coordinator.payment_status("seller-1", token="tok-1") is False
    assert backend.calls[0][0] == "GET"


@pytest.mark.asyncio
async def test_reset_password_body(coordinator, backend):
    await coordinator.reset_password("ada@example.com", "newpass1")
    assert backend.calls == [
        ("POST", "/reset-password-user", {"email": "ada@example.com", "newPassword": "newpass1"}),
    ]


@pytest.mark.asyncio
async def test_http_error_is_classified(coordinator, backend):
    backend.on("/verify-forgot-password-otp", (400, {"success": False, "message": "Invalid OTP"}))
    with pytest.raises(OtpRejectedError) as exc_info:
        await coordinator.verify_reset_otp("ada@example.com", "000000")
    assert exc_info.value.message == "Invalid OTP"


@pytest.mark.asyncio
async def test_connection_error_is_transient(coordinator, backend):
    backend.on("/create-shop", httpx.ConnectError("connection refused"))
    with pytest.raises(TransientNetworkError):
        await coordinator.create_shop({"sellerId": "seller-1"})
    assert not coordinator.is_pending(SHOP)


@pytest.mark.asyncio
async def test_timeout_is_transient(coordinator, backend):
    backend.on("/forgot-password-user", httpx.ReadTimeout("too slow"))
    with pytest.raises(TransientNetworkError):
        await coordinator.send_reset_otp("ada@example.com")


@pytest.mark.asyncio
async def test_one_call_in_flight_per_stage(coordinator, backend):
    gate = backend.hold("/create-shop")
    first = asyncio.create_task(coordinator.create_shop({"sellerId": "seller-1"}))
    await wait_until(lambda: backend.calls)

    assert coordinator.is_pending(SHOP)
    with pytest.raises(DuplicateSubmissionError):
        await coordinator.create_shop({"sellerId": "seller-1"})

    # other stage groups are unaffected
    await coordinator.send_reset_otp("ada@example.com")

    gate.set()
    assert await first == "shop-1"
    assert backend.count("/create-shop") == 1
    assert not coordinator.is_pending(SHOP)
