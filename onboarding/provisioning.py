"""
Provisioning coordinator — one network call per stage transition.

Each operation:
  1. Refuses to start while a call for the same stage is in flight
  2. Issues exactly one HTTP request
  3. Maps transport failures and non-success responses onto the
     onboarding error taxonomy
"""

from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx

from onboarding.api_client import MarketplaceClient
from onboarding.errors import (
    DuplicateSubmissionError,
    OnboardingError,
    OtpLockedError,
    OtpRejectedError,
    RateLimitedError,
    ResourceConflictError,
    TransientNetworkError,
    UpstreamError,
)
from onboarding.stages import PaymentProvider

logger = logging.getLogger(__name__)

# Stage groups: calls sharing a group never overlap
SEND_OTP = "otp-send"
VERIFY_OTP = "otp-verify"
SHOP = "shop"
PAYMENT = "payment"
PASSWORD = "password"

TRANSIENT_STATUSES = {408, 502, 503, 504}
REJECTION_STATUSES = {400, 401, 422}


def _message(body: dict[str, Any], default: str) -> str:
    for key in ("message", "error", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return default


def _existing_id(body: dict[str, Any]) -> str | None:
    data = body.get("data")
    if isinstance(data, dict):
        for key in ("id", "shopId", "sellerId"):
            if data.get(key):
                return str(data[key])
        for nested in ("shop", "seller"):
            if isinstance(data.get(nested), dict) and data[nested].get("id"):
                return str(data[nested]["id"])
    return None


def classify_failure(group: str, status_code: int, body: dict[str, Any]) -> OnboardingError:
    """Map a non-success response onto the error taxonomy."""
    message = _message(body, f"Request failed with status {status_code}")
    lowered = message.lower()

    if status_code == 409 or "already exists" in lowered:
        return ResourceConflictError(message, status_code=status_code, existing_id=_existing_id(body))
    if status_code == 423 or (group in (SEND_OTP, VERIFY_OTP) and "locked" in lowered):
        return OtpLockedError(message, status_code=status_code)
    if status_code == 429:
        return RateLimitedError(message, status_code=status_code)
    if status_code in TRANSIENT_STATUSES:
        return TransientNetworkError(message, status_code=status_code)
    if group == VERIFY_OTP and status_code in REJECTION_STATUSES:
        return OtpRejectedError(message, status_code=status_code)
    return UpstreamError(message, status_code=status_code)


def _json(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}


class ProvisioningCoordinator:
    def __init__(self, client: MarketplaceClient | None = None):
        self.client = client or MarketplaceClient()
        self._in_flight: set[str] = set()

    def is_pending(self, group: str) -> bool:
        return group in self._in_flight

    @asynccontextmanager
    async def _slot(self, group: str):
        if group in self._in_flight:
            raise DuplicateSubmissionError(f"A {group} request is already in progress")
        self._in_flight.add(group)
        try:
            yield
        finally:
            self._in_flight.discard(group)

    async def _call(
        self,
        group: str,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> dict[str, Any]:
        async with self._slot(group):
            try:
                resp = await self.client.request(method, endpoint, json=payload, token=token)
            except httpx.TimeoutException as exc:
                logger.warning("API timeout: %s %s", method, endpoint)
                raise TransientNetworkError("The server took too long to respond. Please try again.") from exc
            except httpx.TransportError as exc:
                logger.warning("API unreachable: %s %s → %s", method, endpoint, exc)
                raise TransientNetworkError("Could not reach the server. Check your connection.") from exc

        body = _json(resp)
        if resp.is_success:
            return body

        error = classify_failure(group, resp.status_code, body)
        if resp.status_code >= 500:
            logger.error("API error: %s %s → %s %s", method, endpoint, resp.status_code, error.message)
        else:
            logger.warning("API error: %s %s → %s %s", method, endpoint, resp.status_code, error.message)
        raise error

    # ── Seller registration ────────────────────────────────

    async def send_registration_otp(self, account: dict[str, Any]) -> dict[str, Any]:
        """Ask the backend to email a code. Same call for first send and resend."""
        return await self._call(SEND_OTP, "POST", "/seller-registration", account)

    async def verify_registration_otp(self, account: dict[str, Any], code: str) -> dict[str, Any]:
        """
        Verify the code and create the seller.

        Returns:
            {"seller_id": str, "token": str | None}
        """
        body = await self._call(VERIFY_OTP, "POST", "/verify-seller-otp", {**account, "otp": code})
        seller = body.get("seller") or (body.get("data") or {}).get("seller") or {}
        seller_id = seller.get("id")
        if not seller_id:
            raise UpstreamError("Verification succeeded but no seller id was returned")
        token = body.get("token") or (body.get("data") or {}).get("token")
        logger.info("Seller verified: seller_id=%s", seller_id)
        return {"seller_id": str(seller_id), "token": token}

    # ── Shop ───────────────────────────────────────────────

    async def create_shop(self, shop: dict[str, Any], token: str | None = None) -> str:
        body = await self._call(SHOP, "POST", "/create-shop", shop, token=token)
        shop_data = body.get("shop") or (body.get("data") or {}).get("shop") or {}
        shop_id = shop_data.get("id")
        if not shop_id:
            raise UpstreamError("Shop was created but no shop id was returned")
        logger.info("Shop created: seller_id=%s, shop_id=%s", shop.get("sellerId"), shop_id)
        return str(shop_id)

    # ── Payment ────────────────────────────────────────────

    async def setup_payment(
        self,
        seller_id: str,
        shop_id: str,
        provider: PaymentProvider,
        bank_details: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> str | None:
        """Link a payment provider. Returns a redirect URL for hosted onboarding, else None."""
        payload: dict[str, Any] = {
            "sellerId": seller_id,
            "shopId": shop_id,
            "provider": provider.value,
        }
        if provider == PaymentProvider.MANUAL and bank_details:
            payload["bankDetails"] = bank_details
        body = await self._call(PAYMENT, "POST", "/setup-payment", payload, token=token)
        redirect_url = body.get("redirectUrl") or (body.get("data") or {}).get("redirectUrl")
        logger.info(
            "Payment setup accepted: seller_id=%s, provider=%s, redirect=%s",
            seller_id, provider.value, bool(redirect_url),
        )
        return redirect_url

    async def skip_payment(self, seller_id: str, shop_id: str, token: str | None = None) -> None:
        await self._call(
            PAYMENT, "POST", "/skip-payment-setup",
            {"sellerId": seller_id, "shopId": shop_id}, token=token,
        )
        logger.info("Payment setup skipped: seller_id=%s", seller_id)

    async def payment_status(self, seller_id: str, token: str | None = None) -> bool:
        body = await self._call(PAYMENT, "GET", f"/seller/{seller_id}/payment-status", token=token)
        data = body.get("data") if isinstance(body.get("data"), dict) else body
        return bool(data.get("isPaymentSetup"))

    # ── Password reset ─────────────────────────────────────

    async def send_reset_otp(self, email: str) -> dict[str, Any]:
        return await self._call(SEND_OTP, "POST", "/forgot-password-user", {"email": email})

    async def verify_reset_otp(self, email: str, code: str) -> dict[str, Any]:
        return await self._call(
            VERIFY_OTP, "POST", "/verify-forgot-password-otp", {"email": email, "otp": code},
        )

    async def reset_password(self, email: str, new_password: str) -> dict[str, Any]:
        return await self._call(
            PASSWORD, "POST", "/reset-password-user", {"email": email, "newPassword": new_password},
        )
