"""HTTP mapping shared by the auth routers."""

import secrets
import uuid

from fastapi import Header, HTTPException

from auth_api.config import settings

from auth_api.services.otp import (
    OtpCooldownError,
    OtpError,
    OtpExpiredError,
    OtpInvalidError,
    OtpLockedError,
    OtpRequestLimitError,
)
from auth_api.services.sessions import resolve_session

OTP_ERROR_STATUS = {
    OtpCooldownError: 429,
    OtpRequestLimitError: 429,
    OtpLockedError: 423,
    OtpInvalidError: 400,
    OtpExpiredError: 410,
}


def otp_http_error(exc: OtpError) -> HTTPException:
    return HTTPException(status_code=OTP_ERROR_STATUS.get(type(exc), 400), detail=str(exc))


def parse_uuid(value: str, what: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"{what} not found")


async def current_seller_id(authorization: str | None = Header(None)) -> str:
    """Resolve `Authorization: Bearer <token>` to the seller id it was issued for."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")
    seller_id = await resolve_session(authorization[7:].strip())
    if not seller_id:
        raise HTTPException(status_code=401, detail="Session expired. Please sign in again.")
    return seller_id


async def verify_webhook_secret(x_webhook_secret: str | None = Header(None)) -> None:
    """Providers must echo the shared secret in `X-Webhook-Secret`."""
    if not settings.payment_webhook_secret:
        raise HTTPException(status_code=503, detail="Payment webhook is not configured")
    if not x_webhook_secret or not secrets.compare_digest(x_webhook_secret, settings.payment_webhook_secret):
        raise HTTPException(status_code=401, detail="Invalid webhook secret")
