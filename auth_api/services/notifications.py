"""
Notification Service — deliver OTP codes by email through a mail webhook.

Without MAIL_WEBHOOK_URL (local development) the code is written to the log.
"""

import logging

import httpx

from auth_api.config import settings

logger = logging.getLogger(__name__)

SUBJECTS = {
    "seller-registration": "Verify your seller account",
    "password-reset": "Reset your password",
}


async def send_otp_email(email: str, otp: str, purpose: str) -> bool:
    """Send a code to an email address. Failures are logged, never raised."""
    if not settings.mail_webhook_url:
        logger.info("MAIL_WEBHOOK_URL not set, dev OTP for %s (%s): %s", email, purpose, otp)
        return False

    payload = {
        "to": email,
        "subject": SUBJECTS.get(purpose, "Your verification code"),
        "template": purpose,
        "variables": {"otp": otp, "expiresInMinutes": settings.otp_ttl_sec // 60},
    }
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(settings.mail_webhook_url, json=payload)
            if resp.status_code >= 400:
                logger.warning("Mail webhook rejected OTP email to %s: %s", email, resp.status_code)
                return False
            return True
    except httpx.HTTPError as e:
        logger.warning("Mail webhook error for %s: %s", email, e)
        return False
