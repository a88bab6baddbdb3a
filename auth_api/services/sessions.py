"""Opaque session tokens issued after OTP verification, kept in Redis."""

import secrets

from auth_api.config import settings
from auth_api.services.otp import get_redis

# Marks an email whose reset code was verified; reset-password requires it
RESET_GRANT_TTL_SEC = 600


async def create_session(seller_id: str) -> str:
    token = secrets.token_urlsafe(32)
    r = await get_redis()
    await r.set(f"session:{token}", seller_id, ex=settings.session_ttl_sec)
    return token


async def resolve_session(token: str) -> str | None:
    """Seller id for a live token, else None."""
    r = await get_redis()
    return await r.get(f"session:{token}")


async def grant_password_reset(email: str) -> None:
    r = await get_redis()
    await r.set(f"reset_grant:{email.strip().lower()}", "true", ex=RESET_GRANT_TTL_SEC)


async def password_reset_granted(email: str) -> bool:
    r = await get_redis()
    return bool(await r.get(f"reset_grant:{email.strip().lower()}"))


async def revoke_password_reset(email: str) -> None:
    r = await get_redis()
    await r.delete(f"reset_grant:{email.strip().lower()}")
