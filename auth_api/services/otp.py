"""
OTP Service — Generation, hashing, and verification.

Security:
  - 6-digit numeric codes
  - Hashed with bcrypt before storage
  - Stored in Redis with a 5-minute TTL
  - 60s cooldown between sends, limited sends per hour (1h send block)
  - 3 failed verifications lock the email for 30 minutes
"""

import logging
import secrets

import bcrypt
import redis.asyncio as aioredis

from auth_api.config import settings

logger = logging.getLogger(__name__)

_redis: aioredis.Redis | None = None

# Purposes keep registration and password-reset codes apart
REGISTRATION = "seller-registration"
PASSWORD_RESET = "password-reset"


class OtpError(Exception):
    """Base class for OTP service failures."""


class OtpCooldownError(OtpError):
    pass


class OtpRequestLimitError(OtpError):
    pass


class OtpLockedError(OtpError):
    pass


class OtpExpiredError(OtpError):
    pass


class OtpInvalidError(OtpError):
    def __init__(self, message: str, remaining: int):
        super().__init__(message)
        self.remaining = remaining


async def get_redis() -> aioredis.Redis:
    """Singleton Redis connection."""
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def _keys(email: str, purpose: str) -> dict[str, str]:
    email = email.strip().lower()
    return {
        "otp": f"otp:{purpose}:{email}",
        "cooldown": f"otp_cooldown:{purpose}:{email}",
        "requests": f"otp_requests:{purpose}:{email}",
        "lock": f"otp_lock:{purpose}:{email}",
        "spam_lock": f"otp_spam_lock:{purpose}:{email}",
    }


async def check_otp_restrictions(email: str, purpose: str) -> None:
    """Raise if a new code may not be sent to this email right now."""
    r = await get_redis()
    keys = _keys(email, purpose)

    if await r.get(keys["lock"]):
        raise OtpLockedError("Account locked due to multiple failed attempts. Try again after 30 minutes.")
    if await r.get(keys["spam_lock"]):
        raise OtpRequestLimitError("Too many code requests. Please wait 1 hour before trying again.")
    if await r.get(keys["cooldown"]):
        raise OtpCooldownError("Please wait 1 minute before requesting a new code.")

    requests = int(await r.get(keys["requests"]) or 0)
    if requests >= settings.otp_max_requests_per_hour:
        # blocks sending only; a code already issued stays verifiable
        await r.set(keys["spam_lock"], "locked", ex=settings.otp_spam_lock_sec)
        raise OtpRequestLimitError("Too many code requests. Please wait 1 hour before trying again.")


async def generate_otp(email: str, purpose: str) -> str:
    """
    Generate a 6-digit OTP and store its bcrypt hash in Redis.

    Args:
        email: Address the code will be sent to
        purpose: REGISTRATION or PASSWORD_RESET

    Returns:
        Plaintext OTP (to deliver by email)
    """
    await check_otp_restrictions(email, purpose)

    otp = f"{secrets.randbelow(1000000):06d}"
    otp_hash = bcrypt.hashpw(otp.encode(), bcrypt.gensalt()).decode()

    r = await get_redis()
    keys = _keys(email, purpose)

    await r.hset(keys["otp"], mapping={
        "hash": otp_hash,
        "attempts": "0",
    })
    await r.expire(keys["otp"], settings.otp_ttl_sec)
    await r.set(keys["cooldown"], "true", ex=settings.otp_cooldown_sec)

    requests = await r.incr(keys["requests"])
    if requests == 1:
        await r.expire(keys["requests"], 3600)

    logger.info("OTP issued: purpose=%s email=%s", purpose, email)
    return otp


async def verify_otp(email: str, purpose: str, provided_otp: str) -> None:
    """
    Verify an OTP against the stored hash. Returns on success.

    Raises:
        OtpLockedError: email is locked, or this failure reached the limit
        OtpExpiredError: no live code for this email
        OtpInvalidError: wrong code, with the attempts left
    """
    r = await get_redis()
    keys = _keys(email, purpose)

    if await r.get(keys["lock"]):
        raise OtpLockedError("Account locked due to multiple failed attempts. Try again after 30 minutes.")

    data = await r.hgetall(keys["otp"])
    if not data:
        raise OtpExpiredError("Code expired. Please request a new one.")

    if bcrypt.checkpw(provided_otp.encode(), data["hash"].encode()):
        await r.delete(keys["otp"], keys["requests"])  # Invalidate on success
        logger.info("OTP verified: purpose=%s email=%s", purpose, email)
        return

    attempts = await r.hincrby(keys["otp"], "attempts", 1)
    if attempts >= settings.otp_max_failed_attempts:
        await r.set(keys["lock"], "locked", ex=settings.otp_lock_sec)
        await r.delete(keys["otp"])
        logger.warning("OTP locked after %d failures: purpose=%s email=%s", attempts, purpose, email)
        raise OtpLockedError("Too many failed attempts. Your account is locked for 30 minutes.")

    remaining = settings.otp_max_failed_attempts - attempts
    raise OtpInvalidError(f"Incorrect OTP. {remaining} attempts remaining.", remaining)
