"""Tests for the backend OTP service (mocked Redis)."""

import bcrypt
import pytest
from unittest.mock import AsyncMock, patch

from auth_api.services.otp import (
    REGISTRATION,
    OtpCooldownError,
    OtpExpiredError,
    OtpInvalidError,
    OtpLockedError,
    OtpRequestLimitError,
    generate_otp,
    verify_otp,
)

EMAIL = "ada@example.com"


def _redis(values: dict | None = None, otp_data: dict | None = None, attempts: int = 1) -> AsyncMock:
    """Redis double: `values` backs GET, `otp_data` backs HGETALL."""
    values = values or {}
    conn = AsyncMock()
    conn.get.side_effect = lambda key: values.get(key)
    conn.hgetall.return_value = otp_data or {}
    conn.hincrby.return_value = attempts
    conn.incr.return_value = 1
    return conn


def _stored(code: str, attempts: str = "0") -> dict:
    return {"hash": bcrypt.hashpw(code.encode(), bcrypt.gensalt()).decode(), "attempts": attempts}


@pytest.mark.asyncio
async def test_otp_format():
    """Generated OTP should be a 6-digit string."""
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        mock_get_redis.return_value = _redis()
        code = await generate_otp(EMAIL, REGISTRATION)
        assert len(code) == 6
        assert code.isdigit()


@pytest.mark.asyncio
async def test_otp_stored_in_redis():
    """OTP hash stored with TTL, cooldown set, request counted."""
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        conn = _redis()
        mock_get_redis.return_value = conn
        code = await generate_otp(EMAIL, REGISTRATION)

        key, = conn.hset.call_args.args
        stored = conn.hset.call_args.kwargs["mapping"]
        assert key == f"otp:{REGISTRATION}:{EMAIL}"
        assert bcrypt.checkpw(code.encode(), stored["hash"].encode())
        conn.expire.assert_any_call(key, 300)
        conn.set.assert_called_once_with(f"otp_cooldown:{REGISTRATION}:{EMAIL}", "true", ex=60)
        conn.incr.assert_called_once()


@pytest.mark.asyncio
async def test_cooldown_blocks_second_send():
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        conn = _redis({f"otp_cooldown:{REGISTRATION}:{EMAIL}": "true"})
        mock_get_redis.return_value = conn
        with pytest.raises(OtpCooldownError):
            await generate_otp(EMAIL, REGISTRATION)
        conn.hset.assert_not_called()


@pytest.mark.asyncio
async def test_hourly_request_limit_locks():
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        conn = _redis({f"otp_requests:{REGISTRATION}:{EMAIL}": "3"})
        mock_get_redis.return_value = conn
        with pytest.raises(OtpRequestLimitError):
            await generate_otp(EMAIL, REGISTRATION)
        conn.set.assert_called_once_with(f"otp_spam_lock:{REGISTRATION}:{EMAIL}", "locked", ex=3600)


@pytest.mark.asyncio
async def test_send_block_refuses_new_codes():
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        conn = _redis({f"otp_spam_lock:{REGISTRATION}:{EMAIL}": "locked"})
        mock_get_redis.return_value = conn
        with pytest.raises(OtpRequestLimitError):
            await generate_otp(EMAIL, REGISTRATION)
        conn.hset.assert_not_called()


class _DictRedis:
    """Just enough of redis.asyncio for the OTP service, backed by dicts."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.hashes: dict[str, dict[str, str]] = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self.values[key] = value

    async def incr(self, key):
        self.values[key] = str(int(self.values.get(key, 0)) + 1)
        return int(self.values[key])

    async def expire(self, key, seconds):
        return True

    async def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update(mapping)

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def hincrby(self, key, field, amount):
        data = self.hashes.setdefault(key, {})
        data[field] = str(int(data.get(field, 0)) + amount)
        return int(data[field])

    async def delete(self, *keys):
        for key in keys:
            self.values.pop(key, None)
            self.hashes.pop(key, None)


@pytest.mark.asyncio
async def test_hourly_limit_does_not_block_verifying_issued_code():
    """Hitting the send cap only stops new codes; the last one still verifies."""
    conn = _DictRedis()
    with patch("auth_api.services.otp.get_redis", AsyncMock(return_value=conn)):
        for _ in range(3):
            code = await generate_otp(EMAIL, REGISTRATION)
            await conn.delete(f"otp_cooldown:{REGISTRATION}:{EMAIL}")

        with pytest.raises(OtpRequestLimitError):
            await generate_otp(EMAIL, REGISTRATION)

        await verify_otp(EMAIL, REGISTRATION, code)
        assert await conn.get(f"otp_lock:{REGISTRATION}:{EMAIL}") is None


@pytest.mark.asyncio
async def test_locked_email_cannot_request():
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        mock_get_redis.return_value = _redis({f"otp_lock:{REGISTRATION}:{EMAIL}": "locked"})
        with pytest.raises(OtpLockedError):
            await generate_otp(EMAIL, REGISTRATION)


@pytest.mark.asyncio
async def test_otp_verify_success():
    """Correct OTP verifies and is invalidated."""
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        conn = _redis(otp_data=_stored("123456"))
        mock_get_redis.return_value = conn
        await verify_otp(EMAIL, REGISTRATION, "123456")
        conn.delete.assert_called_once()
        conn.hincrby.assert_not_called()


@pytest.mark.asyncio
async def test_otp_verify_wrong_code():
    """Wrong OTP fails and reports the attempts left."""
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        mock_get_redis.return_value = _redis(otp_data=_stored("123456"), attempts=1)
        with pytest.raises(OtpInvalidError) as exc_info:
            await verify_otp(EMAIL, REGISTRATION, "000000")
        assert exc_info.value.remaining == 2
        assert "Incorrect OTP" in str(exc_info.value)


@pytest.mark.asyncio
async def test_third_failure_locks_email():
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        conn = _redis(otp_data=_stored("123456", attempts="2"), attempts=3)
        mock_get_redis.return_value = conn
        with pytest.raises(OtpLockedError):
            await verify_otp(EMAIL, REGISTRATION, "000000")
        conn.set.assert_called_once_with(f"otp_lock:{REGISTRATION}:{EMAIL}", "locked", ex=1800)
        conn.delete.assert_called_once_with(f"otp:{REGISTRATION}:{EMAIL}")


@pytest.mark.asyncio
async def test_expired_code():
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        mock_get_redis.return_value = _redis()
        with pytest.raises(OtpExpiredError):
            await verify_otp(EMAIL, REGISTRATION, "123456")


@pytest.mark.asyncio
async def test_email_is_case_insensitive():
    with patch("auth_api.services.otp.get_redis") as mock_get_redis:
        conn = _redis()
        mock_get_redis.return_value = conn
        await generate_otp("Ada@Example.com", REGISTRATION)
        assert conn.hset.call_args.args[0] == f"otp:{REGISTRATION}:{EMAIL}"
