"""
OTP challenge — the 6-slot entry buffer and its verification rules.

Security:
  - Only the server accepts or rejects a code; nothing is checked locally
  - 3 consecutive rejections lock the challenge (see LockoutPolicy)
  - Transport failures never consume an attempt
  - At most one verification and one resend in flight
"""

from __future__ import annotations
import inspect
import logging
import re
import time
from enum import Enum
from typing import Any, Awaitable, Callable

from onboarding.errors import (
    OnboardingError,
    OtpLockedError,
    OtpRejectedError,
    ResourceConflictError,
    TransientNetworkError,
)
from onboarding.lockout import LockoutPolicy
from onboarding.resend_timer import ResendTimer

logger = logging.getLogger(__name__)

OTP_LENGTH = 6
_DIGIT_RE = re.compile(r"[0-9]?")


class OtpOutcome(str, Enum):
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    LOCKED = "LOCKED"
    NETWORK_ERROR = "NETWORK_ERROR"
    CONFLICT = "CONFLICT"
    FAILED = "FAILED"
    IGNORED = "IGNORED"


class OtpChallenge:
    """
    Entry buffer, attempt counter and resend gate for one sent code.

    Args:
        verify: Coroutine taking the 6-digit code, returning the server payload
        resend: Coroutine asking the server to send a new code
        on_verified: Called (and awaited if async) with the verify payload
        policy: Lockout rules
        timer: Resend cooldown; started here because a code was just sent
        clock: Monotonic clock used by time-boxed lockouts
    """

    def __init__(
        self,
        verify: Callable[[str], Awaitable[Any]],
        resend: Callable[[], Awaitable[Any]],
        on_verified: Callable[[Any], Any] | None = None,
        policy: LockoutPolicy | None = None,
        timer: ResendTimer | None = None,
        clock: Callable[[], float] = time.monotonic,
        start_timer: bool = True,
    ):
        self._verify = verify
        self._resend = resend
        self._on_verified = on_verified
        self.policy = policy or LockoutPolicy()
        self.timer = timer or ResendTimer()
        self._clock = clock

        self.digits: list[str] = [""] * OTP_LENGTH
        self.focus = 0
        self.attempt_count = 0
        self.locked = False
        self.verified = False
        self.message: str | None = None

        self._locked_at: float | None = None
        self._submitting = False
        self._resending = False
        self._closed = False

        if start_timer:
            self.timer.start()

    # ── Read-only views ─────────────────────────────────────

    @property
    def code(self) -> str:
        return "".join(self.digits)

    @property
    def is_complete(self) -> bool:
        return all(self.digits)

    @property
    def submitting(self) -> bool:
        return self._submitting

    @property
    def resending(self) -> bool:
        return self._resending

    @property
    def can_resend(self) -> bool:
        return not (
            self._is_locked()
            or self.verified
            or self.timer.active
            or self._resending
            or self._submitting
            or self._closed
        )

    # ── Entry ───────────────────────────────────────────────

    async def enter_digit(self, index: int, value: str) -> OtpOutcome | None:
        """
        Put one digit (or "" to clear) into a slot.

        Returns the submit outcome when the entry completed the buffer,
        otherwise None.
        """
        if not 0 <= index < OTP_LENGTH or not _DIGIT_RE.fullmatch(value):
            return None
        if self.verified or self._closed or self._is_locked():
            return None

        self.digits[index] = value
        if value and index < OTP_LENGTH - 1:
            self.focus = index + 1
        else:
            self.focus = index

        if self.is_complete:
            return await self.submit()
        return None

    def delete_digit(self, index: int) -> None:
        """Backspace: clear a filled slot, or step left from an empty one."""
        if not 0 <= index < OTP_LENGTH or self.verified or self._closed:
            return
        if self.digits[index]:
            self.digits[index] = ""
            self.focus = index
        elif index > 0:
            self.focus = index - 1

    def clear(self) -> None:
        self.digits = [""] * OTP_LENGTH
        self.focus = 0

    # ── Verification ────────────────────────────────────────

    async def submit(self) -> OtpOutcome:
        if self.verified or self._submitting or self._closed:
            return OtpOutcome.IGNORED
        if self._is_locked():
            self.message = self.policy.lockout_message()
            return OtpOutcome.LOCKED
        if not self.is_complete:
            self.message = f"Enter all {OTP_LENGTH} digits of the code."
            return OtpOutcome.IGNORED

        self._submitting = True
        self.message = None
        try:
            result = await self._verify(self.code)
        except OtpRejectedError as exc:
            if self._closed:
                return OtpOutcome.IGNORED
            return self._record_rejection(exc)
        except OtpLockedError as exc:
            if self._closed:
                return OtpOutcome.IGNORED
            self._lock()
            self.message = exc.message or self.policy.lockout_message()
            logger.warning("OTP locked by server")
            return OtpOutcome.LOCKED
        except TransientNetworkError as exc:
            if self._closed:
                return OtpOutcome.IGNORED
            self.message = "Connection problem, your code was not checked. Please try again."
            logger.warning("OTP verification not delivered: %s", exc)
            return OtpOutcome.NETWORK_ERROR
        except ResourceConflictError as exc:
            if self._closed:
                return OtpOutcome.IGNORED
            self.message = exc.message or "An account with these details already exists."
            logger.warning("OTP verification conflict: %s", exc)
            return OtpOutcome.CONFLICT
        except OnboardingError as exc:
            if self._closed:
                return OtpOutcome.IGNORED
            self.message = exc.message or "Could not verify the code. Please try again."
            logger.error("OTP verification failed: %s", exc)
            return OtpOutcome.FAILED
        finally:
            self._submitting = False

        if self._closed:
            logger.info("Discarding verification result for a closed challenge")
            return OtpOutcome.IGNORED

        self.verified = True
        self.attempt_count = 0
        self.timer.cancel()
        logger.info("OTP verified")
        if self._on_verified is not None:
            outcome = self._on_verified(result)
            if inspect.isawaitable(outcome):
                await outcome
        return OtpOutcome.VERIFIED

    def _record_rejection(self, exc: OtpRejectedError) -> OtpOutcome:
        self.attempt_count += 1
        self.clear()
        if not self.policy.can_attempt(self.attempt_count):
            self._lock()
            self.message = self.policy.lockout_message()
            logger.warning("OTP locked after %d rejected attempts", self.attempt_count)
            return OtpOutcome.LOCKED

        remaining = self.policy.remaining_attempts(self.attempt_count)
        self.message = f"Incorrect code, {remaining} attempts remaining."
        logger.warning("OTP rejected (%s), %d attempts remaining", exc, remaining)
        return OtpOutcome.REJECTED

    def _lock(self) -> None:
        self.locked = True
        self.attempt_count = max(self.attempt_count, self.policy.max_attempts)
        self._locked_at = self._clock()

    def _is_locked(self) -> bool:
        if not self.locked:
            return False
        elapsed = self._clock() - self._locked_at if self._locked_at is not None else None
        if self.policy.can_attempt(self.attempt_count, elapsed):
            # time-boxed lock expired
            self.locked = False
            self.attempt_count = 0
            self._locked_at = None
            self.message = None
            return False
        return True

    # ── Resend ──────────────────────────────────────────────

    async def resend(self) -> bool:
        """Request a new code. Returns True when one was sent."""
        if not self.can_resend:
            return False

        self._resending = True
        self.message = None
        try:
            await self._resend()
        except OnboardingError as exc:
            if not self._closed:
                self.message = exc.message or "Could not resend the code. Please try again."
            logger.warning("OTP resend failed: %s", exc)
            return False
        finally:
            self._resending = False

        if self._closed:
            return False

        self.clear()
        self.timer.start()
        logger.info("OTP resent, cooldown %ds", self.timer.remaining)
        return True

    def close(self) -> None:
        """Tear down: stop the countdown and ignore late results."""
        self._closed = True
        self.timer.cancel()
