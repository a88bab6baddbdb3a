"""
Lockout policy for OTP verification.

Rules:
  - 3 server-rejected attempts lock the challenge
  - Default lock is permanent until the flow restarts (back-navigation or
    a fresh session); a time-boxed lock is opt-in via OTP_LOCKOUT_SEC
"""

from __future__ import annotations
from dataclasses import dataclass

from onboarding.config import settings


@dataclass(frozen=True)
class LockoutPolicy:
    max_attempts: int = 3
    lockout_seconds: float | None = None

    @classmethod
    def from_settings(cls) -> LockoutPolicy:
        return cls(
            max_attempts=settings.OTP_MAX_ATTEMPTS,
            lockout_seconds=settings.OTP_LOCKOUT_SEC,
        )

    def can_attempt(self, attempt_count: int, elapsed: float | None = None) -> bool:
        """
        Decide whether another verification may be sent.

        Args:
            attempt_count: Consecutive server-rejected attempts so far
            elapsed: Seconds since the challenge locked (time-boxed policy only)
        """
        if attempt_count < self.max_attempts:
            return True
        if self.lockout_seconds is None or elapsed is None:
            return False
        return elapsed >= self.lockout_seconds

    def remaining_attempts(self, attempt_count: int) -> int:
        return max(self.max_attempts - attempt_count, 0)

    def lockout_message(self) -> str:
        if self.lockout_seconds is None:
            return "Too many failed attempts. Go back and start again to get a new code."
        minutes = max(int(self.lockout_seconds // 60), 1)
        return f"Too many failed attempts. Please try again in {minutes} minutes."
