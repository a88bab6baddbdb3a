"""Tests for the OTP lockout policy."""

from onboarding.lockout import LockoutPolicy


def test_allows_attempts_below_threshold():
    policy = LockoutPolicy()
    assert policy.can_attempt(0)
    assert policy.can_attempt(2)


def test_blocks_at_threshold():
    """Three rejected attempts lock, and stay locked however long ago."""
    policy = LockoutPolicy()
    assert not policy.can_attempt(3)
    assert not policy.can_attempt(3, elapsed=10_000)


def test_time_boxed_lock_expires():
    policy = LockoutPolicy(max_attempts=3, lockout_seconds=1800)
    assert not policy.can_attempt(3, elapsed=1799)
    assert policy.can_attempt(3, elapsed=1800)


def test_remaining_attempts_never_negative():
    policy = LockoutPolicy()
    assert policy.remaining_attempts(1) == 2
    assert policy.remaining_attempts(5) == 0


def test_lockout_message_matches_policy():
    """A permanent lock must not promise a retry time."""
    assert "Go back" in LockoutPolicy().lockout_message()
    assert "30 minutes" in LockoutPolicy(lockout_seconds=1800).lockout_message()
