"""Tests for the forgot-password flow."""

import pytest

from conftest import VALID_CODE, type_code
from onboarding import PasswordResetFlow
from onboarding.errors import InvalidTransitionError, OtpLockedError, ValidationError
from onboarding.otp_challenge import OtpOutcome
from onboarding.stages import PasswordResetStage as PR


@pytest.fixture
def flow(coordinator):
    flow = PasswordResetFlow(coordinator)
    yield flow
    flow.close()


@pytest.mark.asyncio
async def test_reset_chain(flow, backend):
    await flow.submit_email("ada@example.com")
    assert flow.stage == PR.OTP_PENDING

    assert await type_code(flow, VALID_CODE) == OtpOutcome.VERIFIED
    assert flow.stage == PR.RESETTING_PASSWORD

    await flow.submit_new_password("newpass1", "newpass1")
    assert flow.stage == PR.DONE
    assert flow.finished
    assert backend.calls == [
        ("POST", "/forgot-password-user", {"email": "ada@example.com"}),
        ("POST", "/verify-forgot-password-otp", {"email": "ada@example.com", "otp": VALID_CODE}),
        ("POST", "/reset-password-user", {"email": "ada@example.com", "newPassword": "newpass1"}),
    ]


@pytest.mark.asyncio
async def test_invalid_email_is_local(flow, backend):
    with pytest.raises(ValidationError):
        await flow.submit_email("ada@")
    assert backend.calls == []
    assert flow.stage == PR.COLLECTING_EMAIL


@pytest.mark.asyncio
async def test_password_mismatch_is_local(flow, backend):
    await flow.submit_email("ada@example.com")
    await type_code(flow, VALID_CODE)

    with pytest.raises(ValidationError) as exc_info:
        await flow.submit_new_password("newpass1", "newpass2")
    assert exc_info.value.message == "Passwords do not match"
    assert backend.count("/reset-password-user") == 0
    assert flow.stage == PR.RESETTING_PASSWORD


@pytest.mark.asyncio
async def test_back_from_new_password_allows_immediate_resend(flow, backend):
    await flow.submit_email("ada@example.com")
    await type_code(flow, VALID_CODE)

    flow.back()
    assert flow.stage == PR.OTP_PENDING
    assert flow.challenge is not None
    assert not flow.challenge.timer.active
    assert flow.challenge.attempt_count == 0

    assert await flow.resend_code() is True
    assert backend.count("/forgot-password-user") == 2
    assert flow.challenge.timer.active


@pytest.mark.asyncio
async def test_back_from_code_to_email(flow, backend):
    await flow.submit_email("ada@example.com")
    flow.back()
    assert flow.stage == PR.COLLECTING_EMAIL
    assert flow.challenge is None
    with pytest.raises(InvalidTransitionError):
        flow.back()


@pytest.mark.asyncio
async def test_wrong_codes_lock_reset(flow, backend):
    await flow.submit_email("ada@example.com")
    for code in ("000001", "000002", "000003"):
        await type_code(flow, code)

    assert flow.challenge.locked
    assert flow.stage == PR.OTP_PENDING
    assert backend.count("/verify-forgot-password-otp") == 3


@pytest.mark.asyncio
async def test_locked_email_on_request(flow, backend):
    backend.on("/forgot-password-user", (423, {"success": False, "message": "Account locked"}))
    with pytest.raises(OtpLockedError):
        await flow.submit_email("ada@example.com")
    assert flow.stage == PR.COLLECTING_EMAIL
    assert flow.session.error == "Account locked"
