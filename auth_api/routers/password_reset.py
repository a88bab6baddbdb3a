"""Forgot-password endpoints: request code → verify code → set new password."""

import logging

import bcrypt
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth_api.db.database import get_db
from auth_api.models.seller import Seller
from auth_api.models.user import User
from auth_api.routers.errors import otp_http_error
from auth_api.schemas import ForgotPassword, ResetPassword, VerifyForgotPasswordOtp
from auth_api.services.notifications import send_otp_email
from auth_api.services.otp import PASSWORD_RESET, OtpError, generate_otp, verify_otp
from auth_api.services.sessions import (
    grant_password_reset,
    password_reset_granted,
    revoke_password_reset,
)

router = APIRouter()
logger = logging.getLogger(__name__)


async def _find_account(db: AsyncSession, email: str) -> Seller | User | None:
    """Sellers and buyers share one reset flow; sellers are checked first."""
    email = email.strip().lower()
    for model in (Seller, User):
        account = (await db.execute(select(model).where(model.email == email))).scalar_one_or_none()
        if account:
            return account
    return None


@router.post("/forgot-password-user")
async def forgot_password(
    data: ForgotPassword,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    if not await _find_account(db, data.email):
        raise HTTPException(status_code=404, detail="User not found")

    try:
        otp = await generate_otp(data.email, PASSWORD_RESET)
    except OtpError as e:
        raise otp_http_error(e)

    background_tasks.add_task(send_otp_email, data.email, otp, PASSWORD_RESET)
    return {"success": True, "message": "OTP sent to your email"}


@router.post("/verify-forgot-password-otp")
async def verify_forgot_password_otp(data: VerifyForgotPasswordOtp):
    try:
        await verify_otp(data.email, PASSWORD_RESET, data.otp)
    except OtpError as e:
        raise otp_http_error(e)

    await grant_password_reset(data.email)
    return {"success": True, "message": "OTP verified. You can now reset your password."}


@router.post("/reset-password-user")
async def reset_password(data: ResetPassword, db: AsyncSession = Depends(get_db)):
    if not await password_reset_granted(data.email):
        raise HTTPException(status_code=400, detail="Please verify your email first")

    account = await _find_account(db, data.email)
    if not account:
        raise HTTPException(status_code=404, detail="User not found")

    if bcrypt.checkpw(data.new_password.encode(), account.password_hash.encode()):
        raise HTTPException(status_code=400, detail="New password cannot be the same as the old password")

    account.password_hash = bcrypt.hashpw(data.new_password.encode(), bcrypt.gensalt()).decode()
    await db.commit()
    await revoke_password_reset(data.email)

    logger.info("Password reset: email=%s", account.email)
    return {"success": True, "message": "Password reset successfully"}
