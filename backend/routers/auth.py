"""FastAPI auth routes: register, login, profile, password change and OTP-based reset."""

import secrets
from datetime import datetime, timedelta

from fastapi import APIRouter, Request
from sqlalchemy import select

from config import Config
from dependencies import CurrentUser, DB, Mailer
from errors import AppError, Conflict, NotFound, ValidationFailed
from logging_config import get_logger
from models import User
from schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyOtpRequest,
)
from security import create_access_token, hash_password, sha256_hex, verify_password
from utils.limiter import limiter

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class WrongPassword(AppError):
    status_code = 401
    code = "WRONG_PASSWORD"
    message = "Incorrect password. Please enter correct credentials."


def _otp_email_html(otp: str) -> str:
    return f"""
        <div style="font-family: 'Segoe UI', Tahoma, Arial, sans-serif; max-width: 480px; margin: 0 auto; padding: 32px;">
            <h1 style="text-align: center; margin-bottom: 8px;">DocuMind</h1>
            <p style="text-align: center; font-size: 14px;">Password Reset Verification</p>
            <p style="text-align: center; font-size: 13px;">Your verification code is:</p>
            <div style="font-size: 32px; font-weight: bold; letter-spacing: 8px; text-align: center;">{otp}</div>
            <p style="font-size: 12px; text-align: center;">This code expires in {Config.OTP_EXPIRY_MINUTES} minutes. If you didn't request this, ignore this email.</p>
        </div>
    """


async def _user_by_email(db, email: str):
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


@router.post("/register", status_code=201)
@limiter.limit("5/minute")
async def register(data: RegisterRequest, request: Request, db: DB):
    if await _user_by_email(db, data.email):
        raise Conflict("This email is already registered. Please login instead.")

    user = User(
        username=data.username,
        email=data.email,
        password_hash=await hash_password(data.password),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("auth.registered", user_id=user.id)
    return {"user": user.to_dict(), "token": create_access_token(user.id)}


@router.post("/login")
@limiter.limit("10/minute")
async def login(data: LoginRequest, request: Request, db: DB):
    user = await _user_by_email(db, data.email)
    if not user:
        raise NotFound("Account not found. Please register first.", code="USER_NOT_FOUND")

    if not await verify_password(data.password, user.password_hash):
        raise WrongPassword()

    return {"user": user.to_dict(), "token": create_access_token(user.id)}


@router.get("/me")
async def me(current_user: CurrentUser):
    return {"user": current_user.to_dict(include_created=True)}


@router.put("/change-password")
async def change_password(data: ChangePasswordRequest, current_user: CurrentUser, db: DB):
    if not await verify_password(data.currentPassword, current_user.password_hash):
        raise ValidationFailed("Current password is incorrect")

    current_user.password_hash = await hash_password(data.newPassword)
    await db.commit()
    logger.info("auth.password_changed", user_id=current_user.id)
    return {"message": "Password updated successfully"}


@router.post("/forgot-password")
@limiter.limit("5/minute")
async def forgot_password(data: ForgotPasswordRequest, request: Request, db: DB, mailer: Mailer):
    """Email a 6-digit code. Only its sha256 is stored, valid for OTP_EXPIRY_MINUTES."""
    user = await _user_by_email(db, data.email)
    if not user:
        raise NotFound("No account found with this email address.")

    otp = f"{secrets.randbelow(900000) + 100000}"
    user.reset_otp_hash = sha256_hex(otp)
    user.reset_otp_expires_at = datetime.utcnow() + timedelta(minutes=Config.OTP_EXPIRY_MINUTES)
    await db.commit()

    await mailer.send(user.email, "DocuMind - Password Reset Code", _otp_email_html(otp))
    logger.info("auth.otp_sent", user_id=user.id)
    return {"message": "Verification code sent to your email."}


@router.post("/verify-otp")
@limiter.limit("5/minute")
async def verify_otp(data: VerifyOtpRequest, request: Request, db: DB):
    """Trade a valid OTP for a one-time reset token; the OTP cannot be reused."""
    result = await db.execute(
        select(User).where(
            User.email == data.email,
            User.reset_otp_hash == sha256_hex(data.otp),
            User.reset_otp_expires_at > datetime.utcnow(),
        )
    )
    user = result.scalar_one_or_none()
    if not user:
        raise ValidationFailed("Invalid or expired verification code.")

    reset_token = secrets.token_hex(32)
    user.reset_otp_hash = sha256_hex(reset_token)
    await db.commit()
    return {"message": "OTP verified successfully.", "resetToken": reset_token}


@router.post("/reset-password")
@limiter.limit("5/minute")
async def reset_password(data: ResetPasswordRequest, request: Request, db: DB):
    result = await db.execute(
        select(User).where(
            User.email == data.email,
            User.reset_otp_hash == sha256_hex(data.resetToken),
            User.reset_otp_expires_at > datetime.utcnow(),
        )
    )
    user = result.scalar_one_or_none()
    if not user:
        raise ValidationFailed("Invalid or expired reset token. Please restart the process.")

    user.password_hash = await hash_password(data.newPassword)
    user.reset_otp_hash = None
    user.reset_otp_expires_at = None
    await db.commit()

    logger.info("auth.password_reset", user_id=user.id)
    return {"message": "Password reset successfully."}
