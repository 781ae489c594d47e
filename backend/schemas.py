"""Pydantic v2 request schemas for FastAPI."""

import re
from typing import Optional
from pydantic import BaseModel, Field, StrictInt, field_validator

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    parts = v.split("@")
    if len(parts) != 2 or not parts[0] or "." not in parts[1]:
        raise ValueError("Please provide a valid email")
    return v


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    email: str = Field(min_length=1)
    password: str = Field(min_length=6)

    @field_validator("username")
    @classmethod
    def username_chars(cls, v: str) -> str:
        v = v.strip()
        if not _USERNAME_RE.match(v):
            raise ValueError("Username may only contain letters, numbers and underscores")
        return v

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return _normalise_email(v)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return v.strip().lower()


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=6)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return _normalise_email(v)


class VerifyOtpRequest(BaseModel):
    email: str = Field(min_length=1)
    otp: str = Field(pattern=r"^\d{6}$")

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return v.strip().lower()


class ResetPasswordRequest(BaseModel):
    email: str = Field(min_length=1)
    resetToken: str = Field(min_length=1)
    newPassword: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return v.strip().lower()


class FlashcardGenerateRequest(BaseModel):
    count: int = Field(default=10, ge=1, le=50)


class QuizGenerateRequest(BaseModel):
    count: int = Field(default=5, ge=1, le=30)


class ChatMessageCreate(BaseModel):
    message: str = Field(min_length=1, max_length=4000)

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message is required")
        return v.strip()


class FlashcardProgressUpdate(BaseModel):
    cardIndex: Optional[int] = None
    mastered: bool = True


class QuizSubmitRequest(BaseModel):
    answers: list[StrictInt]
