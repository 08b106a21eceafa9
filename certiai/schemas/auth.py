# certiai/schemas/auth.py
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, EmailStr, Field

from certiai.models.user import UserRole
from certiai.schemas.base import CamelModel

CODE_PATTERN = r"^\d{5}$"


class _Input(CamelModel):
    model_config = ConfigDict(extra="forbid")


class RegisterIn(_Input):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1)
    institution_name: Optional[str] = None
    role: UserRole


class LoginIn(_Input):
    email: EmailStr
    password: str = Field(min_length=1)


class VerifyEmailIn(_Input):
    code: str = Field(pattern=CODE_PATTERN)


class ForgotPasswordIn(_Input):
    email: EmailStr


class ResetPasswordIn(_Input):
    code: str = Field(pattern=CODE_PATTERN)
    new_password: str = Field(min_length=8)


class UserOut(CamelModel):
    id: str
    email: str
    full_name: str
    institution_name: Optional[str] = None
    role: UserRole
    is_email_verified: bool
    created_at: datetime
    updated_at: datetime


class RegisterOut(CamelModel):
    user: UserOut


class TokenOut(CamelModel):
    user: UserOut
    access_token: str
    token_type: str = "Bearer"
