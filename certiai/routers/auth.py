# certiai/routers/auth.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from certiai.auth.deps import get_current_user
from certiai.core.rate_limit import limiter
from certiai.core.settings import settings
from certiai.db import get_db
from certiai.dependencies import get_account_service
from certiai.models.user import User
from certiai.schemas.auth import (
    ForgotPasswordIn,
    LoginIn,
    RegisterIn,
    RegisterOut,
    ResetPasswordIn,
    TokenOut,
    UserOut,
    VerifyEmailIn,
)
from certiai.schemas.base import envelope
from certiai.services.auth_service import FORGOT_PASSWORD_MESSAGE, AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
@limiter.limit(settings.RATE_LIMIT_AUTH)
def register(
    request: Request,
    payload: RegisterIn,
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
):
    user = accounts.register(db, payload)
    return envelope(
        "Registration successful. Please check your email for the verification code.",
        RegisterOut(user=UserOut.model_validate(user)),
    )


@router.post("/login")
@limiter.limit(settings.RATE_LIMIT_AUTH)
def login(
    request: Request,
    payload: LoginIn,
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
):
    user, token = accounts.login(db, payload.email, payload.password)
    return envelope(
        "Login successful",
        TokenOut(user=UserOut.model_validate(user), access_token=token),
    )


@router.post("/verify-email")
def verify_email(
    payload: VerifyEmailIn,
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
):
    accounts.verify_email(db, payload.code)
    return envelope("Email verified successfully")


@router.post("/forgot-password")
@limiter.limit(settings.RATE_LIMIT_AUTH)
def forgot_password(
    request: Request,
    payload: ForgotPasswordIn,
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
):
    accounts.forgot_password(db, payload.email)
    return envelope(FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password")
def reset_password(
    payload: ResetPasswordIn,
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
):
    accounts.reset_password(db, payload.code, payload.new_password)
    return envelope("Password reset successfully")


@router.get("/profile")
def profile(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    accounts: AccountService = Depends(get_account_service),
):
    return envelope(
        "Profile retrieved successfully",
        UserOut.model_validate(accounts.get_profile(db, user.id)),
    )
