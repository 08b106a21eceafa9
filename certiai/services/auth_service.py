# certiai/services/auth_service.py
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from certiai.auth.jwt import create_access_token
from certiai.auth.passwords import hash_password, verify_password
from certiai.core.errors import (
    EmailAlreadyRegistered,
    InvalidCredentials,
    UserNotFound,
    ValidationFailed,
)
from certiai.core.logging_config import logger
from certiai.models.user import User
from certiai.schemas.auth import RegisterIn
from certiai.services.email_service import NotificationSender

FORGOT_PASSWORD_MESSAGE = "If your email is registered, you will receive a password reset code."


def generate_code() -> str:
    """5-cijferige code, 10000..99999."""
    return str(10000 + secrets.randbelow(90000))


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AccountService:
    def __init__(self, mailer: NotificationSender, code_ttl_minutes: int = 10):
        self.mailer = mailer
        self.code_ttl = timedelta(minutes=code_ttl_minutes)

    def register(self, db: Session, payload: RegisterIn) -> User:
        email = payload.email.lower().strip()
        if db.query(User).filter(User.email == email).first():
            raise EmailAlreadyRegistered()

        code = generate_code()
        user = User(
            email=email,
            password_hash=hash_password(payload.password),
            full_name=payload.full_name.strip(),
            institution_name=payload.institution_name,
            role=payload.role,
            verification_code=code,
            verification_code_expiry=_now() + self.code_ttl,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("user_registered", user_id=user.id)

        # best-effort: registratie slaagt ook als de mail niet weg kan
        try:
            self.mailer.send_verification_email(user.email, code)
        except Exception as e:
            logger.error("verification_email_failed", user_id=user.id, error=repr(e))

        return user

    def login(self, db: Session, email: str, password: str) -> tuple[User, str]:
        user = db.query(User).filter(User.email == email.lower().strip()).first()
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        token = create_access_token(user_id=user.id, email=user.email)
        return user, token

    def verify_email(self, db: Session, code: str) -> None:
        user = (
            db.query(User)
            .filter(User.verification_code == code, User.verification_code_expiry > _now())
            .first()
        )
        if not user:
            raise ValidationFailed("Invalid or expired verification code")

        user.is_email_verified = True
        user.verification_code = None
        user.verification_code_expiry = None
        db.commit()
        logger.info("email_verified", user_id=user.id)

    def forgot_password(self, db: Session, email: str) -> None:
        """Zelfde uitkomst of het adres nu bestaat of niet."""
        user = db.query(User).filter(User.email == email.lower().strip()).first()
        if not user:
            return

        code = generate_code()
        user.reset_code = code
        user.reset_code_expiry = _now() + self.code_ttl
        db.commit()

        try:
            self.mailer.send_password_reset_email(user.email, code)
        except Exception as e:
            logger.error("reset_email_failed", user_id=user.id, error=repr(e))

    def reset_password(self, db: Session, code: str, new_password: str) -> None:
        user = (
            db.query(User)
            .filter(User.reset_code == code, User.reset_code_expiry > _now())
            .first()
        )
        if not user:
            raise ValidationFailed("Invalid or expired reset code")

        user.password_hash = hash_password(new_password)
        user.reset_code = None
        user.reset_code_expiry = None
        db.commit()
        logger.info("password_reset", user_id=user.id)

    def get_profile(self, db: Session, user_id: str) -> User:
        user = db.get(User, user_id)
        if not user:
            raise UserNotFound()
        return user
