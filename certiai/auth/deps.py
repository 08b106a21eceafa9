# certiai/auth/deps.py
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError
from sqlalchemy.orm import Session

from certiai.auth.jwt import decode_token
from certiai.core.errors import NotAuthenticated
from certiai.db import get_db
from certiai.models.user import User

security = HTTPBearer(auto_error=False)  # <- belangrijk: niet auto-error


def _extract_token(
    request: Request, creds: HTTPAuthorizationCredentials | None
) -> str | None:
    # 1) Authorization header
    if creds and creds.credentials:
        return creds.credentials

    # 2) cookie
    return request.cookies.get("access_token") or None


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = _extract_token(request, creds)
    if not token:
        raise NotAuthenticated()

    try:
        payload = decode_token(token)
    except InvalidTokenError:
        raise NotAuthenticated("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise NotAuthenticated("Invalid token payload")

    user = db.get(User, user_id)
    if not user:
        raise NotAuthenticated("User not found")

    return user
