# File: sheetform/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
import hmac
import logging

from jose import JWTError, jwt

from sheetform.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(username: str, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a short-lived admin token carrying the username claim"""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None


def is_authenticated(token: Optional[str]) -> bool:
    """True when the token is a valid, unexpired admin credential"""
    if not token:
        return False
    payload = decode_token(token)
    if payload is None:
        return False
    return bool(payload.get("username"))


def verify_admin_credentials(username: str, password: str) -> bool:
    username_ok = hmac.compare_digest(username.encode(), settings.ADMIN_USERNAME.encode())
    password_ok = hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())
    return username_ok and password_ok
