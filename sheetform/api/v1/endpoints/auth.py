# File: sheetform/api/v1/endpoints/auth.py
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Response, status
import logging

from sheetform import schemas
from sheetform.api import deps
from sheetform.core import security
from sheetform.core.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login")
def login(login_data: schemas.LoginRequest, response: Response) -> Any:
    """Check the admin credentials and set the session cookie"""
    if not security.verify_admin_credentials(login_data.username, login_data.password):
        logger.warning(f"Failed admin login for '{login_data.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    access_token = security.create_access_token(login_data.username)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        httponly=True,
        path="/",
        secure=settings.is_production,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
    )
    logger.info(f"Admin '{login_data.username}' logged in")
    return {"success": True}


@router.post("/logout")
def logout(response: Response) -> Any:
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/me", response_model=schemas.SessionStatus)
def session_status(token: Optional[str] = Depends(deps.get_auth_token)) -> Any:
    if not security.is_authenticated(token):
        return schemas.SessionStatus(authenticated=False)
    payload = security.decode_token(token)
    return schemas.SessionStatus(authenticated=True, username=payload.get("username"))
