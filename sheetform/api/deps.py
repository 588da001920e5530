from typing import Optional
from fastapi import Depends, HTTPException, Request, status

from sheetform.core.config import settings
from sheetform.core.security import decode_token, is_authenticated
from sheetform.services.persistence import ExcelPersistence
from sheetform.services.sheet_service import SheetService
from sheetform.services.submission_service import SubmissionService
from sheetform.services.submission_store import SubmissionStore

_store: Optional[SubmissionStore] = None


def get_store() -> SubmissionStore:
    """Process-wide store, created on first use"""
    global _store
    if _store is None:
        _store = SubmissionStore(ExcelPersistence(
            settings.workbook_path,
            settings.sheet_config_path,
            store_metadata=settings.STORE_SUBMISSION_METADATA,
        ))
    return _store


def get_sheet_service(store: SubmissionStore = Depends(get_store)) -> SheetService:
    return SheetService(store)


def get_submission_service(store: SubmissionStore = Depends(get_store)) -> SubmissionService:
    return SubmissionService(store)


def get_auth_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def require_admin(token: Optional[str] = Depends(get_auth_token)) -> str:
    """Admin guard for every read, write and export endpoint"""
    if not is_authenticated(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return decode_token(token)["username"]
