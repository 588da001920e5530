# File: sheetform/api/v1/endpoints/export.py
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
import io

from sheetform.api.deps import get_store, require_admin
from sheetform.services.persistence import XLSX_MEDIA_TYPE
from sheetform.services.submission_store import SubmissionStore

router = APIRouter()


@router.get("")
def download_workbook(
    store: SubmissionStore = Depends(get_store),
    admin: str = Depends(require_admin),
):
    """Download the submissions workbook"""
    content = store.export_workbook()
    if content is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    filename = f"form-submissions-{date.today().isoformat()}.xlsx"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={'Content-Disposition': f'attachment; filename="{filename}"'}
    )
