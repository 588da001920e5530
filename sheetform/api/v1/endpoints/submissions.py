# File: sheetform/api/v1/endpoints/submissions.py
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from typing import Any, Dict, List, Optional

from sheetform.api.deps import get_submission_service, require_admin
from sheetform.models.submission import Submission, SubmissionStatus
from sheetform.schemas.submission import (
    SubmissionMutationResult, SubmissionResult, SubmissionStats, SubmissionStatusUpdate
)
from sheetform.services.submission_service import SubmissionService

router = APIRouter()


@router.post("", response_model=SubmissionResult)
def submit_form(
    payload: Dict[str, Any] = Body(...),
    sheet_id: Optional[str] = None,
    service: SubmissionService = Depends(get_submission_service),
):
    """Public form intake"""
    result = service.submit(payload, sheet_id=sheet_id)
    if result.validation_errors:
        return JSONResponse(
            status_code=422,
            content=result.model_dump(),
        )
    return result


@router.get("", response_model=List[Submission])
def list_submissions(
    sheet_id: Optional[str] = None,
    status: Optional[SubmissionStatus] = None,
    service: SubmissionService = Depends(get_submission_service),
    admin: str = Depends(require_admin),
):
    """All submissions, newest first"""
    return service.list_submissions(sheet_id=sheet_id, status=status)


@router.get("/stats", response_model=SubmissionStats)
def submission_stats(
    service: SubmissionService = Depends(get_submission_service),
    admin: str = Depends(require_admin),
):
    return service.stats()


@router.get("/{submission_id}", response_model=Submission)
def get_submission(
    submission_id: str,
    service: SubmissionService = Depends(get_submission_service),
    admin: str = Depends(require_admin),
):
    return service.get_submission(submission_id)


@router.patch("/{submission_id}", response_model=SubmissionMutationResult)
def update_submission_status(
    submission_id: str,
    update: SubmissionStatusUpdate,
    service: SubmissionService = Depends(get_submission_service),
    admin: str = Depends(require_admin),
):
    """Change the review status and notes of a submission"""
    return service.update_status(submission_id, update.status, update.notes)
