from pydantic import BaseModel
from typing import Dict, List, Optional

from sheetform.models.submission import Submission, SubmissionStatus


class SubmissionStatusUpdate(BaseModel):
    status: SubmissionStatus
    notes: Optional[str] = None


class SubmissionResult(BaseModel):
    """Outcome of a form post"""
    success: bool
    error: Optional[str] = None
    validation_errors: Optional[Dict[str, List[str]]] = None
    submission_id: Optional[str] = None


class SubmissionMutationResult(BaseModel):
    success: bool
    error: Optional[str] = None
    submission: Optional[Submission] = None


class SubmissionStats(BaseModel):
    total: int = 0
    by_status: Dict[str, int] = {}
    by_sheet: Dict[str, int] = {}
    sheet_count: int = 0
    default_sheet_name: Optional[str] = None
