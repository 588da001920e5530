"""Form intake and submission review."""
import logging
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from sheetform.core.errors import FormValidationError
from sheetform.models.submission import Submission, SubmissionStatus
from sheetform.schemas.submission import SubmissionMutationResult, SubmissionResult, SubmissionStats
from sheetform.services.schema_compiler import compile_schema
from sheetform.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)


class SubmissionService:
    def __init__(self, store: SubmissionStore):
        self.store = store

    def submit(self, payload: Mapping[str, Any], sheet_id: Optional[str] = None) -> SubmissionResult:
        """Validate a form post against its sheet and record it as a new submission"""
        sheet = self.store.require_sheet(sheet_id) if sheet_id else self.store.default_sheet()
        schema = compile_schema(sheet)

        try:
            record = schema.validate(payload)
        except FormValidationError as e:
            logger.info(f"Rejected submission for sheet '{sheet.id}': {sorted(e.errors)}")
            return SubmissionResult(success=False, error=e.message, validation_errors=e.errors)

        now = datetime.now(timezone.utc)
        submission = Submission(
            id=str(uuid.uuid4()),
            sheet_id=sheet.id,
            data=record,
            submitted_at=now,
            updated_at=now,
            status=SubmissionStatus.NEW,
        )
        self.store.add_submission(submission)
        logger.info(f"New submission {submission.id} for sheet '{sheet.id}'")

        if not self.store.save_workbook():
            return SubmissionResult(
                success=False,
                error="Your submission was received but could not be saved. Please try again later.",
                submission_id=submission.id,
            )
        return SubmissionResult(success=True, submission_id=submission.id)

    def list_submissions(
        self,
        sheet_id: Optional[str] = None,
        status: Optional[SubmissionStatus] = None,
    ) -> List[Submission]:
        return self.store.list_submissions(sheet_id=sheet_id, status=status)

    def get_submission(self, submission_id: str) -> Submission:
        return self.store.require_submission(submission_id)

    def update_status(
        self,
        submission_id: str,
        status: SubmissionStatus,
        notes: Optional[str] = None,
    ) -> SubmissionMutationResult:
        submission = self.store.require_submission(submission_id)
        submission.status = status
        if notes is not None:
            submission.notes = notes
        submission.updated_at = datetime.now(timezone.utc)

        if not self.store.save_workbook():
            return SubmissionMutationResult(
                success=False,
                error="Status was updated but could not be saved to disk.",
                submission=submission,
            )
        return SubmissionMutationResult(success=True, submission=submission)

    def stats(self) -> SubmissionStats:
        submissions = self.store.list_submissions()
        sheets = self.store.list_sheets()
        by_status = Counter(s.status.value for s in submissions)
        return SubmissionStats(
            total=len(submissions),
            by_status={status.value: by_status.get(status.value, 0) for status in SubmissionStatus},
            by_sheet=dict(Counter(s.sheet_id for s in submissions)),
            sheet_count=len(sheets),
            default_sheet_name=self.store.default_sheet().name if sheets else None,
        )
