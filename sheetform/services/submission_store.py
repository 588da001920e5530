"""
In-memory sheet configurations and submissions, owned by one store object.

The store is loaded lazily from its Persistence once per process and flushed
whole after every mutation by the services.
"""
import logging
from typing import List, Optional

from sheetform.core.errors import NotFoundError
from sheetform.models.sheet import DEFAULT_SHEET_ID, SheetConfig, build_default_sheet
from sheetform.models.submission import Submission, SubmissionStatus
from sheetform.services.persistence import Persistence, default_sheet_of

logger = logging.getLogger(__name__)


def ensure_single_default(sheets: List[SheetConfig]) -> None:
    """Repair a loaded collection so exactly one sheet is flagged default"""
    defaults = [sheet for sheet in sheets if sheet.is_default]
    if len(defaults) == 1 or not sheets:
        return

    if not defaults:
        chosen = next((s for s in sheets if s.id == DEFAULT_SHEET_ID), sheets[0])
        logger.warning(f"No default sheet configured, using '{chosen.name}'")
    else:
        chosen = defaults[0]
        logger.warning(f"{len(defaults)} sheets flagged default, keeping '{chosen.name}'")

    for sheet in sheets:
        sheet.is_default = sheet is chosen


class SubmissionStore:
    def __init__(self, persistence: Persistence):
        self.persistence = persistence
        self.sheets: List[SheetConfig] = []
        self.submissions: List[Submission] = []
        self._loaded = False

    def ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        if not self.sheets:
            self.sheets = self.persistence.load_sheets() or [build_default_sheet()]
            ensure_single_default(self.sheets)
        if not self.submissions:
            self.submissions = self.persistence.load_submissions(self.sheets)

        logger.info(f"Store ready: {len(self.sheets)} sheets, {len(self.submissions)} submissions")

    # ---------------------------
    # Sheets
    # ---------------------------
    def list_sheets(self) -> List[SheetConfig]:
        self.ensure_loaded()
        return list(self.sheets)

    def get_sheet(self, sheet_id: str) -> Optional[SheetConfig]:
        self.ensure_loaded()
        for sheet in self.sheets:
            if sheet.id == sheet_id:
                return sheet
        return None

    def require_sheet(self, sheet_id: str) -> SheetConfig:
        sheet = self.get_sheet(sheet_id)
        if sheet is None:
            raise NotFoundError(f"Sheet '{sheet_id}' not found")
        return sheet

    def default_sheet(self) -> SheetConfig:
        self.ensure_loaded()
        return default_sheet_of(self.sheets)

    def add_sheet(self, sheet: SheetConfig) -> None:
        self.ensure_loaded()
        self.sheets.append(sheet)

    def remove_sheet(self, sheet_id: str) -> int:
        """Drop a sheet and every submission filed under it; returns the submissions removed"""
        self.ensure_loaded()
        self.sheets = [sheet for sheet in self.sheets if sheet.id != sheet_id]
        before = len(self.submissions)
        self.submissions = [s for s in self.submissions if s.sheet_id != sheet_id]
        return before - len(self.submissions)

    # ---------------------------
    # Submissions
    # ---------------------------
    def list_submissions(
        self,
        sheet_id: Optional[str] = None,
        status: Optional[SubmissionStatus] = None,
    ) -> List[Submission]:
        self.ensure_loaded()
        result = self.submissions
        if sheet_id is not None:
            result = [s for s in result if s.sheet_id == sheet_id]
        if status is not None:
            result = [s for s in result if s.status == status]
        return sorted(result, key=lambda s: s.submitted_at, reverse=True)

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        self.ensure_loaded()
        for submission in self.submissions:
            if submission.id == submission_id:
                return submission
        return None

    def require_submission(self, submission_id: str) -> Submission:
        submission = self.get_submission(submission_id)
        if submission is None:
            raise NotFoundError(f"Submission '{submission_id}' not found")
        return submission

    def add_submission(self, submission: Submission) -> None:
        self.ensure_loaded()
        self.submissions.append(submission)

    # ---------------------------
    # Flushing
    # ---------------------------
    def save_sheets(self) -> bool:
        return self.persistence.save_sheets(self.sheets)

    def save_workbook(self) -> bool:
        """Regenerate the whole workbook from current submissions and sheets"""
        return self.persistence.save_submissions(self.submissions, self.sheets)

    def export_workbook(self) -> Optional[bytes]:
        self.ensure_loaded()
        content = self.persistence.read_workbook()
        if content is None and self.save_workbook():
            content = self.persistence.read_workbook()
        return content
