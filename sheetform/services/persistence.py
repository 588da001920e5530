"""
Persistence backends for sheet configurations and submissions.

ExcelPersistence keeps the "spreadsheet as database" layout:
- one workbook, one worksheet per sheet, columns = enabled field display names
- one pretty-printed JSON sidecar holding every SheetConfig

Reads never raise: a missing or unreadable file yields the built-in default
sheet / no submissions. Writes report success as a bool.
"""
from __future__ import annotations

import abc
import json
import logging
import os
import re
import tempfile
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from sheetform.core.errors import PersistenceError
from sheetform.models.sheet import DEFAULT_SHEET_ID, SheetConfig, build_default_sheet
from sheetform.models.submission import Submission, SubmissionStatus

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

METADATA_ID = "Submission ID"
METADATA_SUBMITTED_AT = "Submitted At"
METADATA_UPDATED_AT = "Updated At"
METADATA_STATUS = "Status"
METADATA_NOTES = "Notes"
METADATA_COLUMNS = [METADATA_ID, METADATA_SUBMITTED_AT, METADATA_UPDATED_AT, METADATA_STATUS, METADATA_NOTES]

MAX_TITLE_LENGTH = 31
INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")


def default_sheet_of(sheets: List[SheetConfig]) -> SheetConfig:
    """First sheet flagged default, else the first one, else the built-in sheet"""
    for sheet in sheets:
        if sheet.is_default:
            return sheet
    if sheets:
        return sheets[0]
    return build_default_sheet()


def worksheet_titles(sheets: List[SheetConfig]) -> Dict[str, str]:
    """Map sheet id -> worksheet title that is legal in xlsx and unique in the workbook"""
    titles: Dict[str, str] = {}
    used = set()
    for sheet in sheets:
        base = INVALID_TITLE_CHARS.sub("_", sheet.name).strip().strip("'") or "Sheet"
        base = base[:MAX_TITLE_LENGTH]
        title = base
        counter = 2
        while title.lower() in used:
            suffix = f" ({counter})"
            title = base[:MAX_TITLE_LENGTH - len(suffix)] + suffix
            counter += 1
        used.add(title.lower())
        titles[sheet.id] = title
    return titles


def _is_blank_row(values: List[Any]) -> bool:
    for v in values:
        if v is None:
            continue
        if isinstance(v, str) and v.strip() == "":
            continue
        return False
    return True


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    if isinstance(value, (bool, int, float)):
        return value
    return str(value)


def _append_row(ws, values: List[Any]) -> None:
    """Append a row, keeping strings as text so "=..." input never becomes a formula"""
    ws.append(values)
    for cell in ws[ws.max_row]:
        if isinstance(cell.value, str):
            cell.data_type = "s"


def _from_cell(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.hour == value.minute == value.second == 0:
            return value.date().isoformat()
        return value.isoformat()
    return value


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Persistence(abc.ABC):
    """Storage seam used by SubmissionStore"""

    @abc.abstractmethod
    def load_sheets(self) -> List[SheetConfig]:
        ...

    @abc.abstractmethod
    def save_sheets(self, sheets: List[SheetConfig]) -> bool:
        ...

    @abc.abstractmethod
    def load_submissions(self, sheets: List[SheetConfig]) -> List[Submission]:
        ...

    @abc.abstractmethod
    def save_submissions(self, submissions: List[Submission], sheets: List[SheetConfig]) -> bool:
        ...

    @abc.abstractmethod
    def read_workbook(self) -> Optional[bytes]:
        ...


class ExcelPersistence(Persistence):
    def __init__(self, workbook_path: str | Path, sheet_config_path: str | Path, store_metadata: bool = False):
        self.workbook_path = Path(workbook_path)
        self.sheet_config_path = Path(sheet_config_path)
        self.store_metadata = store_metadata

    # ---------------------------
    # Sheet configurations (JSON sidecar)
    # ---------------------------
    def load_sheets(self) -> List[SheetConfig]:
        if not self.sheet_config_path.exists():
            sheets = [build_default_sheet()]
            logger.info(f"No sheet configuration at {self.sheet_config_path}, writing the default sheet")
            self.save_sheets(sheets)
            return sheets

        try:
            raw = json.loads(self.sheet_config_path.read_text(encoding="utf-8"))
            sheets = [SheetConfig.model_validate(item) for item in raw]
        except Exception as e:
            logger.error(f"Error loading sheet configurations from {self.sheet_config_path}: {e}")
            return [build_default_sheet()]

        if not sheets:
            return [build_default_sheet()]
        return sheets

    def save_sheets(self, sheets: List[SheetConfig]) -> bool:
        payload = json.dumps([sheet.model_dump(mode="json") for sheet in sheets], indent=2)
        try:
            self._atomic_write(self.sheet_config_path, lambda tmp: Path(tmp).write_text(payload, encoding="utf-8"))
            return True
        except PersistenceError as e:
            logger.error(f"Error saving sheet configurations to {self.sheet_config_path}: {e}")
            return False

    # ---------------------------
    # Submissions (workbook)
    # ---------------------------
    def build_workbook(self, submissions: List[Submission], sheets: List[SheetConfig]) -> Workbook:
        wb = Workbook()
        wb.remove(wb.active)
        header_font = Font(bold=True)

        default_sheet = default_sheet_of(sheets)
        known_ids = {sheet.id for sheet in sheets}
        buckets: Dict[str, List[Submission]] = defaultdict(list)
        for submission in submissions:
            sheet_id = submission.sheet_id if submission.sheet_id in known_ids else default_sheet.id
            buckets[sheet_id].append(submission)

        titles = worksheet_titles(sheets)
        for sheet in sheets:
            rows = buckets.get(sheet.id, [])
            if not rows and sheet.id != default_sheet.id:
                continue

            ws = wb.create_sheet(title=titles[sheet.id])
            fields = sheet.enabled_fields()
            columns = [field.name for field in fields]
            if self.store_metadata:
                columns += METADATA_COLUMNS
            if not columns:
                continue

            _append_row(ws, columns)
            for cell in ws[1]:
                cell.font = header_font
            ws.freeze_panes = "A2"
            ws.auto_filter.ref = f"A1:{get_column_letter(len(columns))}1"

            for submission in rows:
                values = [_cell_value(submission.data.get(field.key, "")) for field in fields]
                if self.store_metadata:
                    values += [
                        submission.id,
                        submission.submitted_at.isoformat(),
                        submission.updated_at.isoformat() if submission.updated_at else "",
                        submission.status.value,
                        _cell_value(submission.notes),
                    ]
                _append_row(ws, values)

            if self.store_metadata:
                for index in range(len(fields) + 1, len(columns) + 1):
                    ws.column_dimensions[get_column_letter(index)].hidden = True

        if not wb.sheetnames:
            wb.create_sheet(title=titles.get(default_sheet.id, "Submissions"))
        return wb

    def save_submissions(self, submissions: List[Submission], sheets: List[SheetConfig]) -> bool:
        try:
            self._atomic_write(self.workbook_path, lambda tmp: self.build_workbook(submissions, sheets).save(tmp))
            return True
        except PersistenceError as e:
            logger.error(f"Error saving submissions to Excel: {e}")
            return False

    def load_submissions(self, sheets: List[SheetConfig]) -> List[Submission]:
        if not self.workbook_path.exists():
            return []

        try:
            wb = load_workbook(self.workbook_path)
        except Exception as e:
            logger.error(f"Error loading submissions from {self.workbook_path}: {e}")
            return []

        titles = worksheet_titles(sheets)
        sheet_by_title = {titles[sheet.id]: sheet for sheet in sheets}
        default_sheet = default_sheet_of(sheets)
        now = datetime.now(timezone.utc)

        submissions: List[Submission] = []
        seen_ids = set()
        try:
            for ws in wb.worksheets:
                sheet = sheet_by_title.get(ws.title, default_sheet)
                rows = list(ws.iter_rows(values_only=True))
                if not rows:
                    continue
                header = ["" if cell is None else str(cell).strip() for cell in rows[0]]
                # metadata is only trusted as the trailing block this class writes
                has_metadata = self.store_metadata and header[-len(METADATA_COLUMNS):] == METADATA_COLUMNS
                field_count = len(header) - len(METADATA_COLUMNS) if has_metadata else len(header)
                body = [row for row in rows[1:] if not _is_blank_row(list(row))]
                for index, row in enumerate(body):
                    # earlier rows are older; offsets keep the worksheet order chronological
                    synthesized_at = now - timedelta(minutes=len(body) - 1 - index)
                    metadata = None
                    if has_metadata:
                        tail = list(row[field_count:field_count + len(METADATA_COLUMNS)])
                        tail += [None] * (len(METADATA_COLUMNS) - len(tail))
                        metadata = dict(zip(METADATA_COLUMNS, tail))
                    submission = self._row_to_submission(
                        sheet, header[:field_count], row[:field_count], synthesized_at, metadata
                    )
                    if submission.id in seen_ids:
                        submission.id = str(uuid.uuid4())
                    seen_ids.add(submission.id)
                    submissions.append(submission)
        except Exception as e:
            logger.error(f"Error reading rows from {self.workbook_path}: {e}")
            return []
        finally:
            wb.close()

        logger.info(f"Loaded {len(submissions)} submissions from {self.workbook_path}")
        return submissions

    def _row_to_submission(
        self,
        sheet: SheetConfig,
        header: List[str],
        row: tuple,
        synthesized_at: datetime,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Submission:
        values = {name: row[i] for i, name in enumerate(header) if name and i < len(row)}

        data: Dict[str, Any] = {}
        for field in sheet.headers:
            if field.name not in values:
                continue
            value = values[field.name]
            if value is None or (isinstance(value, str) and value == ""):
                continue
            data[field.key] = _from_cell(value)

        metadata = metadata or {}
        submission_id = metadata.get(METADATA_ID)
        submitted_at = _parse_timestamp(metadata.get(METADATA_SUBMITTED_AT)) or synthesized_at
        updated_at = _parse_timestamp(metadata.get(METADATA_UPDATED_AT)) or synthesized_at
        try:
            status = SubmissionStatus(metadata.get(METADATA_STATUS))
        except ValueError:
            status = SubmissionStatus.READ
        notes = metadata.get(METADATA_NOTES) or ""

        return Submission(
            id=str(submission_id) if submission_id else str(uuid.uuid4()),
            sheet_id=sheet.id or DEFAULT_SHEET_ID,
            data=data,
            submitted_at=submitted_at,
            updated_at=updated_at,
            status=status,
            notes=str(notes),
        )

    def read_workbook(self) -> Optional[bytes]:
        if not self.workbook_path.exists():
            return None
        try:
            return self.workbook_path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading {self.workbook_path}: {e}")
            return None

    @staticmethod
    def _atomic_write(path: Path, write: Callable[[str], Any]) -> None:
        """Write through a temp file in the target directory, then swap it in"""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            os.close(fd)
        except OSError as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e

        try:
            write(tmp_path)
            os.replace(tmp_path, path)
        except Exception as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"Cannot write {path}: {e}") from e
