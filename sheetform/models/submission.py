from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime
import enum

from sheetform.models.sheet import DEFAULT_SHEET_ID


class SubmissionStatus(str, enum.Enum):
    NEW = "new"
    READ = "read"
    ARCHIVED = "archived"


class Submission(BaseModel):
    id: str
    sheet_id: str = DEFAULT_SHEET_ID
    data: Dict[str, Any] = Field(default_factory=dict)  # field key -> value
    submitted_at: datetime
    updated_at: Optional[datetime] = None
    status: SubmissionStatus = SubmissionStatus.NEW
    notes: str = ""
