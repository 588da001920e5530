from .sheet import (
    DEFAULT_SHEET_ID, FieldDataType, ValidationRuleType, ValidationRule,
    FieldOption, FieldDefinition, SheetConfig, build_default_sheet
)
from .submission import Submission, SubmissionStatus
