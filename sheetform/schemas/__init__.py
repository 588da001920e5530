# File: sheetform/schemas/__init__.py
from .auth import LoginRequest, SessionStatus
from .sheet import (
    FieldDefinitionCreate, SheetConfigCreate, SheetConfigUpdate,
    SheetMutationResult, FormDefinition
)
from .submission import (
    SubmissionStatusUpdate, SubmissionResult, SubmissionMutationResult, SubmissionStats
)
