"""
Domain errors shared by the services and mapped to HTTP responses in main.py
"""
from typing import Dict, List, Optional


class SheetFormError(Exception):
    """Base class for every error raised by the form services"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FormValidationError(SheetFormError):
    """A payload failed the compiled schema of a sheet"""

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(message or "Validation failed. Please check your input.")
        self.errors = errors


class NotFoundError(SheetFormError):
    pass


class InvalidOperationError(SheetFormError):
    pass


class PersistenceError(SheetFormError):
    pass
