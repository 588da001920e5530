"""
Runtime validation schema built from a sheet's field configuration.

Each enabled field is compiled into a single check function that takes the raw
submitted value and returns the normalized value (or ABSENT for an empty
optional field), raising FieldRuleError with the first violated rule's message.
"""
import logging
import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

from sheetform.core.errors import FormValidationError
from sheetform.models.sheet import (
    FieldDataType, FieldDefinition, SheetConfig, ValidationRule, ValidationRuleType
)

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")
DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y", "%Y/%m/%d")

ABSENT = object()

FieldCheck = Callable[[Any], Any]


class FieldRuleError(ValueError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _as_string(field: FieldDefinition, raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float)):
        return str(raw)
    if isinstance(raw, (date, datetime)):
        return raw.isoformat()
    if isinstance(raw, str):
        return raw
    raise FieldRuleError(f"{field.name} must be a string")


def _parse_number(field: FieldDefinition, value: str) -> Any:
    try:
        number = float(value.strip())
    except ValueError:
        raise FieldRuleError(f"{field.name} must be a number")
    if not math.isfinite(number):
        raise FieldRuleError(f"{field.name} must be a number")
    return int(number) if number.is_integer() else number


def _parse_date(field: FieldDefinition, value: str) -> str:
    text = value.strip()
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).isoformat()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    raise FieldRuleError(f"{field.name} must be a valid date")


def _type_step(field: FieldDefinition) -> Optional[FieldCheck]:
    if field.data_type == FieldDataType.EMAIL:
        def check_email(value):
            try:
                validate_email(value.strip(), check_deliverability=False)
            except EmailNotValidError:
                raise FieldRuleError(f"{field.name} must be a valid email address")
            return value.strip()
        return check_email

    if field.data_type == FieldDataType.PHONE:
        def check_phone(value):
            if not PHONE_PATTERN.match(value.strip()):
                raise FieldRuleError(f"{field.name} must be a valid phone number (10-15 digits)")
            return value.strip()
        return check_phone

    if field.data_type == FieldDataType.NUMBER:
        return lambda value: _parse_number(field, value)

    if field.data_type == FieldDataType.DATE:
        return lambda value: _parse_date(field, value)

    # text, textarea, select and checkbox stay plain strings
    return None


def _rule_threshold(field: FieldDefinition, rule: ValidationRule) -> Optional[float]:
    try:
        return float(rule.value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring {rule.type.value} rule on field '{field.key}': {rule.value!r} is not a number")
        return None


def _format_threshold(threshold: float) -> str:
    return str(int(threshold)) if threshold.is_integer() else str(threshold)


def _rule_step(field: FieldDefinition, rule: ValidationRule) -> Optional[FieldCheck]:
    if rule.type in (ValidationRuleType.MIN, ValidationRuleType.MAX):
        threshold = _rule_threshold(field, rule)
        if threshold is None:
            return None
        is_min = rule.type == ValidationRuleType.MIN
        shown = _format_threshold(threshold)

        def check_bound(value):
            if isinstance(value, (int, float)):
                ok = value >= threshold if is_min else value <= threshold
                default_message = f"{field.name} must be {'at least' if is_min else 'at most'} {shown}"
            else:
                ok = len(value) >= threshold if is_min else len(value) <= threshold
                default_message = f"{field.name} must be {'at least' if is_min else 'at most'} {shown} characters"
            if not ok:
                raise FieldRuleError(rule.message or default_message)
            return value
        return check_bound

    if rule.type == ValidationRuleType.REGEX:
        try:
            pattern = re.compile(str(rule.value))
        except re.error as e:
            logger.warning(f"Ignoring regex rule on field '{field.key}': {e}")
            return None

        def check_pattern(value):
            if not pattern.search(str(value)):
                raise FieldRuleError(rule.message or f"{field.name} is invalid")
            return value
        return check_pattern

    logger.debug(f"Skipping custom rule on field '{field.key}'")
    return None


def compile_field(field: FieldDefinition) -> FieldCheck:
    """Compile one field definition into its check function"""
    steps: List[FieldCheck] = []
    type_step = _type_step(field)
    if type_step is not None:
        steps.append(type_step)
    for rule in field.validation_rules:
        step = _rule_step(field, rule)
        if step is not None:
            steps.append(step)

    def check(raw: Any) -> Any:
        value = _as_string(field, raw)
        if value.strip() == "":
            if field.required:
                raise FieldRuleError(f"{field.name} is required")
            return ABSENT
        for step in steps:
            value = step(value)
        return value

    return check


class CompiledSchema:
    """Validator for one sheet, built from its enabled fields"""

    def __init__(self, sheet: SheetConfig):
        self.sheet_id = sheet.id
        self.updated_at = sheet.updated_at
        self._fields: List[Tuple[FieldDefinition, FieldCheck]] = [
            (field, compile_field(field)) for field in sheet.enabled_fields()
        ]

    @property
    def keys(self) -> List[str]:
        return [field.key for field, _ in self._fields]

    def validate(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate a raw payload.

        Returns:
            The normalized record, keyed by field key. Empty optional fields are left out.

        Raises:
            FormValidationError: with the first failing message of every invalid field
        """
        record: Dict[str, Any] = {}
        errors: Dict[str, List[str]] = {}

        for field, check in self._fields:
            try:
                value = check(payload.get(field.key))
            except FieldRuleError as e:
                errors[field.key] = [e.message]
                continue
            if value is not ABSENT:
                record[field.key] = value

        if errors:
            raise FormValidationError(errors)
        return record

    __call__ = validate


def compile_schema(sheet: SheetConfig) -> CompiledSchema:
    return CompiledSchema(sheet)
