"""Sheet configuration management: create, update and delete form sheets."""
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from sheetform.core.errors import InvalidOperationError
from sheetform.models.sheet import (
    DEFAULT_SHEET_ID, FieldDataType, FieldDefinition, SheetConfig, build_default_sheet
)
from sheetform.schemas.sheet import (
    FieldDefinitionCreate, SheetConfigCreate, SheetConfigUpdate, SheetMutationResult
)
from sheetform.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)

PERSISTENCE_ERROR = "Changes were applied but could not be saved to disk."


def derive_key(name: str) -> str:
    """Machine key from a display name, e.g. "Date of Birth" -> "date_of_birth" """
    key = re.sub(r"[^0-9a-zA-Z]+", "_", name).strip("_").lower()
    return key or "field"


def _unique_key(key: str, used: Set[str]) -> str:
    candidate = key
    counter = 2
    while candidate in used:
        candidate = f"{key}_{counter}"
        counter += 1
    return candidate


def _carried(item: FieldDefinitionCreate, previous: Optional[FieldDefinition], attr: str, fallback):
    """Value the editor sent for attr, else the existing field's, else the fallback"""
    if attr in item.model_fields_set:
        return getattr(item, attr)
    return getattr(previous, attr) if previous is not None else fallback


class SheetService:
    def __init__(self, store: SubmissionStore):
        self.store = store

    def list_sheets(self) -> List[SheetConfig]:
        return self.store.list_sheets()

    def get_sheet(self, sheet_id: str) -> SheetConfig:
        return self.store.require_sheet(sheet_id)

    def build_headers(
        self,
        items: Iterable[FieldDefinitionCreate],
        existing: Optional[List[FieldDefinition]] = None,
    ) -> List[FieldDefinition]:
        """
        Turn editor headers into full field definitions.

        Headers that match an existing id keep that field's key and inherit its
        attributes where the editor left them out. New headers get an id, a key
        derived from the name and the documented defaults.
        """
        existing_by_id = {header.id: header for header in existing or []}
        items = list(items)
        used_keys: Set[str] = {
            existing_by_id[item.id].key for item in items if item.id in existing_by_id
        }

        headers: List[FieldDefinition] = []
        for position, item in enumerate(items):
            previous = existing_by_id.get(item.id) if item.id else None
            if previous is not None:
                key = previous.key
            else:
                key = _unique_key(item.key or derive_key(item.name), used_keys)
                used_keys.add(key)

            headers.append(FieldDefinition(
                id=item.id or str(uuid.uuid4()),
                key=key,
                name=item.name,
                description=item.description if item.description is not None else (previous.description if previous else ""),
                data_type=item.data_type or (previous.data_type if previous else FieldDataType.TEXT),
                required=item.required if item.required is not None else (previous.required if previous else False),
                enabled=_carried(item, previous, "enabled", True),
                placeholder=item.placeholder if item.placeholder is not None else (
                    previous.placeholder if previous else f"Enter {item.name.lower()}"
                ),
                default_value=_carried(item, previous, "default_value", None),
                validation_rules=_carried(item, previous, "validation_rules", []),
                options=_carried(item, previous, "options", []),
                order=item.order if item.order is not None else position + 1,
            ))
        return headers

    def create(self, config: SheetConfigCreate) -> SheetMutationResult:
        self.store.ensure_loaded()
        now = datetime.now(timezone.utc)

        if config.headers:
            headers = self.build_headers(config.headers)
        else:
            # new sheets start from the contact form fields
            headers = [
                header.model_copy(update={"id": str(uuid.uuid4())})
                for header in build_default_sheet().headers
            ]

        is_default = config.is_default or not self.store.sheets
        if is_default:
            for sheet in self.store.sheets:
                sheet.is_default = False

        sheet = SheetConfig(
            id=str(uuid.uuid4()),
            name=config.name,
            description=config.description or f"Configuration for {config.name}",
            created_at=now,
            updated_at=now,
            headers=headers,
            is_default=is_default,
        )
        self.store.add_sheet(sheet)
        logger.info(f"Created sheet '{sheet.name}' ({sheet.id}) with {len(headers)} fields")

        return self._flush(sheet)

    def update(self, sheet_id: str, updates: SheetConfigUpdate) -> SheetMutationResult:
        sheet = self.store.require_sheet(sheet_id)

        if updates.is_default is False and sheet.is_default:
            raise InvalidOperationError(
                "The default sheet cannot be unset. Mark another sheet as default instead."
            )

        headers = None
        if "headers" in updates.model_fields_set:
            if not updates.headers:
                raise InvalidOperationError("You must have at least one field in the form.")
            headers = self.build_headers(updates.headers, sheet.headers)

        if updates.is_default:
            for other in self.store.sheets:
                if other.id != sheet.id:
                    other.is_default = False
            sheet.is_default = True

        if updates.name is not None and updates.name.strip():
            sheet.name = updates.name.strip()
        if updates.description is not None:
            sheet.description = updates.description
        if headers is not None:
            sheet.headers = headers
        sheet.updated_at = datetime.now(timezone.utc)
        logger.info(f"Updated sheet '{sheet.name}' ({sheet.id})")

        return self._flush(sheet)

    def delete(self, sheet_id: str) -> SheetMutationResult:
        sheet = self.store.require_sheet(sheet_id)

        if sheet.id == DEFAULT_SHEET_ID or sheet.is_default:
            raise InvalidOperationError("Cannot delete the default sheet.")
        if len(self.store.sheets) <= 1:
            raise InvalidOperationError("Cannot delete the last remaining sheet.")

        removed = self.store.remove_sheet(sheet.id)
        logger.info(f"Deleted sheet '{sheet.name}' ({sheet.id}) and {removed} submissions")

        return self._flush(sheet)

    def _flush(self, sheet: SheetConfig) -> SheetMutationResult:
        sheets_saved = self.store.save_sheets()
        workbook_saved = self.store.save_workbook()
        if sheets_saved and workbook_saved:
            return SheetMutationResult(success=True, sheet=sheet)
        return SheetMutationResult(success=False, error=PERSISTENCE_ERROR, sheet=sheet)
