# File: sheetform/schemas/sheet.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from sheetform.models.sheet import FieldDataType, FieldDefinition, FieldOption, SheetConfig, ValidationRule


class FieldDefinitionCreate(BaseModel):
    """Header as sent by the sheet editor; missing attributes are backfilled on save"""
    id: Optional[str] = None
    key: Optional[str] = None
    name: str
    description: Optional[str] = None
    data_type: Optional[FieldDataType] = None
    required: Optional[bool] = None
    enabled: bool = True
    placeholder: Optional[str] = None
    default_value: Optional[str] = None
    validation_rules: List[ValidationRule] = Field(default_factory=list)
    options: List[FieldOption] = Field(default_factory=list)
    order: Optional[int] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Field name cannot be empty')
        return v.strip()


class SheetConfigCreate(BaseModel):
    name: str
    description: Optional[str] = None
    headers: List[FieldDefinitionCreate] = Field(default_factory=list)
    is_default: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Sheet name cannot be empty')
        return v.strip()


class SheetConfigUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    headers: Optional[List[FieldDefinitionCreate]] = None
    is_default: Optional[bool] = None


class SheetMutationResult(BaseModel):
    success: bool
    error: Optional[str] = None
    sheet: Optional[SheetConfig] = None


class FormDefinition(BaseModel):
    """What the public form renders: enabled fields only, in order"""
    sheet_id: str
    name: str
    description: str
    fields: List[FieldDefinition]
    updated_at: datetime

    @classmethod
    def from_sheet(cls, sheet: SheetConfig) -> "FormDefinition":
        return cls(
            sheet_id=sheet.id,
            name=sheet.name,
            description=sheet.description,
            fields=sheet.enabled_fields(),
            updated_at=sheet.updated_at,
        )
