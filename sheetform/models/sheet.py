from pydantic import BaseModel, Field
from typing import List, Optional, Union
from datetime import datetime, timezone
import enum
import uuid

DEFAULT_SHEET_ID = "default"


class FieldDataType(str, enum.Enum):
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    TEXTAREA = "textarea"
    DATE = "date"
    SELECT = "select"
    CHECKBOX = "checkbox"


class ValidationRuleType(str, enum.Enum):
    MIN = "min"
    MAX = "max"
    REGEX = "regex"
    CUSTOM = "custom"


class ValidationRule(BaseModel):
    type: ValidationRuleType
    value: Union[int, float, str]
    message: str = ""


class FieldOption(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    label: str
    value: str


class FieldDefinition(BaseModel):
    """One configurable input of a sheet (a "header" in the workbook)"""
    id: str
    key: str  # machine name, never changes after creation
    name: str  # display name, used as the worksheet column title
    description: str = ""
    data_type: FieldDataType = FieldDataType.TEXT
    required: bool = False
    enabled: bool = True
    placeholder: str = ""
    default_value: Optional[str] = None
    validation_rules: List[ValidationRule] = Field(default_factory=list)
    options: List[FieldOption] = Field(default_factory=list)
    order: int = 0


class SheetConfig(BaseModel):
    id: str
    name: str
    description: str = ""
    created_at: datetime
    updated_at: datetime
    headers: List[FieldDefinition] = Field(default_factory=list)
    is_default: bool = False

    def enabled_fields(self) -> List[FieldDefinition]:
        """Enabled fields in display/export order"""
        return sorted((h for h in self.headers if h.enabled), key=lambda h: h.order)

    def field_by_name(self, name: str) -> Optional[FieldDefinition]:
        for header in self.headers:
            if header.name == name:
                return header
        return None


def build_default_sheet() -> SheetConfig:
    """The built-in contact form used when no configuration has been saved yet"""
    now = datetime.now(timezone.utc)
    headers = [
        FieldDefinition(
            id=str(uuid.uuid4()),
            key="name",
            name="Name",
            description="Full name of the person submitting the form",
            data_type=FieldDataType.TEXT,
            required=True,
            placeholder="Enter your full name",
            validation_rules=[
                ValidationRule(type=ValidationRuleType.MIN, value=2, message="Name must be at least 2 characters."),
            ],
            order=1,
        ),
        FieldDefinition(
            id=str(uuid.uuid4()),
            key="email",
            name="Email",
            description="Email address for contact purposes",
            data_type=FieldDataType.EMAIL,
            required=True,
            placeholder="Enter your email address",
            order=2,
        ),
        FieldDefinition(
            id=str(uuid.uuid4()),
            key="phone",
            name="Phone",
            description="Phone number with country code",
            data_type=FieldDataType.PHONE,
            required=True,
            placeholder="Enter your phone number with country code",
            order=3,
        ),
        FieldDefinition(
            id=str(uuid.uuid4()),
            key="message",
            name="Message",
            description="Detailed message or inquiry",
            data_type=FieldDataType.TEXTAREA,
            required=True,
            placeholder="Enter your message or inquiry",
            validation_rules=[
                ValidationRule(type=ValidationRuleType.MIN, value=10, message="Message must be at least 10 characters."),
            ],
            order=4,
        ),
    ]
    return SheetConfig(
        id=DEFAULT_SHEET_ID,
        name="Contact Form",
        description="Default contact form",
        created_at=now,
        updated_at=now,
        headers=headers,
        is_default=True,
    )
