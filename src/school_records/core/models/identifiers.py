"""
IDENTIFIER MODELS - Pydantic schemas for admission and staff numbers

FORMAT TYPES (TOKEN = ADM or STF, PREFIX = branch code):
✅ NO_SCOPE_PREFIX: TOKEN-YEAR-SEQ          e.g. ADM-2025-001
✅ PREFIX_START:    PREFIX-TOKEN-YEAR-SEQ   e.g. KB-ADM-2025-001
✅ PREFIX_MIDDLE:   TOKEN-PREFIX-YEAR-SEQ   e.g. ADM-KB-2025-001
✅ PREFIX_END:      TOKEN-YEAR-SEQ-PREFIX   e.g. ADM-2025-001-KB

VALIDATION RULES:
- Separator is exactly one non-alphanumeric character
- Branch prefix is uppercase alphanumeric and required unless NO_SCOPE_PREFIX
- Years are four digits
- Staff numbers carry no year (STF-0001)
"""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ADMISSION_TOKEN = "ADM"
STAFF_TOKEN = "STF"
STAFF_SCOPE_KEY = "STF"

PREFIX_PATTERN = r"[A-Z0-9]+"


class FormatType(str, Enum):
    """Where the branch prefix sits inside a formatted identifier"""

    NO_SCOPE_PREFIX = "NO_SCOPE_PREFIX"
    PREFIX_START = "PREFIX_START"
    PREFIX_MIDDLE = "PREFIX_MIDDLE"
    PREFIX_END = "PREFIX_END"

    @classmethod
    def _missing_(cls, value):
        # Tenant rows written before the rename still use the BRANCH_* names
        legacy = {
            "NO_BRANCH": cls.NO_SCOPE_PREFIX,
            "BRANCH_PREFIX_START": cls.PREFIX_START,
            "BRANCH_PREFIX_MIDDLE": cls.PREFIX_MIDDLE,
            "BRANCH_PREFIX_END": cls.PREFIX_END,
        }
        if isinstance(value, str):
            return legacy.get(value.upper())
        return None

    @property
    def uses_prefix(self) -> bool:
        return self is not FormatType.NO_SCOPE_PREFIX


class IdentifierKind(str, Enum):
    """Kinds of sequenced identifiers a tenant can issue"""

    ADMISSION = "ADMISSION"
    STAFF = "STAFF"

    @property
    def token(self) -> str:
        return ADMISSION_TOKEN if self is IdentifierKind.ADMISSION else STAFF_TOKEN


class IdentifierFormatSpec(BaseModel):
    """Tenant-owned formatting rules; read-only to the core"""

    model_config = ConfigDict(frozen=True)

    format_type: FormatType = Field(FormatType.PREFIX_START, description="Prefix placement")
    separator: str = Field("-", description="Single character joining the segments")
    scope_prefix: Optional[str] = Field(None, description="Branch code, e.g. KB")
    zero_pad_width: int = Field(3, ge=1, le=12, description="Digits the sequence is padded to")

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, v):
        """Separator must be one non-alphanumeric character"""
        if len(v) != 1 or v.isalnum() or v.isspace():
            raise ValueError(f"Separator must be a single non-alphanumeric character, got: {v!r}")
        return v

    @field_validator("scope_prefix")
    @classmethod
    def normalise_prefix(cls, v):
        """Branch codes are stored upper case"""
        if v is None or v == "":
            return None
        v = v.strip().upper()
        if not re.fullmatch(PREFIX_PATTERN, v):
            raise ValueError(f"Scope prefix must be alphanumeric, got: {v!r}")
        return v

    @model_validator(mode="after")
    def require_prefix(self):
        if self.format_type.uses_prefix and not self.scope_prefix:
            raise ValueError(f"{self.format_type.value} identifiers need a scope prefix")
        return self


class IdentifierScope(BaseModel):
    """What an identifier request is scoped to"""

    model_config = ConfigDict(frozen=True)

    kind: IdentifierKind = IdentifierKind.ADMISSION
    academic_year: Optional[int] = Field(None, ge=1000, le=9999)
    branch_code: Optional[str] = None

    @model_validator(mode="after")
    def require_year_for_admissions(self):
        if self.kind is IdentifierKind.ADMISSION and self.academic_year is None:
            raise ValueError("Admission numbers are scoped to an academic year")
        return self

    @property
    def scope_key(self) -> str:
        """Counter key: admissions are school-wide per year, staff numbers never reset"""
        if self.kind is IdentifierKind.ADMISSION:
            return f"{ADMISSION_TOKEN}:{self.academic_year}"
        return STAFF_SCOPE_KEY

    @property
    def year(self) -> Optional[int]:
        return self.academic_year if self.kind is IdentifierKind.ADMISSION else None


class ParsedIdentifier(BaseModel):
    """Fields recovered from a formatted identifier"""

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(..., ge=0)
    year: Optional[int] = None
    prefix: Optional[str] = None


class ReconciliationResult(BaseModel):
    """Outcome of bringing a counter back in line with issued identifiers"""

    scope_key: str
    counter_value: int = Field(..., description="Counter value before reconciliation")
    max_issued: int = Field(..., description="Highest sequence found in existing identifiers")
    new_value: int
    updated: bool
    skipped: int = Field(0, description="Identifiers that could not be parsed")


__all__ = [
    "ADMISSION_TOKEN",
    "STAFF_TOKEN",
    "FormatType",
    "IdentifierKind",
    "IdentifierFormatSpec",
    "IdentifierScope",
    "ParsedIdentifier",
    "ReconciliationResult",
]
