"""
Request / response bodies for the HTTP routes
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from school_records.core.models.grading import GradingSystemType, RubricRange, ScoreItem, StrategyType
from school_records.core.models.identifiers import ADMISSION_TOKEN, FormatType, IdentifierKind


class GenerateIdentifierRequest(BaseModel):
    kind: IdentifierKind = IdentifierKind.ADMISSION
    academic_year: Optional[int] = Field(None, ge=1000, le=9999)
    branch_code: Optional[str] = None


class IdentifierResponse(BaseModel):
    identifier: str
    kind: IdentifierKind
    scope_key: str


class PreviewResponse(BaseModel):
    next_identifier: Optional[str]
    kind: IdentifierKind
    scope_key: str


class BranchPreview(BaseModel):
    branch_code: str
    branch_name: Optional[str] = None
    next_identifier: Optional[str] = None


class ResetSequenceRequest(BaseModel):
    kind: IdentifierKind = IdentifierKind.ADMISSION
    academic_year: Optional[int] = Field(None, ge=1000, le=9999)
    value: int = Field(0, ge=0)
    actor: str = Field(..., min_length=1, description="Administrator performing the reset")


class ResetSequenceResponse(BaseModel):
    scope_key: str
    previous_value: int
    new_value: int


class ParseIdentifierRequest(BaseModel):
    identifier: str
    format_type: FormatType
    separator: str = Field("-", min_length=1, max_length=1)
    token: str = ADMISSION_TOKEN
    zero_pad_width: int = Field(3, ge=1, le=12)
    has_year: bool = True


class ParseIdentifierResponse(BaseModel):
    sequence: int
    year: Optional[int] = None
    prefix: Optional[str] = None


class AggregateRequest(BaseModel):
    scores: List[ScoreItem] = Field(default_factory=list)
    strategy: str = Field(
        StrategyType.SIMPLE_AVERAGE.value,
        description="Strategy tag; unknown tags fall back to SIMPLE_AVERAGE",
    )
    n: Optional[int] = None


class AggregateResponse(BaseModel):
    result: float
    strategy: StrategyType
    count: int


class GradingConfigResponse(BaseModel):
    assessment_type: str
    grade: Optional[str] = None
    learning_area: Optional[str] = None
    strategy: StrategyType
    n: Optional[int] = None
    weight: float
    is_default: bool = Field(False, description="True when no tenant config matched")


class BandRequest(BaseModel):
    percentage: float
    system_type: GradingSystemType = GradingSystemType.SUMMATIVE


class BandResponse(BaseModel):
    percentage: float
    band: RubricRange
