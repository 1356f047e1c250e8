"""
GRADING MODELS - Score items, aggregation strategies, configs and rubric bands

STRATEGIES (tagged variants, see Strategy union):
✅ SimpleAverage: arithmetic mean
✅ BestN(n): mean of the n highest scores
✅ DropLowestN(n): mean after removing the n lowest scores
✅ WeightedAverage: sum(score * weight) / sum(weight), missing weight = 1
✅ Median: middle value (mean of the two middle values for even counts)

GRADING SYSTEMS:
- SUMMATIVE: 5 bands A-E with 4..0 points
- CBC: 8 rubric bands EE1..BE2 with 8..1 points
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Nearest integer with .5 rounded up (54.5 -> 55), not to even"""
    return math.floor(value + 0.5)


class StrategyType(str, Enum):
    """Persisted tag for an aggregation strategy"""

    SIMPLE_AVERAGE = "SIMPLE_AVERAGE"
    BEST_N = "BEST_N"
    DROP_LOWEST_N = "DROP_LOWEST_N"
    WEIGHTED_AVERAGE = "WEIGHTED_AVERAGE"
    MEDIAN = "MEDIAN"

    @property
    def requires_n(self) -> bool:
        return self in (StrategyType.BEST_N, StrategyType.DROP_LOWEST_N)


class GradingSystemType(str, Enum):
    SUMMATIVE = "SUMMATIVE"
    CBC = "CBC"


@dataclass(frozen=True)
class SimpleAverage:
    tag: ClassVar[StrategyType] = StrategyType.SIMPLE_AVERAGE


@dataclass(frozen=True)
class BestN:
    n: Optional[int] = None
    tag: ClassVar[StrategyType] = StrategyType.BEST_N


@dataclass(frozen=True)
class DropLowestN:
    n: Optional[int] = None
    tag: ClassVar[StrategyType] = StrategyType.DROP_LOWEST_N


@dataclass(frozen=True)
class WeightedAverage:
    tag: ClassVar[StrategyType] = StrategyType.WEIGHTED_AVERAGE


@dataclass(frozen=True)
class Median:
    tag: ClassVar[StrategyType] = StrategyType.MEDIAN


Strategy = Union[SimpleAverage, BestN, DropLowestN, WeightedAverage, Median]
STRATEGY_VARIANTS = (SimpleAverage, BestN, DropLowestN, WeightedAverage, Median)


def strategy_from_tag(tag: Union[StrategyType, str, None], n: Optional[int] = None) -> Strategy:
    """
    Build a strategy variant from its persisted tag

    Unknown or missing tags fall back to SimpleAverage.
    """
    try:
        strategy_type = StrategyType(tag)
    except ValueError:
        logger.warning(f"⚠️ Unknown aggregation strategy {tag!r} - using SIMPLE_AVERAGE")
        return SimpleAverage()

    if strategy_type is StrategyType.SIMPLE_AVERAGE:
        return SimpleAverage()
    if strategy_type is StrategyType.BEST_N:
        return BestN(n)
    if strategy_type is StrategyType.DROP_LOWEST_N:
        return DropLowestN(n)
    if strategy_type is StrategyType.WEIGHTED_AVERAGE:
        return WeightedAverage()
    if strategy_type is StrategyType.MEDIAN:
        return Median()
    raise AssertionError(f"Unhandled strategy type: {strategy_type}")


class ScoreItem(BaseModel):
    """One raw score handed to the aggregation engine; never persisted here"""

    score: float = Field(..., description="Raw score or percentage")
    weight: Optional[float] = Field(None, description="Relative weight for WEIGHTED_AVERAGE")


class GradingConfig(BaseModel):
    """Aggregation rule for one (tenant, assessment type[, grade][, learning area])"""

    model_config = ConfigDict(from_attributes=True)

    tenant_id: Optional[UUID] = None
    assessment_type: str = Field(..., description="Formative assessment type, e.g. QUIZ")
    grade: Optional[str] = Field(None, description="Grade the rule is limited to")
    learning_area: Optional[str] = Field(None, description="Learning area the rule is limited to")
    strategy: StrategyType = StrategyType.SIMPLE_AVERAGE
    n: Optional[int] = Field(None, description="N for BEST_N / DROP_LOWEST_N")
    weight: float = Field(1.0, description="Weight of this assessment type in the term formative score")

    @property
    def aggregation_strategy(self) -> Strategy:
        return strategy_from_tag(self.strategy, self.n)

    @property
    def specificity(self) -> int:
        """3 = grade+area, 2 = grade, 1 = area, 0 = global"""
        if self.grade and self.learning_area:
            return 3
        if self.grade:
            return 2
        if self.learning_area:
            return 1
        return 0


class RubricRange(BaseModel):
    """One band of a grading system; bounds are inclusive"""

    model_config = ConfigDict(from_attributes=True)

    label: str
    min_percentage: float = Field(..., ge=0.0, le=100.0)
    max_percentage: float = Field(..., ge=0.0, le=100.0)
    code: str = Field(..., description="Summative grade (A..E) or rubric rating (EE1..BE2)")
    points: int = Field(..., ge=0)
    color: Optional[str] = None
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min_percentage > self.max_percentage:
            raise ValueError(
                f"Band {self.label}: min {self.min_percentage} exceeds max {self.max_percentage}"
            )
        return self

    @property
    def midpoint(self) -> int:
        return round_half_up((self.min_percentage + self.max_percentage) / 2)


class GradingSystem(BaseModel):
    """A tenant's ordered set of rubric bands"""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID] = None
    tenant_id: UUID
    name: str
    type: GradingSystemType
    is_default: bool = True
    active: bool = True
    ranges: List[RubricRange] = Field(default_factory=list)


class TermConfig(BaseModel):
    """Formative/summative split for a term; both weights are percentages"""

    model_config = ConfigDict(from_attributes=True)

    formative_weight: float = Field(40.0, ge=0.0, le=100.0)
    summative_weight: float = Field(60.0, ge=0.0, le=100.0)


class AssessmentTypeBreakdown(BaseModel):
    """Aggregate for one assessment type inside a formative summary"""

    assessment_type: str
    count: int = Field(..., ge=0)
    strategy: StrategyType
    n: Optional[int] = None
    average_percentage: float
    weight: float


class FormativeSummary(BaseModel):
    """Formative score across all assessment types for one learner"""

    average_percentage: float
    breakdown: List[AssessmentTypeBreakdown] = Field(default_factory=list)
    total_assessments: int = 0
    strategy: str = Field("NONE", description="NONE when no assessments, else MULTI_TYPE_WEIGHTED")


class FinalScoreResult(BaseModel):
    """Term score combining formative and summative components"""

    final_score: float
    formative_contribution: float
    summative_contribution: float
    formative_weight: float
    summative_weight: float
    formative_score: float
    summative_score: float
    calculation_date: datetime = Field(default_factory=datetime.now)


class RatingSummary(BaseModel):
    """Class-level distribution of rubric ratings"""

    average_code: Optional[str]
    average_points: float
    distribution: Dict[str, int]
    total: int


__all__ = [
    "round_half_up",
    "StrategyType",
    "GradingSystemType",
    "SimpleAverage",
    "BestN",
    "DropLowestN",
    "WeightedAverage",
    "Median",
    "Strategy",
    "STRATEGY_VARIANTS",
    "strategy_from_tag",
    "ScoreItem",
    "GradingConfig",
    "RubricRange",
    "GradingSystem",
    "TermConfig",
    "AssessmentTypeBreakdown",
    "FormativeSummary",
    "FinalScoreResult",
    "RatingSummary",
]
