from .grading import (
    STRATEGY_VARIANTS,
    AssessmentTypeBreakdown,
    BestN,
    DropLowestN,
    FinalScoreResult,
    FormativeSummary,
    GradingConfig,
    GradingSystem,
    GradingSystemType,
    Median,
    RatingSummary,
    RubricRange,
    ScoreItem,
    SimpleAverage,
    Strategy,
    StrategyType,
    TermConfig,
    WeightedAverage,
    strategy_from_tag,
)
from .identifiers import (
    ADMISSION_TOKEN,
    STAFF_TOKEN,
    FormatType,
    IdentifierFormatSpec,
    IdentifierKind,
    IdentifierScope,
    ParsedIdentifier,
    ReconciliationResult,
)
