"""
TERM SCORE CALCULATOR - Formative and final term scores for one learner

CALCULATION STEPS:
✅ Per assessment type: resolve the most specific aggregation config and
   aggregate that type's scores with its strategy
✅ Formative score: weighted average of the per-type aggregates using each
   config's weight (default 1.0)
✅ Final score: formative * formative_weight / 100 + summative * summative_weight / 100
   (term default 40 / 60)

EDGE CASES HANDLED:
- No assessments at all: formative 0 with strategy NONE
- All type weights zero: formative 0
- Missing term config: 40 / 60 split
"""

import logging
from typing import Dict, Iterable, List, Optional

from school_records.core.calculators.aggregation import ScoreInput, aggregate
from school_records.core.calculators.resolver import resolve_or_default
from school_records.core.models.grading import (
    AssessmentTypeBreakdown,
    FinalScoreResult,
    FormativeSummary,
    GradingConfig,
    TermConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_TERM_CONFIG = TermConfig(formative_weight=40.0, summative_weight=60.0)


def combine_assessment_types(breakdown: Iterable[AssessmentTypeBreakdown]) -> float:
    """Weighted average of per-type aggregates"""
    total_weighted = 0.0
    total_weight = 0.0

    for item in breakdown:
        total_weighted += item.average_percentage * item.weight
        total_weight += item.weight

    if total_weight == 0:
        return 0.0
    return total_weighted / total_weight


class TermScoreCalculator:
    """Calculate formative and final term scores from raw scores and tenant configs"""

    def __init__(self, configs: Optional[List[GradingConfig]] = None):
        """
        Initialize calculator with a tenant's aggregation configs

        Args:
            configs: Every aggregation config of the tenant (any type/grade/area)
        """
        self.configs = list(configs or [])
        self.calculation_log: List[str] = []

    def calculate_formative(
        self,
        scores_by_type: Dict[str, List[ScoreInput]],
        grade: Optional[str] = None,
        learning_area: Optional[str] = None,
    ) -> FormativeSummary:
        """
        Aggregate each assessment type with its own strategy, then combine

        Args:
            scores_by_type: Assessment type -> raw scores of that type
            grade: Learner's grade, used for config resolution
            learning_area: Learning area being reported

        Returns:
            FormativeSummary with per-type breakdown
        """
        self.calculation_log = []
        total = sum(len(scores) for scores in scores_by_type.values())

        if total == 0:
            self.calculation_log.append("ℹ No formative assessments recorded")
            return FormativeSummary(average_percentage=0.0, breakdown=[], total_assessments=0, strategy="NONE")

        breakdown = []
        for assessment_type, scores in scores_by_type.items():
            if not scores:
                continue

            config = resolve_or_default(self.configs, assessment_type, grade, learning_area)
            average = aggregate(scores, config.aggregation_strategy)

            breakdown.append(
                AssessmentTypeBreakdown(
                    assessment_type=assessment_type,
                    count=len(scores),
                    strategy=config.strategy,
                    n=config.n,
                    average_percentage=average,
                    weight=config.weight,
                )
            )
            self.calculation_log.append(
                f"📊 {assessment_type}: {len(scores)} scores, {config.strategy.value} -> {average:.2f}"
            )

        overall = combine_assessment_types(breakdown)
        self.calculation_log.append(f"✅ Formative average: {overall:.2f}")

        return FormativeSummary(
            average_percentage=overall,
            breakdown=breakdown,
            total_assessments=total,
            strategy="MULTI_TYPE_WEIGHTED",
        )

    def calculate_final(
        self,
        formative_score: float,
        summative_score: float,
        term_config: Optional[TermConfig] = None,
    ) -> FinalScoreResult:
        """Combine formative and summative percentages with the term weights"""
        term_config = term_config or DEFAULT_TERM_CONFIG

        formative_contribution = formative_score * term_config.formative_weight / 100
        summative_contribution = summative_score * term_config.summative_weight / 100

        return FinalScoreResult(
            final_score=formative_contribution + summative_contribution,
            formative_contribution=formative_contribution,
            summative_contribution=summative_contribution,
            formative_weight=term_config.formative_weight,
            summative_weight=term_config.summative_weight,
            formative_score=formative_score,
            summative_score=summative_score,
        )


__all__ = ["TermScoreCalculator", "combine_assessment_types", "DEFAULT_TERM_CONFIG"]
