"""
Grading configuration resolver.

Picks the most specific aggregation config from an already-fetched candidate
set. Tie-break order, first match wins:

1. grade and learning area both match
2. grade matches, config has no learning area
3. learning area matches, config has no grade
4. global config (neither set)
"""

import logging
from typing import Iterable, Optional

from school_records.core.models.grading import GradingConfig, StrategyType

logger = logging.getLogger(__name__)


def default_grading_config(assessment_type: str) -> GradingConfig:
    """System fallback when a tenant has no matching config"""
    return GradingConfig(
        assessment_type=assessment_type,
        strategy=StrategyType.SIMPLE_AVERAGE,
        n=None,
        weight=1.0,
    )


def resolve_grading_config(
    candidates: Iterable[GradingConfig],
    assessment_type: str,
    grade: Optional[str] = None,
    learning_area: Optional[str] = None,
) -> Optional[GradingConfig]:
    """
    Resolve the config for (assessment type, grade, learning area)

    Candidates for other assessment types are ignored. Returns None when no
    tier matches; callers fall back to default_grading_config().
    """
    configs = [c for c in candidates if c.assessment_type == assessment_type]

    tiers = []
    if grade and learning_area:
        tiers.append(lambda c: c.grade == grade and c.learning_area == learning_area)
    if grade:
        tiers.append(lambda c: c.grade == grade and not c.learning_area)
    if learning_area:
        tiers.append(lambda c: not c.grade and c.learning_area == learning_area)
    tiers.append(lambda c: not c.grade and not c.learning_area)

    for matches in tiers:
        for config in configs:
            if matches(config):
                return config

    logger.debug(
        f"No aggregation config for {assessment_type} (grade={grade}, area={learning_area})"
    )
    return None


def resolve_or_default(
    candidates: Iterable[GradingConfig],
    assessment_type: str,
    grade: Optional[str] = None,
    learning_area: Optional[str] = None,
) -> GradingConfig:
    """Like resolve_grading_config() but never None"""
    config = resolve_grading_config(candidates, assessment_type, grade, learning_area)
    return config if config is not None else default_grading_config(assessment_type)


__all__ = ["resolve_grading_config", "resolve_or_default", "default_grading_config"]
