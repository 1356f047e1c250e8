"""
AGGREGATION ENGINE - Turn a set of raw scores into one aggregate score

STRATEGIES:
✅ SIMPLE_AVERAGE: arithmetic mean of all scores
✅ BEST_N: mean of the n highest scores (n <= 0 or unset -> 0)
✅ DROP_LOWEST_N: mean of the highest (count - n) scores
   (n < 0 or unset -> SIMPLE_AVERAGE, n >= count -> 0)
✅ WEIGHTED_AVERAGE: sum(score * weight) / sum(weight), missing weight = 1
✅ MEDIAN: middle value, mean of the two middle values for even counts

EDGE CASES HANDLED:
- Empty score set: 0 for every strategy
- Unknown strategy tag: SIMPLE_AVERAGE
- Invalid N: sentinel 0 plus a warning, never an exception

Results keep full precision; rounding belongs to the report layer.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from school_records.core.models.grading import (
    STRATEGY_VARIANTS,
    BestN,
    DropLowestN,
    GradingConfig,
    Median,
    ScoreItem,
    SimpleAverage,
    Strategy,
    StrategyType,
    WeightedAverage,
    strategy_from_tag,
)
from school_records.exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)

ScoreInput = Union[ScoreItem, float, int, Mapping[str, Any]]


def _as_score_item(value: ScoreInput) -> ScoreItem:
    if isinstance(value, ScoreItem):
        return value
    if isinstance(value, Mapping):
        return ScoreItem(**value)
    return ScoreItem(score=float(value))


def _mean(values: List[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def aggregate(
    scores: Iterable[ScoreInput],
    strategy: Union[Strategy, StrategyType, str, None] = StrategyType.SIMPLE_AVERAGE,
    n: Optional[int] = None,
) -> float:
    """
    Compute a single aggregate from raw scores

    Args:
        scores: ScoreItem objects, bare numbers, or {"score", "weight"} mappings
        strategy: Strategy variant, or a StrategyType tag combined with n
        n: N for BEST_N / DROP_LOWEST_N when a tag is passed

    Returns:
        Aggregate score at full precision
    """
    items = [_as_score_item(s) for s in scores]
    if not items:
        return 0.0

    if isinstance(strategy, STRATEGY_VARIANTS):
        variant = strategy
    else:
        variant = strategy_from_tag(strategy, n)

    values = [item.score for item in items]

    if isinstance(variant, SimpleAverage):
        return _mean(values)

    if isinstance(variant, BestN):
        if variant.n is None or variant.n <= 0:
            logger.warning(f"⚠️ BEST_N configured with n={variant.n} - returning 0")
            return 0.0
        best = sorted(values, reverse=True)[: variant.n]
        return _mean(best)

    if isinstance(variant, DropLowestN):
        if variant.n is None or variant.n < 0:
            return _mean(values)
        keep = len(values) - variant.n
        if keep <= 0:
            # Every score dropped
            logger.warning(
                f"⚠️ DROP_LOWEST_N n={variant.n} drops all {len(values)} scores - returning 0"
            )
            return 0.0
        kept = sorted(values, reverse=True)[:keep]
        return _mean(kept)

    if isinstance(variant, WeightedAverage):
        total_weight = 0.0
        weighted_sum = 0.0
        for item in items:
            weight = 1.0 if item.weight is None else item.weight
            weighted_sum += item.score * weight
            total_weight += weight
        if total_weight == 0:
            return 0.0
        return weighted_sum / total_weight

    if isinstance(variant, Median):
        ordered = sorted(values)
        middle = len(ordered) // 2
        if len(ordered) % 2 == 0:
            return (ordered[middle - 1] + ordered[middle]) / 2
        return ordered[middle]

    raise AssertionError(f"Unhandled strategy variant: {variant!r}")


def aggregate_with_config(scores: Iterable[ScoreInput], config: Optional[GradingConfig]) -> float:
    """Aggregate using a resolved config; None means SIMPLE_AVERAGE"""
    if config is None:
        return aggregate(scores, SimpleAverage())
    return aggregate(scores, config.aggregation_strategy)


def validate_aggregation_config(config: GradingConfig) -> List[str]:
    """Return human-readable problems with a config; empty when valid"""
    errors = []

    if config.strategy.requires_n and (config.n is None or config.n <= 0):
        errors.append(f"Strategy {config.strategy.value} requires a positive n")

    if config.weight < 0:
        errors.append("Weight cannot be negative")

    return errors


def ensure_valid_config(config: GradingConfig) -> GradingConfig:
    """Raise InvalidConfiguration when a config would be rejected on save"""
    errors = validate_aggregation_config(config)
    if errors:
        raise InvalidConfiguration("; ".join(errors))
    return config


def available_strategies() -> List[dict]:
    """Strategy catalogue for configuration screens"""
    return [
        {
            "strategy": StrategyType.SIMPLE_AVERAGE,
            "name": "Simple Average",
            "description": "Average all assessment scores equally",
            "requires_n": False,
        },
        {
            "strategy": StrategyType.BEST_N,
            "name": "Best N",
            "description": "Take the best N scores and average them (e.g., best 3 out of 5)",
            "requires_n": True,
        },
        {
            "strategy": StrategyType.DROP_LOWEST_N,
            "name": "Drop Lowest N",
            "description": "Drop N lowest scores and average the rest",
            "requires_n": True,
        },
        {
            "strategy": StrategyType.WEIGHTED_AVERAGE,
            "name": "Weighted Average",
            "description": "Weight each assessment based on its weight field",
            "requires_n": False,
        },
        {
            "strategy": StrategyType.MEDIAN,
            "name": "Median",
            "description": "Use the middle value instead of average",
            "requires_n": False,
        },
    ]


__all__ = [
    "aggregate",
    "aggregate_with_config",
    "validate_aggregation_config",
    "ensure_valid_config",
    "available_strategies",
]
