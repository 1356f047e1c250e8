"""
RUBRIC MAPPER - Percentage to grade/rating band, and back

DEFAULT SCALES (seeded once per tenant):
✅ Summative: A 80-100, B 60-79, C 50-59, D 40-49, E 0-39
✅ CBC rubric: EE1 90-100, EE2 75-89, ME1 58-74, ME2 41-57,
              AE1 31-40, AE2 21-30, BE1 11-20, BE2 0-10

LOOKUP RULE:
Bands are scanned by min_percentage descending and the first band whose
minimum is <= the percentage wins. For integer-bounded scales this is the
same as "min <= p <= max", and fractional values such as 79.5 land in the
lower band instead of falling through the gap between 79 and 80.
Values below every minimum get the lowest band.
"""

import logging
import re
from collections import OrderedDict
from typing import Iterable, List, Optional, Sequence

from school_records.core.models.grading import GradingSystemType, RatingSummary, RubricRange, round_half_up
from school_records.exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)


DEFAULT_SUMMATIVE_RANGES: List[RubricRange] = [
    RubricRange(label="A", min_percentage=80, max_percentage=100, code="A", points=4, color="#10b981", description="Excellent"),
    RubricRange(label="B", min_percentage=60, max_percentage=79, code="B", points=3, color="#3b82f6", description="Good"),
    RubricRange(label="C", min_percentage=50, max_percentage=59, code="C", points=2, color="#f59e0b", description="Average"),
    RubricRange(label="D", min_percentage=40, max_percentage=49, code="D", points=1, color="#ef4444", description="Below Average"),
    RubricRange(label="E", min_percentage=0, max_percentage=39, code="E", points=0, color="#991b1b", description="Fail"),
]

DEFAULT_CBC_RANGES: List[RubricRange] = [
    RubricRange(label="EE1", min_percentage=90, max_percentage=100, code="EE1", points=8, color="#10b981", description="Outstanding"),
    RubricRange(label="EE2", min_percentage=75, max_percentage=89, code="EE2", points=7, color="#34d399", description="Very High"),
    RubricRange(label="ME1", min_percentage=58, max_percentage=74, code="ME1", points=6, color="#3b82f6", description="High Average"),
    RubricRange(label="ME2", min_percentage=41, max_percentage=57, code="ME2", points=5, color="#60a5fa", description="Average"),
    RubricRange(label="AE1", min_percentage=31, max_percentage=40, code="AE1", points=4, color="#f59e0b", description="Low Average"),
    RubricRange(label="AE2", min_percentage=21, max_percentage=30, code="AE2", points=3, color="#fbbf24", description="Below Average"),
    RubricRange(label="BE1", min_percentage=11, max_percentage=20, code="BE1", points=2, color="#ef4444", description="Low"),
    RubricRange(label="BE2", min_percentage=0, max_percentage=10, code="BE2", points=1, color="#b91c1c", description="Very Low"),
]

DEFAULT_SYSTEM_NAMES = {
    GradingSystemType.SUMMATIVE: "Standard Summative Grading",
    GradingSystemType.CBC: "Standard CBC Rubric",
}


def default_ranges(system_type: GradingSystemType) -> List[RubricRange]:
    """Copy of the seed bands for a grading system type"""
    source = DEFAULT_SUMMATIVE_RANGES if system_type is GradingSystemType.SUMMATIVE else DEFAULT_CBC_RANGES
    return [r.model_copy() for r in source]


def _descending(ranges: Iterable[RubricRange]) -> List[RubricRange]:
    ordered = sorted(ranges, key=lambda r: r.min_percentage, reverse=True)
    if not ordered:
        raise InvalidConfiguration("Grading system has no ranges")
    return ordered


def map_percentage_to_band(percentage: float, ranges: Sequence[RubricRange]) -> RubricRange:
    """
    Map a percentage to its band

    Args:
        percentage: Score on the 0-100 scale (full precision)
        ranges: Bands of one grading system, any order

    Returns:
        The matching band, or the lowest band when nothing matches
    """
    ordered = _descending(ranges)
    for band in ordered:
        if percentage >= band.min_percentage:
            return band

    logger.warning(f"⚠️ No band covers {percentage}% - using lowest band {ordered[-1].code}")
    return ordered[-1]


def find_band(code: str, ranges: Sequence[RubricRange]) -> Optional[RubricRange]:
    for band in ranges:
        if band.code == code:
            return band
    return None


def points_for_band(code: str, ranges: Sequence[RubricRange]) -> int:
    """Points for a grade/rating code; unknown codes get the lowest band's points"""
    band = find_band(code, ranges)
    if band is None:
        lowest = _descending(ranges)[-1]
        logger.warning(f"⚠️ Unknown band {code!r} - using {lowest.code} points")
        return lowest.points
    return band.points


def midpoint_percentage_for_band(code: str, ranges: Sequence[RubricRange]) -> int:
    """Representative percentage for a band: (min + max) / 2 rounded half up, 0 when unknown"""
    band = find_band(code, ranges)
    if band is None:
        return 0
    return band.midpoint


def rating_for_points(points: float, ranges: Sequence[RubricRange]) -> RubricRange:
    """Band with the highest points value not above `points`"""
    ordered = sorted(ranges, key=lambda r: r.points, reverse=True)
    if not ordered:
        raise InvalidConfiguration("Grading system has no ranges")
    for band in ordered:
        if points >= band.points:
            return band
    return ordered[-1]


def general_rating(code: str) -> str:
    """Collapse a detailed rubric rating to its level: EE1/EE2 -> EE"""
    return re.sub(r"\d+$", "", code)


def summarise_ratings(codes: Iterable[str], ranges: Sequence[RubricRange]) -> RatingSummary:
    """
    Class-level summary of rubric ratings

    Distribution counts every band (zero-filled), average points use each
    code's points, and the average rating is the band for the rounded mean.
    """
    ordered = _descending(ranges)
    distribution = OrderedDict((band.code, 0) for band in ordered)
    codes = list(codes)

    if not codes:
        lowest = ordered[-1]
        return RatingSummary(
            average_code=lowest.code,
            average_points=float(lowest.points),
            distribution=dict(distribution),
            total=0,
        )

    total_points = 0
    for code in codes:
        if code in distribution:
            distribution[code] += 1
        total_points += points_for_band(code, ordered)

    average_points = total_points / len(codes)
    average_band = rating_for_points(round_half_up(average_points), ordered)

    return RatingSummary(
        average_code=average_band.code,
        average_points=average_points,
        distribution=dict(distribution),
        total=len(codes),
    )


def validate_ranges(ranges: Sequence[RubricRange]) -> List[RubricRange]:
    """
    Check that bands partition [0, 100]

    Bands are inclusive; neighbouring bands may not overlap and may not leave
    more than one whole point between them (e.g. 60-79 followed by 80-100).

    Returns:
        Bands sorted by min_percentage descending

    Raises:
        InvalidConfiguration: empty set, duplicate codes, gaps, overlaps,
            or coverage not starting at 0 / ending at 100
    """
    ascending = sorted(ranges, key=lambda r: r.min_percentage)
    if not ascending:
        raise InvalidConfiguration("Grading system has no ranges")

    codes = [r.code for r in ascending]
    if len(set(codes)) != len(codes):
        raise InvalidConfiguration(f"Duplicate band codes: {codes}")

    if ascending[0].min_percentage != 0:
        raise InvalidConfiguration(f"Lowest band {ascending[0].code} must start at 0")
    if ascending[-1].max_percentage != 100:
        raise InvalidConfiguration(f"Highest band {ascending[-1].code} must end at 100")

    for lower, upper in zip(ascending, ascending[1:]):
        if upper.min_percentage <= lower.max_percentage:
            raise InvalidConfiguration(f"Bands {lower.code} and {upper.code} overlap")
        if upper.min_percentage - lower.max_percentage > 1:
            raise InvalidConfiguration(f"Gap between bands {lower.code} and {upper.code}")

    return list(reversed(ascending))


__all__ = [
    "DEFAULT_SUMMATIVE_RANGES",
    "DEFAULT_CBC_RANGES",
    "DEFAULT_SYSTEM_NAMES",
    "default_ranges",
    "map_percentage_to_band",
    "find_band",
    "points_for_band",
    "midpoint_percentage_for_band",
    "rating_for_points",
    "general_rating",
    "summarise_ratings",
    "validate_ranges",
]
