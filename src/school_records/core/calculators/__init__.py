from .aggregation import (
    aggregate,
    aggregate_with_config,
    available_strategies,
    ensure_valid_config,
    validate_aggregation_config,
)
from .resolver import default_grading_config, resolve_grading_config, resolve_or_default
from .rubric import (
    DEFAULT_CBC_RANGES,
    DEFAULT_SUMMATIVE_RANGES,
    default_ranges,
    general_rating,
    map_percentage_to_band,
    midpoint_percentage_for_band,
    points_for_band,
    rating_for_points,
    summarise_ratings,
    validate_ranges,
)
from .term_score import TermScoreCalculator, combine_assessment_types
