"""
Unit Tests for the Aggregation Engine

Tests for:
- Each strategy on the reference score sets
- Degenerate inputs (empty, n out of range, zero weights)
- Tag and variant dispatch
- Config validation
"""

import logging

import pytest

from school_records.core.calculators.aggregation import (
    aggregate,
    aggregate_with_config,
    available_strategies,
    ensure_valid_config,
    validate_aggregation_config,
)
from school_records.core.models.grading import (
    BestN,
    DropLowestN,
    GradingConfig,
    Median,
    ScoreItem,
    SimpleAverage,
    StrategyType,
    WeightedAverage,
)
from school_records.exceptions import InvalidConfiguration

SCORES = [80, 60, 70]


class TestReferenceValues:
    """Known results for each strategy"""

    def test_simple_average(self):
        assert aggregate(SCORES, StrategyType.SIMPLE_AVERAGE) == 70

    def test_best_n(self):
        assert aggregate(SCORES, StrategyType.BEST_N, n=2) == 75

    def test_drop_lowest_n(self):
        assert aggregate(SCORES, StrategyType.DROP_LOWEST_N, n=1) == 75

    def test_median_even_count(self):
        assert aggregate([90, 50], StrategyType.MEDIAN) == 70

    def test_median_odd_count(self):
        assert aggregate([10, 90, 50], StrategyType.MEDIAN) == 50

    def test_weighted_average(self):
        scores = [{"score": 80, "weight": 2}, {"score": 60, "weight": 1}]
        assert aggregate(scores, StrategyType.WEIGHTED_AVERAGE) == pytest.approx(73.3333333)

    def test_variants_match_tags(self):
        assert aggregate(SCORES, SimpleAverage()) == 70
        assert aggregate(SCORES, BestN(2)) == 75
        assert aggregate(SCORES, DropLowestN(1)) == 75
        assert aggregate([90, 50], Median()) == 70

    def test_full_precision(self):
        """No rounding inside the engine"""
        assert aggregate([1, 2, 2]) == pytest.approx(5 / 3)


class TestEdgeCases:
    """Degenerate inputs degrade to defined values"""

    @pytest.mark.parametrize("strategy", list(StrategyType))
    def test_empty_scores_return_zero(self, strategy):
        assert aggregate([], strategy, n=2) == 0

    @pytest.mark.parametrize("n", [0, -1, None])
    def test_best_n_invalid_n_returns_zero(self, n, caplog):
        with caplog.at_level(logging.WARNING):
            assert aggregate(SCORES, StrategyType.BEST_N, n=n) == 0
        assert "BEST_N" in caplog.text

    def test_best_n_larger_than_count(self):
        assert aggregate(SCORES, StrategyType.BEST_N, n=10) == 70

    def test_drop_lowest_zero_keeps_everything(self):
        assert aggregate(SCORES, StrategyType.DROP_LOWEST_N, n=0) == 70

    def test_drop_lowest_negative_falls_back_to_average(self):
        assert aggregate(SCORES, StrategyType.DROP_LOWEST_N, n=-2) == 70

    def test_drop_lowest_all_scores_returns_zero(self):
        assert aggregate(SCORES, StrategyType.DROP_LOWEST_N, n=3) == 0
        assert aggregate(SCORES, StrategyType.DROP_LOWEST_N, n=5) == 0

    def test_weighted_missing_weight_counts_as_one(self):
        scores = [ScoreItem(score=80, weight=3), ScoreItem(score=40)]
        assert aggregate(scores, StrategyType.WEIGHTED_AVERAGE) == 70

    def test_weighted_zero_total_weight(self):
        scores = [ScoreItem(score=80, weight=0), ScoreItem(score=40, weight=0)]
        assert aggregate(scores, StrategyType.WEIGHTED_AVERAGE) == 0

    def test_unknown_tag_falls_back_to_simple_average(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert aggregate(SCORES, "TOP_HALF") == 70
        assert "Unknown aggregation strategy" in caplog.text

    def test_weighted_average_ignores_weights_for_other_strategies(self):
        scores = [ScoreItem(score=80, weight=5), ScoreItem(score=60, weight=1)]
        assert aggregate(scores, WeightedAverage()) == pytest.approx(76.6666667)
        assert aggregate(scores, SimpleAverage()) == 70


class TestConfigHelpers:
    def test_aggregate_with_config(self):
        config = GradingConfig(assessment_type="QUIZ", strategy=StrategyType.BEST_N, n=2)
        assert aggregate_with_config(SCORES, config) == 75

    def test_aggregate_with_no_config_is_simple_average(self):
        assert aggregate_with_config(SCORES, None) == 70

    def test_validate_rejects_missing_n(self):
        config = GradingConfig(assessment_type="QUIZ", strategy=StrategyType.DROP_LOWEST_N, n=0)
        errors = validate_aggregation_config(config)
        assert errors == ["Strategy DROP_LOWEST_N requires a positive n"]

    def test_validate_rejects_negative_weight(self):
        config = GradingConfig(assessment_type="QUIZ", weight=-1)
        assert "Weight cannot be negative" in validate_aggregation_config(config)

    def test_ensure_valid_config_raises(self):
        config = GradingConfig(assessment_type="QUIZ", strategy=StrategyType.BEST_N)
        with pytest.raises(InvalidConfiguration):
            ensure_valid_config(config)

    def test_ensure_valid_config_passes_through(self):
        config = GradingConfig(assessment_type="QUIZ", strategy=StrategyType.MEDIAN)
        assert ensure_valid_config(config) is config

    def test_available_strategies_covers_every_tag(self):
        catalogue = available_strategies()
        assert {entry["strategy"] for entry in catalogue} == set(StrategyType)
        assert all(entry["requires_n"] == entry["strategy"].requires_n for entry in catalogue)
