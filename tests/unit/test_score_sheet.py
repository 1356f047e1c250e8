"""
Unit Tests for the Score Sheet Processor
"""

import pandas as pd
import pytest

from school_records.core.calculators.rubric import DEFAULT_CBC_RANGES
from school_records.core.models.grading import TermConfig
from school_records.core.processors.score_sheet import RESULT_COLUMNS, ScoreSheetProcessor


@pytest.fixture
def score_sheet():
    return pd.DataFrame(
        [
            {"learner_id": "L2", "assessment_type": "QUIZ", "score": 40, "grade": "GRADE_1", "learning_area": "MATHEMATICS"},
            {"learner_id": "L1", "assessment_type": "QUIZ", "score": 80, "grade": "GRADE_1", "learning_area": "ENGLISH"},
            {"learner_id": "L1", "assessment_type": "QUIZ", "score": 60, "grade": "GRADE_1", "learning_area": "ENGLISH"},
            {"learner_id": "L1", "assessment_type": "QUIZ", "score": 70, "grade": "GRADE_1", "learning_area": "ENGLISH"},
            {"learner_id": "L1", "assessment_type": "HOMEWORK", "score": "absent", "grade": "GRADE_1", "learning_area": "ENGLISH"},
        ]
    )


class TestScoreSheetProcessor:
    def test_grades_each_learner_and_area(self, score_sheet, sample_configs):
        processor = ScoreSheetProcessor(sample_configs)

        result = processor.grade_learners(score_sheet)

        assert list(result.columns) == RESULT_COLUMNS
        assert list(result["learner_id"]) == ["L1", "L2"]

        l1 = result.iloc[0]
        # GRADE_1 QUIZ config is BEST_N(2)
        assert l1["formative_percentage"] == 75
        assert l1["band_code"] == "B"
        assert l1["assessments"] == 3
        assert pd.isna(l1["final_percentage"])

    def test_non_numeric_scores_reported(self, score_sheet):
        processor = ScoreSheetProcessor()
        processor.grade_learners(score_sheet)

        assert processor.validation_errors == ["Score sheet: dropped 1 rows with non-numeric scores"]

    def test_missing_columns(self):
        processor = ScoreSheetProcessor()
        with pytest.raises(ValueError, match="missing columns"):
            processor.grade_learners(pd.DataFrame([{"learner_id": "L1", "score": 50}]))

    def test_final_score_with_summative(self, score_sheet):
        summative = pd.DataFrame([{"learner_id": "L2", "score": 90, "learning_area": "MATHEMATICS"}])
        processor = ScoreSheetProcessor(term_config=TermConfig(formative_weight=50, summative_weight=50))

        result = processor.grade_learners(score_sheet, summative).set_index("learner_id")

        assert result.loc["L2", "final_percentage"] == pytest.approx(65)
        assert result.loc["L2", "band_code"] == "B"

    def test_summative_without_area_applies_to_all_areas(self, score_sheet):
        summative = pd.DataFrame([{"learner_id": "L1", "score": 100}])
        result = ScoreSheetProcessor().grade_learners(score_sheet, summative).set_index("learner_id")

        assert result.loc["L1", "summative_percentage"] == 100
        assert result.loc["L1", "final_percentage"] == pytest.approx(70 * 0.4 + 100 * 0.6)

    def test_cbc_bands(self, score_sheet):
        result = ScoreSheetProcessor(ranges=DEFAULT_CBC_RANGES).grade_learners(score_sheet)
        assert set(result["band_code"]) == {"ME1", "AE1"}

    def test_load_csv_normalises_headers(self, tmp_path):
        path = tmp_path / "scores.csv"
        path.write_text("Learner ID,Assessment Type,Score\nL1,QUIZ,50\n", encoding="utf-8")

        frame = ScoreSheetProcessor().load_csv(path)

        assert list(frame.columns) == ["learner_id", "assessment_type", "score"]
