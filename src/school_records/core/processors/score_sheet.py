"""
SCORE SHEET PROCESSOR - Batch grading from exported score sheets

DATA SOURCES:
✅ Formative scores CSV/DataFrame: learner_id, assessment_type, score
   (optional: weight, grade, learning_area)
✅ Summative results CSV/DataFrame (optional): learner_id, score
   (optional: learning_area)

PROCESSING:
1. Schema validation: required columns present, scores numeric
2. Group rows per (learner, learning area)
3. Formative score per group via TermScoreCalculator (config per type)
4. Final score when summative results are supplied (term weights)
5. Band lookup on the reported percentage

Rows with non-numeric scores are dropped and reported in validation_errors.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd
from tqdm import tqdm

from school_records.core.calculators.rubric import DEFAULT_SUMMATIVE_RANGES, map_percentage_to_band
from school_records.core.calculators.term_score import TermScoreCalculator
from school_records.core.models.grading import GradingConfig, RubricRange, ScoreItem, TermConfig

logger = logging.getLogger(__name__)

REQUIRED_SCORE_COLUMNS = ["learner_id", "assessment_type", "score"]
REQUIRED_SUMMATIVE_COLUMNS = ["learner_id", "score"]

RESULT_COLUMNS = [
    "learner_id",
    "grade",
    "learning_area",
    "assessments",
    "formative_percentage",
    "summative_percentage",
    "final_percentage",
    "band_code",
    "band_label",
    "points",
]


def _clean(value) -> Optional[str]:
    """Blank/NaN cells become None, everything else a stripped string"""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


class ScoreSheetProcessor:
    """Grade a whole score sheet with one tenant's configs and bands"""

    def __init__(
        self,
        configs: Optional[List[GradingConfig]] = None,
        ranges: Optional[Sequence[RubricRange]] = None,
        term_config: Optional[TermConfig] = None,
    ):
        self.calculator = TermScoreCalculator(configs)
        self.ranges = list(ranges or DEFAULT_SUMMATIVE_RANGES)
        self.term_config = term_config
        self.validation_errors: List[str] = []

    def load_csv(self, file_path: Union[str, Path]) -> pd.DataFrame:
        """Load a score sheet exported from the assessment module"""
        file_path = Path(file_path)
        logger.info(f"📊 Loading score sheet from: {file_path}")
        frame = pd.read_csv(file_path, encoding="utf-8-sig")
        frame.columns = [str(c).strip().lower().replace(" ", "_") for c in frame.columns]
        return frame

    def _validate(self, frame: pd.DataFrame, required: List[str], name: str) -> pd.DataFrame:
        missing = [col for col in required if col not in frame.columns]
        if missing:
            raise ValueError(f"{name} missing columns: {missing}")

        frame = frame.copy()
        frame["score"] = pd.to_numeric(frame["score"], errors="coerce")
        bad_rows = frame["score"].isna().sum()
        if bad_rows:
            self.validation_errors.append(f"{name}: dropped {bad_rows} rows with non-numeric scores")
            logger.warning(f"  ⚠️ {name}: dropped {bad_rows} rows with non-numeric scores")
            frame = frame[frame["score"].notna()]

        for optional in ("grade", "learning_area"):
            if optional not in frame.columns:
                frame[optional] = None
        frame["learner_id"] = frame["learner_id"].astype(str).str.strip()
        frame["learning_area"] = frame["learning_area"].map(_clean)
        return frame

    def _summative_averages(self, summative: Optional[pd.DataFrame]) -> Dict[tuple, float]:
        if summative is None:
            return {}
        summative = self._validate(summative, REQUIRED_SUMMATIVE_COLUMNS, "Summative results")
        averages = {}
        for (learner_id, area), group in summative.groupby(
            ["learner_id", "learning_area"], dropna=False, sort=False
        ):
            averages[(learner_id, _clean(area))] = float(group["score"].mean())
        return averages

    def grade_learners(
        self,
        scores: pd.DataFrame,
        summative: Optional[pd.DataFrame] = None,
        progress: bool = False,
    ) -> pd.DataFrame:
        """
        Compute formative (and final) scores and bands for every learner

        Args:
            scores: Formative score rows
            summative: Optional summative result rows
            progress: Show a tqdm progress bar over learner groups

        Returns:
            DataFrame with RESULT_COLUMNS, one row per (learner, learning area)
        """
        self.validation_errors = []
        scores = self._validate(scores, REQUIRED_SCORE_COLUMNS, "Score sheet")
        summative_averages = self._summative_averages(summative)

        groups = scores.groupby(["learner_id", "learning_area"], dropna=False, sort=False)
        rows = []
        for (learner_id, area), group in tqdm(groups, total=groups.ngroups, desc="Grading", disable=not progress):
            area = _clean(area)
            grade = next((g for g in map(_clean, group["grade"]) if g), None)

            scores_by_type: Dict[str, List[ScoreItem]] = {}
            for record in group.to_dict("records"):
                weight = record.get("weight")
                weight = None if weight is None or pd.isna(weight) else float(weight)
                scores_by_type.setdefault(str(record["assessment_type"]).strip(), []).append(
                    ScoreItem(score=float(record["score"]), weight=weight)
                )

            formative = self.calculator.calculate_formative(scores_by_type, grade, area)

            summative_score = summative_averages.get((learner_id, area))
            if summative_score is None:
                summative_score = summative_averages.get((learner_id, None))

            if summative_score is not None:
                final = self.calculator.calculate_final(
                    formative.average_percentage, summative_score, self.term_config
                )
                reported = final.final_score
            else:
                final = None
                reported = formative.average_percentage

            band = map_percentage_to_band(reported, self.ranges)
            rows.append(
                {
                    "learner_id": learner_id,
                    "grade": grade,
                    "learning_area": area,
                    "assessments": formative.total_assessments,
                    "formative_percentage": formative.average_percentage,
                    "summative_percentage": summative_score,
                    "final_percentage": final.final_score if final else None,
                    "band_code": band.code,
                    "band_label": band.label,
                    "points": band.points,
                }
            )

        logger.info(f"  ✅ Graded {len(rows)} learner/learning-area rows")
        result = pd.DataFrame(rows, columns=RESULT_COLUMNS)
        return result.sort_values("learner_id", kind="stable").reset_index(drop=True)


__all__ = ["ScoreSheetProcessor", "REQUIRED_SCORE_COLUMNS", "RESULT_COLUMNS"]
