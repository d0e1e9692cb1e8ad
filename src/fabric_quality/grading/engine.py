"""
Fabric quality grading engine.

Ties scoring, normalization, classification and report building into a
single pure evaluation: the same (sample, thresholds, catalog) always
yields the same report.
"""

import logging
from datetime import datetime
from typing import Optional

import numpy as np

from ..config.settings import QualityThresholds, Settings, get_settings
from ..exceptions import InspectionValidationError
from ..models.catalog import DefectCatalog, load_catalog
from ..models.types import Grade, InspectionSample, Severity
from .classifier import GradeClassifier
from .normalizer import normalize_score
from .report import QualityReport, build_report
from .scoring import score_observations

logger = logging.getLogger(__name__)


class GradingEngine:
    """Grades inspected fabric rolls.

    Holds no per-evaluation state, so one engine can serve any number of
    sessions concurrently.

    Attributes:
        catalog: Defect type lookup.
        thresholds: Grading limits and scoring constants.

    Example:
        >>> engine = GradingEngine(default_catalog(), QualityThresholds())
        >>> report = engine.evaluate(sample)
        >>> print(f"Grade: {report.grade.value}, Score: {report.normalized_score:.2f}")
    """

    def __init__(
        self,
        catalog: DefectCatalog,
        thresholds: Optional[QualityThresholds] = None,
    ) -> None:
        """Initialize the engine.

        Args:
            catalog: Defect type lookup.
            thresholds: Grading limits. Defaults to QualityThresholds().
        """
        self.catalog = catalog
        self.thresholds = thresholds if thresholds is not None else QualityThresholds()
        self._classifier = GradeClassifier(self.thresholds)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GradingEngine":
        """Create an engine from application settings.

        Loads the catalog from ``settings.catalog_path`` when set,
        otherwise uses the built-in catalog.

        Args:
            settings: Settings instance. If None, uses default settings.

        Returns:
            GradingEngine instance.
        """
        if settings is None:
            settings = get_settings()
        return cls(
            catalog=load_catalog(settings.catalog_path),
            thresholds=QualityThresholds.from_settings(settings),
        )

    def evaluate(
        self,
        sample: InspectionSample,
        evaluated_at: Optional[datetime] = None,
    ) -> QualityReport:
        """Grade one inspected roll.

        Args:
            sample: Roll with its observed defects.
            evaluated_at: Timestamp to stamp on the report.

        Returns:
            QualityReport for the sample.

        Raises:
            InspectionValidationError: If required sample fields are missing
                or non-positive. No partial report is produced.
        """
        errors = sample.validate(strict_length=self.thresholds.strict_length)
        if errors:
            raise InspectionValidationError(errors)

        aggregate = score_observations(sample.observations, self.catalog, self.thresholds)
        normalized = normalize_score(
            aggregate.total_points,
            sample.total_length,
            basis=self.thresholds.normalization_basis,
            strict=self.thresholds.strict_length,
        )
        classification = self._classifier.classify(aggregate, normalized.score)

        logger.debug(
            "Batch %s graded %s (%.2f points per %g, %d defects)",
            sample.batch_number,
            classification.grade.value,
            normalized.score,
            self.thresholds.normalization_basis,
            aggregate.defect_count,
        )

        return build_report(
            sample,
            aggregate,
            normalized,
            classification,
            normalization_basis=self.thresholds.normalization_basis,
            evaluated_at=evaluated_at,
        )

    def evaluate_batch(
        self,
        samples: list[InspectionSample],
        evaluated_at: Optional[datetime] = None,
    ) -> list[QualityReport]:
        """Grade multiple rolls.

        Args:
            samples: Rolls to grade.
            evaluated_at: Timestamp to stamp on every report.

        Returns:
            List of QualityReport, one per sample.
        """
        return [self.evaluate(sample, evaluated_at) for sample in samples]


def evaluate(
    sample: InspectionSample,
    thresholds: QualityThresholds,
    catalog: DefectCatalog,
    evaluated_at: Optional[datetime] = None,
) -> QualityReport:
    """Grade one inspected roll without keeping an engine around.

    Args:
        sample: Roll with its observed defects.
        thresholds: Grading limits and scoring constants.
        catalog: Defect type lookup.
        evaluated_at: Timestamp to stamp on the report.

    Returns:
        QualityReport for the sample.
    """
    return GradingEngine(catalog, thresholds).evaluate(sample, evaluated_at)


def get_statistics(reports: list[QualityReport]) -> dict:
    """Calculate statistics from multiple quality reports.

    Args:
        reports: List of quality reports.

    Returns:
        Dictionary containing statistics.
    """
    if not reports:
        return {
            "total": 0,
            "a1": 0,
            "a2": 0,
            "b": 0,
            "critical_defects": 0,
            "major_defects": 0,
            "minor_defects": 0,
            "with_warnings": 0,
            "avg_normalized_score": 0.0,
            "max_normalized_score": 0.0,
            "first_quality_rate": 0.0,
        }

    total = len(reports)
    grade_counts = {g: 0 for g in Grade}
    for r in reports:
        grade_counts[r.grade] += 1

    scores = np.array([r.normalized_score for r in reports], dtype=float)

    return {
        "total": total,
        "a1": grade_counts[Grade.A1],
        "a2": grade_counts[Grade.A2],
        "b": grade_counts[Grade.B],
        "critical_defects": sum(r.tallies[Severity.CRITICAL].count for r in reports),
        "major_defects": sum(r.tallies[Severity.MAJOR].count for r in reports),
        "minor_defects": sum(r.tallies[Severity.MINOR].count for r in reports),
        "with_warnings": sum(1 for r in reports if r.has_warnings),
        "avg_normalized_score": float(np.mean(scores)),
        "max_normalized_score": float(np.max(scores)),
        "first_quality_rate": grade_counts[Grade.A1] / total,
    }
