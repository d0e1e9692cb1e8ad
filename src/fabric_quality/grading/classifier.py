"""
Grade classification.

Evaluates ordered grade rules against the per-severity counts and the
normalized score. The first rule that holds wins; grade B is the
catch-all, so every input receives a grade.
"""

from dataclasses import dataclass, field

from ..config.settings import QualityThresholds
from ..models.types import Grade
from .scoring import ScoreAggregate


@dataclass(frozen=True)
class GradeRule:
    """Upper limits a roll must stay within to receive a grade.

    Attributes:
        grade: Grade awarded when every limit holds.
        critical_limit: Maximum critical defect count.
        major_limit: Maximum major defect count.
        minor_limit: Maximum minor defect count.
        point_threshold: Maximum normalized score.
    """

    grade: Grade
    critical_limit: int
    major_limit: int
    minor_limit: int
    point_threshold: float

    def violations(self, aggregate: ScoreAggregate, normalized_score: float) -> list[str]:
        """List every limit the input exceeds.

        Args:
            aggregate: Per-severity counts.
            normalized_score: Points per basis length.

        Returns:
            Human-readable descriptions, empty if the rule holds.
        """
        failed = []
        checks = [
            ("critical defects", aggregate.critical.count, self.critical_limit),
            ("major defects", aggregate.major.count, self.major_limit),
            ("minor defects", aggregate.minor.count, self.minor_limit),
        ]
        for label, count, limit in checks:
            if count > limit:
                failed.append(f"{label} {count} > {limit}")
        if normalized_score > self.point_threshold:
            failed.append(
                f"normalized score {normalized_score:.2f} > {self.point_threshold:g}"
            )
        return failed

    def matches(self, aggregate: ScoreAggregate, normalized_score: float) -> bool:
        return not self.violations(aggregate, normalized_score)


@dataclass(frozen=True)
class Classification:
    """Outcome of classification.

    Attributes:
        grade: Assigned grade.
        rationale: Explanation of why the grade was assigned.
        violations: Failed limits for each better grade that was rejected.
    """

    grade: Grade
    rationale: str
    violations: dict[Grade, tuple[str, ...]] = field(default_factory=dict)


class GradeClassifier:
    """Assigns A1 / A2 / B from configurable thresholds.

    Example:
        >>> classifier = GradeClassifier(QualityThresholds())
        >>> classifier.classify(aggregate, normalized_score=3.5).grade
        <Grade.A1: 'A1'>
    """

    def __init__(self, thresholds: QualityThresholds) -> None:
        self.thresholds = thresholds
        self.rules = (
            GradeRule(
                grade=Grade.A1,
                critical_limit=thresholds.critical_defect_limit_a1,
                major_limit=thresholds.major_defect_limit_a1,
                minor_limit=thresholds.minor_defect_limit_a1,
                point_threshold=thresholds.point_threshold_a1,
            ),
            GradeRule(
                grade=Grade.A2,
                critical_limit=thresholds.critical_defect_limit_a2,
                major_limit=thresholds.major_defect_limit_a2,
                minor_limit=thresholds.minor_defect_limit_a2,
                point_threshold=thresholds.point_threshold_a2,
            ),
        )

    def classify(self, aggregate: ScoreAggregate, normalized_score: float) -> Classification:
        """Assign a grade.

        Args:
            aggregate: Per-severity counts from scoring.
            normalized_score: Points per basis length.

        Returns:
            Classification with grade and rationale.
        """
        rejected: dict[Grade, tuple[str, ...]] = {}

        for rule in self.rules:
            failed = rule.violations(aggregate, normalized_score)
            if not failed:
                return Classification(
                    grade=rule.grade,
                    rationale=_rationale(rule.grade, rejected),
                    violations=rejected,
                )
            rejected[rule.grade] = tuple(failed)

        return Classification(
            grade=Grade.B,
            rationale=_rationale(Grade.B, rejected),
            violations=rejected,
        )


def _rationale(grade: Grade, rejected: dict[Grade, tuple[str, ...]]) -> str:
    parts = [
        f"Exceeds {better.value} limits: {', '.join(failed)}."
        for better, failed in rejected.items()
    ]
    if grade == Grade.B:
        parts.append("Fabric is classified as B quality.")
    else:
        parts.append(f"Fabric meets {grade.value} quality standards.")
    return " ".join(parts)
