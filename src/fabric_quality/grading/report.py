"""
Quality report assembly.

Builds the immutable ``QualityReport`` from a sample and the results of
scoring, normalization and classification. Building is deterministic:
the only time-dependent field is ``evaluated_at``, which the caller
supplies.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..models.types import (
    DefectObservation,
    DefectTypeId,
    Grade,
    GradingWarning,
    InspectionSample,
    Severity,
)
from .classifier import Classification
from .normalizer import NormalizedScore
from .scoring import ObservationScore, ScoreAggregate, SeverityTally


@dataclass(frozen=True)
class ReportHeader:
    """Identification of the inspected roll."""

    batch_number: str
    order_reference: str
    fabric_type: str
    total_length: Optional[float]
    total_width: Optional[float]
    weight: Optional[float]
    evaluated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "batch_number": self.batch_number,
            "order_reference": self.order_reference,
            "fabric_type": self.fabric_type,
            "total_length": self.total_length,
            "total_width": self.total_width,
            "weight": self.weight,
            "evaluated_at": self.evaluated_at.isoformat() if self.evaluated_at else None,
        }


@dataclass(frozen=True)
class DefectDescription:
    """One line of the report's defect list.

    Unresolved observations are kept with ``type_name``/``severity`` unset
    and the warning that excluded them.
    """

    index: int
    observation_id: str
    defect_type_id: DefectTypeId
    code: Optional[str]
    type_name: Optional[str]
    severity: Optional[Severity]
    position: str
    length_offset: float
    width: Optional[float]
    length: Optional[float]
    area: Optional[float]
    points: Optional[float]
    notes: str = ""
    warning: Optional[GradingWarning] = None

    @property
    def is_resolved(self) -> bool:
        return self.type_name is not None

    def to_lines(self) -> list[str]:
        """Render as report text lines."""
        if self.is_resolved:
            title = f"{self.type_name} ({self.severity.value})"
        else:
            title = f"Unknown defect type {self.defect_type_id!r}"
        lines = [
            f"{self.index}. {title} - Position: {self.position}, "
            f"Meter: {self.length_offset:g}"
            + (f", Points: {self.points:.1f}" if self.points is not None else "")
        ]

        sizes = []
        if self.width:
            sizes.append(f"Width: {self.width:g} cm")
        if self.length:
            sizes.append(f"Length: {self.length:g} cm")
        if sizes and self.area is not None:
            sizes.append(f"Area: {self.area:g} cm²")
        if sizes:
            lines.append(f"   Size: {', '.join(sizes)}")
        if self.notes:
            lines.append(f"   Note: {self.notes}")
        if self.warning is not None:
            lines.append(f"   Warning: {self.warning.message}")
        return lines

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "observation_id": self.observation_id,
            "defect_type_id": self.defect_type_id,
            "code": self.code,
            "type_name": self.type_name,
            "severity": self.severity.value if self.severity else None,
            "position": self.position,
            "length_offset": self.length_offset,
            "width": self.width,
            "length": self.length,
            "area": self.area,
            "points": self.points,
            "notes": self.notes,
            "warning": self.warning.to_dict() if self.warning else None,
        }


@dataclass(frozen=True)
class QualityReport:
    """Grading result for one (sample, observations, thresholds) snapshot.

    Attributes:
        header: Roll identification and evaluation time.
        critical: Critical defect count and points.
        major: Major defect count and points.
        minor: Minor defect count and points.
        total_points: Sum of all defect points.
        normalized_score: Points per ``normalization_basis`` length.
        normalization_basis: Reference length of the normalized score.
        grade: Assigned grade.
        rationale: Why the grade was assigned.
        defects: Every observation in input order, resolved or not.
        warnings: Non-fatal conditions met during evaluation.
    """

    header: ReportHeader
    critical: SeverityTally
    major: SeverityTally
    minor: SeverityTally
    total_points: float
    normalized_score: float
    normalization_basis: float
    grade: Grade
    rationale: str
    defects: tuple[DefectDescription, ...] = ()
    warnings: tuple[GradingWarning, ...] = ()

    @property
    def defect_count(self) -> int:
        """Number of defects that contributed to the score."""
        return self.critical.count + self.major.count + self.minor.count

    @property
    def tallies(self) -> dict[Severity, SeverityTally]:
        return {
            Severity.CRITICAL: self.critical,
            Severity.MAJOR: self.major,
            Severity.MINOR: self.minor,
        }

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "header": self.header.to_dict(),
            "summary": {
                severity.value.lower(): tally.to_dict()
                for severity, tally in self.tallies.items()
            },
            "total_points": self.total_points,
            "normalized_score": self.normalized_score,
            "normalization_basis": self.normalization_basis,
            "grade": self.grade.value,
            "rationale": self.rationale,
            "defects": [defect.to_dict() for defect in self.defects],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }

    def to_text(self) -> str:
        """Render the human-readable report."""
        header = self.header
        lines = ["Fabric Quality Evaluation Report"]
        if header.evaluated_at is not None:
            lines.append(f"Evaluation Date: {header.evaluated_at:%d %B %Y}")
        lines.append(
            f"Batch: {header.batch_number} | Order: {header.order_reference} | "
            f"Fabric Type: {header.fabric_type}"
        )
        lines.append(
            f"Length: {_fmt(header.total_length)} m | Width: {_fmt(header.total_width)} cm | "
            f"Weight: {_fmt(header.weight)} kg"
        )

        lines.append("")
        lines.append("Defect Summary:")
        for severity, tally in self.tallies.items():
            lines.append(f"{severity.value} Defects: {tally.count} ({tally.points:.1f} points)")
        lines.append(f"Total Defect Points: {self.total_points:.1f}")
        lines.append(
            f"Normalized Points per {self.normalization_basis:g} m: {self.normalized_score:.2f}"
        )

        lines.append("")
        lines.append(f"Quality Grade: {self.grade.value} ({self.grade.description})")
        lines.append(f"Result: {self.rationale}")

        if self.defects:
            lines.append("")
            lines.append("Defect Details:")
            for defect in self.defects:
                lines.extend(defect.to_lines())

        if self.warnings:
            lines.append("")
            lines.append("Warnings:")
            lines.extend(f"- {warning.message}" for warning in self.warnings)

        return "\n".join(lines)


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:g}"


def build_report(
    sample: InspectionSample,
    aggregate: ScoreAggregate,
    normalized: NormalizedScore,
    classification: Classification,
    normalization_basis: float = 100.0,
    evaluated_at: Optional[datetime] = None,
) -> QualityReport:
    """Assemble the quality report.

    Args:
        sample: Inspected roll; its observations become the defect list.
        aggregate: Scoring result for the sample's observations.
        normalized: Normalization result.
        classification: Assigned grade and rationale.
        normalization_basis: Reference length of the normalized score.
        evaluated_at: Evaluation timestamp, supplied by the caller.

    Returns:
        Immutable QualityReport.
    """
    # scores are keyed by object identity, ids need not be unique
    scores = {id(score.observation): score for score in aggregate.scores}
    unresolved: dict[str, GradingWarning] = {}
    for warning in aggregate.warnings:
        if warning.observation_id is not None:
            unresolved.setdefault(warning.observation_id, warning)

    warnings = list(aggregate.warnings)
    if normalized.warning is not None:
        warnings.append(normalized.warning)

    return QualityReport(
        header=ReportHeader(
            batch_number=sample.batch_number,
            order_reference=sample.order_reference,
            fabric_type=sample.fabric_type,
            total_length=sample.total_length,
            total_width=sample.total_width,
            weight=sample.weight,
            evaluated_at=evaluated_at,
        ),
        critical=aggregate.critical,
        major=aggregate.major,
        minor=aggregate.minor,
        total_points=aggregate.total_points,
        normalized_score=normalized.score,
        normalization_basis=normalization_basis,
        grade=classification.grade,
        rationale=classification.rationale,
        defects=tuple(
            _describe(index, observation, scores, unresolved)
            for index, observation in enumerate(sample.observations, 1)
        ),
        warnings=tuple(warnings),
    )


def _describe(
    index: int,
    observation: DefectObservation,
    scores: dict[int, ObservationScore],
    unresolved: dict[str, GradingWarning],
) -> DefectDescription:
    score = scores.get(id(observation))
    warning = unresolved.get(observation.id) if score is None else None
    definition = score.definition if score else None

    return DefectDescription(
        index=index,
        observation_id=observation.id,
        defect_type_id=observation.defect_type_id,
        code=definition.code if definition else None,
        type_name=definition.name if definition else None,
        severity=definition.severity if definition else None,
        position=observation.position_label,
        length_offset=observation.length_offset,
        width=observation.width,
        length=observation.length,
        area=score.area if score else None,
        points=score.points if score else None,
        notes=observation.notes,
        warning=warning,
    )
