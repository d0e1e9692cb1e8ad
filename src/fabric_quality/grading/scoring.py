"""
Defect scoring.

Turns each observation into weighted defect points and aggregates them
per severity class. Severity always comes from the catalog, never from
the observation itself.
"""

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from ..config.settings import QualityThresholds
from ..models.catalog import DefectCatalog
from ..models.types import (
    DefectObservation,
    DefectTypeDefinition,
    GradingWarning,
    Severity,
    WarningCode,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 1) -> float:
    """Round with halves going up (2.25 -> 2.3), unlike built-in round().

    Args:
        value: Non-negative value to round.
        digits: Decimal places to keep.

    Returns:
        Rounded value.
    """
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


@dataclass(frozen=True)
class SeverityTally:
    """Count and points accumulated for one severity class."""

    count: int = 0
    points: float = 0.0

    def to_dict(self) -> dict:
        return {"count": self.count, "points": self.points}


@dataclass(frozen=True)
class ObservationScore:
    """Points computed for one resolved observation.

    Attributes:
        observation: The scored observation.
        definition: Catalog entry it resolved to.
        area: Effective defect area (cm2).
        size_factor: sqrt(area / reference_area).
        position_factor: Multiplier for where the defect is.
        points: Final points, rounded to one decimal.
    """

    observation: DefectObservation
    definition: DefectTypeDefinition
    area: float
    size_factor: float
    position_factor: float
    points: float

    @property
    def severity(self) -> Severity:
        return self.definition.severity


@dataclass(frozen=True)
class ScoreAggregate:
    """Per-severity totals for a list of observations.

    Attributes:
        tallies: Count and points per severity class.
        scores: Scores of resolved observations, in input order.
        warnings: Non-fatal problems (unresolved defect types).
    """

    tallies: dict[Severity, SeverityTally]
    scores: tuple[ObservationScore, ...] = ()
    warnings: tuple[GradingWarning, ...] = ()

    @property
    def critical(self) -> SeverityTally:
        return self.tallies[Severity.CRITICAL]

    @property
    def major(self) -> SeverityTally:
        return self.tallies[Severity.MAJOR]

    @property
    def minor(self) -> SeverityTally:
        return self.tallies[Severity.MINOR]

    @property
    def total_points(self) -> float:
        """Sum of all bucket points, rounded to one decimal."""
        return round(math.fsum(t.points for t in self.tallies.values()), 1)

    @property
    def defect_count(self) -> int:
        """Number of observations that contributed to the score."""
        return sum(t.count for t in self.tallies.values())

    def score_for(self, observation_id: str) -> Optional[ObservationScore]:
        """Find the score of one observation, None if it was not scored."""
        for score in self.scores:
            if score.observation.id == observation_id:
                return score
        return None

    def to_dict(self) -> dict:
        return {
            severity.value.lower(): tally.to_dict()
            for severity, tally in self.tallies.items()
        }


def score_observation(
    observation: DefectObservation,
    definition: DefectTypeDefinition,
    thresholds: QualityThresholds,
) -> ObservationScore:
    """Compute the weighted points of one observation.

    points = base_points * size_factor * position_factor * area_factor_constant,
    rounded half-up to one decimal.

    Args:
        observation: Observed defect.
        definition: Catalog entry the observation resolved to.
        thresholds: Scoring constants.

    Returns:
        ObservationScore with the intermediate factors.
    """
    width, length = observation.dimensions(
        thresholds.default_defect_width, thresholds.default_defect_length
    )
    area = width * length
    size_factor = math.sqrt(area / thresholds.reference_area)
    position_factor = thresholds.position_factor(observation.position)

    points = round_half_up(
        definition.base_points
        * size_factor
        * position_factor
        * thresholds.area_factor_constant
    )

    return ObservationScore(
        observation=observation,
        definition=definition,
        area=area,
        size_factor=size_factor,
        position_factor=position_factor,
        points=points,
    )


def score_observations(
    observations: Iterable[DefectObservation],
    catalog: DefectCatalog,
    thresholds: QualityThresholds,
) -> ScoreAggregate:
    """Score observations and aggregate them per severity class.

    Observations whose defect type is not in the catalog are skipped and
    reported as UNKNOWN_DEFECT_TYPE warnings.

    Args:
        observations: Observed defects.
        catalog: Defect type lookup.
        thresholds: Scoring constants.

    Returns:
        ScoreAggregate with tallies for every severity class.
    """
    counts = {severity: 0 for severity in Severity}
    points: dict[Severity, list[float]] = {severity: [] for severity in Severity}
    scores: list[ObservationScore] = []
    warnings: list[GradingWarning] = []

    for observation in observations:
        definition = catalog.lookup(observation.defect_type_id)
        if definition is None:
            message = (
                f"Observation {observation.id} references unknown defect type "
                f"{observation.defect_type_id!r}; excluded from scoring"
            )
            logger.warning(message)
            warnings.append(
                GradingWarning(
                    code=WarningCode.UNKNOWN_DEFECT_TYPE,
                    message=message,
                    observation_id=observation.id,
                )
            )
            continue

        score = score_observation(observation, definition, thresholds)
        scores.append(score)
        counts[definition.severity] += 1
        points[definition.severity].append(score.points)

    tallies = {
        severity: SeverityTally(
            count=counts[severity],
            points=round(math.fsum(points[severity]), 1),
        )
        for severity in Severity
    }

    return ScoreAggregate(tallies=tallies, scores=tuple(scores), warnings=tuple(warnings))
