"""
Length normalization of defect points.

Rescales total points to points per ``basis`` length units (100 m by
default) so rolls of different lengths can be compared.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..exceptions import FieldError, InspectionValidationError
from ..models.types import GradingWarning, WarningCode

logger = logging.getLogger(__name__)

# Length used by the legacy fallback for non-positive roll lengths
FALLBACK_LENGTH = 1.0


@dataclass(frozen=True)
class NormalizedScore:
    """Result of normalizing total points.

    Attributes:
        score: Points per basis length.
        effective_length: Length actually divided by.
        fallback_applied: Whether the legacy length-1 fallback was used.
        warning: Warning describing the fallback, if applied.
    """

    score: float
    effective_length: float
    fallback_applied: bool = False
    warning: Optional[GradingWarning] = None


def normalize_score(
    total_points: float,
    total_length: Optional[float],
    basis: float = 100.0,
    strict: bool = True,
) -> NormalizedScore:
    """Normalize total points to a standard roll length.

    score = total_points / effective_length * basis

    Args:
        total_points: Sum of all defect points.
        total_length: Roll length; must be positive when strict.
        basis: Reference length the score is expressed per.
        strict: Reject non-positive lengths. When False, a length of 1
            is used instead and a DEGENERATE_LENGTH_FALLBACK warning is
            attached; this inflates the score and exists for parity with
            historical results only.

    Returns:
        NormalizedScore.

    Raises:
        InspectionValidationError: If strict and total_length <= 0.
    """
    if total_length is not None and total_length > 0:
        return NormalizedScore(
            score=total_points / total_length * basis,
            effective_length=total_length,
        )

    if strict:
        raise InspectionValidationError(
            [FieldError("total_length", "must be greater than 0", total_length)]
        )

    message = (
        f"total_length {total_length!r} is not positive; "
        f"normalized with a length of {FALLBACK_LENGTH:g}"
    )
    logger.warning(message)
    return NormalizedScore(
        score=total_points / FALLBACK_LENGTH * basis,
        effective_length=FALLBACK_LENGTH,
        fallback_applied=True,
        warning=GradingWarning(code=WarningCode.DEGENERATE_LENGTH_FALLBACK, message=message),
    )
