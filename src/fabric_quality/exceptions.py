"""
Error types for the fabric_quality package.

Fatal problems are raised as exceptions before any scoring happens.
Non-fatal conditions are never raised; they travel inside the report
as ``GradingWarning`` values (see ``models.types``).
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure.

    Attributes:
        field: Name of the offending field.
        message: Human-readable description of the problem.
        value: The rejected value.
    """

    field: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class FabricQualityError(Exception):
    """Base class for all fabric_quality errors."""


class InspectionValidationError(FabricQualityError, ValueError):
    """Inspection sample failed validation; no report is produced.

    Attributes:
        errors: Every field-level failure found in the sample.
    """

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        details = "; ".join(str(error) for error in self.errors)
        super().__init__(f"Invalid inspection sample: {details}")

    @property
    def fields(self) -> list[str]:
        """Names of the fields that failed validation."""
        return [error.field for error in self.errors]


class CatalogError(FabricQualityError, ValueError):
    """Defect catalog definitions are inconsistent (duplicate ids/codes, bad points)."""
