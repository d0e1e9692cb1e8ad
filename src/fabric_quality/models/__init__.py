"""Models module for the fabric_quality package."""

from .catalog import (
    DefectCatalog,
    InMemoryDefectCatalog,
    default_catalog,
    default_definitions,
    load_catalog,
)
from .types import (
    DefectObservation,
    DefectTypeDefinition,
    Grade,
    GradingWarning,
    InspectionSample,
    Position,
    Severity,
    WarningCode,
)

__all__ = [
    "DefectCatalog",
    "DefectObservation",
    "DefectTypeDefinition",
    "Grade",
    "GradingWarning",
    "InMemoryDefectCatalog",
    "InspectionSample",
    "Position",
    "Severity",
    "WarningCode",
    "default_catalog",
    "default_definitions",
    "load_catalog",
]
