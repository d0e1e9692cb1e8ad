"""
Fabric Quality Grading Package.

This package grades inspected fabric rolls: observed defects are turned
into weighted, length-normalized defect points and the roll is
classified as A1, A2 or B.

Example:
    >>> from fabric_quality import GradingEngine, InspectionSample, default_catalog
    >>> engine = GradingEngine(default_catalog())
    >>> sample = InspectionSample("B-001", "ORD-42", "Denim", 100, 150, 25)
    >>> report = engine.evaluate(sample)
    >>> print(f"Grade: {report.grade.value}")
"""

__version__ = "0.1.0"

# Grading
from .grading import (
    GradeClassifier,
    GradingEngine,
    QualityReport,
    build_report,
    evaluate,
    get_statistics,
    normalize_score,
    score_observations,
)

# Models
from .models import (
    DefectCatalog,
    DefectObservation,
    DefectTypeDefinition,
    Grade,
    GradingWarning,
    InMemoryDefectCatalog,
    InspectionSample,
    Position,
    Severity,
    WarningCode,
    default_catalog,
    load_catalog,
)

# Session
from .session import InspectionSession, SessionState

# Visualization
from .visualization import ReportVisualizer

# Configuration
from .config import QualityThresholds, Settings, get_settings

# Errors
from .exceptions import (
    CatalogError,
    FabricQualityError,
    FieldError,
    InspectionValidationError,
)

__all__ = [
    # Grading
    "GradeClassifier",
    "GradingEngine",
    "QualityReport",
    "build_report",
    "evaluate",
    "get_statistics",
    "normalize_score",
    "score_observations",
    # Models
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
    "load_catalog",
    # Session
    "InspectionSession",
    "SessionState",
    # Visualization
    "ReportVisualizer",
    # Configuration
    "QualityThresholds",
    "Settings",
    "get_settings",
    # Errors
    "CatalogError",
    "FabricQualityError",
    "FieldError",
    "InspectionValidationError",
]
