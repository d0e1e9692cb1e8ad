"""Grading module for the fabric_quality package."""

from .classifier import Classification, GradeClassifier, GradeRule
from .engine import GradingEngine, evaluate, get_statistics
from .normalizer import NormalizedScore, normalize_score
from .report import DefectDescription, QualityReport, ReportHeader, build_report
from .scoring import (
    ObservationScore,
    ScoreAggregate,
    SeverityTally,
    score_observation,
    score_observations,
)

__all__ = [
    "Classification",
    "DefectDescription",
    "GradeClassifier",
    "GradeRule",
    "GradingEngine",
    "NormalizedScore",
    "ObservationScore",
    "QualityReport",
    "ReportHeader",
    "ScoreAggregate",
    "SeverityTally",
    "build_report",
    "evaluate",
    "get_statistics",
    "normalize_score",
    "score_observation",
    "score_observations",
]
