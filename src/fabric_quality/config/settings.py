"""
Application settings using Pydantic Settings.

Provides centralized configuration management with environment variable support,
and the immutable ``QualityThresholds`` value handed to every grading call.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.types import Position


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables.
    Example: POINT_THRESHOLD_A1=8

    Attributes:
        point_threshold_a1: Maximum normalized score for grade A1.
        point_threshold_a2: Maximum normalized score for grade A2.
        critical_defect_limit_a1: Critical defects allowed for A1.
        critical_defect_limit_a2: Critical defects allowed for A2.
        major_defect_limit_a1: Major defects allowed for A1.
        major_defect_limit_a2: Major defects allowed for A2.
        minor_defect_limit_a1: Minor defects allowed for A1.
        minor_defect_limit_a2: Minor defects allowed for A2.
        center_position_factor: Multiplier for defects in the center.
        edge_position_factor: Multiplier for defects on either edge.
        full_width_position_factor: Multiplier for full-width defects.
        reference_area: Area at which the size factor equals 1.
        area_factor_constant: Global multiplier applied to every defect.
        default_defect_width: Width assumed when a defect is not measured.
        default_defect_length: Length assumed when a defect is not measured.
        normalization_basis: Roll length the score is normalized to.
        strict_length: Reject non-positive roll lengths instead of
            falling back to a length of 1.
        catalog_path: Optional JSON file with defect type definitions.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Grade point thresholds
    point_threshold_a1: float = Field(
        default=7.0,
        ge=0.0,
        description="Maximum normalized defect points for A1",
    )
    point_threshold_a2: float = Field(
        default=20.0,
        ge=0.0,
        description="Maximum normalized defect points for A2",
    )

    # Defect count limits
    critical_defect_limit_a1: int = Field(default=0, ge=0)
    critical_defect_limit_a2: int = Field(default=1, ge=0)
    major_defect_limit_a1: int = Field(default=2, ge=0)
    major_defect_limit_a2: int = Field(default=4, ge=0)
    minor_defect_limit_a1: int = Field(default=4, ge=0)
    minor_defect_limit_a2: int = Field(default=6, ge=0)

    # Scoring constants
    center_position_factor: float = Field(
        default=1.2,
        gt=0.0,
        description="Position factor for defects in the center of the width",
    )
    edge_position_factor: float = Field(
        default=0.8,
        gt=0.0,
        description="Position factor for defects on the left or right edge",
    )
    full_width_position_factor: float = Field(
        default=1.0,
        gt=0.0,
        description="Position factor for defects across the full width",
    )
    reference_area: float = Field(
        default=25.0,
        gt=0.0,
        description="Defect area (cm2) whose size factor is 1",
    )
    area_factor_constant: float = Field(
        default=1.5,
        gt=0.0,
        description="Multiplier applied to every defect's points",
    )
    default_defect_width: float = Field(default=5.0, gt=0.0)
    default_defect_length: float = Field(default=5.0, gt=0.0)

    # Normalization
    normalization_basis: float = Field(
        default=100.0,
        gt=0.0,
        description="Length (m) the total points are normalized to",
    )
    strict_length: bool = Field(
        default=True,
        description="Reject total_length <= 0 instead of using a length of 1",
    )

    # Catalog
    catalog_path: Optional[Path] = Field(
        default=None,
        description="JSON file with defect type definitions (built-in catalog if unset)",
    )

    @model_validator(mode="after")
    def _check_grade_ordering(self) -> "Settings":
        """Ensure A2 limits are never stricter than A1 limits."""
        check_grade_ordering(self)
        return self


GRADE_LIMIT_NAMES = (
    "point_threshold",
    "critical_defect_limit",
    "major_defect_limit",
    "minor_defect_limit",
)


def check_grade_ordering(limits: Union["Settings", "QualityThresholds"]) -> None:
    """Raise ValueError if any A2 limit is stricter than its A1 counterpart.

    Args:
        limits: Object with <name>_a1 / <name>_a2 attributes.
    """
    for name in GRADE_LIMIT_NAMES:
        a1_value = getattr(limits, f"{name}_a1")
        a2_value = getattr(limits, f"{name}_a2")
        if a2_value < a1_value:
            raise ValueError(
                f"{name}_a2 ({a2_value}) must not be stricter than {name}_a1 ({a1_value})"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses LRU cache to ensure only one Settings instance is created.

    Returns:
        Settings instance.
    """
    return Settings()


DEFAULT_POSITION_FACTORS: dict[Position, float] = {
    Position.LEFT_EDGE: 0.8,
    Position.RIGHT_EDGE: 0.8,
    Position.CENTER: 1.2,
    Position.FULL_WIDTH: 1.0,
}


@dataclass(frozen=True)
class QualityThresholds:
    """Grading limits and scoring constants for one fabric standard.

    Passed explicitly into every evaluation; the engine never mutates it.
    Different customers or fabric standards simply use different instances.

    Attributes:
        point_threshold_a1: Maximum normalized score for A1.
        point_threshold_a2: Maximum normalized score for A2.
        critical_defect_limit_a1: Critical defects allowed for A1.
        critical_defect_limit_a2: Critical defects allowed for A2.
        major_defect_limit_a1: Major defects allowed for A1.
        major_defect_limit_a2: Major defects allowed for A2.
        minor_defect_limit_a1: Minor defects allowed for A1.
        minor_defect_limit_a2: Minor defects allowed for A2.
        position_factors: Multiplier per defect position.
        reference_area: Area at which the size factor equals 1.
        area_factor_constant: Global multiplier applied to every defect.
        default_defect_width: Width assumed for unmeasured defects.
        default_defect_length: Length assumed for unmeasured defects.
        normalization_basis: Roll length the score is normalized to.
        strict_length: Reject non-positive roll lengths.
    """

    point_threshold_a1: float = 7.0
    point_threshold_a2: float = 20.0
    critical_defect_limit_a1: int = 0
    critical_defect_limit_a2: int = 1
    major_defect_limit_a1: int = 2
    major_defect_limit_a2: int = 4
    minor_defect_limit_a1: int = 4
    minor_defect_limit_a2: int = 6
    position_factors: dict[Position, float] = field(
        default_factory=lambda: dict(DEFAULT_POSITION_FACTORS)
    )
    reference_area: float = 25.0
    area_factor_constant: float = 1.5
    default_defect_width: float = 5.0
    default_defect_length: float = 5.0
    normalization_basis: float = 100.0
    strict_length: bool = True

    def __post_init__(self) -> None:
        """Validate thresholds after initialization."""
        for name in GRADE_LIMIT_NAMES:
            for grade in ("a1", "a2"):
                value = getattr(self, f"{name}_{grade}")
                if value < 0:
                    raise ValueError(f"{name}_{grade} must be non-negative, got {value}")
        check_grade_ordering(self)
        if self.reference_area <= 0:
            raise ValueError(f"reference_area must be positive, got {self.reference_area}")
        if self.normalization_basis <= 0:
            raise ValueError(
                f"normalization_basis must be positive, got {self.normalization_basis}"
            )
        if self.area_factor_constant <= 0:
            raise ValueError(
                f"area_factor_constant must be positive, got {self.area_factor_constant}"
            )
        if self.default_defect_width <= 0 or self.default_defect_length <= 0:
            raise ValueError("Default defect dimensions must be positive")
        for position, factor in self.position_factors.items():
            if factor <= 0:
                raise ValueError(f"Position factor for {position} must be positive, got {factor}")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "QualityThresholds":
        """Create thresholds from application settings.

        Args:
            settings: Settings instance. If None, uses default settings.

        Returns:
            QualityThresholds instance.
        """
        if settings is None:
            settings = get_settings()

        return cls(
            point_threshold_a1=settings.point_threshold_a1,
            point_threshold_a2=settings.point_threshold_a2,
            critical_defect_limit_a1=settings.critical_defect_limit_a1,
            critical_defect_limit_a2=settings.critical_defect_limit_a2,
            major_defect_limit_a1=settings.major_defect_limit_a1,
            major_defect_limit_a2=settings.major_defect_limit_a2,
            minor_defect_limit_a1=settings.minor_defect_limit_a1,
            minor_defect_limit_a2=settings.minor_defect_limit_a2,
            position_factors={
                Position.LEFT_EDGE: settings.edge_position_factor,
                Position.RIGHT_EDGE: settings.edge_position_factor,
                Position.CENTER: settings.center_position_factor,
                Position.FULL_WIDTH: settings.full_width_position_factor,
            },
            reference_area=settings.reference_area,
            area_factor_constant=settings.area_factor_constant,
            default_defect_width=settings.default_defect_width,
            default_defect_length=settings.default_defect_length,
            normalization_basis=settings.normalization_basis,
            strict_length=settings.strict_length,
        )

    def position_factor(self, position: Union[Position, str, None]) -> float:
        """Look up the multiplier for a defect position.

        Unknown or unparseable positions default to 1.0.

        Args:
            position: Position enum member or free-text label.

        Returns:
            Position factor.
        """
        resolved = position if isinstance(position, Position) else Position.parse(position)
        if resolved is None:
            return 1.0
        return self.position_factors.get(resolved, 1.0)
