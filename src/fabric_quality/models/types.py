"""
Data types for the fabric_quality package.

Defines core data structures used throughout the application.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from numbers import Real
from typing import Any, Optional, Union

from ..exceptions import FieldError

# Size assumed for a defect whose width/length was not measured (cm)
DEFAULT_DEFECT_SIZE = 5.0

DefectTypeId = Union[int, str]


def is_finite_number(value: Any) -> bool:
    """Check for a real, finite number (bools excluded)."""
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


class Severity(Enum):
    """Defect severity classes.

    Attributes:
        CRITICAL: Defect that makes the affected fabric unusable.
        MAJOR: Clearly visible defect that lowers the grade.
        MINOR: Small defect tolerated in limited numbers.
    """

    CRITICAL = "Critical"
    MAJOR = "Major"
    MINOR = "Minor"

    @classmethod
    def from_label(cls, label: str) -> "Severity":
        """Get Severity from its label or member name.

        Args:
            label: Label such as "Critical" or "MINOR".

        Returns:
            Corresponding Severity enum member.

        Raises:
            ValueError: If label is not a known severity.
        """
        for member in cls:
            if label.strip().lower() in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"Invalid severity: {label}")


class Position(Enum):
    """Where across the fabric width a defect was found."""

    LEFT_EDGE = "Left-edge"
    RIGHT_EDGE = "Right-edge"
    CENTER = "Center"
    FULL_WIDTH = "Full-width"

    @classmethod
    def parse(cls, label: Optional[str]) -> Optional["Position"]:
        """Parse a free-text position label.

        Accepts the enum value, the member name, spaced or underscored
        variants ("left edge", "LEFT_EDGE") and the labels used by the
        legacy inspection screen ("Orta", "Sol Kenar", "Sağ Kenar").

        Args:
            label: Position label. None or a non-string value gives None.

        Returns:
            Matching Position, or None if the label is unknown.
        """
        if not isinstance(label, str):
            return None
        key = label.strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if key == member.value.lower():
                return member
        return _LEGACY_POSITION_LABELS.get(key)


_LEGACY_POSITION_LABELS = {
    "orta": Position.CENTER,
    "sol-kenar": Position.LEFT_EDGE,
    "sağ-kenar": Position.RIGHT_EDGE,
    "sag-kenar": Position.RIGHT_EDGE,
}


class Grade(Enum):
    """Fabric quality grades, best first.

    Attributes:
        A1: First quality.
        A2: Second quality.
        B: Third quality (catch-all).
    """

    A1 = "A1"
    A2 = "A2"
    B = "B"

    @property
    def rank(self) -> int:
        """Ordinal position, 0 for the best grade."""
        return list(Grade).index(self)

    @property
    def description(self) -> str:
        """Human-readable quality name."""
        return _GRADE_DESCRIPTIONS[self]

    def is_worse_than(self, other: "Grade") -> bool:
        """Check whether this grade is strictly worse than another."""
        return self.rank > other.rank


_GRADE_DESCRIPTIONS = {
    Grade.A1: "First quality",
    Grade.A2: "Second quality",
    Grade.B: "Third quality",
}


class WarningCode(Enum):
    """Kinds of non-fatal conditions reported alongside a grade."""

    UNKNOWN_DEFECT_TYPE = "unknown_defect_type"
    DEGENERATE_LENGTH_FALLBACK = "degenerate_length_fallback"


@dataclass(frozen=True)
class GradingWarning:
    """Non-fatal condition found during evaluation.

    Attributes:
        code: Kind of warning.
        message: Human-readable explanation.
        observation_id: Observation the warning refers to, if any.
    """

    code: WarningCode
    message: str
    observation_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "observation_id": self.observation_id,
        }


@dataclass(frozen=True)
class DefectTypeDefinition:
    """Catalog entry for one kind of fabric defect.

    Attributes:
        id: Catalog identifier referenced by observations.
        code: Unique human label (e.g. "DEF-008").
        name: Defect name.
        severity: Severity class of the defect.
        base_points: Points before size and position adjustment.
        description: Longer explanation for inspectors.
    """

    id: DefectTypeId
    code: str
    name: str
    severity: Severity
    base_points: float
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DefectTypeDefinition":
        """Create a definition from a plain mapping (e.g. parsed JSON).

        Args:
            data: Mapping with id, code, name, severity, base_points and
                optional description.

        Returns:
            DefectTypeDefinition instance.
        """
        severity = data["severity"]
        if not isinstance(severity, Severity):
            severity = Severity.from_label(str(severity))
        return cls(
            id=data["id"],
            code=str(data["code"]),
            name=str(data["name"]),
            severity=severity,
            base_points=float(data["base_points"]),
            description=str(data.get("description", "")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "severity": self.severity.value,
            "base_points": self.base_points,
            "description": self.description,
        }


@dataclass
class DefectObservation:
    """One defect found on an inspected roll.

    Severity is not stored here; it is taken from the catalog at scoring
    time.

    Attributes:
        id: Identifier, stable within an inspection session.
        defect_type_id: Catalog reference, may not resolve.
        position: Where across the width the defect is.
        length_offset: Distance along the roll (m) where it was found.
        width: Defect width (cm); None or 0 means not measured.
        length: Defect length (cm); None or 0 means not measured.
        notes: Free-text inspector note.
    """

    id: str
    defect_type_id: DefectTypeId
    position: Union[Position, str] = Position.CENTER
    length_offset: float = 0.0
    width: Optional[float] = None
    length: Optional[float] = None
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate observation after initialization."""
        if isinstance(self.position, str):
            parsed = Position.parse(self.position)
            if parsed is not None:
                self.position = parsed
        if self.length_offset is None:
            self.length_offset = 0.0
        if not is_finite_number(self.length_offset):
            raise ValueError(f"length_offset must be a finite number, got {self.length_offset!r}")
        if self.length_offset < 0:
            raise ValueError(f"length_offset must be non-negative, got {self.length_offset}")
        for name in ("width", "length"):
            value = getattr(self, name)
            if value is None:
                continue
            if not is_finite_number(value):
                raise ValueError(f"Defect {name} must be a finite number, got {value!r}")
            if value < 0:
                raise ValueError(f"Defect {name} must be non-negative, got {value}")

    @property
    def position_label(self) -> str:
        """Position as displayed in reports."""
        if isinstance(self.position, Position):
            return self.position.value
        return str(self.position)

    @property
    def is_measured(self) -> bool:
        """Whether both dimensions were recorded."""
        return bool(self.width) and bool(self.length)

    def dimensions(
        self,
        default_width: float = DEFAULT_DEFECT_SIZE,
        default_length: float = DEFAULT_DEFECT_SIZE,
    ) -> tuple[float, float]:
        """Get (width, length), substituting defaults for unmeasured sides.

        Args:
            default_width: Width used when none was recorded.
            default_length: Length used when none was recorded.

        Returns:
            Effective (width, length).
        """
        return (self.width or default_width, self.length or default_length)

    @property
    def area(self) -> float:
        """Defect area (cm2), 5x5 when not measured."""
        width, length = self.dimensions()
        return width * length

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DefectObservation":
        return cls(
            id=str(data["id"]),
            defect_type_id=data["defect_type_id"],
            position=data.get("position", Position.CENTER),
            length_offset=data.get("length_offset") or 0.0,
            width=data.get("width"),
            length=data.get("length"),
            notes=data.get("notes") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "defect_type_id": self.defect_type_id,
            "position": self.position_label,
            "length_offset": self.length_offset,
            "width": self.width,
            "length": self.length,
            "area": self.area,
            "notes": self.notes,
        }


@dataclass
class InspectionSample:
    """The fabric roll under inspection and its observed defects.

    Attributes:
        batch_number: Production batch identifier.
        order_reference: Order the roll belongs to.
        fabric_type: Fabric type name or code.
        total_length: Roll length (m).
        total_width: Roll width (cm).
        weight: Roll weight (kg).
        notes: Free-text inspection note.
        observations: Defects in the order they were recorded.
    """

    batch_number: str
    order_reference: str
    fabric_type: str
    total_length: float
    total_width: float
    weight: float
    notes: str = ""
    observations: list[DefectObservation] = field(default_factory=list)

    def validate(self, strict_length: bool = True) -> list[FieldError]:
        """Check the sample for problems that block evaluation.

        Args:
            strict_length: Also require total_length > 0.

        Returns:
            List of field errors, empty if the sample is valid.
        """
        errors: list[FieldError] = []

        for name in ("batch_number", "order_reference", "fabric_type"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                errors.append(FieldError(name, "is required", value))

        for name in ("total_length", "total_width", "weight"):
            value = getattr(self, name)
            # without strict_length a missing or non-positive length is left to the fallback
            lenient = name == "total_length" and not strict_length
            if value is None:
                if not lenient:
                    errors.append(FieldError(name, "is required", value))
            elif not is_finite_number(value):
                errors.append(FieldError(name, "must be a finite number", value))
            elif value <= 0 and not lenient:
                errors.append(FieldError(name, "must be greater than 0", value))

        return errors

    def snapshot(self) -> "InspectionSample":
        """Copy the sample and its observations for an isolated evaluation."""
        return replace(
            self, observations=[replace(obs) for obs in self.observations]
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InspectionSample":
        """Create a sample from a plain mapping (e.g. parsed JSON).

        Args:
            data: Mapping with the sample fields and an optional
                "observations" list.

        Returns:
            InspectionSample instance.
        """
        return cls(
            batch_number=data.get("batch_number", ""),
            order_reference=data.get("order_reference", ""),
            fabric_type=data.get("fabric_type", ""),
            total_length=data.get("total_length"),
            total_width=data.get("total_width"),
            weight=data.get("weight"),
            notes=data.get("notes") or "",
            observations=[
                DefectObservation.from_dict(item) for item in data.get("observations", [])
            ],
        )

    def to_dict(self) -> dict:
        return {
            "batch_number": self.batch_number,
            "order_reference": self.order_reference,
            "fabric_type": self.fabric_type,
            "total_length": self.total_length,
            "total_width": self.total_width,
            "weight": self.weight,
            "notes": self.notes,
            "observations": [obs.to_dict() for obs in self.observations],
        }
