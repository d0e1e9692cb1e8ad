"""
Defect catalog.

Provides the lookup interface the grading engine depends on, an
in-memory implementation validated at load time, and the built-in
catalog of standard woven-fabric defects.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import CatalogError
from .types import DefectTypeDefinition, DefectTypeId, Severity

logger = logging.getLogger(__name__)


class DefectCatalog(ABC):
    """Abstract base class for defect catalogs.

    Defines the interface that all catalog implementations must follow.
    A database-backed or remote catalog only needs to implement these.
    """

    @abstractmethod
    def lookup(self, defect_type_id: DefectTypeId) -> Optional[DefectTypeDefinition]:
        """Resolve a defect type.

        Args:
            defect_type_id: Identifier referenced by an observation.

        Returns:
            The definition, or None if the id is unknown.
        """
        pass

    @abstractmethod
    def __iter__(self) -> Iterator[DefectTypeDefinition]:
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def __contains__(self, defect_type_id: DefectTypeId) -> bool:
        return self.lookup(defect_type_id) is not None


class InMemoryDefectCatalog(DefectCatalog):
    """Defect catalog held in memory.

    Definitions are validated once when the catalog is built: ids and
    codes must be unique and base points must be positive.

    Example:
        >>> catalog = InMemoryDefectCatalog(default_definitions())
        >>> catalog.lookup(8).name
        'Hole'
    """

    def __init__(self, definitions: Iterable[DefectTypeDefinition]) -> None:
        """Initialize and validate the catalog.

        Args:
            definitions: Defect type definitions.

        Raises:
            CatalogError: If ids or codes repeat, or base points are not positive.
        """
        self._by_id: dict[DefectTypeId, DefectTypeDefinition] = {}
        self._by_code: dict[str, DefectTypeDefinition] = {}

        for definition in definitions:
            if definition.base_points <= 0:
                raise CatalogError(
                    f"Defect type {definition.code} must have positive base points, "
                    f"got {definition.base_points}"
                )
            if definition.id in self._by_id:
                raise CatalogError(f"Duplicate defect type id: {definition.id}")
            if definition.code in self._by_code:
                raise CatalogError(f"Duplicate defect type code: {definition.code}")
            self._by_id[definition.id] = definition
            self._by_code[definition.code] = definition

        logger.debug("Loaded defect catalog with %d definitions", len(self._by_id))

    def lookup(self, defect_type_id: DefectTypeId) -> Optional[DefectTypeDefinition]:
        definition = self._by_id.get(defect_type_id)
        if definition is None and isinstance(defect_type_id, str) and defect_type_id.isdigit():
            # ids arriving as strings from JSON forms
            definition = self._by_id.get(int(defect_type_id))
        return definition

    def by_code(self, code: str) -> Optional[DefectTypeDefinition]:
        """Resolve a defect type by its human code (e.g. "DEF-008")."""
        return self._by_code.get(code)

    def by_severity(self, severity: Severity) -> list[DefectTypeDefinition]:
        """Get all definitions of one severity class."""
        return [d for d in self._by_id.values() if d.severity == severity]

    def __iter__(self) -> Iterator[DefectTypeDefinition]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "InMemoryDefectCatalog":
        """Build a catalog from plain mappings.

        Args:
            records: Mappings accepted by DefectTypeDefinition.from_dict.

        Returns:
            Validated catalog.

        Raises:
            CatalogError: If a record is malformed or definitions conflict.
        """
        definitions = []
        for index, record in enumerate(records):
            try:
                definitions.append(DefectTypeDefinition.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                raise CatalogError(f"Invalid defect type record #{index}: {e}") from e
        return cls(definitions)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemoryDefectCatalog":
        """Load a catalog from a JSON file.

        The file holds either a list of records or an object with a
        "defect_types" list.

        Args:
            path: Path to the JSON file.

        Returns:
            Validated catalog.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            CatalogError: If the content is not a valid catalog.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")

        with path.open(encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get("defect_types")
        if not isinstance(data, list):
            raise CatalogError(f"Catalog file {path} must contain a list of defect types")

        return cls.from_records(data)


def default_definitions() -> list[DefectTypeDefinition]:
    """Standard woven-fabric defect types used by the built-in catalog."""
    return [
        DefectTypeDefinition(1, "DEF-001", "Yarn Break", Severity.MAJOR, 5,
                             "Broken warp or weft yarns in the fabric"),
        DefectTypeDefinition(2, "DEF-002", "Stain", Severity.MAJOR, 4,
                             "Oil or other stains on the fabric surface"),
        DefectTypeDefinition(3, "DEF-003", "Shade Variation", Severity.MINOR, 2,
                             "Colour tone differences within the same batch"),
        DefectTypeDefinition(4, "DEF-004", "Pattern Defect", Severity.MAJOR, 4,
                             "Weave pattern faults or mismatches"),
        DefectTypeDefinition(5, "DEF-005", "Density Defect", Severity.MAJOR, 4,
                             "Deviation in threads per cm"),
        DefectTypeDefinition(6, "DEF-006", "Warp Streak", Severity.MINOR, 2,
                             "Warp yarns forming a visible line"),
        DefectTypeDefinition(7, "DEF-007", "Weft Streak", Severity.MINOR, 2,
                             "Weft yarns forming a visible line"),
        DefectTypeDefinition(8, "DEF-008", "Hole", Severity.CRITICAL, 10,
                             "Hole or tear in the fabric"),
        DefectTypeDefinition(9, "DEF-009", "Selvedge Defect", Severity.MAJOR, 3,
                             "Damaged or irregular fabric edges"),
        DefectTypeDefinition(10, "DEF-010", "Herringbone", Severity.MINOR, 2,
                             "Occasional herringbone weaving fault"),
        DefectTypeDefinition(11, "DEF-011", "Uneven Yarn", Severity.MINOR, 2,
                             "Irregular yarn thickness"),
        DefectTypeDefinition(12, "DEF-012", "Soiling", Severity.MINOR, 2,
                             "Dirt or foreign matter on the surface"),
        DefectTypeDefinition(13, "DEF-013", "Skew", Severity.MAJOR, 3,
                             "Fabric grain running off direction"),
        DefectTypeDefinition(14, "DEF-014", "Crease", Severity.MINOR, 1,
                             "Crease that cannot be pressed out"),
        DefectTypeDefinition(15, "DEF-015", "Width Defect", Severity.MAJOR, 4,
                             "Woven outside the specified width"),
        DefectTypeDefinition(16, "DEF-016", "Knot", Severity.MINOR, 2,
                             "Yarn knots on the fabric surface"),
        DefectTypeDefinition(17, "DEF-017", "Weave Slippage", Severity.MAJOR, 4,
                             "Slippage in the weave structure"),
        DefectTypeDefinition(18, "DEF-018", "Thick/Thin Place", Severity.MAJOR, 4,
                             "Areas woven too dense or too sparse"),
        DefectTypeDefinition(19, "DEF-019", "Float", Severity.MINOR, 1,
                             "Yarns floating across the surface"),
        DefectTypeDefinition(20, "DEF-020", "Large Tear", Severity.CRITICAL, 15,
                             "Large tear or damage in the fabric"),
    ]


def default_catalog() -> InMemoryDefectCatalog:
    """Get the built-in defect catalog.

    Returns:
        Catalog with the 20 standard defect types.
    """
    return InMemoryDefectCatalog(default_definitions())


def load_catalog(path: Optional[Union[str, Path]] = None) -> InMemoryDefectCatalog:
    """Load a catalog from a JSON file, or the built-in one if no path is given."""
    if path is None:
        return default_catalog()
    return InMemoryDefectCatalog.from_json(path)
