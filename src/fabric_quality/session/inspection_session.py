"""
Inspection session.

Keeps the roll being inspected, lets the inspector add, edit and remove
observations, and tracks whether the last report still matches them.
"""

from dataclasses import fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from ..grading.engine import GradingEngine
from ..grading.report import QualityReport
from ..models.types import DefectObservation, DefectTypeId, InspectionSample, Position


class SessionState(Enum):
    """Inspection session states.

    Attributes:
        EMPTY: No observations and no current report.
        HAS_DEFECTS: Observations recorded, report missing or stale.
        EVALUATED: Report matches the current observations.
    """

    EMPTY = "empty"
    HAS_DEFECTS = "has_defects"
    EVALUATED = "evaluated"


class InspectionSession:
    """Editable inspection of one roll.

    Any change to the observations or sample fields makes the current
    report stale; calling evaluate() again produces a fresh report. The
    session never finishes on its own; persisting it is up to the caller.

    Example:
        >>> session = InspectionSession(sample)
        >>> session.new_observation(defect_type_id=8, position=Position.CENTER)
        >>> report = session.evaluate(engine)
        >>> session.state
        <SessionState.EVALUATED: 'evaluated'>
    """

    def __init__(self, sample: InspectionSample, id_prefix: str = "D") -> None:
        """Initialize the session.

        Args:
            sample: Roll under inspection. The session edits it in place.
            id_prefix: Prefix for generated observation ids.
        """
        self._sample = sample
        self._id_prefix = id_prefix
        self._next_number = 1
        self._report: Optional[QualityReport] = None
        self._is_stale = True

    @property
    def sample(self) -> InspectionSample:
        """Get the roll under inspection."""
        return self._sample

    @property
    def observations(self) -> tuple[DefectObservation, ...]:
        """Get the recorded observations in order."""
        return tuple(self._sample.observations)

    @property
    def state(self) -> SessionState:
        """Get the current session state."""
        if self._report is not None and not self._is_stale:
            return SessionState.EVALUATED
        if self._sample.observations:
            return SessionState.HAS_DEFECTS
        return SessionState.EMPTY

    @property
    def report(self) -> Optional[QualityReport]:
        """Get the report if it matches the current observations, else None."""
        return None if self._is_stale else self._report

    @property
    def last_report(self) -> Optional[QualityReport]:
        """Get the most recent report, even if it is stale."""
        return self._report

    def new_observation(
        self,
        defect_type_id: DefectTypeId,
        position: Union[Position, str] = Position.CENTER,
        length_offset: float = 0.0,
        width: Optional[float] = None,
        length: Optional[float] = None,
        notes: str = "",
    ) -> DefectObservation:
        """Record a new observation with a generated id.

        Args:
            defect_type_id: Catalog reference.
            position: Where across the width the defect is.
            length_offset: Distance along the roll (m).
            width: Defect width (cm), None if not measured.
            length: Defect length (cm), None if not measured.
            notes: Free-text note.

        Returns:
            The recorded observation.
        """
        observation = DefectObservation(
            id=self._generate_id(),
            defect_type_id=defect_type_id,
            position=position,
            length_offset=length_offset,
            width=width,
            length=length,
            notes=notes,
        )
        return self.add_observation(observation)

    def add_observation(self, observation: DefectObservation) -> DefectObservation:
        """Record an observation.

        Args:
            observation: Observation to append.

        Returns:
            The recorded observation.

        Raises:
            ValueError: If an observation with the same id exists.
        """
        if any(obs.id == observation.id for obs in self._sample.observations):
            raise ValueError(f"Observation id already in session: {observation.id}")
        self._sample.observations.append(observation)
        self._invalidate()
        return observation

    def edit_observation(self, observation_id: str, **changes: Any) -> DefectObservation:
        """Change fields of a recorded observation.

        Args:
            observation_id: Id of the observation to edit.
            **changes: New field values; the id cannot be changed.

        Returns:
            The updated observation.

        Raises:
            KeyError: If no observation has that id.
            ValueError: If the changes are invalid.
            TypeError: If a changed field does not exist.
        """
        if "id" in changes:
            raise ValueError("Observation id cannot be changed")
        index = self._index_of(observation_id)
        updated = replace(self._sample.observations[index], **changes)
        self._sample.observations[index] = updated
        self._invalidate()
        return updated

    def remove_observation(self, observation_id: str) -> DefectObservation:
        """Delete a recorded observation.

        Args:
            observation_id: Id of the observation to remove.

        Returns:
            The removed observation.

        Raises:
            KeyError: If no observation has that id.
        """
        removed = self._sample.observations.pop(self._index_of(observation_id))
        self._invalidate()
        return removed

    def update_sample(self, **changes: Any) -> InspectionSample:
        """Change roll fields such as total_length or notes.

        Args:
            **changes: New values for InspectionSample fields.

        Returns:
            The updated sample.

        Raises:
            ValueError: If a field is unknown or is the observation list.
        """
        allowed = {f.name for f in fields(InspectionSample)} - {"observations"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Cannot update sample fields: {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            setattr(self._sample, name, value)
        self._invalidate()
        return self._sample

    def evaluate(
        self,
        engine: GradingEngine,
        evaluated_at: Optional[datetime] = None,
    ) -> QualityReport:
        """Grade the current snapshot of the roll.

        Args:
            engine: Grading engine to use.
            evaluated_at: Timestamp to stamp on the report.

        Returns:
            Fresh QualityReport.

        Raises:
            InspectionValidationError: If the sample is invalid. The
                session state is left unchanged.
        """
        report = engine.evaluate(self._sample.snapshot(), evaluated_at)
        self._report = report
        self._is_stale = False
        return report

    def _invalidate(self) -> None:
        self._is_stale = True

    def _index_of(self, observation_id: str) -> int:
        for index, obs in enumerate(self._sample.observations):
            if obs.id == observation_id:
                return index
        raise KeyError(f"Observation not found: {observation_id}")

    def _generate_id(self) -> str:
        taken = {obs.id for obs in self._sample.observations}
        while True:
            candidate = f"{self._id_prefix}-{self._next_number:04d}"
            self._next_number += 1
            if candidate not in taken:
                return candidate
