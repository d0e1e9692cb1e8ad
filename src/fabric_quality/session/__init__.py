"""Session module for the fabric_quality package."""

from .inspection_session import InspectionSession, SessionState

__all__ = ["InspectionSession", "SessionState"]
