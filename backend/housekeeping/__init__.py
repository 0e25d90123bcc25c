"""Housekeeping task scheduling and staff assignment engine."""

from .core.orchestrator import HousekeepingEngine
from .core.assignment import AssignmentEngine
from .store import TaskStore, StaffStore, IntelligenceStore

__all__ = [
    "HousekeepingEngine",
    "AssignmentEngine",
    "TaskStore",
    "StaffStore",
    "IntelligenceStore",
]
