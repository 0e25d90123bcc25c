"""In-memory stores owned by the scheduler."""

from .task_store import TaskStore
from .staff_store import StaffStore, DEFAULT_ROSTER
from .intelligence_store import IntelligenceStore, IntelligenceLookup

__all__ = [
    "TaskStore",
    "StaffStore",
    "DEFAULT_ROSTER",
    "IntelligenceStore",
    "IntelligenceLookup",
]
