"""In-memory models for the housekeeping scheduler."""

from .base import utcnow
from .task import HousekeepingTask, TaskStatus, RoomType, PriorityLevel
from .staff import Housekeeper, StaffStatus, is_available_for_assignment
from .intelligence import GuestIntelligence

__all__ = [
    "utcnow",
    "HousekeepingTask",
    "TaskStatus",
    "RoomType",
    "PriorityLevel",
    "Housekeeper",
    "StaffStatus",
    "is_available_for_assignment",
    "GuestIntelligence",
]
