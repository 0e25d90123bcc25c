"""Housekeeping task model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List

from .base import utcnow, isoformat_or_none


class RoomType(str, Enum):
    """Room type classification for priority scoring."""

    SUITE = "suite"
    DELUXE = "deluxe"
    STANDARD = "standard"


class TaskStatus(str, Enum):
    """Task lifecycle states."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class PriorityLevel(str, Enum):
    """Priority level derived from the numeric score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class HousekeepingTask:
    """One room's cleaning obligation, created from a checkout event."""

    id: str
    room_number: str
    floor: int
    room_type: RoomType
    checkout_time: datetime

    # Scoring (computed once at creation)
    priority: int
    priority_level: PriorityLevel

    # Incoming guest
    next_arrival: Optional[datetime] = None
    next_guest_vip: bool = False
    next_guest_name: Optional[str] = None
    next_guest_preferences: Optional[List[str]] = None

    # Assignment
    assigned_to: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING

    # Timing
    created_at: datetime = field(default_factory=utcnow)
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        """Task holds staff (assigned or being cleaned)."""
        return self.status in (TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "room_number": self.room_number,
            "floor": self.floor,
            "room_type": self.room_type.value,
            "checkout_time": self.checkout_time.isoformat(),
            "next_arrival": isoformat_or_none(self.next_arrival),
            "next_guest_vip": self.next_guest_vip,
            "next_guest_name": self.next_guest_name,
            "next_guest_preferences": self.next_guest_preferences,
            "priority": self.priority,
            "priority_level": self.priority_level.value,
            "assigned_to": list(self.assigned_to),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "assigned_at": isoformat_or_none(self.assigned_at),
            "started_at": isoformat_or_none(self.started_at),
            "completed_at": isoformat_or_none(self.completed_at),
        }
