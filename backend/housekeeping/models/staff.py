"""Housekeeper staff model."""

from dataclasses import dataclass
from enum import Enum


class StaffStatus(str, Enum):
    """Staff availability status."""

    AVAILABLE = "available"
    BUSY = "busy"
    BREAK = "break"
    OFF_DUTY = "off_duty"


@dataclass
class Housekeeper:
    """Housekeeping staff member."""

    id: str
    name: str
    current_floor: int
    status: StaffStatus = StaffStatus.AVAILABLE

    # Workload tracking
    assigned_rooms: int = 0
    rooms_completed: int = 0
    avg_cleaning_time: float = 0.0  # minutes, informational

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "current_floor": self.current_floor,
            "status": self.status.value,
            "assigned_rooms": self.assigned_rooms,
            "rooms_completed": self.rooms_completed,
            "avg_cleaning_time": self.avg_cleaning_time,
        }


def is_available_for_assignment(staff: Housekeeper) -> bool:
    """Only staff explicitly marked available can be paired onto a task.

    busy, break and off_duty are all excluded.
    """
    return staff.status == StaffStatus.AVAILABLE
