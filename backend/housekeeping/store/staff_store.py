"""In-memory store for housekeeping staff."""

import threading
from typing import Optional, List, Dict, Iterable

from ..core.exceptions import InvalidTransitionError
from ..models import Housekeeper, StaffStatus, is_available_for_assignment


# Demo roster, floors 4/5/7/8 with one housekeeper on break
DEFAULT_ROSTER = [
    ("hk_maria", "Maria Santos", 4, StaffStatus.AVAILABLE),
    ("hk_jun", "Jun Park", 4, StaffStatus.AVAILABLE),
    ("hk_sarah", "Sarah Johnson", 5, StaffStatus.AVAILABLE),
    ("hk_david", "David Chen", 5, StaffStatus.AVAILABLE),
    ("hk_anna", "Anna Kowalski", 7, StaffStatus.AVAILABLE),
    ("hk_carlos", "Carlos Rivera", 7, StaffStatus.AVAILABLE),
    ("hk_lisa", "Lisa Thompson", 8, StaffStatus.BREAK),
    ("hk_michael", "Michael Brown", 8, StaffStatus.AVAILABLE),
]

# Statuses a supervisor may set directly; BUSY follows from workload
MANUAL_STATUSES = (StaffStatus.AVAILABLE, StaffStatus.BREAK, StaffStatus.OFF_DUTY)


class StaffStore:
    """Owns housekeepers, their availability, floor and workload counters."""

    def __init__(self, staff: Optional[Iterable[Housekeeper]] = None):
        self._staff: Dict[str, Housekeeper] = {}
        self._lock = threading.RLock()
        for member in staff or []:
            self.add(member)

    def add(self, member: Housekeeper) -> Housekeeper:
        """Register a pre-provisioned housekeeper."""
        with self._lock:
            self._staff[member.id] = member
            return member

    def register(
        self,
        staff_id: str,
        name: str,
        current_floor: int,
        status: StaffStatus = StaffStatus.AVAILABLE,
    ) -> Housekeeper:
        return self.add(
            Housekeeper(id=staff_id, name=name, current_floor=current_floor, status=status)
        )

    def seed_defaults(self):
        """Load the demo roster."""
        for staff_id, name, floor, status in DEFAULT_ROSTER:
            self.register(staff_id, name, floor, status)

    def get(self, staff_id: str) -> Optional[Housekeeper]:
        with self._lock:
            return self._staff.get(staff_id)

    def get_all(self) -> List[Housekeeper]:
        with self._lock:
            return list(self._staff.values())

    def get_available(self) -> List[Housekeeper]:
        """Staff that can be paired onto a task, in registration order."""
        return [s for s in self.get_all() if is_available_for_assignment(s)]

    def get_by_status(self, status: StaffStatus) -> List[Housekeeper]:
        return [s for s in self.get_all() if s.status == status]

    def update_status(self, staff_id: str, status: StaffStatus) -> Optional[Housekeeper]:
        """
        Set a housekeeper's status by hand (break, off duty, back on shift).

        Raises InvalidTransitionError when asked to set BUSY directly, or to
        mark someone AVAILABLE while they still hold a room.
        """
        with self._lock:
            member = self._staff.get(staff_id)
            if not member:
                return None

            status = StaffStatus(status)
            if status not in MANUAL_STATUSES:
                raise InvalidTransitionError(staff_id, member.status.value, status.value)
            if status == StaffStatus.AVAILABLE and member.assigned_rooms > 0:
                raise InvalidTransitionError(staff_id, member.status.value, status.value)

            member.status = status
            return member

    def update_floor(self, staff_id: str, floor: int) -> Optional[Housekeeper]:
        with self._lock:
            member = self._staff.get(staff_id)
            if not member:
                return None
            member.current_floor = floor
            return member

    def assign_room(self, staff_ids: List[str], floor: int):
        """Bind housekeepers to a room: busy, one more room, moved to its floor."""
        with self._lock:
            for staff_id in staff_ids:
                member = self._staff.get(staff_id)
                if member:
                    member.assigned_rooms += 1
                    member.status = StaffStatus.BUSY
                    member.current_floor = floor

    def complete_room(self, staff_ids: List[str]):
        """
        Release housekeepers from a finished room.

        Floor is left where the job was. Someone who went on break mid-room
        stays on break.
        """
        with self._lock:
            for staff_id in staff_ids:
                member = self._staff.get(staff_id)
                if member:
                    member.assigned_rooms = max(0, member.assigned_rooms - 1)
                    member.rooms_completed += 1
                    if member.assigned_rooms == 0 and member.status == StaffStatus.BUSY:
                        member.status = StaffStatus.AVAILABLE

    def get_counts(self) -> Dict[str, int]:
        """Get count of staff by status."""
        counts = {status.value: 0 for status in StaffStatus}
        with self._lock:
            for member in self._staff.values():
                counts[member.status.value] += 1
        return counts

    def clear(self):
        with self._lock:
            self._staff.clear()

    def __len__(self) -> int:
        return len(self._staff)
