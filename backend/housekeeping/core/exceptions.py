"""Scheduler exception hierarchy.

Only misuse is raised. Unknown ids come back as None and a shortage of staff
is reported through auto_assign's return value.
"""


class HousekeepingError(Exception):
    """Base class for scheduler errors."""


class InvalidTransitionError(HousekeepingError):
    """A status change that the lifecycle does not allow."""

    def __init__(self, entity_id: str, from_state: str, to_state: str):
        self.entity_id = entity_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Cannot move {entity_id} from '{from_state}' to '{to_state}'"
        )


class InvalidRoomNumberError(HousekeepingError, ValueError):
    """Room number does not follow the numeric convention."""

    def __init__(self, room_number: str):
        self.room_number = room_number
        super().__init__(f"Invalid room number: {room_number!r}")
