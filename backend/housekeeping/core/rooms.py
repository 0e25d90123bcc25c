"""Room metadata derived from the room number.

The digit convention (floor = room // 100, type from the last two digits)
stands in for a property-management lookup. The scheduler only talks to
``RoomMetadataSource`` so a real source can replace it.
"""

from typing import Iterable, Optional, Protocol

from ..config import get_settings
from ..models import RoomType
from .exceptions import InvalidRoomNumberError


class RoomMetadataSource(Protocol):
    """Resolves the floor and room type for a room number."""

    def floor_for(self, room_number: str) -> int:
        ...

    def room_type_for(self, room_number: str) -> RoomType:
        ...


def _parse(room_number: str) -> int:
    value = room_number.strip() if isinstance(room_number, str) else ""
    # isdigit() also accepts superscripts that int() rejects
    if not value.isdecimal():
        raise InvalidRoomNumberError(room_number)
    return int(value)


def extract_floor(room_number: str) -> int:
    """Floor is the room number divided by 100: "412" -> 4, "1201" -> 12."""
    return _parse(room_number) // 100


def determine_room_type(
    room_number: str,
    suite_suffixes: Iterable[int] = (1,),
    deluxe_range: tuple = (2, 5),
) -> RoomType:
    """Room type from the last two digits of the room number."""
    _parse(room_number)
    last_two = int(room_number.strip()[-2:])

    if last_two in set(suite_suffixes):
        return RoomType.SUITE
    if deluxe_range[0] <= last_two <= deluxe_range[1]:
        return RoomType.DELUXE
    return RoomType.STANDARD


class RoomNumberConvention:
    """Default metadata source using the numeric room-number convention."""

    def __init__(
        self,
        suite_suffixes: Optional[Iterable[int]] = None,
        deluxe_range: Optional[tuple] = None,
    ):
        settings = get_settings()
        self.suite_suffixes = frozenset(
            suite_suffixes if suite_suffixes is not None else settings.suite_suffixes
        )
        self.deluxe_range = deluxe_range or (
            settings.deluxe_suffix_min,
            settings.deluxe_suffix_max,
        )

    def floor_for(self, room_number: str) -> int:
        return extract_floor(room_number)

    def room_type_for(self, room_number: str) -> RoomType:
        return determine_room_type(room_number, self.suite_suffixes, self.deluxe_range)
