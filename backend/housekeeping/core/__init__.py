"""Scheduling core: scoring, room metadata, lifecycle and assignment."""

from .exceptions import HousekeepingError, InvalidTransitionError, InvalidRoomNumberError
from .scoring import (
    PriorityInput,
    FloorMatchInput,
    calculate_priority,
    calculate_floor_match,
    score_floor_match,
    get_priority_level,
)
from .rooms import RoomMetadataSource, RoomNumberConvention, extract_floor, determine_room_type
from .state_machine import TaskStateMachine, StateTransition

__all__ = [
    "HousekeepingError",
    "InvalidTransitionError",
    "InvalidRoomNumberError",
    "PriorityInput",
    "FloorMatchInput",
    "calculate_priority",
    "calculate_floor_match",
    "score_floor_match",
    "get_priority_level",
    "RoomMetadataSource",
    "RoomNumberConvention",
    "extract_floor",
    "determine_room_type",
    "TaskStateMachine",
    "StateTransition",
]
