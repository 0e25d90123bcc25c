"""Priority scoring and floor matching for housekeeping tasks."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..models import RoomType, PriorityLevel
from ..models.base import as_utc, utcnow


# Additive weights, no normalization
BASE_SCORE = 10
ROOM_TYPE_BONUS = {
    RoomType.SUITE: 30,
    RoomType.DELUXE: 15,
    RoomType.STANDARD: 0,
}
VIP_ARRIVING_BONUS = 20
ARRIVAL_URGENT_BONUS = 20
URGENT_ARRIVAL_WINDOW = timedelta(hours=2)

# Floor proximity bonuses (ranking signal only, never stored on a task)
SAME_FLOOR_BONUS = 50
ADJACENT_FLOOR_BONUS = 25

# Level thresholds
HIGH_PRIORITY_THRESHOLD = 80
MEDIUM_PRIORITY_THRESHOLD = 50


@dataclass(frozen=True)
class PriorityInput:
    """Task attributes that feed the priority score."""

    room_type: RoomType
    next_guest_vip: bool = False
    next_arrival: Optional[datetime] = None


@dataclass(frozen=True)
class FloorMatchInput:
    """Floors compared when ranking a housekeeper for a task."""

    task_floor: int
    housekeeper_floor: int


def is_arrival_urgent(next_arrival: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when the arrival falls strictly inside the next two hours."""
    if next_arrival is None:
        return False
    now = as_utc(now) if now else utcnow()
    until_arrival = as_utc(next_arrival) - now
    return timedelta(0) < until_arrival < URGENT_ARRIVAL_WINDOW


def calculate_priority(priority_input: PriorityInput, now: Optional[datetime] = None) -> int:
    """
    Calculate priority score for a housekeeping task.

    Score = base + room type bonus + VIP bonus + urgency bonus.
    Higher scores indicate higher priority. Pass ``now`` to freeze the clock.
    """
    score = BASE_SCORE
    score += ROOM_TYPE_BONUS.get(RoomType(priority_input.room_type), 0)

    if priority_input.next_guest_vip:
        score += VIP_ARRIVING_BONUS

    if is_arrival_urgent(priority_input.next_arrival, now):
        score += ARRIVAL_URGENT_BONUS

    return score


def calculate_floor_match(task_floor: int, staff_floor: int) -> int:
    """Floor proximity bonus: same floor 50, adjacent floor 25, otherwise 0."""
    floor_difference = abs(task_floor - staff_floor)

    if floor_difference == 0:
        return SAME_FLOOR_BONUS
    if floor_difference == 1:
        return ADJACENT_FLOOR_BONUS
    return 0


def score_floor_match(match: FloorMatchInput) -> int:
    """Floor proximity bonus for one housekeeper and task pair."""
    return calculate_floor_match(match.task_floor, match.housekeeper_floor)


def get_priority_level(score: int) -> PriorityLevel:
    """Convert numeric priority score to a priority level."""
    if score >= HIGH_PRIORITY_THRESHOLD:
        return PriorityLevel.HIGH
    if score >= MEDIUM_PRIORITY_THRESHOLD:
        return PriorityLevel.MEDIUM
    return PriorityLevel.LOW
