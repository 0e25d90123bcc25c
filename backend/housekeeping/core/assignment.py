"""Pair assignment of housekeepers to tasks by floor proximity."""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, List, Dict, Optional, Any, Callable

import structlog

from ..models import Housekeeper, HousekeepingTask, TaskStatus, utcnow
from .scoring import FloorMatchInput, score_floor_match, SAME_FLOOR_BONUS, ADJACENT_FLOOR_BONUS

if TYPE_CHECKING:
    from ..store import TaskStore, StaffStore

logger = structlog.get_logger(__name__)

# Housekeepers clean in pairs
PAIR_SIZE = 2

# Assignments kept for stats; older records drop off
ASSIGNMENT_HISTORY_LIMIT = 1000


@dataclass
class StaffCandidate:
    """A housekeeper ranked for a task."""

    housekeeper: Housekeeper
    floor_bonus: int


@dataclass
class Assignment:
    """Assignment result."""

    task_id: str
    staff_ids: List[str]
    floor_bonuses: List[int]
    reasoning: str
    assigned_at: datetime = field(default_factory=utcnow)


class AssignmentEngine:
    """
    Binds the best available pair of housekeepers to a pending task.

    Ranking is greedy and local to one task: every available housekeeper is
    scored by floor match, sorted descending (ties keep roster order), and
    the top pair is taken. Reading staff, deciding and mutating both stores
    happen under one lock so two concurrent calls cannot pick the same
    housekeeper.
    """

    def __init__(
        self,
        task_store: "TaskStore",
        staff_store: "StaffStore",
        lock: Optional[threading.RLock] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.task_store = task_store
        self.staff_store = staff_store
        self.lock = lock or threading.RLock()
        self.clock = clock or utcnow
        self.assignment_history: deque = deque(maxlen=ASSIGNMENT_HISTORY_LIMIT)

    def rank_staff(
        self,
        task: HousekeepingTask,
        staff_list: List[Housekeeper],
    ) -> List[StaffCandidate]:
        """Rank housekeepers for a task, best floor match first."""
        scored = [
            StaffCandidate(
                housekeeper=member,
                floor_bonus=score_floor_match(
                    FloorMatchInput(task_floor=task.floor, housekeeper_floor=member.current_floor)
                ),
            )
            for member in staff_list
        ]
        # sorted() is stable, so equal bonuses keep roster order
        return sorted(scored, key=lambda c: c.floor_bonus, reverse=True)

    def select_pair(
        self,
        task: HousekeepingTask,
        available: List[Housekeeper],
    ) -> Optional[List[StaffCandidate]]:
        """Top-ranked pair, or None when too few housekeepers are free."""
        if len(available) < PAIR_SIZE:
            return None
        return self.rank_staff(task, available)[: PAIR_SIZE]

    def auto_assign(self, task_id: str) -> bool:
        """
        Assign the best available pair to a pending task.

        Returns:
            True if an assignment was made. False when the task is missing,
            no longer pending, or fewer than two housekeepers are available;
            in the last case the task stays pending for a later re-scan.
        """
        with self.lock:
            task = self.task_store.get(task_id)
            if not task or task.status != TaskStatus.PENDING:
                return False

            available = self.staff_store.get_available()
            pair = self.select_pair(task, available)
            if pair is None:
                logger.info(
                    "assignment_deferred",
                    task_id=task_id,
                    room_number=task.room_number,
                    available_staff=len(available),
                )
                return False

            staff_ids = [c.housekeeper.id for c in pair]
            now = self.clock()
            self.task_store.assign(task_id, staff_ids, now=now)
            self.staff_store.assign_room(staff_ids, task.floor)

            assignment = Assignment(
                task_id=task_id,
                staff_ids=staff_ids,
                floor_bonuses=[c.floor_bonus for c in pair],
                reasoning=self._explain_assignment(task, pair),
                assigned_at=now,
            )
            self.assignment_history.append(assignment)

        logger.info(
            "task_assigned",
            task_id=task_id,
            room_number=task.room_number,
            staff_ids=staff_ids,
            reasoning=assignment.reasoning,
        )
        return True

    def assign_pending(self) -> List[str]:
        """
        Retry every pending task, highest priority first.

        Stops early once fewer than two housekeepers remain free.
        """
        assigned = []
        with self.lock:
            for task in self.task_store.get_pending():
                if len(self.staff_store.get_available()) < PAIR_SIZE:
                    break
                if self.auto_assign(task.id):
                    assigned.append(task.id)
        return assigned

    def _explain_assignment(
        self,
        task: HousekeepingTask,
        pair: List[StaffCandidate],
    ) -> str:
        """Generate human-readable explanation for an assignment."""
        reasons = []
        for candidate in pair:
            if candidate.floor_bonus == SAME_FLOOR_BONUS:
                reason = f"on floor {task.floor}"
            elif candidate.floor_bonus == ADJACENT_FLOOR_BONUS:
                reason = "adjacent floor"
            else:
                reason = "best available"
            reasons.append(f"{candidate.housekeeper.name}: {reason}")
        return "; ".join(reasons)

    def get_assignment_stats(self) -> Dict[str, Any]:
        """Get statistics about assignments."""
        if not self.assignment_history:
            return {
                "total_assignments": 0,
                "same_floor_rate": 0.0,
                "assignments_by_staff": {},
            }

        by_staff: Dict[str, int] = {}
        bonuses = []
        for a in self.assignment_history:
            bonuses.extend(a.floor_bonuses)
            for staff_id in a.staff_ids:
                by_staff[staff_id] = by_staff.get(staff_id, 0) + 1

        same_floor = sum(1 for b in bonuses if b == SAME_FLOOR_BONUS)
        return {
            "total_assignments": len(self.assignment_history),
            "same_floor_rate": same_floor / len(bonuses),
            "assignments_by_staff": by_staff,
        }
