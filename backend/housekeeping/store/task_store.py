"""In-memory store for the housekeeping task queue."""

import threading
from datetime import datetime
from typing import Optional, List, Dict, Set, Callable

from ..core.exceptions import InvalidTransitionError
from ..core.scoring import PriorityInput, calculate_priority, get_priority_level
from ..core.state_machine import TaskStateMachine
from ..models import HousekeepingTask, TaskStatus, RoomType
from ..models.base import utcnow


class TaskStore:
    """
    Owns housekeeping tasks, their room index and status transitions.

    Every public method takes the store lock, so single calls are atomic.
    Multi-store sequences (assignment, completion) are serialized one level
    up by the engine.
    """

    def __init__(
        self,
        state_machine: Optional[TaskStateMachine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._tasks: Dict[str, HousekeepingTask] = {}
        self._by_room: Dict[str, List[str]] = {}
        self._counter = 0
        self._lock = threading.RLock()
        self.clock = clock or utcnow
        self.state_machine = state_machine or TaskStateMachine(clock=self.clock)

    def _generate_id(self, now: datetime) -> str:
        """Generate unique task ID."""
        self._counter += 1
        return f"hk_{now.strftime('%Y%m%d%H%M%S')}_{self._counter}"

    def create(
        self,
        room_number: str,
        room_type: RoomType,
        floor: int,
        checkout_time: Optional[datetime] = None,
        next_arrival: Optional[datetime] = None,
        next_guest_vip: bool = False,
        next_guest_name: Optional[str] = None,
        next_guest_preferences: Optional[List[str]] = None,
        now: Optional[datetime] = None,
    ) -> HousekeepingTask:
        """
        Add a room to the queue as a pending task.

        Priority and priority level are computed here, once. ``now`` stamps
        the task and defaults to the store clock.
        """
        now = now or self.clock()
        priority = calculate_priority(
            PriorityInput(
                room_type=room_type,
                next_guest_vip=next_guest_vip,
                next_arrival=next_arrival,
            ),
            now=now,
        )

        with self._lock:
            task = HousekeepingTask(
                id=self._generate_id(now),
                room_number=room_number,
                floor=floor,
                room_type=room_type,
                checkout_time=checkout_time or now,
                priority=priority,
                priority_level=get_priority_level(priority),
                next_arrival=next_arrival,
                next_guest_vip=next_guest_vip,
                next_guest_name=next_guest_name,
                next_guest_preferences=next_guest_preferences,
                created_at=now,
            )
            self._tasks[task.id] = task
            self._by_room.setdefault(room_number, []).append(task.id)
            return task

    def get(self, task_id: str) -> Optional[HousekeepingTask]:
        """Get task by ID."""
        with self._lock:
            return self._tasks.get(task_id)

    def get_by_room(self, room_number: str) -> Optional[HousekeepingTask]:
        """Get the open (not complete) task for a room, if any."""
        with self._lock:
            for task_id in self._by_room.get(room_number, []):
                task = self._tasks[task_id]
                if task.status != TaskStatus.COMPLETE:
                    return task
            return None

    def get_pending(self) -> List[HousekeepingTask]:
        """Pending tasks, highest priority first, oldest first among ties."""
        with self._lock:
            pending = [t for t in self._tasks.values() if t.status == TaskStatus.PENDING]
        return sorted(pending, key=lambda t: -t.priority)

    def get_queue(self) -> List[HousekeepingTask]:
        """All open tasks sorted by priority."""
        with self._lock:
            open_tasks = [t for t in self._tasks.values() if t.status != TaskStatus.COMPLETE]
        return sorted(open_tasks, key=lambda t: -t.priority)

    def get_all(self) -> List[HousekeepingTask]:
        """All tasks including completed, sorted by priority."""
        with self._lock:
            tasks = list(self._tasks.values())
        return sorted(tasks, key=lambda t: -t.priority)

    def assign(
        self,
        task_id: str,
        staff_ids: List[str],
        now: Optional[datetime] = None,
    ) -> Optional[HousekeepingTask]:
        """Bind staff to a pending task and move it to ASSIGNED."""
        if not staff_ids:
            raise ValueError("Cannot assign a task to an empty staff list")

        with self._lock:
            task = self._tasks.get(task_id)
            if not task:
                return None

            self.state_machine.transition(
                task,
                TaskStatus.ASSIGNED,
                trigger="auto_assign",
                metadata={"staff_ids": list(staff_ids)},
                now=now,
            )
            task.assigned_to = list(staff_ids)
            return task

    def update_status(
        self,
        task_id: str,
        status: TaskStatus,
        trigger: str = "manual",
        now: Optional[datetime] = None,
    ) -> Optional[HousekeepingTask]:
        """
        Move a task forward to IN_PROGRESS or COMPLETE.

        Returns None for unknown tasks. Raises InvalidTransitionError for
        edges the lifecycle forbids; ASSIGNED is only reachable via assign().
        """
        with self._lock:
            task = self._tasks.get(task_id)
            if not task:
                return None

            if status == TaskStatus.ASSIGNED:
                raise InvalidTransitionError(task.id, task.status.value, status.value)

            self.state_machine.transition(task, status, trigger=trigger, now=now)
            return task

    def active_staff_ids(self) -> Set[str]:
        """Staff bound to assigned or in-progress tasks."""
        with self._lock:
            return {
                staff_id
                for task in self._tasks.values()
                if task.is_active
                for staff_id in task.assigned_to
            }

    def get_counts(self) -> Dict[str, int]:
        """Get count of tasks by status."""
        counts = {status.value: 0 for status in TaskStatus}
        with self._lock:
            for task in self._tasks.values():
                counts[task.status.value] += 1
        return counts

    def clear(self):
        """Drop every task."""
        with self._lock:
            self._tasks.clear()
            self._by_room.clear()

    def __len__(self) -> int:
        return len(self._tasks)
