"""Housekeeping task lifecycle state machine."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List, Callable

from ..models import HousekeepingTask, TaskStatus
from ..models.base import utcnow
from .exceptions import InvalidTransitionError

# Transitions kept for inspection; older records drop off
HISTORY_LIMIT = 1000


@dataclass
class StateTransition:
    """Record of a task status transition."""

    task_id: str
    from_state: TaskStatus
    to_state: TaskStatus
    timestamp: datetime
    trigger: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class TaskStateMachine:
    """
    Validates and applies task status transitions.

    State flow:
    PENDING → ASSIGNED (auto assignment binds a staff pair)
    ASSIGNED → IN_PROGRESS (cleaning started)
    ASSIGNED | IN_PROGRESS → COMPLETE (cleaning finished, staff released)

    Status only moves forward; there is no reset or abort edge.
    """

    VALID_TRANSITIONS = {
        TaskStatus.PENDING: [TaskStatus.ASSIGNED],
        TaskStatus.ASSIGNED: [TaskStatus.IN_PROGRESS, TaskStatus.COMPLETE],
        TaskStatus.IN_PROGRESS: [TaskStatus.COMPLETE],
        TaskStatus.COMPLETE: [],
    }

    # Timestamp field stamped when entering a state
    TIMESTAMP_FIELDS = {
        TaskStatus.ASSIGNED: "assigned_at",
        TaskStatus.IN_PROGRESS: "started_at",
        TaskStatus.COMPLETE: "completed_at",
    }

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        history_limit: int = HISTORY_LIMIT,
    ):
        self.clock = clock or utcnow
        self.history: deque = deque(maxlen=history_limit)

    def can_transition(self, from_state: TaskStatus, to_state: TaskStatus) -> bool:
        """Check if transition between states is valid."""
        return to_state in self.VALID_TRANSITIONS.get(from_state, [])

    def transition(
        self,
        task: HousekeepingTask,
        to_state: TaskStatus,
        trigger: str = "manual",
        metadata: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> StateTransition:
        """
        Move a task to a new status, stamping it with ``now`` (defaults to
        the machine clock).

        Raises:
            InvalidTransitionError: the edge is not in VALID_TRANSITIONS.
                The task is left untouched.
        """
        if not self.can_transition(task.status, to_state):
            raise InvalidTransitionError(task.id, task.status.value, to_state.value)

        now = now or self.clock()
        record = StateTransition(
            task_id=task.id,
            from_state=task.status,
            to_state=to_state,
            timestamp=now,
            trigger=trigger,
            metadata=metadata or {},
        )
        self.history.append(record)

        task.status = to_state
        setattr(task, self.TIMESTAMP_FIELDS[to_state], now)
        return record

    def history_for(self, task_id: str) -> List[StateTransition]:
        return [t for t in self.history if t.task_id == task_id]
