"""Housekeeping engine that turns checkouts into assigned cleaning tasks."""

import asyncio
import copy
import threading
from datetime import datetime
from typing import Optional, List, Dict, Any, Callable

import structlog

from ..config import Settings, get_settings
from ..models import HousekeepingTask, Housekeeper, StaffStatus, TaskStatus, utcnow
from ..store import TaskStore, StaffStore, IntelligenceStore, IntelligenceLookup
from .assignment import AssignmentEngine
from .exceptions import InvalidTransitionError
from .rooms import RoomMetadataSource, RoomNumberConvention

logger = structlog.get_logger(__name__)


class HousekeepingEngine:
    """
    Coordinates:
    - Checkout processing and guest preference enrichment
    - Task creation and pair assignment
    - Start / complete transitions and staff release
    - Backlog re-scan when staff free up
    - Queue status for display

    Stores are passed in (or built fresh) per engine; nothing is global.
    """

    def __init__(
        self,
        task_store: Optional[TaskStore] = None,
        staff_store: Optional[StaffStore] = None,
        intelligence: Optional[IntelligenceLookup] = None,
        room_metadata: Optional[RoomMetadataSource] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock or utcnow
        self.task_store = task_store if task_store is not None else TaskStore(clock=self.clock)
        self.staff_store = staff_store if staff_store is not None else StaffStore()
        self.intelligence = intelligence if intelligence is not None else IntelligenceStore()
        self.room_metadata = room_metadata or RoomNumberConvention(
            suite_suffixes=self.settings.suite_suffixes,
            deluxe_range=(self.settings.deluxe_suffix_min, self.settings.deluxe_suffix_max),
        )

        # One lock serializes every operation that touches both stores
        self._lock = threading.RLock()
        self.assigner = AssignmentEngine(
            self.task_store,
            self.staff_store,
            lock=self._lock,
            clock=self.clock,
        )

        self._running = False

    # ==================== Checkout ====================

    def process_checkout(
        self,
        room_number: str,
        next_arrival: Optional[datetime] = None,
        next_guest_name: Optional[str] = None,
        next_guest_vip: bool = False,
    ) -> HousekeepingTask:
        """
        Create a cleaning task for a vacated room and try to assign it.

        Whether assignment happened shows on the returned task's status and
        assigned_to.

        Raises:
            InvalidRoomNumberError: room number is not numeric.
        """
        floor = self.room_metadata.floor_for(room_number)
        room_type = self.room_metadata.room_type_for(room_number)
        preferences = self.collect_preferences(next_guest_name) if next_guest_name else None

        now = self.clock()
        task = self.task_store.create(
            room_number=room_number,
            room_type=room_type,
            floor=floor,
            checkout_time=now,
            next_arrival=next_arrival,
            next_guest_vip=bool(next_guest_vip),
            next_guest_name=next_guest_name,
            next_guest_preferences=preferences,
            now=now,
        )
        logger.info(
            "checkout_processed",
            task_id=task.id,
            room_number=room_number,
            floor=floor,
            room_type=room_type.value,
            priority=task.priority,
            priority_level=task.priority_level.value,
        )

        self.auto_assign(task.id)
        return task

    def collect_preferences(self, guest_name: str) -> Optional[List[str]]:
        """
        Flatten a guest's captured notes into one ordered list.

        Preferences, then dietary needs, then requests across all records
        (most recent first, duplicates dropped), led by the most recent
        record's occasion. None when nothing is on file.
        """
        records = self.intelligence.get_by_guest(guest_name)
        if not records:
            return None

        preferences: List[str] = []
        for attribute in ("preferences", "dietary", "requests"):
            for record in records:
                for item in getattr(record, attribute) or []:
                    if item not in preferences:
                        preferences.append(item)

        latest = records[0]
        if latest.occasion:
            preferences.insert(0, f"Occasion: {latest.occasion}")

        return preferences

    # ==================== Assignment ====================

    def auto_assign(self, task_id: str) -> bool:
        """Assign the best available pair to a pending task."""
        return self.assigner.auto_assign(task_id)

    def rescan_pending(self) -> List[str]:
        """Retry assignment for the backlog, highest priority first."""
        assigned = self.assigner.assign_pending()
        if assigned:
            logger.info("backlog_rescanned", assigned_task_ids=assigned)
        return assigned

    # ==================== Status Transitions ====================

    def start_task(self, task_id: str) -> Optional[HousekeepingTask]:
        """
        Mark an assigned task as in progress.

        Returns None for unknown tasks; raises InvalidTransitionError when
        the task is not ASSIGNED.
        """
        with self._lock:
            try:
                task = self.task_store.update_status(
                    task_id, TaskStatus.IN_PROGRESS, trigger="cleaning_started", now=self.clock()
                )
            except InvalidTransitionError as e:
                self._log_invalid_transition(e)
                raise
        if task:
            logger.info("task_started", task_id=task_id, room_number=task.room_number)
        return task

    def complete_task(self, task_id: str) -> Optional[HousekeepingTask]:
        """
        Mark a task complete and release its housekeepers.

        Exactly the staff recorded at assignment are released. Their floor
        stays where the room was. Returns None for unknown tasks; raises
        InvalidTransitionError for pending or already complete tasks.
        """
        with self._lock:
            task = self.task_store.get(task_id)
            if not task:
                return None

            released = list(task.assigned_to)
            try:
                self.task_store.update_status(
                    task_id, TaskStatus.COMPLETE, trigger="cleaning_finished", now=self.clock()
                )
            except InvalidTransitionError as e:
                self._log_invalid_transition(e)
                raise
            self.staff_store.complete_room(released)

        logger.info(
            "task_completed",
            task_id=task_id,
            room_number=task.room_number,
            released_staff=released,
        )

        if self.settings.rescan_on_release:
            self.rescan_pending()
        return task

    def set_staff_status(self, staff_id: str, status: StaffStatus) -> Optional[Housekeeper]:
        """Put a housekeeper on break, off duty, or back on shift."""
        with self._lock:
            member = self.staff_store.update_status(staff_id, status)
        if member is None:
            return None

        logger.info("staff_status_changed", staff_id=staff_id, status=member.status.value)
        if member.status == StaffStatus.AVAILABLE and self.settings.rescan_on_release:
            self.rescan_pending()
        return member

    def _log_invalid_transition(self, error: InvalidTransitionError):
        logger.warning(
            "invalid_transition",
            task_id=error.entity_id,
            from_state=error.from_state,
            to_state=error.to_state,
        )

    # ==================== Reporting ====================

    def get_task(self, task_id: str) -> Optional[HousekeepingTask]:
        return self.task_store.get(task_id)

    def get_queue_status(self) -> Dict[str, Any]:
        """
        Snapshot of the queue for display.

        Tasks are copies, so later engine activity does not change them and
        edits to them do not reach the store.
        """
        with self._lock:
            tasks = copy.deepcopy(self.task_store.get_queue())
            staff_counts = self.staff_store.get_counts()
            task_counts = self.task_store.get_counts()

        return {
            "tasks": tasks,
            "staff_counts": staff_counts,
            "task_counts": task_counts,
            "pending_count": task_counts[TaskStatus.PENDING.value],
            "in_progress_count": task_counts[TaskStatus.IN_PROGRESS.value],
        }

    # ==================== Re-scan Loop ====================

    async def run(self, interval: Optional[float] = None):
        """Periodically re-scan the backlog until stop() is called."""
        if interval is None:
            interval = self.settings.rescan_interval_seconds
        self._running = True
        logger.info("rescan_loop_started", interval_seconds=interval)

        while self._running:
            try:
                self.rescan_pending()
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("rescan_loop_error")
                await asyncio.sleep(interval)

        logger.info("rescan_loop_stopped")

    async def stop(self):
        """Stop the re-scan loop."""
        self._running = False
