"""Tests for checkout processing, assignment and the task lifecycle."""

import asyncio
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest
import structlog
from pydantic import ValidationError
from structlog.testing import capture_logs

from housekeeping.config import Settings
from housekeeping.core import orchestrator
from housekeeping.core.assignment import ASSIGNMENT_HISTORY_LIMIT, PAIR_SIZE
from housekeeping.core.exceptions import InvalidRoomNumberError, InvalidTransitionError
from housekeeping.core.orchestrator import HousekeepingEngine
from housekeeping.models import PriorityLevel, RoomType, StaffStatus, TaskStatus
from housekeeping.store import IntelligenceStore, StaffStore, TaskStore


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def captured_logs(monkeypatch):
    """Structured log entries emitted by the engine during a test."""
    with capture_logs() as logs:
        monkeypatch.setattr(orchestrator, "logger", structlog.get_logger(orchestrator.__name__))
        yield logs


def make_engine(roster, rescan_on_release=True, intelligence=None):
    """Engine with a frozen clock and the given (id, floor[, status]) roster."""
    staff_store = StaffStore()
    for entry in roster:
        staff_id, floor = entry[0], entry[1]
        status = entry[2] if len(entry) > 2 else StaffStatus.AVAILABLE
        staff_store.register(staff_id, staff_id.title(), floor, status)

    return HousekeepingEngine(
        task_store=TaskStore(),
        staff_store=staff_store,
        intelligence=intelligence or IntelligenceStore(),
        settings=Settings(rescan_on_release=rescan_on_release),
        clock=lambda: NOW,
    )


def assert_no_double_booking(engine):
    """No housekeeper sits on two active tasks, and none of them is available."""
    active = [t for t in engine.task_store.get_all() if t.is_active]
    counts = Counter(staff_id for t in active for staff_id in t.assigned_to)
    assert all(n == 1 for n in counts.values())
    for staff_id in counts:
        assert engine.staff_store.get(staff_id).status != StaffStatus.AVAILABLE


class TestCheckoutScenarios:
    """End-to-end checkout flows."""

    def test_vip_suite_assigned_to_same_floor_pair(self):
        engine = make_engine([("sarah", 5), ("david", 5)])

        task = engine.process_checkout(
            room_number="501",
            next_arrival=NOW + timedelta(hours=1),
            next_guest_vip=True,
        )

        assert task.floor == 5
        assert task.room_type == RoomType.SUITE
        assert task.priority == 80
        assert task.priority_level == PriorityLevel.HIGH
        assert task.status == TaskStatus.ASSIGNED
        assert task.assigned_to == ["sarah", "david"]
        for staff_id in ("sarah", "david"):
            member = engine.staff_store.get(staff_id)
            assert member.current_floor == 5
            assert member.status == StaffStatus.BUSY
            assert member.assigned_rooms == 1

    def test_single_available_staff_leaves_task_pending(self):
        engine = make_engine([("sarah", 5), ("david", 5, StaffStatus.BREAK)])

        task = engine.process_checkout(
            room_number="501",
            next_arrival=NOW + timedelta(hours=1),
            next_guest_vip=True,
        )

        assert task.status == TaskStatus.PENDING
        assert task.assigned_to == []
        assert engine.auto_assign(task.id) is False
        assert engine.staff_store.get("sarah").status == StaffStatus.AVAILABLE

    def test_complete_releases_pair(self):
        engine = make_engine([("sarah", 5), ("david", 5)])
        task = engine.process_checkout(
            room_number="501",
            next_arrival=NOW + timedelta(hours=1),
            next_guest_vip=True,
        )

        completed = engine.complete_task(task.id)

        assert completed.status == TaskStatus.COMPLETE
        assert completed.assigned_to == ["sarah", "david"]
        for staff_id in ("sarah", "david"):
            member = engine.staff_store.get(staff_id)
            assert member.status == StaffStatus.AVAILABLE
            assert member.rooms_completed == 1
            assert member.assigned_rooms == 0

    def test_preferences_from_intelligence(self):
        intelligence = IntelligenceStore()
        intelligence.add(
            "Jane Doe",
            "310",
            occasion="Anniversary",
            preferences=["Extra pillows", "Hypoallergenic bedding"],
            dietary=["Gluten-free"],
            requests=["Late checkout"],
        )
        engine = make_engine([("anna", 7), ("carlos", 7)], intelligence=intelligence)

        task = engine.process_checkout(room_number="724", next_guest_name="Jane Doe")

        assert task.room_type == RoomType.STANDARD
        assert task.floor == 7
        assert task.priority == 10
        assert task.priority_level == PriorityLevel.LOW
        assert task.next_guest_preferences == [
            "Occasion: Anniversary",
            "Extra pillows",
            "Hypoallergenic bedding",
            "Gluten-free",
            "Late checkout",
        ]

    def test_preferences_merge_records_newest_first(self):
        intelligence = IntelligenceStore()
        intelligence.add(
            "Jane Doe",
            "310",
            occasion="Birthday",
            preferences=["Feather pillows", "Extra towels"],
            captured_at=NOW - timedelta(days=60),
        )
        intelligence.add(
            "Jane Doe",
            "724",
            preferences=["Extra towels"],
            dietary=["Vegan"],
            captured_at=NOW - timedelta(days=1),
        )
        engine = make_engine([], intelligence=intelligence)

        task = engine.process_checkout(room_number="724", next_guest_name="jane doe")

        # Occasion only comes from the most recent record
        assert task.next_guest_preferences == ["Extra towels", "Feather pillows", "Vegan"]

    def test_unknown_guest_has_no_preferences(self):
        engine = make_engine([("anna", 7), ("carlos", 7)])
        task = engine.process_checkout(room_number="724", next_guest_name="Nobody")
        assert task.next_guest_preferences is None

    def test_invalid_room_number(self):
        engine = make_engine([("anna", 7), ("carlos", 7)])
        with pytest.raises(InvalidRoomNumberError):
            engine.process_checkout(room_number="Penthouse")
        with pytest.raises(InvalidRoomNumberError):
            engine.process_checkout(room_number="4²")
        assert len(engine.task_store) == 0


class TestAutoAssign:
    """Tests for pair selection."""

    def test_prefers_same_then_adjacent_floor(self):
        engine = make_engine([("far", 9), ("adjacent", 4), ("same", 5), ("same2", 5)])
        task = engine.process_checkout(room_number="512")
        assert task.assigned_to == ["same", "same2"]

        task = engine.process_checkout(room_number="508")
        assert task.assigned_to == ["adjacent", "far"]

    def test_ties_keep_roster_order(self):
        engine = make_engine([("a", 1), ("b", 2), ("c", 3)])
        task = engine.process_checkout(room_number="912")
        assert task.assigned_to == ["a", "b"]

    def test_staff_move_to_task_floor(self):
        engine = make_engine([("a", 1), ("b", 2)])
        engine.process_checkout(room_number="912")

        assert engine.staff_store.get("a").current_floor == 9
        assert engine.staff_store.get("b").current_floor == 9

    def test_off_duty_and_break_never_picked(self):
        engine = make_engine(
            [
                ("resting", 5, StaffStatus.BREAK),
                ("gone", 5, StaffStatus.OFF_DUTY),
                ("a", 1),
                ("b", 2),
            ]
        )
        task = engine.process_checkout(room_number="512")
        assert task.assigned_to == ["a", "b"]

    def test_idempotent_on_assigned_task(self):
        engine = make_engine([("a", 5), ("b", 5), ("c", 5), ("d", 5)])
        task = engine.process_checkout(room_number="512")
        before = (list(task.assigned_to), task.status)

        assert engine.auto_assign(task.id) is False
        assert (task.assigned_to, task.status) == before
        assert len(engine.staff_store.get_available()) == 2

    def test_missing_task(self):
        engine = make_engine([("a", 5), ("b", 5)])
        assert engine.auto_assign("hk_missing") is False

    def test_assignment_stats(self):
        engine = make_engine([("a", 5), ("b", 4)])
        engine.process_checkout(room_number="512")

        stats = engine.assigner.get_assignment_stats()
        assert stats["total_assignments"] == 1
        assert stats["same_floor_rate"] == 0.5
        assert stats["assignments_by_staff"] == {"a": 1, "b": 1}

    def test_pair_size_is_fixed(self):
        engine = make_engine([("a", 5), ("b", 5), ("c", 5), ("d", 5), ("e", 5)])
        task = engine.process_checkout(room_number="512")

        assert len(task.assigned_to) == PAIR_SIZE == 2
        with pytest.raises(ValidationError):
            Settings(pair_size=3)

    def test_assignment_history_is_bounded(self):
        engine = make_engine([("a", 5), ("b", 5)])
        assert engine.assigner.assignment_history.maxlen == ASSIGNMENT_HISTORY_LIMIT


class TestLifecycle:
    """Tests for start/complete transitions."""

    def setup_method(self):
        self.engine = make_engine([("a", 5), ("b", 5)], rescan_on_release=False)

    def test_start_then_complete(self):
        task = self.engine.process_checkout(room_number="512")

        assert self.engine.start_task(task.id).status == TaskStatus.IN_PROGRESS
        assert self.engine.complete_task(task.id).status == TaskStatus.COMPLETE

    def test_unknown_task_returns_none(self):
        assert self.engine.start_task("hk_missing") is None
        assert self.engine.complete_task("hk_missing") is None

    def test_start_pending_task_rejected(self):
        self.engine.staff_store.update_status("b", StaffStatus.OFF_DUTY)
        task = self.engine.process_checkout(room_number="512")

        with pytest.raises(InvalidTransitionError):
            self.engine.start_task(task.id)
        assert task.status == TaskStatus.PENDING

    def test_complete_pending_task_rejected(self):
        self.engine.staff_store.update_status("b", StaffStatus.OFF_DUTY)
        task = self.engine.process_checkout(room_number="512")

        with pytest.raises(InvalidTransitionError):
            self.engine.complete_task(task.id)
        assert task.status == TaskStatus.PENDING
        assert self.engine.staff_store.get("a").rooms_completed == 0

    def test_complete_twice_rejected(self):
        task = self.engine.process_checkout(room_number="512")
        self.engine.complete_task(task.id)

        with pytest.raises(InvalidTransitionError):
            self.engine.complete_task(task.id)
        assert self.engine.staff_store.get("a").rooms_completed == 1

    def test_start_in_progress_rejected(self):
        task = self.engine.process_checkout(room_number="512")
        self.engine.start_task(task.id)

        with pytest.raises(InvalidTransitionError):
            self.engine.start_task(task.id)

    def test_rejected_transitions_are_logged(self, captured_logs):
        task = self.engine.process_checkout(room_number="512")
        self.engine.complete_task(task.id)

        with pytest.raises(InvalidTransitionError):
            self.engine.start_task(task.id)
        with pytest.raises(InvalidTransitionError):
            self.engine.complete_task(task.id)

        rejected = [e for e in captured_logs if e["event"] == "invalid_transition"]
        assert [(e["from_state"], e["to_state"]) for e in rejected] == [
            ("complete", "in_progress"),
            ("complete", "complete"),
        ]
        assert all(e["task_id"] == task.id for e in rejected)
        assert all(e["log_level"] == "warning" for e in rejected)

    def test_timestamps_follow_engine_clock(self):
        task = self.engine.process_checkout(room_number="512")
        self.engine.start_task(task.id)
        self.engine.complete_task(task.id)

        assert task.checkout_time == NOW
        assert task.created_at == NOW
        assert task.assigned_at == NOW
        assert task.started_at == NOW
        assert task.completed_at == NOW
        assert task.id.startswith("hk_20261019120000_")
        assert self.engine.assigner.assignment_history[0].assigned_at == NOW

    def test_complete_releases_only_recorded_staff(self):
        engine = make_engine([("a", 5), ("b", 5), ("c", 5), ("d", 5)], rescan_on_release=False)
        first = engine.process_checkout(room_number="512")
        second = engine.process_checkout(room_number="514")

        engine.complete_task(first.id)

        for staff_id in first.assigned_to:
            assert engine.staff_store.get(staff_id).status == StaffStatus.AVAILABLE
        for staff_id in second.assigned_to:
            assert engine.staff_store.get(staff_id).status == StaffStatus.BUSY
            assert engine.staff_store.get(staff_id).rooms_completed == 0


class TestBacklogRescan:
    """Tests for retrying pending tasks when staff free up."""

    def test_completion_assigns_waiting_task(self):
        engine = make_engine([("a", 5), ("b", 5)])
        first = engine.process_checkout(room_number="512")
        waiting = engine.process_checkout(room_number="610")
        assert waiting.status == TaskStatus.PENDING

        engine.complete_task(first.id)

        assert waiting.status == TaskStatus.ASSIGNED
        assert waiting.assigned_to == ["a", "b"]
        assert engine.staff_store.get("a").current_floor == 6

    def test_rescan_disabled(self):
        engine = make_engine([("a", 5), ("b", 5)], rescan_on_release=False)
        first = engine.process_checkout(room_number="512")
        waiting = engine.process_checkout(room_number="610")

        engine.complete_task(first.id)
        assert waiting.status == TaskStatus.PENDING

    def test_highest_priority_first(self):
        engine = make_engine([("a", 5, StaffStatus.BREAK), ("b", 5, StaffStatus.BREAK)])
        standard = engine.process_checkout(room_number="512")
        suite = engine.process_checkout(room_number="601")
        deluxe = engine.process_checkout(room_number="703")

        engine.set_staff_status("a", StaffStatus.AVAILABLE)
        assert engine.task_store.get_counts()["pending"] == 3

        engine.set_staff_status("b", StaffStatus.AVAILABLE)

        assert suite.status == TaskStatus.ASSIGNED
        assert deluxe.status == TaskStatus.PENDING
        assert standard.status == TaskStatus.PENDING

    def test_explicit_rescan(self):
        engine = make_engine(
            [
                ("a", 5),
                ("b", 5),
                ("c", 5, StaffStatus.OFF_DUTY),
                ("d", 5, StaffStatus.OFF_DUTY),
            ],
            rescan_on_release=False,
        )
        engine.process_checkout(room_number="512")
        waiting = engine.process_checkout(room_number="514")

        engine.staff_store.update_status("c", StaffStatus.AVAILABLE)
        engine.staff_store.update_status("d", StaffStatus.AVAILABLE)

        assert engine.rescan_pending() == [waiting.id]
        assert waiting.assigned_to == ["c", "d"]

    def test_run_loop_rescans_until_stopped(self):
        engine = make_engine([("a", 5, StaffStatus.BREAK), ("b", 5)], rescan_on_release=False)
        task = engine.process_checkout(room_number="512")
        engine.staff_store.update_status("a", StaffStatus.AVAILABLE)

        async def scenario():
            loop_task = asyncio.create_task(engine.run(interval=0.01))
            await asyncio.sleep(0.05)
            await engine.stop()
            await asyncio.wait_for(loop_task, timeout=1)

        asyncio.run(scenario())
        assert task.status == TaskStatus.ASSIGNED

    def test_zero_interval_is_not_replaced_by_default(self, captured_logs):
        engine = make_engine([("a", 5), ("b", 5)], rescan_on_release=False)

        async def scenario():
            loop_task = asyncio.create_task(engine.run(interval=0))
            await asyncio.sleep(0.01)
            await engine.stop()
            await asyncio.wait_for(loop_task, timeout=1)

        asyncio.run(scenario())
        started = [e for e in captured_logs if e["event"] == "rescan_loop_started"]
        assert started[0]["interval_seconds"] == 0


class TestInvariants:
    """Staff are never double-booked."""

    def test_sequence_of_operations(self):
        engine = make_engine([("a", 4), ("b", 4), ("c", 5), ("d", 7), ("e", 8)])
        tasks = [engine.process_checkout(room_number=r) for r in ("412", "501", "702", "810")]
        assert_no_double_booking(engine)

        engine.start_task(tasks[0].id)
        engine.complete_task(tasks[0].id)
        assert_no_double_booking(engine)

        engine.set_staff_status("e", StaffStatus.BREAK)
        for task in engine.task_store.get_all():
            if task.is_active:
                engine.complete_task(task.id)
                assert_no_double_booking(engine)

        for task in engine.task_store.get_all():
            assert bool(task.assigned_to) == (task.status != TaskStatus.PENDING)

    def test_concurrent_checkouts(self):
        engine = make_engine([(f"hk{i}", 4 + i % 3) for i in range(6)], rescan_on_release=False)
        barrier = threading.Barrier(10)

        def checkout(n):
            barrier.wait()
            engine.process_checkout(room_number=str(410 + n))

        threads = [threading.Thread(target=checkout, args=(n,)) for n in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        counts = engine.task_store.get_counts()
        assert counts["assigned"] == 3
        assert counts["pending"] == 7
        assert engine.staff_store.get_available() == []
        assert_no_double_booking(engine)


class TestQueueStatus:
    """Tests for the read-only queue snapshot."""

    def test_snapshot(self):
        engine = make_engine([("a", 5), ("b", 5)], rescan_on_release=False)
        first = engine.process_checkout(room_number="501")
        engine.process_checkout(room_number="612")
        engine.start_task(first.id)

        status = engine.get_queue_status()

        assert [t.room_number for t in status["tasks"]] == ["501", "612"]
        assert status["pending_count"] == 1
        assert status["in_progress_count"] == 1
        assert status["task_counts"]["in_progress"] == 1
        assert status["staff_counts"] == {"available": 0, "busy": 2, "break": 0, "off_duty": 0}

    def test_completed_tasks_leave_queue(self):
        engine = make_engine([("a", 5), ("b", 5)], rescan_on_release=False)
        task = engine.process_checkout(room_number="501")
        engine.complete_task(task.id)

        status = engine.get_queue_status()
        assert status["tasks"] == []
        assert status["task_counts"]["complete"] == 1

    def test_snapshot_is_detached_from_store(self):
        engine = make_engine([("a", 5), ("b", 5)], rescan_on_release=False)
        task = engine.process_checkout(room_number="501")

        status = engine.get_queue_status()
        engine.start_task(task.id)
        status["tasks"][0].assigned_to.append("intruder")
        status["tasks"][0].status = TaskStatus.COMPLETE

        assert status["tasks"][0].started_at is None
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.assigned_to == ["a", "b"]
