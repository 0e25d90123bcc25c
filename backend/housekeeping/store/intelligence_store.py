"""Guest intelligence lookup.

The capture pipeline that turns staff messages into records lives outside
the scheduler. The scheduler only reads, through ``IntelligenceLookup``.
``IntelligenceStore`` is the in-memory stand-in.
"""

import threading
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Protocol

from ..models import GuestIntelligence
from ..models.base import utcnow


class IntelligenceLookup(Protocol):
    """Read-only access to captured guest notes."""

    def get_by_guest(self, guest_name: str) -> List[GuestIntelligence]:
        """Records for a guest, most recent first."""
        ...


def _most_recent_first(records: List[GuestIntelligence]) -> List[GuestIntelligence]:
    # Reverse insertion order first so later inserts win ties on captured_at
    return sorted(reversed(records), key=lambda r: r.captured_at, reverse=True)


class IntelligenceStore:
    """In-memory store for guest intelligence records."""

    def __init__(self):
        self._items: Dict[str, GuestIntelligence] = {}
        self._by_room: Dict[str, List[str]] = {}
        self._by_guest: Dict[str, List[str]] = {}
        self._counter = 0
        self._lock = threading.RLock()

    def add(
        self,
        guest_name: str,
        room_number: str,
        captured_by: str = "unknown",
        occasion: Optional[str] = None,
        dietary: Optional[List[str]] = None,
        preferences: Optional[List[str]] = None,
        requests: Optional[List[str]] = None,
        context: Optional[str] = None,
        confidence: float = 1.0,
        captured_at: Optional[datetime] = None,
    ) -> GuestIntelligence:
        """Add a new guest intelligence record."""
        with self._lock:
            self._counter += 1
            record = GuestIntelligence(
                id=f"intel_{utcnow().strftime('%Y%m%d%H%M%S')}_{self._counter}",
                guest_name=guest_name,
                room_number=room_number,
                occasion=occasion,
                dietary=list(dietary or []),
                preferences=list(preferences or []),
                requests=list(requests or []),
                context=context,
                captured_by=captured_by,
                captured_at=captured_at or utcnow(),
                confidence=confidence,
            )
            self._items[record.id] = record

            if record.room_number:
                self._by_room.setdefault(record.room_number, []).append(record.id)
            self._by_guest.setdefault(record.guest_name.lower(), []).append(record.id)

            return record

    def get(self, record_id: str) -> Optional[GuestIntelligence]:
        with self._lock:
            return self._items.get(record_id)

    def get_by_room(self, room_number: str) -> List[GuestIntelligence]:
        with self._lock:
            records = [self._items[i] for i in self._by_room.get(room_number, [])]
        return _most_recent_first(records)

    def get_by_guest(self, guest_name: str) -> List[GuestIntelligence]:
        """Records for a guest (case-insensitive), most recent first."""
        with self._lock:
            records = [self._items[i] for i in self._by_guest.get(guest_name.lower(), [])]
        return _most_recent_first(records)

    def get_all(self, limit: Optional[int] = None) -> List[GuestIntelligence]:
        with self._lock:
            records = _most_recent_first(list(self._items.values()))
        return records[:limit] if limit else records

    def get_recent(self, minutes: int = 30) -> List[GuestIntelligence]:
        """Records captured in the last N minutes."""
        cutoff = utcnow() - timedelta(minutes=minutes)
        return [r for r in self.get_all() if r.captured_at > cutoff]

    def clear(self):
        with self._lock:
            self._items.clear()
            self._by_room.clear()
            self._by_guest.clear()

    def __len__(self) -> int:
        return len(self._items)
