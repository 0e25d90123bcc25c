"""Guest intelligence record captured by front-of-house staff."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List

from .base import utcnow


@dataclass
class GuestIntelligence:
    """Structured guest preference note, as returned by the capture pipeline."""

    id: str
    guest_name: str
    room_number: str
    occasion: Optional[str] = None
    dietary: List[str] = field(default_factory=list)
    preferences: List[str] = field(default_factory=list)
    requests: List[str] = field(default_factory=list)
    context: Optional[str] = None
    captured_by: str = "unknown"
    captured_at: datetime = field(default_factory=utcnow)
    source: str = "telegram"
    confidence: float = 1.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "guest_name": self.guest_name,
            "room_number": self.room_number,
            "occasion": self.occasion,
            "dietary": list(self.dietary),
            "preferences": list(self.preferences),
            "requests": list(self.requests),
            "context": self.context,
            "captured_by": self.captured_by,
            "captured_at": self.captured_at.isoformat(),
            "source": self.source,
            "confidence": self.confidence,
        }
