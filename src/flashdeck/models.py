"""Data classes for the deck domain model."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Card:
    prompt: str
    answer: str
    id: int = 0
    repetitions: int = 0
    next_due: datetime = field(default_factory=utcnow)
    # Both histories are indexed by repetition - 1.
    easiness_history: list[float] = field(default_factory=list)
    hardness_history: list[int] = field(default_factory=list)
    interval: float = 0.0

    def is_due(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now >= self.next_due
