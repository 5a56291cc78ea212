"""SM-2 spaced repetition scheduling.

Intervals follow I(1) = 1, I(2) = 4 and I(n) = I(n-1) * EF(n) for n > 2,
where EF(n) is the easiness recorded on the n-th review. Easiness starts at
1.75 instead of the classic 2.5, and the second interval is 4 days instead
of 6.
"""
from datetime import datetime, timedelta
from typing import Optional

from flashdeck.models import Card, utcnow

DEFAULT_EASINESS = 1.75
MIN_EASINESS = 1.3
FIRST_INTERVAL = 1.0
SECOND_INTERVAL = 4.0
INSTANT_HARDNESS = 5
MAX_DUE_DAYS = 36500.0


def next_easiness(ease_factor: float, hardness: int) -> float:
    """Calculate the easiness factor that follows ``ease_factor``.

    Args:
        ease_factor: Easiness recorded on the previous review
        hardness: Rating for this review, nominally 1-5 (not validated)

    Returns:
        The new easiness, never below 1.3.
    """
    new_ef = ease_factor - 0.8 + 0.28 * hardness - 0.02 * hardness * hardness
    return max(MIN_EASINESS, new_ef)


def interval_from_history(easiness_history: list[float]) -> float:
    """Rebuild the interval in days for a card from its easiness history."""
    reps = len(easiness_history)
    if reps == 0:
        return 0.0
    interval = FIRST_INTERVAL
    if reps >= 2:
        interval = SECOND_INTERVAL
    for ef in easiness_history[2:]:
        interval *= ef
    return interval


def record_review(card: Card, hardness: int, now: Optional[datetime] = None) -> None:
    """Apply one review with the given hardness to ``card`` in place."""
    now = now or utcnow()
    card.repetitions += 1
    card.hardness_history.append(hardness)

    if card.repetitions == 1:
        card.easiness_history.append(DEFAULT_EASINESS)
        card.interval = FIRST_INTERVAL
    elif card.repetitions == 2:
        card.easiness_history.append(DEFAULT_EASINESS)
        card.interval = SECOND_INTERVAL
    else:
        if not card.interval:
            # Card built without a running interval, e.g. by hand.
            card.interval = interval_from_history(card.easiness_history)
        new_ef = next_easiness(card.easiness_history[-1], hardness)
        card.easiness_history.append(new_ef)
        card.interval *= new_ef
        if hardness == INSTANT_HARDNESS:
            card.next_due = now
            return

    # The running interval may outgrow what a datetime can hold.
    card.next_due = now + timedelta(days=min(card.interval, MAX_DUE_DAYS))
