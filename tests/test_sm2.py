# tests/test_sm2.py
from datetime import datetime, timedelta, timezone

import pytest

from flashdeck.models import Card
from flashdeck.sm2 import (
    DEFAULT_EASINESS, MAX_DUE_DAYS, MIN_EASINESS, interval_from_history, next_easiness, record_review,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def reviewed(*hardnesses):
    card = Card(prompt="Q?", answer="A")
    for h in hardnesses:
        record_review(card, h, now=NOW)
    return card


def test_first_review_due_in_one_day():
    card = reviewed(1)
    assert card.repetitions == 1
    assert card.next_due == NOW + timedelta(days=1)
    assert card.easiness_history == [DEFAULT_EASINESS]
    assert card.hardness_history == [1]


def test_second_review_due_in_four_days():
    card = reviewed(5, 4)
    assert card.repetitions == 2
    assert card.next_due == NOW + timedelta(days=4)
    assert card.easiness_history == [DEFAULT_EASINESS, DEFAULT_EASINESS]


@pytest.mark.parametrize("hardness", [1, 3, 5])
def test_first_two_reviews_ignore_hardness(hardness):
    card = reviewed(hardness, hardness)
    assert card.easiness_history == [1.75, 1.75]
    assert card.next_due == NOW + timedelta(days=4)


def test_third_review_uses_easiness_formula():
    """q=3: 1.75 - 0.8 + 0.84 - 0.18 = 1.61, interval 4 * 1.61 = 6.44 days."""
    card = reviewed(2, 2, 3)
    assert card.easiness_history[-1] == pytest.approx(1.61)
    assert card.interval == pytest.approx(6.44)
    assert card.next_due == NOW + timedelta(days=card.interval)


def test_fourth_review_multiplies_previous_interval():
    card = reviewed(2, 2, 3, 4)
    ef3 = next_easiness(1.75, 3)
    ef4 = next_easiness(ef3, 4)
    assert card.easiness_history[-1] == pytest.approx(ef4)
    assert card.interval == pytest.approx(4 * ef3 * ef4)


def test_hardness_five_makes_card_due_now():
    card = reviewed(2, 2, 5)
    assert card.next_due == NOW
    assert card.is_due(NOW)


def test_hardness_five_still_advances_interval():
    card = reviewed(2, 2, 5, 3)
    ef3 = next_easiness(1.75, 5)
    ef4 = next_easiness(ef3, 3)
    assert card.next_due == NOW + timedelta(days=4 * ef3 * ef4)


def test_easiness_floor():
    card = reviewed(*([1] * 12))
    assert min(card.easiness_history) >= MIN_EASINESS
    assert card.easiness_history[-1] == MIN_EASINESS


def test_next_easiness_accepts_out_of_range_hardness():
    assert next_easiness(1.75, 0) == MIN_EASINESS
    assert next_easiness(2.5, 7) == pytest.approx(2.5 - 0.8 + 1.96 - 0.98)


def test_histories_track_repetitions():
    card = Card(prompt="Q?", answer="A")
    assert card.easiness_history == card.hardness_history == []
    for n, h in enumerate([3, 1, 4, 1, 5, 2, 2], start=1):
        record_review(card, h, now=NOW)
        assert len(card.easiness_history) == len(card.hardness_history) == card.repetitions == n


def test_interval_from_history_matches_incremental():
    card = reviewed(3, 4, 2, 4, 3)
    assert interval_from_history(card.easiness_history) == pytest.approx(card.interval)


def test_interval_from_history_short():
    assert interval_from_history([]) == 0.0
    assert interval_from_history([1.75]) == 1.0
    assert interval_from_history([1.75, 1.75]) == 4.0


def test_review_of_card_without_running_interval():
    card = Card(prompt="Q?", answer="A", repetitions=2,
                easiness_history=[1.75, 1.75], hardness_history=[2, 2])
    record_review(card, 3, now=NOW)
    assert card.interval == pytest.approx(6.44)


def test_long_run_of_instant_reviews_caps_due_date():
    """Repeated 5s keep growing the interval; the next real rating must not overflow."""
    card = reviewed(3, 3, *([5] * 20), 4)
    assert card.repetitions == 23
    assert len(card.easiness_history) == len(card.hardness_history) == 23
    assert card.interval > MAX_DUE_DAYS
    assert card.next_due == NOW + timedelta(days=MAX_DUE_DAYS)
