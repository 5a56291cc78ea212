# tests/test_integration.py
"""End-to-end test of the core workflow."""
from datetime import datetime, timedelta, timezone

import pytest

from flashdeck.deck import Deck

START = datetime.now(timezone.utc) + timedelta(minutes=1)


def test_review_cycle_across_sessions(tmp_deck):
    """Review a card over several sessions, reopening the deck each time."""
    with Deck.open(tmp_deck) as deck:
        deck.new_card("ich vergesse", "I forget")
        deck.new_card("ich erinnere mich", "I remember")

    now = START
    for hardness in [3, 3, 3, 4]:
        with Deck.open(tmp_deck) as deck:
            due = deck.due_cards(now=now)
            card = next(c for c in due if c.prompt == "ich vergesse")
            deck.review(card, hardness, now=now)
            now = card.next_due

    with Deck.open(tmp_deck) as deck:
        card = next(c for c in deck.cards if c.prompt == "ich vergesse")
        assert card.repetitions == 4
        assert card.hardness_history == [3, 3, 3, 4]
        ef3 = 1.75 - 0.8 + 0.28 * 3 - 0.02 * 9
        ef4 = ef3 - 0.8 + 0.28 * 4 - 0.02 * 16
        assert card.easiness_history == pytest.approx([1.75, 1.75, ef3, ef4])
        assert card.interval == pytest.approx(4 * ef3 * ef4)
        other = next(c for c in deck.cards if c.prompt == "ich erinnere mich")
        assert other.repetitions == 0
        assert deck.cards[0] is other
