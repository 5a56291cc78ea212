"""Deck store: the in-memory card collection and its SQLite mirror.

A deck is loaded once, mutated in memory, and written back with ``sync``.
Sync never touches the live file until the complete new state has been
written to ``<path>.sync``; only then is the original removed and the
temporary file renamed into its place.
"""
import logging
import os
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from flashdeck.db import SCHEMA, get_connection, has_schema, has_table, init_db
from flashdeck.errors import (
    CardNotFoundError,
    CorruptDeckError,
    DeckIOError,
    MissingHistoryError,
)
from flashdeck.models import Card, utcnow
from flashdeck.sm2 import interval_from_history, record_review

logger = logging.getLogger(__name__)

SYNC_SUFFIX = ".sync"
NEXT_ID_KEY = "next_card_id"


def _read_history(conn: sqlite3.Connection, table: str, column: str, card_id: int) -> list:
    rows = conn.execute(
        f"SELECT {column} FROM {table} WHERE card_id = ? ORDER BY id", (card_id,)
    ).fetchall()
    return [r[column] for r in rows]


def _load_card(conn: sqlite3.Connection, row: sqlite3.Row) -> Card:
    try:
        card = Card(
            id=row["id"],
            prompt=row["prompt"],
            answer=row["answer"],
            repetitions=row["reps"] or 0,
            next_due=datetime.fromtimestamp(row["nextrep"], tz=timezone.utc),
            easiness_history=[float(ef) for ef in _read_history(conn, "efs", "ef", row["id"])],
            hardness_history=[int(h) for h in _read_history(conn, "hardnesses", "hardness", row["id"])],
        )
    except (TypeError, ValueError, OverflowError) as exc:
        raise CorruptDeckError(f"Card {row['id']} has unreadable values: {exc}") from exc
    if len(card.easiness_history) < card.repetitions:
        raise MissingHistoryError(card.id, "easiness")
    if len(card.hardness_history) < card.repetitions:
        raise MissingHistoryError(card.id, "hardness")
    if len(card.easiness_history) != len(card.hardness_history) or \
            len(card.easiness_history) != card.repetitions:
        raise CorruptDeckError(
            f"Card {card.id} has {card.repetitions} reps but "
            f"{len(card.easiness_history)} easiness and "
            f"{len(card.hardness_history)} hardness rows"
        )
    card.interval = interval_from_history(card.easiness_history)
    return card


def _read_next_id(conn: sqlite3.Connection) -> int:
    if not has_table(conn, "deck_meta"):
        return 0
    row = conn.execute("SELECT value FROM deck_meta WHERE key = ?", (NEXT_ID_KEY,)).fetchone()
    return int(row["value"]) if row else 0


def _write_card(conn: sqlite3.Connection, card: Card) -> None:
    conn.execute(
        "INSERT INTO cards (id, prompt, answer, reps, nextrep) VALUES (?, ?, ?, ?, ?)",
        (card.id, card.prompt, card.answer, card.repetitions, int(card.next_due.timestamp())),
    )
    conn.executemany(
        "INSERT INTO efs (card_id, ef) VALUES (?, ?)",
        [(card.id, ef) for ef in card.easiness_history],
    )
    conn.executemany(
        "INSERT INTO hardnesses (card_id, hardness) VALUES (?, ?)",
        [(card.id, h) for h in card.hardness_history],
    )


def _write_deck(db_path: str, cards: list[Card], next_id: int) -> None:
    """Write a complete deck to a fresh file at ``db_path``."""
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA)
        with conn:
            for card in cards:
                _write_card(conn, card)
            conn.execute(
                "INSERT INTO deck_meta (key, value) VALUES (?, ?)",
                (NEXT_ID_KEY, str(next_id)),
            )
    finally:
        conn.close()


class Deck:
    """An open deck file and the cards loaded from it."""

    def __init__(self, path: str, conn: Optional[sqlite3.Connection] = None,
                 cards: Optional[list[Card]] = None, next_id: int = 0):
        self.path = path
        self.cards: list[Card] = cards if cards is not None else []
        self.dirty = False
        self.next_id = next_id
        self._conn = conn

    @classmethod
    def open(cls, path) -> "Deck":
        """Load the deck at ``path``, creating an empty one if none exists."""
        path = str(path)
        conn = None
        try:
            if not os.path.exists(path):
                init_db(path)
            conn = get_connection(path)
            if not has_schema(conn):
                conn.executescript(SCHEMA)
                conn.commit()
            rows = conn.execute("SELECT * FROM cards ORDER BY nextrep, id").fetchall()
            cards = [_load_card(conn, row) for row in rows]
            stored_next_id = _read_next_id(conn)
        except (sqlite3.Error, OSError) as exc:
            if conn is not None:
                conn.close()
            logger.error(f"Failed to open deck {path}: {exc}")
            raise DeckIOError(path, "Cannot open deck") from exc
        except CorruptDeckError:
            conn.close()
            raise

        highest = max((c.id for c in cards), default=-1)
        deck = cls(path, conn=conn, cards=cards, next_id=max(stored_next_id, highest + 1))
        logger.info(f"Opened deck {path} ({len(cards)} cards)")
        return deck

    def __len__(self) -> int:
        return len(self.cards)

    def __enter__(self) -> "Deck":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def mark_dirty(self) -> None:
        self.dirty = True

    def add_card(self, card: Card) -> Card:
        """Assign the next id to ``card`` and append it to the deck."""
        card.id = self.next_id
        self.next_id += 1
        self.cards.append(card)
        self.mark_dirty()
        return card

    def new_card(self, prompt: str, answer: str) -> Card:
        return self.add_card(Card(prompt=prompt, answer=answer))

    def delete_card(self, card_id: int) -> Optional[Card]:
        """Remove the card with ``card_id``. Returns None if there is none."""
        for i, card in enumerate(self.cards):
            if card.id == card_id:
                del self.cards[i]
                self.mark_dirty()
                return card
        return None

    def get_card(self, card_id: int) -> Card:
        for card in self.cards:
            if card.id == card_id:
                return card
        raise CardNotFoundError(card_id)

    def edit_card(self, card_id: int, prompt: Optional[str] = None,
                  answer: Optional[str] = None) -> Card:
        card = self.get_card(card_id)
        if prompt is not None:
            card.prompt = prompt
        if answer is not None:
            card.answer = answer
        self.mark_dirty()
        return card

    def review(self, card: Card, hardness: int, now: Optional[datetime] = None) -> None:
        record_review(card, hardness, now=now)
        self.mark_dirty()

    def due_cards(self, now: Optional[datetime] = None) -> list[Card]:
        now = now or utcnow()
        return [c for c in self.cards if c.is_due(now)]

    def sync(self) -> None:
        """Atomically replace the deck file with the in-memory state."""
        tmp_path = self.path + SYNC_SUFFIX
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            _write_deck(tmp_path, self.cards, self.next_id)
        except (sqlite3.Error, OSError) as exc:
            logger.error(f"Sync of {self.path} failed, original left untouched: {exc}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise DeckIOError(self.path, "Sync failed") from exc

        self._release()
        try:
            # A crash between these two calls loses the deck.
            if os.path.exists(self.path):
                os.remove(self.path)
            os.rename(tmp_path, self.path)
            self._conn = get_connection(self.path)
        except (sqlite3.Error, OSError) as exc:
            logger.error(f"Could not swap {tmp_path} into {self.path}: {exc}")
            raise DeckIOError(self.path, "Sync failed") from exc

        self.dirty = False
        logger.info(f"Synced {len(self.cards)} cards to {self.path}")

    def _release(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def close(self) -> None:
        """Sync if dirty, then release the storage handle."""
        try:
            if self.dirty:
                self.sync()
        finally:
            self._release()


def open_deck(path) -> Deck:
    return Deck.open(path)

