"""Deck file schema and connection management."""
import sqlite3
from pathlib import Path

SCHEMA = """
CREATE TABLE IF NOT EXISTS cards (
    id INTEGER NOT NULL PRIMARY KEY,
    prompt TEXT,
    answer TEXT,
    reps INTEGER,
    nextrep INTEGER
);

CREATE TABLE IF NOT EXISTS efs (
    id INTEGER NOT NULL PRIMARY KEY,
    card_id INTEGER NOT NULL,
    ef REAL
);

CREATE TABLE IF NOT EXISTS hardnesses (
    id INTEGER NOT NULL PRIMARY KEY,
    card_id INTEGER NOT NULL,
    hardness INTEGER
);

CREATE TABLE IF NOT EXISTS deck_meta (
    key TEXT NOT NULL PRIMARY KEY,
    value TEXT
);
"""


def get_connection(db_path: str) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def has_table(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,)
    ).fetchone()
    return row is not None


def has_schema(conn: sqlite3.Connection) -> bool:
    """Return True if the deck tables are present."""
    return has_table(conn, "cards")


def init_db(db_path: str) -> None:
    """Initialize a deck file, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
