"""Runtime settings, read once from the environment."""
import os
from pathlib import Path

DEFAULT_DECK_PATH = os.environ.get(
    "FLASHDECK_DECK", str(Path.home() / ".flashdeck" / "deck.db")
)
MAX_STUDY = int(os.environ.get("FLASHDECK_MAX_STUDY", "20"))
DEFAULT_HARDNESS = int(os.environ.get("FLASHDECK_DEFAULT_HARDNESS", "2"))
LOG_LEVEL = os.environ.get("FLASHDECK_LOG_LEVEL", "WARNING").upper()


def get_editor() -> str:
    """Return the configured editor command, or an empty string."""
    return os.environ.get("EDITOR", "").strip()
