"""Exceptions raised by the deck store and the command loop."""


class DeckError(Exception):
    """Base exception for flashdeck."""
    pass


class DeckIOError(DeckError):
    """Raised when deck storage cannot be read or written."""
    def __init__(self, path: str, message: str = "Deck storage failure"):
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class CorruptDeckError(DeckError):
    """Raised when a deck file is readable but its contents are inconsistent."""
    pass


class MissingHistoryError(CorruptDeckError):
    """Raised when a reviewed card has no (or too few) history rows."""
    def __init__(self, card_id: int, kind: str):
        self.card_id = card_id
        self.kind = kind
        super().__init__(f"Card {card_id} is missing {kind} history")


class CardNotFoundError(DeckError):
    """Raised when a card id is not in the deck."""
    def __init__(self, card_id: int):
        self.card_id = card_id
        super().__init__(f"Unknown card id = {card_id}")


class EditorNotConfiguredError(DeckError):
    """Raised when no external editor is available for authoring."""
    def __init__(self, message: str = "Set your EDITOR env variable!"):
        super().__init__(message)
