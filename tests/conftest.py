import pytest

@pytest.fixture
def tmp_deck(tmp_path):
    """Provide a temporary deck file path for tests."""
    return str(tmp_path / "test_deck.db")
