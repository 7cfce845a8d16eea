"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full session flows)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Manually advanced clock for deterministic timing."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Settings with library defaults, independent of the environment."""
    from config import Settings

    return Settings(_env_file=None)


@pytest.fixture
def raw_single_answer():
    return {
        "kind": "single-answer",
        "id": "sky",
        "question": "What color is the sky?",
        "options": ["Blue", "Red", "Green", "Yellow"],
        "correctAnswer": "Blue",
        "hints": ["Look up on a clear day.", "It is also the color of the sea."],
    }


@pytest.fixture
def raw_multiple_answers():
    return {
        "kind": "multipleAnswers",
        "id": "same-sound",
        "question": "Which words end with the same sound as 'cat'?",
        "type": "sound_matching",
        "options": [
            {"word": "hat", "isCorrect": True, "endSound": "at"},
            {"word": "dog", "isCorrect": False},
            {"word": "bat", "isCorrect": True, "endSound": "at"},
            {"word": "sun", "isCorrect": False},
        ],
    }


@pytest.fixture
def raw_drag_and_drop():
    return {
        "kind": "drag-and-drop",
        "id": "animals",
        "question": "Sort the animals",
        "type": "animals",
        "categories": ["Mammals", "Birds"],
        "options": [
            {"id": "dog", "content": "Dog", "category": "Mammals"},
            {"id": "eagle", "content": "Eagle", "category": "Birds"},
            {"id": "cat", "content": "Cat", "category": "Mammals"},
        ],
    }


@pytest.fixture
def raw_sequencing():
    return {
        "kind": "sequencing",
        "id": "morning",
        "question": "Put the morning in order",
        "options": [
            {"id": "a", "content": "Eat breakfast"},
            {"id": "b", "content": "Wake up"},
            {"id": "c", "content": "Go to school"},
        ],
        "correctOrder": [2, 1, 3],
    }


@pytest.fixture
def raw_fill_in_blanks():
    return {
        "kind": "fill-in-blanks",
        "id": "dog-bark",
        "sentence": "The dog likes to {answer}.",
        "answer": "bark",
        "type": "word_completion",
    }


@pytest.fixture
def raw_highlight_vowels():
    return {
        "kind": "highlight",
        "id": "vowels-cat",
        "question": "Find the vowels",
        "text": "cat",
        "type": "vowels",
    }


@pytest.fixture
def raw_session(raw_single_answer, raw_multiple_answers, raw_sequencing):
    """Three raw exercises of different kinds."""
    return [raw_single_answer, raw_multiple_answers, raw_sequencing]
