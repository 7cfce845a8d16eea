"""
Error taxonomy for the exercise engine.

Every error carries the structured detail a caller needs to build a message
(offending kind, field, event/state pair) in addition to the text.
"""

from __future__ import annotations

from typing import Any


class ExerciseEngineError(Exception):
    """Base class for all exercise engine errors."""
    pass


class UnsupportedKindError(ExerciseEngineError):
    """Raised when raw input declares a kind with no registered adapter."""

    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(f"Unsupported exercise kind: {kind!r}")


class ShapeError(ExerciseEngineError):
    """
    Raised when a definition violates the canonical structure.

    This is a defect in the adapter (or in the raw data it was given), never a
    recoverable runtime condition.
    """

    def __init__(self, field: str, reason: str, definition_id: str | None = None):
        self.field = field
        self.reason = reason
        self.definition_id = definition_id
        where = f" in definition {definition_id!r}" if definition_id else ""
        super().__init__(f"Invalid field '{field}'{where}: {reason}")


class ProtocolError(ExerciseEngineError):
    """Raised when an event is not valid for the session's current state."""

    def __init__(self, event: str, state: str, reason: str | None = None):
        self.event = event
        self.state = state
        self.reason = reason
        message = f"Event '{event}' is not allowed in state '{state}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ValidationMismatchError(ExerciseEngineError):
    """Raised when a candidate answer's shape does not match the definition's kind."""

    def __init__(self, kind: str, expected: str, received: Any):
        self.kind = kind
        self.expected = expected
        self.received = type(received).__name__
        super().__init__(
            f"Answer for '{kind}' must be {expected}, got {self.received}"
        )
