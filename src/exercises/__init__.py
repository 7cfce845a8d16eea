"""
Universal exercise engine.

- schema: canonical ExerciseDefinition and the closed set of kinds
- adapters: raw exercise input -> ExerciseDefinition
- validation: answer correctness per kind
- session / controller: the session state machine and its event API
"""

from .adapters import RawKind, normalize, resolve_kind
from .controller import (
    SessionController,
    SessionResults,
    SessionSnapshot,
    abort,
    acknowledge,
    create_session,
    get_snapshot,
    retry,
    submit,
)
from .errors import (
    ExerciseEngineError,
    ProtocolError,
    ShapeError,
    UnsupportedKindError,
    ValidationMismatchError,
)
from .schema import ExerciseDefinition, ExerciseKind, is_known_kind, validate_definition_shape
from .session import Session, SessionState, dump_session, load_session, transition
from .validation import ValidationResult, validate

__all__ = [
    "ExerciseDefinition",
    "ExerciseEngineError",
    "ExerciseKind",
    "ProtocolError",
    "RawKind",
    "Session",
    "SessionController",
    "SessionResults",
    "SessionSnapshot",
    "SessionState",
    "ShapeError",
    "UnsupportedKindError",
    "ValidationMismatchError",
    "ValidationResult",
    "abort",
    "acknowledge",
    "create_session",
    "dump_session",
    "get_snapshot",
    "is_known_kind",
    "load_session",
    "normalize",
    "resolve_kind",
    "retry",
    "submit",
    "transition",
    "validate",
    "validate_definition_shape",
]
