"""
Session state machine.

A Session is an immutable value; `transition(session, event)` returns the next
value or raises ProtocolError, leaving the input untouched. Time is carried on
each event (a clock reading), so the machine itself never reads a clock.

States:
    loading -> presenting -> submitted -> feedback_correct | feedback_incorrect
    feedback_* -> advancing -> presenting | completed
    feedback_incorrect -> presenting   (retry, while the retry limit allows)
    any non-terminal -> aborted        (abort)
    loading -> failed                  (set by the controller on load errors)

`submitted` and `advancing` are transient: one event passes through them and
they are recorded in `trail` but a session never rests there.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field

from .errors import ProtocolError, ShapeError
from .schema import ExerciseDefinition
from .validation import canonical_answer, validate


class SessionState(str, Enum):
    LOADING = "loading"
    PRESENTING = "presenting"
    SUBMITTED = "submitted"
    FEEDBACK_CORRECT = "feedback_correct"
    FEEDBACK_INCORRECT = "feedback_incorrect"
    ADVANCING = "advancing"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


TERMINAL_STATES = frozenset({SessionState.COMPLETED, SessionState.FAILED, SessionState.ABORTED})
FEEDBACK_STATES = frozenset({SessionState.FEEDBACK_CORRECT, SessionState.FEEDBACK_INCORRECT})


class EventType(str, Enum):
    BEGIN = "begin"
    SUBMIT = "submit"
    RETRY = "retry"
    ACKNOWLEDGE = "acknowledge"
    ABORT = "abort"
    HINT = "hint"
    PAUSE = "pause"
    RESUME = "resume"


# Events each resting state accepts. Anything else is a ProtocolError.
ACCEPTED_EVENTS: dict[SessionState, frozenset[EventType]] = {
    SessionState.LOADING: frozenset({EventType.BEGIN, EventType.ABORT}),
    SessionState.PRESENTING: frozenset({
        EventType.SUBMIT, EventType.HINT, EventType.ABORT, EventType.PAUSE, EventType.RESUME,
    }),
    SessionState.FEEDBACK_CORRECT: frozenset({
        EventType.ACKNOWLEDGE, EventType.ABORT, EventType.PAUSE, EventType.RESUME,
    }),
    SessionState.FEEDBACK_INCORRECT: frozenset({
        EventType.ACKNOWLEDGE, EventType.RETRY, EventType.ABORT, EventType.PAUSE, EventType.RESUME,
    }),
    SessionState.SUBMITTED: frozenset(),
    SessionState.ADVANCING: frozenset(),
    SessionState.COMPLETED: frozenset(),
    SessionState.FAILED: frozenset(),
    SessionState.ABORTED: frozenset(),
}

# Events still accepted while paused.
PAUSED_EVENTS = frozenset({EventType.RESUME, EventType.ABORT})


@dataclass(frozen=True)
class Event:
    """One input to the state machine, stamped with a clock reading."""
    type: EventType
    at: float
    answer: Any = None


class HistoryEntry(BaseModel):
    """One submitted attempt."""

    model_config = ConfigDict(frozen=True)

    definition_id: str
    submitted_answer: Any  # JSON-safe canonical form
    correct: bool
    time_taken_seconds: float
    attempt: int = 1
    hints_used: int = 0


class Session(BaseModel):
    """Immutable session value. Every change goes through `transition`."""

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    definitions: tuple[ExerciseDefinition, ...] = ()
    weights: tuple[float, ...] = ()
    retry_limits: tuple[int, ...] = ()

    state: SessionState = SessionState.LOADING
    current_index: int = 0
    score: float = 0.0
    history: tuple[HistoryEntry, ...] = ()

    elapsed_seconds: float = 0.0
    clock_mark: float | None = None  # clock reading elapsed time was last accrued at
    paused: bool = False
    question_started_at: float = 0.0  # elapsed_seconds when the current attempt began

    attempt: int = 1
    hints_revealed: int = 0

    trail: tuple[SessionState, ...] = ()  # states entered by the last event
    failure: str | None = None

    @property
    def current_definition(self) -> ExerciseDefinition | None:
        if self.state in TERMINAL_STATES or self.state == SessionState.LOADING:
            return None
        if self.current_index >= len(self.definitions):
            return None
        return self.definitions[self.current_index]

    @property
    def max_score(self) -> float:
        return round(sum(self.weights), 2)

    @property
    def retries_left(self) -> int:
        if self.current_index >= len(self.retry_limits):
            return 0
        return max(self.retry_limits[self.current_index] - (self.attempt - 1), 0)

    def live_elapsed(self, now: float) -> float:
        """Elapsed seconds including the stretch since the last event."""
        if self.paused or self.state in TERMINAL_STATES or self.clock_mark is None:
            return self.elapsed_seconds
        return self.elapsed_seconds + max(now - self.clock_mark, 0.0)


# =============================================================================
# Building a session
# =============================================================================


def resolve_weights(definitions: Iterable[ExerciseDefinition], total: float = 100.0) -> tuple[float, ...]:
    """
    Point value per definition.

    Explicit weights are kept. Definitions without one share what is left of
    `total` evenly; the floating remainder goes to the last of them so unset
    weights sum to the remaining total. Weights are not rounded here, only the
    score derived from them is.
    """
    definitions = list(definitions)
    explicit = [d.scoring_weight for d in definitions]
    unset = [i for i, w in enumerate(explicit) if w is None]
    if not unset:
        return tuple(float(w) for w in explicit)

    remaining = max(total - sum(w for w in explicit if w is not None), 0.0)
    share = remaining / len(unset)
    weights = [float(w) if w is not None else share for w in explicit]
    weights[unset[-1]] = max(remaining - share * (len(unset) - 1), 0.0)
    return tuple(weights)


def new_session(
    definitions: Iterable[ExerciseDefinition],
    *,
    total_points: float = 100.0,
    retry_policy: dict[str, int] | None = None,
    shuffle: bool = False,
    seed: int | None = None,
    session_id: str | None = None,
) -> Session:
    """
    Build a session in `loading`, ready for the BEGIN event.

    Raises ShapeError when two definitions share an id.
    """
    definitions = list(definitions)
    seen: set[str] = set()
    for definition in definitions:
        if definition.id in seen:
            raise ShapeError("id", f"duplicate definition id '{definition.id}' in session", definition.id)
        seen.add(definition.id)

    if shuffle:
        random.Random(seed).shuffle(definitions)

    retry_policy = retry_policy or {}
    retry_limits = tuple(
        d.retry_limit if d.retry_limit is not None else retry_policy.get(d.kind.value, 1)
        for d in definitions
    )

    data: dict[str, Any] = {
        "definitions": tuple(definitions),
        "weights": resolve_weights(definitions, total_points),
        "retry_limits": retry_limits,
    }
    if session_id:
        data["session_id"] = session_id
    return Session(**data)


def failed_session(reason: str, session_id: str | None = None) -> Session:
    """Terminal session standing in for one whose definitions failed to load."""
    data: dict[str, Any] = {
        "state": SessionState.FAILED,
        "failure": reason,
        "trail": (SessionState.FAILED,),
    }
    if session_id:
        data["session_id"] = session_id
    return Session(**data)


# =============================================================================
# Transition
# =============================================================================


def _earned(session: Session, history: tuple[HistoryEntry, ...]) -> float:
    """Score as the rounded sum of the weights of every question answered correctly."""
    solved = {entry.definition_id for entry in history if entry.correct}
    return round(
        sum(w for d, w in zip(session.definitions, session.weights) if d.id in solved), 2
    )


def _accrue(session: Session, at: float) -> dict[str, Any]:
    """Fold the time since the last event into elapsed_seconds."""
    if session.paused or session.state in TERMINAL_STATES or session.clock_mark is None:
        return {"clock_mark": at}
    return {
        "elapsed_seconds": session.elapsed_seconds + max(at - session.clock_mark, 0.0),
        "clock_mark": at,
    }


def _begin(session: Session, event: Event) -> Session:
    if not session.definitions:
        return session.model_copy(update={
            "state": SessionState.COMPLETED,
            "clock_mark": event.at,
            "trail": (SessionState.COMPLETED,),
        })
    return session.model_copy(update={
        "state": SessionState.PRESENTING,
        "clock_mark": event.at,
        "question_started_at": session.elapsed_seconds,
        "trail": (SessionState.PRESENTING,),
    })


def _submit(session: Session, event: Event) -> Session:
    definition = session.definitions[session.current_index]
    # Raises ValidationMismatchError on a malformed answer; nothing has changed yet.
    result = validate(definition, event.answer)

    timing = _accrue(session, event.at)
    elapsed = timing.get("elapsed_seconds", session.elapsed_seconds)
    entry = HistoryEntry(
        definition_id=definition.id,
        submitted_answer=canonical_answer(definition.kind, event.answer),
        correct=result.correct,
        time_taken_seconds=round(elapsed - session.question_started_at, 3),
        attempt=session.attempt,
        hints_used=session.hints_revealed,
    )

    history = session.history + (entry,)
    score = _earned(session, history) if result.correct else session.score
    state = SessionState.FEEDBACK_CORRECT if result.correct else SessionState.FEEDBACK_INCORRECT

    return session.model_copy(update={
        **timing,
        "state": state,
        "score": score,
        "history": history,
        "trail": (SessionState.SUBMITTED, state),
    })


def _retry(session: Session, event: Event) -> Session:
    if session.retries_left <= 0:
        raise ProtocolError(event.type.value, session.state.value, "no retries left for this question")
    timing = _accrue(session, event.at)
    return session.model_copy(update={
        **timing,
        "state": SessionState.PRESENTING,
        "attempt": session.attempt + 1,
        "question_started_at": timing.get("elapsed_seconds", session.elapsed_seconds),
        "trail": (SessionState.PRESENTING,),
    })


def _acknowledge(session: Session, event: Event) -> Session:
    timing = _accrue(session, event.at)
    next_index = session.current_index + 1
    if next_index >= len(session.definitions):
        return session.model_copy(update={
            **timing,
            "state": SessionState.COMPLETED,
            "current_index": next_index,
            "trail": (SessionState.ADVANCING, SessionState.COMPLETED),
        })
    return session.model_copy(update={
        **timing,
        "state": SessionState.PRESENTING,
        "current_index": next_index,
        "attempt": 1,
        "hints_revealed": 0,
        "question_started_at": timing.get("elapsed_seconds", session.elapsed_seconds),
        "trail": (SessionState.ADVANCING, SessionState.PRESENTING),
    })


def _hint(session: Session, event: Event) -> Session:
    hints = session.definitions[session.current_index].solution.hints
    if session.hints_revealed >= len(hints):
        return session
    return session.model_copy(update={
        **_accrue(session, event.at),
        "hints_revealed": session.hints_revealed + 1,
        "trail": (session.state,),
    })


def _pause(session: Session, event: Event) -> Session:
    if session.paused:
        raise ProtocolError(event.type.value, session.state.value, "session is already paused")
    return session.model_copy(update={
        **_accrue(session, event.at),
        "paused": True,
        "trail": (session.state,),
    })


def _resume(session: Session, event: Event) -> Session:
    if not session.paused:
        raise ProtocolError(event.type.value, session.state.value, "session is not paused")
    return session.model_copy(update={
        "paused": False,
        "clock_mark": event.at,
        "trail": (session.state,),
    })


def _abort(session: Session, event: Event) -> Session:
    return session.model_copy(update={
        **_accrue(session, event.at),
        "state": SessionState.ABORTED,
        "trail": (SessionState.ABORTED,),
    })


_HANDLERS = {
    EventType.BEGIN: _begin,
    EventType.SUBMIT: _submit,
    EventType.RETRY: _retry,
    EventType.ACKNOWLEDGE: _acknowledge,
    EventType.HINT: _hint,
    EventType.PAUSE: _pause,
    EventType.RESUME: _resume,
    EventType.ABORT: _abort,
}


def transition(session: Session, event: Event) -> Session:
    """
    Apply one event and return the next session value.

    Raises ProtocolError when the event is not accepted in the current state
    (or while paused); the given session is never modified.
    """
    if event.type not in ACCEPTED_EVENTS[session.state]:
        raise ProtocolError(event.type.value, session.state.value)
    if session.paused and event.type not in PAUSED_EVENTS:
        raise ProtocolError(event.type.value, session.state.value, "session is paused")
    return _HANDLERS[event.type](session, event)


# =============================================================================
# Results
# =============================================================================

GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (0.97, "A+"),
    (0.93, "A"),
    (0.90, "A-"),
    (0.87, "B+"),
    (0.83, "B"),
    (0.80, "B-"),
    (0.77, "C+"),
    (0.73, "C"),
    (0.70, "C-"),
    (0.67, "D+"),
    (0.60, "D"),
)


def letter_grade(ratio: float) -> str:
    """Letter grade for a 0..1 score ratio."""
    for threshold, grade in GRADE_THRESHOLDS:
        if ratio >= threshold:
            return grade
    return "F"


def question_outcomes(session: Session) -> list[bool]:
    """Per answered question, in order: correct on any attempt."""
    outcomes: dict[str, bool] = {}
    for entry in session.history:
        outcomes[entry.definition_id] = outcomes.get(entry.definition_id, False) or entry.correct
    return list(outcomes.values())


def longest_streak(outcomes: list[bool]) -> int:
    best = current = 0
    for correct in outcomes:
        current = current + 1 if correct else 0
        best = max(best, current)
    return best


# =============================================================================
# Serialization
# =============================================================================


def dump_session(session: Session) -> str:
    """Serialize a session to JSON. `load_session` restores it exactly."""
    return session.model_dump_json()


def load_session(text: str | bytes) -> Session:
    return Session.model_validate_json(text)
