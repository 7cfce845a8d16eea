"""
Session Controller - event-driven API over the session state machine.

Owns one Session value and serializes every event through
`session.transition`. Observers registered with `subscribe` receive each
state an event passes through, together with a snapshot taken after the
event. The controller is not reentrant: issuing an event from inside an
observer callback raises ProtocolError.

Usage:
    controller = create_session(raw_definitions)
    snapshot = submit(controller, "opt_1")
    snapshot = acknowledge(controller)
"""

from __future__ import annotations

import time
from typing import Any, Callable, Iterable

from loguru import logger
from pydantic import BaseModel, ConfigDict

from config import Settings, get_settings

from .adapters import normalize
from .errors import ExerciseEngineError, ProtocolError
from .schema import ExerciseDefinition, validate_definition_shape
from .session import (
    FEEDBACK_STATES,
    Event,
    EventType,
    HistoryEntry,
    Session,
    SessionState,
    failed_session,
    letter_grade,
    longest_streak,
    new_session,
    question_outcomes,
    transition,
)
from .validation import expected_answer

Clock = Callable[[], float]
Observer = Callable[[SessionState, "SessionSnapshot"], None]


class Feedback(BaseModel):
    """Outcome of the latest submission, shown in the feedback states."""

    model_config = ConfigDict(frozen=True)

    correct: bool
    explanation: str
    expected: Any = None
    retries_left: int = 0


class SessionSnapshot(BaseModel):
    """Read-only view of a session for the rendering layer."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    state: SessionState
    current_index: int
    total: int
    current_definition: dict[str, Any] | None = None
    score: float
    max_score: float
    elapsed_seconds: float
    history: tuple[HistoryEntry, ...] = ()
    feedback: Feedback | None = None
    hints: tuple[str, ...] = ()
    attempt: int = 1
    paused: bool = False
    failure: str | None = None


class SessionResults(BaseModel):
    """Final figures of a completed session."""

    model_config = ConfigDict(frozen=True)

    score: float
    max_score: float
    accuracy: float
    correct_count: int
    total_count: int
    elapsed_seconds: float
    longest_streak: int
    grade: str
    history: tuple[HistoryEntry, ...] = ()


class SessionController:
    """Drives one exercise session."""

    def __init__(
        self,
        clock: Clock = time.monotonic,
        settings: Settings | None = None,
        shuffle: bool | None = None,
        seed: int | None = None,
    ):
        self._clock = clock
        self._settings = settings or get_settings()
        self._shuffle = self._settings.shuffle_definitions if shuffle is None else shuffle
        self._seed = self._settings.shuffle_seed if seed is None else seed
        self._session: Session | None = None
        self._observers: list[Observer] = []
        self._busy = False

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock = time.monotonic,
        settings: Settings | None = None,
    ) -> SessionController:
        """
        Resume a previously dumped session.

        The clock mark is rebased on this controller's clock, so time spent
        while the session was stored does not count.
        """
        controller = cls(clock=clock, settings=settings)
        controller._session = session.model_copy(update={"clock_mark": clock()})
        logger.info(f"Resumed session {session.session_id} in state {session.state.value}")
        return controller

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def state(self) -> SessionState | None:
        return self._session.state if self._session else None

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self, raw_definitions: Iterable[dict | ExerciseDefinition]) -> SessionSnapshot:
        """
        Normalize every definition and start presenting.

        Any adapter or shape error leaves the controller in `failed` and is
        re-raised; no partial session is ever presented.
        """
        if self._session is not None:
            raise ProtocolError("load", self._session.state.value, "a session is already loaded")

        try:
            definitions = [self._prepare(raw) for raw in raw_definitions]
            session = new_session(
                definitions,
                total_points=self._settings.session_total_points,
                retry_policy=self._settings.get_retry_policy(),
                shuffle=self._shuffle,
                seed=self._seed,
            )
        except ExerciseEngineError as e:
            logger.error(f"Session failed to load: {e}")
            self._session = failed_session(str(e))
            self._notify(self._session)
            raise

        self._session = session
        logger.info(
            f"Session {session.session_id} loaded with {len(session.definitions)} definitions "
            f"({session.max_score} points)"
        )
        return self._dispatch(EventType.BEGIN)

    @staticmethod
    def _prepare(raw: dict | ExerciseDefinition) -> ExerciseDefinition:
        if isinstance(raw, ExerciseDefinition):
            validate_definition_shape(raw)
            return raw
        return normalize(raw)

    # =========================================================================
    # Events
    # =========================================================================

    def submit(self, answer: Any) -> SessionSnapshot:
        return self._dispatch(EventType.SUBMIT, answer)

    def retry(self) -> SessionSnapshot:
        return self._dispatch(EventType.RETRY)

    def acknowledge(self) -> SessionSnapshot:
        return self._dispatch(EventType.ACKNOWLEDGE)

    def abort(self) -> SessionSnapshot:
        return self._dispatch(EventType.ABORT)

    def hint(self) -> SessionSnapshot:
        """Reveal the next progressive hint, if any remain."""
        return self._dispatch(EventType.HINT)

    def pause(self) -> SessionSnapshot:
        return self._dispatch(EventType.PAUSE)

    def resume(self) -> SessionSnapshot:
        return self._dispatch(EventType.RESUME)

    def _dispatch(self, event_type: EventType, answer: Any = None) -> SessionSnapshot:
        if self._session is None:
            raise ProtocolError(event_type.value, "unloaded", "no session loaded")
        if self._busy:
            raise ProtocolError(
                event_type.value, self._session.state.value, "controller is busy (reentrant call)"
            )

        self._busy = True
        try:
            before = self._session
            after = transition(before, Event(type=event_type, at=self._clock(), answer=answer))
            if after is not before:
                self._session = after
                logger.debug(
                    f"{event_type.value}: {before.state.value} -> "
                    f"{' -> '.join(s.value for s in after.trail)}"
                )
                if after.state == SessionState.COMPLETED and before.state != SessionState.COMPLETED:
                    logger.info(
                        f"Session {after.session_id} completed: "
                        f"{after.score}/{after.max_score} in {after.elapsed_seconds:.1f}s"
                    )
                self._notify(after)
        finally:
            self._busy = False
        return self.snapshot()

    # =========================================================================
    # Observers
    # =========================================================================

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register an observer. Returns a function that unsubscribes it."""
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self, session: Session) -> None:
        if not self._observers:
            return
        snapshot = self.snapshot()
        busy, self._busy = self._busy, True
        try:
            for state in session.trail:
                for callback in list(self._observers):
                    callback(state, snapshot)
        finally:
            self._busy = busy

    # =========================================================================
    # Views
    # =========================================================================

    def snapshot(self) -> SessionSnapshot:
        session = self._session
        if session is None:
            raise ProtocolError("snapshot", "unloaded", "no session loaded")

        definition = session.current_definition
        feedback = None
        if session.state in FEEDBACK_STATES and definition is not None and session.history:
            last = session.history[-1]
            feedback = Feedback(
                correct=last.correct,
                explanation=definition.solution.explanation,
                expected=expected_answer(definition),
                retries_left=0 if last.correct else session.retries_left,
            )

        return SessionSnapshot(
            session_id=session.session_id,
            state=session.state,
            current_index=session.current_index,
            total=len(session.definitions),
            current_definition=definition.public_view() if definition else None,
            score=session.score,
            max_score=session.max_score,
            elapsed_seconds=round(session.live_elapsed(self._clock()), 3),
            history=session.history,
            feedback=feedback,
            hints=definition.solution.hints[:session.hints_revealed] if definition else (),
            attempt=session.attempt,
            paused=session.paused,
            failure=session.failure,
        )

    def results(self) -> SessionResults:
        """Final figures; only available once the session is completed."""
        session = self._session
        if session is None or session.state != SessionState.COMPLETED:
            state = session.state.value if session else "unloaded"
            raise ProtocolError("results", state, "results exist only for a completed session")

        outcomes = question_outcomes(session)
        total = len(session.definitions)
        correct = sum(outcomes)
        ratio = session.score / session.max_score if session.max_score else 0.0
        return SessionResults(
            score=session.score,
            max_score=session.max_score,
            accuracy=round(correct / total, 4) if total else 0.0,
            correct_count=correct,
            total_count=total,
            elapsed_seconds=round(session.elapsed_seconds, 3),
            longest_streak=longest_streak(outcomes),
            grade=letter_grade(ratio),
            history=session.history,
        )


# =============================================================================
# Handle-style API
# =============================================================================


def create_session(
    raw_definitions: Iterable[dict | ExerciseDefinition],
    clock: Clock = time.monotonic,
    settings: Settings | None = None,
    shuffle: bool | None = None,
    seed: int | None = None,
) -> SessionController:
    """Normalize raw definitions and return a controller presenting the first one."""
    controller = SessionController(clock=clock, settings=settings, shuffle=shuffle, seed=seed)
    controller.load(raw_definitions)
    return controller


def submit(handle: SessionController, answer: Any) -> SessionSnapshot:
    return handle.submit(answer)


def retry(handle: SessionController) -> SessionSnapshot:
    return handle.retry()


def acknowledge(handle: SessionController) -> SessionSnapshot:
    return handle.acknowledge()


def abort(handle: SessionController) -> SessionSnapshot:
    return handle.abort()


def get_snapshot(handle: SessionController) -> SessionSnapshot:
    return handle.snapshot()
