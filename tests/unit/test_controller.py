"""
Unit tests for SessionController.

Uses a fake clock so elapsed time is deterministic.
"""

import pytest

from src.exercises.controller import SessionController, create_session
from src.exercises.errors import ProtocolError, ShapeError, UnsupportedKindError
from src.exercises.session import SessionState, dump_session, load_session


@pytest.fixture
def controller(clock, settings, raw_session):
    controller = SessionController(clock=clock, settings=settings)
    controller.load(raw_session)
    return controller


class TestLoading:
    def test_load_presents_first(self, controller):
        snapshot = controller.snapshot()

        assert snapshot.state == SessionState.PRESENTING
        assert snapshot.total == 3
        assert snapshot.current_definition["id"] == "sky"
        assert snapshot.max_score == 100.0

    def test_snapshot_hides_solution(self, controller):
        view = controller.snapshot().current_definition

        assert "solution" not in view
        assert all(set(e) == {"id", "content", "media", "metadata"} for e in view["elements"])

    def test_failed_load(self, clock, settings, raw_session):
        controller = SessionController(clock=clock, settings=settings)

        with pytest.raises(UnsupportedKindError):
            controller.load([*raw_session, {"kind": "crossword", "question": "?"}])

        snapshot = controller.snapshot()
        assert snapshot.state == SessionState.FAILED
        assert snapshot.total == 0
        assert "crossword" in snapshot.failure

    def test_malformed_raw_field_fails_load(self, clock, settings):
        controller = SessionController(clock=clock, settings=settings)
        raw = {"kind": "sequencing", "question": "q", "options": ["x", "y"], "correctOrder": 2}

        with pytest.raises(ShapeError) as exc:
            controller.load([raw])

        assert exc.value.field == "correctOrder"
        assert controller.state == SessionState.FAILED
        assert "correctOrder" in controller.snapshot().failure

    def test_load_twice(self, controller, raw_session):
        with pytest.raises(ProtocolError):
            controller.load(raw_session)

    def test_event_before_load(self, clock, settings):
        with pytest.raises(ProtocolError):
            SessionController(clock=clock, settings=settings).submit("x")

    def test_settings_retry_policy(self, clock, settings, raw_session):
        strict = settings.model_copy(update={"retry_limit_single_choice": 0})
        controller = SessionController(clock=clock, settings=strict)
        controller.load(raw_session)

        snapshot = controller.submit("opt_1")
        assert snapshot.feedback.retries_left == 0
        with pytest.raises(ProtocolError):
            controller.retry()


class TestFeedback:
    def test_correct_feedback(self, controller, clock):
        clock.advance(3)
        snapshot = controller.submit("opt_0")

        assert snapshot.state == SessionState.FEEDBACK_CORRECT
        assert snapshot.feedback.correct is True
        assert snapshot.feedback.expected == "opt_0"
        assert snapshot.score == 33.33
        assert snapshot.history[0].time_taken_seconds == 3.0

    def test_incorrect_feedback_offers_retry(self, controller):
        snapshot = controller.submit("opt_3")

        assert snapshot.state == SessionState.FEEDBACK_INCORRECT
        assert snapshot.feedback.retries_left == 1

    def test_hint(self, controller):
        snapshot = controller.hint()
        assert snapshot.hints == ("Look up on a clear day.",)


class TestTiming:
    def test_live_elapsed(self, controller, clock):
        clock.advance(5)
        assert controller.snapshot().elapsed_seconds == 5.0

    def test_pause_stops_clock(self, controller, clock):
        clock.advance(2)
        controller.pause()
        clock.advance(60)

        assert controller.snapshot().elapsed_seconds == 2.0
        assert controller.snapshot().paused is True

        controller.resume()
        clock.advance(1)
        assert controller.snapshot().elapsed_seconds == 3.0


class TestResults:
    def test_results_before_completion(self, controller):
        with pytest.raises(ProtocolError):
            controller.results()

    def test_results(self, controller, clock):
        controller.submit("opt_1")
        controller.retry()
        controller.submit("opt_0")
        controller.acknowledge()
        controller.submit({"opt_0"})
        controller.acknowledge()
        clock.advance(10)
        controller.submit(["b", "a", "c"])
        controller.acknowledge()

        results = controller.results()
        assert results.correct_count == 2
        assert results.total_count == 3
        assert results.accuracy == pytest.approx(0.6667)
        assert results.score == 66.67
        assert results.max_score == 100.0
        assert results.longest_streak == 1
        assert results.grade == "D"
        assert results.elapsed_seconds == 10.0
        assert len(results.history) == 4


class TestObservers:
    def test_observer_sees_transient_states(self, controller):
        seen = []
        controller.subscribe(lambda state, snapshot: seen.append(state))

        controller.submit("opt_0")
        controller.acknowledge()

        assert seen == [
            SessionState.SUBMITTED,
            SessionState.FEEDBACK_CORRECT,
            SessionState.ADVANCING,
            SessionState.PRESENTING,
        ]

    def test_unsubscribe(self, controller):
        seen = []
        unsubscribe = controller.subscribe(lambda state, snapshot: seen.append(state))
        unsubscribe()

        controller.submit("opt_0")
        assert seen == []

    def test_reentrant_event_rejected(self, controller):
        errors = []

        def observer(state, snapshot):
            try:
                controller.acknowledge()
            except ProtocolError as e:
                errors.append(e)

        controller.subscribe(observer)
        controller.submit("opt_0")

        assert errors
        assert controller.state == SessionState.FEEDBACK_CORRECT

    def test_observer_may_read_snapshot(self, controller):
        states = []
        controller.subscribe(lambda state, snapshot: states.append(controller.snapshot().state))

        controller.submit("opt_0")
        assert states == [SessionState.FEEDBACK_CORRECT, SessionState.FEEDBACK_CORRECT]


class TestResume:
    def test_from_session(self, controller, clock, settings):
        controller.submit("opt_0")
        text = dump_session(controller.session)

        later = type(clock)(start=50_000.0)
        resumed = SessionController.from_session(load_session(text), clock=later, settings=settings)
        later.advance(2)

        snapshot = resumed.snapshot()
        assert snapshot.state == SessionState.FEEDBACK_CORRECT
        assert snapshot.score == 33.33
        assert snapshot.elapsed_seconds == 2.0

        resumed.acknowledge()
        assert resumed.snapshot().current_definition["id"] == "same-sound"


def test_create_session_returns_handle(raw_session, clock, settings):
    handle = create_session(raw_session, clock=clock, settings=settings)
    assert handle.state == SessionState.PRESENTING
