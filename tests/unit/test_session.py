"""
Unit tests for the pure session state machine.

Drives transition() directly with stamped events; no controller, no clock.
"""

import pytest

from src.exercises.adapters import normalize
from src.exercises.errors import ProtocolError, ShapeError, ValidationMismatchError
from src.exercises.session import (
    ACCEPTED_EVENTS,
    Event,
    EventType,
    SessionState,
    dump_session,
    letter_grade,
    load_session,
    longest_streak,
    new_session,
    resolve_weights,
    transition,
)

POLICY = {
    "single-choice": 1,
    "multi-choice": 0,
    "position-mapping": 1,
    "free-text": 1,
    "ordered-sequence": 1,
    "highlight-set": 1,
}


@pytest.fixture
def definitions(raw_session):
    return [normalize(raw) for raw in raw_session]


@pytest.fixture
def started(definitions):
    session = new_session(definitions, retry_policy=POLICY)
    return transition(session, Event(EventType.BEGIN, at=0.0))


def _event(kind: EventType, at: float, answer=None) -> Event:
    return Event(type=kind, at=at, answer=answer)


class TestWeights:
    def test_even_split_sums_to_total(self, definitions):
        weights = resolve_weights(definitions, 100.0)

        assert weights[0] == pytest.approx(100.0 / 3)
        assert weights[-1] == pytest.approx(100.0 / 3)
        assert round(sum(weights), 2) == 100.0

    @pytest.mark.parametrize("count", [60, 601])
    def test_even_split_for_long_sessions(self, definitions, count):
        many = [definitions[0].model_copy(update={"id": f"q{i}"}) for i in range(count)]

        weights = resolve_weights(many, 100.0)

        assert all(w == pytest.approx(100.0 / count) for w in weights)
        assert min(weights) > 0
        assert sum(weights) == pytest.approx(100.0)

    def test_long_session_score_reaches_total(self, definitions):
        many = [definitions[0].model_copy(update={"id": f"q{i}"}) for i in range(601)]
        session = transition(new_session(many, retry_policy=POLICY), _event(EventType.BEGIN, 0.0))

        previous = 0.0
        for i in range(601):
            session = transition(session, _event(EventType.SUBMIT, float(i), "opt_0"))
            assert previous <= session.score <= session.max_score
            previous = session.score
            session = transition(session, _event(EventType.ACKNOWLEDGE, float(i)))

        assert session.state == SessionState.COMPLETED
        assert session.score == session.max_score == 100.0

    def test_explicit_weights_kept(self, definitions):
        weighted = [definitions[0].model_copy(update={"scoring_weight": 50.0}), *definitions[1:]]

        assert resolve_weights(weighted, 100.0) == (50.0, 25.0, 25.0)

    def test_no_definitions(self):
        assert resolve_weights([], 100.0) == ()


class TestNewSession:
    def test_starts_loading(self, definitions):
        session = new_session(definitions, retry_policy=POLICY)

        assert session.state == SessionState.LOADING
        assert session.retry_limits == (1, 0, 1)
        assert session.max_score == 100.0

    def test_duplicate_ids_rejected(self, definitions):
        with pytest.raises(ShapeError) as exc:
            new_session([definitions[0], definitions[0]])
        assert exc.value.field == "id"

    def test_shuffle_is_seeded(self, definitions):
        first = new_session(definitions, shuffle=True, seed=7)
        second = new_session(definitions, shuffle=True, seed=7)

        assert [d.id for d in first.definitions] == [d.id for d in second.definitions]
        assert sorted(d.id for d in first.definitions) == sorted(d.id for d in definitions)


class TestTransitions:
    def test_begin_presents_first(self, started):
        assert started.state == SessionState.PRESENTING
        assert started.current_definition.id == "sky"

    def test_empty_session_completes(self):
        session = transition(new_session([]), _event(EventType.BEGIN, 0.0))

        assert session.state == SessionState.COMPLETED
        assert session.score == 0

    def test_correct_submission(self, started):
        after = transition(started, _event(EventType.SUBMIT, 4.0, "opt_0"))

        assert after.state == SessionState.FEEDBACK_CORRECT
        assert after.trail == (SessionState.SUBMITTED, SessionState.FEEDBACK_CORRECT)
        assert after.score == 33.33
        assert after.history[-1].correct is True
        assert after.history[-1].time_taken_seconds == 4.0
        # input value untouched
        assert started.state == SessionState.PRESENTING
        assert started.history == ()

    def test_incorrect_submission_scores_nothing(self, started):
        after = transition(started, _event(EventType.SUBMIT, 1.0, "opt_1"))

        assert after.state == SessionState.FEEDBACK_INCORRECT
        assert after.score == 0
        assert len(after.history) == 1

    def test_mismatch_leaves_state(self, started):
        with pytest.raises(ValidationMismatchError):
            transition(started, _event(EventType.SUBMIT, 1.0, ["opt_0"]))

    def test_retry_then_correct(self, started):
        wrong = transition(started, _event(EventType.SUBMIT, 1.0, "opt_1"))
        again = transition(wrong, _event(EventType.RETRY, 2.0))
        right = transition(again, _event(EventType.SUBMIT, 5.0, "opt_0"))

        assert again.state == SessionState.PRESENTING
        assert again.current_index == 0
        assert len(again.history) == 1
        assert right.state == SessionState.FEEDBACK_CORRECT
        assert [e.attempt for e in right.history] == [1, 2]
        assert right.history[-1].time_taken_seconds == 3.0

    def test_retry_limit_enforced(self, started):
        session = started
        session = transition(session, _event(EventType.SUBMIT, 1.0, "opt_1"))
        session = transition(session, _event(EventType.RETRY, 1.0))
        session = transition(session, _event(EventType.SUBMIT, 2.0, "opt_2"))

        with pytest.raises(ProtocolError) as exc:
            transition(session, _event(EventType.RETRY, 3.0))
        assert exc.value.state == "feedback_incorrect"

    def test_multi_choice_disallows_retry(self, started):
        session = transition(started, _event(EventType.SUBMIT, 1.0, "opt_0"))
        session = transition(session, _event(EventType.ACKNOWLEDGE, 1.0))
        session = transition(session, _event(EventType.SUBMIT, 2.0, {"opt_0"}))

        with pytest.raises(ProtocolError):
            transition(session, _event(EventType.RETRY, 3.0))

    def test_acknowledge_advances(self, started):
        session = transition(started, _event(EventType.SUBMIT, 1.0, "opt_0"))
        session = transition(session, _event(EventType.ACKNOWLEDGE, 2.0))

        assert session.state == SessionState.PRESENTING
        assert session.current_index == 1
        assert session.trail == (SessionState.ADVANCING, SessionState.PRESENTING)

    def test_completion_freezes_time(self, started):
        session = started
        for i, answer in enumerate(("opt_0", {"opt_0", "opt_2"}, ["b", "a", "c"])):
            session = transition(session, _event(EventType.SUBMIT, 2.0 * i + 1, answer))
            session = transition(session, _event(EventType.ACKNOWLEDGE, 2.0 * i + 2))

        assert session.state == SessionState.COMPLETED
        assert session.current_index == 3
        assert session.score == 100.0
        assert session.elapsed_seconds == 6.0
        assert session.live_elapsed(500.0) == 6.0

    def test_abort_keeps_score(self, started):
        session = transition(started, _event(EventType.SUBMIT, 1.0, "opt_0"))
        aborted = transition(session, _event(EventType.ABORT, 2.0))

        assert aborted.state == SessionState.ABORTED
        assert aborted.score == session.score
        assert aborted.history == session.history

    @pytest.mark.parametrize("state", [SessionState.COMPLETED, SessionState.ABORTED, SessionState.FAILED])
    @pytest.mark.parametrize("kind", list(EventType))
    def test_terminal_states_accept_nothing(self, started, state, kind):
        terminal = started.model_copy(update={"state": state})

        with pytest.raises(ProtocolError):
            transition(terminal, _event(kind, 9.0, "opt_0"))

    def test_acknowledge_while_presenting_is_protocol_error(self, started):
        with pytest.raises(ProtocolError) as exc:
            transition(started, _event(EventType.ACKNOWLEDGE, 1.0))
        assert exc.value.event == "acknowledge"
        assert exc.value.state == "presenting"

    def test_transient_states_accept_nothing(self):
        assert ACCEPTED_EVENTS[SessionState.SUBMITTED] == frozenset()
        assert ACCEPTED_EVENTS[SessionState.ADVANCING] == frozenset()


class TestHintsAndPause:
    def test_hints_revealed_in_order(self, started):
        once = transition(started, _event(EventType.HINT, 1.0))
        twice = transition(once, _event(EventType.HINT, 2.0))
        exhausted = transition(twice, _event(EventType.HINT, 3.0))

        assert once.hints_revealed == 1
        assert twice.hints_revealed == 2
        assert exhausted is twice

    def test_hints_recorded_in_history(self, started):
        session = transition(started, _event(EventType.HINT, 1.0))
        session = transition(session, _event(EventType.SUBMIT, 2.0, "opt_0"))

        assert session.history[-1].hints_used == 1

    def test_paused_time_not_counted(self, started):
        session = transition(started, _event(EventType.PAUSE, 2.0))
        session = transition(session, _event(EventType.RESUME, 10.0))
        session = transition(session, _event(EventType.SUBMIT, 11.0, "opt_0"))

        assert session.elapsed_seconds == 3.0
        assert session.history[-1].time_taken_seconds == 3.0

    def test_double_pause(self, started):
        paused = transition(started, _event(EventType.PAUSE, 1.0))

        with pytest.raises(ProtocolError):
            transition(paused, _event(EventType.PAUSE, 2.0))

    def test_resume_when_running(self, started):
        with pytest.raises(ProtocolError):
            transition(started, _event(EventType.RESUME, 1.0))

    def test_submit_while_paused(self, started):
        paused = transition(started, _event(EventType.PAUSE, 1.0))

        with pytest.raises(ProtocolError) as exc:
            transition(paused, _event(EventType.SUBMIT, 2.0, "opt_0"))
        assert exc.value.reason == "session is paused"


class TestResults:
    @pytest.mark.parametrize(
        "ratio,grade",
        [(1.0, "A+"), (0.95, "A"), (0.9, "A-"), (0.85, "B"), (0.75, "C"), (0.68, "D+"), (0.6, "D"), (0.2, "F")],
    )
    def test_letter_grade(self, ratio, grade):
        assert letter_grade(ratio) == grade

    def test_longest_streak(self):
        assert longest_streak([True, True, False, True, True, True, False]) == 3
        assert longest_streak([]) == 0


class TestSerialization:
    def test_dump_and_load(self, started):
        session = transition(started, _event(EventType.SUBMIT, 1.0, "opt_0"))
        session = transition(session, _event(EventType.ACKNOWLEDGE, 2.0))
        session = transition(session, _event(EventType.SUBMIT, 3.0, {"opt_2", "opt_0"}))

        restored = load_session(dump_session(session))

        assert restored == session
        assert restored.history[-1].submitted_answer == ["opt_0", "opt_2"]
