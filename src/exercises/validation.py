"""
Validation Engine - decides whether a candidate answer is correct.

One rule per exercise kind, registered with @rule. Rules are pure: they never
mutate the definition and the same (definition, answer) pair always yields the
same result. There is no partial credit.

A candidate whose *shape* does not fit the kind (a string for a multi-choice,
a list for a position mapping, ...) raises ValidationMismatchError. That is a
caller bug, distinct from an incorrect answer.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from .errors import ValidationMismatchError
from .schema import ExerciseDefinition, ExerciseKind


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking one answer."""
    correct: bool
    explanation: str = ""


Rule = Callable[[ExerciseDefinition, Any], bool]

# Rule registry - populated by @rule decorator
RULES: dict[ExerciseKind, Rule] = {}


def rule(kind: ExerciseKind):
    """Decorator to register the correctness rule for a kind."""
    def decorator(func: Rule) -> Rule:
        RULES[kind] = func
        return func
    return decorator


# =============================================================================
# Answer shape coercion
# =============================================================================

_ID_COLLECTIONS = (set, frozenset, list, tuple)


def _as_id(kind: ExerciseKind, answer: Any) -> str:
    if not isinstance(answer, str):
        raise ValidationMismatchError(kind.value, "one element id (str)", answer)
    return answer


def _as_id_set(kind: ExerciseKind, answer: Any) -> frozenset[str]:
    if not isinstance(answer, _ID_COLLECTIONS) or not all(isinstance(x, str) for x in answer):
        raise ValidationMismatchError(kind.value, "a set of element ids", answer)
    return frozenset(answer)


def _as_id_list(kind: ExerciseKind, answer: Any) -> tuple[str, ...]:
    if not isinstance(answer, (list, tuple)) or not all(isinstance(x, str) for x in answer):
        raise ValidationMismatchError(kind.value, "an ordered list of element ids", answer)
    return tuple(answer)


def _as_mapping(kind: ExerciseKind, answer: Any) -> dict[str, frozenset[str]]:
    """Zone -> element ids, with empty zones dropped."""
    if not isinstance(answer, Mapping):
        raise ValidationMismatchError(kind.value, "a mapping of zone id to element ids", answer)
    placed = {}
    for zone_id, element_ids in answer.items():
        if not isinstance(zone_id, str):
            raise ValidationMismatchError(kind.value, "a mapping keyed by zone id", answer)
        ids = _as_id_set(kind, element_ids)
        if ids:
            placed[zone_id] = ids
    return placed


def _as_text(kind: ExerciseKind, answer: Any) -> str:
    if not isinstance(answer, str):
        raise ValidationMismatchError(kind.value, "a string", answer)
    return answer


# =============================================================================
# Rules
# =============================================================================


@rule(ExerciseKind.SINGLE_CHOICE)
def _single_choice(definition: ExerciseDefinition, answer: Any) -> bool:
    return _as_id(definition.kind, answer) in definition.solution.correct_option_ids


@rule(ExerciseKind.MULTI_CHOICE)
def _multi_choice(definition: ExerciseDefinition, answer: Any) -> bool:
    selected = _as_id_set(definition.kind, answer)
    solution = definition.solution
    return (
        selected == frozenset(solution.correct_option_ids)
        and len(selected) == solution.required_selections
    )


@rule(ExerciseKind.POSITION_MAPPING)
def _position_mapping(definition: ExerciseDefinition, answer: Any) -> bool:
    placed = _as_mapping(definition.kind, answer)
    expected = {
        zone_id: frozenset(ids)
        for zone_id, ids in definition.solution.correct_positions.items()
        if ids
    }
    return placed == expected


@rule(ExerciseKind.FREE_TEXT)
def _free_text(definition: ExerciseDefinition, answer: Any) -> bool:
    typed = _as_text(definition.kind, answer).strip().lower()
    return any(typed == accepted.strip().lower() for accepted in definition.solution.correct_answers)


@rule(ExerciseKind.ORDERED_SEQUENCE)
def _ordered_sequence(definition: ExerciseDefinition, answer: Any) -> bool:
    return _as_id_list(definition.kind, answer) == definition.solution.correct_sequence


@rule(ExerciseKind.HIGHLIGHT_SET)
def _highlight_set(definition: ExerciseDefinition, answer: Any) -> bool:
    return _as_id_set(definition.kind, answer) == frozenset(definition.solution.correct_targets)


def validate(definition: ExerciseDefinition, answer: Any) -> ValidationResult:
    """
    Check a candidate answer against the definition's solution.

    Raises ValidationMismatchError when the answer's shape does not fit the
    definition's kind; otherwise returns the outcome with the explanation.
    """
    correct = RULES[definition.kind](definition, answer)
    return ValidationResult(correct=correct, explanation=definition.solution.explanation)


def canonical_answer(kind: ExerciseKind, answer: Any) -> Any:
    """
    JSON-safe form of a well-shaped answer, for history records.

    Sets become sorted lists and mappings become dicts of sorted lists, so two
    equal answers always serialize identically.
    """
    if kind in (ExerciseKind.MULTI_CHOICE, ExerciseKind.HIGHLIGHT_SET):
        return sorted(_as_id_set(kind, answer))
    if kind == ExerciseKind.POSITION_MAPPING:
        return {zone_id: sorted(ids) for zone_id, ids in sorted(_as_mapping(kind, answer).items())}
    if kind == ExerciseKind.ORDERED_SEQUENCE:
        return list(_as_id_list(kind, answer))
    if kind == ExerciseKind.FREE_TEXT:
        return _as_text(kind, answer)
    return _as_id(kind, answer)


def expected_answer(definition: ExerciseDefinition) -> Any:
    """The correct answer in the same canonical form as `canonical_answer`."""
    solution = definition.solution
    kind = definition.kind
    if kind == ExerciseKind.SINGLE_CHOICE:
        return solution.correct_option_ids[0]
    if kind == ExerciseKind.MULTI_CHOICE:
        return sorted(solution.correct_option_ids)
    if kind == ExerciseKind.POSITION_MAPPING:
        return {z: sorted(ids) for z, ids in sorted(solution.correct_positions.items()) if ids}
    if kind == ExerciseKind.FREE_TEXT:
        return solution.correct_answers[0]
    if kind == ExerciseKind.ORDERED_SEQUENCE:
        return list(solution.correct_sequence)
    return sorted(solution.correct_targets)
