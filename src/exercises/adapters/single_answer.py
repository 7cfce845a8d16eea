"""
Single-answer adapter.

Same contract as multiple-choice, with the `opt_` id scheme and its own
canned instruction ("Select the best answer.").
"""

from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, choice_elements, get_field, list_field


@register(RawKind.SINGLE_ANSWER, ExerciseKind.SINGLE_CHOICE)
def normalize_single_answer(raw: dict) -> ExerciseDefinition:
    elements, correct_ids = choice_elements(
        list_field(raw, "options"),
        get_field(raw, "correctAnswer", "correct_answer", "answer"),
        id_prefix="opt",
        definition_id=raw.get("id"),
    )
    return build_definition(
        RawKind.SINGLE_ANSWER.value,
        raw,
        kind=ExerciseKind.SINGLE_CHOICE,
        elements=elements,
        solution={"correct_option_ids": correct_ids},
    )
