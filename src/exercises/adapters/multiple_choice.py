"""
Multiple-choice adapter: one correct option among several.
"""

from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, choice_elements, get_field, list_field


@register(RawKind.MULTIPLE_CHOICE, ExerciseKind.SINGLE_CHOICE)
def normalize_multiple_choice(raw: dict) -> ExerciseDefinition:
    elements, correct_ids = choice_elements(
        list_field(raw, "options"),
        get_field(raw, "correctAnswer", "correct_answer", "answer"),
        id_prefix="option",
        definition_id=raw.get("id"),
    )
    return build_definition(
        RawKind.MULTIPLE_CHOICE.value,
        raw,
        kind=ExerciseKind.SINGLE_CHOICE,
        elements=elements,
        solution={"correct_option_ids": correct_ids},
    )
