"""
Multiple-answers adapter.

Word-picking exercises (same sound, synonyms, antonyms) where several options
are correct. Normalizes to a multi-choice definition.
"""

from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, get_field, is_flagged_correct, list_field, option_media, option_text

# Presentation attributes carried through to the element metadata.
_PRESENTATION_KEYS = ("endSound", "sound", "category")


@register(RawKind.MULTIPLE_ANSWERS, ExerciseKind.MULTI_CHOICE)
def normalize_multiple_answers(raw: dict) -> ExerciseDefinition:
    options = list_field(raw, "options")
    listed = {str(a).strip().lower() for a in list_field(raw, "correctAnswers", "correct_answers")}

    elements = []
    correct_ids = []
    for i, option in enumerate(options):
        element_id = f"opt_{i}"
        text = option_text(option)
        is_correct = is_flagged_correct(option) or text.strip().lower() in listed
        metadata = {}
        if isinstance(option, dict):
            metadata = {key: option[key] for key in _PRESENTATION_KEYS if option.get(key)}

        elements.append({
            "id": element_id,
            "content": text,
            "media": option_media(option),
            "metadata": metadata,
            "correct": is_correct,
        })
        if is_correct:
            correct_ids.append(element_id)

    required = get_field(raw, "requiredSelections", "required_selections", default=len(correct_ids))

    return build_definition(
        RawKind.MULTIPLE_ANSWERS.value,
        raw,
        kind=ExerciseKind.MULTI_CHOICE,
        elements=elements,
        solution={"correct_option_ids": correct_ids, "required_selections": required},
    )
