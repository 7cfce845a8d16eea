"""
Rhyme adapter: pick every option that rhymes with the target word.
"""

from ..errors import ShapeError
from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, get_field, list_field, option_text


@register(RawKind.RHYME_EXERCISES, ExerciseKind.MULTI_CHOICE)
def normalize_rhyme(raw: dict) -> ExerciseDefinition:
    word = str(raw.get("word") or "")
    options = [option_text(o) for o in list_field(raw, "options")]
    rhymes = [str(r).strip().lower() for r in list_field(raw, "correctRhymes", "correct_rhymes")]

    lowered = [o.strip().lower() for o in options]
    for rhyme in rhymes:
        if rhyme not in lowered:
            raise ShapeError("correctRhymes", f"'{rhyme}' is not one of the options", raw.get("id"))

    elements = []
    correct_ids = []
    for i, text in enumerate(options):
        element_id = f"opt_{i}"
        is_correct = lowered[i] in rhymes
        elements.append({"id": element_id, "content": text, "correct": is_correct})
        if is_correct:
            correct_ids.append(element_id)

    prompt = get_field(raw, "question", "prompt") or (
        f"Which words rhyme with '{word}'?" if word else None
    )

    return build_definition(
        RawKind.RHYME_EXERCISES.value,
        raw,
        kind=ExerciseKind.MULTI_CHOICE,
        prompt=prompt,
        elements=elements,
        solution={"correct_option_ids": correct_ids, "required_selections": len(correct_ids)},
    )
