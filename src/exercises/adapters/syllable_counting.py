"""
Syllable-counting adapter.

The learner picks how many syllables a word has from a row of counts.
Normalizes to single-choice with one element per count.
"""

from ..errors import ShapeError
from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, defaults, register
from .base import build_definition, get_field, list_field


@register(RawKind.SYLLABLE_COUNTING, ExerciseKind.SINGLE_CHOICE)
def normalize_syllable_counting(raw: dict) -> ExerciseDefinition:
    word = str(raw.get("word") or "")
    options = list_field(raw, "options", default=list(defaults.DEFAULT_SYLLABLE_OPTIONS))
    correct = get_field(raw, "correctAnswer", "correctCount", "correct_count")
    try:
        counts = [int(o) for o in options]
        correct = int(correct) if correct is not None else None
    except (TypeError, ValueError) as e:
        raise ShapeError("options", "syllable counts must be integers", raw.get("id")) from e

    if correct is None or correct not in counts:
        raise ShapeError(
            "correctAnswer",
            f"syllable count {correct!r} is not one of the options {counts}",
            raw.get("id"),
        )

    elements = [
        {"id": f"count_{n}", "content": str(n), "correct": n == correct}
        for n in counts
    ]
    prompt = get_field(raw, "question", "prompt") or (
        f"How many syllables are in '{word}'?" if word else None
    )

    return build_definition(
        RawKind.SYLLABLE_COUNTING.value,
        raw,
        kind=ExerciseKind.SINGLE_CHOICE,
        prompt=prompt,
        elements=elements,
        solution={"correct_option_ids": [f"count_{correct}"]},
    )
