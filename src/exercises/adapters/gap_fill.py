"""
Gap-fill adapter.

Letters of a word are blanked out by position (`blanks`, 0-based). The
learner may type either the missing letters in order or the whole word.
"""

from ..errors import ShapeError
from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, get_field, list_field

MASK = "_"


@register(RawKind.GAP_FILL, ExerciseKind.FREE_TEXT)
def normalize_gap_fill(raw: dict) -> ExerciseDefinition:
    word = str(raw.get("word") or "")
    blanks = list_field(raw, "blanks")

    if not word:
        raise ShapeError("word", "gap-fill needs a word", raw.get("id"))
    if not blanks:
        raise ShapeError("blanks", "no letter positions are blanked", raw.get("id"))
    for position in blanks:
        if not isinstance(position, int) or not 0 <= position < len(word):
            raise ShapeError(
                "blanks",
                f"position {position!r} is outside '{word}'",
                raw.get("id"),
            )

    positions = sorted(set(blanks))
    masked = "".join(MASK if i in positions else ch for i, ch in enumerate(word))
    missing = "".join(word[i] for i in positions).lower()

    answers = [missing]
    if word.lower() != missing:
        answers.append(word.lower())

    prompt = get_field(raw, "question", "prompt") or f"Complete the word: {masked}"

    return build_definition(
        RawKind.GAP_FILL.value,
        raw,
        kind=ExerciseKind.FREE_TEXT,
        prompt=prompt,
        elements=[{
            "id": "word_0",
            "content": masked,
            "media": raw.get("image"),
            "metadata": {"blanks": positions},
        }],
        solution={"correct_answers": answers},
    )
