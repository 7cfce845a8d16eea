"""
Fill-in-blanks adapter.

The sentence marks its gap with `{answer}` (or `___`). The learner types the
missing word; any of the accepted answers counts.
"""

import re

from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, get_field, list_field

BLANK = "___"
_PLACEHOLDER = re.compile(r"\{answer\}|_{3,}")


@register(RawKind.FILL_IN_BLANKS, ExerciseKind.FREE_TEXT)
def normalize_fill_in_blanks(raw: dict) -> ExerciseDefinition:
    sentence = str(raw.get("sentence") or "")
    answers = list_field(raw, "answers", "correctAnswers", default=None)
    if answers is None:
        answer = get_field(raw, "answer", "correctAnswer")
        answers = [answer] if answer is not None else []

    prompt = _PLACEHOLDER.sub(BLANK, sentence) if sentence else None

    metadata = {}
    hint_word = get_field(raw, "hintWord", "hint_word")
    if hint_word:
        metadata["hintWord"] = str(hint_word)

    return build_definition(
        RawKind.FILL_IN_BLANKS.value,
        raw,
        kind=ExerciseKind.FREE_TEXT,
        prompt=prompt,
        elements=[{"id": "blank_0", "content": BLANK, "metadata": metadata}],
        solution={"correct_answers": [str(a) for a in answers]},
    )
