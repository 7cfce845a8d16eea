"""
Highlight adapter.

Two modes:
- letter mode (vowels/consonants): every letter of the text is a target
  element (`char_{i}`, i = index in the text); targets are derived from the
  subtype when the raw input lists none.
- word mode (everything else): the text is split into word tokens
  (`word_{i}`); each raw target phrase marks the contiguous tokens it covers.
"""

import re

from ..errors import ShapeError
from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, defaults, register
from .base import build_definition, list_field, raw_subtype

LETTER_MODES = {"vowels", "consonants"}

_STRIP = re.compile(r"^\W+|\W+$")


def _bare(token: str) -> str:
    return _STRIP.sub("", token).lower()


def _letter_mode(text: str, subtype: str, targets: list[str]) -> tuple[list[dict], list[str]]:
    wanted = {t.lower() for t in targets}
    elements = []
    correct = []
    for i, ch in enumerate(text):
        if not ch.isalpha():
            continue
        element_id = f"char_{i}"
        lower = ch.lower()
        if wanted:
            is_target = lower in wanted
        elif subtype == "vowels":
            is_target = lower in defaults.VOWELS
        else:
            is_target = lower not in defaults.VOWELS
        elements.append({"id": element_id, "content": ch, "correct": is_target})
        if is_target:
            correct.append(element_id)
    return elements, correct


def _word_mode(text: str, targets: list[str], definition_id: str | None) -> tuple[list[dict], list[str]]:
    tokens = text.split()
    bare = [_bare(t) for t in tokens]
    hits: set[int] = set()

    for target in targets:
        phrase = [_bare(t) for t in str(target).split()]
        phrase = [p for p in phrase if p]
        width = len(phrase)
        match = next(
            (start for start in range(len(bare) - width + 1) if width and bare[start:start + width] == phrase),
            None,
        )
        if match is None:
            raise ShapeError("targets", f"'{target}' does not occur in the text", definition_id)
        hits.update(range(match, match + width))

    elements = [
        {"id": f"word_{i}", "content": token, "correct": i in hits}
        for i, token in enumerate(tokens)
    ]
    correct = [f"word_{i}" for i in sorted(hits)]
    return elements, correct


@register(RawKind.HIGHLIGHT, ExerciseKind.HIGHLIGHT_SET)
def normalize_highlight(raw: dict) -> ExerciseDefinition:
    text = str(raw.get("text") or raw.get("word") or "")
    subtype = raw_subtype(RawKind.HIGHLIGHT.value, raw)
    targets = [str(t) for t in list_field(raw, "targets")]

    if not text.strip():
        raise ShapeError("text", "nothing to highlight", raw.get("id"))

    warnings = []
    if subtype in LETTER_MODES:
        elements, correct = _letter_mode(text, subtype, targets)
    else:
        elements, correct = _word_mode(text, targets, raw.get("id"))
        if not targets:
            warnings.append("no targets given; only an empty selection is correct")

    return build_definition(
        RawKind.HIGHLIGHT.value,
        raw,
        kind=ExerciseKind.HIGHLIGHT_SET,
        subtype=subtype,
        prompt=raw.get("question") or raw.get("prompt") or text,
        elements=elements,
        solution={"correct_targets": correct},
        warnings=warnings,
    )
