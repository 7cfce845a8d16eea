"""
Click-to-change adapter.

The learner clicks the words that need changing (a missing capital, a noun to
replace with a pronoun). Normalizes to a highlight set over word elements.
"""

from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, get_field, is_flagged_correct, list_field, option_text, raw_subtype

# subtype -> raw flag marking a word as one to click
_FLAGS = {
    "capitalize": "shouldCapitalize",
    "pronoun": "isPronoun",
}


@register(RawKind.CLICK_TO_CHANGE, ExerciseKind.HIGHLIGHT_SET)
def normalize_click_to_change(raw: dict) -> ExerciseDefinition:
    subtype = raw_subtype(RawKind.CLICK_TO_CHANGE.value, raw)
    flag = _FLAGS.get(subtype)

    elements = []
    correct_ids = []
    corrections = []
    for i, word in enumerate(list_field(raw, "words")):
        word = word if isinstance(word, dict) else {"text": word}
        element_id = f"word_{i}"
        text = option_text(word)
        is_target = bool(flag and word.get(flag)) or is_flagged_correct(word)

        elements.append({"id": element_id, "content": text, "correct": is_target})
        if is_target:
            correct_ids.append(element_id)
            if word.get("correctForm"):
                corrections.append(f"{text} -> {word['correctForm']}")

    explanation = get_field(raw, "explanation")
    if not explanation and corrections:
        # The corrected forms are only revealed after submission.
        explanation = "Changes: " + ", ".join(corrections)

    sentence = " ".join(e["content"] for e in elements)
    return build_definition(
        RawKind.CLICK_TO_CHANGE.value,
        {**raw, "explanation": explanation} if explanation else raw,
        kind=ExerciseKind.HIGHLIGHT_SET,
        subtype=subtype,
        prompt=get_field(raw, "question", "prompt") or sentence or None,
        elements=elements,
        solution={"correct_targets": correct_ids},
    )
