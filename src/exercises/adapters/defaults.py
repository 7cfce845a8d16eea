"""
Central defaults table for the adapter layer.

Every fallback an adapter applies to a missing raw field comes from here:
difficulty mapping, subtypes, canned instructions and explanations, syllable
options, fallback id prefixes and per-kind timing/tags.
"""

from typing import Any

# Difficulty words and the numeric level they map to.
DIFFICULTY_MAP: dict[str, int] = {
    "easy": 1,
    "medium": 3,
    "hard": 5,
}
DEFAULT_DIFFICULTY = 3


def map_difficulty(value: Any) -> int:
    """
    Map a raw difficulty to the 1..5 scale.

    Accepts "easy"/"medium"/"hard" (any case) and integers 1..5. Anything else
    falls back to medium.
    """
    if isinstance(value, bool):
        return DEFAULT_DIFFICULTY
    if isinstance(value, int):
        return value if 1 <= value <= 5 else DEFAULT_DIFFICULTY
    if isinstance(value, str):
        text = value.strip().lower()
        if text.isdigit() and 1 <= int(text) <= 5:
            return int(text)
        return DIFFICULTY_MAP.get(text, DEFAULT_DIFFICULTY)
    return DEFAULT_DIFFICULTY


# Fallback id prefix per raw kind, combined with a content hash.
ID_PREFIXES: dict[str, str] = {
    "multiple-answers": "ma",
    "multiple-choice": "mc",
    "single-answer": "sa",
    "syllable-counting": "sc",
    "rhyme-exercises": "re",
    "drag-and-drop": "dad",
    "table-exercise": "te",
    "fill-in-blanks": "fib",
    "gap-fill": "gf",
    "highlight": "hl",
    "click-to-change": "ctc",
    "sequencing": "seq",
}

DEFAULT_SUBTYPES: dict[str, str] = {
    "multiple-answers": "sound_matching",
    "multiple-choice": "single_correct",
    "single-answer": "single_choice",
    "syllable-counting": "word_counting",
    "rhyme-exercises": "rhyme_matching",
    "drag-and-drop": "categories",
    "table-exercise": "data_table",
    "fill-in-blanks": "word_completion",
    "gap-fill": "consonant_blend",
    "highlight": "vowels",
    "click-to-change": "capitalize",
    "sequencing": "phrase_ordering",
}

# raw kind -> subtype -> instruction; "default" applies when the subtype has no entry
INSTRUCTIONS: dict[str, dict[str, str]] = {
    "multiple-answers": {
        "sound_matching": "Select the words that have the same sound.",
        "synonym": "Find the words with similar meanings.",
        "default": "Select the correct answers.",
    },
    "multiple-choice": {"default": "Choose the correct answer"},
    "single-answer": {"default": "Select the best answer."},
    "syllable-counting": {"default": "Count the syllables in each word"},
    "rhyme-exercises": {"default": "Find the words that rhyme"},
    "drag-and-drop": {"default": "Drag items to their correct categories"},
    "table-exercise": {"default": "Complete the table"},
    "fill-in-blanks": {
        "word_completion": "Complete the sentence with the correct word.",
        "simple_addition": "Solve the addition problem.",
        "possessive_hint": "Add the possessive form of the word.",
        "default": "Fill in the blank.",
    },
    "gap-fill": {"default": "Fill in the missing letters"},
    "highlight": {
        "vowels": "Click on all the vowels in the word.",
        "consonants": "Click on all the consonants in the word.",
        "pronouns": "Click on all the pronouns in the text.",
        "redundant-phrase": "Click on the redundant phrase in the text.",
        "default": "Click on the correct letters.",
    },
    "click-to-change": {
        "capitalize": "Click on the words that need a capital letter.",
        "pronoun": "Click on the words that can be replaced by a pronoun.",
        "default": "Click on words to change them",
    },
    "sequencing": {"default": "Drag the phrases to arrange them in the correct order."},
}

EXPLANATIONS: dict[str, dict[str, str]] = {
    "multiple-answers": {
        "sound_matching": "These words share the same sound pattern.",
        "synonym": "These words have similar meanings and can be used interchangeably.",
        "default": "These are the correct answers.",
    },
    "multiple-choice": {"default": "This is the correct answer."},
    "single-answer": {"default": "This is the correct answer."},
    "syllable-counting": {"default": "Clap along to count each syllable."},
    "rhyme-exercises": {"default": "Rhyming words end with the same sound."},
    "drag-and-drop": {"default": "Items are correctly categorized based on their properties."},
    "table-exercise": {"default": "Each row belongs in the column that describes it."},
    "fill-in-blanks": {"default": "This word completes the sentence."},
    "gap-fill": {"default": "These letters complete the word."},
    "highlight": {
        "vowels": "Vowels are the letters a, e, i, o, u.",
        "consonants": "Consonants are all letters that are not vowels.",
        "pronouns": "Pronouns replace nouns (he, she, it, they, etc.).",
        "default": "These are the correct selections.",
    },
    "click-to-change": {"default": "These are the words that needed to change."},
    "sequencing": {"default": "The phrases are arranged in logical order."},
}

ESTIMATED_SECONDS: dict[str, int] = {
    "multiple-answers": 45,
    "multiple-choice": 30,
    "single-answer": 30,
    "syllable-counting": 30,
    "rhyme-exercises": 45,
    "drag-and-drop": 60,
    "table-exercise": 60,
    "fill-in-blanks": 45,
    "gap-fill": 45,
    "highlight": 45,
    "click-to-change": 45,
    "sequencing": 60,
}

DEFAULT_TAGS: dict[str, tuple[str, ...]] = {
    "syllable-counting": ("phonics", "counting", "syllables"),
    "rhyme-exercises": ("rhyme", "phonics", "matching"),
    "table-exercise": ("table", "data", "analysis"),
    "click-to-change": ("interactive", "text", "transformation"),
}

DEFAULT_SYLLABLE_OPTIONS: tuple[int, ...] = (2, 3, 4, 5)

VOWELS = frozenset("aeiou")


def _lookup(table: dict[str, dict[str, str]], raw_kind: str, subtype: str | None) -> str:
    entries = table.get(raw_kind, {})
    if subtype and subtype in entries:
        return entries[subtype]
    return entries.get("default", "")


def instruction_for(raw_kind: str, subtype: str | None = None) -> str:
    """Canned instruction for a raw kind, refined by subtype when one exists."""
    return _lookup(INSTRUCTIONS, raw_kind, subtype)


def explanation_for(raw_kind: str, subtype: str | None = None) -> str:
    """Canned explanation for a raw kind, refined by subtype when one exists."""
    return _lookup(EXPLANATIONS, raw_kind, subtype)
