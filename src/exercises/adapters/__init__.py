"""
Adapter layer: raw exercise input -> canonical ExerciseDefinition.

Each raw exercise kind (multiple-answers, drag-and-drop, gap-fill, etc.) has
its own module with one pure normalizer function registered here. Kind
spellings are forgiving: "dragAndDrop", "drag_and_drop" and "drag-and-drop"
resolve to the same adapter. A declared kind that is already canonical
("single-choice", ...) loads a canonical definition as-is.
"""

from enum import Enum
from typing import Any, Callable

from loguru import logger

from ..errors import ShapeError, UnsupportedKindError
from ..schema import ExerciseDefinition, ExerciseKind, parse_definition
from .base import kebab


class RawKind(str, Enum):
    """Raw exercise kinds accepted from authors."""
    MULTIPLE_ANSWERS = "multiple-answers"
    MULTIPLE_CHOICE = "multiple-choice"
    SINGLE_ANSWER = "single-answer"
    SYLLABLE_COUNTING = "syllable-counting"
    RHYME_EXERCISES = "rhyme-exercises"
    DRAG_AND_DROP = "drag-and-drop"
    TABLE_EXERCISE = "table-exercise"
    FILL_IN_BLANKS = "fill-in-blanks"
    GAP_FILL = "gap-fill"
    HIGHLIGHT = "highlight"
    CLICK_TO_CHANGE = "click-to-change"
    SEQUENCING = "sequencing"


# Alternative spellings, after kebab-case normalization.
ALIASES: dict[str, RawKind] = {
    "multiple-answer": RawKind.MULTIPLE_ANSWERS,
    "mcq": RawKind.MULTIPLE_CHOICE,
    "single": RawKind.SINGLE_ANSWER,
    "syllables": RawKind.SYLLABLE_COUNTING,
    "syllable-count": RawKind.SYLLABLE_COUNTING,
    "rhyme": RawKind.RHYME_EXERCISES,
    "rhymes": RawKind.RHYME_EXERCISES,
    "rhyme-exercise": RawKind.RHYME_EXERCISES,
    "drag-drop": RawKind.DRAG_AND_DROP,
    "table": RawKind.TABLE_EXERCISE,
    "fill-in-blank": RawKind.FILL_IN_BLANKS,
    "fill-in-the-blank": RawKind.FILL_IN_BLANKS,
    "fill-in-the-blanks": RawKind.FILL_IN_BLANKS,
    "gapfill": RawKind.GAP_FILL,
    "highlighting": RawKind.HIGHLIGHT,
    "click-change": RawKind.CLICK_TO_CHANGE,
    "sequence": RawKind.SEQUENCING,
    "ordering": RawKind.SEQUENCING,
}

Adapter = Callable[[dict], ExerciseDefinition]

# Adapter registry - populated by @register decorator
ADAPTERS: dict[RawKind, Adapter] = {}
# Canonical kind each raw kind normalizes to
CANONICAL_KINDS: dict[RawKind, ExerciseKind] = {}


def register(raw_kind: RawKind, canonical: ExerciseKind):
    """Decorator to register the normalizer for a raw kind."""
    def decorator(func: Adapter) -> Adapter:
        ADAPTERS[raw_kind] = func
        CANONICAL_KINDS[raw_kind] = canonical
        return func
    return decorator


def resolve_kind(kind: Any) -> RawKind | ExerciseKind:
    """
    Resolve a declared kind to a raw kind or, for canonical input, a canonical kind.

    Raises UnsupportedKindError naming the declared kind when nothing matches.
    """
    if isinstance(kind, (RawKind, ExerciseKind)):
        return kind
    if not isinstance(kind, str) or not kind.strip():
        raise UnsupportedKindError(kind)

    name = kebab(kind)
    try:
        return ExerciseKind(name)
    except ValueError:
        pass
    try:
        return RawKind(name)
    except ValueError:
        pass
    if name in ALIASES:
        return ALIASES[name]
    raise UnsupportedKindError(kind)


def get_adapter(kind: str | RawKind) -> Adapter | None:
    """Get the normalizer for a raw kind, or None when the kind is unknown."""
    try:
        resolved = resolve_kind(kind)
    except UnsupportedKindError:
        return None
    if isinstance(resolved, ExerciseKind):
        return None
    return ADAPTERS.get(resolved)


def normalize(raw: dict, declared_kind: str | None = None) -> ExerciseDefinition:
    """
    Normalize one raw exercise into a canonical definition.

    The kind comes from `declared_kind` or, when omitted, from the raw
    `kind`/`exerciseType` field. Raises UnsupportedKindError for unknown kinds
    and ShapeError for malformed input; never returns a partial definition.
    """
    if not isinstance(raw, dict):
        raise ShapeError("<root>", f"raw definition must be an object, got {type(raw).__name__}")

    if declared_kind is None:
        declared_kind = raw.get("kind") or raw.get("exerciseType")
    resolved = resolve_kind(declared_kind)

    if isinstance(resolved, ExerciseKind):
        definition = parse_definition({**raw, "kind": resolved.value})
    else:
        try:
            definition = ADAPTERS[resolved](raw)
        except (TypeError, AttributeError, KeyError) as e:
            # A raw field of the wrong type that no adapter check caught.
            raise ShapeError("<root>", f"malformed {resolved.value} input: {e}", raw.get("id")) from e

    logger.debug(
        f"Normalized {declared_kind!r} -> {definition.kind.value} "
        f"'{definition.id}' ({len(definition.elements)} elements)"
    )
    return definition


# Import adapters to trigger registration
from . import multiple_answers
from . import multiple_choice
from . import single_answer
from . import syllable_counting
from . import rhyme
from . import drag_and_drop
from . import table_exercise
from . import fill_in_blanks
from . import gap_fill
from . import highlight
from . import click_to_change
from . import sequencing

__all__ = [
    "ADAPTERS",
    "ALIASES",
    "CANONICAL_KINDS",
    "RawKind",
    "get_adapter",
    "normalize",
    "register",
    "resolve_kind",
]
