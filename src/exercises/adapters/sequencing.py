"""
Sequencing adapter.

`correctOrder` lists 1-based input positions in their correct order, e.g.
[2, 1, 3] means the second option comes first, and it must place every
option. Without it the input order is taken as the answer and the definition
carries an authoring warning.
"""

from ..errors import ShapeError
from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, list_field, option_text

NO_ORDER_WARNING = "no correctOrder given; the input order is used as the answer"


@register(RawKind.SEQUENCING, ExerciseKind.ORDERED_SEQUENCE)
def normalize_sequencing(raw: dict) -> ExerciseDefinition:
    options = list_field(raw, "options", "items")
    ids = [
        str(o.get("id") or f"seq_{i}") if isinstance(o, dict) else f"seq_{i}"
        for i, o in enumerate(options)
    ]

    order = list_field(raw, "correctOrder", "correct_order", default=None)
    warnings = []
    if order is None:
        sequence = list(ids)
        warnings.append(NO_ORDER_WARNING)
    else:
        sequence = []
        for position in order:
            if not isinstance(position, int) or not 1 <= position <= len(ids):
                raise ShapeError(
                    "correctOrder",
                    f"position {position!r} is outside 1..{len(ids)}",
                    raw.get("id"),
                )
            sequence.append(ids[position - 1])
        if len(sequence) != len(ids):
            raise ShapeError(
                "correctOrder",
                f"orders {len(sequence)} of {len(ids)} options; every option needs a place",
                raw.get("id"),
            )

    rank = {element_id: i for i, element_id in enumerate(sequence)}
    elements = [
        {"id": element_id, "content": option_text(option), "position": rank.get(element_id)}
        for element_id, option in zip(ids, options)
    ]

    return build_definition(
        RawKind.SEQUENCING.value,
        raw,
        kind=ExerciseKind.ORDERED_SEQUENCE,
        elements=elements,
        solution={"correct_sequence": sequence},
        warnings=warnings,
    )
