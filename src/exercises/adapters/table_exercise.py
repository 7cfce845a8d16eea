"""
Table adapter.

Each row has to be placed in the column that describes it; columns become
zones and rows become elements. A row's `correctAnswer` may name the column
by id or by label.
"""

from ..errors import ShapeError
from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, get_field, list_field, option_text


@register(RawKind.TABLE_EXERCISE, ExerciseKind.POSITION_MAPPING)
def normalize_table_exercise(raw: dict) -> ExerciseDefinition:
    zones = []
    for i, column in enumerate(list_field(raw, "columns")):
        if isinstance(column, dict):
            zone_id = str(column.get("id") or f"col_{i}")
            zones.append({"id": zone_id, "label": str(column.get("label") or zone_id)})
        else:
            zones.append({"id": str(column), "label": str(column)})

    by_label = {zone["label"].strip().lower(): zone["id"] for zone in zones}
    positions: dict[str, list[str]] = {zone["id"]: [] for zone in zones}

    elements = []
    for i, row in enumerate(list_field(raw, "rows")):
        row = row if isinstance(row, dict) else {"text": row}
        element_id = str(row.get("id") or f"row_{i}")
        answer = get_field(row, "correctAnswer", "correct_answer", "column")

        column_id = None
        if answer is not None:
            answer = str(answer)
            column_id = answer if answer in positions else by_label.get(answer.strip().lower())
            if column_id is None:
                raise ShapeError(
                    f"rows[{i}].correctAnswer",
                    f"'{answer}' is not a column",
                    raw.get("id"),
                )
            positions[column_id].append(element_id)

        elements.append({"id": element_id, "content": option_text(row), "category": column_id})

    return build_definition(
        RawKind.TABLE_EXERCISE.value,
        raw,
        kind=ExerciseKind.POSITION_MAPPING,
        elements=elements,
        zones=zones,
        solution={"correct_positions": positions},
    )
