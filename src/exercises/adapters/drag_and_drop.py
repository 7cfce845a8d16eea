"""
Drag-and-drop adapter.

Items are sorted into categories. Each category becomes a zone (id and label
are the category name) and the solution groups item ids by category. Items
without a category are distractors that belong in no zone.
"""

from ..errors import ShapeError
from ..schema import ExerciseDefinition, ExerciseKind
from . import RawKind, register
from .base import build_definition, list_field, option_media, option_text


def _zones(raw: dict, items: list) -> list[dict]:
    """Zones from `categories` (strings or {id, label}), else in order of first use."""
    categories = list_field(raw, "categories")
    if categories:
        zones = []
        for category in categories:
            if isinstance(category, dict):
                zone_id = str(category.get("id") or category.get("label"))
                zones.append({"id": zone_id, "label": str(category.get("label") or zone_id)})
            else:
                zones.append({"id": str(category), "label": str(category)})
        return zones

    seen: list[str] = []
    for item in items:
        category = item.get("category") if isinstance(item, dict) else None
        if category and str(category) not in seen:
            seen.append(str(category))
    return [{"id": c, "label": c} for c in seen]


@register(RawKind.DRAG_AND_DROP, ExerciseKind.POSITION_MAPPING)
def normalize_drag_and_drop(raw: dict) -> ExerciseDefinition:
    items = list_field(raw, "options", "items")
    zones = _zones(raw, items)
    positions: dict[str, list[str]] = {zone["id"]: [] for zone in zones}

    elements = []
    for i, item in enumerate(items):
        item = item if isinstance(item, dict) else {"content": item}
        element_id = str(item.get("id") or f"item_{i}")
        category = item.get("category")

        if category is not None:
            category = str(category)
            if category not in positions:
                raise ShapeError(
                    f"options[{i}].category",
                    f"unknown category '{category}'",
                    raw.get("id"),
                )
            positions[category].append(element_id)

        metadata = {"type": item["type"]} if item.get("type") else {}
        elements.append({
            "id": element_id,
            "content": option_text(item),
            "media": option_media(item),
            "metadata": metadata,
            "category": category,
        })

    return build_definition(
        RawKind.DRAG_AND_DROP.value,
        raw,
        kind=ExerciseKind.POSITION_MAPPING,
        elements=elements,
        zones=zones,
        solution={"correct_positions": positions},
    )
