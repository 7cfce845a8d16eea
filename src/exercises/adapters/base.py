"""
Shared helpers for raw-kind adapters.

Adapters only decide the kind-specific parts (elements, zones, solution data).
Everything common to all kinds (ids, difficulty, instruction, explanation,
hints, weight, retry override, tags) is assembled here from the raw input and
the defaults table.
"""

import hashlib
import json
import re
from typing import Any

from loguru import logger

from config import get_settings

from ..errors import ShapeError
from ..schema import ExerciseDefinition, ExerciseKind, parse_definition
from . import defaults

# Keys tried, in order, when an option is an object instead of a string.
OPTION_TEXT_KEYS = ("content", "word", "text", "label", "value")


def get_field(raw: dict, *names: str, default: Any = None) -> Any:
    """Return the first present, non-None value among alternative key spellings."""
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return default


def list_field(raw: dict, *names: str, default: Any = ()) -> list | None:
    """
    Like `get_field`, for fields that must hold a list.

    A string or any other scalar is a ShapeError naming the field, never split
    into characters or iterated. A missing field yields `default` as a list
    (empty unless given), or None when `default` is None.
    """
    for name in names:
        value = raw.get(name)
        if value is None:
            continue
        if not isinstance(value, (list, tuple)):
            raise ShapeError(name, f"must be a list, got {type(value).__name__}", raw.get("id"))
        return list(value)
    return None if default is None else list(default)


def kebab(name: str) -> str:
    """Normalize a kind spelling: camelCase, snake_case and spaces become kebab-case."""
    text = re.sub(r"(?<=[a-z0-9])([A-Z])", r"-\1", name.strip())
    return re.sub(r"[\s_]+", "-", text).lower()


def raw_subtype(raw_kind: str, raw: dict) -> str:
    """Subtype from `subtype`/`type`, ignoring a `type` that just repeats the kind."""
    value = get_field(raw, "subtype", "type")
    if not value or kebab(str(value)) == raw_kind:
        return defaults.DEFAULT_SUBTYPES.get(raw_kind, "")
    return str(value)


def fallback_id(raw_kind: str, raw: dict) -> str:
    """
    Deterministic id for raw input that carries none.

    Derived from a hash of the raw content so normalizing the same input twice
    yields the same id.
    """
    payload = json.dumps(raw, sort_keys=True, default=str)
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()[:10]
    return f"{defaults.ID_PREFIXES.get(raw_kind, 'ex')}_{digest}"


def option_text(option: Any) -> str:
    """Display text of a raw option (plain value or object)."""
    if isinstance(option, dict):
        for key in OPTION_TEXT_KEYS:
            value = option.get(key)
            if value is not None:
                return str(value)
        return ""
    return str(option)


def is_flagged_correct(option: Any) -> bool:
    if isinstance(option, dict):
        return bool(option.get("isCorrect") or option.get("is_correct") or option.get("correct"))
    return False


def option_media(option: Any) -> str | None:
    if isinstance(option, dict):
        return option.get("image") or option.get("audio") or option.get("media")
    return None


def collect_hints(raw: dict) -> tuple[str, ...]:
    """Progressive hints: a `hints` list, or a single `hint` string."""
    hints = raw.get("hints")
    if isinstance(hints, (list, tuple)):
        return tuple(str(h) for h in hints if h)
    hint = raw.get("hint")
    if hint:
        return (str(hint),)
    return ()


def _retry_override(raw: dict) -> int | None:
    """
    Retry limit requested by the raw input, if any.

    `retryLimit` wins; `maxAttempts` counts the first attempt; `allowRetry`
    false means no retries. Without any of these the per-kind default applies.
    """
    limit = get_field(raw, "retryLimit", "retry_limit")
    attempts = get_field(raw, "maxAttempts", "max_attempts")
    try:
        if limit is not None:
            return int(limit)
        if attempts is not None:
            return max(int(attempts) - 1, 0)
    except (TypeError, ValueError) as e:
        raise ShapeError("retryLimit", "must be an integer", raw.get("id")) from e
    if get_field(raw, "allowRetry", "allow_retry") is False:
        return 0
    return None


def build_definition(
    raw_kind: str,
    raw: dict,
    *,
    kind: ExerciseKind,
    elements: list[dict],
    solution: dict,
    subtype: str | None = None,
    prompt: str | None = None,
    zones: list[dict] | None = None,
    warnings: list[str] | None = None,
) -> ExerciseDefinition:
    """
    Assemble and shape-check a canonical definition.

    Raises ShapeError (never a pydantic ValidationError) when the result is
    malformed.
    """
    subtype = subtype or raw_subtype(raw_kind, raw)
    definition_id = str(get_field(raw, "id", default="") or fallback_id(raw_kind, raw))

    prompt = prompt or get_field(raw, "question", "prompt", "title")
    if not prompt:
        raise ShapeError("prompt", "raw input has no question text", definition_id)

    solution_data = {
        "kind": kind.value,
        "explanation": get_field(raw, "explanation", default="")
        or defaults.explanation_for(raw_kind, subtype),
        "hints": collect_hints(raw),
        **solution,
    }

    tags = list_field(raw, "tags")
    data = {
        "id": definition_id,
        "kind": kind,
        "subtype": subtype,
        "prompt": prompt,
        "instruction": get_field(raw, "instruction", default="")
        or defaults.instruction_for(raw_kind, subtype),
        "difficulty": defaults.map_difficulty(
            get_field(raw, "difficulty", default=get_settings().default_difficulty)
        ),
        "elements": elements,
        "zones": zones or [],
        "solution": solution_data,
        "scoring_weight": get_field(raw, "scoringWeight", "scoring_weight", "points"),
        "retry_limit": _retry_override(raw),
        "tags": tuple(tags) if tags else defaults.DEFAULT_TAGS.get(raw_kind, ()),
        "estimated_seconds": get_field(raw, "estimatedTime", "estimated_seconds")
        or defaults.ESTIMATED_SECONDS.get(raw_kind),
        "source_kind": raw_kind,
        "authoring_warnings": tuple(warnings or ()),
    }

    definition = parse_definition(data)
    for warning in definition.authoring_warnings:
        logger.warning(f"Authoring trap in {raw_kind} '{definition.id}': {warning}")
    return definition


def choice_elements(
    options: list,
    correct_answer: Any,
    id_prefix: str,
    definition_id: str | None = None,
) -> tuple[list[dict], list[str]]:
    """
    Elements and correct ids for a single-correct choice.

    The correct option is the one flagged `isCorrect`, else the first whose
    text equals `correct_answer`, else (for an integer answer) the option at
    that index. No match is a ShapeError rather than a silent default.
    """
    elements = []
    for i, option in enumerate(options):
        raw_id = option.get("id") if isinstance(option, dict) else None
        elements.append({
            "id": str(raw_id or f"{id_prefix}_{i}"),
            "content": option_text(option),
            "media": option_media(option),
        })

    correct = [e["id"] for e, option in zip(elements, options) if is_flagged_correct(option)]
    if not correct and correct_answer is not None:
        wanted = str(correct_answer).strip().lower()
        for element in elements:
            if element["content"].strip().lower() == wanted:
                correct = [element["id"]]
                break
        else:
            if isinstance(correct_answer, int) and 0 <= correct_answer < len(elements):
                correct = [elements[correct_answer]["id"]]

    if not correct:
        raise ShapeError(
            "correctAnswer",
            f"{correct_answer!r} does not match any option",
            definition_id,
        )
    for element in elements:
        element["correct"] = element["id"] in correct
    return elements, correct
