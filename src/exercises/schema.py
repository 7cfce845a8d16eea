"""
Schema Registry - canonical exercise definitions.

Single source of truth for:
- the closed set of exercise kinds
- the shape of elements per kind
- the shape of the solution per kind (a tagged variant keyed on `kind`)

Philosophy:
- Definitions are immutable once built
- No silent coercion - a broken definition raises ShapeError naming the field
- No behaviour here beyond structural checks; correctness lives in validation.py
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import ShapeError

# Fields load from snake_case or camelCase; errors and dumps use snake_case.
SCHEMA_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    loc_by_alias=False,
)


class ExerciseKind(str, Enum):
    """Canonical exercise kinds. Each kind has exactly one solution variant."""
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    POSITION_MAPPING = "position-mapping"
    FREE_TEXT = "free-text"
    ORDERED_SEQUENCE = "ordered-sequence"
    HIGHLIGHT_SET = "highlight-set"


# Subtypes are free-form presentation/analytics tags. These are the ones the
# bundled adapters emit.
KNOWN_SUBTYPES = frozenset({
    # choice
    "single_correct", "single_choice", "sound_matching", "synonym", "antonym",
    "word_counting", "rhyme_matching",
    # position mapping
    "categories", "animals", "objects", "data_table",
    # free text
    "word_completion", "simple_addition", "possessive_hint",
    "consonant_blend", "word_family",
    # highlight
    "vowels", "consonants", "pronouns", "redundant-phrase",
    "capitalize", "pronoun",
    # sequencing
    "phrase_ordering",
})


def is_known_kind(kind: Any) -> bool:
    """Check whether `kind` names a canonical exercise kind."""
    if isinstance(kind, ExerciseKind):
        return True
    if not isinstance(kind, str):
        return False
    return kind in {k.value for k in ExerciseKind}


def is_known_subtype(subtype: str) -> bool:
    return subtype in KNOWN_SUBTYPES


# =============================================================================
# Elements
# =============================================================================


class Element(BaseModel):
    """
    One interactable unit of an exercise.

    `correct`, `position` and `category` are grading metadata. They are kept
    for the validation engine and stripped from the learner-facing view.
    """

    model_config = SCHEMA_CONFIG

    id: str = Field(min_length=1)
    content: str
    media: str | None = None  # image/audio reference
    metadata: dict[str, Any] = Field(default_factory=dict)

    correct: bool | None = None
    position: int | None = None
    category: str | None = None

    def public_view(self) -> dict[str, Any]:
        """Element as it may be shown before submission."""
        return {
            "id": self.id,
            "content": self.content,
            "media": self.media,
            "metadata": dict(self.metadata),
        }


class Zone(BaseModel):
    """A drop target for position-mapping exercises."""

    model_config = SCHEMA_CONFIG

    id: str = Field(min_length=1)
    label: str


# =============================================================================
# Solution variants
# =============================================================================


class SolutionBase(BaseModel):
    model_config = SCHEMA_CONFIG

    explanation: str = ""
    hints: tuple[str, ...] = ()


class SingleChoiceSolution(SolutionBase):
    kind: Literal["single-choice"] = "single-choice"
    correct_option_ids: tuple[str, ...]


class MultiChoiceSolution(SolutionBase):
    kind: Literal["multi-choice"] = "multi-choice"
    correct_option_ids: tuple[str, ...]
    required_selections: int = Field(ge=1)


class PositionMappingSolution(SolutionBase):
    kind: Literal["position-mapping"] = "position-mapping"
    correct_positions: dict[str, tuple[str, ...]]


class FreeTextSolution(SolutionBase):
    kind: Literal["free-text"] = "free-text"
    correct_answers: tuple[str, ...]


class OrderedSequenceSolution(SolutionBase):
    kind: Literal["ordered-sequence"] = "ordered-sequence"
    correct_sequence: tuple[str, ...]


class HighlightSetSolution(SolutionBase):
    kind: Literal["highlight-set"] = "highlight-set"
    correct_targets: tuple[str, ...]


Solution = Annotated[
    Union[
        SingleChoiceSolution,
        MultiChoiceSolution,
        PositionMappingSolution,
        FreeTextSolution,
        OrderedSequenceSolution,
        HighlightSetSolution,
    ],
    Field(discriminator="kind"),
]


SOLUTION_TYPES: dict[ExerciseKind, type[SolutionBase]] = {
    ExerciseKind.SINGLE_CHOICE: SingleChoiceSolution,
    ExerciseKind.MULTI_CHOICE: MultiChoiceSolution,
    ExerciseKind.POSITION_MAPPING: PositionMappingSolution,
    ExerciseKind.FREE_TEXT: FreeTextSolution,
    ExerciseKind.ORDERED_SEQUENCE: OrderedSequenceSolution,
    ExerciseKind.HIGHLIGHT_SET: HighlightSetSolution,
}


# =============================================================================
# Exercise Definition
# =============================================================================


class ExerciseDefinition(BaseModel):
    """Canonical, immutable description of one question."""

    model_config = SCHEMA_CONFIG

    id: str = Field(min_length=1)
    kind: ExerciseKind
    subtype: str = ""
    prompt: str = Field(min_length=1)
    instruction: str = ""
    difficulty: int = Field(default=3, ge=1, le=5)
    elements: tuple[Element, ...] = ()
    zones: tuple[Zone, ...] = ()  # position-mapping only
    solution: Solution

    scoring_weight: float | None = Field(default=None, ge=0)
    retry_limit: int | None = Field(default=None, ge=0)  # None -> per-kind default

    tags: tuple[str, ...] = ()
    estimated_seconds: int | None = None
    source_kind: str | None = None  # raw kind this was normalized from
    authoring_warnings: tuple[str, ...] = ()

    def element_ids(self) -> set[str]:
        return {e.id for e in self.elements}

    def zone_ids(self) -> set[str]:
        return {z.id for z in self.zones}

    def get_element(self, element_id: str) -> Element | None:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def public_view(self) -> dict[str, Any]:
        """
        Learner-facing view: no solution and no grading metadata on elements.
        """
        return {
            "id": self.id,
            "kind": self.kind.value,
            "subtype": self.subtype,
            "prompt": self.prompt,
            "instruction": self.instruction,
            "difficulty": self.difficulty,
            "elements": [e.public_view() for e in self.elements],
            "zones": [z.model_dump() for z in self.zones],
            "tags": list(self.tags),
            "estimated_seconds": self.estimated_seconds,
            "hint_count": len(self.solution.hints),
        }


def parse_definition(data: dict[str, Any]) -> ExerciseDefinition:
    """
    Build a definition from a plain mapping and shape-check it.

    Pydantic validation errors are reported as ShapeError naming the first
    offending field.
    """
    try:
        definition = ExerciseDefinition.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "<root>"
        raise ShapeError(field, first["msg"], definition_id=data.get("id")) from e

    validate_definition_shape(definition)
    return definition


# =============================================================================
# Shape validation
# =============================================================================

ShapeCheck = Callable[[ExerciseDefinition], None]

_SHAPE_CHECKS: dict[ExerciseKind, ShapeCheck] = {}


def _shape_check(kind: ExerciseKind):
    """Decorator to register the structural check for one kind."""
    def decorator(func: ShapeCheck) -> ShapeCheck:
        _SHAPE_CHECKS[kind] = func
        return func
    return decorator


def _require_known_ids(
    definition: ExerciseDefinition, ids: tuple[str, ...], field: str
) -> None:
    known = definition.element_ids()
    for element_id in ids:
        if element_id not in known:
            raise ShapeError(
                field, f"references unknown element '{element_id}'", definition.id
            )


def _require_unique(definition: ExerciseDefinition, ids: tuple[str, ...], field: str) -> None:
    if len(set(ids)) != len(ids):
        raise ShapeError(field, "contains duplicate ids", definition.id)


@_shape_check(ExerciseKind.SINGLE_CHOICE)
def _check_single_choice(definition: ExerciseDefinition) -> None:
    solution = definition.solution
    if len(solution.correct_option_ids) != 1:
        raise ShapeError(
            "solution.correct_option_ids",
            f"expected exactly one correct option, got {len(solution.correct_option_ids)}",
            definition.id,
        )
    if len(definition.elements) < 2:
        raise ShapeError("elements", "a choice needs at least two options", definition.id)
    _require_known_ids(definition, solution.correct_option_ids, "solution.correct_option_ids")


@_shape_check(ExerciseKind.MULTI_CHOICE)
def _check_multi_choice(definition: ExerciseDefinition) -> None:
    solution = definition.solution
    if not solution.correct_option_ids:
        raise ShapeError("solution.correct_option_ids", "no correct options", definition.id)
    _require_unique(definition, solution.correct_option_ids, "solution.correct_option_ids")
    _require_known_ids(definition, solution.correct_option_ids, "solution.correct_option_ids")
    if solution.required_selections != len(solution.correct_option_ids):
        raise ShapeError(
            "solution.required_selections",
            f"requires {solution.required_selections} selections but "
            f"{len(solution.correct_option_ids)} options are correct",
            definition.id,
        )


@_shape_check(ExerciseKind.POSITION_MAPPING)
def _check_position_mapping(definition: ExerciseDefinition) -> None:
    solution = definition.solution
    zone_list = [z.id for z in definition.zones]
    if not zone_list:
        raise ShapeError("zones", "position mapping needs at least one zone", definition.id)
    if len(set(zone_list)) != len(zone_list):
        raise ShapeError("zones", "contains duplicate zone ids", definition.id)
    if set(solution.correct_positions) != set(zone_list):
        raise ShapeError(
            "solution.correct_positions",
            "keys must match the zone ids exactly",
            definition.id,
        )

    placed: list[str] = []
    for zone_id, element_ids in solution.correct_positions.items():
        _require_known_ids(definition, element_ids, f"solution.correct_positions.{zone_id}")
        placed.extend(element_ids)
    _require_unique(definition, tuple(placed), "solution.correct_positions")


@_shape_check(ExerciseKind.FREE_TEXT)
def _check_free_text(definition: ExerciseDefinition) -> None:
    answers = definition.solution.correct_answers
    if not answers:
        raise ShapeError("solution.correct_answers", "no accepted answers", definition.id)
    if any(not a.strip() for a in answers):
        raise ShapeError("solution.correct_answers", "contains a blank answer", definition.id)


@_shape_check(ExerciseKind.ORDERED_SEQUENCE)
def _check_ordered_sequence(definition: ExerciseDefinition) -> None:
    sequence = definition.solution.correct_sequence
    if not sequence:
        raise ShapeError("solution.correct_sequence", "sequence is empty", definition.id)
    _require_unique(definition, sequence, "solution.correct_sequence")
    _require_known_ids(definition, sequence, "solution.correct_sequence")


@_shape_check(ExerciseKind.HIGHLIGHT_SET)
def _check_highlight_set(definition: ExerciseDefinition) -> None:
    targets = definition.solution.correct_targets
    if not definition.elements:
        raise ShapeError("elements", "nothing to highlight", definition.id)
    _require_unique(definition, targets, "solution.correct_targets")
    _require_known_ids(definition, targets, "solution.correct_targets")


def validate_definition_shape(definition: ExerciseDefinition) -> None:
    """
    Check the structural invariants of a definition.

    Does not evaluate correctness. Raises ShapeError naming the offending
    field; returns None when the definition is well formed.
    """
    if not isinstance(definition, ExerciseDefinition):
        raise ShapeError("<root>", f"expected ExerciseDefinition, got {type(definition).__name__}")

    element_ids = [e.id for e in definition.elements]
    if len(set(element_ids)) != len(element_ids):
        raise ShapeError("elements", "element ids must be unique", definition.id)

    if definition.solution.kind != definition.kind.value:
        raise ShapeError(
            "solution.kind",
            f"solution variant '{definition.solution.kind}' does not match kind "
            f"'{definition.kind.value}'",
            definition.id,
        )

    _SHAPE_CHECKS[definition.kind](definition)
