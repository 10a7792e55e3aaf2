# src/alloclean/schemas/models.py
"""
@brief
Pydantic data models for the Alloclean dataset-cleaning toolkit.

@details
Defines the canonical model types:
    - Requester, Resource, WorkItem: typed records produced by the loader
    - Finding: one validation result (ephemeral, regenerated on every pass)
    - Rule, PriorityWeight: allocation configuration owned by the session
    - Config: runtime configuration (from config.yaml)

Entity models carry no range validators on purpose: out-of-range values must
reach the validator so that they are reported as findings instead of being
rejected at construction time. Records are frozen; every change is a whole-record
replacement via `model_copy(update=...)`.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class _StrictBaseModel(BaseModel):
    """
    @brief
    Base model enforcing strict defaults for configuration and data contracts.

    @details
    Forbids unknown fields and allows population by either field name or
    column alias.
    """

    model_config = {
        "extra": "forbid",  # Reject unknown fields
        "populate_by_name": True,  # Allow population by field name
    }


class _RecordModel(_StrictBaseModel):
    """Immutable record base shared by the three entity kinds."""

    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "frozen": True,
    }


# ------------------------------------------------------------
# Enumerations
# ------------------------------------------------------------
class EntityKind(str, Enum):
    REQUESTER = "requester"
    RESOURCE = "resource"
    WORK_ITEM = "workitem"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class FindingFamily(str, Enum):
    """Display grouping for findings (never raised as exceptions)."""

    DATA_INTEGRITY = "data-integrity"
    STRUCTURAL_TEXT = "structural-text"
    CROSS_REFERENCE = "cross-reference"


class FindingCategory(str, Enum):
    DUPLICATE_ID = "duplicate-id"
    MISSING_FIELD = "missing-field"
    PRIORITY_OUT_OF_RANGE = "priority-out-of-range"
    DURATION_OUT_OF_RANGE = "duration-out-of-range"
    CONCURRENCY_OUT_OF_RANGE = "concurrency-out-of-range"
    LOAD_OUT_OF_RANGE = "load-out-of-range"
    SLOT_OUT_OF_RANGE = "slot-out-of-range"
    RESOURCE_OVERLOAD = "resource-overload"
    MALFORMED_STRUCTURED_TEXT = "malformed-structured-text"
    UNKNOWN_REFERENCE = "unknown-reference"
    SKILL_COVERAGE_GAP = "skill-coverage-gap"

    @property
    def family(self) -> FindingFamily:
        if self is FindingCategory.MALFORMED_STRUCTURED_TEXT:
            return FindingFamily.STRUCTURAL_TEXT
        if self in (FindingCategory.UNKNOWN_REFERENCE, FindingCategory.SKILL_COVERAGE_GAP):
            return FindingFamily.CROSS_REFERENCE
        return FindingFamily.DATA_INTEGRITY


class RuleKind(str, Enum):
    CO_RUN = "co-run"
    SLOT_RESTRICTION = "slot-restriction"
    LOAD_LIMIT = "load-limit"
    PHASE_WINDOW = "phase-window"
    PATTERN_MATCH = "pattern-match"
    PRECEDENCE = "precedence"


# ------------------------------------------------------------
# Entity records
# ------------------------------------------------------------
class Requester(_RecordModel):
    """
    @brief
    One requester row (formerly "client").

    @details
    Aliases are the canonical CSV column headers; exports use them verbatim.
    """

    requester_id: str = Field("", alias="ClientID", description="Unique identifier")
    name: str = Field("", alias="Name")
    priority_level: int = Field(0, alias="PriorityLevel", description="Expected in [1, 5]")
    requested_work_item_ids: tuple[str, ...] = Field((), alias="RequestedWorkItemIDs")
    group_tag: str = Field("", alias="GroupTag")
    attributes_text: str = Field("", alias="AttributesText", description="JSON document")


class Resource(_RecordModel):
    """
    @brief
    One resource row (formerly "worker").
    """

    resource_id: str = Field("", alias="WorkerID", description="Unique identifier")
    name: str = Field("", alias="Name")
    skills: tuple[str, ...] = Field((), alias="Skills")
    available_slots: tuple[int, ...] = Field((), alias="AvailableSlots")
    max_load_per_phase: int = Field(0, alias="MaxLoadPerPhase")
    group_tag: str = Field("", alias="GroupTag")
    qualification_level: int = Field(0, alias="QualificationLevel")


class WorkItem(_RecordModel):
    """
    @brief
    One work item row (formerly "task").
    """

    work_item_id: str = Field("", alias="TaskID", description="Unique identifier")
    name: str = Field("", alias="Name")
    category: str = Field("", alias="Category")
    duration: int = Field(0, alias="Duration", description="Phases, expected >= 1")
    required_skills: tuple[str, ...] = Field((), alias="RequiredSkills")
    preferred_phases: tuple[int, ...] = Field((), alias="PreferredPhases")
    max_concurrent: int = Field(0, alias="MaxConcurrent")


RECORD_TYPES: dict[EntityKind, type[_RecordModel]] = {
    EntityKind.REQUESTER: Requester,
    EntityKind.RESOURCE: Resource,
    EntityKind.WORK_ITEM: WorkItem,
}

ID_FIELDS: dict[EntityKind, str] = {
    EntityKind.REQUESTER: "requester_id",
    EntityKind.RESOURCE: "resource_id",
    EntityKind.WORK_ITEM: "work_item_id",
}


def column_names(kind: EntityKind) -> tuple[str, ...]:
    """Canonical column headers of an entity kind, in export order."""
    model = RECORD_TYPES[kind]
    return tuple(info.alias or name for name, info in model.model_fields.items())


def field_for_column(kind: EntityKind, column: str) -> str | None:
    """Resolve a column header (or attribute name) to the model attribute name."""
    model = RECORD_TYPES[kind]
    for name, info in model.model_fields.items():
        if column in (name, info.alias):
            return name
    return None


@dataclass(frozen=True, slots=True)
class Collections:
    """
    The three entity collections handled together by validation and correction.

    Collections are replaced wholesale; `replace()` returns a new instance.
    """

    requesters: tuple[Any, ...] = field(default_factory=tuple)
    resources: tuple[Any, ...] = field(default_factory=tuple)
    work_items: tuple[Any, ...] = field(default_factory=tuple)

    def of(self, kind: EntityKind) -> tuple[Any, ...]:
        return {
            EntityKind.REQUESTER: self.requesters,
            EntityKind.RESOURCE: self.resources,
            EntityKind.WORK_ITEM: self.work_items,
        }[kind]

    def replace(self, kind: EntityKind, records: Any) -> Collections:
        records = tuple(records)
        if kind is EntityKind.REQUESTER:
            return Collections(records, self.resources, self.work_items)
        if kind is EntityKind.RESOURCE:
            return Collections(self.requesters, records, self.work_items)
        return Collections(self.requesters, self.resources, records)

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        return iter((self.requesters, self.resources, self.work_items))


# ------------------------------------------------------------
# Findings
# ------------------------------------------------------------
class Finding(_RecordModel):
    """
    @brief
    A single validation result.

    @details
    The id is derived from entity, record index, category and field so it is
    stable across validation passes over identical inputs.
    """

    id: str
    category: FindingCategory
    message: str
    entity: EntityKind
    field: str | None = None
    severity: Severity
    index: int | None = Field(None, description="Record index, None for global findings")

    @property
    def family(self) -> FindingFamily:
        return self.category.family


# ------------------------------------------------------------
# Rules and priorities
# ------------------------------------------------------------
class Rule(_RecordModel):
    """
    @brief
    User-authored or keyword-derived allocation constraint.
    """

    id: str
    kind: RuleKind
    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)
    active: bool = True


class PriorityWeight(_RecordModel):
    """
    @brief
    Weight of one allocation criterion.
    """

    id: str
    name: str
    weight: float = Field(..., ge=0.0, le=1.0)
    description: str = ""


# ------------------------------------------------------------
# Runtime configuration
# ------------------------------------------------------------
class ValidationConfig(_StrictBaseModel):
    """
    @brief
    Bounds and switches used by the validators.

    @details
    `reference_heuristic` enables the sample-specific reference checks
    (literal "X" token, numeric suffix above `reference_max_suffix`). When it is
    off, a reference is unknown only if no work item carries that id.
    """

    priority_min: int = Field(1, description="Lowest allowed PriorityLevel")
    priority_max: int = Field(5, description="Highest allowed PriorityLevel")
    slot_min: int = Field(1, description="Lowest expected slot number")
    slot_max: int = Field(10, description="Highest expected slot number")
    reference_heuristic: bool = True
    reference_max_suffix: int = Field(50, ge=0)
    write_report: bool = True


class PrioritiesConfig(_StrictBaseModel):
    balance_tolerance: float = Field(0.01, ge=0.0, description="Allowed |sum(weights) - 1|")


class ExportConfig(_StrictBaseModel):
    requesters_file: str = "requesters_cleaned.csv"
    resources_file: str = "resources_cleaned.csv"
    work_items_file: str = "workitems_cleaned.csv"
    rules_file: str = "rules_config.json"
    include_inactive_rules: bool = False


class Config(_StrictBaseModel):
    """
    @brief
    Represents the full runtime configuration loaded from config.yaml.
    """

    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    priorities: PrioritiesConfig = Field(default_factory=PrioritiesConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    auto_correct: bool = Field(False, description="Apply every auto-applicable correction")
    output_dir: str | None = "data/output"


__all__ = [
    "Collections",
    "Config",
    "EntityKind",
    "Finding",
    "FindingCategory",
    "FindingFamily",
    "PriorityWeight",
    "Requester",
    "Resource",
    "Rule",
    "RuleKind",
    "Severity",
    "WorkItem",
    "column_names",
    "field_for_column",
]
