# src/alloclean/validator/record_validator.py
from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from alloclean.schemas.models import (
    RECORD_TYPES,
    EntityKind,
    Finding,
    FindingCategory,
    Requester,
    Resource,
    Severity,
    ValidationConfig,
    WorkItem,
)

logger = logging.getLogger(__name__)


def finding_id(
    entity: EntityKind,
    category: FindingCategory,
    index: int | None = None,
    field: str | None = None,
) -> str:
    """Stable finding identifier: entity, index, category and (optional) field."""
    parts = [entity.value]
    if index is not None:
        parts.append(str(index))
    parts.append(category.value)
    if field:
        parts.append(field)
    return "-".join(parts)


def looks_like_json(text: str) -> bool:
    """True when text was evidently meant as a JSON object or string literal."""
    return text.startswith("{") or text.startswith('"')


def parses_as_json(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


class RecordValidator:
    """
    @brief
    Per-collection validator for one entity kind.

    @details
    Walks the records in index order and emits every finding for every record;
    there is no short-circuit on the first problem. Checks:
      - duplicate id (first occurrence is canonical, later ones are flagged)
      - missing id / name
      - kind-specific ranges (priority, duration, concurrency, load, slots)
      - resource overload (max load above the number of available slots)
      - AttributesText must parse as JSON (requesters)
      - empty skills / phases / slots
    Never raises on bad data; findings are the only output.
    """

    def __init__(self, cfg: ValidationConfig | None = None) -> None:
        self.cfg = cfg or ValidationConfig()
        self.findings: list[Finding] = []

    # ---------- Public API ----------
    def validate_collection(self, records: Sequence[Any], kind: EntityKind) -> list[Finding]:
        self.findings = []
        seen_ids: set[str] = set()
        checker = {
            EntityKind.REQUESTER: self._check_requester,
            EntityKind.RESOURCE: self._check_resource,
            EntityKind.WORK_ITEM: self._check_work_item,
        }[kind]

        for index, record in enumerate(records):
            self._check_duplicate(kind, index, record, seen_ids)
            if isinstance(record, RECORD_TYPES[kind]):
                checker(index, record)
            else:
                # untyped record: only the checks that tolerate any shape
                self._check_required(kind, index, record)

        logger.debug(
            "Validated %d %s record(s): %d finding(s)", len(records), kind.value, len(self.findings)
        )
        return list(self.findings)

    # ---------- Shared checks ----------
    def _check_duplicate(
        self, kind: EntityKind, index: int, record: Any, seen_ids: set[str]
    ) -> None:
        """
        @brief
        Flag a record whose id was already seen earlier in the collection.

        @details
        The first occurrence is canonical and never flagged. Empty ids are
        skipped here and reported by `_check_required` instead.

        @params
            seen_ids : set[str]
                Ids of earlier records; updated in place.
        """
        column, record_id = _id_of(kind, record)
        if not record_id:
            return  # reported as missing-field
        if record_id in seen_ids:
            self._add(
                kind,
                FindingCategory.DUPLICATE_ID,
                f"{_label(kind)} ID {record_id} is duplicated",
                index=index,
                field=column,
            )
        seen_ids.add(record_id)

    def _check_required(self, kind: EntityKind, index: int, record: Any) -> None:
        """
        @brief
        Require a non-empty id and name.

        @details
        Works on any record shape, so untyped records get this check too.
        """
        column, record_id = _id_of(kind, record)
        if not record_id:
            self._add(
                kind,
                FindingCategory.MISSING_FIELD,
                f"{_label(kind)} ID is required",
                index=index,
                field=column,
            )
        if not getattr(record, "name", None):
            self._add(
                kind,
                FindingCategory.MISSING_FIELD,
                f"{_label(kind)} Name is required",
                index=index,
                field="Name",
            )

    # ---------- Kind-specific checks ----------
    def _check_requester(self, index: int, r: Requester) -> None:
        """
        @brief
        Requester checks: required fields, priority range, AttributesText JSON.

        @details
        Text that looks like JSON but does not parse is an error; plain text is
        only a warning.
        """
        kind = EntityKind.REQUESTER
        self._check_required(kind, index, r)

        lo, hi = self.cfg.priority_min, self.cfg.priority_max
        if not lo <= r.priority_level <= hi:
            self._add(
                kind,
                FindingCategory.PRIORITY_OUT_OF_RANGE,
                f"Priority Level must be between {lo} and {hi} (got {r.priority_level})",
                index=index,
                field="PriorityLevel",
            )

        text = r.attributes_text
        if text and not parses_as_json(text):
            if looks_like_json(text):
                self._add(
                    kind,
                    FindingCategory.MALFORMED_STRUCTURED_TEXT,
                    "AttributesText contains invalid JSON syntax",
                    index=index,
                    field="AttributesText",
                )
            else:
                self._add(
                    kind,
                    FindingCategory.MALFORMED_STRUCTURED_TEXT,
                    f'AttributesText contains plain text instead of JSON: "{text[:30]}..."',
                    index=index,
                    field="AttributesText",
                    severity=Severity.WARNING,
                )

    def _check_resource(self, index: int, w: Resource) -> None:
        """
        @brief
        Resource checks: slots present and in range, load limit.

        @details
        Overload (MaxLoadPerPhase above the slot count) is only reported when
        the resource has at least one slot; an empty slot list is a
        missing-field error on its own.
        """
        kind = EntityKind.RESOURCE
        self._check_required(kind, index, w)

        slots = w.available_slots
        if not slots:
            # no slot at all makes the resource unusable
            self._add(
                kind,
                FindingCategory.MISSING_FIELD,
                "Resource must have at least one available slot",
                index=index,
                field="AvailableSlots",
            )
        else:
            lo, hi = self.cfg.slot_min, self.cfg.slot_max
            invalid = [s for s in slots if s < lo or s > hi]
            if invalid:
                self._add(
                    kind,
                    FindingCategory.SLOT_OUT_OF_RANGE,
                    f"Invalid slot numbers: {', '.join(str(s) for s in invalid)}",
                    index=index,
                    field="AvailableSlots",
                    severity=Severity.WARNING,
                )

        if w.max_load_per_phase < 1:
            self._add(
                kind,
                FindingCategory.LOAD_OUT_OF_RANGE,
                "Max Load Per Phase must be at least 1",
                index=index,
                field="MaxLoadPerPhase",
            )
        elif slots and w.max_load_per_phase > len(slots):
            self._add(
                kind,
                FindingCategory.RESOURCE_OVERLOAD,
                f"MaxLoadPerPhase ({w.max_load_per_phase}) exceeds available slots ({len(slots)})",
                index=index,
                field="MaxLoadPerPhase",
            )

    def _check_work_item(self, index: int, t: WorkItem) -> None:
        """
        @brief
        Work item checks: duration, concurrency, skills and phases present.
        """
        kind = EntityKind.WORK_ITEM
        self._check_required(kind, index, t)

        if t.duration < 1:
            self._add(
                kind,
                FindingCategory.DURATION_OUT_OF_RANGE,
                f"Duration must be at least 1 phase (got {t.duration})",
                index=index,
                field="Duration",
            )
        if t.max_concurrent < 1:
            self._add(
                kind,
                FindingCategory.CONCURRENCY_OUT_OF_RANGE,
                "Max Concurrent must be at least 1",
                index=index,
                field="MaxConcurrent",
            )
        if not t.required_skills:
            self._add(
                kind,
                FindingCategory.MISSING_FIELD,
                "Work item must specify at least one required skill",
                index=index,
                field="RequiredSkills",
                severity=Severity.WARNING,
            )
        if not t.preferred_phases:
            self._add(
                kind,
                FindingCategory.MISSING_FIELD,
                "Work item must specify preferred phases",
                index=index,
                field="PreferredPhases",
                severity=Severity.WARNING,
            )

    # ---------- Utilities ----------
    def _add(
        self,
        kind: EntityKind,
        category: FindingCategory,
        message: str,
        *,
        index: int,
        field: str | None,
        severity: Severity = Severity.ERROR,
    ) -> None:
        """
        @brief
        Append one finding with a stable id.

        @params
            field : str | None
                CSV column the finding points at; part of the id only for
                missing-field, which can hit several columns of one record.
        """
        id_field = field if category is FindingCategory.MISSING_FIELD else None
        self.findings.append(
            Finding(
                id=finding_id(kind, category, index, id_field),
                category=category,
                message=message,
                entity=kind,
                field=field,
                severity=severity,
                index=index,
            )
        )


def _label(kind: EntityKind) -> str:
    """Human-readable entity name used in messages."""
    return {
        EntityKind.REQUESTER: "Requester",
        EntityKind.RESOURCE: "Resource",
        EntityKind.WORK_ITEM: "Work item",
    }[kind]


def _id_of(kind: EntityKind, record: Any) -> tuple[str, str]:
    """(CSV id column, id value) for a record; "" when the record has no id."""
    attr, column = {
        EntityKind.REQUESTER: ("requester_id", "ClientID"),
        EntityKind.RESOURCE: ("resource_id", "WorkerID"),
        EntityKind.WORK_ITEM: ("work_item_id", "TaskID"),
    }[kind]
    return column, getattr(record, attr, "") or ""


def validate_collection(
    records: Sequence[Any], kind: EntityKind, cfg: ValidationConfig | None = None
) -> list[Finding]:
    """Validate one collection; thin facade over `RecordValidator`."""
    return RecordValidator(cfg).validate_collection(records, kind)
