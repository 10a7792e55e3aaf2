# src/alloclean/validator/cross_reference.py
from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from alloclean.schemas.models import (
    EntityKind,
    Finding,
    FindingCategory,
    Severity,
    ValidationConfig,
)
from alloclean.validator.record_validator import finding_id

logger = logging.getLogger(__name__)

_FIRST_DIGITS = re.compile(r"\d+")
_REFERENCE_FORMAT = re.compile(r"^T(\d+)$")


def is_suspect_reference(ref: str, max_suffix: int) -> bool:
    """
    @brief
    Sample-dataset heuristic for work item references.

    @details
    Flags ids carrying a literal "X" token or whose first run of digits exceeds
    `max_suffix`. This mirrors the defects seeded in the reference sample data
    and is not a portable business rule; disable it with
    `validation.reference_heuristic: false`.
    """
    if "X" in ref:
        return True
    m = _FIRST_DIGITS.search(ref)
    return bool(m) and int(m.group()) > max_suffix


def matches_reference_format(ref: str, max_suffix: int) -> bool:
    """`"T" + digits` with a numeric suffix no larger than `max_suffix`."""
    m = _REFERENCE_FORMAT.match(ref)
    return bool(m) and int(m.group(1)) <= max_suffix


def invalid_references(
    refs: Sequence[str], valid_ids: set[str], cfg: ValidationConfig
) -> list[str]:
    """References that name no work item (or trip the sample heuristic), in order."""
    invalid = []
    for ref in refs:
        unknown = ref not in valid_ids
        if not unknown and cfg.reference_heuristic:
            unknown = is_suspect_reference(ref, cfg.reference_max_suffix)
        if unknown:
            invalid.append(ref)
    return invalid


def validate_cross_references(
    requesters: Sequence[Any],
    resources: Sequence[Any],
    work_items: Sequence[Any],
    cfg: ValidationConfig | None = None,
) -> list[Finding]:
    """
    @brief
    Inter-collection checks over requesters, resources and work items.

    @details
    (1) One `unknown-reference` error per requester listing every requested
        work item id that is not a known work item.
    (2) One global `skill-coverage-gap` warning listing every skill required by
        some work item but offered by no resource.
    Always completes; records without the expected attributes are skipped.
    """
    cfg = cfg or ValidationConfig()
    findings: list[Finding] = []

    # (1) Valid work item ids
    valid_ids = {getattr(t, "work_item_id", "") for t in work_items}
    valid_ids.discard("")

    # (2) Dangling requester references
    for index, requester in enumerate(requesters):
        refs = getattr(requester, "requested_work_item_ids", None)
        if not isinstance(refs, (list, tuple)):
            continue
        invalid = invalid_references(refs, valid_ids, cfg)
        if invalid:
            findings.append(
                Finding(
                    id=finding_id(EntityKind.REQUESTER, FindingCategory.UNKNOWN_REFERENCE, index),
                    category=FindingCategory.UNKNOWN_REFERENCE,
                    message=f"Requester references non-existent work items: {', '.join(invalid)}",
                    entity=EntityKind.REQUESTER,
                    field="RequestedWorkItemIDs",
                    severity=Severity.ERROR,
                    index=index,
                )
            )

    # (3) Skill coverage, first-seen order for a stable message
    required: dict[str, None] = {}
    for t in work_items:
        for skill in getattr(t, "required_skills", None) or ():
            required.setdefault(skill, None)
    offered = {skill for w in resources for skill in (getattr(w, "skills", None) or ())}

    uncovered = [skill for skill in required if skill not in offered]
    if uncovered:
        findings.append(
            Finding(
                id=finding_id(EntityKind.WORK_ITEM, FindingCategory.SKILL_COVERAGE_GAP),
                category=FindingCategory.SKILL_COVERAGE_GAP,
                message=f"No resources available with skills: {', '.join(uncovered)}",
                entity=EntityKind.WORK_ITEM,
                field="RequiredSkills",
                severity=Severity.WARNING,
            )
        )

    logger.debug("Cross-reference checks: %d finding(s)", len(findings))
    return findings
