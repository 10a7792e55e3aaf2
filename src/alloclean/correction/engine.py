# src/alloclean/correction/engine.py
"""
@brief
Categorical, re-validating auto-correction.

@details
Each auto-applicable finding category maps to exactly one pure transform over
the whole affected collection (not only the flagged records). Transforms are
total: records without the expected shape pass through unchanged. Applying a
transform twice is the same as applying it once.

`apply_correction` always re-runs the validation orchestrator afterwards, so
callers never hold findings that predate the correction.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel

from alloclean.errors import CorrectionError
from alloclean.schemas.models import (
    Collections,
    EntityKind,
    Finding,
    FindingCategory,
    Requester,
    Resource,
    ValidationConfig,
    WorkItem,
)
from alloclean.validator.cross_reference import invalid_references, matches_reference_format
from alloclean.validator.orchestrator import ValidationOrchestrator
from alloclean.validator.record_validator import parses_as_json

logger = logging.getLogger(__name__)

Transform = Callable[[Collections, ValidationConfig], tuple[Collections, int]]


# ----------------------------
# Record-level helpers
# ----------------------------
def _map_records(
    records: Sequence[Any], record_type: type, fn: Callable[[Any], Any]
) -> tuple[tuple[Any, ...], int]:
    """Apply fn to records of record_type; returns (new records, changed count)."""
    out = []
    changed = 0
    for record in records:
        new = fn(record) if isinstance(record, record_type) else record
        if new is not record:
            changed += 1
        out.append(new)
    return tuple(out), changed


# ----------------------------
# Transforms
# ----------------------------
def fix_unknown_references(c: Collections, cfg: ValidationConfig) -> tuple[Collections, int]:
    """
    Drop exactly the references the cross-reference check flags. With no work
    items loaded there is nothing to check existence against, so only the
    `"T" + digits` format filter applies (and only when the sample heuristic
    is on).
    """
    known = {getattr(t, "work_item_id", "") for t in c.work_items} - {""}

    def keep(ref: str) -> bool:
        if known:
            return not invalid_references((ref,), known, cfg)
        if cfg.reference_heuristic:
            return matches_reference_format(ref, cfg.reference_max_suffix)
        return True

    def fix(r: Requester) -> Requester:
        kept = tuple(ref for ref in r.requested_work_item_ids if keep(ref))
        if kept == r.requested_work_item_ids:
            return r
        return r.model_copy(update={"requested_work_item_ids": kept})

    requesters, changed = _map_records(c.requesters, Requester, fix)
    return c.replace(EntityKind.REQUESTER, requesters), changed


def fix_malformed_text(c: Collections, cfg: ValidationConfig) -> tuple[Collections, int]:
    """Wrap unparsable AttributesText as {"value": <original text>}."""

    def fix(r: Requester) -> Requester:
        text = r.attributes_text
        if not text or parses_as_json(text):
            return r
        wrapped = json.dumps({"value": text}, ensure_ascii=False, separators=(",", ":"))
        return r.model_copy(update={"attributes_text": wrapped})

    requesters, changed = _map_records(c.requesters, Requester, fix)
    return c.replace(EntityKind.REQUESTER, requesters), changed


def fix_resource_overload(c: Collections, cfg: ValidationConfig) -> tuple[Collections, int]:
    """Clamp MaxLoadPerPhase down to the number of available slots."""

    def fix(w: Resource) -> Resource:
        n_slots = len(w.available_slots)
        if n_slots and w.max_load_per_phase > n_slots:
            return w.model_copy(update={"max_load_per_phase": n_slots})
        return w

    resources, changed = _map_records(c.resources, Resource, fix)
    return c.replace(EntityKind.RESOURCE, resources), changed


def fix_duration(c: Collections, cfg: ValidationConfig) -> tuple[Collections, int]:
    """Clamp Duration up to 1."""

    def fix(t: WorkItem) -> WorkItem:
        return t.model_copy(update={"duration": 1}) if t.duration < 1 else t

    work_items, changed = _map_records(c.work_items, WorkItem, fix)
    return c.replace(EntityKind.WORK_ITEM, work_items), changed


def fix_priority(c: Collections, cfg: ValidationConfig) -> tuple[Collections, int]:
    """Clamp PriorityLevel into [priority_min, priority_max]."""
    lo, hi = cfg.priority_min, cfg.priority_max

    def fix(r: Requester) -> Requester:
        clamped = min(max(r.priority_level, lo), hi)
        if clamped == r.priority_level:
            return r
        return r.model_copy(update={"priority_level": clamped})

    requesters, changed = _map_records(c.requesters, Requester, fix)
    return c.replace(EntityKind.REQUESTER, requesters), changed


# ----------------------------
# Offers
# ----------------------------
@dataclass(frozen=True)
class _Correction:
    title: str
    description: str
    action: str
    confidence: int
    transform: Transform


CORRECTIONS: dict[FindingCategory, _Correction] = {
    FindingCategory.UNKNOWN_REFERENCE: _Correction(
        "Fix Invalid Work Item References",
        "Remove references to work items that do not exist from requester requests",
        "Auto-remove invalid work item references",
        95,
        fix_unknown_references,
    ),
    FindingCategory.MALFORMED_STRUCTURED_TEXT: _Correction(
        "Convert Text to JSON",
        "Convert plain or broken attribute text to a JSON document",
        'Wrap in JSON: {"value": "text content"}',
        98,
        fix_malformed_text,
    ),
    FindingCategory.RESOURCE_OVERLOAD: _Correction(
        "Fix Resource Overload",
        "Adjust MaxLoadPerPhase to match available slots",
        "Reduce MaxLoadPerPhase to available slots count",
        90,
        fix_resource_overload,
    ),
    FindingCategory.DURATION_OUT_OF_RANGE: _Correction(
        "Fix Invalid Work Item Duration",
        "Set minimum duration to 1 phase",
        "Set duration to 1 for invalid values",
        100,
        fix_duration,
    ),
    FindingCategory.PRIORITY_OUT_OF_RANGE: _Correction(
        "Fix Invalid Priority Level",
        "Adjust priority levels to the valid range",
        "Clamp priority values to the allowed range",
        100,
        fix_priority,
    ),
}


class CorrectionOffer(BaseModel):
    """A proposed correction shown next to the findings it addresses."""

    model_config = {"frozen": True}

    id: str
    finding_id: str = ""
    category: FindingCategory | None = None
    kind: Literal["fix", "suggestion"]
    title: str
    description: str
    action: str
    confidence: int
    auto_applicable: bool


def is_auto_applicable(category: FindingCategory) -> bool:
    return category in CORRECTIONS


def transform_for(category: FindingCategory) -> Transform:
    entry = CORRECTIONS.get(category)
    if entry is None:
        raise CorrectionError(
            f"No automatic correction for category {category.value!r}",
            source="correction.transform_for",
            suggested_action="Fix the affected records manually or acknowledge the finding.",
        )
    return entry.transform


def generate_offers(
    findings: Sequence[Finding],
    has_requesters: bool = False,
    has_work_items: bool = True,
    cfg: ValidationConfig | None = None,
) -> list[CorrectionOffer]:
    """
    @brief
    Turn findings into correction offers.

    @details
    One fix offer per auto-applicable category (deduplicated by title and kind,
    since the transform covers the whole collection anyway), an advisory
    offer for skill coverage gaps, and a standing advisory about the priority
    distribution when requesters are loaded. Advisory offers cannot be applied.
    The reference fix is not offered when no work items are loaded and the
    sample heuristic is off, because it would keep every reference.
    """
    cfg = cfg or ValidationConfig()
    offers: list[CorrectionOffer] = []
    for finding in findings:
        entry = CORRECTIONS.get(finding.category)
        if (
            finding.category is FindingCategory.UNKNOWN_REFERENCE
            and not has_work_items
            and not cfg.reference_heuristic
        ):
            entry = None
        if entry is not None:
            offers.append(
                CorrectionOffer(
                    id=f"fix-{finding.category.value}-{finding.id}",
                    finding_id=finding.id,
                    category=finding.category,
                    kind="fix",
                    title=entry.title,
                    description=entry.description,
                    action=entry.action,
                    confidence=entry.confidence,
                    auto_applicable=True,
                )
            )
        elif finding.category is FindingCategory.SKILL_COVERAGE_GAP:
            offers.append(
                CorrectionOffer(
                    id=f"suggest-{finding.id}",
                    finding_id=finding.id,
                    category=finding.category,
                    kind="suggestion",
                    title="Close Skill Coverage Gap",
                    description=finding.message,
                    action="Add resources offering the missing skills or relax requirements",
                    confidence=80,
                    auto_applicable=False,
                )
            )

    seen: set[tuple[str, str]] = set()
    unique: list[CorrectionOffer] = []
    for offer in offers:
        key = (offer.title, offer.kind)
        if key not in seen:
            seen.add(key)
            unique.append(offer)

    if has_requesters:
        unique.append(
            CorrectionOffer(
                id="pattern-suggestion-priority-distribution",
                kind="suggestion",
                title="Optimize Requester Priority Distribution",
                description="Current priority distribution may cause resource conflicts",
                action="Suggest priority rebalancing for better allocation",
                confidence=70,
                auto_applicable=False,
            )
        )
    return unique


# ----------------------------
# Application
# ----------------------------
@dataclass(frozen=True)
class CorrectionResult:
    collections: Collections
    findings: list[Finding]
    changed: int
    categories: tuple[FindingCategory, ...] = ()


def apply_correction(
    category: FindingCategory,
    collections: Collections,
    cfg: ValidationConfig | None = None,
) -> CorrectionResult:
    """
    @brief
    Apply the transform for `category`, then re-validate everything.

    @raises
        CorrectionError
            The category has no automatic correction (advisory only).
    """
    cfg = cfg or ValidationConfig()
    updated, changed = transform_for(category)(collections, cfg)
    logger.info("Applied correction %s: %d record(s) changed", category.value, changed)
    findings = ValidationOrchestrator(cfg).revalidate_collections(updated)
    return CorrectionResult(updated, findings, changed, (category,))


def apply_offer(
    offer: CorrectionOffer,
    collections: Collections,
    cfg: ValidationConfig | None = None,
) -> CorrectionResult:
    if not offer.auto_applicable or offer.category is None:
        raise CorrectionError(
            f"Offer {offer.title!r} is advisory and cannot be applied",
            source="correction.apply_offer",
            suggested_action="Acknowledge the suggestion and edit the data manually.",
        )
    return apply_correction(offer.category, collections, cfg)


def apply_all(collections: Collections, cfg: ValidationConfig | None = None) -> CorrectionResult:
    """
    Apply every auto-applicable correction whose category has findings,
    repeating until none remain or each category has been tried once.
    """
    cfg = cfg or ValidationConfig()
    orchestrator = ValidationOrchestrator(cfg)
    findings = orchestrator.revalidate_collections(collections)
    applied: list[FindingCategory] = []
    total = 0

    for _ in range(len(CORRECTIONS)):
        pending = [
            c
            for c in dict.fromkeys(f.category for f in findings)
            if is_auto_applicable(c) and c not in applied
        ]
        if not pending:
            break
        result = apply_correction(pending[0], collections, cfg)
        collections, findings = result.collections, result.findings
        applied.append(pending[0])
        total += result.changed

    return CorrectionResult(collections, findings, total, tuple(applied))
