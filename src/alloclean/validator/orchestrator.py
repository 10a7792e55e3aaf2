# src/alloclean/validator/orchestrator.py
from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from alloclean.errors import ExportError
from alloclean.metrics.logger import atomic_write_text
from alloclean.schemas.models import (
    Collections,
    EntityKind,
    Finding,
    Severity,
    ValidationConfig,
)
from alloclean.validator.cross_reference import validate_cross_references
from alloclean.validator.record_validator import RecordValidator

logger = logging.getLogger(__name__)


class ValidationOrchestrator:
    """
    @brief
    Single entry point for dataset validation.

    @details
    Runs the three per-collection validators and the cross-reference validator
    and concatenates their findings in a fixed order: requesters, resources,
    work items, cross-reference. Every call is a full recompute over its inputs;
    there is no incremental state, so the result is a pure function of the
    three collections and the configuration.
    """

    def __init__(self, cfg: ValidationConfig | None = None) -> None:
        self.cfg = cfg or ValidationConfig()

    def revalidate(
        self,
        requesters: Sequence[Any],
        resources: Sequence[Any],
        work_items: Sequence[Any],
    ) -> list[Finding]:
        record_validator = RecordValidator(self.cfg)
        findings: list[Finding] = []

        # (1) Per-collection passes in canonical order
        findings += record_validator.validate_collection(requesters, EntityKind.REQUESTER)
        findings += record_validator.validate_collection(resources, EntityKind.RESOURCE)
        findings += record_validator.validate_collection(work_items, EntityKind.WORK_ITEM)

        # (2) Inter-collection pass last
        findings += validate_cross_references(requesters, resources, work_items, self.cfg)

        logger.info(
            "Validation: %d requester(s), %d resource(s), %d work item(s) → %d finding(s)",
            len(requesters),
            len(resources),
            len(work_items),
            len(findings),
        )
        return findings

    def revalidate_collections(self, collections: Collections) -> list[Finding]:
        return self.revalidate(*collections)

    def build_report(self, findings: Sequence[Finding], collections: Collections) -> dict[str, Any]:
        """
        @brief
        Assemble findings into a serializable validation report.

        @details
        `valid` is advisory: it only says whether any error-severity finding
        remains. Nothing in the toolkit refuses to export on that basis.
        """
        errors = [f.model_dump(mode="json") for f in findings if f.severity is Severity.ERROR]
        warnings = [f.model_dump(mode="json") for f in findings if f.severity is Severity.WARNING]
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "valid": not errors,
            "errors": errors,
            "warnings": warnings,
            "counts": {
                "requesters": len(collections.requesters),
                "resources": len(collections.resources),
                "work_items": len(collections.work_items),
                "errors": len(errors),
                "warnings": len(warnings),
            },
        }

    def save_report(
        self,
        report: dict[str, Any],
        out_dir: Path | None = None,
        filename: str = "validation_report.json",
    ) -> Path:
        """Writes the report atomically to `out_dir` (default 'data/output')."""
        target = (out_dir or Path("data/output")) / filename
        try:
            payload = json.dumps(report, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise ExportError(
                f"Validation report is not JSON-serializable: {e}",
                source="ValidationOrchestrator.save_report",
            ) from e
        atomic_write_text(target, payload)
        logger.info("Validation report saved: %s", target)
        return target


# ----------------------------
# THIN FACADES
# ----------------------------
def revalidate(
    requesters: Sequence[Any],
    resources: Sequence[Any],
    work_items: Sequence[Any],
    cfg: ValidationConfig | None = None,
) -> list[Finding]:
    """Full replacement findings list for the three collections."""
    return ValidationOrchestrator(cfg).revalidate(requesters, resources, work_items)


def validate_dataset(
    collections: Collections,
    cfg: ValidationConfig | None = None,
    *,
    write_report: bool = False,
    out_dir: Path | None = None,
    filename: str = "validation_report.json",
) -> dict[str, Any]:
    """
    @brief
    Validate all collections and build (optionally persist) the report.

    @returns
        Report dictionary; the findings themselves are under "errors"/"warnings".
    """
    orchestrator = ValidationOrchestrator(cfg)
    findings = orchestrator.revalidate_collections(collections)
    report = orchestrator.build_report(findings, collections)
    if write_report:
        orchestrator.save_report(report, out_dir=out_dir, filename=filename)
    return report
