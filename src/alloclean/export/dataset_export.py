# src/alloclean/export/dataset_export.py
from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from alloclean.errors import ExportError
from alloclean.metrics.logger import atomic_write_text
from alloclean.priorities.weights import PriorityModel
from alloclean.rules.repository import RuleRepository
from alloclean.schemas.models import (
    RECORD_TYPES,
    Collections,
    EntityKind,
    ExportConfig,
    Finding,
    PriorityWeight,
    Rule,
    column_names,
)

logger = logging.getLogger(__name__)


def _cell(value: Any) -> Any:
    """List-valued fields become one comma-joined string; scalars pass through."""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


def _record_row(record: Any, kind: EntityKind) -> list[Any]:
    if not isinstance(record, RECORD_TYPES[kind]):
        raise ExportError(
            f"Unexpected record type in {kind.value} collection: {type(record).__name__}",
            source="export.write_records_csv",
            suggested_action="Upload records through the loader so they are typed.",
        )
    return [_cell(getattr(record, name)) for name in RECORD_TYPES[kind].model_fields]


def render_records_csv(records: Sequence[Any], kind: EntityKind) -> str:
    """
    @brief
    Serializes one collection to CSV text with the canonical header.

    @details
    Columns follow the model field order. Strings (including joined list
    fields such as "python, sql") are quoted, integers are not, which keeps the
    file readable by the loader and by pandas.read_csv alike.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(column_names(kind))
    for record in records:
        writer.writerow(_record_row(record, kind))
    return buf.getvalue()


def write_records_csv(records: Sequence[Any], kind: EntityKind, out_path: Path) -> Path:
    """Atomically writes one cleaned collection as UTF-8 CSV."""
    atomic_write_text(out_path, render_records_csv(records, kind))
    logger.info("Exported %d %s record(s) → %s", len(records), kind.value, out_path)
    return out_path


def build_rules_config(
    rules: Sequence[Rule],
    priorities: Sequence[PriorityWeight],
    collections: Collections,
    findings: Sequence[Finding],
    balanced: bool,
) -> dict[str, Any]:
    """Structured configuration document: rule set, weight vector and metadata."""
    try:
        rules_json = [r.model_dump(mode="json") for r in rules]
    except ValueError as e:
        raise ExportError(
            f"Rule parameters are not JSON-serializable: {e}",
            source="export.build_rules_config",
            suggested_action="Keep rule parameters to strings, numbers, lists and mappings.",
        ) from e
    return {
        "rules": rules_json,
        "priorities": [p.model_dump(mode="json") for p in priorities],
        "metadata": {
            "export_date": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "total_requesters": len(collections.requesters),
            "total_resources": len(collections.resources),
            "total_work_items": len(collections.work_items),
            "validation_findings": len(findings),
            "balanced": balanced,
        },
    }


def write_rules_config(config: dict[str, Any], out_path: Path) -> Path:
    try:
        payload = json.dumps(config, ensure_ascii=False, indent=2)
    except (TypeError, ValueError) as e:
        raise ExportError(
            f"Rule configuration is not JSON-serializable: {e}",
            source="export.write_rules_config",
            suggested_action="Keep rule parameters to strings, numbers, lists and mappings.",
        ) from e
    atomic_write_text(out_path, payload)
    logger.info("Exported rule configuration → %s", out_path)
    return out_path


def export_package(
    collections: Collections,
    rules: RuleRepository,
    priorities: PriorityModel,
    findings: Sequence[Finding],
    out_dir: Path,
    cfg: ExportConfig | None = None,
) -> dict[str, Path]:
    """
    @brief
    Writes the cleaned dataset: three CSVs and rules_config.json.

    @details
    Export is never gated on remaining findings; their count is recorded in
    the metadata instead. Only active rules are exported unless
    `include_inactive_rules` is set.

    @returns
        Mapping artifact name → written path.

    @raises
        ExportError on any serialization or write failure.
    """
    cfg = cfg or ExportConfig()
    out_dir = Path(out_dir)

    # (1) Cleaned collections
    paths = {
        "requesters": write_records_csv(
            collections.requesters, EntityKind.REQUESTER, out_dir / cfg.requesters_file
        ),
        "resources": write_records_csv(
            collections.resources, EntityKind.RESOURCE, out_dir / cfg.resources_file
        ),
        "work_items": write_records_csv(
            collections.work_items, EntityKind.WORK_ITEM, out_dir / cfg.work_items_file
        ),
    }

    # (2) Rule set and weights
    selected = rules.list() if cfg.include_inactive_rules else rules.active()
    config = build_rules_config(
        selected, priorities.list(), collections, findings, priorities.is_balanced()
    )
    paths["rules"] = write_rules_config(config, out_dir / cfg.rules_file)

    if findings:
        logger.warning("Exported with %d unresolved finding(s)", len(findings))
    return paths
