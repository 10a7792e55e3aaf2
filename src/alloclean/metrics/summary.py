# src/alloclean/metrics/summary.py
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import pandas as pd

from alloclean.schemas.models import Finding

_COLUMNS = ["id", "entity", "severity", "category", "family", "field"]


def findings_frame(findings: Sequence[Finding]) -> pd.DataFrame:
    """
    @brief
    Tabular view of findings, one row per finding.

    @details
    Enum members are flattened to their string values so the frame can be
    grouped, filtered and written without further conversion.
    """
    rows = [
        {
            "id": f.id,
            "entity": f.entity.value,
            "severity": f.severity.value,
            "category": f.category.value,
            "family": f.family.value,
            "field": f.field,
        }
        for f in findings
    ]
    return pd.DataFrame(rows, columns=_COLUMNS)


def summarize_findings(findings: Sequence[Finding]) -> dict[str, Any]:
    """
    @brief
    Builds the validation summary: totals and breakdowns of the findings list.

    @returns
        JSON-serializable dict with error/warning totals and counts per entity,
        per family and per category.
    """
    df = findings_frame(findings)

    errors = int((df["severity"] == "error").sum())
    warnings = int((df["severity"] == "warning").sum())

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "total": int(len(df)),
        "errors": errors,
        "warnings": warnings,
        "clean": len(df) == 0,
        "by_entity": _counts(df, "entity"),
        "by_family": _counts(df, "family"),
        "by_category": _counts(df, "category"),
        "by_entity_severity": _counts(df.assign(key=df["entity"] + "/" + df["severity"]), "key"),
    }


def _counts(df: pd.DataFrame, column: str) -> dict[str, int]:
    if df.empty:
        return {}
    return {str(k): int(v) for k, v in df.groupby(column).size().items()}
