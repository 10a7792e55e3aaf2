# src/alloclean/dataloader/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from alloclean.schemas.models import EntityKind


@dataclass(slots=True)
class LoadResult:
    """
    Structured result of a data loading step.

    Fields:
        kind: Entity kind the file was decoded as.
        success: True if no row-level issues were found, False otherwise.
        records: Typed records, in file order. Rows with issues are left out,
                 every other row is kept (business validation happens later).
        errors: List of issue dicts with per-row context (used for reporting).
                Each item contains at least: kind, line_no, message.
        total_rows: Total number of data rows observed in the CSV (excludes header).
        kept_rows: Number of rows turned into records (len(records)).
    """

    kind: EntityKind
    success: bool
    records: list[Any] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)
    total_rows: int = 0
    kept_rows: int = 0
