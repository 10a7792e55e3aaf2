# src/alloclean/dataloader/coercion.py
"""
Header-driven cell coercion.

This is the boundary where loosely-typed spreadsheet text becomes typed record
values; nothing downstream of it sees raw cell strings.

    list of string : RequestedWorkItemIDs, Skills, RequiredSkills   ("a, b")
    list of int    : AvailableSlots, PreferredPhases                ("[1,2]", "1-3", "1,2")
    int            : PriorityLevel, MaxLoadPerPhase, Duration,
                     MaxConcurrent, QualificationLevel              (0 on failure)
    string         : everything else
"""

from __future__ import annotations

import re
from typing import Any

from alloclean.schemas.models import EntityKind, column_names

STRING_LIST_COLUMNS = frozenset({"RequestedWorkItemIDs", "Skills", "RequiredSkills"})
INT_LIST_COLUMNS = frozenset({"AvailableSlots", "PreferredPhases"})
INT_COLUMNS = frozenset(
    {"PriorityLevel", "MaxLoadPerPhase", "Duration", "MaxConcurrent", "QualificationLevel"}
)

# Column names used by the original sample datasets
COLUMN_ALIASES: dict[EntityKind, dict[str, str]] = {
    EntityKind.REQUESTER: {
        "RequesterID": "ClientID",
        "ClientName": "Name",
        "RequesterName": "Name",
        "RequestedTaskIDs": "RequestedWorkItemIDs",
        "AttributesJSON": "AttributesText",
    },
    EntityKind.RESOURCE: {
        "ResourceID": "WorkerID",
        "WorkerName": "Name",
        "ResourceName": "Name",
        "WorkerGroup": "GroupTag",
    },
    EntityKind.WORK_ITEM: {
        "WorkItemID": "TaskID",
        "TaskName": "Name",
        "WorkItemName": "Name",
    },
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def canonical_column(kind: EntityKind, header: str) -> str | None:
    """Map a raw header to the canonical column of `kind`, or None if unknown."""
    name = header.strip().replace('"', "")
    name = COLUMN_ALIASES[kind].get(name, name)
    return name if name in column_names(kind) else None


def parse_int(text: str) -> int | None:
    """Leading-integer parse: "7" → 7, "3.9" → 3, "5 phases" → 5, "abc" → None."""
    m = _LEADING_INT.match(text)
    return int(m.group(1)) if m else None


def _split(text: str) -> list[str]:
    return [part.strip() for part in text.split(",")]


def _int_list(text: str) -> list[int]:
    if text.startswith("[") and text.endswith("]"):
        parts = _split(text[1:-1])
    elif "-" in text:
        bounds = [parse_int(p) for p in text.split("-", 1)]
        if bounds[0] is not None and bounds[1] is not None:
            return list(range(bounds[0], bounds[1] + 1))
        parts = _split(text)
    else:
        parts = _split(text) if text else []
    return [n for n in (parse_int(p) for p in parts) if n is not None]


def coerce_cell(column: str, raw: Any) -> Any:
    """
    @brief
    Convert one raw cell to the typed value expected for `column`.

    @details
    Surrounding whitespace is removed first; quote characters are data, since
    the CSV reader has already unquoted the field. Non-string input (already
    typed values, e.g. from a spreadsheet reader) is normalised too.
    """
    if raw is None:
        raw = ""
    if isinstance(raw, (list, tuple)):
        raw = ",".join(str(v) for v in raw)
    text = str(raw).strip()

    if column in STRING_LIST_COLUMNS:
        return [s for s in _split(text) if s] if text else []
    if column in INT_LIST_COLUMNS:
        return _int_list(text)
    if column in INT_COLUMNS:
        n = parse_int(text)
        return 0 if n is None else n
    return text


def coerce_row(kind: EntityKind, row: dict[str, Any]) -> dict[str, Any]:
    """Coerce a header → cell mapping into canonical column → typed value."""
    out: dict[str, Any] = {}
    for header, raw in row.items():
        column = canonical_column(kind, header)
        if column is None:
            continue
        out[column] = coerce_cell(column, raw)
    return out
