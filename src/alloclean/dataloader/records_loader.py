# src/alloclean/dataloader/records_loader.py
from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from alloclean.dataloader.coercion import canonical_column, coerce_row
from alloclean.dataloader.types import LoadResult
from alloclean.errors import OperationalError
from alloclean.schemas.models import ID_FIELDS, RECORD_TYPES, EntityKind

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv",)


class RecordsLoader:
    """
    CSV → LoadResult[Requester | Resource | WorkItem].

    Rules:
      - Format: UTF-8 CSV, delimiter=',', double-quote quoting
      - Headers are matched case-sensitively against the canonical columns of
        the requested kind (legacy aliases accepted, unknown columns ignored)
      - The ID column of the kind is mandatory
      - Cells are coerced per column (see dataloader.coercion)
      - Row-level issues (reported, row skipped, loading continues):
          * column count differs from header → column_mismatch
          * record construction failure      → schema_error
      - Duplicates, empty names and out-of-range values are NOT issues here:
        they are kept so the validator can report them.

    Fatal errors (raise OperationalError immediately):
      - unsupported file extension
      - missing / unreadable / undecodable file
      - no header row or no data row
      - ID column missing from header
    """

    def load(self, path: Path, kind: EntityKind) -> LoadResult:
        header, rows = self._read_csv(path)
        result = self._rows_to_result(kind, header, rows)
        self._report_summary(path, result)
        return result

    def load_text(self, text: str, kind: EntityKind, name: str = "<upload>") -> LoadResult:
        """Decode an in-memory CSV payload (e.g. an uploaded file body)."""
        lines = [line for line in text.splitlines() if line.strip()]
        header, rows = self._split_header(list(csv.reader(lines)), name)
        result = self._rows_to_result(kind, header, rows)
        self._report_summary(name, result)
        return result

    # ------------------------------
    # Internal helpers
    # ------------------------------
    def _read_csv(self, path: Path) -> tuple[list[str], list[list[str]]]:
        if not isinstance(path, Path):
            raise OperationalError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="RecordsLoader._read_csv",
                suggested_action="Pass a pathlib.Path pointing to the CSV file",
            )
        if path.suffix.lower() not in SUPPORTED_SUFFIXES:
            raise OperationalError(
                message=f"Unsupported file format: {path.name}",
                source="RecordsLoader._read_csv",
                suggested_action="Export the sheet as UTF-8 CSV and upload the .csv file.",
            )
        if not path.exists():
            raise OperationalError(
                message=f"Input CSV not found: {path}",
                source="RecordsLoader._read_csv",
                suggested_action="Verify file path and ensure the CSV is present.",
            )

        try:
            with path.open("r", encoding="utf-8-sig", newline="") as f:
                rows = [r for r in csv.reader(f) if any(cell.strip() for cell in r)]
        except UnicodeDecodeError as e:
            raise OperationalError(
                message=f"Unable to decode CSV as UTF-8: {e}",
                source="RecordsLoader._read_csv",
                suggested_action="Re-save the file with UTF-8 encoding.",
            ) from e
        except OSError as e:
            raise OperationalError(
                message=f"Unable to read CSV: {e}",
                source="RecordsLoader._read_csv",
                suggested_action="Check file permissions and that the file is not locked.",
            ) from e

        return self._split_header(rows, str(path))

    def _split_header(
        self, rows: list[list[str]], name: str
    ) -> tuple[list[str], list[list[str]]]:
        if len(rows) < 2:
            raise OperationalError(
                message=f"File must contain headers and at least one data row: {name}",
                source="RecordsLoader._split_header",
                suggested_action="Ensure the first line contains column names followed by data.",
            )
        header = [h.strip().replace('"', "") for h in rows[0]]
        return header, rows[1:]

    def _validate_header(self, kind: EntityKind, columns: Iterable[str | None]) -> None:
        id_column = RECORD_TYPES[kind].model_fields[ID_FIELDS[kind]].alias
        if id_column not in columns:
            raise OperationalError(
                message=f"Invalid CSV header: missing required column {id_column} for {kind.value}",
                source="RecordsLoader._validate_header",
                suggested_action=f"Add the {id_column} column or check the selected entity kind.",
            )

    def _rows_to_result(
        self, kind: EntityKind, header: list[str], rows: list[list[str]]
    ) -> LoadResult:
        columns = [canonical_column(kind, h) for h in header]
        self._validate_header(kind, columns)
        ignored = [h for h, c in zip(header, columns) if c is None]
        if ignored:
            logger.debug("Ignoring unknown %s column(s): %s", kind.value, ", ".join(ignored))

        model = RECORD_TYPES[kind]
        issues: list[dict[str, Any]] = []
        records: list[Any] = []

        for line_no, values in enumerate(rows, start=2):  # header = line 1
            if len(values) != len(header):
                issues.append(
                    {
                        "kind": "column_mismatch",
                        "line_no": line_no,
                        "message": f"Expected {len(header)} column(s), got {len(values)}",
                    }
                )
                continue

            typed = coerce_row(kind, dict(zip(header, values)))
            try:
                records.append(model.model_validate(typed))
            except ValidationError as e:
                issues.append(
                    {
                        "kind": "schema_error",
                        "line_no": line_no,
                        "message": f"{model.__name__} construction failed: {e}",
                    }
                )

        return LoadResult(
            kind=kind,
            success=not issues,
            records=records,
            errors=issues,
            total_rows=len(rows),
            kept_rows=len(records),
        )

    def _report_summary(self, path: Path | str, result: LoadResult) -> None:
        if result.success:
            logger.info(
                "RecordsLoader OK: %s kept=%d/%d from %s",
                result.kind.value,
                result.kept_rows,
                result.total_rows,
                path,
            )
        else:
            counts: dict[str, int] = {}
            for it in result.errors:
                counts[it["kind"]] = counts.get(it["kind"], 0) + 1
            summary = ", ".join(f"{k}={v}" for k, v in counts.items())
            logger.warning(
                "RecordsLoader: %d issue(s) across %d row(s) in %s [%s]; kept=%d",
                len(result.errors),
                result.total_rows,
                path,
                summary or "no-summary",
                result.kept_rows,
            )


__all__ = ["RecordsLoader", "SUPPORTED_SUFFIXES"]
