# src/alloclean/dataloader/postload_handler.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from alloclean.dataloader.types import LoadResult

logger = logging.getLogger(__name__)


class LoadResultHandler:
    """
    @brief
    Post-processing of a LoadResult before records reach the session.

    @details
    Rows the loader had to skip are written to `load_issues_<kind>.json` in the
    output directory so the user can fix the source file. Unlike the validator,
    which never blocks, the kept records are always handed on: a partially
    decodable upload still gets validated and cleaned.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir

    def handle(self, result: LoadResult) -> list[Any]:
        if result.success:
            logger.info(
                "PostLoad: %d %s record(s) ready for validation.",
                result.kept_rows,
                result.kind.value,
            )
            return result.records

        self.output_dir.mkdir(parents=True, exist_ok=True)
        out_path = self.issues_path(result)
        try:
            with out_path.open("w", encoding="utf-8") as f:
                json.dump(result.errors, f, ensure_ascii=False, indent=2)
            logger.warning(
                "PostLoad: %d row(s) skipped while decoding %s. See %s",
                len(result.errors),
                result.kind.value,
                out_path,
            )
        except OSError as e:
            logger.error("PostLoad: failed to write issue report: %s", e)

        return result.records

    def issues_path(self, result: LoadResult) -> Path:
        return self.output_dir / f"load_issues_{result.kind.value}.json"
