# src/alloclean/metrics/logger.py
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from alloclean.errors import ExportError


def write_metrics(metrics: dict[str, Any], out_dir: Path) -> Path:
    """
    @brief
    Writes metrics.json atomically in UTF-8 encoding.

    @details
    Dumps the findings summary with sorted keys and indentation and replaces
    the target in one step, so repeated runs overwrite the same file cleanly.

    @raises
        ExportError
            If input is not a dict or JSON serialization fails.
    """
    if not isinstance(metrics, dict):
        raise ExportError("metrics must be a dict", source="metrics.write_metrics")

    try:
        payload = json.dumps(metrics, ensure_ascii=False, sort_keys=True, indent=2)
    except (TypeError, ValueError) as e:
        raise ExportError(
            f"metrics not JSON-serializable: {e}",
            source="metrics.write_metrics",
            suggested_action="Ensure metrics values are primitives (str/float/int/bool).",
        ) from e

    target = Path(out_dir) / "metrics.json"
    atomic_write_text(target, payload)
    return target


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """
    @brief
    Writes text through a temporary sibling file and `os.replace`.

    @details
    Readers never observe a half-written file; on failure the temporary file
    is removed and an ExportError is raised.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(prefix=path.name + ".", dir=str(path.parent))
    try:
        with open(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
        os.replace(tmp_path, path)
    except OSError as e:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise ExportError(
            f"atomic write failed for {path}: {e}",
            source="metrics.atomic_write_text",
            suggested_action="Check output directory permissions and disk space.",
        ) from e
