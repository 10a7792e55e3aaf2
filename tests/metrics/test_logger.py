from __future__ import annotations

import json
import os

import pytest

from alloclean.errors import ExportError
from alloclean.metrics.logger import atomic_write_text, write_metrics

# --------------------------
# write_metrics
# --------------------------


def test_write_metrics_writes_json_and_overwrites(tmp_path):
    """
    @brief
    write_metrics() creates metrics.json and a second call replaces it.
    """
    # --- Arrange ---
    out_dir = tmp_path / "out"

    # --- Act ---
    p1 = write_metrics({"errors": 2, "clean": False}, out_dir)
    p2 = write_metrics({"errors": 0, "clean": True}, out_dir)

    # --- Assert ---
    assert p1 == p2
    assert p1.name == "metrics.json"
    assert json.loads(p2.read_text(encoding="utf-8")) == {"errors": 0, "clean": True}


def test_write_metrics_rejects_non_dict(tmp_path):
    with pytest.raises(ExportError):
        write_metrics([("errors", 1)], tmp_path)  # type: ignore[arg-type]


def test_write_metrics_non_serializable_raises(tmp_path):
    with pytest.raises(ExportError) as ei:
        write_metrics({"bad": {1, 2}}, tmp_path)
    assert "not JSON-serializable" in str(ei.value)
    assert not (tmp_path / "metrics.json").exists()


# --------------------------
# atomic_write_text
# --------------------------


def test_atomic_write_text_failure_raises_and_cleans_tmp(tmp_path, monkeypatch):
    """
    @brief
    Forces os.replace() to fail and verifies ExportError and cleanup.

    @details
    The temporary sibling file must not survive a failed replacement, and the
    target must not be created.
    """
    target = tmp_path / "folder" / "requesters_cleaned.csv"
    tmp_created = tmp_path / "folder" / "requesters_cleaned.csv.tmp-for-test"

    # --- Arrange ---
    def fake_mkstemp(prefix, dir):
        os.makedirs(dir, exist_ok=True)
        fd = os.open(tmp_created, os.O_RDWR | os.O_CREAT)
        return fd, str(tmp_created)

    def boom_replace(src, dst):
        raise OSError("nope")

    monkeypatch.setattr("tempfile.mkstemp", fake_mkstemp)
    monkeypatch.setattr(os, "replace", boom_replace)

    # --- Act & Assert ---
    with pytest.raises(ExportError) as ei:
        atomic_write_text(target, "ClientID\n")

    msg = str(ei.value)
    assert "atomic write failed" in msg
    assert "metrics.atomic_write_text" in msg
    assert not tmp_created.exists()
    assert not target.exists()


def test_atomic_write_text_creates_parent_dirs(tmp_path):
    target = tmp_path / "a" / "b" / "report.json"
    atomic_write_text(target, "{}")
    assert target.read_text(encoding="utf-8") == "{}"
    assert [p.name for p in target.parent.iterdir()] == ["report.json"]
