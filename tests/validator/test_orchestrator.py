# tests/validator/test_orchestrator.py
import json
from pathlib import Path

from alloclean.schemas.models import (
    Collections,
    EntityKind,
    FindingCategory,
    Requester,
    Resource,
    WorkItem,
)
from alloclean.validator.orchestrator import ValidationOrchestrator, revalidate, validate_dataset


def _collections() -> Collections:
    return Collections(
        requesters=(
            Requester(
                requester_id="C1", name="Acme", priority_level=7, requested_work_item_ids=("T9",)
            ),
        ),
        resources=(
            Resource(
                resource_id="W1",
                name="Ann",
                skills=("sql",),
                available_slots=(1,),
                max_load_per_phase=3,
            ),
        ),
        work_items=(
            WorkItem(
                work_item_id="T1",
                name="Ingest",
                duration=1,
                max_concurrent=1,
                required_skills=("python",),
                preferred_phases=(1,),
            ),
        ),
    )


def test_findings_follow_canonical_order():
    """
    @brief
    Requesters, resources, work items, then cross-reference findings.
    """
    findings = ValidationOrchestrator().revalidate_collections(_collections())

    assert [(f.entity, f.category) for f in findings] == [
        (EntityKind.REQUESTER, FindingCategory.PRIORITY_OUT_OF_RANGE),
        (EntityKind.RESOURCE, FindingCategory.RESOURCE_OVERLOAD),
        (EntityKind.REQUESTER, FindingCategory.UNKNOWN_REFERENCE),
        (EntityKind.WORK_ITEM, FindingCategory.SKILL_COVERAGE_GAP),
    ]


def test_revalidate_is_pure():
    c = _collections()
    first = revalidate(*c)
    second = revalidate(*c)
    assert first == second
    assert c == _collections()


def test_empty_collections_are_clean():
    assert revalidate([], [], []) == []


def test_validate_dataset_writes_report(tmp_path: Path):
    # --- Act ---
    report = validate_dataset(_collections(), write_report=True, out_dir=tmp_path)

    # --- Assert ---
    assert report["valid"] is False
    assert report["counts"] == {
        "requesters": 1,
        "resources": 1,
        "work_items": 1,
        "errors": 3,
        "warnings": 1,
    }
    saved = json.loads((tmp_path / "validation_report.json").read_text(encoding="utf-8"))
    assert saved["errors"][0]["category"] == "priority-out-of-range"
    assert saved["warnings"][0]["category"] == "skill-coverage-gap"


def test_validate_dataset_without_report_writes_nothing(tmp_path: Path):
    report = validate_dataset(Collections(), out_dir=tmp_path)
    assert report["valid"] is True
    assert list(tmp_path.iterdir()) == []
