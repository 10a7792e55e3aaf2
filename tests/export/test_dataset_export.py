# tests/export/test_dataset_export.py
import csv
import json
from pathlib import Path

import pandas as pd
import pytest

from alloclean.dataloader.records_loader import RecordsLoader
from alloclean.errors import ExportError
from alloclean.export.dataset_export import (
    export_package,
    render_records_csv,
    write_records_csv,
)
from alloclean.priorities.weights import PriorityModel
from alloclean.rules.repository import RuleRepository
from alloclean.schemas.models import (
    Collections,
    EntityKind,
    ExportConfig,
    Requester,
    Resource,
    RuleKind,
    WorkItem,
)
from alloclean.validator.record_validator import validate_collection


def _collections() -> Collections:
    return Collections(
        requesters=(
            Requester(
                requester_id="C1",
                name="Acme",
                priority_level=3,
                requested_work_item_ids=("T1", "T2"),
                group_tag="GroupA",
                attributes_text='{"value":"hello world"}',
            ),
        ),
        resources=(
            Resource(
                resource_id="W1",
                name="Ann",
                skills=("python", "sql"),
                available_slots=(1, 2),
                max_load_per_phase=2,
            ),
        ),
        work_items=(WorkItem(work_item_id="T1", name="Ingest", duration=1),),
    )


def test_list_fields_are_comma_joined_and_quoted():
    """
    @brief
    List-valued fields become one quoted "a, b" cell; integers stay unquoted.
    """
    # --- Act ---
    text = render_records_csv(_collections().resources, EntityKind.RESOURCE)

    # --- Assert ---
    header, row = text.splitlines()
    assert header == (
        '"WorkerID","Name","Skills","AvailableSlots",'
        '"MaxLoadPerPhase","GroupTag","QualificationLevel"'
    )
    assert row == '"W1","Ann","python, sql","1, 2",2,"",0'


def test_exported_csv_reloads_to_equal_records(tmp_path: Path):
    # --- Arrange ---
    c = _collections()
    vip = Requester(requester_id="C2", name="Initech", priority_level=1, attributes_text='"VIP"')
    requesters = c.requesters + (vip,)
    path = write_records_csv(requesters, EntityKind.REQUESTER, tmp_path / "req.csv")

    # --- Act ---
    reloaded = RecordsLoader().load(path, EntityKind.REQUESTER)

    # --- Assert ---
    assert tuple(reloaded.records) == requesters
    assert reloaded.records[1].attributes_text == '"VIP"'
    assert validate_collection(reloaded.records, EntityKind.REQUESTER) == []
    assert list(pd.read_csv(path).columns)[0] == "ClientID"


def test_export_package_writes_all_artifacts(tmp_path: Path):
    """
    @brief
    Three CSVs plus rules_config.json with active rules, weights and metadata.
    """
    # --- Arrange ---
    rules = RuleRepository()
    active = rules.create(RuleKind.CO_RUN, "Pair", parameters={"work_items": ["T1", "T2"]})
    inactive = rules.create(RuleKind.LOAD_LIMIT, "Cap", active=False)
    priorities = PriorityModel()

    # --- Act ---
    paths = export_package(_collections(), rules, priorities, [], tmp_path)

    # --- Assert ---
    assert set(paths) == {"requesters", "resources", "work_items", "rules"}
    assert paths["work_items"].name == "workitems_cleaned.csv"
    with paths["work_items"].open(encoding="utf-8", newline="") as f:
        assert next(csv.reader(f))[0] == "TaskID"

    config = json.loads(paths["rules"].read_text(encoding="utf-8"))
    assert [r["id"] for r in config["rules"]] == [active.id]
    assert config["rules"][0]["kind"] == "co-run"
    assert len(config["priorities"]) == 5
    meta = config["metadata"]
    assert meta["total_requesters"] == 1
    assert meta["total_resources"] == 1
    assert meta["total_work_items"] == 1
    assert meta["validation_findings"] == 0
    assert meta["balanced"] is True
    assert "export_date" in meta
    assert inactive.id not in paths["rules"].read_text(encoding="utf-8")


def test_inactive_rules_can_be_included(tmp_path: Path):
    rules = RuleRepository()
    rules.create(RuleKind.LOAD_LIMIT, "Cap", active=False)
    cfg = ExportConfig(include_inactive_rules=True, rules_file="rules.json")

    paths = export_package(Collections(), rules, PriorityModel(), [], tmp_path, cfg)

    config = json.loads(paths["rules"].read_text(encoding="utf-8"))
    assert paths["rules"].name == "rules.json"
    assert len(config["rules"]) == 1


def test_untyped_records_raise_export_error(tmp_path: Path):
    with pytest.raises(ExportError):
        write_records_csv([{"ClientID": "C1"}], EntityKind.REQUESTER, tmp_path / "x.csv")
    assert not (tmp_path / "x.csv").exists()


def test_unserializable_rule_parameters_raise_export_error(tmp_path: Path):
    rules = RuleRepository()
    rules.create(RuleKind.PATTERN_MATCH, "Odd", parameters={"pattern": object()})

    with pytest.raises(ExportError):
        export_package(Collections(), rules, PriorityModel(), [], tmp_path)
