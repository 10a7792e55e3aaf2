import pytest
from pydantic import ValidationError

from alloclean.schemas.models import (
    Collections,
    Config,
    EntityKind,
    Finding,
    FindingCategory,
    FindingFamily,
    PriorityWeight,
    Requester,
    Resource,
    Severity,
    WorkItem,
    column_names,
    field_for_column,
)


def test_requester_accepts_column_aliases_and_field_names():
    by_alias = Requester.model_validate(
        {"ClientID": "C1", "Name": "Acme", "PriorityLevel": 3, "RequestedWorkItemIDs": ["T1"]}
    )
    by_name = Requester(
        requester_id="C1", name="Acme", priority_level=3, requested_work_item_ids=("T1",)
    )

    assert by_alias == by_name
    assert by_alias.requested_work_item_ids == ("T1",)


def test_entity_models_keep_out_of_range_values():
    """
    @brief
    Out-of-range values must survive construction.

    @details
    The validator reports them as findings, so the models must not reject
    priority 7, duration 0 or negative loads.
    """
    r = Requester(requester_id="C1", priority_level=7)
    t = WorkItem(work_item_id="T1", duration=0)
    w = Resource(resource_id="W1", max_load_per_phase=-1)

    assert (r.priority_level, t.duration, w.max_load_per_phase) == (7, 0, -1)


def test_records_are_frozen_and_reject_unknown_fields():
    r = Requester(requester_id="C1")
    with pytest.raises(ValidationError):
        r.priority_level = 2  # type: ignore[misc]
    with pytest.raises(ValidationError):
        Requester.model_validate({"ClientID": "C1", "Unexpected": "x"})


def test_column_names_follow_export_order():
    assert column_names(EntityKind.REQUESTER) == (
        "ClientID",
        "Name",
        "PriorityLevel",
        "RequestedWorkItemIDs",
        "GroupTag",
        "AttributesText",
    )
    assert column_names(EntityKind.WORK_ITEM)[0] == "TaskID"
    assert field_for_column(EntityKind.RESOURCE, "MaxLoadPerPhase") == "max_load_per_phase"
    assert field_for_column(EntityKind.RESOURCE, "skills") == "skills"
    assert field_for_column(EntityKind.RESOURCE, "Bogus") is None


def test_finding_family_mapping():
    f = Finding(
        id="requester-0-unknown-reference",
        category=FindingCategory.UNKNOWN_REFERENCE,
        message="x",
        entity=EntityKind.REQUESTER,
        severity=Severity.ERROR,
        index=0,
    )
    assert f.family is FindingFamily.CROSS_REFERENCE
    assert FindingCategory.MALFORMED_STRUCTURED_TEXT.family is FindingFamily.STRUCTURAL_TEXT
    assert FindingCategory.DUPLICATE_ID.family is FindingFamily.DATA_INTEGRITY


def test_priority_weight_bounds():
    assert PriorityWeight(id="1", name="Priority Level", weight=1.0).weight == 1.0
    with pytest.raises(ValidationError):
        PriorityWeight(id="1", name="Priority Level", weight=1.5)


def test_collections_replace_keeps_other_collections():
    requesters = (Requester(requester_id="C1"),)
    c = Collections(requesters=requesters)

    updated = c.replace(EntityKind.WORK_ITEM, [WorkItem(work_item_id="T1")])

    assert updated.requesters is requesters
    assert updated.of(EntityKind.WORK_ITEM)[0].work_item_id == "T1"
    assert c.work_items == ()
    assert len(list(updated)) == 3


def test_config_defaults():
    cfg = Config()
    assert cfg.validation.priority_min == 1
    assert cfg.validation.priority_max == 5
    assert cfg.validation.reference_max_suffix == 50
    assert cfg.priorities.balance_tolerance == pytest.approx(0.01)
    assert cfg.export.rules_file == "rules_config.json"
    assert cfg.auto_correct is False

    schema = Config.model_json_schema()
    assert "validation" in schema["properties"]
