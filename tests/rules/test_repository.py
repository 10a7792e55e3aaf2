# tests/rules/test_repository.py
import logging

import pytest

from alloclean.errors import RuleError
from alloclean.rules.repository import RuleRepository, classify_rule_text, describe_parameters
from alloclean.schemas.models import RuleKind


@pytest.mark.parametrize(
    "text, kind, name",
    [
        ("T1 and T2 must run together", RuleKind.CO_RUN, "Co-run Rule"),
        ("Co-run the ingest jobs", RuleKind.CO_RUN, "Co-run Rule"),
        ("Limit GroupA to 3 slots", RuleKind.LOAD_LIMIT, "Load Limit Rule"),
        ("Maximum of 2 tasks per worker", RuleKind.LOAD_LIMIT, "Load Limit Rule"),
        ("T4 only in Phase 2", RuleKind.PHASE_WINDOW, "Phase Window Rule"),
        ("Prefer senior staff", RuleKind.CO_RUN, "Generated Rule"),
    ],
)
def test_keyword_classifier(text, kind, name):
    """
    @brief
    Free text maps to a rule kind by fixed keywords; unmatched text falls back to co-run.
    """
    got_kind, got_name, params = classify_rule_text(text)
    assert (got_kind, got_name) == (kind, name)
    assert params


def test_classifier_first_keyword_wins_and_stubs_are_copies():
    kind, _, params = classify_rule_text("limit the phase window")
    assert kind is RuleKind.LOAD_LIMIT
    assert params == {"resource_group": "All", "max_slots": 5}

    params["max_slots"] = 99
    assert classify_rule_text("limit")[2]["max_slots"] == 5


def test_ids_are_monotonic_and_never_reused(caplog: pytest.LogCaptureFixture):
    # --- Arrange ---
    caplog.set_level(logging.INFO)
    repo = RuleRepository()

    # --- Act ---
    a = repo.create(RuleKind.CO_RUN, "Pair", parameters={"work_items": ["T1", "T2"]})
    b = repo.create("load-limit", "Cap")
    repo.remove(a.id)
    c = repo.create_from_text("T3 in phase 1")

    # --- Assert ---
    assert [a.id, b.id, c.id] == ["R0001", "R0002", "R0003"]
    assert [r.id for r in repo.list()] == ["R0002", "R0003"]
    assert c.kind is RuleKind.PHASE_WINDOW
    assert c.description == "T3 in phase 1"
    assert "Rule removed: R0001" in caplog.text


def test_add_assigns_fresh_id():
    repo = RuleRepository()
    first = repo.create(RuleKind.PRECEDENCE, "Order")
    copy = repo.add(first)
    assert copy.id == "R0002"
    assert len(repo) == 2


def test_update_toggle_and_active_filter():
    # --- Arrange ---
    repo = RuleRepository()
    rule = repo.create(RuleKind.LOAD_LIMIT, "Cap", parameters={"max_slots": 5})

    # --- Act ---
    repo.update(rule.id, parameters={"max_slots": 2}, name="Tight cap")
    toggled = repo.toggle(rule.id, False)

    # --- Assert ---
    assert toggled.parameters == {"max_slots": 2}
    assert toggled.name == "Tight cap"
    assert toggled.active is False
    assert repo.active() == []
    assert repo.get(rule.id) == toggled


@pytest.mark.parametrize("fields", [{"id": "R9"}, {"colour": "red"}, {"kind": "teleport"}])
def test_update_rejects_bad_fields(fields):
    repo = RuleRepository()
    rule = repo.create(RuleKind.CO_RUN, "Pair")
    with pytest.raises(RuleError):
        repo.update(rule.id, **fields)
    assert repo.get(rule.id) == rule


def test_create_requires_name_and_known_kind():
    repo = RuleRepository()
    with pytest.raises(RuleError, match="name is required"):
        repo.create(RuleKind.CO_RUN, "  ")
    with pytest.raises(RuleError, match="Invalid rule"):
        repo.create("teleport", "Beam")
    with pytest.raises(RuleError, match="empty"):
        repo.create_from_text("   ")
    assert len(repo) == 0


def test_unknown_ids_raise_rule_error():
    repo = RuleRepository()
    with pytest.raises(RuleError):
        repo.get("R0404")
    with pytest.raises(RuleError):
        repo.remove("R0404")


def test_describe_parameters():
    repo = RuleRepository()
    co_run = repo.create_from_text("run together")
    limit = repo.create_from_text("limit it")
    phase = repo.create_from_text("phase window")
    other = repo.create(RuleKind.PATTERN_MATCH, "Regex", parameters={"pattern": "^T"})

    assert describe_parameters(co_run) == "Work items: T1, T2"
    assert describe_parameters(limit) == "Group: All, Max: 5"
    assert describe_parameters(phase) == "Work item: T1, Phases: 1, 2, 3"
    assert describe_parameters(other) == "pattern=^T"
