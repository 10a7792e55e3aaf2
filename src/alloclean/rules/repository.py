# src/alloclean/rules/repository.py
from __future__ import annotations

import copy
import itertools
import logging
from typing import Any

from pydantic import ValidationError

from alloclean.errors import RuleError
from alloclean.schemas.models import Rule, RuleKind

logger = logging.getLogger(__name__)

# Keyword table for free-text authoring, checked in order; first hit wins.
# This is a deterministic seed, not language understanding: generated
# parameters are placeholders the user is expected to edit.
_KEYWORD_TABLE: tuple[tuple[tuple[str, ...], RuleKind, str, dict[str, Any]], ...] = (
    (("together", "co-run"), RuleKind.CO_RUN, "Co-run Rule", {"work_items": ["T1", "T2"]}),
    (
        ("limit", "maximum"),
        RuleKind.LOAD_LIMIT,
        "Load Limit Rule",
        {"resource_group": "All", "max_slots": 5},
    ),
    (
        ("phase",),
        RuleKind.PHASE_WINDOW,
        "Phase Window Rule",
        {"work_item_id": "T1", "allowed_phases": [1, 2, 3]},
    ),
)
_FALLBACK = (RuleKind.CO_RUN, "Generated Rule", {"work_items": ["T1", "T2"]})

_IMMUTABLE_FIELDS = {"id"}


def classify_rule_text(text: str) -> tuple[RuleKind, str, dict[str, Any]]:
    """Keyword classification of free text → (kind, default name, parameter stub)."""
    lowered = text.lower()
    for keywords, kind, name, params in _KEYWORD_TABLE:
        if any(k in lowered for k in keywords):
            return kind, name, copy.deepcopy(params)
    kind, name, params = _FALLBACK
    return kind, name, copy.deepcopy(params)


def describe_parameters(rule: Rule) -> str:
    """Short human-readable parameter summary for a rule listing."""
    p = rule.parameters
    if rule.kind is RuleKind.CO_RUN:
        return f"Work items: {', '.join(p.get('work_items') or []) or 'None specified'}"
    if rule.kind is RuleKind.LOAD_LIMIT:
        return f"Group: {p.get('resource_group') or 'All'}, Max: {p.get('max_slots') or 0}"
    if rule.kind is RuleKind.PHASE_WINDOW:
        phases = ", ".join(str(x) for x in p.get("allowed_phases") or []) or "None"
        return f"Work item: {p.get('work_item_id') or 'None'}, Phases: {phases}"
    return ", ".join(f"{k}={v}" for k, v in p.items()) or "No parameters"


class RuleRepository:
    """
    @brief
    In-memory, session-owned collection of allocation rules.

    @details
    Ids are assigned at creation from a monotonic counter ("R0001", "R0002", …)
    and are never reused, even after removal. Rules are immutable records;
    `update` replaces the stored rule with a validated copy.
    """

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"R{next(self._counter):04d}"

    # ---------- CRUD ----------
    def add(self, rule: Rule) -> Rule:
        """Store a rule, assigning a fresh id (any id on the input is replaced)."""
        stored = rule.model_copy(update={"id": self._next_id()})
        self._rules[stored.id] = stored
        logger.info("Rule added: %s (%s) %r", stored.id, stored.kind.value, stored.name)
        return stored

    def create(
        self,
        kind: RuleKind | str,
        name: str,
        description: str = "",
        parameters: dict[str, Any] | None = None,
        active: bool = True,
    ) -> Rule:
        """Manual form submission."""
        if not name or not name.strip():
            raise RuleError(
                "Rule name is required",
                source="RuleRepository.create",
                suggested_action="Enter a rule name before adding the rule.",
            )
        try:
            rule = Rule(
                id="pending",
                kind=kind,
                name=name.strip(),
                description=description,
                parameters=parameters or {},
                active=active,
            )
        except ValidationError as e:
            raise RuleError(f"Invalid rule: {e}", source="RuleRepository.create") from e
        return self.add(rule)

    def create_from_text(self, text: str) -> Rule:
        """Free-text authoring through the keyword classifier."""
        if not text or not text.strip():
            raise RuleError(
                "Rule text is empty",
                source="RuleRepository.create_from_text",
                suggested_action="Describe the rule, e.g. 'T1 and T2 run together'.",
            )
        kind, name, params = classify_rule_text(text)
        return self.create(kind, name, description=text.strip(), parameters=params)

    def update(self, rule_id: str, **fields: Any) -> Rule:
        """Partial-field update (toggle active, edit parameters, rename …)."""
        current = self.get(rule_id)
        illegal = (set(fields) & _IMMUTABLE_FIELDS) | (set(fields) - set(Rule.model_fields))
        if illegal:
            raise RuleError(
                f"Cannot update field(s): {', '.join(sorted(illegal))}",
                source="RuleRepository.update",
            )
        try:
            updated = Rule.model_validate({**current.model_dump(), **fields})
        except ValidationError as e:
            raise RuleError(f"Invalid rule update: {e}", source="RuleRepository.update") from e
        self._rules[rule_id] = updated
        logger.info("Rule updated: %s fields=%s", rule_id, ", ".join(sorted(fields)))
        return updated

    def toggle(self, rule_id: str, active: bool) -> Rule:
        return self.update(rule_id, active=active)

    def remove(self, rule_id: str) -> Rule:
        rule = self.get(rule_id)
        del self._rules[rule_id]
        logger.info("Rule removed: %s", rule_id)
        return rule

    # ---------- Queries ----------
    def get(self, rule_id: str) -> Rule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise RuleError(
                f"Unknown rule id: {rule_id}",
                source="RuleRepository.get",
                suggested_action="List rules to see the available ids.",
            ) from None

    def list(self) -> list[Rule]:
        return list(self._rules.values())

    def active(self) -> list[Rule]:
        return [r for r in self._rules.values() if r.active]

    def __len__(self) -> int:
        return len(self._rules)
