# src/alloclean/session/state.py
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from alloclean.correction import engine
from alloclean.correction.engine import CorrectionOffer
from alloclean.dataloader.coercion import coerce_cell
from alloclean.errors import CorrectionError
from alloclean.priorities.weights import PriorityModel
from alloclean.rules.repository import RuleRepository
from alloclean.schemas.models import (
    Collections,
    Config,
    EntityKind,
    Finding,
    FindingCategory,
    Severity,
    field_for_column,
)
from alloclean.validator.orchestrator import ValidationOrchestrator

logger = logging.getLogger(__name__)


class SessionState:
    """
    @brief
    Explicit, process-wide state of one cleaning session.

    @details
    Holds the three entity collections, the current findings, the rule
    repository and the priority model. Collections are only ever changed by
    whole-collection or whole-record replacement, and every such change re-runs
    the validation orchestrator so `findings` always describes the current data.

    The session is not thread-safe: callers must not start a second upload or
    correction on the same collection while one is in progress. A later call
    simply overwrites the result of an earlier one.
    """

    def __init__(self, cfg: Config | None = None) -> None:
        self.cfg = cfg or Config()
        self.collections = Collections()
        self.findings: list[Finding] = []
        self.rules = RuleRepository()
        self.priorities = PriorityModel(tolerance=self.cfg.priorities.balance_tolerance)
        self._orchestrator = ValidationOrchestrator(self.cfg.validation)

    # ---------- Views ----------
    @property
    def requesters(self) -> tuple[Any, ...]:
        return self.collections.requesters

    @property
    def resources(self) -> tuple[Any, ...]:
        return self.collections.resources

    @property
    def work_items(self) -> tuple[Any, ...]:
        return self.collections.work_items

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity is Severity.WARNING]

    # ---------- Update protocol ----------
    def revalidate(self) -> list[Finding]:
        self.findings = self._orchestrator.revalidate_collections(self.collections)
        return self.findings

    def replace_collection(self, kind: EntityKind, records: Iterable[Any]) -> list[Finding]:
        self.collections = self.collections.replace(kind, records)
        return self.revalidate()

    def upload(self, kind: EntityKind, records: Iterable[Any]) -> list[Finding]:
        """Install freshly parsed records for `kind` (replaces any earlier upload)."""
        records = tuple(records)
        logger.info("Upload: %d %s record(s)", len(records), kind.value)
        return self.replace_collection(kind, records)

    def replace_record(self, kind: EntityKind, index: int, record: Any) -> list[Finding]:
        current = list(self.collections.of(kind))
        if not 0 <= index < len(current):
            raise IndexError(f"{kind.value} index {index} out of range (size {len(current)})")
        current[index] = record
        return self.replace_collection(kind, current)

    def edit_field(self, kind: EntityKind, index: int, column: str, raw_text: str) -> list[Finding]:
        """
        @brief
        Inline cell edit: coerce the typed text like the parser does and replace the record.

        @raises
            KeyError    Unknown column for this entity kind.
            IndexError  Index outside the collection.
            ValueError  The coerced value does not fit the record type.
        """
        name = field_for_column(kind, column)
        if name is None:
            raise KeyError(f"Unknown {kind.value} column: {column}")
        records = self.collections.of(kind)
        if not 0 <= index < len(records):
            raise IndexError(f"{kind.value} index {index} out of range (size {len(records)})")

        record = records[index]
        alias = type(record).model_fields[name].alias or name
        value = coerce_cell(alias, raw_text)
        try:
            updated = type(record).model_validate({**record.model_dump(), name: value})
        except ValidationError as e:
            raise ValueError(f"Invalid value for {column}: {raw_text!r}") from e
        return self.replace_record(kind, index, updated)

    # ---------- Corrections ----------
    def offers(self) -> list[CorrectionOffer]:
        return engine.generate_offers(
            self.findings,
            has_requesters=bool(self.requesters),
            has_work_items=bool(self.work_items),
            cfg=self.cfg.validation,
        )

    def apply_correction(self, category: FindingCategory) -> int:
        """Apply one categorical correction; returns the number of changed records."""
        result = engine.apply_correction(category, self.collections, self.cfg.validation)
        self.collections, self.findings = result.collections, result.findings
        return result.changed

    def apply_offer(self, offer: CorrectionOffer) -> int:
        result = engine.apply_offer(offer, self.collections, self.cfg.validation)
        self.collections, self.findings = result.collections, result.findings
        return result.changed

    def apply_all(self) -> int:
        result = engine.apply_all(self.collections, self.cfg.validation)
        self.collections, self.findings = result.collections, result.findings
        if result.categories:
            logger.info(
                "Auto-correct: %s (%d record(s) changed)",
                ", ".join(c.value for c in result.categories),
                result.changed,
            )
        return result.changed

    def acknowledge(self, offer: CorrectionOffer) -> None:
        """Advisory offers can only be acknowledged, never applied."""
        if offer.auto_applicable:
            raise CorrectionError(
                f"Offer {offer.title!r} is applicable; apply it instead",
                source="SessionState.acknowledge",
            )
        logger.info("Suggestion acknowledged: %s", offer.title)
