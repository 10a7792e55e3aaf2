# src/alloclean/priorities/weights.py
from __future__ import annotations

import logging
from collections.abc import Mapping

from alloclean.errors import RuleError
from alloclean.schemas.models import PriorityWeight

logger = logging.getLogger(__name__)

# (id, name, default weight, description)
_CRITERIA = (
    ("1", "Priority Level", 0.30, "Requester priority importance"),
    ("2", "Work Item Fulfillment", 0.25, "Requested work item completion"),
    ("3", "Resource Fairness", 0.20, "Equal workload distribution"),
    ("4", "Skill Matching", 0.15, "Optimal skill utilization"),
    ("5", "Phase Efficiency", 0.10, "Timeline optimization"),
)

DEFAULT_WEIGHTS: tuple[PriorityWeight, ...] = tuple(
    PriorityWeight(id=i, name=name, weight=w, description=desc) for i, name, w, desc in _CRITERIA
)

PRESETS: dict[str, dict[str, float]] = {
    "Work Item Completion Focus": {"1": 0.1, "2": 0.4, "3": 0.2, "4": 0.2, "5": 0.1},
    "Workload Equity": {"1": 0.2, "2": 0.2, "3": 0.4, "4": 0.1, "5": 0.1},
    "High Priority Emphasis": {"1": 0.5, "2": 0.2, "3": 0.1, "4": 0.1, "5": 0.1},
    "Skill Alignment": {"1": 0.1, "2": 0.2, "3": 0.2, "4": 0.4, "5": 0.1},
}


class PriorityModel:
    """
    @brief
    Fixed set of weighted allocation criteria.

    @details
    The criteria never change during a session; only weights do, either one at
    a time or through a preset. The sum of weights is reported (total,
    deviation, balanced flag) but never enforced.
    """

    def __init__(
        self, weights: tuple[PriorityWeight, ...] = DEFAULT_WEIGHTS, tolerance: float = 0.01
    ):
        self._weights = {w.id: w for w in weights}
        self.tolerance = tolerance

    def list(self) -> list[PriorityWeight]:
        return list(self._weights.values())

    def get(self, weight_id: str) -> PriorityWeight:
        try:
            return self._weights[weight_id]
        except KeyError:
            raise RuleError(
                f"Unknown priority criterion: {weight_id}",
                source="PriorityModel.get",
            ) from None

    def set_weight(self, weight_id: str, value: float) -> PriorityWeight:
        current = self.get(weight_id)
        value = float(value)
        if not 0.0 <= value <= 1.0:
            raise RuleError(
                f"Weight for {current.name!r} must be within [0, 1], got {value}",
                source="PriorityModel.set_weight",
                suggested_action="Use set_weight_percent for slider values 0..100.",
            )
        updated = current.model_copy(update={"weight": value})
        self._weights[weight_id] = updated
        return updated

    def set_weight_percent(self, weight_id: str, percent: float) -> PriorityWeight:
        return self.set_weight(weight_id, float(percent) / 100.0)

    def apply_preset(self, preset: str | Mapping[str, float]) -> list[PriorityWeight]:
        """Bulk update from a named preset or an id → weight mapping."""
        if isinstance(preset, str):
            if preset not in PRESETS:
                raise RuleError(
                    f"Unknown preset: {preset}",
                    source="PriorityModel.apply_preset",
                    suggested_action=f"Choose one of: {', '.join(PRESETS)}",
                )
            weights = PRESETS[preset]
        else:
            weights = preset
        # validate everything before touching state
        for weight_id, value in weights.items():
            self.get(weight_id)
            if not 0.0 <= float(value) <= 1.0:
                raise RuleError(
                    f"Preset weight for {weight_id} out of [0, 1]: {value}",
                    source="PriorityModel.apply_preset",
                )
        for weight_id, value in weights.items():
            self.set_weight(weight_id, value)
        logger.info("Priority preset applied: total=%.2f", self.total())
        return self.list()

    def total(self) -> float:
        return sum(w.weight for w in self._weights.values())

    def deviation(self) -> float:
        return self.total() - 1.0

    def is_balanced(self, tolerance: float | None = None) -> bool:
        tol = self.tolerance if tolerance is None else tolerance
        return abs(self.deviation()) < tol
