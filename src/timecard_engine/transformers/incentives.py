"""Incentive rule evaluation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence

from timecard_engine.transformers.configuration import (
    IncentiveRule,
    ShiftType,
    TransformerConfig,
)
from timecard_engine.transformers.types import Punch

logger = logging.getLogger(__name__)


def normalize_cost_center(value: str) -> str:
    """Cost centers compare without surrounding space or leading zeros."""
    return value.strip().lstrip("0")


def weekday_index(value: date) -> int:
    """Day of week with 0=Sunday through 6=Saturday."""
    return (value.weekday() + 1) % 7


@dataclass(frozen=True)
class IncentiveResult:
    """Summed incentive pay for one punch."""

    total: Decimal
    descriptions: tuple[str, ...]

    @property
    def matched(self) -> bool:
        return bool(self.descriptions)


NO_INCENTIVE = IncentiveResult(total=Decimal("0"), descriptions=())


class IncentiveEngine:
    """Evaluates incentive rules against classified punches.

    Every rule whose predicates all hold contributes its amount; the total is
    the sum over matching rules. Rules are only consulted while incentives
    are enabled and the run date is on or before ``incentive_valid_through``.
    """

    def __init__(self, rules: Sequence[IncentiveRule], config: TransformerConfig, run_date: date):
        self.rules = tuple(rules)
        self.active = config.incentives_active_on(run_date)
        if not self.active and self.rules:
            logger.info(
                "Incentives inactive for run date %s (enabled=%s, valid through %s)",
                run_date,
                config.incentives_enabled,
                config.incentive_valid_through,
            )

    def rule_matches(self, rule: IncentiveRule, punch: Punch, shift_type: ShiftType) -> bool:
        """Check a single rule's predicates against a punch."""
        if rule.company.strip() != punch.company.strip():
            return False

        cost_center = normalize_cost_center(punch.cost_center)
        if cost_center not in {normalize_cost_center(c) for c in rule.cost_centers}:
            return False

        if rule.day_of_week is not None:
            if punch.in_date is None or weekday_index(punch.in_date) not in rule.day_of_week:
                return False

        if rule.shift_type is not None and rule.shift_type != ShiftType.BOTH:
            if rule.shift_type != shift_type:
                return False

        if rule.time_range is not None:
            if punch.in_minute is None or not rule.time_range.contains(punch.in_minute):
                return False

        return True

    def evaluate(self, punch: Punch, shift_type: ShiftType) -> IncentiveResult:
        """Sum the amounts of every rule matching this punch."""
        if not self.active or not self.rules:
            return NO_INCENTIVE

        total = Decimal("0")
        descriptions: list[str] = []
        for rule in self.rules:
            if self.rule_matches(rule, punch, shift_type):
                total += rule.amount
                descriptions.append(rule.description)

        if not descriptions:
            return NO_INCENTIVE
        return IncentiveResult(total=total, descriptions=tuple(descriptions))
