from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from taxyield.core.money import D, HUNDRED

AVERAGE_DAYS_PER_MONTH = 30.44


class HoldingTreatment(str, Enum):
    SHORT_TERM = "short-term"
    LONG_TERM = "long-term"
    EXEMPT = "exempt"
    DISCOUNTED = "discounted"


@dataclass(frozen=True)
class HoldingPeriodRule:
    long_term_months: int = 12
    exemption_months: int | None = None
    full_exemption: bool = False
    discount_months: int | None = None
    discount_rate: Decimal | None = None


@dataclass(frozen=True)
class HoldingOutcome:
    months: int
    is_long: bool
    treatment: HoldingTreatment
    discount: Decimal | None = None

    @property
    def description(self) -> str:
        if self.treatment is HoldingTreatment.EXEMPT:
            return f"Tax-free (held {self.months} months)"
        if self.treatment is HoldingTreatment.DISCOUNTED:
            pct = (self.discount or D("0")) * HUNDRED
            return f"{pct:.0f}% discount applied (held {self.months} months)"
        if self.treatment is HoldingTreatment.LONG_TERM:
            return f"Long-term capital gains rate (held {self.months} months)"
        return f"Short-term capital gains rate (held {self.months} months)"


HOLDING_RULES: dict[str, HoldingPeriodRule] = {
    "us": HoldingPeriodRule(long_term_months=12),
    "de": HoldingPeriodRule(long_term_months=12, exemption_months=12, full_exemption=True),
    "au": HoldingPeriodRule(long_term_months=12, discount_months=12, discount_rate=D("0.5")),
    "fr": HoldingPeriodRule(long_term_months=12, exemption_months=96, full_exemption=True),
    "pt": HoldingPeriodRule(long_term_months=12, exemption_months=12, full_exemption=True),
    "cz": HoldingPeriodRule(long_term_months=36, exemption_months=36, full_exemption=True),
    "ch": HoldingPeriodRule(long_term_months=12, exemption_months=12, full_exemption=True),
    "be": HoldingPeriodRule(long_term_months=12, exemption_months=12, full_exemption=True),
    "uk": HoldingPeriodRule(long_term_months=12),
    # inclusion applies to every gain regardless of holding
    "ca": HoldingPeriodRule(long_term_months=12, discount_months=0, discount_rate=D("0.5")),
}


def get_holding_rule(jurisdiction: str) -> HoldingPeriodRule | None:
    return HOLDING_RULES.get(jurisdiction.lower())


def evaluate_holding(rule: HoldingPeriodRule, months: int) -> HoldingOutcome:
    is_long = months >= rule.long_term_months
    exempt = (
        rule.full_exemption
        and rule.exemption_months is not None
        and months >= rule.exemption_months
    )
    if exempt:
        return HoldingOutcome(months=months, is_long=is_long, treatment=HoldingTreatment.EXEMPT)
    if (
        rule.discount_months is not None
        and rule.discount_rate
        and months >= rule.discount_months
    ):
        return HoldingOutcome(
            months=months,
            is_long=is_long,
            treatment=HoldingTreatment.DISCOUNTED,
            discount=rule.discount_rate,
        )
    treatment = HoldingTreatment.LONG_TERM if is_long else HoldingTreatment.SHORT_TERM
    return HoldingOutcome(months=months, is_long=is_long, treatment=treatment)


def months_between(start: date, end: date) -> int:
    """Whole months between two dates using the average month length."""
    days = (end - start).days
    return max(0, math.floor(days / AVERAGE_DAYS_PER_MONTH))


__all__ = [
    "HOLDING_RULES",
    "HoldingOutcome",
    "HoldingPeriodRule",
    "HoldingTreatment",
    "evaluate_holding",
    "get_holding_rule",
    "months_between",
]
