from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from taxyield.core.brackets import BracketSlice
from taxyield.core.models import CalcOutcome
from taxyield.core.money import ZERO


@dataclass(frozen=True)
class RegimeResult:
    """Normalized output shared by every regime engine."""

    regime: str
    taxable_amount: Decimal
    tax: Decimal = ZERO
    surtax: Decimal = ZERO
    exemption_used: Decimal = ZERO
    bracket_breakdown: tuple[BracketSlice, ...] = ()
    marginal_rate: Decimal | None = None
    flat_rate: Decimal | None = None
    holding_period_applied: bool = False
    advisories: tuple[str, ...] = ()

    @property
    def total(self) -> Decimal:
        return self.tax + self.surtax

    @property
    def effective_rate(self) -> Decimal:
        if self.taxable_amount <= ZERO:
            return ZERO
        return self.total / self.taxable_amount

    def to_outcome(self) -> CalcOutcome:
        return CalcOutcome.against(
            self.taxable_amount,
            tax=self.tax,
            surtax=self.surtax,
            advisories=self.advisories,
        )


def zero_result(
    regime: str,
    amount: Decimal,
    *,
    exemption_used: Decimal = ZERO,
    holding_period_applied: bool = False,
    advisories: tuple[str, ...] = (),
) -> RegimeResult:
    return RegimeResult(
        regime=regime,
        taxable_amount=amount,
        exemption_used=exemption_used,
        holding_period_applied=holding_period_applied,
        advisories=advisories,
    )


__all__ = ["RegimeResult", "zero_result"]
