from __future__ import annotations

from decimal import Decimal

from taxyield.core.brackets import bracket_breakdown
from taxyield.core.errors import EngineMismatchError
from taxyield.core.models import TaxCalcParams
from taxyield.core.money import ZERO, cents
from taxyield.regimes.descriptors import ProgressiveRegime, RegimeDescriptor
from taxyield.regimes.result import RegimeResult, zero_result


def _require(descriptor: RegimeDescriptor) -> ProgressiveRegime:
    if not isinstance(descriptor, ProgressiveRegime):
        raise EngineMismatchError(
            f"Progressive engine cannot evaluate {type(descriptor).__name__}"
        )
    return descriptor


def calculate(descriptor: RegimeDescriptor, params: TaxCalcParams) -> RegimeResult:
    regime = _require(descriptor)
    amount = max(ZERO, params.gain)

    if params.long_term and regime.full_holding_exemption:
        return zero_result(
            "progressive",
            amount,
            exemption_used=amount,
            holding_period_applied=True,
            advisories=("Holding period exemption applied",),
        )
    if regime.exemption is not None and amount <= regime.exemption.annual_threshold:
        return zero_result(
            "progressive",
            amount,
            exemption_used=amount,
            advisories=(f"Below exemption threshold of {regime.exemption.annual_threshold}",),
        )

    table = regime.brackets
    if params.long_term and regime.long_term_brackets is not None:
        table = regime.long_term_brackets

    rows = tuple(bracket_breakdown(table, amount))
    tax = cents(sum((row.tax for row in rows), ZERO))
    surtax = cents(sum((amount * s.rate for s in regime.surcharges), ZERO))
    marginal = rows[-1].rate if rows else table.rates[0]
    return RegimeResult(
        regime="progressive",
        taxable_amount=amount,
        tax=tax,
        surtax=surtax,
        bracket_breakdown=rows,
        marginal_rate=marginal,
        advisories=regime.special_rules,
    )


def effective_rate(descriptor: RegimeDescriptor) -> Decimal:
    """Top marginal rate plus surcharges, for display."""
    regime = _require(descriptor)
    return regime.brackets.top_rate + sum((s.rate for s in regime.surcharges), ZERO)


__all__ = ["calculate", "effective_rate"]
