from __future__ import annotations

from decimal import Decimal

from taxyield.core.errors import EngineMismatchError
from taxyield.core.models import TaxCalcParams
from taxyield.core.money import ZERO, cents
from taxyield.regimes.descriptors import FlatRegime, RegimeDescriptor
from taxyield.regimes.result import RegimeResult, zero_result


def _require(descriptor: RegimeDescriptor) -> FlatRegime:
    if not isinstance(descriptor, FlatRegime):
        raise EngineMismatchError(f"Flat engine cannot evaluate {type(descriptor).__name__}")
    return descriptor


def calculate(descriptor: RegimeDescriptor, params: TaxCalcParams) -> RegimeResult:
    regime = _require(descriptor)
    amount = max(ZERO, params.gain)

    if params.long_term and regime.full_holding_exemption:
        return zero_result(
            "flat",
            amount,
            exemption_used=amount,
            holding_period_applied=True,
            advisories=("Holding period exemption applied",),
        )

    threshold = regime.exemption.annual_threshold if regime.exemption else ZERO
    exemption_used = min(threshold, amount)
    taxable = amount - exemption_used
    tax = cents(taxable * regime.rate)
    # each add-on is its own percentage of the post-exemption amount
    surtax = cents(sum((taxable * s.rate for s in regime.surcharges), ZERO))
    return RegimeResult(
        regime="flat",
        taxable_amount=amount,
        tax=tax,
        surtax=surtax,
        exemption_used=exemption_used,
        flat_rate=regime.rate,
        marginal_rate=regime.rate,
        advisories=regime.special_rules,
    )


def effective_rate(descriptor: RegimeDescriptor) -> Decimal:
    regime = _require(descriptor)
    return regime.rate + sum((s.rate for s in regime.surcharges), ZERO)


__all__ = ["calculate", "effective_rate"]
