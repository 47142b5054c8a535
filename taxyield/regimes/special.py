"""Engine for special regimes: exempt, banned, threshold, conditional and complex."""

from __future__ import annotations

from decimal import Decimal

from taxyield.core.errors import EngineMismatchError
from taxyield.core.models import TaxCalcParams
from taxyield.core.money import ZERO, cents
from taxyield.regimes.descriptors import RegimeDescriptor, SpecialKind, SpecialRegime
from taxyield.regimes.result import RegimeResult, zero_result

COMPLEX_APPROXIMATION = "Approximated with a single base rate"


def _require(descriptor: RegimeDescriptor) -> SpecialRegime:
    if not isinstance(descriptor, SpecialRegime):
        raise EngineMismatchError(f"Special engine cannot evaluate {type(descriptor).__name__}")
    return descriptor


def _flat_result(kind: SpecialKind, amount: Decimal, rate: Decimal, advisories: tuple[str, ...], **extra) -> RegimeResult:
    return RegimeResult(
        regime=kind.value,
        taxable_amount=amount,
        tax=cents(amount * rate),
        flat_rate=rate,
        marginal_rate=rate,
        advisories=advisories,
        **extra,
    )


def calculate(descriptor: RegimeDescriptor, params: TaxCalcParams) -> RegimeResult:
    regime = _require(descriptor)
    amount = max(ZERO, params.gain)
    p = regime.params
    rules = regime.special_rules

    if regime.kind is SpecialKind.EXEMPT:
        return zero_result("exempt", amount, exemption_used=amount, advisories=rules + ("Tax-free jurisdiction",))
    if regime.kind is SpecialKind.BANNED:
        return zero_result("banned", amount, advisories=rules + ("Cryptocurrency banned",))

    if regime.kind is SpecialKind.THRESHOLD:
        if amount <= p.threshold:
            return zero_result(
                "threshold",
                amount,
                exemption_used=amount,
                advisories=rules + (f"Below threshold of {p.threshold}",),
            )
        return RegimeResult(
            regime="threshold",
            taxable_amount=amount,
            tax=cents((amount - p.threshold) * p.base_rate),
            exemption_used=p.threshold,
            flat_rate=p.base_rate,
            marginal_rate=p.base_rate,
            advisories=rules,
        )

    if regime.kind is SpecialKind.CONDITIONAL:
        long_term = params.long_term
        rate = p.alternative_rate if long_term else p.base_rate
        return _flat_result(regime.kind, amount, rate, rules, holding_period_applied=long_term)

    return _flat_result(SpecialKind.COMPLEX, amount, p.base_rate, rules + (COMPLEX_APPROXIMATION,))


def effective_rate(descriptor: RegimeDescriptor) -> Decimal:
    regime = _require(descriptor)
    if regime.kind in (SpecialKind.EXEMPT, SpecialKind.BANNED):
        return ZERO
    return regime.params.base_rate


__all__ = ["COMPLEX_APPROXIMATION", "calculate", "effective_rate"]
