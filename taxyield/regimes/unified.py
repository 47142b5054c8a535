"""Single entry point that classifies rule text and routes it to an engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal

from taxyield.core.currencies import currency_for
from taxyield.core.models import CalcOutcome, TaxCalcParams
from taxyield.core.money import HUNDRED, ONE, ZERO
from taxyield.regimes import flat, progressive, special
from taxyield.regimes.descriptors import (
    FlatRegime,
    ProgressiveRegime,
    RegimeDescriptor,
    SpecialKind,
    SpecialRegime,
    regime_name,
)
from taxyield.regimes.holding import HoldingOutcome, HoldingTreatment, evaluate_holding, get_holding_rule
from taxyield.regimes.parser import classify
from taxyield.regimes.result import RegimeResult, zero_result

logger = logging.getLogger("taxyield").getChild("unified")

FALLBACK_ADVISORY = "Calculation error - using fallback"


@dataclass(frozen=True)
class UnifiedTaxResult:
    jurisdiction: str
    currency: str
    regime: str
    result: RegimeResult
    descriptor: RegimeDescriptor
    holding: HoldingOutcome | None = None
    fallback: bool = False

    @property
    def tax(self) -> Decimal:
        return self.result.tax

    @property
    def surtax(self) -> Decimal:
        return self.result.surtax

    @property
    def advisories(self) -> tuple[str, ...]:
        return self.result.advisories

    def to_outcome(self) -> CalcOutcome:
        return self.result.to_outcome()


def _route(descriptor: RegimeDescriptor, params: TaxCalcParams) -> RegimeResult:
    if isinstance(descriptor, ProgressiveRegime):
        return progressive.calculate(descriptor, params)
    if isinstance(descriptor, FlatRegime):
        return flat.calculate(descriptor, params)
    return special.calculate(descriptor, params)


def calculate_tax(
    jurisdiction: str,
    rule_text: str,
    params: TaxCalcParams,
    *,
    holding_months: int | None = None,
    currency: str | None = None,
) -> UnifiedTaxResult:
    currency = currency or currency_for(jurisdiction)
    descriptor = classify(rule_text, currency)

    holding: HoldingOutcome | None = None
    rule = get_holding_rule(jurisdiction) if holding_months is not None else None
    if rule is not None:
        holding = evaluate_holding(rule, holding_months)
        params = replace(params, is_long=holding.is_long)

    amount = max(ZERO, params.gain)
    if holding is not None and holding.treatment is HoldingTreatment.EXEMPT:
        result = zero_result(
            regime_name(descriptor),
            amount,
            exemption_used=amount,
            holding_period_applied=True,
            advisories=(holding.description,),
        )
        return UnifiedTaxResult(jurisdiction, currency, regime_name(descriptor), result, descriptor, holding)
    if holding is not None and holding.treatment is HoldingTreatment.DISCOUNTED:
        params = replace(params, gain=params.gain * (ONE - (holding.discount or ZERO)))

    try:
        result = _route(descriptor, params)
    except (ArithmeticError, ValueError) as exc:
        logger.warning("Tax calculation failed for %s, using fallback: %s", jurisdiction, exc)
        result = zero_result(regime_name(descriptor), amount, exemption_used=amount, advisories=(FALLBACK_ADVISORY,))
        return UnifiedTaxResult(
            jurisdiction, currency, regime_name(descriptor), result, descriptor, holding, fallback=True
        )
    return UnifiedTaxResult(jurisdiction, currency, regime_name(descriptor), result, descriptor, holding)


@dataclass(frozen=True)
class RegimeSummary:
    system: str
    description: str
    key_features: tuple[str, ...] = field(default=())
    holding_benefit: str | None = None
    max_rate: Decimal | None = None
    exemption_threshold: Decimal | None = None


_DESCRIPTIONS = {
    "progressive": "Progressive tax system with multiple brackets",
    "flat": "Flat tax system with single rate",
    SpecialKind.EXEMPT.value: "Tax-free jurisdiction",
    SpecialKind.BANNED.value: "Cryptocurrency is banned",
    SpecialKind.THRESHOLD.value: "Flat rate above a tax-free threshold",
    SpecialKind.CONDITIONAL.value: "Rate depends on the holding period",
    SpecialKind.COMPLEX.value: "Complex tax system requiring detailed analysis",
}


def summarize_regime(rule_text: str, currency: str = "USD") -> RegimeSummary:
    descriptor = classify(rule_text, currency)
    system = regime_name(descriptor)
    features: list[str] = []
    max_rate: Decimal | None = None
    holding_months: int | None = None

    if isinstance(descriptor, ProgressiveRegime):
        max_rate = max(descriptor.brackets.rates)
        features.append(f"{len(descriptor.brackets)} tax brackets")
        features.append(f"Up to {max_rate * HUNDRED:.1f}% tax rate")
        holding_months = descriptor.holding_period_months
    elif isinstance(descriptor, FlatRegime):
        max_rate = descriptor.rate
        features.append(f"{descriptor.rate * HUNDRED:.1f}% flat rate")
        holding_months = descriptor.holding_period_months
    elif isinstance(descriptor, SpecialRegime):
        if descriptor.kind in (SpecialKind.EXEMPT, SpecialKind.BANNED):
            features.append("No capital gains tax")
        else:
            max_rate = descriptor.params.base_rate
            features.append("Multiple conditions apply")
        holding_months = descriptor.params.holding_period_months

    threshold = descriptor.exemption.annual_threshold if descriptor.exemption else None
    if threshold is not None:
        features.append(f"Annual exemption of {threshold}")

    benefit = None
    if holding_months:
        benefit = f"Benefits for holding more than {holding_months} months"
    return RegimeSummary(
        system=system,
        description=_DESCRIPTIONS[system],
        key_features=tuple(features),
        holding_benefit=benefit,
        max_rate=max_rate,
        exemption_threshold=threshold,
    )


__all__ = [
    "FALLBACK_ADVISORY",
    "RegimeSummary",
    "UnifiedTaxResult",
    "calculate_tax",
    "summarize_regime",
]
