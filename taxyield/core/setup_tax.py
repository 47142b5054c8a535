"""Withdrawal-tax state machine over account setups.

``compute_tax`` dispatches on ``AccountSetup.kind``:

* taxable: only the gain is taxed; percentage against the gain
* deferred: the whole withdrawal is ordinary income, plus an early penalty
* taxfree: no tax, only the caller's extra penalty
* pension: fund-level tax on earnings, plus a penalty for non-qualifying access

A jurisdiction may take over with ``setup_tax_fn``; returning ``None`` from it
falls back to the kind dispatch.
"""

from __future__ import annotations

from decimal import Decimal

from taxyield.core.models import AccountSetup, CalcOutcome, SetupKind, TaxCalcParams
from taxyield.core.money import D, ONE, ZERO, cents, percent_of, to_decimal
from taxyield.jurisdictions.base import JurisdictionAdapter
from taxyield.jurisdictions.dispatch import resolve_jurisdiction

PENSION_FUND_RATE = D("0.15")
PENSION_FUND_RATE_LONG = D("0.10")
PENSION_UNAVAILABLE_PENALTY = D("0.5")


def _taxable(adapter: JurisdictionAdapter, setup: AccountSetup, params: TaxCalcParams) -> CalcOutcome:
    portion = adapter.compute_taxable(params)
    return CalcOutcome(
        tax=portion.tax,
        surtax=portion.surtax,
        penalty=ZERO,
        tax_percent=percent_of(portion.total, params.gain),
    )


def _deferred(adapter: JurisdictionAdapter, setup: AccountSetup, params: TaxCalcParams) -> CalcOutcome:
    withdrawal = params.withdrawal
    portion = adapter.compute_deferred_full(params)
    penalty = adapter.early_penalty_fn(setup, params) + params.extra_early_penalty_rate * withdrawal
    return CalcOutcome.against(withdrawal, tax=portion.tax, surtax=portion.surtax, penalty=cents(penalty))


def _taxfree(adapter: JurisdictionAdapter, setup: AccountSetup, params: TaxCalcParams) -> CalcOutcome:
    penalty = cents(params.extra_early_penalty_rate * params.withdrawal)
    if penalty <= ZERO:
        return CalcOutcome(tax=ZERO, surtax=ZERO, penalty=penalty, tax_percent=ZERO)
    return CalcOutcome.against(params.withdrawal, penalty=penalty)


def _pension(adapter: JurisdictionAdapter, setup: AccountSetup, params: TaxCalcParams) -> CalcOutcome:
    withdrawal = params.withdrawal
    rate = PENSION_FUND_RATE_LONG if params.long_term else PENSION_FUND_RATE
    fund_tax = cents(max(ZERO, params.gain) * rate)
    penalty = params.extra_early_penalty_rate * withdrawal
    if params.current_age + params.holding_years < setup.threshold_age:
        # stands in for the funds being unavailable before preservation age
        penalty += PENSION_UNAVAILABLE_PENALTY * withdrawal
    return CalcOutcome.against(withdrawal, tax=fund_tax, penalty=cents(penalty))


_HANDLERS = {
    SetupKind.TAXABLE: _taxable,
    SetupKind.DEFERRED: _deferred,
    SetupKind.TAXFREE: _taxfree,
    SetupKind.PENSION: _pension,
}


def compute_tax(
    jurisdiction: str | JurisdictionAdapter,
    setup: AccountSetup | str,
    params: TaxCalcParams,
) -> CalcOutcome:
    adapter = resolve_jurisdiction(jurisdiction)
    if isinstance(setup, str):
        setup = adapter.find_setup(setup)
    if adapter.setup_tax_fn is not None:
        outcome = adapter.setup_tax_fn(setup, params)
        if outcome is not None:
            return outcome
    return _HANDLERS[setup.kind](adapter, setup, params)


def grow(principal: Decimal, annual_return: Decimal, years: int) -> Decimal:
    """Terminal value of ``principal`` compounded annually."""
    return principal * (ONE + annual_return) ** years


def build_params(
    jurisdiction: str | JurisdictionAdapter,
    *,
    filing_status: str,
    other_income: Decimal | float | str,
    principal: Decimal | float | str,
    annual_return: Decimal | float | str,
    years: int,
    current_age: Decimal | float | str,
    is_crypto_asset: bool = False,
    extra_early_penalty_rate: Decimal | float | str = ZERO,
    is_long: bool | None = None,
) -> TaxCalcParams:
    adapter = resolve_jurisdiction(jurisdiction)
    principal = to_decimal(principal)
    gain = max(ZERO, grow(principal, to_decimal(annual_return), years) - principal)
    return TaxCalcParams(
        jurisdiction=adapter.code,
        filing_status=filing_status,
        other_income_excluding_gain=to_decimal(other_income),
        principal=principal,
        gain=gain,
        holding_years=years,
        current_age=to_decimal(current_age),
        is_crypto_asset=is_crypto_asset,
        extra_early_penalty_rate=to_decimal(extra_early_penalty_rate),
        brackets=adapter.get_brackets(filing_status),
        is_long=is_long,
    )


__all__ = ["build_params", "compute_tax", "grow"]
