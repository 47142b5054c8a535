from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

from taxyield.core.brackets import incremental_tax
from taxyield.core.errors import UnknownFilingStatusError, UnknownSetupError
from taxyield.core.models import AccountSetup, Brackets, CalcOutcome, SetupKind, TaxCalcParams, TaxPortion
from taxyield.core.money import ZERO, cents

AmountFn = Callable[[TaxCalcParams, Decimal], TaxPortion]
SetupTaxFn = Callable[[AccountSetup, TaxCalcParams], Optional[CalcOutcome]]
PenaltyFn = Callable[[AccountSetup, TaxCalcParams], Decimal]


def surtax_on(params: TaxCalcParams, amount: Decimal) -> Decimal:
    """Surtax on the slice of ``amount`` that lifts total income over the threshold."""
    b = params.brackets
    if not b.surtax_rate or b.surtax_threshold is None:
        return ZERO
    total = params.other_income_excluding_gain + amount
    if total <= b.surtax_threshold:
        return ZERO
    return cents(min(amount, total - b.surtax_threshold) * b.surtax_rate)


def ordinary_income_tax(params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    tax = incremental_tax(params.brackets.ordinary, params.ordinary_base, amount)
    return TaxPortion(tax=tax, surtax=surtax_on(params, amount))


def horizon_early_penalty(setup: AccountSetup, params: TaxCalcParams) -> Decimal:
    if params.current_age + params.holding_years < setup.threshold_age:
        return setup.early_penalty_rate * params.withdrawal
    return ZERO


@dataclass(frozen=True)
class JurisdictionAdapter:
    code: str
    name: str
    currency: str
    statuses: tuple[str, ...]
    setups: tuple[AccountSetup, ...]
    brackets_fn: Callable[[str], Brackets]
    taxable_fn: AmountFn = ordinary_income_tax
    deferred_fn: AmountFn = ordinary_income_tax
    setup_tax_fn: Optional[SetupTaxFn] = None
    early_penalty_fn: PenaltyFn = horizon_early_penalty
    crypto_note: str = ""
    rule_text: str | None = None

    def get_brackets(self, status: str) -> Brackets:
        if status not in self.statuses:
            raise UnknownFilingStatusError(f"{self.code} has no filing status {status!r}")
        return self.brackets_fn(status)

    def compute_taxable(self, params: TaxCalcParams) -> TaxPortion:
        return self.taxable_fn(params, params.gain)

    def compute_deferred_full(self, params: TaxCalcParams) -> TaxPortion:
        return self.deferred_fn(params, params.withdrawal)

    def find_setup(self, name: str) -> AccountSetup:
        wanted = name.strip().lower()
        for setup in self.setups:
            if setup.name.lower() == wanted:
                return setup
        raise UnknownSetupError(f"{self.code} has no account setup {name!r}")

    def setups_of_kind(self, kind: SetupKind) -> tuple[AccountSetup, ...]:
        return tuple(s for s in self.setups if s.kind is kind)


def taxable_account(fees_text: str = "No withdrawal restrictions.") -> AccountSetup:
    return AccountSetup(name="Taxable Account", kind=SetupKind.TAXABLE, fees_text=fees_text)


__all__ = [
    "JurisdictionAdapter",
    "horizon_early_penalty",
    "ordinary_income_tax",
    "surtax_on",
    "taxable_account",
]
