from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from taxyield.core.brackets import BracketTable, incremental_tax
from taxyield.core.models import AccountSetup, Brackets, SetupKind, TaxCalcParams, TaxPortion
from taxyield.core.money import D, INF, ZERO
from taxyield.jurisdictions.base import JurisdictionAdapter, taxable_account

_FEDERAL = BracketTable.from_pairs(
    [
        (57375, "0.15"),
        (114750, "0.205"),
        (177882, "0.26"),
        (253414, "0.29"),
        (INF, "0.33"),
    ]
)


@lru_cache(maxsize=None)
def get_brackets(status: str) -> Brackets:
    return Brackets(ordinary=_FEDERAL, cap_gain_inclusion=D("0.5"))


def _base(params: TaxCalcParams) -> Decimal:
    return max(ZERO, params.other_income_excluding_gain)


def compute_taxable(params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    inclusion = params.brackets.cap_gain_inclusion
    if inclusion is None:
        inclusion = D("0.5")
    return TaxPortion(tax=incremental_tax(params.brackets.ordinary, _base(params), amount * inclusion))


def compute_deferred_full(params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    return TaxPortion(tax=incremental_tax(params.brackets.ordinary, _base(params), amount))


def early_withholding(setup: AccountSetup, params: TaxCalcParams) -> Decimal:
    """RRSP withholding applies while the holder is under the conversion age."""
    if params.current_age < setup.threshold_age:
        return setup.early_penalty_rate * params.withdrawal
    return ZERO


SETUPS = (
    AccountSetup(
        name="RRSP",
        kind=SetupKind.DEFERRED,
        fees_text="Deductible, tax-deferred growth, taxed withdrawals (EET). Early withdrawal withheld.",
        early_penalty_rate=D("0.1"),
        threshold_age=D("71"),
    ),
    AccountSetup(
        name="TFSA",
        kind=SetupKind.TAXFREE,
        fees_text="Tax-free growth and withdrawals (TEE).",
    ),
    taxable_account("No withdrawal restrictions. 50% of capital gains included in income."),
)

adapter = JurisdictionAdapter(
    code="ca",
    name="Canada",
    currency="CAD",
    statuses=("single",),
    setups=SETUPS,
    brackets_fn=get_brackets,
    taxable_fn=compute_taxable,
    deferred_fn=compute_deferred_full,
    early_penalty_fn=early_withholding,
    crypto_note="Crypto treated as a commodity. 50% of capital gains taxable at marginal rates.",
)
