from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from taxyield.core.brackets import BracketTable, incremental_tax
from taxyield.core.models import AccountSetup, Brackets, SetupKind, TaxCalcParams, TaxPortion
from taxyield.core.money import D, INF, ZERO, cents
from taxyield.jurisdictions.base import JurisdictionAdapter, taxable_account

# bands above the basic allowance; joint filers split income so bands double
_INCOME = {
    "single": BracketTable.from_pairs([(56333, "0.14"), (265729, "0.42"), (INF, "0.45")]),
    "married": BracketTable.from_pairs([(112666, "0.14"), (531458, "0.42"), (INF, "0.45")]),
}
_BASIC_ALLOWANCE = {"single": D("12096"), "married": D("24192")}

RIESTER_CLAWBACK = D("0.25")


@lru_cache(maxsize=None)
def get_brackets(status: str) -> Brackets:
    return Brackets(
        ordinary=_INCOME[status],
        standard_deduction=_BASIC_ALLOWANCE[status],
        cap_gain_rate=D("0.25"),
        solidarity=D("0.055"),
        annual_exempt=D("1000"),
        crypto_hold_free_years=D("1"),
        crypto_small_exempt=D("600"),
    )


def _with_solidarity(params: TaxCalcParams, tax: Decimal) -> TaxPortion:
    return TaxPortion(tax=tax, surtax=cents(tax * (params.brackets.solidarity or ZERO)))


def compute_taxable(params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    b = params.brackets
    if params.is_crypto_asset:
        hold_free = b.crypto_hold_free_years if b.crypto_hold_free_years is not None else D("1")
        if params.long_term and params.holding_years >= hold_free:
            return TaxPortion()
        # private sale gains at or under the cliff are untaxed
        if amount <= (b.crypto_small_exempt or ZERO):
            return TaxPortion()
        return _with_solidarity(params, incremental_tax(b.ordinary, params.ordinary_base, amount))

    exempt = b.annual_exempt or ZERO
    if params.filing_status == "married":
        exempt *= 2
    after_exempt = max(ZERO, amount - exempt)
    return _with_solidarity(params, cents(after_exempt * (b.cap_gain_rate or D("0.25"))))


def compute_deferred_full(params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    return _with_solidarity(params, incremental_tax(params.brackets.ordinary, params.ordinary_base, amount))


def early_penalty(setup: AccountSetup, params: TaxCalcParams) -> Decimal:
    if params.current_age + params.holding_years >= setup.threshold_age:
        return ZERO
    if "riester" in setup.name.lower():
        return RIESTER_CLAWBACK * params.withdrawal
    return setup.early_penalty_rate * params.withdrawal


SETUPS = (
    AccountSetup(
        name="Riester pension",
        kind=SetupKind.DEFERRED,
        fees_text="Subsidised contributions, benefits taxed (EET). Early withdrawal repays subsidies.",
        early_penalty_rate=RIESTER_CLAWBACK,
        threshold_age=D("62"),
    ),
    AccountSetup(
        name="Rürup pension",
        kind=SetupKind.DEFERRED,
        fees_text="Fully deductible, lifelong annuity from 62. Early access not allowed.",
        threshold_age=D("62"),
    ),
    taxable_account("Crypto tax-free after a one-year holding period."),
)

adapter = JurisdictionAdapter(
    code="de",
    name="Germany",
    currency="EUR",
    statuses=("single", "married"),
    setups=SETUPS,
    brackets_fn=get_brackets,
    taxable_fn=compute_taxable,
    deferred_fn=compute_deferred_full,
    early_penalty_fn=early_penalty,
    crypto_note="Crypto tax-free after one year; otherwise income tax with a 600 EUR cliff.",
)
