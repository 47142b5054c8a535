from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from taxyield.core.brackets import BracketTable, incremental_tax
from taxyield.core.models import AccountSetup, Brackets, SetupKind, TaxCalcParams, TaxPortion
from taxyield.core.money import D, INF
from taxyield.jurisdictions.base import JurisdictionAdapter, ordinary_income_tax, surtax_on, taxable_account

# 2025 federal tables
_ORDINARY = {
    "single": BracketTable.from_pairs(
        [
            (11925, "0.10"),
            (48475, "0.12"),
            (103350, "0.22"),
            (197300, "0.24"),
            (250525, "0.32"),
            (626350, "0.35"),
            (INF, "0.37"),
        ]
    ),
    "married": BracketTable.from_pairs(
        [
            (23850, "0.10"),
            (96950, "0.12"),
            (206700, "0.22"),
            (394600, "0.24"),
            (501050, "0.32"),
            (751600, "0.35"),
            (INF, "0.37"),
        ]
    ),
}

_LONG_TERM = {
    "single": BracketTable.from_pairs([(48350, "0"), (533400, "0.15"), (INF, "0.20")]),
    "married": BracketTable.from_pairs([(96700, "0"), (600050, "0.15"), (INF, "0.20")]),
}

_STANDARD_DEDUCTION = {"single": D("15000"), "married": D("30000")}
_NIIT_THRESHOLD = {"single": D("200000"), "married": D("250000")}
NIIT_RATE = D("0.038")


@lru_cache(maxsize=None)
def get_brackets(status: str) -> Brackets:
    return Brackets(
        ordinary=_ORDINARY[status],
        long_term=_LONG_TERM[status],
        standard_deduction=_STANDARD_DEDUCTION[status],
        surtax_threshold=_NIIT_THRESHOLD[status],
        surtax_rate=NIIT_RATE,
    )


def compute_taxable(params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    b = params.brackets
    if not params.long_term or b.long_term is None:
        return ordinary_income_tax(params, amount)
    # long-term gains stack on top of ordinary taxable income
    tax = incremental_tax(b.long_term, params.ordinary_base, amount)
    return TaxPortion(tax=tax, surtax=surtax_on(params, amount))


_PENALTY = D("0.1")
_AGE = D("59.5")

SETUPS = (
    AccountSetup(
        name="Traditional IRA",
        kind=SetupKind.DEFERRED,
        fees_text="Deductible contributions, tax-deferred growth, taxed withdrawals (EET).",
        early_penalty_rate=_PENALTY,
        threshold_age=_AGE,
    ),
    AccountSetup(
        name="Roth IRA",
        kind=SetupKind.TAXFREE,
        fees_text="After-tax contributions, tax-free growth and qualified withdrawals (TEE).",
        early_penalty_rate=_PENALTY,
        threshold_age=_AGE,
    ),
    AccountSetup(
        name="401k Traditional",
        kind=SetupKind.DEFERRED,
        fees_text="Pre-tax contributions, tax-deferred growth, taxed on withdrawal (EET).",
        early_penalty_rate=_PENALTY,
        threshold_age=_AGE,
    ),
    AccountSetup(
        name="401k Roth",
        kind=SetupKind.TAXFREE,
        fees_text="After-tax contributions, tax-free growth and qualified withdrawals (TEE).",
        early_penalty_rate=_PENALTY,
        threshold_age=_AGE,
    ),
    taxable_account("No withdrawal restrictions. Long-term holdings use capital gains rates."),
)

adapter = JurisdictionAdapter(
    code="us",
    name="United States",
    currency="USD",
    statuses=("single", "married"),
    setups=SETUPS,
    brackets_fn=get_brackets,
    taxable_fn=compute_taxable,
    crypto_note=(
        "Crypto taxed as property. Short-term gains taxed as ordinary income; "
        "long-term gains at 0%, 15% or 20%. NIIT of 3.8% above the income threshold."
    ),
)
