from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from taxyield.core.brackets import BracketTable, incremental_tax
from taxyield.core.models import AccountSetup, Brackets, SetupKind, TaxCalcParams, TaxPortion
from taxyield.core.money import D, INF, ONE, ZERO, cents
from taxyield.jurisdictions.base import JurisdictionAdapter, taxable_account

# bands above the tax-free threshold
_INCOME = BracketTable.from_pairs([(26800, "0.19"), (116800, "0.30"), (171800, "0.37"), (INF, "0.45")])


@lru_cache(maxsize=None)
def get_brackets(status: str) -> Brackets:
    return Brackets(
        ordinary=_INCOME,
        standard_deduction=D("18200"),
        cap_gain_discount=D("0.5"),
        medicare_levy_rate=D("0.02"),
    )


def compute_taxable(params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    b = params.brackets
    discount = (b.cap_gain_discount or ZERO) if params.long_term else ZERO
    taxable_gain = amount * (ONE - discount)
    income_tax = incremental_tax(b.ordinary, params.ordinary_base, taxable_gain)
    levy = cents((b.medicare_levy_rate or ZERO) * max(ZERO, taxable_gain))
    return TaxPortion(tax=income_tax, surtax=levy)


SETUPS = (
    AccountSetup(
        name="Superannuation",
        kind=SetupKind.PENSION,
        fees_text="Earnings taxed in fund at 15% (10% on long-held gains). Preservation age 60.",
        threshold_age=D("60"),
    ),
    taxable_account("No withdrawal restrictions. 50% CGT discount after 12 months."),
)

adapter = JurisdictionAdapter(
    code="au",
    name="Australia",
    currency="AUD",
    statuses=("single",),
    setups=SETUPS,
    brackets_fn=get_brackets,
    taxable_fn=compute_taxable,
    crypto_note="Individuals get a 50% CGT discount after 12 months.",
)
