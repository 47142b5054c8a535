from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from taxyield.core.brackets import BracketTable, incremental_tax
from taxyield.core.models import AccountSetup, Brackets, CalcOutcome, SetupKind, TaxCalcParams, TaxPortion
from taxyield.core.money import D, INF, ZERO, cents
from taxyield.jurisdictions.base import JurisdictionAdapter, taxable_account

# bands above the personal allowance
_INCOME = BracketTable.from_pairs([(37700, "0.20"), (112570, "0.40"), (INF, "0.45")])

SIPP_TAXABLE_SHARE = D("0.75")


@lru_cache(maxsize=None)
def get_brackets(status: str) -> Brackets:
    return Brackets(
        ordinary=_INCOME,
        standard_deduction=D("12570"),
        annual_exempt=D("3000"),
        higher_threshold=D("37700"),
        cap_gain_rate_basic=D("0.18"),
        cap_gain_rate_higher=D("0.24"),
    )


def compute_taxable(params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    b = params.brackets
    after_allowance = max(ZERO, amount - (b.annual_exempt or ZERO))
    if after_allowance <= ZERO:
        return TaxPortion()
    base = max(ZERO, params.ordinary_base)
    basic_band = b.higher_threshold if b.higher_threshold is not None else D("37700")
    at_basic = min(after_allowance, max(ZERO, basic_band - base))
    at_higher = after_allowance - at_basic
    tax = at_basic * (b.cap_gain_rate_basic or D("0.18")) + at_higher * (b.cap_gain_rate_higher or D("0.24"))
    return TaxPortion(tax=cents(tax))


def sipp_tax(setup: AccountSetup, params: TaxCalcParams) -> CalcOutcome | None:
    """SIPP withdrawals: 25% tax-free, or the unauthorised payment charge when early."""
    if setup.name.lower() != "sipp":
        return None
    withdrawal = params.withdrawal
    extra = params.extra_early_penalty_rate * withdrawal
    if params.current_age + params.holding_years < setup.threshold_age:
        # the charge replaces income tax
        return CalcOutcome.against(withdrawal, penalty=setup.early_penalty_rate * withdrawal + extra)
    tax = incremental_tax(params.brackets.ordinary, params.ordinary_base, SIPP_TAXABLE_SHARE * withdrawal)
    return CalcOutcome.against(withdrawal, tax=tax, penalty=extra)


SETUPS = (
    AccountSetup(
        name="SIPP",
        kind=SetupKind.DEFERRED,
        fees_text="Tax relief on contributions, 25% tax-free withdrawal. Early unauthorised 55% charge.",
        early_penalty_rate=D("0.55"),
        threshold_age=D("55"),
    ),
    AccountSetup(name="ISA", kind=SetupKind.TAXFREE, fees_text="Tax-free gains and withdrawals (TEE)."),
    taxable_account("No withdrawal restrictions. CGT at 18%/24% above the annual allowance."),
)

adapter = JurisdictionAdapter(
    code="uk",
    name="United Kingdom",
    currency="GBP",
    statuses=("single",),
    setups=SETUPS,
    brackets_fn=get_brackets,
    taxable_fn=compute_taxable,
    setup_tax_fn=sipp_tax,
    crypto_note="Capital gains tax on disposals above the annual allowance. Income tax on staking rewards.",
)
