"""Jurisdictions whose crypto tax is driven by their published rule text.

The taxable path classifies ``rule_text`` and runs the matching regime engine
through the unified dispatcher. Deferred withdrawals are ordinary income.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import partial
from typing import Sequence

from taxyield.core.brackets import BracketTable
from taxyield.core.models import AccountSetup, Brackets, SetupKind, TaxCalcParams, TaxPortion
from taxyield.core.money import D, INF
from taxyield.jurisdictions.base import JurisdictionAdapter, taxable_account
from taxyield.regimes.unified import calculate_tax


@dataclass(frozen=True)
class TextRule:
    code: str
    name: str
    currency: str
    rule_text: str
    ordinary: Sequence[tuple[object, str]]
    standard_deduction: str = "0"
    setups: tuple[AccountSetup, ...] = ()


def _pension(name: str, age: str, kind: SetupKind = SetupKind.DEFERRED, rate: str = "0") -> AccountSetup:
    return AccountSetup(
        name=name,
        kind=kind,
        fees_text="Retirement wrapper.",
        early_penalty_rate=D(rate),
        threshold_age=D(age),
    )


RULES: tuple[TextRule, ...] = (
    TextRule(
        code="pl",
        name="Poland",
        currency="PLN",
        rule_text=(
            "Flat 19% on gains; no distinction for holding periods. "
            "Mining/staking taxed as other income at 19%."
        ),
        ordinary=[(120000, "0.12"), (INF, "0.32")],
        standard_deduction="30000",
        setups=(_pension("IKE", "60", SetupKind.TAXFREE), _pension("IKZE", "65")),
    ),
    TextRule(
        code="es",
        name="Spain",
        currency="EUR",
        rule_text=(
            "Progressive 19-28% (19% up to €6,000, 21% €6,000-50,000, 23% €50,000-200,000, "
            "26% €200,000-300,000, 28% over €300,000)."
        ),
        ordinary=[(12450, "0.19"), (20200, "0.24"), (35200, "0.30"), (60000, "0.37"), (300000, "0.45"), (INF, "0.47")],
        standard_deduction="5550",
        setups=(_pension("Plan de pensiones", "65"),),
    ),
    TextRule(
        code="jp",
        name="Japan",
        currency="JPY",
        rule_text=(
            "Progressive capital gains tax from 5-45% plus local 10% (total 15-55%) depending on total "
            "income (brackets: 5% <1.95m yen, 10% 1.95-3.3m, 20% 3.3-6.95m, 23% 6.95-9m, 33% 9-18m, "
            "40% 18-40m, 45% >40m yen)."
        ),
        ordinary=[
            (1950000, "0.05"),
            (3300000, "0.10"),
            (6950000, "0.20"),
            (9000000, "0.23"),
            (18000000, "0.33"),
            (40000000, "0.40"),
            (INF, "0.45"),
        ],
        standard_deduction="480000",
        setups=(_pension("NISA", "18", SetupKind.TAXFREE), _pension("iDeCo", "60")),
    ),
    TextRule(
        code="pt",
        name="Portugal",
        currency="EUR",
        rule_text=(
            "28% on short-term gains (held less than 1 year); "
            "tax-free if held more than 1 year for personal investment."
        ),
        ordinary=[(7703, "0.13"), (11623, "0.165"), (16472, "0.22"), (21321, "0.25"), (27146, "0.32"),
                  (39791, "0.355"), (51997, "0.435"), (81199, "0.45"), (INF, "0.48")],
        standard_deduction="4104",
        setups=(_pension("PPR", "60"),),
    ),
    TextRule(
        code="it",
        name="Italy",
        currency="EUR",
        rule_text="26% on gains over €2,000; planned increase to 42% (subject to change).",
        ordinary=[(28000, "0.23"), (50000, "0.35"), (INF, "0.43")],
        setups=(_pension("Fondo pensione", "67"),),
    ),
    TextRule(
        code="ae",
        name="United Arab Emirates",
        currency="AED",
        rule_text="0%; no personal income or capital gains tax. 5% VAT may apply to services.",
        ordinary=[(INF, "0")],
    ),
    TextRule(
        code="cn",
        name="China",
        currency="CNY",
        rule_text="Cryptocurrency is banned; no legal tax rate applies.",
        ordinary=[(36000, "0.03"), (144000, "0.10"), (300000, "0.20"), (420000, "0.25"),
                  (660000, "0.30"), (960000, "0.35"), (INF, "0.45")],
        standard_deduction="60000",
    ),
    TextRule(
        code="in",
        name="India",
        currency="INR",
        rule_text="Flat 30% on gains (plus 4% cess), no deductions allowed; 1% TDS on transactions over ₹50,000.",
        ordinary=[(300000, "0"), (700000, "0.05"), (1000000, "0.10"), (1200000, "0.15"), (1500000, "0.20"), (INF, "0.30")],
        standard_deduction="75000",
        setups=(_pension("PPF", "18", SetupKind.TAXFREE), _pension("NPS", "60")),
    ),
    TextRule(
        code="nl",
        name="Netherlands",
        currency="EUR",
        rule_text=(
            "Wealth tax under Box 3 at up to 36% on deemed yield "
            "(assumed 5.53% return on crypto assets above €57,000 exemption)."
        ),
        ordinary=[(38441, "0.3582"), (76817, "0.3748"), (INF, "0.495")],
        setups=(_pension("Lijfrente", "67"),),
    ),
    TextRule(
        code="cz",
        name="Czech Republic",
        currency="CZK",
        rule_text="Tax-free if held more than 3 years; otherwise progressive 15-23% based on total income.",
        ordinary=[(1582812, "0.15"), (INF, "0.23")],
        setups=(_pension("Doplňkové penzijní spoření", "60"),),
    ),
    TextRule(
        code="dk",
        name="Denmark",
        currency="DKK",
        rule_text=(
            "Progressive 37-52% depending on income bracket "
            "(bottom 37% up to DKK 552,500, top 15% above DKK 552,500)."
        ),
        ordinary=[(552500, "0.37"), (INF, "0.52")],
        standard_deduction="49700",
        setups=(_pension("Ratepension", "60"),),
    ),
)


def _brackets_for(rule: TextRule, status: str) -> Brackets:
    return Brackets(
        ordinary=BracketTable.from_pairs(rule.ordinary),
        standard_deduction=D(rule.standard_deduction),
    )


def _taxable_via_rule_text(rule: TextRule, params: TaxCalcParams, amount: Decimal) -> TaxPortion:
    result = calculate_tax(
        rule.code,
        rule.rule_text,
        params.with_amount(amount),
        holding_months=params.holding_years * 12,
        currency=rule.currency,
    )
    return TaxPortion(tax=result.tax, surtax=result.surtax)


def build_adapter(rule: TextRule) -> JurisdictionAdapter:
    return JurisdictionAdapter(
        code=rule.code,
        name=rule.name,
        currency=rule.currency,
        statuses=("single",),
        setups=rule.setups + (taxable_account(),),
        brackets_fn=partial(_brackets_for, rule),
        taxable_fn=partial(_taxable_via_rule_text, rule),
        crypto_note=rule.rule_text,
        rule_text=rule.rule_text,
    )


ADAPTERS: tuple[JurisdictionAdapter, ...] = tuple(build_adapter(rule) for rule in RULES)


__all__ = ["ADAPTERS", "RULES", "TextRule", "build_adapter"]
