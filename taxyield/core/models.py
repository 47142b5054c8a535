from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum

from taxyield.core.brackets import BracketTable
from taxyield.core.money import D, INF, ZERO, percent_of, to_decimal


class SetupKind(str, Enum):
    TAXABLE = "taxable"
    DEFERRED = "deferred"
    TAXFREE = "taxfree"
    PENSION = "pension"


@dataclass(frozen=True)
class AccountSetup:
    name: str
    kind: SetupKind
    fees_text: str = ""
    early_penalty_rate: Decimal = D("0")
    threshold_age: Decimal = INF

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", SetupKind(self.kind))
        object.__setattr__(self, "early_penalty_rate", to_decimal(self.early_penalty_rate))
        object.__setattr__(self, "threshold_age", to_decimal(self.threshold_age))


@dataclass(frozen=True)
class Brackets:
    """Bracket tables and jurisdiction knobs for one filing status."""

    ordinary: BracketTable
    long_term: BracketTable | None = None
    standard_deduction: Decimal = D("0")
    surtax_threshold: Decimal | None = None
    surtax_rate: Decimal = D("0")
    cap_gain_inclusion: Decimal | None = None
    cap_gain_discount: Decimal | None = None
    cap_gain_rate: Decimal | None = None
    solidarity: Decimal | None = None
    annual_exempt: Decimal | None = None
    crypto_hold_free_years: Decimal | None = None
    crypto_small_exempt: Decimal | None = None
    higher_threshold: Decimal | None = None
    cap_gain_rate_basic: Decimal | None = None
    cap_gain_rate_higher: Decimal | None = None
    medicare_levy_rate: Decimal | None = None
    exempt_threshold: Decimal | None = None


@dataclass(frozen=True)
class TaxCalcParams:
    jurisdiction: str
    filing_status: str
    other_income_excluding_gain: Decimal
    principal: Decimal
    gain: Decimal
    holding_years: int
    current_age: Decimal
    is_crypto_asset: bool
    extra_early_penalty_rate: Decimal
    brackets: Brackets
    is_long: bool | None = None

    @property
    def withdrawal(self) -> Decimal:
        return self.principal + self.gain

    @property
    def long_term(self) -> bool:
        if self.is_long is not None:
            return self.is_long
        return self.holding_years > 1

    @property
    def ordinary_base(self) -> Decimal:
        # may be negative; incremental_tax clamps it
        return self.other_income_excluding_gain - self.brackets.standard_deduction

    def with_amount(self, amount: Decimal) -> "TaxCalcParams":
        return replace(self, gain=amount)


@dataclass(frozen=True)
class TaxPortion:
    tax: Decimal = D("0")
    surtax: Decimal = D("0")

    @property
    def total(self) -> Decimal:
        return self.tax + self.surtax


@dataclass(frozen=True)
class CalcOutcome:
    tax: Decimal
    surtax: Decimal
    penalty: Decimal
    tax_percent: Decimal
    advisories: tuple[str, ...] = field(default=(), compare=False)

    @property
    def total_reported(self) -> Decimal:
        return self.tax + self.surtax + self.penalty

    @classmethod
    def zero(cls) -> "CalcOutcome":
        return cls(tax=ZERO, surtax=ZERO, penalty=ZERO, tax_percent=ZERO)

    @classmethod
    def against(
        cls,
        basis: Decimal,
        *,
        tax: Decimal = ZERO,
        surtax: Decimal = ZERO,
        penalty: Decimal = ZERO,
        advisories: tuple[str, ...] = (),
    ) -> "CalcOutcome":
        return cls(
            tax=tax,
            surtax=surtax,
            penalty=penalty,
            tax_percent=percent_of(tax + surtax + penalty, basis),
            advisories=advisories,
        )


__all__ = [
    "AccountSetup",
    "Brackets",
    "CalcOutcome",
    "SetupKind",
    "TaxCalcParams",
    "TaxPortion",
]
