from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator, Sequence

from taxyield.core.errors import MalformedBracketTableError
from taxyield.core.money import D, INF, ONE, ZERO, cents, to_decimal


def validate_bracket_table(uppers: Sequence[Decimal], rates: Sequence[Decimal]) -> list[str]:
    issues: list[str] = []
    if not uppers or not rates:
        issues.append("Missing upper bounds or rates")
        return issues
    if len(uppers) != len(rates):
        issues.append("Upper bounds and rates must have the same length")
    for i, rate in enumerate(rates):
        if rate.is_nan() or rate < ZERO or rate > ONE:
            issues.append(f"Rate at index {i} is out of range: {rate}")
    for i in range(1, len(uppers)):
        if not uppers[i] > uppers[i - 1]:
            issues.append(f"Upper bounds not strictly increasing at index {i}")
    if uppers[-1] != INF:
        issues.append("Final upper bound must be infinite")
    for i, upper in enumerate(uppers[:-1]):
        if upper.is_infinite():
            issues.append(f"Only the final bracket may be unbounded (index {i})")
    return issues


@dataclass(frozen=True)
class BracketTable:
    uppers: tuple[Decimal, ...]
    rates: tuple[Decimal, ...]

    def __post_init__(self) -> None:
        uppers = tuple(to_decimal(u) for u in self.uppers)
        rates = tuple(to_decimal(r) for r in self.rates)
        issues = validate_bracket_table(uppers, rates)
        if issues:
            raise MalformedBracketTableError(issues)
        object.__setattr__(self, "uppers", uppers)
        object.__setattr__(self, "rates", rates)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[Decimal | float | str, Decimal | float | str]]) -> "BracketTable":
        pairs = list(pairs)
        return cls(
            uppers=tuple(to_decimal(upper) for upper, _ in pairs),
            rates=tuple(to_decimal(rate) for _, rate in pairs),
        )

    @classmethod
    def flat(cls, rate: Decimal | float | str) -> "BracketTable":
        return cls(uppers=(INF,), rates=(to_decimal(rate),))

    def __iter__(self) -> Iterator[tuple[Decimal, Decimal]]:
        return iter(zip(self.uppers, self.rates))

    def __len__(self) -> int:
        return len(self.uppers)

    @property
    def top_rate(self) -> Decimal:
        return self.rates[-1]


@dataclass(frozen=True)
class BracketSlice:
    index: int
    rate: Decimal
    amount: Decimal
    tax: Decimal


def bracket_breakdown(table: BracketTable, amount: Decimal) -> list[BracketSlice]:
    remaining = max(ZERO, to_decimal(amount))
    previous = ZERO
    rows: list[BracketSlice] = []
    for i, (upper, rate) in enumerate(table, start=1):
        if remaining <= ZERO:
            break
        span = min(remaining, upper - previous)
        if span > ZERO:
            rows.append(BracketSlice(index=i, rate=rate, amount=span, tax=span * rate))
            remaining -= span
        previous = upper
        if upper.is_infinite():
            break
    return rows


def tax_on_amount(table: BracketTable, amount: Decimal) -> Decimal:
    tax = sum((row.tax for row in bracket_breakdown(table, amount)), D("0"))
    return cents(tax)


def incremental_tax(table: BracketTable, base_taxable: Decimal, delta: Decimal) -> Decimal:
    # both endpoints clamp independently so unused deduction headroom absorbs the delta
    base = to_decimal(base_taxable)
    before = max(ZERO, base)
    after = max(ZERO, base + to_decimal(delta))
    return tax_on_amount(table, after) - tax_on_amount(table, before)


__all__ = [
    "BracketTable",
    "BracketSlice",
    "bracket_breakdown",
    "incremental_tax",
    "tax_on_amount",
    "validate_bracket_table",
]
