from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

D = Decimal

ZERO = D("0")
ONE = D("1")
HUNDRED = D("100")
INF = D("Infinity")
_CENT = D("0.01")


def to_decimal(value: float | int | str | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float) and value == float("inf"):
        return INF
    return Decimal(str(value))


def cents(value: Decimal) -> Decimal:
    if not value.is_finite():
        return value
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= ZERO:
        return ZERO
    return part / whole * HUNDRED


__all__ = ["D", "ZERO", "ONE", "HUNDRED", "INF", "to_decimal", "cents", "percent_of"]
