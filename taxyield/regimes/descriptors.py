"""Typed regime descriptors produced by the rule-text classifier.

A descriptor is one of three frozen variants. Equal inputs produce equal
descriptors, which is what makes classification safe to cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Union

from taxyield.core.brackets import BracketTable
from taxyield.core.money import ZERO


@dataclass(frozen=True)
class Exemption:
    annual_threshold: Decimal
    currency: str


@dataclass(frozen=True)
class Surcharge:
    name: str
    rate: Decimal


@dataclass(frozen=True)
class ProgressiveRegime:
    brackets: BracketTable
    currency: str = "USD"
    exemption: Exemption | None = None
    holding_period_months: int | None = None
    full_holding_exemption: bool = False
    surcharges: tuple[Surcharge, ...] = ()
    special_rules: tuple[str, ...] = ()
    long_term_brackets: BracketTable | None = None


@dataclass(frozen=True)
class FlatRegime:
    rate: Decimal
    currency: str = "USD"
    exemption: Exemption | None = None
    holding_period_months: int | None = None
    full_holding_exemption: bool = False
    surcharges: tuple[Surcharge, ...] = ()
    special_rules: tuple[str, ...] = ()


class SpecialKind(str, Enum):
    EXEMPT = "exempt"
    BANNED = "banned"
    THRESHOLD = "threshold"
    CONDITIONAL = "conditional"
    COMPLEX = "complex"


@dataclass(frozen=True)
class SpecialParams:
    threshold: Decimal = ZERO
    base_rate: Decimal = ZERO
    alternative_rate: Decimal = ZERO
    holding_period_months: int | None = None


@dataclass(frozen=True)
class SpecialRegime:
    kind: SpecialKind
    params: SpecialParams = SpecialParams()
    currency: str = "USD"
    exemption: Exemption | None = None
    special_rules: tuple[str, ...] = ()


RegimeDescriptor = Union[ProgressiveRegime, FlatRegime, SpecialRegime]


def regime_name(descriptor: RegimeDescriptor) -> str:
    if isinstance(descriptor, ProgressiveRegime):
        return "progressive"
    if isinstance(descriptor, FlatRegime):
        return "flat"
    return descriptor.kind.value


__all__ = [
    "Exemption",
    "FlatRegime",
    "ProgressiveRegime",
    "RegimeDescriptor",
    "SpecialKind",
    "SpecialParams",
    "SpecialRegime",
    "Surcharge",
    "regime_name",
]
