"""Heuristic classifier turning free-text crypto tax rules into regime descriptors.

The classifier runs ordered phases and the first phase that matches wins:

1. banned / exempt detection
2. threshold ("26% on gains over 2,000")
3. flat rate
4. progressive bracket extraction (needs at least two brackets)
5. conditional holding-period exemption
6. any single remaining rate
7. complex, flagged for manual review

Exemptions, holding periods, surcharges and advisory flags are extracted for
every phase. ``classify`` never raises; anything it cannot make sense of
becomes a COMPLEX descriptor.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from taxyield.core.brackets import BracketTable
from taxyield.core.errors import MalformedBracketTableError
from taxyield.core.money import D, HUNDRED, INF, ZERO
from taxyield.regimes.descriptors import (
    Exemption,
    FlatRegime,
    ProgressiveRegime,
    RegimeDescriptor,
    SpecialKind,
    SpecialParams,
    SpecialRegime,
    Surcharge,
)

logger = logging.getLogger("taxyield").getChild("parser")

MANUAL_REVIEW = "Complex tax structure requiring manual review"

_CUR = r"[€$£¥₹]?"
_RATE = r"(\d+(?:\.\d+)?)"
_AMOUNT = r"([\d,]+(?:\.\d+)?[km]?)"

_RATE_RE = re.compile(_RATE + r"%")
_RATE_OR_RANGE_RE = re.compile(_RATE + r"(?:-\d+(?:\.\d+)?)?%")
_STANDALONE_ZERO_RE = re.compile(r"(?<![\d.])0(?:\.0+)?%")
_AMOUNT_RANGE_RE = re.compile(r"\d[\d,.]*[km]?\s*-\s*" + _CUR + r"\d")
_THRESHOLD_RE = re.compile(
    _RATE + r"%\s+on\s+(?:[a-z-]+\s+)?gains\s+(?:over|above)\s+" + _CUR + _AMOUNT
)
_FLAT_RATE_RE = re.compile(r"(?:flat\s+)?" + _RATE + r"%")
_HELD_FREE_RE = re.compile(r"(?:tax-free|exempt|no tax)\s+if\s+held")

_PARENTHESIZED_RE = re.compile(_RATE + r"%\s*\(" + _CUR + _AMOUNT + r"\s*-\s*" + _CUR + _AMOUNT + r"\)")
_RATE_RANGE_RE = re.compile(
    _RATE + r"-" + _RATE + r"%\s*" + _CUR + _AMOUNT + r"\s*-\s*" + _CUR + _AMOUNT
)
_COMPARISON_RE = re.compile(_RATE + r"%\s*([<>])\s*" + _CUR + _AMOUNT)
_OVER_RE = re.compile(_RATE + r"%\s*\(?\s*over\s*" + _CUR + _AMOUNT)
_BARE_RANGE_RE = re.compile(_RATE + r"%\s*" + _CUR + _AMOUNT + r"\s*-\s*" + _CUR + _AMOUNT)
_UP_TO_RATE_RE = re.compile(r"up\s+to\s+" + _RATE + r"%")
_RATE_UP_TO_RE = re.compile(_RATE + r"%\s+up\s+to\s+" + _CUR + _AMOUNT)
_MARGINAL_RE = re.compile(_RATE + r"-" + _RATE + r"%")

_EXEMPTION_RE = re.compile(r"(?:under|below)\s*" + _CUR + r"([\d,]+)")
_YEARS_RE = re.compile(r"(\d+)\s*years?")
_MONTHS_RE = re.compile(r"(\d+)\s*months?")
_SURCHARGE_RE = re.compile(_RATE + r"%\s+(solidarity|cess|social charges|social security|levy)")
_LOCAL_RE = re.compile(r"local\s+" + _RATE + r"%")

_ADVISORIES = (
    ("mining", "Special mining tax rules apply"),
    ("staking", "Special staking tax rules apply"),
    ("wealth tax", "Wealth tax applies"),
)


def parse_amount(raw: str) -> Decimal:
    """Parse ``"11,925"``, ``"1.95m"`` or ``"50k"`` into a Decimal amount."""
    cleaned = raw.replace(",", "").strip()
    multiplier = D("1")
    if cleaned.endswith("m"):
        multiplier = D("1000000")
        cleaned = cleaned[:-1]
    elif cleaned.endswith("k"):
        multiplier = D("1000")
        cleaned = cleaned[:-1]
    return D(cleaned) * multiplier


def _rate(raw: str) -> Decimal:
    return D(raw) / HUNDRED


def extract_exemption(text: str, currency: str) -> Exemption | None:
    match = _EXEMPTION_RE.search(text)
    if not match:
        return None
    return Exemption(annual_threshold=parse_amount(match.group(1)), currency=currency)


def extract_holding_period(text: str) -> int | None:
    match = _YEARS_RE.search(text)
    if match:
        return int(match.group(1)) * 12
    match = _MONTHS_RE.search(text)
    if match:
        return int(match.group(1))
    return None


def extract_surcharges(text: str) -> tuple[Surcharge, ...]:
    found: list[Surcharge] = []
    for match in _SURCHARGE_RE.finditer(text):
        found.append(Surcharge(name=match.group(2), rate=_rate(match.group(1))))
    for match in _LOCAL_RE.finditer(text):
        found.append(Surcharge(name="local", rate=_rate(match.group(1))))
    return tuple(dict.fromkeys(found))


def extract_special_rules(text: str) -> tuple[str, ...]:
    return tuple(flag for keyword, flag in _ADVISORIES if keyword in text)


def _has_bracket_language(text: str) -> bool:
    return "progressive" in text or "bracket" in text or bool(_AMOUNT_RANGE_RE.search(text))


def _distinct_rates(text: str) -> list[Decimal]:
    return list(dict.fromkeys(_rate(m.group(1)) for m in _RATE_RE.finditer(text)))


def _first_rate(text: str, *, nonzero: bool = False) -> Decimal | None:
    for match in _RATE_OR_RANGE_RE.finditer(text):
        rate = _rate(match.group(1))
        if nonzero and rate == ZERO:
            continue
        return rate
    return None


def extract_bracket_pairs(text: str) -> list[tuple[Decimal, Decimal]]:
    """Recover ``(upper, rate)`` pairs in pattern-family order."""
    pairs: list[tuple[Decimal, Decimal]] = []

    for m in _PARENTHESIZED_RE.finditer(text):
        pairs.append((parse_amount(m.group(3)), _rate(m.group(1))))
    for m in _RATE_RANGE_RE.finditer(text):
        # the higher rate of the range applies to the band
        pairs.append((parse_amount(m.group(4)), _rate(m.group(2))))
    for m in _COMPARISON_RE.finditer(text):
        upper = parse_amount(m.group(3)) if m.group(2) == "<" else INF
        pairs.append((upper, _rate(m.group(1))))
    for m in _OVER_RE.finditer(text):
        pairs.append((INF, _rate(m.group(1))))
    for m in _BARE_RANGE_RE.finditer(text):
        pairs.append((parse_amount(m.group(3)), _rate(m.group(1))))
    for m in _UP_TO_RATE_RE.finditer(text):
        pairs.append((INF, _rate(m.group(1))))
    for m in _RATE_UP_TO_RE.finditer(text):
        pairs.append((parse_amount(m.group(2)), _rate(m.group(1))))
    for m in _MARGINAL_RE.finditer(text):
        low, high = _rate(m.group(1)), _rate(m.group(2))
        if low == ZERO:
            pairs.append((D("50000"), low))
        pairs.append((INF, high))
    return pairs


def build_bracket_table(pairs: list[tuple[Decimal, Decimal]]) -> BracketTable | None:
    """De-duplicate, sort and close recovered pairs. ``None`` below two brackets."""
    by_upper: dict[Decimal, Decimal] = {}
    for upper, rate in pairs:
        # first pattern family to claim an upper bound wins
        by_upper.setdefault(upper, rate)
    ordered = sorted(by_upper.items(), key=lambda pair: pair[0])
    # counted before closing so one recovered pair never becomes a table
    if len(ordered) < 2:
        return None
    if ordered[-1][0] != INF:
        ordered.append((INF, ordered[-1][1]))
    return BracketTable.from_pairs(ordered)


def _split_long_term(text: str) -> tuple[str, str | None]:
    idx = text.find("long-term")
    if idx <= 0:
        return text, None
    return text[:idx], text[idx:]


def _classify(text: str, currency: str) -> RegimeDescriptor:
    exemption = extract_exemption(text, currency)
    holding = extract_holding_period(text)
    surcharges = extract_surcharges(text)
    rules = extract_special_rules(text)
    held_free = bool(_HELD_FREE_RE.search(text))

    if "banned" in text or "prohibited" in text:
        return SpecialRegime(kind=SpecialKind.BANNED, currency=currency, special_rules=rules)

    standalone_zero = bool(_STANDALONE_ZERO_RE.search(text)) and not _has_bracket_language(text)
    if standalone_zero or ("exempt from taxation" in text and "unless" not in text):
        return SpecialRegime(kind=SpecialKind.EXEMPT, currency=currency, exemption=exemption, special_rules=rules)

    threshold = _THRESHOLD_RE.search(text)
    if threshold:
        return SpecialRegime(
            kind=SpecialKind.THRESHOLD,
            params=SpecialParams(
                threshold=parse_amount(threshold.group(2)),
                base_rate=_rate(threshold.group(1)),
                holding_period_months=holding,
            ),
            currency=currency,
            exemption=exemption,
            special_rules=rules,
        )

    distinct = _distinct_rates(text)
    single_cue = (
        len(distinct) == 1 and "(" not in text and "progressive" not in text and "bracket" not in text
    )
    if "flat" in text or single_cue:
        flat = _FLAT_RATE_RE.search(text)
        if flat:
            return FlatRegime(
                rate=_rate(flat.group(1)),
                currency=currency,
                exemption=exemption,
                holding_period_months=holding,
                full_holding_exemption=held_free,
                surcharges=surcharges,
                special_rules=rules,
            )

    main_text, long_text = _split_long_term(text)
    table = build_bracket_table(extract_bracket_pairs(main_text))
    if table is not None:
        long_table = build_bracket_table(extract_bracket_pairs(long_text)) if long_text else None
        return ProgressiveRegime(
            brackets=table,
            currency=currency,
            exemption=exemption,
            holding_period_months=holding,
            full_holding_exemption=held_free,
            surcharges=surcharges,
            special_rules=rules,
            long_term_brackets=long_table,
        )

    base_rate = _first_rate(text, nonzero=True)
    if held_free and base_rate is not None:
        return SpecialRegime(
            kind=SpecialKind.CONDITIONAL,
            params=SpecialParams(
                base_rate=base_rate,
                alternative_rate=ZERO,
                holding_period_months=holding if holding is not None else 12,
            ),
            currency=currency,
            exemption=exemption,
            special_rules=rules,
        )

    if distinct and "progressive" not in text:
        return FlatRegime(
            rate=distinct[0],
            currency=currency,
            exemption=exemption,
            holding_period_months=holding,
            full_holding_exemption=held_free,
            surcharges=surcharges,
            special_rules=rules,
        )

    return _complex(text, currency, exemption=exemption, holding=holding, rules=rules)


def _complex(
    text: str,
    currency: str,
    *,
    exemption: Exemption | None = None,
    holding: int | None = None,
    rules: tuple[str, ...] = (),
) -> SpecialRegime:
    return SpecialRegime(
        kind=SpecialKind.COMPLEX,
        params=SpecialParams(base_rate=_first_rate(text) or ZERO, holding_period_months=holding),
        currency=currency,
        exemption=exemption,
        special_rules=rules + (MANUAL_REVIEW,),
    )


@lru_cache(maxsize=512)
def classify(rule_text: str, currency: str = "USD") -> RegimeDescriptor:
    """Classify ``rule_text`` into a regime descriptor. Never raises."""
    text = (rule_text or "").lower()
    try:
        return _classify(text, currency)
    except (InvalidOperation, ValueError, MalformedBracketTableError) as exc:
        logger.debug("Falling back to complex regime for %r: %s", rule_text, exc)
        try:
            exemption = extract_exemption(text, currency)
        except InvalidOperation:
            exemption = None
        return _complex(
            text,
            currency,
            exemption=exemption,
            holding=extract_holding_period(text),
            rules=extract_special_rules(text),
        )


__all__ = [
    "MANUAL_REVIEW",
    "build_bracket_table",
    "classify",
    "extract_bracket_pairs",
    "extract_exemption",
    "extract_holding_period",
    "extract_special_rules",
    "extract_surcharges",
    "parse_amount",
]
