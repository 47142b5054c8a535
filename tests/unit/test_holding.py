from datetime import date

import pytest

from taxyield.core.money import D
from taxyield.regimes.holding import (
    HoldingPeriodRule,
    HoldingTreatment,
    evaluate_holding,
    get_holding_rule,
    months_between,
)


@pytest.mark.parametrize(
    "code,months,treatment",
    [
        ("us", 6, HoldingTreatment.SHORT_TERM),
        ("us", 12, HoldingTreatment.LONG_TERM),
        ("de", 6, HoldingTreatment.SHORT_TERM),
        ("de", 13, HoldingTreatment.EXEMPT),
        ("au", 11, HoldingTreatment.SHORT_TERM),
        ("au", 13, HoldingTreatment.DISCOUNTED),
        ("ca", 0, HoldingTreatment.DISCOUNTED),
        ("cz", 35, HoldingTreatment.SHORT_TERM),
        ("cz", 36, HoldingTreatment.EXEMPT),
        ("fr", 48, HoldingTreatment.LONG_TERM),
    ],
)
def test_treatment_by_jurisdiction(code, months, treatment):
    outcome = evaluate_holding(get_holding_rule(code), months)
    assert outcome.treatment is treatment
    assert outcome.months == months


def test_discount_carries_rate_and_description():
    outcome = evaluate_holding(get_holding_rule("AU"), 13)
    assert outcome.discount == D("0.5")
    assert outcome.is_long is True
    assert outcome.description == "50% discount applied (held 13 months)"


def test_descriptions():
    rule = HoldingPeriodRule(long_term_months=12, exemption_months=24, full_exemption=True)
    assert evaluate_holding(rule, 3).description == "Short-term capital gains rate (held 3 months)"
    assert evaluate_holding(rule, 12).description == "Long-term capital gains rate (held 12 months)"
    assert evaluate_holding(rule, 30).description == "Tax-free (held 30 months)"


def test_unknown_jurisdiction_has_no_rule():
    assert get_holding_rule("zz") is None


def test_months_between_uses_average_month():
    assert months_between(date(2024, 1, 1), date(2025, 1, 1)) == 12
    assert months_between(date(2024, 1, 1), date(2024, 1, 30)) == 0
    assert months_between(date(2025, 1, 1), date(2024, 1, 1)) == 0
