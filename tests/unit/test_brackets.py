from decimal import Decimal

import pytest

from taxyield.core.brackets import (
    BracketTable,
    bracket_breakdown,
    incremental_tax,
    tax_on_amount,
    validate_bracket_table,
)
from taxyield.core.errors import MalformedBracketTableError
from taxyield.core.money import D, INF
from tests.fixtures.scenarios import TOY_TABLE

US_SINGLE = BracketTable.from_pairs(
    [(11925, "0.10"), (48475, "0.12"), (103350, "0.22"), (INF, "0.37")]
)


def test_tax_on_amount_walks_each_bracket():
    assert tax_on_amount(TOY_TABLE, D("60000")) == D("7000.00")
    assert tax_on_amount(TOY_TABLE, D("50000")) == D("5000.00")


def test_tax_on_amount_clamps_negative_amounts():
    assert tax_on_amount(TOY_TABLE, D("-500")) == D("0")


def test_tax_on_amount_is_exact_at_bracket_boundaries():
    assert tax_on_amount(US_SINGLE, D("11925")) == D("1192.50")
    assert tax_on_amount(US_SINGLE, D("11925.01")) == D("1192.50")


@pytest.mark.parametrize("table", [TOY_TABLE, US_SINGLE])
def test_tax_on_amount_is_monotonic(table):
    previous = Decimal("0")
    for amount in range(0, 400_000, 3_517):
        tax = tax_on_amount(table, D(amount))
        assert tax >= previous
        previous = tax


@pytest.mark.parametrize(
    "base,d1,d2",
    [(0, 10_000, 5_000), (45_000, 3_000, 20_000), (-1_000, 400, 9_000), (200_000, 1, 1)],
)
def test_incremental_tax_is_additive(base, d1, d2):
    base, d1, d2 = D(base), D(d1), D(d2)
    whole = incremental_tax(US_SINGLE, base, d1 + d2)
    split = incremental_tax(US_SINGLE, base, d1) + incremental_tax(US_SINGLE, base + d1, d2)
    assert whole == split


def test_negative_base_absorbs_delta_into_headroom():
    # 1000 of the delta fills the unused deduction before any tax is due
    assert incremental_tax(TOY_TABLE, D("-1000"), D("5000")) == D("400.00")


def test_negative_base_fully_absorbs_small_delta():
    assert incremental_tax(TOY_TABLE, D("-1000"), D("800")) == D("0")


def test_breakdown_rows_sum_to_tax():
    rows = bracket_breakdown(TOY_TABLE, D("80000"))
    assert [row.index for row in rows] == [1, 2]
    assert rows[0].amount == D("50000")
    assert rows[1].amount == D("30000")
    assert sum(row.tax for row in rows) == tax_on_amount(TOY_TABLE, D("80000"))


def test_table_iterates_pairs():
    assert list(TOY_TABLE) == [(D("50000"), D("0.10")), (INF, D("0.20"))]
    assert len(TOY_TABLE) == 2
    assert TOY_TABLE.top_rate == D("0.20")


@pytest.mark.parametrize(
    "uppers,rates",
    [
        ((), ()),
        ((D("100"), INF), (D("0.1"),)),
        ((D("100"), INF), (D("0.1"), D("1.5"))),
        ((D("200"), D("100"), INF), (D("0.1"), D("0.2"), D("0.3"))),
        ((D("100"), D("200")), (D("0.1"), D("0.2"))),
        ((INF, INF), (D("0.1"), D("0.2"))),
    ],
)
def test_malformed_tables_are_rejected(uppers, rates):
    assert validate_bracket_table(uppers, rates)
    with pytest.raises(MalformedBracketTableError) as excinfo:
        BracketTable(uppers=uppers, rates=rates)
    assert excinfo.value.issues
    assert isinstance(excinfo.value, ValueError)


def test_flat_table_has_single_unbounded_bracket():
    table = BracketTable.flat("0.19")
    assert table.uppers == (INF,)
    assert tax_on_amount(table, D("1000")) == D("190.00")
