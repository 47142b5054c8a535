from decimal import Decimal

import pytest

from taxyield.core.errors import UnknownFilingStatusError, UnknownSetupError
from taxyield.core.money import D, percent_of
from taxyield.core.setup_tax import build_params, compute_tax, grow
from taxyield.jurisdictions import au, ca, de, uk, us
from tests.fixtures.scenarios import make_params, toy_adapter


@pytest.fixture
def toy():
    return toy_adapter()


def test_deferred_withdrawal_is_ordinary_income(toy):
    outcome = compute_tax(toy, "Deferred", make_params(gain=20000))
    assert outcome.tax == D("2000.00")
    assert outcome.penalty == D("0")
    assert outcome.tax_percent == D("10")


def test_percent_basis_differs_between_deferred_and_taxable(toy):
    params = make_params(principal=100000, gain=50000)
    deferred = compute_tax(toy, "Deferred", params)
    taxable = compute_tax(toy, "Taxable Account", params)

    assert deferred.tax == D("27500.00")
    assert deferred.tax_percent == percent_of(D("27500.00"), D("150000"))
    assert taxable.tax == D("7500.00")
    assert taxable.tax_percent == D("15")


def test_deferred_early_penalty_and_extra(toy):
    params = make_params(gain=20000, current_age=30, extra_early_penalty_rate="0.05")
    outcome = compute_tax(toy, "Deferred", params)
    assert outcome.penalty == D("3000.00")
    assert outcome.total_reported == D("5000.00")


def test_taxfree_only_carries_extra_penalty(toy):
    assert compute_tax(toy, "TaxFree", make_params(gain=20000)) == compute_tax(toy, "TaxFree", make_params(gain=1))
    outcome = compute_tax(toy, "taxfree", make_params(principal=10000, gain=5000, extra_early_penalty_rate="0.1"))
    assert outcome.tax == D("0")
    assert outcome.penalty == D("1500.00")
    assert outcome.tax_percent == D("10")


def test_pension_fund_tax_depends_on_holding(toy):
    long_held = compute_tax(toy, "Pension", make_params(gain=20000, is_long=True))
    short_held = compute_tax(toy, "Pension", make_params(gain=20000, is_long=False))
    assert long_held.tax == D("2000.00")
    assert short_held.tax == D("3000.00")
    assert long_held.penalty == D("0")


def test_pension_before_preservation_age(toy):
    outcome = compute_tax(toy, "Pension", make_params(principal=10000, gain=10000, current_age=40))
    assert outcome.penalty == D("10000.00")


def test_unknown_setup(toy):
    with pytest.raises(UnknownSetupError):
        compute_tax(toy, "Offshore Trust", make_params(gain=1))
    with pytest.raises(KeyError):
        toy.find_setup("nope")


def test_us_long_term_gains_stack_on_ordinary_income():
    brackets = us.get_brackets("single")
    long_held = compute_tax("us", "Taxable Account", make_params(gain=10000, other_income=50000, brackets=brackets))
    short_held = compute_tax(
        "us", "Taxable Account", make_params(gain=10000, other_income=50000, brackets=brackets, is_long=False)
    )
    assert long_held.tax == D("0")
    assert short_held.tax == D("1200.00")


def test_us_niit_surtax():
    params = make_params(gain=10000, other_income=300000, brackets=us.get_brackets("single"))
    outcome = compute_tax("us", "Taxable Account", params)
    assert outcome.surtax == D("380.00")
    assert outcome.tax == D("1500.00")


def test_uk_sipp_quarter_is_tax_free():
    params = make_params(gain=40000, other_income=20000, brackets=uk.get_brackets("single"))
    outcome = compute_tax("uk", "SIPP", params)
    assert outcome.tax == D("6000.00")
    assert outcome.tax_percent == D("15")


def test_uk_sipp_unauthorised_payment_charge():
    params = make_params(gain=40000, current_age=40, brackets=uk.get_brackets("single"))
    outcome = compute_tax("uk", "SIPP", params)
    assert outcome.tax == D("0")
    assert outcome.penalty == D("22000.00")


def test_uk_isa_falls_through_to_taxfree():
    outcome = compute_tax("uk", "ISA", make_params(gain=40000, brackets=uk.get_brackets("single")))
    assert outcome.total_reported == D("0")


def test_uk_capital_gains_after_allowance():
    params = make_params(gain=13000, other_income=20000, brackets=uk.get_brackets("single"))
    assert compute_tax("uk", "Taxable Account", params).tax == D("1800.00")


def test_de_crypto_rules():
    brackets = de.get_brackets("single")
    held = make_params(gain=10000, other_income=50000, brackets=brackets, is_crypto_asset=True)
    assert compute_tax("de", "Taxable Account", held).total_reported == D("0")

    small = make_params(gain=500, brackets=brackets, is_crypto_asset=True, is_long=False)
    assert compute_tax("de", "Taxable Account", small).total_reported == D("0")

    sold_early = make_params(gain=10000, other_income=50000, brackets=brackets, is_crypto_asset=True, is_long=False)
    outcome = compute_tax("de", "Taxable Account", sold_early)
    assert outcome.tax == D("1400.00")
    assert outcome.surtax == D("77.00")


@pytest.mark.parametrize("status,tax,surtax", [("single", "2250.00", "123.75"), ("married", "2000.00", "110.00")])
def test_de_flat_rate_on_securities(status, tax, surtax):
    params = make_params(gain=10000, brackets=de.get_brackets(status), filing_status=status)
    outcome = compute_tax("de", "Taxable Account", params)
    assert outcome.tax == D(tax)
    assert outcome.surtax == D(surtax)


def test_de_riester_clawback():
    params = make_params(gain=10000, principal=10000, current_age=40, brackets=de.get_brackets("single"))
    assert compute_tax("de", "Riester pension", params).penalty == D("5000.00")


def test_ca_half_inclusion_and_rrsp_withholding():
    brackets = ca.get_brackets("single")
    taxable = compute_tax("ca", "Taxable Account", make_params(gain=10000, other_income=60000, brackets=brackets))
    assert taxable.tax == D("1025.00")

    # withholding applies while under 71 regardless of the horizon
    rrsp = compute_tax("ca", "RRSP", make_params(gain=10000, current_age=65, holding_years=30, brackets=brackets))
    assert rrsp.penalty == D("1000.00")


def test_au_discount_and_medicare_levy():
    params = make_params(gain=10000, other_income=50000, brackets=au.get_brackets("single"))
    outcome = compute_tax("au", "Taxable Account", params)
    assert outcome.tax == D("1500.00")
    assert outcome.surtax == D("100.00")


def test_au_superannuation_is_a_pension():
    params = make_params(gain=10000, brackets=au.get_brackets("single"))
    assert compute_tax("au", "Superannuation", params).tax == D("1000.00")


def test_build_params_grows_principal():
    params = build_params(
        "us",
        filing_status="single",
        other_income=50000,
        principal=10000,
        annual_return="0.07",
        years=10,
        current_age=40,
    )
    assert params.gain == grow(D("10000"), D("0.07"), 10) - D("10000")
    assert params.brackets == us.get_brackets("single")
    assert params.withdrawal == params.principal + params.gain


def test_build_params_never_reports_a_negative_gain():
    params = build_params(
        "us",
        filing_status="single",
        other_income=0,
        principal=10000,
        annual_return="-0.2",
        years=3,
        current_age=40,
    )
    assert params.gain == Decimal("0")


def test_build_params_unknown_status():
    with pytest.raises(UnknownFilingStatusError):
        build_params(
            "ca",
            filing_status="married",
            other_income=0,
            principal=1,
            annual_return="0.05",
            years=1,
            current_age=40,
        )
