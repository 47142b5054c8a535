import pytest

from taxyield.core.errors import UnknownFilingStatusError, UnknownJurisdictionError
from taxyield.core.models import SetupKind
from taxyield.core.money import ZERO
from taxyield.core.setup_tax import build_params, compute_tax
from taxyield.jurisdictions.dispatch import (
    Found,
    NotFound,
    find_jurisdiction,
    get_jurisdiction,
    list_jurisdictions,
    list_supported_jurisdictions,
    pick_default_setup,
    resolve_jurisdiction,
)
from tests.fixtures.scenarios import toy_adapter

EXPECTED = {"us", "ca", "uk", "de", "au", "pl", "es", "jp", "pt", "it", "ae", "cn", "in", "nl", "cz", "dk"}


def test_registry_lists_every_jurisdiction():
    assert set(list_supported_jurisdictions()) == EXPECTED
    assert list_supported_jurisdictions() == sorted(EXPECTED)
    assert len(list_jurisdictions()) == len(EXPECTED)


def test_lookup_is_case_insensitive():
    assert get_jurisdiction(" US ").code == "us"
    assert isinstance(find_jurisdiction("De"), Found)


def test_unknown_jurisdiction():
    with pytest.raises(UnknownJurisdictionError):
        get_jurisdiction("atlantis")
    with pytest.raises(KeyError):
        resolve_jurisdiction("atlantis")
    missing = find_jurisdiction("atlantis")
    assert isinstance(missing, NotFound)
    assert missing.code == "atlantis"
    assert "atlantis" in missing.reason


def test_resolve_passes_adapters_through():
    adapter = toy_adapter()
    assert resolve_jurisdiction(adapter) is adapter


def test_unknown_filing_status():
    with pytest.raises(UnknownFilingStatusError):
        get_jurisdiction("uk").get_brackets("married")


@pytest.mark.parametrize("code,expected", [("us", "Roth IRA"), ("au", "Superannuation"), ("uk", "SIPP"), ("ae", "Taxable Account")])
def test_default_setup(code, expected):
    assert pick_default_setup(code).name == expected


def test_default_setup_prefers_pension_then_deferred():
    assert pick_default_setup(toy_adapter()).kind is SetupKind.PENSION
    assert pick_default_setup("pl").name == "IKZE"


def test_every_setup_has_a_taxable_account():
    for adapter in list_jurisdictions():
        assert adapter.setups_of_kind(SetupKind.TAXABLE), adapter.code


@pytest.mark.parametrize("code", sorted(EXPECTED))
@pytest.mark.parametrize("age", [30, 70])
def test_outcomes_are_non_negative_everywhere(code, age):
    adapter = get_jurisdiction(code)
    for status in adapter.statuses:
        params = build_params(
            adapter,
            filing_status=status,
            other_income=45000,
            principal=20000,
            annual_return="0.08",
            years=7,
            current_age=age,
            is_crypto_asset=True,
        )
        for setup in adapter.setups:
            outcome = compute_tax(adapter, setup, params)
            assert outcome.tax >= ZERO
            assert outcome.surtax >= ZERO
            assert outcome.penalty >= ZERO
            assert outcome.tax_percent >= ZERO
