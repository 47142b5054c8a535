import pytest
from fastapi.testclient import TestClient

from taxyield.main import app

client = TestClient(app)

SCENARIO = {
    "baseline": {"jurisdiction": "us", "setup": "Taxable Account"},
    "alternative": {"jurisdiction": "us"},
    "other_income": 150000,
    "principal": 10000,
    "current_age": 65,
}


def test_health_includes_build_and_solver_meta(monkeypatch):
    monkeypatch.setenv("BUILD_VERSION", "1.2.3")
    monkeypatch.setenv("BUILD_SHA", "abc123")
    monkeypatch.setenv("TAXYIELD_GRID_WORKERS", "2")
    with TestClient(app) as lifespan_client:
        body = lifespan_client.get("/health").json()
        assert lifespan_client.app.state.app_label == "api"
    assert body["status"] == "ok"
    assert body["build"] == {"version": "1.2.3", "sha": "abc123"}
    assert body["solver"]["grid_workers"] == 2
    assert body["solver"]["growth_cap"] == 5.0


def test_jurisdictions_listing():
    body = client.get("/jurisdictions").json()
    by_code = {item["code"]: item for item in body}
    assert {"us", "ca", "uk", "de", "au", "jp"} <= set(by_code)
    roth = next(s for s in by_code["us"]["setups"] if s["name"] == "Roth IRA")
    assert roth["kind"] == "taxfree"
    assert roth["threshold_age"] == 59.5
    assert by_code["jp"]["text_driven"] is True
    assert by_code["us"]["text_driven"] is False
    taxable = next(s for s in by_code["uk"]["setups"] if s["kind"] == "taxable")
    assert taxable["threshold_age"] is None


def test_compute_short_term_us_gain():
    payload = {
        "jurisdiction": "us",
        "setup": "Taxable Account",
        "other_income": 50000,
        "principal": 10000,
        "annual_return": 0.1,
        "years": 1,
        "current_age": 40,
    }
    response = client.post("/tax/compute", json=payload)
    assert response.status_code == 200
    body = response.json()
    assert body["currency"] == "USD"
    assert body["gain"] == pytest.approx(1000.0)
    assert body["tax"] == pytest.approx(120.0)
    assert body["tax_percent"] == pytest.approx(12.0)


def test_compute_defaults_to_preferred_setup():
    payload = {"jurisdiction": "au", "principal": 10000, "annual_return": 0.05, "years": 10, "current_age": 70}
    body = client.post("/tax/compute", json=payload).json()
    assert body["setup"] == {"name": "Superannuation", "kind": "pension"}


@pytest.mark.parametrize(
    "overrides",
    [
        {"jurisdiction": "atlantis"},
        {"jurisdiction": "ca", "setup": "Roth IRA"},
        {"jurisdiction": "ca", "filing_status": "married"},
    ],
)
def test_compute_unknown_lookups_return_404(overrides):
    payload = {"jurisdiction": "ca", "principal": 1000, "annual_return": 0.05, "years": 5, "current_age": 40}
    payload.update(overrides)
    response = client.post("/tax/compute", json=payload)
    assert response.status_code == 404
    assert response.json()["detail"]


@pytest.mark.parametrize(
    "payload",
    [
        {"jurisdiction": "us", "principal": 1000, "annual_return": 0.05, "years": 5, "current_age": 40, "bogus": 1},
        {"jurisdiction": "us", "principal": -5, "annual_return": 0.05, "years": 5, "current_age": 40},
        {"jurisdiction": "us", "principal": 1000, "annual_return": 0.05, "years": 5},
    ],
)
def test_compute_rejects_invalid_payloads(payload):
    assert client.post("/tax/compute", json=payload).status_code == 422


def test_classify_flat_rule():
    body = client.post(
        "/regime/classify",
        json={"rule_text": "Flat 30% on gains (plus 4% cess), no deductions allowed.", "currency": "INR"},
    ).json()
    assert body["regime"] == "flat"
    assert body["rate"] == pytest.approx(0.30)
    assert body["surcharges"] == [{"name": "cess", "rate": pytest.approx(0.04)}]


def test_classify_progressive_rule_serializes_open_bracket_as_null():
    body = client.post(
        "/regime/classify",
        json={"rule_text": "10% ($0-$11,925), 12% ($11,926-$48,535), 37% (over $626,350)."},
    ).json()
    assert body["regime"] == "progressive"
    assert [row["upper"] for row in body["brackets"]] == [11925.0, 48535.0, None]


def test_classify_unknown_text_is_complex():
    body = client.post("/regime/classify", json={"rule_text": "It depends."}).json()
    assert body["regime"] == "complex"
    assert "Complex tax structure requiring manual review" in body["special_rules"]


def test_breakeven_tax_free_alternative_needs_less_yield():
    response = client.post("/breakeven", json={**SCENARIO, "base_return": 0.07, "years": 10})
    assert response.status_code == 200
    body = response.json()
    assert body["delta"] < 0
    assert body["at_cap"] is False


def test_breakeven_unknown_setup_returns_404():
    payload = {**SCENARIO, "baseline": {"jurisdiction": "us", "setup": "Nope"}, "base_return": 0.05, "years": 5}
    assert client.post("/breakeven", json=payload).status_code == 404


def test_breakeven_grid():
    response = client.post("/breakeven/grid", json={**SCENARIO, "years": [1, 5], "returns": [0.03, 0.07]})
    assert response.status_code == 200
    body = response.json()
    assert body["years"] == [1, 5]
    assert body["returns"] == [0.03, 0.07]
    assert len(body["cells"]) == 2
    assert all(len(row) == 2 for row in body["cells"])


@pytest.mark.parametrize(
    "grid",
    [
        {"years": [200000000], "returns": [0.2]},
        {"years": [0], "returns": [-1.0]},
        {"years": [5], "returns": [1.5]},
    ],
)
def test_breakeven_grid_rejects_out_of_range_cells(grid):
    assert client.post("/breakeven/grid", json={**SCENARIO, **grid}).status_code == 422
