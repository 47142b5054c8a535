import logging
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from taxyield.config import get_settings
from taxyield.core.breakeven import (
    DEFAULT_RETURNS,
    DEFAULT_YEARS,
    InvestmentConfig,
    ScenarioInputs,
    break_even_matrix,
    solve_break_even,
)
from taxyield.core.brackets import BracketTable
from taxyield.core.errors import UnknownFilingStatusError, UnknownJurisdictionError, UnknownSetupError
from taxyield.core.money import to_decimal
from taxyield.core.setup_tax import build_params, compute_tax
from taxyield.jurisdictions.dispatch import (
    Found,
    find_jurisdiction,
    list_jurisdictions,
    pick_default_setup,
)
from taxyield.regimes.descriptors import FlatRegime, ProgressiveRegime, SpecialRegime
from taxyield.regimes.parser import classify
from taxyield.regimes.unified import summarize_regime

logger = logging.getLogger("taxyield").getChild("api")
router = APIRouter()

_NOT_FOUND = (UnknownJurisdictionError, UnknownSetupError, UnknownFilingStatusError)


def _num(value: Decimal | None) -> float | None:
    if value is None or not value.is_finite():
        return None
    return float(value)


def _table(table: BracketTable | None) -> list[dict] | None:
    if table is None:
        return None
    return [{"upper": _num(upper), "rate": float(rate)} for upper, rate in table]


class _Strict(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class TaxComputeRequest(_Strict):
    jurisdiction: str
    setup: str | None = None
    filing_status: str = "single"
    other_income: float = 0.0
    principal: float = Field(..., ge=0)
    annual_return: float = Field(..., gt=-1)
    years: int = Field(..., ge=0, le=100)
    current_age: float = Field(..., ge=0, le=130)
    is_crypto_asset: bool = False
    extra_early_penalty_rate: float = Field(default=0.0, ge=0, le=1)
    is_long: bool | None = None


class ClassifyRequest(_Strict):
    rule_text: str
    currency: str = "USD"


class InvestmentRequest(_Strict):
    jurisdiction: str
    setup: str | None = None
    is_crypto_asset: bool = False


class ScenarioRequest(_Strict):
    baseline: InvestmentRequest
    alternative: InvestmentRequest
    filing_status: str = "single"
    other_income: float = 0.0
    principal: float = Field(..., ge=0)
    current_age: float = Field(..., ge=0, le=130)
    extra_early_penalty_rate: float = Field(default=0.0, ge=0, le=1)


class BreakEvenRequest(ScenarioRequest):
    base_return: float = Field(..., ge=0, le=1)
    years: int = Field(..., ge=1, le=100)


class BreakEvenGridRequest(ScenarioRequest):
    years: list[Annotated[int, Field(ge=1, le=100)]] = Field(default_factory=lambda: list(DEFAULT_YEARS))
    returns: list[Annotated[float, Field(ge=0, le=1)]] = Field(
        default_factory=lambda: [float(r) for r in DEFAULT_RETURNS]
    )


def _not_found(exc: KeyError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else str(exc))


def _investment(req: InvestmentRequest) -> InvestmentConfig:
    lookup = find_jurisdiction(req.jurisdiction)
    if not isinstance(lookup, Found):
        raise HTTPException(status_code=404, detail=lookup.reason)
    setup = req.setup if req.setup is not None else pick_default_setup(lookup.adapter)
    return InvestmentConfig(
        jurisdiction=lookup.adapter,
        setup=setup,
        is_crypto_asset=req.is_crypto_asset,
    )


def _scenario(req: ScenarioRequest) -> ScenarioInputs:
    return ScenarioInputs(
        filing_status=req.filing_status,
        other_income=to_decimal(req.other_income),
        principal=to_decimal(req.principal),
        current_age=to_decimal(req.current_age),
        extra_early_penalty_rate=to_decimal(req.extra_early_penalty_rate),
    )


@router.get("/health")
def health(request: Request):
    settings = getattr(request.app.state, "settings", get_settings())
    return {
        "status": "ok",
        "build": {"version": settings.build_version, "sha": settings.build_sha},
        "solver": {
            "max_iterations": settings.solver_max_iterations,
            "tolerance": settings.solver_tolerance,
            "growth_cap": settings.solver_growth_cap,
            "grid_workers": settings.grid_workers,
        },
    }


@router.get("/jurisdictions")
def jurisdictions():
    return [
        {
            "code": adapter.code,
            "name": adapter.name,
            "currency": adapter.currency,
            "statuses": list(adapter.statuses),
            "setups": [
                {
                    "name": s.name,
                    "kind": s.kind.value,
                    "early_penalty_rate": float(s.early_penalty_rate),
                    "threshold_age": _num(s.threshold_age),
                }
                for s in adapter.setups
            ],
            "text_driven": adapter.rule_text is not None,
            "crypto_note": adapter.crypto_note,
        }
        for adapter in sorted(list_jurisdictions(), key=lambda a: a.code)
    ]


@router.post("/tax/compute")
def tax_compute(req: TaxComputeRequest):
    lookup = find_jurisdiction(req.jurisdiction)
    if not isinstance(lookup, Found):
        raise HTTPException(status_code=404, detail=lookup.reason)
    adapter = lookup.adapter
    try:
        setup = adapter.find_setup(req.setup) if req.setup else pick_default_setup(adapter)
        params = build_params(
            adapter,
            filing_status=req.filing_status,
            other_income=req.other_income,
            principal=req.principal,
            annual_return=req.annual_return,
            years=req.years,
            current_age=req.current_age,
            is_crypto_asset=req.is_crypto_asset,
            extra_early_penalty_rate=req.extra_early_penalty_rate,
            is_long=req.is_long,
        )
    except _NOT_FOUND as exc:
        raise _not_found(exc) from exc
    outcome = compute_tax(adapter, setup, params)
    return {
        "jurisdiction": adapter.code,
        "currency": adapter.currency,
        "setup": {"name": setup.name, "kind": setup.kind.value},
        "gain": float(params.gain),
        "withdrawal": float(params.withdrawal),
        "tax": float(outcome.tax),
        "surtax": float(outcome.surtax),
        "penalty": float(outcome.penalty),
        "total_reported": float(outcome.total_reported),
        "tax_percent": float(outcome.tax_percent),
    }


@router.post("/regime/classify")
def regime_classify(req: ClassifyRequest):
    descriptor = classify(req.rule_text, req.currency)
    summary = summarize_regime(req.rule_text, req.currency)
    body: dict = {
        "regime": summary.system,
        "description": summary.description,
        "key_features": list(summary.key_features),
        "holding_benefit": summary.holding_benefit,
        "exemption_threshold": _num(summary.exemption_threshold),
        "special_rules": list(descriptor.special_rules),
    }
    if isinstance(descriptor, ProgressiveRegime):
        body["brackets"] = _table(descriptor.brackets)
        body["long_term_brackets"] = _table(descriptor.long_term_brackets)
    if isinstance(descriptor, (ProgressiveRegime, FlatRegime)):
        body["holding_period_months"] = descriptor.holding_period_months
        body["surcharges"] = [{"name": s.name, "rate": float(s.rate)} for s in descriptor.surcharges]
    if isinstance(descriptor, FlatRegime):
        body["rate"] = float(descriptor.rate)
    if isinstance(descriptor, SpecialRegime):
        body["params"] = {
            "threshold": float(descriptor.params.threshold),
            "base_rate": float(descriptor.params.base_rate),
            "alternative_rate": float(descriptor.params.alternative_rate),
            "holding_period_months": descriptor.params.holding_period_months,
        }
    return body


@router.post("/breakeven")
def breakeven(req: BreakEvenRequest):
    baseline = _investment(req.baseline)
    alternative = _investment(req.alternative)
    try:
        delta = solve_break_even(baseline, alternative, _scenario(req), to_decimal(req.base_return), req.years)
    except _NOT_FOUND as exc:
        raise _not_found(exc) from exc
    settings = get_settings()
    return {
        "base_return": req.base_return,
        "years": req.years,
        "delta": float(delta),
        "at_cap": delta >= to_decimal(settings.solver_growth_cap),
    }


@router.post("/breakeven/grid")
def breakeven_grid(req: BreakEvenGridRequest):
    baseline = _investment(req.baseline)
    alternative = _investment(req.alternative)
    try:
        matrix = break_even_matrix(
            baseline,
            alternative,
            _scenario(req),
            years=req.years,
            returns=[to_decimal(r) for r in req.returns],
        )
    except _NOT_FOUND as exc:
        raise _not_found(exc) from exc
    logger.debug("Solved break-even grid %sx%s", len(matrix.years), len(matrix.returns))
    return {
        "years": list(matrix.years),
        "returns": [float(r) for r in matrix.returns],
        "cells": [[float(c) for c in row] for row in matrix.cells],
    }
