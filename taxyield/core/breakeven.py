"""Break-even extra yield between two account configurations.

``solve_break_even`` finds the delta such that the alternative, growing at
``base_return + delta``, ends with the same after-tax value as the baseline
growing at ``base_return``. A negative delta means the alternative already
wins and can afford that much less yield.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Sequence

from taxyield.config import Settings, get_settings
from taxyield.core.models import AccountSetup
from taxyield.core.money import D, ZERO, to_decimal
from taxyield.core.setup_tax import build_params, compute_tax, grow
from taxyield.jurisdictions.base import JurisdictionAdapter

logger = logging.getLogger("taxyield").getChild("solver")

DEFAULT_YEARS: tuple[int, ...] = (1, 3, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50)
DEFAULT_RETURNS: tuple[Decimal, ...] = tuple(
    D(r) for r in ("0.01", "0.03", "0.05", "0.07", "0.10", "0.12", "0.15", "0.20")
)


@dataclass(frozen=True)
class InvestmentConfig:
    jurisdiction: str | JurisdictionAdapter
    setup: AccountSetup | str
    is_crypto_asset: bool = False


@dataclass(frozen=True)
class ScenarioInputs:
    filing_status: str
    other_income: Decimal
    principal: Decimal
    current_age: Decimal
    extra_early_penalty_rate: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("other_income", "principal", "current_age", "extra_early_penalty_rate"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))


@dataclass(frozen=True)
class BreakEvenMatrix:
    years: tuple[int, ...]
    returns: tuple[Decimal, ...]
    cells: tuple[tuple[Decimal, ...], ...]

    def cell(self, years: int, rate: Decimal | float | str) -> Decimal:
        return self.cells[self.years.index(years)][self.returns.index(to_decimal(rate))]


def after_tax(config: InvestmentConfig, inputs: ScenarioInputs, rate: Decimal, years: int) -> Decimal:
    params = build_params(
        config.jurisdiction,
        filing_status=inputs.filing_status,
        other_income=inputs.other_income,
        principal=inputs.principal,
        annual_return=rate,
        years=years,
        current_age=inputs.current_age,
        is_crypto_asset=config.is_crypto_asset,
        extra_early_penalty_rate=inputs.extra_early_penalty_rate,
    )
    outcome = compute_tax(config.jurisdiction, config.setup, params)
    return grow(inputs.principal, rate, years) - outcome.total_reported


def _bisect(reaches: Callable[[Decimal], bool], low: Decimal, high: Decimal, settings: Settings) -> Decimal:
    """Smallest delta in ``[low, high]`` that reaches the target; ``high`` must reach it."""
    tolerance = to_decimal(settings.solver_tolerance)
    for _ in range(settings.solver_max_iterations):
        if high - low <= tolerance:
            break
        mid = (low + high) / 2
        if reaches(mid):
            high = mid
        else:
            low = mid
    return high


def solve_break_even(
    baseline: InvestmentConfig,
    alternative: InvestmentConfig,
    inputs: ScenarioInputs,
    base_return: Decimal | float | str,
    years: int,
    settings: Settings | None = None,
) -> Decimal:
    settings = settings or get_settings()
    r = to_decimal(base_return)
    target = after_tax(baseline, inputs, r, years)

    def reaches(delta: Decimal) -> bool:
        return after_tax(alternative, inputs, r + delta, years) >= target

    if reaches(ZERO):
        return _bisect(reaches, -r, ZERO, settings)

    cap = to_decimal(settings.solver_growth_cap)
    high = min(to_decimal(settings.solver_growth_start), cap)
    steps = 0
    while not reaches(high) and steps < settings.solver_growth_guard and high < cap:
        high = min(high * 2, cap)
        steps += 1
    if not reaches(high):
        logger.debug("No break-even within %s for years=%s rate=%s", cap, years, r)
        return cap
    return _bisect(reaches, ZERO, high, settings)


def break_even_matrix(
    baseline: InvestmentConfig,
    alternative: InvestmentConfig,
    inputs: ScenarioInputs,
    *,
    years: Sequence[int] = DEFAULT_YEARS,
    returns: Sequence[Decimal | float | str] = DEFAULT_RETURNS,
    settings: Settings | None = None,
) -> BreakEvenMatrix:
    settings = settings or get_settings()
    year_axis = tuple(years)
    return_axis = tuple(to_decimal(r) for r in returns)
    pairs = [(y, r) for y in year_axis for r in return_axis]

    def solve(pair: tuple[int, Decimal]) -> Decimal:
        return solve_break_even(baseline, alternative, inputs, pair[1], pair[0], settings)

    if settings.grid_workers > 1:
        logger.debug("Solving %s cells on %s workers", len(pairs), settings.grid_workers)
        with ThreadPoolExecutor(max_workers=settings.grid_workers) as pool:
            flat = list(pool.map(solve, pairs))
    else:
        flat = [solve(pair) for pair in pairs]

    width = len(return_axis)
    cells = tuple(tuple(flat[i * width:(i + 1) * width]) for i in range(len(year_axis)))
    return BreakEvenMatrix(years=year_axis, returns=return_axis, cells=cells)


__all__ = [
    "BreakEvenMatrix",
    "DEFAULT_RETURNS",
    "DEFAULT_YEARS",
    "InvestmentConfig",
    "ScenarioInputs",
    "after_tax",
    "break_even_matrix",
    "solve_break_even",
]
