"""
After-tax outcome modelling across jurisdictions.

Core entry points:
    taxyield.core.setup_tax.compute_tax
    taxyield.regimes.parser.classify
    taxyield.core.breakeven.solve_break_even / break_even_matrix
"""
from __future__ import annotations

__version__ = "0.1.0"
