"""
Heuristic Portfolio Optimizer - Core Package

This package contains the modules behind the portfolio optimization
dashboard, based on simplified Modern Portfolio Theory (MPT) heuristics.

Modules:
    - data_loader: CSV price ingestion and validation
    - mathematics: Returns, statistics and portfolio metrics
    - optimizer: Allocation heuristics and the optimization pipeline
    - selection: Asset basket filtering for the dashboard
    - visualizer: Interactive chart generation
    - errors: Exception types shown to the user
"""

from portfolio_heuristics.data_loader import PriceDataLoader, PriceTable
from portfolio_heuristics.errors import (
    PortfolioError,
    DataValidationError,
    InsufficientSelectionError,
    UnknownModeError,
)
from portfolio_heuristics.mathematics import QuantMetrics
from portfolio_heuristics.optimizer import (
    OptimizationMode,
    OptimizationResult,
    PortfolioOptimizer,
)
from portfolio_heuristics.visualizer import DashboardCharts

__all__ = [
    "PriceDataLoader",
    "PriceTable",
    "PortfolioError",
    "DataValidationError",
    "InsufficientSelectionError",
    "UnknownModeError",
    "QuantMetrics",
    "OptimizationMode",
    "OptimizationResult",
    "PortfolioOptimizer",
    "DashboardCharts",
]

__version__ = "1.0.0"
