"""
Portfolio Optimization Module.

This module turns uploaded price data into a portfolio allocation using one
of three heuristics that approximate Modern Portfolio Theory without solving
the underlying quadratic program:

    - Minimum Variance: inverse-variance weighting. Cross-covariances are
      ignored, so this is not the true minimum variance portfolio.
    - Maximum Return: geometrically decaying allocations to the top-ranked
      assets by mean return, with leftover weight spread across the picks.
    - Efficient: return-to-risk weighting followed by a greedy search that
      nudges weights toward a target annual return.

Each heuristic is an ``AllocationStrategy`` registered under an
``OptimizationMode``. A new allocator (for example an exact solver) is added
by registering another strategy, without changing the existing ones.

Pipeline:
    prices -> simple returns -> (mean, covariance) -> annualize
           -> weights -> portfolio metrics
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

import numpy as np
import pandas as pd

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from config import (
    TRADING_DAYS_PER_YEAR,
    MIN_ASSETS,
    MIN_DATA_POINTS,
    VARIANCE_FLOOR,
    MAX_RETURN_TOP_N,
    MAX_RETURN_BASE_ALLOCATION,
    MAX_RETURN_DECAY,
    MIN_REMAINING_WEIGHT,
    EFFICIENT_MIN_RETURN,
    EFFICIENT_RETURN_TOLERANCE,
    EFFICIENT_MAX_ITERATIONS,
    EFFICIENT_MAX_STEP,
    EFFICIENT_STEP_SCALE,
    EFFICIENT_CONVERGENCE_RATIO,
    DEFAULT_TARGET_RETURN,
)
from portfolio_heuristics.errors import InsufficientSelectionError, UnknownModeError
from portfolio_heuristics.mathematics import QuantMetrics

logger = logging.getLogger(__name__)


class OptimizationMode(str, Enum):
    """Available allocation heuristics, valued by their wire names."""
    MIN_VARIANCE = "minVar"
    MAX_RETURN = "maxReturn"
    EFFICIENT = "efficient"

    @property
    def label(self) -> str:
        return _MODE_LABELS[self]

    @classmethod
    def parse(cls, value: Union[str, "OptimizationMode"]) -> "OptimizationMode":
        """
        Coerce a wire name or enum member into an OptimizationMode.

        Raises:
            UnknownModeError: If the value names no known mode.
        """
        try:
            return cls(value)
        except ValueError:
            known = ", ".join(m.value for m in cls)
            raise UnknownModeError(
                f"Unknown optimization mode {value!r}. Expected one of: {known}"
            )


_MODE_LABELS = {
    OptimizationMode.MIN_VARIANCE: "Minimum Variance",
    OptimizationMode.MAX_RETURN: "Maximum Return",
    OptimizationMode.EFFICIENT: "Efficient Frontier",
}


@dataclass(frozen=True, eq=False)
class OptimizationResult:
    """
    Container for portfolio optimization results.

    Created fresh for every run and never mutated. The arrays are read-only
    copies; a later run produces a new result instead.

    Attributes:
        assets: Asset names defining the order of every array below.
        mode: Heuristic that produced the weights.
        expected_return: Annualized expected portfolio return.
        volatility: Annualized portfolio volatility.
        sharpe_ratio: Return per unit of volatility.
        weights: Portfolio weights (non-negative, sum to 1).
        risk_contribution: Share of variance from each asset's own variance.
        diversification_ratio: Weighted asset volatility over portfolio volatility.
        mean_returns: Annualized mean return of each asset.
        description: Human-readable description of the method used.
        target_return: Requested annual return (efficient mode only).
    """
    assets: Tuple[str, ...]
    mode: OptimizationMode
    expected_return: float
    volatility: float
    sharpe_ratio: float
    weights: np.ndarray
    risk_contribution: np.ndarray
    diversification_ratio: float
    mean_returns: np.ndarray
    description: str
    target_return: Optional[float] = None

    def weights_dict(self) -> Dict[str, float]:
        """Map each asset to its weight."""
        return {asset: float(w) for asset, w in zip(self.assets, self.weights)}

    def to_frame(self) -> pd.DataFrame:
        """
        Tabulate the allocation, one row per asset.

        Returns:
            DataFrame indexed by asset with Weight, Annual Return and
            Risk Contribution columns.
        """
        return pd.DataFrame(
            {
                "Weight": self.weights,
                "Annual Return": self.mean_returns,
                "Risk Contribution": self.risk_contribution,
            },
            index=pd.Index(self.assets, name="Asset")
        )


def normalize_weights(weights: Sequence[float]) -> np.ndarray:
    """
    Clamp weights to be non-negative and rescale them to sum to 1.

    If the clamped total is not positive (or not finite), every asset gets
    an equal weight of ``1/n`` instead.

    Args:
        weights: Raw weights from an allocation heuristic.

    Returns:
        Normalized weight array.
    """
    weights = np.maximum(np.asarray(weights, dtype=float), 0.0)
    total = weights.sum()
    if not np.isfinite(total) or total <= 0:
        n_assets = len(weights)
        logger.warning("Weights collapsed to zero. Using equal weights.")
        return np.full(n_assets, 1.0 / n_assets)
    return weights / total


class AllocationStrategy(ABC):
    """
    Base class for allocation heuristics.

    Subclasses receive annualized statistics and return raw weights;
    ``normalize_weights`` is applied afterwards by the optimizer.
    """

    mode: OptimizationMode

    @abstractmethod
    def allocate(
        self,
        mean_returns: np.ndarray,
        cov_matrix: np.ndarray,
        target_return: float
    ) -> np.ndarray:
        """Compute raw weights from annualized means and covariance."""

    @abstractmethod
    def describe(self, target_return: float) -> str:
        """Describe the method for display alongside the result."""


_STRATEGIES: Dict[OptimizationMode, Type[AllocationStrategy]] = {}


def register_strategy(
    mode: OptimizationMode
) -> Callable[[Type[AllocationStrategy]], Type[AllocationStrategy]]:
    """Class decorator registering a strategy as the allocator for ``mode``."""
    def decorator(cls: Type[AllocationStrategy]) -> Type[AllocationStrategy]:
        cls.mode = mode
        _STRATEGIES[mode] = cls
        return cls
    return decorator


def get_strategy(mode: Union[str, OptimizationMode]) -> AllocationStrategy:
    """
    Instantiate the strategy registered for a mode.

    Raises:
        UnknownModeError: If no strategy handles the mode.
    """
    mode = OptimizationMode.parse(mode)
    if mode not in _STRATEGIES:
        raise UnknownModeError(f"No allocation strategy registered for {mode.value!r}")
    return _STRATEGIES[mode]()


@register_strategy(OptimizationMode.MIN_VARIANCE)
class MinVarianceStrategy(AllocationStrategy):
    """
    Weight each asset by the inverse of its own variance.

    Formula: w_i ∝ 1 / max(Σ_ii, floor)
    """

    def allocate(
        self,
        mean_returns: np.ndarray,
        cov_matrix: np.ndarray,
        target_return: float
    ) -> np.ndarray:
        variances = np.maximum(np.diag(cov_matrix), VARIANCE_FLOOR)
        inv_variances = 1.0 / variances
        return inv_variances / inv_variances.sum()

    def describe(self, target_return: float) -> str:
        return "Minimum variance portfolio using inverse variance weighting"


@register_strategy(OptimizationMode.MAX_RETURN)
class MaxReturnStrategy(AllocationStrategy):
    """
    Concentrate weight in the highest-return assets with geometric decay.

    The best asset gets 50%, and each following rank 0.7 times the previous
    allocation, capped by what is left. Leftover weight above 1% is spread
    equally over the assets already holding weight.
    """

    def allocate(
        self,
        mean_returns: np.ndarray,
        cov_matrix: np.ndarray,
        target_return: float
    ) -> np.ndarray:
        n_assets = len(mean_returns)
        ranked = np.argsort(-np.asarray(mean_returns), kind="stable")
        weights = np.zeros(n_assets)

        remaining = 1.0
        for rank, idx in enumerate(ranked[:MAX_RETURN_TOP_N]):
            if remaining <= MIN_REMAINING_WEIGHT:
                break
            allocation = min(MAX_RETURN_BASE_ALLOCATION * MAX_RETURN_DECAY ** rank, remaining)
            weights[idx] = allocation
            remaining -= allocation

        if remaining > MIN_REMAINING_WEIGHT:
            held = weights > 0
            weights[held] += remaining / held.sum()

        return weights

    def describe(self, target_return: float) -> str:
        return "Maximum return portfolio with diversification constraints"


@register_strategy(OptimizationMode.EFFICIENT)
class EfficientTargetStrategy(AllocationStrategy):
    """
    Start from return-to-risk weights and walk toward a target return.

    Initial weights are proportional to ``max(μ_i, 1%) / σ_i``. When the
    resulting portfolio misses the target by more than 0.1%, each round adds
    up to 2% weight to every asset whose return lies on the target's side of
    the starting portfolio return, then renormalizes. The search stops after
    50 rounds, when no asset can help, or once the remaining gap is below
    90% of the starting gap. The target is not guaranteed to be reached.
    """

    def allocate(
        self,
        mean_returns: np.ndarray,
        cov_matrix: np.ndarray,
        target_return: float
    ) -> np.ndarray:
        mean_returns = np.asarray(mean_returns, dtype=float)
        variances = np.maximum(np.diag(cov_matrix), VARIANCE_FLOOR)
        ratios = np.maximum(mean_returns, EFFICIENT_MIN_RETURN) / np.sqrt(variances)

        positive = np.maximum(ratios, 0.0)
        total_ratio = positive.sum()
        if not np.isfinite(total_ratio) or total_ratio <= 0:
            logger.warning("No positive return-to-risk ratios. Starting from equal weights.")
            weights = np.full(len(mean_returns), 1.0 / len(mean_returns))
        else:
            weights = positive / total_ratio

        current_return = QuantMetrics.portfolio_return(weights, mean_returns)
        return_gap = target_return - current_return

        if abs(return_gap) <= EFFICIENT_RETURN_TOLERANCE:
            return weights

        return_diff = mean_returns - current_return
        helpful = return_diff > 0 if return_gap > 0 else return_diff < 0
        step = np.minimum(
            EFFICIENT_MAX_STEP,
            abs(return_gap) * EFFICIENT_STEP_SCALE * np.abs(return_diff) / abs(return_gap)
        )
        increase = np.where(helpful, step, 0.0)

        for iteration in range(EFFICIENT_MAX_ITERATIONS):
            if increase.sum() <= 0:
                break

            adjusted = weights + increase
            weights = adjusted / adjusted.sum()

            achieved = QuantMetrics.portfolio_return(weights, mean_returns)
            logger.debug(
                f"Round {iteration + 1}: return {achieved:.4f} (target {target_return:.4f})"
            )
            if abs(target_return - achieved) < abs(return_gap) * EFFICIENT_CONVERGENCE_RATIO:
                break

        return weights

    def describe(self, target_return: float) -> str:
        return f"Efficient frontier optimization targeting {target_return * 100:.1f}% return"


class PortfolioOptimizer:
    """
    Runs the heuristic allocation pipeline for a selection of assets.

    Statistics are computed once on construction. Validation happens there
    too, so an optimizer that exists is always able to produce a result.

    Attributes:
        assets: Selected asset names, defining vector and matrix order.
        returns: Simple return series per selected asset.
        mean_returns: Annualized mean returns.
        cov_matrix: Annualized covariance matrix.

    Example:
        >>> optimizer = PortfolioOptimizer(table.prices, ["AAPL", "MSFT"])
        >>> result = optimizer.optimize("efficient", target_return=0.12)
        >>> print(f"Expected return: {result.expected_return:.2%}")
    """

    def __init__(
        self,
        prices: Mapping[str, Sequence[float]],
        assets: Sequence[str],
        trading_days: int = TRADING_DAYS_PER_YEAR,
        min_assets: int = MIN_ASSETS,
        min_data_points: int = MIN_DATA_POINTS
    ) -> None:
        """
        Initialize the PortfolioOptimizer.

        Args:
            prices: Mapping of asset name to price series.
            assets: Selected assets, in display order. Duplicates are ignored.
            trading_days: Periods per year used for annualization.
            min_assets: Minimum number of selected assets.
            min_data_points: Minimum return observations per selected asset.

        Raises:
            InsufficientSelectionError: If too few assets are selected, an
                asset has no price data, or any asset has too few returns.
        """
        self.assets: List[str] = list(dict.fromkeys(assets))

        if len(self.assets) < min_assets:
            raise InsufficientSelectionError(
                f"Please select at least {min_assets} assets for optimization"
            )

        missing = [a for a in self.assets if a not in prices]
        if missing:
            raise InsufficientSelectionError(f"No price data for selected assets: {missing}")

        self.returns: List[np.ndarray] = [
            QuantMetrics.simple_returns(prices[asset]) for asset in self.assets
        ]
        min_points = min(r.size for r in self.returns)
        if min_points < min_data_points:
            raise InsufficientSelectionError(
                "Insufficient data points for reliable optimization "
                f"({min_points} returns, need {min_data_points})"
            )

        # Pre-compute annualized statistics for allocation
        period_means = QuantMetrics.mean_returns(self.returns)
        period_cov = QuantMetrics.calculate_covariance_matrix(self.returns, period_means)
        self.mean_returns: np.ndarray = QuantMetrics.annualize(period_means, trading_days)
        self.cov_matrix: np.ndarray = QuantMetrics.annualize(period_cov, trading_days)

    def optimize(
        self,
        mode: Union[str, OptimizationMode],
        target_return: float = DEFAULT_TARGET_RETURN
    ) -> OptimizationResult:
        """
        Allocate weights with the chosen heuristic and evaluate them.

        Args:
            mode: Optimization mode (enum member or wire name).
            target_return: Annual return target, used by the efficient mode.

        Returns:
            OptimizationResult with weights and portfolio metrics.

        Raises:
            UnknownModeError: If the mode is not registered.
        """
        strategy = get_strategy(mode)
        raw_weights = strategy.allocate(self.mean_returns, self.cov_matrix, target_return)
        weights = normalize_weights(raw_weights)

        result = self._create_result(
            weights,
            mode=strategy.mode,
            description=strategy.describe(target_return),
            target_return=target_return if strategy.mode is OptimizationMode.EFFICIENT else None
        )

        logger.info(
            f"{strategy.mode.label} optimization over {len(self.assets)} assets: "
            f"return {result.expected_return:.2%}, volatility {result.volatility:.2%}"
        )
        return result

    def optimize_min_variance(self) -> OptimizationResult:
        """Run the inverse-variance heuristic."""
        return self.optimize(OptimizationMode.MIN_VARIANCE)

    def optimize_max_return(self) -> OptimizationResult:
        """Run the ranked geometric-decay heuristic."""
        return self.optimize(OptimizationMode.MAX_RETURN)

    def optimize_target_return(self, target_return: float) -> OptimizationResult:
        """Run the efficient heuristic toward ``target_return``."""
        return self.optimize(OptimizationMode.EFFICIENT, target_return)

    def _create_result(
        self,
        weights: np.ndarray,
        mode: OptimizationMode,
        description: str,
        target_return: Optional[float] = None
    ) -> OptimizationResult:
        """
        Create an OptimizationResult from a normalized weight array.

        Args:
            weights: Normalized weights.
            mode: Mode that produced them.
            description: Method description.
            target_return: Requested return, if any.

        Returns:
            OptimizationResult with all portfolio metrics.
        """
        expected_return = QuantMetrics.portfolio_return(weights, self.mean_returns)
        volatility = QuantMetrics.portfolio_volatility(weights, self.cov_matrix)

        return OptimizationResult(
            assets=tuple(self.assets),
            mode=mode,
            expected_return=expected_return,
            volatility=volatility,
            sharpe_ratio=QuantMetrics.sharpe_ratio(expected_return, volatility),
            weights=_read_only(weights),
            risk_contribution=_read_only(
                QuantMetrics.risk_contribution(weights, self.cov_matrix)
            ),
            diversification_ratio=QuantMetrics.diversification_ratio(weights, self.cov_matrix),
            mean_returns=_read_only(self.mean_returns),
            description=description,
            target_return=target_return
        )


def _read_only(values: np.ndarray) -> np.ndarray:
    """Return a copy of ``values`` that rejects in-place writes."""
    frozen = np.array(values, dtype=float)
    frozen.setflags(write=False)
    return frozen
