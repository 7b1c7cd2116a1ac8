"""
Quantitative Metrics Module for Heuristic Portfolio Optimization.

This module provides the numeric core shared by every allocation heuristic:
converting prices to simple returns, estimating mean returns and a sample
covariance matrix, and evaluating a weight vector into portfolio-level risk
and return statistics.

Key Formulas:
    - Simple Return: r_t = (P_t - P_{t-1}) / P_{t-1}
    - Portfolio Return: R_p = Σ(w_i * μ_i)
    - Portfolio Variance: σ²_p = Σ_i Σ_j w_i * w_j * Σ_ij
    - Sharpe Ratio: SR = (R_p - R_f) / σ_p
    - Risk Contribution: RC_i = w_i² * Σ_ii / σ²_p
    - Diversification Ratio: DR = Σ(w_i * √Σ_ii) / σ_p

All statistics fed into the portfolio formulas are expected to be annualized
already (see ``QuantMetrics.annualize``).
"""

from typing import List, Optional, Sequence

import numpy as np

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from config import TRADING_DAYS_PER_YEAR, RISK_FREE_RATE, FALLBACK_VARIANCE


class QuantMetrics:
    """
    A collection of static methods for calculating quantitative financial metrics.

    Every method is a pure function of its arguments, so the same inputs
    always produce the same outputs and nothing is cached between runs.
    """

    @staticmethod
    def simple_returns(prices: Sequence[float]) -> np.ndarray:
        """
        Convert a price series into simple period returns.

        Only consecutive pairs where both prices are strictly positive
        produce a return. Pairs touching a non-positive price are skipped
        rather than zero-filled, so the output can be shorter than
        ``len(prices) - 1``.

        Formula: r_t = (P_t - P_{t-1}) / P_{t-1}

        Args:
            prices: Ordered sequence of prices for one asset.

        Returns:
            Array of simple returns (may be empty for short series).

        Example:
            >>> QuantMetrics.simple_returns([100.0, 110.0, 99.0])
            array([ 0.1, -0.1])
        """
        prices = np.asarray(prices, dtype=float)
        if prices.size < 2:
            return np.array([], dtype=float)

        previous = prices[:-1]
        current = prices[1:]
        valid = (previous > 0) & (current > 0)

        return (current[valid] - previous[valid]) / previous[valid]

    @staticmethod
    def finite_values(returns: Sequence[float]) -> np.ndarray:
        """Drop NaN and infinite entries from a return series."""
        returns = np.asarray(returns, dtype=float)
        return returns[np.isfinite(returns)]

    @staticmethod
    def mean_returns(returns: List[Sequence[float]]) -> np.ndarray:
        """
        Calculate the arithmetic mean return of each asset.

        Non-finite values are ignored. An asset with no finite returns
        gets a mean of zero.

        Args:
            returns: One return series per asset, in asset order.

        Returns:
            Array of mean period returns.
        """
        means = []
        for asset_returns in returns:
            valid = QuantMetrics.finite_values(asset_returns)
            means.append(valid.mean() if valid.size > 0 else 0.0)
        return np.array(means, dtype=float)

    @staticmethod
    def calculate_covariance_matrix(
        returns: List[Sequence[float]],
        mean_returns: Optional[np.ndarray] = None,
        fallback_variance: float = FALLBACK_VARIANCE
    ) -> np.ndarray:
        """
        Calculate the sample covariance matrix of a set of return series.

        Series may differ in length. Each pair is compared over its leading
        overlap of ``m = min(len_i, len_j)`` observations, but deviations are
        taken from each asset's mean over its *full* series rather than a
        mean recomputed on the overlap.

        Formula: Σ_ij = Σ_{k<m} (r_ik - μ_i)(r_jk - μ_j) / (m - 1)

        When the overlap has one observation or less the entry falls back to
        ``fallback_variance`` on the diagonal and zero elsewhere, which keeps
        the matrix usable instead of singular.

        Args:
            returns: One return series per asset, in asset order.
            mean_returns: Precomputed means; computed when omitted.
            fallback_variance: Diagonal value for insufficient overlap.

        Returns:
            Symmetric covariance matrix as numpy array (n x n).
        """
        filtered = [QuantMetrics.finite_values(r) for r in returns]
        if mean_returns is None:
            mean_returns = QuantMetrics.mean_returns(filtered)

        n_assets = len(filtered)
        cov_matrix = np.zeros((n_assets, n_assets), dtype=float)

        for i in range(n_assets):
            for j in range(i, n_assets):
                overlap = min(filtered[i].size, filtered[j].size)
                if overlap > 1:
                    dev_i = filtered[i][:overlap] - mean_returns[i]
                    dev_j = filtered[j][:overlap] - mean_returns[j]
                    value = float(np.dot(dev_i, dev_j)) / (overlap - 1)
                else:
                    value = fallback_variance if i == j else 0.0
                cov_matrix[i, j] = value
                cov_matrix[j, i] = value

        return cov_matrix

    @staticmethod
    def annualize(
        values: np.ndarray,
        trading_days: int = TRADING_DAYS_PER_YEAR
    ) -> np.ndarray:
        """
        Scale per-period means or covariances to an annual basis.

        This is simple scaling (not compounding), applied identically to
        mean returns and covariance entries.
        """
        return np.asarray(values, dtype=float) * trading_days

    @staticmethod
    def portfolio_return(
        weights: np.ndarray,
        mean_returns: np.ndarray
    ) -> float:
        """
        Calculate the expected portfolio return.

        Formula: R_p = Σ(w_i * μ_i)

        Args:
            weights: Array of portfolio weights (must sum to 1).
            mean_returns: Array of annualized mean returns for each asset.

        Returns:
            Expected annual portfolio return as a decimal (e.g., 0.12 = 12%).
        """
        return float(np.dot(weights, mean_returns))

    @staticmethod
    def portfolio_variance(
        weights: np.ndarray,
        cov_matrix: np.ndarray
    ) -> float:
        """
        Calculate the portfolio variance, floored at zero.

        Formula: σ²_p = w^T * Σ * w

        The floor guards against tiny negative values from rounding, which
        would otherwise make the square root undefined.
        """
        weights = np.asarray(weights, dtype=float)
        variance = float(np.dot(weights, np.dot(cov_matrix, weights)))
        return max(variance, 0.0)

    @staticmethod
    def portfolio_volatility(
        weights: np.ndarray,
        cov_matrix: np.ndarray
    ) -> float:
        """
        Calculate the portfolio volatility (standard deviation).

        Portfolio volatility accounts for the correlations between assets,
        which is why diversification can reduce overall portfolio risk.

        Formula: σ_p = √(w^T * Σ * w)

        Args:
            weights: Array of portfolio weights (must sum to 1).
            cov_matrix: Annualized covariance matrix (n x n).

        Returns:
            Annual portfolio volatility as a decimal (e.g., 0.15 = 15%).
        """
        return float(np.sqrt(QuantMetrics.portfolio_variance(weights, cov_matrix)))

    @staticmethod
    def sharpe_ratio(
        portfolio_return: float,
        portfolio_volatility: float,
        risk_free_rate: float = RISK_FREE_RATE
    ) -> float:
        """
        Calculate the Sharpe Ratio of a portfolio.

        Formula: SR = (R_p - R_f) / σ_p

        Args:
            portfolio_return: Annualized portfolio return (decimal).
            portfolio_volatility: Annualized portfolio volatility (decimal).
            risk_free_rate: Annualized risk-free rate (decimal, default: 0).

        Returns:
            Sharpe Ratio (dimensionless), or 0.0 if volatility is zero.
        """
        if portfolio_volatility <= 0:
            return 0.0
        return (portfolio_return - risk_free_rate) / portfolio_volatility

    @staticmethod
    def risk_contribution(
        weights: np.ndarray,
        cov_matrix: np.ndarray
    ) -> np.ndarray:
        """
        Calculate each asset's share of portfolio variance from its own variance.

        Formula: RC_i = w_i² * Σ_ii / σ²_p

        Only the diagonal of the covariance matrix enters the numerator, so
        the contributions do not sum to one when assets are correlated.

        Returns:
            Array of risk contributions. All zeros when the portfolio
            variance is zero.
        """
        weights = np.asarray(weights, dtype=float)
        variance = QuantMetrics.portfolio_variance(weights, cov_matrix)
        if variance <= 0:
            return np.zeros_like(weights)
        return weights ** 2 * np.diag(cov_matrix) / variance

    @staticmethod
    def diversification_ratio(
        weights: np.ndarray,
        cov_matrix: np.ndarray
    ) -> float:
        """
        Calculate the diversification ratio of a portfolio.

        The weighted average of individual asset volatilities divided by
        the portfolio volatility. Values above 1 indicate a benefit from
        imperfect correlation; a fully concentrated portfolio scores 1.

        Formula: DR = Σ(w_i * √Σ_ii) / σ_p

        Returns:
            Diversification ratio, or 1.0 if volatility is zero.
        """
        weights = np.asarray(weights, dtype=float)
        asset_vols = np.sqrt(np.clip(np.diag(cov_matrix), 0.0, None))
        weighted_avg_vol = float(np.dot(weights, asset_vols))
        portfolio_vol = QuantMetrics.portfolio_volatility(weights, cov_matrix)
        if portfolio_vol <= 0:
            return 1.0
        return weighted_avg_vol / portfolio_vol
