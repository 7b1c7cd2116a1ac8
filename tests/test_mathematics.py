"""
Unit Tests for the QuantMetrics Module.

This module contains pytest tests to verify the mathematical correctness
of return, statistics and portfolio calculations. Tests use simple, known
inputs to validate formulas against hand-calculated expected values.

Run with: pytest tests/test_mathematics.py -v
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from portfolio_heuristics.mathematics import QuantMetrics


class TestSimpleReturns:
    """Tests for price-to-return conversion."""

    def test_all_positive_prices(self):
        """N positive prices give exactly N-1 simple returns."""
        prices = [100.0, 110.0, 121.0, 108.9]

        result = QuantMetrics.simple_returns(prices)

        assert len(result) == len(prices) - 1
        expected = [(prices[i] - prices[i - 1]) / prices[i - 1] for i in range(1, len(prices))]
        np.testing.assert_allclose(result, expected)

    def test_zero_price_pairs_skipped(self):
        """Pairs touching a zero price are skipped, not zero-filled."""
        result = QuantMetrics.simple_returns([100.0, 0.0, 50.0, 55.0])

        # Only 50 -> 55 survives
        np.testing.assert_allclose(result, [0.1])

    def test_negative_price_pairs_skipped(self):
        result = QuantMetrics.simple_returns([10.0, -5.0, 10.0, 12.0])

        np.testing.assert_allclose(result, [0.2])

    def test_short_series(self):
        """Fewer than two prices give no returns and no error."""
        assert QuantMetrics.simple_returns([100.0]).size == 0
        assert QuantMetrics.simple_returns([]).size == 0


class TestMeanReturns:
    """Tests for per-asset mean return estimation."""

    def test_arithmetic_mean(self):
        result = QuantMetrics.mean_returns([[0.01, 0.03], [0.02, 0.04, 0.06]])

        np.testing.assert_allclose(result, [0.02, 0.04])

    def test_non_finite_values_ignored(self):
        """NaN and infinite returns are filtered before averaging."""
        result = QuantMetrics.mean_returns([[np.nan, 0.02, np.inf, 0.04]])

        np.testing.assert_allclose(result, [0.03])

    def test_empty_series_has_zero_mean(self):
        result = QuantMetrics.mean_returns([[], [np.nan]])

        np.testing.assert_array_equal(result, [0.0, 0.0])


class TestCovarianceMatrix:
    """Tests for covariance matrix calculation."""

    def test_matches_sample_covariance_for_equal_lengths(self):
        """Equal-length series reduce to the usual sample covariance."""
        rng = np.random.default_rng(7)
        returns = [rng.normal(0.001, 0.02, 50) for _ in range(3)]

        result = QuantMetrics.calculate_covariance_matrix(returns)

        np.testing.assert_allclose(result, np.cov(np.vstack(returns), ddof=1))

    def test_unequal_lengths_use_prefix_and_global_means(self):
        """Overlap is the shorter prefix, deviations use full-series means."""
        a = [0.01, 0.02, 0.03, 0.04]  # mean 0.025
        b = [0.02, 0.00]              # mean 0.01

        result = QuantMetrics.calculate_covariance_matrix([a, b])

        # ((0.01-0.025)(0.02-0.01) + (0.02-0.025)(0.00-0.01)) / (2-1)
        assert result[0, 1] == pytest.approx(-0.0001)
        assert result[1, 0] == pytest.approx(-0.0001)

    def test_insufficient_overlap_fallback(self):
        """One observation or less falls back to 0.01 diagonal, 0 off-diagonal."""
        a = [0.01]
        b = [0.01, 0.03, 0.02, 0.04]

        result = QuantMetrics.calculate_covariance_matrix([a, b])

        assert result[0, 0] == 0.01
        assert result[0, 1] == 0.0
        assert result[1, 0] == 0.0
        assert result[1, 1] == pytest.approx(np.var(b, ddof=1))

    def test_empty_series_fallback(self):
        result = QuantMetrics.calculate_covariance_matrix([[], []])

        np.testing.assert_array_equal(result, [[0.01, 0.0], [0.0, 0.01]])

    def test_symmetric_matrix(self):
        """Covariance matrix should be symmetric, even for ragged series."""
        rng = np.random.default_rng(42)
        returns = [rng.normal(0, 0.01, n) for n in (40, 25, 33)]

        result = QuantMetrics.calculate_covariance_matrix(returns)

        np.testing.assert_array_equal(result, result.T)


class TestAnnualize:
    """Tests for simple annualization."""

    def test_scales_by_trading_days(self):
        result = QuantMetrics.annualize(np.array([0.001, 0.002]))

        np.testing.assert_allclose(result, [0.252, 0.504])

    def test_custom_periods(self):
        result = QuantMetrics.annualize(np.array([[0.01]]), trading_days=12)

        np.testing.assert_allclose(result, [[0.12]])


class TestPortfolioReturn:
    """Tests for portfolio return calculation."""

    def test_equal_weights_equal_returns(self):
        """Equal weights with equal returns should give that return."""
        weights = np.array([0.5, 0.5])
        mean_returns = np.array([0.12, 0.12])

        result = QuantMetrics.portfolio_return(weights, mean_returns)

        assert abs(result - 0.12) < 1e-10

    def test_weighted_average(self):
        """Verify weighted average calculation."""
        weights = np.array([0.6, 0.4])
        mean_returns = np.array([0.10, 0.20])

        result = QuantMetrics.portfolio_return(weights, mean_returns)

        # Expected: 0.6 * 0.10 + 0.4 * 0.20 = 0.14
        assert abs(result - 0.14) < 1e-10


class TestPortfolioVolatility:
    """Tests for portfolio variance and volatility calculation."""

    def test_single_asset_volatility(self):
        """100% in single asset should give that asset's volatility."""
        cov_matrix = np.array([
            [0.04, 0.01],
            [0.01, 0.01]
        ])

        result = QuantMetrics.portfolio_volatility(np.array([1.0, 0.0]), cov_matrix)

        assert abs(result - 0.2) < 1e-10

    def test_diversification_reduces_risk(self):
        """Diversification should reduce portfolio volatility."""
        cov_matrix = np.array([
            [0.04, 0.0],
            [0.0, 0.04]
        ])

        single_vol = QuantMetrics.portfolio_volatility(np.array([1.0, 0.0]), cov_matrix)
        diversified_vol = QuantMetrics.portfolio_volatility(np.array([0.5, 0.5]), cov_matrix)

        assert diversified_vol < single_vol

    def test_variance_floored_at_zero(self):
        """Rounding-level negative variance is reported as zero."""
        cov_matrix = np.array([
            [1e-18, -2e-18],
            [-2e-18, 1e-18]
        ])

        result = QuantMetrics.portfolio_variance(np.array([0.5, 0.5]), cov_matrix)

        assert result == 0.0


class TestSharpeRatio:
    """Tests for Sharpe ratio calculation."""

    def test_basic_sharpe(self):
        """Risk-free rate defaults to zero."""
        result = QuantMetrics.sharpe_ratio(0.12, 0.15)

        assert abs(result - 0.8) < 1e-10

    def test_with_risk_free_rate(self):
        result = QuantMetrics.sharpe_ratio(0.12, 0.15, risk_free_rate=0.03)

        assert abs(result - 0.6) < 1e-10

    def test_zero_volatility_returns_zero(self):
        """Zero volatility should return zero to avoid division error."""
        assert QuantMetrics.sharpe_ratio(0.10, 0.0) == 0.0


class TestRiskContribution:
    """Tests for per-asset risk contribution."""

    def test_known_contributions(self):
        weights = np.array([0.5, 0.5])
        cov_matrix = np.array([
            [0.04, 0.0],
            [0.0, 0.01]
        ])

        result = QuantMetrics.risk_contribution(weights, cov_matrix)

        # Variance = 0.25 * 0.04 + 0.25 * 0.01 = 0.0125
        np.testing.assert_allclose(result, [0.01 / 0.0125, 0.0025 / 0.0125])

    def test_uses_own_variance_only(self):
        """Correlation changes the denominator but not the numerator."""
        weights = np.array([0.5, 0.5])
        cov_matrix = np.array([
            [0.04, 0.02],
            [0.02, 0.04]
        ])

        result = QuantMetrics.risk_contribution(weights, cov_matrix)

        # Variance = 0.25 * (0.04 + 0.04 + 2 * 0.02) = 0.03
        np.testing.assert_allclose(result, [0.01 / 0.03, 0.01 / 0.03])

    def test_zero_variance_gives_zeros(self):
        """A riskless portfolio has no risk to attribute."""
        result = QuantMetrics.risk_contribution(np.array([0.5, 0.5]), np.zeros((2, 2)))

        np.testing.assert_array_equal(result, [0.0, 0.0])
        assert np.all(np.isfinite(result))


class TestDiversificationRatio:
    """Tests for the diversification ratio."""

    def test_single_asset_dominant(self):
        """A fully concentrated portfolio has ratio 1."""
        cov_matrix = np.array([
            [0.04, 0.01],
            [0.01, 0.09]
        ])

        result = QuantMetrics.diversification_ratio(np.array([1.0, 0.0]), cov_matrix)

        assert result == pytest.approx(1.0)

    def test_uncorrelated_equal_weights(self):
        """Equal weights on uncorrelated assets give a ratio above 1."""
        cov_matrix = np.eye(2) * 0.04

        result = QuantMetrics.diversification_ratio(np.array([0.5, 0.5]), cov_matrix)

        # 0.2 / sqrt(0.02) = sqrt(2)
        assert result > 1.0
        assert result == pytest.approx(np.sqrt(2))

    def test_zero_volatility_defaults_to_one(self):
        result = QuantMetrics.diversification_ratio(np.array([0.5, 0.5]), np.zeros((2, 2)))

        assert result == 1.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
