"""
Unit Tests for the DashboardCharts Module.

Figures are built but never rendered; the tests check the traces and data
handed to Plotly.

Run with: pytest tests/test_visualizer.py -v
"""

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from portfolio_heuristics.visualizer import DashboardCharts


class TestAllocationDonut:
    """Tests for the allocation donut chart."""

    def test_negligible_weights_hidden(self):
        fig = DashboardCharts.plot_allocation_donut({"A": 0.6, "B": 0.3995, "C": 0.0005})

        pie = fig.data[0]
        assert isinstance(pie, go.Pie)
        assert list(pie.labels) == ["A", "B"]

    def test_sorted_descending(self):
        fig = DashboardCharts.plot_allocation_donut({"A": 0.2, "B": 0.5, "C": 0.3})

        assert list(fig.data[0].labels) == ["B", "C", "A"]


class TestWeightsBar:
    """Tests for the horizontal bar chart."""

    def test_values_in_percent(self):
        fig = DashboardCharts.plot_weights_bar({"A": 0.25, "B": 0.75})

        bar = fig.data[0]
        assert list(bar.y) == ["B", "A"]
        np.testing.assert_allclose(bar.x, [75.0, 25.0])

    def test_custom_title(self):
        fig = DashboardCharts.plot_weights_bar(
            {"A": 0.8, "B": 0.2}, title="Risk Contribution", colorscale="Reds"
        )

        assert fig.layout.title.text == "Risk Contribution"

    def test_all_zero_values(self):
        fig = DashboardCharts.plot_weights_bar({"A": 0.0, "B": 0.0})

        assert len(fig.data[0].y) == 2


class TestRiskReturn:
    """Tests for the asset risk/return map."""

    def test_assets_and_portfolio_traces(self):
        stats = pd.DataFrame(
            {"Annual Return": [0.1, 0.2], "Annual Volatility": [0.15, 0.3]},
            index=pd.Index(["A", "B"], name="Asset")
        )

        fig = DashboardCharts.plot_risk_return(stats, 0.14, 0.12)

        assert len(fig.data) == 2
        np.testing.assert_allclose(fig.data[0].y, [10.0, 20.0])
        assert fig.data[1].x[0] == pytest.approx(12.0)


class TestPriceHistory:
    """Tests for the rebased price chart."""

    def test_rebased_to_100(self):
        prices = {"A": np.array([50.0, 55.0, 60.0]), "B": np.array([10.0, 9.0])}

        fig = DashboardCharts.plot_price_history(prices, ["A", "B"])

        np.testing.assert_allclose(fig.data[0].y, [100.0, 110.0, 120.0])
        np.testing.assert_allclose(fig.data[1].y, [100.0, 90.0])

    def test_unusable_series_skipped(self):
        prices = {"A": np.array([0.0, 5.0]), "B": np.array([10.0, 11.0])}

        fig = DashboardCharts.plot_price_history(prices, ["A", "B"])

        assert [trace.name for trace in fig.data] == ["B"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
