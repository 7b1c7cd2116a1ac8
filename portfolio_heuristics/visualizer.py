"""
Dashboard Visualization Module.

This module provides interactive Plotly charts for the heuristic portfolio
optimizer dashboard.

Charts Included:
    - Asset allocation donut chart
    - Horizontal bar charts for weights and risk contributions
    - Asset risk/return map with the optimized portfolio
    - Rebased price history of the selected assets
"""

from typing import Dict, List

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

# Professional color palette
COLORS = {
    "primary": "#1f77b4",      # Blue
    "secondary": "#ff7f0e",    # Orange
    "success": "#2ca02c",      # Green
    "danger": "#d62728",       # Red
    "gray": "#7f7f7f",         # Gray
}


class DashboardCharts:
    """
    Creates interactive Plotly charts for portfolio visualization.

    All methods are static and return Plotly figure objects that can be
    displayed directly in Streamlit using st.plotly_chart().

    Example:
        >>> fig = DashboardCharts.plot_allocation_donut(result.weights_dict())
        >>> st.plotly_chart(fig, use_container_width=True)
    """

    @staticmethod
    def plot_allocation_donut(
        weights: Dict[str, float],
        height: int = 450,
        min_weight: float = 0.001
    ) -> go.Figure:
        """
        Create a donut chart showing portfolio allocation.

        Args:
            weights: Dictionary of {asset: weight}.
            height: Chart height in pixels.
            min_weight: Weights at or below this are left out.

        Returns:
            Plotly Figure object.
        """
        sorted_pairs = sorted(
            ((k, v) for k, v in weights.items() if v > min_weight),
            key=lambda x: x[1],
            reverse=True
        )
        labels, values = zip(*sorted_pairs) if sorted_pairs else ([], [])
        palette = px.colors.qualitative.Set2

        fig = go.Figure(
            data=[
                go.Pie(
                    labels=list(labels),
                    values=list(values),
                    hole=0.4,
                    textinfo="label+percent",
                    textposition="outside",
                    marker=dict(
                        colors=[palette[i % len(palette)] for i in range(len(labels))],
                        line=dict(color="white", width=2)
                    ),
                    hovertemplate="<b>%{label}</b><br>"
                                 "Weight: %{value:.2%}<br>"
                                 "<extra></extra>"
                )
            ]
        )

        fig.update_layout(
            title=dict(
                text="Portfolio Allocation",
                font=dict(size=20)
            ),
            height=height,
            showlegend=True,
            annotations=[
                dict(
                    text="Weights",
                    x=0.5,
                    y=0.5,
                    font_size=16,
                    showarrow=False
                )
            ]
        )

        return fig

    @staticmethod
    def plot_weights_bar(
        values: Dict[str, float],
        height: int = 400,
        title: str = "Portfolio Weights",
        axis_title: str = "Weight (%)",
        colorscale: str = "Blues"
    ) -> go.Figure:
        """
        Create a horizontal bar chart of per-asset percentages.

        Used for both weights and risk contributions.

        Args:
            values: Dictionary of {asset: fraction}.
            height: Chart height in pixels.
            title: Chart title.
            axis_title: Label of the value axis.
            colorscale: Plotly colorscale name for bar colors.

        Returns:
            Plotly Figure object.
        """
        sorted_items = sorted(values.items(), key=lambda x: x[1], reverse=True)
        assets = [item[0] for item in sorted_items]
        percentages = [item[1] * 100 for item in sorted_items]
        max_value = max(percentages) if percentages else 0

        fig = go.Figure(
            data=[
                go.Bar(
                    x=percentages,
                    y=assets,
                    orientation="h",
                    marker=dict(
                        color=percentages,
                        colorscale=colorscale,
                        line=dict(color="white", width=1)
                    ),
                    text=[f"{p:.1f}%" for p in percentages],
                    textposition="outside",
                    hovertemplate="<b>%{y}</b><br>%{x:.2f}%<extra></extra>"
                )
            ]
        )

        fig.update_layout(
            title=dict(
                text=title,
                font=dict(size=20)
            ),
            xaxis=dict(
                title=axis_title,
                range=[0, max_value * 1.15] if max_value > 0 else None
            ),
            yaxis=dict(
                title="",
                autorange="reversed"
            ),
            height=height,
            template="plotly_white"
        )

        return fig

    @staticmethod
    def plot_risk_return(
        asset_stats: pd.DataFrame,
        portfolio_return: float,
        portfolio_volatility: float,
        height: int = 500
    ) -> go.Figure:
        """
        Plot each asset's annual volatility against its annual return.

        The optimized portfolio is drawn as a star so the diversification
        effect is visible next to the individual assets.

        Args:
            asset_stats: DataFrame indexed by asset with "Annual Return"
                and "Annual Volatility" columns.
            portfolio_return: Expected annual portfolio return.
            portfolio_volatility: Annual portfolio volatility.
            height: Chart height in pixels.

        Returns:
            Plotly Figure object.
        """
        fig = go.Figure()

        fig.add_trace(
            go.Scatter(
                x=asset_stats["Annual Volatility"] * 100,
                y=asset_stats["Annual Return"] * 100,
                mode="markers+text",
                text=list(asset_stats.index),
                textposition="top center",
                marker=dict(size=10, color=COLORS["primary"], opacity=0.8),
                hovertemplate="<b>%{text}</b><br>"
                             "Return: %{y:.2f}%<br>"
                             "Volatility: %{x:.2f}%<extra></extra>",
                name="Assets"
            )
        )

        fig.add_trace(
            go.Scatter(
                x=[portfolio_volatility * 100],
                y=[portfolio_return * 100],
                mode="markers",
                marker=dict(
                    size=20,
                    color=COLORS["success"],
                    symbol="star",
                    line=dict(color="white", width=2)
                ),
                name="Optimized Portfolio",
                hovertext=f"Optimized Portfolio<br>"
                         f"Return: {portfolio_return*100:.2f}%<br>"
                         f"Volatility: {portfolio_volatility*100:.2f}%",
                hoverinfo="text"
            )
        )

        fig.update_layout(
            title=dict(
                text="Asset Risk vs. Return",
                font=dict(size=20)
            ),
            xaxis=dict(
                title="Annual Volatility (%)",
                tickformat=".1f",
                gridcolor="lightgray"
            ),
            yaxis=dict(
                title="Annual Return (%)",
                tickformat=".1f",
                gridcolor="lightgray"
            ),
            height=height,
            template="plotly_white",
            hovermode="closest"
        )

        return fig

    @staticmethod
    def plot_price_history(
        prices: Dict[str, np.ndarray],
        assets: List[str],
        height: int = 450
    ) -> go.Figure:
        """
        Plot selected price series rebased to 100 at their first observation.

        Series are indexed by observation number because dates are not kept
        after parsing.

        Args:
            prices: Mapping of asset to valid prices.
            assets: Assets to draw, in legend order.
            height: Chart height in pixels.

        Returns:
            Plotly Figure object.
        """
        fig = go.Figure()

        for asset in assets:
            series = np.asarray(prices[asset], dtype=float)
            if series.size == 0 or series[0] <= 0:
                continue
            fig.add_trace(
                go.Scatter(
                    x=np.arange(series.size),
                    y=series / series[0] * 100,
                    mode="lines",
                    name=asset,
                    hovertemplate=f"{asset}<br>Period: %{{x}}<br>Value: %{{y:.1f}}<extra></extra>"
                )
            )

        fig.add_hline(y=100, line_dash="dot", line_color=COLORS["gray"], line_width=1)

        fig.update_layout(
            title=dict(
                text="Price History (Rebased to 100)",
                font=dict(size=20)
            ),
            xaxis=dict(title="Period", gridcolor="lightgray"),
            yaxis=dict(title="Rebased Price", gridcolor="lightgray"),
            height=height,
            template="plotly_white",
            hovermode="x unified"
        )

        return fig
