"""
Heuristic Portfolio Optimizer - Streamlit Application.

This is the main entry point for the interactive portfolio optimization dashboard.
It provides a user-friendly interface for:
    - Uploading historical asset prices as CSV
    - Picking assets through searchable baskets
    - Running one of three allocation heuristics
    - Inspecting weights, risk contributions and portfolio statistics

All mutable state (price table, selection, last result) lives in
st.session_state; the numeric core only receives plain arguments.

Run with: streamlit run app.py
"""

import logging
from typing import Dict

import pandas as pd
import streamlit as st

from config import (
    DEFAULT_OPTIMIZATION_MODE,
    DEFAULT_TARGET_RETURN,
    TARGET_RETURN_MIN,
    TARGET_RETURN_MAX,
    TARGET_RETURN_STEP,
    MIN_ASSETS,
    MIN_DATA_POINTS,
)
from portfolio_heuristics.data_loader import PriceDataLoader, PriceTable
from portfolio_heuristics.errors import PortfolioError
from portfolio_heuristics.optimizer import (
    OptimizationMode,
    OptimizationResult,
    PortfolioOptimizer,
)
from portfolio_heuristics.selection import (
    add_assets,
    filter_available,
    filter_selected,
    remove_asset,
)
from portfolio_heuristics.visualizer import DashboardCharts

logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title="Heuristic Portfolio Optimizer",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS for styling
st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: 700;
        color: #1f77b4;
        margin-bottom: 0;
    }
    .sub-header {
        font-size: 1.1rem;
        color: #666;
        margin-top: 0;
    }
</style>
""", unsafe_allow_html=True)


def initialize_session_state() -> None:
    """Initialize session state variables."""
    if "price_table" not in st.session_state:
        st.session_state.price_table = None
    if "selected_assets" not in st.session_state:
        st.session_state.selected_assets = []
    if "result" not in st.session_state:
        st.session_state.result = None
    if "error" not in st.session_state:
        st.session_state.error = None


def handle_upload() -> None:
    """
    Parse a newly uploaded file into the session's price table.

    A successful upload replaces the table and clears the selection and the
    previous result. A failed upload keeps everything as it was.
    """
    uploaded = st.session_state.price_file
    if uploaded is None:
        return

    try:
        table = PriceDataLoader().load_csv(uploaded, source_name=uploaded.name)
    except PortfolioError as e:
        st.session_state.error = str(e)
        return

    st.session_state.price_table = table
    st.session_state.selected_assets = []
    st.session_state.result = None
    st.session_state.error = None


def select_assets(assets) -> None:
    st.session_state.selected_assets = add_assets(st.session_state.selected_assets, assets)


def deselect_asset(asset: str) -> None:
    st.session_state.selected_assets = remove_asset(st.session_state.selected_assets, asset)


def deselect_all() -> None:
    st.session_state.selected_assets = []


def render_sidebar() -> Dict:
    """
    Render the sidebar with input controls.

    Returns:
        Dictionary of user inputs.
    """
    st.sidebar.markdown("## Configuration")

    st.sidebar.markdown("### Price Data")
    st.sidebar.file_uploader(
        "Upload CSV",
        type=["csv"],
        key="price_file",
        on_change=handle_upload,
        help="CSV format: Date, Asset1, Asset2, Asset3, ... (price data)"
    )
    st.sidebar.caption(
        f"Minimum {MIN_DATA_POINTS} data points per asset recommended "
        "for reliable optimization"
    )

    st.sidebar.markdown("### Optimization Parameters")

    modes = list(OptimizationMode)
    mode = st.sidebar.selectbox(
        "Optimization Type",
        options=modes,
        index=modes.index(OptimizationMode(DEFAULT_OPTIMIZATION_MODE)),
        format_func=lambda m: m.label
    )

    target_return = DEFAULT_TARGET_RETURN
    if mode is OptimizationMode.EFFICIENT:
        target_return = st.sidebar.slider(
            "Target Annual Return (%)",
            min_value=round(TARGET_RETURN_MIN * 100, 2),
            max_value=round(TARGET_RETURN_MAX * 100, 2),
            value=round(DEFAULT_TARGET_RETURN * 100, 2),
            step=round(TARGET_RETURN_STEP * 100, 2),
            format="%.1f%%",
            help="Return level the efficient heuristic steers toward"
        ) / 100

    num_selected = len(st.session_state.selected_assets)
    st.sidebar.markdown("---")
    run_clicked = st.sidebar.button(
        "Optimize Portfolio",
        type="primary",
        use_container_width=True,
        disabled=st.session_state.price_table is None or num_selected < MIN_ASSETS
    )
    if num_selected < MIN_ASSETS:
        st.sidebar.caption(f"Select at least {MIN_ASSETS} stocks to enable optimization")

    return {
        "mode": mode,
        "target_return": target_return,
        "run_optimization": run_clicked
    }


def render_header() -> None:
    """Render the main header."""
    st.markdown('<p class="main-header">Heuristic Portfolio Optimizer</p>', unsafe_allow_html=True)
    st.markdown(
        '<p class="sub-header">Minimum Variance | Maximum Return | Target Return Allocation</p>',
        unsafe_allow_html=True
    )
    st.markdown("---")


def render_asset_baskets(table: PriceTable) -> None:
    """Render the available and selected asset baskets with search boxes."""
    counts = table.point_counts()
    selected = st.session_state.selected_assets

    col1, col2 = st.columns(2)

    with col1:
        search_term = st.text_input(
            "Search available stocks",
            key="available_search",
            placeholder="Search available stocks..."
        )
        available = filter_available(table.assets, selected, search_term)
        st.markdown(f"#### Available Stocks ({len(available)})")
        st.button(
            "Add All",
            key="add_all",
            on_click=select_assets,
            args=(available,),
            disabled=not available
        )

        if not search_term.strip():
            st.caption(f"Type to search {len(available)} available stocks")
        else:
            for asset in available:
                name_col, button_col = st.columns([3, 1])
                name_col.markdown(f"**{asset}** · {counts[asset]} points")
                button_col.button(
                    "Add",
                    key=f"add_{asset}",
                    on_click=select_assets,
                    args=([asset],)
                )
            if not available:
                st.caption("No stocks match your search")

    with col2:
        selected_search = st.text_input(
            "Search selected stocks",
            key="selected_search",
            placeholder="Search selected stocks..."
        )
        shown = filter_selected(selected, selected_search)
        st.markdown(f"#### Selected Stocks ({len(shown)})")
        st.button(
            "Remove All",
            key="remove_all",
            on_click=deselect_all,
            disabled=not selected
        )

        for asset in shown:
            name_col, button_col = st.columns([3, 1])
            name_col.markdown(f"**{asset}** · {counts[asset]} points")
            button_col.button(
                "Remove",
                key=f"remove_{asset}",
                on_click=deselect_asset,
                args=(asset,)
            )
        if not shown:
            st.caption("No stocks selected")


def run_optimization(table: PriceTable, inputs: Dict) -> None:
    """
    Run the pipeline for the current selection and store the result.

    Errors are shown to the user; the previous result is kept.
    """
    try:
        optimizer = PortfolioOptimizer(table.prices, st.session_state.selected_assets)
        st.session_state.result = optimizer.optimize(
            inputs["mode"],
            target_return=inputs["target_return"]
        )
        st.session_state.error = None
    except PortfolioError as e:
        st.session_state.error = str(e)
    except Exception as e:
        logger.exception("Optimization failed")
        st.session_state.error = f"Error during optimization. Please check your data. ({e})"


def render_metrics_row(result: OptimizationResult) -> None:
    """Render key metrics in a row of cards."""
    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric(
            "Expected Return",
            f"{result.expected_return*100:.2f}%",
            help="Annualized expected return"
        )

    with col2:
        st.metric(
            "Volatility",
            f"{result.volatility*100:.2f}%",
            help="Annualized volatility"
        )

    with col3:
        st.metric(
            "Sharpe Ratio",
            f"{result.sharpe_ratio:.3f}",
            help="Expected return per unit of volatility"
        )

    with col4:
        st.metric(
            "Diversification Ratio",
            f"{result.diversification_ratio:.2f}",
            help="Weighted asset volatility over portfolio volatility; above 1 means diversification benefit"
        )


def render_results(table: PriceTable, result: OptimizationResult) -> None:
    """Render the optimization result."""
    st.markdown("## Optimized Portfolio Results")
    st.info(result.description)

    render_metrics_row(result)
    stats = table.get_summary_statistics().loc[list(result.assets)]
    st.markdown("---")

    tab1, tab2, tab3 = st.tabs(["Allocation", "Risk", "Data"])

    with tab1:
        col1, col2 = st.columns([1, 1])

        with col1:
            fig = DashboardCharts.plot_allocation_donut(result.weights_dict())
            st.plotly_chart(fig, use_container_width=True)

        with col2:
            st.markdown("### Asset Allocation")
            allocation = result.to_frame().sort_values(by="Weight", ascending=False)
            display = pd.DataFrame({
                "Weight": allocation["Weight"].apply(lambda x: f"{x*100:.2f}%"),
                "Annual Return": allocation["Annual Return"].apply(lambda x: f"{x*100:.2f}%"),
                "Risk Contribution": allocation["Risk Contribution"].apply(lambda x: f"{x*100:.2f}%"),
            })
            st.dataframe(display, use_container_width=True)

        fig = DashboardCharts.plot_weights_bar(result.weights_dict())
        st.plotly_chart(fig, use_container_width=True)

    with tab2:
        col1, col2 = st.columns(2)

        with col1:
            risk = dict(zip(result.assets, result.risk_contribution))
            fig = DashboardCharts.plot_weights_bar(
                risk,
                title="Risk Contribution",
                axis_title="Share of Portfolio Variance (%)",
                colorscale="Reds"
            )
            st.plotly_chart(fig, use_container_width=True)

        with col2:
            fig = DashboardCharts.plot_risk_return(
                stats, result.expected_return, result.volatility
            )
            st.plotly_chart(fig, use_container_width=True)

    with tab3:
        fig = DashboardCharts.plot_price_history(table.prices, list(result.assets))
        st.plotly_chart(fig, use_container_width=True)

        st.markdown("### Individual Asset Statistics")
        stats_display = stats.copy()
        stats_display["Annual Return"] = stats_display["Annual Return"].apply(
            lambda x: f"{x*100:.2f}%"
        )
        stats_display["Annual Volatility"] = stats_display["Annual Volatility"].apply(
            lambda x: f"{x*100:.2f}%"
        )
        stats_display["Sharpe Ratio"] = stats_display["Sharpe Ratio"].apply(
            lambda x: f"{x:.2f}"
        )
        st.dataframe(stats_display, use_container_width=True)


def main() -> None:
    """Main application function."""
    initialize_session_state()
    render_header()

    inputs = render_sidebar()
    table = st.session_state.price_table

    if inputs["run_optimization"] and table is not None:
        with st.spinner("Running optimization..."):
            run_optimization(table, inputs)

    if st.session_state.error:
        st.error(st.session_state.error)

    if table is None:
        st.info("Upload a CSV of asset prices in the sidebar to begin.")

        st.markdown("""
        ### How to Use

        1. **Upload Prices**: First column is the date, every other column one asset
        2. **Select Assets**: Search the available basket and add at least 2 stocks
        3. **Choose a Method**: Minimum Variance, Maximum Return or Efficient Frontier
        4. **Set a Target**: For Efficient Frontier, pick a target annual return
        5. **Optimize**: Click the button to compute the allocation

        ### What You'll See

        - **Allocation**: Weights per asset as a donut, bar chart and table
        - **Risk**: Risk contribution per asset and an asset risk/return map
        - **Statistics**: Expected return, volatility, Sharpe and diversification ratio
        """)
        return

    st.caption(
        f"Loaded {table.source_name}: {len(table.assets)} usable assets"
        + (f" ({len(table.excluded_assets)} excluded for insufficient data)"
           if table.excluded_assets else "")
    )
    render_asset_baskets(table)

    if st.session_state.result is not None:
        st.markdown("---")
        render_results(table, st.session_state.result)


if __name__ == "__main__":
    main()
