"""
Price Data Loader Module.

This module handles ingestion of user-uploaded historical price files. It
parses a CSV whose first column is a date/period label and whose remaining
columns are asset prices, applies data quality checks, and produces an
immutable ``PriceTable`` for the optimizer.

Features:
    - Tolerant cell parsing (non-numeric cells are dropped, not zero-filled)
    - Skipping of entirely empty rows
    - Exclusion of assets with too few valid prices
    - Per-asset summary statistics for display
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union, IO

import numpy as np
import pandas as pd

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from config import (
    MIN_HEADER_COLUMNS,
    MIN_ASSETS,
    MIN_DATA_POINTS,
    LOW_DATA_WARNING_POINTS,
)
from portfolio_heuristics.errors import DataValidationError
from portfolio_heuristics.mathematics import QuantMetrics

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceTable:
    """
    Parsed price data from one uploaded file.

    A new upload produces a new table; existing tables are never mutated.

    Attributes:
        prices: Mapping of asset name to its valid prices, in file order.
        assets: Usable assets (enough valid prices), in header order.
        date_column: Label of the first (date/period) column.
        source_name: Name of the uploaded file, if known.
        excluded_assets: Assets dropped for having too few valid prices.
    """
    prices: Dict[str, np.ndarray]
    assets: List[str]
    date_column: str = ""
    source_name: Optional[str] = None
    excluded_assets: List[str] = field(default_factory=list)

    def point_counts(self) -> Dict[str, int]:
        """Return the number of valid price points for each usable asset."""
        return {asset: int(self.prices[asset].size) for asset in self.assets}

    def get_summary_statistics(self) -> pd.DataFrame:
        """
        Calculate summary statistics for each usable asset.

        Returns:
            DataFrame indexed by asset with data points, annualized return,
            annualized volatility and Sharpe ratio.
        """
        stats = []
        for asset in self.assets:
            returns = QuantMetrics.simple_returns(self.prices[asset])
            mean = QuantMetrics.mean_returns([returns])
            variance = QuantMetrics.calculate_covariance_matrix([returns], mean)
            ann_return = float(QuantMetrics.annualize(mean)[0])
            ann_vol = float(np.sqrt(QuantMetrics.annualize(variance)[0, 0]))

            stats.append({
                "Asset": asset,
                "Data Points": int(self.prices[asset].size),
                "Annual Return": ann_return,
                "Annual Volatility": ann_vol,
                "Sharpe Ratio": QuantMetrics.sharpe_ratio(ann_return, ann_vol)
            })

        return pd.DataFrame(stats).set_index("Asset")


class PriceDataLoader:
    """
    Handles parsing and validation of uploaded price files.

    Attributes:
        min_header_columns: Minimum header width (date + assets).
        min_assets: Minimum number of usable assets.
        min_data_points: Minimum valid prices for an asset to be usable.

    Example:
        >>> loader = PriceDataLoader()
        >>> table = loader.load_csv("prices.csv")
        >>> table.assets
        ['AAPL', 'MSFT', 'GOOGL']
    """

    def __init__(
        self,
        min_header_columns: int = MIN_HEADER_COLUMNS,
        min_assets: int = MIN_ASSETS,
        min_data_points: int = MIN_DATA_POINTS
    ) -> None:
        self.min_header_columns: int = min_header_columns
        self.min_assets: int = min_assets
        self.min_data_points: int = min_data_points

    def load_csv(
        self,
        source: Union[str, os.PathLike, IO],
        source_name: Optional[str] = None
    ) -> PriceTable:
        """
        Read and validate a CSV price file.

        Args:
            source: File path or file-like object (e.g. a Streamlit upload).
            source_name: Display name; defaults to the path or ``source.name``.

        Returns:
            PriceTable with every parsed asset and the usable asset list.

        Raises:
            DataValidationError: If the file is empty, unreadable, has fewer
                than 3 header columns, or has fewer than 2 usable assets.
        """
        if source_name is None:
            source_name = getattr(source, "name", None) or str(source)

        try:
            text = self._read_text(source)
            width = pd.read_csv(
                io.StringIO(text),
                header=None,
                nrows=1,
                dtype=str,
                keep_default_na=False
            ).shape[1]
            # Cells past the header width are ignored
            raw = pd.read_csv(
                io.StringIO(text),
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=lambda cells: cells[:width]
            )
        except pd.errors.EmptyDataError:
            raise DataValidationError("The uploaded file is empty.")
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            raise DataValidationError(
                f"Error parsing CSV file. Please check the format. ({e})"
            )

        return self.parse_frame(raw, source_name=source_name)

    @staticmethod
    def _read_text(source: Union[str, os.PathLike, IO]) -> str:
        """Return the decoded text of a path, text stream or byte stream."""
        if hasattr(source, "read"):
            content = source.read()
        else:
            with open(source, "rb") as handle:
                content = handle.read()
        if isinstance(content, bytes):
            content = content.decode("utf-8-sig")
        return content

    def parse_frame(
        self,
        raw: pd.DataFrame,
        source_name: Optional[str] = None
    ) -> PriceTable:
        """
        Build a PriceTable from a raw, header-less frame of string cells.

        The first row holds the headers. In every later row the first cell
        is ignored and the remaining cells are parsed as prices.

        Args:
            raw: Frame of string cells as read from the CSV.
            source_name: Display name of the source.

        Returns:
            Validated PriceTable.

        Raises:
            DataValidationError: On too few columns or usable assets.
        """
        if raw.empty:
            raise DataValidationError("The uploaded file is empty.")

        raw = raw.fillna("").astype(str)
        headers = [h.strip() for h in raw.iloc[0].tolist()]

        if len(headers) < self.min_header_columns:
            raise DataValidationError(
                "CSV must have at least a date column and "
                f"{self.min_header_columns - 1} asset columns"
            )

        rows = raw.iloc[1:]
        non_empty = rows.apply(lambda row: row.str.strip().ne("").any(), axis=1)
        rows = rows[non_empty] if len(rows) > 0 else rows

        prices: Dict[str, np.ndarray] = {}
        for position, asset in enumerate(headers[1:], start=1):
            column_prices = self._parse_prices(rows.iloc[:, position])
            if column_prices.size < LOW_DATA_WARNING_POINTS:
                logger.warning(
                    f"Asset {asset} has less than {LOW_DATA_WARNING_POINTS} data points"
                )
            prices[asset] = column_prices

        assets = [a for a in prices if prices[a].size >= self.min_data_points]
        excluded = [a for a in prices if a not in assets]
        for asset in excluded:
            logger.warning(
                f"Excluding {asset}: only {prices[asset].size} valid prices "
                f"(minimum {self.min_data_points})"
            )

        if len(assets) < self.min_assets:
            raise DataValidationError(
                f"Need at least {self.min_assets} assets with sufficient data points"
            )

        logger.info(
            f"Loaded {len(assets)} usable assets from {source_name}. "
            f"Excluded: {excluded}"
        )

        return PriceTable(
            prices=prices,
            assets=assets,
            date_column=headers[0],
            source_name=source_name,
            excluded_assets=excluded
        )

    @staticmethod
    def _parse_prices(cells: pd.Series) -> np.ndarray:
        """
        Parse one asset column into its valid prices.

        Non-numeric and non-finite cells are dropped, so the result keeps
        only real observations in file order.
        """
        values = pd.to_numeric(cells.str.strip(), errors="coerce").to_numpy(dtype=float)
        return values[np.isfinite(values)]
