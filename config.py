"""
Central configuration for the Heuristic Portfolio Optimizer.

This module contains all configurable parameters including data validation
thresholds, allocation heuristic constants, and dashboard defaults used
throughout the application.
"""

# =============================================================================
# Financial Constants
# =============================================================================
# Trading days per year (US market standard)
TRADING_DAYS_PER_YEAR: int = 252

# Risk-free rate used in the Sharpe ratio (treated as zero)
RISK_FREE_RATE: float = 0.0

# =============================================================================
# Data Validation Parameters
# =============================================================================
# Date column plus at least two asset columns
MIN_HEADER_COLUMNS: int = 3

# Minimum number of assets required for an optimization run
MIN_ASSETS: int = 2

# Minimum valid price points for an asset to be usable, and minimum
# return observations per selected asset at optimization time
MIN_DATA_POINTS: int = 10

# Below this many valid prices an asset is usable but flagged as thin
LOW_DATA_WARNING_POINTS: int = 30

# =============================================================================
# Statistics Parameters
# =============================================================================
# Floor applied to variances before inversion or square root
VARIANCE_FLOOR: float = 0.0001

# Diagonal covariance used when two series overlap on one point or less
FALLBACK_VARIANCE: float = 0.01

# =============================================================================
# Maximum Return Heuristic
# =============================================================================
# Number of top-ranked assets receiving a geometric allocation
MAX_RETURN_TOP_N: int = 5

# Allocation given to the best asset; each further rank is scaled by DECAY
MAX_RETURN_BASE_ALLOCATION: float = 0.5
MAX_RETURN_DECAY: float = 0.7

# Remaining weight below this threshold is not redistributed
MIN_REMAINING_WEIGHT: float = 0.01

# =============================================================================
# Efficient (Target Return) Heuristic
# =============================================================================
# Floor for mean returns in the initial return-to-risk ratios
EFFICIENT_MIN_RETURN: float = 0.01

# Return gap below which no adjustment is attempted
EFFICIENT_RETURN_TOLERANCE: float = 0.001

# Maximum number of greedy adjustment rounds
EFFICIENT_MAX_ITERATIONS: int = 50

# Largest per-asset weight increase in a single round
EFFICIENT_MAX_STEP: float = 0.02

# Fraction of the return difference applied per round
EFFICIENT_STEP_SCALE: float = 0.1

# Stop once the remaining gap falls below this fraction of the initial gap
EFFICIENT_CONVERGENCE_RATIO: float = 0.9

# =============================================================================
# Dashboard Defaults
# =============================================================================
DEFAULT_OPTIMIZATION_MODE: str = "efficient"

# Target annual return slider (decimal)
DEFAULT_TARGET_RETURN: float = 0.12
TARGET_RETURN_MIN: float = 0.05
TARGET_RETURN_MAX: float = 0.30
TARGET_RETURN_STEP: float = 0.01
