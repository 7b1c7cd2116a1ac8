"""
Exception types raised by the portfolio optimization core.

The dashboard catches ``PortfolioError`` at its two entry points (file
upload and optimization run) and shows the message to the user.
"""


class PortfolioError(Exception):
    """Base error for the portfolio optimizer."""


class DataValidationError(PortfolioError):
    """Raised when an uploaded price file cannot be used."""


class InsufficientSelectionError(PortfolioError):
    """Raised when the selected assets cannot support an optimization run."""


class UnknownModeError(PortfolioError, ValueError):
    """Raised when an optimization mode is not registered."""
