"""Error types raised by the limit order workflows."""

from typing import Optional


class LimitOrderError(Exception):
    """Base class for errors that end a workflow with a readable message."""


class ConfigError(LimitOrderError):
    """A required setting is missing or malformed."""


class ValidationError(LimitOrderError):
    """User input or order data failed validation."""


class QuoteError(LimitOrderError):
    """The quoting endpoint returned an error."""


class InsufficientBalanceError(LimitOrderError):
    """Account balance is below the amount the workflow has to transfer."""

    def __init__(self, symbol: str, required: str, available: str, message: Optional[str] = None):
        self.symbol = symbol
        self.required = required
        self.available = available
        super().__init__(
            message
            or f"Insufficient {symbol} balance. Required: {required}, Available: {available}"
        )
