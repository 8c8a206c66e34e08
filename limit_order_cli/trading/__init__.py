"""Trading workflows: quoting, order generation, fills and filler submission."""

from .filler import FillerClient
from .fill import decode_revert_error, encode_fill_order, execute_fill, simulate_fill
from .generate import GenerateOrderOptions, GenerateOrderResult, generate_order
from .models import ExecuteRequest, ExecuteResponse, FillResult, Quote
from .quote import FillerQuoteProvider, FixedRateQuoteProvider, quote_provider_for

__all__ = [
    "FillerClient",
    "FillerQuoteProvider",
    "FixedRateQuoteProvider",
    "quote_provider_for",
    "GenerateOrderOptions",
    "GenerateOrderResult",
    "generate_order",
    "decode_revert_error",
    "encode_fill_order",
    "execute_fill",
    "simulate_fill",
    "ExecuteRequest",
    "ExecuteResponse",
    "FillResult",
    "Quote",
]
