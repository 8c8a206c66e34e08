"""Quote providers: remote filler pricing or a fixed conversion rate."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from ..config import Settings, TradingPair
from ..errors import QuoteError, ValidationError
from ..utils import format_token_amount, parse_units
from .filler import FillerClient
from .models import Quote

logger = logging.getLogger(__name__)


class FixedRateQuoteProvider:
    """Converts at hardcoded rates, e.g. 1 USDC = 5 BRLA."""

    def __init__(self, rates: Mapping[Tuple[str, str], Decimal]):
        self.rates = rates

    async def get_quote(self, input_amount: int, pair: TradingPair) -> Quote:
        key = (pair.source.symbol, pair.output.symbol)
        rate = self.rates.get(key)
        if rate is None:
            raise QuoteError(f"No fixed rate for {key[0]} -> {key[1]}")

        # output = input * rate * 10^outDec / 10^inDec, in integer math
        numerator, denominator = rate.as_integer_ratio()
        output_amount = (
            input_amount * numerator * 10 ** pair.output.decimals
            // (denominator * 10 ** pair.source.decimals)
        )
        return Quote(pair=pair, input_amount=input_amount, output_amount=output_amount, rate=rate)


class FillerQuoteProvider:
    """Asks the filler API for a price."""

    def __init__(self, filler: FillerClient):
        self.filler = filler

    def _build_request(self, input_amount: int, pair: TradingPair) -> Dict[str, str]:
        amount = format_token_amount(input_amount, pair.source.decimals)
        amount_key = "amountUSDC" if pair.source.symbol == "USDC" else "amount"
        return {
            amount_key: amount,
            "sourceCurrency": pair.source.symbol,
            "outputCurrency": pair.output.symbol,
        }

    async def get_quote(self, input_amount: int, pair: TradingPair) -> Quote:
        data = await self.filler.request_quote(self._build_request(input_amount, pair))
        return parse_quote_response(data, input_amount, pair)


def parse_quote_response(data: Any, input_amount: int, pair: TradingPair) -> Quote:
    """Convert a {inputAmount, expectedOutput, rate} response into a Quote."""
    if not isinstance(data, dict):
        raise QuoteError(f"Unexpected quote response: {data!r}")
    if data.get("error"):
        raise QuoteError(f"Quote failed: {data['error']}")

    try:
        expected_output = data["expectedOutput"]
        rate = Decimal(str(data["rate"]))
    except KeyError as e:
        raise QuoteError(f"Quote response is missing {e.args[0]}")
    except InvalidOperation:
        raise QuoteError(f"Invalid rate in quote response: {data.get('rate')!r}")

    try:
        output_amount = parse_units(expected_output, pair.output.decimals, round_down=True)
        if data.get("inputAmount") is not None:
            input_amount = parse_units(data["inputAmount"], pair.source.decimals, round_down=True)
    except ValidationError as e:
        raise QuoteError(f"Invalid amount in quote response: {e}")

    logger.debug(f"Quote {input_amount} -> {output_amount} at {rate}")
    return Quote(pair=pair, input_amount=input_amount, output_amount=output_amount, rate=rate)


def quote_provider_for(settings: Settings, filler: Optional[FillerClient] = None) -> Any:
    """Pick the provider configured by QUOTE_SOURCE."""
    if settings.quote_source == "fixed":
        return FixedRateQuoteProvider(settings.fixed_rates)
    if filler is None:
        filler = FillerClient(settings.require("filler_api_url"), settings.http_timeout)
    return FillerQuoteProvider(filler)
