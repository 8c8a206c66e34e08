"""Order generation pipeline: quote, balance, approval, sign.

Each step takes the previous step's result and either returns a typed value or
raises, so a failed balance check never reaches approval or signing.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..chain import ChainClient
from ..config import Settings, Token, TradingPair, pair_label
from ..errors import InsufficientBalanceError, ValidationError
from ..orders import OrderParams, SignedOrder, generate_signed_order
from ..reporter import Reporter
from ..utils import format_token_amount, parse_units
from .models import Quote

logger = logging.getLogger(__name__)


@dataclass
class GenerateOrderOptions:
    """Inputs for generate_order."""
    amount: str  # human units of the pair's source token
    pair: TradingPair
    expiration_minutes: int = 60
    skip_approval: bool = False


@dataclass
class GenerateOrderResult:
    """Signed order plus the quote it was built from."""
    order: SignedOrder
    quote: Quote
    maker_address: str


def parse_amount(amount: str, token: Token) -> int:
    """Parse a positive amount of the token into base units."""
    if not amount or not amount.strip():
        raise ValidationError("Amount is required.")
    raw = parse_units(amount, token.decimals)
    if raw <= 0:
        raise ValidationError("Amount must be greater than zero.")
    return raw


def print_quote(quote: Quote, reporter: Reporter):
    source, output = quote.pair.source, quote.pair.output
    reporter.detail(f"Input:  {format_token_amount(quote.input_amount, source.decimals, source.symbol)}")
    reporter.detail(f"Output: {format_token_amount(quote.output_amount, output.decimals, output.symbol)}")
    reporter.detail(f"Rate:   {quote.rate} {output.symbol}/{source.symbol}")


async def request_quote(provider: Any, pair: TradingPair, amount: str, reporter: Reporter) -> Quote:
    """Step 1: validate the amount and fetch a quote."""
    input_amount = parse_amount(amount, pair.source)

    reporter.step("Getting quote...")
    quote = await provider.get_quote(input_amount, pair)
    if quote.input_amount <= 0 or quote.output_amount <= 0:
        raise ValidationError("Quote amounts must be greater than zero.")
    print_quote(quote, reporter)
    return quote


async def check_balance(chain: ChainClient, token: Token, owner: str, required: int, reporter: Reporter) -> int:
    """Step 2: require that owner holds at least the required amount."""
    check = await chain.validate_sufficient_balance(token.address, owner, required)
    reporter.detail(f"Balance: {format_token_amount(check.balance, token.decimals, token.symbol)}")

    if not check.sufficient:
        raise InsufficientBalanceError(
            token.symbol,
            required=format_token_amount(required, token.decimals, token.symbol),
            available=format_token_amount(check.balance, token.decimals, token.symbol),
        )
    reporter.detail("Balance OK")
    return check.balance


async def approve_spending(chain: ChainClient, token: Token, owner: str, required: int, reporter: Reporter) -> Optional[str]:
    """Step 3: approve the protocol contract when the allowance is too low."""
    result = await chain.ensure_token_approval(token.address, owner, required)
    if result.tx_hash:
        reporter.detail(f"Approval transaction: {result.tx_hash}")
    else:
        reporter.detail("Already approved")
    return result.tx_hash


def sign_quote(chain: ChainClient, quote: Quote, settings: Settings, expiration_minutes: int, reporter: Reporter) -> SignedOrder:
    """Step 4: build and sign an order for exactly the quoted amounts."""
    reporter.step("Generating and signing order...")
    params = OrderParams(
        maker_asset=quote.pair.source.address,
        taker_asset=quote.pair.output.address,
        making_amount=quote.input_amount,
        taking_amount=quote.output_amount,
        maker=chain.address,
        expiration_minutes=expiration_minutes,
    )
    signed = generate_signed_order(params, chain, settings.chain_id, settings.protocol_address)
    reporter.detail("Order signed successfully")
    return signed


async def generate_order(
    options: GenerateOrderOptions,
    chain: ChainClient,
    quote_provider: Any,
    settings: Settings,
    reporter: Reporter,
) -> GenerateOrderResult:
    """Run the full maker pipeline and return the signed order."""
    pair = options.pair
    quote = await request_quote(quote_provider, pair, options.amount, reporter)

    maker = chain.address
    reporter.blank()
    reporter.step(f"Maker Address: {maker}")
    reporter.step(f"Order: {pair_label(pair)}")
    reporter.step(f"Expiration: {options.expiration_minutes} minutes")
    reporter.blank()

    reporter.step("Checking maker balance...")
    await check_balance(chain, pair.source, maker, quote.input_amount, reporter)

    if not options.skip_approval:
        reporter.blank()
        reporter.step("Checking/setting approval...")
        await approve_spending(chain, pair.source, maker, quote.input_amount, reporter)

    reporter.blank()
    signed = sign_quote(chain, quote, settings, options.expiration_minutes, reporter)
    logger.info(f"Generated order {signed.order_hash} for {maker}")

    return GenerateOrderResult(order=signed, quote=quote, maker_address=maker)
