"""Limit order CLI - quote, generate, submit and fill 1inch limit orders."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, Optional

import typer
from eth_utils import is_address, to_checksum_address
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .chain import ChainClient, account_from_key
from .config import DEFAULT_PAIR, VALID_PAIRS, Settings, TradingPair, get_pair, load_settings, pair_label
from .errors import ConfigError, InsufficientBalanceError, LimitOrderError, ValidationError
from .orders import SignedOrder, load_signed_order
from .prompts import Answers
from .reporter import Reporter
from .trading import FillerClient, GenerateOrderOptions, execute_fill, generate_order, quote_provider_for, simulate_fill
from .trading.fill import describe_order
from .trading.generate import approve_spending, check_balance, request_quote, sign_quote
from .utils import format_token_amount

app = typer.Typer(
    name="lop",
    help="Build, sign, simulate and submit 1inch limit orders on Polygon",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def run(workflow: Coroutine[Any, Any, None]) -> None:
    """Run a workflow to completion; any failure exits with status 1."""
    try:
        asyncio.run(workflow)
    except typer.Exit:
        raise
    except InsufficientBalanceError as e:
        console.print("")
        console.print(f"[red]Error:[/red] Insufficient {escape(e.symbol)} balance.")
        console.print(f"Required: {escape(e.required)}")
        console.print(f"Available: {escape(e.available)}")
        raise typer.Exit(1)
    except LimitOrderError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        raise typer.Exit(1)
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        console.print(f"[red]Fatal error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


def _select_pair(answer: str) -> TradingPair:
    try:
        number = int(answer)
    except ValueError:
        raise ValidationError("Invalid pair selection.")
    return get_pair(number)


def _show_pairs(reporter: Reporter) -> None:
    reporter.step("Available trading pairs:")
    for index, pair in enumerate(VALID_PAIRS, start=1):
        reporter.step(f"  {index}. {pair_label(pair)}")
    reporter.blank()


def _print_order_json(signed: SignedOrder, output: Optional[Path] = None) -> None:
    text = signed.dumps()
    if output is not None:
        output.write_text(text + "\n", encoding="utf-8")
    typer.echo(text)


# quote


async def _quote(settings: Settings, answers: Answers) -> None:
    reporter = Reporter(console, width=60)
    reporter.banner("STABLECOIN QUOTE")
    reporter.blank()

    _show_pairs(reporter)
    pair = _select_pair(answers.ask(f"Select pair (1-{len(VALID_PAIRS)})"))
    reporter.step(f"Selected: {pair_label(pair)}")
    reporter.blank()

    amount = answers.ask(f"Enter amount of {pair.source.symbol} to quote")
    provider = quote_provider_for(settings)

    await request_quote(provider, pair, amount, reporter)
    reporter.rule()


@app.command()
def quote(ctx: typer.Context) -> None:
    """Quote a conversion between the supported stablecoins."""
    run(_quote(_settings(ctx), Answers(console=err_console)))


# generate


async def _generate(
    settings: Settings,
    pair: TradingPair,
    amount: Optional[str],
    skip_approval: bool,
    output: Optional[Path],
    json_only: bool,
    answers: Answers,
) -> None:
    reporter = Reporter(console, silent=json_only)
    reporter.banner("1INCH LIMIT ORDER GENERATOR")
    reporter.blank()

    maker_key = settings.maker_key()
    if amount is None:
        amount = answers.ask(f"Enter amount of {pair.source.symbol} to trade")
    provider = quote_provider_for(settings)

    options = GenerateOrderOptions(
        amount=amount,
        pair=pair,
        expiration_minutes=settings.expiration_minutes,
        skip_approval=skip_approval,
    )
    async with ChainClient.for_private_key(settings, maker_key) as chain:
        result = await generate_order(options, chain, provider, settings, reporter)

    reporter.blank()
    reporter.banner("ORDER OUTPUT")
    _print_order_json(result.order, output)


@app.command()
def generate(
    ctx: typer.Context,
    pair: int = typer.Option(1, "--pair", "-p", help="Trading pair number (see 'lop quote')"),
    amount: Optional[str] = typer.Option(None, "--amount", "-a", help="Amount of the source token to sell"),
    skip_approval: bool = typer.Option(False, "--skip-approval", help="Do not check or set the allowance"),
    output: Optional[Path] = typer.Option(None, "--output", help="Also write the order JSON to this file"),
    json_only: bool = typer.Option(False, "--json-only", help="Print only the order JSON"),
) -> None:
    """Generate and sign a limit order, printing its JSON."""
    try:
        trading_pair = get_pair(pair)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    run(_generate(_settings(ctx), trading_pair, amount, skip_approval, output, json_only, Answers(console=err_console)))


# submit


async def _submit(settings: Settings, pair: TradingPair, answers: Answers) -> None:
    reporter = Reporter(console)
    source, output = pair.source, pair.output
    reporter.banner("1INCH LIMIT ORDER GENERATOR")
    reporter.blank()

    maker_key = settings.maker_key()
    filler = FillerClient(settings.require("filler_api_url"), settings.http_timeout)
    provider = quote_provider_for(settings, filler)

    amount = answers.ask(f"Enter amount of {source.symbol} to trade")
    reporter.blank()
    quote = await request_quote(provider, pair, amount, reporter)

    async with ChainClient.for_private_key(settings, maker_key) as chain:
        maker = chain.address
        reporter.blank()
        reporter.step(f"Maker Address: {maker}")
        reporter.step(f"Order: {pair_label(pair)}")
        reporter.step(f"Expiration: {settings.expiration_minutes} minutes")
        reporter.blank()

        reporter.step("Checking maker balance...")
        await check_balance(chain, source, maker, quote.input_amount, reporter)

        reporter.blank()
        reporter.rule()
        reporter.step("ORDER SUMMARY")
        reporter.rule()
        reporter.step(f"  You will sell:    {format_token_amount(quote.input_amount, source.decimals, source.symbol)}")
        reporter.step(f"  You will receive: {format_token_amount(quote.output_amount, output.decimals, output.symbol)}")
        reporter.step(f"  Rate:             {quote.rate} {output.symbol}/{source.symbol}")
        reporter.step(f"  Expiration:       {settings.expiration_minutes} minutes")
        reporter.rule()
        reporter.blank()

        if not answers.confirm("Do you want to proceed with this order? (y/N)"):
            reporter.step("Order cancelled.")
            return

        reporter.blank()
        reporter.step("Checking/setting approval...")
        await approve_spending(chain, source, maker, quote.input_amount, reporter)

        reporter.blank()
        signed = sign_quote(chain, quote, settings, settings.expiration_minutes, reporter)

    reporter.blank()
    reporter.step("Submitting order to filler...")
    response = await filler.execute(signed)

    if response.success:
        reporter.success("Order submitted successfully")
        reporter.detail(f"TX ID: {escape(str(response.tx_id))}")
    else:
        reporter.failure("Order submission failed")
        reporter.detail(f"Error: {escape(str(response.error))}")
        if response.details:
            reporter.detail(f"Details: {escape(response.details)}")

    reporter.blank()
    reporter.banner("ORDER OUTPUT")
    _print_order_json(signed)

    if not response.success:
        raise typer.Exit(1)


@app.command()
def submit(
    ctx: typer.Context,
    pair: int = typer.Option(1, "--pair", "-p", help="Trading pair number (see 'lop quote')"),
) -> None:
    """Generate a signed order and submit it to the filler service."""
    try:
        trading_pair = get_pair(pair)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    run(_submit(_settings(ctx), trading_pair, Answers(console=err_console)))


# fill


def _taker_address(settings: Settings, taker: Optional[str]) -> str:
    if taker:
        if not is_address(taker.lower()):
            raise ValidationError(f"Invalid taker address: {taker}")
        return to_checksum_address(taker)
    if settings.taker_private_key:
        return account_from_key(settings.taker_key()).address
    raise ConfigError("Taker address required: pass --taker or set TAKER_PRIVATE_KEY.")


async def _test_order(settings: Settings, amount: str, reporter: Reporter) -> SignedOrder:
    """Generate a fresh maker order for the default pair."""
    options = GenerateOrderOptions(
        amount=amount,
        pair=DEFAULT_PAIR,
        expiration_minutes=settings.expiration_minutes,
    )
    provider = quote_provider_for(settings)
    async with ChainClient.for_private_key(settings, settings.maker_key()) as chain:
        result = await generate_order(options, chain, provider, settings, reporter)
    return result.order


async def _fill(settings: Settings, execute: bool, order_path: Optional[str], taker: Optional[str], amount: str) -> None:
    reporter = Reporter(console)
    reporter.banner("1INCH LIMIT ORDER FILL TEST")
    reporter.blank()

    taker_key = settings.taker_key() if execute else None
    taker_address = account_from_key(taker_key).address if taker_key else _taker_address(settings, taker)
    reporter.step(f"Taker Address: {taker_address}")

    order_path = order_path or settings.order_path
    if order_path:
        reporter.step(f"Order: {escape(order_path)}")
        reporter.blank()
        signed = load_signed_order(order_path)
    else:
        reporter.step(f"Test Amount: {escape(amount)} {DEFAULT_PAIR.source.symbol}")
        reporter.blank()
        reporter.step("Generating test order...")
        signed = await _test_order(settings, amount, reporter)
    reporter.blank()

    describe_order(signed, reporter)
    reporter.blank()

    if execute:
        async with ChainClient.for_private_key(settings, taker_key) as chain:
            reporter.step(f"Executing with: {chain.address}")
            reporter.blank()
            reporter.step("Executing fill...")
            result = await execute_fill(chain, signed, reporter)

        reporter.blank()
        if result.success:
            reporter.step("[bold green]FILL SUCCESSFUL[/bold green]")
            reporter.step(f"Transaction: {result.tx_hash}")
            return
        reporter.step("[bold red]FILL FAILED[/bold red]")
        reporter.step(f"Error: {escape(str(result.error))}")
        if result.tx_hash:
            reporter.step(f"Transaction: {result.tx_hash}")
        raise typer.Exit(1)

    reporter.step("Simulating fill...")
    async with ChainClient.read_only(settings) as chain:
        result = await simulate_fill(chain, signed, taker_address)

    reporter.blank()
    if result.success:
        reporter.step("[bold green]SIMULATION PASSED[/bold green]")
        reporter.step("The order can be filled successfully.")
        return
    reporter.step("[bold red]SIMULATION FAILED[/bold red]")
    reporter.step(f"Error: {escape(str(result.error))}")
    raise typer.Exit(1)


@app.command()
def fill(
    ctx: typer.Context,
    execute: bool = typer.Option(False, "--execute", help="Broadcast a real fill transaction instead of simulating"),
    order: Optional[str] = typer.Option(None, "--order", "-o", help="Order JSON file, '-' for stdin (default: ORDER_PATH)"),
    taker: Optional[str] = typer.Option(None, "--taker", help="Taker address used for simulation"),
    amount: str = typer.Option("1", "--amount", "-a", help="Amount for a generated test order"),
) -> None:
    """Simulate (or with --execute, perform) a fill of a signed order."""
    run(_fill(_settings(ctx), execute, order, taker, amount))


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Main entry point for the CLI."""
    setup_logging(verbose)
    try:
        ctx.obj = load_settings()
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
