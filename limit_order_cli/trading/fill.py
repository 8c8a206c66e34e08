"""Fill a signed order: simulate with eth_call or execute as a transaction."""

import logging
from typing import Optional, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import is_address, to_checksum_address, to_hex
from rich.markup import escape

from ..chain import ChainClient, LIMIT_ORDER_PROTOCOL_ABI
from ..chain.abi import SOLIDITY_ERROR_ABI, error_selectors, find_entry, function_selector, input_types
from ..config import get_token_by_address
from ..errors import InsufficientBalanceError, ValidationError
from ..orders import Order, SignedOrder, compact_signature
from ..reporter import Reporter
from ..utils import format_token_amount, strip_0x
from .models import FillResult

logger = logging.getLogger(__name__)

FILL_ORDER_SELECTOR = function_selector(LIMIT_ORDER_PROTOCOL_ABI, "fillOrder")
FILL_ORDER_TYPES = input_types(find_entry(LIMIT_ORDER_PROTOCOL_ABI, "fillOrder"))
KNOWN_ERRORS = error_selectors(LIMIT_ORDER_PROTOCOL_ABI + SOLIDITY_ERROR_ABI)

GAS_BUFFER_DIVISOR = 10  # +10%


def build_order_struct(order: Order) -> Tuple[int, ...]:
    """Order as the contract's all-uint256 tuple."""
    return (
        order.salt,
        int(order.maker, 16),
        int(order.receiver, 16),
        int(order.maker_asset, 16),
        int(order.taker_asset, 16),
        order.making_amount,
        order.taking_amount,
        order.maker_traits,
    )


def encode_fill_order(signed: SignedOrder, amount: int, taker_traits: int = 0) -> str:
    """Calldata for fillOrder(order, r, vs, amount, takerTraits)."""
    r, vs = compact_signature(signed.signature)
    args = encode_fill_args(signed.order, r, vs, amount, taker_traits)
    return to_hex(FILL_ORDER_SELECTOR + args)


def encode_fill_args(order: Order, r: str, vs: str, amount: int, taker_traits: int) -> bytes:
    return abi_encode(
        FILL_ORDER_TYPES,
        [
            build_order_struct(order),
            bytes.fromhex(strip_0x(r)),
            bytes.fromhex(strip_0x(vs)),
            amount,
            taker_traits,
        ],
    )


def decode_revert_error(error_data: Optional[str]) -> str:
    """Readable reason for revert data, e.g. 'BadSignature()'."""
    if not error_data or error_data == "0x":
        return "Unknown error (no revert data)"

    selector = error_data[:10].lower()
    known = KNOWN_ERRORS.get(selector)
    if known is None:
        return f"Unknown error with selector {selector}"

    name, types = known
    if not types:
        return f"{name}()"
    try:
        args = abi_decode(types, bytes.fromhex(strip_0x(error_data)[8:]))
    except (DecodingError, ValueError) as e:
        logger.debug(f"Failed to decode {name} arguments: {e}")
        return f"Unknown error with selector {selector}"
    return f"{name}({', '.join(str(a) for a in args)})"


def describe_order(signed: SignedOrder, reporter: Reporter):
    """Print hash, assets and amounts of an order. Unknown tokens are rejected."""
    order = signed.order
    maker_token = get_token_by_address(order.maker_asset)
    taker_token = get_token_by_address(order.taker_asset)
    if maker_token is None:
        raise ValidationError(f"Unknown maker asset {order.maker_asset}")
    if taker_token is None:
        raise ValidationError(f"Unknown taker asset {order.taker_asset}")

    reporter.step(f"Order Hash: {escape(str(signed.order_hash))}")
    reporter.step(f"Maker Asset: {order.maker_asset} ({maker_token.symbol})")
    reporter.step(f"Taker Asset: {order.taker_asset} ({taker_token.symbol})")
    reporter.step(
        f"Making Amount: {format_token_amount(order.making_amount, maker_token.decimals, maker_token.symbol)}"
    )
    reporter.step(
        f"Taking Amount: {format_token_amount(order.taking_amount, taker_token.decimals, taker_token.symbol)}"
    )


async def simulate_fill(chain: ChainClient, signed: SignedOrder, taker: str) -> FillResult:
    """Dry-run fillOrder from the taker against current chain state."""
    if not is_address(taker.lower()):
        raise ValidationError(f"Invalid taker address: {taker}")
    fill_data = encode_fill_order(signed, signed.order.taking_amount)
    tx = {
        "from": to_checksum_address(taker),
        "to": chain.spender,
        "data": fill_data,
    }

    try:
        await chain.call(tx)
        return FillResult(success=True)
    except Exception as e:
        logger.debug(f"Simulation reverted: {e}")
        # The library error may lack revert data, so ask the node directly
        revert_data = await chain.fetch_revert_data(tx)
        if revert_data is None:
            revert_data = _revert_data_from_exception(e)
        if revert_data:
            return FillResult(success=False, error=decode_revert_error(revert_data))
        return FillResult(success=False, error=str(e))


def _revert_data_from_exception(exc: Exception) -> Optional[str]:
    data = getattr(exc, "data", None)
    return data if isinstance(data, str) and data.startswith("0x") else None


async def execute_fill(chain: ChainClient, signed: SignedOrder, reporter: Reporter) -> FillResult:
    """Fill the order on-chain with the chain client's account as taker."""
    order = signed.order
    taker = chain.address
    taking_amount = order.taking_amount

    taker_token = get_token_by_address(order.taker_asset)
    if taker_token is None:
        raise ValidationError(f"Unknown taker asset {order.taker_asset}")

    check = await chain.validate_sufficient_balance(taker_token.address, taker, taking_amount)
    reporter.step(
        f"Taker balance: {format_token_amount(check.balance, taker_token.decimals, taker_token.symbol)}"
    )
    if not check.sufficient:
        raise InsufficientBalanceError(
            taker_token.symbol,
            required=format_token_amount(taking_amount, taker_token.decimals, taker_token.symbol),
            available=format_token_amount(check.balance, taker_token.decimals, taker_token.symbol),
        )

    approval = await chain.ensure_token_approval(taker_token.address, taker, taking_amount)
    if approval.tx_hash:
        reporter.step(f"Approval tx: {approval.tx_hash}")

    tx = {
        "from": taker,
        "to": chain.spender,
        "data": encode_fill_order(signed, taking_amount),
    }

    tx_hash = None
    try:
        gas_estimate = await chain.estimate_gas(tx)
        tx["gas"] = gas_estimate + gas_estimate // GAS_BUFFER_DIVISOR

        tx_hash = await chain.send_transaction(tx)
        logger.info(f"Fill transaction sent: {tx_hash}")

        receipt = await chain.wait_for_receipt(tx_hash)
    except Exception as e:
        logger.debug(f"Fill failed: {e}")
        return FillResult(success=False, tx_hash=tx_hash, error=str(e))

    if receipt["status"] == 1:
        return FillResult(success=True, tx_hash=tx_hash)
    return FillResult(success=False, tx_hash=tx_hash, error="Transaction reverted")
