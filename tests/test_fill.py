"""Tests for fillOrder encoding, revert decoding, simulation and execution."""

from unittest.mock import AsyncMock

import pytest
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import keccak, to_hex
from web3.exceptions import ContractLogicError

from limit_order_cli.chain import BalanceCheck
from limit_order_cli.config import LIMIT_ORDER_PROTOCOL_ADDRESS, TOKENS
from limit_order_cli.errors import InsufficientBalanceError, ValidationError
from limit_order_cli.orders import SignedOrder, compact_signature
from limit_order_cli.trading import decode_revert_error, encode_fill_order, execute_fill, simulate_fill
from limit_order_cli.trading.fill import FILL_ORDER_TYPES, build_order_struct, describe_order
from tests.conftest import MAKER_ADDRESS, TAKER_ADDRESS


def error_data(signature: str, types=(), args=()) -> str:
    return to_hex(keccak(text=signature)[:4] + abi_encode(list(types), list(args)))


class TestEncodeFillOrder:
    """Tests for fillOrder calldata."""

    def test_calldata_layout(self, signed_order):
        data = encode_fill_order(signed_order, signed_order.order.taking_amount)

        selector = keccak(text="fillOrder((uint256,uint256,uint256,uint256,uint256,uint256,uint256,uint256),bytes32,bytes32,uint256,uint256)")[:4]
        assert data.startswith(to_hex(selector))

        order, r, vs, amount, taker_traits = abi_decode(FILL_ORDER_TYPES, bytes.fromhex(data[10:]))
        assert order == build_order_struct(signed_order.order)
        assert order[1] == int(MAKER_ADDRESS, 16)
        expected_r, expected_vs = compact_signature(signed_order.signature)
        assert to_hex(r) == expected_r
        assert to_hex(vs) == expected_vs
        assert amount == signed_order.order.taking_amount
        assert taker_traits == 0


class TestDecodeRevertError:
    """Tests for decode_revert_error."""

    def test_known_error(self):
        assert decode_revert_error(error_data("BadSignature()")) == "BadSignature()"

    def test_selector_case_insensitive(self):
        assert decode_revert_error(error_data("OrderExpired()").upper().replace("0X", "0x")) == "OrderExpired()"

    def test_error_string(self):
        data = error_data("Error(string)", ["string"], ["not enough"])
        assert decode_revert_error(data) == "Error(not enough)"

    def test_panic(self):
        assert decode_revert_error(error_data("Panic(uint256)", ["uint256"], [17])) == "Panic(17)"

    def test_unknown_selector(self):
        assert decode_revert_error("0xdeadbeef") == "Unknown error with selector 0xdeadbeef"

    @pytest.mark.parametrize("data", [None, "", "0x"])
    def test_no_data(self, data):
        assert decode_revert_error(data) == "Unknown error (no revert data)"


class TestDescribeOrder:
    """Tests for describe_order."""

    def test_unknown_asset(self, signed_order, reporter):
        data = signed_order.to_json()
        data["order"]["makerAsset"] = "0x" + "12" * 20
        with pytest.raises(ValidationError, match="Unknown maker asset"):
            describe_order(SignedOrder.from_json(data), reporter)


class TestSimulateFill:
    """Tests for simulate_fill."""

    @pytest.mark.asyncio
    async def test_success(self, taker_chain, signed_order):
        result = await simulate_fill(taker_chain, signed_order, TAKER_ADDRESS.lower())

        assert result.success
        tx = taker_chain.call.await_args.args[0]
        assert tx["from"] == TAKER_ADDRESS
        assert tx["to"] == "0x111111125421cA6dc452d289314280a0f8842A65"
        assert tx["data"] == encode_fill_order(signed_order, signed_order.order.taking_amount)

    @pytest.mark.asyncio
    async def test_revert_decoded_from_node(self, taker_chain, signed_order):
        taker_chain.call = AsyncMock(side_effect=ContractLogicError("execution reverted"))
        taker_chain.fetch_revert_data = AsyncMock(return_value=error_data("BadSignature()"))

        result = await simulate_fill(taker_chain, signed_order, TAKER_ADDRESS)

        assert not result.success
        assert result.error == "BadSignature()"

    @pytest.mark.asyncio
    async def test_revert_data_from_exception(self, taker_chain, signed_order):
        exc = ContractLogicError("execution reverted", data=error_data("OrderExpired()"))
        taker_chain.call = AsyncMock(side_effect=exc)

        result = await simulate_fill(taker_chain, signed_order, TAKER_ADDRESS)

        assert result.error == "OrderExpired()"

    @pytest.mark.asyncio
    async def test_rejects_invalid_taker(self, taker_chain, signed_order):
        with pytest.raises(ValidationError, match="Invalid taker address"):
            await simulate_fill(taker_chain, signed_order, "0x1234")
        taker_chain.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_revert_data_uses_message(self, taker_chain, signed_order):
        taker_chain.call = AsyncMock(side_effect=ConnectionError("rpc down"))

        result = await simulate_fill(taker_chain, signed_order, TAKER_ADDRESS)

        assert not result.success
        assert result.error == "rpc down"


class TestExecuteFill:
    """Tests for execute_fill."""

    @pytest.mark.asyncio
    async def test_success_adds_gas_buffer(self, taker_chain, signed_order, reporter):
        result = await execute_fill(taker_chain, signed_order, reporter)

        assert result.success
        assert result.tx_hash == "0x" + "ab" * 32
        tx = taker_chain.send_transaction.await_args.args[0]
        assert tx["gas"] == 220_000
        assert tx["from"] == TAKER_ADDRESS
        assert tx["to"] == "0x111111125421cA6dc452d289314280a0f8842A65"
        taker_chain.ensure_token_approval.assert_awaited_once_with(
            TOKENS["BRLA"].address, TAKER_ADDRESS, signed_order.order.taking_amount
        )

    @pytest.mark.asyncio
    async def test_reverted_receipt(self, taker_chain, signed_order, reporter):
        taker_chain.wait_for_receipt = AsyncMock(return_value={"status": 0})

        result = await execute_fill(taker_chain, signed_order, reporter)

        assert not result.success
        assert result.error == "Transaction reverted"
        assert result.tx_hash == "0x" + "ab" * 32

    @pytest.mark.asyncio
    async def test_estimate_failure(self, taker_chain, signed_order, reporter):
        taker_chain.estimate_gas = AsyncMock(side_effect=ContractLogicError("execution reverted: BadSignature"))

        result = await execute_fill(taker_chain, signed_order, reporter)

        assert not result.success
        assert "BadSignature" in result.error
        assert result.tx_hash is None
        taker_chain.send_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insufficient_taker_balance(self, taker_chain, signed_order, reporter):
        taker_chain.validate_sufficient_balance = AsyncMock(return_value=BalanceCheck(sufficient=False, balance=0))

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await execute_fill(taker_chain, signed_order, reporter)

        assert exc_info.value.symbol == "BRLA"
        assert exc_info.value.required == "500 BRLA"
        taker_chain.ensure_token_approval.assert_not_awaited()
        taker_chain.send_transaction.assert_not_awaited()


def test_protocol_address_checksum():
    assert LIMIT_ORDER_PROTOCOL_ADDRESS.lower() == "0x111111125421ca6dc452d289314280a0f8842a65"


def test_revert_reason_keeps_brackets():
    data = error_data("Error(string)", ["string"], ["bad [/path] value"])
    assert decode_revert_error(data) == "Error(bad [/path] value)"
