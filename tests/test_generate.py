"""Tests for the maker order pipeline."""

from unittest.mock import AsyncMock

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import to_checksum_address

from limit_order_cli.chain import ApprovalResult, BalanceCheck
from limit_order_cli.config import DEFAULT_PAIR, FIXED_RATES, TOKENS, VALID_PAIRS
from limit_order_cli.errors import InsufficientBalanceError, ValidationError
from limit_order_cli.orders import build_typed_data
from limit_order_cli.orders.traits import expiration_of
from limit_order_cli.trading import FixedRateQuoteProvider, GenerateOrderOptions, generate_order
from limit_order_cli.trading.generate import approve_spending, check_balance, parse_amount, request_quote
from tests.conftest import MAKER_ADDRESS, make_chain


class TestParseAmount:
    """Tests for parse_amount."""

    def test_parses(self):
        assert parse_amount("100", TOKENS["USDC"]) == 100 * 10 ** 6

    @pytest.mark.parametrize("amount, message", [
        ("", "Amount is required"),
        ("0", "greater than zero"),
        ("-1", "greater than zero"),
    ])
    def test_rejects(self, amount, message):
        with pytest.raises(ValidationError, match=message):
            parse_amount(amount, TOKENS["USDC"])


class TestGenerateOrder:
    """Tests for generate_order."""

    @pytest.mark.asyncio
    async def test_order_matches_quote(self, maker_chain, settings, reporter):
        options = GenerateOrderOptions(amount="100", pair=DEFAULT_PAIR, expiration_minutes=30)

        result = await generate_order(options, maker_chain, FixedRateQuoteProvider(FIXED_RATES), settings, reporter)

        order = result.order.order
        assert result.maker_address == MAKER_ADDRESS
        assert order.maker == MAKER_ADDRESS
        assert order.receiver == MAKER_ADDRESS
        assert order.maker_asset == to_checksum_address(TOKENS["USDC"].address)
        assert order.taker_asset == to_checksum_address(TOKENS["BRLA"].address)
        assert order.to_json()["makingAmount"] == "100000000"
        assert order.to_json()["takingAmount"] == str(500 * 10 ** 18)
        assert order.making_amount == result.quote.input_amount
        assert order.taking_amount == result.quote.output_amount
        assert expiration_of(order.maker_traits) > 0

        typed = build_typed_data(order, settings.chain_id, settings.protocol_address)
        signable = encode_typed_data(full_message=typed)
        assert Account.recover_message(signable, signature=result.order.signature) == MAKER_ADDRESS

        maker_chain.validate_sufficient_balance.assert_awaited_once_with(
            TOKENS["USDC"].address, MAKER_ADDRESS, 100 * 10 ** 6
        )
        maker_chain.ensure_token_approval.assert_awaited_once_with(
            TOKENS["USDC"].address, MAKER_ADDRESS, 100 * 10 ** 6
        )

    @pytest.mark.asyncio
    async def test_insufficient_balance_stops_before_approval_and_signing(self, maker_chain, settings, reporter):
        maker_chain.validate_sufficient_balance = AsyncMock(
            return_value=BalanceCheck(sufficient=False, balance=5 * 10 ** 6)
        )
        maker_chain.sign_typed_data = lambda typed: pytest.fail("order must not be signed")
        options = GenerateOrderOptions(amount="100", pair=DEFAULT_PAIR)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await generate_order(options, maker_chain, FixedRateQuoteProvider(FIXED_RATES), settings, reporter)

        assert exc_info.value.required == "100 USDC"
        assert exc_info.value.available == "5 USDC"
        maker_chain.ensure_token_approval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_skip_approval(self, maker_chain, settings, reporter):
        options = GenerateOrderOptions(amount="10", pair=VALID_PAIRS[2], skip_approval=True)

        result = await generate_order(options, maker_chain, FixedRateQuoteProvider(FIXED_RATES), settings, reporter)

        maker_chain.ensure_token_approval.assert_not_awaited()
        assert result.order.order.taking_amount == 2 * 10 ** 6

    @pytest.mark.asyncio
    async def test_invalid_amount_never_quotes(self, maker_chain, settings, reporter):
        provider = AsyncMock()
        options = GenerateOrderOptions(amount="abc", pair=DEFAULT_PAIR)

        with pytest.raises(ValidationError):
            await generate_order(options, maker_chain, provider, settings, reporter)

        provider.get_quote.assert_not_awaited()
        maker_chain.validate_sufficient_balance.assert_not_awaited()


class TestSteps:
    """Tests for the individual pipeline steps."""

    @pytest.mark.asyncio
    async def test_request_quote_rejects_zero_output(self, reporter):
        provider = FixedRateQuoteProvider(FIXED_RATES)
        # 1e-18 BRLA converts to less than one USDC base unit
        with pytest.raises(ValidationError, match="greater than zero"):
            await request_quote(provider, VALID_PAIRS[2], "0.000000000000000001", reporter)

    @pytest.mark.asyncio
    async def test_check_balance_returns_balance(self, maker_chain, reporter):
        balance = await check_balance(maker_chain, TOKENS["USDC"], MAKER_ADDRESS, 1, reporter)
        assert balance == 10 ** 30

    @pytest.mark.asyncio
    async def test_approve_spending_reports_tx(self, maker_chain, reporter):
        maker_chain.ensure_token_approval = AsyncMock(return_value=ApprovalResult(approved=True, tx_hash="0x01"))
        assert await approve_spending(maker_chain, TOKENS["USDC"], MAKER_ADDRESS, 1, reporter) == "0x01"


class TestEnsureTokenApproval:
    """Tests for ChainClient.ensure_token_approval."""

    @pytest.mark.asyncio
    async def test_sufficient_allowance_sends_nothing(self):
        chain = make_chain()
        del chain.ensure_token_approval  # use the real method
        chain.get_token_allowance = AsyncMock(return_value=100)
        chain.approve_token = AsyncMock()

        result = await chain.ensure_token_approval(TOKENS["USDC"].address, MAKER_ADDRESS, 100)

        assert result == ApprovalResult(approved=True)
        chain.approve_token.assert_not_awaited()
        chain.get_token_allowance.assert_awaited_once_with(TOKENS["USDC"].address, MAKER_ADDRESS, chain.spender)

    @pytest.mark.asyncio
    async def test_low_allowance_approves_protocol(self):
        chain = make_chain()
        del chain.ensure_token_approval  # use the real method
        chain.get_token_allowance = AsyncMock(return_value=99)
        chain.approve_token = AsyncMock(return_value="0xfeed")

        result = await chain.ensure_token_approval(TOKENS["USDC"].address, MAKER_ADDRESS, 100)

        assert result.tx_hash == "0xfeed"
        chain.approve_token.assert_awaited_once_with(TOKENS["USDC"].address, chain.spender)
