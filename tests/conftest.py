"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_account import Account

from limit_order_cli.chain import ApprovalResult, BalanceCheck, ChainClient
from limit_order_cli.config import LIMIT_ORDER_PROTOCOL_ADDRESS, TOKENS, Settings
from limit_order_cli.orders import OrderParams, generate_signed_order
from limit_order_cli.reporter import Reporter

# Well-known development keys, never funded on a real network
MAKER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
MAKER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TAKER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
TAKER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


@pytest.fixture
def settings():
    """Settings with every endpoint configured and fixed-rate quotes."""
    return Settings(
        rpc_url="http://localhost:8545",
        filler_api_url="http://filler.test",
        maker_private_key=MAKER_KEY,
        taker_private_key=TAKER_KEY,
        quote_source="fixed",
    )


@pytest.fixture
def reporter():
    return Reporter(silent=True)


def make_chain(private_key=MAKER_KEY):
    """ChainClient with a mocked web3 and async-mocked network methods."""
    w3 = MagicMock()
    w3.provider.disconnect = AsyncMock()
    chain = ChainClient(
        "http://localhost:8545",
        137,
        LIMIT_ORDER_PROTOCOL_ADDRESS,
        account=Account.from_key(private_key),
        w3=w3,
    )
    chain.validate_sufficient_balance = AsyncMock(return_value=BalanceCheck(sufficient=True, balance=10 ** 30))
    chain.ensure_token_approval = AsyncMock(return_value=ApprovalResult(approved=True))
    chain.call = AsyncMock(return_value=b"")
    chain.estimate_gas = AsyncMock(return_value=200_000)
    chain.send_transaction = AsyncMock(return_value="0x" + "ab" * 32)
    chain.wait_for_receipt = AsyncMock(return_value={"status": 1})
    chain.fetch_revert_data = AsyncMock(return_value=None)
    return chain


@pytest.fixture
def maker_chain():
    return make_chain(MAKER_KEY)


@pytest.fixture
def taker_chain():
    return make_chain(TAKER_KEY)


@pytest.fixture
def signed_order(maker_chain):
    """100 USDC -> 500 BRLA order signed by the maker."""
    params = OrderParams(
        maker_asset=TOKENS["USDC"].address,
        taker_asset=TOKENS["BRLA"].address,
        making_amount=100 * 10 ** 6,
        taking_amount=500 * 10 ** 18,
        maker=MAKER_ADDRESS,
    )
    return generate_signed_order(params, maker_chain, 137, LIMIT_ORDER_PROTOCOL_ADDRESS)
