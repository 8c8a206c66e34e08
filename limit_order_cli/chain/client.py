"""Polygon client wrapper: ERC-20 reads, approvals, transactions."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address, to_hex
from web3 import AsyncHTTPProvider, AsyncWeb3

from ..config import Settings
from ..errors import ConfigError
from .abi import ERC20_ABI

logger = logging.getLogger(__name__)

MAX_UINT256 = 2 ** 256 - 1


def account_from_key(private_key: str) -> LocalAccount:
    """Load a signing account, raising ConfigError for a malformed key."""
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Invalid private key: {e}")


@dataclass
class BalanceCheck:
    """Result of comparing a balance against a required amount."""
    sufficient: bool
    balance: int


@dataclass
class ApprovalResult:
    """Result of the allowance check; tx_hash is set only when approve was sent."""
    approved: bool
    tx_hash: Optional[str] = None


class ChainClient:
    """Read client bound to one RPC endpoint, with an optional signing account."""

    def __init__(
        self,
        rpc_url: str,
        chain_id: int,
        spender: str,
        account: Optional[LocalAccount] = None,
        w3: Optional[AsyncWeb3] = None,
        rpc_timeout: float = 10.0,
        receipt_timeout: float = 120.0,
    ):
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.spender = to_checksum_address(spender)
        self.account = account
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self._rpc_timeout = rpc_timeout
        self._receipt_timeout = receipt_timeout

    @classmethod
    def read_only(cls, settings: Settings) -> "ChainClient":
        """Client without signing capability."""
        return cls(
            settings.require("rpc_url"),
            settings.chain_id,
            settings.protocol_address,
            rpc_timeout=settings.http_timeout,
        )

    @classmethod
    def for_private_key(cls, settings: Settings, private_key: str) -> "ChainClient":
        """Client that signs with the given key."""
        return cls(
            settings.require("rpc_url"),
            settings.chain_id,
            settings.protocol_address,
            account=account_from_key(private_key),
            rpc_timeout=settings.http_timeout,
        )

    @property
    def address(self) -> str:
        return self._signer().address

    def _signer(self) -> LocalAccount:
        if self.account is None:
            raise RuntimeError("Chain client has no signing account")
        return self.account

    def _erc20(self, token_address: str) -> Any:
        return self.w3.eth.contract(address=to_checksum_address(token_address), abi=ERC20_ABI)

    async def close(self):
        """Release the provider's HTTP session."""
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    async def __aenter__(self) -> "ChainClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # Token operations

    async def get_token_balance(self, token_address: str, owner: str) -> int:
        """ERC-20 balanceOf."""
        balance = await self._erc20(token_address).functions.balanceOf(
            to_checksum_address(owner)
        ).call()
        logger.debug(f"balanceOf({owner}) on {token_address} = {balance}")
        return int(balance)

    async def get_token_allowance(self, token_address: str, owner: str, spender: str) -> int:
        """ERC-20 allowance."""
        allowance = await self._erc20(token_address).functions.allowance(
            to_checksum_address(owner), to_checksum_address(spender)
        ).call()
        logger.debug(f"allowance({owner}, {spender}) on {token_address} = {allowance}")
        return int(allowance)

    async def approve_token(self, token_address: str, spender: str, amount: int = MAX_UINT256) -> str:
        """Send approve() and wait for the receipt. Returns the tx hash."""
        signer = self._signer()
        tx = await self._erc20(token_address).functions.approve(
            to_checksum_address(spender), amount
        ).build_transaction({
            "from": signer.address,
            "chainId": self.chain_id,
            "nonce": await self.w3.eth.get_transaction_count(signer.address),
        })
        tx_hash = await self._send_signed(tx)
        logger.info(f"Approval sent: {tx_hash}")
        await self.wait_for_receipt(tx_hash)
        return tx_hash

    async def validate_sufficient_balance(self, token_address: str, owner: str, required: int) -> BalanceCheck:
        """Check that owner holds at least the required amount."""
        balance = await self.get_token_balance(token_address, owner)
        return BalanceCheck(sufficient=balance >= required, balance=balance)

    async def ensure_token_approval(self, token_address: str, owner: str, required: int) -> ApprovalResult:
        """Approve the protocol contract unless its allowance already covers required."""
        allowance = await self.get_token_allowance(token_address, owner, self.spender)
        if allowance >= required:
            return ApprovalResult(approved=True)

        logger.info(f"Allowance {allowance} below {required}, approving {self.spender}")
        tx_hash = await self.approve_token(token_address, self.spender)
        return ApprovalResult(approved=True, tx_hash=tx_hash)

    # Signing

    def sign_typed_data(self, typed_data: Dict[str, Any]) -> str:
        """Sign an EIP-712 payload, returning a 0x-prefixed 65-byte signature."""
        signable = encode_typed_data(full_message=typed_data)
        signed = self._signer().sign_message(signable)
        return to_hex(signed.signature)

    # Transactions

    async def call(self, tx: Dict[str, Any]) -> bytes:
        """Read-only eth_call against the latest block."""
        return await self.w3.eth.call(tx)

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return await self.w3.eth.estimate_gas(tx)

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        """Fill nonce, chain id and gas price, sign locally and broadcast."""
        signer = self._signer()
        tx = dict(tx)
        tx.setdefault("from", signer.address)
        tx.setdefault("chainId", self.chain_id)
        if "nonce" not in tx:
            tx["nonce"] = await self.w3.eth.get_transaction_count(signer.address)
        if "gasPrice" not in tx and "maxFeePerGas" not in tx:
            tx["gasPrice"] = await self.w3.eth.gas_price
        return await self._send_signed(tx)

    async def _send_signed(self, tx: Dict[str, Any]) -> str:
        signed = self._signer().sign_transaction(tx)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """Poll until the transaction is mined."""
        return await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self._receipt_timeout)

    async def _json_rpc_request(self, method: str, params: List[Any]) -> Dict[str, Any]:
        """Make a raw JSON-RPC request, returning the full response body."""
        timeout = aiohttp.ClientTimeout(total=self._rpc_timeout)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(
                self.rpc_url,
                headers={"content-type": "application/json"},
                json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
            ) as response:
                return await response.json(content_type=None)

    async def fetch_revert_data(self, tx: Dict[str, Any]) -> Optional[str]:
        """Re-run eth_call directly to recover revert data the library error omitted."""
        params = {k: v for k, v in tx.items() if k in ("from", "to", "data")}
        try:
            body = await self._json_rpc_request("eth_call", [params, "latest"])
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Revert data request failed: {e}")
            return None

        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            return None

        data = error.get("data")
        # Some providers nest the payload one level deeper
        if isinstance(data, dict):
            data = data.get("data")
        return data if isinstance(data, str) else None
