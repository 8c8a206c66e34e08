"""Blockchain access for the limit order protocol."""

from .abi import ERC20_ABI, LIMIT_ORDER_PROTOCOL_ABI
from .client import ApprovalResult, BalanceCheck, ChainClient, MAX_UINT256, account_from_key

__all__ = [
    "ERC20_ABI",
    "LIMIT_ORDER_PROTOCOL_ABI",
    "ApprovalResult",
    "BalanceCheck",
    "ChainClient",
    "MAX_UINT256",
    "account_from_key",
]
