"""Build, hash and sign limit orders."""

import logging
import secrets
from typing import Any, Dict

from eth_account.messages import encode_typed_data
from eth_utils import keccak, to_checksum_address, to_hex

from .models import Order, OrderParams, SignedOrder
from .traits import default_maker_traits

logger = logging.getLogger(__name__)

DOMAIN_NAME = "1inch Aggregation Router"
DOMAIN_VERSION = "6"

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

ORDER_TYPE = [
    {"name": "salt", "type": "uint256"},
    {"name": "maker", "type": "address"},
    {"name": "receiver", "type": "address"},
    {"name": "makerAsset", "type": "address"},
    {"name": "takerAsset", "type": "address"},
    {"name": "makingAmount", "type": "uint256"},
    {"name": "takingAmount", "type": "uint256"},
    {"name": "makerTraits", "type": "uint256"},
]

SALT_BITS = 96


def create_limit_order(params: OrderParams) -> Order:
    """Create an order with a random salt and default maker traits.

    Orders carry no extension, so the salt is purely random.
    """
    return Order(
        salt=secrets.randbits(SALT_BITS),
        maker=params.maker,
        receiver=params.receiver or params.maker,
        maker_asset=params.maker_asset,
        taker_asset=params.taker_asset,
        making_amount=params.making_amount,
        taking_amount=params.taking_amount,
        maker_traits=default_maker_traits(params.expiration_minutes),
    )


def build_typed_data(order: Order, chain_id: int, verifying_contract: str) -> Dict[str, Any]:
    """EIP-712 payload for an order."""
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            "Order": ORDER_TYPE,
        },
        "primaryType": "Order",
        "domain": {
            "name": DOMAIN_NAME,
            "version": DOMAIN_VERSION,
            "chainId": chain_id,
            "verifyingContract": to_checksum_address(verifying_contract),
        },
        "message": {
            "salt": order.salt,
            "maker": order.maker,
            "receiver": order.receiver,
            "makerAsset": order.maker_asset,
            "takerAsset": order.taker_asset,
            "makingAmount": order.making_amount,
            "takingAmount": order.taking_amount,
            "makerTraits": order.maker_traits,
        },
    }


def compute_order_hash(order: Order, chain_id: int, verifying_contract: str) -> str:
    """EIP-712 digest of the order, as the protocol computes it."""
    signable = encode_typed_data(full_message=build_typed_data(order, chain_id, verifying_contract))
    return to_hex(keccak(b"\x19" + signable.version + signable.header + signable.body))


def sign_order(order: Order, signer: Any, chain_id: int, verifying_contract: str) -> SignedOrder:
    """Sign an order with anything exposing sign_typed_data(payload) -> hex."""
    typed_data = build_typed_data(order, chain_id, verifying_contract)
    signature = signer.sign_typed_data(typed_data)
    order_hash = compute_order_hash(order, chain_id, verifying_contract)
    logger.debug(f"Signed order {order_hash}")
    return SignedOrder(order=order, signature=signature, order_hash=order_hash)


def generate_signed_order(params: OrderParams, signer: Any, chain_id: int, verifying_contract: str) -> SignedOrder:
    """Create and sign an order in one step."""
    return sign_order(create_limit_order(params), signer, chain_id, verifying_contract)
