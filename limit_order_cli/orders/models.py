"""Order data models and their JSON form."""

import json
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_utils import is_address, to_checksum_address

from ..errors import ValidationError
from ..utils import to_int


def _checksum(name: str, value: str) -> str:
    if not isinstance(value, str) or not is_address(value.lower()):
        raise ValidationError(f"Invalid {name} address: {value!r}")
    return to_checksum_address(value)


@dataclass(frozen=True)
class Order:
    """Limit order struct. Immutable; the signature covers every field."""
    salt: int
    maker: str
    receiver: str
    maker_asset: str
    taker_asset: str
    making_amount: int
    taking_amount: int
    maker_traits: int

    def __post_init__(self):
        if self.making_amount <= 0 or self.taking_amount <= 0:
            raise ValidationError("makingAmount and takingAmount must be positive integers.")
        for name in ("maker", "receiver", "maker_asset", "taker_asset"):
            object.__setattr__(self, name, _checksum(name, getattr(self, name)))

    def to_json(self) -> Dict[str, str]:
        """Wire form: numbers as decimal strings, addresses as hex."""
        return {
            "salt": str(self.salt),
            "maker": self.maker,
            "receiver": self.receiver,
            "makerAsset": self.maker_asset,
            "takerAsset": self.taker_asset,
            "makingAmount": str(self.making_amount),
            "takingAmount": str(self.taking_amount),
            "makerTraits": str(self.maker_traits),
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Order":
        try:
            return cls(
                salt=to_int(data["salt"]),
                maker=data["maker"],
                receiver=data["receiver"],
                maker_asset=data["makerAsset"],
                taker_asset=data["takerAsset"],
                making_amount=to_int(data["makingAmount"]),
                taking_amount=to_int(data["takingAmount"]),
                maker_traits=to_int(data["makerTraits"]),
            )
        except KeyError as e:
            raise ValidationError(f"Order is missing field {e.args[0]}")


@dataclass(frozen=True)
class OrderParams:
    """Inputs for building an order."""
    maker_asset: str
    taker_asset: str
    making_amount: int
    taking_amount: int
    maker: str
    receiver: Optional[str] = None
    expiration_minutes: int = 60 * 24


@dataclass(frozen=True)
class SignedOrder:
    """An order with its signature and EIP-712 hash."""
    order: Order
    signature: str
    order_hash: str

    def to_json(self) -> Dict[str, Any]:
        return {
            "orderHash": self.order_hash,
            "signature": self.signature,
            "order": self.order.to_json(),
        }

    def dumps(self) -> str:
        return json.dumps(self.to_json(), indent=2)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "SignedOrder":
        if not isinstance(data, dict) or "order" not in data or "signature" not in data:
            raise ValidationError("Order JSON must contain 'order' and 'signature'")
        return cls(
            order=Order.from_json(data["order"]),
            signature=data["signature"],
            order_hash=data.get("orderHash", ""),
        )


def load_signed_order(path: str) -> SignedOrder:
    """Read an order JSON file, or standard input when path is '-'."""
    try:
        if path == "-":
            data = json.load(sys.stdin)
        else:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Order JSON is malformed: {e}")
    except OSError as e:
        raise ValidationError(f"Cannot read order file {path}: {e}")
    return SignedOrder.from_json(data)
