"""Trading models for quotes, filler requests and fill results."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from ..config import TradingPair
from ..orders import SignedOrder, compact_signature


@dataclass(frozen=True)
class Quote:
    """Quoted conversion, amounts in base units."""
    pair: TradingPair
    input_amount: int
    output_amount: int
    rate: Decimal  # output units per source unit


@dataclass
class ExecuteRequest:
    """Body of POST {filler}/execute."""
    order: Dict[str, str]
    signature: str
    r: str
    vs: str

    @classmethod
    def from_signed_order(cls, signed: SignedOrder) -> "ExecuteRequest":
        r, vs = compact_signature(signed.signature)
        return cls(order=signed.order.to_json(), signature=signed.signature, r=r, vs=vs)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "order": dict(self.order),
            "signature": self.signature,
            "r": self.r,
            "vs": self.vs,
        }


@dataclass
class ExecuteResponse:
    """Response from the filler service."""
    success: bool
    message: Optional[str] = None
    tx_id: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ExecuteResponse":
        if not isinstance(payload, dict):
            return cls(success=False, error=f"Unexpected filler response: {payload!r}")

        def text(key: str) -> Optional[str]:
            value = payload.get(key)
            return str(value) if value is not None else None

        return cls(
            success=payload.get("success") is True,
            message=text("message"),
            tx_id=text("txId"),
            error=text("error"),
            details=text("details"),
            raw=payload,
        )


@dataclass
class FillResult:
    """Outcome of a simulated or executed fill."""
    success: bool
    tx_hash: Optional[str] = None
    error: Optional[str] = None
