"""Limit order construction and signing."""

from .builder import (
    build_typed_data,
    compute_order_hash,
    create_limit_order,
    generate_signed_order,
    sign_order,
)
from .models import Order, OrderParams, SignedOrder, load_signed_order
from .signature import compact_signature, expand_compact_signature

__all__ = [
    "Order",
    "OrderParams",
    "SignedOrder",
    "load_signed_order",
    "build_typed_data",
    "compute_order_hash",
    "create_limit_order",
    "generate_signed_order",
    "sign_order",
    "compact_signature",
    "expand_compact_signature",
]
