"""Utility functions."""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Optional, Union

from .errors import ValidationError


def format_token_amount(amount: int, decimals: int, symbol: Optional[str] = None) -> str:
    """Format base units as a decimal string with trailing zeros stripped."""
    divisor = 10 ** decimals
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), divisor)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""

    formatted = f"{sign}{whole}.{fraction_str}" if fraction_str else f"{sign}{whole}"
    return f"{formatted} {symbol}" if symbol else formatted


def parse_units(value: Union[str, int, Decimal], decimals: int, round_down: bool = False) -> int:
    """Parse a decimal amount into integer base units.

    Raises ValidationError for malformed input, or when the value carries more
    fractional digits than the token supports and round_down is not set.
    """
    text = str(value).strip()
    if not text:
        raise ValidationError("Amount is required.")

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {text!r}")

    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {text!r}")

    with localcontext() as ctx:
        ctx.prec = 120
        scaled = amount.scaleb(decimals)
        integral = scaled.to_integral_value(rounding=ROUND_DOWN)
    if integral != scaled and not round_down:
        raise ValidationError(
            f"Amount {text} has more than {decimals} decimal places."
        )
    return int(integral)


def to_int(value: Union[str, int]) -> int:
    """Convert a decimal or 0x-prefixed hex string to int."""
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    except ValueError:
        raise ValidationError(f"Invalid integer value: {text!r}")


def normalize_private_key(key: str) -> str:
    """Return the key with a 0x prefix."""
    key = key.strip()
    return key if key.startswith("0x") else f"0x{key}"


def strip_0x(value: str) -> str:
    """Remove a leading 0x, if present."""
    return value[2:] if value[:2].lower() == "0x" else value
