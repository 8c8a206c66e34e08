"""MakerTraits bit packing for the v4 limit order protocol.

Layout of the uint256, low bits first:

    [0, 80)     low 80 bits of the allowed sender address (0 = anyone)
    [80, 120)   expiration timestamp
    [120, 160)  nonce or epoch
    [160, 200)  series
    247..255    flags
"""

import secrets
import time
from typing import Optional

from ..errors import ValidationError

NO_PARTIAL_FILLS_FLAG = 255
ALLOW_MULTIPLE_FILLS_FLAG = 254
PRE_INTERACTION_CALL_FLAG = 252
POST_INTERACTION_CALL_FLAG = 251
NEED_CHECK_EPOCH_MANAGER_FLAG = 250
HAS_EXTENSION_FLAG = 249
USE_PERMIT2_FLAG = 248
UNWRAP_WETH_FLAG = 247

UINT_40_MAX = (1 << 40) - 1
UINT_80_MAX = (1 << 80) - 1

EXPIRATION_OFFSET = 80
NONCE_OFFSET = 120
SERIES_OFFSET = 160


def _check_uint40(name: str, value: int):
    if value < 0 or value > UINT_40_MAX:
        raise ValidationError(f"{name} must fit in 40 bits, got {value}")


def build_maker_traits(
    expiration: int = 0,
    nonce: int = 0,
    series: int = 0,
    allowed_sender: Optional[str] = None,
    allow_multiple_fills: bool = False,
    no_partial_fills: bool = False,
    has_extension: bool = False,
    use_permit2: bool = False,
    unwrap_weth: bool = False,
) -> int:
    """Pack maker traits into an integer."""
    _check_uint40("expiration", expiration)
    _check_uint40("nonce", nonce)
    _check_uint40("series", series)

    # Bit invalidator mode tracks fills per nonce, so the nonce cannot be zero
    if (no_partial_fills or not allow_multiple_fills) and nonce == 0:
        raise ValidationError("Nonce required when partial or multiple fills are disallowed")

    traits = (
        series << SERIES_OFFSET
        | nonce << NONCE_OFFSET
        | expiration << EXPIRATION_OFFSET
    )
    if allowed_sender:
        traits |= int(allowed_sender, 16) & UINT_80_MAX

    flags = (
        (no_partial_fills, NO_PARTIAL_FILLS_FLAG),
        (allow_multiple_fills, ALLOW_MULTIPLE_FILLS_FLAG),
        (has_extension, HAS_EXTENSION_FLAG),
        (use_permit2, USE_PERMIT2_FLAG),
        (unwrap_weth, UNWRAP_WETH_FLAG),
    )
    for enabled, bit in flags:
        if enabled:
            traits |= 1 << bit
    return traits


def expiration_of(traits: int) -> int:
    return (traits >> EXPIRATION_OFFSET) & UINT_40_MAX


def nonce_of(traits: int) -> int:
    return (traits >> NONCE_OFFSET) & UINT_40_MAX


def random_nonce() -> int:
    """Random non-zero 40-bit nonce."""
    return secrets.randbelow(UINT_40_MAX) + 1


def default_maker_traits(expiration_minutes: int, now: Optional[int] = None) -> int:
    """Default traits: expiring after the given minutes, random nonce."""
    if now is None:
        now = int(time.time())
    return build_maker_traits(expiration=now + expiration_minutes * 60, nonce=random_nonce())
