"""Compact (r, vs) signature encoding used by fillOrder."""

from typing import Tuple

from ..errors import ValidationError
from ..utils import strip_0x

SIGNATURE_HEX_LENGTH = 130
HIGH_BIT = 1 << 255


def compact_signature(signature: str) -> Tuple[str, str]:
    """Split a 65-byte (r, s, v) signature into (r, vs).

    vs is s with its top bit set when v == 28, and s unchanged otherwise.
    """
    sig = strip_0x(signature)
    if len(sig) != SIGNATURE_HEX_LENGTH:
        raise ValidationError(
            f"Invalid signature length: expected {SIGNATURE_HEX_LENGTH} hex chars, got {len(sig)}"
        )

    try:
        r = int(sig[0:64], 16)
        s = int(sig[64:128], 16)
        v = int(sig[128:130], 16)
    except ValueError:
        raise ValidationError("Signature is not valid hex")

    vs = s | HIGH_BIT if v == 28 else s
    return f"0x{r:064x}", f"0x{vs:064x}"


def expand_compact_signature(r: str, vs: str) -> Tuple[int, int, int]:
    """Recover (r, s, v) from a compact signature."""
    vs_int = int(strip_0x(vs), 16)
    v = 28 if vs_int & HIGH_BIT else 27
    return int(strip_0x(r), 16), vs_int & (HIGH_BIT - 1), v
