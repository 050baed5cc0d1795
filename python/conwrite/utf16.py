"""
UTF-16 encoding of single Unicode scalar values.

Scalars up to 0xFFFF are stored as one code unit. Scalars from 0x10000 to
0x10FFFF are stored as a surrogate pair:

    v    = scalar - 0x10000          (20 bits)
    high = 0xD800 + v // 0x400       (top 10 bits)
    low  = 0xDC00 + (v & 0x3FF)      (bottom 10 bits)

Code units are laid out little-endian, the native order of the wide console
API. Inputs are not range checked; surrogate code points and values above
0x10FFFF produce unspecified units.
"""

import struct

from .types import (
    BMP_MAX,
    CODE_UNIT_MASK,
    HIGH_SURROGATE_BASE,
    LOW_SURROGATE_BASE,
    SUPPLEMENTARY_BASE,
    SURROGATE_MASK,
    SURROGATE_SPLIT,
)


def encode_scalar(char: int) -> tuple[int, ...]:
    """Encode a Unicode scalar value as UTF-16 code units.

    Args:
        char: Scalar value in 0..0xD7FF or 0xE000..0x10FFFF

    Returns:
        One code unit, or a (high, low) surrogate pair
    """
    if char <= BMP_MAX:
        return (char,)

    v = char - SUPPLEMENTARY_BASE
    high = v // SURROGATE_SPLIT
    low = v & SURROGATE_MASK
    return (HIGH_SURROGATE_BASE + high, LOW_SURROGATE_BASE + low)


def pack_code_units(units: tuple[int, ...]) -> bytes:
    """Serialize code units as consecutive little-endian uint16 values.

    Each unit is truncated to 16 bits, the width of its storage slot.
    """
    return struct.pack(f"<{len(units)}H", *(u & CODE_UNIT_MASK for u in units))


def unpack_code_units(data: bytes, count: int) -> tuple[int, ...]:
    """Read `count` little-endian code units from the start of `data`."""
    return struct.unpack_from(f"<{count}H", data)


def decode_surrogate_pair(high: int, low: int) -> int:
    """Recover the scalar value encoded by a surrogate pair."""
    return (
        SUPPLEMENTARY_BASE
        + ((high - HIGH_SURROGATE_BASE) << 10)
        + (low - LOW_SURROGATE_BASE)
    )
