"""
Console output operations.

    from conwrite import get_standard_output, print_ascii_sized, print_char

    out = get_standard_output()
    print_ascii_sized(out, b"hello ", 6)
    print_char(out, 0x1F600)

Every operation is a single, synchronous, fire-and-forget call into the
console platform. Nothing is validated and nothing is reported back: an
invalid handle, a non-ASCII byte on the ASCII paths, a length larger than the
buffer, or a value outside the Unicode scalar ranges all produce unspecified
console output. Handles are never cached; callers look one up and pass it to
every write.
"""

import struct

from .platform import ConsolePlatform, default_platform
from .types import STD_ERROR_HANDLE, STD_INPUT_HANDLE, STD_OUTPUT_HANDLE
from .utf16 import encode_scalar, pack_code_units


def _platform(platform: ConsolePlatform | None) -> ConsolePlatform:
    return platform if platform is not None else default_platform()


def get_standard_output(platform: ConsolePlatform | None = None) -> int:
    """Look up the handle of the process's standard output stream.

    The returned value is opaque and may be the platform's invalid-handle
    sentinel; it is not checked here.
    """
    return _platform(platform).get_std_handle(STD_OUTPUT_HANDLE)


def get_standard_error(platform: ConsolePlatform | None = None) -> int:
    """Look up the handle of the process's standard error stream."""
    return _platform(platform).get_std_handle(STD_ERROR_HANDLE)


def get_standard_input(platform: ConsolePlatform | None = None) -> int:
    """Look up the handle of the process's standard input stream."""
    return _platform(platform).get_std_handle(STD_INPUT_HANDLE)


def print_ascii_sized(
    handle: int,
    buffer: bytes,
    length: int,
    platform: ConsolePlatform | None = None,
) -> None:
    """Write `length` ASCII characters from `buffer` in one platform call.

    Args:
        handle: Console handle
        buffer: At least `length` bytes, each expected to be 0x00-0x7F
        length: Character count, at most 0xFFFFFFFF
        platform: Console platform (default: default_platform())
    """
    _platform(platform).write_console_a(handle, buffer, length)


def print_ascii_char(
    handle: int, char: int, platform: ConsolePlatform | None = None
) -> None:
    """Write a single ASCII character (expected to be at most 0x7F)."""
    buf = struct.pack("<B", char & 0xFF)
    _platform(platform).write_console_a(handle, buf, 1)


def print_char(handle: int, char: int, platform: ConsolePlatform | None = None) -> None:
    """Write one Unicode scalar value as UTF-16.

    Scalars up to 0xFFFF go out as one code unit, higher scalars as a
    surrogate pair. The platform receives the unit count (1 or 2), not the
    byte count.

    Args:
        handle: Console handle
        char: Scalar value in 0..0xD7FF or 0xE000..0x10FFFF
        platform: Console platform (default: default_platform())
    """
    units = encode_scalar(char)
    _platform(platform).write_console_w(handle, pack_code_units(units), len(units))


def print_text(handle: int, text: str, platform: ConsolePlatform | None = None) -> None:
    """Write a string one code point at a time through print_char."""
    platform = _platform(platform)
    for ch in text:
        print_char(handle, ord(ch), platform)
