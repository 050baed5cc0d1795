"""
Shared constants and record types for console output.

The stream selectors and limits mirror the Win32 console API so the same
values flow through every backend, including the portable and recording ones.

References:
- https://learn.microsoft.com/en-us/windows/console/getstdhandle
- https://learn.microsoft.com/en-us/windows/console/writeconsole
- The Unicode Standard, section 3.9 (UTF-16 encoding form)
"""

from dataclasses import dataclass

# =============================================================================
# Constants
# =============================================================================

# GetStdHandle selectors ((DWORD)-10, -11, -12)
STD_INPUT_HANDLE = -10
STD_OUTPUT_HANDLE = -11
STD_ERROR_HANDLE = -12

# Returned by GetStdHandle on failure ((HANDLE)-1)
INVALID_HANDLE_VALUE = -1

# WriteConsole counts and GetStdHandle selectors are DWORDs
DWORD_MASK = 0xFFFFFFFF
MAX_WRITE_LENGTH = DWORD_MASK

# UTF-16 encoding form
BMP_MAX = 0xFFFF  # Last scalar that fits in one code unit
SUPPLEMENTARY_BASE = 0x10000
UNICODE_MAX = 0x10FFFF
HIGH_SURROGATE_BASE = 0xD800
LOW_SURROGATE_BASE = 0xDC00
LOW_SURROGATE_MAX = 0xDFFF
SURROGATE_SPLIT = 0x400  # 2**10, divisor for the high 10 bits
SURROGATE_MASK = 0x3FF  # Low 10 bits
CODE_UNIT_MASK = 0xFFFF
CODE_UNIT_SIZE = 2  # Bytes per code unit

# Platform primitive names, as recorded in ConsoleCall.primitive
WRITE_CONSOLE_A = "WriteConsoleA"
WRITE_CONSOLE_W = "WriteConsoleW"


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class ConsoleCall:
    """One write issued against a console platform.

    Attributes:
        primitive: WRITE_CONSOLE_A or WRITE_CONSOLE_W
        handle: Handle the write was issued against
        payload: Bytes handed to the primitive (ASCII bytes, or UTF-16LE units)
        length: Character count for WriteConsoleA, code unit count for
            WriteConsoleW. Never a byte count on the wide path.
    """

    primitive: str
    handle: int
    payload: bytes
    length: int

    @property
    def is_wide(self) -> bool:
        return self.primitive == WRITE_CONSOLE_W


def is_scalar_value(value: int) -> bool:
    """Check if an integer is a Unicode scalar value.

    The write paths never call this; it exists for callers that want to
    check their input before handing it over.
    """
    return 0 <= value < HIGH_SURROGATE_BASE or LOW_SURROGATE_MAX < value <= UNICODE_MAX
