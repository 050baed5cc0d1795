"""
conwrite: Minimal text output to the native console device.

This package writes character data to the process's standard output handle
using the console's two native encodings: single-byte ASCII and UTF-16 code
units. The UTF-16 path encodes one Unicode scalar value per call, emitting a
surrogate pair for code points above 0xFFFF.

    from conwrite import get_standard_output, print_ascii_sized, print_char

    out = get_standard_output()
    print_ascii_sized(out, b"ok ", 3)
    print_char(out, 0x1F600)

The console device is reached through a ConsolePlatform. Win32Console calls
kernel32 directly, StreamConsole works on any platform, and RecordingConsole
records calls for tests and transcripts:

    from conwrite import RecordingConsole, print_char

    rec = RecordingConsole()
    print_char(rec.get_std_handle(-11), 0x10000, platform=rec)
"""

from .console import (
    get_standard_output,
    get_standard_error,
    get_standard_input,
    print_ascii_sized,
    print_ascii_char,
    print_char,
    print_text,
)
from .platform import (
    ConsolePlatform,
    Win32Console,
    StreamConsole,
    create_platform,
    default_platform,
)
from .recording import RecordingConsole, wide_units
from .types import (
    ConsoleCall,
    STD_INPUT_HANDLE,
    STD_OUTPUT_HANDLE,
    STD_ERROR_HANDLE,
    MAX_WRITE_LENGTH,
    is_scalar_value,
)
from .utf16 import (
    encode_scalar,
    pack_code_units,
    unpack_code_units,
    decode_surrogate_pair,
)

__all__ = [
    # Operations
    "get_standard_output",
    "get_standard_error",
    "get_standard_input",
    "print_ascii_sized",
    "print_ascii_char",
    "print_char",
    "print_text",
    # Platforms
    "ConsolePlatform",
    "Win32Console",
    "StreamConsole",
    "RecordingConsole",
    "create_platform",
    "default_platform",
    "wide_units",
    # Types
    "ConsoleCall",
    "STD_INPUT_HANDLE",
    "STD_OUTPUT_HANDLE",
    "STD_ERROR_HANDLE",
    "MAX_WRITE_LENGTH",
    "is_scalar_value",
    # UTF-16
    "encode_scalar",
    "pack_code_units",
    "unpack_code_units",
    "decode_surrogate_pair",
]
