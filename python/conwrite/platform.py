"""
Console platform backends.

The write operations in conwrite.console never talk to the operating system
directly. They go through a ConsolePlatform, which exposes the three Win32
primitives the operations need:

    GetStdHandle(selector) -> handle
    WriteConsoleA(handle, buffer, length, NULL, NULL) -> status
    WriteConsoleW(handle, buffer, unit_count, NULL, NULL) -> status

Win32Console binds the real kernel32 functions. StreamConsole provides the
same contract on top of binary streams so the package works on any platform.
Statuses are returned to the caller, which is free to ignore them.
"""

import ctypes
import logging
import os
import sys
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import BinaryIO

from .types import (
    CODE_UNIT_SIZE,
    DWORD_MASK,
    INVALID_HANDLE_VALUE,
    MAX_WRITE_LENGTH,
    STD_ERROR_HANDLE,
    STD_INPUT_HANDLE,
    STD_OUTPUT_HANDLE,
)

logger = logging.getLogger(__name__)

# Environment variable selecting the default backend
BACKEND_ENV_VAR = "CONWRITE_BACKEND"
BACKEND_AUTO = "auto"
BACKEND_WIN32 = "win32"
BACKEND_STREAM = "stream"
BACKENDS = (BACKEND_AUTO, BACKEND_WIN32, BACKEND_STREAM)

# All-ones pointer value, how (HANDLE)-1 reads back through ctypes
POINTER_MASK = (1 << (8 * ctypes.sizeof(ctypes.c_void_p))) - 1


class ConsolePlatform(ABC):
    """Abstract console device.

    Implementations must not validate their arguments beyond what the
    underlying device does; handles, lengths and buffer contents are the
    caller's responsibility.
    """

    @abstractmethod
    def get_std_handle(self, selector: int) -> int:
        """Look up the handle for a standard stream selector."""
        ...

    @abstractmethod
    def write_console_a(self, handle: int, buffer: bytes, length: int) -> int:
        """Write `length` single-byte characters from `buffer`.

        Returns:
            Nonzero on success, 0 on failure
        """
        ...

    @abstractmethod
    def write_console_w(self, handle: int, buffer: bytes, unit_count: int) -> int:
        """Write `unit_count` UTF-16LE code units from `buffer`.

        Returns:
            Nonzero on success, 0 on failure
        """
        ...


def _load_kernel32():
    """Load kernel32 and declare the console function prototypes."""
    from ctypes import wintypes

    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)

    kernel32.GetStdHandle.argtypes = [wintypes.DWORD]
    kernel32.GetStdHandle.restype = wintypes.HANDLE

    # Buffers are passed as c_void_p so bytes work for both variants
    write_args = [
        wintypes.HANDLE,
        ctypes.c_void_p,
        wintypes.DWORD,
        ctypes.POINTER(wintypes.DWORD),
        ctypes.c_void_p,
    ]
    for func in (kernel32.WriteConsoleA, kernel32.WriteConsoleW):
        func.argtypes = write_args
        func.restype = wintypes.BOOL
    return kernel32


class Win32Console(ConsolePlatform):
    """Console platform backed by kernel32.

    Args:
        kernel32: Object exposing GetStdHandle, WriteConsoleA, WriteConsoleW
            and GetLastError with the Win32 calling shapes. Defaults to the
            real kernel32 library.

    Raises:
        OSError: If no kernel32 is given on a platform without the Win32
            console API
    """

    def __init__(self, kernel32=None):
        if kernel32 is None:
            if sys.platform != "win32":
                raise OSError(
                    f"Win32 console API is not available on platform '{sys.platform}'"
                )
            kernel32 = _load_kernel32()
            # GetLastError is unreliable through ctypes; use the saved copy
            self._last_error = ctypes.get_last_error
        else:
            self._last_error = kernel32.GetLastError
        self._kernel32 = kernel32

    def get_std_handle(self, selector: int) -> int:
        # DWORD parameter: -11 is passed as 0xFFFFFFF5
        handle = self._kernel32.GetStdHandle(selector & DWORD_MASK)
        if handle is None:
            return 0
        # HANDLE comes back unsigned; (HANDLE)-1 is all ones
        if handle == POINTER_MASK:
            return INVALID_HANDLE_VALUE
        return handle

    def write_console_a(self, handle: int, buffer: bytes, length: int) -> int:
        status = self._kernel32.WriteConsoleA(
            handle, bytes(buffer), length & MAX_WRITE_LENGTH, None, None
        )
        if not status:
            logger.debug(
                "WriteConsoleA failed on handle 0x%x: error %d",
                handle,
                self._last_error(),
            )
        return status

    def write_console_w(self, handle: int, buffer: bytes, unit_count: int) -> int:
        status = self._kernel32.WriteConsoleW(
            handle, bytes(buffer), unit_count & MAX_WRITE_LENGTH, None, None
        )
        if not status:
            logger.debug(
                "WriteConsoleW failed on handle 0x%x: error %d",
                handle,
                self._last_error(),
            )
        return status


class StreamConsole(ConsolePlatform):
    """Console platform backed by binary streams.

    Standard stream selectors map to the POSIX descriptor numbers (stdin 0,
    stdout 1, stderr 2). Wide writes are decoded as UTF-16LE and re-encoded
    to `encoding` before they reach the stream. Streams left as None resolve
    to the current sys.std* buffers at write time.
    """

    HANDLES = {
        STD_INPUT_HANDLE: 0,
        STD_OUTPUT_HANDLE: 1,
        STD_ERROR_HANDLE: 2,
    }

    def __init__(
        self,
        *,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
        encoding: str = "utf-8",
    ):
        self._stdout = stdout
        self._stderr = stderr
        self.encoding = encoding

    def _stream_for(self, handle: int) -> BinaryIO | None:
        if handle == 1:
            return self._stdout if self._stdout is not None else sys.stdout.buffer
        if handle == 2:
            return self._stderr if self._stderr is not None else sys.stderr.buffer
        # stdin and unknown handles are not writable
        return None

    def _emit(self, handle: int, data: bytes) -> int:
        stream = self._stream_for(handle)
        if stream is None:
            logger.debug("Write to non-writable handle %d", handle)
            return 0
        try:
            stream.write(data)
            stream.flush()
        except (OSError, ValueError) as e:
            logger.debug("Write to handle %d failed: %s", handle, e)
            return 0
        return 1

    def get_std_handle(self, selector: int) -> int:
        return self.HANDLES.get(selector, INVALID_HANDLE_VALUE)

    def write_console_a(self, handle: int, buffer: bytes, length: int) -> int:
        return self._emit(handle, bytes(buffer[: length & MAX_WRITE_LENGTH]))

    def write_console_w(self, handle: int, buffer: bytes, unit_count: int) -> int:
        raw = bytes(buffer[: (unit_count & MAX_WRITE_LENGTH) * CODE_UNIT_SIZE])
        try:
            text = raw.decode("utf-16-le", errors="surrogatepass")
        except UnicodeDecodeError as e:
            logger.debug("Malformed UTF-16 write to handle %d: %s", handle, e)
            return 0
        return self._emit(handle, text.encode(self.encoding, errors="backslashreplace"))


def resolve_backend(name: str | None = None) -> str:
    """Resolve a backend name to BACKEND_WIN32 or BACKEND_STREAM.

    Args:
        name: Backend name, or None to read CONWRITE_BACKEND

    Returns:
        Concrete backend name

    Raises:
        ValueError: If the name is not one of BACKENDS
    """
    if name is None:
        name = os.environ.get(BACKEND_ENV_VAR, BACKEND_AUTO)
    name = name.strip().lower() or BACKEND_AUTO
    if name not in BACKENDS:
        raise ValueError(
            f"Unknown console backend '{name}' "
            f"(expected one of: {', '.join(BACKENDS)})"
        )
    if name == BACKEND_AUTO:
        return BACKEND_WIN32 if sys.platform == "win32" else BACKEND_STREAM
    return name


def create_platform(name: str | None = None) -> ConsolePlatform:
    """Construct a fresh console platform for the named backend."""
    backend = resolve_backend(name)
    logger.debug("Using %s console backend", backend)
    if backend == BACKEND_WIN32:
        return Win32Console()
    return StreamConsole()


@lru_cache(maxsize=None)
def default_platform() -> ConsolePlatform:
    """Process-wide console platform used when no platform is passed.

    Selected from CONWRITE_BACKEND on first use. Call
    default_platform.cache_clear() to pick up a changed setting.
    """
    return create_platform()
