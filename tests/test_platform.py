"""Tests for console platform backends and backend selection."""

import ctypes
import io
import logging
import sys

import pytest

from conwrite.platform import (
    BACKEND_STREAM,
    BACKEND_WIN32,
    StreamConsole,
    Win32Console,
    create_platform,
    default_platform,
    resolve_backend,
)
from conwrite.console import get_standard_output, print_ascii_sized, print_char
from conwrite.types import (
    INVALID_HANDLE_VALUE,
    STD_ERROR_HANDLE,
    STD_INPUT_HANDLE,
    STD_OUTPUT_HANDLE,
)
from conwrite.utf16 import encode_scalar, pack_code_units


class TestStreamConsole:
    """Tests for the portable stream backend."""

    def test_standard_handles(self, stream_console: StreamConsole):
        """Test that selectors map to descriptor numbers."""
        assert stream_console.get_std_handle(STD_INPUT_HANDLE) == 0
        assert stream_console.get_std_handle(STD_OUTPUT_HANDLE) == 1
        assert stream_console.get_std_handle(STD_ERROR_HANDLE) == 2

    def test_unknown_selector(self, stream_console: StreamConsole):
        """Test that unknown selectors return the invalid handle sentinel."""
        assert stream_console.get_std_handle(-99) == INVALID_HANDLE_VALUE

    def test_ascii_write(self, stream_console, stdout_buffer: io.BytesIO):
        """Test that exactly `length` bytes reach the stream."""
        status = stream_console.write_console_a(1, b"hello", 3)
        assert status == 1
        assert stdout_buffer.getvalue() == b"hel"

    def test_wide_write_reencodes(self, stream_console, stdout_buffer: io.BytesIO):
        """Test that UTF-16 units are re-encoded for the stream."""
        units = encode_scalar(0x1F600)
        stream_console.write_console_w(1, pack_code_units(units), len(units))
        assert stdout_buffer.getvalue() == "😀".encode("utf-8")

    def test_wide_write_lone_surrogate(self, stream_console, stdout_buffer):
        """Test that an unpaired surrogate is escaped, not fatal."""
        status = stream_console.write_console_w(1, pack_code_units((0xD800,)), 1)
        assert status == 1
        assert stdout_buffer.getvalue() == b"\\ud800"

    def test_wide_write_legacy_encoding(self, stdout_buffer: io.BytesIO):
        """Test that characters outside the stream encoding are escaped."""
        console = StreamConsole(stdout=stdout_buffer, encoding="ascii")
        console.write_console_w(1, pack_code_units((0x00E9,)), 1)
        assert stdout_buffer.getvalue() == b"\\xe9"

    def test_stderr_handle(self, stdout_buffer: io.BytesIO):
        """Test that handle 2 writes to the stderr stream."""
        err = io.BytesIO()
        console = StreamConsole(stdout=stdout_buffer, stderr=err)
        console.write_console_a(2, b"E", 1)
        assert err.getvalue() == b"E"
        assert stdout_buffer.getvalue() == b""

    def test_stdin_handle_not_writable(self, stream_console: StreamConsole):
        """Test that writes to stdin fail with status 0."""
        assert stream_console.write_console_a(0, b"x", 1) == 0

    def test_invalid_handle_status(self, stream_console: StreamConsole):
        """Test that writes to the invalid handle fail with status 0."""
        assert stream_console.write_console_a(INVALID_HANDLE_VALUE, b"x", 1) == 0

    def test_closed_stream_status(self):
        """Test that a closed stream reports failure instead of raising."""
        closed = io.BytesIO()
        closed.close()
        console = StreamConsole(stdout=closed)
        assert console.write_console_a(1, b"x", 1) == 0

    def test_defaults_to_sys_stdout(self, capsysbinary):
        """Test that an unconfigured console writes to sys.stdout."""
        StreamConsole().write_console_a(1, b"hi", 2)
        assert capsysbinary.readouterr().out == b"hi"


class TestStreamConsoleOutOfContract:
    """Malformed direct calls report failure or wrap, never raise."""

    def test_odd_length_wide_buffer(self, stream_console, stdout_buffer):
        """Test that half a code unit returns status 0."""
        assert stream_console.write_console_w(1, b"A", 1) == 0
        assert stdout_buffer.getvalue() == b""

    def test_negative_length_wraps(self, stream_console, stdout_buffer):
        """Test that -1 acts as the DWORD 0xFFFFFFFF, not a slice from the end."""
        stream_console.write_console_a(1, b"AB", -1)
        assert stdout_buffer.getvalue() == b"AB"

    def test_negative_unit_count_wraps(self, stream_console, stdout_buffer):
        """Test that a negative unit count writes the whole buffer."""
        stream_console.write_console_w(1, pack_code_units((0x41, 0x42)), -1)
        assert stdout_buffer.getvalue() == b"AB"


class TestBackendSelection:
    """Tests for CONWRITE_BACKEND handling."""

    def test_auto_matches_platform(self):
        """Test that auto picks win32 only on Windows."""
        expected = BACKEND_WIN32 if sys.platform == "win32" else BACKEND_STREAM
        assert resolve_backend("auto") == expected
        assert resolve_backend(None) == expected

    def test_explicit_name(self):
        """Test that names are case and whitespace insensitive."""
        assert resolve_backend(" Stream ") == BACKEND_STREAM

    def test_env_var(self, monkeypatch):
        """Test that the environment variable is read when no name is given."""
        monkeypatch.setenv("CONWRITE_BACKEND", "stream")
        assert resolve_backend() == BACKEND_STREAM

    def test_empty_env_var_is_auto(self, monkeypatch):
        """Test that an empty setting falls back to auto."""
        monkeypatch.setenv("CONWRITE_BACKEND", "")
        assert resolve_backend() in (BACKEND_WIN32, BACKEND_STREAM)

    def test_unknown_backend_raises(self):
        """Test that unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown console backend 'tty'"):
            resolve_backend("tty")

    def test_create_stream(self):
        """Test that the stream backend constructs a StreamConsole."""
        assert isinstance(create_platform("stream"), StreamConsole)

    def test_default_platform_cached(self, monkeypatch):
        """Test that default_platform returns the same instance until cleared."""
        monkeypatch.setenv("CONWRITE_BACKEND", "stream")
        first = default_platform()
        assert default_platform() is first
        default_platform.cache_clear()
        assert default_platform() is not first

    def test_default_platform_bad_config(self, monkeypatch):
        """Test that a bad setting surfaces when the default is built."""
        monkeypatch.setenv("CONWRITE_BACKEND", "bogus")
        with pytest.raises(ValueError):
            default_platform()


@pytest.mark.skipif(sys.platform == "win32", reason="Requires a non-Windows host")
def test_win32_console_unavailable():
    """Test that Win32Console refuses to construct off Windows."""
    with pytest.raises(OSError, match="not available"):
        Win32Console()


@pytest.mark.skipif(sys.platform != "win32", reason="Requires Windows")
class TestWin32Console:
    """Tests against the real kernel32 API."""

    def test_get_std_handle(self):
        """Test that the stdout lookup returns some handle value."""
        handle = Win32Console().get_std_handle(STD_OUTPUT_HANDLE)
        assert isinstance(handle, int)

    def test_write_to_invalid_handle(self):
        """Test that a failed write returns 0 rather than raising."""
        console = Win32Console()
        assert console.write_console_a(0, b"x", 1) == 0
        assert console.write_console_w(0, b"x\x00", 1) == 0


class FakeKernel32:
    """Records kernel32 console calls with their exact argument tuples."""

    def __init__(self, handle=0x7C, status=1, last_error=6):
        self.handle = handle
        self.status = status
        self.last_error = last_error
        self.calls: list[tuple] = []

    def GetStdHandle(self, selector):
        self.calls.append(("GetStdHandle", selector))
        return self.handle

    def WriteConsoleA(self, *args):
        self.calls.append(("WriteConsoleA",) + args)
        return self.status

    def WriteConsoleW(self, *args):
        self.calls.append(("WriteConsoleW",) + args)
        return self.status

    def GetLastError(self):
        return self.last_error


class TestWin32ConsoleBinding:
    """Tests for the kernel32 call shapes, using an injected kernel32."""

    def test_std_output_selector_as_dword(self):
        """Test that -11 reaches GetStdHandle as 0xFFFFFFF5."""
        kernel32 = FakeKernel32()
        handle = get_standard_output(Win32Console(kernel32))
        assert kernel32.calls == [("GetStdHandle", 0xFFFFFFF5)]
        assert handle == 0x7C

    def test_ascii_call_shape(self):
        """Test that WriteConsoleA gets the buffer, length and two Nones."""
        kernel32 = FakeKernel32()
        print_ascii_sized(0x7C, b"AB", 2, Win32Console(kernel32))
        assert kernel32.calls == [("WriteConsoleA", 0x7C, b"AB", 2, None, None)]

    def test_wide_call_passes_unit_count(self):
        """Test that WriteConsoleW gets 2 units for a pair, not 4 bytes."""
        kernel32 = FakeKernel32()
        print_char(0x7C, 0x10000, Win32Console(kernel32))
        assert kernel32.calls == [
            ("WriteConsoleW", 0x7C, b"\x00\xd8\x00\xdc", 2, None, None)
        ]

    def test_wide_call_single_unit(self):
        """Test that a BMP scalar goes out with a unit count of 1."""
        kernel32 = FakeKernel32()
        print_char(0x7C, 0x41, Win32Console(kernel32))
        assert kernel32.calls == [("WriteConsoleW", 0x7C, b"A\x00", 1, None, None)]

    def test_negative_length_masked(self):
        """Test that counts are masked to DWORD width."""
        kernel32 = FakeKernel32()
        Win32Console(kernel32).write_console_a(0x7C, b"AB", -1)
        assert kernel32.calls[0][3] == 0xFFFFFFFF

    def test_invalid_handle_normalized(self):
        """Test that an all-ones HANDLE maps to INVALID_HANDLE_VALUE."""
        all_ones = (1 << (8 * ctypes.sizeof(ctypes.c_void_p))) - 1
        console = Win32Console(FakeKernel32(handle=all_ones))
        assert console.get_std_handle(STD_OUTPUT_HANDLE) == INVALID_HANDLE_VALUE

    def test_null_handle_is_zero(self):
        """Test that a NULL HANDLE (None from ctypes) maps to 0."""
        console = Win32Console(FakeKernel32(handle=None))
        assert console.get_std_handle(STD_OUTPUT_HANDLE) == 0

    def test_failed_write_logged(self, caplog):
        """Test that a zero status is logged at DEBUG and returned."""
        console = Win32Console(FakeKernel32(status=0, last_error=6))
        with caplog.at_level(logging.DEBUG, logger="conwrite.platform"):
            assert console.write_console_a(0x7C, b"x", 1) == 0
            assert console.write_console_w(0x7C, b"x\x00", 1) == 0
        messages = [r.getMessage() for r in caplog.records]
        assert "WriteConsoleA failed on handle 0x7c: error 6" in messages
        assert "WriteConsoleW failed on handle 0x7c: error 6" in messages

    def test_failed_write_not_raised(self):
        """Test that print_ascii_sized swallows a failed status."""
        console = Win32Console(FakeKernel32(status=0))
        assert print_ascii_sized(0x7C, b"x", 1, console) is None
