"""
Recording console platform.

RecordingConsole stands in for a real console device. It records each
primitive call exactly as issued, which makes it the test double for the
write operations, and can persist a recording as a MessagePack transcript:

    {
        "version": 1,
        "selectors": [-11, ...],
        "calls": [
            {"primitive": "WriteConsoleW", "handle": 1, "payload": b"...", "length": 2},
            ...
        ],
    }
"""

import logging
from pathlib import Path

import msgpack

from .platform import ConsolePlatform
from .types import (
    CODE_UNIT_SIZE,
    MAX_WRITE_LENGTH,
    STD_ERROR_HANDLE,
    STD_INPUT_HANDLE,
    STD_OUTPUT_HANDLE,
    WRITE_CONSOLE_A,
    WRITE_CONSOLE_W,
    ConsoleCall,
)
from .utf16 import unpack_code_units

logger = logging.getLogger(__name__)

TRANSCRIPT_VERSION = 1


class RecordingConsole(ConsolePlatform):
    """Console platform that records calls instead of writing them.

    Handles are fixed per selector so tests can assert on them. Every write
    reports success.
    """

    HANDLES = {
        STD_INPUT_HANDLE: 0x50,
        STD_OUTPUT_HANDLE: 0x54,
        STD_ERROR_HANDLE: 0x58,
    }

    # First handle handed out for selectors outside HANDLES
    EXTRA_HANDLE_BASE = 0x1000

    def __init__(self):
        self.selectors: list[int] = []
        self.calls: list[ConsoleCall] = []
        self._extra_handles: dict[int, int] = {}

    def get_std_handle(self, selector: int) -> int:
        self.selectors.append(selector)
        if selector in self.HANDLES:
            return self.HANDLES[selector]
        # Unknown selectors get a fresh handle, reused on later lookups
        if selector not in self._extra_handles:
            self._extra_handles[selector] = self.EXTRA_HANDLE_BASE + len(
                self._extra_handles
            )
        return self._extra_handles[selector]

    def write_console_a(self, handle: int, buffer: bytes, length: int) -> int:
        # Counts are DWORDs
        length &= MAX_WRITE_LENGTH
        self.calls.append(
            ConsoleCall(WRITE_CONSOLE_A, handle, bytes(buffer[:length]), length)
        )
        return 1

    def write_console_w(self, handle: int, buffer: bytes, unit_count: int) -> int:
        unit_count &= MAX_WRITE_LENGTH
        payload = bytes(buffer[: unit_count * CODE_UNIT_SIZE])
        self.calls.append(ConsoleCall(WRITE_CONSOLE_W, handle, payload, unit_count))
        return 1

    def clear(self) -> None:
        self.selectors.clear()
        self.calls.clear()

    def calls_for(self, handle: int) -> list[ConsoleCall]:
        return [c for c in self.calls if c.handle == handle]

    def render(self, handle: int | None = None) -> str:
        """Decode recorded writes into the text they would have displayed.

        Args:
            handle: Only render writes to this handle (default: all writes)

        Returns:
            Concatenated text. ASCII writes are decoded as latin-1 so
            out-of-range bytes stay visible; unpaired surrogates are kept.
        """
        calls = self.calls if handle is None else self.calls_for(handle)
        parts = []
        for call in calls:
            if call.is_wide:
                parts.append(call.payload.decode("utf-16-le", errors="surrogatepass"))
            else:
                parts.append(call.payload.decode("latin-1"))
        return "".join(parts)

    def save_transcript(self, path: Path) -> None:
        """Write the recording to `path` as MessagePack."""
        transcript = {
            "version": TRANSCRIPT_VERSION,
            "selectors": list(self.selectors),
            "calls": [
                {
                    "primitive": c.primitive,
                    "handle": c.handle,
                    "payload": c.payload,
                    "length": c.length,
                }
                for c in self.calls
            ],
        }
        Path(path).write_bytes(msgpack.packb(transcript, use_bin_type=True))
        logger.debug("Saved %d console calls to %s", len(self.calls), path)

    @classmethod
    def load_transcript(cls, path: Path) -> "RecordingConsole":
        """Rebuild a RecordingConsole from a saved transcript.

        Raises:
            FileNotFoundError: If `path` does not exist
            RuntimeError: If the transcript cannot be parsed
        """
        content = Path(path).read_bytes()
        try:
            transcript = msgpack.unpackb(content, raw=False, strict_map_key=True)
            if not isinstance(transcript, dict):
                raise RuntimeError(
                    f"Invalid transcript format: expected dict, "
                    f"got {type(transcript).__name__}"
                )
            version = transcript.get("version")
            if version != TRANSCRIPT_VERSION:
                raise RuntimeError(f"Unsupported transcript version: {version!r}")

            console = cls()
            console.selectors = [int(s) for s in transcript["selectors"]]
            console.calls = [
                ConsoleCall(
                    primitive=entry["primitive"],
                    handle=entry["handle"],
                    payload=bytes(entry["payload"]),
                    length=entry["length"],
                )
                for entry in transcript["calls"]
            ]
        except msgpack.exceptions.UnpackException as e:
            raise RuntimeError(f"Failed to parse transcript {path}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Malformed transcript {path}: {e}") from e

        logger.debug("Loaded %d console calls from %s", len(console.calls), path)
        return console


def wide_units(call: ConsoleCall) -> tuple[int, ...]:
    """Code units carried by a recorded WriteConsoleW call."""
    return unpack_code_units(call.payload, call.length)
