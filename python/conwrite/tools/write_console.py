#!/usr/bin/env python3
"""
Console write CLI tool.

Writes text, ASCII strings and individual code points to standard output
through the conwrite operations.

Usage:
    python -m conwrite.tools.write_console "héllo" --scalar U+1F600 --newline
    python -m conwrite.tools.write_console --ascii ok --record calls.msgpack
"""

import argparse
import logging
import sys
from pathlib import Path

from conwrite.console import (
    get_standard_output,
    print_ascii_char,
    print_ascii_sized,
    print_char,
    print_text,
)
from conwrite.platform import BACKENDS, ConsolePlatform, create_platform
from conwrite.recording import RecordingConsole


def parse_scalar(value: str) -> int:
    """Parse a code point given as U+XXXX, 0xXXXX or decimal."""
    text = value.strip()
    try:
        if text[:2].upper() == "U+":
            return int(text[2:], 16)
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid code point: {value!r}") from None


def write_items(args: argparse.Namespace, platform: ConsolePlatform) -> None:
    """Write everything requested on the command line, in argument group order."""
    out = get_standard_output(platform)

    for text in args.items:
        print_text(out, text, platform)

    for text in args.ascii:
        data = text.encode("ascii", errors="replace")
        print_ascii_sized(out, data, len(data), platform)

    for scalar in args.scalar:
        print_char(out, scalar, platform)

    if args.newline:
        print_ascii_char(out, 0x0A, platform)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Write text to the console through the native console API"
    )
    parser.add_argument(
        "items", nargs="*", help="Text written one code point at a time"
    )
    parser.add_argument(
        "--ascii",
        action="append",
        default=[],
        metavar="TEXT",
        help="ASCII text written in a single call (repeatable)",
    )
    parser.add_argument(
        "--scalar",
        action="append",
        default=[],
        type=parse_scalar,
        metavar="CP",
        help="Code point as U+XXXX, 0xXXXX or decimal (repeatable)",
    )
    parser.add_argument(
        "--newline", action="store_true", help="Finish with a line feed"
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Console backend (default: $CONWRITE_BACKEND or auto)",
    )
    parser.add_argument(
        "--record",
        type=Path,
        metavar="PATH",
        help="Record calls to a MessagePack transcript instead of writing",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    if args.record is not None:
        recorder = RecordingConsole()
        write_items(args, recorder)
        recorder.save_transcript(args.record)
        return 0

    try:
        platform = create_platform(args.backend)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    write_items(args, platform)
    return 0


if __name__ == "__main__":
    sys.exit(main())
