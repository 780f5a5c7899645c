"""Command line search for a byte signature in a file."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .api import find_all_pattern, find_pattern
from .core import ScanAlignment, ScanHint
from .signature import parse_signature, string_to_signature

__all__ = ["main"]

_DEMO_TEXT = b"abcdefghijklmnopqrstuvwxyz0123456789"
_DEMO_NEEDLE = "xyz"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hatscan",
        description="Search a file for a byte signature such as '48 8B ? 05'. "
        "Without a pattern, searches a built-in alphabet for 'xyz'.",
    )
    parser.add_argument("pattern", nargs="?", help="signature to search for")
    parser.add_argument("file", nargs="?", default="-", help="file to search (default: stdin)")
    parser.add_argument("-s", "--string", action="store_true", help="treat the pattern as literal text")
    parser.add_argument("-a", "--align", type=int, choices=(1, 16), default=1, help="match alignment")
    parser.add_argument("--all", action="store_true", help="report every match")
    parser.add_argument("--x86-64", dest="x86_64", action="store_true", help="data is x86-64 machine code")
    return parser


def _read(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as handle:
        return handle.read()


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command; returns 0 when found, 1 when not found, 2 on error."""
    args = _build_parser().parse_args(argv)
    alignment = ScanAlignment(args.align)
    hints = ScanHint.X86_64 if args.x86_64 else ScanHint.NONE

    try:
        if args.pattern is None:
            data = _DEMO_TEXT
            signature = string_to_signature(_DEMO_NEEDLE)
        else:
            signature = string_to_signature(args.pattern) if args.string else parse_signature(args.pattern)
            data = _read(args.file)

        if args.all:
            addresses = [r.address for r in find_all_pattern(data, signature, alignment, hints)]
        else:
            result = find_pattern(data, signature, alignment, hints)
            addresses = [result.address] if result.has_result() else []
    except (ValueError, OSError) as exc:
        print(f"hatscan: {exc}", file=sys.stderr)
        return 2

    if not addresses:
        print("Not found")
        return 1
    for address in addresses:
        print(f"Found at {address}")
    return 0


if __name__ == "__main__":
    sys.exit(main())