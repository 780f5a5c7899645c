"""Integer parsing with explicit error kinds."""

from __future__ import annotations

import enum

__all__ = ["ParseIntErrorKind", "ParseIntError", "parse_int"]


class ParseIntErrorKind(enum.Enum):
    """Why an integer could not be parsed."""

    INVALID_BASE = "invalid_base"
    ILLEGAL_CHAR = "illegal_char"


class ParseIntError(ValueError):
    """Raised when text cannot be parsed as an integer."""

    def __init__(self, kind: ParseIntErrorKind, text: str, base: int) -> None:
        self.kind = kind
        self.text = text
        self.base = base
        if kind is ParseIntErrorKind.INVALID_BASE:
            message = f"invalid base {base}: must be between 2 and 36"
        else:
            message = f"illegal character in {text!r} for base {base}"
        super().__init__(message)


def _digit_value(ch: str, base: int) -> int | None:
    digits = min(base, 10)
    letters = max(base - 10, 0)
    code = ord(ch)
    if ord("0") <= code < ord("0") + digits:
        return code - ord("0")
    if ord("A") <= code < ord("A") + letters:
        return code - ord("A") + 10
    if ord("a") <= code < ord("a") + letters:
        return code - ord("a") + 10
    return None


def parse_int(text: str, base: int = 10, signed: bool = True) -> int:
    """Parse ``text`` as an integer in ``base``.

    A leading ``+`` or ``-`` is accepted only when ``signed`` is true.
    An empty string (or a lone sign) parses as zero.
    """
    if base < 2 or base > 36:
        raise ParseIntError(ParseIntErrorKind.INVALID_BASE, text, base)

    sign = 1
    value = 0
    for position, ch in enumerate(text):
        if signed and position == 0 and ch in "+-":
            if ch == "-":
                sign = -1
            continue
        digit = _digit_value(ch, base)
        if digit is None:
            raise ParseIntError(ParseIntErrorKind.ILLEGAL_CHAR, text, base)
        value = value * base + digit
    return sign * value