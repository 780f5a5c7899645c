"""Small helpers: memory protection flags, truncating division and alignment."""

from __future__ import annotations

import enum
from typing import NamedTuple

__all__ = ["Protection", "DivResult", "div", "align_down", "align_up"]


class Protection(enum.Flag):
    """Memory protection flags."""

    READ = 0b001
    WRITE = 0b010
    EXECUTE = 0b100


class DivResult(NamedTuple):
    """Quotient and remainder of a truncating division."""

    quot: int
    rem: int


def _check_integer(value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {type(value).__name__}")


def div(numerator: int, denominator: int) -> DivResult:
    """Divide rounding toward zero; the remainder takes the numerator's sign."""
    _check_integer(numerator)
    _check_integer(denominator)
    if denominator == 0:
        raise ZeroDivisionError("integer division by zero")
    quot = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        quot = -quot
    return DivResult(quot, numerator - quot * denominator)


def align_down(address: int, alignment: int) -> int:
    """Round ``address`` down to a power-of-two ``alignment``."""
    return address & ~(alignment - 1)


def align_up(address: int, alignment: int) -> int:
    """Round ``address`` up to a power-of-two ``alignment``."""
    return (address + alignment - 1) & ~(alignment - 1)