"""High-level pattern search over byte buffers."""

from __future__ import annotations

from itertools import islice
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from .context import ScanContext
from .core import ScanAlignment, ScanHint, ScanResult, truncate
from .signature import SignatureElement, parse_signature

__all__ = ["find_pattern", "iter_pattern", "find_all_pattern"]

Buffer = Union[bytes, bytearray, memoryview]
SignatureLike = Union[str, Iterable[SignatureElement]]


def _as_buffer(data: Buffer) -> Buffer:
    if isinstance(data, memoryview):
        return data.cast("B")
    return data


def _prepare(
    signature: SignatureLike,
    alignment: Union[ScanAlignment, int],
    hints: Union[ScanHint, int],
) -> Tuple[int, ScanContext, ScanAlignment]:
    if isinstance(signature, str):
        signature = parse_signature(signature)
    offset, trunc = truncate(list(signature))
    if not trunc:
        raise ValueError("signature must contain at least one concrete byte")
    alignment = ScanAlignment(alignment)
    context = ScanContext.create(trunc, alignment, ScanHint(hints))
    return offset, context, alignment


def find_pattern(
    data: Buffer,
    signature: SignatureLike,
    alignment: Union[ScanAlignment, int] = ScanAlignment.X1,
    hints: Union[ScanHint, int] = ScanHint.NONE,
) -> ScanResult:
    """Find the first match of ``signature`` in ``data``.

    ``signature`` may be a signature string such as ``"48 8B ? 05"`` or a
    sequence of byte values with ``None`` wildcards. Leading wildcards are
    allowed; the returned address points at the first signature element.
    """
    data = _as_buffer(data)
    offset, context, _ = _prepare(signature, alignment, hints)
    begin, end = offset, len(data)
    if begin >= end or len(context.signature) > end - begin:
        return ScanResult(None, data)
    result = context.scan(data, begin, end)
    if not result.has_result():
        return ScanResult(None, data)
    return ScanResult(result.address - offset, data)


def iter_pattern(
    data: Buffer,
    signature: SignatureLike,
    alignment: Union[ScanAlignment, int] = ScanAlignment.X1,
    hints: Union[ScanHint, int] = ScanHint.NONE,
) -> Iterator[ScanResult]:
    """Yield every match of ``signature`` in ``data`` in order of position.

    After a match the search resumes one alignment stride further on, so
    matches may overlap.
    """
    data = _as_buffer(data)
    offset, context, alignment = _prepare(signature, alignment, hints)
    size = len(context.signature)
    position, end = offset, len(data)
    while position < end and size <= end - position:
        result = context.scan(data, position, end)
        if not result.has_result():
            return
        yield ScanResult(result.address - offset, data)
        position = result.address + alignment.value


def find_all_pattern(
    data: Buffer,
    signature: SignatureLike,
    alignment: Union[ScanAlignment, int] = ScanAlignment.X1,
    hints: Union[ScanHint, int] = ScanHint.NONE,
    limit: Optional[int] = None,
) -> List[ScanResult]:
    """List the matches of ``signature`` in ``data``, at most ``limit`` of them."""
    if limit is not None and limit < 0:
        raise ValueError("limit must not be negative")
    matches = iter_pattern(data, signature, alignment, hints)
    if limit is not None:
        matches = islice(matches, limit)
    return list(matches)