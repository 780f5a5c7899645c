"""Core scanning primitives: scan options, results and the per-byte scanner."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Sequence, Tuple, Union

from .signature import Signature, SignatureElement

__all__ = [
    "ScanAlignment",
    "ScanHint",
    "ScanMode",
    "ScanResult",
    "Segments",
    "truncate",
    "next_boundary_align",
    "prev_boundary_align",
    "segment_scan",
    "find_pattern_single",
]

Buffer = Union[bytes, bytearray, memoryview]


class ScanAlignment(enum.Enum):
    """Alignment a match must start on; the value is the stride in bytes."""

    X1 = 1
    X16 = 16


class ScanHint(enum.Flag):
    """Hints about the scanned data that may speed up a scan."""

    NONE = 0
    #: The data being scanned is x86-64 machine code.
    X86_64 = 1 << 0
    #: Only use byte pair scanning if the signature starts with a byte pair.
    PAIR0 = 1 << 1


class ScanMode(enum.Enum):
    """Which scanning strategy to use."""

    AUTO = "auto"
    SINGLE = "single"
    SSE = "sse"
    AVX2 = "avx2"
    AVX512 = "avx512"


@dataclass(frozen=True)
class ScanResult:
    """Position of a match inside a buffer, or no match when ``address`` is None."""

    address: Optional[int] = None
    data: Buffer = field(default=b"", compare=False, repr=False)

    def __bool__(self) -> bool:
        return self.has_result()

    def has_result(self) -> bool:
        """Whether a match was found."""
        return self.address is not None

    def read(self, offset: int, size: int = 4, signed: bool = True) -> int:
        """Read a little-endian integer of ``size`` bytes at ``offset`` from the match."""
        if self.address is None:
            raise ValueError("scan result holds no match")
        start = self.address + offset
        stop = start + size
        if start < 0 or size < 0 or stop > len(self.data):
            raise IndexError(f"read of {size} bytes at {start} is outside the buffer")
        return int.from_bytes(bytes(self.data[start:stop]), "little", signed=signed)

    def index(self, offset: int, size: int = 4, element_size: int = 1) -> int:
        """Read an unsigned byte offset at ``offset`` and turn it into an array index."""
        return self.read(offset, size, signed=False) // element_size

    def rel(self, offset: int, remaining: int = 0) -> int:
        """Resolve a 32-bit relative address located ``offset`` bytes after the match.

        ``remaining`` is the number of bytes between the end of the relative
        address and the start of the next instruction.
        """
        if self.address is None:
            raise ValueError("scan result holds no match")
        return self.address + self.read(offset, 4, signed=True) + offset + 4 + remaining


class Segments(NamedTuple):
    """Split of a scan range into a scalar head, vector blocks and a scalar tail.

    ``pre`` and ``post`` are ``(begin, end)`` ranges or None when too short
    to hold the signature; ``vectors`` yields the start of each vector block.
    """

    pre: Optional[Tuple[int, int]]
    vectors: range
    post: Optional[Tuple[int, int]]


def truncate(signature: Sequence[SignatureElement]) -> Tuple[int, Signature]:
    """Strip leading wildcards; return how many were removed and the rest."""
    offset = 0
    for element in signature:
        if element is not None:
            break
        offset += 1
    return offset, list(signature[offset:])


def next_boundary_align(address: int, alignment: ScanAlignment) -> int:
    """Round ``address`` up to the next boundary of ``alignment``."""
    stride = alignment.value
    mod = address % stride
    return address + (stride - mod if mod else 0)


def prev_boundary_align(address: int, alignment: ScanAlignment) -> int:
    """Round ``address`` down to the previous boundary of ``alignment``."""
    return address - address % alignment.value


def segment_scan(
    begin: int,
    end: int,
    signature_size: int,
    cmp_offset: int,
    vector_size: int,
    veccmp: bool,
) -> Segments:
    """Split ``[begin, end)`` for a vectorised scan with blocks of ``vector_size`` bytes.

    ``cmp_offset`` is the index in the signature of the byte compared within
    each block. When ``veccmp`` is true a whole block is read from each
    candidate, so blocks stop early enough for that read to stay in range.
    """
    if vector_size <= 0:
        raise ValueError("vector size must be positive")

    def validate(b: int, e: int) -> Optional[Tuple[int, int]]:
        if b <= e and e - b >= signature_size:
            return (b, e)
        return None

    empty = range(0)
    mod = (begin + cmp_offset) % vector_size
    vec_begin = begin + cmp_offset + (vector_size - mod if mod else 0)
    if vec_begin > end:
        return Segments(validate(begin, end), empty, None)

    vec_available = end - vec_begin
    required_after = vector_size if veccmp else signature_size
    count = (vec_available - required_after) // vector_size if vec_available >= required_after else 0
    if count == 0:
        return Segments(validate(begin, end), empty, None)

    vec_end = vec_begin + count * vector_size
    pre_end = vec_begin - cmp_offset + signature_size
    post_begin = vec_end - cmp_offset
    return Segments(
        validate(begin, pre_end),
        range(vec_begin, vec_end, vector_size),
        validate(post_begin, end),
    )


def _matches_at(data: Buffer, position: int, signature: Sequence[SignatureElement]) -> bool:
    """Whether ``signature`` matches ``data`` starting at ``position``."""
    return all(
        element is None or data[position + k] == element
        for k, element in enumerate(signature)
    )


def find_pattern_single(
    data: Buffer,
    begin: int,
    end: int,
    signature: Sequence[SignatureElement],
    alignment: ScanAlignment = ScanAlignment.X1,
) -> Optional[int]:
    """Find the first match of ``signature`` in ``data[begin:end]`` one candidate at a time.

    The signature must start with a concrete byte. Returns the index of the
    match or None.
    """
    if not signature:
        raise ValueError("signature is empty")
    first = signature[0]
    if first is None:
        raise ValueError("signature must not start with a wildcard")
    if not hasattr(data, "find"):
        data = bytes(data)
    rest = signature[1:]

    if alignment is ScanAlignment.X1:
        scan_end = end - len(signature) + 1
        i = begin
        while i < scan_end:
            i = data.find(first, i, scan_end)
            if i < 0:
                return None
            if _matches_at(data, i + 1, rest):
                return i
            i += 1
        return None

    scan_begin = next_boundary_align(begin, alignment)
    scan_end = next_boundary_align(end - len(signature) + 1, alignment)
    for i in range(scan_begin, scan_end, alignment.value):
        if data[i] == first and _matches_at(data, i + 1, rest):
            return i
    return None