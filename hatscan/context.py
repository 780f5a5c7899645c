"""Scan contexts: choosing a scanning strategy for a signature and running it."""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Tuple, Union

from .core import (
    ScanAlignment,
    ScanHint,
    ScanMode,
    ScanResult,
    find_pattern_single,
    segment_scan,
)
from .hints import pair_score
from .signature import SignatureElement

__all__ = ["ScanContext", "ScanFunction", "find_pattern_vector"]

Buffer = Union[bytes, bytearray, memoryview]

#: A scanner takes ``(data, begin, end, context)`` and returns the match index or None.
ScanFunction = Callable[[Buffer, int, int, "ScanContext"], Optional[int]]

_VECTOR_SIZES = {
    ScanMode.SSE: 16,
    ScanMode.AVX2: 32,
    ScanMode.AVX512: 64,
}


def _scan_single(data: Buffer, begin: int, end: int, context: "ScanContext") -> Optional[int]:
    return find_pattern_single(data, begin, end, context.signature, context.alignment)


def _matches(data: Buffer, position: int, signature: Sequence[SignatureElement]) -> bool:
    return all(
        element is None or data[position + k] == element
        for k, element in enumerate(signature)
    )


@dataclass
class ScanContext:
    """A signature prepared for scanning, with the strategy chosen for it.

    The signature must start with a concrete byte; leading wildcards are
    expected to have been stripped beforehand.
    """

    signature: Tuple[SignatureElement, ...]
    alignment: ScanAlignment = ScanAlignment.X1
    hints: ScanHint = ScanHint.NONE
    mode: ScanMode = ScanMode.AUTO
    pair_index: Optional[int] = None
    scanner: ScanFunction = field(default=_scan_single, repr=False, compare=False)

    @classmethod
    def create(
        cls,
        signature: Sequence[SignatureElement],
        alignment: ScanAlignment = ScanAlignment.X1,
        hints: ScanHint = ScanHint.NONE,
        mode: ScanMode = ScanMode.AUTO,
    ) -> "ScanContext":
        """Build a context for ``signature`` and resolve its scanner for ``mode``."""
        signature = tuple(signature)
        if not signature:
            raise ValueError("signature is empty")
        if signature[0] is None:
            raise ValueError("signature must not start with a wildcard")
        context = cls(signature=signature, alignment=alignment, hints=hints, mode=mode)
        if mode is ScanMode.AUTO:
            context.auto_resolve_scanner()
        else:
            context._resolve(mode)
        return context

    def _resolve(self, mode: ScanMode) -> None:
        self.mode = mode
        if mode is ScanMode.SINGLE:
            self.scanner = _scan_single
            return
        try:
            vector_size = _VECTOR_SIZES[mode]
        except KeyError:
            raise ValueError(f"cannot resolve a scanner for mode {mode}") from None
        self.apply_hints(vector_size)
        self.scanner = functools.partial(find_pattern_vector, vector_size=vector_size)

    def auto_resolve_scanner(self) -> None:
        """Pick the scanner at run time.

        No vector extensions are available to this implementation, so the
        per-byte scanner is chosen, as on hardware without them.
        """
        self._resolve(ScanMode.SINGLE)

    def apply_hints(self, vector_size: int) -> None:
        """Choose the byte pair used to filter candidates in blocks of ``vector_size`` bytes."""
        signature = self.signature
        pair0 = bool(self.hints & ScanHint.PAIR0)
        x86_64 = bool(self.hints & ScanHint.X86_64)
        aligned_x1 = self.alignment is ScanAlignment.X1
        pair_positions = range(len(signature) - 1)

        if x86_64 and not pair0 and vector_size and aligned_x1:
            best: Optional[Tuple[int, int]] = None
            for i in pair_positions:
                a, b = signature[i], signature[i + 1]
                if a is not None and b is not None:
                    score = pair_score(a, b)
                    if best is None or score > best[1]:
                        best = (i, score)
            if best is not None:
                self.pair_index = best[0]

        if self.pair_index is None and aligned_x1:
            for i in pair_positions:
                if signature[i] is not None and signature[i + 1] is not None:
                    self.pair_index = i
                    break
                if i == 0 and pair0:
                    break

    def scan(self, data: Buffer, begin: int = 0, end: Optional[int] = None) -> ScanResult:
        """Find the first match in ``data[begin:end]``."""
        if end is None:
            end = len(data)
        if not 0 <= begin <= end <= len(data):
            raise ValueError(f"scan range [{begin}, {end}) is outside a buffer of {len(data)} bytes")
        return ScanResult(self.scanner(data, begin, end, self), data)


def find_pattern_vector(
    data: Buffer,
    begin: int,
    end: int,
    context: ScanContext,
    vector_size: int,
) -> Optional[int]:
    """Scan in blocks of ``vector_size`` bytes, filtering candidates by one or two bytes.

    The head and tail of the range that do not fill a block are scanned
    per byte. Returns the match index or None.
    """
    if not hasattr(data, "find"):
        data = bytes(data)
    signature = context.signature
    alignment = context.alignment
    cmpeq2 = context.pair_index is not None and alignment is ScanAlignment.X1
    cmp_index = context.pair_index if cmpeq2 else 0
    first = signature[cmp_index]
    second = signature[cmp_index + 1] if cmpeq2 else None
    veccmp = len(signature) <= vector_size
    stride = alignment.value

    segments = segment_scan(begin, end, len(signature), cmp_index, vector_size, veccmp)

    if segments.pre is not None:
        found = find_pattern_single(data, *segments.pre, signature, alignment)
        if found is not None:
            return found

    for block in segments.vectors:
        block_end = block + vector_size
        position = data.find(first, block, block_end)
        while position >= 0:
            keep = True
            if alignment is not ScanAlignment.X1:
                keep = (position - block) % stride == 0
            elif cmpeq2:
                # A first-byte hit in the last lane implies the second byte matched.
                keep = position == block_end - 1 or data[position + 1] == second
            if keep:
                candidate = position - cmp_index
                if _matches(data, candidate, signature):
                    return candidate
            position = data.find(first, position + 1, block_end)

    if segments.post is not None:
        return find_pattern_single(data, *segments.post, signature, alignment)
    return None