"""Information about the host system: page size and CPU features."""

from __future__ import annotations

import functools
import mmap
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet

__all__ = ["CpuExtensions", "SystemInfo", "parse_cpuinfo", "get_system"]

_CPUINFO_PATH = Path("/proc/cpuinfo")

# Field name on CpuExtensions -> flag name in /proc/cpuinfo.
_FLAG_NAMES: Dict[str, str] = {
    "sse": "sse",
    "sse2": "sse2",
    "sse3": "pni",
    "ssse3": "ssse3",
    "sse41": "sse4_1",
    "sse42": "sse4_2",
    "avx": "avx",
    "avx2": "avx2",
    "avx512f": "avx512f",
    "avx512bw": "avx512bw",
    "popcnt": "popcnt",
    "bmi": "bmi1",
}


@dataclass(frozen=True)
class CpuExtensions:
    """Instruction set extensions supported by the CPU."""

    sse: bool = False
    sse2: bool = False
    sse3: bool = False
    ssse3: bool = False
    sse41: bool = False
    sse42: bool = False
    avx: bool = False
    avx2: bool = False
    avx512f: bool = False
    avx512bw: bool = False
    popcnt: bool = False
    bmi: bool = False

    @classmethod
    def from_flags(cls, flags: FrozenSet[str]) -> "CpuExtensions":
        """Build from a set of kernel CPU flag names."""
        return cls(**{name: flag in flags for name, flag in _FLAG_NAMES.items()})


@dataclass(frozen=True)
class SystemInfo:
    """Page size and CPU description of the host."""

    page_size: int
    cpu_vendor: str = ""
    cpu_brand: str = ""
    extensions: CpuExtensions = field(default_factory=CpuExtensions)


def _page_size() -> int:
    return mmap.PAGESIZE


def parse_cpuinfo(text: str) -> SystemInfo:
    """Build system information from the text of ``/proc/cpuinfo``.

    Only the first processor entry is read; the page size is the host's.
    """
    fields: Dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip():
            if fields:
                break
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        fields.setdefault(key.strip(), value.strip())

    flags = frozenset(fields.get("flags", "").split())
    return SystemInfo(
        page_size=_page_size(),
        cpu_vendor=fields.get("vendor_id", ""),
        cpu_brand=fields.get("model name", ""),
        extensions=CpuExtensions.from_flags(flags),
    )


@functools.lru_cache(maxsize=None)
def get_system() -> SystemInfo:
    """Return the host's system information, gathered once."""
    try:
        text = _CPUINFO_PATH.read_text(errors="replace")
    except OSError:
        return SystemInfo(page_size=_page_size(), cpu_brand=platform.processor())
    return parse_cpuinfo(text)