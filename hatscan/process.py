"""Memory maps of a process and modules laid out as loaded PE images."""

from __future__ import annotations

import functools
import re
import struct
from dataclasses import dataclass
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple, Union

from .utility import Protection

__all__ = [
    "MappedRegion",
    "Section",
    "Segment",
    "PeModule",
    "parse_maps",
    "iter_mapped_regions",
    "is_readable",
    "is_writable",
    "is_executable",
    "module_at",
]

Buffer = Union[bytes, bytearray, memoryview]

_MAPS_LINE = re.compile(r"([0-9a-fA-F]+)-([0-9a-fA-F]+) (\S{3})")

_DOS_SIGNATURE = 0x5A4D  # "MZ"
_NT_SIGNATURE = b"PE\0\0"
_DOS_HEADER_SIZE = 64
_LFANEW_OFFSET = 0x3C
_FILE_HEADER = struct.Struct("<HHIIIHH")
_SECTION_HEADER = struct.Struct("<8sIIIIIIHHI")
_OPTIONAL_MAGIC_PE32 = 0x10B
_NT_HEADERS_SIZE_PE32 = 248
_NT_HEADERS_SIZE_PE32_PLUS = 264
_SIZE_OF_IMAGE_OFFSET = 56

_SCN_MEM_EXECUTE = 0x20000000
_SCN_MEM_READ = 0x40000000
_SCN_MEM_WRITE = 0x80000000


@dataclass(frozen=True)
class MappedRegion:
    """A mapped address range ``[begin, end)`` and its protection."""

    begin: int
    end: int
    protection: Protection

    def __contains__(self, address: int) -> bool:
        return self.begin <= address < self.end


def _parse_maps_line(line: str) -> Optional[MappedRegion]:
    match = _MAPS_LINE.match(line)
    if match is None:
        return None
    begin, end, perms = match.groups()
    protection = Protection(0)
    if perms[0] == "r":
        protection |= Protection.READ
    if perms[1] == "w":
        protection |= Protection.WRITE
    if perms[2] == "x":
        protection |= Protection.EXECUTE
    return MappedRegion(int(begin, 16), int(end, 16), protection)


def parse_maps(text: str) -> List[MappedRegion]:
    """Parse the text of a ``/proc/<pid>/maps`` file; malformed lines are skipped."""
    return [region for region in map(_parse_maps_line, text.splitlines()) if region is not None]


def iter_mapped_regions(path: str = "/proc/self/maps") -> Iterator[MappedRegion]:
    """Yield the regions listed in a maps file, by default the current process's."""
    with open(path, encoding="utf-8", errors="replace") as handle:
        for line in handle:
            region = _parse_maps_line(line.rstrip("\n"))
            if region is not None:
                yield region


def _region_has(
    address: int,
    size: int,
    regions: Optional[Iterable[MappedRegion]],
    flag: Protection,
) -> bool:
    if size < 0:
        raise ValueError("size must not be negative")
    if regions is None:
        regions = iter_mapped_regions()
    current = address
    end = address + size
    for region in regions:
        if current >= end:
            break
        if region.end <= current:
            continue
        if region.begin > current or not region.protection & flag:
            return False
        current = region.end
    return current >= end


def is_readable(address: int, size: int, regions: Optional[Iterable[MappedRegion]] = None) -> bool:
    """Whether all of ``[address, address + size)`` is mapped readable."""
    return _region_has(address, size, regions, Protection.READ)


def is_writable(address: int, size: int, regions: Optional[Iterable[MappedRegion]] = None) -> bool:
    """Whether all of ``[address, address + size)`` is mapped writable."""
    return _region_has(address, size, regions, Protection.WRITE)


def is_executable(address: int, size: int, regions: Optional[Iterable[MappedRegion]] = None) -> bool:
    """Whether all of ``[address, address + size)`` is mapped executable."""
    return _region_has(address, size, regions, Protection.EXECUTE)


@dataclass(frozen=True)
class Section:
    """A section header of a PE image."""

    name: str
    virtual_address: int
    virtual_size: int
    characteristics: int

    @property
    def protection(self) -> Protection:
        """Memory protection the section asks for."""
        protection = Protection(0)
        if self.characteristics & _SCN_MEM_READ:
            protection |= Protection.READ
        if self.characteristics & _SCN_MEM_WRITE:
            protection |= Protection.WRITE
        if self.characteristics & _SCN_MEM_EXECUTE:
            protection |= Protection.EXECUTE
        return protection


class Segment(NamedTuple):
    """Bytes of one memory segment of a module and their protection."""

    data: memoryview
    protection: Protection


@dataclass(frozen=True, eq=False)
class PeModule:
    """A PE image as laid out in memory, loaded at ``base``.

    ``data`` starts at the image base, so section contents sit at their
    virtual addresses. Build one with :func:`module_at`.
    """

    data: memoryview
    base: int = 0

    @property
    def address(self) -> int:
        """Base address of the module."""
        return self.base

    @functools.cached_property
    def _nt_offset(self) -> int:
        return struct.unpack_from("<i", self.data, _LFANEW_OFFSET)[0]

    @functools.cached_property
    def _file_header(self) -> Tuple[int, ...]:
        return _FILE_HEADER.unpack_from(self.data, self._nt_offset + 4)

    @property
    def _optional_offset(self) -> int:
        return self._nt_offset + 4 + _FILE_HEADER.size

    @property
    def is_64bit(self) -> bool:
        """Whether the image is PE32+."""
        magic = struct.unpack_from("<H", self.data, self._optional_offset)[0]
        return magic != _OPTIONAL_MAGIC_PE32

    @property
    def pointer_size(self) -> int:
        """Size of a pointer in the image, in bytes."""
        return 8 if self.is_64bit else 4

    @property
    def size_of_image(self) -> int:
        """Size of the whole image in memory."""
        return struct.unpack_from("<I", self.data, self._optional_offset + _SIZE_OF_IMAGE_OFFSET)[0]

    @functools.cached_property
    def sections(self) -> Tuple[Section, ...]:
        """The image's section headers, in order."""
        number_of_sections = self._file_header[1]
        size_of_optional_header = self._file_header[5]
        position = self._optional_offset + size_of_optional_header
        sections = []
        for _ in range(number_of_sections):
            if position + _SECTION_HEADER.size > len(self.data):
                break
            raw_name, virtual_size, virtual_address, *_, characteristics = _SECTION_HEADER.unpack_from(
                self.data, position
            )
            name = raw_name.split(b"\0", 1)[0].decode("latin-1")
            sections.append(Section(name, virtual_address, virtual_size, characteristics))
            position += _SECTION_HEADER.size
        return tuple(sections)

    def find_section(self, name: str) -> Optional[Section]:
        """The first section called ``name``, or None."""
        return next((section for section in self.sections if section.name == name), None)

    def _view(self, section: Section) -> memoryview:
        start = section.virtual_address
        return self.data[start:start + section.virtual_size]

    def get_module_data(self) -> memoryview:
        """The whole image; parts of it may not be committed in a live process."""
        return self.data[:self.size_of_image]

    def get_section_data(self, name: str) -> memoryview:
        """Contents of the section called ``name``; empty if there is none."""
        section = self.find_section(name)
        if section is None:
            return self.data[0:0]
        return self._view(section)

    def iter_segments(self) -> Iterator[Segment]:
        """Yield each section's bytes with its protection."""
        for section in self.sections:
            yield Segment(self._view(section), section.protection)


def module_at(data: Buffer, base: int = 0, size: Optional[int] = None) -> Optional[PeModule]:
    """Return the PE module whose image starts at the beginning of ``data``.

    ``size`` bounds the readable part of ``data``. Returns None when the
    bytes are not a valid DOS/NT header pair.
    """
    view = memoryview(data)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    limit = len(view) if size is None else min(size, len(view))
    if limit < _DOS_HEADER_SIZE:
        return None
    if struct.unpack_from("<H", view, 0)[0] != _DOS_SIGNATURE:
        return None
    e_lfanew = struct.unpack_from("<i", view, _LFANEW_OFFSET)[0]
    optional_offset = e_lfanew + 4 + _FILE_HEADER.size
    if e_lfanew < 0 or optional_offset + 2 > limit:
        return None
    magic = struct.unpack_from("<H", view, optional_offset)[0]
    nt_size = _NT_HEADERS_SIZE_PE32 if magic == _OPTIONAL_MAGIC_PE32 else _NT_HEADERS_SIZE_PE32_PLUS
    if limit < e_lfanew + nt_size:
        return None
    if bytes(view[e_lfanew:e_lfanew + 4]) != _NT_SIGNATURE:
        return None
    return PeModule(view[:limit], base)