"""Searching PE module sections and locating virtual tables by class name."""

from __future__ import annotations

import enum
from typing import Iterable, Optional, Union

from .api import find_pattern
from .core import ScanAlignment, ScanHint, ScanResult
from .process import PeModule
from .signature import SignatureElement, object_to_signature, string_to_signature

__all__ = ["CompilerType", "find_pattern_in_section", "find_vtable"]

SignatureLike = Union[str, Iterable[SignatureElement]]


class CompilerType(enum.Enum):
    """The compiler whose run-time type information layout to follow."""

    MSVC = "msvc"
    GNU = "gnu"


def find_pattern_in_section(
    signature: SignatureLike,
    module: PeModule,
    section: str,
    alignment: Union[ScanAlignment, int] = ScanAlignment.X1,
    hints: Union[ScanHint, int] = ScanHint.NONE,
) -> ScanResult:
    """Find ``signature`` in a named section of ``module``.

    The address of the result is relative to the start of the section; a
    missing section gives no result.
    """
    return find_pattern(module.get_section_data(section), signature, alignment, hints)


def _locate(module: PeModule, section_name: str, signature: SignatureLike) -> Optional[int]:
    section = module.find_section(section_name)
    if section is None:
        return None
    result = find_pattern_in_section(signature, module, section_name)
    if not result.has_result():
        return None
    return module.base + section.virtual_address + result.address


def _pointer_signature(module: PeModule, address: int):
    size = module.pointer_size
    return object_to_signature(address & ((1 << (size * 8)) - 1), size)


def _find_vtable_msvc(class_name: str, module: PeModule) -> Optional[int]:
    signature = string_to_signature(".?AV" + class_name + "@@")
    # Classes use 'V' here, structs 'U'.
    signature[3] = None
    type_name = _locate(module, ".data", signature)
    if type_name is None:
        return None
    type_descriptor = type_name - 2 * module.pointer_size

    rva = object_to_signature((type_descriptor - module.base) & 0xFFFFFFFF, 4)
    header_signature = 0x01 if module.is_64bit else 0x00
    locator = [header_signature] + [0x00] * 11 + rva
    object_locator = _locate(module, ".rdata", locator)
    if object_locator is None:
        return None

    vtable = _locate(module, ".data", _pointer_signature(module, object_locator))
    return None if vtable is None else vtable + module.pointer_size


def _find_vtable_gnu(class_name: str, module: PeModule) -> Optional[int]:
    type_name = _locate(module, ".rdata", string_to_signature(f"{len(class_name)}{class_name}"))
    if type_name is None:
        return None
    type_info = _locate(module, ".rdata", _pointer_signature(module, type_name))
    if type_info is None:
        return None
    type_info -= module.pointer_size

    vtable = _locate(module, ".rdata", _pointer_signature(module, type_info))
    return None if vtable is None else vtable + module.pointer_size


def find_vtable(
    class_name: str,
    module: PeModule,
    compiler: CompilerType = CompilerType.MSVC,
) -> Optional[int]:
    """Find the absolute address of a class's virtual table through its type information.

    ``class_name`` is the mangled name as it appears in the type
    information. Returns None when any step of the lookup fails.
    """
    if compiler is CompilerType.MSVC:
        return _find_vtable_msvc(class_name, module)
    if compiler is CompilerType.GNU:
        return _find_vtable_gnu(class_name, module)
    raise ValueError(f"unsupported compiler type: {compiler!r}")