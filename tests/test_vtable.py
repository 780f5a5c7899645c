import struct

import pytest

from hatscan.core import ScanAlignment
from hatscan.process import module_at
from hatscan.vtable import CompilerType, find_pattern_in_section, find_vtable

BASE = 0x140000000
SCN_R = 0x40000000
SCN_W = 0x80000000
SCN_X = 0x20000000

SECTIONS = [
    (".text", 0x1000, 0x800, SCN_R | SCN_X),
    (".rdata", 0x2000, 0x800, SCN_R),
    (".data", 0x3000, 0x800, SCN_R | SCN_W),
]


def build_pe(sections, size_of_image=0x4000, pe32_plus=True):
    image = bytearray(size_of_image)
    image[0:2] = b"MZ"
    e_lfanew = 0x40
    struct.pack_into("<i", image, 0x3C, e_lfanew)
    image[e_lfanew:e_lfanew + 4] = b"PE\0\0"
    opt_size = 240 if pe32_plus else 224
    machine = 0x8664 if pe32_plus else 0x14C
    struct.pack_into("<HHIIIHH", image, e_lfanew + 4, machine, len(sections), 0, 0, 0, opt_size, 0)
    opt = e_lfanew + 24
    struct.pack_into("<H", image, opt, 0x20B if pe32_plus else 0x10B)
    struct.pack_into("<I", image, opt + 56, size_of_image)
    header = opt + opt_size
    for name, va, vsize, chars in sections:
        struct.pack_into("<8sIIIIIIHHI", image, header, name.encode(), vsize, va, vsize, va, 0, 0, 0, 0, chars)
        header += 40
    return image


def build_msvc_image(kind=b"V", pe32_plus=True, base=BASE, with_locator=True):
    ptr = 8 if pe32_plus else 4
    ptr_fmt = "<Q" if pe32_plus else "<I"
    image = build_pe(SECTIONS, pe32_plus=pe32_plus)
    name_rva = 0x3100
    image[name_rva:name_rva + 9] = b".?A" + kind + b"Foo@@"
    descriptor_rva = name_rva - 2 * ptr
    locator_rva = 0x2100
    if with_locator:
        image[locator_rva] = 0x01 if pe32_plus else 0x00
        struct.pack_into("<I", image, locator_rva + 12, descriptor_rva)
    struct.pack_into(ptr_fmt, image, 0x3200, base + locator_rva)
    return module_at(image, base=base), base + 0x3200 + ptr


def build_gnu_image():
    image = build_pe(SECTIONS)
    image[0x2010:0x2014] = b"3Foo"
    struct.pack_into("<Q", image, 0x2108, BASE + 0x2010)
    struct.pack_into("<Q", image, 0x2208, BASE + 0x2100)
    return module_at(image, base=BASE), BASE + 0x2208 + 8


def test_find_pattern_in_section_relative_to_section():
    image = build_pe(SECTIONS)
    image[0x3020:0x3024] = b"\xde\xad\xbe\xef"
    module = module_at(image, base=BASE)
    result = find_pattern_in_section("DE AD ? EF", module, ".data")
    assert result.has_result()
    assert result.address == 0x20
    assert not find_pattern_in_section("DE AD ? EF", module, ".rdata").has_result()


def test_find_pattern_in_missing_section():
    module = module_at(build_pe(SECTIONS), base=BASE)
    assert not find_pattern_in_section("00", module, ".bss").has_result()


def test_find_pattern_in_section_alignment():
    image = build_pe(SECTIONS)
    image[0x3021:0x3023] = b"\xab\xcd"
    image[0x3040:0x3042] = b"\xab\xcd"
    module = module_at(image, base=BASE)
    result = find_pattern_in_section("AB CD", module, ".data", ScanAlignment.X16)
    assert result.address == 0x40
    assert find_pattern_in_section("AB CD", module, ".data").address == 0x21


def test_msvc_class_vtable():
    module, expected = build_msvc_image()
    assert find_vtable("Foo", module, CompilerType.MSVC) == expected


def test_msvc_struct_vtable():
    module, expected = build_msvc_image(kind=b"U")
    assert find_vtable("Foo", module) == expected


def test_msvc_pe32_vtable():
    module, expected = build_msvc_image(pe32_plus=False, base=0x400000)
    assert find_vtable("Foo", module) == expected


def test_msvc_missing_class():
    module, _ = build_msvc_image()
    assert find_vtable("Bar", module) is None


def test_msvc_missing_locator():
    module, _ = build_msvc_image(with_locator=False)
    assert find_vtable("Foo", module) is None


def test_gnu_vtable():
    module, expected = build_gnu_image()
    assert find_vtable("Foo", module, CompilerType.GNU) == expected


def test_gnu_missing_class():
    module, _ = build_gnu_image()
    assert find_vtable("Quux", module, CompilerType.GNU) is None


def test_unsupported_compiler():
    module, _ = build_gnu_image()
    with pytest.raises(ValueError):
        find_vtable("Foo", module, "clang")