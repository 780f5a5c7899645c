import dataclasses
import mmap

import pytest

from hatscan.system import CpuExtensions, SystemInfo, get_system, parse_cpuinfo

SAMPLE = """processor\t: 0
vendor_id\t: GenuineIntel
model name\t: Example CPU @ 3.00GHz
flags\t\t: fpu sse sse2 pni ssse3 sse4_1 sse4_2 popcnt avx avx2 bmi1

processor\t: 1
vendor_id\t: OtherVendor
model name\t: Other CPU
flags\t\t: avx512f avx512bw
"""


def test_parse_cpuinfo_first_entry():
    info = parse_cpuinfo(SAMPLE)
    assert info.cpu_vendor == "GenuineIntel"
    assert info.cpu_brand == "Example CPU @ 3.00GHz"
    ext = info.extensions
    assert ext.sse and ext.sse2 and ext.sse3 and ext.ssse3
    assert ext.sse41 and ext.sse42 and ext.popcnt and ext.bmi
    assert ext.avx and ext.avx2
    assert not ext.avx512f
    assert not ext.avx512bw


def test_parse_cpuinfo_empty():
    info = parse_cpuinfo("")
    assert info.cpu_vendor == ""
    assert info.cpu_brand == ""
    assert info.extensions == CpuExtensions()


def test_parse_cpuinfo_page_size():
    assert parse_cpuinfo(SAMPLE).page_size == mmap.PAGESIZE


def test_from_flags():
    ext = CpuExtensions.from_flags(frozenset({"pni", "sse4_1"}))
    assert ext.sse3
    assert ext.sse41
    assert not ext.sse42


def test_get_system_cached_and_sane():
    first = get_system()
    assert first is get_system()
    assert first.page_size > 0
    assert first.page_size & (first.page_size - 1) == 0


def test_system_info_is_frozen():
    info = SystemInfo(page_size=4096)
    with pytest.raises(dataclasses.FrozenInstanceError):
        info.page_size = 1
    assert info.extensions == CpuExtensions()