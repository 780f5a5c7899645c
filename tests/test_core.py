import pytest

from hatscan.core import (
    ScanAlignment,
    ScanHint,
    ScanResult,
    find_pattern_single,
    next_boundary_align,
    prev_boundary_align,
    segment_scan,
    truncate,
)


def _signature(size):
    return [i + 1 for i in range(size)]


def _wildcard_signature(size):
    sig = _signature(size)
    if size >= 2:
        sig[1] = None
    return sig


@pytest.mark.parametrize("sig_size", [1, 3, 8, 16, 32])
@pytest.mark.parametrize("make_sig", [_signature, _wildcard_signature])
def test_single_scan_x1_finds_every_offset(sig_size, make_sig):
    sig = make_sig(sig_size)
    for size in range(sig_size, sig_size + 40):
        for offset in range(size - sig_size + 1):
            code = bytearray(size)
            assert find_pattern_single(code, 0, size, sig) is None
            code[offset:offset + sig_size] = bytes(_signature(sig_size))
            assert find_pattern_single(code, 0, size, sig) == offset


@pytest.mark.parametrize("sig_size", [1, 3, 8, 16])
@pytest.mark.parametrize("make_sig", [_signature, _wildcard_signature])
def test_single_scan_x16_only_aligned(sig_size, make_sig):
    sig = make_sig(sig_size)
    for size in range(sig_size, sig_size + 40):
        for offset in range(size - sig_size + 1):
            code = bytearray(size)
            assert find_pattern_single(code, 0, size, sig, ScanAlignment.X16) is None
            code[offset:offset + sig_size] = bytes(_signature(sig_size))
            result = find_pattern_single(code, 0, size, sig, ScanAlignment.X16)
            if offset % 16 == 0:
                assert result == offset
            else:
                assert result is None


def test_single_scan_respects_range_and_memoryview():
    data = memoryview(b"abcdefghijklmnopqrstuvwxyz0123456789")
    sig = list(b"xyz")
    found = find_pattern_single(data, 0, len(data), sig)
    assert bytes(data[found:found + 3]) == b"xyz"
    assert find_pattern_single(data, 0, found + 2, sig) is None
    assert find_pattern_single(data, found + 1, len(data), sig) is None


def test_single_scan_rejects_bad_signatures():
    with pytest.raises(ValueError):
        find_pattern_single(b"abc", 0, 3, [])
    with pytest.raises(ValueError):
        find_pattern_single(b"abc", 0, 3, [None, 0x62])


def test_truncate_strips_leading_wildcards():
    assert truncate([None, None, 0x10, None, 0x20]) == (2, [0x10, None, 0x20])
    assert truncate([0x10, None]) == (0, [0x10, None])
    assert truncate([None, None]) == (2, [])


@pytest.mark.parametrize("address", range(0, 70))
def test_boundary_alignment_invariants(address):
    up = next_boundary_align(address, ScanAlignment.X16)
    down = prev_boundary_align(address, ScanAlignment.X16)
    assert up % 16 == 0 and down % 16 == 0
    assert down <= address <= up
    assert up - address < 16 and address - down < 16
    assert next_boundary_align(address, ScanAlignment.X1) == address
    assert prev_boundary_align(address, ScanAlignment.X1) == address


def _covered_starts(segments, signature_size, cmp_offset, vector_size):
    starts = set()
    for part in (segments.pre, segments.post):
        if part is not None:
            starts.update(range(part[0], part[1] - signature_size + 1))
    for vec in segments.vectors:
        starts.update(range(vec - cmp_offset, vec - cmp_offset + vector_size))
    return starts


@pytest.mark.parametrize("vector_size", [16, 32, 64])
@pytest.mark.parametrize("signature_size,cmp_offset", [(1, 0), (3, 1), (8, 0), (16, 5)])
@pytest.mark.parametrize("veccmp", [True, False])
def test_segment_scan_covers_every_start(vector_size, signature_size, cmp_offset, veccmp):
    if veccmp and signature_size > vector_size:
        signature_size = vector_size
    for begin in range(0, 20, 3):
        for length in range(signature_size, 200, 7):
            end = begin + length
            segments = segment_scan(begin, end, signature_size, cmp_offset, vector_size, veccmp)
            expected = set(range(begin, end - signature_size + 1))
            covered = _covered_starts(segments, signature_size, cmp_offset, vector_size)
            assert expected <= covered
            for vec in segments.vectors:
                assert vec % vector_size == 0
                read_size = vector_size if veccmp else signature_size
                assert vec + read_size <= end or vec - cmp_offset + signature_size <= end


def test_segment_scan_short_range_is_all_scalar():
    segments = segment_scan(0, 5, 3, 0, 16, True)
    assert segments.pre == (0, 5)
    assert len(segments.vectors) == 0
    assert segments.post is None


def test_segment_scan_rejects_zero_vector():
    with pytest.raises(ValueError):
        segment_scan(0, 10, 1, 0, 0, False)


def test_rel_worked_examples():
    lea = bytes([0x48, 0x8D, 0x05, 0xBE, 0x53, 0x23, 0x01])
    assert ScanResult(0, lea).rel(3) == 0x12353C5
    cmp = bytes([0x83, 0x3D, 0xBE, 0x53, 0x23, 0x01, 0x00])
    assert ScanResult(0, cmp).rel(2, 1) == 0x12353C5
    assert ScanResult(0, cmp).rel(2) == 0x12353C4


def test_read_little_endian_and_sign():
    data = (0x01020304).to_bytes(4, "little") + b"\xff\xff\xff\xff"
    result = ScanResult(0, data)
    assert result.read(0) == 0x01020304
    assert result.read(4, 4, signed=True) == -1
    assert result.read(4, 4, signed=False) == 0xFFFFFFFF
    assert result.read(0, 1) == 0x04


def test_index_divides_by_element_size():
    data = (24).to_bytes(4, "little")
    assert ScanResult(0, data).index(0, 4, 8) == 3


def test_result_without_match():
    empty = ScanResult()
    assert not empty.has_result()
    assert not empty
    with pytest.raises(ValueError):
        empty.read(0)
    with pytest.raises(ValueError):
        empty.rel(0)


def test_read_out_of_bounds():
    with pytest.raises(IndexError):
        ScanResult(2, b"abcd").read(0, 4)


def test_result_equality_by_address():
    assert ScanResult(5, b"x" * 10) == ScanResult(5, b"y" * 10)
    assert ScanResult(5, b"") != ScanResult(6, b"")


def test_scan_hint_flags_combine():
    both = ScanHint(0b11)
    assert both == ScanHint.X86_64 | ScanHint.PAIR0
    assert both & ScanHint.PAIR0 == ScanHint(0b10)
    assert ScanHint(0b01) & ScanHint(0b10) == ScanHint(0)
    assert ScanAlignment(16) == ScanAlignment.X16
    assert ScanAlignment(1) == ScanAlignment.X1