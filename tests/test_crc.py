import zlib

import pytest

from tokencore.crc import aligndown, alignup, crc32, ctz, npw2, popc, scmp


@pytest.mark.parametrize("data", [b"", b"a", b"123456789", bytes(range(256)) * 3])
def test_crc32_matches_standard_crc(data):
    assert crc32(0xFFFFFFFF, data) ^ 0xFFFFFFFF == zlib.crc32(data)


def test_crc32_check_value():
    assert crc32(0xFFFFFFFF, b"123456789") ^ 0xFFFFFFFF == 0xCBF43926


def test_crc32_empty_keeps_state():
    assert crc32(0x12345678, b"") == 0x12345678


def test_crc32_is_incremental():
    whole = crc32(0xFFFFFFFF, b"hello world")
    part = crc32(crc32(0xFFFFFFFF, b"hello "), b"world")
    assert whole == part


@pytest.mark.parametrize("a", [2, 3, 5, 8, 9, 1000, 4096, 0x80000000])
def test_npw2_bounds(a):
    exp = npw2(a)
    assert (1 << exp) >= a
    assert (1 << (exp - 1)) < a


@pytest.mark.parametrize("a", [1, 2, 12, 96, 0x80000000, 0xFFFFFFFF])
def test_ctz_invariant(a):
    n = ctz(a)
    assert (a >> n) & 1 == 1
    assert a % (1 << n) == 0


def test_ctz_zero_rejected():
    with pytest.raises(ValueError):
        ctz(0)


@pytest.mark.parametrize("k", [0, 1, 7, 16, 32])
def test_popc_of_low_mask(k):
    assert popc((1 << k) - 1) == k


@pytest.mark.parametrize("a,alignment", [(0, 4), (5, 4), (8, 8), (513, 512), (100, 3)])
def test_alignment_invariants(a, alignment):
    down = aligndown(a, alignment)
    up = alignup(a, alignment)
    assert down % alignment == 0
    assert up % alignment == 0
    assert down <= a <= up
    assert up - down < 2 * alignment


def test_alignment_rejects_zero():
    with pytest.raises(ValueError):
        aligndown(5, 0)
    with pytest.raises(ValueError):
        alignup(5, 0)


@pytest.mark.parametrize("a,b", [(5, 3), (0, 0xFFFFFFFF), (100, 100), (0x7FFFFFFF, 0)])
def test_scmp_antisymmetric(a, b):
    assert scmp(a, b) == -scmp(b, a) or scmp(a, b) == -(1 << 31)


def test_scmp_wraps_around():
    assert scmp(0, 0xFFFFFFFF) == 1
    assert scmp(0xFFFFFFFF, 0) == -1