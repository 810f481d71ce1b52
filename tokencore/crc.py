"""Bit helpers and the CRC-32 used by the on-flash file system."""

_MASK32 = 0xFFFFFFFF

_RTABLE = (
    0x00000000, 0x1DB71064, 0x3B6E20C8, 0x26D930AC,
    0x76DC4190, 0x6B6B51F4, 0x4DB26158, 0x5005713C,
    0xEDB88320, 0xF00F9344, 0xD6D6A3E8, 0xCB61B38C,
    0x9B64C2B0, 0x86D3D2D4, 0xA00AE278, 0xBDBDF21C,
)


def crc32(crc, data):
    """Continue a reflected CRC-32 (polynomial 0x04C11DB7) over ``data``.

    No initial value or final XOR is applied; callers choose them.
    """
    crc &= _MASK32
    for byte in bytes(data):
        crc = (crc >> 4) ^ _RTABLE[(crc ^ byte) & 0xF]
        crc = (crc >> 4) ^ _RTABLE[(crc ^ (byte >> 4)) & 0xF]
    return crc


def npw2(a):
    """Return the exponent of the smallest power of two not below ``a``."""
    return ((a - 1) & _MASK32).bit_length()


def ctz(a):
    """Count the trailing zero bits of a non-zero 32-bit value."""
    a &= _MASK32
    if a == 0:
        raise ValueError("ctz is undefined for zero")
    return (a & -a).bit_length() - 1


def popc(a):
    """Count the set bits of a 32-bit value."""
    return bin(a & _MASK32).count("1")


def aligndown(a, alignment):
    """Round ``a`` down to a multiple of ``alignment``."""
    if alignment <= 0:
        raise ValueError("alignment must be positive")
    a &= _MASK32
    return a - (a % alignment)


def alignup(a, alignment):
    """Round ``a`` up to a multiple of ``alignment``."""
    if alignment <= 0:
        raise ValueError("alignment must be positive")
    return aligndown((a + alignment - 1) & _MASK32, alignment)


def scmp(a, b):
    """Return the signed distance from ``b`` to ``a`` in 32-bit sequence space."""
    diff = (a - b) & _MASK32
    return diff - (1 << 32) if diff & 0x80000000 else diff