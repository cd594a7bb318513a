"""Fast 32-bit hashing of byte strings, used to key cached formulas."""

from __future__ import annotations

import struct

_M = 0x5BD1E995
_R = 24
_SEED = 0x29111983
_MASK = 0xFFFFFFFF


def hash_cnf(key) -> int:
    """Return the 32-bit MurmurHash2-style hash of a bytes-like ``key``.

    Four-byte blocks are read little-endian. Raises ``TypeError`` when
    ``key`` does not support the buffer protocol (``str`` included).
    """
    data = bytes(memoryview(key))
    length = len(data)
    h = (_SEED ^ length) & _MASK

    block_end = length - (length % 4)
    for (k,) in struct.iter_unpack("<I", data[:block_end]):
        k = (k * _M) & _MASK
        k ^= k >> _R
        k = (k * _M) & _MASK
        h = (h * _M) & _MASK
        h ^= k

    tail = data[block_end:]
    if tail:
        for shift, byte in enumerate(tail):
            h ^= byte << (8 * shift)
        h = (h * _M) & _MASK

    h ^= h >> 13
    h = (h * _M) & _MASK
    h ^= h >> 15
    return h