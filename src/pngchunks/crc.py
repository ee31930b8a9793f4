"""Table-driven CRC-32 used by PNG chunk framing.

PNG protects each chunk with the reflected CRC-32 (polynomial ``0xEDB88320``)
computed over the chunk type followed by the payload.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Tuple

CRC_POLYNOMIAL = 0xEDB88320
_MASK = 0xFFFFFFFF


@lru_cache(maxsize=None)
def crc_table() -> Tuple[int, ...]:
    """Return the 256 precomputed remainders for :data:`CRC_POLYNOMIAL`."""

    table = []
    for index in range(256):
        value = index
        for _ in range(8):
            if value & 1:
                value = CRC_POLYNOMIAL ^ (value >> 1)
            else:
                value >>= 1
        table.append(value)
    return tuple(table)


def crc32(data: bytes, crc: int = 0) -> int:
    """Compute the CRC-32 of *data*, optionally continuing from *crc*."""

    table = crc_table()
    value = crc ^ _MASK
    for byte in data:
        value = table[(value ^ byte) & 0xFF] ^ (value >> 8)
    return value ^ _MASK


def chunk_crc(chunk_type: str | bytes, payload: bytes) -> int:
    if isinstance(chunk_type, str):
        chunk_type = chunk_type.encode("latin-1")
    return crc32(payload, crc32(chunk_type))


__all__ = ["CRC_POLYNOMIAL", "chunk_crc", "crc32", "crc_table"]
