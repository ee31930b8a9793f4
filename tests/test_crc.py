from __future__ import annotations

import zlib

import pytest

from pngchunks.crc import chunk_crc, crc32, crc_table


@pytest.mark.parametrize(
    "data",
    [b"", b"IEND", b"123456789", bytes(range(256)), b"IHDR" + b"\x00" * 13],
)
def test_crc32_matches_zlib(data: bytes) -> None:
    assert crc32(data) == zlib.crc32(data) & 0xFFFFFFFF


def test_crc32_check_value() -> None:
    assert crc32(b"123456789") == 0xCBF43926


def test_chunk_crc_covers_type_and_payload() -> None:
    assert chunk_crc("IEND", b"") == 0xAE426082
    assert chunk_crc(b"cICP", bytes([1, 13, 0, 1])) == zlib.crc32(b"cICP\x01\x0d\x00\x01") & 0xFFFFFFFF


def test_crc32_can_continue_a_running_value() -> None:
    assert crc32(b"payload", crc32(b"tEXt")) == crc32(b"tEXtpayload")


def test_table_is_built_once() -> None:
    table = crc_table()
    assert len(table) == 256
    assert table[1] == 0x77073096
    assert crc_table() is table
