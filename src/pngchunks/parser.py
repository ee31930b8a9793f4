"""PNG signature check and chunk framing.

The parser walks the chunk stream that follows the 8-byte signature and
produces one :class:`~pngchunks.chunks.ChunkRecord` per chunk. Truncated
trailing data is tolerated: a chunk whose payload or CRC runs past the end of
the buffer is recorded with whatever bytes are available, and framing stops
once fewer than 8 bytes are left. Only a bad signature is fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import struct
from typing import Iterator, Optional

from .chunks import (
    CHUNK_OVERHEAD,
    IEND,
    IHDR,
    PNG_SIGNATURE,
    ChecksumMismatchError,
    ChunkRecord,
    HeaderContext,
    InvalidSignatureError,
    ParseResult,
)
from .decoders import decode_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawFrame:
    offset: int
    length: int
    type: str
    data: bytes
    crc: int
    crc_truncated: bool = False


def has_png_signature(data: bytes) -> bool:
    return data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE


def iter_frames(data: bytes) -> Iterator[RawFrame]:
    """Yield the raw chunks of *data*, starting right after the signature.

    The caller is responsible for checking the signature first. Iteration ends
    after the ``IEND`` chunk or when the buffer cannot hold another length and
    type field.
    """

    offset = len(PNG_SIGNATURE)
    size = len(data)
    while offset + 8 <= size:
        length = struct.unpack(">I", data[offset : offset + 4])[0]
        chunk_type = data[offset + 4 : offset + 8].decode("latin-1")
        data_start = offset + 8
        data_end = data_start + length
        payload = data[data_start:data_end]
        crc_bytes = data[data_end : data_end + 4]
        if len(payload) < length or len(crc_bytes) < 4:
            logger.debug(
                "%s chunk at offset %d is truncated (%d of %d payload bytes, %d CRC bytes)",
                chunk_type,
                offset,
                len(payload),
                length,
                len(crc_bytes),
            )

        yield RawFrame(
            offset=offset,
            length=length,
            type=chunk_type,
            data=payload,
            crc=int.from_bytes(crc_bytes, "big"),
            crc_truncated=len(crc_bytes) < 4,
        )

        offset += length + CHUNK_OVERHEAD
        if chunk_type == IEND:
            break


def parse_png(data: bytes, verify_crc: bool = False) -> ParseResult:
    """Parse *data* into an ordered list of chunk records.

    The first ``IHDR`` chunk establishes the header context that the
    colour-dependent decoders (``sBIT``, ``bKGD``, ``tRNS``) receive; chunks
    that appear before it are recorded without structured data.

    With *verify_crc* enabled, any chunk whose stored CRC does not match the
    recomputed value raises :class:`ChecksumMismatchError`.
    """

    data = bytes(data)
    if not has_png_signature(data):
        raise InvalidSignatureError("Invalid PNG signature: the first 8 bytes are not a PNG header")

    header: Optional[HeaderContext] = None
    chunks = []
    for frame in iter_frames(data):
        parsed = decode_payload(frame.type, frame.data, header)
        if frame.type == IHDR and header is None and isinstance(parsed, HeaderContext):
            header = parsed

        chunk = ChunkRecord(
            offset=frame.offset,
            length=frame.length,
            type=frame.type,
            data=frame.data,
            crc=frame.crc,
            parsed=parsed,
            crc_truncated=frame.crc_truncated,
        )
        if verify_crc and not chunk.crc_valid:
            raise ChecksumMismatchError(
                f"CRC mismatch in {chunk.type} chunk at offset {chunk.offset}: "
                f"stored 0x{chunk.crc:08X}, computed 0x{chunk.computed_crc:08X}"
            )
        chunks.append(chunk)

    return ParseResult(chunks=chunks, header=header, file_size=len(data))


__all__ = ["RawFrame", "has_png_signature", "iter_frames", "parse_png"]
