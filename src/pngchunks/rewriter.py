"""Rebuild PNG byte streams with one metadata chunk inserted or replaced."""

from __future__ import annotations

import logging
import struct
from typing import Iterable, List, Tuple

from .chunks import CICP, IDAT, PNG_SIGNATURE, InvalidSignatureError, MissingAnchorError
from .crc import chunk_crc
from .decoders import CicpInfo
from .parser import has_png_signature, iter_frames

logger = logging.getLogger(__name__)

ChunkSpec = Tuple[str, bytes]


def _type_bytes(chunk_type: str) -> bytes:
    raw = chunk_type.encode("latin-1")
    if len(raw) != 4:
        raise ValueError(f"Chunk type must be exactly 4 bytes, got {chunk_type!r}")
    return raw


def encode_chunk(chunk_type: str, payload: bytes) -> bytes:
    """Frame *payload* as a chunk: length, type, payload and CRC."""

    type_bytes = _type_bytes(chunk_type)
    payload = bytes(payload)
    return (
        struct.pack(">I", len(payload))
        + type_bytes
        + payload
        + struct.pack(">I", chunk_crc(type_bytes, payload))
    )


def build_png(chunks: Iterable[ChunkSpec]) -> bytes:
    """Serialize ``(type, payload)`` pairs behind the PNG signature."""

    parts = [PNG_SIGNATURE]
    parts.extend(encode_chunk(chunk_type, payload) for chunk_type, payload in chunks)
    return b"".join(parts)


def replace_or_insert_chunk(data: bytes, chunk_type: str, payload: bytes) -> bytes:
    """Return a copy of *data* carrying *payload* in a *chunk_type* chunk.

    Existing chunks of that type get the new payload at their current position.
    When there is none, the new chunk is placed right before the first ``IDAT``
    chunk. Every chunk is re-framed, so lengths and CRCs in the output are
    always consistent with the payloads. Anything after ``IEND`` is dropped.
    """

    data = bytes(data)
    _type_bytes(chunk_type)
    payload = bytes(payload)
    if not has_png_signature(data):
        raise InvalidSignatureError("Invalid PNG signature: refusing to rewrite a non-PNG buffer")

    frames = list(iter_frames(data))
    replacing = any(frame.type == chunk_type for frame in frames)
    output: List[ChunkSpec] = []
    placed = False

    for frame in frames:
        if frame.type == chunk_type:
            output.append((chunk_type, payload))
            placed = True
            continue
        if frame.type == IDAT and not placed and not replacing:
            output.append((chunk_type, payload))
            placed = True
        output.append((frame.type, frame.data))

    if not placed:
        raise MissingAnchorError(
            f"Cannot insert {chunk_type} chunk: the PNG has no IDAT chunk to insert it before"
        )

    logger.info(
        "%s %s chunk (%d bytes) in a stream of %d chunks",
        "Replaced" if replacing else "Inserted",
        chunk_type,
        len(payload),
        len(output),
    )
    return build_png(output)


def set_cicp(data: bytes, cicp: CicpInfo) -> bytes:
    return replace_or_insert_chunk(data, CICP, cicp.to_bytes())


__all__ = ["ChunkSpec", "build_png", "encode_chunk", "replace_or_insert_chunk", "set_cicp"]
