"""Parse, inspect and rewrite PNG chunk streams."""

from .chunks import (
    ChecksumMismatchError,
    ChunkRecord,
    HeaderContext,
    InvalidSignatureError,
    MissingAnchorError,
    ParseResult,
    PNGFormatError,
    PNG_SIGNATURE,
)
from .crc import chunk_crc, crc32
from .decoders import CicpInfo, DecodeFailure, register_decoder
from .parser import has_png_signature, iter_frames, parse_png
from .rewriter import build_png, encode_chunk, replace_or_insert_chunk, set_cicp

__all__ = [
    "ChecksumMismatchError",
    "ChunkRecord",
    "CicpInfo",
    "DecodeFailure",
    "HeaderContext",
    "InvalidSignatureError",
    "MissingAnchorError",
    "PNGFormatError",
    "PNG_SIGNATURE",
    "ParseResult",
    "build_png",
    "chunk_crc",
    "crc32",
    "encode_chunk",
    "has_png_signature",
    "iter_frames",
    "parse_png",
    "register_decoder",
    "replace_or_insert_chunk",
    "set_cicp",
]
