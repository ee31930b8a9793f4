"""Chunk-level data model shared by the parser and the rewriter."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Dict, List, Optional

from .crc import chunk_crc

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

IHDR = "IHDR"
PLTE = "PLTE"
IDAT = "IDAT"
IEND = "IEND"
CICP = "cICP"

CRITICAL_CHUNKS = frozenset({IHDR, PLTE, IDAT, IEND})

# length + type + crc
CHUNK_OVERHEAD = 12

COLOR_GRAYSCALE = 0
COLOR_RGB = 2
COLOR_INDEXED = 3
COLOR_GRAYSCALE_ALPHA = 4
COLOR_RGBA = 6

COLOR_TYPE_NAMES: Dict[int, str] = {
    COLOR_GRAYSCALE: "Grayscale",
    COLOR_RGB: "RGB",
    COLOR_INDEXED: "Indexed",
    COLOR_GRAYSCALE_ALPHA: "Grayscale + Alpha",
    COLOR_RGBA: "RGB + Alpha",
}

CHUNK_DESCRIPTIONS: Dict[str, str] = {
    "IHDR": "Image header: dimensions, bit depth and color type",
    "PLTE": "Palette: color table for indexed images",
    "IDAT": "Image data: compressed pixel data",
    "IEND": "Image end: marks the end of the PNG stream",
    "tRNS": "Transparency: transparent color or palette alpha",
    "cHRM": "Chromaticities: primaries and white point",
    "gAMA": "Gamma: image gamma",
    "iCCP": "ICC profile: embedded color profile",
    "sBIT": "Significant bits per channel",
    "sRGB": "Standard RGB color space rendering intent",
    "cICP": "Coding-independent code points: video signal type",
    "tEXt": "Text: uncompressed Latin-1 text",
    "zTXt": "Compressed text",
    "iTXt": "International text: UTF-8 text",
    "bKGD": "Background color",
    "pHYs": "Physical pixel dimensions",
    "sPLT": "Suggested palette",
    "hIST": "Palette histogram",
    "tIME": "Last modification time",
    "eXIf": "EXIF metadata",
    "acTL": "APNG animation control",
    "fcTL": "APNG frame control",
    "fdAT": "APNG frame data",
}


class PNGFormatError(ValueError):
    """Raised when a buffer cannot be processed as a PNG chunk stream."""


class InvalidSignatureError(PNGFormatError):
    """Raised when the leading 8 bytes are not the PNG signature."""


class MissingAnchorError(PNGFormatError):
    """Raised when a rewrite needs an IDAT insertion point and there is none."""


class ChecksumMismatchError(PNGFormatError):
    """Raised by strict parsing when a stored CRC does not match the chunk."""


def is_critical(chunk_type: str) -> bool:
    return chunk_type in CRITICAL_CHUNKS


def describe_chunk(chunk_type: str) -> str:
    return CHUNK_DESCRIPTIONS.get(chunk_type, f"Unknown chunk type: {chunk_type}")


def color_type_name(color_type: int) -> str:
    return COLOR_TYPE_NAMES.get(color_type, "Unknown")


def _plain(value: object) -> object:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, bytes):
        return value.hex()
    if is_dataclass(value):
        return {key: _plain(item) for key, item in asdict(value).items()}
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


@dataclass(frozen=True)
class HeaderContext:
    width: int
    height: int
    bit_depth: int
    color_type: int
    compression_method: int
    filter_method: int
    interlace_method: int

    @property
    def color_type_name(self) -> str:
        return color_type_name(self.color_type)

    @property
    def interlaced(self) -> bool:
        return self.interlace_method != 0

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = asdict(self)
        data["color_type_name"] = self.color_type_name
        return data


@dataclass(frozen=True)
class ChunkRecord:
    """One framed chunk.

    ``length`` is the declared payload length. ``data`` holds the bytes that
    were actually available, so it is shorter than ``length`` for a chunk cut
    off by the end of the buffer. ``parsed`` is ``None`` for chunk types without
    a decoder and for payloads the decoder could not interpret.
    """

    offset: int
    length: int
    type: str
    data: bytes
    crc: int
    parsed: Optional[object] = None
    crc_truncated: bool = False

    @property
    def total_size(self) -> int:
        return self.length + CHUNK_OVERHEAD

    @property
    def end_offset(self) -> int:
        return self.offset + self.total_size

    @property
    def is_critical(self) -> bool:
        return is_critical(self.type)

    @property
    def description(self) -> str:
        return describe_chunk(self.type)

    @property
    def truncated(self) -> bool:
        return len(self.data) < self.length or self.crc_truncated

    @property
    def computed_crc(self) -> int:
        return chunk_crc(self.type, self.data)

    @property
    def crc_valid(self) -> bool:
        return not self.truncated and self.crc == self.computed_crc

    def to_dict(self) -> Dict[str, object]:
        return {
            "offset": self.offset,
            "length": self.length,
            "type": self.type,
            "crc": self.crc,
            "crc_valid": self.crc_valid,
            "total_size": self.total_size,
            "is_critical": self.is_critical,
            "description": self.description,
            "truncated": self.truncated,
            "parsed": _plain(self.parsed) if self.parsed is not None else None,
        }


@dataclass
class ParseResult:
    chunks: List[ChunkRecord] = field(default_factory=list)
    header: Optional[HeaderContext] = None
    file_size: int = 0

    def find(self, chunk_type: str) -> Optional[ChunkRecord]:
        return next((chunk for chunk in self.chunks if chunk.type == chunk_type), None)

    def find_all(self, chunk_type: str) -> List[ChunkRecord]:
        return [chunk for chunk in self.chunks if chunk.type == chunk_type]

    def has_chunk(self, chunk_type: str) -> bool:
        return self.find(chunk_type) is not None

    @property
    def critical_count(self) -> int:
        return sum(1 for chunk in self.chunks if chunk.is_critical)

    @property
    def ancillary_count(self) -> int:
        return len(self.chunks) - self.critical_count

    def to_dict(self) -> Dict[str, object]:
        return {
            "file_size": self.file_size,
            "header": self.header.to_dict() if self.header else None,
            "chunks": [chunk.to_dict() for chunk in self.chunks],
        }


__all__ = [
    "CHUNK_DESCRIPTIONS",
    "CHUNK_OVERHEAD",
    "CICP",
    "COLOR_GRAYSCALE",
    "COLOR_GRAYSCALE_ALPHA",
    "COLOR_INDEXED",
    "COLOR_RGB",
    "COLOR_RGBA",
    "COLOR_TYPE_NAMES",
    "CRITICAL_CHUNKS",
    "ChecksumMismatchError",
    "ChunkRecord",
    "HeaderContext",
    "IDAT",
    "IEND",
    "IHDR",
    "InvalidSignatureError",
    "MissingAnchorError",
    "PLTE",
    "PNGFormatError",
    "PNG_SIGNATURE",
    "ParseResult",
    "color_type_name",
    "describe_chunk",
    "is_critical",
]
