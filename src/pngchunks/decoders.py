"""Payload decoders for the PNG chunk types the inspector understands.

Each decoder takes the raw payload and the header context established so far
and returns a structured record, or ``None`` when the payload cannot be
interpreted. Decoders never raise for malformed payloads: a bad chunk must not
abort the framing of the rest of the stream.

Decoders are looked up by chunk type in :data:`DECODERS`; use
:func:`register_decoder` to add new ones.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import logging
import struct
from typing import Callable, Dict, List, Optional

from .chunks import (
    COLOR_GRAYSCALE,
    COLOR_GRAYSCALE_ALPHA,
    COLOR_INDEXED,
    COLOR_RGB,
    COLOR_RGBA,
    HeaderContext,
)

logger = logging.getLogger(__name__)

Decoder = Callable[[bytes, Optional[HeaderContext]], Optional[object]]

DECODERS: Dict[str, Decoder] = {}

# PNG stores gamma and chromaticities as value * 100000
FIXED_POINT_SCALE = 100000

COMPRESSED_TEXT_MARKER = "<compressed data, DEFLATE not decoded>"

RENDERING_INTENTS = ["Perceptual", "Relative colorimetric", "Saturation", "Absolute colorimetric"]

PHYS_UNITS = {0: "unknown", 1: "meter"}

CICP_PRIMARIES: Dict[int, str] = {
    0: "Reserved",
    1: "BT.709 / sRGB",
    2: "Unspecified",
    4: "BT.470 System M",
    5: "BT.470 System B,G / BT.601 625",
    6: "BT.601 525 / SMPTE 170",
    7: "SMPTE 240",
    8: "Generic film",
    9: "BT.2020 / BT.2100",
    10: "SMPTE ST 428-1 (XYZ)",
    11: "SMPTE RP 431-2",
    12: "SMPTE EG 432-1 / Display P3",
    22: "Unspecified",
}

CICP_TRANSFER: Dict[int, str] = {
    0: "Reserved",
    1: "BT.709",
    2: "Unspecified",
    4: "Gamma 2.2",
    5: "Gamma 2.8",
    6: "BT.601",
    7: "SMPTE 240",
    8: "Linear",
    9: "Log (100:1)",
    10: "Log (100*sqrt(10):1)",
    11: "IEC 61966-2-4",
    12: "BT.1361",
    13: "sRGB",
    14: "BT.2020 (10-bit)",
    15: "BT.2020 (12-bit)",
    16: "SMPTE ST 2084 (PQ)",
    17: "SMPTE ST 428-1",
    18: "ARIB STD-B67 (HLG)",
}

CICP_MATRIX: Dict[int, str] = {
    0: "Identity (RGB/GBR)",
    1: "BT.709",
    2: "Unspecified",
    4: "FCC",
    5: "BT.470 System B,G / BT.601",
    6: "BT.601",
    7: "SMPTE 240",
    8: "YCgCo",
    9: "BT.2020 NCL",
    10: "BT.2020 CL",
    11: "SMPTE ST 2085",
    12: "Chromaticity-derived NCL",
    13: "Chromaticity-derived CL",
    14: "ICtCp",
}


def register_decoder(chunk_type: str) -> Callable[[Decoder], Decoder]:
    def decorator(func: Decoder) -> Decoder:
        DECODERS[chunk_type] = func
        return func

    return decorator


def decode_payload(chunk_type: str, payload: bytes, header: Optional[HeaderContext]) -> Optional[object]:
    """Run the decoder registered for *chunk_type*, if any."""

    decoder = DECODERS.get(chunk_type)
    if decoder is None:
        return None
    parsed = decoder(payload, header)
    if parsed is None:
        logger.debug("No structured data for %s chunk (%d payload bytes)", chunk_type, len(payload))
    return parsed


# ---------------------------------------------------------------------------
# Structured records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DecodeFailure:
    """Marker left in ``ChunkRecord.parsed`` when a payload is malformed."""

    error: str


@dataclass(frozen=True)
class TextChunk:
    keyword: Optional[str]
    text: str


@dataclass(frozen=True)
class CompressedTextChunk:
    keyword: Optional[str]
    compression_method: Optional[int]
    compressed_data: bytes
    compressed_text: str = COMPRESSED_TEXT_MARKER


@dataclass(frozen=True)
class InternationalTextChunk:
    keyword: str
    compression_flag: int
    compression_method: int
    language_tag: str
    translated_keyword: str
    text: str
    compressed_data: Optional[bytes] = None


@dataclass(frozen=True)
class Timestamp:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int

    def isoformat(self) -> str:
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
            f"T{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )


@dataclass(frozen=True)
class PhysicalDimensions:
    pixels_per_unit_x: int
    pixels_per_unit_y: int
    unit_specifier: int
    unit_name: str


@dataclass(frozen=True)
class Gamma:
    gamma: float
    raw_value: int


@dataclass(frozen=True)
class Chromaticities:
    white_point_x: float
    white_point_y: float
    red_x: float
    red_y: float
    green_x: float
    green_y: float
    blue_x: float
    blue_y: float


@dataclass(frozen=True)
class RenderingIntent:
    rendering_intent: int
    rendering_intent_name: str


@dataclass(frozen=True)
class SignificantBits:
    grayscale: Optional[int] = None
    red: Optional[int] = None
    green: Optional[int] = None
    blue: Optional[int] = None
    alpha: Optional[int] = None


@dataclass(frozen=True)
class BackgroundColor:
    gray: Optional[int] = None
    red: Optional[int] = None
    green: Optional[int] = None
    blue: Optional[int] = None
    palette_index: Optional[int] = None


@dataclass(frozen=True)
class Transparency:
    gray: Optional[int] = None
    red: Optional[int] = None
    green: Optional[int] = None
    blue: Optional[int] = None
    alpha_values: Optional[List[int]] = None


@dataclass(frozen=True)
class PaletteEntry:
    red: int
    green: int
    blue: int
    hex: str


@dataclass(frozen=True)
class Palette:
    """Decoded PLTE chunk.

    ``colors`` holds every complete RGB triple; presentation code decides how
    many of them to show (see :meth:`preview`).
    """

    colors: List[PaletteEntry] = field(default_factory=list)

    @property
    def color_count(self) -> int:
        return len(self.colors)

    def preview(self, limit: int = 16) -> List[PaletteEntry]:
        return self.colors[:limit]

    def to_dict(self) -> Dict[str, object]:
        return {
            "color_count": self.color_count,
            "colors": [asdict(color) for color in self.colors],
        }


@dataclass(frozen=True)
class CicpInfo:
    color_primaries: int
    transfer_function: int
    matrix_coefficients: int
    video_full_range_flag: int

    @property
    def color_primaries_name(self) -> str:
        return CICP_PRIMARIES.get(self.color_primaries, "Unknown")

    @property
    def transfer_function_name(self) -> str:
        return CICP_TRANSFER.get(self.transfer_function, "Unknown")

    @property
    def matrix_coefficients_name(self) -> str:
        return CICP_MATRIX.get(self.matrix_coefficients, "Unknown")

    @property
    def full_range(self) -> bool:
        return bool(self.video_full_range_flag)

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = asdict(self)
        data.update(
            color_primaries_name=self.color_primaries_name,
            transfer_function_name=self.transfer_function_name,
            matrix_coefficients_name=self.matrix_coefficients_name,
        )
        return data

    def to_bytes(self) -> bytes:
        return bytes(
            (
                self.color_primaries,
                self.transfer_function,
                self.matrix_coefficients,
                self.video_full_range_flag,
            )
        )


CICP_PRESETS: Dict[str, CicpInfo] = {
    "srgb": CicpInfo(1, 13, 0, 1),
    "display-p3": CicpInfo(12, 13, 0, 1),
    "bt2020-pq": CicpInfo(9, 16, 0, 1),
    "bt2020-hlg": CicpInfo(9, 18, 0, 1),
    "bt709": CicpInfo(1, 1, 0, 1),
}


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------

@register_decoder("IHDR")
def decode_header(payload: bytes, header: Optional[HeaderContext] = None) -> Optional[HeaderContext]:
    if len(payload) < 13:
        return None
    return HeaderContext(*struct.unpack_from(">IIBBBBB", payload))


@register_decoder("tEXt")
def decode_text(payload: bytes, header: Optional[HeaderContext] = None) -> TextChunk:
    text = payload.decode("latin-1")
    keyword, sep, value = text.partition("\0")
    if not sep:
        return TextChunk(keyword=None, text=text)
    return TextChunk(keyword=keyword, text=value)


@register_decoder("zTXt")
def decode_compressed_text(payload: bytes, header: Optional[HeaderContext] = None) -> CompressedTextChunk:
    null_index = payload.find(b"\0")
    if null_index == -1:
        return CompressedTextChunk(keyword=None, compression_method=None, compressed_data=payload)
    method = payload[null_index + 1] if null_index + 1 < len(payload) else None
    return CompressedTextChunk(
        keyword=payload[:null_index].decode("latin-1"),
        compression_method=method,
        compressed_data=payload[null_index + 2 :],
    )


@register_decoder("iTXt")
def decode_international_text(
    payload: bytes, header: Optional[HeaderContext] = None
) -> InternationalTextChunk | DecodeFailure:
    null_index = payload.find(b"\0")
    if null_index == -1:
        return DecodeFailure("missing NUL after keyword")
    keyword = payload[:null_index].decode("utf-8", errors="replace")
    offset = null_index + 1

    if offset + 2 > len(payload):
        return DecodeFailure("missing compression flag or method")
    compression_flag = payload[offset]
    compression_method = payload[offset + 1]
    offset += 2

    null_index = payload.find(b"\0", offset)
    if null_index == -1:
        return DecodeFailure("missing NUL after language tag")
    language_tag = payload[offset:null_index].decode("ascii", errors="replace")
    offset = null_index + 1

    null_index = payload.find(b"\0", offset)
    if null_index == -1:
        return DecodeFailure("missing NUL after translated keyword")
    translated_keyword = payload[offset:null_index].decode("utf-8", errors="replace")
    rest = payload[null_index + 1 :]

    if compression_flag:
        text = COMPRESSED_TEXT_MARKER
        compressed_data: Optional[bytes] = rest
    else:
        text = rest.decode("utf-8", errors="replace")
        compressed_data = None
    return InternationalTextChunk(
        keyword=keyword,
        compression_flag=compression_flag,
        compression_method=compression_method,
        language_tag=language_tag,
        translated_keyword=translated_keyword,
        text=text,
        compressed_data=compressed_data,
    )


@register_decoder("tIME")
def decode_timestamp(payload: bytes, header: Optional[HeaderContext] = None) -> Optional[Timestamp]:
    if len(payload) < 7:
        return None
    return Timestamp(*struct.unpack_from(">HBBBBB", payload))


@register_decoder("pHYs")
def decode_physical_dimensions(
    payload: bytes, header: Optional[HeaderContext] = None
) -> Optional[PhysicalDimensions]:
    if len(payload) < 9:
        return None
    ppu_x, ppu_y, unit = struct.unpack_from(">IIB", payload)
    return PhysicalDimensions(
        pixels_per_unit_x=ppu_x,
        pixels_per_unit_y=ppu_y,
        unit_specifier=unit,
        unit_name=PHYS_UNITS.get(unit, "Unknown"),
    )


@register_decoder("gAMA")
def decode_gamma(payload: bytes, header: Optional[HeaderContext] = None) -> Optional[Gamma]:
    if len(payload) < 4:
        return None
    raw = struct.unpack_from(">I", payload)[0]
    return Gamma(gamma=raw / FIXED_POINT_SCALE, raw_value=raw)


@register_decoder("cHRM")
def decode_chromaticities(payload: bytes, header: Optional[HeaderContext] = None) -> Optional[Chromaticities]:
    if len(payload) < 32:
        return None
    values = struct.unpack_from(">8I", payload)
    return Chromaticities(*(value / FIXED_POINT_SCALE for value in values))


@register_decoder("sRGB")
def decode_rendering_intent(payload: bytes, header: Optional[HeaderContext] = None) -> Optional[RenderingIntent]:
    if not payload:
        return None
    intent = payload[0]
    name = RENDERING_INTENTS[intent] if intent < len(RENDERING_INTENTS) else "Unknown"
    return RenderingIntent(rendering_intent=intent, rendering_intent_name=name)


@register_decoder("sBIT")
def decode_significant_bits(payload: bytes, header: Optional[HeaderContext]) -> Optional[SignificantBits]:
    if header is None:
        return None
    color_type = header.color_type
    if color_type == COLOR_GRAYSCALE and len(payload) >= 1:
        return SignificantBits(grayscale=payload[0])
    if color_type in (COLOR_RGB, COLOR_INDEXED) and len(payload) >= 3:
        return SignificantBits(red=payload[0], green=payload[1], blue=payload[2])
    if color_type == COLOR_GRAYSCALE_ALPHA and len(payload) >= 2:
        return SignificantBits(grayscale=payload[0], alpha=payload[1])
    if color_type == COLOR_RGBA and len(payload) >= 4:
        return SignificantBits(red=payload[0], green=payload[1], blue=payload[2], alpha=payload[3])
    return None


@register_decoder("bKGD")
def decode_background(payload: bytes, header: Optional[HeaderContext]) -> Optional[BackgroundColor]:
    if header is None:
        return None
    color_type = header.color_type
    if color_type in (COLOR_GRAYSCALE, COLOR_GRAYSCALE_ALPHA) and len(payload) >= 2:
        return BackgroundColor(gray=struct.unpack_from(">H", payload)[0])
    if color_type in (COLOR_RGB, COLOR_RGBA) and len(payload) >= 6:
        red, green, blue = struct.unpack_from(">HHH", payload)
        return BackgroundColor(red=red, green=green, blue=blue)
    if color_type == COLOR_INDEXED and len(payload) >= 1:
        return BackgroundColor(palette_index=payload[0])
    return None


@register_decoder("tRNS")
def decode_transparency(payload: bytes, header: Optional[HeaderContext]) -> Optional[Transparency]:
    if header is None:
        return None
    color_type = header.color_type
    if color_type == COLOR_GRAYSCALE and len(payload) >= 2:
        return Transparency(gray=struct.unpack_from(">H", payload)[0])
    if color_type == COLOR_RGB and len(payload) >= 6:
        red, green, blue = struct.unpack_from(">HHH", payload)
        return Transparency(red=red, green=green, blue=blue)
    if color_type == COLOR_INDEXED:
        return Transparency(alpha_values=list(payload))
    return None


@register_decoder("PLTE")
def decode_palette(payload: bytes, header: Optional[HeaderContext] = None) -> Palette:
    colors = []
    # a trailing partial triple is ignored
    for index in range(0, len(payload) - 2, 3):
        red, green, blue = payload[index : index + 3]
        colors.append(PaletteEntry(red=red, green=green, blue=blue, hex=f"#{red:02x}{green:02x}{blue:02x}"))
    return Palette(colors=colors)


@register_decoder("cICP")
def decode_cicp(payload: bytes, header: Optional[HeaderContext] = None) -> Optional[CicpInfo]:
    if len(payload) < 4:
        return None
    return CicpInfo(*payload[:4])


__all__ = [
    "BackgroundColor",
    "CICP_MATRIX",
    "CICP_PRESETS",
    "CICP_PRIMARIES",
    "CICP_TRANSFER",
    "COMPRESSED_TEXT_MARKER",
    "Chromaticities",
    "CicpInfo",
    "CompressedTextChunk",
    "DECODERS",
    "DecodeFailure",
    "Gamma",
    "InternationalTextChunk",
    "Palette",
    "PaletteEntry",
    "PhysicalDimensions",
    "RENDERING_INTENTS",
    "RenderingIntent",
    "SignificantBits",
    "TextChunk",
    "Timestamp",
    "Transparency",
    "decode_payload",
    "register_decoder",
]
