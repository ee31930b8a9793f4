"""Plain-text rendering of parse results for the command line."""

from __future__ import annotations

from typing import List

from .chunks import ChunkRecord, ParseResult
from .decoders import CicpInfo, DecodeFailure, Palette

PALETTE_PREVIEW_LIMIT = 16
HEXDUMP_WINDOW = 1000
HEXDUMP_WIDTH = 16


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1048576:
        return f"{size / 1024:.1f} KB"
    return f"{size / 1048576:.1f} MB"


def _hex_rows(data: bytes, start: int, end: int) -> List[str]:
    rows = []
    for row_start in range(start, end, HEXDUMP_WIDTH):
        row = data[row_start : min(row_start + HEXDUMP_WIDTH, end)]
        hex_bytes = " ".join(f"{byte:02X}" for byte in row)
        ascii_text = "".join(chr(byte) if 32 <= byte <= 126 else "." for byte in row)
        rows.append(f"{row_start:08X}  {hex_bytes:<{HEXDUMP_WIDTH * 3 - 1}}  {ascii_text}")
    return rows


def hex_dump(data: bytes, window: int = HEXDUMP_WINDOW) -> str:
    """Dump the first *window* bytes, and the last *window* for large buffers.

    Buffers longer than twice the window get an elision line between the head
    and the tail.
    """

    if window <= 0:
        raise ValueError(f"Hex dump window must be positive, got {window}")
    total = len(data)
    head_end = min(window, total)
    lines = _hex_rows(data, 0, head_end)
    if total > 2 * window:
        tail_start = total - window
        lines.append(
            f"... {tail_start - head_end} bytes skipped "
            f"(0x{head_end:X} - 0x{tail_start - 1:X}) ..."
        )
        lines.extend(_hex_rows(data, tail_start, total))
    elif total > head_end:
        lines.extend(_hex_rows(data, head_end, total))
    return "\n".join(lines)


def _describe_parsed(chunk: ChunkRecord) -> List[str]:
    parsed = chunk.parsed
    if parsed is None:
        return []
    if isinstance(parsed, DecodeFailure):
        return [f"    error: {parsed.error}"]
    if isinstance(parsed, Palette):
        swatches = " ".join(color.hex for color in parsed.preview(PALETTE_PREVIEW_LIMIT))
        return [f"    colors: {parsed.color_count}", f"    preview: {swatches}"]
    if isinstance(parsed, CicpInfo):
        return [
            f"    primaries: {parsed.color_primaries} ({parsed.color_primaries_name})",
            f"    transfer: {parsed.transfer_function} ({parsed.transfer_function_name})",
            f"    matrix: {parsed.matrix_coefficients} ({parsed.matrix_coefficients_name})",
            f"    full range: {parsed.video_full_range_flag} ({'full' if parsed.full_range else 'narrow'})",
        ]
    fields = parsed.to_dict() if hasattr(parsed, "to_dict") else vars(parsed)
    lines = []
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, bytes):
            value = f"<{len(value)} bytes>"
        lines.append(f"    {key}: {value}")
    return lines


def summarize(result: ParseResult) -> str:
    lines = [f"File size: {format_file_size(result.file_size)}"]
    header = result.header
    if header is not None:
        lines.append(
            f"Image: {header.width}x{header.height}, {header.bit_depth}-bit "
            f"{header.color_type_name}, {header.width * header.height} pixels, "
            f"compression {header.compression_method}, filter {header.filter_method}, "
            f"{'Adam7' if header.interlaced else 'not'} interlaced"
        )
    lines.append(
        f"Chunks: {len(result.chunks)} (critical: {result.critical_count}, "
        f"ancillary: {result.ancillary_count})"
    )
    for chunk in result.chunks:
        kind = "critical" if chunk.is_critical else "ancillary"
        flags = ""
        if chunk.truncated:
            flags = " [truncated]"
        elif not chunk.crc_valid:
            flags = " [bad CRC]"
        lines.append(
            f"{chunk.type} ({kind}) @0x{chunk.offset:X} length={chunk.length} "
            f"crc=0x{chunk.crc:08X}{flags} - {chunk.description}"
        )
        lines.extend(_describe_parsed(chunk))
    return "\n".join(lines)


__all__ = ["HEXDUMP_WINDOW", "PALETTE_PREVIEW_LIMIT", "format_file_size", "hex_dump", "summarize"]
