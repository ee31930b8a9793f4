from __future__ import annotations

import json
from pathlib import Path
import struct

import pytest

from pngchunks import build_png, parse_png
from pngchunks.cli import main
from pngchunks.report import format_file_size, hex_dump


def write_png(path: Path, *extra) -> Path:
    chunks = [("IHDR", struct.pack(">IIBBBBB", 2, 2, 8, 3, 0, 0, 0)), ("PLTE", b"\xff\x00\x00\x00\xff\x00")]
    chunks.extend(extra)
    chunks.extend([("IDAT", b"\x78\x9c"), ("IEND", b"")])
    path.write_bytes(build_png(chunks))
    return path


def test_inspect_prints_summary(tmp_path: Path, capsys) -> None:
    source = write_png(tmp_path / "input.png", ("tRNS", b"\x00\x80"))
    assert main(["inspect", str(source)]) == 0
    output = capsys.readouterr().out
    assert "Image: 2x2, 8-bit Indexed" in output
    assert "Chunks: 5 (critical: 4, ancillary: 1)" in output
    assert "#ff0000 #00ff00" in output
    assert "alpha_values: [0, 128]" in output


def test_inspect_json(tmp_path: Path, capsys) -> None:
    source = write_png(tmp_path / "input.png")
    assert main(["inspect", "--json", str(source)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [chunk["type"] for chunk in data["chunks"]] == ["IHDR", "PLTE", "IDAT", "IEND"]
    assert data["chunks"][1]["parsed"]["color_count"] == 2


def test_set_cicp_adds_chunk(tmp_path: Path, capsys) -> None:
    source = write_png(tmp_path / "input.png")
    destination = tmp_path / "output.png"
    assert main(["set-cicp", str(source), str(destination), "--primaries", "9", "--transfer", "16"]) == 0
    assert "Added cICP chunk" in capsys.readouterr().out

    result = parse_png(destination.read_bytes())
    assert [chunk.type for chunk in result.chunks] == ["IHDR", "PLTE", "cICP", "IDAT", "IEND"]
    assert result.find("cICP").data == bytes([9, 16, 0, 1])

    assert main(["set-cicp", str(destination), str(destination)]) == 0
    assert "Updated cICP chunk" in capsys.readouterr().out
    assert parse_png(destination.read_bytes()).find("cICP").data == bytes([1, 13, 0, 1])


def test_set_cicp_without_idat_fails(tmp_path: Path, capsys) -> None:
    source = tmp_path / "no-idat.png"
    source.write_bytes(build_png([("IHDR", b"\x00" * 13), ("IEND", b"")]))
    assert main(["set-cicp", str(source), str(tmp_path / "out.png")]) == 1
    assert "no IDAT chunk" in capsys.readouterr().err
    assert not (tmp_path / "out.png").exists()


def test_inspect_rejects_non_png(tmp_path: Path, capsys) -> None:
    source = tmp_path / "text.png"
    source.write_bytes(b"hello world, definitely not a png")
    assert main(["inspect", str(source)]) == 1
    assert "signature" in capsys.readouterr().err


def test_hexdump(tmp_path: Path, capsys) -> None:
    source = write_png(tmp_path / "input.png")
    assert main(["hexdump", str(source)]) == 0
    first_line = capsys.readouterr().out.splitlines()[0]
    assert first_line.startswith("00000000  89 50 4E 47 0D 0A 1A 0A")
    assert first_line.endswith(".PNG........IHDR")


def test_hex_dump_elides_middle() -> None:
    dump = hex_dump(bytes(range(256)) * 20, window=64)
    lines = dump.splitlines()
    assert len(lines) == 4 + 1 + 4
    assert "bytes skipped" in lines[4]
    assert lines[5].startswith("000013C0")


def test_format_file_size() -> None:
    assert format_file_size(512) == "512 B"
    assert format_file_size(2048) == "2.0 KB"
    assert format_file_size(3 * 1048576) == "3.0 MB"


def test_inspect_reports_pixels_and_methods(tmp_path: Path, capsys) -> None:
    source = write_png(tmp_path / "input.png")
    assert main(["inspect", str(source)]) == 0
    output = capsys.readouterr().out
    assert "4 pixels, compression 0, filter 0, not interlaced" in output


def test_set_cicp_preset(tmp_path: Path, capsys) -> None:
    source = write_png(tmp_path / "input.png")
    destination = tmp_path / "hdr.png"
    assert main(["set-cicp", str(source), str(destination), "--preset", "bt2020-pq"]) == 0
    assert "SMPTE ST 2084 (PQ)" in capsys.readouterr().out
    assert parse_png(destination.read_bytes()).find("cICP").data == bytes([9, 16, 0, 1])


def test_set_cicp_codes_override_preset(tmp_path: Path) -> None:
    source = write_png(tmp_path / "input.png")
    destination = tmp_path / "hlg.png"
    args = ["set-cicp", str(source), str(destination), "--preset", "bt2020-hlg", "--full-range", "0"]
    assert main(args) == 0
    assert parse_png(destination.read_bytes()).find("cICP").data == bytes([9, 18, 0, 0])


@pytest.mark.parametrize("limit", ["0", "-16"])
def test_hexdump_rejects_non_positive_limit(tmp_path: Path, capsys, limit: str) -> None:
    source = write_png(tmp_path / "input.png")
    with pytest.raises(SystemExit):
        main(["hexdump", "--limit", limit, str(source)])
    assert "not a positive number" in capsys.readouterr().err


def test_hex_dump_rejects_non_positive_window() -> None:
    with pytest.raises(ValueError):
        hex_dump(bytes(range(40)), window=-16)
