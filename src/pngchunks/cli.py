"""Command line front end for inspecting PNG chunks and installing cICP data."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import List, Optional

from .chunks import PNGFormatError
from .decoders import CICP_PRESETS, CicpInfo
from .parser import parse_png
from .report import HEXDUMP_WINDOW, hex_dump, summarize
from .rewriter import set_cicp

logger = logging.getLogger(__name__)

DEFAULT_CICP_PRESET = "srgb"


def _inspect(args: argparse.Namespace) -> None:
    result = parse_png(Path(args.file).read_bytes(), verify_crc=args.strict)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(summarize(result))


def _hexdump(args: argparse.Namespace) -> None:
    print(hex_dump(Path(args.file).read_bytes(), window=args.limit))


def _set_cicp(args: argparse.Namespace) -> None:
    source = Path(args.source).read_bytes()
    had_cicp = parse_png(source).has_chunk("cICP")
    preset = CICP_PRESETS[args.preset]
    # explicit codes override the preset
    cicp = CicpInfo(
        color_primaries=preset.color_primaries if args.primaries is None else args.primaries,
        transfer_function=preset.transfer_function if args.transfer is None else args.transfer,
        matrix_coefficients=preset.matrix_coefficients if args.matrix is None else args.matrix,
        video_full_range_flag=preset.video_full_range_flag if args.full_range is None else args.full_range,
    )
    output = set_cicp(source, cicp)
    # refuse to write a stream we cannot read back
    parse_png(output, verify_crc=True)
    Path(args.destination).write_bytes(output)
    action = "Updated" if had_cicp else "Added"
    print(
        f"{action} cICP chunk ({cicp.color_primaries_name}, {cicp.transfer_function_name}) "
        f"in {args.destination}"
    )


def _byte(value: str) -> int:
    number = int(value, 0)
    if not 0 <= number <= 255:
        raise argparse.ArgumentTypeError(f"{value} is not in the range 0-255")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive number")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pngchunks", description="Inspect and edit PNG chunk streams")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect = subparsers.add_parser("inspect", help="List the chunks of a PNG file")
    inspect.add_argument("file", help="PNG file to inspect")
    inspect.add_argument("--json", action="store_true", help="Print the parse result as JSON")
    inspect.add_argument("--strict", action="store_true", help="Fail on CRC mismatches")
    inspect.set_defaults(func=_inspect)

    hexdump = subparsers.add_parser("hexdump", help="Hex dump the head and tail of a file")
    hexdump.add_argument("file", help="File to dump")
    hexdump.add_argument("--limit", type=_positive_int, default=HEXDUMP_WINDOW, help="Bytes to show at each end")
    hexdump.set_defaults(func=_hexdump)

    cicp = subparsers.add_parser("set-cicp", help="Add or update the cICP chunk")
    cicp.add_argument("source", help="Input PNG file")
    cicp.add_argument("destination", help="Where to write the modified PNG")
    cicp.add_argument(
        "--preset",
        choices=sorted(CICP_PRESETS),
        default=DEFAULT_CICP_PRESET,
        help="Named color space to start from (default: %(default)s)",
    )
    cicp.add_argument("--primaries", type=_byte, help="Color primaries code")
    cicp.add_argument("--transfer", type=_byte, help="Transfer function code")
    cicp.add_argument("--matrix", type=_byte, help="Matrix coefficients code")
    cicp.add_argument("--full-range", type=int, choices=(0, 1), help="Video full range flag")
    cicp.set_defaults(func=_set_cicp)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except (PNGFormatError, OSError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
