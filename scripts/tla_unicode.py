#!/usr/bin/env python3
"""Convert a tokenized TLA+ spec between ASCII and Unicode symbols.

Usage:
    python3 scripts/tla_unicode.py -a2u spec.tokens.json [Spec.tla]
    python3 scripts/tla_unicode.py -u2a spec.tokens.json > Spec.tla

The input is a token grid (see ``tlaglyph.grid_io``) with comment kinds and
alignment anchors already computed. Without an output file the converted
spec is printed to stdout.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from tlaglyph.errors import CommandLineError, InvariantViolation, TokenGridFormatError
from tlaglyph.grid_io import load_token_grid
from tlaglyph.rewriter import convert
from tlaglyph.sinks import FileSink, OutputSink, StreamSink
from tlaglyph.types import Direction

log = logging.getLogger("tla_unicode")

APP = "tla_unicode"


@dataclass(frozen=True, slots=True)
class ConvertOptions:
    direction: Direction
    input_path: Path
    output_path: Path | None
    debug: bool = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP,
        description="Convert TLA+ between ASCII and Unicode symbols, keeping alignment.",
        add_help=False,
    )
    parser.add_argument("-h", "-help", "--help", action="help", help="show this help message and exit")
    parser.add_argument(
        "-a2u", "--a2u",
        dest="direction",
        action="append_const",
        const="TO_UNICODE",
        help="convert from ASCII to Unicode",
    )
    parser.add_argument(
        "-u2a", "--u2a",
        dest="direction",
        action="append_const",
        const="TO_ASCII",
        help="convert from Unicode to ASCII",
    )
    parser.add_argument("-debug", "--debug", "--verbose", dest="debug", action="store_true")
    parser.add_argument("input", type=Path, nargs="?", help="token grid JSON file")
    parser.add_argument("output", type=Path, nargs="?", help="output .tla file (default: stdout)")
    return parser


def resolve_options(args: argparse.Namespace) -> ConvertOptions:
    """Validate parsed arguments; raises CommandLineError."""
    directions: list[Direction] = args.direction or []
    if not directions:
        raise CommandLineError("One of -a2u or -u2a must be specified")
    if len(directions) > 1:
        raise CommandLineError("Only one of -a2u or -u2a must be specified")
    if args.input is None:
        raise CommandLineError("Input file not specified")
    output: Path | None = args.output
    if output is not None and output.resolve() == args.input.resolve():
        raise CommandLineError(
            "Output file is the same as the input file."
            " This would overwrite your input file, so I won't do it",
        )
    return ConvertOptions(
        direction=directions[0],
        input_path=args.input,
        output_path=output,
        debug=bool(args.debug),
    )


def run(options: ConvertOptions) -> int:
    grid = load_token_grid(options.input_path)
    log.debug("Loaded %d line(s) from %s", len(grid), options.input_path)
    sink: OutputSink
    if options.output_path is not None:
        sink = FileSink(options.output_path)
    else:
        sink = StreamSink(sys.stdout, "STDOUT")
    stats = convert(grid, options.direction, sink)
    log.info(
        "Converted %d line(s) (%d realigned)",
        stats.lines_written,
        stats.realigned_lines,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        options = resolve_options(args)
    except CommandLineError as exc:
        print(f"{APP} command-line error: {exc}.", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if options.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    if not options.input_path.exists():
        print(f"{APP}: input file not found: {options.input_path}", file=sys.stderr)
        return 2
    try:
        return run(options)
    except TokenGridFormatError as exc:
        print(f"{APP}: bad token grid: {exc}", file=sys.stderr)
        return 1
    except InvariantViolation as exc:
        print(f"{APP}: internal error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
