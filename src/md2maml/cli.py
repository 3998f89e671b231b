"""Command-line interface for md2maml.

Usage::

    md2maml Get-Widget.md                     # writes Get-Widget-help.xml
    md2maml Get-Widget.md -o Widget-help.xml  # explicit output path
    md2maml Get-Widget.md --strict-names      # reject names without '-'
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from md2maml import __version__
from md2maml.converter import Converter
from md2maml.errors import Md2MamlError

OUTPUT_SUFFIX = "-help.xml"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="md2maml",
        description="Convert PowerShell help Markdown files to MAML XML.",
    )
    parser.add_argument(
        "input",
        help="Path to the Markdown file to convert.",
    )
    parser.add_argument(
        "-o", "--output",
        help=f"Output XML file path. Defaults to <input stem>{OUTPUT_SUFFIX}.",
    )
    parser.add_argument(
        "-e", "--encoding",
        default="utf-8",
        help="Input file encoding (default: %(default)s).",
    )
    parser.add_argument(
        "--strict-names",
        action="store_true",
        help="Fail on command names without a verb-noun '-' separator.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print progress information.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        return 1

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = input_path.with_name(input_path.stem + OUTPUT_SUFFIX)

    if args.verbose:
        print(f"Input:  {input_path}")
        print(f"Output: {output_path}")

    try:
        converter = Converter(strict_names=args.strict_names)
        converter.convert_file(input_path, output_path, encoding=args.encoding)
    except (Md2MamlError, OSError, UnicodeDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.verbose:
        print(f"Done. {output_path.stat().st_size} bytes written.")
    else:
        print(f"Converted: {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
