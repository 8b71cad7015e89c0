"""CLI entry point: python -m onset_analyzer slices/report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .errors import AnalyzerError
from .loaders import load_piece
from .model import Piece
from .report import (compute_slice_report, format_report_json,
                     format_report_text, format_slices_text, slices_to_dicts)
from .slices import OnsetSliceContainer

logger = logging.getLogger(__name__)


def _load(path: str) -> Optional[tuple]:
    """Load a piece and segment it; None (with a message) on failure."""
    try:
        piece: Piece = load_piece(path)
        container = OnsetSliceContainer.from_piece(piece)
    except (OSError, ValueError, AnalyzerError) as exc:
        print(f"Error: {path}: {exc}", file=sys.stderr)
        return None
    return piece, container


def _emit(output: str, args: argparse.Namespace) -> None:
    if args.output:
        Path(args.output).write_text(output)
    else:
        print(output)


def cmd_slices(args: argparse.Namespace) -> int:
    """List the global onset slices."""
    loaded = _load(args.input)
    if loaded is None:
        return 1
    _, container = loaded
    if args.json:
        output = json.dumps(slices_to_dicts(container), indent=2)
    else:
        output = format_slices_text(container)
    _emit(output, args)
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Summarize slices and chord types."""
    loaded = _load(args.input)
    if loaded is None:
        return 1
    piece, container = loaded
    data = compute_slice_report(piece, container)
    if args.json:
        output = format_report_json(data)
    else:
        output = format_report_text(data)
    _emit(output, args)
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="onset_analyzer",
        description="Onset slice segmentation and chord-type analysis for MIDI",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    p_slices = subparsers.add_parser("slices", help="List onset slices")
    p_slices.add_argument("input", help="Path to .mid or .json file")
    p_slices.add_argument("--json", action="store_true", help="JSON output")
    p_slices.add_argument("-o", "--output", help="Output file path")

    p_report = subparsers.add_parser("report", help="Slice and chord-type summary")
    p_report.add_argument("input", help="Path to .mid or .json file")
    p_report.add_argument("--json", action="store_true", help="JSON output")
    p_report.add_argument("-o", "--output", help="Output file path")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "slices":
        return cmd_slices(args)
    elif args.command == "report":
        return cmd_report(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
