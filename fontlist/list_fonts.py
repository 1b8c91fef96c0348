#!/usr/bin/env python3
"""
Fontlist – list_fonts.py
========================

Command-line entry point: enumerate the installed font families and write a
name report to the console and to a log file.

Pipeline
--------
1. Open the log file (fatal on failure).
2. Discover and scan the installed fonts with fontTools.
3. Aggregate families and faces into the report model.
4. Write the report to console and log (and optionally JSON).
"""

from __future__ import annotations

import argparse
import json
import platform
import sys
from pathlib import Path

from fontlist.aggregate import build_report
from fontlist.errors import FontCollectionError
from fontlist.report import open_log, report_to_json, write_report
from fontlist.system_fonts import load_system_font_collection


def _setup_console() -> None:
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if reconfigure is not None:
        reconfigure(encoding="utf-8", errors="replace")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="List installed font families, their aliases and faces.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("font.log"),
        help="Log file receiving a copy of the report",
    )
    parser.add_argument(
        "--font-dir",
        type=Path,
        action="append",
        dest="font_dirs",
        help="Scan this directory instead of the installed fonts (repeatable)",
    )
    parser.add_argument(
        "--json",
        type=Path,
        dest="json_output",
        help="Also write the report as JSON to this file",
    )
    parser.add_argument(
        "--pause",
        action="store_true",
        help="Wait for Enter before exiting",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print discovery diagnostics",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    _setup_console()

    try:
        log = open_log(args.output)
    except OSError:
        print(f"❌ Error: Could not create {args.output} file!", file=sys.stderr)
        return 1

    with log:
        print("Font Family Enumerator")
        print("======================")

        try:
            collection = load_system_font_collection(
                font_dirs=args.font_dirs, verbose=args.verbose
            )
            model = build_report(collection)
        except FontCollectionError as e:
            print(f"❌ Error: {e}", file=sys.stderr)
            return 1

        write_report(model, console=sys.stdout, log=log)

    if args.json_output:
        args.json_output.write_text(
            json.dumps(
                report_to_json(model, platform.system().lower()),
                indent=2,
                ensure_ascii=False,
            ),
            encoding="utf-8",
        )
        if args.verbose:
            print(f"OK: wrote JSON report to {args.json_output}")

    print(f"Results saved to {args.output}")

    if args.pause:
        print("Press Enter to exit...")
        sys.stdin.readline()

    return 0


if __name__ == "__main__":
    sys.exit(main())
