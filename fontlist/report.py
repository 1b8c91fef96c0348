"""
Fontlist – report.py
====================

Render the report model as text (console + log file) and as JSON.

Text layout::

    Found 2 font families

    FAMILY: Segoe UI [SegoeUI]
      Aliases: Segoe UI (ja)
      Segoe UI [SegoeUI] (Weight: 400, Stretch: 5, Style: 0)
      Segoe UI Bold [SegoeUI-Bold] (Weight: 700, Stretch: 5, Style: 0)

The console and the log receive the very same lines; only the encoding of
the two streams differs (the log is UTF-8 with a BOM).
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TextIO

from fontlist.model import FontFace, FontFamily, ReportModel

LOG_ENCODING = "utf-8-sig"


def utc_now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def _bracketed(alternate: str, name: str) -> str:
    """Return `` [alternate]`` when it adds information to ``name``."""
    if alternate and alternate != name:
        return f" [{alternate}]"
    return ""


def format_face(face: FontFace) -> str:
    return (
        f"  {face.display_name}{_bracketed(face.postscript_name, face.display_name)}"
        f" (Weight: {face.weight}, Stretch: {face.stretch}, Style: {face.style})"
    )


def format_family(family: FontFamily) -> list[str]:
    """Return the lines of one family block, trailing blank line included."""
    lines = [
        f"FAMILY: {family.primary_name}"
        f"{_bracketed(family.postscript_family_name, family.primary_name)}"
    ]
    if len(family.alias_names) > 1:
        lines.append("  Aliases: " + ", ".join(family.other_aliases()))
    lines.extend(format_face(face) for face in family.faces)
    lines.append("")
    return lines


def format_report(model: ReportModel) -> list[str]:
    lines = [f"Found {len(model)} font families", ""]
    for family in model:
        lines.extend(format_family(family))
    return lines


def write_report(model: ReportModel, console: TextIO, log: TextIO) -> None:
    """Write the text report to both sinks."""
    text = "".join(f"{line}\n" for line in format_report(model))
    console.write(text)
    log.write(text)


def open_log(path: Path) -> TextIO:
    """Open (and truncate) the log file.

    Raises:
        OSError: the file cannot be created.
    """
    return path.open("w", encoding=LOG_ENCODING, newline="\n")


def report_to_json(model: ReportModel, platform_name: str) -> dict[str, Any]:
    """Build a JSON-serializable inventory of the report model.

    Structure::

        {
          "metadata": {"generated_at": str, "platform": str, "family_count": int},
          "families": [ {family}, ... ]
        }
    """
    return {
        "metadata": {
            "generated_at": utc_now_iso(),
            "platform": platform_name,
            "family_count": len(model),
        },
        "families": [family.to_dict() for family in model],
    }
