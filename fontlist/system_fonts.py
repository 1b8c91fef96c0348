"""
Fontlist – system_fonts.py
==========================

fontTools-backed implementation of the font collection consumed by
:mod:`fontlist.aggregate`.

Key features
------------
- Cross-platform discovery:
  - Linux: FontConfig (``fc-list``)
  - Windows: Windows Fonts + per-user fonts directories
  - macOS: system, local and user ``Library/Fonts``
  - any platform: explicit directories (``--font-dir``)
- TrueType/OpenType Collections contribute one face per member.
- Variable fonts contribute one face per fvar named instance.
- Faces are grouped into families by their typographic (ID 16) or Win32
  (ID 1) family name, in first-seen order.
- Name records are exposed lazily: a record that cannot be decoded fails on
  its own, without taking the face down.

Handles
-------
Every face handle re-opens its font file with ``TTFont(lazy=True)`` and
closes it when the context exits, so no file stays open between two faces.
"""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

# fontTools does not ship type information.
from fontTools.ttLib import TTCollection, TTFont  # type: ignore[import]

from fontlist.errors import FontAccessError, FontCollectionError
from fontlist.model import (
    FONT_STRETCH_NORMAL,
    FONT_STYLE_ITALIC,
    FONT_STYLE_NORMAL,
    FONT_STYLE_OBLIQUE,
    FONT_WEIGHT_NORMAL,
    InformationalString,
)
from fontlist.names import primary_name

# -----------------------
# Platform helpers
# -----------------------
IS_LINUX = sys.platform.startswith("linux")
IS_WINDOWS = sys.platform.startswith("win")
IS_MACOS = sys.platform == "darwin"

FONT_EXTENSIONS = {".ttf", ".otf", ".ttc", ".otc", ".woff", ".woff2"}

NAME_ID_FAMILY = 1
NAME_ID_TYPOGRAPHIC_FAMILY = 16

PLATFORM_ID_MACINTOSH = 1
PLATFORM_ID_WINDOWS = 3

#: fvar instances without a PostScript name record use this ID.
NO_NAME_ID = 0xFFFF

#: OS/2 usWidthClass → percent of normal width.
WIDTH_CLASS_PERCENT: dict[int, float] = {
    1: 50.0,
    2: 62.5,
    3: 75.0,
    4: 87.5,
    5: 100.0,
    6: 112.5,
    7: 125.0,
    8: 150.0,
    9: 200.0,
}

#: Windows language IDs → lower-case BCP-47 tags.
WINDOWS_LANGUAGE_TAGS: dict[int, str] = {
    0x0401: "ar-sa",
    0x0402: "bg-bg",
    0x0403: "ca-es",
    0x0404: "zh-tw",
    0x0405: "cs-cz",
    0x0406: "da-dk",
    0x0407: "de-de",
    0x0408: "el-gr",
    0x0409: "en-us",
    0x040A: "es-es_tradnl",
    0x040B: "fi-fi",
    0x040C: "fr-fr",
    0x040D: "he-il",
    0x040E: "hu-hu",
    0x040F: "is-is",
    0x0410: "it-it",
    0x0411: "ja-jp",
    0x0412: "ko-kr",
    0x0413: "nl-nl",
    0x0414: "nb-no",
    0x0415: "pl-pl",
    0x0416: "pt-br",
    0x0418: "ro-ro",
    0x0419: "ru-ru",
    0x041A: "hr-hr",
    0x041B: "sk-sk",
    0x041D: "sv-se",
    0x041E: "th-th",
    0x041F: "tr-tr",
    0x0421: "id-id",
    0x0422: "uk-ua",
    0x0424: "sl-si",
    0x0425: "et-ee",
    0x0426: "lv-lv",
    0x0427: "lt-lt",
    0x042A: "vi-vn",
    0x042D: "eu-es",
    0x0439: "hi-in",
    0x0804: "zh-cn",
    0x0809: "en-gb",
    0x080A: "es-mx",
    0x0816: "pt-pt",
    0x0C04: "zh-hk",
    0x0C09: "en-au",
    0x0C0A: "es-es",
    0x0C0C: "fr-ca",
    0x1004: "zh-sg",
    0x1009: "en-ca",
    0x1404: "zh-mo",
}

#: Macintosh language codes → BCP-47 tags (only the common ones).
MACINTOSH_LANGUAGE_TAGS: dict[int, str] = {
    0: "en",
    1: "fr",
    2: "de",
    3: "it",
    4: "nl",
    5: "sv",
    6: "es",
    11: "ja",
    19: "zh-hant",
    23: "ko",
    33: "zh-hans",
}


def run_command(argv: list[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        argv,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        check=False,
    )


# -----------------------
# Font discovery
# -----------------------
def get_installed_font_files() -> list[Path]:
    if IS_LINUX:
        return get_installed_font_files_linux()
    if IS_WINDOWS:
        return get_font_files_in_dirs(_windows_font_dirs())
    if IS_MACOS:
        return get_font_files_in_dirs(_macos_font_dirs())
    raise FontCollectionError(f"Unsupported platform: {sys.platform}")


def get_installed_font_files_linux() -> list[Path]:
    """Linux font discovery using FontConfig (fc-list)."""
    try:
        proc = run_command(["fc-list", "--format=%{file}\n"])
    except OSError as e:
        raise FontCollectionError(f"Cannot run fc-list: {e}") from e
    if proc.returncode != 0:
        raise FontCollectionError(f"fc-list failed:\n{proc.stdout}")

    files: list[Path] = []
    for line in proc.stdout.splitlines():
        p = line.strip()
        if p:
            files.append(Path(p))

    # Resolve + unique
    return sorted({p.resolve() for p in files if p.exists()})


def _windows_font_dirs() -> list[Path]:
    r"""Known Windows font directories (system + user).

    Note: Windows supports per-user font installs under:
      %LOCALAPPDATA%\Microsoft\Windows\Fonts
    """
    dirs: list[Path] = []
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot")
    if windir:
        dirs.append(Path(windir) / "Fonts")

    local = os.environ.get("LOCALAPPDATA")
    if local:
        dirs.append(Path(local) / "Microsoft" / "Windows" / "Fonts")

    # Fallback guess
    dirs.append(Path("C:/Windows/Fonts"))
    return dirs


def _macos_font_dirs() -> list[Path]:
    return [
        Path("/System/Library/Fonts"),
        Path("/Library/Fonts"),
        Path.home() / "Library" / "Fonts",
    ]


def get_font_files_in_dirs(dirs: Iterable[Path]) -> list[Path]:
    """Collect font files below ``dirs`` (recursively), sorted and unique.

    Raises:
        FontCollectionError: none of the directories exists.
    """
    existing = [d for d in dirs if d.is_dir()]
    if not existing:
        raise FontCollectionError("No font directory found")

    found: set[Path] = set()
    for d in existing:
        try:
            for p in d.rglob("*"):
                if p.is_file() and p.suffix.lower() in FONT_EXTENSIONS:
                    found.add(p.resolve())
        except OSError:
            # permission issues on sub-directories
            continue
    return sorted(found)


# -----------------------
# Container detection
# -----------------------
def detect_font_container(path: Path) -> str:
    """Detect font container by header and extension.

    Returns: "TTF", "OTF", "TTC", "WOFF", "WOFF2", or "UNKNOWN"
    """
    ext = path.suffix.lower()
    try:
        with path.open("rb") as f:
            head = f.read(4)
    except OSError:
        head = b""

    if head == b"ttcf":
        return "TTC"
    if head == b"wOFF" or ext == ".woff":
        return "WOFF"
    if head == b"wOF2" or ext == ".woff2":
        return "WOFF2"
    if head == b"OTTO" or ext == ".otf":
        return "OTF"
    if head in (b"\x00\x01\x00\x00", b"true", b"typ1") or ext == ".ttf":
        return "TTF"
    if ext in (".ttc", ".otc"):
        return "TTC"
    return "UNKNOWN"


# -----------------------
# Name records
# -----------------------
class FontToolsName:
    """A ``name`` table record exposed as a localized name."""

    def __init__(self, record) -> None:
        self.record = record
        self.locale = locale_tag(record)

    def text(self) -> str:
        try:
            return self.record.toUnicode()
        except Exception as e:
            raise FontAccessError(
                f"Cannot decode name record {self.record.nameID}: {e}"
            ) from e

    def __repr__(self) -> str:
        return f"FontToolsName(nameID={self.record.nameID}, locale={self.locale!r})"


def locale_tag(record) -> str:
    """Return the BCP-47 tag of a name record, lower-cased.

    Unmapped Windows language IDs become ``"x-lcid-<hex>"`` so that they stay
    distinct from each other and never match ``en-us``.
    """
    if record.platformID == PLATFORM_ID_WINDOWS:
        return WINDOWS_LANGUAGE_TAGS.get(record.langID, f"x-lcid-{record.langID:04x}")
    if record.platformID == PLATFORM_ID_MACINTOSH:
        return MACINTOSH_LANGUAGE_TAGS.get(record.langID, "")
    return ""


def name_records(tt: TTFont, name_id: int) -> list[FontToolsName]:
    """Return the localized records of ``name_id``, in table order.

    Windows-platform records are used when the font has any for ``name_id``;
    otherwise the Macintosh ones.
    """
    if "name" not in tt:
        return []
    records = [rec for rec in tt["name"].names if rec.nameID == name_id]
    windows = [rec for rec in records if rec.platformID == PLATFORM_ID_WINDOWS]
    if windows:
        return [FontToolsName(rec) for rec in windows]
    return [
        FontToolsName(rec)
        for rec in records
        if rec.platformID == PLATFORM_ID_MACINTOSH
    ]


def family_name_records(tt: TTFont) -> list[FontToolsName]:
    return name_records(tt, NAME_ID_TYPOGRAPHIC_FAMILY) or name_records(
        tt, NAME_ID_FAMILY
    )


def read_style_codes(tt: TTFont) -> tuple[int, int, int]:
    """Return ``(weight, stretch, style)`` codes of a face.

    Read from the OS/2 table; fonts without one fall back to ``head.macStyle``.
    """
    if "OS/2" in tt:
        os2 = tt["OS/2"]
        fs_selection = int(os2.fsSelection)
        if fs_selection & (1 << 9):
            style = FONT_STYLE_OBLIQUE
        elif fs_selection & 1:
            style = FONT_STYLE_ITALIC
        else:
            style = FONT_STYLE_NORMAL
        return int(os2.usWeightClass), int(os2.usWidthClass), style

    mac_style = int(tt["head"].macStyle)
    weight = 700 if mac_style & 1 else FONT_WEIGHT_NORMAL
    style = FONT_STYLE_ITALIC if mac_style & 2 else FONT_STYLE_NORMAL
    return weight, FONT_STRETCH_NORMAL, style


def width_class(percent: float) -> int:
    """Map a ``wdth`` axis value (percent of normal) to the nearest stretch code."""
    return min(
        WIDTH_CLASS_PERCENT,
        key=lambda code: abs(WIDTH_CLASS_PERCENT[code] - percent),
    )


def instance_style_codes(
    coordinates: dict[str, float], base: tuple[int, int, int]
) -> tuple[int, int, int]:
    """Return the codes of a named instance; axes it does not set keep ``base``."""
    weight, stretch, style = base
    if "wght" in coordinates:
        weight = int(round(coordinates["wght"]))
    if "wdth" in coordinates:
        stretch = width_class(coordinates["wdth"])
    if coordinates.get("ital", 0) >= 1:
        style = FONT_STYLE_ITALIC
    elif coordinates.get("slnt", 0) != 0:
        style = FONT_STYLE_OBLIQUE
    elif "ital" in coordinates or "slnt" in coordinates:
        style = FONT_STYLE_NORMAL
    return weight, stretch, style


@contextmanager
def open_font(path: Path, ttc_index: int | None = None) -> Iterator[TTFont]:
    """Open one face lazily and close it on exit."""
    try:
        tt = TTFont(
            path,
            fontNumber=-1 if ttc_index is None else ttc_index,
            lazy=True,
            recalcBBoxes=False,
            recalcTimestamp=False,
        )
    except Exception as e:
        raise FontAccessError(f"Cannot open font {path}: {e}") from e
    try:
        yield tt
    finally:
        tt.close()


# -----------------------
# Scan
# -----------------------
@dataclass
class FaceEntry:
    """What the scan remembers about a face between grouping and reporting."""

    path: Path
    ttc_index: int | None
    family_records: list[FontToolsName]
    weight: int
    stretch: int
    style: int
    # Set for fvar named instances: their names come from these IDs.
    subfamily_name_id: int | None = None
    postscript_name_id: int | None = None

    @property
    def family_key(self) -> str:
        return primary_name(self.family_records)

    @property
    def is_instance(self) -> bool:
        return self.subfamily_name_id is not None


def _scan_face(path: Path, ttc_index: int | None, tt: TTFont) -> list[FaceEntry]:
    """Return the faces of one font: its fvar named instances, or itself."""
    try:
        records = family_name_records(tt)
        codes = read_style_codes(tt)
        instances = tt["fvar"].instances if "fvar" in tt else []
        if not instances:
            return [FaceEntry(path, ttc_index, records, *codes)]
        return [
            FaceEntry(
                path,
                ttc_index,
                records,
                *instance_style_codes(dict(inst.coordinates), codes),
                subfamily_name_id=inst.subfamilyNameID,
                postscript_name_id=getattr(inst, "postscriptNameID", NO_NAME_ID),
            )
            for inst in instances
        ]
    except Exception as e:
        raise FontAccessError(f"Cannot read face {path}#{ttc_index}: {e}") from e


def scan_font_file(path: Path, verbose: bool = False) -> list[FaceEntry]:
    """Return one :class:`FaceEntry` per readable face of ``path``."""
    container = detect_font_container(path)
    if container == "UNKNOWN":
        return []

    if container != "TTC":
        with open_font(path) as tt:
            return _scan_face(path, None, tt)

    try:
        col = TTCollection(path, lazy=True)
    except Exception as e:
        raise FontAccessError(f"Cannot open collection {path}: {e}") from e

    entries: list[FaceEntry] = []
    try:
        for idx, tt in enumerate(col.fonts):
            try:
                entries.extend(_scan_face(path, idx, tt))
            except FontAccessError as e:
                if verbose:
                    print(f"⚠️  Skipping face: {e}", file=sys.stderr)
    finally:
        col.close()
    return entries


# -----------------------
# Handles
# -----------------------
class SystemFontFace:
    """An open face. Valid only inside the ``open_face`` context."""

    def __init__(self, tt: TTFont, entry: FaceEntry) -> None:
        self._tt = tt
        self._entry = entry
        self.weight = entry.weight
        self.stretch = entry.stretch
        self.style = entry.style

    def _name_id(self, kind: InformationalString) -> int | None:
        """Name ID holding ``kind``; ``None`` when the face has no such string.

        A named instance has no full name of its own (it is rendered as
        family + subfamily) and takes its subfamily and PostScript names from
        the fvar instance record.
        """
        entry = self._entry
        if not entry.is_instance:
            return kind.value
        if kind is InformationalString.WIN32_SUBFAMILY_NAMES:
            return entry.subfamily_name_id
        if kind is InformationalString.POSTSCRIPT_NAME:
            if entry.postscript_name_id in (None, NO_NAME_ID):
                return None
            return entry.postscript_name_id
        return None

    def informational_strings(
        self, kind: InformationalString
    ) -> list[FontToolsName] | None:
        name_id = self._name_id(kind)
        if name_id is None:
            return None
        try:
            records = name_records(self._tt, name_id)
        except Exception as e:
            raise FontAccessError(f"Cannot read name table: {e}") from e
        return records or None


def _weight_rank(requested: int, actual: int) -> tuple[int, int]:
    """CSS font-weight matching order, as a sortable key."""
    if 400 <= requested <= 500:
        if requested <= actual <= 500:
            return 0, actual - requested
        if actual < requested:
            return 1, requested - actual
        return 2, actual - requested
    if requested < 400:
        if actual <= requested:
            return 0, requested - actual
        return 1, actual - requested
    if actual >= requested:
        return 0, actual - requested
    return 1, requested - actual


def _stretch_rank(requested: int, actual: int) -> tuple[int, int]:
    """Normal or narrower requests prefer narrower faces, wider ones wider."""
    if requested <= FONT_STRETCH_NORMAL:
        if actual <= requested:
            return 0, requested - actual
        return 1, actual - requested
    if actual >= requested:
        return 0, actual - requested
    return 1, requested - actual


#: Preference order of actual styles for each requested style.
STYLE_FALLBACKS: dict[int, tuple[int, ...]] = {
    FONT_STYLE_NORMAL: (FONT_STYLE_NORMAL, FONT_STYLE_OBLIQUE, FONT_STYLE_ITALIC),
    FONT_STYLE_OBLIQUE: (FONT_STYLE_OBLIQUE, FONT_STYLE_ITALIC, FONT_STYLE_NORMAL),
    FONT_STYLE_ITALIC: (FONT_STYLE_ITALIC, FONT_STYLE_OBLIQUE, FONT_STYLE_NORMAL),
}


def _style_rank(requested: int, actual: int) -> int:
    order = STYLE_FALLBACKS.get(requested, (requested,))
    return order.index(actual) if actual in order else len(order)


def _match_key(
    entry: FaceEntry, weight: int, stretch: int, style: int
) -> tuple[tuple[int, int], int, tuple[int, int]]:
    return (
        _stretch_rank(stretch, entry.stretch),
        _style_rank(style, entry.style),
        _weight_rank(weight, entry.weight),
    )


class SystemFontFamily:
    def __init__(self, entries: list[FaceEntry]) -> None:
        self.entries = entries

    def family_names(self) -> list[FontToolsName]:
        """Family name records of every face, in face order.

        Faces of one family may carry different localized names; the union
        keeps all of them as aliases while the first face still decides the
        primary name when there is no ``en-us`` record.
        """
        return [record for entry in self.entries for record in entry.family_records]

    def face_count(self) -> int:
        return len(self.entries)

    @contextmanager
    def open_face(self, index: int) -> Iterator[SystemFontFace]:
        entry = self.entries[index]
        with open_font(entry.path, entry.ttc_index) as tt:
            yield SystemFontFace(tt, entry)

    @contextmanager
    def first_matching_face(
        self, weight: int, stretch: int, style: int
    ) -> Iterator[SystemFontFace | None]:
        """Open the face closest to the requested codes, or yield ``None``.

        Closeness follows CSS font matching: stretch first, then style, then
        weight; ties go to the earlier face.
        """
        if not self.entries:
            yield None
            return
        index = min(
            range(len(self.entries)),
            key=lambda i: _match_key(self.entries[i], weight, stretch, style),
        )
        with self.open_face(index) as face:
            yield face


class SystemFontCollection:
    """Installed fonts grouped into families, in first-seen order."""

    def __init__(self, families: list[SystemFontFamily]) -> None:
        self.families = families

    @classmethod
    def from_entries(cls, entries: Iterable[FaceEntry]) -> SystemFontCollection:
        groups: dict[str, list[FaceEntry]] = {}
        for entry in entries:
            groups.setdefault(entry.family_key, []).append(entry)
        return cls([SystemFontFamily(group) for group in groups.values()])

    def family_count(self) -> int:
        return len(self.families)

    @contextmanager
    def open_family(self, index: int) -> Iterator[SystemFontFamily]:
        yield self.families[index]


def load_system_font_collection(
    font_dirs: list[Path] | None = None, verbose: bool = False
) -> SystemFontCollection:
    """Discover and scan the installed fonts (or ``font_dirs``).

    Raises:
        FontCollectionError: font discovery itself failed.
    """
    if font_dirs:
        font_files = get_font_files_in_dirs(font_dirs)
    else:
        font_files = get_installed_font_files()

    if verbose:
        print(f"Discovered {len(font_files)} font files")

    entries: list[FaceEntry] = []
    for font_path in font_files:
        try:
            entries.extend(scan_font_file(font_path, verbose=verbose))
        except FontAccessError as e:
            if verbose:
                print(f"⚠️  Skipping {font_path}: {e}", file=sys.stderr)

    return SystemFontCollection.from_entries(entries)
