"""
Fontlist – model.py
===================

In-memory report model and the interface of the font-enumeration service.

The aggregation core (:mod:`fontlist.aggregate`) only talks to the protocols
declared here, so any object graph that quacks like a font collection can be
reported: the fontTools-backed collection in :mod:`fontlist.system_fonts`, or
the in-memory fakes used by the test-suite.

Data structure::

    ReportModel = (
        FontFamily(
            primary_name="Segoe UI",
            postscript_family_name="SegoeUI",
            alias_names=("Segoe UI", ...),
            faces=(FontFace("Segoe UI", "SegoeUI", 400, 5, 0), ...),
        ),
        ...
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

# Numeric codes follow the DirectWrite font model.
FONT_WEIGHT_NORMAL = 400
FONT_STRETCH_NORMAL = 5
FONT_STYLE_NORMAL = 0
FONT_STYLE_OBLIQUE = 1
FONT_STYLE_ITALIC = 2


class InformationalString(Enum):
    """Per-face informational string categories, valued by OpenType name ID."""

    WIN32_SUBFAMILY_NAMES = 2
    FULL_NAME = 4
    POSTSCRIPT_NAME = 6


# ============================================================
# Consumed interface
# ============================================================


class LocalizedName(Protocol):
    """One (locale, string) record of a name-record set."""

    locale: str

    def text(self) -> str:
        """Return the decoded string; raise ``FontAccessError`` on failure."""
        ...


NameRecordSet = Sequence[LocalizedName]


class FaceHandle(Protocol):
    weight: int
    stretch: int
    style: int

    def informational_strings(
        self, kind: InformationalString
    ) -> NameRecordSet | None: ...


class FamilyHandle(Protocol):
    def family_names(self) -> NameRecordSet: ...

    def face_count(self) -> int: ...

    def open_face(self, index: int) -> AbstractContextManager[FaceHandle]: ...

    def first_matching_face(
        self, weight: int, stretch: int, style: int
    ) -> AbstractContextManager[FaceHandle | None]: ...


class FontCollection(Protocol):
    def family_count(self) -> int: ...

    def open_family(self, index: int) -> AbstractContextManager[FamilyHandle]: ...


# ============================================================
# Produced model
# ============================================================


@dataclass(frozen=True)
class FontFace:
    """One concrete face within a family."""

    display_name: str
    postscript_name: str
    weight: int
    stretch: int
    style: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "display_name": self.display_name,
            "postscript_name": self.postscript_name,
            "weight": self.weight,
            "stretch": self.stretch,
            "style": self.style,
        }


@dataclass(frozen=True)
class FontFamily:
    """One logical family.

    ``alias_names`` holds every locale variant of the family name, the primary
    name included, de-duplicated and sorted. Renderers that want the "other"
    names should use :meth:`other_aliases`.
    """

    primary_name: str
    postscript_family_name: str = ""
    alias_names: tuple[str, ...] = ()
    faces: tuple[FontFace, ...] = ()

    def other_aliases(self) -> list[str]:
        """Return the alias names other than the primary name, in set order."""
        return [name for name in self.alias_names if name != self.primary_name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary_name": self.primary_name,
            "postscript_family_name": self.postscript_family_name,
            "alias_names": list(self.alias_names),
            "faces": [face.to_dict() for face in self.faces],
        }


ReportModel = tuple[FontFamily, ...]
