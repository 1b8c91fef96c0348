"""
Fontlist – aggregate.py
=======================

Turn a font collection into the immutable report model.

Design principles
-----------------
- **Single pass**: every family and face handle is opened, read and released
  exactly once, in enumeration order.
- **Best-effort**: a family, face or name record that cannot be read is
  treated as missing (``FontAccessError``); only the collection itself is
  allowed to fail the whole run.
- **Deterministic**: same collection → same model, order included.
"""

from __future__ import annotations

from fontlist.errors import FontAccessError
from fontlist.model import (
    FONT_STRETCH_NORMAL,
    FONT_STYLE_NORMAL,
    FONT_WEIGHT_NORMAL,
    FaceHandle,
    FamilyHandle,
    FontCollection,
    FontFace,
    FontFamily,
    InformationalString,
    ReportModel,
)
from fontlist.names import collect_names, primary_name

UNKNOWN_STYLE_SUFFIX = " (Unknown Style)"


def postscript_family_name(postscript_name: str) -> str:
    """Return the family part of a ``Family-Style`` PostScript name.

    Everything before the first hyphen is kept; a name without a hyphen is
    returned unchanged. Family names that contain a hyphen themselves
    (``Source-Code-Bold``) are cut short as well.
    """
    family, _, _ = postscript_name.partition("-")
    return family


def _representative_postscript_name(family: FamilyHandle) -> str:
    try:
        with family.first_matching_face(
            FONT_WEIGHT_NORMAL, FONT_STRETCH_NORMAL, FONT_STYLE_NORMAL
        ) as face:
            if face is None:
                return ""
            return primary_name(
                face.informational_strings(InformationalString.POSTSCRIPT_NAME)
            )
    except FontAccessError:
        return ""


def resolve_face(face: FaceHandle, family_name: str) -> FontFace:
    """Resolve the display name, PostScript name and style codes of a face.

    Display name fallback chain:

    1. the face's full name;
    2. ``"<family> <Win32 subfamily>"``;
    3. ``"<family> (Unknown Style)"``.

    Raises:
        FontAccessError: the face metadata cannot be read; the caller skips
            the face.
    """
    weight = int(face.weight)
    stretch = int(face.stretch)
    style = int(face.style)

    display_name = primary_name(
        face.informational_strings(InformationalString.FULL_NAME)
    )
    if not display_name:
        subfamily = primary_name(
            face.informational_strings(InformationalString.WIN32_SUBFAMILY_NAMES)
        )
        if subfamily:
            display_name = f"{family_name} {subfamily}"
        else:
            display_name = family_name + UNKNOWN_STYLE_SUFFIX

    postscript_name = primary_name(
        face.informational_strings(InformationalString.POSTSCRIPT_NAME)
    )

    return FontFace(
        display_name=display_name,
        postscript_name=postscript_name,
        weight=weight,
        stretch=stretch,
        style=style,
    )


def build_family(family: FamilyHandle) -> FontFamily | None:
    """Aggregate one family handle into a :class:`FontFamily`.

    Returns ``None`` when the family has no usable name; such families never
    reach the report.
    """
    try:
        names = family.family_names()
        face_count = family.face_count()
    except FontAccessError:
        return None

    name = primary_name(names)
    if not name:
        return None

    aliases = tuple(sorted(set(collect_names(names))))
    ps_family = postscript_family_name(_representative_postscript_name(family))

    faces: list[FontFace] = []
    for index in range(face_count):
        try:
            with family.open_face(index) as face:
                faces.append(resolve_face(face, name))
        except FontAccessError:
            continue

    return FontFamily(
        primary_name=name,
        postscript_family_name=ps_family,
        alias_names=aliases,
        faces=tuple(faces),
    )


def build_report(collection: FontCollection) -> ReportModel:
    """Build the report model for every family of ``collection``.

    Raises:
        FontCollectionError: propagated from the collection when it cannot be
            enumerated at all.
    """
    families: list[FontFamily] = []
    for index in range(collection.family_count()):
        try:
            with collection.open_family(index) as handle:
                family = build_family(handle)
        except FontAccessError:
            continue
        if family is not None:
            families.append(family)
    return tuple(families)
