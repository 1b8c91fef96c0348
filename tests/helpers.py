from contextlib import contextmanager
from pathlib import Path

from fontlist.errors import FontAccessError
from fontlist.model import InformationalString


class FakeName:
    """Localized name record; ``value=None`` makes ``text()`` fail."""

    def __init__(self, locale: str, value: str | None):
        self.locale = locale
        self.value = value

    def text(self) -> str:
        if self.value is None:
            raise FontAccessError(f"unreadable record ({self.locale})")
        return self.value


def names(*pairs: tuple[str, str | None]) -> list[FakeName]:
    return [FakeName(locale, value) for locale, value in pairs]


class FakeFace:
    def __init__(
        self,
        *,
        weight: int = 400,
        stretch: int = 5,
        style: int = 0,
        full_name: list[FakeName] | None = None,
        postscript: list[FakeName] | None = None,
        subfamily: list[FakeName] | None = None,
        broken: bool = False,
    ):
        self.weight = weight
        self.stretch = stretch
        self.style = style
        self.broken = broken
        self.strings = {
            InformationalString.FULL_NAME: full_name,
            InformationalString.POSTSCRIPT_NAME: postscript,
            InformationalString.WIN32_SUBFAMILY_NAMES: subfamily,
        }

    def informational_strings(self, kind):
        if self.broken:
            raise FontAccessError("broken face")
        return self.strings[kind]


class HandleTracker:
    """Counts handles currently open, to check that every one is released."""

    def __init__(self):
        self.open = 0
        self.acquired = 0

    @contextmanager
    def hold(self, value):
        self.open += 1
        self.acquired += 1
        try:
            yield value
        finally:
            self.open -= 1


class FakeFamily:
    def __init__(
        self,
        family_names: list[FakeName] | None,
        faces: list[FakeFace] | None = None,
        *,
        representative: int | FakeFace | None = 0,
        unopenable_faces: tuple[int, ...] = (),
        tracker: HandleTracker | None = None,
    ):
        self._names = family_names
        self.faces = faces or []
        self.representative = representative
        self.unopenable_faces = unopenable_faces
        self.tracker = tracker or HandleTracker()

    def family_names(self):
        if self._names is None:
            raise FontAccessError("no family names")
        return self._names

    def face_count(self) -> int:
        return len(self.faces)

    def open_face(self, index: int):
        if index in self.unopenable_faces:
            raise FontAccessError(f"cannot open face {index}")
        return self.tracker.hold(self.faces[index])

    def first_matching_face(self, weight: int, stretch: int, style: int):
        if isinstance(self.representative, FakeFace):
            return self.tracker.hold(self.representative)
        if self.representative is None or not self.faces:
            return self.tracker.hold(None)
        return self.tracker.hold(self.faces[self.representative])


class FakeCollection:
    def __init__(
        self,
        families: list[FakeFamily],
        *,
        unopenable_families: tuple[int, ...] = (),
        tracker: HandleTracker | None = None,
    ):
        self.families = families
        self.unopenable_families = unopenable_families
        self.tracker = tracker or HandleTracker()

    def family_count(self) -> int:
        return len(self.families)

    def open_family(self, index: int):
        if index in self.unopenable_families:
            raise FontAccessError(f"cannot open family {index}")
        return self.tracker.hold(self.families[index])


def segoe_ui_family() -> FakeFamily:
    """Segoe UI with an English and a Japanese name and three faces."""
    faces = [
        FakeFace(
            weight=600,
            full_name=names(("en-us", "Segoe UI Semibold")),
            postscript=names(("en-us", "SegoeUI-Semibold")),
        ),
        FakeFace(
            weight=400,
            full_name=names(("en-us", "Segoe UI")),
            postscript=names(("en-us", "SegoeUI")),
        ),
        FakeFace(
            weight=700,
            full_name=names(("en-us", "Segoe UI Bold")),
            postscript=names(("en-us", "SegoeUI-Bold")),
        ),
        FakeFace(
            weight=400,
            style=2,
            full_name=names(("en-us", "Segoe UI Italic")),
            postscript=names(("en-us", "SegoeUI-Italic")),
        ),
    ]
    return FakeFamily(
        names(("ja-jp", "セゴエ UI"), ("en-us", "Segoe UI")),
        faces[1:],
        representative=faces[0],
    )


def build_test_font(
    path: Path,
    family: str | dict[str, str],
    style: str = "Regular",
    *,
    weight: int = 400,
    width: int = 5,
    fs_selection: int = 0x40,
    full_name: str | None = None,
    ps_name: str | None = None,
    typographic_family: str | None = None,
    windows: bool = True,
    mac: bool = False,
    instances: list[tuple[str, str | None, dict[str, float]]] | None = None,
) -> Path:
    """Write a minimal TrueType font with the given names and OS/2 codes.

    ``instances`` adds an fvar table with one named instance per
    ``(subfamily, postscript_name, coordinates)`` tuple.
    """
    from fontTools.fontBuilder import FontBuilder
    from fontTools.pens.ttGlyphPen import TTGlyphPen

    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder([".notdef", "A"])
    fb.setupCharacterMap({65: "A"})

    pen = TTGlyphPen(None)
    pen.moveTo((100, 0))
    pen.lineTo((100, 700))
    pen.lineTo((400, 700))
    pen.lineTo((400, 0))
    pen.closePath()
    glyph = pen.glyph()
    fb.setupGlyf({".notdef": glyph, "A": glyph})
    fb.setupHorizontalMetrics({".notdef": (500, 100), "A": (500, 100)})
    fb.setupHorizontalHeader(ascent=800, descent=-200)

    name_strings: dict = {"familyName": family, "styleName": style}
    if full_name is not None:
        name_strings["fullName"] = full_name
    if ps_name is not None:
        name_strings["psName"] = ps_name
    if typographic_family is not None:
        name_strings["typographicFamily"] = typographic_family
    fb.setupNameTable(name_strings, windows=windows, mac=mac)

    fb.setupOS2(
        version=4,
        usWeightClass=weight,
        usWidthClass=width,
        fsSelection=fs_selection,
        sTypoAscender=800,
        usWinAscent=800,
        usWinDescent=200,
    )
    fb.setupPost()
    if instances:
        _add_named_instances(fb.font, instances)
    fb.save(str(path))
    return path


AXIS_RANGES = {
    "wght": (100, 400, 900),
    "wdth": (50, 100, 200),
    "slnt": (-15, 0, 0),
    "ital": (0, 0, 1),
}


def _add_named_instances(font, instances) -> None:
    from fontTools.ttLib import newTable
    from fontTools.ttLib.tables._f_v_a_r import Axis, NamedInstance

    name_table = font["name"]
    platforms = ((3, 1, 0x409),)
    tags = sorted({tag for _, _, coords in instances for tag in coords})

    fvar = newTable("fvar")
    fvar.axes = []
    for tag in tags:
        axis = Axis()
        axis.axisTag = tag
        axis.minValue, axis.defaultValue, axis.maxValue = AXIS_RANGES[tag]
        axis.axisNameID = name_table.addName(tag, platforms=platforms)
        fvar.axes.append(axis)

    fvar.instances = []
    for subfamily, postscript, coords in instances:
        inst = NamedInstance()
        inst.subfamilyNameID = name_table.addName(subfamily, platforms=platforms)
        if postscript is not None:
            inst.postscriptNameID = name_table.addName(postscript, platforms=platforms)
        inst.coordinates = {
            tag: coords.get(tag, AXIS_RANGES[tag][1]) for tag in tags
        }
        fvar.instances.append(inst)

    font["fvar"] = fvar
