"""Name collection and primary-name resolution over localized name records."""

from __future__ import annotations

from fontlist.errors import FontAccessError
from fontlist.model import NameRecordSet

#: Locale tag preferred when picking a display name.
PREFERRED_LOCALE = "en-us"


def collect_names(records: NameRecordSet | None) -> list[str]:
    """Return every readable string of ``records``, in record order.

    Records that fail to decode are omitted. Duplicates are kept; callers
    that need a set de-duplicate themselves.
    """
    names: list[str] = []
    for record in records or ():
        try:
            names.append(record.text())
        except FontAccessError:
            continue
    return names


def _find_locale(records: NameRecordSet, locale: str) -> int | None:
    wanted = locale.lower()
    for index, record in enumerate(records):
        if (record.locale or "").lower() == wanted:
            return index
    return None


def primary_name(records: NameRecordSet | None) -> str:
    """Pick the canonical display name from a name-record set.

    Strategy:

    1. the record tagged exactly ``en-us`` (tags compare case-insensitively,
       ``en-gb`` or bare ``en`` do not count);
    2. otherwise the first record;
    3. otherwise ``""``.

    If the chosen record cannot be read the result is ``""``; the next
    candidate is *not* tried.
    """
    if not records:
        return ""

    index = _find_locale(records, PREFERRED_LOCALE)
    if index is None:
        index = 0

    try:
        return records[index].text()
    except FontAccessError:
        return ""
