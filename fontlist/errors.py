"""Exception types shared by the enumeration service and the aggregation core."""


class FontListError(Exception):
    """Base class for all fontlist errors."""


class FontCollectionError(FontListError):
    """The system font collection cannot be acquired at all.

    This is the only fatal condition: the CLI aborts and nothing is reported.
    """


class FontAccessError(FontListError):
    """A single family, face or name record cannot be acquired or read.

    Always recoverable: the affected item is treated as missing and the
    enumeration moves on.
    """
