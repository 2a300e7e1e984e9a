"""Canonical keys for sheet references and callout symbol tags.

"A-101", "A101" and "A - 101" must all compare equal, both when indexing a
page's own sheet number and when matching a reference found on another page.
"""

import re

_WHITESPACE = re.compile(r"\s+")
_LETTER_DIGIT_SEPARATOR = re.compile(r"(?<=[A-Z])[-_]+(?=[0-9])")


def normalize_sheet_ref(value: str) -> str:
    """Normalize a sheet number or sheet reference.

    Uppercases, strips all whitespace, then drops hyphens/underscores sitting
    directly between a letter and a digit.

    Examples:
        >>> normalize_sheet_ref("A - 101")
        'A101'
        >>> normalize_sheet_ref("m1.2")
        'M1.2'
    """
    if not value:
        return ""
    compact = _WHITESPACE.sub("", value.strip().upper())
    return _LETTER_DIGIT_SEPARATOR.sub("", compact)


def normalize_symbol_tag_ref(alpha: str, numeric: str) -> str:
    """Normalize the two halves of a callout symbol and join them."""
    return _compact(alpha) + _compact(numeric)


def _compact(value: str) -> str:
    return _WHITESPACE.sub("", (value or "").upper())
