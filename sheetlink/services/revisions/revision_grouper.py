"""Grouping of sheets into revision chains.

Pages sharing a normalized sheet key are revisions of the same sheet. Within a
chain the newest revision comes first, then the one flagged current, then the
later page in the set, so the active drawing surfaces first while older issues
stay reachable.
"""

import re
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from sheetlink.models.sheet_models import PageRecord, PageRevisionEntry, RevisionGroup
from sheetlink.services.detection.key_normalizer import normalize_sheet_ref
from sheetlink.services.detection.sheet_ref_detector import SHEET_SHAPE_PATTERN

DEFAULT_REVISION_LABEL = "0"

# "REV 2", "REV-B", "REVISION 3", "REV2", "R3"; words like "REVIEW" must not match.
# The compact form takes no separator and at most two digits, so sheet numbers
# such as "R-101" in a title are not revisions.
_REVISION_PATTERNS = (
    re.compile(
        r"\bREV(?:ISION)?(?:[\s._-]*(?P<number>\d{1,3})|[\s._-]+(?P<letter>[A-Z]{1,2}))\b",
        re.IGNORECASE,
    ),
    re.compile(r"\bR(?P<number>\d{1,2})\b", re.IGNORECASE),
)


def sheet_key_for(sheet_number: Optional[str], page_number: int) -> str:
    """Normalized sheet key, or a synthetic PAGE<n> key for unnumbered pages."""
    key = normalize_sheet_ref(sheet_number or "")
    return key or f"PAGE{page_number}"


def _without_sheet_number(text: str, sheet_number: Optional[str]) -> str:
    key = normalize_sheet_ref(sheet_number or "")
    if not key:
        return text
    return SHEET_SHAPE_PATTERN.sub(
        lambda m: " " if normalize_sheet_ref(m.group(0)) == key else m.group(0),
        text,
    )


def parse_revision_label(
    text: Optional[str],
    sheet_number: Optional[str] = None,
) -> Optional[str]:
    """Extract a revision label such as "2" or "B" from free text.

    Occurrences of the page's own sheet number are ignored, so a roof sheet
    titled "R1 ROOF PLAN" carries no revision.

    Examples:
        >>> parse_revision_label("FLOOR PLAN - REV 2")
        '2'
        >>> parse_revision_label("Revision B")
        'B'
    """
    if not text:
        return None
    text = _without_sheet_number(text, sheet_number)
    for pattern in _REVISION_PATTERNS:
        match = pattern.search(text)
        if match:
            groups = match.groupdict()
            return (groups.get("number") or groups.get("letter")).upper()
    return None


def revision_sort_value(label: Optional[str]) -> int:
    """Sort value of a revision label: numbers by value, letters by position."""
    if not label:
        return 0
    if label.isdigit():
        return int(label)
    if len(label) == 1 and label.isalpha():
        return ord(label.upper()) - ord("A") + 1
    return 0


def _order_key(entry: PageRevisionEntry) -> Tuple[float, int, int]:
    sort_value = entry.revision_sort if entry.revision_sort is not None else float("-inf")
    return (-sort_value, 0 if entry.is_current else 1, -entry.target_page)


def group_revisions(entries: Iterable[PageRevisionEntry]) -> List[RevisionGroup]:
    """Bucket revision rows by sheet key and order each bucket.

    Groups are returned in order of first appearance.
    """
    buckets: Dict[str, List[PageRevisionEntry]] = OrderedDict()
    for entry in entries:
        key = entry.normalized_sheet_key or sheet_key_for(entry.sheet_number, entry.target_page)
        buckets.setdefault(key, []).append(entry)

    return [
        RevisionGroup(sheet_key=key, revisions=sorted(bucket, key=_order_key))
        for key, bucket in buckets.items()
    ]


def derive_revisions(records: Iterable[PageRecord]) -> List[RevisionGroup]:
    """Derive revision chains from page records.

    The revision label comes from the page title, then the description. The
    first entry of each chain is marked current.
    """
    entries = []
    for record in sorted(records, key=lambda r: r.page_number):
        label = (
            parse_revision_label(record.page_title, record.sheet_number)
            or parse_revision_label(record.page_description, record.sheet_number)
            or DEFAULT_REVISION_LABEL
        )
        entries.append(
            PageRevisionEntry(
                plan_id=record.plan_id,
                target_page=record.page_number,
                sheet_number=record.sheet_number,
                normalized_sheet_key=sheet_key_for(record.sheet_number, record.page_number),
                revision_label=label,
                revision_sort=revision_sort_value(label),
            )
        )

    groups = group_revisions(entries)
    for group in groups:
        for position, entry in enumerate(group.revisions):
            entry.is_current = position == 0
    return groups
