"""Page index metadata helpers.

Sheet titles and disciplines normally come from an external title-block OCR
service. These helpers parse that service's replies, infer a discipline when
none was supplied, and build the fallback record used when a page could not be
analyzed at all.
"""

import re
from typing import Any, Dict, Optional
from uuid import UUID

from sheetlink.models.sheet_models import PageRecord
from sheetlink.utils.json_parser import parse_json_safely
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)

FALLBACK_TITLE_CONFIDENCE = 0.5

# Checked in order; a rule matches on a title keyword or the sheet number prefix.
_DISCIPLINE_RULES = (
    ("plumbing", r"\b(plumb|plumbing|sanitary|waste|vent|domestic water)\b", r"^p[-\s]?\d"),
    ("electrical", r"\b(electrical|power|lighting|low voltage|telecom)\b", r"^e[-\s]?\d"),
    ("mechanical", r"\b(mechanical|hvac|duct|air handling)\b", r"^m[-\s]?\d"),
    ("fire", r"\b(fire protection|sprinkler|fire alarm)\b", r"^fp?[-\s]?\d"),
    ("structural", r"\b(structural|foundation|steel|framing)\b", r"^s[-\s]?\d"),
    ("civil", r"\b(civil|site|grading|utility plan)\b", r"^c[-\s]?\d"),
    ("architectural", r"\b(architect|architectural|floor plan|elevation|section|detail)\b", r"^a[-\s]?\d"),
)


def infer_discipline(sheet_number: Optional[str], title: Optional[str]) -> Optional[str]:
    """Guess a sheet's discipline from its title and sheet number."""
    text = f"{title or ''} {sheet_number or ''}".lower()
    number = (sheet_number or "").strip().lower()

    for discipline, keywords, prefix in _DISCIPLINE_RULES:
        if re.search(keywords, text) or re.search(prefix, number):
            return discipline
    return None


def fallback_page_record(page_number: int, plan_id: Optional[UUID] = None) -> PageRecord:
    """Placeholder record for a page whose metadata is unknown."""
    return PageRecord(
        plan_id=plan_id,
        page_number=page_number,
        sheet_number=None,
        page_title=f"Sheet {page_number}",
    )


def parse_title_block_response(text: Optional[str]) -> Dict[str, Any]:
    """Parse the title-block OCR service's JSON reply.

    Returns a dict with ``sheet_number``, ``sheet_title``, ``discipline`` and
    ``confidence``. Unparseable replies yield ``None`` fields and a neutral
    confidence.
    """
    empty = {
        "sheet_number": None,
        "sheet_title": None,
        "discipline": None,
        "confidence": FALLBACK_TITLE_CONFIDENCE,
    }

    parsed = parse_json_safely(text or "")
    if not isinstance(parsed, dict):
        logger.warning("Title block response was not a JSON object, using empty metadata")
        return empty

    confidence = parsed.get("confidence")
    try:
        confidence = min(1.0, max(0.0, float(confidence)))
    except (TypeError, ValueError):
        confidence = FALLBACK_TITLE_CONFIDENCE

    return {
        "sheet_number": _clean(parsed.get("sheet_number")),
        "sheet_title": _clean(parsed.get("sheet_title")),
        "discipline": _clean(parsed.get("discipline")),
        "confidence": confidence,
    }


def record_from_title_block(
    page_number: int,
    response_text: Optional[str],
    plan_id: Optional[UUID] = None,
) -> PageRecord:
    """Build a page record from a title-block reply, falling back to "Sheet N"."""
    data = parse_title_block_response(response_text)
    record = fallback_page_record(page_number, plan_id)
    if data["sheet_number"]:
        record.sheet_number = data["sheet_number"]
    if data["sheet_title"]:
        record.page_title = data["sheet_title"]
    record.discipline = data["discipline"] or infer_discipline(record.sheet_number, record.page_title)
    return record


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None
