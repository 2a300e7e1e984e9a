"""Pattern-based detection of sheet-number references in running text.

Finds the conventional discipline-letters-plus-number shape used on most
drawing sets: "A-101", "M1.2", "E_201", and detail references like "3/S-201".
Projects using another numbering scheme can pass their own pattern set; every
pattern must expose a ``sheet`` group and may expose a ``detail`` group.
"""

import re
from typing import List, Optional, Pattern, Sequence, Tuple

from sheetlink.models.geometry import NormalizedBBox, ReferenceCandidate, ReferenceKind, TextBox
from sheetlink.services.detection.base import ReferenceDetector
from sheetlink.services.detection.key_normalizer import normalize_sheet_ref
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)

SHEET_REF_CONFIDENCE = 0.75
MAX_RUN_LENGTH = 48

# Separator is "-" or "_" (optionally padded by one space) or "."; a bare space
# is not accepted so that phrases like "SEE 12" do not look like sheet numbers.
SHEET_REF_PATTERN = re.compile(
    r"(?<![A-Z0-9])"
    r"(?:(?P<detail>\d{1,3})\s*/\s*)?"
    r"(?P<sheet>[A-Z]{1,4}(?:\s?[-_]\s?|\.)?\d{1,3}(?:\.\d{1,2})?)"
    r"(?![A-Z0-9])",
    re.IGNORECASE,
)

DEFAULT_SHEET_PATTERNS: Tuple[Pattern[str], ...] = (SHEET_REF_PATTERN,)

# Embedded sheet numbers inside page titles ("A-101 FIRST FLOOR PLAN")
SHEET_SHAPE_PATTERN = re.compile(
    r"(?<![A-Z0-9])[A-Z]{1,4}(?:\s?[-_]\s?|\.)?\d{1,3}(?:\.\d{1,2})?(?![A-Z0-9])",
    re.IGNORECASE,
)

_HAS_LETTER = re.compile(r"[A-Za-z]")
_HAS_DIGIT = re.compile(r"[0-9]")


class SheetRefDetector(ReferenceDetector):
    """Detects sheet references inside individual text runs."""

    name = "sheet_ref"

    def __init__(
        self,
        patterns: Optional[Sequence[Pattern[str]]] = None,
        confidence: float = SHEET_REF_CONFIDENCE,
        max_run_length: int = MAX_RUN_LENGTH,
    ):
        self.patterns = tuple(patterns) if patterns else DEFAULT_SHEET_PATTERNS
        self.confidence = confidence
        self.max_run_length = max_run_length

    def detect(
        self,
        page_number: int,
        boxes: Sequence[TextBox],
        viewport_width: float,
        viewport_height: float,
    ) -> List[ReferenceCandidate]:
        candidates: List[ReferenceCandidate] = []

        for box in boxes:
            text = box.text
            if len(text) > self.max_run_length:
                continue
            if not (_HAS_LETTER.search(text) and _HAS_DIGIT.search(text)):
                continue

            for start, end, raw, sheet in self._find_matches(text):
                normalized = normalize_sheet_ref(sheet)
                if not normalized:
                    continue

                bbox = NormalizedBBox.from_pixels(
                    *self._sub_box(box, start, end),
                    viewport_width=viewport_width,
                    viewport_height=viewport_height,
                )
                candidates.append(
                    ReferenceCandidate(
                        source_page=page_number,
                        reference_text=raw,
                        normalized_ref=normalized,
                        bbox=bbox,
                        confidence=self.confidence,
                        kind=ReferenceKind.SHEET_REF,
                    )
                )

        logger.debug(
            f"Page {page_number}: {len(candidates)} sheet reference candidates",
            extra={"page_number": page_number, "candidates": len(candidates)}
        )
        return candidates

    def _find_matches(self, text: str) -> List[Tuple[int, int, str, str]]:
        """Collect non-overlapping matches from every pattern, in text order."""
        spans: List[Tuple[int, int, str, str]] = []
        for pattern in self.patterns:
            for match in pattern.finditer(text):
                start, end = match.span()
                if any(start < taken_end and taken_start < end for taken_start, taken_end, _, _ in spans):
                    continue
                spans.append((start, end, match.group(0).strip(), match.group("sheet")))
        spans.sort(key=lambda span: span[0])
        return spans

    @staticmethod
    def _sub_box(box: TextBox, start: int, end: int) -> Tuple[float, float, float, float]:
        """Approximate the matched substring's box assuming fixed-width glyphs."""
        char_width = box.width / max(len(box.text), 1)
        return (
            box.x + start * char_width,
            box.y,
            (end - start) * char_width,
            box.height,
        )
