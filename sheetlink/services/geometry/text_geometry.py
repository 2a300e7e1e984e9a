"""Conversion of raw PDF text runs into top-down pixel-space boxes.

PDF text matrices place the baseline of a run in bottom-up page units. Every
downstream comparison (callout stacking, hotspot bounding boxes) works in the
same top-down frame the overlay is drawn in, so the flip happens once, here.
"""

import math
import re
from typing import List, Optional, Sequence

from sheetlink.models.geometry import TextBox
from sheetlink.models.sheet_models import PageText, TextRun
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


class TextGeometryExtractor:
    """Normalizes a page's text runs into :class:`TextBox` objects."""

    def extract(self, page: PageText) -> List[TextBox]:
        """Convert all usable runs of a page into text boxes.

        Runs with missing or malformed position data, and runs whose size is
        zero or exceeds the viewport, are skipped.
        """
        return self.extract_runs(page.runs, page.viewport_width, page.viewport_height)

    def extract_runs(
        self,
        runs: Sequence[TextRun],
        viewport_width: float,
        viewport_height: float,
    ) -> List[TextBox]:
        if not _is_positive(viewport_width) or not _is_positive(viewport_height):
            logger.warning(
                "Skipping page with invalid viewport",
                extra={"viewport_width": viewport_width, "viewport_height": viewport_height}
            )
            return []

        boxes: List[TextBox] = []
        skipped = 0
        for run in runs:
            box = self._to_box(run, viewport_width, viewport_height)
            if box is None:
                skipped += 1
                continue
            boxes.append(box)

        if skipped:
            logger.debug(f"Skipped {skipped} of {len(runs)} text runs with unusable geometry")
        return boxes

    def _to_box(
        self,
        run: TextRun,
        viewport_width: float,
        viewport_height: float,
    ) -> Optional[TextBox]:
        if not run.text or not run.text.strip():
            return None

        transform = run.transform
        if not transform or len(transform) != 6:
            return None

        try:
            _, _, c, d, e, f = (float(value) for value in transform)
        except (TypeError, ValueError):
            return None

        width = run.width
        height = run.height if run.height is not None else math.hypot(c, d)
        if width is None or height is None:
            return None

        if not _is_positive(width) or not _is_positive(height):
            return None
        if width > viewport_width or height > viewport_height:
            return None
        if not (math.isfinite(e) and math.isfinite(f)):
            return None

        return TextBox(
            text=run.text,
            x=e,
            y=viewport_height - f - height,
            width=width,
            height=height,
        )


def build_text_blob(runs: Sequence[TextRun]) -> str:
    """Build a page's normalized full-text blob used for fallback searches."""
    joined = " ".join(run.text for run in runs if run.text)
    return _WHITESPACE.sub(" ", joined).strip().upper()


def _is_positive(value) -> bool:
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False
