"""Geometry primitives shared by the detectors, resolver and link builder.

These objects live only for the duration of one analysis run and are never
persisted directly. Pixel-space values use a top-down frame whose origin is the
top-left corner of the unscaled page viewport; normalized values are fractions
of the viewport in the 0-1 range.
"""

from dataclasses import dataclass
from enum import Enum

MIN_NORMALIZED_SIZE = 0.01


class ReferenceKind(str, Enum):
    """How a cross-reference was found on the page."""

    SHEET_REF = "sheet_ref"
    SYMBOL_TAG = "symbol_tag"


@dataclass(frozen=True)
class TextBox:
    """A text run positioned in page-local, top-down pixel space."""

    text: str
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2


@dataclass(frozen=True)
class NormalizedBBox:
    """Bounding box expressed as fractions of the page viewport."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_pixels(
        cls,
        x: float,
        y: float,
        width: float,
        height: float,
        viewport_width: float,
        viewport_height: float,
    ) -> "NormalizedBBox":
        """Normalize a pixel box, clamping it inside the page.

        Width and height are raised to the minimum clickable size and the
        origin is pulled back so the box never spills past the page edge.
        """
        if viewport_width <= 0 or viewport_height <= 0:
            raise ValueError("Viewport dimensions must be positive")

        norm_width = min(1.0, max(MIN_NORMALIZED_SIZE, width / viewport_width))
        norm_height = min(1.0, max(MIN_NORMALIZED_SIZE, height / viewport_height))
        norm_x = min(max(0.0, x / viewport_width), 1.0 - norm_width)
        norm_y = min(max(0.0, y / viewport_height), 1.0 - norm_height)
        return cls(x=norm_x, y=norm_y, width=norm_width, height=norm_height)

    def rounded(self, digits: int = 4) -> "NormalizedBBox":
        return NormalizedBBox(
            x=round(self.x, digits),
            y=round(self.y, digits),
            width=max(MIN_NORMALIZED_SIZE, round(self.width, digits)),
            height=max(MIN_NORMALIZED_SIZE, round(self.height, digits)),
        )


@dataclass(frozen=True)
class ReferenceCandidate:
    """A detected, not yet resolved, cross-reference on a source page.

    ``ambiguous`` marks candidates that must never be linked automatically
    (single-letter symbol tags); they are always reported for review.
    """

    source_page: int
    reference_text: str
    normalized_ref: str
    bbox: NormalizedBBox
    confidence: float
    kind: ReferenceKind
    ambiguous: bool = False
