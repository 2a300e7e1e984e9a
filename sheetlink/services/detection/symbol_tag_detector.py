"""Geometric detection of stacked callout symbols.

A callout bubble on a drawing carries two codes stacked vertically: an
alphabetic discipline/equipment code on top ("AHU", "M") and a numeric detail
code below ("3", "12A"). The text layer gives us the two codes as separate
runs, so the detector looks for runs of the right shape that sit centered
above one another.

Pairing is delegated to a :class:`PairingStrategy`. The naive strategy checks
every (top, bottom) combination; the sweep strategy only visits bottoms inside
the vertical window a top could possibly accept, which keeps text-dense pages
fast. Both feed the same exact :class:`StackingRule` check.
"""

import bisect
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Tuple

from sheetlink.core.exceptions import ConfigurationError
from sheetlink.models.geometry import NormalizedBBox, ReferenceCandidate, ReferenceKind, TextBox
from sheetlink.services.detection.base import ReferenceDetector
from sheetlink.services.detection.key_normalizer import normalize_symbol_tag_ref
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)

SYMBOL_TAG_CONFIDENCE = 0.62
MIN_UNAMBIGUOUS_ALPHA_LENGTH = 2

ALPHA_CODE = re.compile(r"^[A-Z]{1,4}$")
NUMERIC_CODE = re.compile(r"^[0-9]{1,3}[A-Z]?$")

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class StackingRule:
    """Geometric acceptance test for a (top, bottom) pair, in pixels."""

    min_center_tolerance: float = 12.0
    center_width_ratio: float = 0.8
    min_gap: float = -4.0
    min_max_gap: float = 28.0
    gap_height_ratio: float = 1.4

    def max_gap(self, top_height: float, bottom_height: float) -> float:
        return max(self.min_max_gap, self.gap_height_ratio * (top_height + bottom_height))

    def accepts(self, top: TextBox, bottom: TextBox) -> bool:
        tolerance = max(
            self.min_center_tolerance,
            self.center_width_ratio * max(top.width, bottom.width),
        )
        if abs(top.center_x - bottom.center_x) > tolerance:
            return False

        gap = bottom.y - top.bottom
        return self.min_gap <= gap <= self.max_gap(top.height, bottom.height)


class PairingStrategy(ABC):
    """Enumerates (top, bottom) pairs worth testing against a stacking rule.

    Implementations may return extra pairs but must never omit a pair the rule
    would accept.
    """

    @abstractmethod
    def pairs(
        self,
        tops: Sequence[TextBox],
        bottoms: Sequence[TextBox],
        rule: StackingRule,
    ) -> Iterator[Tuple[TextBox, TextBox]]:
        raise NotImplementedError


class AllPairsStrategy(PairingStrategy):
    """Quadratic comparison of every top against every bottom."""

    def pairs(self, tops, bottoms, rule):
        for top in tops:
            for bottom in bottoms:
                yield top, bottom


class VerticalSweepStrategy(PairingStrategy):
    """Visits only bottoms whose top edge falls inside a top's gap window."""

    def pairs(self, tops, bottoms, rule):
        if not bottoms:
            return

        ordered = sorted(bottoms, key=lambda box: box.y)
        ys = [box.y for box in ordered]
        tallest_bottom = max(box.height for box in ordered)

        for top in tops:
            low = top.bottom + rule.min_gap
            high = top.bottom + rule.max_gap(top.height, tallest_bottom)
            start = bisect.bisect_left(ys, low)
            end = bisect.bisect_right(ys, high)
            for bottom in ordered[start:end]:
                yield top, bottom


PAIRING_STRATEGIES: Dict[str, type] = {
    "all_pairs": AllPairsStrategy,
    "sweep": VerticalSweepStrategy,
}


def get_pairing_strategy(name: str) -> PairingStrategy:
    """Look up a pairing strategy by its configuration name."""
    try:
        return PAIRING_STRATEGIES[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown symbol pairing strategy '{name}', "
            f"expected one of {sorted(PAIRING_STRATEGIES)}"
        ) from None


class SymbolTagDetector(ReferenceDetector):
    """Detects two-part callout symbols from stacked text boxes."""

    name = "symbol_tag"

    def __init__(
        self,
        rule: StackingRule = None,
        strategy: PairingStrategy = None,
        confidence: float = SYMBOL_TAG_CONFIDENCE,
    ):
        self.rule = rule or StackingRule()
        self.strategy = strategy or VerticalSweepStrategy()
        self.confidence = confidence

    def detect(
        self,
        page_number: int,
        boxes: Sequence[TextBox],
        viewport_width: float,
        viewport_height: float,
    ) -> List[ReferenceCandidate]:
        tops = [box for box in boxes if ALPHA_CODE.match(_fold(box.text))]
        bottoms = [box for box in boxes if NUMERIC_CODE.match(_fold(box.text))]
        if not tops or not bottoms:
            return []

        candidates: List[ReferenceCandidate] = []
        seen = set()

        for top, bottom in self.strategy.pairs(tops, bottoms, self.rule):
            if top is bottom or not self.rule.accepts(top, bottom):
                continue

            alpha = _fold(top.text)
            normalized = normalize_symbol_tag_ref(alpha, _fold(bottom.text))

            left = min(top.x, bottom.x)
            upper = min(top.y, bottom.y)
            right = max(top.right, bottom.right)
            lower = max(top.bottom, bottom.bottom)

            key = (page_number, normalized, round(left), round(upper))
            if key in seen:
                continue
            seen.add(key)

            candidates.append(
                ReferenceCandidate(
                    source_page=page_number,
                    reference_text=normalized,
                    normalized_ref=normalized,
                    bbox=NormalizedBBox.from_pixels(
                        left,
                        upper,
                        right - left,
                        lower - upper,
                        viewport_width=viewport_width,
                        viewport_height=viewport_height,
                    ),
                    confidence=self.confidence,
                    kind=ReferenceKind.SYMBOL_TAG,
                    ambiguous=len(alpha) < MIN_UNAMBIGUOUS_ALPHA_LENGTH,
                )
            )

        logger.debug(
            f"Page {page_number}: {len(candidates)} symbol tag candidates "
            f"from {len(tops)} alpha and {len(bottoms)} numeric codes",
            extra={"page_number": page_number, "candidates": len(candidates)}
        )
        return candidates


def _fold(text: str) -> str:
    return _WHITESPACE.sub("", text or "").upper()
