"""Conversion of resolved references into deduplicated link rows.

The dedup key is deterministic (source, target, normalized reference and the
bbox origin rounded to 4 decimals), so running the analysis twice over the same
document produces the same keys and the same link set.
"""

from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sheetlink.models.geometry import ReferenceCandidate
from sheetlink.models.sheet_models import PageLinkRecord
from sheetlink.services.resolution.target_resolver import SheetTarget
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)

BBOX_PRECISION = 4


def make_dedup_key(source_page: int, target_page: int, normalized_ref: str, x: float, y: float) -> str:
    """Build the identity string of an automatic link."""
    return (
        f"{source_page}:{target_page}:{normalized_ref}:"
        f"{x:.{BBOX_PRECISION}f}:{y:.{BBOX_PRECISION}f}"
    )


class LinkGraphBuilder:
    """Builds the automatic link set for one plan."""

    def __init__(self, plan_id: Optional[UUID] = None):
        self.plan_id = plan_id

    def build(self, resolved: Iterable[Tuple[ReferenceCandidate, SheetTarget]]) -> List[PageLinkRecord]:
        """Create link rows, keeping only the first row per dedup key."""
        links: List[PageLinkRecord] = []
        seen = set()
        duplicates = 0

        for candidate, target in resolved:
            if target.page_number == candidate.source_page or not candidate.normalized_ref:
                continue

            bbox = candidate.bbox.rounded(BBOX_PRECISION)
            dedup_key = make_dedup_key(
                candidate.source_page,
                target.page_number,
                candidate.normalized_ref,
                bbox.x,
                bbox.y,
            )
            if dedup_key in seen:
                duplicates += 1
                continue
            seen.add(dedup_key)

            links.append(
                PageLinkRecord(
                    plan_id=self.plan_id,
                    source_page=candidate.source_page,
                    target_page=target.page_number,
                    reference_text=candidate.reference_text,
                    normalized_ref=candidate.normalized_ref,
                    target_sheet_number=target.sheet_number,
                    target_title=target.title,
                    x_norm=bbox.x,
                    y_norm=bbox.y,
                    width_norm=bbox.width,
                    height_norm=bbox.height,
                    confidence=candidate.confidence,
                    kind=candidate.kind,
                    is_auto=True,
                    dedup_key=dedup_key,
                )
            )

        if duplicates:
            logger.debug(f"Dropped {duplicates} duplicate links by dedup key")
        return links
