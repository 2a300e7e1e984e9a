"""Viewer-side state for link hotspots.

Holds the persisted link set for a plan, which page is on screen, which hotspot
is selected and the active confidence filter. Filtering is recomputed from the
stored links every time; it never re-runs detection.
"""

from enum import Enum
from typing import Callable, List, Optional, Sequence

from sheetlink.models.sheet_models import PageLinkRecord
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)


class ConfidenceFilter(str, Enum):
    """Minimum confidence a link needs to be rendered."""

    ALL = "all"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def threshold(self) -> float:
        return _THRESHOLDS[self]

    def allows(self, confidence: Optional[float]) -> bool:
        if self is ConfidenceFilter.ALL:
            return True
        return confidence is not None and confidence >= self.threshold


_THRESHOLDS = {
    ConfidenceFilter.ALL: 0.0,
    ConfidenceFilter.MEDIUM: 0.70,
    ConfidenceFilter.HIGH: 0.85,
}


class HotspotOverlay:
    """Selection, filtering and navigation over a plan's links."""

    def __init__(
        self,
        links: Sequence[PageLinkRecord],
        current_page: int = 1,
        confidence_filter: ConfidenceFilter = ConfidenceFilter.ALL,
        on_navigate: Optional[Callable[[int], None]] = None,
    ):
        self.links = list(links)
        self.current_page = current_page
        self.confidence_filter = confidence_filter
        self.selected_link_id: Optional[str] = None
        self.on_navigate = on_navigate

    def eligible_links(self) -> List[PageLinkRecord]:
        """Links that pass the active confidence filter, on any page."""
        return [link for link in self.links if self.confidence_filter.allows(link.confidence)]

    def visible_links(self) -> List[PageLinkRecord]:
        """Eligible links drawn on the current page."""
        return [link for link in self.eligible_links() if link.source_page == self.current_page]

    def set_confidence_filter(self, confidence_filter: ConfidenceFilter) -> None:
        self.confidence_filter = ConfidenceFilter(confidence_filter)
        if self.selected_link is None:
            self.selected_link_id = None

    def click(self, link_id: str) -> Optional[str]:
        """Toggle selection of a hotspot; clicking the selected one deselects it."""
        if self.selected_link_id == link_id:
            self.selected_link_id = None
        else:
            self.selected_link_id = link_id
        return self.selected_link_id

    @property
    def selected_link(self) -> Optional[PageLinkRecord]:
        if self.selected_link_id is None:
            return None
        for link in self.visible_links():
            if link.dedup_key == self.selected_link_id:
                return link
        return None

    def navigate(self) -> int:
        """Follow the selected link and clear the selection.

        The page only changes when the target differs from the current page.
        Returns the page shown after navigation.
        """
        link = self.selected_link
        if link is not None and link.target_page != self.current_page:
            logger.debug(
                f"Navigating from page {self.current_page} to {link.target_page}",
                extra={"reference_text": link.reference_text}
            )
            self.current_page = link.target_page
            if self.on_navigate is not None:
                self.on_navigate(link.target_page)
        self.selected_link_id = None
        return self.current_page

    def go_to_page(self, page_number: int) -> None:
        if page_number != self.current_page:
            self.current_page = page_number
            self.selected_link_id = None
