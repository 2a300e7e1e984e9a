"""Common interface for cross-reference detectors."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from sheetlink.models.geometry import ReferenceCandidate, TextBox


class ReferenceDetector(ABC):
    """A strategy that finds reference candidates among a page's text boxes.

    Detectors are stateless between pages; the pipeline runs every configured
    detector over every page and concatenates the results.
    """

    name: str = "detector"

    @abstractmethod
    def detect(
        self,
        page_number: int,
        boxes: Sequence[TextBox],
        viewport_width: float,
        viewport_height: float,
    ) -> List[ReferenceCandidate]:
        """Detect reference candidates on one page.

        Args:
            page_number: 1-indexed source page
            boxes: Text boxes in top-down pixel space
            viewport_width: Unscaled viewport width in pixels
            viewport_height: Unscaled viewport height in pixels

        Returns:
            Candidates with normalized bounding boxes
        """
        raise NotImplementedError
