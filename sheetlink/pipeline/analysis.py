"""Pure sheet analysis: (text layers, page metadata) -> (links, revisions, unresolved).

Nothing here touches the database or the network. Callers own extraction I/O
and persistence; this module only turns already-extracted text into a link
graph. Every page's text must be supplied up front because symbol tags resolve
by searching the other pages' text.
"""

from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sheetlink.core.config import DetectionSettings
from sheetlink.models.geometry import ReferenceCandidate
from sheetlink.models.sheet_models import AnalysisResult, PageRecord, PageText
from sheetlink.services.detection.base import ReferenceDetector
from sheetlink.services.detection.sheet_ref_detector import SheetRefDetector
from sheetlink.services.detection.symbol_tag_detector import (
    StackingRule,
    SymbolTagDetector,
    get_pairing_strategy,
)
from sheetlink.services.geometry.text_geometry import TextGeometryExtractor, build_text_blob
from sheetlink.services.links.link_graph_builder import LinkGraphBuilder
from sheetlink.services.resolution.target_resolver import UNRESOLVED_REFERENCE_LIMIT, TargetResolver
from sheetlink.services.revisions.revision_grouper import derive_revisions
from sheetlink.utils.logging import get_logger

LOGGER = get_logger(__name__)


def build_default_detectors(detection: Optional[DetectionSettings] = None) -> List[ReferenceDetector]:
    """Sheet reference and symbol tag detectors configured from settings."""
    detection = detection or DetectionSettings()
    rule = StackingRule(
        min_center_tolerance=detection.symbol_min_center_tolerance,
        center_width_ratio=detection.symbol_center_width_ratio,
        min_gap=detection.symbol_min_gap,
        min_max_gap=detection.symbol_min_max_gap,
        gap_height_ratio=detection.symbol_gap_height_ratio,
    )
    return [
        SheetRefDetector(
            confidence=detection.sheet_ref_confidence,
            max_run_length=detection.max_run_length,
        ),
        SymbolTagDetector(
            rule=rule,
            strategy=get_pairing_strategy(detection.symbol_pairing_strategy),
            confidence=detection.symbol_tag_confidence,
        ),
    ]


def analyze_plan(
    pages: Sequence[PageText],
    records: Sequence[PageRecord],
    detectors: Optional[Sequence[ReferenceDetector]] = None,
    plan_id: Optional[UUID] = None,
    unresolved_limit: int = UNRESOLVED_REFERENCE_LIMIT,
) -> AnalysisResult:
    """Detect, resolve and link cross-references across a whole plan.

    Args:
        pages: Text layer of every page in the plan
        records: Page metadata (sheet number, title) for every page
        detectors: Detection strategies; defaults to sheet refs + symbol tags
        plan_id: Plan the produced links belong to
        unresolved_limit: Cap on reported unresolved references

    Returns:
        AnalysisResult with deduplicated links, revision chains and the
        references that could not be resolved
    """
    detectors = list(detectors) if detectors is not None else build_default_detectors()
    extractor = TextGeometryExtractor()

    # Phase 1: geometry and text blobs for every page before any resolution
    text_blobs: Dict[int, str] = {}
    boxes_by_page = {}
    for page in pages:
        boxes_by_page[page.page_number] = extractor.extract(page)
        text_blobs[page.page_number] = build_text_blob(page.runs)

    # Phase 2: detection
    candidates: List[ReferenceCandidate] = []
    for page in sorted(pages, key=lambda p: p.page_number):
        boxes = boxes_by_page[page.page_number]
        if not boxes:
            continue
        for detector in detectors:
            candidates.extend(
                detector.detect(page.page_number, boxes, page.viewport_width, page.viewport_height)
            )

    # Phase 3: resolution and link graph
    resolver = TargetResolver(records, text_blobs, unresolved_limit=unresolved_limit)
    resolution = resolver.resolve_all(candidates)
    links = LinkGraphBuilder(plan_id).build(resolution.resolved)

    LOGGER.info(
        f"Analyzed {len(pages)} pages: {len(candidates)} candidates, "
        f"{len(links)} links, {len(resolution.unresolved)} unresolved",
        extra={
            "plan_id": str(plan_id) if plan_id else None,
            "pages": len(pages),
            "candidates": len(candidates),
            "links": len(links),
            "unresolved": len(resolution.unresolved),
        }
    )

    return AnalysisResult(
        links=links,
        revisions=derive_revisions(records),
        unresolved=resolution.unresolved,
    )
