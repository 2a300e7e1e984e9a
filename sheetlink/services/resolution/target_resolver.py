"""Resolution of reference candidates to destination pages.

Direct resolution uses an index of every page's own sheet number plus any
sheet-shaped text embedded in its title. Symbol tags, which rarely name a sheet
directly, fall back to searching the other pages' text for the tag and favour
schedule, equipment, legend and detail sheets, where such tags are defined.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sheetlink.models.geometry import ReferenceCandidate, ReferenceKind
from sheetlink.models.sheet_models import PageRecord, UnresolvedReference
from sheetlink.services.detection.key_normalizer import normalize_sheet_ref
from sheetlink.services.detection.sheet_ref_detector import SHEET_SHAPE_PATTERN
from sheetlink.utils.logging import get_logger

logger = get_logger(__name__)

PREFERRED_TITLE_KEYWORDS = ("SCHEDULE", "EQUIPMENT", "LEGEND", "DETAIL")
UNRESOLVED_REFERENCE_LIMIT = 50

_TAG_PARTS = re.compile(r"^([A-Z]+)([0-9].*)$")


@dataclass(frozen=True)
class SheetTarget:
    """A destination page for resolved references."""

    page_number: int
    sheet_number: Optional[str]
    title: Optional[str]


@dataclass
class ResolutionResult:
    """Resolved (candidate, target) pairs plus the references needing review."""

    resolved: List[Tuple[ReferenceCandidate, SheetTarget]] = field(default_factory=list)
    unresolved: List[UnresolvedReference] = field(default_factory=list)
    self_references: int = 0


def build_sheet_index(records: Iterable[PageRecord]) -> Dict[str, SheetTarget]:
    """Index pages by normalized sheet key.

    Declared sheet numbers take precedence over keys found in titles; among
    keys of the same kind the lowest page number wins.
    """
    ordered = sorted(records, key=lambda record: record.page_number)
    index: Dict[str, SheetTarget] = {}

    for record in ordered:
        key = normalize_sheet_ref(record.sheet_number or "")
        if key and key not in index:
            index[key] = _target(record)

    for record in ordered:
        for match in SHEET_SHAPE_PATTERN.finditer(record.page_title or ""):
            key = normalize_sheet_ref(match.group(0))
            if key and key not in index:
                index[key] = _target(record)

    return index


class TargetResolver:
    """Maps reference candidates to target pages."""

    def __init__(
        self,
        records: Sequence[PageRecord],
        text_blobs: Mapping[int, str],
        unresolved_limit: int = UNRESOLVED_REFERENCE_LIMIT,
    ):
        """Initialize the resolver.

        Args:
            records: Page metadata for every page of the plan
            text_blobs: Normalized full-text blob per page number; must cover
                every page before any symbol tag is resolved
            unresolved_limit: Maximum number of unresolved references reported
        """
        self.records = sorted(records, key=lambda record: record.page_number)
        self.text_blobs = text_blobs
        self.unresolved_limit = unresolved_limit
        self.index = build_sheet_index(self.records)

    def resolve(self, candidate: ReferenceCandidate) -> Optional[SheetTarget]:
        """Resolve one candidate, or return None when no page matches."""
        if candidate.ambiguous:
            return None

        target = self.index.get(candidate.normalized_ref)
        if target is not None:
            return target

        if candidate.kind == ReferenceKind.SYMBOL_TAG:
            return self._search_text(candidate)

        return None

    def resolve_all(self, candidates: Iterable[ReferenceCandidate]) -> ResolutionResult:
        result = ResolutionResult()
        reported = set()
        dropped = 0

        for candidate in candidates:
            target = self.resolve(candidate)

            if target is None:
                key = (candidate.source_page, candidate.reference_text.upper())
                if key in reported:
                    continue
                reported.add(key)
                if len(result.unresolved) >= self.unresolved_limit:
                    dropped += 1
                    continue
                result.unresolved.append(_unresolved(candidate))
                continue

            if target.page_number == candidate.source_page:
                result.self_references += 1
                continue

            result.resolved.append((candidate, target))

        logger.info(
            f"Resolved {len(result.resolved)} references, "
            f"{len(result.unresolved)} unresolved, {result.self_references} self-references dropped",
            extra={
                "resolved": len(result.resolved),
                "unresolved": len(result.unresolved),
                "unresolved_dropped": dropped,
                "self_references": result.self_references,
            }
        )
        return result

    def _search_text(self, candidate: ReferenceCandidate) -> Optional[SheetTarget]:
        parts = _TAG_PARTS.match(candidate.normalized_ref)
        if not parts:
            return None

        alpha, numeric = parts.groups()
        variants = (f"{alpha}{numeric}", f"{alpha}-{numeric}", f"{alpha} {numeric}")

        matches = [
            record
            for record in self.records
            if record.page_number != candidate.source_page
            and any(variant in self.text_blobs.get(record.page_number, "") for variant in variants)
        ]
        if not matches:
            return None

        preferred = [
            record
            for record in matches
            if any(word in (record.page_title or "").upper() for word in PREFERRED_TITLE_KEYWORDS)
        ]
        return _target((preferred or matches)[0])


def _target(record: PageRecord) -> SheetTarget:
    return SheetTarget(
        page_number=record.page_number,
        sheet_number=record.sheet_number,
        title=record.page_title,
    )


def _unresolved(candidate: ReferenceCandidate) -> UnresolvedReference:
    return UnresolvedReference(
        source_page=candidate.source_page,
        reference_text=candidate.reference_text,
        normalized_ref=candidate.normalized_ref,
        kind=candidate.kind,
        x_norm=candidate.bbox.x,
        y_norm=candidate.bbox.y,
        width_norm=candidate.bbox.width,
        height_norm=candidate.bbox.height,
    )
