"""Unit tests for TargetResolver."""

import pytest

from sheetlink.models.geometry import NormalizedBBox, ReferenceCandidate, ReferenceKind
from sheetlink.models.sheet_models import PageRecord
from sheetlink.services.resolution.target_resolver import TargetResolver, build_sheet_index

BBOX = NormalizedBBox(x=0.1, y=0.2, width=0.05, height=0.02)


def _candidate(ref, source_page=1, kind=ReferenceKind.SHEET_REF, text=None, ambiguous=False, bbox=BBOX):
    return ReferenceCandidate(
        source_page=source_page,
        reference_text=text or ref,
        normalized_ref=ref,
        bbox=bbox,
        confidence=0.75,
        kind=kind,
        ambiguous=ambiguous,
    )


class TestBuildSheetIndex:
    def test_sheet_numbers_and_title_keys(self):
        records = [
            PageRecord(page_number=1, sheet_number="A-101", page_title="FLOOR PLAN"),
            PageRecord(page_number=2, sheet_number=None, page_title="S-201 FOUNDATION PLAN"),
        ]

        index = build_sheet_index(records)

        assert index["A101"].page_number == 1
        assert index["S201"].page_number == 2

    def test_sheet_number_beats_title_key(self):
        records = [
            PageRecord(page_number=1, sheet_number=None, page_title="REFER TO A-101"),
            PageRecord(page_number=7, sheet_number="A-101", page_title="FLOOR PLAN"),
        ]

        assert build_sheet_index(records)["A101"].page_number == 7

    def test_first_page_wins_on_duplicates(self):
        records = [
            PageRecord(page_number=4, sheet_number="A101"),
            PageRecord(page_number=2, sheet_number="A-101"),
        ]

        assert build_sheet_index(records)["A101"].page_number == 2


class TestTargetResolver:
    """Resolution of candidates against the page index and page text."""

    @pytest.fixture
    def resolver(self, sample_records):
        blobs = {
            1: "SEE E-201 AHU 12 M 3",
            2: "MECHANICAL PLAN AHU 12 ON ROOF",
            3: "EQUIPMENT SCHEDULE AHU-12 SUPPLY FAN",
            4: "",
            5: "POWER PLAN E-201",
        }
        return TargetResolver(sample_records, blobs)

    def test_resolves_sheet_reference_by_index(self, resolver):
        target = resolver.resolve(_candidate("E201"))

        assert target.page_number == 5
        assert target.sheet_number == "E-201"
        assert target.title == "POWER PLAN"

    def test_symbol_tag_prefers_schedule_pages(self, resolver):
        target = resolver.resolve(_candidate("AHU12", kind=ReferenceKind.SYMBOL_TAG))

        assert target.page_number == 3

    def test_symbol_tag_text_search_excludes_source_page(self, sample_records):
        resolver = TargetResolver(sample_records, {1: "VAV3", 2: "VAV-3"})

        target = resolver.resolve(_candidate("VAV3", source_page=1, kind=ReferenceKind.SYMBOL_TAG))

        assert target.page_number == 2

    def test_sheet_refs_do_not_fall_back_to_text_search(self, resolver):
        assert resolver.resolve(_candidate("AHU12")) is None

    def test_ambiguous_candidates_never_resolve(self, resolver):
        candidate = _candidate("M3", kind=ReferenceKind.SYMBOL_TAG, ambiguous=True)

        assert resolver.resolve(candidate) is None

    def test_resolve_all_splits_results(self, resolver):
        result = resolver.resolve_all([
            _candidate("E201"),
            _candidate("Z999", text="Z-999"),
            _candidate("M3", kind=ReferenceKind.SYMBOL_TAG, ambiguous=True),
        ])

        assert [target.page_number for _, target in result.resolved] == [5]
        assert [u.reference_text for u in result.unresolved] == ["Z-999", "M3"]
        assert result.unresolved[0].x_norm == BBOX.x

    def test_self_references_are_dropped_silently(self, resolver):
        result = resolver.resolve_all([_candidate("E201", source_page=5)])

        assert result.resolved == []
        assert result.unresolved == []
        assert result.self_references == 1

    def test_unresolved_are_deduplicated_per_page(self, resolver):
        result = resolver.resolve_all([
            _candidate("Z999", text="Z-999"),
            _candidate("Z999", text="z-999"),
            _candidate("Z999", text="Z-999", source_page=2),
        ])

        assert [(u.source_page, u.reference_text) for u in result.unresolved] == [(1, "Z-999"), (2, "Z-999")]

    def test_unresolved_list_is_capped(self, sample_records):
        resolver = TargetResolver(sample_records, {}, unresolved_limit=3)

        result = resolver.resolve_all([_candidate(f"Q{i}") for i in range(10)])

        assert len(result.unresolved) == 3
