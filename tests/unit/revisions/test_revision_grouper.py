"""Unit tests for revision grouping and label parsing."""

import pytest

from sheetlink.models.sheet_models import PageRecord, PageRevisionEntry
from sheetlink.services.revisions.revision_grouper import (
    derive_revisions,
    group_revisions,
    parse_revision_label,
    revision_sort_value,
    sheet_key_for,
)


class TestParseRevisionLabel:
    @pytest.mark.parametrize("text,expected", [
        ("FLOOR PLAN - REV 2", "2"),
        ("Revision B", "B"),
        ("REV-C ISSUED FOR PERMIT", "C"),
        ("ROOF PLAN REV3", "3"),
        ("ROOF PLAN R4", "4"),
        ("REVISION 12 - BULLETIN", "12"),
    ])
    def test_labels(self, text, expected):
        assert parse_revision_label(text) == expected

    @pytest.mark.parametrize("text", [None, "", "FLOOR PLAN", "REVIEW SET", "ROOF"])
    def test_no_label(self, text):
        assert parse_revision_label(text) is None


class TestRevisionSortValue:
    def test_numbers_sort_by_value(self):
        assert revision_sort_value("12") == 12

    def test_letters_sort_by_position(self):
        assert revision_sort_value("A") == 1
        assert revision_sort_value("c") == 3

    def test_default_label_sorts_lowest(self):
        assert revision_sort_value("0") == 0
        assert revision_sort_value(None) == 0


class TestGroupRevisions:
    """Ordering within a revision chain."""

    def test_newest_revision_first(self):
        entries = [
            PageRevisionEntry(target_page=1, sheet_number="A-101", revision_label="1", revision_sort=1),
            PageRevisionEntry(target_page=2, sheet_number="A-101", revision_label="3", revision_sort=3),
            PageRevisionEntry(target_page=3, sheet_number="A-101", revision_label="2", revision_sort=2),
        ]

        groups = group_revisions(entries)

        assert len(groups) == 1
        assert groups[0].sheet_key == "A101"
        assert [e.revision_sort for e in groups[0].revisions] == [3, 2, 1]
        assert groups[0].current.target_page == 2

    def test_current_flag_breaks_ties(self):
        entries = [
            PageRevisionEntry(target_page=1, sheet_number="A101", revision_sort=1, is_current=True),
            PageRevisionEntry(target_page=2, sheet_number="A101", revision_sort=1, is_current=False),
        ]

        assert [e.target_page for e in group_revisions(entries)[0].revisions] == [1, 2]

    def test_later_page_breaks_remaining_ties(self):
        entries = [
            PageRevisionEntry(target_page=1, sheet_number="A101", revision_sort=1),
            PageRevisionEntry(target_page=9, sheet_number="A101", revision_sort=1),
        ]

        assert [e.target_page for e in group_revisions(entries)[0].revisions] == [9, 1]

    def test_missing_sort_values_sort_last(self):
        entries = [
            PageRevisionEntry(target_page=1, sheet_number="A101", revision_sort=None),
            PageRevisionEntry(target_page=2, sheet_number="A101", revision_sort=0),
        ]

        assert [e.target_page for e in group_revisions(entries)[0].revisions] == [2, 1]

    def test_unnumbered_pages_get_their_own_group(self):
        entries = [
            PageRevisionEntry(target_page=4, sheet_number=None),
            PageRevisionEntry(target_page=6, sheet_number=""),
        ]

        assert [g.sheet_key for g in group_revisions(entries)] == ["PAGE4", "PAGE6"]

    def test_stored_key_is_used_when_present(self):
        entries = [PageRevisionEntry(target_page=1, sheet_number="A-101", normalized_sheet_key="CUSTOM")]

        assert group_revisions(entries)[0].sheet_key == "CUSTOM"


class TestDeriveRevisions:
    def test_derives_chain_from_page_titles(self):
        records = [
            PageRecord(page_number=1, sheet_number="A-101", page_title="FLOOR PLAN REV 1"),
            PageRecord(page_number=2, sheet_number="A101", page_title="FLOOR PLAN REV 3"),
            PageRecord(page_number=3, sheet_number="A - 101", page_title="FLOOR PLAN",
                       page_description="Revision 2 per bulletin"),
            PageRecord(page_number=4, sheet_number="E-201", page_title="POWER PLAN"),
        ]

        groups = derive_revisions(records)

        assert [g.sheet_key for g in groups] == ["A101", "E201"]
        chain = groups[0].revisions
        assert [e.revision_label for e in chain] == ["3", "2", "1"]
        assert [e.is_current for e in chain] == [True, False, False]
        assert groups[1].revisions[0].revision_label == "0"
        assert groups[1].revisions[0].is_current is True


def test_sheet_key_for_falls_back_to_page_number():
    assert sheet_key_for(None, 12) == "PAGE12"
    assert sheet_key_for("m-1.2", 12) == "M1.2"


class TestSheetNumbersInTitles:
    """Sheet numbers embedded in titles are not revisions."""

    @pytest.mark.parametrize("text", ["R-101 ROOF PLAN", "R101 ROOF PLAN", "ROOF PLAN R_201"])
    def test_sheet_number_is_not_a_revision(self, text):
        assert parse_revision_label(text) is None

    def test_own_sheet_number_is_ignored(self):
        assert parse_revision_label("R1 ROOF PLAN", sheet_number="R1") is None
        assert parse_revision_label("R1 ROOF PLAN R2", sheet_number="R-1") == "2"

    def test_real_revision_becomes_current(self):
        records = [
            PageRecord(page_number=1, sheet_number="R-101", page_title="R-101 ROOF PLAN"),
            PageRecord(page_number=2, sheet_number="R-101", page_title="R-101 ROOF PLAN REV 2"),
        ]

        chain = derive_revisions(records)[0].revisions

        assert [(e.target_page, e.revision_label, e.is_current) for e in chain] == [
            (2, "2", True),
            (1, "0", False),
        ]
