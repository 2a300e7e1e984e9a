"""Unit tests for LinkGraphBuilder."""

from uuid import uuid4

import pytest

from sheetlink.models.geometry import NormalizedBBox, ReferenceCandidate, ReferenceKind
from sheetlink.services.links.link_graph_builder import LinkGraphBuilder, make_dedup_key
from sheetlink.services.resolution.target_resolver import SheetTarget


def _pair(ref="E201", source=1, target=5, x=0.123456, y=0.5):
    candidate = ReferenceCandidate(
        source_page=source,
        reference_text=ref,
        normalized_ref=ref,
        bbox=NormalizedBBox(x=x, y=y, width=0.05, height=0.0125),
        confidence=0.75,
        kind=ReferenceKind.SHEET_REF,
    )
    return candidate, SheetTarget(page_number=target, sheet_number="E-201", title="POWER PLAN")


class TestLinkGraphBuilder:
    def test_builds_link_rows(self):
        plan_id = uuid4()

        links = LinkGraphBuilder(plan_id).build([_pair()])

        assert len(links) == 1
        link = links[0]
        assert link.plan_id == plan_id
        assert (link.source_page, link.target_page) == (1, 5)
        assert link.x_norm == 0.1235
        assert link.target_title == "POWER PLAN"
        assert link.is_auto is True
        assert link.dedup_key == "1:5:E201:0.1235:0.5000"

    def test_duplicate_keys_are_collapsed(self):
        links = LinkGraphBuilder().build([_pair(), _pair(x=0.12346), _pair(x=0.3)])

        assert len(links) == 2
        assert len({link.dedup_key for link in links}) == 2

    def test_self_links_are_skipped(self):
        assert LinkGraphBuilder().build([_pair(source=5, target=5)]) == []

    def test_rebuilding_gives_identical_keys(self):
        pairs = [_pair(), _pair(ref="A101", target=2, y=0.75)]

        first = LinkGraphBuilder().build(pairs)
        second = LinkGraphBuilder().build(pairs)

        assert [link.dedup_key for link in first] == [link.dedup_key for link in second]


@pytest.mark.parametrize("x,y,expected", [
    (0.0, 0.0, "2:3:M3:0.0000:0.0000"),
    (0.99, 0.5, "2:3:M3:0.9900:0.5000"),
])
def test_make_dedup_key(x, y, expected):
    assert make_dedup_key(2, 3, "M3", x, y) == expected
