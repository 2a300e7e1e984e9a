"""Unit tests for HotspotOverlay viewer state."""

from unittest.mock import MagicMock

import pytest

from sheetlink.models.sheet_models import PageLinkRecord
from sheetlink.services.overlay.hotspot_overlay import ConfidenceFilter, HotspotOverlay


def _link(key, source_page=1, target_page=5, confidence=0.75):
    return PageLinkRecord(
        source_page=source_page,
        target_page=target_page,
        reference_text="E-201",
        normalized_ref="E201",
        x_norm=0.1,
        y_norm=0.2,
        width_norm=0.05,
        height_norm=0.02,
        confidence=confidence,
        dedup_key=key,
    )


class TestHotspotOverlay:
    """Selection, filtering and navigation."""

    @pytest.fixture
    def links(self):
        return [
            _link("low", confidence=0.62),
            _link("medium", confidence=0.75),
            _link("high", confidence=0.9),
            _link("unscored", confidence=None),
            _link("other-page", source_page=2, target_page=1),
        ]

    def test_visible_links_are_on_current_page(self, links):
        overlay = HotspotOverlay(links)

        assert {link.dedup_key for link in overlay.visible_links()} == {"low", "medium", "high", "unscored"}

    @pytest.mark.parametrize("confidence_filter,expected", [
        (ConfidenceFilter.ALL, {"low", "medium", "high", "unscored"}),
        (ConfidenceFilter.MEDIUM, {"medium", "high"}),
        (ConfidenceFilter.HIGH, {"high"}),
    ])
    def test_confidence_filter(self, links, confidence_filter, expected):
        overlay = HotspotOverlay(links, confidence_filter=confidence_filter)

        assert {link.dedup_key for link in overlay.visible_links()} == expected

    def test_click_toggles_selection(self, links):
        overlay = HotspotOverlay(links)

        assert overlay.click("medium") == "medium"
        assert overlay.selected_link.dedup_key == "medium"
        assert overlay.click("medium") is None
        assert overlay.selected_link is None

    def test_clicking_another_link_switches_selection(self, links):
        overlay = HotspotOverlay(links)
        overlay.click("medium")

        overlay.click("high")

        assert overlay.selected_link_id == "high"

    def test_navigate_changes_page_and_clears_selection(self, links):
        on_navigate = MagicMock()
        overlay = HotspotOverlay(links, on_navigate=on_navigate)
        overlay.click("high")

        page = overlay.navigate()

        assert page == 5
        assert overlay.current_page == 5
        assert overlay.selected_link_id is None
        on_navigate.assert_called_once_with(5)

    def test_navigate_without_selection_stays(self, links):
        on_navigate = MagicMock()
        overlay = HotspotOverlay(links, on_navigate=on_navigate)

        assert overlay.navigate() == 1
        on_navigate.assert_not_called()

    def test_filtering_out_selected_link_clears_selection(self, links):
        overlay = HotspotOverlay(links)
        overlay.click("low")

        overlay.set_confidence_filter(ConfidenceFilter.HIGH)

        assert overlay.selected_link_id is None

    def test_filter_accepts_plain_values(self, links):
        overlay = HotspotOverlay(links)

        overlay.set_confidence_filter("medium")

        assert overlay.confidence_filter is ConfidenceFilter.MEDIUM

    def test_go_to_page_clears_selection(self, links):
        overlay = HotspotOverlay(links)
        overlay.click("high")

        overlay.go_to_page(2)

        assert overlay.selected_link_id is None
        assert [link.dedup_key for link in overlay.visible_links()] == ["other-page"]


def test_filter_thresholds():
    assert ConfidenceFilter.ALL.allows(None)
    assert ConfidenceFilter.MEDIUM.allows(0.70)
    assert not ConfidenceFilter.MEDIUM.allows(0.69)
    assert ConfidenceFilter.HIGH.allows(0.85)
    assert not ConfidenceFilter.HIGH.allows(None)
