"""Unit tests for TextGeometryExtractor and normalized boxes."""

import math

import pytest

from sheetlink.models.geometry import MIN_NORMALIZED_SIZE, NormalizedBBox
from sheetlink.models.sheet_models import PageText, TextRun
from sheetlink.services.geometry.text_geometry import TextGeometryExtractor, build_text_blob


class TestTextGeometryExtractor:
    """Conversion of bottom-up text matrices into top-down boxes."""

    @pytest.fixture
    def extractor(self):
        return TextGeometryExtractor()

    def test_flips_y_axis(self, extractor):
        run = TextRun(text="A-101", transform=[10, 0, 0, 10, 100, 590], width=50, height=10)

        boxes = extractor.extract_runs([run], 1000.0, 800.0)

        assert len(boxes) == 1
        box = boxes[0]
        assert (box.x, box.y, box.width, box.height) == (100, 200, 50, 10)
        assert box.text == "A-101"

    def test_height_falls_back_to_matrix_scale(self, extractor):
        run = TextRun(text="M", transform=[12, 0, 0, 12, 10, 700], width=8, height=None)

        box = extractor.extract_runs([run], 1000.0, 800.0)[0]

        assert box.height == 12
        assert box.y == 800 - 700 - 12

    def test_round_trips_through_page_builder(self, extractor, run_factory):
        run = run_factory("E-201", 250, 330, 45, 9)

        box = extractor.extract_runs([run], 1000.0, 800.0)[0]

        assert box.x == pytest.approx(250)
        assert box.y == pytest.approx(330)

    @pytest.mark.parametrize("run", [
        TextRun(text="   ", transform=[10, 0, 0, 10, 0, 0], width=10, height=10),
        TextRun(text="A", transform=None, width=10, height=10),
        TextRun(text="A", transform=[10, 0, 0, 10], width=10, height=10),
        TextRun(text="A", transform=[10, 0, 0, 10, 0, 0], width=None, height=10),
        TextRun(text="A", transform=[10, 0, 0, 10, 0, 0], width=0, height=10),
        TextRun(text="A", transform=[10, 0, 0, 10, 0, 0], width=10, height=-1),
        TextRun(text="A", transform=[10, 0, 0, 10, 0, 0], width=5000, height=10),
        TextRun(text="A", transform=[10, 0, 0, 10, math.nan, 0], width=10, height=10),
    ])
    def test_malformed_runs_are_skipped(self, extractor, run):
        good = TextRun(text="OK", transform=[10, 0, 0, 10, 5, 5], width=20, height=10)

        boxes = extractor.extract_runs([run, good], 1000.0, 800.0)

        assert [box.text for box in boxes] == ["OK"]

    def test_invalid_viewport_yields_no_boxes(self, extractor):
        page = PageText(
            page_number=1,
            viewport_width=0,
            viewport_height=800,
            runs=[TextRun(text="A", transform=[10, 0, 0, 10, 5, 5], width=10, height=10)],
        )

        assert extractor.extract(page) == []


class TestNormalizedBBox:
    def test_small_boxes_grow_to_minimum_size(self):
        bbox = NormalizedBBox.from_pixels(100, 100, 1, 1, 1000, 800)

        assert bbox.width == MIN_NORMALIZED_SIZE
        assert bbox.height == MIN_NORMALIZED_SIZE

    def test_origin_is_pulled_back_inside_page(self):
        bbox = NormalizedBBox.from_pixels(995, 795, 2, 2, 1000, 800)

        assert bbox.x == pytest.approx(1.0 - MIN_NORMALIZED_SIZE)
        assert bbox.y == pytest.approx(1.0 - MIN_NORMALIZED_SIZE)

    def test_negative_origin_is_clamped(self):
        bbox = NormalizedBBox.from_pixels(-20, -5, 100, 40, 1000, 800)

        assert (bbox.x, bbox.y) == (0.0, 0.0)

    def test_rejects_empty_viewport(self):
        with pytest.raises(ValueError):
            NormalizedBBox.from_pixels(0, 0, 10, 10, 0, 800)


def test_build_text_blob_collapses_whitespace():
    runs = [
        TextRun(text="see  detail"),
        TextRun(text="\tahu-12\n"),
        TextRun(text=""),
    ]

    assert build_text_blob(runs) == "SEE DETAIL AHU-12"
