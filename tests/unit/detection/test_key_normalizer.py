"""Unit tests for sheet and symbol key normalization."""

import pytest

from sheetlink.services.detection.key_normalizer import normalize_sheet_ref, normalize_symbol_tag_ref


class TestNormalizeSheetRef:
    """Sheet numbers and references must compare equal after normalization."""

    @pytest.mark.parametrize("value", ["A-101", "A101", "a-101", "A - 101", " A_101 "])
    def test_equivalent_spellings_share_a_key(self, value):
        assert normalize_sheet_ref(value) == "A101"

    def test_decimal_sheet_numbers_keep_their_dot(self):
        assert normalize_sheet_ref("m1.2") == "M1.2"

    def test_separator_between_digits_is_kept(self):
        assert normalize_sheet_ref("A-101-1") == "A101-1"

    def test_empty_input(self):
        assert normalize_sheet_ref("") == ""
        assert normalize_sheet_ref(None) == ""

    def test_normalizing_twice_changes_nothing(self):
        for value in ["E-201", "S_3.01", "FP - 2", "A101"]:
            once = normalize_sheet_ref(value)
            assert normalize_sheet_ref(once) == once


class TestNormalizeSymbolTagRef:
    def test_joins_upper_cased_halves(self):
        assert normalize_symbol_tag_ref("ahu", "12a") == "AHU12A"

    def test_strips_internal_whitespace(self):
        assert normalize_symbol_tag_ref(" V AV ", " 3 ") == "VAV3"
