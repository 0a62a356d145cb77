"""Tests for month label handling."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from month_labels import (
    month_sort_key,
    next_month_labels,
    normalize_month_name,
    parse_month_label,
    sort_month_labels,
)


class TestNormalizeMonthName:
    """Test cases for month name normalization."""

    @pytest.mark.parametrize(
        "raw", ["Março", "Marco", "MARÇO", "março", "mar", "Mar.", "March"]
    )
    def test_march_variants(self, raw):
        """All spellings of March map to the canonical name."""
        assert normalize_month_name(raw) == "Março"

    def test_abbreviations(self):
        """Three-letter Portuguese abbreviations are recognized."""
        assert normalize_month_name("Fev") == "Fevereiro"
        assert normalize_month_name("set.") == "Setembro"
        assert normalize_month_name("DEZ") == "Dezembro"

    def test_english_names(self):
        """English names resolve to the same month."""
        assert normalize_month_name("February") == "Fevereiro"
        assert normalize_month_name("Sep") == "Setembro"

    def test_unknown_name(self):
        """Non-month text is not recognized."""
        assert normalize_month_name("Total") is None
        assert normalize_month_name("") is None


class TestParseMonthLabel:
    """Test cases for label parsing."""

    def test_valid_label(self):
        """A label yields its canonical form, year and index."""
        assert parse_month_label("Março/2024") == ("Março/2024", 2024, 3)

    def test_whitespace_and_accents(self):
        """Whitespace around parts is tolerated and accents restored."""
        assert parse_month_label("  marco / 2024 ") == ("Março/2024", 2024, 3)

    @pytest.mark.parametrize("raw", ["Janeiro", "Janeiro/24", "Foo/2024", "2024/Janeiro", None])
    def test_invalid_labels(self, raw):
        """Labels without a month name and 4-digit year are rejected."""
        assert parse_month_label(raw) is None


class TestOrdering:
    """Test cases for chronological ordering."""

    def test_sort_across_years(self):
        """Months sort by year first, then month index."""
        labels = ["Janeiro/2025", "Dezembro/2024", "Março/2024", "Fevereiro/2024"]

        assert sort_month_labels(labels) == [
            "Fevereiro/2024",
            "Março/2024",
            "Dezembro/2024",
            "Janeiro/2025",
        ]

    def test_sort_key(self):
        """Sort key is (year, month index)."""
        assert month_sort_key("Outubro/2023") == (2023, 10)

    def test_sort_key_invalid(self):
        """Invalid labels cannot be ordered."""
        with pytest.raises(ValueError):
            month_sort_key("not a month")


class TestNextMonthLabels:
    """Test cases for generating following months."""

    def test_within_year(self):
        """Labels advance month by month."""
        assert next_month_labels("Abril/2024", 2) == ["Maio/2024", "Junho/2024"]

    def test_year_rollover(self):
        """December rolls over into January of the next year."""
        assert next_month_labels("Novembro/2024", 3) == [
            "Dezembro/2024",
            "Janeiro/2025",
            "Fevereiro/2025",
        ]

    def test_zero_count(self):
        """No labels are generated for a zero count."""
        assert next_month_labels("Abril/2024", 0) == []

    def test_unknown_month_falls_back_to_january(self):
        """An unrecognized month continues as if the last month were January."""
        assert next_month_labels("Foo/2024", 2) == ["Fevereiro/2024", "Março/2024"]
