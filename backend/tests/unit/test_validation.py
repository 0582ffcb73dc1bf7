"""
Unit tests for the shared parsing helpers.
"""

from datetime import date, datetime, timezone

import pytest

from clinic.core.exceptions import ValidationError
from clinic.core.validation import (
    clean_labels,
    parse_date,
    parse_datetime,
    parse_dosage,
    require_choice,
    require_known,
    require_text,
)


class TestParseDosage:
    @pytest.mark.parametrize("value,expected", [(10, 10), (12.5, 12.5), ("7", 7), ("2,5", 2.5)])
    def test_accepts_numbers(self, value, expected):
        assert parse_dosage(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", True, "nan", "inf", float("inf")])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValidationError):
            parse_dosage(value)

    def test_rejects_negative(self):
        with pytest.raises(ValidationError) as exc:
            parse_dosage(-1)
        assert exc.value.message == "cannot be negative"

    def test_integer_strings_stay_integers(self):
        assert isinstance(parse_dosage("100"), int)


class TestDates:
    def test_parse_date_accepts_iso_and_datetime_prefix(self):
        assert parse_date("2024-03-01", "d") == date(2024, 3, 1)
        assert parse_date("2024-03-01T10:00:00", "d") == date(2024, 3, 1)

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(ValidationError):
            parse_date("01/03/2024", "d")

    @pytest.mark.parametrize("value", ["2024-03-01garbage", "2024-03-01 junk", "2024-03-01T"])
    def test_parse_date_rejects_trailing_text(self, value):
        with pytest.raises(ValidationError):
            parse_date(value, "d")

    def test_parse_datetime_converts_utc_to_local_naive(self):
        # Tests run with TZ=UTC
        assert parse_datetime("2024-03-01T10:00:00Z", "d") == datetime(2024, 3, 1, 10, 0)
        aware = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert parse_datetime(aware, "d").tzinfo is None

    def test_parse_datetime_promotes_date(self):
        assert parse_datetime(date(2024, 3, 1), "d") == datetime(2024, 3, 1)


class TestTextHelpers:
    def test_require_text_strips(self):
        assert require_text("  x ", "f") == "x"

    def test_require_choice(self):
        assert require_choice("a", ["a", "b"], "f") == "a"
        with pytest.raises(ValidationError):
            require_choice("c", ["a", "b"], "f")

    def test_require_known_names_the_value(self):
        with pytest.raises(ValidationError) as exc:
            require_known("Xeomin", ["Botox"], "product")
        assert "Xeomin" in exc.value.message
        assert str(exc.value).startswith("product:")

    def test_clean_labels_keeps_order(self):
        assert clean_labels(["b", " a", "b", None, ""], "f") == ["b", "a"]

    def test_clean_labels_rejects_non_lists(self):
        with pytest.raises(ValidationError):
            clean_labels(42, "f")
