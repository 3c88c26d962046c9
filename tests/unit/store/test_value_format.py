"""Unit tests for value formats and the format registry."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from core.errors import RecordsetConfigError
from store.value_format import (
    DATE_FORMAT,
    INVALID_VALUE,
    FormatRegistry,
    ValueFormat,
    format_date,
    format_datetime,
    format_number,
    parse_date,
    parse_number,
)


def test_registry_falls_back_to_default_format() -> None:
    """Unregistered properties should parse unchanged and format as text."""
    registry = FormatRegistry()

    assert registry.parser("name")("x") == "x" and registry.formatter("name")(None) == ""


def test_default_formatter_stringifies_values() -> None:
    """Default formatter should stringify non-empty values."""
    registry = FormatRegistry()

    assert registry.formatter("count")(0) == "0"


def test_registry_resolves_builtin_names() -> None:
    """Format names should resolve to built-in formats."""
    registry = FormatRegistry({"released": "date"})

    assert registry.formatter("released") is DATE_FORMAT.format


def test_registry_rejects_unknown_builtin_names() -> None:
    """Unknown format names should fail at construction."""
    with pytest.raises(RecordsetConfigError):
        FormatRegistry({"price": "currency"})


def test_registry_uses_default_for_missing_half() -> None:
    """A format without a parser should keep the default parser."""
    registry = FormatRegistry({"name": ValueFormat("upper", format=str.upper)})

    assert registry.parser("name")("abc") == "abc" and registry.formatter("name")("abc") == "ABC"


def test_registry_caches_placeholder_patterns() -> None:
    """The same compiled pattern should be returned for a property."""
    registry = FormatRegistry()

    assert registry.pattern("name") is registry.pattern("name")


def test_invalid_value_differs_from_falsy_values() -> None:
    """The sentinel should not equal any legitimate falsy value."""
    assert all(INVALID_VALUE != value for value in (None, 0, "", False, []))


def test_parse_number_strips_separators() -> None:
    """Number parsing should ignore whitespace and thousands separators."""
    assert parse_number(" 2,000,000 ") == 2000000 and parse_number("1,234.5") == 1234.5


def test_parse_number_rejects_text() -> None:
    """Non-numeric text should parse to the sentinel."""
    assert parse_number("twelve") is INVALID_VALUE


@pytest.mark.parametrize(
    "raw_value", ["nan", "NaN", "inf", "-Infinity", "1_000", float("nan"), float("inf")]
)
def test_parse_number_rejects_non_decimal_input(raw_value: object) -> None:
    """Underscored and non-finite numbers should parse to the sentinel."""
    assert parse_number(raw_value) is INVALID_VALUE


def test_parse_number_treats_empty_as_zero() -> None:
    """Empty input should parse to zero."""
    assert parse_number("") == 0


def test_format_number_groups_thousands() -> None:
    """Numbers should be formatted with thousands separators."""
    assert format_number(1234567) == "1,234,567"


def test_format_number_passes_invalid_values_through() -> None:
    """Unparseable values should format to the sentinel, rendered by name."""
    formatted = format_number("lots")

    assert formatted is INVALID_VALUE and str(formatted) == "INVALID_VALUE"


def test_format_date_accepts_dates_and_epoch_millis() -> None:
    """Date formatting should accept date objects and epoch milliseconds."""
    assert format_date(date(2020, 3, 4)) == "2020-03-04" and format_date(0) == "1970-01-01"


def test_format_date_returns_empty_for_unknown_values() -> None:
    """Unsupported values should format as empty text."""
    assert format_date("yesterday") == ""


def test_format_datetime_includes_time() -> None:
    """Datetime formatting should include the time of day."""
    assert format_datetime(datetime(2020, 3, 4, 5, 6, 7)) == "2020-03-04 05:06:07"


def test_parse_date_reads_iso_text() -> None:
    """ISO text should parse to a date; other text to the sentinel."""
    assert parse_date("2021-12-31") == date(2021, 12, 31) and parse_date("31/12") is INVALID_VALUE
