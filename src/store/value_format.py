"""Per-property value parsing and formatting.

This module resolves parse/format functions by property name and
caches placeholder patterns used by template substitution.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping

from core.constants import DATE_PATTERN, DATETIME_PATTERN
from core.errors import RecordsetConfigError

Parser = Callable[[Any], Any]
Formatter = Callable[[Any], Any]


class _InvalidValue:
    """Marker for a value that failed to parse."""

    _instance: "_InvalidValue | None" = None

    def __new__(cls) -> "_InvalidValue":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "INVALID_VALUE"

    def __bool__(self) -> bool:
        return False


INVALID_VALUE: Any = _InvalidValue()


@dataclass(frozen=True)
class ValueFormat:
    """Named pair of parse and format functions.

    Attributes:
        name: Format name used in logs and declarative specs.
        parse: Converts raw input to a value or INVALID_VALUE; default when omitted.
        format: Converts a value to display text; default when omitted.
    """

    name: str
    parse: Parser | None = None
    format: Formatter | None = None


def _default_parse(value: Any) -> Any:
    return value


def _default_format(value: Any) -> str:
    if value is None or value == "":
        return ""
    return str(value)


DEFAULT_FORMAT = ValueFormat("default", parse=_default_parse, format=_default_format)


def parse_number(value: Any) -> Any:
    """Parse a number, tolerating whitespace and thousands separators.

    Empty input parses to 0. Booleans and non-finite numbers parse to
    INVALID_VALUE, as does text outside plain decimal notation.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return INVALID_VALUE
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else INVALID_VALUE
    if not isinstance(value, str):
        return INVALID_VALUE
    text = re.sub(r"[\s,]", "", value)
    if not text:
        return 0
    if "_" in text:
        return INVALID_VALUE
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return INVALID_VALUE
    return number if math.isfinite(number) else INVALID_VALUE


def format_number(value: Any) -> Any:
    """Format a number with thousands separators.

    Values that do not parse as numbers format to INVALID_VALUE, which
    renders as the text "INVALID_VALUE" in templates.
    """
    number = parse_number(value)
    if number is INVALID_VALUE:
        return INVALID_VALUE
    return f"{number:,}"


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return None


def parse_date(value: Any) -> Any:
    """Parse an ISO-8601 date text; dates and datetimes pass through."""
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return INVALID_VALUE
    return INVALID_VALUE


def parse_datetime(value: Any) -> Any:
    """Parse an ISO-8601 datetime text; datetimes pass through."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return INVALID_VALUE
    return INVALID_VALUE


def format_date(value: Any) -> str:
    """Format a date, datetime, or epoch milliseconds as YYYY-MM-DD."""
    moment = _as_datetime(value)
    return moment.strftime(DATE_PATTERN) if moment else ""


def format_datetime(value: Any) -> str:
    """Format a datetime or epoch milliseconds as YYYY-MM-DD HH:MM:SS."""
    moment = _as_datetime(value)
    return moment.strftime(DATETIME_PATTERN) if moment else ""


NUMBER_FORMAT = ValueFormat("number", parse=parse_number, format=format_number)
DATE_FORMAT = ValueFormat("date", parse=parse_date, format=format_date)
DATETIME_FORMAT = ValueFormat("datetime", parse=parse_datetime, format=format_datetime)
BUILTIN_FORMATS: dict[str, ValueFormat] = {
    value_format.name: value_format
    for value_format in (DEFAULT_FORMAT, NUMBER_FORMAT, DATE_FORMAT, DATETIME_FORMAT)
}


def builtin_format(name: str) -> ValueFormat:
    """Return a built-in format by name.

    Args:
        name: Format name such as "number" or "date".

    Returns:
        The matching value format.

    Raises:
        RecordsetConfigError: If no built-in format has that name.
    """
    value_format = BUILTIN_FORMATS.get(name)
    if value_format is None:
        supported = ", ".join(sorted(BUILTIN_FORMATS))
        raise RecordsetConfigError(
            f"Unknown value format '{name}'. Use one of: {supported}."
        )
    return value_format


class FormatRegistry:
    """Property name to value format lookup with default fallback."""

    def __init__(self, formats: Mapping[str, ValueFormat | str] | None = None) -> None:
        """Create a registry.

        Args:
            formats: Property name to format, or to a built-in format name.

        Raises:
            RecordsetConfigError: If a format name is unknown.
        """
        self._formats: dict[str, ValueFormat] = {}
        for property_name, value_format in (formats or {}).items():
            if isinstance(value_format, str):
                value_format = builtin_format(value_format)
            self._formats[property_name] = value_format
        self._patterns: dict[str, re.Pattern[str]] = {}

    def parser(self, property_name: str) -> Parser:
        """Return the parser for a property, or the default parser."""
        value_format = self._formats.get(property_name)
        if value_format is not None and value_format.parse is not None:
            return value_format.parse
        return _default_parse

    def formatter(self, property_name: str) -> Formatter:
        """Return the formatter for a property, or the default formatter."""
        value_format = self._formats.get(property_name)
        if value_format is not None and value_format.format is not None:
            return value_format.format
        return _default_format

    def pattern(self, property_name: str) -> re.Pattern[str]:
        """Return the cached `{property}` placeholder pattern."""
        pattern = self._patterns.get(property_name)
        if pattern is None:
            pattern = re.compile(re.escape("{" + str(property_name) + "}"))
            self._patterns[property_name] = pattern
        return pattern
