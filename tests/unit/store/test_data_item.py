"""Unit tests for the record wrapper."""

from __future__ import annotations

import pytest

from core.errors import RecordsetStateError
from store.data_item import DataItem, loosely_equal, validate_transition
from store.value_format import INVALID_VALUE, FormatRegistry


def _item(record: dict[str, object] | None = None, state: str = "clean") -> DataItem:
    formats = FormatRegistry({"price": "number"})
    payload = {"id": 7, "name": "lamp", "price": 1200} if record is None else record
    return DataItem(payload, formats, identity=7, state=state)  # type: ignore[arg-type]


def test_select_reports_changes_only() -> None:
    """Selecting twice should report a change only the first time."""
    item = _item()

    assert item.select() is True and item.select() is False


def test_toggle_returns_new_selection() -> None:
    """Toggle should flip and return the selection flag."""
    item = _item()

    assert item.toggle() is True and item.toggle() is False


def test_get_value_formats_property() -> None:
    """Values should be formatted with the property's formatter."""
    assert _item().get_value("price") == "1,200"


def test_get_value_of_empty_item_is_blank() -> None:
    """An item without a record should format every property as blank."""
    item = DataItem(None, FormatRegistry())

    assert item.get_value("name") == "" and item.empty


def test_set_value_writes_parsed_value() -> None:
    """A parsable value should be written to the record."""
    item = _item()

    parsed = item.set_value("price", "2,500")

    assert parsed == 2500 and item.record["price"] == 2500


def test_set_value_keeps_record_on_parse_failure() -> None:
    """A failed parse should leave the record untouched."""
    item = _item()

    parsed = item.set_value("price", "expensive")

    assert parsed is INVALID_VALUE and item.record["price"] == 1200


def test_in_string_substitutes_properties_and_index() -> None:
    """Templates should receive formatted values and the identity."""
    text = _item().in_string("<li id='{INDEX}'>{name}: {price} {unknown}</li>")

    assert text == "<li id='7'>lamp: 1,200 {unknown}</li>"


def test_in_string_applies_custom_formatter_first() -> None:
    """A custom formatter should run before property substitution."""
    text = _item().in_string(
        "{label}", lambda template, item: template.replace("{label}", "{name}")
    )

    assert text == "lamp"


def test_in_string_keeps_backslashes_in_values() -> None:
    """Substituted values should be inserted literally."""
    item = _item({"id": 7, "path": "C:\\temp\\1"})

    assert item.in_string("{path}") == "C:\\temp\\1"


def test_equal_properties_matches_loosely() -> None:
    """Numeric text should match the same number."""
    assert _item().equal_properties({"id": "7", "name": "lamp"})


def test_equal_properties_rejects_empty_probe() -> None:
    """An empty probe should match nothing."""
    assert _item().equal_properties({}) is False


def test_loosely_equal_distinguishes_text() -> None:
    """Unrelated text should not match a number."""
    assert loosely_equal("seven", 7) is False and loosely_equal(None, None) is True


def test_mark_modified_keeps_added_state() -> None:
    """Modifying an added item should keep it added."""
    item = _item(state="added")

    item.mark_modified()

    assert item.state == "added" and item.is_new


def test_mark_removed_ignores_added_items() -> None:
    """Removing an added item should make it ignored, not dirty."""
    item = _item(state="added")

    item.mark_removed()

    assert item.state == "ignored" and not item.dirty and item.unreachable


def test_mark_removed_twice_is_rejected() -> None:
    """A removed item should not transition again."""
    item = _item()
    item.mark_removed()

    with pytest.raises(RecordsetStateError):
        item.mark_removed()


def test_validate_transition_rejects_modifying_ignored() -> None:
    """Ignored items should accept no further transitions."""
    with pytest.raises(RecordsetStateError):
        validate_transition("ignored", "modified")


def test_replace_resets_state() -> None:
    """Replacing the record should reset the state to clean."""
    item = _item()
    item.mark_modified()

    item.replace({"id": 7, "name": "desk"})

    assert item.state == "clean" and item.record == {"id": 7, "name": "desk"}


def test_changed_properties_reports_added_and_deleted_keys() -> None:
    """Added, changed, and deleted keys should all be reported."""
    item = _item()
    previous = dict(item.record)
    item.record["name"] = "desk"
    item.record["color"] = "red"
    del item.record["price"]

    assert set(item.changed_properties(previous)) == {"name", "color", "price"}
