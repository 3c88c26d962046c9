"""Record wrapper with selection and lifecycle tracking.

This module wraps one user record and exposes formatted value access,
template substitution, and the item lifecycle state machine.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Hashable, Mapping, MutableMapping

from core.constants import INDEX_PLACEHOLDER
from core.errors import RecordsetStateError
from core.types import (
    ALLOWED_STATE_TRANSITIONS,
    DIRTY_STATES,
    UNREACHABLE_STATES,
    ItemState,
)
from store.value_format import INVALID_VALUE, FormatRegistry

TemplateFormatter = Callable[[str, "DataItem"], str]

_INDEX_PATTERN = re.compile(re.escape(INDEX_PLACEHOLDER), re.IGNORECASE)
_MISSING = object()


def validate_transition(current: ItemState, next_state: ItemState) -> None:
    """Validate one lifecycle transition against allowed state machine edges."""
    allowed_states = ALLOWED_STATE_TRANSITIONS[current]
    if next_state not in allowed_states:
        raise RecordsetStateError(
            f"Invalid data item state transition {current!r} -> {next_state!r}. "
            f"Allowed: {', '.join(allowed_states) or 'none'}."
        )


def loosely_equal(left: Any, right: Any) -> bool:
    """Compare two property values, treating numeric text like its number."""
    if left == right:
        return True
    if isinstance(left, str) and _is_number(right):
        return _text_equals_number(left, right)
    if isinstance(right, str) and _is_number(left):
        return _text_equals_number(right, left)
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _text_equals_number(text: str, number: float) -> bool:
    try:
        return float(text.strip()) == float(number)
    except ValueError:
        return False


class DataItem:
    """One record with its identity, selection flag, and lifecycle state.

    The state only changes through the transition methods, which enforce
    ALLOWED_STATE_TRANSITIONS.
    """

    def __init__(
        self,
        record: MutableMapping[str, Any] | None,
        formats: FormatRegistry,
        identity: Hashable | None = None,
        state: ItemState = "clean",
    ) -> None:
        """Wrap a record.

        Args:
            record: User record, or None for an empty item.
            formats: Value formats of the record's properties.
            identity: Identity assigned by the owning dataset.
            state: Initial state, "clean" for baseline or "added" for local data.
        """
        self.record = record
        self.identity = identity
        self.selected = False
        self._formats = formats
        self._state: ItemState = state

    def __repr__(self) -> str:
        return (
            f"DataItem(identity={self.identity!r}, state={self._state!r}, "
            f"selected={self.selected!r})"
        )

    @property
    def state(self) -> ItemState:
        """Return the lifecycle state."""
        return self._state

    @property
    def dirty(self) -> bool:
        """Return whether the item was added, modified, or removed."""
        return self._state in DIRTY_STATES

    @property
    def unreachable(self) -> bool:
        """Return whether the item is hidden from default views."""
        return self._state in UNREACHABLE_STATES

    @property
    def is_new(self) -> bool:
        return self._state == "added"

    @property
    def empty(self) -> bool:
        return not self.record

    def mark_modified(self) -> None:
        """Record a modification; added items stay added."""
        next_state: ItemState = "added" if self._state == "added" else "modified"
        validate_transition(self._state, next_state)
        self._state = next_state

    def mark_removed(self) -> None:
        """Soft-remove the item; never committed items become ignored."""
        next_state: ItemState = "ignored" if self._state == "added" else "removed"
        validate_transition(self._state, next_state)
        self._state = next_state

    def replace(self, record: MutableMapping[str, Any]) -> "DataItem":
        """Replace the record and reset the state to clean."""
        self.record = record
        self._state = "clean"
        return self

    def select(self, flag: bool = True) -> bool:
        """Set the selection flag.

        Args:
            flag: True to select, False to unselect.

        Returns:
            Whether the selection flag changed.
        """
        changed = self.selected != flag
        self.selected = flag
        return changed

    def toggle(self) -> bool:
        """Flip the selection flag and return the new value."""
        self.selected = not self.selected
        return self.selected

    def get_properties(self, names: tuple[str, ...] | list[str]) -> dict[str, Any]:
        """Return the named properties of the record."""
        if self.record is None:
            return {}
        return {name: self.record.get(name) for name in names}

    def equal_properties(self, probe: Mapping[str, Any] | None) -> bool:
        """Return whether every probe property loosely equals the record's.

        An empty probe matches nothing.
        """
        if not probe or self.record is None:
            return False
        for name, value in probe.items():
            if not loosely_equal(value, self.record.get(name)):
                return False
        return True

    def get_value(self, property_name: str) -> Any:
        """Return the formatted value of a record property."""
        if self.record is None:
            return ""
        value = self.record.get(property_name)
        return self._formats.formatter(property_name)(value)

    def set_value(self, property_name: str, raw_value: Any) -> Any:
        """Parse a raw value and write it when parsing succeeded.

        Args:
            property_name: Record property to set.
            raw_value: Unparsed input value.

        Returns:
            The parsed value, or INVALID_VALUE when parsing failed.
        """
        if self.record is None:
            return INVALID_VALUE
        parsed = self._formats.parser(property_name)(raw_value)
        if parsed is not INVALID_VALUE:
            self.record[property_name] = parsed
        return parsed

    def changed_properties(self, previous: Mapping[str, Any]) -> tuple[str, ...]:
        """Return the names of properties that differ from a prior copy."""
        current = self.record or {}
        changed = []
        for name in list(current) + [name for name in previous if name not in current]:
            if previous.get(name, _MISSING) != current.get(name, _MISSING):
                changed.append(name)
        return tuple(changed)

    def in_string(self, template: str, formatter: TemplateFormatter | None = None) -> str:
        """Substitute record values into a template.

        Every `{property}` placeholder of a record property is replaced by
        its formatted value and `{index}` by the identity. Unknown
        placeholders are left untouched.

        Args:
            template: Template text.
            formatter: Optional hook converting custom placeholders first.

        Returns:
            The substituted text.
        """
        text = template
        if formatter is not None:
            text = formatter(text, self)
        for property_name in self.record or {}:
            value = str(self.get_value(property_name))
            text = self._formats.pattern(property_name).sub(lambda _: value, text)
        identity = "" if self.identity is None else str(self.identity)
        return _INDEX_PATTERN.sub(lambda _: identity, text)
