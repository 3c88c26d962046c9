"""In-memory record store with change tracking.

This module owns the ordered item sequence, the identity index, the
current cursor, selection, and the dirty aggregate. Every mutation
notifies the configured observer inline, in the order dataset change,
current change, selection change, dirty state change.
"""

from __future__ import annotations

from dataclasses import replace as replace_state
from typing import Any, Callable, Hashable, Iterator, Mapping, MutableMapping, Sequence

from core.config import RecordsetSettings
from core.constants import STATUS_ALL, STATUS_SELECTED
from core.errors import (
    RecordsetAmbiguousError,
    RecordsetDataError,
    RecordsetIdentityError,
    RecordsetNotFoundError,
)
from core.logging_config import get_logger
from core.types import DatasetState, DirtyPartition, ItemState, Replacement
from store.data_item import DataItem, TemplateFormatter
from store.dataset_config import DatasetConfig
from store.filters import (
    ByIdentity,
    ByStatus,
    Filter,
    compile_filter,
    is_dirty_filter,
    resolve_filter,
)
from store.observers import DatasetObserver
from store.value_format import INVALID_VALUE

_LOGGER = get_logger(__name__)

Record = MutableMapping[str, Any]
Modifier = Callable[[DataItem], Any]


class Dataset:
    """Ordered collection of records tracked by identity, state, and selection.

    Identity filters address items in any state; status and property
    filters only see reachable items. Mutations that target items act on
    reachable matches, except erase, which deletes every match.
    """

    def __init__(
        self,
        config: DatasetConfig,
        settings: RecordsetSettings | None = None,
    ) -> None:
        """Create an empty dataset.

        Args:
            config: Construction options.
            settings: Runtime settings; read from the environment when omitted.

        Raises:
            RecordsetConfigError: If the identity or formats are invalid.
        """
        identity, formats, trace = config.resolve(settings)
        self._identity = identity
        self._formats = formats
        self._observer = DatasetObserver(config.handlers, trace)
        self._items: list[DataItem] = []
        self._by_identity: dict[Hashable, DataItem] = {}
        self._current: DataItem | None = None
        self._dirty = False

    def __len__(self) -> int:
        return sum(1 for item in self._items if not item.unreachable)

    def __iter__(self) -> Iterator[DataItem]:
        return iter([item for item in self._items if not item.unreachable])

    @property
    def length(self) -> int:
        """Return the count of reachable items."""
        return len(self)

    @property
    def empty(self) -> bool:
        """Return whether no reachable item exists."""
        return len(self) < 1

    @property
    def dirty(self) -> bool:
        """Return the cached dirty flag; reading never recomputes it."""
        return self._dirty

    # queries

    def get_items(self, raw_filter: Any = STATUS_ALL) -> list[DataItem] | DirtyPartition:
        """Return items matching a filter.

        Args:
            raw_filter: Identity, identities, "all", "selected", "dirty",
                property mapping(s), predicate, or filter variant.

        Returns:
            Matching items in sequence order, or a DirtyPartition of items
            for the "dirty" filter.
        """
        filter_spec = resolve_filter(raw_filter)
        items = self._filter_items(filter_spec)
        if is_dirty_filter(filter_spec):
            return _partition(items, lambda item: item)
        return items

    def get_data(self, raw_filter: Any = STATUS_ALL) -> list[Record] | DirtyPartition:
        """Return records matching a filter; see get_items."""
        filter_spec = resolve_filter(raw_filter)
        items = self._filter_items(filter_spec)
        if is_dirty_filter(filter_spec):
            return _partition(items, lambda item: item.record)
        return [item.record for item in items]

    def get_keys(self, raw_filter: Any = STATUS_ALL) -> list[Hashable] | DirtyPartition:
        """Return identities of items matching a filter; see get_items."""
        filter_spec = resolve_filter(raw_filter)
        items = self._filter_items(filter_spec)
        if is_dirty_filter(filter_spec):
            return _partition(items, lambda item: item.identity)
        return [item.identity for item in items]

    def get_item(self, raw_filter: Any, strict: bool = False) -> DataItem | None:
        """Return the single item matching a filter.

        Args:
            raw_filter: Filter expected to match one item.
            strict: Raise instead of returning None or the first of many.

        Returns:
            The matching item, the first of several, or None.

        Raises:
            RecordsetNotFoundError: In strict mode when nothing matches.
            RecordsetAmbiguousError: In strict mode when several items match.
        """
        items = self._filter_items(resolve_filter(raw_filter))
        if strict:
            _require_single(items, raw_filter)
        return items[0] if items else None

    def get_info(self, raw_filter: Any, strict: bool = False) -> Record | None:
        """Return the record of the single item matching a filter."""
        item = self.get_item(raw_filter, strict)
        return item.record if item is not None else None

    def get_value(self, raw_filter: Any, property_name: str) -> Any:
        """Return the formatted value of a property of the matching item."""
        item = self.get_item(raw_filter)
        return item.get_value(property_name) if item is not None else ""

    def get_current_value(self, property_name: str) -> Any:
        """Return the formatted value of a property of the current item."""
        item = self._current
        return item.get_value(property_name) if item is not None else ""

    def in_strings(self, template: str, formatter: TemplateFormatter | None = None) -> list[str]:
        """Substitute every reachable record into a template."""
        return [item.in_string(template, formatter) for item in self]

    # loading

    def set_data(
        self,
        records: Sequence[Record] | None,
        stateful: bool = False,
        local: bool = False,
    ) -> list[DataItem]:
        """Replace every item with new records.

        Args:
            records: New records, or None to clear the dataset.
            stateful: Restore current and selection by key after the reload.
            local: Load records as added instead of baseline data.

        Returns:
            The new items.

        Raises:
            RecordsetDataError: If records is not a list of mappings.
            RecordsetIdentityError: If two records share an identity.
        """
        batch = [] if records is None else _require_records(records)
        state = self.get_state(as_keys=True) if stateful else None
        items, index = self._build_items(batch, local, {})
        self._items = items
        self._by_identity = index
        self._current = None
        _LOGGER.info("dataset_loaded", record_count=len(items), stateful=stateful, local=local)
        self.set_state(state)
        self._refresh_dirty()
        return items

    def add_data(
        self,
        records: Record | Sequence[Record] | None,
        local: bool = False,
    ) -> list[DataItem]:
        """Append one record or a list of records.

        The first appended item becomes current.

        Args:
            records: A record, a list of records, or None.
            local: Append records as added, dirty data.

        Returns:
            The appended items.

        Raises:
            RecordsetDataError: If records are not mappings.
            RecordsetIdentityError: If an identity is already taken.
        """
        if records is None:
            return []
        batch = [records] if isinstance(records, Mapping) else _require_records(records)
        if not batch:
            return []
        items, index = self._build_items(batch, local, self._by_identity)
        state = self.get_state()
        self._items.extend(items)
        self._by_identity.update(index)
        self._observer.items_appended(items)
        self.set_state(replace_state(state, current=items[0].identity, as_keys=False))
        self._refresh_dirty()
        return items

    def clear(self) -> None:
        """Remove every item without tracking the removal."""
        self.set_data(None)

    # cursor and selection

    def get_current(self) -> Record | None:
        """Return the current record."""
        return self._current.record if self._current is not None else None

    def get_current_item(self) -> DataItem | None:
        """Return the current item."""
        return self._current

    def set_current(self, raw_filter: Any, fire: bool = False) -> DataItem:
        """Make the single reachable item matching a filter current.

        Args:
            raw_filter: Filter matching exactly one reachable item.
            fire: Notify even when the current item does not change.

        Returns:
            The new current item.

        Raises:
            RecordsetNotFoundError: When no reachable item matches.
            RecordsetAmbiguousError: When several reachable items match.
        """
        item = self._strict_item(raw_filter)
        changed = item is not self._current
        self._current = item
        if changed or fire:
            self._observer.current_changed(item)
        return item

    def scroll(self, offset: int) -> DataItem | None:
        """Move the cursor by offset reachable positions, clamped at both ends.

        Returns:
            The current item after scrolling.
        """
        if not offset:
            return self._current
        reachable = list(self)
        if len(reachable) < 2:
            return self._current
        position = reachable.index(self._current) if self._current in reachable else -1
        target = min(max(position + offset, 0), len(reachable) - 1)
        item = reachable[target]
        if item is self._current:
            return item
        self._current = item
        self._observer.current_changed(item)
        return item

    def select(
        self,
        raw_filter: Any = STATUS_ALL,
        selected: bool = True,
        fire: bool = False,
    ) -> bool:
        """Select or unselect reachable items matching a filter.

        Args:
            raw_filter: Filter of the items to change.
            selected: True to select, False to unselect.
            fire: Notify even when no selection flag changes.

        Returns:
            Whether any selection flag changed.
        """
        changed = False
        for item in self._filter_items(resolve_filter(raw_filter), reachable_only=True):
            changed = item.select(selected) or changed
        if changed or fire:
            self._observer.selection_changed(self._selected_items())
        return changed

    def toggle(self, raw_filter: Any = STATUS_ALL, fire: bool = False) -> bool:
        """Flip the selection of reachable items matching a filter.

        Returns:
            Whether any item was toggled.
        """
        targets = self._filter_items(resolve_filter(raw_filter), reachable_only=True)
        for item in targets:
            item.toggle()
        changed = bool(targets)
        if changed or fire:
            self._observer.selection_changed(self._selected_items())
        return changed

    # state snapshots

    def get_state(self, as_keys: bool = False) -> DatasetState:
        """Capture the current item and selection.

        Args:
            as_keys: Capture reload-stable keys chosen by the identity strategy.

        Returns:
            The state snapshot.
        """
        if self.empty:
            return DatasetState(as_keys=as_keys)
        key: Callable[[DataItem], Any]
        if as_keys:
            key = self._identity.state_key
        else:
            key = _identity_of
        current = key(self._current) if self._current is not None else None
        selected = tuple(key(item) for item in self._selected_items())
        return DatasetState(current=current, selected=selected, as_keys=as_keys)

    def set_state(self, state: DatasetState | None = None) -> None:
        """Restore a state snapshot and notify observers.

        A current key that no longer resolves falls back to the first
        reachable item; selected keys that no longer resolve are dropped.

        Args:
            state: Snapshot to restore; the present state when omitted.
        """
        self._observer.dataset_changed(self)
        if self.empty:
            self._current = None
            for item in self._items:
                item.select(False)
            self._observer.current_changed(None)
            self._observer.selection_changed([])
            return
        state = state or self.get_state()
        current = self._locate(state.current, state.as_keys)
        self._current = current if current is not None else next(iter(self))
        self._observer.current_changed(self._current)
        wanted = [self._locate(key, state.as_keys) for key in state.selected]
        chosen = {id(item) for item in wanted if item is not None}
        for item in self._items:
            item.select(id(item) in chosen)
        self._observer.selection_changed(self._selected_items())

    # modification

    def modify(self, raw_filter: Any, modifier: Modifier) -> tuple[str, ...]:
        """Run a modifier on the single reachable item matching a filter.

        A modifier returns INVALID_VALUE to signal a rejected change. When
        properties changed, observers get an item-modified notification; a
        rejected modifier that changed nothing yields an item-rejected
        notification instead.

        Args:
            raw_filter: Filter matching exactly one reachable item.
            modifier: Callable mutating item.record in place.

        Returns:
            Names of the changed properties.

        Raises:
            RecordsetNotFoundError: When no reachable item matches.
            RecordsetAmbiguousError: When several reachable items match.
            RecordsetIdentityError: When the change collides with another identity.
        """
        item = self._strict_item(raw_filter)
        previous = dict(item.record or {})
        is_current = item is self._current
        outcome = modifier(item)
        changed = item.changed_properties(previous)
        if changed:
            self._rekey_modified(item, previous)
            item.mark_modified()
            self._observer.item_modified(changed, item, is_current)
            self._refresh_dirty()
        elif outcome is INVALID_VALUE:
            self._observer.modification_rejected(item, is_current)
        return changed

    def set_value(self, raw_filter: Any, property_name: str, raw_value: Any) -> Any:
        """Parse and set a property of the matching reachable item.

        Returns:
            The parsed value, or INVALID_VALUE when parsing failed.
        """
        parsed: list[Any] = []

        def apply(item: DataItem) -> Any:
            parsed.append(item.set_value(property_name, raw_value))
            return parsed[0]

        self.modify(raw_filter, apply)
        return parsed[0]

    def set_current_value(self, property_name: str, raw_value: Any) -> Any:
        """Parse and set a property of the current item.

        Returns:
            The parsed value, or INVALID_VALUE when there is no current item.
        """
        if self._current is None:
            _LOGGER.warning("current_item_missing", property=property_name)
            return INVALID_VALUE
        return self.set_value(ByIdentity(self._current.identity), property_name, raw_value)

    def replace(self, replacements: Replacement | Sequence[Replacement]) -> list[DataItem]:
        """Swap records of existing items in place and reset them to clean.

        Position and selection are kept and the identity index is re-keyed.
        A replacement whose identity is unknown is appended.

        Returns:
            The replaced or appended items.

        Raises:
            RecordsetIdentityError: If a new identity is already taken.
        """
        batch = [replacements] if isinstance(replacements, Replacement) else list(replacements)
        plan = self._plan_replacements(batch)
        if not plan:
            return []
        replaced = []
        for item, identity, record in plan:
            if item is None:
                item = DataItem(record, self._formats, identity=identity)
                self._items.append(item)
            else:
                del self._by_identity[item.identity]
                item.replace(record)
                item.identity = identity
            self._by_identity[identity] = item
            replaced.append(item)
        self._observer.items_replaced(replaced)
        self._refresh_dirty()
        return replaced

    def remove(self, raw_filter: Any) -> list[DataItem]:
        """Soft-remove reachable items matching a filter.

        Committed items become removed and stay dirty; added items become
        ignored. A removed current item passes the cursor to the next
        reachable item, or the last one before it.

        Returns:
            The removed items.
        """
        if raw_filter is None or self.empty:
            return []
        targets = self._filter_items(resolve_filter(raw_filter), reachable_only=True)
        if not targets:
            return []
        state = self.get_state()
        for item in targets:
            item.mark_removed()
        current = self._current
        if current is not None and current.unreachable:
            state = replace_state(state, current=_identity_of(self._successor(current, [])))
        self._observer.items_removed(targets)
        self.set_state(state)
        self._refresh_dirty()
        return targets

    def erase(self, raw_filter: Any) -> list[DataItem]:
        """Physically delete items matching a filter, in any state.

        Erased items leave no trace in queries or the dirty aggregate.

        Returns:
            The erased items.
        """
        if raw_filter is None or not self._items:
            return []
        targets = self._filter_items(resolve_filter(raw_filter))
        if not targets:
            return []
        state = self.get_state()
        if self._current is not None and self._current in targets:
            state = replace_state(
                state, current=_identity_of(self._successor(self._current, targets))
            )
        erased = {id(item) for item in targets}
        self._items = [item for item in self._items if id(item) not in erased]
        for item in targets:
            del self._by_identity[item.identity]
        _LOGGER.info("items_erased", count=len(targets))
        self._observer.items_erased(targets)
        self.set_state(state)
        self._refresh_dirty()
        return targets

    # internals

    def _filter_items(self, filter_spec: Filter, reachable_only: bool = False) -> list[DataItem]:
        predicate = compile_filter(filter_spec)
        return [
            item
            for item in self._items
            if predicate(item) and not (reachable_only and item.unreachable)
        ]

    def _selected_items(self) -> list[DataItem]:
        return self._filter_items(ByStatus(STATUS_SELECTED))

    def _strict_item(self, raw_filter: Any) -> DataItem:
        items = self._filter_items(resolve_filter(raw_filter), reachable_only=True)
        _require_single(items, raw_filter)
        return items[0]

    def _locate(self, key: Any, as_keys: bool) -> DataItem | None:
        if key is None:
            return None
        if as_keys:
            matches = self._filter_items(self._identity.key_filter(key), reachable_only=True)
            return matches[0] if matches else None
        try:
            item = self._by_identity.get(key)
        except TypeError:
            return None
        return item if item is not None and not item.unreachable else None

    def _successor(self, anchor: DataItem, excluded: Sequence[DataItem]) -> DataItem | None:
        position = self._items.index(anchor)
        skipped = {id(item) for item in excluded}
        following = self._items[position:]
        preceding = list(reversed(self._items[:position]))
        for item in following + preceding:
            if not item.unreachable and id(item) not in skipped:
                return item
        return None

    def _build_items(
        self,
        records: list[Record],
        local: bool,
        taken: Mapping[Hashable, DataItem],
    ) -> tuple[list[DataItem], dict[Hashable, DataItem]]:
        identities = [self._identity.identify(record) for record in records]
        index: dict[Hashable, DataItem] = {}
        state: ItemState = "added" if local else "clean"
        items = []
        for identity, record in zip(identities, records):
            if identity in taken or identity in index:
                raise RecordsetIdentityError(
                    f"Duplicate record identity {identity!r}. "
                    "Each record must have a unique identity within the dataset."
                )
            item = DataItem(record, self._formats, identity=identity, state=state)
            index[identity] = item
            items.append(item)
        return items, index

    def _plan_replacements(
        self, batch: list[Replacement]
    ) -> list[tuple[DataItem | None, Hashable, Record]]:
        plan: list[tuple[DataItem | None, Hashable, Record]] = []
        claimed: dict[Hashable, DataItem | None] = {}
        for replacement in batch:
            if not isinstance(replacement, Replacement):
                raise RecordsetDataError(
                    f"Invalid replacement {replacement!r}: expected a Replacement instance."
                )
            record = _require_record(replacement.record)
            previous = replacement.identity
            if previous is None:
                previous = self._identity.claimed_identity(record)
            item = self._by_identity.get(previous) if previous is not None else None
            if item is not None:
                identity = self._identity.reidentify(item.identity, record)
            else:
                identity = self._identity.identify(record)
            owner = self._by_identity.get(identity)
            if (owner is not None and owner is not item) or identity in claimed:
                raise RecordsetIdentityError(
                    f"Replacement identity {identity!r} is already taken. "
                    "Erase or replace the existing record first."
                )
            claimed[identity] = item
            plan.append((item, identity, record))
        return plan

    def _rekey_modified(self, item: DataItem, previous: dict[str, Any]) -> None:
        record = item.record or {}
        try:
            identity = self._identity.reidentify(item.identity, record)
            owner = self._by_identity.get(identity)
            if owner is not None and owner is not item:
                raise RecordsetIdentityError(
                    f"Modification gives identity {identity!r}, already used by another "
                    "record. The change was reverted."
                )
        except RecordsetIdentityError:
            record.clear()
            record.update(previous)
            raise
        if identity == item.identity:
            return
        del self._by_identity[item.identity]
        item.identity = identity
        self._by_identity[identity] = item

    def _refresh_dirty(self) -> None:
        dirty = any(item.dirty for item in self._items)
        if dirty == self._dirty:
            return
        self._dirty = dirty
        self._observer.dirty_state_changed(dirty)


def _identity_of(item: DataItem | None) -> Hashable | None:
    return item.identity if item is not None else None


def _require_single(items: list[DataItem], raw_filter: Any) -> None:
    if not items:
        raise RecordsetNotFoundError(
            f"No data item matches filter {raw_filter!r}. Check the identity or filter."
        )
    if len(items) > 1:
        raise RecordsetAmbiguousError(
            f"{len(items)} data items match filter {raw_filter!r}. Narrow the filter "
            "to a single item."
        )


def _require_records(records: object) -> list[Record]:
    if not isinstance(records, (list, tuple)):
        raise RecordsetDataError(
            f"Invalid records: expected a list of mappings, got {type(records).__name__}."
        )
    return [_require_record(record) for record in records]


def _require_record(record: object) -> Record:
    if not isinstance(record, MutableMapping):
        raise RecordsetDataError(
            f"Invalid record {record!r}: expected a mutable mapping such as dict."
        )
    return record


def _partition(items: list[DataItem], pick: Callable[[DataItem], Any]) -> DirtyPartition:
    grouped: dict[str, list[Any]] = {"added": [], "modified": [], "removed": []}
    for item in items:
        if item.state in grouped:
            grouped[item.state].append(pick(item))
    return DirtyPartition(
        added=tuple(grouped["added"]),
        modified=tuple(grouped["modified"]),
        removed=tuple(grouped["removed"]),
    )
