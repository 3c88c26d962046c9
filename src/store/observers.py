"""Dataset notification handlers and their logging defaults.

This module exposes one extension point per store notification so
callers supply only the handlers they need; omitted handlers fall
back to structured trace logging.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from core.errors import RecordsetObserverError
from core.logging_config import get_logger
from store.data_item import DataItem

_LOGGER = get_logger(__name__)

OnDatasetChange = Callable[[Any], None]
OnCurrentChange = Callable[[DataItem | None], None]
OnSelectionChange = Callable[[list[DataItem]], None]
OnModify = Callable[[tuple[str, ...], DataItem, bool], None]
OnReject = Callable[[DataItem, bool], None]
OnItems = Callable[[list[DataItem]], None]
OnDirtyStateChange = Callable[[bool], None]


@dataclass(frozen=True)
class DatasetHandlers:
    """Optional user-defined notification handlers."""

    on_dataset_change: OnDatasetChange | None = None
    on_current_change: OnCurrentChange | None = None
    on_selection_change: OnSelectionChange | None = None
    on_modify: OnModify | None = None
    on_reject: OnReject | None = None
    on_append: OnItems | None = None
    on_replace: OnItems | None = None
    on_remove: OnItems | None = None
    on_erase: OnItems | None = None
    on_dirty_state_change: OnDirtyStateChange | None = None


class DatasetObserver:
    """Dispatches store notifications to handlers, logging each when traced."""

    def __init__(self, handlers: DatasetHandlers | None = None, trace: bool = False) -> None:
        self.handlers = handlers or DatasetHandlers()
        self.trace = trace

    def dataset_changed(self, dataset: Any) -> None:
        self._log("dataset_changed", length=len(dataset))
        _invoke("on_dataset_change", self.handlers.on_dataset_change, dataset)

    def current_changed(self, item: DataItem | None) -> None:
        self._log("current_changed", identity=_identity_of(item))
        _invoke("on_current_change", self.handlers.on_current_change, item)

    def selection_changed(self, selected: list[DataItem]) -> None:
        self._log("selection_changed", selected=_identities_of(selected))
        _invoke("on_selection_change", self.handlers.on_selection_change, selected)

    def item_modified(self, changed: tuple[str, ...], item: DataItem, is_current: bool) -> None:
        self._log(
            "item_modified",
            identity=_identity_of(item),
            properties=list(changed),
            is_current=is_current,
        )
        _invoke("on_modify", self.handlers.on_modify, changed, item, is_current)

    def modification_rejected(self, item: DataItem, is_current: bool) -> None:
        self._log("modification_rejected", identity=_identity_of(item), is_current=is_current)
        _invoke("on_reject", self.handlers.on_reject, item, is_current)

    def items_appended(self, items: list[DataItem]) -> None:
        self._log("items_appended", identities=_identities_of(items))
        _invoke("on_append", self.handlers.on_append, items)

    def items_replaced(self, items: list[DataItem]) -> None:
        self._log("items_replaced", identities=_identities_of(items))
        _invoke("on_replace", self.handlers.on_replace, items)

    def items_removed(self, items: list[DataItem]) -> None:
        self._log("items_removed", identities=_identities_of(items))
        _invoke("on_remove", self.handlers.on_remove, items)

    def items_erased(self, items: list[DataItem]) -> None:
        self._log("items_erased", identities=_identities_of(items))
        _invoke("on_erase", self.handlers.on_erase, items)

    def dirty_state_changed(self, dirty: bool) -> None:
        self._log("dirty_state_changed", dirty=dirty)
        _invoke("on_dirty_state_change", self.handlers.on_dirty_state_change, dirty)

    def _log(self, event: str, **fields: object) -> None:
        if self.trace:
            _LOGGER.debug(event, **fields)


def _invoke(handler_name: str, handler: Callable[..., object] | None, *args: object) -> None:
    """Invoke one optional handler and wrap failures with context."""
    if handler is None:
        return
    try:
        handler(*args)
    except Exception as error:
        raise RecordsetObserverError(
            f"Handler '{handler_name}' failed: {error}. Fix the handler or remove it."
        ) from error


def _identity_of(item: DataItem | None) -> object:
    return None if item is None else item.identity


def _identities_of(items: Sequence[DataItem]) -> list[object]:
    return [item.identity for item in items]
