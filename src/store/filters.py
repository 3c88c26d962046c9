"""Filter classification and compilation.

This module turns the loosely typed filter arguments accepted by the
dataset API into explicit filter variants, then compiles each variant
into one predicate over data items.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Hashable, Mapping, Union, cast

from core.constants import STATUS_ALL, STATUS_DIRTY, STATUS_KEYWORDS, STATUS_SELECTED
from core.errors import RecordsetFilterError
from core.types import StatusKeyword
from store.data_item import DataItem

ItemPredicate = Callable[[DataItem], bool]


@dataclass(frozen=True)
class ByIdentity:
    """Match the item with one identity, in any state."""

    identity: Hashable


@dataclass(frozen=True)
class ByIdentities:
    """Match items whose identity is listed, in any state."""

    identities: tuple[Hashable, ...]


@dataclass(frozen=True)
class ByStatus:
    """Match items by status keyword."""

    status: StatusKeyword


@dataclass(frozen=True)
class ByProperties:
    """Match reachable items equal to ANY property probe."""

    probes: tuple[Mapping[str, Any], ...]


@dataclass(frozen=True)
class ByPredicate:
    """Match items accepted by a user predicate, in any state."""

    predicate: ItemPredicate


Filter = Union[ByIdentity, ByIdentities, ByStatus, ByProperties, ByPredicate]
FILTER_TYPES = (ByIdentity, ByIdentities, ByStatus, ByProperties, ByPredicate)


def resolve_filter(raw_filter: Any) -> Filter:
    """Classify a filter argument into a filter variant.

    Args:
        raw_filter: None, a status keyword, an identity, a list of identities,
            a property mapping, a list of property mappings, a predicate, or
            a filter variant.

    Returns:
        The filter variant.

    Raises:
        RecordsetFilterError: If a list mixes property mappings and identities.
    """
    if isinstance(raw_filter, FILTER_TYPES):
        return raw_filter
    if raw_filter is None:
        return ByStatus(STATUS_ALL)
    if isinstance(raw_filter, str) and raw_filter in STATUS_KEYWORDS:
        return ByStatus(cast(StatusKeyword, raw_filter))
    if isinstance(raw_filter, Mapping):
        return ByProperties((raw_filter,))
    if isinstance(raw_filter, (list, set, frozenset)):
        return _resolve_collection(raw_filter)
    if callable(raw_filter):
        return ByPredicate(raw_filter)
    return ByIdentity(raw_filter)


def _resolve_collection(raw_filter: list[Any] | set[Any] | frozenset[Any]) -> Filter:
    entries = list(raw_filter)
    mapping_count = sum(1 for entry in entries if isinstance(entry, Mapping))
    if entries and mapping_count == len(entries):
        return ByProperties(tuple(entries))
    if mapping_count:
        raise RecordsetFilterError(
            "Filter list mixes property mappings and identities. "
            "Pass either identities or property mappings, not both."
        )
    return ByIdentities(tuple(entries))


def compile_filter(filter_spec: Filter) -> ItemPredicate:
    """Compile a filter variant into a predicate over data items."""
    if isinstance(filter_spec, ByIdentity):
        identity = filter_spec.identity
        return lambda item: item.identity == identity
    if isinstance(filter_spec, ByIdentities):
        identities = set(filter_spec.identities)
        return lambda item: item.identity in identities
    if isinstance(filter_spec, ByStatus):
        return _compile_status(filter_spec.status)
    if isinstance(filter_spec, ByProperties):
        probes = filter_spec.probes
        return lambda item: not item.unreachable and any(
            item.equal_properties(probe) for probe in probes
        )
    predicate = filter_spec.predicate
    return lambda item: bool(predicate(item))


def _compile_status(status: StatusKeyword) -> ItemPredicate:
    if status == STATUS_SELECTED:
        return lambda item: not item.unreachable and item.selected
    if status == STATUS_DIRTY:
        return lambda item: item.dirty
    return lambda item: not item.unreachable


def is_dirty_filter(filter_spec: Filter) -> bool:
    """Return whether the filter asks for the dirty partition."""
    return isinstance(filter_spec, ByStatus) and filter_spec.status == STATUS_DIRTY
