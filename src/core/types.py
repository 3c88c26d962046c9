"""Shared typed models.

This module defines the lifecycle states and immutable value objects
exchanged between the record store and its collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Hashable, Literal, Mapping

ItemState = Literal["clean", "added", "modified", "removed", "ignored"]
ALLOWED_STATE_TRANSITIONS: dict[ItemState, tuple[ItemState, ...]] = {
    "clean": ("modified", "removed"),
    "added": ("added", "ignored"),
    "modified": ("modified", "removed"),
    "removed": (),
    "ignored": (),
}
DIRTY_STATES: tuple[ItemState, ...] = ("added", "modified", "removed")
UNREACHABLE_STATES: tuple[ItemState, ...] = ("removed", "ignored")

StatusKeyword = Literal["all", "selected", "dirty"]


@dataclass(frozen=True)
class DirtyPartition:
    """Dirty records or items grouped by lifecycle state.

    Attributes:
        added: Entries inserted as local data.
        modified: Entries changed since baseline.
        removed: Entries soft-removed since baseline.
    """

    added: tuple[Any, ...] = ()
    modified: tuple[Any, ...] = ()
    removed: tuple[Any, ...] = ()

    @property
    def empty(self) -> bool:
        """Return whether no dirty entry exists."""
        return not (self.added or self.modified or self.removed)


@dataclass(frozen=True)
class DatasetState:
    """Snapshot of the cursor and selection of a dataset.

    Attributes:
        current: Identity or key of the current item, if any.
        selected: Identities or keys of the selected items.
        as_keys: Whether entries are reload-stable keys instead of identities.
    """

    current: Any = None
    selected: tuple[Any, ...] = ()
    as_keys: bool = False


@dataclass(frozen=True)
class Replacement:
    """One record replacing the record of an existing item.

    Attributes:
        record: New record.
        identity: Identity of the superseded item; derived from record when omitted.
    """

    record: Mapping[str, Any]
    identity: Hashable | None = None


@dataclass(frozen=True)
class DatasetSpecIdentity:
    """Identity section of a declarative dataset spec.

    Attributes:
        properties: Record properties forming a derived identity.
        surrogate_keys: Properties used as reload keys for surrogate identities.
        surrogate: Whether identities are surrogate tokens.
    """

    properties: tuple[str, ...] = ()
    surrogate_keys: tuple[str, ...] = ()
    surrogate: bool = False


@dataclass(frozen=True)
class DatasetSpec:
    """Validated declarative dataset spec.

    Attributes:
        version: Spec schema version.
        identity: Identity configuration.
        formats: Property name to built-in format name.
        trace: Optional notification tracing override.
    """

    version: int
    identity: DatasetSpecIdentity
    formats: Mapping[str, str] = field(default_factory=dict)
    trace: bool | None = None
