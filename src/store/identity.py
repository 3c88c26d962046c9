"""Identity strategies for dataset records.

This module assigns each record a stable identity at insertion time.
A derived strategy computes it from record properties; a surrogate
strategy issues counter tokens independent of record contents.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, Hashable, Mapping, Protocol, Sequence

from core.constants import DEFAULT_SURROGATE_PREFIX
from core.errors import RecordsetConfigError, RecordsetIdentityError
from store.data_item import DataItem
from store.filters import ByIdentity, ByProperties, Filter

KeyFunction = Callable[[Mapping[str, Any]], Hashable]
_STRATEGY_METHODS = ("identify", "reidentify", "claimed_identity", "state_key", "key_filter")


class IdentityStrategy(Protocol):
    """Contract every identity strategy implements."""

    def identify(self, record: Mapping[str, Any]) -> Hashable: ...

    def reidentify(self, previous: Hashable, record: Mapping[str, Any]) -> Hashable: ...

    def claimed_identity(self, record: Mapping[str, Any]) -> Hashable | None: ...

    def state_key(self, item: DataItem) -> Any: ...

    def key_filter(self, key: Any) -> Filter: ...


class DerivedIdentity:
    """Identity computed from record properties or a key function."""

    def __init__(
        self,
        properties: Sequence[str] = (),
        key_function: KeyFunction | None = None,
    ) -> None:
        """Create a derived strategy.

        Args:
            properties: Properties forming the identity; one property yields
                its value, several yield a tuple of values.
            key_function: Callable returning the identity of a record.

        Raises:
            RecordsetConfigError: If neither or both sources are given.
        """
        self.properties = tuple(properties)
        if bool(self.properties) == (key_function is not None):
            raise RecordsetConfigError(
                "Derived identity needs exactly one of 'properties' or 'key_function'. "
                "Pass the record properties that identify a record, or a key function."
            )
        self._key_function = key_function

    def identify(self, record: Mapping[str, Any]) -> Hashable:
        if self._key_function is not None:
            identity = self._key_function(record)
        elif len(self.properties) == 1:
            identity = record.get(self.properties[0])
        else:
            identity = tuple(record.get(name) for name in self.properties)
        if identity is None:
            raise RecordsetIdentityError(
                f"Record {dict(record)!r} has no identity. "
                "Populate its identity properties before loading it."
            )
        try:
            hash(identity)
        except TypeError as error:
            raise RecordsetIdentityError(
                f"Identity {identity!r} is not hashable. Return a str, number, or tuple."
            ) from error
        return identity

    def reidentify(self, previous: Hashable, record: Mapping[str, Any]) -> Hashable:
        return self.identify(record)

    def claimed_identity(self, record: Mapping[str, Any]) -> Hashable | None:
        return self.identify(record)

    def state_key(self, item: DataItem) -> Any:
        return item.identity

    def key_filter(self, key: Any) -> Filter:
        return ByIdentity(key)


class SurrogateIdentity:
    """Opaque counter tokens assigned in insertion order."""

    def __init__(
        self,
        keys: Sequence[str] = (),
        prefix: str = DEFAULT_SURROGATE_PREFIX,
    ) -> None:
        """Create a surrogate strategy.

        Args:
            keys: Properties used to recognize records across reloads.
            prefix: Prefix of issued tokens.
        """
        self.keys = tuple(keys)
        self.prefix = prefix
        self._counter = itertools.count()

    def identify(self, record: Mapping[str, Any]) -> Hashable:
        return f"{self.prefix}{next(self._counter)}"

    def reidentify(self, previous: Hashable, record: Mapping[str, Any]) -> Hashable:
        return previous

    def claimed_identity(self, record: Mapping[str, Any]) -> Hashable | None:
        """Return None; tokens cannot be recovered from record contents."""
        return None

    def state_key(self, item: DataItem) -> Any:
        if not self.keys:
            return item.identity
        return item.get_properties(self.keys)

    def key_filter(self, key: Any) -> Filter:
        if isinstance(key, Mapping):
            return ByProperties((key,))
        return ByIdentity(key)


def build_identity(
    spec: Any,
    surrogate_prefix: str = DEFAULT_SURROGATE_PREFIX,
) -> IdentityStrategy:
    """Build an identity strategy from a configuration value.

    Args:
        spec: A strategy, a property name, a sequence of property names,
            or a key function.
        surrogate_prefix: Prefix used when a surrogate strategy is requested
            by the "surrogate" keyword.

    Returns:
        The identity strategy.

    Raises:
        RecordsetConfigError: If the identity specification is missing or invalid.
    """
    if spec is None:
        raise RecordsetConfigError(
            "Dataset identity is required but missing. Pass a property name, a list "
            "of property names, a key function, or an identity strategy."
        )
    if isinstance(spec, (DerivedIdentity, SurrogateIdentity)):
        return spec
    if spec == "surrogate":
        return SurrogateIdentity(prefix=surrogate_prefix)
    if isinstance(spec, str):
        return DerivedIdentity(properties=(spec,))
    if all(hasattr(spec, name) for name in _STRATEGY_METHODS):
        return spec
    if callable(spec):
        return DerivedIdentity(key_function=spec)
    if isinstance(spec, Sequence) and spec and all(isinstance(name, str) for name in spec):
        return DerivedIdentity(properties=spec)
    raise RecordsetConfigError(
        f"Invalid dataset identity {spec!r}. Pass a property name, a non-empty list "
        "of property names, a key function, or an identity strategy."
    )
