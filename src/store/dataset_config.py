"""Dataset construction options.

This module validates the options a dataset is created with and
builds them from declarative dataset specs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from core.config import RecordsetSettings
from core.types import DatasetSpec
from store.identity import DerivedIdentity, IdentityStrategy, SurrogateIdentity, build_identity
from store.observers import DatasetHandlers
from store.value_format import FormatRegistry, ValueFormat


@dataclass(frozen=True)
class DatasetConfig:
    """Options supplied at dataset construction.

    Attributes:
        identity: Identity strategy, property name(s), or key function.
        formats: Property name to value format or built-in format name.
        trace: Log every notification; defers to RECORDSET_TRACE when None.
        handlers: Notification handlers; omitted ones only log.
    """

    identity: Any
    formats: Mapping[str, ValueFormat | str] = field(default_factory=dict)
    trace: bool | None = None
    handlers: DatasetHandlers = field(default_factory=DatasetHandlers)

    @classmethod
    def from_spec(
        cls,
        spec: DatasetSpec,
        handlers: DatasetHandlers | None = None,
        settings: RecordsetSettings | None = None,
    ) -> "DatasetConfig":
        """Build options from a validated dataset spec.

        Args:
            spec: Declarative dataset spec.
            handlers: Optional notification handlers.
            settings: Runtime settings; read from the environment when omitted.

        Returns:
            Dataset options.
        """
        identity: IdentityStrategy
        if spec.identity.surrogate:
            prefix = (settings or RecordsetSettings.from_env()).surrogate_prefix
            identity = SurrogateIdentity(keys=spec.identity.surrogate_keys, prefix=prefix)
        else:
            identity = DerivedIdentity(properties=spec.identity.properties)
        return cls(
            identity=identity,
            formats=dict(spec.formats),
            trace=spec.trace,
            handlers=handlers or DatasetHandlers(),
        )

    def resolve(
        self, settings: RecordsetSettings | None = None
    ) -> tuple[IdentityStrategy, FormatRegistry, bool]:
        """Validate the options into runtime collaborators.

        Returns:
            Identity strategy, format registry, and effective trace flag.

        Raises:
            RecordsetConfigError: If identity or format options are invalid.
        """
        runtime = settings or RecordsetSettings.from_env()
        identity = build_identity(self.identity, surrogate_prefix=runtime.surrogate_prefix)
        formats = FormatRegistry(self.formats)
        trace = runtime.trace if self.trace is None else self.trace
        return identity, formats, trace
