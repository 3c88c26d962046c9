"""Recordset exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class RecordsetError(Exception):
    """Base exception for all Recordset failures."""


class RecordsetConfigError(RecordsetError):
    """Raised for invalid store or runtime configuration."""


class RecordsetSpecError(RecordsetError):
    """Raised for invalid or unsupported dataset spec files."""


class RecordsetDependencyError(RecordsetError):
    """Raised when an optional runtime dependency is missing."""


class RecordsetDataError(RecordsetError):
    """Raised for malformed bulk-load input."""


class RecordsetIdentityError(RecordsetError):
    """Raised when two records would share one identity."""


class RecordsetFilterError(RecordsetError):
    """Raised when a filter argument cannot be classified."""


class RecordsetStateError(RecordsetError):
    """Raised for illegal data item state transitions."""


class RecordsetLookupError(RecordsetError):
    """Raised when a strict single-item lookup fails."""


class RecordsetNotFoundError(RecordsetLookupError):
    """Raised when a strict lookup matches no item."""


class RecordsetAmbiguousError(RecordsetLookupError):
    """Raised when a strict lookup matches more than one item."""


class RecordsetObserverError(RecordsetError):
    """Raised when a notification handler fails."""
