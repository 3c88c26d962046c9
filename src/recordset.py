"""Public import surface for Recordset.

This module provides a stable import path for store users.
It re-exports the dataset, its options, and typed models.
"""

from __future__ import annotations

from core.config import RecordsetSettings
from core.dataset_spec import load_dataset_spec
from core.errors import (
    RecordsetAmbiguousError,
    RecordsetConfigError,
    RecordsetDataError,
    RecordsetDependencyError,
    RecordsetError,
    RecordsetFilterError,
    RecordsetIdentityError,
    RecordsetLookupError,
    RecordsetNotFoundError,
    RecordsetObserverError,
    RecordsetSpecError,
    RecordsetStateError,
)
from core.types import DatasetState, DirtyPartition, Replacement
from store.data_item import DataItem
from store.dataset import Dataset
from store.dataset_config import DatasetConfig
from store.filters import ByIdentities, ByIdentity, ByPredicate, ByProperties, ByStatus
from store.identity import DerivedIdentity, SurrogateIdentity
from store.observers import DatasetHandlers
from store.value_format import (
    DATE_FORMAT,
    DATETIME_FORMAT,
    INVALID_VALUE,
    NUMBER_FORMAT,
    ValueFormat,
)

__all__ = [
    "ByIdentities",
    "ByIdentity",
    "ByPredicate",
    "ByProperties",
    "ByStatus",
    "DATE_FORMAT",
    "DATETIME_FORMAT",
    "DataItem",
    "Dataset",
    "DatasetConfig",
    "DatasetHandlers",
    "DatasetState",
    "DerivedIdentity",
    "DirtyPartition",
    "INVALID_VALUE",
    "NUMBER_FORMAT",
    "RecordsetAmbiguousError",
    "RecordsetConfigError",
    "RecordsetDataError",
    "RecordsetDependencyError",
    "RecordsetError",
    "RecordsetFilterError",
    "RecordsetIdentityError",
    "RecordsetLookupError",
    "RecordsetNotFoundError",
    "RecordsetObserverError",
    "RecordsetSettings",
    "RecordsetSpecError",
    "RecordsetStateError",
    "Replacement",
    "SurrogateIdentity",
    "ValueFormat",
    "load_dataset_spec",
]
