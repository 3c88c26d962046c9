"""Core constants used across Recordset modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

TRACE_ENV_VAR = "RECORDSET_TRACE"
SURROGATE_PREFIX_ENV_VAR = "RECORDSET_SURROGATE_PREFIX"
DEFAULT_SURROGATE_PREFIX = "ndx-"
TRUE_TEXT_VALUES = ("1", "true", "yes", "on")
FALSE_TEXT_VALUES = ("0", "false", "no", "off", "")

STATUS_ALL = "all"
STATUS_SELECTED = "selected"
STATUS_DIRTY = "dirty"
STATUS_KEYWORDS = (STATUS_ALL, STATUS_SELECTED, STATUS_DIRTY)

INDEX_PLACEHOLDER = "{index}"
DATE_PATTERN = "%Y-%m-%d"
DATETIME_PATTERN = "%Y-%m-%d %H:%M:%S"

SUPPORTED_DATASET_SPEC_VERSION = 1
