"""Runtime configuration model for Recordset.

This module owns all environment variable parsing and validation.
Other modules consume a typed settings object instead of raw env reads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from core.constants import (
    DEFAULT_SURROGATE_PREFIX,
    FALSE_TEXT_VALUES,
    SURROGATE_PREFIX_ENV_VAR,
    TRACE_ENV_VAR,
    TRUE_TEXT_VALUES,
)
from core.errors import RecordsetConfigError


@dataclass(frozen=True)
class RecordsetSettings:
    """Validated runtime settings.

    Attributes:
        trace: Default for logging every store notification.
        surrogate_prefix: Prefix of surrogate identity tokens.
    """

    trace: bool
    surrogate_prefix: str

    @classmethod
    def from_env(cls) -> "RecordsetSettings":
        """Build settings from process environment variables.

        Returns:
            A validated settings object.

        Raises:
            RecordsetConfigError: If environment values are invalid.
        """
        trace = _parse_bool(TRACE_ENV_VAR, os.getenv(TRACE_ENV_VAR, "false"))
        surrogate_prefix = os.getenv(SURROGATE_PREFIX_ENV_VAR, DEFAULT_SURROGATE_PREFIX)
        if not surrogate_prefix.strip():
            raise RecordsetConfigError(
                f"Invalid {SURROGATE_PREFIX_ENV_VAR} value: expected non-empty text. "
                f"Unset it to use the default '{DEFAULT_SURROGATE_PREFIX}'."
            )
        return cls(trace=trace, surrogate_prefix=surrogate_prefix)


def _parse_bool(env_name: str, raw_value: str) -> bool:
    """Parse a boolean environment value.

    Args:
        env_name: Environment variable name, used in errors.
        raw_value: Raw string from environment.

    Returns:
        Parsed boolean.

    Raises:
        RecordsetConfigError: If value is not recognized boolean text.
    """
    normalized = raw_value.strip().lower()
    if normalized in TRUE_TEXT_VALUES:
        return True
    if normalized in FALSE_TEXT_VALUES:
        return False
    raise RecordsetConfigError(
        f"Invalid {env_name} value: expected one of "
        f"{', '.join(TRUE_TEXT_VALUES + FALSE_TEXT_VALUES[:-1])}, got '{raw_value}'."
    )
