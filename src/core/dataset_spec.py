"""Typed parsing for declarative dataset spec files.

This module loads and validates YAML files that describe how a dataset
identifies its records, which built-in value formats apply to which
properties, and whether notifications are traced.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence, cast

from core.constants import SUPPORTED_DATASET_SPEC_VERSION
from core.errors import RecordsetDependencyError, RecordsetSpecError
from core.types import DatasetSpec, DatasetSpecIdentity


def load_dataset_spec(spec_path: str | Path) -> DatasetSpec:
    """Load and validate a YAML dataset spec from disk.

    Args:
        spec_path: File path to YAML dataset spec.

    Returns:
        Fully validated dataset spec.

    Raises:
        RecordsetDependencyError: If PyYAML is unavailable.
        RecordsetSpecError: If file is invalid or schema checks fail.
    """
    payload = _load_yaml_payload(spec_path)
    return parse_dataset_spec(payload)


def parse_dataset_spec(payload: object) -> DatasetSpec:
    """Validate an already decoded dataset spec payload.

    Args:
        payload: Decoded YAML or JSON document.

    Returns:
        Fully validated dataset spec.

    Raises:
        RecordsetSpecError: If schema checks fail.
    """
    root_mapping = _expect_mapping(payload, "dataset spec root")
    _validate_keys(root_mapping, {"version", "identity", "formats", "trace"}, "root")
    version = _parse_version(root_mapping)
    identity = _parse_identity(root_mapping)
    formats = _parse_formats(root_mapping)
    trace = _optional_bool(root_mapping, "trace")
    return DatasetSpec(version=version, identity=identity, formats=formats, trace=trace)


def _load_yaml_payload(spec_path: str | Path) -> object:
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise RecordsetDependencyError(
            "YAML dataset spec support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    spec_file = Path(spec_path).expanduser().resolve()
    if not spec_file.exists():
        raise RecordsetSpecError(
            f"Dataset spec file does not exist at {spec_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(spec_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise RecordsetSpecError(
            f"Failed to read dataset spec at {spec_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise RecordsetSpecError(
            f"Failed to parse YAML dataset spec at {spec_file}: {error}. Fix YAML syntax."
        ) from error
    if payload is None:
        raise RecordsetSpecError(
            f"Dataset spec at {spec_file} is empty. Define 'version' and 'identity'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise RecordsetSpecError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise RecordsetSpecError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_names(value: object, context: str) -> tuple[str, ...]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes, bytearray)):
        raise RecordsetSpecError(f"Invalid {context}: expected list, got {type(value).__name__}.")
    names = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise RecordsetSpecError(f"Invalid {context}: entries must be non-empty strings.")
        names.append(item.strip())
    return tuple(names)


def _parse_version(root_mapping: Mapping[str, object]) -> int:
    raw_version = root_mapping.get("version")
    if not isinstance(raw_version, int) or isinstance(raw_version, bool):
        raise RecordsetSpecError("Dataset spec field 'version' must be an integer. Set version: 1.")
    if raw_version != SUPPORTED_DATASET_SPEC_VERSION:
        raise RecordsetSpecError(
            f"Unsupported dataset spec version {raw_version}. "
            f"Use version: {SUPPORTED_DATASET_SPEC_VERSION}."
        )
    return raw_version


def _parse_identity(root_mapping: Mapping[str, object]) -> DatasetSpecIdentity:
    raw_identity = root_mapping.get("identity")
    if raw_identity is None:
        raise RecordsetSpecError(
            "Dataset spec missing required field 'identity'. "
            "Add 'properties: [...]' or 'surrogate: {}'."
        )
    identity_mapping = _expect_mapping(raw_identity, "dataset spec identity")
    _validate_keys(identity_mapping, {"properties", "surrogate"}, "identity")
    has_properties = "properties" in identity_mapping
    has_surrogate = "surrogate" in identity_mapping
    if has_properties == has_surrogate:
        raise RecordsetSpecError(
            "Dataset spec identity must define exactly one of 'properties' or 'surrogate'."
        )
    if has_properties:
        properties = _expect_names(identity_mapping["properties"], "identity properties")
        if not properties:
            raise RecordsetSpecError("Dataset spec identity 'properties' must not be empty.")
        return DatasetSpecIdentity(properties=properties)
    raw_surrogate = identity_mapping["surrogate"]
    surrogate_mapping = _expect_mapping(
        {} if raw_surrogate is None else raw_surrogate, "identity surrogate"
    )
    _validate_keys(surrogate_mapping, {"keys"}, "identity surrogate")
    keys: tuple[str, ...] = ()
    if surrogate_mapping.get("keys") is not None:
        keys = _expect_names(surrogate_mapping["keys"], "identity surrogate keys")
    return DatasetSpecIdentity(surrogate=True, surrogate_keys=keys)


def _parse_formats(root_mapping: Mapping[str, object]) -> Mapping[str, str]:
    raw_formats = root_mapping.get("formats")
    if raw_formats is None:
        return {}
    formats_mapping = _expect_mapping(raw_formats, "dataset spec formats")
    formats = {}
    for property_name, format_name in formats_mapping.items():
        if not isinstance(format_name, str) or not format_name.strip():
            raise RecordsetSpecError(
                f"Dataset spec format for '{property_name}' must be a format name string."
            )
        formats[property_name] = format_name.strip()
    return formats


def _optional_bool(mapping: Mapping[str, object], field_name: str) -> bool | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    if isinstance(raw_value, bool):
        return raw_value
    raise RecordsetSpecError(f"Dataset spec field '{field_name}' must be a boolean when provided.")


def _validate_keys(mapping: Mapping[str, object], allowed_keys: set[str], context: str) -> None:
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise RecordsetSpecError(
            f"Dataset spec {context} contains unknown fields: {', '.join(unknown_keys)}."
        )
