"""Host record <-> machine value mapping.

Records are plain mappings or dataclass instances whose fields are bools,
numbers or strings. Integers become floats on the way in and are restored
for ``int``-annotated dataclass fields on the way out.
"""
from __future__ import annotations

import dataclasses
import typing
from collections.abc import Mapping
from typing import Any, TypeVar

from tick_sml.errors import RecordError
from tick_sml.types import Value

R = TypeVar("R")


def to_value(raw: Any) -> Value:
    """Convert one host field value. Raises RecordError if unsupported."""
    if isinstance(raw, bool) or isinstance(raw, str):
        return raw
    if isinstance(raw, (int, float)):
        return float(raw)
    raise RecordError(
        f"unsupported field type {type(raw).__name__}; "
        "expected bool, int, float or str"
    )


def to_values(record: Any) -> dict[str, Value]:
    """Flatten a host record into a ``field -> Value`` dict.

    Accepts None (no fields), any Mapping with string keys, or a dataclass
    instance.
    """
    if record is None:
        return {}
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        fields: Mapping[Any, Any] = dataclasses.asdict(record)
    elif isinstance(record, Mapping):
        fields = record
    else:
        raise RecordError(
            f"cannot read fields from {type(record).__name__}; "
            "pass a mapping or a dataclass instance"
        )
    values: dict[str, Value] = {}
    for name, raw in fields.items():
        if not isinstance(name, str):
            raise RecordError(f"field names must be strings, got {name!r}")
        try:
            values[name] = to_value(raw)
        except RecordError as exc:
            raise RecordError(f"field {name!r}: {exc}") from None
    return values


def from_values(values: Mapping[str, Value], record_type: type[R] | None = None) -> R | dict[str, Value]:
    """Build a host record from machine values.

    With no ``record_type`` a new dict is returned. Dataclass types are built
    with ``record_type(**fields)``; Mapping types are called with the dict.
    Anything else is a RecordError.
    """
    if record_type is None:
        return dict(values)
    if dataclasses.is_dataclass(record_type):
        return _build_dataclass(record_type, values)
    if not (isinstance(record_type, type) and issubclass(record_type, Mapping)):
        raise RecordError(
            f"cannot build {getattr(record_type, '__name__', record_type)!r}; "
            "expected a dataclass or a Mapping type"
        )
    try:
        return record_type(dict(values))  # type: ignore[call-arg]
    except (TypeError, ValueError) as exc:
        raise RecordError(f"cannot build {record_type.__name__}: {exc}") from exc


def _build_dataclass(record_type: type[R], values: Mapping[str, Value]) -> R:
    try:
        hints = typing.get_type_hints(record_type)
    except NameError:
        hints = {}
    fields: dict[str, Any] = {}
    for name, value in values.items():
        if hints.get(name) is int and isinstance(value, float):
            if not value.is_integer():
                raise RecordError(
                    f"field {name!r} of {record_type.__name__} is int, got {value!r}"
                )
            fields[name] = int(value)
        else:
            fields[name] = value
    try:
        return record_type(**fields)
    except TypeError as exc:
        raise RecordError(f"cannot build {record_type.__name__}: {exc}") from exc
