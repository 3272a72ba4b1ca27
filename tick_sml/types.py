"""Runtime value kinds and identifier stores."""
from __future__ import annotations

from enum import Enum
from typing import Any, Union

# A machine value. Numbers are always floats inside the machine.
Value = Union[bool, float, str]


class ValueKind(Enum):
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"


class Store(Enum):
    """The environment section an identifier reads from or writes to."""

    INPUTS = "inputs"
    OUTPUTS = "outputs"
    GLOBALS = "globals"


def kind_of(value: Any) -> ValueKind:
    """Classify a machine value. Raises TypeError for anything else."""
    # bool first: bool is a subclass of int.
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, float):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    raise TypeError(f"{type(value).__name__} is not a machine value")
