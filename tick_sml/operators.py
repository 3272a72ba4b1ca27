"""Operator tables keyed by operator and operand kinds."""
from __future__ import annotations

import math
from typing import Callable

from tick_sml.errors import ArithmeticDomainError, DivisionByZeroError, OperandTypeError
from tick_sml.types import Value, ValueKind, kind_of

BinaryFn = Callable[[Value, Value, float], Value]
UnaryFn = Callable[[Value], Value]

_B = ValueKind.BOOL
_N = ValueKind.NUMBER
_S = ValueKind.STRING


def _divide(a: float, b: float, eps: float) -> float:
    if b == 0:
        raise DivisionByZeroError(f"division by zero: {a!r} / {b!r}")
    return a / b


def _power(a: float, b: float, eps: float) -> float:
    try:
        return math.pow(a, b)
    except (ValueError, OverflowError) as exc:
        raise ArithmeticDomainError(f"{a!r} ^ {b!r} is undefined: {exc}") from exc


BINARY: dict[tuple[str, ValueKind, ValueKind], BinaryFn] = {
    ("+", _N, _N): lambda a, b, eps: a + b,
    ("-", _N, _N): lambda a, b, eps: a - b,
    ("*", _N, _N): lambda a, b, eps: a * b,
    ("/", _N, _N): _divide,
    ("^", _N, _N): _power,
    ("<", _N, _N): lambda a, b, eps: a < b,
    (">", _N, _N): lambda a, b, eps: a > b,
    ("<=", _N, _N): lambda a, b, eps: a <= b,
    (">=", _N, _N): lambda a, b, eps: a >= b,
    ("~=", _N, _N): lambda a, b, eps: abs(a - b) <= eps,
}

for _kind in (_B, _N, _S):
    BINARY[("==", _kind, _kind)] = lambda a, b, eps: a == b
    BINARY[("!=", _kind, _kind)] = lambda a, b, eps: a != b

# ``&&`` and ``||`` short-circuit in the evaluator; these entries handle the
# case where both sides were evaluated.
BINARY[("&&", _B, _B)] = lambda a, b, eps: a and b
BINARY[("||", _B, _B)] = lambda a, b, eps: a or b

UNARY: dict[tuple[str, ValueKind], UnaryFn] = {
    ("-", _N): lambda a: -a,
    ("!", _B): lambda a: not a,
}

SHORT_CIRCUIT = {"&&": False, "||": True}


def apply_binary(op: str, left: Value, right: Value, epsilon: float) -> Value:
    """Apply ``op``. Raises OperandTypeError for unsupported operand kinds."""
    lk, rk = kind_of(left), kind_of(right)
    fn = BINARY.get((op, lk, rk))
    if fn is None:
        raise OperandTypeError(op, (lk.value, rk.value))
    return fn(left, right, epsilon)


def apply_unary(op: str, operand: Value) -> Value:
    kind = kind_of(operand)
    fn = UNARY.get((op, kind))
    if fn is None:
        raise OperandTypeError(op, (kind.value,))
    return fn(operand)
