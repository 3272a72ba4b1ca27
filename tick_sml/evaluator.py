"""Expression evaluation and statement execution against an Environment.

Pure functions over the program tree; the only side effects are the
assignments ``execute`` makes into the environment it is given.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from tick_sml.config import MachineConfig
from tick_sml.errors import (
    DepthLimitError,
    InvalidAssignmentTargetError,
    OperandTypeError,
    UnboundFieldError,
)
from tick_sml.nodes import (
    Assignment,
    BinaryOp,
    Expression,
    Identifier,
    Literal,
    UnaryOp,
)
from tick_sml.operators import SHORT_CIRCUIT, apply_binary, apply_unary
from tick_sml.types import Store, Value, ValueKind, kind_of

_DEFAULT_CONFIG = MachineConfig()


@dataclass
class Environment:
    """The bindings visible during one tick.

    ``inputs`` is read-only. ``outputs`` and ``globals`` are written in place,
    so callers that need rollback pass scratch copies.
    """

    inputs: Mapping[str, Value] = field(default_factory=dict)
    outputs: dict[str, Value] = field(default_factory=dict)
    globals: dict[str, Value] = field(default_factory=dict)

    def _section(self, store: Store) -> Mapping[str, Value]:
        if store is Store.INPUTS:
            return self.inputs
        if store is Store.OUTPUTS:
            return self.outputs
        return self.globals

    def lookup(self, ident: Identifier) -> Value:
        """Read a field. Raises UnboundFieldError if it is not bound."""
        section = self._section(ident.store)
        if ident.name not in section:
            raise UnboundFieldError(ident.store, ident.name)
        return section[ident.name]

    def assign(self, ident: Identifier, value: Value) -> None:
        """Bind a field, overwriting any previous value."""
        if ident.store is Store.OUTPUTS:
            self.outputs[ident.name] = value
        elif ident.store is Store.GLOBALS:
            self.globals[ident.name] = value
        else:
            raise InvalidAssignmentTargetError(
                ident.store, ident.name, (Store.OUTPUTS, Store.GLOBALS)
            )


def evaluate(
    expr: Expression, env: Environment, config: MachineConfig = _DEFAULT_CONFIG,
) -> Value:
    """Reduce ``expr`` to a value.

    Raises:
        UnboundFieldError: An identifier is not bound in its store.
        OperandTypeError: An operator got operand kinds it does not support.
        DivisionByZeroError: Right operand of ``/`` is zero.
        DepthLimitError: The tree is deeper than ``config.max_depth``.
    """
    return _eval(expr, env, config, 1)


def _eval(expr: Expression, env: Environment, config: MachineConfig, depth: int) -> Value:
    if depth > config.max_depth:
        raise DepthLimitError(
            f"expression deeper than max_depth={config.max_depth}"
        )
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, Identifier):
        return env.lookup(expr)
    if isinstance(expr, UnaryOp):
        return apply_unary(expr.op, _eval(expr.operand, env, config, depth + 1))
    if isinstance(expr, BinaryOp):
        left = _eval(expr.left, env, config, depth + 1)
        if expr.op in SHORT_CIRCUIT and kind_of(left) is ValueKind.BOOL:
            if left is SHORT_CIRCUIT[expr.op]:
                return left
        right = _eval(expr.right, env, config, depth + 1)
        return apply_binary(expr.op, left, right, config.epsilon)
    raise TypeError(f"not an expression node: {expr!r}")


def check_condition(
    expr: Expression, env: Environment, config: MachineConfig = _DEFAULT_CONFIG,
) -> bool:
    """Evaluate a rule condition. Non-boolean results are an OperandTypeError."""
    value = evaluate(expr, env, config)
    if kind_of(value) is not ValueKind.BOOL:
        raise OperandTypeError("when", (kind_of(value).value,))
    return bool(value)


def execute(
    statements: Iterable[Assignment],
    env: Environment,
    config: MachineConfig = _DEFAULT_CONFIG,
) -> None:
    """Run assignments in order, each seeing the effects of the previous ones."""
    for stmt in statements:
        env.assign(stmt.target, evaluate(stmt.value, env, config))
