"""Structural checks run on every Program before a Machine is built."""
from __future__ import annotations

from typing import Iterator

from tick_sml.errors import (
    DuplicateGlobalError,
    DuplicateStateError,
    InvalidAssignmentTargetError,
    UnknownStateError,
    UnresolvedIdentifierError,
    ValidationError,
)
from tick_sml.nodes import (
    Assignment,
    BinaryOp,
    ChangeTo,
    Expression,
    Identifier,
    Program,
    UnaryOp,
)
from tick_sml.types import Store

_WRITABLE = (Store.OUTPUTS, Store.GLOBALS)

# Deepest expression tree a program may contain. Kept below the default
# MachineConfig.max_depth.
MAX_EXPRESSION_DEPTH = 100


def validate(program: Program) -> None:
    """Raise a ValidationError subclass if ``program`` is malformed.

    Checks are name-based only. Input and output schemas belong to the host,
    so no type inference is attempted.
    """
    if not program.states:
        raise ValidationError("program declares no states")

    names: set[str] = set()
    for state in program.states:
        if not state.name:
            raise ValidationError("state name must not be empty")
        if state.name in names:
            raise DuplicateStateError(state.name)
        names.add(state.name)

    _check_globals(program.globals)

    _check_statements(program.default_head)
    for state in program.states:
        _check_statements(state.head)
        for rule in state.body:
            _check_depth(rule.condition)
            _check_statements(rule.statements)
            if isinstance(rule.state_op, ChangeTo) and rule.state_op.target not in names:
                raise UnknownStateError(rule.state_op.target)


def _check_statements(statements: tuple[Assignment, ...]) -> None:
    for stmt in statements:
        _check_depth(stmt.value)
        if stmt.target.store not in _WRITABLE:
            raise InvalidAssignmentTargetError(
                stmt.target.store, stmt.target.name, _WRITABLE
            )


def _check_globals(initializers: tuple[Assignment, ...]) -> None:
    """Initializers see only globals declared above them."""
    defined: set[str] = set()
    for stmt in initializers:
        target = stmt.target
        if target.store is not Store.GLOBALS:
            raise InvalidAssignmentTargetError(
                target.store, target.name, (Store.GLOBALS,)
            )
        if target.name in defined:
            raise DuplicateGlobalError(target.name)
        _check_depth(stmt.value)
        for ident in identifiers(stmt.value):
            if ident.store is not Store.GLOBALS or ident.name not in defined:
                raise UnresolvedIdentifierError(ident.store, ident.name)
        defined.add(target.name)


def identifiers(expr: Expression) -> Iterator[Identifier]:
    """Yield every identifier in ``expr``, left to right."""
    stack: list[Expression] = [expr]
    while stack:
        node = stack.pop()
        if isinstance(node, Identifier):
            yield node
        elif isinstance(node, BinaryOp):
            stack.append(node.right)
            stack.append(node.left)
        elif isinstance(node, UnaryOp):
            stack.append(node.operand)


def _check_depth(expr: Expression) -> None:
    depth = expression_depth(expr)
    if depth > MAX_EXPRESSION_DEPTH:
        raise ValidationError(
            f"expression is {depth} levels deep; the limit is {MAX_EXPRESSION_DEPTH}"
        )


def expression_depth(expr: Expression) -> int:
    """Number of nodes on the longest root-to-leaf path of ``expr``."""
    deepest = 0
    stack: list[tuple[Expression, int]] = [(expr, 1)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(node, BinaryOp):
            stack.append((node.left, depth + 1))
            stack.append((node.right, depth + 1))
        elif isinstance(node, UnaryOp):
            stack.append((node.operand, depth + 1))
    return deepest
