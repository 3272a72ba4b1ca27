"""Program <-> JSON-compatible dict (the intermediate representation)."""
from __future__ import annotations

from typing import Any

from tick_sml.errors import IRFormatError
from tick_sml.nodes import (
    Assignment,
    BinaryOp,
    ChangeTo,
    End,
    Expression,
    Identifier,
    Literal,
    Program,
    Rule,
    State,
    StateOp,
    Stay,
    UnaryOp,
)
from tick_sml.types import Store, Value
from tick_sml.validate import validate

_IR_VERSION = 1

_BINARY_OPS = frozenset({
    "+", "-", "*", "/", "^", "==", "!=", "~=", "<", ">", "<=", ">=", "&&", "||",
})
_UNARY_OPS = frozenset({"-", "!"})


def program_to_dict(program: Program) -> dict[str, Any]:
    return {
        "version": _IR_VERSION,
        "globals": {a.target.name: _expr_to_dict(a.value) for a in program.globals},
        "default_head": [_stmt_to_dict(s) for s in program.default_head],
        "states": [
            {
                "name": state.name,
                "head": [_stmt_to_dict(s) for s in state.head],
                "body": [
                    {
                        "condition": _expr_to_dict(rule.condition),
                        "expressions": [_stmt_to_dict(s) for s in rule.statements],
                        "state_op": _op_to_str(rule.state_op),
                    }
                    for rule in state.body
                ],
            }
            for state in program.states
        ],
    }


def program_from_dict(data: dict[str, Any]) -> Program:
    """Rebuild and validate a Program.

    Raises:
        IRFormatError: Wrong version or malformed structure.
        ValidationError: The rebuilt program fails validation.
    """
    if not isinstance(data, dict):
        raise IRFormatError(f"expected a dict, got {type(data).__name__}")
    version = data.get("version")
    if version != _IR_VERSION:
        raise IRFormatError(
            f"Unsupported IR version {version!r}, expected {_IR_VERSION}"
        )
    try:
        program = Program(
            globals=tuple(
                Assignment(Identifier(Store.GLOBALS, name), _expr_from_dict(expr))
                for name, expr in _get(data, "globals", dict, optional=True).items()
            ),
            default_head=tuple(
                _stmt_from_dict(s) for s in _get(data, "default_head", list, optional=True)
            ),
            states=tuple(_state_from_dict(s) for s in _get(data, "states", list)),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise IRFormatError(f"malformed program: {exc}") from exc
    except RecursionError as exc:
        raise IRFormatError("malformed program: expression nested too deeply") from exc
    validate(program)
    return program


# --- Encoding ---


def _expr_to_dict(expr: Expression) -> dict[str, Any]:
    if isinstance(expr, Literal):
        return {"type": "literal", "value": expr.value}
    if isinstance(expr, Identifier):
        return {"type": "identifier", "store": expr.store.value, "name": expr.name}
    if isinstance(expr, BinaryOp):
        return {
            "type": "binary",
            "op": expr.op,
            "left": _expr_to_dict(expr.left),
            "right": _expr_to_dict(expr.right),
        }
    if isinstance(expr, UnaryOp):
        return {"type": "unary", "op": expr.op, "operand": _expr_to_dict(expr.operand)}
    raise TypeError(f"not an expression node: {expr!r}")


def _stmt_to_dict(stmt: Assignment) -> dict[str, Any]:
    return {
        "target": {"store": stmt.target.store.value, "name": stmt.target.name},
        "value": _expr_to_dict(stmt.value),
    }


def _op_to_str(op: StateOp) -> str:
    if isinstance(op, ChangeTo):
        return f"changeto {op.target}"
    if isinstance(op, End):
        return "end"
    return "stay"


# --- Decoding ---


def _get(data: dict[str, Any], key: str, kind: type, optional: bool = False) -> Any:
    if optional and key not in data:
        return kind()
    value = data[key]
    if not isinstance(value, kind):
        raise TypeError(f"{key!r} must be a {kind.__name__}")
    return value


def _literal(value: Any) -> Value:
    if isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    raise TypeError(f"unsupported literal {value!r}")


def _ident_from_dict(data: dict[str, Any]) -> Identifier:
    return Identifier(Store(data["store"]), str(data["name"]))


def _expr_from_dict(data: dict[str, Any]) -> Expression:
    kind = data["type"]
    if kind == "literal":
        return Literal(_literal(data["value"]))
    if kind == "identifier":
        return _ident_from_dict(data)
    if kind == "binary":
        if data["op"] not in _BINARY_OPS:
            raise ValueError(f"unknown binary operator {data['op']!r}")
        return BinaryOp(
            data["op"], _expr_from_dict(data["left"]), _expr_from_dict(data["right"])
        )
    if kind == "unary":
        if data["op"] not in _UNARY_OPS:
            raise ValueError(f"unknown unary operator {data['op']!r}")
        return UnaryOp(data["op"], _expr_from_dict(data["operand"]))
    raise ValueError(f"unknown expression type {kind!r}")


def _stmt_from_dict(data: dict[str, Any]) -> Assignment:
    return Assignment(_ident_from_dict(data["target"]), _expr_from_dict(data["value"]))


def _op_from_str(text: Any) -> StateOp:
    if not isinstance(text, str):
        raise TypeError(f"state op must be a string, got {text!r}")
    if text == "stay":
        return Stay()
    if text == "end":
        return End()
    if text.startswith("changeto "):
        return ChangeTo(text[len("changeto "):].strip())
    raise ValueError(f"unexpected state op {text!r}")


def _state_from_dict(data: dict[str, Any]) -> State:
    return State(
        name=str(data["name"]),
        head=tuple(_stmt_from_dict(s) for s in _get(data, "head", list)),
        body=tuple(
            Rule(
                condition=_expr_from_dict(rule["condition"]),
                statements=tuple(
                    _stmt_from_dict(s) for s in _get(rule, "expressions", list)
                ),
                state_op=_op_from_str(rule["state_op"]),
            )
            for rule in _get(data, "body", list)
        ),
    )
