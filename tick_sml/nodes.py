"""Program tree produced by the parser and executed by the machine.

Every node is a frozen dataclass, so a compiled Program can be shared
between machines without copying.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from tick_sml.types import Store, Value

# --- Expressions ---


@dataclass(frozen=True, slots=True)
class Literal:
    value: Value


@dataclass(frozen=True, slots=True)
class Identifier:
    """``<store>.<name>``, e.g. ``inputs.temperature``."""

    store: Store
    name: str

    def __str__(self) -> str:
        return f"{self.store.value}.{self.name}"


@dataclass(frozen=True, slots=True)
class BinaryOp:
    op: str
    left: Expression
    right: Expression


@dataclass(frozen=True, slots=True)
class UnaryOp:
    op: str
    operand: Expression


Expression = Union[Literal, Identifier, BinaryOp, UnaryOp]

TRUE = Literal(True)


# --- Statements and state ops ---


@dataclass(frozen=True, slots=True)
class Assignment:
    target: Identifier
    value: Expression


@dataclass(frozen=True, slots=True)
class ChangeTo:
    """Switch to ``target`` on the next tick."""

    target: str


@dataclass(frozen=True, slots=True)
class Stay:
    pass


@dataclass(frozen=True, slots=True)
class End:
    """Finish the machine. Later ticks produce no output."""


StateOp = Union[ChangeTo, Stay, End]


# --- Structure ---


@dataclass(frozen=True, slots=True)
class Rule:
    """Condition plus the statements and state op applied when it fires."""

    condition: Expression
    statements: tuple[Assignment, ...] = ()
    state_op: StateOp = Stay()


@dataclass(frozen=True, slots=True)
class State:
    name: str
    head: tuple[Assignment, ...] = ()
    body: tuple[Rule, ...] = ()


@dataclass(frozen=True, slots=True)
class Program:
    """A compiled machine description.

    ``globals`` holds the global initializers in declaration order; later
    initializers may read earlier ones. ``default_head`` runs before the head
    of whichever state is active. The first state is the initial state.
    """

    states: tuple[State, ...]
    globals: tuple[Assignment, ...] = ()
    default_head: tuple[Assignment, ...] = ()

    @property
    def initial_state(self) -> str:
        return self.states[0].name

    @property
    def initializers(self) -> dict[str, Expression]:
        """Global name -> initializer expression, in declaration order."""
        return {a.target.name: a.value for a in self.globals}

    def state(self, name: str) -> State:
        """Look up a state by name. Raises KeyError if not declared."""
        for state in self.states:
            if state.name == name:
                return state
        raise KeyError(name)

    def state_names(self) -> list[str]:
        return [s.name for s in self.states]
