"""Exception hierarchy for compiling and running SML machines."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tick_sml.types import Store


class SMLError(Exception):
    """Base class for every error raised by tick-sml."""


# --- Compile time ---


class CompileError(SMLError):
    """Raised when source text cannot be turned into a Machine."""


class LexError(CompileError):
    """Raised on an unrecognized character or a malformed literal."""

    def __init__(self, message: str, line: int, column: int, offset: int) -> None:
        self.line = line
        self.column = column
        self.offset = offset
        super().__init__(f"{message} (line {line}, column {column})")


class ParseError(CompileError):
    """Raised on an unexpected or missing token. The first one aborts the compile."""

    def __init__(
        self,
        message: str,
        line: int,
        column: int,
        expected: str | None = None,
        found: str | None = None,
    ) -> None:
        self.line = line
        self.column = column
        self.expected = expected
        self.found = found
        super().__init__(f"{message} (line {line}, column {column})")


class ValidationError(CompileError):
    """Raised when a parsed program is structurally invalid."""


class UnknownStateError(ValidationError):
    """A ``changeto`` names a state that is not declared."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"changeto targets unknown state {name!r}")


class DuplicateStateError(ValidationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"state {name!r} is declared more than once")


class DuplicateGlobalError(ValidationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"global {name!r} is declared more than once")


class InvalidAssignmentTargetError(ValidationError):
    """Assignment to a store that is read-only in that position."""

    def __init__(self, store: Store, name: str, allowed: tuple[Store, ...]) -> None:
        self.store = store
        self.name = name
        allowed_names = " or ".join(s.value for s in allowed)
        super().__init__(
            f"cannot assign to {store.value}.{name}; target must be {allowed_names}"
        )


class UnresolvedIdentifierError(ValidationError):
    """A global initializer reads something not yet defined."""

    def __init__(self, store: Store, name: str) -> None:
        self.store = store
        self.name = name
        super().__init__(
            f"{store.value}.{name} is not available to global initializers"
        )


class InitializerError(CompileError):
    """A global initializer failed to evaluate. The cause is chained."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        super().__init__(f"initializer for globals.{name} failed: {reason}")


# --- Run time ---


class TickError(SMLError):
    """Raised when a tick aborts. The machine is left as it was before the tick."""


class UnboundFieldError(TickError, KeyError):
    """An identifier names a field missing from its store."""

    def __init__(self, store: Store, name: str) -> None:
        self.store = store
        self.name = name
        super().__init__(f"{store.value}.{name} is not bound")

    def __str__(self) -> str:
        # KeyError would repr() the message.
        return str(self.args[0])


class OperandTypeError(TickError, TypeError):
    """Operator applied to operand kinds it is not defined for."""

    def __init__(self, op: str, kinds: tuple[str, ...]) -> None:
        self.op = op
        self.kinds = kinds
        super().__init__(f"operator {op!r} is not defined for {', '.join(kinds)}")


class DivisionByZeroError(TickError, ZeroDivisionError):
    """Right operand of ``/`` is zero."""


class ArithmeticDomainError(TickError, ArithmeticError):
    """Numeric result is undefined or out of range (e.g. ``(-8) ^ 0.5``)."""


class DepthLimitError(TickError):
    """Expression nesting exceeds ``MachineConfig.max_depth``."""


class RecordError(TickError):
    """Host record cannot be converted to or from machine values."""


# --- Intermediate representation ---


class IRFormatError(SMLError):
    """Raised when a serialized program is malformed or has the wrong version."""
