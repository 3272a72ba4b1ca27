"""tick-sml - A small state machine language, compiler and tick runtime."""
from __future__ import annotations

from tick_sml.compiler import compile, parse_program
from tick_sml.config import APPROX_EPSILON, MachineConfig
from tick_sml.errors import (
    ArithmeticDomainError,
    CompileError,
    DepthLimitError,
    DivisionByZeroError,
    DuplicateGlobalError,
    DuplicateStateError,
    InitializerError,
    InvalidAssignmentTargetError,
    IRFormatError,
    LexError,
    OperandTypeError,
    ParseError,
    RecordError,
    SMLError,
    TickError,
    UnboundFieldError,
    UnknownStateError,
    UnresolvedIdentifierError,
    ValidationError,
)
from tick_sml.ir import program_from_dict, program_to_dict
from tick_sml.machine import Machine
from tick_sml.nodes import Program
from tick_sml.types import Store, Value, ValueKind

__all__ = [
    "APPROX_EPSILON",
    "ArithmeticDomainError",
    "CompileError",
    "DepthLimitError",
    "DivisionByZeroError",
    "DuplicateGlobalError",
    "DuplicateStateError",
    "IRFormatError",
    "InitializerError",
    "InvalidAssignmentTargetError",
    "LexError",
    "Machine",
    "MachineConfig",
    "OperandTypeError",
    "ParseError",
    "Program",
    "RecordError",
    "SMLError",
    "Store",
    "TickError",
    "UnboundFieldError",
    "UnknownStateError",
    "UnresolvedIdentifierError",
    "ValidationError",
    "Value",
    "ValueKind",
    "compile",
    "parse_program",
    "program_from_dict",
    "program_to_dict",
]
