"""Compile entry points: source text -> Program -> Machine."""
from __future__ import annotations

import logging

from tick_sml.config import MachineConfig
from tick_sml.lexer import tokenize
from tick_sml.machine import Machine
from tick_sml.nodes import Program
from tick_sml.parser import parse
from tick_sml.validate import validate

logger = logging.getLogger(__name__)


def parse_program(source: str) -> Program:
    """Tokenize, parse and validate ``source``.

    Raises LexError, ParseError or a ValidationError subclass; the first
    error aborts. Error positions refer to ``source`` as given.
    """
    program = parse(tokenize(source))
    validate(program)
    logger.debug(
        "compiled program: %d states, %d globals, initial state %r",
        len(program.states), len(program.globals), program.initial_state,
    )
    return program


def compile(source: str, config: MachineConfig | None = None) -> Machine:
    """Compile ``source`` into a Machine positioned at its first state.

    Example::

        machine = compile('''
        state idle:
            when inputs.temperature < 18:
                outputs.heater = true
                changeto heating
        state heating:
            when inputs.temperature >= 21:
                outputs.heater = false
                changeto idle
        ''')
        machine.run({"temperature": 17})  # {'heater': True}

    Raises:
        CompileError: Lexing, parsing or validation failed, or a global
            initializer could not be evaluated (InitializerError).
    """
    return Machine(parse_program(source), config)
