"""Machine - runs a compiled Program one tick at a time."""
from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from tick_sml.config import MachineConfig
from tick_sml.errors import InitializerError, TickError
from tick_sml.evaluator import Environment, check_condition, execute
from tick_sml.nodes import ChangeTo, End, Program, State, StateOp, Stay
from tick_sml.records import from_values, to_values
from tick_sml.types import Value
from tick_sml.validate import validate

logger = logging.getLogger(__name__)

R = TypeVar("R")

TransitionHook = Callable[["Machine", str, str], None]
FinishHook = Callable[["Machine", str], None]


class Machine:
    """A running instance of a Program.

    Owns the current state, the globals and the finished flag; ``run`` is
    the only method that advances them. The Program itself is never
    mutated and may be shared by any number of machines.
    """

    def __init__(self, program: Program, config: MachineConfig | None = None) -> None:
        """Validate ``program`` and evaluate its global initializers.

        Raises a ValidationError subclass, or InitializerError when an
        initializer fails to evaluate.
        """
        validate(program)
        self._program = program
        self._config = config if config is not None else MachineConfig()
        self._states: dict[str, State] = {s.name: s for s in program.states}
        self._transition_hooks: list[TransitionHook] = []
        self._finish_hooks: list[FinishHook] = []
        self._current = program.initial_state
        self._finished = False
        self._tick_count = 0
        self._globals: dict[str, Value] = self._initial_globals()

    # --- Introspection ---

    @property
    def program(self) -> Program:
        return self._program

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def current_state(self) -> str:
        """Name of the state the next tick will run."""
        return self._current

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def globals(self) -> dict[str, Value]:
        """A copy of the current globals."""
        return dict(self._globals)

    @property
    def tick_count(self) -> int:
        """Number of ticks that completed successfully."""
        return self._tick_count

    # --- Hooks ---

    def on_transition(self, hook: TransitionHook) -> None:
        """Call ``hook(machine, old, new)`` after each committed ``changeto``."""
        self._transition_hooks.append(hook)

    def on_finish(self, hook: FinishHook) -> None:
        """Call ``hook(machine, state)`` after ``end`` is committed."""
        self._finish_hooks.append(hook)

    # --- Lifecycle ---

    def reinit(self, globals: Any = None) -> None:
        """Return to the initial state with freshly initialized globals.

        ``globals`` is an optional host record whose fields override the
        program's initializers.
        """
        seeded = self._initial_globals()
        seeded.update(to_values(globals))
        self._globals = seeded
        self._current = self._program.initial_state
        self._finished = False
        self._tick_count = 0
        logger.debug("machine reinitialized in state %r", self._current)

    def _initial_globals(self) -> dict[str, Value]:
        env = Environment()
        for stmt in self._program.globals:
            try:
                execute((stmt,), env, self._config)
            except TickError as exc:
                raise InitializerError(stmt.target.name, str(exc)) from exc
        return env.globals

    def run(
        self, inputs: Any = None, output_type: type[R] | None = None,
    ) -> R | dict[str, Value] | None:
        """Run one tick.

        Runs the default head, the current state's head, then the first rule
        whose condition is true. Returns this tick's outputs (as a dict, or
        as ``output_type``), or None once the machine has finished.

        Raises:
            TickError: The tick failed. Globals, current state and the
                finished flag are unchanged.
        """
        if self._finished:
            return None

        state = self._states[self._current]
        try:
            env = Environment(
                inputs=to_values(inputs),
                outputs={},
                globals=dict(self._globals),
            )
            op = self._tick(state, env)
            record = from_values(env.outputs, output_type)
        except TickError as exc:
            logger.debug(
                "tick %d in state %r aborted: %s", self._tick_count + 1, state.name, exc
            )
            raise

        # Commit.
        self._globals = env.globals
        self._tick_count += 1
        self._apply(op, state.name)
        return record

    def _tick(self, state: State, env: Environment) -> StateOp:
        config = self._config
        execute(self._program.default_head, env, config)
        execute(state.head, env, config)
        for rule in state.body:
            if check_condition(rule.condition, env, config):
                execute(rule.statements, env, config)
                return rule.state_op
        return Stay()

    def _apply(self, op: StateOp, old: str) -> None:
        if isinstance(op, ChangeTo):
            self._current = op.target
            logger.debug("transition %r -> %r", old, op.target)
            for hook in self._transition_hooks:
                hook(self, old, op.target)
        elif isinstance(op, End):
            self._finished = True
            logger.info("machine finished in state %r after %d ticks", old, self._tick_count)
            for hook in self._finish_hooks:
                hook(self, old)

