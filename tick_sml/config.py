"""Machine configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass

# Tolerance used by ``~=``. The language has no literal syntax for it.
APPROX_EPSILON = 1e-6


@dataclass(frozen=True)
class MachineConfig:
    """Immutable per-machine settings.

    Attributes:
        epsilon: Tolerance for approximate equality (``~=``). Exact equality
            (``==``) never uses it.
        max_depth: Deepest expression tree the evaluator will walk before
            aborting the tick with DepthLimitError.
    """

    epsilon: float = APPROX_EPSILON
    max_depth: int = 200

    def __post_init__(self) -> None:
        if self.epsilon < 0:
            raise ValueError("epsilon must be non-negative")
        if self.max_depth <= 0:
            raise ValueError("max_depth must be positive")
