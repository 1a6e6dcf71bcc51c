"""Solution state stored on a model after each relaxation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

import numpy as np

from ..polynomials import Exponent


class SolveStatus(Enum):
    """Outcome of the last relaxation of a model."""
    NOT_SOLVED = auto()
    OPTIMAL = auto()
    INFEASIBLE = auto()
    UNBOUNDED = auto()
    NUMERICAL_ERROR = auto()


@dataclass
class RelaxationResult:
    """Result of one relax() call.

    Attributes:
        order: Relaxation order d.
        status: Mapped solver status.
        objective: Optimal value, None unless OPTIMAL.
        moments: (measure name, exponent) -> moment value, None unless OPTIMAL.
        duals: Constraint name -> dual vector aligned with the constraint
            basis, None unless OPTIMAL. Oriented so that the sum of
            <dual, targets> over all constraints equals the objective.
        solve_time: Wall-clock solver time in seconds.
        n_variables: Number of shared moment variables.
        block_sizes: Sizes of the PSD blocks, in assembly order.
        solver: Name of the solver used.
        solver_status: Raw status string reported by the solver.
    """
    order: int
    status: SolveStatus
    objective: float | None = None
    moments: dict[tuple[str, Exponent], float] | None = None
    duals: dict[str, np.ndarray] | None = None
    solve_time: float = 0.0
    n_variables: int = 0
    block_sizes: list[int] = field(default_factory=list)
    solver: str = ""
    solver_status: str = ""

    @property
    def is_optimal(self) -> bool:
        return self.status == SolveStatus.OPTIMAL

    def summary(self) -> str:
        """Return formatted summary string."""
        lines = [
            "Relaxation Result",
            "=" * 40,
            f"Relaxation order:        {self.order}",
            f"Status:                  {self.status.name}",
        ]
        if self.objective is not None:
            lines.append(f"Objective value:         {self.objective:.8f}")
        lines.extend([
            f"Moment variables:        {self.n_variables}",
            f"PSD blocks:              {self.block_sizes}",
            f"Solver:                  {self.solver} ({self.solver_status})",
            f"Solve time:              {self.solve_time:.3f}s",
        ])
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return (
            f"RelaxationResult(order={self.order}, status={self.status.name}, "
            f"objective={self.objective})"
        )
