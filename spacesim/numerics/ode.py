"""
Generic ordinary differential equation engine.

An ODE is defined by its right-hand side dx/dt = f(t, x), passed as a
callable. The engine owns the independent variable, the state vector
and the step width, and advances through a NumericalIntegratorManager.

Propagation over an interval is expressed as a StepPlan: nominal steps
followed by one exact remainder step, so the independent variable lands
on the requested end value without touching the nominal step width.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from ..core.constants import PROPAGATION_TOLERANCE_S
from ..core.types import NumericalIntegrationMethod
from .manager import NumericalIntegratorManager
from .runge_kutta import DerivativeFunction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepPlan:
    """Sequence of step widths covering [start, end] exactly.

    Only the step count is stored; iteration yields the widths lazily.

    Attributes:
        start: Independent variable at the beginning of the plan.
        end: Independent variable after the last step.
        nominal_step: Width of every step but the last.
        n_nominal: Number of nominal steps.
        remainder: Width of the final step, 0.0 for an empty plan.
    """
    start: float
    end: float
    nominal_step: float
    n_nominal: int
    remainder: float

    @classmethod
    def build(cls, start: float, end: float, nominal_step: float,
              tolerance: float = PROPAGATION_TOLERANCE_S) -> StepPlan:
        """Plan nominal steps up to end, then one step for the remainder.

        Nominal steps are counted while end − t − nominal_step > tolerance,
        which keeps the final step in (0, nominal_step + tolerance] and
        never steps past end. t accumulates the nominal steps the same way
        the integrator clock does, so the remainder closes the gap it sees.

        Args:
            start: Current independent variable.
            end: Target independent variable (>= start).
            nominal_step: Nominal step width (> 0).
            tolerance: Slack below which a remainder is folded into the
                final step instead of triggering another nominal step.

        Returns:
            The plan. Empty when end == start.

        Raises:
            ValueError: for a non-positive nominal step or end < start.
        """
        if not np.isfinite(nominal_step) or nominal_step <= 0.0:
            raise ValueError(f"nominal step must be positive, got {nominal_step}")
        if end < start:
            raise ValueError(f"cannot plan backwards from {start} to {end}")
        if end == start:
            return cls(start=start, end=end, nominal_step=nominal_step,
                       n_nominal=0, remainder=0.0)

        n_nominal = 0
        t = start
        while end - t - nominal_step > tolerance:
            n_nominal += 1
            t += nominal_step
        return cls(start=start, end=end, nominal_step=nominal_step,
                   n_nominal=n_nominal, remainder=end - t)

    @property
    def n_steps(self) -> int:
        if self.end == self.start:
            return 0
        return self.n_nominal + 1

    @property
    def last_step(self) -> float:
        return self.remainder

    def __len__(self) -> int:
        return self.n_steps

    def __iter__(self) -> Iterator[float]:
        if self.end == self.start:
            return
        for _ in range(self.n_nominal):
            yield self.nominal_step
        yield self.remainder


class OrdinaryDifferentialEquation:
    """Fixed-dimension ODE advanced by a configurable Runge-Kutta method.

    The derivative function must be a deterministic pure function of
    (t, x); violations are a caller contract breach and are not detected.
    """

    def __init__(self, step_width: float,
                 derivative_function: DerivativeFunction,
                 dimension: int,
                 method: NumericalIntegrationMethod = NumericalIntegrationMethod.RK4):
        """Initialize with a zero state at t = 0.

        Args:
            step_width: Nominal step width (> 0).
            derivative_function: Right-hand side f(t, x) -> dx/dt.
            dimension: Length of the state vector.
            method: Integrator used for each step.
        """
        self._manager = NumericalIntegratorManager(
            step_width, derivative_function, method, dimension
        )
        self._dimension = int(dimension)
        self._derivative = np.zeros(self._dimension)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def method(self) -> NumericalIntegrationMethod:
        return self._manager.method

    @property
    def integrator_manager(self) -> NumericalIntegratorManager:
        return self._manager

    @property
    def step_width(self) -> float:
        return self._manager.step_width

    @property
    def independent_variable(self) -> float:
        return self._manager.current_time

    @property
    def state(self) -> np.ndarray:
        """Current state vector (copy), shape (N,)."""
        return self._manager.state

    @property
    def derivative(self) -> np.ndarray:
        """Derivative at the start of the last step, shape (N,)."""
        return self._derivative.copy()

    def __getitem__(self, index: int) -> float:
        return float(self._manager.state[index])

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def setup(self, initial_independent_variable: float, initial_state: np.ndarray):
        """Initialize the independent variable and the state vector."""
        self._manager.set_state(initial_independent_variable, initial_state)
        self._derivative = np.zeros(self._dimension)

    def set_step_width(self, step_width: float):
        self._manager.set_step_width(step_width)

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def update(self):
        """Advance the state by exactly one step of the current width."""
        self._manager.integrate()
        slopes = self._manager.integrator.slopes
        self._derivative = slopes[0]

    def integrate_steps(self, n_steps: int):
        for _ in range(n_steps):
            self.update()

    def propagate_to(self, end: float,
                     tolerance: float = PROPAGATION_TOLERANCE_S) -> StepPlan:
        """Integrate from the current independent variable to exactly end.

        Executes a StepPlan; the nominal step width is restored afterwards
        and the independent variable is set to end to remove accumulated
        rounding from the step sum.

        Returns:
            The executed plan.
        """
        start = self.independent_variable
        nominal = self.step_width
        plan = StepPlan.build(start, end, nominal, tolerance)

        integrator = self._manager.integrator
        try:
            for h in plan:
                integrator.set_step_width(h)
                self.update()
        finally:
            integrator.set_step_width(nominal)

        if plan.n_steps:
            integrator.set_current_time(end)
        logger.debug("Propagated ODE from %.6f to %.6f in %d steps",
                     start, end, plan.n_steps)
        return plan


def make_linear_system(system_matrix: np.ndarray) -> DerivativeFunction:
    """Right-hand side of the time-invariant linear system dx/dt = A·x.

    Args:
        system_matrix: A, shape (N, N). Captured by reference.

    Returns:
        Callable(t, x) -> A @ x.
    """
    def rhs(t: float, state: np.ndarray) -> np.ndarray:
        return system_matrix @ state
    return rhs
