"""
Explicit Runge-Kutta framework.

A method is fully described by its Butcher tableau:
    slope_i = f(t + c_i·h, x + h·Σ_{j<i} a_ij·slope_j)
    x_next  = x + h·Σ_i b_i·slope_i

The generic step below is shared by every concrete integrator; accuracy
depends only on the tableau constants satisfying their order conditions.

Derivative functions must be pure functions of (t, x): each step evaluates
them once per stage and the framework assumes no hidden state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DerivativeFunction = Callable[[float, np.ndarray], np.ndarray]


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class ButcherTableau:
    """Coefficients of an explicit Runge-Kutta method.

    Attributes:
        name: Human-readable method name.
        order: Order of accuracy of the propagated solution.
        nodes: Stage time offsets c, shape (S,).
        rk_matrix: Stage coupling coefficients a, shape (S, S), strictly
            lower triangular.
        weights: Combination weights b of the propagated solution, shape (S,).
        lower_order_weights: Weights b* of the embedded companion solution,
            shape (S,), or None for methods without an error estimate.
    """
    name: str
    order: int
    nodes: np.ndarray
    rk_matrix: np.ndarray
    weights: np.ndarray
    lower_order_weights: Optional[np.ndarray] = None

    def __post_init__(self):
        object.__setattr__(self, "nodes", _frozen(self.nodes))
        object.__setattr__(self, "rk_matrix", _frozen(self.rk_matrix))
        object.__setattr__(self, "weights", _frozen(self.weights))
        if self.lower_order_weights is not None:
            object.__setattr__(self, "lower_order_weights",
                               _frozen(self.lower_order_weights))

    @property
    def number_of_stages(self) -> int:
        return len(self.weights)

    @property
    def is_embedded(self) -> bool:
        return self.lower_order_weights is not None

    def validate(self, tol: float = 1e-12) -> ButcherTableau:
        """Check the structural consistency of the tableau.

        Verifies shapes, explicitness (strictly lower-triangular coupling),
        consistency (Σ b_i = 1) and the row-sum condition c_i = Σ_j a_ij.
        The higher order conditions are exercised by the convergence tests.

        Returns:
            self, to allow chaining.

        Raises:
            ConfigurationError: if any check fails.
        """
        s = self.number_of_stages
        if s == 0:
            raise ConfigurationError(f"{self.name}: tableau has no stages")
        if self.nodes.shape != (s,) or self.rk_matrix.shape != (s, s):
            raise ConfigurationError(
                f"{self.name}: inconsistent tableau shapes "
                f"(nodes {self.nodes.shape}, matrix {self.rk_matrix.shape}, "
                f"weights {self.weights.shape})"
            )
        if np.any(np.triu(self.rk_matrix) != 0.0):
            raise ConfigurationError(
                f"{self.name}: coupling matrix must be strictly lower triangular"
            )
        if abs(self.weights.sum() - 1.0) > tol:
            raise ConfigurationError(
                f"{self.name}: weights sum to {self.weights.sum():.15g}, expected 1"
            )
        row_sums = self.rk_matrix.sum(axis=1)
        if not np.allclose(row_sums, self.nodes, rtol=0.0, atol=tol):
            raise ConfigurationError(
                f"{self.name}: nodes {self.nodes} do not match coupling row sums {row_sums}"
            )
        if self.lower_order_weights is not None:
            if self.lower_order_weights.shape != (s,):
                raise ConfigurationError(
                    f"{self.name}: embedded weights must have {s} entries"
                )
            if abs(self.lower_order_weights.sum() - 1.0) > tol:
                raise ConfigurationError(
                    f"{self.name}: embedded weights sum to "
                    f"{self.lower_order_weights.sum():.15g}, expected 1"
                )
        return self


class RungeKutta:
    """Fixed-step explicit Runge-Kutta integrator driven by a tableau.

    Attributes:
        tableau: The method coefficients (validated at construction).
    """

    def __init__(self, step_width: float,
                 derivative_function: DerivativeFunction,
                 tableau: ButcherTableau,
                 dimension: int = 1):
        """Initialize the integrator with a zero state at t = 0.

        Args:
            step_width: Step width of the independent variable (positive).
            derivative_function: Right-hand side f(t, x) -> dx/dt.
            tableau: Butcher tableau of the method.
            dimension: Length of the state vector.
        """
        if dimension < 1:
            raise ConfigurationError(f"state dimension must be >= 1, got {dimension}")
        self.tableau = tableau.validate()
        self._derivative_function = derivative_function
        self._dimension = int(dimension)
        self._step_width = 0.0
        self.set_step_width(step_width)

        self._current_time = 0.0
        self._current_state = np.zeros(self._dimension)
        self._previous_state = self._current_state.copy()
        self._slopes: Optional[np.ndarray] = None   # (S, N) of the last step
        self._last_step_width = 0.0

        logger.debug("%s integrator created: dimension=%d, step=%g",
                     tableau.name, self._dimension, self._step_width)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def number_of_stages(self) -> int:
        return self.tableau.number_of_stages

    @property
    def step_width(self) -> float:
        return self._step_width

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def state(self) -> np.ndarray:
        """Current state vector (copy), shape (N,)."""
        return self._current_state.copy()

    @property
    def previous_state(self) -> np.ndarray:
        """State at the start of the last completed step (copy), shape (N,)."""
        return self._previous_state.copy()

    @property
    def last_step_width(self) -> float:
        """Width of the last completed step, 0 before the first step."""
        return self._last_step_width

    @property
    def slopes(self) -> Optional[np.ndarray]:
        """Stage slopes of the last completed step, shape (S, N), or None."""
        return None if self._slopes is None else self._slopes.copy()

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def set_step_width(self, step_width: float):
        step_width = float(step_width)
        if not np.isfinite(step_width) or step_width <= 0.0:
            raise ValueError(f"step width must be positive, got {step_width}")
        self._step_width = step_width

    def set_state(self, time: float, state: np.ndarray):
        """Replace the independent variable and the state vector.

        Discards the stored slopes, so no interpolation is available until
        the next completed step.
        """
        state = np.array(state, dtype=float).reshape(-1)
        if state.shape != (self._dimension,):
            raise ValueError(
                f"state must have {self._dimension} components, got {state.shape[0]}"
            )
        self._current_time = float(time)
        self._current_state = state
        self._previous_state = state.copy()
        self._slopes = None
        self._last_step_width = 0.0

    def set_current_time(self, time: float):
        """Overwrite the independent variable, keeping state and last step."""
        self._current_time = float(time)

    # ------------------------------------------------------------------
    # Integration
    # ------------------------------------------------------------------

    def integrate(self):
        """Advance the state by exactly one step of the current width."""
        slopes = self._calc_slopes()
        h = self._step_width

        self._previous_state = self._current_state
        self._current_state = self._current_state + h * (self.tableau.weights @ slopes)
        self._current_time += h
        self._slopes = slopes
        self._last_step_width = h

    def calc_interpolation_state(self, sigma: float) -> np.ndarray:
        """State at t_prev + sigma·h within the last step.

        Only methods with a continuous extension implement this.
        """
        raise NotImplementedError(
            f"{self.tableau.name} does not provide dense output"
        )

    def _calc_slopes(self) -> np.ndarray:
        """Evaluate the stage slopes k_i for a step from the current state."""
        c = self.tableau.nodes
        a = self.tableau.rk_matrix
        h = self._step_width

        slopes = np.zeros((self.number_of_stages, self._dimension))
        for i in range(self.number_of_stages):
            # Explicit method: stage i couples only to stages j < i
            stage_state = self._current_state + h * (a[i, :i] @ slopes[:i])
            stage_time = self._current_time + c[i] * h
            slopes[i] = self._evaluate(stage_time, stage_state)
        return slopes

    def _evaluate(self, time: float, state: np.ndarray) -> np.ndarray:
        derivative = np.asarray(self._derivative_function(time, state), dtype=float)
        derivative = derivative.reshape(-1)
        if derivative.shape != (self._dimension,):
            raise ValueError(
                f"derivative function returned {derivative.shape[0]} components, "
                f"expected {self._dimension}"
            )
        return derivative
