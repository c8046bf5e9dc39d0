"""
Concrete Runge-Kutta integrators.

    - RungeKutta4:        classical 4-stage, 4th-order method
    - RungeKuttaFehlberg: 6-stage Fehlberg 4(5) pair with dense output

Both integrate with a fixed step width. The Fehlberg pair keeps its
embedded 4th-order solution for an error estimate, but no step is ever
rejected: its value here is dense output for sub-step sampling.
"""

from __future__ import annotations

import numpy as np

from .runge_kutta import ButcherTableau, DerivativeFunction, RungeKutta


RK4_TABLEAU = ButcherTableau(
    name="RK4",
    order=4,
    nodes=[0.0, 0.5, 0.5, 1.0],
    rk_matrix=[
        [0.0, 0.0, 0.0, 0.0],
        [0.5, 0.0, 0.0, 0.0],
        [0.0, 0.5, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
    ],
    weights=[1.0 / 6.0, 1.0 / 3.0, 1.0 / 3.0, 1.0 / 6.0],
)

# Fehlberg (1969), 5th-order solution propagated, 4th-order embedded
RKF45_TABLEAU = ButcherTableau(
    name="RKF45",
    order=5,
    nodes=[0.0, 1.0 / 4.0, 3.0 / 8.0, 12.0 / 13.0, 1.0, 1.0 / 2.0],
    rk_matrix=[
        [0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        [1.0 / 4.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        [3.0 / 32.0, 9.0 / 32.0, 0.0, 0.0, 0.0, 0.0],
        [1932.0 / 2197.0, -7200.0 / 2197.0, 7296.0 / 2197.0, 0.0, 0.0, 0.0],
        [439.0 / 216.0, -8.0, 3680.0 / 513.0, -845.0 / 4104.0, 0.0, 0.0],
        [-8.0 / 27.0, 2.0, -3544.0 / 2565.0, 1859.0 / 4104.0, -11.0 / 40.0, 0.0],
    ],
    weights=[16.0 / 135.0, 0.0, 6656.0 / 12825.0, 28561.0 / 56430.0,
             -9.0 / 50.0, 2.0 / 55.0],
    lower_order_weights=[25.0 / 216.0, 0.0, 1408.0 / 2565.0, 2197.0 / 4104.0,
                         -1.0 / 5.0, 0.0],
)


def _continuous_extension(tableau: ButcherTableau) -> np.ndarray:
    """Shape coefficients Q of the Fehlberg continuous extension.

    The interpolation weights are quartic polynomials in σ,

        b(σ) = σ²·b + Q @ [σ − σ², σ³ − σ², σ⁴ − σ²]

    so b(0) = 0 and b(1) = b hold exactly. The σ-coefficients solve the
    continuous order conditions through order three exactly,

        Σ b_i = σ,  Σ b_i c_i = σ²/2,  Σ b_i c_i² = σ³/3,  Σ b_i (A c)_i = σ³/6,

    and the four order-four conditions in the least-squares sense (no
    6-stage extension of this pair meets all of them). The normal equations
    leave one free direction, the kernel of the stacked condition rows.
    It is fixed by taking the minimum-norm weights, then the σ² column
    absorbs a multiple of that kernel vector so the weights reach b at σ = 1.

    Args:
        tableau: Explicit tableau with at least four stages.

    Returns:
        Q, shape (S, 3): columns multiply σ − σ², σ³ − σ² and σ⁴ − σ².
    """
    c = tableau.nodes
    a = tableau.rk_matrix
    ac = a @ c
    conditions = np.vstack([np.ones_like(c), c, c**2, ac])
    # Order-four elementary weights divided by their tree symmetry
    defects = np.vstack([c**3 / 6.0, c * ac, 0.5 * (a @ c**2), a @ ac])
    defect_targets = np.array([1.0 / 24.0, 1.0 / 8.0, 1.0 / 24.0, 1.0 / 24.0])

    kernel = np.linalg.svd(np.vstack([conditions, defects]))[2][-1]

    s = tableau.number_of_stages
    m = conditions.shape[0]
    kkt = np.zeros((s + m + 1, s + m + 1))
    kkt[:s, :s] = defects.T @ defects
    kkt[:s, s:s + m] = conditions.T
    kkt[s:s + m, :s] = conditions
    kkt[:s, -1] = kernel
    kkt[-1, :s] = kernel

    # One right-hand side per power σ¹..σ⁴
    rhs = np.zeros((s + m + 1, 4))
    rhs[s, 0] = 1.0
    rhs[s + 1, 1] = 0.5
    rhs[s + 2, 2] = 1.0 / 3.0
    rhs[s + 3, 2] = 1.0 / 6.0
    rhs[:s, 3] = defects.T @ defect_targets

    coefficients = np.linalg.solve(kkt, rhs)[:s]
    return coefficients[:, [0, 2, 3]]


_RKF45_EXTENSION = _continuous_extension(RKF45_TABLEAU)


class RungeKutta4(RungeKutta):
    """Classical 4th-order Runge-Kutta. Local truncation error O(h⁵)."""

    def __init__(self, step_width: float,
                 derivative_function: DerivativeFunction,
                 dimension: int = 1):
        super().__init__(step_width, derivative_function, RK4_TABLEAU, dimension)


class RungeKuttaFehlberg(RungeKutta):
    """Runge-Kutta-Fehlberg 4(5) with dense output inside the last step.

    The interpolant reuses the six stored stage slopes:

        x(σ) = x_prev + h·Σ_i b_i(σ)·k_i

    with quartic weights b_i(σ) from a continuous extension of the pair
    (see _continuous_extension). It is third order in h at every σ, and the
    one order-four defect left is small. The derivative function is not
    evaluated again. At σ = 0 all weights vanish and at σ = 1 they equal
    the 5th-order weights, so both step endpoints are reproduced exactly.
    """

    def __init__(self, step_width: float,
                 derivative_function: DerivativeFunction,
                 dimension: int = 1):
        super().__init__(step_width, derivative_function, RKF45_TABLEAU, dimension)

    @property
    def local_truncation_error(self) -> np.ndarray:
        """Difference between the 5th- and 4th-order solutions of the last step.

        Returns:
            Error estimate vector, shape (N,). Zero before the first step.
        """
        if self._slopes is None:
            return np.zeros(self.dimension)
        db = self.tableau.weights - self.tableau.lower_order_weights
        return self._last_step_width * (db @ self._slopes)

    def calc_interpolation_weights(self, sigma: float) -> np.ndarray:
        """Per-stage interpolation weights b_i(σ), shape (S,)."""
        s2 = sigma * sigma
        shape = np.array([sigma - s2, s2 * sigma - s2, s2 * s2 - s2])
        return s2 * self.tableau.weights + _RKF45_EXTENSION @ shape

    def calc_interpolation_state(self, sigma: float) -> np.ndarray:
        """Interpolated state at t_prev + sigma·h of the last completed step.

        Args:
            sigma: Fraction of the last completed step, in [0, 1].

        Returns:
            Interpolated state, shape (N,).

        Raises:
            RuntimeError: if no step has been completed since the last reset.
            ValueError: if sigma lies outside [0, 1].
        """
        if self._slopes is None:
            raise RuntimeError("no completed step to interpolate")
        sigma = float(sigma)
        if not 0.0 <= sigma <= 1.0:
            raise ValueError(f"sigma must lie in [0, 1], got {sigma}")

        weights = self.calc_interpolation_weights(sigma)
        return self._previous_state + self._last_step_width * (weights @ self._slopes)
