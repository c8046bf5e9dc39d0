"""
Reference right-hand sides with known solutions.

Used to check integrator convergence and as minimal usage examples.
"""

from __future__ import annotations

import numpy as np


def linear_ode(t: float, state: np.ndarray) -> np.ndarray:
    """dx/dt = 1, so x(t) = x0 + t."""
    return np.ones(1)


def quadratic_ode(t: float, state: np.ndarray) -> np.ndarray:
    """dx/dt = 2t, so x(t) = x0 + t²."""
    return np.array([2.0 * t])


def position_velocity_1d_ode(t: float, state: np.ndarray) -> np.ndarray:
    """Free motion on a line: state = [x, v], dx/dt = v, dv/dt = 0."""
    return np.array([state[1], 0.0])


def two_body_orbit_2d_ode(t: float, state: np.ndarray) -> np.ndarray:
    """Planar two-body motion with μ = 1: state = [x, y, vx, vy]."""
    r = np.hypot(state[0], state[1])
    r3 = r**3
    return np.array([state[2], state[3], -state[0] / r3, -state[1] / r3])

