"""
Linearised relative motion models.

Hill's equations about a circular reference orbit and their closed-form
Hill-Clohessy-Wiltshire (HCW) solution. Both are parameterised by the
reference orbit radius and the gravitational parameter.

Convention: relative state is [x, y, z, dx, dy, dz] in the reference LVLH frame
    x = radial (R-bar, positive outward)
    y = in-track (V-bar, positive in velocity direction)
    z = cross-track (H-bar, positive along orbit normal)
"""

from __future__ import annotations

import numpy as np

from ..core.constants import MIN_ORBIT_RADIUS_KM
from ..core.errors import ConfigurationError, NumericalDegeneracyError
from ..core.types import RelativeOrbitModel, StmModel


def mean_motion(orbit_radius: float, mu: float) -> float:
    """Mean motion of a circular orbit, n = √(μ / r³).

    Args:
        orbit_radius: Reference orbit radius [km].
        mu: Gravitational parameter [km³/s²].

    Returns:
        n [rad/s].

    Raises:
        NumericalDegeneracyError: radius near zero or non-finite, or mu <= 0.
    """
    if not np.isfinite(mu) or mu <= 0.0:
        raise NumericalDegeneracyError(
            f"gravitational parameter must be positive, got {mu}"
        )
    if not np.isfinite(orbit_radius) or orbit_radius < MIN_ORBIT_RADIUS_KM:
        raise NumericalDegeneracyError(
            f"reference orbit radius {orbit_radius} km is too small for a "
            f"linearised relative model"
        )
    return float(np.sqrt(mu / orbit_radius**3))


def hill_system_matrix(orbit_radius: float, mu: float) -> np.ndarray:
    """System matrix A of Hill's equations, d/dt [r; v] = A [r; v].

        ẍ =  3n²x + 2nẏ
        ÿ = −2nẋ
        z̈ = −n²z

    Args:
        orbit_radius: Reference orbit radius [km].
        mu: Gravitational parameter [km³/s²].

    Returns:
        A: 6x6 system matrix.
    """
    n = mean_motion(orbit_radius, mu)

    A = np.zeros((6, 6))
    A[0:3, 3:6] = np.eye(3)
    A[3, 0] = 3.0 * n**2
    A[3, 4] = 2.0 * n
    A[4, 3] = -2.0 * n
    A[5, 2] = -n**2
    return A


def hcw_stm(orbit_radius: float, mu: float, dt: float) -> np.ndarray:
    """Analytical HCW state transition matrix.

    Args:
        orbit_radius: Reference orbit radius [km].
        mu: Gravitational parameter [km³/s²].
        dt: Time since epoch [seconds]. Any sign.

    Returns:
        Phi: 6x6 HCW state transition matrix.
    """
    n = mean_motion(orbit_radius, mu)
    nt = n * dt
    c = np.cos(nt)
    s = np.sin(nt)

    phi = np.array([
        [4 - 3*c,      0, 0,  s/n,      2*(1-c)/n,   0],
        [6*(s - nt),   1, 0, -2*(1-c)/n, (4*s - 3*nt)/n, 0],
        [0,            0, c,  0,         0,           s/n],
        [3*n*s,        0, 0,  c,         2*s,         0],
        [-6*n*(1-c),   0, 0, -2*s,       4*c - 3,     0],
        [0,            0, -n*s, 0,       0,           c]
    ])

    return phi


def calculate_system_matrix(model: RelativeOrbitModel,
                            orbit_radius: float, mu: float) -> np.ndarray:
    """System matrix of the selected relative dynamics model.

    Raises:
        ConfigurationError: for a model without an implementation.
    """
    if model is RelativeOrbitModel.HILL:
        return hill_system_matrix(orbit_radius, mu)
    raise ConfigurationError(f"unsupported relative dynamics model: {model!r}")


def calculate_stm(model: StmModel, orbit_radius: float, mu: float,
                  elapsed_s: float) -> np.ndarray:
    """State transition matrix of the selected closed-form model.

    Raises:
        ConfigurationError: for a model without an implementation.
    """
    if model is StmModel.HCW:
        return hcw_stm(orbit_radius, mu, elapsed_s)
    raise ConfigurationError(f"unsupported state transition model: {model!r}")
