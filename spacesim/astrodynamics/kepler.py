"""
Analytic two-body (Kepler) orbit.

Closed-form propagation of an elliptic orbit: mean anomaly advances
linearly, Kepler's equation M = E − e·sin(E) is solved for the eccentric
anomaly, and the state is rebuilt in the perifocal basis (P, Q).

Serves as an independently propagating reference spacecraft and as the
truth model for integrator accuracy checks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.optimize import newton

from ..core.constants import TWO_PI
from ..core.errors import ConfigurationError, NumericalDegeneracyError
from ..core.types import OrbitalElements
from .orbit import Orbit

logger = logging.getLogger(__name__)


def solve_kepler_equation(mean_anomaly: float, e: float,
                          tol: float = 1e-14) -> float:
    """Eccentric anomaly E from M = E − e·sin(E), elliptic case.

    Args:
        mean_anomaly: Mean anomaly M [rad].
        e: Eccentricity, 0 <= e < 1.
        tol: Newton convergence tolerance [rad].

    Returns:
        E [rad], in the same revolution as M wrapped to [0, 2π).
    """
    M = mean_anomaly % TWO_PI
    E0 = M if e < 0.8 else np.pi
    return float(newton(
        lambda E: E - e * np.sin(E) - M,
        E0,
        fprime=lambda E: 1.0 - e * np.cos(E),
        tol=tol,
        maxiter=100
    ))


@dataclass(frozen=True, eq=False)
class KeplerElements:
    """Elliptic orbit in perifocal form.

    Attributes:
        mu: Gravitational parameter [km³/s²].
        a: Semi-major axis [km].
        e: Eccentricity.
        p_hat: Unit vector toward periapsis (ECI), shape (3,).
        q_hat: Unit vector 90° ahead of periapsis in the orbit plane (ECI), shape (3,).
        mean_anomaly_epoch: Mean anomaly at epoch_s [rad].
        epoch_s: Epoch [seconds of simulation time].
    """
    mu: float
    a: float
    e: float
    p_hat: np.ndarray
    q_hat: np.ndarray
    mean_anomaly_epoch: float
    epoch_s: float = 0.0

    @property
    def mean_motion(self) -> float:
        return float(np.sqrt(self.mu / self.a**3))

    @property
    def period_s(self) -> float:
        return TWO_PI / self.mean_motion

    @classmethod
    def from_state(cls, mu: float, position: np.ndarray, velocity: np.ndarray,
                   epoch_s: float = 0.0) -> KeplerElements:
        """Elements of the osculating orbit through an inertial state.

        Raises:
            NumericalDegeneracyError: mu <= 0 or a rectilinear state.
            ConfigurationError: parabolic or hyperbolic state (e >= 1).
        """
        if mu <= 0.0:
            raise NumericalDegeneracyError(f"gravitational parameter must be positive, got {mu}")
        r = np.asarray(position, dtype=float)
        v = np.asarray(velocity, dtype=float)
        r_mag = np.linalg.norm(r)
        h = np.cross(r, v)
        h_mag = np.linalg.norm(h)
        if r_mag == 0.0 or h_mag == 0.0:
            raise NumericalDegeneracyError("state has no angular momentum")

        e_vec = np.cross(v, h) / mu - r / r_mag
        e = float(np.linalg.norm(e_vec))
        energy = 0.5 * np.dot(v, v) - mu / r_mag
        if e >= 1.0 or energy >= 0.0:
            raise ConfigurationError(f"only elliptic orbits are supported (e = {e:.6f})")
        a = -mu / (2.0 * energy)

        w_hat = h / h_mag
        # Circular orbits: measure anomalies from the epoch position
        p_hat = e_vec / e if e > 1e-12 else r / r_mag
        q_hat = np.cross(w_hat, p_hat)

        ta = np.arctan2(np.dot(r, q_hat), np.dot(r, p_hat))
        E = np.arctan2(np.sqrt(1.0 - e**2) * np.sin(ta), e + np.cos(ta))
        M = E - e * np.sin(E)

        return cls(mu=mu, a=float(a), e=e, p_hat=p_hat, q_hat=q_hat,
                   mean_anomaly_epoch=float(M), epoch_s=epoch_s)

    def state_at(self, time_s: float) -> tuple[np.ndarray, np.ndarray]:
        """Inertial position [km] and velocity [km/s] at time_s."""
        M = self.mean_anomaly_epoch + self.mean_motion * (time_s - self.epoch_s)
        E = solve_kepler_equation(M, self.e)
        cos_E, sin_E = np.cos(E), np.sin(E)
        beta = np.sqrt(1.0 - self.e**2)

        r_mag = self.a * (1.0 - self.e * cos_E)
        position = self.a * (cos_E - self.e) * self.p_hat + self.a * beta * sin_E * self.q_hat
        velocity = (np.sqrt(self.mu * self.a) / r_mag) * (
            -sin_E * self.p_hat + beta * cos_E * self.q_hat
        )
        return position, velocity

    def to_orbital_elements(self) -> OrbitalElements:
        """Classical elements; angles undefined for equatorial/circular
        orbits are reported as 0."""
        w_hat = np.cross(self.p_hat, self.q_hat)
        i = float(np.arccos(np.clip(w_hat[2], -1.0, 1.0)))
        node = np.cross([0.0, 0.0, 1.0], w_hat)
        node_mag = np.linalg.norm(node)
        if node_mag > 1e-12:
            raan = float(np.arctan2(node[1], node[0]) % TWO_PI)
            n_hat = node / node_mag
            aop = float(np.arctan2(np.dot(np.cross(n_hat, self.p_hat), w_hat),
                                   np.dot(n_hat, self.p_hat)) % TWO_PI)
        else:
            raan = 0.0
            aop = float(np.arctan2(self.p_hat[1], self.p_hat[0]) % TWO_PI)

        E = solve_kepler_equation(self.mean_anomaly_epoch, self.e)
        ta = float(np.arctan2(np.sqrt(1.0 - self.e**2) * np.sin(E),
                              np.cos(E) - self.e) % TWO_PI)
        return OrbitalElements(a=self.a, e=self.e, i=i, raan=raan, aop=aop,
                               ta=ta, epoch_s=self.epoch_s)


class KeplerOrbit(Orbit):
    """Orbit propagated analytically from Kepler elements."""

    def __init__(self, elements: KeplerElements):
        super().__init__()
        self.elements = elements
        self.calc_orbit(elements.epoch_s)
        logger.info("Kepler orbit: a=%.3f km, e=%.6f, period=%.1f s",
                    elements.a, elements.e, elements.period_s)

    @classmethod
    def from_state(cls, mu: float, position: np.ndarray, velocity: np.ndarray,
                   epoch_s: float = 0.0) -> KeplerOrbit:
        return cls(KeplerElements.from_state(mu, position, velocity, epoch_s))

    def calc_orbit(self, time_s: float):
        """Set the inertial state to the analytic solution at time_s."""
        self._position_i, self._velocity_i = self.elements.state_at(time_s)

    def propagate(self, end_time_s: float,
                  current_time_mjd_tt: Optional[float] = None):
        if not self.is_calc_enabled:
            return
        self.calc_orbit(end_time_s)
        self._update_earth_fixed(current_time_mjd_tt)
