"""
Foundational data types for the propagation core.

All state and configuration data flows through these well-defined dataclasses.
Convention:
    - Distances: km
    - Time: seconds (integration), MJD TT (epochs)
    - Velocity: km/s
    - Angles: radians
"""

from __future__ import annotations

import numpy as np
from dataclasses import dataclass
from enum import Enum, auto


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class NumericalIntegrationMethod(Enum):
    """Concrete integrator owned by a NumericalIntegratorManager."""
    RK4 = auto()        # Classical 4-stage, 4th order
    RKF = auto()        # Runge-Kutta-Fehlberg 4(5) with dense output


class RelativeOrbitUpdateMethod(Enum):
    """Propagation philosophy of a RelativeOrbit, fixed at construction."""
    RK4 = auto()        # Stepwise integration of the linearised system
    STM = auto()        # Closed-form state transition matrix from epoch


class RelativeOrbitModel(Enum):
    """Linearised relative dynamics used to build the system matrix."""
    HILL = auto()


class StmModel(Enum):
    """Closed-form solution used to build the state transition matrix."""
    HCW = auto()


# ---------------------------------------------------------------------------
# Spacecraft and Relative State
# ---------------------------------------------------------------------------

@dataclass
class SpacecraftState:
    """ECI state of a spacecraft at a given epoch.

    Attributes:
        epoch_mjd_tt: Modified Julian Date in Terrestrial Time.
        position: ECI position vector [km], shape (3,).
        velocity: ECI velocity vector [km/s], shape (3,).
    """
    epoch_mjd_tt: float
    position: np.ndarray        # (3,) km
    velocity: np.ndarray        # (3,) km/s

    @property
    def state_vector(self) -> np.ndarray:
        """Combined [r, v] state vector, shape (6,)."""
        return np.concatenate([self.position, self.velocity])


@dataclass
class RelativeState:
    """Relative state in the reference spacecraft's LVLH frame.

    Attributes:
        epoch_mjd_tt: Epoch.
        position_lvlh: Relative position [km] in LVLH (R, I, C), shape (3,).
        velocity_lvlh: Relative velocity [km/s] in LVLH, shape (3,).
    """
    epoch_mjd_tt: float
    position_lvlh: np.ndarray      # (3,) km   [radial, in-track, cross-track]
    velocity_lvlh: np.ndarray      # (3,) km/s

    @property
    def state_vector(self) -> np.ndarray:
        """Combined [dr, dv] state vector, shape (6,)."""
        return np.concatenate([self.position_lvlh, self.velocity_lvlh])

    @property
    def range_km(self) -> float:
        return float(np.linalg.norm(self.position_lvlh))


@dataclass
class GeodeticPosition:
    """Geodetic coordinates on the WGS-84 ellipsoid.

    Attributes:
        latitude_rad: Geodetic latitude [rad].
        longitude_rad: Longitude [rad], wrapped to (-π, π].
        altitude_km: Height above the ellipsoid [km].
    """
    latitude_rad: float
    longitude_rad: float
    altitude_km: float


# ---------------------------------------------------------------------------
# Orbital Elements
# ---------------------------------------------------------------------------

@dataclass
class OrbitalElements:
    """Classical Keplerian orbital elements.

    Attributes:
        a: Semi-major axis [km].
        e: Eccentricity.
        i: Inclination [rad].
        raan: Right ascension of ascending node [rad].
        aop: Argument of perigee [rad].
        ta: True anomaly at epoch [rad].
        epoch_s: Epoch of the elements [seconds of simulation time].
    """
    a: float
    e: float
    i: float
    raan: float
    aop: float
    ta: float
    epoch_s: float = 0.0
