"""
Orbit base class and reference-spacecraft registry.

Every orbit model exposes its inertial position and velocity and the
ECI-to-LVLH attitude of its own orbit, which is what relative propagators
query from their reference spacecraft each call.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import numpy as np

from ..attitude.quaternion import dcm_to_q
from ..core.errors import ConfigurationError
from ..core.frames import eci_to_ecef, eci_to_lvlh, ecef_to_geodetic
from ..core.types import GeodeticPosition, SpacecraftState

logger = logging.getLogger(__name__)


class ReferenceOrbit(Protocol):
    """Read-only view of a reference spacecraft's orbit."""

    @property
    def position_i(self) -> np.ndarray: ...

    @property
    def velocity_i(self) -> np.ndarray: ...

    def calc_quaternion_i2lvlh(self) -> np.ndarray: ...


class Orbit:
    """Base class of orbit propagators.

    Subclasses implement propagate() and keep _position_i/_velocity_i current.

    Attributes:
        is_calc_enabled: When False, propagate() leaves the state untouched.
    """

    def __init__(self):
        self.is_calc_enabled = True
        self._position_i = np.zeros(3)
        self._velocity_i = np.zeros(3)
        self._acceleration_i = np.zeros(3)
        self._position_ecef: Optional[np.ndarray] = None
        self._velocity_ecef: Optional[np.ndarray] = None
        self._geodetic: Optional[GeodeticPosition] = None

    def propagate(self, end_time_s: float,
                  current_time_mjd_tt: Optional[float] = None):
        """Advance the orbit to end_time_s [seconds since simulation start]."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Inertial state
    # ------------------------------------------------------------------

    @property
    def position_i(self) -> np.ndarray:
        """ECI position [km], shape (3,)."""
        return self._position_i.copy()

    @property
    def velocity_i(self) -> np.ndarray:
        """ECI velocity [km/s], shape (3,)."""
        return self._velocity_i.copy()

    @property
    def acceleration_i(self) -> np.ndarray:
        """Externally accumulated ECI disturbance acceleration [km/s²], shape (3,)."""
        return self._acceleration_i.copy()

    def add_acceleration_i(self, acceleration_i: np.ndarray):
        """Accumulate a disturbance acceleration for the next propagation."""
        self._acceleration_i = self._acceleration_i + np.asarray(acceleration_i, dtype=float)

    def spacecraft_state(self, epoch_mjd_tt: float) -> SpacecraftState:
        return SpacecraftState(
            epoch_mjd_tt=epoch_mjd_tt,
            position=self.position_i,
            velocity=self.velocity_i
        )

    def calc_quaternion_i2lvlh(self) -> np.ndarray:
        """ECI-to-LVLH quaternion of this orbit's current state, shape (4,)."""
        R_lvlh, _ = eci_to_lvlh(self._position_i, self._velocity_i)
        return dcm_to_q(R_lvlh)

    # ------------------------------------------------------------------
    # Earth-fixed outputs
    # ------------------------------------------------------------------

    @property
    def position_ecef(self) -> Optional[np.ndarray]:
        return None if self._position_ecef is None else self._position_ecef.copy()

    @property
    def velocity_ecef(self) -> Optional[np.ndarray]:
        return None if self._velocity_ecef is None else self._velocity_ecef.copy()

    @property
    def geodetic_position(self) -> Optional[GeodeticPosition]:
        return self._geodetic

    def transform_eci_to_ecef(self, current_time_mjd_tt: float):
        """Refresh the ECEF state, accounting for Earth rotation in velocity."""
        R, dR = eci_to_ecef(current_time_mjd_tt)
        self._position_ecef = R @ self._position_i
        self._velocity_ecef = R @ self._velocity_i + dR @ self._position_i

    def transform_ecef_to_geodetic(self):
        if self._position_ecef is None:
            raise RuntimeError("ECEF position unavailable; call transform_eci_to_ecef first")
        self._geodetic = ecef_to_geodetic(self._position_ecef)

    def _update_earth_fixed(self, current_time_mjd_tt: Optional[float]):
        if current_time_mjd_tt is None:
            return
        self.transform_eci_to_ecef(current_time_mjd_tt)
        self.transform_ecef_to_geodetic()


class RelativeInformation:
    """Registry of reference spacecraft orbits keyed by spacecraft id.

    Reference bodies must be propagated before the bodies defined relative
    to them within the same tick.
    """

    def __init__(self):
        self._orbits: dict[int, ReferenceOrbit] = {}

    def register(self, spacecraft_id: int, orbit: ReferenceOrbit):
        if spacecraft_id in self._orbits:
            raise ConfigurationError(f"spacecraft id {spacecraft_id} already registered")
        self._orbits[spacecraft_id] = orbit
        logger.info("Registered reference spacecraft %d (%s)",
                    spacecraft_id, type(orbit).__name__)

    def get_reference_orbit(self, spacecraft_id: int) -> ReferenceOrbit:
        try:
            return self._orbits[spacecraft_id]
        except KeyError:
            raise ConfigurationError(
                f"unknown reference spacecraft id {spacecraft_id}"
            ) from None

    def __contains__(self, spacecraft_id: int) -> bool:
        return spacecraft_id in self._orbits

    def __len__(self) -> int:
        return len(self._orbits)
