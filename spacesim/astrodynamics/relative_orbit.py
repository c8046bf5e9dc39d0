"""
Relative orbit propagator.

Propagates a spacecraft's position and velocity relative to a reference
spacecraft, expressed in the reference's LVLH frame, with one of two
construction-time-fixed update methods:

    - RK4: stepwise numerical integration of the linearised system
      d/dt [r; v] = A [r; v], landing exactly on each requested time
    - STM: closed-form state transition matrix evaluated for the total
      time since epoch and applied to the initial relative state

After either update the LVLH result is converted to an absolute inertial
state using the reference spacecraft's current orbit and attitude.

Disturbance accelerations are not part of the linearised model; any
accumulated value is zeroed on every propagation.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from ..core.config import RelativeOrbitConfig
from ..core.errors import ConfigurationError, NumericalDegeneracyError
from ..core.frames import relative_lvlh_to_eci
from ..core.types import (
    NumericalIntegrationMethod, RelativeOrbitUpdateMethod,
    RelativeOrbitModel, StmModel, RelativeState
)
from ..numerics.ode import OrdinaryDifferentialEquation, make_linear_system
from .orbit import Orbit, ReferenceOrbit, RelativeInformation
from .relative_dynamics import calculate_system_matrix, calculate_stm

logger = logging.getLogger(__name__)


def _require(enum_cls, value, name: str):
    if not isinstance(value, enum_cls):
        raise ConfigurationError(f"{name}: expected {enum_cls.__name__}, got {value!r}")
    return value


class RelativeOrbit(Orbit):
    """Orbit defined by its LVLH offset from a reference spacecraft.

    Attributes:
        mu: Gravitational parameter [km³/s²].
        reference_spacecraft_id: Id of the reference in RelativeInformation.
        update_method: RK4 (stepwise) or STM (closed form), fixed.
        relative_dynamics_model: Model behind the system matrix (RK4 mode).
        stm_model: Model behind the transition matrix (STM mode).
    """

    def __init__(self,
                 mu: float,
                 step_width_s: float,
                 reference_spacecraft_id: int,
                 initial_relative_position_lvlh: np.ndarray,
                 initial_relative_velocity_lvlh: np.ndarray,
                 update_method: RelativeOrbitUpdateMethod,
                 relative_dynamics_model: RelativeOrbitModel,
                 stm_model: StmModel,
                 relative_information: RelativeInformation,
                 integration_method: NumericalIntegrationMethod = NumericalIntegrationMethod.RK4,
                 initial_time_s: float = 0.0):
        """Initialize the propagator and its absolute state at initial_time_s.

        Args:
            mu: Gravitational parameter [km³/s²].
            step_width_s: Nominal integration step [s] (RK4 mode).
            reference_spacecraft_id: Reference spacecraft key.
            initial_relative_position_lvlh: Initial relative position [km], shape (3,).
            initial_relative_velocity_lvlh: Initial relative velocity [km/s], shape (3,).
            update_method: Stepwise or closed-form propagation.
            relative_dynamics_model: Linearisation for the system matrix.
            stm_model: Closed-form solution for the transition matrix.
            relative_information: Registry holding the reference orbit.
            integration_method: Integrator used in RK4 mode.
            initial_time_s: Epoch of the initial relative state [s].

        Raises:
            ConfigurationError: invalid enum, step width or reference id.
            NumericalDegeneracyError: mu <= 0 or degenerate reference radius.
        """
        super().__init__()
        self.update_method = _require(RelativeOrbitUpdateMethod, update_method, "update_method")
        self.relative_dynamics_model = _require(
            RelativeOrbitModel, relative_dynamics_model, "relative_dynamics_model")
        self.stm_model = _require(StmModel, stm_model, "stm_model")
        self.integration_method = _require(
            NumericalIntegrationMethod, integration_method, "integration_method")

        if not np.isfinite(mu) or mu <= 0.0:
            raise NumericalDegeneracyError(f"gravitational parameter must be positive, got {mu}")
        if not np.isfinite(step_width_s) or step_width_s <= 0.0:
            raise ConfigurationError(f"step_width_s must be positive, got {step_width_s}")

        self.mu = float(mu)
        self.reference_spacecraft_id = reference_spacecraft_id
        self._relative_information = relative_information
        self._step_width_s = float(step_width_s)
        self._epoch_s = float(initial_time_s)
        self._propagation_time_s = float(initial_time_s)

        initial_state = np.concatenate([
            np.asarray(initial_relative_position_lvlh, dtype=float).reshape(3),
            np.asarray(initial_relative_velocity_lvlh, dtype=float).reshape(3),
        ])
        initial_state.setflags(write=False)
        self._initial_state = initial_state

        self._relative_position_lvlh = initial_state[0:3].copy()
        self._relative_velocity_lvlh = initial_state[3:6].copy()

        self._system_matrix: Optional[np.ndarray] = None
        self._stm: Optional[np.ndarray] = None
        self._ode: Optional[OrdinaryDifferentialEquation] = None

        reference = self._reference_orbit()
        radius = float(np.linalg.norm(reference.position_i))
        if self.update_method is RelativeOrbitUpdateMethod.RK4:
            system_matrix = calculate_system_matrix(
                self.relative_dynamics_model, radius, self.mu)
            system_matrix.setflags(write=False)
            self._system_matrix = system_matrix
            self._ode = OrdinaryDifferentialEquation(
                self._step_width_s, make_linear_system(system_matrix), 6,
                self.integration_method
            )
            self._ode.setup(self._epoch_s, initial_state)
        else:
            self._stm = calculate_stm(self.stm_model, radius, self.mu, 0.0)

        self._update_absolute_state(reference)
        logger.info(
            "Relative orbit created: reference=%s, method=%s, model=%s, step=%g s",
            reference_spacecraft_id, self.update_method.name,
            (self.relative_dynamics_model.name
             if self.update_method is RelativeOrbitUpdateMethod.RK4
             else self.stm_model.name),
            self._step_width_s
        )

    @classmethod
    def from_config(cls, config: RelativeOrbitConfig,
                    relative_information: RelativeInformation,
                    initial_time_s: float = 0.0) -> RelativeOrbit:
        config.validate()
        return cls(
            mu=config.mu_km3_s2,
            step_width_s=config.step_width_s,
            reference_spacecraft_id=config.reference_spacecraft_id,
            initial_relative_position_lvlh=config.initial_relative_position_lvlh_km,
            initial_relative_velocity_lvlh=config.initial_relative_velocity_lvlh_km_s,
            update_method=config.update_method,
            relative_dynamics_model=config.relative_dynamics_model,
            stm_model=config.stm_model,
            relative_information=relative_information,
            integration_method=config.integration_method,
            initial_time_s=initial_time_s,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def step_width_s(self) -> float:
        """Nominal step width [s]; never altered by propagation."""
        return self._step_width_s

    @property
    def propagation_time_s(self) -> float:
        """Time of the current relative state [s]."""
        return self._propagation_time_s

    @property
    def initial_state(self) -> np.ndarray:
        """Initial [r; v] in LVLH, shape (6,), read-only."""
        return self._initial_state

    @property
    def relative_position_lvlh(self) -> np.ndarray:
        return self._relative_position_lvlh.copy()

    @property
    def relative_velocity_lvlh(self) -> np.ndarray:
        return self._relative_velocity_lvlh.copy()

    @property
    def relative_state_lvlh(self) -> np.ndarray:
        """Current [r; v] in LVLH, shape (6,)."""
        return np.concatenate([self._relative_position_lvlh, self._relative_velocity_lvlh])

    @property
    def system_matrix(self) -> Optional[np.ndarray]:
        """6x6 system matrix (RK4 mode), else None."""
        return self._system_matrix

    @property
    def stm(self) -> Optional[np.ndarray]:
        """6x6 transition matrix of the last evaluation (STM mode), else None."""
        return None if self._stm is None else self._stm.copy()

    def relative_state(self, epoch_mjd_tt: float) -> RelativeState:
        return RelativeState(
            epoch_mjd_tt=epoch_mjd_tt,
            position_lvlh=self.relative_position_lvlh,
            velocity_lvlh=self.relative_velocity_lvlh
        )

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------

    def propagate(self, end_time_s: float,
                  current_time_mjd_tt: Optional[float] = None):
        """Advance the relative state to end_time_s and refresh the absolute state.

        Args:
            end_time_s: Target time [s]. In RK4 mode it must not precede the
                current propagation time; STM mode accepts any order.
            current_time_mjd_tt: Epoch for the Earth-fixed outputs; skipped if None.
        """
        if not self.is_calc_enabled:
            return

        if self.update_method is RelativeOrbitUpdateMethod.RK4:
            self._propagate_rk4(end_time_s)
        else:
            self._propagate_stm(end_time_s)
        self._acceleration_i = np.zeros(3)

        self._update_absolute_state(self._reference_orbit())
        self._update_earth_fixed(current_time_mjd_tt)

    def calc_interpolation_relative_state(self, sigma: float) -> np.ndarray:
        """LVLH [r; v] inside the last integration step (RK4 mode with RKF).

        Args:
            sigma: Fraction of the last step, in [0, 1].

        Returns:
            Interpolated relative state, shape (6,).
        """
        if self._ode is None:
            raise RuntimeError("interpolation requires the RK4 update method")
        return self._ode.integrator_manager.calc_interpolation_state(sigma)

    def _propagate_rk4(self, end_time_s: float):
        if end_time_s < self._propagation_time_s:
            raise ValueError(
                f"cannot integrate backwards from {self._propagation_time_s} s "
                f"to {end_time_s} s"
            )
        plan = self._ode.propagate_to(end_time_s)
        self._propagation_time_s = float(end_time_s)

        state = self._ode.state
        self._relative_position_lvlh = state[0:3]
        self._relative_velocity_lvlh = state[3:6]
        logger.debug("RK4 relative propagation to %.6f s in %d steps",
                     end_time_s, plan.n_steps)

    def _propagate_stm(self, end_time_s: float):
        radius = float(np.linalg.norm(self._reference_orbit().position_i))
        elapsed_s = end_time_s - self._epoch_s
        self._stm = calculate_stm(self.stm_model, radius, self.mu, elapsed_s)
        state = self._stm @ self._initial_state
        self._propagation_time_s = float(end_time_s)

        self._relative_position_lvlh = state[0:3]
        self._relative_velocity_lvlh = state[3:6]
        logger.debug("STM relative propagation to %.6f s (elapsed %.6f s)",
                     end_time_s, elapsed_s)

    # ------------------------------------------------------------------
    # Frame conversion
    # ------------------------------------------------------------------

    def _reference_orbit(self) -> ReferenceOrbit:
        return self._relative_information.get_reference_orbit(self.reference_spacecraft_id)

    def _update_absolute_state(self, reference: ReferenceOrbit):
        self._position_i, self._velocity_i = relative_lvlh_to_eci(
            self._relative_position_lvlh,
            self._relative_velocity_lvlh,
            reference.calc_quaternion_i2lvlh(),
            reference.position_i,
            reference.velocity_i
        )
