"""
Simulation configuration.

Central configuration objects for the integrators and relative-orbit
propagators. Values arrive already parsed (file loading lives outside
this package); enum fields also accept their member names as strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import numpy as np

from .constants import MU_EARTH
from .errors import ConfigurationError
from .types import (
    NumericalIntegrationMethod, RelativeOrbitUpdateMethod,
    RelativeOrbitModel, StmModel
)


def _coerce_enum(enum_cls: type[Enum], value: Any, field_name: str) -> Enum:
    """Resolve an enum member from a member or its (case-insensitive) name."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls[value.strip().upper()]
        except KeyError:
            pass
    raise ConfigurationError(
        f"{field_name}: unknown {enum_cls.__name__} '{value}' "
        f"(expected one of {[m.name for m in enum_cls]})"
    )


def _coerce_vector3(value: Any, field_name: str) -> np.ndarray:
    vec = np.asarray(value, dtype=float).reshape(-1)
    if vec.shape != (3,):
        raise ConfigurationError(f"{field_name}: expected 3 components, got {vec.shape[0]}")
    if not np.all(np.isfinite(vec)):
        raise ConfigurationError(f"{field_name}: non-finite component in {vec}")
    return vec


@dataclass
class IntegratorConfig:
    """Numerical integrator configuration.

    Fixed-step integration; RKF additionally provides dense output
    within the last completed step.
    """
    method: NumericalIntegrationMethod = NumericalIntegrationMethod.RK4
    step_width_s: float = 1.0

    def validate(self) -> IntegratorConfig:
        self.method = _coerce_enum(NumericalIntegrationMethod, self.method, "method")
        if not np.isfinite(self.step_width_s) or self.step_width_s <= 0.0:
            raise ConfigurationError(
                f"step_width_s must be positive, got {self.step_width_s}"
            )
        return self


@dataclass
class RelativeOrbitConfig:
    """Relative-orbit propagator configuration.

    Attributes:
        mu_km3_s2: Gravitational parameter of the central body [km³/s²].
        step_width_s: Nominal integration step (stepwise mode) [s].
        reference_spacecraft_id: Key of the reference orbit in RelativeInformation.
        initial_relative_position_lvlh_km: Initial LVLH position [km], shape (3,).
        initial_relative_velocity_lvlh_km_s: Initial LVLH velocity [km/s], shape (3,).
        update_method: Stepwise (RK4) or closed-form (STM) propagation.
        relative_dynamics_model: Linearisation used for the system matrix.
        stm_model: Closed-form solution used for the transition matrix.
        integration_method: Integrator driving the stepwise mode.
    """
    mu_km3_s2: float = MU_EARTH
    step_width_s: float = 1.0
    reference_spacecraft_id: int = 0
    initial_relative_position_lvlh_km: np.ndarray = field(
        default_factory=lambda: np.zeros(3)
    )
    initial_relative_velocity_lvlh_km_s: np.ndarray = field(
        default_factory=lambda: np.zeros(3)
    )
    update_method: RelativeOrbitUpdateMethod = RelativeOrbitUpdateMethod.RK4
    relative_dynamics_model: RelativeOrbitModel = RelativeOrbitModel.HILL
    stm_model: StmModel = StmModel.HCW
    integration_method: NumericalIntegrationMethod = NumericalIntegrationMethod.RK4

    def validate(self) -> RelativeOrbitConfig:
        """Normalise enum names and vectors; raise ConfigurationError on bad input."""
        self.update_method = _coerce_enum(
            RelativeOrbitUpdateMethod, self.update_method, "update_method")
        self.relative_dynamics_model = _coerce_enum(
            RelativeOrbitModel, self.relative_dynamics_model, "relative_dynamics_model")
        self.stm_model = _coerce_enum(StmModel, self.stm_model, "stm_model")
        self.integration_method = _coerce_enum(
            NumericalIntegrationMethod, self.integration_method, "integration_method")
        self.initial_relative_position_lvlh_km = _coerce_vector3(
            self.initial_relative_position_lvlh_km, "initial_relative_position_lvlh_km")
        self.initial_relative_velocity_lvlh_km_s = _coerce_vector3(
            self.initial_relative_velocity_lvlh_km_s, "initial_relative_velocity_lvlh_km_s")
        if not np.isfinite(self.step_width_s) or self.step_width_s <= 0.0:
            raise ConfigurationError(
                f"step_width_s must be positive, got {self.step_width_s}"
            )
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RelativeOrbitConfig:
        """Build from an already-parsed mapping (e.g. one section of a scenario file)."""
        known = cls.__dataclass_fields__.keys()
        unknown = set(data) - set(known)
        if unknown:
            raise ConfigurationError(f"unknown relative orbit settings: {sorted(unknown)}")
        return cls(**dict(data)).validate()
