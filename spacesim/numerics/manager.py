"""
Numerical integrator manager.

Owns exactly one concrete integrator, selected by configuration, so that
dynamics code depends on a single interface while the numerical method
stays a deployment-time choice.
"""

from __future__ import annotations

import logging

import numpy as np

from ..core.config import IntegratorConfig
from ..core.errors import ConfigurationError
from ..core.types import NumericalIntegrationMethod
from .integrators import RungeKutta4, RungeKuttaFehlberg
from .runge_kutta import DerivativeFunction, RungeKutta

logger = logging.getLogger(__name__)

_INTEGRATORS = {
    NumericalIntegrationMethod.RK4: RungeKutta4,
    NumericalIntegrationMethod.RKF: RungeKuttaFehlberg,
}


class NumericalIntegratorManager:
    """Selector forwarding every operation to the chosen integrator.

    Attributes:
        method: The configured integration method.
    """

    def __init__(self, step_width: float,
                 derivative_function: DerivativeFunction,
                 method: NumericalIntegrationMethod = NumericalIntegrationMethod.RK4,
                 dimension: int = 1):
        try:
            integrator_cls = _INTEGRATORS[method]
        except (KeyError, TypeError):
            raise ConfigurationError(
                f"unsupported numerical integration method: {method!r}"
            ) from None

        self.method = method
        self._integrator: RungeKutta = integrator_cls(
            step_width, derivative_function, dimension
        )
        logger.debug("Integrator manager using %s", method.name)

    @classmethod
    def from_config(cls, config: IntegratorConfig,
                    derivative_function: DerivativeFunction,
                    dimension: int = 1) -> NumericalIntegratorManager:
        config.validate()
        return cls(config.step_width_s, derivative_function,
                   config.method, dimension)

    @property
    def integrator(self) -> RungeKutta:
        return self._integrator

    # Forwarded interface -------------------------------------------------

    @property
    def state(self) -> np.ndarray:
        return self._integrator.state

    @property
    def current_time(self) -> float:
        return self._integrator.current_time

    @property
    def step_width(self) -> float:
        return self._integrator.step_width

    def integrate(self):
        self._integrator.integrate()

    def set_state(self, time: float, state: np.ndarray):
        self._integrator.set_state(time, state)

    def set_step_width(self, step_width: float):
        self._integrator.set_step_width(step_width)

    def calc_interpolation_state(self, sigma: float) -> np.ndarray:
        return self._integrator.calc_interpolation_state(sigma)
