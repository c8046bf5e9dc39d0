"""
ODE Engine Tests
================

Step planning, exact arrival at requested end values, and integrator
selection through the manager.
"""
import pytest
import numpy as np

from spacesim.core.config import IntegratorConfig
from spacesim.core.errors import ConfigurationError
from spacesim.core.types import NumericalIntegrationMethod
from spacesim.numerics.integrators import RungeKutta4, RungeKuttaFehlberg
from spacesim.numerics.manager import NumericalIntegratorManager
from spacesim.numerics.ode import (
    OrdinaryDifferentialEquation, StepPlan, make_linear_system
)
from spacesim.numerics.ode_examples import (
    linear_ode, quadratic_ode, position_velocity_1d_ode
)


class TestStepPlan:
    """Nominal steps followed by one exact remainder."""

    def test_remainder_step(self):
        plan = StepPlan.build(0.0, 10.25, 1.0)
        steps = list(plan)
        assert plan.n_steps == 11
        assert len(plan) == 11
        assert len(steps) == 11
        assert all(h == 1.0 for h in steps[:-1])
        assert plan.last_step == pytest.approx(0.25)
        assert steps[-1] == plan.last_step
        assert sum(plan) == pytest.approx(10.25)

    def test_exact_multiple(self):
        plan = StepPlan.build(0.0, 10.0, 1.0)
        assert plan.n_steps == 10
        assert plan.last_step == pytest.approx(1.0)

    def test_interval_shorter_than_nominal(self):
        plan = StepPlan.build(5.0, 5.3, 1.0)
        assert list(plan) == pytest.approx([0.3])

    def test_remainder_within_tolerance_folded(self):
        plan = StepPlan.build(0.0, 2.0 + 5e-7, 1.0)
        assert plan.n_steps == 2
        assert plan.last_step == pytest.approx(1.0 + 5e-7)

    def test_empty_plan(self):
        plan = StepPlan.build(3.0, 3.0, 1.0)
        assert plan.n_steps == 0
        assert list(plan) == []

    def test_plan_stores_counts_not_steps(self):
        plan = StepPlan.build(0.0, 1000.25, 0.5)
        assert plan.n_nominal == 2000
        assert plan.n_steps == 2001
        assert plan.last_step == 0.25
        assert sorted(vars(plan)) == [
            "end", "n_nominal", "nominal_step", "remainder", "start"
        ]

    def test_plan_can_be_iterated_twice(self):
        plan = StepPlan.build(0.0, 3.5, 1.0)
        assert list(plan) == list(plan)

    def test_backwards_rejected(self):
        with pytest.raises(ValueError):
            StepPlan.build(10.0, 5.0, 1.0)

    @pytest.mark.parametrize("nominal_step", [0.0, -1.0, np.inf])
    def test_invalid_nominal_step_rejected(self, nominal_step):
        with pytest.raises(ValueError):
            StepPlan.build(0.0, 10.0, nominal_step)

    def test_no_step_exceeds_nominal(self):
        plan = StepPlan.build(0.0, 137.77, 10.0)
        assert all(0.0 < h <= 10.0 + 1e-6 for h in plan)


class TestOrdinaryDifferentialEquation:
    """State handling and propagation of the ODE engine."""

    def test_initial_state(self):
        ode = OrdinaryDifferentialEquation(0.1, position_velocity_1d_ode, 2)
        assert ode.dimension == 2
        assert ode.independent_variable == 0.0
        assert np.array_equal(ode.state, np.zeros(2))
        assert np.array_equal(ode.derivative, np.zeros(2))
        assert ode.method is NumericalIntegrationMethod.RK4

    def test_setup_and_indexing(self):
        ode = OrdinaryDifferentialEquation(0.1, position_velocity_1d_ode, 2)
        ode.setup(2.0, np.array([1.0, 0.5]))
        assert ode.independent_variable == 2.0
        assert ode[0] == 1.0
        assert ode[1] == 0.5

    def test_update_single_step(self):
        ode = OrdinaryDifferentialEquation(0.5, position_velocity_1d_ode, 2)
        ode.setup(0.0, np.array([0.0, 2.0]))
        ode.update()
        assert ode.independent_variable == pytest.approx(0.5)
        assert ode[0] == pytest.approx(1.0)
        assert np.array_equal(ode.derivative, [2.0, 0.0])

    def test_integrate_steps(self):
        ode = OrdinaryDifferentialEquation(0.1, quadratic_ode, 1)
        ode.integrate_steps(100)
        assert ode.independent_variable == pytest.approx(10.0)
        assert ode[0] == pytest.approx(100.0, abs=1e-9)

    @pytest.mark.parametrize("method", list(NumericalIntegrationMethod))
    def test_propagate_to_lands_exactly(self, method):
        ode = OrdinaryDifferentialEquation(1.0, quadratic_ode, 1, method)
        plan = ode.propagate_to(10.25)

        assert plan.n_steps == 11
        assert ode.independent_variable == 10.25
        assert ode[0] == pytest.approx(10.25 ** 2, abs=1e-9)
        assert ode.step_width == 1.0

    def test_propagate_to_consecutive_irregular_targets(self):
        ode = OrdinaryDifferentialEquation(0.7, linear_ode, 1)
        for end in (0.35, 2.0, 2.0, 9.99, 10.0):
            ode.propagate_to(end)
            assert ode.independent_variable == end
            assert ode[0] == pytest.approx(end, abs=1e-12)
        assert ode.step_width == 0.7

    def test_propagate_to_current_time_is_noop(self):
        ode = OrdinaryDifferentialEquation(1.0, linear_ode, 1)
        ode.propagate_to(3.0)
        state = ode.state
        plan = ode.propagate_to(3.0)
        assert plan.n_steps == 0
        assert np.array_equal(ode.state, state)

    def test_propagate_backwards_rejected(self):
        ode = OrdinaryDifferentialEquation(1.0, linear_ode, 1)
        ode.propagate_to(5.0)
        with pytest.raises(ValueError):
            ode.propagate_to(4.0)
        assert ode.step_width == 1.0

    def test_nominal_step_restored_after_failure(self):
        def failing_ode(t, x):
            if t > 2.0:
                raise FloatingPointError("diverged")
            return np.ones(1)

        ode = OrdinaryDifferentialEquation(1.0, failing_ode, 1)
        with pytest.raises(FloatingPointError):
            ode.propagate_to(2.5)
        assert ode.step_width == 1.0

    def test_dense_output_available_after_propagate_to(self):
        ode = OrdinaryDifferentialEquation(
            1.0, quadratic_ode, 1, NumericalIntegrationMethod.RKF
        )
        ode.propagate_to(10.5)
        # Last step spans [10.0, 10.5]
        assert ode.integrator_manager.integrator.last_step_width == pytest.approx(0.5)
        value = ode.integrator_manager.calc_interpolation_state(0.5)[0]
        assert value == pytest.approx(10.25 ** 2, abs=1e-9)

    def test_linear_system(self):
        A = np.array([[0.0, 1.0], [-1.0, 0.0]])
        ode = OrdinaryDifferentialEquation(0.01, make_linear_system(A), 2)
        ode.setup(0.0, np.array([1.0, 0.0]))
        ode.propagate_to(np.pi / 2.0)
        assert np.allclose(ode.state, [0.0, -1.0], atol=1e-9)


class TestNumericalIntegratorManager:
    """Integrator selection and forwarding."""

    @pytest.mark.parametrize("method, integrator_cls", [
        (NumericalIntegrationMethod.RK4, RungeKutta4),
        (NumericalIntegrationMethod.RKF, RungeKuttaFehlberg),
    ])
    def test_dispatch(self, method, integrator_cls):
        manager = NumericalIntegratorManager(0.1, linear_ode, method)
        assert type(manager.integrator) is integrator_cls
        assert manager.method is method

    @pytest.mark.parametrize("method", ["RK4", None, 3])
    def test_unknown_method_rejected(self, method):
        with pytest.raises(ConfigurationError):
            NumericalIntegratorManager(0.1, linear_ode, method)

    def test_forwarding(self):
        manager = NumericalIntegratorManager(
            0.1, position_velocity_1d_ode, NumericalIntegrationMethod.RKF, 2
        )
        manager.set_state(1.0, np.array([0.0, 1.0]))
        manager.set_step_width(0.5)
        manager.integrate()

        assert manager.current_time == pytest.approx(1.5)
        assert manager.step_width == 0.5
        assert np.allclose(manager.state, [0.5, 1.0])
        assert np.allclose(manager.calc_interpolation_state(0.5), [0.25, 1.0])

    def test_rk4_interpolation_not_available(self):
        manager = NumericalIntegratorManager(0.1, linear_ode)
        manager.integrate()
        with pytest.raises(NotImplementedError):
            manager.calc_interpolation_state(0.5)

    def test_from_config(self):
        config = IntegratorConfig(method="rkf", step_width_s=0.25)
        manager = NumericalIntegratorManager.from_config(config, quadratic_ode)
        assert manager.method is NumericalIntegrationMethod.RKF
        assert manager.step_width == 0.25

    def test_from_config_bad_step(self):
        with pytest.raises(ConfigurationError):
            NumericalIntegratorManager.from_config(
                IntegratorConfig(step_width_s=-1.0), quadratic_ode
            )
