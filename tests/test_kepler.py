"""
Kepler Orbit Tests
==================

Analytic two-body propagation used for reference spacecraft.
"""
import pytest
import numpy as np

from conftest import circular_orbit_state
from spacesim.astrodynamics.kepler import (
    KeplerElements, KeplerOrbit, solve_kepler_equation
)
from spacesim.core.constants import MU_EARTH, R_LEO, DEG2RAD, TWO_PI
from spacesim.core.errors import ConfigurationError, NumericalDegeneracyError
from spacesim.numerics.integrators import RungeKuttaFehlberg
from spacesim.numerics.ode_examples import two_body_orbit_2d_ode


class TestKeplerEquation:

    @pytest.mark.parametrize("e", [0.0, 0.1, 0.5, 0.9, 0.99])
    @pytest.mark.parametrize("M", [0.0, 0.3, 2.0, 3.1, 5.9])
    def test_residual(self, M, e):
        E = solve_kepler_equation(M, e)
        assert E - e * np.sin(E) == pytest.approx(M, abs=1e-12)

    def test_mean_anomaly_wrapped(self):
        E = solve_kepler_equation(TWO_PI + 1.0, 0.2)
        assert E == pytest.approx(solve_kepler_equation(1.0, 0.2), abs=1e-14)


class TestKeplerElements:

    def test_circular_orbit(self):
        position, velocity = circular_orbit_state(R_LEO)
        elements = KeplerElements.from_state(MU_EARTH, position, velocity)

        assert elements.a == pytest.approx(R_LEO, rel=1e-12)
        assert elements.e == pytest.approx(0.0, abs=1e-12)
        assert elements.period_s == pytest.approx(
            TWO_PI * np.sqrt(R_LEO**3 / MU_EARTH), rel=1e-12
        )

    def test_classical_elements(self):
        position, velocity = circular_orbit_state(R_LEO, inclination_rad=51.6 * DEG2RAD)
        oe = KeplerElements.from_state(MU_EARTH, position, velocity).to_orbital_elements()

        assert oe.i == pytest.approx(51.6 * DEG2RAD, abs=1e-12)
        assert oe.raan == pytest.approx(0.0, abs=1e-12)
        assert oe.a == pytest.approx(R_LEO, rel=1e-12)

    def test_eccentric_orbit_periapsis(self):
        r_p = 7000.0
        v_p = 1.1 * np.sqrt(MU_EARTH / r_p)
        elements = KeplerElements.from_state(
            MU_EARTH, np.array([r_p, 0.0, 0.0]), np.array([0.0, v_p, 0.0])
        )
        assert elements.e == pytest.approx(1.1**2 - 1.0, rel=1e-12)
        assert elements.a * (1.0 - elements.e) == pytest.approx(r_p, rel=1e-12)
        assert elements.mean_anomaly_epoch == pytest.approx(0.0, abs=1e-12)

    def test_hyperbolic_rejected(self):
        v_escape = np.sqrt(2.0 * MU_EARTH / R_LEO)
        with pytest.raises(ConfigurationError):
            KeplerElements.from_state(
                MU_EARTH, np.array([R_LEO, 0.0, 0.0]), np.array([0.0, 1.01 * v_escape, 0.0])
            )

    def test_rectilinear_rejected(self):
        with pytest.raises(NumericalDegeneracyError):
            KeplerElements.from_state(
                MU_EARTH, np.array([R_LEO, 0.0, 0.0]), np.array([1.0, 0.0, 0.0])
            )

    def test_non_positive_mu_rejected(self):
        position, velocity = circular_orbit_state(R_LEO)
        with pytest.raises(NumericalDegeneracyError):
            KeplerElements.from_state(0.0, position, velocity)


class TestKeplerOrbit:

    def test_reproduces_initial_state(self):
        position = np.array([6500.0, 1200.0, -300.0])
        velocity = np.array([-1.5, 7.2, 1.1])
        orbit = KeplerOrbit.from_state(MU_EARTH, position, velocity)

        assert np.allclose(orbit.position_i, position, rtol=0.0, atol=1e-6)
        assert np.allclose(orbit.velocity_i, velocity, rtol=0.0, atol=1e-9)

    def test_periodicity(self, inclined_reference_orbit):
        position = inclined_reference_orbit.position_i
        velocity = inclined_reference_orbit.velocity_i
        inclined_reference_orbit.propagate(inclined_reference_orbit.elements.period_s)

        assert np.allclose(inclined_reference_orbit.position_i, position, rtol=0.0, atol=1e-7)
        assert np.allclose(inclined_reference_orbit.velocity_i, velocity, rtol=0.0, atol=1e-10)

    def test_energy_and_momentum_conserved(self):
        position = np.array([7000.0, 0.0, 0.0])
        velocity = np.array([0.0, 8.5, 1.0])
        orbit = KeplerOrbit.from_state(MU_EARTH, position, velocity)

        def invariants(r, v):
            energy = 0.5 * np.dot(v, v) - MU_EARTH / np.linalg.norm(r)
            return energy, np.cross(r, v)

        energy_0, h_0 = invariants(position, velocity)
        for t in (100.0, 1500.0, 4321.0):
            orbit.propagate(t)
            energy, h = invariants(orbit.position_i, orbit.velocity_i)
            assert energy == pytest.approx(energy_0, rel=1e-10)
            assert np.allclose(h, h_0, rtol=1e-10)

    def test_agrees_with_numerical_integration(self):
        initial_state = np.array([1.0, 0.0, 0.0, 1.2])
        rkf = RungeKuttaFehlberg(0.01, two_body_orbit_2d_ode, dimension=4)
        rkf.set_state(0.0, initial_state)
        for _ in range(500):
            rkf.integrate()

        orbit = KeplerOrbit.from_state(1.0, np.array([1.0, 0.0, 0.0]), np.array([0.0, 1.2, 0.0]))
        orbit.propagate(5.0)
        assert np.allclose(rkf.state[:2], orbit.position_i[:2], rtol=0.0, atol=1e-8)
        assert np.allclose(rkf.state[2:], orbit.velocity_i[:2], rtol=0.0, atol=1e-8)

    def test_disabled_propagation_is_noop(self, equatorial_reference_orbit):
        position = equatorial_reference_orbit.position_i
        equatorial_reference_orbit.is_calc_enabled = False
        equatorial_reference_orbit.propagate(1000.0)
        assert np.array_equal(equatorial_reference_orbit.position_i, position)

    def test_lvlh_quaternion_of_equatorial_orbit(self, equatorial_reference_orbit):
        q = equatorial_reference_orbit.calc_quaternion_i2lvlh()
        assert np.allclose(q, [0.0, 0.0, 0.0, 1.0], atol=1e-12)

    def test_spacecraft_state_snapshot(self, inclined_reference_orbit):
        state = inclined_reference_orbit.spacecraft_state(60000.0)
        assert state.epoch_mjd_tt == 60000.0
        assert np.array_equal(
            state.state_vector,
            np.concatenate([inclined_reference_orbit.position_i,
                            inclined_reference_orbit.velocity_i])
        )
