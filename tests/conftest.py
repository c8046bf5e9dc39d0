"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for the propagation tests.
"""
import pytest
import numpy as np

from spacesim.astrodynamics.kepler import KeplerOrbit
from spacesim.astrodynamics.orbit import RelativeInformation
from spacesim.core.constants import MU_EARTH, R_LEO, DEG2RAD


REFERENCE_ID = 0


def circular_orbit_state(radius, mu=MU_EARTH, inclination_rad=0.0):
    """Position/velocity on a circular orbit, starting on the +x axis."""
    v = np.sqrt(mu / radius)
    position = np.array([radius, 0.0, 0.0])
    velocity = np.array([0.0, v * np.cos(inclination_rad), v * np.sin(inclination_rad)])
    return position, velocity


@pytest.fixture
def equatorial_reference_orbit():
    """Circular equatorial LEO reference spacecraft (550 km)."""
    position, velocity = circular_orbit_state(R_LEO)
    return KeplerOrbit.from_state(MU_EARTH, position, velocity)


@pytest.fixture
def inclined_reference_orbit():
    """Circular LEO reference spacecraft at 51.6 deg inclination."""
    position, velocity = circular_orbit_state(R_LEO, inclination_rad=51.6 * DEG2RAD)
    return KeplerOrbit.from_state(MU_EARTH, position, velocity)


@pytest.fixture
def relative_information(inclined_reference_orbit):
    """Registry holding the inclined reference under REFERENCE_ID."""
    info = RelativeInformation()
    info.register(REFERENCE_ID, inclined_reference_orbit)
    return info


@pytest.fixture
def initial_relative_state():
    """Representative proximity-operations offset [km, km/s]."""
    position = np.array([0.1, -0.2, 0.05])
    velocity = np.array([1.0e-4, -2.0e-4, 5.0e-5])
    return position, velocity
