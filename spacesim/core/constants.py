"""
Physical and mathematical constants.

Sources:
    - WGS-84 for the Earth ellipsoid
    - IERS conventions for Earth parameters
"""

import numpy as np

# ---------------------------------------------------------------------------
# Mathematical constants
# ---------------------------------------------------------------------------
TWO_PI = 2.0 * np.pi
DEG2RAD = np.pi / 180.0

# ---------------------------------------------------------------------------
# Time constants
# ---------------------------------------------------------------------------
MJD_J2000 = 51544.5                     # MJD of J2000.0 epoch (2000-01-01 12:00 TT)

# ---------------------------------------------------------------------------
# Earth parameters
# ---------------------------------------------------------------------------
MU_EARTH = 398600.4418                  # Gravitational parameter [km³/s²]
R_EARTH = 6378.137                      # Equatorial radius [km]
FLATTENING_EARTH = 1.0 / 298.257223563  # WGS-84 flattening
OMEGA_EARTH = 7.2921150e-5              # Earth rotation rate [rad/s]

# ---------------------------------------------------------------------------
# Reference orbits
# ---------------------------------------------------------------------------
R_LEO = 6928.137                        # 550 km altitude circular orbit radius [km]

# ---------------------------------------------------------------------------
# Numerical thresholds
# ---------------------------------------------------------------------------
PROPAGATION_TOLERANCE_S = 1.0e-6        # Slack before the final partial step [s]
MIN_ORBIT_RADIUS_KM = 1.0e-3            # Below this the Hill linearisation is undefined
