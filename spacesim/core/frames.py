"""
Reference frame transformations.

Provides rotations for conversions between:
    - ECI (J2000/GCRF)
    - ECEF (ITRF, simplified) and WGS-84 geodetic coordinates
    - LVLH / RSW (reference-spacecraft-centered)
"""

from __future__ import annotations

import numpy as np
from ..attitude.quaternion import q_conjugate, q_rotate_vector
from ..core.constants import (
    OMEGA_EARTH, MJD_J2000, TWO_PI, R_EARTH, FLATTENING_EARTH
)
from ..core.types import GeodeticPosition


def _skew(v: np.ndarray) -> np.ndarray:
    """Skew-symmetric cross-product matrix [v×].

    Args:
        v: 3-vector.

    Returns:
        3x3 skew-symmetric matrix such that [v×]·w = v × w.
    """
    return np.array([
        [0., -v[2], v[1]],
        [v[2], 0., -v[0]],
        [-v[1], v[0], 0.]
    ])


def gmst_from_mjd_tt(mjd_tt: float) -> float:
    """Greenwich Mean Sidereal Time from MJD in Terrestrial Time.

    Simplified IAU expression, ignoring UT1-UTC.

    Args:
        mjd_tt: Modified Julian Date in TT.

    Returns:
        GMST in radians, wrapped to [0, 2π).
    """
    # Julian centuries from J2000.0
    T = (mjd_tt - MJD_J2000) / 36525.0

    gmst_sec = (67310.54841
                + (876600.0 * 3600.0 + 8640184.812866) * T
                + 0.093104 * T**2
                - 6.2e-6 * T**3)

    gmst_rad = (gmst_sec / 86400.0) * TWO_PI
    return gmst_rad % TWO_PI


def eci_to_ecef(mjd_tt: float) -> tuple[np.ndarray, np.ndarray]:
    """ECI (J2000) to ECEF rotation matrix and its time derivative.

    Simplified model using only Earth rotation (no precession/nutation).

    Args:
        mjd_tt: Epoch in MJD TT.

    Returns:
        R: 3x3 rotation matrix, ECEF = R · ECI.
        dR: 3x3 time derivative of R.
    """
    theta = gmst_from_mjd_tt(mjd_tt)
    c, s = np.cos(theta), np.sin(theta)

    R = np.array([
        [c,  s, 0.],
        [-s, c, 0.],
        [0., 0., 1.]
    ])

    dR = OMEGA_EARTH * np.array([
        [-s, c, 0.],
        [-c, -s, 0.],
        [0., 0., 0.]
    ])

    return R, dR


def ecef_to_geodetic(r_ecef: np.ndarray, tol: float = 1e-12,
                     max_iter: int = 20) -> GeodeticPosition:
    """Convert an ECEF position to WGS-84 geodetic coordinates.

    Fixed-point iteration on the geodetic latitude; converges in a few
    iterations everywhere except at the geocenter.

    Args:
        r_ecef: ECEF position [km], shape (3,).
        tol: Latitude convergence threshold [rad].
        max_iter: Iteration cap.

    Returns:
        GeodeticPosition.
    """
    x, y, z = r_ecef
    e2 = FLATTENING_EARTH * (2.0 - FLATTENING_EARTH)
    p = np.hypot(x, y)
    lon = np.arctan2(y, x)

    lat = np.arctan2(z, p * (1.0 - e2))
    for _ in range(max_iter):
        sin_lat = np.sin(lat)
        N = R_EARTH / np.sqrt(1.0 - e2 * sin_lat**2)
        lat_new = np.arctan2(z + e2 * N * sin_lat, p)
        if abs(lat_new - lat) < tol:
            lat = lat_new
            break
        lat = lat_new

    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    N = R_EARTH / np.sqrt(1.0 - e2 * sin_lat**2)
    if abs(cos_lat) > 1e-10:
        alt = p / cos_lat - N
    else:
        alt = abs(z) - N * (1.0 - e2)

    return GeodeticPosition(
        latitude_rad=float(lat),
        longitude_rad=float(lon),
        altitude_km=float(alt)
    )


def eci_to_lvlh(r: np.ndarray, v: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Construct LVLH (RSW) frame rotation matrix from ECI state.

    Frame definition:
        R-hat: radial outward (r / |r|)
        C-hat: orbit normal  (r × v / |r × v|), cross-track
        I-hat: completes right-hand triad (C × R), approximately along-track

    Convention: LVLH vector components are ordered [R, I, C] (radial,
    in-track, cross-track) to align with HCW conventions.

    Args:
        r: ECI position vector [km], shape (3,).
        v: ECI velocity vector [km/s], shape (3,).

    Returns:
        R_lvlh: 3x3 rotation matrix, v_LVLH = R_lvlh · v_ECI.
        dR_lvlh: 3x3 time derivative of R_lvlh.
    """
    r_mag = np.linalg.norm(r)
    h = np.cross(r, v)
    h_mag = np.linalg.norm(h)

    r_hat = r / r_mag                   # radial
    c_hat = h / h_mag                   # cross-track (orbit normal)
    i_hat = np.cross(c_hat, r_hat)      # in-track

    # Rows are the LVLH unit vectors expressed in ECI
    R_lvlh = np.array([r_hat, i_hat, c_hat])

    # Angular velocity of the LVLH frame (= orbit angular velocity)
    omega_lvlh_eci = h / r_mag**2

    dR_lvlh = -_skew(omega_lvlh_eci) @ R_lvlh

    return R_lvlh, dR_lvlh


def relative_lvlh_to_eci(dr_lvlh: np.ndarray, dv_lvlh: np.ndarray,
                         q_i2lvlh: np.ndarray,
                         r_reference: np.ndarray,
                         v_reference: np.ndarray
                         ) -> tuple[np.ndarray, np.ndarray]:
    """Absolute ECI state of a body given its LVLH offset from a reference.

    Both relative vectors are rotated with the inverse of the reference
    attitude and added to the reference inertial state:
        r = R(q_lvlh2i)·dr + r_ref
        v = R(q_lvlh2i)·dv + v_ref

    Args:
        dr_lvlh: Relative position in LVLH [km], shape (3,).
        dv_lvlh: Relative velocity in LVLH [km/s], shape (3,).
        q_i2lvlh: ECI-to-LVLH quaternion of the reference, shape (4,).
        r_reference: Reference ECI position [km], shape (3,).
        v_reference: Reference ECI velocity [km/s], shape (3,).

    Returns:
        r_eci: Absolute ECI position [km], shape (3,).
        v_eci: Absolute ECI velocity [km/s], shape (3,).
    """
    q_lvlh2i = q_conjugate(q_i2lvlh)
    r_eci = q_rotate_vector(q_lvlh2i, dr_lvlh) + r_reference
    v_eci = q_rotate_vector(q_lvlh2i, dv_lvlh) + v_reference
    return r_eci, v_eci


def relative_eci_to_lvlh(r_chaser: np.ndarray, v_chaser: np.ndarray,
                         q_i2lvlh: np.ndarray,
                         r_reference: np.ndarray,
                         v_reference: np.ndarray
                         ) -> tuple[np.ndarray, np.ndarray]:
    """Inverse of relative_lvlh_to_eci.

    Returns:
        dr_lvlh: Relative position in LVLH [km], shape (3,).
        dv_lvlh: Relative velocity in LVLH [km/s], shape (3,).
    """
    dr_lvlh = q_rotate_vector(q_i2lvlh, r_chaser - r_reference)
    dv_lvlh = q_rotate_vector(q_i2lvlh, v_chaser - v_reference)
    return dr_lvlh, dv_lvlh
