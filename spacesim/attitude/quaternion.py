"""
Quaternion operations for frame conversion.

Convention: q = [q1, q2, q3, q4] where q4 is the scalar component.
A quaternion q_A2B converts vector components from frame A to frame B:
v_B = R(q_A2B) @ v_A. Its conjugate is q_B2A.
"""

from __future__ import annotations

import numpy as np


def _cross_matrix(v: np.ndarray) -> np.ndarray:
    return np.array([
        [0., -v[2], v[1]],
        [v[2], 0., -v[0]],
        [-v[1], v[0], 0.]
    ])


def q_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """Quaternion product with R(q1*q2) = R(q1) * R(q2).

    Args:
        q1: First quaternion [q1,q2,q3, q4_scalar], shape (4,).
        q2: Second quaternion, shape (4,).

    Returns:
        Product quaternion, shape (4,).
    """
    v1, s1 = np.asarray(q1[0:3]), q1[3]
    v2, s2 = np.asarray(q2[0:3]), q2[3]

    vector = s1 * v2 + s2 * v1 - np.cross(v1, v2)
    scalar = s1 * s2 - np.dot(v1, v2)
    return np.append(vector, scalar)


def q_conjugate(q: np.ndarray) -> np.ndarray:
    """Conjugate, i.e. the inverse rotation for a unit quaternion."""
    return np.array([-q[0], -q[1], -q[2], q[3]])


def q_normalize(q: np.ndarray) -> np.ndarray:
    """Scale to unit norm; a zero quaternion maps to identity."""
    n = np.linalg.norm(q)
    if n < 1e-15:
        return np.array([0., 0., 0., 1.])
    return q / n


def q_to_dcm(q: np.ndarray) -> np.ndarray:
    """Direction Cosine Matrix of a unit quaternion.

    Passive rotation: for q_A2B the result satisfies v_B = R @ v_A,
        R = (q4² − |v|²)·I + 2·v·vᵀ − 2·q4·[v×]
    (Markley & Crassidis, Eq. 2.125).

    Args:
        q: Unit quaternion [q1,q2,q3, q4_scalar], shape (4,).

    Returns:
        R: 3x3 rotation matrix.
    """
    v = np.asarray(q[0:3], dtype=float)
    q4 = float(q[3])
    return ((q4**2 - v @ v) * np.eye(3)
            + 2.0 * np.outer(v, v)
            - 2.0 * q4 * _cross_matrix(v))


def dcm_to_q(R: np.ndarray) -> np.ndarray:
    """Unit quaternion of a DCM via Shepperd's method.

    The largest of 4·q_k² is computed from the diagonal first and the
    remaining components from the off-diagonal sums and differences, so
    no component is recovered by dividing by a small number. Inverse of
    q_to_dcm up to global sign.

    Args:
        R: 3x3 rotation matrix.

    Returns:
        Unit quaternion, shape (4,).
    """
    tr = np.trace(R)
    k = int(np.argmax([R[0, 0], R[1, 1], R[2, 2], tr]))

    q = np.empty(4)
    if k == 3:
        q[0] = R[1, 2] - R[2, 1]
        q[1] = R[2, 0] - R[0, 2]
        q[2] = R[0, 1] - R[1, 0]
        q[3] = 1.0 + tr
    else:
        # Cyclic permutation (i, j, m) of (0, 1, 2) starting at the largest diagonal
        i, j, m = k, (k + 1) % 3, (k + 2) % 3
        q[i] = 1.0 + 2.0 * R[i, i] - tr
        q[j] = R[i, j] + R[j, i]
        q[m] = R[i, m] + R[m, i]
        q[3] = R[j, m] - R[m, j]

    return q_normalize(q)


def q_rotate_vector(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Frame conversion of a vector: components in A to components in B.

    Args:
        q: Unit quaternion q_A2B, shape (4,).
        v: 3-vector in frame A, shape (3,).

    Returns:
        The same vector expressed in frame B, shape (3,).
    """
    return q_to_dcm(q) @ v


def q_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """Quaternion of a rotation by angle [rad] about a unit axis."""
    half = 0.5 * angle
    return np.append(np.sin(half) * np.asarray(axis, dtype=float), np.cos(half))
