"""
refraction.py - Vector refraction of the collimated input beam

Every ray arrives travelling along the optical axis, I = (0, 0, 1), and is
bent at the lens surface according to the vector form of Snell's law:

    cos(θi)  = I · N = N.z
    sin²(θt) = η² (1 - cos²(θi))
    T        = η I - (η cos(θi) - sqrt(1 - sin²(θt))) N

where η is the ratio of the index of the medium the ray leaves to the
index of the medium it enters. T is not normalized; only its direction is
used downstream.

When sin²(θt) > 1 the ray is totally internally reflected. Instead of
tracing the reflection, the ray is given the fixed TIR_DIRECTION, which is
nearly parallel to the receiver plane and therefore lands far outside the
nominal output frame.

Project: Caustic Simulator
"""

import logging
import math

import numpy as np

from .geometry import as_readonly

logger = logging.getLogger(__name__)

INCIDENT_DIRECTION = np.array([0.0, 0.0, 1.0])
INCIDENT_DIRECTION.flags.writeable = False

TIR_DIRECTION = np.array([0.9999, 0.0, 0.0141418])
TIR_DIRECTION.flags.writeable = False


def normalize(vector: np.ndarray) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Parameters
    ----------
    vector : np.ndarray
        Input vector of any dimension

    Returns
    -------
    np.ndarray
        Unit vector in same direction

    Raises
    ------
    ValueError
        If vector has zero magnitude
    """
    magnitude = np.linalg.norm(vector)
    if magnitude < 1e-15:
        raise ValueError("Cannot normalize zero vector")
    return vector / magnitude


def _check_eta(eta: float) -> float:
    eta = float(eta)
    if not math.isfinite(eta) or eta <= 0.0:
        raise ValueError(f"Refractive index ratio must be a positive finite number, got {eta}")
    return eta


def _as_normals(normals: np.ndarray) -> np.ndarray:
    normals = np.asarray(normals, dtype=np.float64)
    if normals.size == 0:
        return normals.reshape(0, 3)
    if normals.ndim != 2 or normals.shape[1] != 3:
        raise ValueError(f"Normals must have shape (n, 3), got {normals.shape}")
    return normals


def _sin2_refracted(normals: np.ndarray, eta: float) -> np.ndarray:
    cos_incidence = normals[:, 2]
    return eta * eta * (1.0 - cos_incidence * cos_incidence)


def compute_refractions(normals: np.ndarray, eta: float) -> np.ndarray:
    """
    Refract the axial beam at every surface normal.

    Parameters
    ----------
    normals : np.ndarray
        Surface normals, shape (n, 3)
    eta : float
        Refractive index ratio (leaving / entering)

    Returns
    -------
    np.ndarray
        Read-only refracted directions, shape (n, 3). Rows that undergo
        total internal reflection equal TIR_DIRECTION. With eta == 1 every
        row is INCIDENT_DIRECTION.

    Raises
    ------
    ValueError
        If eta is not a positive finite number or normals are not (n, 3)
    """
    eta = _check_eta(eta)
    normals = _as_normals(normals)

    # Matched indices: nothing bends, whatever the normal orientation
    if eta == 1.0:
        return as_readonly(np.tile(INCIDENT_DIRECTION, (len(normals), 1)), 3)

    cos_incidence = normals[:, 2]
    sin2_refracted = _sin2_refracted(normals, eta)
    tir = sin2_refracted > 1.0

    # Clamp only affects TIR rows, which are overwritten below
    sqrt_term = np.sqrt(np.clip(1.0 - sin2_refracted, 0.0, None))
    coefficient = eta * cos_incidence - sqrt_term

    refracted = eta * INCIDENT_DIRECTION - coefficient[:, np.newaxis] * normals
    refracted[tir] = TIR_DIRECTION

    num_tir = int(np.count_nonzero(tir))
    if num_tir:
        logger.debug(f"{num_tir} of {len(normals)} samples undergo total internal reflection (eta={eta})")

    return as_readonly(refracted, 3)


def refract_direction(normal: np.ndarray, eta: float) -> np.ndarray:
    """
    Refract the axial beam at a single surface normal.

    Parameters
    ----------
    normal : array-like
        Surface normal [nx, ny, nz]
    eta : float
        Refractive index ratio

    Returns
    -------
    np.ndarray
        Refracted direction [tx, ty, tz]
    """
    normal = np.asarray(normal, dtype=np.float64).reshape(1, 3)
    return compute_refractions(normal, eta)[0].copy()


def count_total_internal_reflections(normals: np.ndarray, eta: float) -> int:
    """Number of normals at which the axial beam is totally internally reflected."""
    normals = _as_normals(normals)
    return int(np.count_nonzero(_sin2_refracted(normals, _check_eta(eta)) > 1.0))


def critical_cosine(eta: float) -> float:
    """
    Smallest N.z that still refracts for the given eta.

    Normals with N.z below this value (in absolute terms) are totally
    internally reflected. Returns 0.0 when eta <= 1, where TIR cannot occur.
    """
    eta = _check_eta(eta)
    if eta <= 1.0:
        return 0.0
    return math.sqrt(1.0 - 1.0 / (eta * eta))
