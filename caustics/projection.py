"""
projection.py - Ray / receiver-plane intersection

Each sample emits the ray P + t·D from its surface position P along its
refracted direction D. The receiver plane is z = plane_distance, so

    t = (plane_distance - P.z) / D.z

and the landing point (ix, iy) is mapped into the fixed nominal frame
[0, 256] x [0, 256] with

    out = (ix * 128 + 128, iy * 128 + 128)

The map assumes interesting landing points fall roughly inside [-1, 1];
it never adapts to the data or to any display size.

Project: Caustic Simulator
"""

import logging

import numpy as np

from .geometry import as_readonly

logger = logging.getLogger(__name__)

NOMINAL_FRAME_SIZE = 256.0
FRAME_SCALE = 128.0
FRAME_OFFSET = 128.0

# Rays whose |D.z| is below this are treated as parallel to the plane
PARALLEL_TOLERANCE = 1e-9

DEGENERATE_SENTINEL = np.array([-9999.0, -9999.0])
DEGENERATE_SENTINEL.flags.writeable = False


def to_nominal_frame(points: np.ndarray) -> np.ndarray:
    """
    Map plane coordinates into the nominal output frame.

    Parameters
    ----------
    points : np.ndarray
        Landing points (x, y) on the receiver plane, shape (n, 2)

    Returns
    -------
    np.ndarray
        Points scaled by FRAME_SCALE and shifted by FRAME_OFFSET
    """
    return np.asarray(points, dtype=np.float64) * FRAME_SCALE + FRAME_OFFSET


def compute_intersections(
    positions: np.ndarray,
    refracteds: np.ndarray,
    plane_distance: float
) -> np.ndarray:
    """
    Intersect every refracted ray with the receiver plane.

    Only the first min(len(positions), len(refracteds)) pairs are used;
    a length mismatch is logged as a warning. Rays (nearly) parallel to
    the plane keep their index and are given DEGENERATE_SENTINEL.

    Parameters
    ----------
    positions : np.ndarray
        Ray origins on the lens surface, shape (n, 3)
    refracteds : np.ndarray
        Ray directions, shape (m, 3)
    plane_distance : float
        z coordinate of the receiver plane

    Returns
    -------
    np.ndarray
        Read-only projected points in the nominal frame, shape (min(n, m), 2)
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    refracteds = np.asarray(refracteds, dtype=np.float64).reshape(-1, 3)
    plane_distance = float(plane_distance)

    if len(positions) != len(refracteds):
        logger.warning(
            f"Mismatch in size of positions ({len(positions)}) and "
            f"refracteds ({len(refracteds)})."
        )

    num_points = min(len(positions), len(refracteds))
    origins = positions[:num_points]
    directions = refracteds[:num_points]

    denominator = directions[:, 2]
    degenerate = np.abs(denominator) < PARALLEL_TOLERANCE

    # Substitute 1.0 so degenerate rows never divide by zero
    safe_denominator = np.where(degenerate, 1.0, denominator)
    t = (plane_distance - origins[:, 2]) / safe_denominator

    landing = origins[:, :2] + directions[:, :2] * t[:, np.newaxis]
    projected = to_nominal_frame(landing)
    projected[degenerate] = DEGENERATE_SENTINEL

    num_degenerate = int(np.count_nonzero(degenerate))
    if num_degenerate:
        logger.debug(f"{num_degenerate} rays are parallel to the receiver plane at z={plane_distance}")

    return as_readonly(projected, 2)


def in_frame_mask(projected: np.ndarray) -> np.ndarray:
    """
    Boolean mask of projected points inside the nominal frame.

    Parameters
    ----------
    projected : np.ndarray
        Points in the nominal frame, shape (n, 2)

    Returns
    -------
    np.ndarray
        True where 0 <= x <= 256 and 0 <= y <= 256
    """
    projected = np.asarray(projected, dtype=np.float64).reshape(-1, 2)
    inside = (projected >= 0.0) & (projected <= NOMINAL_FRAME_SIZE)
    return np.all(inside, axis=1)


def count_degenerate(projected: np.ndarray) -> int:
    """Number of rows equal to DEGENERATE_SENTINEL."""
    projected = np.asarray(projected, dtype=np.float64).reshape(-1, 2)
    return int(np.count_nonzero(np.all(projected == DEGENERATE_SENTINEL, axis=1)))
