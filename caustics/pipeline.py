"""
pipeline.py - Caustic session: geometry, refraction and projection wired together

Geometry is loaded and refracted once. The projection is recomputed,
synchronously and as a whole new array, every time the receiver plane
moves. Nothing here is thread-safe; a concurrent host must serialize calls.

Project: Caustic Simulator
"""

import logging
import math
from typing import Dict, Union

import numpy as np

from .config import CausticConfig, DEFAULT_DISTANCE_STEP, DEFAULT_ETA
from .exceptions import InvalidDistanceError
from .geometry import load_geometry
from .projection import compute_intersections, count_degenerate, in_frame_mask
from .refraction import compute_refractions, count_total_internal_reflections

logger = logging.getLogger(__name__)


def parse_distance(value: Union[str, float, int]) -> float:
    """
    Interpret a host-supplied plane distance.

    Parameters
    ----------
    value : str or float
        Distance as typed by the user or given on the command line

    Returns
    -------
    float
        Finite distance

    Raises
    ------
    InvalidDistanceError
        If the value is not a finite real number
    """
    try:
        distance = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidDistanceError(value) from exc
    if not math.isfinite(distance):
        raise InvalidDistanceError(value)
    return distance


class CausticSession:
    """
    Interactive state of one caustic simulation.

    Attributes
    ----------
    positions : np.ndarray
        Lens surface positions, shape (n, 3)
    normals : np.ndarray
        Lens surface normals, shape (m, 3)
    refracteds : np.ndarray
        Refracted directions, shape (m, 3), computed once
    projected : np.ndarray
        Landing points in the nominal frame for the current distance
    distance : float
        Current z coordinate of the receiver plane

    Examples
    --------
    >>> session = CausticSession.from_config(CausticConfig("lens.obj", 5.0))
    >>> points = session.increase_distance()
    >>> session.distance
    5.1
    """

    def __init__(
        self,
        positions: np.ndarray,
        normals: np.ndarray,
        plane_distance: float,
        eta: float = DEFAULT_ETA,
        step: float = DEFAULT_DISTANCE_STEP
    ):
        self._positions = positions
        self._normals = normals
        self._eta = float(eta)
        self._step = float(step)
        self._refracteds = compute_refractions(normals, self._eta)
        self._distance = float(plane_distance)
        self._recompute_count = 0
        self._projected = self._recompute()

    @classmethod
    def from_config(cls, config: CausticConfig) -> 'CausticSession':
        """
        Load geometry and build a session.

        Raises
        ------
        ValueError
            If the configuration is invalid
        SourceUnreadableError, EmptyGeometryError
            If the geometry cannot be loaded
        """
        config.validate()
        positions, normals = load_geometry(config.source)
        return cls(
            positions,
            normals,
            plane_distance=config.plane_distance,
            eta=config.eta,
            step=config.step
        )

    @property
    def positions(self) -> np.ndarray:
        return self._positions

    @property
    def normals(self) -> np.ndarray:
        return self._normals

    @property
    def refracteds(self) -> np.ndarray:
        return self._refracteds

    @property
    def projected(self) -> np.ndarray:
        return self._projected

    @property
    def distance(self) -> float:
        return self._distance

    @property
    def eta(self) -> float:
        return self._eta

    @property
    def step(self) -> float:
        return self._step

    @property
    def sample_count(self) -> int:
        """Number of samples that reach the projection stage."""
        return min(len(self._positions), len(self._refracteds))

    @property
    def recompute_count(self) -> int:
        """Number of projections computed so far, the initial one included."""
        return self._recompute_count

    def _recompute(self) -> np.ndarray:
        self._recompute_count += 1
        return compute_intersections(self._positions, self._refracteds, self._distance)

    def set_distance(self, distance: float) -> np.ndarray:
        """
        Move the receiver plane and recompute the projection.

        Parameters
        ----------
        distance : float
            New z coordinate of the receiver plane

        Returns
        -------
        np.ndarray
            The new projected points
        """
        self._distance = float(distance)
        self._projected = self._recompute()
        logger.debug(f"Receiver plane moved to z={self._distance:.4f}")
        return self._projected

    def increase_distance(self) -> np.ndarray:
        """Move the receiver plane one step away from the lens."""
        return self.set_distance(self._distance + self._step)

    def decrease_distance(self) -> np.ndarray:
        """Move the receiver plane one step toward the lens."""
        return self.set_distance(self._distance - self._step)

    def summary(self) -> Dict[str, Union[int, float]]:
        """
        Counts describing the current projection.

        Returns
        -------
        dict
            samples, in_frame, degenerate, total_internal_reflections,
            distance and eta
        """
        return {
            "samples": len(self._projected),
            "in_frame": int(np.count_nonzero(in_frame_mask(self._projected))),
            "degenerate": count_degenerate(self._projected),
            "total_internal_reflections": count_total_internal_reflections(self._normals, self._eta),
            "distance": self._distance,
            "eta": self._eta,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"samples={self.sample_count}, "
            f"eta={self._eta:.4f}, "
            f"distance={self._distance:.4f})"
        )
