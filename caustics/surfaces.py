"""
surfaces.py - Analytic lens surfaces sampled into caustic geometry

Surface types:
    - ConicSurface: Conic sections (sphere, parabola, hyperbola, ellipse)
    - AsphereSurface: Conic + even polynomial aspheric terms

Each surface knows its sag z(x, y) and unit normal over its clear
aperture. Sampling a surface yields the same (positions, normals) pair the
OBJ loader produces, so synthetic lenses can be fed straight into the
pipeline or written to disk.

Normals point toward +z, the travel direction of the incident beam.

Project: Caustic Simulator
"""

import logging
from typing import Dict, Optional

import numpy as np

from .geometry import Geometry, as_readonly

logger = logging.getLogger(__name__)


class Surface:
    """
    Base class for rotationally symmetric surfaces.

    Sign Convention:
        - Radius R > 0: Center of curvature on the +z side of the vertex
        - Radius R < 0: Center of curvature on the -z side of the vertex
        - R = infinity (c = 0): Flat surface

    Attributes
    ----------
    radius : float
        Radius of curvature (np.inf for flat)
    curvature : float
        Curvature c = 1/R (0 for flat)
    aperture : float
        Semi-diameter (clear radius)
    """

    def __init__(self, radius: float = np.inf, aperture: float = 1.0):
        if aperture <= 0:
            raise ValueError(f"Aperture must be positive, got {aperture}")
        self.radius = radius
        self.aperture = aperture
        self.curvature = 0.0 if np.isinf(radius) else 1.0 / radius

    @property
    def is_flat(self) -> bool:
        """Check if surface is flat (planar)."""
        return abs(self.curvature) < 1e-15

    def sag_array(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Sag (z-displacement from the vertex plane) at each (x, y)."""
        raise NotImplementedError("Subclasses must implement sag_array()")

    def _dsag_dr(self, r: np.ndarray) -> np.ndarray:
        """Radial slope dz/dr."""
        raise NotImplementedError("Subclasses must implement _dsag_dr()")

    def normal_array(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """
        Unit surface normals at each (x, y).

        For z = f(r) the normal is (-dz/dx, -dz/dy, 1) / |...| with
        dz/dx = (dz/dr)(x/r) and dz/dy = (dz/dr)(y/r).

        Parameters
        ----------
        x : np.ndarray
            X-coordinates
        y : np.ndarray
            Y-coordinates

        Returns
        -------
        np.ndarray
            Normals, shape x.shape + (3,); NaN where the surface is undefined
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r = np.hypot(x, y)

        dzdr = self._dsag_dr(r)
        # At the vertex the normal is the optical axis
        safe_r = np.where(r < 1e-15, 1.0, r)
        dzdx = np.where(r < 1e-15, 0.0, dzdr * x / safe_r)
        dzdy = np.where(r < 1e-15, 0.0, dzdr * y / safe_r)

        normals = np.stack([-dzdx, -dzdy, np.ones_like(r)], axis=-1)
        return normals / np.linalg.norm(normals, axis=-1, keepdims=True)

    def is_inside_aperture(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """True where (x, y) lies within the clear aperture."""
        return np.hypot(x, y) <= self.aperture

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(R={self.radius:.4f}, aperture={self.aperture:.4f})"


class ConicSurface(Surface):
    """
    Conic section surface.

    Sag equation:
        z(r) = c * r² / (1 + sqrt(1 - (1+k) * c² * r²))

    Conic constant values:
        k = 0:     Sphere
        k = -1:    Paraboloid
        k < -1:    Hyperboloid
        -1 < k < 0: Prolate ellipsoid
        k > 0:     Oblate ellipsoid
    """

    def __init__(self, radius: float = np.inf, aperture: float = 1.0, conic: float = 0.0):
        super().__init__(radius, aperture)
        self.conic = conic

    @property
    def conic_type(self) -> str:
        """Return string description of conic type."""
        k = self.conic
        if abs(k) < 1e-15:
            return "sphere"
        elif abs(k + 1) < 1e-15:
            return "paraboloid"
        elif k < -1:
            return "hyperboloid"
        elif k < 0:
            return "prolate ellipsoid"
        else:
            return "oblate ellipsoid"

    def _discriminant(self, r2: np.ndarray) -> np.ndarray:
        return 1.0 - (1.0 + self.conic) * self.curvature**2 * r2

    def sag_array(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r2 = x**2 + y**2
        if self.is_flat:
            return np.zeros_like(r2)

        discriminant = self._discriminant(r2)
        valid = discriminant > 0
        result = np.full_like(r2, np.nan)
        result[valid] = self.curvature * r2[valid] / (1.0 + np.sqrt(discriminant[valid]))
        return result

    def _dsag_dr(self, r: np.ndarray) -> np.ndarray:
        # dz/dr = cr / sqrt(1 - (1+k)c²r²)
        r = np.asarray(r, dtype=np.float64)
        if self.is_flat:
            return np.zeros_like(r)

        discriminant = self._discriminant(r**2)
        valid = discriminant > 0
        result = np.full_like(r, np.nan)
        result[valid] = self.curvature * r[valid] / np.sqrt(discriminant[valid])
        return result

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"R={self.radius:.4f}, "
            f"k={self.conic:.4f} [{self.conic_type}], "
            f"aperture={self.aperture:.4f})"
        )


class AsphereSurface(ConicSurface):
    """
    Conic surface with even polynomial deformation.

    Sag equation:
        z(r) = c*r² / (1 + sqrt(1 - (1+k)*c²*r²)) + Σ A_{2i} * r^{2i}
    """

    def __init__(
        self,
        radius: float = np.inf,
        aperture: float = 1.0,
        conic: float = 0.0,
        asph_coeffs: Optional[Dict[int, float]] = None
    ):
        super().__init__(radius, aperture, conic)
        self.asph_coeffs = asph_coeffs or {}

        for power in self.asph_coeffs:
            if not isinstance(power, int) or power < 4 or power % 2 != 0:
                raise ValueError(f"Aspheric power must be even integer >= 4, got {power}")

    @property
    def is_flat(self) -> bool:
        return super().is_flat and not self.asph_coeffs

    def sag_array(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r2 = x**2 + y**2
        conic_sag = np.zeros_like(r2) if super().is_flat else super().sag_array(x, y)

        asph = np.zeros_like(r2)
        for power, coeff in self.asph_coeffs.items():
            asph += coeff * r2 ** (power // 2)
        return conic_sag + asph

    def _dsag_dr(self, r: np.ndarray) -> np.ndarray:
        r = np.asarray(r, dtype=np.float64)
        conic_slope = np.zeros_like(r) if super().is_flat else super()._dsag_dr(r)

        # d/dr [A * r^p] = p * A * r^(p-1)
        asph_slope = np.zeros_like(r)
        for power, coeff in self.asph_coeffs.items():
            asph_slope += power * coeff * r ** (power - 1)
        return conic_slope + asph_slope

    def __repr__(self) -> str:
        asph_str = ", ".join(f"A{k}={v:.2e}" for k, v in sorted(self.asph_coeffs.items()))
        return (
            f"{self.__class__.__name__}("
            f"R={self.radius:.4f}, "
            f"k={self.conic:.4f}, "
            f"{asph_str}, "
            f"aperture={self.aperture:.4f})"
        )


def sample_surface(surface: Surface, samples: int = 256) -> Geometry:
    """
    Sample a surface on a square grid clipped to its aperture.

    Positions are divided by the aperture so the lens spans [-1, 1] in x
    and y, which is the range the nominal output frame is scaled for.
    Grid points where the surface is undefined are dropped.

    Parameters
    ----------
    surface : Surface
        Surface to sample
    samples : int, optional
        Grid points per axis (default: 256)

    Returns
    -------
    Geometry
        Index-aligned (positions, normals)
    """
    if samples < 1:
        raise ValueError(f"samples must be at least 1, got {samples}")

    if samples == 1:
        axis = np.zeros(1)
    else:
        axis = np.linspace(-surface.aperture, surface.aperture, samples)
    x, y = np.meshgrid(axis, axis)
    x = x.ravel()
    y = y.ravel()

    z = surface.sag_array(x, y)
    normals = surface.normal_array(x, y)
    keep = (
        surface.is_inside_aperture(x, y)
        & np.isfinite(z)
        & np.all(np.isfinite(normals), axis=1)
    )

    positions = np.column_stack([x[keep], y[keep], z[keep]]) / surface.aperture
    logger.debug(f"Sampled {int(keep.sum())} of {x.size} grid points on {surface!r}")
    return Geometry(as_readonly(positions, 3), as_readonly(normals[keep], 3))


def create_spherical_surface(radius: float, aperture: float = 1.0) -> ConicSurface:
    """Create a spherical surface (conic constant 0)."""
    return ConicSurface(radius=radius, aperture=aperture, conic=0.0)
