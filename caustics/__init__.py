"""
caustics - A discrete caustic simulator in Python

Rays of a collimated beam are refracted at sampled points of a lens
surface and intersected with a receiver plane whose distance can be
changed interactively.

Pipeline:
    load_geometry -> compute_refractions -> compute_intersections
"""

from .geometry import Geometry, load_geometry, parse_obj_lines, write_obj
from .refraction import compute_refractions, refract_direction, normalize
from .refraction import INCIDENT_DIRECTION, TIR_DIRECTION
from .projection import compute_intersections, in_frame_mask
from .projection import DEGENERATE_SENTINEL, NOMINAL_FRAME_SIZE
from .pipeline import CausticSession, parse_distance
from .config import CausticConfig, DEFAULT_ETA, DEFAULT_DISTANCE_STEP
from .surfaces import Surface, ConicSurface, AsphereSurface
from .surfaces import sample_surface, create_spherical_surface
from .exceptions import (
    CausticsError,
    GeometryError,
    SourceUnreadableError,
    EmptyGeometryError,
    InvalidDistanceError,
)

__version__ = "0.1.0"

__all__ = [
    # Geometry
    "Geometry",
    "load_geometry",
    "parse_obj_lines",
    "write_obj",
    # Refraction
    "compute_refractions",
    "refract_direction",
    "normalize",
    "INCIDENT_DIRECTION",
    "TIR_DIRECTION",
    # Projection
    "compute_intersections",
    "in_frame_mask",
    "DEGENERATE_SENTINEL",
    "NOMINAL_FRAME_SIZE",
    # Session
    "CausticSession",
    "CausticConfig",
    "parse_distance",
    "DEFAULT_ETA",
    "DEFAULT_DISTANCE_STEP",
    # Surfaces
    "Surface",
    "ConicSurface",
    "AsphereSurface",
    "sample_surface",
    "create_spherical_surface",
    # Errors
    "CausticsError",
    "GeometryError",
    "SourceUnreadableError",
    "EmptyGeometryError",
    "InvalidDistanceError",
]
