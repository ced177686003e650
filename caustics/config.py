"""
config.py - Defaults and run configuration

Exports:
    DEFAULT_ETA (float): Index ratio of the lens material the bundled
        geometries were designed for.
    DEFAULT_DISTANCE_STEP (float): Plane distance change per adjustment.
    CausticConfig: Everything needed to start a session.
"""

import math
import os
from dataclasses import dataclass
from typing import Iterable, Union

DEFAULT_ETA: float = 1.457
DEFAULT_DISTANCE_STEP: float = 0.1


@dataclass
class CausticConfig:
    """
    Session configuration.

    Attributes
    ----------
    source : str, os.PathLike or iterable of str
        Geometry source passed to load_geometry
    plane_distance : float
        Initial z coordinate of the receiver plane
    eta : float
        Refractive index ratio (leaving / entering)
    step : float
        Distance change applied by one increase/decrease event
    """
    source: Union[str, os.PathLike, Iterable[str]]
    plane_distance: float
    eta: float = DEFAULT_ETA
    step: float = DEFAULT_DISTANCE_STEP

    def validate(self) -> None:
        """
        Check numeric fields.

        Raises
        ------
        ValueError
            If the distance is not finite, or eta/step are not positive
            finite numbers
        """
        if not math.isfinite(self.plane_distance):
            raise ValueError(f"Plane distance must be finite, got {self.plane_distance}")
        if not math.isfinite(self.eta) or self.eta <= 0.0:
            raise ValueError(f"eta must be a positive finite number, got {self.eta}")
        if not math.isfinite(self.step) or self.step <= 0.0:
            raise ValueError(f"step must be a positive finite number, got {self.step}")
