"""
exceptions.py - Exception types raised by the caustic pipeline

Only conditions the caller has to act on are raised. Malformed records,
length mismatches and degenerate rays are recovered inside the pipeline
and reported through logging instead.

Project: Caustic Simulator
"""

import os
from typing import Optional, Union


class CausticsError(Exception):
    """Base class for all errors raised by the caustics package."""


class GeometryError(CausticsError):
    """
    Lens geometry could not be produced from a source.

    Attributes
    ----------
    message : str
        Error description
    source : str or None
        Path or description of the geometry source
    """

    def __init__(self, message: str, source: Optional[Union[str, os.PathLike]] = None):
        self.message = message
        self.source = None if source is None else str(source)

        full_message = message
        if self.source:
            full_message = f"{self.source}: {full_message}"

        super().__init__(full_message)


class SourceUnreadableError(GeometryError):
    """The geometry source could not be opened or read."""


class EmptyGeometryError(GeometryError):
    """
    The source was read but yielded no positions or no normals.

    Attributes
    ----------
    num_positions : int
        Number of position records found
    num_normals : int
        Number of normal records found
    """

    def __init__(
        self,
        source: Optional[Union[str, os.PathLike]] = None,
        num_positions: int = 0,
        num_normals: int = 0
    ):
        self.num_positions = num_positions
        self.num_normals = num_normals
        super().__init__(
            f"no geometry or normals found "
            f"({num_positions} positions, {num_normals} normals)",
            source
        )


class InvalidDistanceError(CausticsError, ValueError):
    """
    A plane distance argument is not a finite real number.

    Attributes
    ----------
    value : object
        The rejected input
    """

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"invalid plane distance: {value!r}")


__all__ = [
    'CausticsError',
    'GeometryError',
    'SourceUnreadableError',
    'EmptyGeometryError',
    'InvalidDistanceError',
]
