"""
geometry.py - Lens geometry ingestion from OBJ-style text records

The lens surface is described by two record types:
    - ``v x y z ...``     sampled surface position
    - ``vn nx ny nz ...`` surface normal at the position with the same index

Texture coordinates (``vt``), faces, groups, materials and comments are
ignored. Record order defines the index used to align positions with
normals.

Project: Caustic Simulator
"""

import logging
import math
import os
from typing import Iterable, List, NamedTuple, Optional, Tuple, Union

import numpy as np

from .exceptions import EmptyGeometryError, SourceUnreadableError

logger = logging.getLogger(__name__)

GeometrySource = Union[str, os.PathLike, Iterable[str]]

POSITION_TAG = "v"
NORMAL_TAG = "vn"
TEXTURE_TAG = "vt"


class Geometry(NamedTuple):
    """
    Index-aligned lens samples.

    Attributes
    ----------
    positions : np.ndarray
        Surface positions, shape (n, 3)
    normals : np.ndarray
        Surface normals, shape (m, 3); expected to be unit length
    """
    positions: np.ndarray
    normals: np.ndarray

    @property
    def sample_count(self) -> int:
        """Number of usable (position, normal) pairs."""
        return min(len(self.positions), len(self.normals))

    @property
    def is_aligned(self) -> bool:
        """True when positions and normals have the same length."""
        return len(self.positions) == len(self.normals)


def as_readonly(values: Union[List, np.ndarray], columns: int) -> np.ndarray:
    """
    Build a read-only float64 array of shape (n, columns).

    An empty input yields an empty (0, columns) array.
    """
    array = np.array(values, dtype=np.float64).reshape(-1, columns)
    array.flags.writeable = False
    return array


def _parse_vector(fields: List[str]) -> Optional[Tuple[float, float, float]]:
    """Parse the first three fields as finite reals, or None if malformed."""
    if len(fields) < 3:
        return None
    try:
        vector = tuple(float(field) for field in fields[:3])
    except ValueError:
        return None
    if not all(math.isfinite(component) for component in vector):
        return None
    return vector


def parse_obj_lines(lines: Iterable[str]) -> Geometry:
    """
    Extract positions and normals from OBJ-style text lines.

    Lines are split on single spaces; empty tokens left by repeated
    delimiters are dropped before numeric parsing. Records that carry
    fewer than three fields, or fields that are not finite numbers, are
    skipped.

    Parameters
    ----------
    lines : iterable of str
        Text lines, with or without trailing newlines

    Returns
    -------
    Geometry
        Parsed (positions, normals); either array may be empty
    """
    positions = []
    normals = []
    skipped = 0

    for line_number, line in enumerate(lines, start=1):
        tokens = [token for token in line.rstrip("\r\n").split(" ") if token]
        if not tokens:
            continue

        tag = tokens[0]
        if tag == POSITION_TAG:
            target = positions
        elif tag == NORMAL_TAG:
            target = normals
        else:
            # vt and every other record type are irrelevant here
            continue

        vector = _parse_vector(tokens[1:])
        if vector is None:
            skipped += 1
            logger.debug(f"Skipping malformed '{tag}' record on line {line_number}: {line.strip()!r}")
            continue
        target.append(vector)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed position/normal records.")

    return Geometry(as_readonly(positions, 3), as_readonly(normals, 3))


def load_geometry(source: GeometrySource) -> Geometry:
    """
    Load lens positions and normals from a file path or an iterable of lines.

    Parameters
    ----------
    source : str, os.PathLike or iterable of str
        Path to an OBJ file, or already-open text lines

    Returns
    -------
    Geometry
        Index-aligned (positions, normals)

    Raises
    ------
    SourceUnreadableError
        If the path cannot be opened or decoded
    EmptyGeometryError
        If no positions or no normals were found
    """
    is_path = isinstance(source, (str, os.PathLike))
    label = os.fspath(source) if is_path else getattr(source, "name", "<lines>")

    # Open handles decode lazily, so read errors surface while parsing
    try:
        if is_path:
            with open(source, "r", encoding="utf-8") as handle:
                geometry = parse_obj_lines(handle)
        else:
            geometry = parse_obj_lines(source)
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceUnreadableError(f"could not read geometry source ({exc})", label) from exc

    num_positions = len(geometry.positions)
    num_normals = len(geometry.normals)
    if num_positions == 0 or num_normals == 0:
        raise EmptyGeometryError(label, num_positions, num_normals)

    if not geometry.is_aligned:
        logger.warning(
            f"Mismatch in number of positions ({num_positions}) and normals "
            f"({num_normals}) in {label}; using the first {geometry.sample_count} samples."
        )

    logger.info(f"Loaded {num_positions} positions and {num_normals} normals from {label}")
    return geometry


def write_obj(
    path: Union[str, os.PathLike],
    positions: np.ndarray,
    normals: np.ndarray,
    comment: Optional[str] = None
) -> None:
    """
    Write positions and normals as ``v`` / ``vn`` records.

    Parameters
    ----------
    path : str or os.PathLike
        Output file
    positions : np.ndarray
        Surface positions, shape (n, 3)
    normals : np.ndarray
        Surface normals, shape (n, 3)
    comment : str, optional
        Header written as an OBJ comment line
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    normals = np.asarray(normals, dtype=np.float64).reshape(-1, 3)

    with open(path, "w", encoding="utf-8") as handle:
        if comment:
            handle.write(f"# {comment}\n")
        for x, y, z in positions:
            handle.write(f"{POSITION_TAG} {x:.9g} {y:.9g} {z:.9g}\n")
        for nx, ny, nz in normals:
            handle.write(f"{NORMAL_TAG} {nx:.9g} {ny:.9g} {nz:.9g}\n")

    logger.info(f"Wrote {len(positions)} positions and {len(normals)} normals to {os.fspath(path)}")
