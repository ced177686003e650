"""
cli.py - Command-line host for the caustic pipeline

Commands:
    run       Load a lens OBJ, project it onto the receiver plane and
              optionally step the plane interactively from stdin
    generate  Write a synthetic lens surface as an OBJ file

Interactive keys (one per line on stdin):
    w  move the receiver plane away from the lens by one step
    s  move the receiver plane toward the lens by one step
    q  print the current lens-to-wall distance
    x  quit (end of input also quits)

Project: Caustic Simulator
"""

import argparse
import logging
import sys
from typing import List, Optional, TextIO

import numpy as np

from .config import CausticConfig, DEFAULT_DISTANCE_STEP, DEFAULT_ETA
from .exceptions import EmptyGeometryError, InvalidDistanceError, SourceUnreadableError
from .geometry import write_obj
from .logging_config import setup_logging
from .pipeline import CausticSession, parse_distance
from .projection import NOMINAL_FRAME_SIZE
from .surfaces import ConicSurface, sample_surface

logger = logging.getLogger(__name__)


def to_display(points: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Map nominal-frame points to pixel coordinates of a width x height canvas.

    Parameters
    ----------
    points : np.ndarray
        Points in the nominal [0, 256] x [0, 256] frame, shape (n, 2)
    width : int
        Canvas width in pixels
    height : int
        Canvas height in pixels

    Returns
    -------
    np.ndarray
        Pixel coordinates, shape (n, 2)
    """
    scale = np.array([width, height], dtype=np.float64) / NOMINAL_FRAME_SIZE
    return np.asarray(points, dtype=np.float64).reshape(-1, 2) * scale


def _save_points(
    session: CausticSession,
    output: Optional[str],
    display_size: Optional[List[int]] = None
) -> None:
    if not output:
        return
    points = session.projected
    frame = "nominal frame"
    if display_size:
        points = to_display(points, *display_size)
        frame = f"{display_size[0]}x{display_size[1]} pixels"
    np.savetxt(
        output,
        points,
        fmt="%.6f",
        header=f"x y ({frame}, plane z={session.distance:.6f})"
    )
    logger.debug(f"Saved {len(session.projected)} points to {output}")


def _print_summary(session: CausticSession, stream: TextIO) -> None:
    summary = session.summary()
    print(
        f"[INFO] distance={summary['distance']:.4f} eta={summary['eta']:.4f} "
        f"samples={summary['samples']} in_frame={summary['in_frame']} "
        f"degenerate={summary['degenerate']} "
        f"tir={summary['total_internal_reflections']}",
        file=stream
    )


def interact(
    session: CausticSession,
    commands: TextIO,
    stream: TextIO,
    output: Optional[str] = None,
    display_size: Optional[List[int]] = None
) -> int:
    """
    Drive a session from line-based key commands until 'x' or end of input.

    Parameters
    ----------
    session : CausticSession
        Session to drive
    commands : TextIO
        Source of commands, one per line
    stream : TextIO
        Destination of status messages
    output : str, optional
        File rewritten with the projected points after every move
    display_size : list of int, optional
        Canvas (width, height) the saved points are mapped to

    Returns
    -------
    int
        0 when input ends or 'x' is read, 1 if the points file cannot be written
    """
    for line in commands:
        key = line.strip().lower()
        if key == "w":
            session.increase_distance()
        elif key == "s":
            session.decrease_distance()
        elif key == "q":
            print(f"[INFO] Current lens-to-wall distance: {session.distance:.4f}", file=stream)
            continue
        elif key in ("x", "escape"):
            break
        else:
            if key:
                logger.debug(f"Ignoring unknown command {key!r}")
            continue

        try:
            _save_points(session, output, display_size)
        except OSError as exc:
            print(f"Error: Could not write points to {output} ({exc})", file=sys.stderr)
            return 1
        _print_summary(session, stream)
    return 0


def _run(args: argparse.Namespace) -> int:
    try:
        distance = parse_distance(args.distance)
    except InvalidDistanceError as exc:
        print(f"Error parsing distance argument: {exc}", file=sys.stderr)
        return 1

    config = CausticConfig(
        source=args.lens,
        plane_distance=distance,
        eta=args.eta,
        step=args.step
    )
    try:
        session = CausticSession.from_config(config)
    except SourceUnreadableError as exc:
        print(f"Error: Could not open OBJ file: {args.lens} ({exc.message})", file=sys.stderr)
        return 1
    except EmptyGeometryError as exc:
        print(f"Error: No geometry or normals found in {args.lens} ({exc.message})", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        _save_points(session, args.output, args.display_size)
    except OSError as exc:
        print(f"Error: Could not write points to {args.output} ({exc})", file=sys.stderr)
        return 1
    _print_summary(session, sys.stdout)

    if args.interactive:
        return interact(session, sys.stdin, sys.stdout, args.output, args.display_size)
    return 0


def _generate(args: argparse.Namespace) -> int:
    try:
        surface = ConicSurface(
            radius=args.radius,
            aperture=args.aperture,
            conic=args.conic
        )
        geometry = sample_surface(surface, args.samples)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        write_obj(args.output, geometry.positions, geometry.normals, comment=repr(surface))
    except OSError as exc:
        print(f"Error: Could not write OBJ file: {args.output} ({exc})", file=sys.stderr)
        return 1
    print(f"[INFO] Wrote {geometry.sample_count} samples to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the caustics command."""
    parser = argparse.ArgumentParser(
        prog="caustics",
        description="Discrete caustic simulator: project refracted lens rays onto a receiver plane"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", default=None, help="Also write log records to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Project a lens OBJ onto the receiver plane")
    run.add_argument("lens", help="Path to an OBJ file containing lens positions and normals")
    # Parsed by parse_distance so the error is reported the same way as interactive input
    run.add_argument("distance", help="Initial distance between the lens and the receiver plane (z of the plane)")
    run.add_argument("--eta", type=float, default=DEFAULT_ETA, help=f"Refractive index ratio (default: {DEFAULT_ETA})")
    run.add_argument("--step", type=float, default=DEFAULT_DISTANCE_STEP, help=f"Distance change per w/s command (default: {DEFAULT_DISTANCE_STEP})")
    run.add_argument("--output", default=None, help="Write projected points to this text file")
    run.add_argument(
        "--display-size", type=int, nargs=2, metavar=("WIDTH", "HEIGHT"), default=None,
        help="Save points in pixel coordinates of a WIDTH x HEIGHT canvas instead of the nominal frame"
    )
    run.add_argument("--interactive", action="store_true", help="Read w/s/q/x commands from stdin")
    run.set_defaults(handler=_run)

    generate = subparsers.add_parser("generate", help="Write a synthetic lens surface as OBJ")
    generate.add_argument("output", help="Destination OBJ file")
    generate.add_argument("--radius", type=float, default=2.0, help="Radius of curvature (default: 2.0)")
    generate.add_argument("--conic", type=float, default=0.0, help="Conic constant (default: 0, sphere)")
    generate.add_argument("--aperture", type=float, default=1.0, help="Semi-diameter (default: 1.0)")
    generate.add_argument("--samples", type=int, default=256, help="Grid points per axis (default: 256)")
    generate.set_defaults(handler=_generate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING, args.log_file)
    return args.handler(args)
