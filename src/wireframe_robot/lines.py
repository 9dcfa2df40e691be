"""
Wireframe line handling and duplicate pruning.

Wireframe edges are CadQuery line edges. Two edges are the same line when
their endpoints match within a tolerance, in either orientation.
"""

import logging
from typing import Iterable, List, Tuple

import cadquery as cq

from .errors import InvalidGeometryError
from .geometry import (
    Point3D,
    POINT_TOLERANCE,
    distance,
    points_almost_equal,
    to_point,
    to_vector,
)

log = logging.getLogger(__name__)


def make_line(start: Point3D, end: Point3D, tolerance: float = POINT_TOLERANCE) -> cq.Edge:
    """
    Create a line edge between two points.

    Raises:
        InvalidGeometryError: if the endpoints coincide within tolerance
    """
    start = to_point(start)
    end = to_point(end)
    if points_almost_equal(start, end, tolerance):
        raise InvalidGeometryError(f"Zero-length line at {start}")
    return cq.Edge.makeLine(to_vector(start), to_vector(end))


def line_endpoints(line: cq.Edge) -> Tuple[Point3D, Point3D]:
    return to_point(line.startPoint()), to_point(line.endPoint())


def line_length(line: cq.Edge) -> float:
    start, end = line_endpoints(line)
    return distance(start, end)


def is_degenerate(line: cq.Edge, tolerance: float = POINT_TOLERANCE) -> bool:
    return line_length(line) <= tolerance


def same_line(a: cq.Edge, b: cq.Edge, tolerance: float = POINT_TOLERANCE) -> bool:
    """
    Check whether two lines share both endpoints, even if reversed.

    Args:
        a: First line
        b: Second line
        tolerance: Maximum distance for two endpoints to count as equal

    Returns:
        True if the lines connect the same pair of points
    """
    a_start, a_end = line_endpoints(a)
    b_start, b_end = line_endpoints(b)

    same_direction = (points_almost_equal(a_start, b_start, tolerance)
                      and points_almost_equal(a_end, b_end, tolerance))
    if same_direction:
        return True
    return (points_almost_equal(a_end, b_start, tolerance)
            and points_almost_equal(a_start, b_end, tolerance))


def prune_duplicates(lines: Iterable[cq.Edge], tolerance: float = POINT_TOLERANCE) -> List[cq.Edge]:
    """
    Remove duplicate lines, keeping the first occurrence of each.

    Each line is compared against the lines kept so far, so the result keeps
    the input order. Zero-length lines are dropped.

    Args:
        lines: Wireframe lines in input order
        tolerance: Endpoint equality tolerance

    Returns:
        New list of unique lines
    """
    output: List[cq.Edge] = []
    dropped_degenerate = 0

    for line in lines:
        if is_degenerate(line, tolerance):
            dropped_degenerate += 1
            continue
        if any(same_line(line, kept, tolerance) for kept in output):
            continue
        output.append(line)

    if dropped_degenerate:
        log.warning("Dropped %d zero-length line(s)", dropped_degenerate)
    return output


def lines_from_points(segments: Iterable[Tuple[Point3D, Point3D]],
                      tolerance: float = POINT_TOLERANCE) -> List[cq.Edge]:
    """Build line edges from (start, end) point pairs."""
    return [make_line(start, end, tolerance) for start, end in segments]
