"""
Spatial hashing and vertex welding for wireframe endpoints.

Coordinates are quantised onto a grid whose pitch is the point tolerance, so
the hash of a point depends only on numbers, never on how a float happens to
be formatted as text.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np
from scipy.spatial import cKDTree

from .geometry import Point3D, POINT_TOLERANCE

log = logging.getLogger(__name__)


def quantize_point(point: Point3D, tolerance: float = POINT_TOLERANCE) -> Tuple[int, int, int]:
    """Snap a point onto the tolerance grid and return integer grid coordinates."""
    grid = np.rint(np.asarray(point, dtype=float) / tolerance)
    # int() turns -0.0 into 0 so mirrored zeros hash the same
    return (int(grid[0]), int(grid[1]), int(grid[2]))


def point_hash(point: Point3D, tolerance: float = POINT_TOLERANCE) -> int:
    """
    Stable hash of a point's quantised coordinates.

    Integer tuple hashing does not depend on PYTHONHASHSEED, so the value is
    reproducible between runs.
    """
    return hash(quantize_point(point, tolerance))


def spatial_hash(start: Point3D, end: Point3D, tolerance: float = POINT_TOLERANCE) -> int:
    """
    Order-independent hash of a line's endpoints.

    XOR is symmetric, so spatial_hash(a, b) == spatial_hash(b, a). This is a
    grouping key, not a unique identifier and not an equality test: two
    points within tolerance that fall on either side of a grid-cell boundary
    get different hashes. Use lines.same_line() to decide equality.
    """
    return point_hash(start, tolerance) ^ point_hash(end, tolerance)


def weld_points(points: Sequence[Point3D],
                tolerance: float = POINT_TOLERANCE) -> Tuple[List[Point3D], List[int]]:
    """
    Merge points that lie within tolerance of each other.

    Points are visited in input order; the first point of each cluster
    becomes the vertex position.

    Args:
        points: Input points (e.g. all line endpoints)
        tolerance: Merge distance

    Returns:
        Tuple of (vertices, vertex index for each input point)
    """
    if len(points) == 0:
        return [], []

    coords = np.asarray(points, dtype=float)
    tree = cKDTree(coords)

    vertex_of = [-1] * len(coords)
    vertices: List[Point3D] = []

    for i, p in enumerate(coords):
        if vertex_of[i] != -1:
            continue
        vertex_idx = len(vertices)
        vertices.append((float(p[0]), float(p[1]), float(p[2])))
        for j in tree.query_ball_point(p, tolerance):
            if vertex_of[j] == -1:
                vertex_of[j] = vertex_idx

    log.debug("Welded %d points into %d vertices", len(coords), len(vertices))
    return vertices, vertex_of
