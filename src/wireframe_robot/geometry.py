"""
Vector helpers for wireframe geometry.

Pure Python tuple math plus the small set of conversions needed to hand
points and directions to CadQuery.
"""

import math
from typing import Iterable, Tuple

import cadquery as cq

# Type aliases for clarity
Point3D = Tuple[float, float, float]
Vector3D = Tuple[float, float, float]

WORLD_X: Vector3D = (1.0, 0.0, 0.0)
WORLD_Y: Vector3D = (0.0, 1.0, 0.0)
WORLD_Z: Vector3D = (0.0, 0.0, 1.0)

# Default tolerance for approximate point equality, in model units (mm).
POINT_TOLERANCE = 1e-6


# =============================================================================
# VECTOR MATH HELPERS
# =============================================================================

def _vec(values) -> Vector3D:
    x, y, z = values
    return (x, y, z)

def dot(a: Vector3D, b: Vector3D) -> float:
    return sum(p * q for p, q in zip(a, b))

def cross(a: Vector3D, b: Vector3D) -> Vector3D:
    ax, ay, az = a
    bx, by, bz = b
    return (ay * bz - az * by, az * bx - ax * bz, ax * by - ay * bx)

def sub(a: Point3D, b: Point3D) -> Vector3D:
    return _vec(p - q for p, q in zip(a, b))

def add(a: Point3D, b: Vector3D) -> Point3D:
    return _vec(p + q for p, q in zip(a, b))

def scale(a: Vector3D, s: float) -> Vector3D:
    return _vec(c * s for c in a)

def reverse(a: Vector3D) -> Vector3D:
    return scale(a, -1.0)

def norm(a: Vector3D) -> float:
    return math.hypot(*a)

def normalize(a: Vector3D, tol: float = 1e-12) -> Vector3D:
    """Unit vector along ``a``; the zero vector when ``a`` is shorter than ``tol``."""
    length = norm(a)
    if length < tol:
        return (0.0, 0.0, 0.0)
    return scale(a, 1.0 / length)


def angle_between_deg(a: Vector3D, b: Vector3D) -> float:
    """
    Angle between two vectors in degrees, in [0, 180].

    Degenerate (zero-length) inputs give 0.
    """
    na, nb = norm(a), norm(b)
    if na < 1e-12 or nb < 1e-12:
        return 0.0
    c = dot(a, b) / (na * nb)
    c = max(-1.0, min(1.0, c))
    return math.degrees(math.acos(c))


def distance(a: Point3D, b: Point3D) -> float:
    return norm(sub(a, b))


def points_almost_equal(a: Point3D, b: Point3D, tolerance: float = POINT_TOLERANCE) -> bool:
    """True when two points are within ``tolerance`` of each other."""
    return distance(a, b) <= tolerance


def is_parallel(a: Vector3D, b: Vector3D, tolerance: float = 1e-9) -> bool:
    """True when two non-zero vectors are parallel or anti-parallel."""
    return norm(cross(normalize(a), normalize(b))) <= tolerance


def perpendicular_basis(direction: Vector3D, up: Vector3D = WORLD_Z) -> Tuple[Vector3D, Vector3D]:
    """
    Choose a stable pair of unit axes perpendicular to a direction.

    The second axis is ``up`` projected onto the plane perpendicular to
    ``direction``; when ``direction`` is nearly parallel to ``up`` the world
    X axis is used instead.

    Args:
        direction: Non-zero direction vector
        up: Preferred up vector

    Returns:
        Tuple (side, up_projected), both unit vectors, such that
        (side, direction, up_projected) is a right-handed frame.
    """
    d = normalize(direction)
    ref = up
    if abs(dot(d, normalize(up))) > 0.9:
        ref = WORLD_X if abs(d[0]) < 0.9 else WORLD_Y

    binormal = normalize(sub(ref, scale(d, dot(ref, d))))
    side = normalize(cross(d, binormal))
    return side, binormal


# =============================================================================
# CADQUERY CONVERSIONS
# =============================================================================

def to_point(v) -> Point3D:
    """Convert a cq.Vector (or any 3-sequence) into a float tuple."""
    if isinstance(v, cq.Vector):
        return (v.x, v.y, v.z)
    x, y, z = v
    return (float(x), float(y), float(z))


def to_vector(p: Iterable[float]) -> cq.Vector:
    if isinstance(p, cq.Vector):
        return p
    x, y, z = p
    return cq.Vector(float(x), float(y), float(z))

