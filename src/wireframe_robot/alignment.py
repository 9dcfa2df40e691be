"""
Cut-Plane Alignment.

Rotates a cut plane about its own normal so its in-plane X axis points along
a guide direction, which keeps the robot end-effector within reach.

Two methods are provided:
- a closed-form rotation by -acos(x . guide), which is fast but does not
  hold up near collinearity and does not control the X axis' component
  along the node's secondary axis;
- "marching", a randomized local search that keeps rotating the plane by
  small random steps until the X axis is (a) nearly perpendicular to the
  secondary axis and (b) not facing away from the guide.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Optional

import cadquery as cq

from .errors import AlignmentConvergenceError, InvalidGeometryError
from .geometry import (
    Vector3D,
    WORLD_Y,
    dot,
    is_parallel,
    norm,
    normalize,
    to_point,
)

log = logging.getLogger(__name__)

# Rotation step range for marching, in degrees
MARCHING_MIN_STEP_DEG = 0.0001
MARCHING_MAX_STEP_DEG = 5.0
MARCHING_MAX_ITERATIONS = 10000
AXIS_TOLERANCE = 0.01


@dataclass
class AlignmentResult:
    """
    Outcome of a marching alignment.

    Attributes:
        plane: Aligned plane when converged, otherwise the last plane visited
            (the unrotated plane when the guide was rejected)
        converged: Whether both alignment conditions hold for ``plane``
        iterations: Number of rotation steps taken
        error: Why the alignment could not be attempted, e.g. a guide
            parallel to the plane normal
    """
    plane: cq.Plane
    converged: bool
    iterations: int
    error: Optional[str] = None

    def plane_or_raise(self) -> cq.Plane:
        if self.error is not None:
            raise InvalidGeometryError(self.error)
        if not self.converged:
            raise AlignmentConvergenceError(
                f"Cut plane alignment did not converge after {self.iterations} steps",
                plane=self.plane,
                iterations=self.iterations,
            )
        return self.plane


def validate_guide(guide: Vector3D, normal: Vector3D) -> Vector3D:
    """
    Check that a guide vector can be aligned to within a plane.

    Args:
        guide: Guide direction
        normal: Normal of the plane to be rotated

    Returns:
        The normalized guide

    Raises:
        InvalidGeometryError: guide is zero or parallel to the normal
    """
    if norm(guide) < 1e-12:
        raise InvalidGeometryError("Guide vector must be non-zero")
    if is_parallel(guide, normal):
        raise InvalidGeometryError(
            f"Guide vector {tuple(guide)} is parallel to the plane normal {tuple(normal)}"
        )
    return normalize(guide)


def rotate_about_normal(plane: cq.Plane, angle_deg: float) -> cq.Plane:
    """Rotate a plane about its own origin and normal."""
    return plane.rotated((0, 0, angle_deg))


def align_plane_closed_form(plane: cq.Plane, guide: Vector3D) -> cq.Plane:
    """
    Rotate a plane by the angle between its X axis and the guide.

    The sign of acos() is not resolved, so the result is only aligned when
    the required rotation happens to be clockwise.
    """
    g = validate_guide(guide, to_point(plane.zDir))
    c = max(-1.0, min(1.0, dot(to_point(plane.xDir), g)))
    angle = -math.acos(c) * 180.0 / math.pi
    return rotate_about_normal(plane, angle)


def is_aligned(
    plane: cq.Plane,
    guide: Vector3D,
    secondary_axis: Vector3D = WORLD_Y,
    axis_tolerance: float = AXIS_TOLERANCE
) -> bool:
    """True when the plane's X axis satisfies both marching conditions."""
    x_axis = to_point(plane.xDir)
    secondary = normalize(secondary_axis)
    return abs(dot(x_axis, secondary)) <= axis_tolerance and dot(guide, x_axis) >= 0


def march_alignment(
    plane: cq.Plane,
    guide: Vector3D,
    secondary_axis: Vector3D = WORLD_Y,
    axis_tolerance: float = AXIS_TOLERANCE,
    min_step_deg: float = MARCHING_MIN_STEP_DEG,
    max_step_deg: float = MARCHING_MAX_STEP_DEG,
    max_iterations: int = MARCHING_MAX_ITERATIONS,
    rng: Optional[random.Random] = None
) -> AlignmentResult:
    """
    Find a rotation of ``plane`` about its normal by random marching.

    Each step rotates the current plane by an angle drawn uniformly from
    [min_step_deg, max_step_deg] and replaces it with the rotated one, until
    |x . secondary_axis| <= axis_tolerance and guide . x >= 0, or until
    max_iterations steps have been taken.

    Args:
        plane: Starting plane (node-local coordinates)
        guide: Direction the X axis should not face away from
        secondary_axis: Axis whose component of X must vanish
        axis_tolerance: Allowed |x . secondary_axis|
        min_step_deg: Smallest rotation step
        max_step_deg: Largest rotation step
        max_iterations: Step budget
        rng: Random source; an unseeded one is created when omitted

    Returns:
        AlignmentResult; ``converged`` is False when the budget ran out
    """
    g = validate_guide(guide, to_point(plane.zDir))
    if norm(secondary_axis) < 1e-12:
        raise InvalidGeometryError("Secondary axis must be non-zero")
    if not 0 < min_step_deg <= max_step_deg:
        raise InvalidGeometryError("Marching step range must satisfy 0 < min <= max")
    if max_iterations < 0:
        raise InvalidGeometryError("max_iterations must not be negative")

    if rng is None:
        rng = random.Random()

    current = plane
    iterations = 0
    while not is_aligned(current, g, secondary_axis, axis_tolerance):
        if iterations >= max_iterations:
            log.debug("Marching gave up after %d steps", iterations)
            return AlignmentResult(current, False, iterations)
        angle = rng.uniform(min_step_deg, max_step_deg)
        current = rotate_about_normal(current, angle)
        iterations += 1

    log.debug("Marching converged after %d steps", iterations)
    return AlignmentResult(current, True, iterations)
