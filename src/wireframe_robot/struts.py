"""
Cylindrical Struts and their End-Cut Planes.

A strut is a wireframe line turned into a round bar of a given diameter.
The start of the line sits at the strut's owner node; the cut plane at that
end is derived from the line's frame and then expressed in the node's local
frame, where the robot path is generated.
"""

import logging
import random
from typing import Optional

import cadquery as cq

from .alignment import (
    AXIS_TOLERANCE,
    MARCHING_MAX_ITERATIONS,
    MARCHING_MAX_STEP_DEG,
    MARCHING_MIN_STEP_DEG,
    AlignmentResult,
    align_plane_closed_form,
    march_alignment,
)
from .errors import InvalidGeometryError, StrutDisposedError, StrutIdError
from .geometry import (
    Point3D,
    Vector3D,
    POINT_TOLERANCE,
    WORLD_X,
    WORLD_Y,
    angle_between_deg,
    norm,
    perpendicular_basis,
    reverse,
    to_point,
    to_vector,
)
from .hashing import spatial_hash
from .lines import line_endpoints, line_length
from .nodes import Node

log = logging.getLogger(__name__)

HOLDER_EXCLUSION_ANGLE_DEG = 30.0

# Slack on the exclusion limit so a cut exactly at the limit is not
# excluded because of acos() rounding.
_ANGLE_EPS_DEG = 1e-9


class Strut:
    """
    A round strut along a wireframe line, owned by the node at its start.

    The swept solid is built once at construction and cached. Cut planes are
    recomputed on every access because the owner node may change.

    Args:
        line: Line edge; its start point lies at the owner node
        diameter: Strut diameter in mm
        owner_node: Node this strut end belongs to (not owned by the strut)
        owns_edge: Whether dispose() should also release ``line``
        tolerance: Minimum valid line length / point tolerance
    """

    def __init__(
        self,
        line: cq.Edge,
        diameter: float,
        owner_node: Node,
        owns_edge: bool = False,
        tolerance: float = POINT_TOLERANCE
    ):
        if diameter is None or not diameter > 0:
            raise InvalidGeometryError(f"Strut diameter must be positive, got {diameter}")
        if line_length(line) <= tolerance:
            raise InvalidGeometryError(
                f"Strut line is degenerate: {line_endpoints(line)}"
            )
        if norm(to_point(line.tangentAt(0))) < 1e-12:
            raise InvalidGeometryError("Strut line has no tangent at its start")

        self._line: Optional[cq.Edge] = line
        self.owner_node = owner_node
        self.diameter = float(diameter)  # mm
        self.owns_edge = owns_edge
        self.tolerance = tolerance
        self._id: Optional[str] = None
        self._disposed = False

        self._geometry: Optional[cq.Solid] = self._sweep()

    def __repr__(self) -> str:
        return f"Strut(id={self._id!r}, diameter={self.diameter}, node={self.owner_node.index})"

    def __enter__(self) -> "Strut":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    # -------------------------------------------------------------------------
    # identity
    # -------------------------------------------------------------------------

    @property
    def id(self) -> Optional[str]:
        return self._id

    def set_id(self, value: str) -> None:
        """Assign the topology id. Ids can only be set once."""
        if self._id is not None:
            raise StrutIdError(f"Strut id already set to {self._id!r}")
        self._id = value

    def spatial_hash(self, tolerance: Optional[float] = None) -> int:
        """Hash of the line endpoints that ignores line direction."""
        start, end = line_endpoints(self.line)
        return spatial_hash(start, end, self.tolerance if tolerance is None else tolerance)

    # -------------------------------------------------------------------------
    # geometry
    # -------------------------------------------------------------------------

    @property
    def line(self) -> cq.Edge:
        self._require_alive()
        return self._line

    @property
    def strut_geometry(self) -> cq.Solid:
        self._require_alive()
        return self._geometry

    @property
    def geometry_to_label(self) -> cq.Solid:
        return self.strut_geometry

    @property
    def start_point(self) -> Point3D:
        return to_point(self.line.startPoint())

    @property
    def end_point(self) -> Point3D:
        return to_point(self.line.endPoint())

    @property
    def length(self) -> float:
        return line_length(self.line)

    def _sweep(self) -> cq.Solid:
        # A circle swept along a straight line is a cylinder on the start plane.
        start = self._line.positionAt(0)
        tangent = self._line.tangentAt(0)
        return cq.Solid.makeCylinder(
            self.diameter / 2.0, line_length(self._line), pnt=start, dir=tangent
        )

    def coordinate_system_at_start(self) -> cq.Plane:
        """
        Frame of the line at parameter 0.

        Y is the line tangent, Z the binormal (world up projected
        perpendicular to the tangent, world X when the line is vertical) and
        X = Y x Z.
        """
        origin = self.line.positionAt(0)
        tangent = to_point(self.line.tangentAt(0))
        x_axis, z_axis = perpendicular_basis(tangent)
        return cq.Plane(origin=origin, xDir=to_vector(x_axis), normal=to_vector(z_axis))

    @property
    def cut_plane(self) -> cq.Plane:
        """
        Cut plane at the start of the line, in world space.

        The normal is the reversed frame Y axis so it points toward the node;
        the plane X axis is the frame Z axis.
        """
        cs = self.coordinate_system_at_start()
        return cq.Plane(origin=cs.origin, xDir=cs.zDir, normal=to_vector(reverse(to_point(cs.yDir))))

    @property
    def transformed_cut_plane(self) -> cq.Plane:
        """The cut plane expressed in the owner node's local frame."""
        return self.owner_node.to_local(self.cut_plane)

    def transformed_and_aligned_cut_plane(self, align_to: Vector3D = WORLD_X) -> cq.Plane:
        """
        Transformed cut plane rotated so its X axis aligns with ``align_to``.

        Closed-form rotation; it does not work in all cases. Prefer
        transformed_and_aligned_cut_plane_using_marching().
        """
        return align_plane_closed_form(self.transformed_cut_plane, align_to)

    def align_cut_plane(
        self,
        align_to: Vector3D = WORLD_X,
        secondary_axis: Vector3D = WORLD_Y,
        axis_tolerance: float = AXIS_TOLERANCE,
        min_step_deg: float = MARCHING_MIN_STEP_DEG,
        max_step_deg: float = MARCHING_MAX_STEP_DEG,
        max_iterations: int = MARCHING_MAX_ITERATIONS,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None
    ) -> AlignmentResult:
        """
        Align the transformed cut plane to ``align_to`` by rotation marching.

        Pass either ``rng`` or ``seed`` for reproducible results, not both.
        """
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both")
        if rng is None:
            rng = random.Random(seed)
        result = march_alignment(
            self.transformed_cut_plane,
            align_to,
            secondary_axis=secondary_axis,
            axis_tolerance=axis_tolerance,
            min_step_deg=min_step_deg,
            max_step_deg=max_step_deg,
            max_iterations=max_iterations,
            rng=rng,
        )
        if not result.converged:
            log.debug("Strut %s: alignment did not converge", self._id)
        return result

    def transformed_and_aligned_cut_plane_using_marching(
        self,
        align_to: Vector3D = WORLD_X,
        **kwargs
    ) -> cq.Plane:
        """
        Aligned cut plane found by marching.

        Raises:
            AlignmentConvergenceError: the step budget ran out
        """
        return self.align_cut_plane(align_to, **kwargs).plane_or_raise()

    def aligned_coordinate_system(self, align_to: Vector3D = WORLD_X, **kwargs) -> cq.Plane:
        """
        Coordinate system rooted at the marching-aligned cut plane.

        Since the plane is node-local, the coordinate system sits near the
        world origin; useful for visualization and robot targets.
        """
        plane = self.transformed_and_aligned_cut_plane_using_marching(align_to, **kwargs)
        return cq.Plane(origin=plane.origin, xDir=plane.xDir, normal=plane.zDir)

    # -------------------------------------------------------------------------
    # holder check
    # -------------------------------------------------------------------------

    def holder_angle_deg(self) -> float:
        """Angle between the node's holder face normal and the cut plane normal."""
        holder_normal = self.owner_node.holder_normal()
        cut_normal = to_point(self.cut_plane.zDir)
        return angle_between_deg(holder_normal, cut_normal)

    def strut_in_holder_exclusion_zone(self, limit_deg: float = HOLDER_EXCLUSION_ANGLE_DEG) -> bool:
        """
        True when the cut plane normal is more than ``limit_deg`` away from the
        holder face normal.
        """
        return self.holder_angle_deg() > limit_deg + _ANGLE_EPS_DEG

    # -------------------------------------------------------------------------
    # lifetime
    # -------------------------------------------------------------------------

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Release the cached solid, and the line if this strut owns it."""
        if self._disposed:
            return
        self._geometry = None
        if self.owns_edge:
            self._line = None
        self._disposed = True

    def _require_alive(self) -> None:
        if self._disposed:
            raise StrutDisposedError(f"Strut {self._id!r} has been disposed")
