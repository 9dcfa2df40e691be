"""
Node frames and holder faces.

A node is a wireframe junction. It carries an oriented local frame (a
cq.Plane used as a coordinate system) and a holder face, the planar fixture
face through which struts are reached. Struts refer to their node but never
own it.
"""

import logging
from typing import Optional, Sequence

import cadquery as cq

from .errors import InvalidGeometryError
from .geometry import (
    Point3D,
    Vector3D,
    WORLD_Z,
    add,
    norm,
    normalize,
    perpendicular_basis,
    reverse,
    scale,
    sub,
    dot,
    to_point,
    to_vector,
)

log = logging.getLogger(__name__)


class Node:
    """
    A wireframe junction with a local frame and a holder face.

    Args:
        frame: Local coordinate system embedded in world space
        holder_face: Face of the physical holder fixture
        index: Vertex index of the node in its wireframe
    """

    def __init__(self, frame: cq.Plane, holder_face: cq.Face, index: int = 0):
        self.frame = frame
        self.holder_face = holder_face
        self.index = index

    def __repr__(self) -> str:
        return f"Node(index={self.index}, position={self.position})"

    @property
    def position(self) -> Point3D:
        return to_point(self.frame.origin)

    def holder_normal(self) -> Vector3D:
        """Normal of the holder face sampled at its mid parameter."""
        return to_point(self.holder_face.normalAt())

    def to_local(self, plane: cq.Plane) -> cq.Plane:
        """Express a world-space plane in this node's frame (inverse transform)."""
        return _map_plane(plane, self.frame.toLocalCoords)

    def to_world(self, plane: cq.Plane) -> cq.Plane:
        """Express a node-local plane in world space (forward transform)."""
        return _map_plane(plane, self.frame.toWorldCoords)


def _map_plane(plane: cq.Plane, mapping) -> cq.Plane:
    # Directions are mapped as differences of mapped points so the
    # translation part of the transform cancels out.
    origin = mapping(plane.origin)
    x_tip = mapping(plane.origin + plane.xDir)
    z_tip = mapping(plane.origin + plane.zDir)
    return cq.Plane(origin=origin, xDir=x_tip - origin, normal=z_tip - origin)


def create_node(
    position: Point3D,
    normal: Vector3D = WORLD_Z,
    x_dir: Optional[Vector3D] = None,
    holder_size: float = 50.0,
    index: int = 0
) -> Node:
    """
    Create a node whose frame Z axis and holder face normal are ``normal``.

    Args:
        position: Node location
        normal: Holder face normal, also the frame Z axis
        x_dir: Frame X axis; projected perpendicular to ``normal``.
            Defaults to a stable perpendicular of ``normal``.
        holder_size: Side length of the square holder face
        index: Vertex index

    Returns:
        Node instance
    """
    n = normalize(normal)
    if norm(n) == 0:
        raise InvalidGeometryError("Node normal must be non-zero")
    if holder_size <= 0:
        raise InvalidGeometryError("Holder size must be positive")

    if x_dir is None:
        _, x = perpendicular_basis(n)
    else:
        x = normalize(sub(x_dir, scale(n, dot(x_dir, n))))
        if norm(x) == 0:
            raise InvalidGeometryError("Node x_dir must not be parallel to its normal")

    frame = cq.Plane(origin=to_vector(position), xDir=to_vector(x), normal=to_vector(n))
    holder_face = cq.Face.makePlane(holder_size, holder_size,
                                    basePnt=to_vector(position), dir=to_vector(n))
    return Node(frame, holder_face, index)


def orient_node(
    position: Point3D,
    strut_directions: Sequence[Vector3D],
    holder_size: float = 50.0,
    index: int = 0
) -> Node:
    """
    Create a node whose holder faces away from its incident struts.

    The holder normal is the reversed mean of the unit strut directions. When
    the directions cancel out (e.g. two collinear struts) world Z is used.

    Args:
        position: Node location
        strut_directions: Directions from the node toward each connected vertex
        holder_size: Side length of the square holder face
        index: Vertex index
    """
    total = (0.0, 0.0, 0.0)
    for d in strut_directions:
        total = add(total, normalize(d))

    normal = normalize(reverse(total))
    if norm(normal) == 0:
        log.debug("Node %d has balanced struts, using world Z for its holder", index)
        normal = WORLD_Z

    return create_node(position, normal, holder_size=holder_size, index=index)
