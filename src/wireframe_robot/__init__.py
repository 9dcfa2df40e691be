"""
Wireframe Robot - node-strut assemblies for robotic fabrication

Turns a 3D wireframe into cylindrical struts and oriented nodes using
CadQuery, and computes the strut end-cut planes a robot needs to reach and
finish each strut.
"""

from .geometry import (
    Point3D,
    Vector3D,
    POINT_TOLERANCE,
)

from .errors import (
    WireframeError,
    InvalidGeometryError,
    AlignmentConvergenceError,
    StrutDisposedError,
    StrutIdError,
)

from .parameters import (
    WireframeParameters,
    load_parameters,
)

from .lines import (
    make_line,
    same_line,
    prune_duplicates,
    lines_from_points,
)

from .hashing import (
    spatial_hash,
    weld_points,
)

from .nodes import (
    Node,
    create_node,
    orient_node,
)

from .alignment import (
    AlignmentResult,
    align_plane_closed_form,
    march_alignment,
)

from .struts import Strut

from .assembly import (
    WireframeAssembly,
    build_assembly,
    build_assembly_from_points,
)

__version__ = "0.1.0"
__all__ = [
    # Types
    "Point3D",
    "Vector3D",
    "POINT_TOLERANCE",
    # Errors
    "WireframeError",
    "InvalidGeometryError",
    "AlignmentConvergenceError",
    "StrutDisposedError",
    "StrutIdError",
    # Configuration
    "WireframeParameters",
    "load_parameters",
    # Line functions
    "make_line",
    "same_line",
    "prune_duplicates",
    "lines_from_points",
    # Hashing
    "spatial_hash",
    "weld_points",
    # Nodes
    "Node",
    "create_node",
    "orient_node",
    # Alignment
    "AlignmentResult",
    "align_plane_closed_form",
    "march_alignment",
    # Struts
    "Strut",
    # Assembly
    "WireframeAssembly",
    "build_assembly",
    "build_assembly_from_points",
]
