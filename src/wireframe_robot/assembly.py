"""
Wireframe to Node-Strut Assembly.

Runs the full pipeline: prune duplicate lines, weld line endpoints into
vertices, build an oriented node per vertex and one strut per line, owned by
the node at the line's start.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import cadquery as cq

from .alignment import AlignmentResult
from .errors import InvalidGeometryError
from .geometry import Point3D, Vector3D, normalize, sub
from .hashing import weld_points
from .lines import line_endpoints, make_line, prune_duplicates, lines_from_points
from .nodes import Node, orient_node
from .parameters import WireframeParameters
from .struts import Strut

log = logging.getLogger(__name__)

Edge = Tuple[int, int]


@dataclass
class WireframeAssembly:
    """
    Nodes and struts built from a wireframe.

    Attributes:
        lines: Unique input lines, in input order
        vertices: Welded vertex positions
        edges: Vertex index pair for each unique line
        nodes: One node per vertex, same order as ``vertices``
        struts: Struts, in line order
        params: Parameters used to build the assembly
        input_line_count: Number of lines before pruning
    """
    lines: List[cq.Edge]
    vertices: List[Point3D]
    edges: List[Edge]
    nodes: List[Node]
    struts: List[Strut]
    params: WireframeParameters = field(default_factory=WireframeParameters)
    input_line_count: int = 0

    def strut_by_id(self, strut_id: str) -> Strut:
        for strut in self.struts:
            if strut.id == strut_id:
                return strut
        raise KeyError(strut_id)

    def struts_at_node(self, node_index: int) -> List[Strut]:
        return [s for s in self.struts if s.owner_node.index == node_index]

    def exclusion_report(self) -> Dict[str, bool]:
        """Map strut id -> whether the strut is in its holder exclusion zone."""
        limit = self.params.holder_exclusion_angle_deg
        return {s.id: s.strut_in_holder_exclusion_zone(limit) for s in self.struts}

    def align_all(
        self,
        guide: Optional[Vector3D] = None,
        seed: Optional[int] = None
    ) -> Dict[str, AlignmentResult]:
        """
        Run marching alignment for every strut.

        A single random source, seeded from ``seed`` or ``params.seed``, is
        shared by all struts so a seeded run is reproducible. Struts that do
        not converge are logged and reported with ``converged=False``. Struts
        whose cut normal is parallel to the guide are reported the same way,
        with the unrotated plane and the reason in ``error``.
        """
        p = self.params
        guide = p.guide_vector if guide is None else guide
        rng = random.Random(p.seed if seed is None else seed)

        results: Dict[str, AlignmentResult] = {}
        for strut in self.struts:
            try:
                result = strut.align_cut_plane(
                    guide,
                    secondary_axis=p.secondary_axis,
                    axis_tolerance=p.axis_tolerance,
                    min_step_deg=p.marching_min_step_deg,
                    max_step_deg=p.marching_max_step_deg,
                    max_iterations=p.marching_max_iterations,
                    rng=rng,
                )
            except InvalidGeometryError as exc:
                log.warning("Strut %s: cut plane cannot be aligned: %s", strut.id, exc)
                result = AlignmentResult(strut.transformed_cut_plane, False, 0, error=str(exc))
            else:
                if not result.converged:
                    log.warning("Strut %s: cut plane alignment did not converge after %d steps",
                                strut.id, result.iterations)
            results[strut.id] = result
        return results

    def struts_compound(self) -> cq.Compound:
        return cq.Compound.makeCompound([s.strut_geometry for s in self.struts])

    def summary(self) -> Dict:
        excluded = sum(1 for flag in self.exclusion_report().values() if flag)
        return {
            'num_input_lines': self.input_line_count,
            'num_lines': len(self.lines),
            'num_vertices': len(self.vertices),
            'num_nodes': len(self.nodes),
            'num_struts': len(self.struts),
            'num_excluded': excluded,
            'strut_diameter_mm': self.params.strut_diameter_mm,
        }

    def dispose(self) -> None:
        for strut in self.struts:
            strut.dispose()


def build_vertex_to_edges_map(edges: List[Edge]) -> Dict[int, List[int]]:
    """
    Build a mapping from each vertex index to the indices of edges connected to it.

    Args:
        edges: List of edges (vertex index pairs)

    Returns:
        Dict mapping vertex_index -> list of edge_indices
    """
    vertex_to_edges: Dict[int, List[int]] = {}

    for edge_idx, (v1, v2) in enumerate(edges):
        vertex_to_edges.setdefault(v1, []).append(edge_idx)
        vertex_to_edges.setdefault(v2, []).append(edge_idx)

    return vertex_to_edges


def build_nodes(
    vertices: List[Point3D],
    edges: List[Edge],
    holder_size: float
) -> List[Node]:
    """Create one oriented node per vertex from its incident edge directions."""
    vertex_to_edges = build_vertex_to_edges_map(edges)

    nodes = []
    for v_idx, vertex in enumerate(vertices):
        directions = []
        for edge_idx in vertex_to_edges.get(v_idx, []):
            v1, v2 = edges[edge_idx]
            other = vertices[v2 if v1 == v_idx else v1]
            directions.append(normalize(sub(other, vertex)))
        nodes.append(orient_node(vertex, directions, holder_size, index=v_idx))
    return nodes


def build_assembly(
    lines: Iterable[cq.Edge],
    params: Optional[WireframeParameters] = None
) -> WireframeAssembly:
    """
    Build nodes and struts from wireframe lines.

    Args:
        lines: Wireframe line edges, possibly with duplicates
        params: Pipeline parameters (defaults when omitted)

    Returns:
        WireframeAssembly
    """
    params = params or WireframeParameters()
    params.validate()
    tol = params.point_tolerance

    lines = list(lines)
    unique = prune_duplicates(lines, tol)

    endpoints: List[Point3D] = []
    for line in unique:
        endpoints.extend(line_endpoints(line))
    vertices, vertex_of = weld_points(endpoints, tol)
    edges = [(vertex_of[2 * i], vertex_of[2 * i + 1]) for i in range(len(unique))]

    nodes = build_nodes(vertices, edges, params.holder_face_size_mm)

    struts: List[Strut] = []
    for line, (v1, v2) in zip(unique, edges):
        strut = Strut(line, params.strut_diameter_mm, nodes[v1], tolerance=tol)
        strut.set_id(f"N{v1}-N{v2}")
        struts.append(strut)

        if params.orient_both_ends:
            start, end = line_endpoints(line)
            reverse_strut = Strut(make_line(end, start, tol), params.strut_diameter_mm,
                                  nodes[v2], owns_edge=True, tolerance=tol)
            reverse_strut.set_id(f"N{v2}-N{v1}")
            struts.append(reverse_strut)

    log.info("Built %d struts on %d nodes from %d lines (%d unique)",
             len(struts), len(nodes), len(lines), len(unique))

    return WireframeAssembly(
        lines=unique,
        vertices=vertices,
        edges=edges,
        nodes=nodes,
        struts=struts,
        params=params,
        input_line_count=len(lines),
    )


def build_assembly_from_points(
    segments: Iterable[Tuple[Point3D, Point3D]],
    params: Optional[WireframeParameters] = None
) -> WireframeAssembly:
    """Build an assembly from (start, end) point pairs."""
    params = params or WireframeParameters()
    return build_assembly(lines_from_points(segments, params.point_tolerance), params)
