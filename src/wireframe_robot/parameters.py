"""Configuration for the wireframe-to-strut pipeline.

Parameters are plain dataclass fields with defaults. They can be built from a
mapping or loaded from a JSON file; unknown keys are rejected so typos in a
project file surface immediately instead of silently falling back to a
default.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
import json
import logging

from .errors import InvalidGeometryError
from .geometry import POINT_TOLERANCE, norm

log = logging.getLogger(__name__)


@dataclass(slots=True)
class WireframeParameters:
    """Canonical set of adjustable pipeline parameters."""

    point_tolerance: float = POINT_TOLERANCE  # mm
    strut_diameter_mm: float = 10.0
    guide_vector: Tuple[float, float, float] = (1.0, 0.0, 0.0)

    # Marching alignment: the cut-plane X axis must have |x . secondary_axis|
    # below axis_tolerance (node-local coordinates).
    secondary_axis: Tuple[float, float, float] = (0.0, 1.0, 0.0)
    axis_tolerance: float = 0.01
    marching_min_step_deg: float = 0.0001
    marching_max_step_deg: float = 5.0
    marching_max_iterations: int = 10000
    seed: Optional[int] = None

    holder_exclusion_angle_deg: float = 30.0
    holder_face_size_mm: float = 50.0

    # Also build a strut for the end node of every edge (on the reversed edge).
    orient_both_ends: bool = False

    def __post_init__(self) -> None:
        self.guide_vector = _as_triple(self.guide_vector, "guide_vector")
        self.secondary_axis = _as_triple(self.secondary_axis, "secondary_axis")

    def validate(self) -> None:
        if self.point_tolerance <= 0:
            raise InvalidGeometryError("point_tolerance must be positive")
        if self.strut_diameter_mm <= 0:
            raise InvalidGeometryError("strut_diameter_mm must be positive")
        if norm(self.guide_vector) < 1e-12:
            raise InvalidGeometryError("guide_vector must be non-zero")
        if norm(self.secondary_axis) < 1e-12:
            raise InvalidGeometryError("secondary_axis must be non-zero")
        if not 0 < self.axis_tolerance < 1:
            raise InvalidGeometryError("axis_tolerance must be within (0, 1)")
        if not 0 < self.marching_min_step_deg <= self.marching_max_step_deg:
            raise InvalidGeometryError(
                "marching step range must satisfy 0 < min <= max"
            )
        if self.marching_max_iterations < 1:
            raise InvalidGeometryError("marching_max_iterations must be at least 1")
        if not 0 < self.holder_exclusion_angle_deg < 180:
            raise InvalidGeometryError("holder_exclusion_angle_deg must be within (0, 180)")
        if self.holder_face_size_mm <= 0:
            raise InvalidGeometryError("holder_face_size_mm must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WireframeParameters":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidGeometryError(f"Unknown parameter(s): {', '.join(unknown)}")
        params = cls(**dict(data))
        params.validate()
        return params


def _as_triple(value: Any, name: str) -> Tuple[float, float, float]:
    try:
        x, y, z = value
    except (TypeError, ValueError) as exc:
        raise InvalidGeometryError(f"{name} must have three components") from exc
    return (float(x), float(y), float(z))


def load_parameters(path: str | Path) -> WireframeParameters:
    """Load parameters from a JSON file."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise InvalidGeometryError(f"{path} must contain a JSON object")
    params = WireframeParameters.from_dict(data)
    log.info("Loaded parameters from %s", path)
    return params
