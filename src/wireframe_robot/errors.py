"""
Exceptions raised by the wireframe-to-strut pipeline.
"""

from typing import Optional

import cadquery as cq


class WireframeError(Exception):
    """Base class for all errors raised by this package."""


class InvalidGeometryError(WireframeError, ValueError):
    """
    Input geometry or configuration that cannot produce a usable part.

    Raised for zero-length edges, non-positive diameters, zero guide vectors
    or guide vectors parallel to a cut-plane normal.
    """


class AlignmentConvergenceError(WireframeError):
    """
    Marching alignment reached its iteration bound without converging.

    Attributes:
        plane: The last plane visited by the search
        iterations: Number of rotation steps taken
    """

    def __init__(self, message: str, plane: Optional[cq.Plane] = None, iterations: int = 0):
        super().__init__(message)
        self.plane = plane
        self.iterations = iterations


class StrutDisposedError(WireframeError):
    """A geometry query was made on a strut after dispose()."""


class StrutIdError(WireframeError):
    """A strut id was assigned more than once."""
