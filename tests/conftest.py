from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure src/ is importable when running pytest from any CWD.
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from wireframe_robot.nodes import create_node  # noqa: E402


@pytest.fixture
def world_node():
    """Node at the origin whose frame matches world axes and whose holder faces +Z."""
    return create_node((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), x_dir=(1.0, 0.0, 0.0), index=0)


@pytest.fixture
def tilted_node():
    """Node away from the origin with a rotated frame."""
    return create_node((10.0, 20.0, 30.0), (1.0, 1.0, 1.0), x_dir=(1.0, -1.0, 0.0), index=1)


TETRAHEDRON = [
    (0.0, 0.0, 0.0),
    (100.0, 0.0, 0.0),
    (50.0, 86.60254037844386, 0.0),
    (50.0, 28.867513459481287, 81.64965809277261),
]


@pytest.fixture
def tetrahedron_segments():
    a, b, c, d = TETRAHEDRON
    return [(a, b), (a, c), (a, d), (b, c), (b, d), (c, d)]
