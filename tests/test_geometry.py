import math

import cadquery as cq
import pytest

from wireframe_robot.geometry import (
    WORLD_X,
    WORLD_Y,
    WORLD_Z,
    add,
    angle_between_deg,
    cross,
    dot,
    is_parallel,
    norm,
    normalize,
    perpendicular_basis,
    points_almost_equal,
    reverse,
    scale,
    sub,
    to_point,
    to_vector,
)


def test_basic_vector_ops():
    a = (1.0, 2.0, 3.0)
    b = (-4.0, 0.5, 2.0)
    assert add(a, b) == (-3.0, 2.5, 5.0)
    assert sub(a, b) == (5.0, 1.5, 1.0)
    assert scale(a, 2.0) == (2.0, 4.0, 6.0)
    assert reverse(a) == (-1.0, -2.0, -3.0)
    assert dot(a, b) == pytest.approx(3.0)
    assert norm((3.0, 4.0, 12.0)) == pytest.approx(13.0)


def test_cross_is_right_handed_and_orthogonal():
    assert cross(WORLD_X, WORLD_Y) == (0.0, 0.0, 1.0)
    assert cross(WORLD_Y, WORLD_X) == (0.0, 0.0, -1.0)
    a, b = (1.0, 2.0, 3.0), (-2.0, 0.5, 4.0)
    c = cross(a, b)
    assert dot(c, a) == pytest.approx(0.0)
    assert dot(c, b) == pytest.approx(0.0)


def test_normalize_respects_tolerance():
    assert normalize((0.0, 3.0, 4.0)) == pytest.approx((0.0, 0.6, 0.8))
    assert normalize((0.0, 0.0, 0.0)) == (0.0, 0.0, 0.0)
    # short vectors survive the default cut-off but not a coarser one
    tiny = (1e-10, 0.0, 0.0)
    assert normalize(tiny) == pytest.approx(WORLD_X)
    assert normalize(tiny, tol=1e-9) == (0.0, 0.0, 0.0)


def test_angle_between_is_clamped_and_handles_zero():
    assert angle_between_deg(WORLD_X, WORLD_X) == 0.0
    assert angle_between_deg(WORLD_X, reverse(WORLD_X)) == pytest.approx(180.0)
    assert angle_between_deg(WORLD_X, (1.0, 1.0, 0.0)) == pytest.approx(45.0)
    assert angle_between_deg((0.0, 0.0, 0.0), WORLD_Z) == 0.0


def test_points_almost_equal_uses_distance():
    assert points_almost_equal((0.0, 0.0, 0.0), (1e-7, 0.0, 0.0))
    assert not points_almost_equal((0.0, 0.0, 0.0), (1e-5, 0.0, 0.0))
    assert points_almost_equal((0.0, 0.0, 0.0), (0.5, 0.0, 0.0), tolerance=1.0)


def test_is_parallel_accepts_anti_parallel():
    assert is_parallel(WORLD_X, (-5.0, 0.0, 0.0))
    assert not is_parallel(WORLD_X, (1.0, 1e-3, 0.0))


@pytest.mark.parametrize("direction", [
    (1.0, 0.0, 0.0),
    (0.0, 0.0, 1.0),
    (0.0, 0.0, -1.0),
    (1.0, 2.0, 3.0),
    (0.1, 0.0, 1.0),
])
def test_perpendicular_basis_is_right_handed(direction):
    side, up = perpendicular_basis(direction)
    d = normalize(direction)
    assert norm(side) == pytest.approx(1.0)
    assert norm(up) == pytest.approx(1.0)
    assert dot(side, d) == pytest.approx(0.0, abs=1e-12)
    assert dot(up, d) == pytest.approx(0.0, abs=1e-12)
    # (side, direction, up) is right-handed: side x direction == up
    assert cross(side, d) == pytest.approx(up)


def test_perpendicular_basis_prefers_world_up():
    _, up = perpendicular_basis((1.0, 1.0, 0.0))
    assert up == pytest.approx(WORLD_Z)
    # vertical direction falls back to world X
    _, up = perpendicular_basis(WORLD_Z)
    assert up == pytest.approx(WORLD_X)


def test_cadquery_conversions():
    v = to_vector((1, 2, 3))
    assert isinstance(v, cq.Vector)
    assert to_vector(v) is v
    p = to_point(v)
    assert p == (1.0, 2.0, 3.0)
    assert all(isinstance(c, float) for c in to_point((1, 2, 3)))
    assert math.isclose(norm(to_point(cq.Vector(0, 3, 4))), 5.0)
