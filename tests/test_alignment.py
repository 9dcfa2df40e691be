import math
import random

import cadquery as cq
import pytest

from wireframe_robot.alignment import (
    align_plane_closed_form,
    is_aligned,
    march_alignment,
    rotate_about_normal,
)
from wireframe_robot.errors import AlignmentConvergenceError, InvalidGeometryError
from wireframe_robot.geometry import dot, to_point
from wireframe_robot.lines import make_line
from wireframe_robot.struts import Strut


def _check_postcondition(plane, guide=(1.0, 0.0, 0.0)):
    x_axis = to_point(plane.xDir)
    assert abs(x_axis[1]) <= 0.01
    assert dot(guide, x_axis) >= 0


def _diagonal_strut(node):
    # transformed X axis starts well away from alignment
    return Strut(make_line((0, 0, 0), (0, 10, 10)), 10.0, node)


def test_rotate_about_normal_keeps_origin_and_normal():
    plane = cq.Plane(origin=(1, 2, 3), xDir=(1, 0, 0), normal=(0, 0, 1))
    rotated = rotate_about_normal(plane, 90.0)
    assert to_point(rotated.origin) == pytest.approx((1.0, 2.0, 3.0))
    assert to_point(rotated.zDir) == pytest.approx((0.0, 0.0, 1.0))
    assert to_point(rotated.xDir) == pytest.approx((0.0, 1.0, 0.0), abs=1e-9)


def test_marching_satisfies_postcondition(world_node):
    strut = _diagonal_strut(world_node)
    assert not is_aligned(strut.transformed_cut_plane, (1.0, 0.0, 0.0))

    result = strut.align_cut_plane(seed=7)
    assert result.converged
    assert result.iterations > 0
    _check_postcondition(result.plane)
    # rotation stays about the plane's own normal
    assert to_point(result.plane.zDir) == pytest.approx(
        to_point(strut.transformed_cut_plane.zDir), abs=1e-9)
    assert to_point(result.plane.origin) == pytest.approx(
        to_point(strut.transformed_cut_plane.origin), abs=1e-9)


def test_marching_on_tilted_node(tilted_node):
    start = tilted_node.position
    end = (start[0] + 30.0, start[1] - 40.0, start[2] + 5.0)
    strut = Strut(make_line(start, end), 12.0, tilted_node)
    for seed in range(5):
        result = strut.align_cut_plane(seed=seed)
        assert result.converged
        _check_postcondition(result.plane)


def test_marching_with_other_guide(world_node):
    strut = _diagonal_strut(world_node)
    guide = (-1.0, 0.0, 0.5)
    plane = strut.transformed_and_aligned_cut_plane_using_marching(guide, seed=3)
    _check_postcondition(plane, guide)


def test_marching_is_reproducible_with_seed(world_node):
    strut = _diagonal_strut(world_node)
    first = strut.align_cut_plane(seed=42)
    second = strut.align_cut_plane(seed=42)
    assert first.iterations == second.iterations
    assert to_point(first.plane.xDir) == pytest.approx(to_point(second.plane.xDir))


def test_marching_reports_non_convergence(world_node):
    strut = _diagonal_strut(world_node)
    result = strut.align_cut_plane(max_iterations=0, seed=1)
    assert not result.converged
    assert result.iterations == 0
    with pytest.raises(AlignmentConvergenceError) as excinfo:
        result.plane_or_raise()
    assert excinfo.value.plane is result.plane

    with pytest.raises(AlignmentConvergenceError):
        strut.transformed_and_aligned_cut_plane_using_marching(max_iterations=0)


def test_marching_already_aligned_takes_no_steps():
    plane = cq.Plane(origin=(0, 0, 0), xDir=(1, 0, 0), normal=(0, 0, 1))
    result = march_alignment(plane, (1.0, 0.0, 0.0), rng=random.Random(0))
    assert result.converged
    assert result.iterations == 0
    assert result.plane is plane


def test_marching_rejects_degenerate_guides():
    plane = cq.Plane(origin=(0, 0, 0), xDir=(1, 0, 0), normal=(0, 0, 1))
    with pytest.raises(InvalidGeometryError):
        march_alignment(plane, (0.0, 0.0, 0.0))
    with pytest.raises(InvalidGeometryError):
        march_alignment(plane, (0.0, 0.0, -2.0))


def test_guide_parallel_to_strut_normal_is_rejected(world_node):
    # transformed normal is -X, parallel to the default guide
    strut = Strut(make_line((0, 0, 0), (10, 0, 0)), 10.0, world_node)
    with pytest.raises(InvalidGeometryError):
        strut.align_cut_plane()
    with pytest.raises(InvalidGeometryError):
        strut.transformed_and_aligned_cut_plane()


def test_closed_form_rotates_about_own_normal(world_node):
    strut = _diagonal_strut(world_node)
    before = strut.transformed_cut_plane
    after = strut.transformed_and_aligned_cut_plane()
    assert to_point(after.origin) == pytest.approx(to_point(before.origin), abs=1e-9)
    assert to_point(after.zDir) == pytest.approx(to_point(before.zDir), abs=1e-9)
    angle = math.degrees(math.acos(max(-1.0, min(1.0, before.xDir.dot(after.xDir)))))
    expected = math.degrees(math.acos(dot(to_point(before.xDir), (1.0, 0.0, 0.0))))
    assert angle == pytest.approx(expected, abs=1e-6)


def test_closed_form_aligns_simple_case():
    plane = cq.Plane(origin=(0, 0, 0), xDir=(0, 1, 0), normal=(0, 0, 1))
    aligned = align_plane_closed_form(plane, (1.0, 0.0, 0.0))
    assert to_point(aligned.xDir) == pytest.approx((1.0, 0.0, 0.0), abs=1e-9)


def test_aligned_coordinate_system(world_node):
    strut = _diagonal_strut(world_node)
    cs = strut.aligned_coordinate_system(seed=11)
    _check_postcondition(cs)
    assert to_point(cs.zDir) == pytest.approx(to_point(strut.transformed_cut_plane.zDir), abs=1e-9)
