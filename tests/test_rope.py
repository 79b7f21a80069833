from __future__ import annotations

import math

from panda3d.core import LVector3f

from tether.physics.rope import RopeCurve, apply_rope_constraint


def _dist(a: LVector3f, b: LVector3f) -> float:
    return float((b - a).length())


def test_constraint_pulls_both_ends_to_max_length() -> None:
    a = LVector3f(0.0, 0.0, 0.0)
    b = LVector3f(10.0, 0.0, 0.0)

    assert apply_rope_constraint(a, b, max_length=5.0) is True

    assert math.isclose(a.x, 2.5, abs_tol=1e-6)
    assert math.isclose(b.x, 7.5, abs_tol=1e-6)


def test_constraint_preserves_midpoint_in_3d() -> None:
    cases = [
        (LVector3f(1.0, 2.0, 3.0), LVector3f(7.0, 10.0, 3.0)),
        (LVector3f(-4.0, 0.5, 9.0), LVector3f(3.0, -6.0, -2.0)),
        (LVector3f(0.0, 20.0, 0.0), LVector3f(0.0, 0.0, 0.0)),
    ]
    for a, b in cases:
        mid_before = (a + b) * 0.5
        apply_rope_constraint(a, b, max_length=5.0)
        mid_after = (a + b) * 0.5

        assert math.isclose(_dist(a, b), 5.0, abs_tol=1e-4)
        for axis in range(3):
            assert math.isclose(mid_after[axis], mid_before[axis], abs_tol=1e-5)


def test_constraint_leaves_slack_rope_alone() -> None:
    a = LVector3f(0.0, 0.0, 0.0)
    b = LVector3f(3.0, 4.0, 0.0)

    assert apply_rope_constraint(a, b, max_length=5.0) is False
    assert a == LVector3f(0.0, 0.0, 0.0)
    assert b == LVector3f(3.0, 4.0, 0.0)


def test_constraint_ignores_coincident_points() -> None:
    a = LVector3f(1.0, 1.0, 1.0)
    b = LVector3f(1.0, 1.0, 1.0)
    assert apply_rope_constraint(a, b, max_length=0.0) is False


def test_curve_has_segment_plus_one_points_and_midpoint_bow() -> None:
    curve = RopeCurve(segments=10, bow_height=0.5)
    points = curve.update(LVector3f(0.0, 1.0, 0.0), LVector3f(4.0, 1.0, 0.0))

    assert len(points) == 11
    assert points[0] == LVector3f(0.0, 1.0, 0.0)
    assert math.isclose(points[-1].x, 4.0, abs_tol=1e-6)
    assert math.isclose(points[-1].y, 1.0, abs_tol=1e-6)
    assert math.isclose(points[5].x, 2.0, abs_tol=1e-6)
    assert math.isclose(points[5].y, 1.5, abs_tol=1e-6)
    assert all(p.y >= 1.0 - 1e-6 for p in points)


def test_curve_reuses_point_storage() -> None:
    curve = RopeCurve(segments=4)
    first = curve.update(LVector3f(0, 0, 0), LVector3f(1, 0, 0))
    ids = [id(p) for p in first]
    second = curve.update(LVector3f(5, 0, 0), LVector3f(6, 0, 0))
    assert [id(p) for p in second] == ids
    assert math.isclose(second[0].x, 5.0, abs_tol=1e-6)
