"""Tests for Curve fitting, arclength sampling and frame sweeps."""

import numpy as np
import pytest

from sproutmesh.errors import InsufficientPointsError, InvalidConfiguration
from sproutmesh.spline import Curve, fit, perpendicular_unit


def test_fit_requires_two_points():
    with pytest.raises(InsufficientPointsError):
        fit([[0.0, 0.0, 0.0]])


def test_negative_tension_rejected():
    with pytest.raises(InvalidConfiguration):
        fit([[0, 0, 0], [1, 0, 0]], tension=-0.5)


def test_curve_passes_through_points(wavy_points):
    curve = fit(wavy_points)
    n = len(wavy_points)
    for i, p in enumerate(wavy_points):
        np.testing.assert_allclose(curve.point_at_parameter(i / (n - 1)), p, atol=1e-12)


def test_arclength_endpoints(wavy_points):
    curve = fit(wavy_points)
    np.testing.assert_allclose(curve.sample_at(0.0), wavy_points[0], atol=1e-12)
    np.testing.assert_allclose(curve.sample_at(1.0), wavy_points[-1], atol=1e-12)


def test_straight_line_is_sampled_uniformly():
    curve = fit([[0, 0, 0], [1, 0, 0], [2, 0, 0]])
    pts = curve.get_spaced_points(4)
    np.testing.assert_allclose(pts[:, 0], [0.0, 0.5, 1.0, 1.5, 2.0], atol=1e-3)
    np.testing.assert_allclose(pts[:, 1:], 0.0, atol=1e-12)
    assert curve.length == pytest.approx(2.0, rel=1e-6)


def test_zero_tension_spans_stay_on_chords():
    curve = fit([[0, 0, 0], [1, 1, 0], [2, 0, 0]], tension=0.0)
    mid = curve.point_at_parameter(0.25)
    # halfway along the first span, on the segment (0,0,0)-(1,1,0)
    np.testing.assert_allclose(mid, [0.5, 0.5, 0.0], atol=1e-12)
    np.testing.assert_allclose(curve.tangent_at(0.0), np.array([1, 1, 0]) / np.sqrt(2))


def test_get_points_count(wavy_points):
    curve = fit(wavy_points)
    assert curve.get_points(15).shape == (16, 3)
    with pytest.raises(ValueError):
        curve.get_points(0)


def test_frames_are_orthonormal(rng):
    pts = np.cumsum(rng.normal(size=(6, 3)), axis=0)
    curve = fit(pts, num_samples=25)
    for T, N, B in curve.frames():
        assert np.linalg.norm(T) == pytest.approx(1.0)
        assert np.linalg.norm(N) == pytest.approx(1.0)
        assert np.dot(T, N) == pytest.approx(0.0, abs=1e-9)
        np.testing.assert_allclose(B, np.cross(T, N), atol=1e-9)


def test_planar_curve_binormal_does_not_twist(wavy_points):
    curve = fit(wavy_points, num_samples=40)
    B = curve.binormals
    np.testing.assert_allclose(np.abs(B[:, 2]), 1.0, atol=1e-9)
    np.testing.assert_allclose(B, np.repeat(B[:1], len(B), axis=0), atol=1e-9)


def test_straight_curve_keeps_constant_normal():
    curve = fit([[0, 0, 0], [0, -1, 0], [0, -2, 0], [0, -3, 0]], num_samples=10)
    np.testing.assert_allclose(
        curve.normals, np.repeat(curve.normals[:1], 10, axis=0), atol=1e-12
    )


def test_frame_at_out_of_range(wavy_points):
    curve = Curve(wavy_points, num_samples=5)
    assert len(curve.frame_at(4)) == 3
    with pytest.raises(IndexError):
        curve.frame_at(5)
    with pytest.raises(IndexError):
        curve.frame_at(-1)


def test_num_samples_lower_bound(wavy_points):
    with pytest.raises(InvalidConfiguration):
        Curve(wavy_points, num_samples=1)


def test_coincident_points_warn_and_still_sample(caplog):
    with caplog.at_level("WARNING", logger="sproutmesh"):
        curve = fit([[1, 1, 1], [1, 1, 1]])
    assert curve.length == 0.0
    assert "zero length" in caplog.text
    np.testing.assert_allclose(curve.sample_at(0.5), [1.0, 1.0, 1.0])


@pytest.mark.parametrize("v", [[1, 0, 0], [0, 1, 0], [0, 0, 1], [0.3, -2.0, 0.7]])
def test_perpendicular_unit(v):
    n = perpendicular_unit(np.array(v, dtype=float))
    assert np.linalg.norm(n) == pytest.approx(1.0)
    assert np.dot(n, v) == pytest.approx(0.0, abs=1e-12)
