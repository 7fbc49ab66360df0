"""Tests for BranchSegment, DirectionSampler and BranchGenerator."""

from unittest.mock import Mock

import numpy as np
import pytest

from sproutmesh.branch import (
    LENGTH_JITTER,
    BranchGenerator,
    BranchSegment,
    DirectionSampler,
)
from sproutmesh.decay import DecayMethod, RadiusDecay
from sproutmesh.errors import InsufficientPointsError, InvalidConfiguration
from sproutmesh.nodes import NodeArena


def _upper_bound_rng() -> Mock:
    """RNG stub whose uniform() always returns the upper bound."""

    def uniform(low=0.0, high=1.0, size=None):
        if size is None:
            return high
        return np.full(size, high, dtype=float)

    fake = Mock(spec=np.random.Generator)
    fake.uniform.side_effect = uniform
    return fake


def _generator(k=0.5, start_radius=0.8, spread=0.0, rng=None, **sampler_kw):
    arena = NodeArena()
    root = arena.add([0.0, 0.0, 0.0], radius=start_radius, depth=0)
    sampler = DirectionSampler(spread=spread, rng=rng, **sampler_kw)
    gen = BranchGenerator(
        arena,
        RadiusDecay(DecayMethod.EXPONENTIAL, k=k),
        start_radius=start_radius,
        sampler=sampler,
        rng=rng,
    )
    return gen, arena, root


# ---------------------------------------------------------------- BranchSegment


def test_segment_requires_two_points():
    with pytest.raises(InsufficientPointsError):
        BranchSegment(points=np.zeros((1, 3)), radii=np.ones(1))


def test_segment_rejects_mismatched_radii():
    with pytest.raises(ValueError):
        BranchSegment(points=np.zeros((3, 3)), radii=np.ones(2))


def test_segment_rejects_non_increasing_depths():
    with pytest.raises(ValueError):
        BranchSegment(
            points=np.zeros((3, 3)), radii=np.ones(3), depths=(0, 2, 2)
        )


def test_segment_length_and_chord():
    seg = BranchSegment(
        points=[[0, 0, 0], [3, 0, 0], [3, 4, 0]], radii=[1.0, 0.5, 0.25]
    )
    assert len(seg) == 3
    assert seg.length == pytest.approx(7.0)
    assert seg.chord == pytest.approx(5.0)


# ---------------------------------------------------------------- DirectionSampler


@pytest.mark.parametrize("bias", [-1, 1])
def test_sampler_returns_unit_vectors_on_bias_side(rng, bias):
    sampler = DirectionSampler(spread=0.5, vertical_bias=bias, rng=rng)
    for _ in range(200):
        d = sampler.sample()
        assert np.linalg.norm(d) == pytest.approx(1.0)
        assert bias * d[1] >= 0.0


def test_sampler_zero_spread_falls_back_to_axis():
    sampler = DirectionSampler(spread=0.0, vertical_bias=-1)
    np.testing.assert_allclose(sampler.sample(), [0.0, -1.0, 0.0])


def test_sampler_cone_clamp(rng):
    angle = np.deg2rad(20.0)
    sampler = DirectionSampler(
        spread=1.0, lateral_scale=5.0, vertical_bias=1, cone_angle=angle, rng=rng
    )
    for _ in range(200):
        d = sampler.sample()
        assert np.linalg.norm(d) == pytest.approx(1.0)
        assert np.arccos(np.clip(d[1], -1.0, 1.0)) <= angle + 1e-9


@pytest.mark.parametrize(
    "kwargs",
    [
        {"spread": -0.1},
        {"spread": 0.5, "lateral_scale": -1.0},
        {"spread": 0.5, "vertical_bias": 0},
        {"spread": 0.5, "cone_angle": 0.0},
    ],
)
def test_sampler_rejects_bad_arguments(kwargs):
    with pytest.raises(InvalidConfiguration):
        DirectionSampler(**kwargs)


# ---------------------------------------------------------------- BranchGenerator


def test_grow_straight_down_with_exponential_taper():
    """Zero spread, depth 3 and k=0.5 give four points straight down."""
    gen, arena, root = _generator(k=0.5, start_radius=0.8)

    segment, task = gen.grow(root, branch_length=3.0, max_depth=3)

    assert len(segment) == 4
    np.testing.assert_allclose(segment.radii, [0.8, 0.4, 0.2, 0.1])
    assert segment.depths == (0, 1, 2, 3)
    np.testing.assert_allclose(segment.points[:, [0, 2]], 0.0)

    steps = -np.diff(segment.points[:, 1])
    lo, hi = LENGTH_JITTER
    assert np.all(steps >= 3.0 * lo - 1e-12)
    assert np.all(steps <= 3.0 * hi + 1e-12)

    # continuation starts at the terminal node with the chord length
    assert task.node == segment.nodes[-1]
    assert arena[task.node].depth == 3
    assert task.branch_length == pytest.approx(segment.chord)
    assert len(arena) == 4


def test_grow_uses_jitter_and_direction_draws():
    fake = _upper_bound_rng()
    gen, _, root = _generator(spread=0.5, rng=fake, lateral_scale=0.5)

    segment, task = gen.grow(root, branch_length=1.0, max_depth=1)

    expected_dir = np.array([0.25, -0.5, 0.25])
    expected_dir /= np.linalg.norm(expected_dir)
    np.testing.assert_allclose(segment.points[1], expected_dir * 1.3)
    assert task.branch_length == pytest.approx(1.3)


def test_grow_radii_never_increase(rng):
    gen, _, root = _generator(k=0.65, start_radius=1.0, spread=0.5, rng=rng)
    segment, _ = gen.grow(root, branch_length=1.0, max_depth=8)
    assert np.all(np.diff(segment.radii) <= 0.0)


def test_grow_from_continuation_keeps_absolute_depths():
    gen, _, root = _generator(k=0.5, start_radius=1.0)
    _, task = gen.grow(root, branch_length=1.0, max_depth=2)
    segment, _ = gen.grow(task.node, branch_length=task.branch_length, max_depth=2)

    assert segment.depths == (2, 3, 4)
    np.testing.assert_allclose(segment.radii, [0.25, 0.125, 0.0625])


def test_grow_is_a_noop_for_zero_steps_or_negative_depth():
    gen, arena, root = _generator()
    assert gen.grow(root, branch_length=1.0, max_depth=0) is None

    orphan = arena.add([0.0, 0.0, 0.0], radius=1.0, depth=-1)
    assert gen.grow(orphan, branch_length=1.0, max_depth=3) is None
    assert len(arena) == 2


def test_generator_rejects_negative_start_radius():
    with pytest.raises(InvalidConfiguration):
        BranchGenerator(
            NodeArena(),
            RadiusDecay(),
            start_radius=-1.0,
            sampler=DirectionSampler(spread=0.0),
        )
