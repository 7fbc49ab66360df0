from __future__ import annotations

from typing import Iterator

import numpy as np
import pytest

from sproutmesh.parameters import GrowthParameters


@pytest.fixture()
def sm_seeded():
    """Run a test against the package generator reseeded to 0."""
    import sproutmesh as sm

    with sm.use(seed=0):
        yield sm


@pytest.fixture()
def rng() -> np.random.Generator:
    return np.random.default_rng(0)


@pytest.fixture
def wavy_points() -> np.ndarray:
    """Four points zig-zagging in the z=0 plane."""
    return np.array(
        [
            [0.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [2.0, 0.0, 0.0],
            [3.0, 1.0, 0.0],
        ]
    )


@pytest.fixture
def small_params() -> GrowthParameters:
    """Quick, fully valid settings for end-to-end runs."""
    return GrowthParameters(
        max_depth=4,
        base_branch_length=1.0,
        start_radius=0.2,
        spread=0.5,
        starting_branches=2,
        segment_depth=2,
        new_branch_rate=10.0,
        growth_speed=0.0,
        radial_segments=6,
        samples_per_point=2,
    )


@pytest.fixture
def straight_down_params() -> Iterator[GrowthParameters]:
    """Depth-3 roots with no direction randomness and k=0.5 taper."""
    yield GrowthParameters(
        max_depth=3,
        base_branch_length=3.0,
        spread=0.0,
        starting_branches=1,
        start_radius=0.8,
        decay_method="exponential",
        decay_constant=0.5,
        new_branch_rate=0.0,
    )
