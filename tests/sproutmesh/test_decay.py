"""Tests for the radius decay policies.

Covers the three formulas, monotonic exponential taper, rejection of depth 0,
configuration errors, and finite results at very large depths.
"""

import math

import pytest

from sproutmesh.decay import DecayMethod, RadiusDecay, decay, exponential, sigmoid
from sproutmesh.errors import InvalidConfiguration


def test_inverse_and_sigmoid_formulas():
    """Inverse is r0/d and sigmoid is r0/(1+e^d)."""
    assert RadiusDecay(DecayMethod.INVERSE)(2.0, 4) == pytest.approx(0.5)
    assert RadiusDecay(DecayMethod.SIGMOID)(2.0, 1) == pytest.approx(2.0 / (1.0 + math.e))


def test_exponential_matches_power():
    """Exponential decay multiplies by k once per depth step."""
    policy = RadiusDecay(DecayMethod.EXPONENTIAL, k=0.5)
    radii = [policy(1.0, d) for d in (1, 2, 3)]
    assert radii == pytest.approx([0.5, 0.25, 0.125])


@pytest.mark.parametrize("k", [0.5, 0.6, 0.65, 0.99])
def test_exponential_tapers_monotonically(k):
    """Each extra depth step never widens the branch."""
    for depth in range(1, 30):
        assert exponential(3.0, depth, k) <= exponential(3.0, depth - 1, k)


@pytest.mark.parametrize("depth", [50, 709, 710, 1000, 10_000])
@pytest.mark.parametrize("method", list(DecayMethod))
def test_large_depths_stay_finite(method, depth):
    """Every policy returns a finite, non-negative radius at any depth."""
    r = RadiusDecay(method)(1.0, depth)
    assert math.isfinite(r)
    assert r >= 0.0


def test_sigmoid_keeps_tapering_past_exp_overflow():
    """Sigmoid stays monotone across the range where e**d overflows."""
    radii = [sigmoid(1.0, d) for d in range(700, 720)]
    assert all(b <= a for a, b in zip(radii, radii[1:]))
    assert sigmoid(1.0, 1000) == 0.0


@pytest.mark.parametrize("method", list(DecayMethod))
def test_depth_zero_is_rejected(method):
    """Depth 0 belongs to the root's stored radius and is not a valid input."""
    with pytest.raises(ValueError):
        decay(RadiusDecay(method), 1.0, 0)


def test_from_name_is_case_insensitive():
    """Configuration names are matched regardless of case."""
    assert RadiusDecay.from_name("Sigmoid").method is DecayMethod.SIGMOID
    assert RadiusDecay.from_name("inverse").method is DecayMethod.INVERSE


def test_unknown_method_is_invalid_configuration():
    """Unknown names raise InvalidConfiguration tagged with the field."""
    with pytest.raises(InvalidConfiguration) as excinfo:
        RadiusDecay.from_name("quadratic")
    assert excinfo.value.field == "decay_method"


@pytest.mark.parametrize("k", [0.0, 1.0, 1.5, -0.2])
def test_exponential_constant_must_be_in_unit_interval(k):
    """The exponential constant must lie strictly between 0 and 1."""
    with pytest.raises(InvalidConfiguration):
        RadiusDecay(DecayMethod.EXPONENTIAL, k=k)


def test_constant_ignored_for_other_methods():
    """Only the exponential variant reads k."""
    assert RadiusDecay(DecayMethod.INVERSE, k=5.0)(1.0, 2) == pytest.approx(0.5)
