"""Radius decay policies for tapering branches with depth.

A policy maps ``(base_radius, depth)`` to the radius of a node at that depth.
It is only evaluated for ``depth >= 1``; the root keeps its own stored radius.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from scipy.special import expit

from .errors import InvalidConfiguration

DEFAULT_DECAY_CONSTANT = 0.6


class DecayMethod(str, enum.Enum):
    """Available decay variants."""

    INVERSE = "inverse"
    EXPONENTIAL = "exponential"
    SIGMOID = "sigmoid"


@dataclass(frozen=True)
class RadiusDecay:
    """A decay policy: variant tag plus the exponential decay constant.

    Attributes:
        method (DecayMethod): Which formula to apply.
        k (float): Per-depth factor, only used by ``EXPONENTIAL``.
    """

    method: DecayMethod = DecayMethod.EXPONENTIAL
    k: float = DEFAULT_DECAY_CONSTANT

    def __post_init__(self) -> None:
        try:
            method = DecayMethod(self.method)
        except ValueError as exc:
            choices = ", ".join(m.value for m in DecayMethod)
            raise InvalidConfiguration(
                f"unknown decay method {self.method!r}; expected one of {choices}",
                field="decay_method",
            ) from exc
        object.__setattr__(self, "method", method)
        if method is DecayMethod.EXPONENTIAL and not (0.0 < self.k < 1.0):
            raise InvalidConfiguration(
                f"exponential decay constant must lie in (0, 1); got {self.k}",
                field="decay_constant",
            )

    @classmethod
    def from_name(
        cls, name: Union[str, DecayMethod], k: float = DEFAULT_DECAY_CONSTANT
    ) -> RadiusDecay:
        """Build a policy from its configuration name."""
        method = name.lower() if isinstance(name, str) else name
        return cls(method=method, k=k)  # type: ignore[arg-type]

    def __call__(self, base_radius: float, depth: int) -> float:
        return decay(self, base_radius, depth)


def inverse(base_radius: float, depth: int) -> float:
    """``r0 / d``."""
    return base_radius / depth


def exponential(base_radius: float, depth: int, k: float) -> float:
    """``r0 * k**d``."""
    return base_radius * k**depth


def sigmoid(base_radius: float, depth: int) -> float:
    """``r0 / (1 + e**d)``, evaluated as ``r0 * expit(-d)`` so large depths
    underflow to 0 instead of overflowing.
    """
    return base_radius * float(expit(-depth))


def decay(policy: RadiusDecay, base_radius: float, depth: int) -> float:
    """Evaluate `policy` at `depth`.

    Args:
        policy: Decay variant and constant.
        base_radius: Radius at the structure's root.
        depth: Depth of the node, must be at least 1.

    Returns:
        The tapered radius.

    Raises:
        ValueError: If ``depth < 1``.
    """
    if depth < 1:
        raise ValueError(f"radius decay is undefined for depth {depth} (< 1)")
    if policy.method is DecayMethod.INVERSE:
        return inverse(base_radius, depth)
    if policy.method is DecayMethod.EXPONENTIAL:
        return exponential(base_radius, depth, policy.k)
    return sigmoid(base_radius, depth)
