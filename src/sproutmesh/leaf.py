"""Module defining leaf sprouts: cones that widen and lengthen over time.

Each sprout starts at a point with a growth direction drawn from an upward
biased DirectionSampler. Every `growth_speed` milliseconds its height and
radius grow by a fixed step until just below their maxima, and its cone mesh
is rebuilt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .branch import DirectionSampler
from .buffer import MeshBatch, MeshBuffer
from .errors import InvalidConfiguration
from .spline import perpendicular_unit

_LOGGER = logging.getLogger(__name__)

INITIAL_RADIUS = 0.01
INITIAL_HEIGHT = 1.0


@dataclass
class LeafParameters:
    """Settings for a LeafSystem.

    Attributes:
        max_height (float): Height a sprout never reaches.
        max_radius (float): Radius a sprout never reaches.
        growth_speed (float): Milliseconds between growth steps.
        spread (float): Direction spread passed to the sampler.
        starting_leaves (int): Number of sprouts created at start.
        height_step (float): Height added per growth step.
        radius_step (float): Radius added per growth step.
        radial_segments (int): Vertices around the cone base.
        origin (Tuple[float, float, float]): Where every sprout starts.
    """

    max_height: float = 3.0
    max_radius: float = 0.5
    growth_speed: float = 16.0
    spread: float = 1.0
    starting_leaves: int = 5
    height_step: float = 0.01
    radius_step: float = 0.05
    radial_segments: int = 12
    origin: Tuple[float, float, float] = field(default=(0.0, 0.0, 0.0))

    def validate(self) -> LeafParameters:
        """Raise InvalidConfiguration on the first out-of-range option."""
        checks = (
            ("max_height", self.max_height >= 0),
            ("max_radius", self.max_radius >= 0),
            ("growth_speed", self.growth_speed >= 0),
            ("spread", self.spread >= 0),
            ("starting_leaves", self.starting_leaves >= 0),
            ("height_step", self.height_step >= 0),
            ("radius_step", self.radius_step >= 0),
            ("radial_segments", self.radial_segments >= 3),
        )
        for name, ok in checks:
            if not ok:
                raise InvalidConfiguration(
                    f"{name} is out of range: {getattr(self, name)!r}", field=name
                )
        return self


def cone_mesh(
    start: NDArray[Any],
    direction: NDArray[Any],
    radius: float,
    height: float,
    radial_segments: int,
) -> MeshBuffer:
    """Build a capped cone with its base centred on `start`.

    Vertices are the base ring, then the apex, then the base centre.
    """
    d = np.asarray(direction, dtype=float)
    d = d / np.linalg.norm(d)
    n = perpendicular_unit(d)
    b = np.cross(d, n)
    S = radial_segments

    theta = 2.0 * np.pi * np.arange(S) / S
    ring = start + radius * (
        np.cos(theta)[:, None] * n[None, :] + np.sin(theta)[:, None] * b[None, :]
    )
    apex = start + d * height
    vertices = np.vstack([ring, apex[None, :], np.asarray(start, dtype=float)[None, :]])

    j = np.arange(S, dtype=np.int64)
    jn = (j + 1) % S
    apex_id = np.full(S, S, dtype=np.int64)
    centre_id = np.full(S, S + 1, dtype=np.int64)
    sides = np.stack([j, jn, apex_id], axis=1)
    cap = np.stack([centre_id, jn, j], axis=1)

    buf = MeshBuffer()
    buf.extend(MeshBatch(vertices=vertices, indices=np.vstack([sides, cap])))
    return buf


class LeafSprout:
    """A single cone-shaped sprout that grows in steps.

    Attributes:
        start (NDArray[np.float64]): Base centre.
        direction (NDArray[np.float64]): Unit growth direction.
        radius (float): Current base radius.
        height (float): Current height.
        mesh (MeshBuffer): Cone geometry at the current size.
    """

    def __init__(
        self,
        start: Union[NDArray[Any], Sequence[float]],
        direction: Union[NDArray[Any], Sequence[float]],
        max_radius: float,
        max_height: float,
        growth_speed: float,
        height_step: float = 0.01,
        radius_step: float = 0.05,
        radial_segments: int = 12,
    ) -> None:
        d = np.asarray(direction, dtype=float)
        mag = float(np.linalg.norm(d))
        if mag < 1e-12:
            raise ValueError("Sprout direction has zero magnitude.")
        self.start = np.asarray(start, dtype=float)
        self.direction = d / mag
        self.max_radius = float(max_radius)
        self.max_height = float(max_height)
        self.growth_speed = float(growth_speed)
        self.height_step = float(height_step)
        self.radius_step = float(radius_step)
        self.radial_segments = int(radial_segments)

        self.radius = INITIAL_RADIUS
        self.height = INITIAL_HEIGHT
        self.timer = 0.0
        self.mesh = MeshBuffer()

    def update(self, delta_time: float) -> bool:
        """Advance by `delta_time` ms; return True if the cone was rebuilt."""
        self.timer += delta_time
        if self.timer < self.growth_speed:
            return False
        self.timer = 0.0

        new_height = self.height + self.height_step
        if new_height < self.max_height:
            self.height = new_height
        new_radius = self.radius + self.radius_step
        if new_radius < self.max_radius:
            self.radius = new_radius

        self.mesh = cone_mesh(
            self.start, self.direction, self.radius, self.height, self.radial_segments
        )
        return True


class LeafSystem:
    """A set of sprouts seeded at a common origin.

    Attributes:
        params (LeafParameters): Validated settings.
        sampler (DirectionSampler): Upward-biased direction source.
        sprouts (List[LeafSprout]): All sprouts, in creation order.
    """

    def __init__(
        self,
        params: Optional[LeafParameters] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.params = (params if params is not None else LeafParameters()).validate()
        self.sampler = DirectionSampler(
            spread=self.params.spread, lateral_scale=1.0, vertical_bias=1, rng=rng
        )
        self.sprouts: List[LeafSprout] = [
            self.generate_sprout() for _ in range(self.params.starting_leaves)
        ]
        _LOGGER.info("LeafSystem initialized with %d sprouts", len(self.sprouts))

    def generate_sprout(self) -> LeafSprout:
        p = self.params
        return LeafSprout(
            start=p.origin,
            direction=self.sampler.sample(),
            max_radius=p.max_radius,
            max_height=p.max_height,
            growth_speed=p.growth_speed,
            height_step=p.height_step,
            radius_step=p.radius_step,
            radial_segments=p.radial_segments,
        )

    def update(self, delta_time: float) -> List[LeafSprout]:
        """Advance every sprout; return the ones whose mesh was rebuilt."""
        return [s for s in self.sprouts if s.update(delta_time)]
