"""Module defining BranchSegment and the BranchGenerator that grows it.

A generator call walks a fixed number of depth steps from a start node,
jittering the step length and drawing a stochastic, vertically biased
direction at every step. It emits one finished segment plus one
continuation task for the terminal node.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .config import get_rng
from .decay import RadiusDecay
from .errors import InsufficientPointsError, InvalidConfiguration
from .nodes import GrowthTask, NodeArena

_LOGGER = logging.getLogger(__name__)

LENGTH_JITTER = (0.7, 1.3)
_EPS = 1e-12


@dataclass(frozen=True, eq=False)
class BranchSegment:
    """One completed run of growth points, ready to be meshed.

    Attributes:
        points (NDArray[np.float64]): Ordered positions, shape (n, 3), n >= 2.
        radii (NDArray[np.float64]): Radius per point, shape (n,).
        depths (Tuple[int, ...]): Depth per point, strictly increasing.
        nodes (Tuple[int, ...]): Arena handle per point.
    """

    points: NDArray[np.float64]
    radii: NDArray[np.float64]
    depths: Tuple[int, ...] = field(default=())
    nodes: Tuple[int, ...] = field(default=())

    def __post_init__(self) -> None:
        pts = np.array(self.points, dtype=float).reshape(-1, 3)
        rad = np.array(self.radii, dtype=float).reshape(-1)
        if pts.shape[0] < 2:
            raise InsufficientPointsError(
                f"a branch segment needs at least 2 points; got {pts.shape[0]}"
            )
        if rad.shape[0] != pts.shape[0]:
            raise ValueError(
                f"points ({pts.shape[0]}) and radii ({rad.shape[0]}) differ in length"
            )
        if self.depths:
            if len(self.depths) != pts.shape[0]:
                raise ValueError("depths must match points in length")
            if any(b <= a for a, b in zip(self.depths, self.depths[1:])):
                raise ValueError(f"depths must increase monotonically: {self.depths}")
        pts.setflags(write=False)
        rad.setflags(write=False)
        object.__setattr__(self, "points", pts)
        object.__setattr__(self, "radii", rad)
        object.__setattr__(self, "depths", tuple(int(d) for d in self.depths))
        object.__setattr__(self, "nodes", tuple(int(n) for n in self.nodes))

    def __len__(self) -> int:
        return int(self.points.shape[0])

    @property
    def length(self) -> float:
        """Polyline length through the segment points."""
        return float(np.linalg.norm(np.diff(self.points, axis=0), axis=1).sum())

    @property
    def chord(self) -> float:
        """Straight-line distance between the first and last point."""
        return float(np.linalg.norm(self.points[-1] - self.points[0]))


class DirectionSampler:
    """Draw unit growth directions biased along the vertical (y) axis.

    Horizontal components are uniform in ``[-spread*lateral_scale,
    spread*lateral_scale]``, the vertical one uniform in ``[0, spread]`` times
    `vertical_bias`. An optional cone half-angle limits how far a direction
    may lean away from the bias axis.

    Attributes:
        spread (float): Magnitude of the random draw.
        lateral_scale (float): Horizontal wobble as a fraction of `spread`.
        vertical_bias (int): +1 (stems) or -1 (roots).
        cone_angle (Optional[float]): Max angle from the bias axis, radians.
    """

    def __init__(
        self,
        spread: float,
        lateral_scale: float = 0.5,
        vertical_bias: int = -1,
        cone_angle: Optional[float] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if spread < 0:
            raise InvalidConfiguration(
                f"spread must be non-negative; got {spread}", field="spread"
            )
        if lateral_scale < 0:
            raise InvalidConfiguration(
                f"lateral_scale must be non-negative; got {lateral_scale}",
                field="lateral_scale",
            )
        if vertical_bias not in (-1, 1):
            raise InvalidConfiguration(
                f"vertical_bias must be +1 or -1; got {vertical_bias}",
                field="vertical_bias",
            )
        if cone_angle is not None and not (0.0 < cone_angle <= np.pi):
            raise InvalidConfiguration(
                f"cone_angle must lie in (0, pi]; got {cone_angle}", field="cone_angle"
            )
        self.spread = float(spread)
        self.lateral_scale = float(lateral_scale)
        self.vertical_bias = int(vertical_bias)
        self.cone_angle = cone_angle
        self._rng = rng

    @property
    def rng(self) -> np.random.Generator:
        return self._rng if self._rng is not None else get_rng()

    @property
    def axis(self) -> NDArray[np.float64]:
        """Unit bias axis: +y for stems, -y for roots."""
        return np.array([0.0, float(self.vertical_bias), 0.0])

    def sample(self) -> NDArray[np.float64]:
        """Return one normalized growth direction, shape (3,)."""
        lateral = self.spread * self.lateral_scale
        dx, dz = self.rng.uniform(-lateral, lateral, size=2)
        dy = self.vertical_bias * self.rng.uniform(0.0, self.spread)
        direction = np.array([dx, dy, dz], dtype=float)

        mag = float(np.linalg.norm(direction))
        if mag < _EPS:
            _LOGGER.debug("Zero direction draw (spread=%g); using bias axis.", self.spread)
            return self.axis
        direction /= mag

        if self.cone_angle is not None:
            direction = self._clamp_to_cone(direction)
        return direction

    def _clamp_to_cone(self, direction: NDArray[np.float64]) -> NDArray[np.float64]:
        axis = self.axis
        cos_a = float(np.clip(np.dot(direction, axis), -1.0, 1.0))
        if np.arccos(cos_a) <= self.cone_angle:
            return direction

        side = direction - cos_a * axis
        side_mag = float(np.linalg.norm(side))
        if side_mag < _EPS:
            side = np.array([1.0, 0.0, 0.0])
        else:
            side /= side_mag
        clamped = np.cos(self.cone_angle) * axis + np.sin(self.cone_angle) * side
        _LOGGER.debug(
            "Direction %s outside cone (%.4g rad); clamped to %s",
            direction.tolist(),
            self.cone_angle,
            clamped.tolist(),
        )
        return clamped


class BranchGenerator:
    """Grow branch segments from nodes stored in a NodeArena.

    Attributes:
        arena (NodeArena): Node storage shared with the scheduler.
        decay (RadiusDecay): Policy tapering the radius with depth.
        start_radius (float): Radius fed to the decay policy.
        sampler (DirectionSampler): Default direction source.
    """

    def __init__(
        self,
        arena: NodeArena,
        decay: RadiusDecay,
        start_radius: float,
        sampler: DirectionSampler,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if start_radius < 0:
            raise InvalidConfiguration(
                f"start_radius must be non-negative; got {start_radius}",
                field="start_radius",
            )
        self.arena = arena
        self.decay = decay
        self.start_radius = float(start_radius)
        self.sampler = sampler
        self._rng = rng

    @property
    def rng(self) -> np.random.Generator:
        return self._rng if self._rng is not None else get_rng()

    def grow(
        self,
        start: int,
        branch_length: float,
        max_depth: int,
        sampler: Optional[DirectionSampler] = None,
    ) -> Optional[Tuple[BranchSegment, GrowthTask]]:
        """Walk `max_depth` steps from `start` and emit a segment.

        Each step jitters `branch_length` by a factor in [0.7, 1.3], moves
        along a freshly sampled unit direction, and tapers the radius with
        the decay policy evaluated at the new node's depth. The new nodes
        are stored in the arena.

        Args:
            start: Arena handle of the start node.
            branch_length: Base step length.
            max_depth: Number of depth steps to walk.
            sampler: Direction source overriding the generator's default.

        Returns:
            ``(segment, continuation)`` where the continuation starts at the
            terminal node with the segment's chord length, or None when
            `max_depth` is zero or the start node has a negative depth.
        """
        node = self.arena[start]
        if node.depth < 0 or max_depth <= 0:
            _LOGGER.debug(
                "grow(%d): no-op (depth=%d, max_depth=%d)", start, node.depth, max_depth
            )
            return None

        sampler = sampler or self.sampler
        lo, hi = LENGTH_JITTER

        points: List[NDArray[Any]] = [node.point]
        radii: List[float] = [node.radius]
        depths: List[int] = [node.depth]

        prev = node.point
        for step in range(1, max_depth + 1):
            depth = node.depth + step
            length = branch_length * float(self.rng.uniform(lo, hi))
            direction = sampler.sample()
            prev = prev + direction * length

            points.append(prev)
            radii.append(self.decay(self.start_radius, depth))
            depths.append(depth)

        handles = self.arena.add_nodes(points[1:], radii[1:], depths[1:], parent=start)
        segment = BranchSegment(
            points=np.vstack(points),
            radii=np.asarray(radii, dtype=float),
            depths=tuple(depths),
            nodes=(start, *handles),
        )
        continuation = GrowthTask(node=handles[-1], branch_length=segment.chord)

        _LOGGER.debug(
            "grow(%d): %d points, depth %d->%d, next branch_length=%.4g",
            start,
            len(segment),
            depths[0],
            depths[-1],
            continuation.branch_length,
        )
        return segment, continuation
