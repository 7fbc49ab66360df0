"""Module defining the GrowthParameters class for configuring structure growth.

This module provides GrowthParameters, which holds all settings for growing
a branching structure and meshing its branches, plus eager validation.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from .config import float_env, int_env
from .decay import RadiusDecay
from .errors import InvalidConfiguration


@dataclass
class GrowthParameters:
    """Holds settings for growing a branching structure.

    Attributes:
        max_depth (int): Depth at which every lineage stops growing.
        base_branch_length (float): Step length of the first segments.
        start_radius (float): Radius at the root (depth 0).
        spread (float): Magnitude of the stochastic direction draw.
        lateral_scale (float): Horizontal wobble as a fraction of `spread`.
        vertical_bias (int): +1 grows upward (stems), -1 downward (roots).
        cone_angle (Optional[float]): Max angle (rad) between a step and the
            bias axis; None disables the clamp.
        growth_speed (float): Milliseconds between mesh-producer steps.
        new_branch_rate (float): Milliseconds between queue pops.
        starting_branches (int): Tasks seeded at the root.
        branches_per_frame (int): Max tasks popped per pop event.
        segment_depth (Optional[int]): Depth steps per grown segment; None
            grows each lineage to `max_depth` in one segment.
        decay_method (str): One of "inverse", "exponential", "sigmoid".
        decay_constant (float): Per-depth factor of the exponential policy.
        radial_segments (int): Vertices per tube ring.
        tension (float): Catmull-Rom tension of branch curves.
        samples_per_point (int): Curve samples per segment point.
        vertices_per_step (Optional[int]): Vertices pulled per producer step;
            None pulls one ring per step.
        max_children (int): Upper bound on continuations queued per grow.
        branch_chance (float): Probability that a popped task is grown.
        origin (Tuple[float, float, float]): Root position.

    Notes:
        - Validation happens in :meth:`validate`, which the scheduler calls
          before creating any node or queue.
        - Set `spread` to zero to remove direction randomness; length jitter
          stays in effect.
    """

    max_depth: int = 10
    base_branch_length: float = 1.0
    start_radius: float = 0.3
    spread: float = 0.5
    lateral_scale: float = 0.5
    vertical_bias: int = -1
    cone_angle: Optional[float] = None
    growth_speed: float = 16.0
    new_branch_rate: float = 100.0
    starting_branches: int = 3
    branches_per_frame: int = 1
    segment_depth: Optional[int] = None
    decay_method: str = "exponential"
    decay_constant: float = 0.6
    radial_segments: int = 20
    tension: float = 0.5
    samples_per_point: int = 5
    vertices_per_step: Optional[int] = None
    max_children: int = 1
    branch_chance: float = 1.0
    origin: Tuple[float, float, float] = field(default=(0.0, 0.0, 0.0))

    def validate(self) -> GrowthParameters:
        """Check every option and raise on the first invalid one.

        Returns:
            self, so calls can be chained.

        Raises:
            InvalidConfiguration: If any option is out of range.
        """
        if self.max_depth <= 0:
            _fail("max_depth", f"max_depth must be positive; got {self.max_depth}")
        if self.base_branch_length <= 0:
            _fail(
                "base_branch_length",
                f"base_branch_length must be positive; got {self.base_branch_length}",
            )
        if self.start_radius < 0:
            _fail(
                "start_radius",
                f"start_radius must be non-negative; got {self.start_radius}",
            )
        if self.spread < 0:
            _fail("spread", f"spread must be non-negative; got {self.spread}")
        if self.lateral_scale < 0:
            _fail(
                "lateral_scale",
                f"lateral_scale must be non-negative; got {self.lateral_scale}",
            )
        if self.vertical_bias not in (-1, 1):
            _fail(
                "vertical_bias",
                f"vertical_bias must be +1 or -1; got {self.vertical_bias}",
            )
        if self.cone_angle is not None and not (0.0 < self.cone_angle <= math.pi):
            _fail(
                "cone_angle",
                f"cone_angle must lie in (0, pi]; got {self.cone_angle}",
            )
        if self.growth_speed < 0 or self.new_branch_rate < 0:
            _fail(
                "growth_speed" if self.growth_speed < 0 else "new_branch_rate",
                "growth_speed and new_branch_rate must be non-negative",
            )
        if self.starting_branches < 0:
            _fail(
                "starting_branches",
                f"starting_branches must be non-negative; got {self.starting_branches}",
            )
        if self.branches_per_frame < 1:
            _fail(
                "branches_per_frame",
                f"branches_per_frame must be at least 1; got {self.branches_per_frame}",
            )
        if self.segment_depth is not None and self.segment_depth < 1:
            _fail(
                "segment_depth",
                f"segment_depth must be at least 1; got {self.segment_depth}",
            )
        if self.radial_segments < 1:
            _fail(
                "radial_segments",
                f"radial_segments must be at least 1; got {self.radial_segments}",
            )
        if self.tension < 0:
            _fail("tension", f"tension must be non-negative; got {self.tension}")
        if self.samples_per_point < 1:
            _fail(
                "samples_per_point",
                f"samples_per_point must be at least 1; got {self.samples_per_point}",
            )
        if self.vertices_per_step is not None and self.vertices_per_step < 1:
            _fail(
                "vertices_per_step",
                f"vertices_per_step must be at least 1; got {self.vertices_per_step}",
            )
        if self.max_children < 1:
            _fail(
                "max_children",
                f"max_children must be at least 1; got {self.max_children}",
            )
        if not (0.0 <= self.branch_chance <= 1.0):
            _fail(
                "branch_chance",
                f"branch_chance must lie in [0, 1]; got {self.branch_chance}",
            )
        if len(self.origin) != 3:
            _fail("origin", f"origin must have 3 components; got {self.origin!r}")
        # Raises InvalidConfiguration for unknown names or a bad constant.
        self.decay_policy()
        return self

    def decay_policy(self) -> RadiusDecay:
        """Return the configured radius decay policy."""
        return RadiusDecay.from_name(self.decay_method, self.decay_constant)

    def effective_segment_depth(self) -> int:
        """Depth steps per grown segment, resolving the None default."""
        return self.max_depth if self.segment_depth is None else self.segment_depth

    def effective_vertices_per_step(self) -> int:
        """Vertices pulled per producer step, resolving the None default."""
        if self.vertices_per_step is None:
            return self.radial_segments
        return self.vertices_per_step

    @classmethod
    def from_env(
        cls, prefix: str = "SPROUTMESH_", **overrides: Any
    ) -> GrowthParameters:
        """Build parameters from defaults, environment, then `overrides`.

        Numeric options are read from ``<prefix><FIELD_NAME>`` (upper case).
        The decay method is read from ``<prefix>DECAY_METHOD``.
        """
        values: Dict[str, Any] = {}
        defaults = cls()
        for f in fields(cls):
            default = getattr(defaults, f.name)
            varname = f"{prefix}{f.name.upper()}"
            if f.name == "decay_method":
                values[f.name] = os.getenv(varname, default)
            elif isinstance(default, bool) or default is None or f.name == "origin":
                continue
            elif isinstance(default, int):
                values[f.name] = int_env(varname, default)
            elif isinstance(default, float):
                values[f.name] = float_env(varname, default)
        values.update(overrides)
        return cls(**values)


def _fail(name: str, message: str) -> None:
    raise InvalidConfiguration(message, field=name)
