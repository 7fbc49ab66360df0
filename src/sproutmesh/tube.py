"""Module defining the TubeMeshBuilder and its incremental producer.

A tube is built by sampling a curve at evenly spaced arclength fractions,
placing a ring of vertices around each sample in the swept normal/binormal
plane (radius interpolated from a radius profile), and joining consecutive
rings with strips of quads split into two triangles.

The builder returns a :class:`TubeMeshProducer` instead of a finished mesh:
each pull hands out a bounded number of vertices and at most one ring strip
of triangles, so a consumer can grow the tube a little every frame.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .buffer import MeshBatch, MeshBuffer
from .errors import EmptyRadiusProfile, InvalidConfiguration
from .spline import Curve

_LOGGER = logging.getLogger(__name__)

DEFAULT_RADIAL_SEGMENTS = 20


def interpolate_radius(radius_profile: Sequence[float], u: float) -> float:
    """Linearly interpolate `radius_profile` at fraction `u` in [0, 1].

    Raises:
        EmptyRadiusProfile: If the profile has no entries.
    """
    profile = np.asarray(radius_profile, dtype=float).reshape(-1)
    if profile.size == 0:
        raise EmptyRadiusProfile("radius interpolation needs at least one radius")
    if profile.size == 1:
        return float(profile[0])

    t = (profile.size - 1) * min(max(float(u), 0.0), 1.0)
    lower = int(math.floor(t))
    upper = min(lower + 1, profile.size - 1)
    frac = t - lower
    return float(profile[lower] * (1.0 - frac) + profile[upper] * frac)


def strip_indices(ring: int, radial_segments: int) -> NDArray[np.int64]:
    """Triangles joining ring `ring` to ring ``ring + 1``, shape (2*S, 3).

    For each segment ``j`` the quad ``a, b, c, d`` becomes triangles
    ``(a, b, d)`` and ``(b, c, d)``, wound so normals face outward.
    """
    S = radial_segments
    j = np.arange(S, dtype=np.int64)
    jn = (j + 1) % S
    a = ring * S + j
    b = ring * S + jn
    c = (ring + 1) * S + jn
    d = (ring + 1) * S + j
    tris = np.empty((S, 2, 3), dtype=np.int64)
    tris[:, 0] = np.stack([a, b, d], axis=1)
    tris[:, 1] = np.stack([b, c, d], axis=1)
    return tris.reshape(-1, 3)


class TubeMeshProducer:
    """Resumable cursor over a tube's vertices and triangles.

    The cursor holds ``(ring, vertex)`` for the next vertex to hand out and
    the index of the next strip to triangulate. A strip is only handed out
    once both of its rings have been, so every triangle references vertices
    the consumer already has. Once exhausted, every pull returns an empty
    batch; the producer cannot be restarted.

    Attributes:
        rings (NDArray[np.float64]): Ring vertices, shape (N, S, 3).
    """

    def __init__(self, rings: NDArray[Any]) -> None:
        rings = np.asarray(rings, dtype=float)
        if rings.ndim != 3 or rings.shape[2] != 3:
            raise ValueError(f"rings must have shape (N, S, 3); got {rings.shape}")
        self.rings = rings
        self._flat = rings.reshape(-1, 3)
        self.num_rings = int(rings.shape[0])
        self.radial_segments = int(rings.shape[1])

        self.current_ring = 0
        self.current_vertex = 0
        self.current_strip = 0

    @property
    def total_vertices(self) -> int:
        return self.num_rings * self.radial_segments

    @property
    def total_strips(self) -> int:
        return max(self.num_rings - 1, 0)

    @property
    def total_triangles(self) -> int:
        return 2 * self.radial_segments * self.total_strips

    @property
    def vertices_emitted(self) -> int:
        return self.current_ring * self.radial_segments + self.current_vertex

    @property
    def exhausted(self) -> bool:
        return (
            self.vertices_emitted >= self.total_vertices
            and self.current_strip >= self.total_strips
        )

    def next_batch(self, max_vertices: int) -> Tuple[MeshBatch, bool]:
        """Advance the cursor by up to `max_vertices` vertices and one strip.

        Args:
            max_vertices: Upper bound on vertices in the returned batch.

        Returns:
            ``(batch, done)``; `done` is True once everything was handed out.
        """
        if max_vertices < 0:
            raise ValueError(f"max_vertices must be non-negative; got {max_vertices}")
        if self.exhausted:
            return MeshBatch(), True

        start = self.vertices_emitted
        stop = min(start + int(max_vertices), self.total_vertices)
        vertices = self._flat[start:stop].copy()
        self.current_ring, self.current_vertex = divmod(stop, self.radial_segments)

        indices = np.zeros((0, 3), dtype=np.int64)
        strip = self.current_strip
        if strip < self.total_strips and stop >= (strip + 2) * self.radial_segments:
            indices = strip_indices(strip, self.radial_segments)
            self.current_strip += 1

        done = self.exhausted
        _LOGGER.debug(
            "TubeMeshProducer: vertices %d-%d, strip=%s, done=%s",
            start,
            stop,
            strip if indices.shape[0] else None,
            done,
        )
        return MeshBatch(vertices=vertices, indices=indices), done

    def drain(self, max_vertices: Optional[int] = None) -> MeshBuffer:
        """Pull until exhausted and collect everything into a MeshBuffer."""
        step = max_vertices or max(self.radial_segments, 1)
        buf = MeshBuffer()
        done = self.exhausted
        while not done:
            batch, done = self.next_batch(step)
            buf.extend(batch)
        return buf


class TubeMeshBuilder:
    """Build tapered tube geometry around curves.

    Attributes:
        radial_segments (int): Default number of vertices per ring.
    """

    def __init__(self, radial_segments: int = DEFAULT_RADIAL_SEGMENTS) -> None:
        _check_radial_segments(radial_segments)
        self.radial_segments = int(radial_segments)

    def rings(
        self,
        curve: Curve,
        radius_profile: Union[Sequence[float], NDArray[Any]],
        radial_segments: Optional[int] = None,
        num_samples: Optional[int] = None,
    ) -> NDArray[np.float64]:
        """Compute every ring of the tube, shape (N, S, 3).

        Args:
            curve: Curve to extrude along.
            radius_profile: Radii along the curve, at least one entry.
            radial_segments: Vertices per ring (defaults to the builder's).
            num_samples: Number of rings N (defaults to the curve's samples).

        Raises:
            EmptyRadiusProfile: If `radius_profile` is empty.
            InvalidConfiguration: If `radial_segments` or `num_samples` is
                out of range.
        """
        S = self.radial_segments if radial_segments is None else int(radial_segments)
        _check_radial_segments(S)
        N = curve.num_samples if num_samples is None else int(num_samples)
        if N < 2:
            raise InvalidConfiguration(
                f"a tube needs at least 2 rings; got {N}", field="num_samples"
            )
        profile = np.asarray(radius_profile, dtype=float).reshape(-1)
        if profile.size == 0:
            raise EmptyRadiusProfile("radius profile must have at least one entry")

        if N == curve.num_samples:
            normals, binormals = curve.normals, curve.binormals
        else:
            _, normals, binormals = curve.compute_frames(N)

        u = np.linspace(0.0, 1.0, N)
        positions = curve.sample_at(u)  # (N, 3)
        radii = np.array([interpolate_radius(profile, ui) for ui in u])

        theta = 2.0 * np.pi * np.arange(S) / S
        cos_t = np.cos(theta)[None, :, None]
        sin_t = np.sin(theta)[None, :, None]
        offsets = cos_t * normals[:, None, :] + sin_t * binormals[:, None, :]
        rings = positions[:, None, :] + radii[:, None, None] * offsets

        _LOGGER.debug(
            "Tube rings: N=%d S=%d radius %.4g->%.4g", N, S, radii[0], radii[-1]
        )
        return rings

    def build(
        self,
        curve: Curve,
        radius_profile: Union[Sequence[float], NDArray[Any]],
        radial_segments: Optional[int] = None,
        num_samples: Optional[int] = None,
    ) -> TubeMeshProducer:
        """Return an incremental producer for the tube around `curve`."""
        return TubeMeshProducer(
            self.rings(curve, radius_profile, radial_segments, num_samples)
        )

    def build_mesh(
        self,
        curve: Curve,
        radius_profile: Union[Sequence[float], NDArray[Any]],
        radial_segments: Optional[int] = None,
        num_samples: Optional[int] = None,
    ) -> MeshBuffer:
        """Build the whole tube at once (non-incremental)."""
        rings = self.rings(curve, radius_profile, radial_segments, num_samples)
        N, S = rings.shape[0], rings.shape[1]
        indices = (
            np.vstack([strip_indices(i, S) for i in range(N - 1)])
            if N > 1
            else np.zeros((0, 3), dtype=np.int64)
        )
        buf = MeshBuffer()
        buf.extend(MeshBatch(vertices=rings.reshape(-1, 3), indices=indices))
        return buf


def _check_radial_segments(radial_segments: int) -> None:
    if radial_segments < 1:
        raise InvalidConfiguration(
            f"radial_segments must be at least 1; got {radial_segments}",
            field="radial_segments",
        )
