"""Module defining GrowthSystem, which wires growth to incremental meshing.

Per tick: the scheduler may grow new segments; each new segment is fitted
with a curve and turned into a tube producer owned by its own consumer; then
every unfinished consumer is stepped once. Results are plain data (segments,
curves, mesh buffers); attaching them to a scene is left to the caller.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

import numpy as np
from numpy.typing import NDArray

from .branch import BranchSegment
from .buffer import MeshBuffer, merge_buffers
from .consumer import IncrementalMeshConsumer
from .parameters import GrowthParameters
from .scheduler import GrowthScheduler
from .spline import Curve, fit
from .tube import TubeMeshBuilder

_LOGGER = logging.getLogger(__name__)


@dataclass(eq=False)
class BranchMesh:
    """Everything derived from one grown segment.

    Attributes:
        segment (BranchSegment): The grown points and radii.
        curve (Curve): Smooth curve through the segment points.
        polyline (NDArray[np.float64]): Read-only points for line rendering.
        consumer (IncrementalMeshConsumer): Animates the tube mesh.
    """

    segment: BranchSegment
    curve: Curve
    polyline: NDArray[np.float64]
    consumer: IncrementalMeshConsumer

    @property
    def buffer(self) -> MeshBuffer:
        return self.consumer.buffer

    @property
    def done(self) -> bool:
        return self.consumer.done


class GrowthSystem:
    """Grow a branching structure and mesh each branch as it appears.

    Attributes:
        params (GrowthParameters): Validated settings.
        scheduler (GrowthScheduler): Task queue driver.
        builder (TubeMeshBuilder): Tube geometry builder.
        branches (List[BranchMesh]): Meshed branches in growth order.
    """

    def __init__(
        self,
        params: Optional[GrowthParameters] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.params = params if params is not None else GrowthParameters()
        self.branches: List[BranchMesh] = []
        self._pending: Deque[BranchSegment] = deque()
        self.scheduler = GrowthScheduler(
            self.params, rng=rng, on_segment=self._pending.append
        )
        self.builder = TubeMeshBuilder(self.params.radial_segments)

    def mesh_segment(self, segment: BranchSegment) -> BranchMesh:
        """Fit a curve to `segment` and start an incremental tube for it."""
        spp = self.params.samples_per_point
        num_samples = (len(segment) - 1) * spp + 1
        curve = fit(
            segment.points, tension=self.params.tension, num_samples=num_samples
        )
        producer = self.builder.build(curve, segment.radii)
        consumer = IncrementalMeshConsumer(
            producer,
            growth_speed=self.params.growth_speed,
            items_per_step=self.params.effective_vertices_per_step(),
        )
        polyline = curve.get_points(len(segment) * spp)
        polyline.setflags(write=False)
        return BranchMesh(
            segment=segment, curve=curve, polyline=polyline, consumer=consumer
        )

    def update(self, delta_time: float) -> List[BranchMesh]:
        """Advance growth and meshing by `delta_time` ms.

        Returns:
            Branches whose mesh buffer changed this tick.
        """
        self.scheduler.update(delta_time)
        while self._pending:
            mesh = self.mesh_segment(self._pending.popleft())
            self.branches.append(mesh)
            _LOGGER.debug(
                "Branch %d meshing started (%d rings)",
                len(self.branches) - 1,
                mesh.consumer.producer.num_rings,
            )

        return [
            b for b in self.branches if not b.done and b.consumer.update(delta_time)
        ]

    @property
    def is_complete(self) -> bool:
        """True once no task is queued and every tube is fully built."""
        return self.scheduler.is_idle and all(b.done for b in self.branches)

    def merged_mesh(self) -> MeshBuffer:
        """Return every branch buffer concatenated into one mesh."""
        return merge_buffers(b.buffer for b in self.branches)

    @property
    def vertex_count(self) -> int:
        return sum(b.buffer.vertex_count for b in self.branches)

    @property
    def triangle_count(self) -> int:
        return sum(b.buffer.triangle_count for b in self.branches)

    def run(self, delta_time: float, max_ticks: int = 100_000) -> int:
        """Tick until complete or `max_ticks` is reached; return ticks used."""
        ticks = 0
        while not self.is_complete and ticks < max_ticks:
            self.update(delta_time)
            ticks += 1
        _LOGGER.info(
            "GrowthSystem ran %d ticks: branches=%d vertices=%d triangles=%d",
            ticks,
            len(self.branches),
            self.vertex_count,
            self.triangle_count,
        )
        return ticks
