"""Module defining the GrowthScheduler, the time-driven driver of growth.

The scheduler owns the node arena and a FIFO queue of growth tasks. On every
``update(delta_time)`` it accumulates elapsed time; once `new_branch_rate`
milliseconds have passed it pops up to `branches_per_frame` tasks, grows each
non-terminal one into a segment, and queues the continuation. Servicing
tasks strictly first-in first-out gives shallow lineages priority without any
explicit breadth bookkeeping.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, List, Optional

import numpy as np

from .branch import BranchGenerator, BranchSegment, DirectionSampler
from .config import get_rng
from .nodes import GrowthTask, NodeArena
from .parameters import GrowthParameters

_LOGGER = logging.getLogger(__name__)

SegmentCallback = Callable[[BranchSegment], None]


class GrowthScheduler:
    """Pull growth tasks off a FIFO queue at a bounded rate.

    Attributes:
        params (GrowthParameters): Validated growth settings.
        arena (NodeArena): Every node grown so far.
        root (int): Handle of the root node.
        queue (Deque[GrowthTask]): Pending growth tasks.
        generator (BranchGenerator): Expands tasks into segments.
        last_growth_time (float): Milliseconds since the last pop.
        segments_emitted (int): Number of segments grown so far.
    """

    def __init__(
        self,
        params: GrowthParameters,
        rng: Optional[np.random.Generator] = None,
        on_segment: Optional[SegmentCallback] = None,
    ) -> None:
        """Validate `params`, create the root and seed the queue.

        Args:
            params: Growth settings; validated before anything is created.
            rng: Random source; defaults to the package generator.
            on_segment: Called with every segment as soon as it is grown.

        Raises:
            InvalidConfiguration: If `params` is invalid.
        """
        self.params = params.validate()
        self._rng = rng
        self.on_segment = on_segment

        self.arena = NodeArena()
        self.root = self.arena.add(params.origin, params.start_radius, 0)

        sampler = DirectionSampler(
            spread=params.spread,
            lateral_scale=params.lateral_scale,
            vertical_bias=params.vertical_bias,
            cone_angle=params.cone_angle,
            rng=rng,
        )
        self.generator = BranchGenerator(
            self.arena,
            params.decay_policy(),
            params.start_radius,
            sampler,
            rng=rng,
        )

        self.queue: Deque[GrowthTask] = deque(
            GrowthTask(node=self.root, branch_length=params.base_branch_length)
            for _ in range(params.starting_branches)
        )
        self.last_growth_time = 0.0
        self.segments_emitted = 0
        self._complete_logged = False

        _LOGGER.info(
            "GrowthScheduler initialized: max_depth=%d starting_branches=%d "
            "decay=%s rate=%.4gms",
            params.max_depth,
            params.starting_branches,
            params.decay_method,
            params.new_branch_rate,
        )

    @property
    def rng(self) -> np.random.Generator:
        return self._rng if self._rng is not None else get_rng()

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def is_idle(self) -> bool:
        """True once the queue is empty; growth is then complete for good."""
        return not self.queue

    def update(self, delta_time: float) -> List[BranchSegment]:
        """Advance the clock by `delta_time` ms and grow any due tasks.

        Returns:
            The segments grown during this call (possibly empty).
        """
        self.last_growth_time += delta_time
        if not self.queue:
            if not self._complete_logged:
                _LOGGER.info(
                    "Growth complete: %d nodes, %d segments",
                    len(self.arena),
                    self.segments_emitted,
                )
                self._complete_logged = True
            return []
        if self.last_growth_time < self.params.new_branch_rate:
            return []

        self.last_growth_time = 0.0
        # Only tasks queued before this pop are eligible this frame.
        count = min(self.params.branches_per_frame, len(self.queue))
        segments: List[BranchSegment] = []
        for _ in range(count):
            segment = self._service(self.queue.popleft())
            if segment is not None:
                segments.append(segment)

        _LOGGER.debug(
            "update: popped=%d grown=%d queue=%d", count, len(segments), len(self.queue)
        )
        return segments

    def _service(self, task: GrowthTask) -> Optional[BranchSegment]:
        node = self.arena[task.node]
        max_depth = self.params.max_depth
        if node.depth >= max_depth:
            _LOGGER.debug(
                "Dropping terminal task at node %d (depth=%d)", task.node, node.depth
            )
            return None
        chance = self.params.branch_chance
        if chance < 1.0 and self.rng.random() >= chance:
            _LOGGER.debug("Task at node %d not grown (branch_chance)", task.node)
            return None

        steps = min(self.params.effective_segment_depth(), max_depth - node.depth)
        result = self.generator.grow(task.node, task.branch_length, steps)
        if result is None:
            return None
        segment, continuation = result

        children = 1
        if self.params.max_children > 1:
            children = int(
                self.rng.integers(1, self.params.max_children, endpoint=True)
            )
        self.queue.extend([continuation] * children)
        self.segments_emitted += 1

        _LOGGER.debug(
            "Segment %d grown from node %d: depth %d->%d, %d continuation(s)",
            self.segments_emitted,
            task.node,
            segment.depths[0],
            segment.depths[-1],
            children,
        )
        if self.on_segment is not None:
            self.on_segment(segment)
        return segment
