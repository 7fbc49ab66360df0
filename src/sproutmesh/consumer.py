"""Module defining IncrementalMeshConsumer, which animates a tube producer.

Every tick the consumer accumulates elapsed time; once `growth_speed`
milliseconds have passed it pulls one bounded batch from its producer into
the MeshBuffer it owns exclusively.
"""

from __future__ import annotations

import logging
from typing import Optional

from .buffer import MeshBuffer
from .tube import TubeMeshProducer

_LOGGER = logging.getLogger(__name__)


class IncrementalMeshConsumer:
    """Step a TubeMeshProducer at a bounded rate.

    Attributes:
        producer (TubeMeshProducer): Source of geometry.
        buffer (MeshBuffer): Geometry accumulated so far.
        growth_speed (float): Milliseconds between producer steps.
        items_per_step (int): Max vertices pulled per step.
        done (bool): True once the producer is exhausted.
    """

    def __init__(
        self,
        producer: TubeMeshProducer,
        growth_speed: float = 0.0,
        items_per_step: Optional[int] = None,
        buffer: Optional[MeshBuffer] = None,
    ) -> None:
        if growth_speed < 0:
            raise ValueError(f"growth_speed must be non-negative; got {growth_speed}")
        step = producer.radial_segments
        if items_per_step is not None:
            step = int(items_per_step)
        if step < 1:
            raise ValueError(f"items_per_step must be at least 1; got {step}")

        self.producer = producer
        self.buffer = buffer if buffer is not None else MeshBuffer()
        self.growth_speed = float(growth_speed)
        self.items_per_step = step
        self.done = producer.exhausted
        self._timer = 0.0
        self.steps = 0

    def step(self) -> bool:
        """Pull one batch regardless of the timer; return True on change."""
        if self.done:
            return False
        batch, self.done = self.producer.next_batch(self.items_per_step)
        self.steps += 1
        changed = self.buffer.extend(batch)
        if self.done:
            _LOGGER.debug(
                "Consumer finished after %d steps: %r", self.steps, self.buffer
            )
        return changed

    def update(self, delta_time: float) -> bool:
        """Advance the clock by `delta_time` ms; step once if it is due.

        Returns:
            True if the buffer changed and the displayed geometry should be
            rebuilt.
        """
        if self.done:
            return False
        self._timer += delta_time
        if self._timer < self.growth_speed:
            return False
        self._timer = 0.0
        return self.step()
