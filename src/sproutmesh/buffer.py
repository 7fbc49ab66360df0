"""Module defining MeshBatch and MeshBuffer, the geometry handed to renderers.

A MeshBuffer only grows: batches of vertices and triangles are appended as a
producer is advanced, and a version counter lets a renderer detect changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Tuple

import numpy as np
from numpy.typing import NDArray

_LOGGER = logging.getLogger(__name__)


def _empty_vertices() -> NDArray[np.float64]:
    return np.zeros((0, 3), dtype=float)


def _empty_indices() -> NDArray[np.int64]:
    return np.zeros((0, 3), dtype=np.int64)


@dataclass(frozen=True, eq=False)
class MeshBatch:
    """Vertices and triangles produced by one producer pull.

    Attributes:
        vertices (NDArray[np.float64]): Shape (k, 3).
        indices (NDArray[np.int64]): Triangle index triples, shape (m, 3).
    """

    vertices: NDArray[np.float64] = field(default_factory=_empty_vertices)
    indices: NDArray[np.int64] = field(default_factory=_empty_indices)

    @property
    def is_empty(self) -> bool:
        return self.vertices.shape[0] == 0 and self.indices.shape[0] == 0


class MeshBuffer:
    """Growable vertex/index store owned by a single consumer.

    Attributes:
        version (int): Incremented every time geometry is appended.
    """

    def __init__(self) -> None:
        self._vertices: List[NDArray[Any]] = []
        self._indices: List[NDArray[Any]] = []
        self._vertex_count = 0
        self._triangle_count = 0
        self.version = 0

    def extend(self, batch: MeshBatch) -> bool:
        """Append a batch; return True if anything was added.

        Raises:
            ValueError: If the batch references a vertex not yet in the buffer.
        """
        if batch.is_empty:
            return False

        n_new = int(batch.vertices.shape[0])
        if batch.indices.shape[0]:
            highest = int(batch.indices.max())
            if highest >= self._vertex_count + n_new:
                raise ValueError(
                    f"batch references vertex {highest} but buffer will only "
                    f"hold {self._vertex_count + n_new}"
                )
        if n_new:
            self._vertices.append(np.asarray(batch.vertices, dtype=float))
            self._vertex_count += n_new
        if batch.indices.shape[0]:
            self._indices.append(np.asarray(batch.indices, dtype=np.int64))
            self._triangle_count += int(batch.indices.shape[0])

        self.version += 1
        _LOGGER.debug(
            "MeshBuffer v%d: vertices=%d triangles=%d",
            self.version,
            self._vertex_count,
            self._triangle_count,
        )
        return True

    @property
    def vertex_count(self) -> int:
        return self._vertex_count

    @property
    def triangle_count(self) -> int:
        return self._triangle_count

    @property
    def vertices(self) -> NDArray[np.float64]:
        """All vertices appended so far, shape (n, 3)."""
        if not self._vertices:
            return _empty_vertices()
        if len(self._vertices) > 1:
            self._vertices = [np.vstack(self._vertices)]
        return self._vertices[0]

    @property
    def indices(self) -> NDArray[np.int64]:
        """All triangle index triples appended so far, shape (m, 3)."""
        if not self._indices:
            return _empty_indices()
        if len(self._indices) > 1:
            self._indices = [np.vstack(self._indices)]
        return self._indices[0]

    def as_arrays(self) -> Tuple[NDArray[np.float64], NDArray[np.int64]]:
        """Return ``(vertices, indices)``."""
        return self.vertices, self.indices

    def flat_positions(self) -> NDArray[np.float32]:
        """Vertices flattened to ``[x0, y0, z0, x1, ...]`` as float32."""
        return self.vertices.astype(np.float32).reshape(-1)

    def flat_indices(self) -> NDArray[np.uint32]:
        """Triangle indices flattened to a uint32 index buffer."""
        return self.indices.astype(np.uint32).reshape(-1)

    def __repr__(self) -> str:
        return (
            f"MeshBuffer(vertices={self._vertex_count}, "
            f"triangles={self._triangle_count}, version={self.version})"
        )


def merge_buffers(buffers: Iterable[MeshBuffer]) -> MeshBuffer:
    """Concatenate buffers into one, offsetting each buffer's indices."""
    merged = MeshBuffer()
    for buf in buffers:
        vertices, indices = buf.as_arrays()
        merged.extend(
            MeshBatch(vertices=vertices, indices=indices + merged.vertex_count)
        )
    return merged
