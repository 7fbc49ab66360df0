"""Module defining growth nodes, growth tasks and the NodeArena that owns them.

Nodes live in an arena and are addressed by integer handles. Tasks and
segments refer to nodes by handle only, so the branching topology stays a
forward-only tree without shared object references.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GrowthNode:
    """A point of the structure with its radius and depth from the root.

    Attributes:
        point (NDArray[np.float64]): Position, shape (3,).
        radius (float): Branch radius at this node.
        depth (int): Steps from the root (0 at the root).
        parent (Optional[int]): Handle of the node this one grew from.
    """

    point: NDArray[np.float64]
    radius: float
    depth: int
    parent: Optional[int] = None


@dataclass(frozen=True)
class GrowthTask:
    """A queued unit of pending branch expansion.

    Attributes:
        node (int): Handle of the node to grow from.
        branch_length (float): Base step length for the next segment.
    """

    node: int
    branch_length: float


class NodeArena:
    """Own every GrowthNode of a structure and hand out integer handles.

    Attributes:
        nodes (List[GrowthNode]): All nodes in creation order.
        last_node (int): Handle of the most recently added node (-1 if empty).
    """

    def __init__(self) -> None:
        self.nodes: List[GrowthNode] = []
        self.last_node: int = -1

    def add(
        self,
        point: Union[NDArray[Any], Sequence[float]],
        radius: float,
        depth: int,
        parent: Optional[int] = None,
    ) -> int:
        """Store a new node and return its handle.

        Args:
            point: Node position (3 components).
            radius: Radius at the node.
            depth: Depth relative to the root.
            parent: Handle of the node it grew from, if any.

        Returns:
            int: Handle of the new node.

        Raises:
            ValueError: If `point` is not 3D or `parent` is not a known handle.
        """
        p = np.array(point, dtype=float).reshape(-1)
        if p.size != 3:
            raise ValueError(f"node point must have 3 components; got shape {p.shape}")
        if parent is not None and not (0 <= parent < len(self.nodes)):
            raise ValueError(f"unknown parent handle {parent}")
        p.setflags(write=False)

        self.nodes.append(
            GrowthNode(point=p, radius=float(radius), depth=int(depth), parent=parent)
        )
        self.last_node = len(self.nodes) - 1
        _LOGGER.debug(
            "Added node %d at %s (radius=%.4g, depth=%d, parent=%s)",
            self.last_node,
            p.tolist(),
            radius,
            depth,
            parent,
        )
        return self.last_node

    def add_nodes(
        self,
        points: Sequence[Union[NDArray[Any], Sequence[float]]],
        radii: Sequence[float],
        depths: Sequence[int],
        parent: Optional[int] = None,
    ) -> List[int]:
        """Append a chain of nodes, each parented to the previous one.

        Args:
            points: Positions of the chain, in growth order.
            radii: Radius per point.
            depths: Depth per point.
            parent: Handle the first point grew from.

        Returns:
            List[int]: Handles of the newly added nodes.
        """
        if not (len(points) == len(radii) == len(depths)):
            raise ValueError("points, radii and depths must have the same length")

        handles: List[int] = []
        prev = parent
        for point, radius, depth in zip(points, radii, depths):
            prev = self.add(point, radius, depth, parent=prev)
            handles.append(prev)
        return handles

    def __getitem__(self, handle: int) -> GrowthNode:
        return self.nodes[handle]

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[GrowthNode]:
        return iter(self.nodes)

    def points(self) -> NDArray[np.float64]:
        """Return all node positions as an (n, 3) array."""
        if not self.nodes:
            return np.zeros((0, 3), dtype=float)
        return np.vstack([n.point for n in self.nodes])

    def parent(self, handle: int) -> Optional[int]:
        """Return the handle `handle` grew from, or None for the root."""
        return self.nodes[handle].parent

    def path_to_root(self, handle: int) -> List[int]:
        """Return handles from `handle` back to the root, inclusive."""
        path = [handle]
        current = self.nodes[handle].parent
        while current is not None:
            path.append(current)
            current = self.nodes[current].parent
        return path
