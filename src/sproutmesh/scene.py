"""Module converting grown geometry into viewer-ready mesh objects.

Mesh buffers become triangle PolyData (pyvista) or meshio meshes, and the
node arena becomes a line skeleton following the parent links. Everything
stays in memory; writing files is left to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import meshio
import numpy as np
import pyvista as pv
from numpy.typing import NDArray

from .buffer import MeshBuffer
from .nodes import NodeArena

logger = logging.getLogger(__name__)


def buffer_to_polydata(buffer: MeshBuffer) -> pv.PolyData:
    """Return the triangles of `buffer` as a PolyData surface.

    Args:
        buffer (MeshBuffer): Geometry to convert.

    Returns:
        pv.PolyData: One triangle cell per index triple.
    """
    vertices, indices = buffer.as_arrays()
    if indices.shape[0] == 0:
        return pv.PolyData(vertices) if vertices.shape[0] else pv.PolyData()
    faces = np.hstack(
        [np.full((indices.shape[0], 1), 3, dtype=np.int64), indices]
    ).ravel()
    return pv.PolyData(vertices, faces=faces)


def polyline_to_polydata(points: NDArray[Any]) -> pv.PolyData:
    """Return an ordered point list as a single polyline cell."""
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    lines = np.concatenate([[pts.shape[0]], np.arange(pts.shape[0])])
    return pv.PolyData(pts, lines=lines)


def skeleton_polydata(arena: NodeArena) -> pv.PolyData:
    """Build a line mesh of every parent-child link in `arena`.

    Point data carries ``radius`` and ``depth`` per node.
    """
    points = arena.points()
    edges = np.array(
        [(node.parent, i) for i, node in enumerate(arena) if node.parent is not None],
        dtype=np.int64,
    ).reshape(-1, 2)

    if edges.shape[0]:
        lines = np.hstack([np.full((edges.shape[0], 1), 2, dtype=np.int64), edges])
        poly = pv.PolyData(points, lines=lines.ravel())
    else:
        poly = pv.PolyData(points)
    poly.point_data["radius"] = np.array([n.radius for n in arena], dtype=float)
    poly.point_data["depth"] = np.array([n.depth for n in arena], dtype=np.int64)

    logger.debug("Skeleton: %d nodes, %d links", points.shape[0], edges.shape[0])
    return poly


def buffer_to_meshio(
    buffer: MeshBuffer,
    point_data: Optional[Dict[str, Any]] = None,
) -> meshio.Mesh:
    """Return `buffer` as a meshio Mesh with triangle cells.

    Args:
        buffer (MeshBuffer): Geometry to convert.
        point_data (Optional[Dict[str, Any]]): Optional per-vertex arrays.
    """
    vertices, indices = buffer.as_arrays()
    mesh = meshio.Mesh(points=vertices, cells={"triangle": indices})
    mesh.point_data = point_data or {}
    return mesh
