"""Tests for the NodeArena handle store and its parent links."""

import numpy as np
import pytest

from sproutmesh.nodes import GrowthNode, GrowthTask, NodeArena


def test_add_returns_sequential_handles():
    """Handles are dense and parents are recorded."""
    arena = NodeArena()
    root = arena.add([0.0, 0.0, 0.0], radius=0.3, depth=0)
    child = arena.add([0.0, -1.0, 0.0], radius=0.18, depth=1, parent=root)

    assert (root, child) == (0, 1)
    assert len(arena) == 2
    assert arena.last_node == child
    assert isinstance(arena[child], GrowthNode)
    assert arena.parent(child) == root
    assert arena.parent(root) is None


def test_node_points_are_read_only():
    """Stored points cannot be mutated in place."""
    arena = NodeArena()
    h = arena.add([1.0, 2.0, 3.0], radius=1.0, depth=0)
    with pytest.raises(ValueError):
        arena[h].point[0] = 5.0


def test_add_rejects_bad_input():
    """Non-3D points and unknown parents are rejected."""
    arena = NodeArena()
    with pytest.raises(ValueError):
        arena.add([0.0, 0.0], radius=1.0, depth=0)
    with pytest.raises(ValueError):
        arena.add([0.0, 0.0, 0.0], radius=1.0, depth=0, parent=3)


def test_add_nodes_chains_parents():
    """add_nodes links each node to the previous one."""
    arena = NodeArena()
    root = arena.add([0.0, 0.0, 0.0], radius=1.0, depth=0)
    handles = arena.add_nodes(
        points=[[0, -1, 0], [0, -2, 0], [0, -3, 0]],
        radii=[0.5, 0.25, 0.125],
        depths=[1, 2, 3],
        parent=root,
    )

    assert handles == [1, 2, 3]
    assert arena.path_to_root(handles[-1]) == [3, 2, 1, 0]
    assert [n.depth for n in arena] == [0, 1, 2, 3]
    np.testing.assert_allclose(arena.points()[:, 1], [0.0, -1.0, -2.0, -3.0])


def test_add_nodes_length_mismatch():
    """Chains need one radius and depth per point."""
    arena = NodeArena()
    with pytest.raises(ValueError):
        arena.add_nodes(points=[[0, 0, 0]], radii=[1.0, 2.0], depths=[1])


def test_empty_arena_points_shape():
    """An empty arena still yields an (0, 3) array."""
    assert NodeArena().points().shape == (0, 3)


def test_growth_task_is_a_value():
    """Tasks compare by value."""
    assert GrowthTask(node=2, branch_length=1.5) == GrowthTask(node=2, branch_length=1.5)
