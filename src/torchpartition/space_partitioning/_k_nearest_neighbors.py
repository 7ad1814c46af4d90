"""k-nearest neighbors query with branch-and-bound tree traversal."""

from __future__ import annotations

import heapq
from typing import NamedTuple, Optional

import torch
from torch import Tensor

from torchpartition.geometry import (
    point_box_squared_distance,
    squared_distance,
)

from ._exceptions import EmptyTreeError, InvalidArgumentError
from ._kd_tree import KdLeaf, KdTree
from ._trace import QueryTrace, TraversalDecision, _TraceRecorder


class NearestNeighbors(NamedTuple):
    """Result of :func:`k_nearest_neighbors`.

    Parameters
    ----------
    points : Tensor, shape (m, k)
        Neighbors ordered by increasing distance.
    indices : Tensor, shape (m,), dtype=int64
        Storage indices of the neighbors.
    distances : Tensor, shape (m,)
        Euclidean distances to the query point.
    trace : QueryTrace, optional
        Traversal trace, present only for traced queries.
    """

    points: Tensor
    indices: Tensor
    distances: Tensor
    trace: Optional[QueryTrace] = None


def k_nearest_neighbors(
    tree: KdTree,
    point: Tensor,
    k: int = 1,
    *,
    traced: bool = False,
) -> NearestNeighbors:
    """Find the k stored points closest to a query point.

    Parameters
    ----------
    tree : KdTree
        Spatial index built by :func:`kd_tree` or grown by insertion.
    point : Tensor, shape (d,)
        Query point.
    k : int, default=1
        Number of neighbors. When fewer points are stored, all of them are
        returned.
    traced : bool, default=False
        Also return the ordered trace of visited nodes.

    Returns
    -------
    NearestNeighbors
        Neighbors ordered by increasing distance; equal distances are
        ordered by storage index.

    Raises
    ------
    EmptyTreeError
        If the tree stores no points.
    InvalidArgumentError
        If ``k <= 0`` or ``point`` does not match the tree dimension.

    Notes
    -----
    Depth-first branch and bound over an explicit stack. A bounded max-heap
    keeps the best ``k`` candidates keyed by ``(squared distance, storage
    index)``. At a split node the child whose half-space holds the query is
    visited first; any node is pruned once the heap is full and the squared
    distance from the query to the node's bounds exceeds the worst kept
    candidate. All comparisons use squared distances; square roots are
    taken only on the reported distances.

    Examples
    --------
    >>> points = torch.tensor(
    ...     [[0.0, 0.0], [10.0, 0.0], [0.0, 10.0], [10.0, 10.0], [5.0, 5.0]]
    ... )
    >>> tree = kd_tree(points)
    >>> k_nearest_neighbors(tree, torch.tensor([5.0, 4.0])).points
    tensor([[5., 5.]])
    """
    if not isinstance(tree, KdTree):
        raise InvalidArgumentError(
            f"Unsupported tree type: {type(tree).__name__}"
        )
    if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
        raise InvalidArgumentError(f"k must be a positive integer, got {k}")

    query = tree._validate_point(point)
    if len(tree) == 0:
        raise EmptyTreeError("nearest neighbor query on an empty tree")

    coordinates = query.tolist()
    recorder = _TraceRecorder(traced)

    # Max-heap of (-squared distance, -storage index): heap[0] is the worst
    # kept candidate.
    best: list[tuple[float, int]] = []
    # (node id, trace step of the parent when this is its far child)
    stack = [(tree.root, -1)]

    while stack:
        node_id, parent_step = stack.pop()
        node = tree.node(node_id)

        if len(best) == k:
            bound = point_box_squared_distance(
                query, node.bounds[0], node.bounds[1]
            ).item()
            if bound > -best[0][0]:
                recorder.record(node_id, TraversalDecision.PRUNE)
                continue

        recorder.revise(parent_step, TraversalDecision.DESCEND_BOTH)

        if isinstance(node, KdLeaf):
            recorder.record(node_id, TraversalDecision.LEAF_SCAN)
            if not node.indices:
                continue
            distances = squared_distance(
                tree._coordinates(node.indices), query
            ).tolist()
            for index, distance in zip(node.indices, distances):
                candidate = (-distance, -index)
                if len(best) < k:
                    heapq.heappush(best, candidate)
                elif candidate > best[0]:
                    heapq.heapreplace(best, candidate)
            continue

        if coordinates[node.dimension] < node.value:
            step = recorder.record(node_id, TraversalDecision.DESCEND_LEFT)
            near, far = node.left, node.right
        else:
            step = recorder.record(node_id, TraversalDecision.DESCEND_RIGHT)
            near, far = node.right, node.left
        stack.append((far, step))
        stack.append((near, -1))

    ranked = sorted((-distance, -index) for distance, index in best)
    indices = torch.tensor([index for _, index in ranked], dtype=torch.int64)
    distances = torch.tensor(
        [distance for distance, _ in ranked], dtype=tree.dtype
    )

    return NearestNeighbors(
        points=tree._buffer[indices],
        indices=indices,
        distances=torch.sqrt(distances),
        trace=recorder.finish(),
    )
