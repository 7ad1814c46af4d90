"""Box-versus-stored-box collision queries."""

from __future__ import annotations

from typing import NamedTuple, Optional

import torch
from torch import Tensor

from torchpartition.geometry import Box, box_contains, box_overlaps

from ._kd_tree import KdLeaf, KdTree
from ._range_search import BoxLike, _query_box
from ._trace import QueryTrace, TraversalDecision, _TraceRecorder


class RegionSearch(NamedTuple):
    """Result of :func:`region_search`.

    Parameters
    ----------
    regions : Box
        Stored boxes that intersect the query box, batch size ``(m,)``, in
        traversal order.
    indices : Tensor, shape (m,), dtype=int64
        Storage indices of those boxes.
    trace : QueryTrace, optional
        Traversal trace, present only for traced queries.
    """

    regions: Box
    indices: Tensor
    trace: Optional[QueryTrace] = None


def region_search(
    tree: KdTree,
    box: BoxLike,
    *,
    traced: bool = False,
) -> RegionSearch:
    """Find every stored box that intersects a closed axis-aligned box.

    Parameters
    ----------
    tree : KdTree
        Region tree built by :func:`region_kd_tree`. On a tree of plain
        points each point acts as a degenerate box, and the result matches
        :func:`range_search`.
    box : Box or (Tensor, Tensor)
        Query box, as a :class:`~torchpartition.geometry.Box` or a
        ``(lower, upper)`` pair of shape ``(k,)`` each.
    traced : bool, default=False
        Also return the ordered trace of visited nodes.

    Returns
    -------
    RegionSearch
        Boxes touching the query only along a face, edge or corner are
        included. Order follows the traversal; sort ``indices`` if order
        matters.

    Raises
    ------
    InvalidArgumentError
        If the box is malformed or its dimension differs from the tree's.

    Notes
    -----
    Node bounds enclose every box stored below the node, so a node whose
    bounds miss the query is pruned and a node whose bounds lie inside the
    query reports its whole subtree. Leaves that straddle the query test
    their boxes one by one.

    Examples
    --------
    >>> lower = torch.tensor([[0.0, 0.0], [4.0, 4.0], [8.0, 0.0]])
    >>> tree = region_kd_tree((lower, lower + 2.0), leaf_size=1)
    >>> query = (torch.tensor([5.0, 1.0]), torch.tensor([8.5, 4.5]))
    >>> region_search(tree, query).indices.sort().values
    tensor([1, 2])
    """
    lower, upper = _query_box(tree, box)
    recorder = _TraceRecorder(traced)
    found: list[int] = []

    stack = [] if tree.root is None else [tree.root]
    while stack:
        node_id = stack.pop()
        node = tree.node(node_id)
        node_lower, node_upper = node.bounds

        if not box_overlaps(lower, upper, node_lower, node_upper):
            recorder.record(node_id, TraversalDecision.PRUNE)
        elif box_contains(lower, upper, node_lower, node_upper):
            recorder.record(node_id, TraversalDecision.REPORT_SUBTREE)
            found.extend(tree._subtree_indices(node_id))
        elif isinstance(node, KdLeaf):
            recorder.record(node_id, TraversalDecision.LEAF_SCAN)
            if node.indices:
                extents = tree._extents_of(node.indices)
                hits = box_overlaps(
                    extents[:, 0], extents[:, 1], lower, upper
                )
                found.extend(
                    index
                    for index, hit in zip(node.indices, hits.tolist())
                    if hit
                )
        else:
            recorder.record(node_id, TraversalDecision.DESCEND_BOTH)
            stack.append(node.right)
            stack.append(node.left)

    indices = torch.tensor(found, dtype=torch.int64)
    extents = tree._extents_of(indices)
    return RegionSearch(
        regions=Box(
            lower=extents[:, 0],
            upper=extents[:, 1],
            batch_size=[indices.numel()],
        ),
        indices=indices,
        trace=recorder.finish(),
    )
