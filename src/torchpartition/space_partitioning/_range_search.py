"""Axis-aligned box (collision) queries."""

from __future__ import annotations

from typing import NamedTuple, Optional, Tuple, Union

import torch
from torch import Tensor

from torchpartition.geometry import (
    Box,
    axis_aligned_box,
    box_contains,
    box_overlaps,
    point_in_box,
)

from ._exceptions import InvalidArgumentError
from ._kd_tree import KdLeaf, KdTree
from ._trace import QueryTrace, TraversalDecision, _TraceRecorder

BoxLike = Union[Box, Tuple[Tensor, Tensor]]


class RangeSearch(NamedTuple):
    """Result of :func:`range_search`.

    Parameters
    ----------
    points : Tensor, shape (m, k)
        Stored points inside the box, in traversal order.
    indices : Tensor, shape (m,), dtype=int64
        Storage indices of those points.
    trace : QueryTrace, optional
        Traversal trace, present only for traced queries.
    """

    points: Tensor
    indices: Tensor
    trace: Optional[QueryTrace] = None


class RangeSearchNodes(NamedTuple):
    """Result of :func:`range_search_nodes`.

    Parameters
    ----------
    contained : Tensor, dtype=int64
        Ids of maximal subtrees whose bounds lie inside the box.
    excluded : Tensor, dtype=int64
        Ids of maximal subtrees whose bounds are disjoint from the box.
    """

    contained: Tensor
    excluded: Tensor


def _query_box(tree: KdTree, box: BoxLike) -> tuple[Tensor, Tensor]:
    if not isinstance(tree, KdTree):
        raise InvalidArgumentError(
            f"Unsupported tree type: {type(tree).__name__}"
        )
    if isinstance(box, Box):
        lower, upper = box.lower, box.upper
    else:
        try:
            lower, upper = box
        except (TypeError, ValueError):
            raise InvalidArgumentError(
                "box must be a Box or a (lower, upper) pair"
            ) from None

    checked = axis_aligned_box(lower, upper, dtype=tree.dtype)
    if checked.lower.size(0) != tree.dimension:
        raise InvalidArgumentError(
            f"Box dimension ({checked.lower.size(0)}) must match "
            f"tree dimension ({tree.dimension})"
        )
    return checked.lower, checked.upper


def range_search(
    tree: KdTree,
    box: BoxLike,
    *,
    traced: bool = False,
) -> RangeSearch:
    """Find every stored point inside a closed axis-aligned box.

    Parameters
    ----------
    tree : KdTree
        Spatial index built by :func:`kd_tree` or grown by insertion.
    box : Box or (Tensor, Tensor)
        Query box, as a :class:`~torchpartition.geometry.Box` or a
        ``(lower, upper)`` pair of shape ``(k,)`` each.
    traced : bool, default=False
        Also return the ordered trace of visited nodes.

    Returns
    -------
    RangeSearch
        Points on the box faces are included. Order follows the traversal
        and carries no meaning; sort ``indices`` if order matters. An empty
        tree yields empty results.

    Raises
    ------
    InvalidArgumentError
        If the box is malformed (``lower > upper`` on some axis, non-finite
        corners) or its dimension differs from the tree's.

    Notes
    -----
    Each visited node is classified by its bounds:

    - disjoint from the box: ``PRUNE``;
    - inside the box: ``REPORT_SUBTREE``, every point below it is reported
      without further tests;
    - a leaf otherwise: ``LEAF_SCAN``, points tested one by one;
    - a split node otherwise: ``DESCEND_BOTH``.

    Examples
    --------
    >>> points = torch.tensor(
    ...     [[0.0, 0.0], [10.0, 0.0], [0.0, 10.0], [10.0, 10.0], [5.0, 5.0]]
    ... )
    >>> tree = kd_tree(points)
    >>> result = range_search(tree, (torch.tensor([0.0, 0.0]), torch.tensor([10.0, 1.0])))
    >>> result.points[torch.argsort(result.indices)]
    tensor([[ 0.,  0.],
            [10.,  0.]])
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
                inside = point_in_box(
                    tree._coordinates(node.indices), lower, upper
                )
                found.extend(
                    index
                    for index, hit in zip(node.indices, inside.tolist())
                    if hit
                )
        else:
            recorder.record(node_id, TraversalDecision.DESCEND_BOTH)
            stack.append(node.right)
            stack.append(node.left)

    indices = torch.tensor(found, dtype=torch.int64)
    return RangeSearch(
        points=tree._buffer[indices],
        indices=indices,
        trace=recorder.finish(),
    )


def range_search_nodes(tree: KdTree, box: BoxLike) -> RangeSearchNodes:
    """Classify subtrees as fully inside or fully outside a box.

    Coarse collision detection: instead of points, report the maximal
    subtrees whose bounds lie inside ``box`` and those whose bounds miss it,
    descending only where a subtree straddles the box boundary. Leaves that
    straddle the boundary appear in neither list.

    Parameters
    ----------
    tree : KdTree
    box : Box or (Tensor, Tensor)

    Returns
    -------
    RangeSearchNodes
        Node ids in pre-order.
    """
    lower, upper = _query_box(tree, box)
    contained: list[int] = []
    excluded: list[int] = []

    stack = [] if tree.root is None else [tree.root]
    while stack:
        node_id = stack.pop()
        node = tree.node(node_id)
        node_lower, node_upper = node.bounds

        if not box_overlaps(lower, upper, node_lower, node_upper):
            excluded.append(node_id)
        elif box_contains(lower, upper, node_lower, node_upper):
            contained.append(node_id)
        elif not isinstance(node, KdLeaf):
            stack.append(node.right)
            stack.append(node.left)

    return RangeSearchNodes(
        contained=torch.tensor(contained, dtype=torch.int64),
        excluded=torch.tensor(excluded, dtype=torch.int64),
    )
