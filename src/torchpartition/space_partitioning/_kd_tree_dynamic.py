"""Incremental update operations for k-d trees."""

from __future__ import annotations

import enum

import torch
from torch import Tensor

from ._exceptions import InvalidArgumentError, PointNotFoundError
from ._kd_tree import (
    KdLeaf,
    KdSplit,
    KdTree,
    _choose_split,
    _warn_oversized_leaf,
)
from ._range_search import BoxLike, _query_box


class InsertOutcome(enum.IntEnum):
    """How :func:`kd_tree_insert` placed a point. Insertion never fails."""

    APPENDED = 0
    SPLIT = 1
    DUPLICATE = 2


def kd_tree_insert(tree: KdTree, point: Tensor) -> InsertOutcome:
    """Insert a point without rebuilding the tree.

    Parameters
    ----------
    tree : KdTree
        Tree to update in place.
    point : Tensor, shape (k,)
        Point to insert. Its coordinates are copied into the tree; region
        trees store it as a degenerate box.

    Returns
    -------
    InsertOutcome
        ``APPENDED`` if the destination leaf had room, ``SPLIT`` if the full
        leaf was replaced by a split node over two new leaves, ``DUPLICATE``
        if the leaf already held an identical point (the point is still
        stored, duplicates are multiplicities).

    Raises
    ------
    InvalidArgumentError
        If ``point`` does not have shape ``(k,)`` or is not finite. The tree
        is left untouched.

    Notes
    -----
    The point follows the partition rule of existing split nodes down to a
    leaf, widening node bounds along the way. A full leaf is split with the
    same median rule :func:`kd_tree` uses, applied to the leaf's points plus
    the new one. Ancestors are never rebalanced, so long runs of skewed
    insertions deepen the tree; rebuild with :func:`kd_tree` when queries
    slow down.

    Examples
    --------
    >>> tree = kd_tree(torch.tensor([[0.0, 0.0], [1.0, 1.0]]), leaf_size=2)
    >>> kd_tree_insert(tree, torch.tensor([2.0, 2.0]))
    <InsertOutcome.SPLIT: 1>
    >>> len(tree)
    3
    """
    value = tree._validate_point(point)
    return _insert(tree, value, tree._point_extent(value))


def kd_tree_insert_region(tree: KdTree, box: BoxLike) -> InsertOutcome:
    """Insert an axis-aligned box into a region tree.

    The box is placed by its center, exactly like :func:`kd_tree_insert`
    places a point; the bounds of every node on the way down are widened to
    enclose the whole box.

    Parameters
    ----------
    tree : KdTree
        Region tree to update in place.
    box : Box or (Tensor, Tensor)
        Box to store, as a :class:`~torchpartition.geometry.Box` or a
        ``(lower, upper)`` pair of shape ``(k,)`` each.

    Returns
    -------
    InsertOutcome
        As for :func:`kd_tree_insert`; ``DUPLICATE`` means the leaf already
        held an identical box.

    Raises
    ------
    InvalidArgumentError
        If the tree stores no regions, or the box is malformed or of the
        wrong dimension.
    """
    lower, upper = _query_box(tree, box)
    if not tree.stores_regions:
        raise InvalidArgumentError(
            "tree does not store regions; build it with region_kd_tree"
        )
    return _insert(tree, (lower + upper) / 2, torch.stack([lower, upper]))


def _insert(
    tree: KdTree, value: Tensor, extent: Tensor | None
) -> InsertOutcome:
    index = int(
        tree._store(
            value.unsqueeze(0),
            None if extent is None else extent.unsqueeze(0),
        )[0]
    )
    tree._count += 1
    if extent is None:
        extent = torch.stack([value, value])

    if tree._root is None:
        tree._root = tree._append_node(KdLeaf([index], extent.clone()))
        return InsertOutcome.APPENDED

    path = tree._descend(value.tolist())
    for node_id in path:
        bounds = tree.node(node_id).bounds
        bounds[0] = torch.minimum(bounds[0], extent[0])
        bounds[1] = torch.maximum(bounds[1], extent[1])

    leaf_id = path[-1]
    leaf = tree.node(leaf_id)
    duplicate = bool(
        leaf.indices and tree._matches(leaf.indices, value, extent).any()
    )

    if len(leaf.indices) < tree.leaf_size:
        leaf.indices.append(index)
        return InsertOutcome.DUPLICATE if duplicate else InsertOutcome.APPENDED

    combined = leaf.indices + [index]
    split = _choose_split(
        tree._coordinates(combined), len(path) - 1, tree._split_rule
    )
    if split is None:
        leaf.indices.append(index)
        _warn_oversized_leaf(len(leaf.indices), tree.leaf_size, stacklevel=4)
        return InsertOutcome.DUPLICATE

    dimension, split_value, left_mask = split
    left_indices = []
    right_indices = []
    for candidate, goes_left in zip(combined, left_mask.tolist()):
        if goes_left:
            left_indices.append(candidate)
        else:
            right_indices.append(candidate)

    left = tree._append_node(
        KdLeaf(left_indices, tree._slot_bounds(left_indices))
    )
    right = tree._append_node(
        KdLeaf(right_indices, tree._slot_bounds(right_indices))
    )
    tree._nodes[leaf_id] = KdSplit(
        dimension, split_value, left, right, leaf.bounds
    )
    return InsertOutcome.SPLIT


def kd_tree_remove(tree: KdTree, point: Tensor) -> int:
    """Remove one stored copy of a point.

    Parameters
    ----------
    tree : KdTree
        Tree to update in place.
    point : Tensor, shape (k,)
        Coordinates to match exactly.

    Returns
    -------
    int
        Storage index of the removed point. When the point is stored more
        than once, the earliest-stored copy is removed.

    Raises
    ------
    PointNotFoundError
        If no stored point matches ``point``.
    InvalidArgumentError
        If ``point`` does not have shape ``(k,)`` or is not finite.

    Notes
    -----
    Only the leaf reachable through the partition rule is searched, so
    removal costs O(depth). A leaf emptied by removal stays in place and
    node bounds are not shrunk; :func:`kd_tree_compact` reclaims both.

    Examples
    --------
    >>> tree = kd_tree(torch.tensor([[0.0, 0.0], [1.0, 1.0]]))
    >>> kd_tree_remove(tree, torch.tensor([1.0, 1.0]))
    1
    """
    value = tree._validate_point(point)
    return _remove(
        tree, value, tree._point_extent(value), f"point {value.tolist()}"
    )


def kd_tree_remove_region(tree: KdTree, box: BoxLike) -> int:
    """Remove one stored copy of a box from a region tree.

    Parameters
    ----------
    tree : KdTree
        Region tree to update in place.
    box : Box or (Tensor, Tensor)
        Corners to match exactly.

    Returns
    -------
    int
        Storage index of the removed box, the earliest-stored copy when the
        box is stored more than once.

    Raises
    ------
    PointNotFoundError
        If no stored box matches ``box``.
    InvalidArgumentError
        If the tree stores no regions, or the box is malformed or of the
        wrong dimension.
    """
    lower, upper = _query_box(tree, box)
    if not tree.stores_regions:
        raise InvalidArgumentError(
            "tree does not store regions; build it with region_kd_tree"
        )
    return _remove(
        tree,
        (lower + upper) / 2,
        torch.stack([lower, upper]),
        f"box {lower.tolist()}..{upper.tolist()}",
    )


def _remove(
    tree: KdTree, value: Tensor, extent: Tensor | None, description: str
) -> int:
    location = tree._locate(value, extent)
    if location is None:
        raise PointNotFoundError(f"{description} is not stored in the tree")

    leaf_id, position = location
    index = tree.node(leaf_id).indices.pop(position)
    tree._count -= 1
    return index


def kd_tree_compact(tree: KdTree) -> int:
    """Reclaim empty leaves and tighten bounds after removals.

    Split nodes with an empty side are replaced by their non-empty side,
    empty leaves are dropped, node ids are renumbered in pre-order from the
    root, and the point buffer is packed. Relative storage order is
    preserved, so tie-breaking in queries is unchanged.

    Parameters
    ----------
    tree : KdTree
        Tree to compact in place.

    Returns
    -------
    int
        Number of nodes reclaimed.

    Examples
    --------
    >>> tree = kd_tree(torch.tensor([[0.0], [1.0], [2.0], [3.0]]), leaf_size=1)
    >>> kd_tree_remove(tree, torch.tensor([0.0]))
    0
    >>> kd_tree_compact(tree)
    2
    """
    before = tree.num_nodes
    if tree._root is None:
        return 0

    # Pre-order of reachable nodes, then subtree counts and tight bounds
    # bottom-up.
    order = []
    stack = [tree._root]
    while stack:
        node_id = stack.pop()
        order.append(node_id)
        node = tree.node(node_id)
        if isinstance(node, KdSplit):
            stack.append(node.right)
            stack.append(node.left)

    counts: dict[int, int] = {}
    bounds: dict[int, Tensor] = {}
    for node_id in reversed(order):
        node = tree.node(node_id)
        if isinstance(node, KdLeaf):
            counts[node_id] = len(node.indices)
            if node.indices:
                bounds[node_id] = tree._slot_bounds(node.indices)
            continue
        counts[node_id] = counts[node.left] + counts[node.right]
        sides = [bounds[c] for c in (node.left, node.right) if counts[c]]
        if sides:
            stacked = torch.stack(sides)
            bounds[node_id] = torch.stack(
                [stacked[:, 0].amin(dim=0), stacked[:, 1].amax(dim=0)]
            )

    live = tree.indices
    if counts[tree._root] == 0:
        tree._nodes = []
        tree._root = None
        tree._buffer = tree._buffer[:0].clone()
        if tree._extents is not None:
            tree._extents = tree._extents[:0].clone()
        tree._size = 0
        return before

    renumbered = {old: new for new, old in enumerate(live.tolist())}
    nodes = [None]
    stack = [(tree._root, 0)]
    while stack:
        node_id, new_id = stack.pop()
        node = tree.node(node_id)
        # Collapse splits with an empty side onto the surviving child.
        while isinstance(node, KdSplit) and not (
            counts[node.left] and counts[node.right]
        ):
            node_id = node.left if counts[node.left] else node.right
            node = tree.node(node_id)

        if isinstance(node, KdLeaf):
            nodes[new_id] = KdLeaf(
                [renumbered[index] for index in node.indices],
                bounds[node_id],
            )
            continue

        left = len(nodes)
        right = left + 1
        nodes.extend([None, None])
        nodes[new_id] = KdSplit(
            node.dimension, node.value, left, right, bounds[node_id]
        )
        stack.append((node.right, right))
        stack.append((node.left, left))

    tree._buffer = tree._buffer[live].clone()
    if tree._extents is not None:
        tree._extents = tree._extents[live].clone()
    tree._size = live.numel()
    tree._nodes = nodes
    tree._root = 0
    return before - len(nodes)
