"""Read-only structural dump of a k-d tree."""

from __future__ import annotations

import torch
from tensordict import tensorclass
from torch import Tensor

from ._kd_tree import KdLeaf, KdTree


@tensorclass
class KdTreeNodeBounds:
    """Cells of the reachable nodes of a k-d tree, in pre-order.

    Attributes
    ----------
    node : Tensor, shape (m,), dtype=int64
        Node ids.
    lower : Tensor, shape (m, k)
        Minimum corner of each node's cell.
    upper : Tensor, shape (m, k)
        Maximum corner of each node's cell.
    level : Tensor, shape (m,), dtype=int64
        Distance from the root (root = 0).
    split_dimension : Tensor, shape (m,), dtype=int64
        Split dimension per node (-1 for leaf).
    split_value : Tensor, shape (m,)
        Split value per node (NaN for leaf).
    count : Tensor, shape (m,), dtype=int64
        Number of points stored in each subtree.

    Notes
    -----
    A node's cell is the part of space it owns: the root's bounds, cut by
    the split planes of its ancestors. Cells of siblings share the split
    plane as a face.
    """

    node: Tensor
    lower: Tensor
    upper: Tensor
    level: Tensor
    split_dimension: Tensor
    split_value: Tensor
    count: Tensor


def kd_tree_node_bounds(tree: KdTree) -> KdTreeNodeBounds:
    """Dump every reachable node with its cell and depth.

    Parameters
    ----------
    tree : KdTree

    Returns
    -------
    KdTreeNodeBounds
        One row per node in pre-order (left subtrees first). Empty trees
        yield zero rows.

    Examples
    --------
    >>> tree = kd_tree(torch.tensor([[0.0, 0.0], [4.0, 2.0]]), leaf_size=1)
    >>> bounds = kd_tree_node_bounds(tree)
    >>> bounds.upper
    tensor([[4., 2.],
            [4., 2.],
            [4., 2.]])
    """
    dimension = tree.dimension
    nodes: list[int] = []
    lowers: list[Tensor] = []
    uppers: list[Tensor] = []
    depths: list[int] = []
    split_dimensions: list[int] = []
    split_values: list[float] = []

    stack = []
    if tree.root is not None:
        root_bounds = tree.node(tree.root).bounds
        stack.append((tree.root, root_bounds[0], root_bounds[1], 0))

    while stack:
        node_id, lower, upper, depth = stack.pop()
        node = tree.node(node_id)
        nodes.append(node_id)
        lowers.append(lower)
        uppers.append(upper)
        depths.append(depth)

        if isinstance(node, KdLeaf):
            split_dimensions.append(-1)
            split_values.append(float("nan"))
            continue

        split_dimensions.append(node.dimension)
        split_values.append(node.value)
        left_upper = upper.clone()
        left_upper[node.dimension] = node.value
        right_lower = lower.clone()
        right_lower[node.dimension] = node.value
        stack.append((node.right, right_lower, upper, depth + 1))
        stack.append((node.left, lower, left_upper, depth + 1))

    # Subtree counts, children before parents.
    position = {node_id: row for row, node_id in enumerate(nodes)}
    counts = [0] * len(nodes)
    for row in reversed(range(len(nodes))):
        node = tree.node(nodes[row])
        if isinstance(node, KdLeaf):
            counts[row] = len(node.indices)
        else:
            counts[row] = (
                counts[position[node.left]] + counts[position[node.right]]
            )

    if nodes:
        lower = torch.stack(lowers)
        upper = torch.stack(uppers)
    else:
        lower = torch.empty((0, dimension), dtype=tree.dtype)
        upper = torch.empty((0, dimension), dtype=tree.dtype)

    return KdTreeNodeBounds(
        node=torch.tensor(nodes, dtype=torch.int64),
        lower=lower,
        upper=upper,
        level=torch.tensor(depths, dtype=torch.int64),
        split_dimension=torch.tensor(split_dimensions, dtype=torch.int64),
        split_value=torch.tensor(split_values, dtype=tree.dtype),
        count=torch.tensor(counts, dtype=torch.int64),
        batch_size=[len(nodes)],
    )
