"""Split planes of a k-d tree as drawable shapes."""

from __future__ import annotations

import torch
from tensordict import tensorclass
from torch import Tensor

from torchpartition.space_partitioning import KdTree, kd_tree_node_bounds

from ._colors import axis_colors


@tensorclass
class PartitionLines:
    """One flattened box per split node.

    Attributes
    ----------
    lower : Tensor, shape (m, k)
    upper : Tensor, shape (m, k)
        Corners of the split plane clipped to the node's cell. On the split
        axis both corners equal the split value, so in 2D each row is a line
        segment and in 3D a rectangle.
    axis : Tensor, shape (m,), dtype=int64
        Split axis.
    level : Tensor, shape (m,), dtype=int64
        Depth of the split node.
    color : Tensor, shape (m, 4)
        RGBA color per axis.
    """

    lower: Tensor
    upper: Tensor
    axis: Tensor
    level: Tensor
    color: Tensor


def partition_lines(tree: KdTree) -> PartitionLines:
    """Split planes of every split node, clipped to its cell.

    Parameters
    ----------
    tree : KdTree

    Returns
    -------
    PartitionLines
        Rows in pre-order; parents before children, so drawing in order
        paints finer splits on top.

    Examples
    --------
    >>> tree = kd_tree(torch.tensor([[0.0, 0.0], [4.0, 2.0]]), leaf_size=1)
    >>> lines = partition_lines(tree)
    >>> lines.lower, lines.upper
    (tensor([[4., 0.]]), tensor([[4., 2.]]))
    """
    bounds = kd_tree_node_bounds(tree)
    splits = bounds.split_dimension >= 0

    axis = bounds.split_dimension[splits]
    value = bounds.split_value[splits]
    lower = bounds.lower[splits].clone()
    upper = bounds.upper[splits].clone()
    rows = torch.arange(axis.size(0))
    lower[rows, axis] = value
    upper[rows, axis] = value

    return PartitionLines(
        lower=lower,
        upper=upper,
        axis=axis,
        level=bounds.level[splits],
        color=axis_colors(axis),
        batch_size=[axis.size(0)],
    )
