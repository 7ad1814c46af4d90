"""k-d tree over axis-aligned boxes."""

from __future__ import annotations

from typing import Tuple, Union

import torch
from torch import Tensor

from torchpartition.geometry import Box

from ._exceptions import InvalidArgumentError
from ._kd_tree import DEFAULT_LEAF_SIZE, KdTree, _build

BoxesLike = Union[Box, Tuple[Tensor, Tensor]]


def _as_corners(
    boxes: BoxesLike, dimension: int | None
) -> tuple[Tensor, Tensor]:
    if isinstance(boxes, Box):
        lower, upper = boxes.lower, boxes.upper
    else:
        try:
            lower, upper = boxes
        except (TypeError, ValueError):
            raise InvalidArgumentError(
                "boxes must be a Box or a (lower, upper) pair"
            ) from None

    lower = torch.as_tensor(lower)
    upper = torch.as_tensor(upper)
    if lower.numel() == 0 and lower.dim() == 1:
        if dimension is None:
            raise InvalidArgumentError(
                "dimension is required to build from empty boxes"
            )
        lower = lower.reshape(0, dimension)
        upper = upper.reshape(0, dimension)

    if lower.dim() != 2:
        raise InvalidArgumentError(
            f"box corners must be 2D (n, k), got {lower.dim()}D"
        )
    if lower.shape != upper.shape:
        raise InvalidArgumentError(
            f"lower and upper must have the same shape, "
            f"got {tuple(lower.shape)} and {tuple(upper.shape)}"
        )
    if dimension is not None and lower.size(1) != dimension:
        raise InvalidArgumentError(
            f"boxes dimension ({lower.size(1)}) must match "
            f"dimension ({dimension})"
        )
    if not lower.is_floating_point():
        lower = lower.to(torch.get_default_dtype())
    upper = upper.to(lower.dtype)
    if not (torch.isfinite(lower).all() and torch.isfinite(upper).all()):
        raise InvalidArgumentError("box corners must be finite")

    inverted = lower > upper
    if inverted.any():
        row, axis = torch.nonzero(inverted)[0].tolist()
        raise InvalidArgumentError(
            f"lower must not exceed upper, got lower[{row}, {axis}]="
            f"{lower[row, axis].item()} > upper[{row}, {axis}]="
            f"{upper[row, axis].item()}"
        )
    return lower, upper


def region_kd_tree(
    boxes: BoxesLike,
    *,
    dimension: int | None = None,
    leaf_size: int = DEFAULT_LEAF_SIZE,
    split_rule: str = "spread",
) -> KdTree:
    """Build a balanced k-d tree over axis-aligned boxes.

    Parameters
    ----------
    boxes : Box or (Tensor, Tensor)
        Boxes to index, as a :class:`~torchpartition.geometry.Box` with batch
        size ``(n,)`` or a ``(lower, upper)`` pair of shape ``(n, k)`` each.
        May be empty.
    dimension : int, optional
        Dimensionality ``k``. Required when the corners are empty sequences
        whose shape does not carry it; otherwise must match them.
    leaf_size : int, default=4
        Partitions of at most ``leaf_size`` boxes become leaves.
    split_rule : str, default="spread"
        As for :func:`kd_tree`.

    Returns
    -------
    KdTree
        Region tree whose storage indices ``0..n-1`` follow the input order.

    Raises
    ------
    InvalidArgumentError
        If the corners are not 2D, differ in shape, are not finite, or
        ``lower > upper`` for some box and axis.

    Notes
    -----
    Boxes are split by their centers with the median rule of
    :func:`kd_tree`, so each box lives in exactly one leaf. Node bounds
    enclose the whole boxes below them, which lets :func:`region_search`
    prune and report subtrees by bounds alone. Splitting by center keeps
    boxes whole; long boxes widen the bounds of their leaf's ancestors
    instead of being cut into fragments.

    Examples
    --------
    >>> lower = torch.tensor([[0.0, 0.0], [4.0, 4.0], [8.0, 0.0]])
    >>> tree = region_kd_tree((lower, lower + 2.0), leaf_size=1)
    >>> tree.node(tree.root).bounds
    tensor([[ 0.,  0.],
            [10.,  6.]])
    """
    lower, upper = _as_corners(boxes, dimension)
    tree = KdTree(
        lower.size(1),
        leaf_size=leaf_size,
        split_rule=split_rule,
        dtype=lower.dtype,
        regions=True,
    )
    _build(tree, (lower + upper) / 2, torch.stack([lower, upper], dim=1))
    return tree
