"""Distance from points to the nearest face of an axis-aligned box."""

from __future__ import annotations

import torch
from torch import Tensor


def point_box_axis_distance(
    points: Tensor, lower: Tensor, upper: Tensor
) -> Tensor:
    """Per-axis distance from points to a closed axis-aligned box.

    On each axis the distance is ``lower[i] - points[i]`` below the box,
    ``points[i] - upper[i]`` above it, and zero inside the slab.

    Parameters
    ----------
    points : Tensor, shape (..., k)
    lower, upper : Tensor, shape (..., k)

    Returns
    -------
    Tensor, shape (..., k)
        Non-negative per-axis distances.
    """
    below = lower - points
    above = points - upper
    return torch.clamp(torch.maximum(below, above), min=0.0)


def point_box_squared_distance(
    points: Tensor, lower: Tensor, upper: Tensor
) -> Tensor:
    r"""Squared distance from points to the closest point of a box.

    .. math::
        d^2(p, B) = \sum_i \max(l_i - p_i,\ p_i - u_i,\ 0)^2

    This is a lower bound on the squared distance from ``points`` to anything
    stored inside the box, which makes it the pruning bound of
    branch-and-bound nearest-neighbor search.

    Parameters
    ----------
    points : Tensor, shape (..., k)
    lower, upper : Tensor, shape (..., k)

    Returns
    -------
    Tensor, shape (...)
        Zero for points inside the box.

    Examples
    --------
    >>> point_box_squared_distance(
    ...     torch.tensor([3.0, 5.0]), torch.zeros(2), torch.ones(2)
    ... )
    tensor(20.)
    """
    axis_distance = point_box_axis_distance(points, lower, upper)
    return (axis_distance * axis_distance).sum(dim=-1)
