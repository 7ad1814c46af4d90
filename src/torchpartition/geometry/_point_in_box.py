"""Closed axis-aligned box membership."""

from __future__ import annotations

from torch import Tensor


def point_in_box(points: Tensor, lower: Tensor, upper: Tensor) -> Tensor:
    """Test whether points lie inside a closed axis-aligned box.

    Parameters
    ----------
    points : Tensor, shape (..., k)
        Points to test.
    lower, upper : Tensor, shape (..., k)
        Box corners, broadcastable against ``points``.

    Returns
    -------
    Tensor, shape (...), dtype=bool
        ``True`` where ``lower[i] <= points[i] <= upper[i]`` on every axis.
        Points on a face count as inside.

    Examples
    --------
    >>> lower, upper = torch.zeros(2), torch.ones(2)
    >>> point_in_box(torch.tensor([[0.5, 0.5], [1.0, 0.0], [2.0, 0.5]]), lower, upper)
    tensor([ True,  True, False])
    """
    return ((points >= lower) & (points <= upper)).all(dim=-1)
