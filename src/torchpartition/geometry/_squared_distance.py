"""Squared Euclidean distance between points."""

from __future__ import annotations

from torch import Tensor


def squared_distance(input: Tensor, other: Tensor) -> Tensor:
    r"""Squared Euclidean distance between points.

    .. math::
        d^2(a, b) = \sum_i (a_i - b_i)^2

    The square root is never taken, so comparisons between distances stay in
    a single precision regime.

    Parameters
    ----------
    input : Tensor, shape (..., k)
        Points.
    other : Tensor, shape (..., k)
        Points, broadcastable against ``input``.

    Returns
    -------
    Tensor, shape (...)
        Squared distances.

    Examples
    --------
    >>> squared_distance(torch.tensor([0.0, 0.0]), torch.tensor([3.0, 4.0]))
    tensor(25.)
    >>> points = torch.tensor([[1.0, 0.0], [0.0, 2.0]])
    >>> squared_distance(points, torch.zeros(2))
    tensor([1., 4.])
    """
    difference = input - other
    return (difference * difference).sum(dim=-1)
