"""Box-box overlap and containment tests."""

from __future__ import annotations

from torch import Tensor


def box_overlaps(
    lower: Tensor,
    upper: Tensor,
    other_lower: Tensor,
    other_upper: Tensor,
) -> Tensor:
    """Test whether two closed axis-aligned boxes intersect.

    Boxes that only touch along a face, edge or corner overlap.

    Parameters
    ----------
    lower, upper : Tensor, shape (..., k)
        Corners of the first box.
    other_lower, other_upper : Tensor, shape (..., k)
        Corners of the second box, broadcastable against the first.

    Returns
    -------
    Tensor, shape (...), dtype=bool

    Examples
    --------
    >>> box_overlaps(
    ...     torch.tensor([0.0, 0.0]), torch.tensor([1.0, 1.0]),
    ...     torch.tensor([1.0, 0.5]), torch.tensor([2.0, 2.0]),
    ... )
    tensor(True)
    """
    return ((lower <= other_upper) & (other_lower <= upper)).all(dim=-1)


def box_contains(
    lower: Tensor,
    upper: Tensor,
    inner_lower: Tensor,
    inner_upper: Tensor,
) -> Tensor:
    """Test whether a closed box lies entirely inside another.

    Parameters
    ----------
    lower, upper : Tensor, shape (..., k)
        Corners of the outer box.
    inner_lower, inner_upper : Tensor, shape (..., k)
        Corners of the candidate inner box.

    Returns
    -------
    Tensor, shape (...), dtype=bool
        ``True`` where every point of the inner box is inside the outer one.
    """
    return ((lower <= inner_lower) & (inner_upper <= upper)).all(dim=-1)
