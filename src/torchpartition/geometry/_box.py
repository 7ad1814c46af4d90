"""Axis-aligned box record and constructors."""

from __future__ import annotations

from typing import Sequence, Union

import torch
from tensordict import tensorclass
from torch import Tensor

from ._exceptions import InvalidArgumentError


@tensorclass
class Box:
    """Closed axis-aligned box in k dimensions.

    Use :func:`axis_aligned_box` or :func:`bounding_box` to construct
    validated instances.

    Attributes
    ----------
    lower : Tensor, shape (k,)
        Minimum corner.
    upper : Tensor, shape (k,)
        Maximum corner. ``lower[i] <= upper[i]`` on every axis.
    """

    lower: Tensor
    upper: Tensor


def _as_coordinates(
    name: str, value: Union[Tensor, Sequence[float]], dtype=None
) -> Tensor:
    tensor = torch.as_tensor(value, dtype=dtype)
    if not tensor.is_floating_point():
        tensor = tensor.to(torch.get_default_dtype())
    if tensor.dim() != 1:
        raise InvalidArgumentError(
            f"{name} must be 1D (k,), got {tuple(tensor.shape)}"
        )
    if not torch.isfinite(tensor).all():
        raise InvalidArgumentError(f"{name} must have finite coordinates")
    return tensor


def axis_aligned_box(
    lower: Union[Tensor, Sequence[float]],
    upper: Union[Tensor, Sequence[float]],
    *,
    dtype: torch.dtype | None = None,
) -> Box:
    """Build a validated axis-aligned box.

    Parameters
    ----------
    lower : Tensor or sequence of float, shape (k,)
        Minimum corner.
    upper : Tensor or sequence of float, shape (k,)
        Maximum corner.
    dtype : torch.dtype, optional
        Coordinate dtype. Integer input defaults to the default floating dtype.

    Returns
    -------
    Box

    Raises
    ------
    InvalidArgumentError
        If the corners are not 1D, differ in length, hold non-finite values,
        or ``lower > upper`` on some axis.

    Examples
    --------
    >>> box = axis_aligned_box([0.0, 0.0], [10.0, 1.0])
    >>> box.upper
    tensor([10.,  1.])
    """
    lower = _as_coordinates("lower", lower, dtype)
    upper = _as_coordinates("upper", upper, dtype)

    if lower.shape != upper.shape:
        raise InvalidArgumentError(
            f"lower and upper must have the same shape, "
            f"got {tuple(lower.shape)} and {tuple(upper.shape)}"
        )
    if lower.dtype != upper.dtype:
        upper = upper.to(lower.dtype)

    inverted = lower > upper
    if inverted.any():
        axis = int(torch.nonzero(inverted)[0])
        raise InvalidArgumentError(
            f"lower must not exceed upper, got lower[{axis}]="
            f"{lower[axis].item()} > upper[{axis}]={upper[axis].item()}"
        )

    return Box(lower=lower, upper=upper, batch_size=[])


def bounding_box(points: Tensor) -> Box:
    """Tightest axis-aligned box enclosing a non-empty point set.

    Parameters
    ----------
    points : Tensor, shape (n, k)

    Returns
    -------
    Box

    Raises
    ------
    InvalidArgumentError
        If ``points`` is not 2D or is empty.
    """
    if points.dim() != 2:
        raise InvalidArgumentError(
            f"points must be 2D (n, k), got {points.dim()}D"
        )
    if points.size(0) == 0:
        raise InvalidArgumentError("points must not be empty")

    lower, upper = torch.aminmax(points, dim=0)
    return Box(lower=lower, upper=upper, batch_size=[])
