"""Search radius overlay for nearest-neighbor results."""

from __future__ import annotations

import torch
from tensordict import tensorclass
from torch import Tensor

from torchpartition.space_partitioning import NearestNeighbors


@tensorclass
class Neighborhood:
    """Circle (sphere in 3D) around a query point.

    Attributes
    ----------
    center : Tensor, shape (k,)
    radius : Tensor, scalar
    """

    center: Tensor
    radius: Tensor


def neighborhood(point: Tensor, result: NearestNeighbors) -> Neighborhood:
    """Smallest circle around ``point`` that holds every returned neighbor.

    Parameters
    ----------
    point : Tensor, shape (k,)
        The query point.
    result : NearestNeighbors
        Result of :func:`~torchpartition.space_partitioning.k_nearest_neighbors`
        for ``point``.

    Returns
    -------
    Neighborhood
        Radius is the distance to the farthest neighbor.
    """
    center = torch.as_tensor(point, dtype=result.distances.dtype)
    if result.distances.numel() == 0:
        radius = result.distances.new_zeros(())
    else:
        radius = result.distances[-1]
    return Neighborhood(center=center, radius=radius, batch_size=[])
