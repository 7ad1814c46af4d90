"""torchpartition: PyTorch k-d trees for interactive spatial search."""

from . import (
    geometry,
    graphics,
    space_partitioning,
)

__all__ = [
    "geometry",
    "graphics",
    "space_partitioning",
]

__version__ = "0.1.0"
