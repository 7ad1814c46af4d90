"""Space partitioning exceptions."""

from torchpartition.geometry import InvalidArgumentError


class SpacePartitioningError(Exception):
    """Base exception for k-d tree queries and updates."""

    pass


class EmptyTreeError(SpacePartitioningError):
    """A query that needs at least one stored point ran on an empty tree."""

    pass


class PointNotFoundError(SpacePartitioningError, LookupError):
    """The point to remove is not stored in the tree."""

    pass


__all__ = [
    "EmptyTreeError",
    "InvalidArgumentError",
    "PointNotFoundError",
    "SpacePartitioningError",
]
