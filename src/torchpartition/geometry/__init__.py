"""Geometric primitives for axis-aligned spatial search."""

from ._box import Box, axis_aligned_box, bounding_box
from ._box_overlaps import box_contains, box_overlaps
from ._exceptions import GeometryError, InvalidArgumentError
from ._point_box_distance import (
    point_box_axis_distance,
    point_box_squared_distance,
)
from ._point_in_box import point_in_box
from ._squared_distance import squared_distance

__all__ = [
    "Box",
    "GeometryError",
    "InvalidArgumentError",
    "axis_aligned_box",
    "bounding_box",
    "box_contains",
    "box_overlaps",
    "point_box_axis_distance",
    "point_box_squared_distance",
    "point_in_box",
    "squared_distance",
]
