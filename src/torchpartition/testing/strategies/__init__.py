"""Hypothesis strategies for property-based tests."""

from ._boxes import box_sets, boxes
from ._point_sets import point_sets, points

__all__ = [
    "box_sets",
    "boxes",
    "point_sets",
    "points",
]
