"""Drawable shapes for k-d tree partitions, traces and query results.

Everything here reads a tree and returns tensors to draw; nothing mutates
the tree.
"""

from ._colors import (
    AXIS_COLORS,
    DECISION_COLORS,
    axis_colors,
    decision_colors,
)
from ._neighborhood import Neighborhood, neighborhood
from ._partition_lines import PartitionLines, partition_lines
from ._trace_frames import TraceFrames, trace_frames

__all__ = [
    "AXIS_COLORS",
    "DECISION_COLORS",
    "Neighborhood",
    "PartitionLines",
    "TraceFrames",
    "axis_colors",
    "decision_colors",
    "neighborhood",
    "partition_lines",
    "trace_frames",
]
