"""RGBA palettes for drawing partitions and traversal traces."""

import torch
from torch import Tensor

# Split planes, indexed by axis modulo 3 (x, y, z).
AXIS_COLORS = torch.tensor(
    [
        [0.25, 0.25, 0.0, 1.0],
        [0.0, 0.25, 0.25, 1.0],
        [0.25, 0.0, 0.25, 1.0],
    ]
)

# Trace steps, indexed by TraversalDecision value.
DECISION_COLORS = torch.tensor(
    [
        [0.0, 0.6, 1.0, 1.0],  # DESCEND_LEFT
        [0.0, 0.6, 1.0, 1.0],  # DESCEND_RIGHT
        [1.0, 0.8, 0.0, 1.0],  # DESCEND_BOTH
        [0.0, 1.0, 0.0, 1.0],  # LEAF_SCAN
        [0.5, 0.5, 0.5, 0.5],  # PRUNE
        [1.0, 0.0, 0.0, 1.0],  # REPORT_SUBTREE
    ]
)


def axis_colors(axis: Tensor) -> Tensor:
    """Colors for split axes, shape (..., 4)."""
    return AXIS_COLORS[axis % AXIS_COLORS.size(0)]


def decision_colors(decision: Tensor) -> Tensor:
    """Colors for trace decisions, shape (..., 4)."""
    return DECISION_COLORS[decision]
