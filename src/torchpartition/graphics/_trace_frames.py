"""Animation frames for traced queries."""

from __future__ import annotations

import torch
from tensordict import tensorclass
from torch import Tensor

from torchpartition.space_partitioning import (
    KdTree,
    QueryTrace,
    kd_tree_node_bounds,
)

from ._colors import decision_colors


@tensorclass
class TraceFrames:
    """One frame per trace step.

    Attributes
    ----------
    node : Tensor, shape (steps,), dtype=int64
    decision : Tensor, shape (steps,), dtype=int64
    lower : Tensor, shape (steps, k)
    upper : Tensor, shape (steps, k)
        Cell of the visited node.
    level : Tensor, shape (steps,), dtype=int64
    color : Tensor, shape (steps, 4)
        RGBA color per decision.
    """

    node: Tensor
    decision: Tensor
    lower: Tensor
    upper: Tensor
    level: Tensor
    color: Tensor


def trace_frames(tree: KdTree, trace: QueryTrace) -> TraceFrames:
    """Turn a query trace into per-step cell highlights.

    Frame ``i`` highlights the cell visited at step ``i``; a renderer that
    draws frames ``0..i`` cumulatively animates the traversal node by node.

    Parameters
    ----------
    tree : KdTree
        The tree the trace was recorded on, unmodified since.
    trace : QueryTrace
        Trace from a query with ``traced=True``.

    Returns
    -------
    TraceFrames

    Raises
    ------
    ValueError
        If the trace visits a node that is not reachable in ``tree``.
    """
    bounds = kd_tree_node_bounds(tree)
    row_of = {node: row for row, node in enumerate(bounds.node.tolist())}
    try:
        rows = torch.tensor(
            [row_of[node] for node in trace.node.tolist()], dtype=torch.int64
        )
    except KeyError as e:
        raise ValueError(
            f"trace visits node {e.args[0]}, which is not in the tree"
        ) from None

    return TraceFrames(
        node=trace.node,
        decision=trace.decision,
        lower=bounds.lower[rows],
        upper=bounds.upper[rows],
        level=bounds.level[rows],
        color=decision_colors(trace.decision),
        batch_size=[rows.size(0)],
    )
