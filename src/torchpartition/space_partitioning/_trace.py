"""Traversal traces recorded by traced queries."""

from __future__ import annotations

import enum

import torch
from tensordict import tensorclass
from torch import Tensor


class TraversalDecision(enum.IntEnum):
    """Decision taken when a query visits a node."""

    DESCEND_LEFT = 0
    DESCEND_RIGHT = 1
    DESCEND_BOTH = 2
    LEAF_SCAN = 3
    PRUNE = 4
    REPORT_SUBTREE = 5


@tensorclass
class QueryTrace:
    """Ordered record of the nodes a query visited.

    Attributes
    ----------
    node : Tensor, shape (steps,), dtype=int64
        Visited node ids, in visit order.
    decision : Tensor, shape (steps,), dtype=int64
        :class:`TraversalDecision` value taken at each visit.

    Notes
    -----
    For nearest-neighbor queries a split node first records the direction of
    the child containing the query point; the step is revised to
    ``DESCEND_BOTH`` once the far child is visited too. A far child that
    cannot improve the result records its own ``PRUNE`` step.

    Examples
    --------
    >>> tree = kd_tree(torch.tensor([[0.0, 0.0], [10.0, 0.0], [5.0, 5.0]]), leaf_size=1)
    >>> result = k_nearest_neighbors(tree, torch.tensor([1.0, 1.0]), traced=True)
    >>> result.trace.decisions()[-1]
    <TraversalDecision.PRUNE: 4>
    """

    node: Tensor
    decision: Tensor

    def decisions(self) -> list[TraversalDecision]:
        """Decisions as :class:`TraversalDecision` members."""
        return [TraversalDecision(value) for value in self.decision.tolist()]


class _TraceRecorder:
    """Collects trace steps during a single query; inert when disabled."""

    __slots__ = ("_enabled", "_nodes", "_decisions")

    def __init__(self, enabled: bool) -> None:
        self._enabled = enabled
        self._nodes: list[int] = []
        self._decisions: list[int] = []

    def record(self, node: int, decision: TraversalDecision) -> int:
        if not self._enabled:
            return -1
        self._nodes.append(node)
        self._decisions.append(int(decision))
        return len(self._nodes) - 1

    def revise(self, step: int, decision: TraversalDecision) -> None:
        if step >= 0:
            self._decisions[step] = int(decision)

    def finish(self) -> QueryTrace | None:
        if not self._enabled:
            return None
        return QueryTrace(
            node=torch.tensor(self._nodes, dtype=torch.int64),
            decision=torch.tensor(self._decisions, dtype=torch.int64),
            batch_size=[len(self._nodes)],
        )
