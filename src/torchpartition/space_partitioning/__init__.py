"""k-d tree spatial index with traced nearest-neighbor and box queries.

This module provides a mutable k-d tree over points in k dimensions with:
- Balanced bulk construction by median splitting
- Incremental insert/remove without rebuilding, plus a compaction pass
- Exact k-nearest-neighbor search by branch and bound
- Axis-aligned box (collision) search with whole-subtree reporting
- Region trees storing axis-aligned boxes, with box-versus-box collision
- Optional traversal traces for stepwise visualization

Note: The tree is not thread-safe. Callers serialize insert/remove against
queries; queries themselves never modify the tree.
"""

from ._exceptions import (
    EmptyTreeError,
    InvalidArgumentError,
    PointNotFoundError,
    SpacePartitioningError,
)
from ._k_nearest_neighbors import NearestNeighbors, k_nearest_neighbors
from ._kd_tree import (
    DEFAULT_LEAF_SIZE,
    SPLIT_CYCLE,
    SPLIT_SPREAD,
    KdLeaf,
    KdNode,
    KdSplit,
    KdTree,
    kd_tree,
)
from ._kd_tree_dynamic import (
    InsertOutcome,
    kd_tree_compact,
    kd_tree_insert,
    kd_tree_insert_region,
    kd_tree_remove,
    kd_tree_remove_region,
)
from ._node_bounds import KdTreeNodeBounds, kd_tree_node_bounds
from ._range_search import (
    RangeSearch,
    RangeSearchNodes,
    range_search,
    range_search_nodes,
)
from ._region_kd_tree import region_kd_tree
from ._region_search import RegionSearch, region_search
from ._trace import QueryTrace, TraversalDecision

__all__ = [
    "DEFAULT_LEAF_SIZE",
    "EmptyTreeError",
    "InsertOutcome",
    "InvalidArgumentError",
    "KdLeaf",
    "KdNode",
    "KdSplit",
    "KdTree",
    "KdTreeNodeBounds",
    "NearestNeighbors",
    "PointNotFoundError",
    "QueryTrace",
    "RangeSearch",
    "RangeSearchNodes",
    "RegionSearch",
    "SPLIT_CYCLE",
    "SPLIT_SPREAD",
    "SpacePartitioningError",
    "TraversalDecision",
    "k_nearest_neighbors",
    "kd_tree",
    "kd_tree_compact",
    "kd_tree_insert",
    "kd_tree_insert_region",
    "kd_tree_node_bounds",
    "kd_tree_remove",
    "kd_tree_remove_region",
    "range_search",
    "range_search_nodes",
    "region_kd_tree",
    "region_search",
]
