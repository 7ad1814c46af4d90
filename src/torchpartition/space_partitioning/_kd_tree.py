"""k-d tree node store and median-split builder."""

from __future__ import annotations

import warnings
from typing import NamedTuple, Sequence, Union

import torch
from torch import Tensor

from torchpartition.geometry import Box

from ._exceptions import InvalidArgumentError

# Split rule constants
SPLIT_SPREAD = 0
SPLIT_CYCLE = 1

DEFAULT_LEAF_SIZE = 4

_SPLIT_RULES = {
    "spread": SPLIT_SPREAD,
    "cycle": SPLIT_CYCLE,
}


class KdSplit(NamedTuple):
    """Internal node.

    Points with ``coordinate[dimension] < value`` live under ``left``, the
    rest under ``right``. ``bounds`` is a ``(2, k)`` tensor (lower row, upper
    row) enclosing everything stored in the subtree.
    """

    dimension: int
    value: float
    left: int
    right: int
    bounds: Tensor


class KdLeaf(NamedTuple):
    """Leaf node holding storage indices of its points, in storage order."""

    indices: list[int]
    bounds: Tensor


KdNode = Union[KdSplit, KdLeaf]


class KdTree:
    """k-d tree over points in k dimensions.

    Nodes live in an arena and reference their children by integer id, so
    the structure is a strict tree: every node is owned by exactly one
    parent and dropping a subtree is dropping its ids. Points live in a
    growable ``(capacity, k)`` buffer; a point's row in the buffer is its
    storage index, which also breaks distance ties in queries.

    Use :func:`kd_tree` to bulk-build a balanced tree, or construct an empty
    tree directly and grow it with :func:`kd_tree_insert`.

    A region tree (built by :func:`region_kd_tree` or constructed with
    ``regions=True``) also stores one axis-aligned box per slot. Its points
    are the box centers, which drive every split, while node bounds enclose
    the whole boxes. Plain points inserted into a region tree are stored as
    degenerate boxes.

    Parameters
    ----------
    dimension : int
        Number of coordinates per point. Fixed for the tree's lifetime.
    leaf_size : int, default=4
        Maximum number of points per leaf before it is split.
    split_rule : str, default="spread"
        ``"spread"`` splits along the dimension of maximum spread,
        ``"cycle"`` cycles through dimensions by depth.
    dtype : torch.dtype, optional
        Floating dtype of stored coordinates. Defaults to
        ``torch.get_default_dtype()``.
    regions : bool, default=False
        Store an axis-aligned box per slot.

    Examples
    --------
    >>> tree = KdTree(2)
    >>> len(tree)
    0
    >>> kd_tree_insert(tree, torch.tensor([1.0, 2.0]))
    <InsertOutcome.APPENDED: 0>
    """

    def __init__(
        self,
        dimension: int,
        *,
        leaf_size: int = DEFAULT_LEAF_SIZE,
        split_rule: str = "spread",
        dtype: torch.dtype | None = None,
        regions: bool = False,
    ) -> None:
        if dimension < 1:
            raise InvalidArgumentError(
                f"dimension must be >= 1, got {dimension}"
            )
        if leaf_size < 1:
            raise InvalidArgumentError(
                f"leaf_size must be >= 1, got {leaf_size}"
            )
        if split_rule not in _SPLIT_RULES:
            raise InvalidArgumentError(
                f"split_rule must be one of {list(_SPLIT_RULES.keys())}, "
                f"got '{split_rule}'"
            )
        if dtype is None:
            dtype = torch.get_default_dtype()
        if not dtype.is_floating_point:
            raise InvalidArgumentError(
                f"dtype must be floating-point, got {dtype}"
            )

        self._dimension = dimension
        self._leaf_size = leaf_size
        self._split_rule = _SPLIT_RULES[split_rule]
        self._buffer = torch.empty((0, dimension), dtype=dtype)
        # (capacity, 2, k) lower and upper corners, region trees only
        self._extents: Tensor | None = None
        if regions:
            self._extents = torch.empty((0, 2, dimension), dtype=dtype)
        self._size = 0
        self._count = 0
        self._nodes: list[KdNode] = []
        self._root: int | None = None

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def leaf_size(self) -> int:
        return self._leaf_size

    @property
    def split_rule(self) -> str:
        return "spread" if self._split_rule == SPLIT_SPREAD else "cycle"

    @property
    def dtype(self) -> torch.dtype:
        return self._buffer.dtype

    @property
    def stores_regions(self) -> bool:
        return self._extents is not None

    @property
    def root(self) -> int | None:
        """Root node id, or ``None`` for an empty tree."""
        return self._root

    @property
    def num_nodes(self) -> int:
        """Number of nodes in the arena, empty leaves included."""
        return len(self._nodes)

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return (
            f"KdTree(dimension={self._dimension}, points={self._count}, "
            f"nodes={len(self._nodes)}, leaf_size={self._leaf_size}, "
            f"split_rule='{self.split_rule}', "
            f"regions={self.stores_regions})"
        )

    def __contains__(self, point) -> bool:
        value = self._validate_point(point)
        return self._locate(value, self._point_extent(value)) is not None

    def node(self, index: int) -> KdNode:
        """Node with arena id ``index``."""
        return self._nodes[index]

    @property
    def indices(self) -> Tensor:
        """Storage indices of stored points, ascending."""
        if self._root is None:
            return torch.empty(0, dtype=torch.int64)
        return torch.tensor(
            sorted(self._subtree_indices(self._root)), dtype=torch.int64
        )

    @property
    def points(self) -> Tensor:
        """Stored points in storage order, shape (n, k)."""
        return self._buffer[self.indices]

    @property
    def regions(self) -> Box:
        """Stored boxes in storage order, batch size (n,).

        Trees without regions report their points as degenerate boxes.
        """
        extents = self._extents_of(self.indices)
        return Box(
            lower=extents[:, 0],
            upper=extents[:, 1],
            batch_size=[extents.size(0)],
        )

    def _validate_point(self, point, name: str = "point") -> Tensor:
        value = torch.as_tensor(point)
        if value.shape != (self._dimension,):
            raise InvalidArgumentError(
                f"{name} must have shape ({self._dimension},), "
                f"got {tuple(value.shape)}"
            )
        value = value.to(self._buffer.dtype)
        if not torch.isfinite(value).all():
            raise InvalidArgumentError(
                f"{name} must have finite coordinates, got {value.tolist()}"
            )
        return value

    def _store(self, points: Tensor, extents: Tensor | None = None) -> Tensor:
        """Copy ``points`` into the buffers and return their storage indices.

        Region trees also copy ``extents`` of shape (n, 2, k); without them
        the points are stored as degenerate boxes.
        """
        start = self._size
        stop = start + points.size(0)
        capacity = self._buffer.size(0)
        if stop > capacity:
            capacity = max(stop, 2 * capacity, 8)
            grown = self._buffer.new_empty((capacity, self._dimension))
            grown[:start] = self._buffer[:start]
            self._buffer = grown
            if self._extents is not None:
                grown = self._extents.new_empty(
                    (capacity, 2, self._dimension)
                )
                grown[:start] = self._extents[:start]
                self._extents = grown
        self._buffer[start:stop] = points
        if self._extents is not None:
            if extents is None:
                extents = torch.stack([points, points], dim=1)
            self._extents[start:stop] = extents
        self._size = stop
        return torch.arange(start, stop, dtype=torch.int64)

    def _coordinates(self, indices: Sequence[int]) -> Tensor:
        return self._buffer[torch.as_tensor(indices, dtype=torch.int64)]

    def _extents_of(self, indices: Sequence[int]) -> Tensor:
        """Corners of the stored boxes at ``indices``, shape (m, 2, k)."""
        indices = torch.as_tensor(indices, dtype=torch.int64)
        if self._extents is None:
            points = self._buffer[indices]
            return torch.stack([points, points], dim=1)
        return self._extents[indices]

    def _slot_bounds(self, indices: Sequence[int]) -> Tensor:
        """Bounds ``(2, k)`` enclosing everything stored at ``indices``."""
        if self._extents is None:
            return _point_bounds(self._coordinates(indices))
        extents = self._extents_of(indices)
        return torch.stack(
            [extents[:, 0].amin(dim=0), extents[:, 1].amax(dim=0)]
        )

    def _point_extent(self, value: Tensor) -> Tensor | None:
        if self._extents is None:
            return None
        return torch.stack([value, value])

    def _append_node(self, node: KdNode | None) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def _subtree_indices(self, node_id: int) -> list[int]:
        """Storage indices under ``node_id``, left subtrees first."""
        found: list[int] = []
        stack = [node_id]
        while stack:
            node = self._nodes[stack.pop()]
            if isinstance(node, KdLeaf):
                found.extend(node.indices)
            else:
                stack.append(node.right)
                stack.append(node.left)
        return found

    def _descend(self, coordinates: Sequence[float]) -> list[int]:
        """Node ids from the root to the leaf owning ``coordinates``."""
        path: list[int] = []
        node_id = self._root
        while node_id is not None:
            path.append(node_id)
            node = self._nodes[node_id]
            if isinstance(node, KdLeaf):
                break
            if coordinates[node.dimension] < node.value:
                node_id = node.left
            else:
                node_id = node.right
        return path

    def _matches(
        self, indices: Sequence[int], value: Tensor, extent: Tensor | None
    ) -> Tensor:
        """Mask of slots equal to ``value`` and, if given, to ``extent``."""
        matches = (self._coordinates(indices) == value).all(dim=-1)
        if extent is not None and self._extents is not None:
            stored = self._extents_of(indices)
            matches &= (stored == extent).flatten(1).all(dim=-1)
        return matches

    def _locate(
        self, value: Tensor, extent: Tensor | None = None
    ) -> tuple[int, int] | None:
        """(leaf id, position in leaf) of the earliest-stored exact match."""
        path = self._descend(value.tolist())
        if not path:
            return None
        leaf = self._nodes[path[-1]]
        if not leaf.indices:
            return None
        matches = self._matches(leaf.indices, value, extent)
        positions = torch.nonzero(matches)
        if positions.numel() == 0:
            return None
        return path[-1], int(positions[0])


def _point_bounds(points: Tensor) -> Tensor:
    lower, upper = torch.aminmax(points, dim=0)
    return torch.stack([lower, upper])


def _choose_split(
    points: Tensor, depth: int, split_rule: int
) -> tuple[int, float, Tensor] | None:
    """Pick a median split for ``points``.

    Returns ``(dimension, value, left_mask)`` where ``left_mask`` selects the
    points with ``coordinate < value``; both sides are non-empty. Returns
    ``None`` when all points coincide.
    """
    lower, upper = torch.aminmax(points, dim=0)
    dimension_count = points.size(1)

    if split_rule == SPLIT_SPREAD:
        candidates = torch.argsort(
            upper - lower, descending=True, stable=True
        ).tolist()
    else:
        candidates = [
            (depth + offset) % dimension_count
            for offset in range(dimension_count)
        ]

    for dimension in candidates:
        if lower[dimension] == upper[dimension]:
            continue
        coordinates = points[:, dimension]
        ordered = torch.sort(coordinates, stable=True).values
        value = ordered[coordinates.size(0) // 2]
        # Median equal to the minimum leaves the left side empty; move up to
        # the next distinct coordinate.
        if value == ordered[0]:
            value = ordered[ordered > value][0]
        return dimension, value.item(), coordinates < value

    return None


def _warn_oversized_leaf(
    size: int, leaf_size: int, stacklevel: int = 3
) -> None:
    warnings.warn(
        f"leaf holds {size} entries at identical coordinates, "
        f"exceeding leaf_size={leaf_size}",
        RuntimeWarning,
        stacklevel=stacklevel,
    )


def kd_tree(
    points: Union[Tensor, Sequence[Sequence[float]]],
    *,
    dimension: int | None = None,
    leaf_size: int = DEFAULT_LEAF_SIZE,
    split_rule: str = "spread",
) -> KdTree:
    """Build a balanced k-d tree by recursive median splitting.

    Parameters
    ----------
    points : Tensor or sequence, shape (n, k)
        Points to index. May be empty.
    dimension : int, optional
        Dimensionality ``k``. Required when ``points`` is an empty sequence
        whose shape does not carry it; otherwise must match ``points``.
    leaf_size : int, default=4
        Partitions of at most ``leaf_size`` points become leaves.
    split_rule : str, default="spread"
        ``"spread"`` splits along the dimension of maximum spread, which
        balances skewed data better; ``"cycle"`` uses ``depth % k``.

    Returns
    -------
    KdTree
        Tree whose storage indices ``0..n-1`` follow the input order.

    Raises
    ------
    InvalidArgumentError
        If ``points`` is not 2D, has non-finite coordinates, disagrees with
        ``dimension``, or ``leaf_size``/``split_rule`` is invalid.

    Notes
    -----
    Each partition is split at the median of a stable sort along the chosen
    dimension: points with ``coordinate < median`` go left, the rest right,
    each side keeping input order, so identical input yields an identical
    tree. A partition whose points all coincide cannot be split and becomes
    a leaf even when it exceeds ``leaf_size``.

    Construction works off an explicit stack and never recurses.

    Examples
    --------
    >>> points = torch.tensor(
    ...     [[0.0, 0.0], [10.0, 0.0], [0.0, 10.0], [10.0, 10.0], [5.0, 5.0]]
    ... )
    >>> tree = kd_tree(points, leaf_size=1)
    >>> len(tree)
    5
    >>> tree.node(tree.root).dimension
    0
    """
    points = torch.as_tensor(points)
    if points.numel() == 0 and points.dim() == 1:
        if dimension is None:
            raise InvalidArgumentError(
                "dimension is required to build from an empty sequence"
            )
        points = points.reshape(0, dimension)

    if points.dim() != 2:
        raise InvalidArgumentError(
            f"points must be 2D (n, k), got {points.dim()}D"
        )
    if dimension is not None and points.size(1) != dimension:
        raise InvalidArgumentError(
            f"points dimension ({points.size(1)}) must match "
            f"dimension ({dimension})"
        )
    if not points.is_floating_point():
        points = points.to(torch.get_default_dtype())
    if not torch.isfinite(points).all():
        raise InvalidArgumentError("points must have finite coordinates")

    tree = KdTree(
        points.size(1),
        leaf_size=leaf_size,
        split_rule=split_rule,
        dtype=points.dtype,
    )
    _build(tree, points)
    return tree


def _build(
    tree: KdTree, points: Tensor, extents: Tensor | None = None
) -> None:
    """Store ``points`` in an empty tree and split them into nodes."""
    if points.size(0) == 0:
        return

    leaf_size = tree.leaf_size
    tree._count = points.size(0)
    tree._root = tree._append_node(None)
    stack = [(tree._root, tree._store(points, extents), 0)]

    while stack:
        node_id, indices, depth = stack.pop()
        coordinates = tree._buffer[indices]
        bounds = tree._slot_bounds(indices)

        split = None
        if indices.numel() > leaf_size:
            split = _choose_split(coordinates, depth, tree._split_rule)
            if split is None:
                _warn_oversized_leaf(indices.numel(), leaf_size, stacklevel=4)

        if split is None:
            tree._nodes[node_id] = KdLeaf(indices.tolist(), bounds)
            continue

        split_dimension, value, left_mask = split
        left = tree._append_node(None)
        right = tree._append_node(None)
        tree._nodes[node_id] = KdSplit(
            split_dimension, value, left, right, bounds
        )
        stack.append((right, indices[~left_mask], depth + 1))
        stack.append((left, indices[left_mask], depth + 1))
