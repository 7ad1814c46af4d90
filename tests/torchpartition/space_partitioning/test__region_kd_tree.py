import pytest
import torch

from torchpartition.geometry import Box
from torchpartition.space_partitioning import (
    InsertOutcome,
    InvalidArgumentError,
    KdLeaf,
    KdSplit,
    KdTree,
    PointNotFoundError,
    kd_tree,
    kd_tree_compact,
    kd_tree_insert,
    kd_tree_insert_region,
    kd_tree_remove,
    kd_tree_remove_region,
    region_kd_tree,
)


def _pair(lower, upper):
    return (
        torch.tensor(lower, dtype=torch.float64),
        torch.tensor(upper, dtype=torch.float64),
    )


def _assert_bounds_enclose_regions(tree):
    stack = [] if tree.root is None else [tree.root]
    while stack:
        node_id = stack.pop()
        node = tree.node(node_id)
        indices = tree._subtree_indices(node_id)
        if indices:
            extents = tree._extents_of(indices)
            assert (extents[:, 0] >= node.bounds[0]).all()
            assert (extents[:, 1] <= node.bounds[1]).all()
        if isinstance(node, KdSplit):
            stack.extend([node.left, node.right])


class TestRegionKdTree:
    """Tests for region_kd_tree."""

    def test_stores_regions(self, three_boxes):
        tree = region_kd_tree(three_boxes)
        assert tree.stores_regions
        assert len(tree) == 3
        torch.testing.assert_close(tree.regions.lower, three_boxes[0])
        torch.testing.assert_close(tree.regions.upper, three_boxes[1])

    def test_points_are_centers(self, three_boxes):
        tree = region_kd_tree(three_boxes)
        torch.testing.assert_close(
            tree.points,
            torch.tensor(
                [[1.0, 1.0], [5.0, 5.0], [9.0, 1.0]], dtype=torch.float64
            ),
        )

    def test_root_bounds_enclose_boxes(self, three_boxes):
        tree = region_kd_tree(three_boxes, leaf_size=1)
        torch.testing.assert_close(
            tree.node(tree.root).bounds,
            torch.tensor([[0.0, 0.0], [10.0, 6.0]], dtype=torch.float64),
        )

    def test_split_on_centers(self, three_boxes):
        tree = region_kd_tree(three_boxes, leaf_size=1)
        root = tree.node(tree.root)
        assert isinstance(root, KdSplit)
        assert root.dimension == 0
        assert root.value == 5.0
        assert tree.node(root.left).indices == [0]

    def test_bounds_enclose_every_box(self, random_boxes):
        tree = region_kd_tree(random_boxes, leaf_size=3)
        _assert_bounds_enclose_regions(tree)

    def test_accepts_box_record(self, three_boxes):
        lower, upper = three_boxes
        tree = region_kd_tree(Box(lower=lower, upper=upper, batch_size=[3]))
        assert len(tree) == 3

    def test_integer_corners_converted(self):
        tree = region_kd_tree(
            (torch.tensor([[0, 0]]), torch.tensor([[2, 4]]))
        )
        assert tree.dtype == torch.get_default_dtype()
        assert tree.points.tolist() == [[1.0, 2.0]]

    def test_empty_with_dimension(self):
        tree = region_kd_tree(([], []), dimension=3)
        assert len(tree) == 0
        assert tree.regions.lower.shape == (0, 3)

    def test_empty_without_dimension_raises(self):
        with pytest.raises(InvalidArgumentError, match="dimension"):
            region_kd_tree(([], []))

    def test_inverted_box_raises(self):
        with pytest.raises(InvalidArgumentError, match=r"lower\[1, 0\]"):
            region_kd_tree(
                _pair([[0.0, 0.0], [5.0, 0.0]], [[1.0, 1.0], [4.0, 1.0]])
            )

    def test_shape_mismatch_raises(self):
        with pytest.raises(InvalidArgumentError, match="same shape"):
            region_kd_tree((torch.zeros(2, 2), torch.ones(3, 2)))

    def test_single_box_raises(self):
        with pytest.raises(InvalidArgumentError, match="2D"):
            region_kd_tree((torch.zeros(2), torch.ones(2)))

    def test_non_finite_raises(self):
        with pytest.raises(InvalidArgumentError, match="finite"):
            region_kd_tree(
                (torch.zeros(1, 2), torch.tensor([[1.0, float("inf")]]))
            )

    def test_not_a_pair_raises(self):
        with pytest.raises(InvalidArgumentError, match="pair"):
            region_kd_tree(3.0)

    def test_concentric_boxes_warn(self):
        lower = torch.tensor([[0.0, 0.0], [-1.0, -1.0], [-2.0, -2.0]])
        with pytest.warns(RuntimeWarning, match="identical"):
            tree = region_kd_tree((lower, -lower), leaf_size=2)
        assert isinstance(tree.node(tree.root), KdLeaf)


class TestRegionKdTreeUpdates:
    """Tests for inserting and removing boxes."""

    def test_insert_region_splits(self, three_boxes):
        tree = region_kd_tree(three_boxes, leaf_size=1)
        outcome = kd_tree_insert_region(
            tree, _pair([20.0, 20.0], [30.0, 30.0])
        )
        assert outcome == InsertOutcome.SPLIT
        assert len(tree) == 4
        torch.testing.assert_close(
            tree.node(tree.root).bounds,
            torch.tensor([[0.0, 0.0], [30.0, 30.0]], dtype=torch.float64),
        )
        _assert_bounds_enclose_regions(tree)

    def test_insert_region_into_empty_tree(self):
        tree = KdTree(2, regions=True, dtype=torch.float64)
        kd_tree_insert_region(tree, _pair([0.0, 0.0], [2.0, 4.0]))
        torch.testing.assert_close(
            tree.node(tree.root).bounds,
            torch.tensor([[0.0, 0.0], [2.0, 4.0]], dtype=torch.float64),
        )

    def test_duplicate_region_reported(self, three_boxes):
        tree = region_kd_tree(three_boxes, leaf_size=4)
        outcome = kd_tree_insert_region(tree, _pair([4.0, 4.0], [6.0, 6.0]))
        assert outcome == InsertOutcome.DUPLICATE

    def test_same_center_is_not_duplicate(self, three_boxes):
        tree = region_kd_tree(three_boxes, leaf_size=4)
        outcome = kd_tree_insert_region(tree, _pair([3.0, 3.0], [7.0, 7.0]))
        assert outcome == InsertOutcome.APPENDED

    def test_insert_region_into_point_tree_raises(self, square_tree):
        with pytest.raises(InvalidArgumentError, match="regions"):
            kd_tree_insert_region(square_tree, _pair([0.0, 0.0], [1.0, 1.0]))
        assert len(square_tree) == 5

    def test_inverted_region_leaves_tree_untouched(self, three_boxes):
        tree = region_kd_tree(three_boxes)
        with pytest.raises(InvalidArgumentError):
            kd_tree_insert_region(tree, _pair([1.0, 1.0], [0.0, 2.0]))
        assert len(tree) == 3
        assert tree._size == 3

    def test_point_stored_as_degenerate_box(self, three_boxes):
        tree = region_kd_tree(three_boxes)
        kd_tree_insert(tree, torch.tensor([1.0, 1.0]))
        regions = tree.regions
        torch.testing.assert_close(regions.lower[3], regions.upper[3])
        assert torch.tensor([1.0, 1.0]) in tree

    def test_remove_point_matches_degenerate_box(self, three_boxes):
        tree = region_kd_tree(three_boxes)
        kd_tree_insert(tree, torch.tensor([1.0, 1.0]))
        assert kd_tree_remove(tree, torch.tensor([1.0, 1.0])) == 3
        with pytest.raises(PointNotFoundError):
            kd_tree_remove(tree, torch.tensor([1.0, 1.0]))

    def test_remove_region(self, three_boxes):
        tree = region_kd_tree(three_boxes)
        box = _pair([4.0, 4.0], [6.0, 6.0])
        assert kd_tree_remove_region(tree, box) == 1
        assert len(tree) == 2
        with pytest.raises(PointNotFoundError):
            kd_tree_remove_region(tree, box)

    def test_remove_region_requires_exact_corners(self, three_boxes):
        tree = region_kd_tree(three_boxes)
        with pytest.raises(PointNotFoundError):
            kd_tree_remove_region(tree, _pair([3.0, 3.0], [7.0, 7.0]))
        assert len(tree) == 3

    def test_remove_region_from_point_tree_raises(self, square_tree):
        with pytest.raises(InvalidArgumentError, match="regions"):
            kd_tree_remove_region(square_tree, _pair([5.0, 5.0], [5.0, 5.0]))

    def test_compact_packs_regions(self, three_boxes):
        tree = region_kd_tree(three_boxes, leaf_size=1)
        kd_tree_remove_region(tree, _pair([4.0, 4.0], [6.0, 6.0]))
        kd_tree_compact(tree)
        torch.testing.assert_close(
            tree.regions.lower,
            torch.tensor([[0.0, 0.0], [8.0, 0.0]], dtype=torch.float64),
        )
        torch.testing.assert_close(
            tree.node(tree.root).bounds,
            torch.tensor([[0.0, 0.0], [10.0, 2.0]], dtype=torch.float64),
        )
        _assert_bounds_enclose_regions(tree)

    def test_compact_emptied_region_tree(self, three_boxes):
        tree = region_kd_tree(three_boxes)
        lower, upper = three_boxes
        for row in range(3):
            kd_tree_remove_region(tree, (lower[row], upper[row]))
        kd_tree_compact(tree)
        assert tree.root is None
        kd_tree_insert_region(tree, _pair([0.0, 0.0], [1.0, 1.0]))
        assert len(tree) == 1

    def test_point_tree_regions_are_degenerate(self):
        tree = kd_tree(torch.tensor([[1.0, 2.0], [3.0, 4.0]]))
        assert not tree.stores_regions
        torch.testing.assert_close(tree.regions.lower, tree.regions.upper)
