import torch

from torchpartition.space_partitioning import (
    KdTree,
    KdTreeNodeBounds,
    kd_tree,
    kd_tree_node_bounds,
    kd_tree_remove,
)


class TestKdTreeNodeBounds:
    """Tests for kd_tree_node_bounds."""

    def test_returns_node_bounds(self, square_tree):
        bounds = kd_tree_node_bounds(square_tree)
        assert isinstance(bounds, KdTreeNodeBounds)
        assert bounds.batch_size == torch.Size([square_tree.num_nodes])

    def test_square_cells(self, square_tree):
        bounds = kd_tree_node_bounds(square_tree)
        assert bounds.level.tolist() == [0, 1, 1]
        assert bounds.split_dimension.tolist() == [0, -1, -1]
        torch.testing.assert_close(
            bounds.lower,
            torch.tensor(
                [[0.0, 0.0], [0.0, 0.0], [5.0, 0.0]], dtype=torch.float64
            ),
        )
        torch.testing.assert_close(
            bounds.upper,
            torch.tensor(
                [[10.0, 10.0], [5.0, 10.0], [10.0, 10.0]], dtype=torch.float64
            ),
        )
        assert bounds.count.tolist() == [5, 2, 3]

    def test_leaf_split_value_is_nan(self, square_tree):
        bounds = kd_tree_node_bounds(square_tree)
        assert bounds.split_value[0].item() == 5.0
        assert torch.isnan(bounds.split_value[1:]).all()

    def test_empty_tree(self):
        bounds = kd_tree_node_bounds(KdTree(3))
        assert bounds.node.numel() == 0
        assert bounds.lower.shape == (0, 3)

    def test_cells_contain_subtree_points(self, random_points):
        tree = kd_tree(random_points, leaf_size=3)
        bounds = kd_tree_node_bounds(tree)
        for row, node_id in enumerate(bounds.node.tolist()):
            points = tree._coordinates(tree._subtree_indices(node_id))
            assert (points >= bounds.lower[row]).all()
            assert (points <= bounds.upper[row]).all()
            assert points.size(0) == bounds.count[row].item()

    def test_root_count_matches_tree(self, random_points):
        tree = kd_tree(random_points, leaf_size=3)
        kd_tree_remove(tree, random_points[0])
        bounds = kd_tree_node_bounds(tree)
        assert bounds.count[0].item() == len(tree)

    def test_does_not_modify_tree(self, square_tree):
        before = square_tree.node(square_tree.root).bounds.clone()
        kd_tree_node_bounds(square_tree)
        torch.testing.assert_close(
            square_tree.node(square_tree.root).bounds, before
        )


class TestKdTreeNodeBoundsRecord:
    """Tests for constructing KdTreeNodeBounds directly."""

    def test_construct(self):
        bounds = KdTreeNodeBounds(
            node=torch.tensor([0]),
            lower=torch.zeros(1, 2),
            upper=torch.ones(1, 2),
            level=torch.tensor([0]),
            split_dimension=torch.tensor([-1]),
            split_value=torch.tensor([float("nan")]),
            count=torch.tensor([3]),
            batch_size=[1],
        )
        assert bounds.level.tolist() == [0]
        assert bounds[0].count.item() == 3
