import torch

from torchpartition.graphics import AXIS_COLORS, PartitionLines, partition_lines
from torchpartition.space_partitioning import KdTree, kd_tree


class TestPartitionLines:
    """Tests for partition_lines."""

    def test_square_tree(self, square_tree):
        lines = partition_lines(square_tree)
        assert isinstance(lines, PartitionLines)
        assert lines.batch_size == torch.Size([1])
        torch.testing.assert_close(
            lines.lower, torch.tensor([[5.0, 0.0]], dtype=torch.float64)
        )
        torch.testing.assert_close(
            lines.upper, torch.tensor([[5.0, 10.0]], dtype=torch.float64)
        )
        assert lines.axis.tolist() == [0]
        assert lines.level.tolist() == [0]
        torch.testing.assert_close(lines.color[0], AXIS_COLORS[0])

    def test_segments_lie_on_split_plane(self):
        generator = torch.Generator().manual_seed(7)
        points = torch.rand(64, 2, generator=generator, dtype=torch.float64)
        lines = partition_lines(kd_tree(points, leaf_size=2))
        rows = torch.arange(lines.axis.size(0))
        torch.testing.assert_close(
            lines.lower[rows, lines.axis], lines.upper[rows, lines.axis]
        )
        assert (lines.lower <= lines.upper).all()

    def test_three_dimensions(self):
        points = torch.tensor(
            [[0.0, 0.0, 0.0], [1.0, 4.0, 2.0], [2.0, 1.0, 3.0]]
        )
        lines = partition_lines(kd_tree(points, leaf_size=1))
        assert lines.lower.shape[-1] == 3
        assert lines.color.shape == (lines.axis.size(0), 4)

    def test_single_leaf_has_no_lines(self, square_points):
        lines = partition_lines(kd_tree(square_points, leaf_size=8))
        assert lines.batch_size == torch.Size([0])

    def test_empty_tree(self):
        lines = partition_lines(KdTree(2))
        assert lines.lower.shape == (0, 2)

    def test_construct_record(self):
        lines = PartitionLines(
            lower=torch.zeros(2, 2),
            upper=torch.ones(2, 2),
            axis=torch.tensor([0, 1]),
            level=torch.tensor([0, 1]),
            color=AXIS_COLORS[:2],
            batch_size=[2],
        )
        assert lines[1].level.item() == 1
