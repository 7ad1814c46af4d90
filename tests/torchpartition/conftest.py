"""Shared test fixtures."""

import pytest
import torch

from torchpartition.space_partitioning import kd_tree


@pytest.fixture
def square_points():
    """Corners of a 10x10 square plus its center."""
    return torch.tensor(
        [
            [0.0, 0.0],
            [10.0, 0.0],
            [0.0, 10.0],
            [10.0, 10.0],
            [5.0, 5.0],
        ],
        dtype=torch.float64,
    )


@pytest.fixture
def square_tree(square_points):
    return kd_tree(square_points)
