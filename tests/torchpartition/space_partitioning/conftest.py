"""Test fixtures for space_partitioning tests."""

import pytest
import torch


def _multiset(points: torch.Tensor) -> list:
    return sorted(tuple(row) for row in points.tolist())


def _brute_force_nearest(points: torch.Tensor, query: torch.Tensor, k: int):
    """Squared distances of the k closest points, by linear scan."""
    distances = ((points - query) ** 2).sum(dim=-1)
    return torch.sort(distances).values[:k]


def _brute_force_box(
    points: torch.Tensor, lower: torch.Tensor, upper: torch.Tensor
) -> list:
    inside = ((points >= lower) & (points <= upper)).all(dim=-1)
    return _multiset(points[inside])


@pytest.fixture
def multiset():
    """Sorted list of point tuples, for order-independent comparison."""
    return _multiset


@pytest.fixture
def brute_force_nearest():
    return _brute_force_nearest


@pytest.fixture
def brute_force_box():
    return _brute_force_box


@pytest.fixture
def random_points():
    torch.manual_seed(1234)
    return torch.rand(300, 2, dtype=torch.float64) * 100


@pytest.fixture
def universal_box():
    def _universal_box(dimension: int):
        return (
            torch.full((dimension,), -1e9, dtype=torch.float64),
            torch.full((dimension,), 1e9, dtype=torch.float64),
        )

    return _universal_box


@pytest.fixture
def three_boxes():
    """Three 2x2 squares with lower corners (0, 0), (4, 4) and (8, 0)."""
    lower = torch.tensor(
        [[0.0, 0.0], [4.0, 4.0], [8.0, 0.0]], dtype=torch.float64
    )
    return lower, lower + 2.0


@pytest.fixture
def random_boxes():
    torch.manual_seed(4321)
    lower = torch.rand(200, 2, dtype=torch.float64) * 100
    return lower, lower + torch.rand(200, 2, dtype=torch.float64) * 10
