"""Testing helpers for torchpartition.

Example usage:

    import hypothesis

    from torchpartition.testing.strategies import point_sets

    @hypothesis.given(points=point_sets(dimension=2))
    def test_counts(points):
        assert len(kd_tree(points)) == points.size(0)
"""
