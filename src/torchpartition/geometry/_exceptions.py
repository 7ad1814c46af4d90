"""Geometry module exceptions."""


class GeometryError(Exception):
    """Base exception for geometry operations."""

    pass


class InvalidArgumentError(GeometryError, ValueError):
    """Input is malformed (wrong shape, non-finite, or lower > upper)."""

    pass
