"""Exception types raised by sproutmesh.

All errors are detected eagerly (at construction or before meshing), so a
structure that initialized successfully never fails mid-growth.
"""

from __future__ import annotations

from typing import Optional


class SproutMeshError(Exception):
    """Base class for all sproutmesh errors."""


class InvalidConfiguration(SproutMeshError, ValueError):
    """Raised when growth or meshing parameters are out of range.

    Attributes:
        field (Optional[str]): Name of the offending parameter, if known.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InsufficientPointsError(SproutMeshError, ValueError):
    """Raised when a curve is requested through fewer than two points."""


class EmptyRadiusProfile(SproutMeshError, ValueError):
    """Raised when radius interpolation is given a zero-length profile."""
