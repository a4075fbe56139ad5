# quadgrid/grid_systems/__init__.py
"""Grid construction and the grid error taxonomy."""

from .bounds_manager import BoundsDefinition, coerce_coordinates, coerce_points
from .exceptions import GridError, InvalidPolicyError, NotFoundError, ValidationError
from .grid_builder import GridBuilder, axis_centers, build_grid

__all__ = [
    'BoundsDefinition',
    'coerce_coordinates',
    'coerce_points',
    'GridError',
    'InvalidPolicyError',
    'NotFoundError',
    'ValidationError',
    'GridBuilder',
    'axis_centers',
    'build_grid',
]
