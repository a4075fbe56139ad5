"""
Point-driven quadtree refinement of square spatial grids.

The grid is a flat table of leaf cells (center x, y, side length, id) rather
than a navigable tree. Refinement runs in passes:

- GridBuilder: uniform grid around the points plus a buffer of whole cells
- RefinementRegionSelector: cells to refine under a policy
  ('nearest_cell' or 'neighborhood_box')
- QuadSubdivider: each selected cell becomes its four quadrants
- RefinementDriver: build once, then select + subdivide ``iterations`` times

Ids are reassigned on every pass in x-then-y order; track a cell across
passes by ``Cell.key`` (x, y, size), never by id.

Usage Example:
    from quadgrid import refine

    grid = refine([(5.0, 5.0), (7.5, 6.0)], cell_size=1.0, buffer=1,
                  iterations=2, policy='neighborhood_box')
    table = grid.to_dataframe()  # x, y, cell_size, cell_id
"""

from .abstractions.types import (
    Cell, Grid, Point, RefinementPolicy, RefinementResult, RefinementStep
)
from .grid_systems import (
    GridBuilder, GridError, InvalidPolicyError, NotFoundError, ValidationError, build_grid
)
from .refinement import (
    QuadSubdivider,
    RefinementDriver,
    RefinementRegionSelector,
    refine,
    select_refinement_region,
    subdivide
)

__version__ = '0.1.0'

__all__ = [
    'Cell',
    'Grid',
    'Point',
    'RefinementPolicy',
    'RefinementResult',
    'RefinementStep',
    'GridBuilder',
    'GridError',
    'InvalidPolicyError',
    'NotFoundError',
    'ValidationError',
    'build_grid',
    'QuadSubdivider',
    'RefinementDriver',
    'RefinementRegionSelector',
    'refine',
    'select_refinement_region',
    'subdivide',
]
