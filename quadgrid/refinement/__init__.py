# quadgrid/refinement/__init__.py
"""Refinement engine: region selection, quadtree subdivision and the iterative driver."""

from .registry import PolicyRegistry, parse_policy, policy_registry
from .selector import (
    NearestCellStrategy,
    NeighborhoodBoxStrategy,
    RefinementRegionSelector,
    SelectionStrategy,
    select_refinement_region
)
from .subdivider import QuadSubdivider, subdivide
from .driver import RefinementDriver, refine, validate_iterations

__all__ = [
    'PolicyRegistry',
    'parse_policy',
    'policy_registry',
    'NearestCellStrategy',
    'NeighborhoodBoxStrategy',
    'RefinementRegionSelector',
    'SelectionStrategy',
    'select_refinement_region',
    'QuadSubdivider',
    'subdivide',
    'RefinementDriver',
    'refine',
    'validate_iterations',
]
