# quadgrid/abstractions/types/__init__.py
"""Type definitions for the abstractions layer."""

# Grid types
from .grid_types import Cell, CellKey, Grid, Point, RECORD_COLUMNS, order_violations

# Refinement types
from .refinement_types import (
    RefinementPolicy, RefinementRegion, RefinementResult, RefinementStep
)

__all__ = [
    # Grid
    'Cell', 'CellKey', 'Grid', 'Point', 'RECORD_COLUMNS', 'order_violations',
    # Refinement
    'RefinementPolicy', 'RefinementRegion', 'RefinementResult', 'RefinementStep',
]
