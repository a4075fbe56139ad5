"""Integrity validators for refined grids."""

from typing import Any, Dict, List, Optional, Union

import numpy as np
import pandas as pd
import shapely
from shapely.geometry import LineString, Point as ShapelyPoint, box
from shapely.geometry.base import BaseGeometry

from quadgrid.abstractions.interfaces.validator import (
    BaseValidator, ValidationIssue, ValidationResult, ValidationSeverity, ValidationType
)
from quadgrid.abstractions.types import Grid, order_violations
from quadgrid.grid_systems.bounds_manager import BoundsDefinition, coerce_points
from quadgrid.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _extent_geometry(extent: BoundsDefinition) -> BaseGeometry:
    """Extent as a shapely geometry; collapses to a line or point when degenerate."""
    minx, miny, maxx, maxy = extent.bounds
    if extent.width > 0 and extent.height > 0:
        return box(minx, miny, maxx, maxy)
    if extent.width == 0 and extent.height == 0:
        return ShapelyPoint(minx, miny)
    return LineString([(minx, miny), (maxx, maxy)])


class GridIntegrityValidator(BaseValidator):
    """
    Checks a grid against the invariants every refinement pass must keep.

    Checks for:
    - Canonical x-then-y order with dense ids 1..N in stored tables
    - Strictly positive cell sizes
    - No interior overlap between any two cells
    - Coverage of the buffered point extent (when given)
    - Every point inside at least one cell footprint (when points given)
    """

    def __init__(self, area_tolerance: float = 1e-12):
        """
        Initialize grid validator.

        Args:
            area_tolerance: Overlap areas at or below this are treated as shared edges
        """
        super().__init__("GridIntegrityValidator")
        self.area_tolerance = area_tolerance

    def validate(self, data: Union[Grid, Dict[str, Any]]) -> ValidationResult:
        """
        Validate grid integrity.

        Args:
            data: A Grid, or a dict with 'grid' and optional 'points', 'extent'
                and 'table' (the rows as stored, checked for order and ids)

        Returns:
            ValidationResult with any issues found
        """
        if isinstance(data, Grid):
            data = {'grid': data}

        grid: Optional[Grid] = data.get('grid')
        if grid is None or len(grid) == 0:
            issue = self.create_issue(
                ValidationType.EXTENT_COVERAGE,
                ValidationSeverity.ERROR,
                "Grid is empty"
            )
            return self.create_result(issues=[issue])

        issues: List[ValidationIssue] = []
        table = data.get('table')
        issues.extend(self.check_ordering(table if table is not None else grid.to_dataframe()))
        issues.extend(self.check_sizes(grid))
        issues.extend(self.check_overlap(grid))

        extent = data.get('extent')
        if extent is not None:
            issues.extend(self.check_extent_coverage(grid, extent))

        points = data.get('points')
        if points is not None:
            issues.extend(self.check_point_coverage(grid, points))

        result = self.create_result(
            issues=issues,
            metadata={
                'cell_count': len(grid),
                'total_area': grid.total_area,
                'size_counts': grid.size_counts()
            }
        )

        if result.has_errors:
            logger.warning(f"Grid failed integrity validation with {result.error_count} errors")
        return result

    def check_ordering(self, table: pd.DataFrame) -> List[ValidationIssue]:
        """Check rows as stored: dense ids and x-then-y order."""
        issues = []

        if 'cell_id' in table.columns:
            ids = table['cell_id'].to_numpy()
            if not np.array_equal(ids, np.arange(1, len(table) + 1)):
                issues.append(self.create_issue(
                    ValidationType.CELL_ORDERING,
                    ValidationSeverity.ERROR,
                    "Cell ids are not dense 1..N in storage order"
                ))

        out_of_order = order_violations(table['x'].to_numpy(), table['y'].to_numpy())
        for pos in out_of_order[:10]:
            issues.append(self.create_issue(
                ValidationType.CELL_ORDERING,
                ValidationSeverity.ERROR,
                "Cell is not in x-then-y order relative to its predecessor",
                location=f"row {pos + 1}"
            ))

        return issues

    def check_sizes(self, grid: Grid) -> List[ValidationIssue]:
        bad = np.flatnonzero(~(grid.sizes > 0))
        return [
            self.create_issue(
                ValidationType.CELL_SIZE,
                ValidationSeverity.ERROR,
                f"Cell size must be positive, got {grid.sizes[pos]}",
                location=f"cell {pos + 1}"
            )
            for pos in bad[:10]
        ]

    def check_overlap(self, grid: Grid) -> List[ValidationIssue]:
        """Pairs of cells sharing interior area (touching edges are fine)."""
        geoms = np.array(grid.to_geometries(), dtype=object)
        tree = shapely.STRtree(geoms)
        left, right = tree.query(geoms, predicate='intersects')

        pairs = left < right
        left, right = left[pairs], right[pairs]
        if left.size == 0:
            return []

        areas = shapely.area(shapely.intersection(geoms[left], geoms[right]))
        overlapping = np.flatnonzero(areas > self.area_tolerance)

        issues = []
        for k in overlapping[:10]:
            issues.append(self.create_issue(
                ValidationType.OVERLAP,
                ValidationSeverity.ERROR,
                f"Cells overlap with area {areas[k]:.6g}",
                location=f"cells {left[k] + 1} and {right[k] + 1}",
                details={'overlap_area': float(areas[k])}
            ))

        if overlapping.size > 10:
            logger.debug(f"{overlapping.size} overlapping cell pairs found; reporting first 10")

        return issues

    def check_extent_coverage(self, grid: Grid, extent: BoundsDefinition) -> List[ValidationIssue]:
        """Union of footprints must cover the extent."""
        if not extent.covered_by(grid.bounds):
            return [self.create_issue(
                ValidationType.EXTENT_COVERAGE,
                ValidationSeverity.ERROR,
                f"Grid bounds {grid.bounds} do not enclose extent {extent.bounds}"
            )]

        union = shapely.union_all(grid.to_geometries())
        if not union.covers(_extent_geometry(extent)):
            return [self.create_issue(
                ValidationType.EXTENT_COVERAGE,
                ValidationSeverity.ERROR,
                f"Grid cells leave gaps inside extent {extent.bounds}"
            )]

        return []

    def check_point_coverage(self, grid: Grid, points: Any) -> List[ValidationIssue]:
        """Every point must lie in at least one inclusive footprint."""
        xs, ys = coerce_points(points)
        issues = []

        for index, (x, y) in enumerate(zip(xs, ys)):
            if not grid.containing_mask(x, y).any():
                issues.append(self.create_issue(
                    ValidationType.POINT_COVERAGE,
                    ValidationSeverity.ERROR,
                    f"Point ({x}, {y}) is not covered by any cell",
                    location=f"point {index}"
                ))

        return issues
