"""Uniform square grid construction around a point set."""

import math
import numbers
from typing import Optional, Sequence, Tuple

import numpy as np

from ..abstractions.types import Grid
from ..config import config
from ..infrastructure.logging import get_logger, log_operation
from .bounds_manager import BoundsDefinition, PointsLike, coerce_coordinates, coerce_points
from .exceptions import ValidationError

logger = get_logger(__name__)

# Fuzz on the step count; an extent hit exactly by the step must not be lost to rounding
_SEQUENCE_FUZZ = 1e-10


def validate_cell_size(cell_size: float) -> float:
    """Check that the cell size is a positive finite number."""
    if isinstance(cell_size, bool) or not isinstance(cell_size, numbers.Real):
        raise ValidationError(f"Cell size must be a number, got: {cell_size!r}")
    if not math.isfinite(cell_size) or cell_size <= 0:
        raise ValidationError(
            f"Cell size must be positive, got: {cell_size}",
            details={'cell_size': cell_size}
        )
    return float(cell_size)


def validate_buffer(buffer: int) -> int:
    """Check that the buffer is a non-negative whole number of cells."""
    if isinstance(buffer, bool) or not isinstance(buffer, numbers.Integral):
        raise ValidationError(f"Buffer must be an integer number of cells, got: {buffer!r}")
    if buffer < 0:
        raise ValidationError(
            f"Buffer must be non-negative, got: {buffer}",
            details={'buffer': buffer}
        )
    return int(buffer)


def axis_centers(lo: float, hi: float, cell_size: float, buffer: int) -> np.ndarray:
    """
    Cell center positions along one axis.

    Runs from ``floor(lo) - cell_size*buffer`` to ``ceil(hi) + cell_size*buffer``
    in steps of ``cell_size``. One extra step is appended when the last center
    sits at or below ``extent - cell_size/2``, otherwise the far edge would be
    left uncovered.
    """
    origin = math.floor(lo) - cell_size * buffer
    extent = math.ceil(hi) + cell_size * buffer

    n_steps = int(math.floor((extent - origin) / cell_size + _SEQUENCE_FUZZ))
    centers = origin + np.arange(n_steps + 1, dtype=float) * cell_size

    if centers[-1] <= extent - cell_size / 2:
        centers = np.append(centers, centers[-1] + cell_size)

    return centers


class GridBuilder:
    """
    Builds the initial uniform grid covering all points plus a buffer margin.

    Every cell has the same size; the grid is returned in canonical
    x-then-y order with ids 1..N.
    """

    def __init__(self,
                 default_cell_size: Optional[float] = None,
                 default_buffer: Optional[int] = None):
        """
        Initialize grid builder.

        Args:
            default_cell_size: Used when ``build`` gets no cell size (config default otherwise)
            default_buffer: Used when ``build`` gets no buffer (config default otherwise)
        """
        self.default_cell_size = (
            default_cell_size if default_cell_size is not None
            else config.get('grids.default_cell_size', 1.0)
        )
        self.default_buffer = (
            default_buffer if default_buffer is not None
            else config.get('grids.default_buffer', 1)
        )

    def build(self,
              points: PointsLike,
              cell_size: Optional[float] = None,
              buffer: Optional[int] = None) -> Grid:
        """
        Build the uniform grid for a point set.

        Args:
            points: (x, y) pairs, an (N, 2) array or a DataFrame with x/y columns
            cell_size: Side length of every cell (> 0)
            buffer: Extra rows/columns on every side (>= 0)

        Returns:
            Canonical Grid

        Raises:
            ValidationError: malformed points, non-positive cell size or negative buffer
        """
        xs, ys = coerce_points(points)
        return self._build(xs, ys, cell_size, buffer)

    def build_from_coordinates(self,
                               x: Sequence[float],
                               y: Sequence[float],
                               cell_size: Optional[float] = None,
                               buffer: Optional[int] = None) -> Grid:
        """Build from separate coordinate sequences, which must have equal length."""
        xs, ys = coerce_coordinates(x, y)
        return self._build(xs, ys, cell_size, buffer)

    @log_operation("grid_build")
    def _build(self,
               xs: np.ndarray,
               ys: np.ndarray,
               cell_size: Optional[float],
               buffer: Optional[int]) -> Grid:
        cell_size = validate_cell_size(self.default_cell_size if cell_size is None else cell_size)
        buffer = validate_buffer(self.default_buffer if buffer is None else buffer)

        x_centers = axis_centers(float(xs.min()), float(xs.max()), cell_size, buffer)
        y_centers = axis_centers(float(ys.min()), float(ys.max()), cell_size, buffer)

        # Cross product; indexing='ij' already yields x-then-y order
        grid_x, grid_y = np.meshgrid(x_centers, y_centers, indexing='ij')
        grid = Grid.from_arrays(
            grid_x.ravel(),
            grid_y.ravel(),
            np.full(grid_x.size, cell_size)
        )

        logger.info(
            f"Built uniform grid: {len(x_centers)} x {len(y_centers)} = {len(grid)} cells "
            f"(cell_size={cell_size}, buffer={buffer})"
        )
        return grid

    def buffered_extent(self,
                        points: PointsLike,
                        cell_size: Optional[float] = None,
                        buffer: Optional[int] = None) -> BoundsDefinition:
        """Bounding box of the points grown by ``cell_size * buffer``; the area every grid must cover."""
        xs, ys = coerce_points(points)
        cell_size = validate_cell_size(self.default_cell_size if cell_size is None else cell_size)
        buffer = validate_buffer(self.default_buffer if buffer is None else buffer)
        return BoundsDefinition.from_points(xs, ys, margin=cell_size * buffer, name='buffered_points')


def build_grid(points: PointsLike, cell_size: float, buffer: int) -> Grid:
    """Module-level shortcut for ``GridBuilder().build``."""
    return GridBuilder().build(points, cell_size, buffer)
