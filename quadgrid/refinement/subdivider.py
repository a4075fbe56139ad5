"""Quadtree subdivision of selected grid cells."""

import numbers
from typing import Iterable

import numpy as np

from ..abstractions.types import Grid
from ..grid_systems.exceptions import NotFoundError
from ..infrastructure.logging import get_logger, log_operation

logger = get_logger(__name__)

# Child center offsets in units of the parent size: (-,-), (-,+), (+,-), (+,+)
_QUADRANT_SIGNS = np.array([(-1, -1), (-1, 1), (1, -1), (1, 1)], dtype=float)


def _is_cell_id(value) -> bool:
    """Only integers name cells; bool is Integral but never an id."""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


class QuadSubdivider:
    """Replaces selected cells with their four quadrants and reindexes the grid."""

    @log_operation("subdivide")
    def subdivide(self, grid: Grid, ids: Iterable[int]) -> Grid:
        """
        Subdivide cells by id.

        Each parent (cx, cy, s) becomes four children of size s/2 centered at
        (cx +- s/4, cy +- s/4), which tile the parent exactly. The result is a
        new canonical grid with 3 more cells per refined parent.

        Args:
            grid: Grid the ids were selected from
            ids: Cell ids to refine (duplicates are ignored)

        Returns:
            New Grid

        Raises:
            NotFoundError: an id does not exist in ``grid`` or is not an integer
        """
        wanted = set()
        unknown = []
        for cell_id in ids:
            if _is_cell_id(cell_id) and grid.has_id(int(cell_id)):
                wanted.add(int(cell_id))
            elif cell_id not in unknown:
                unknown.append(cell_id)
        if unknown:
            # Integer ids sorted first, then anything that is not an id at all
            raise NotFoundError(
                sorted(i for i in unknown if _is_cell_id(i)) +
                [i for i in unknown if not _is_cell_id(i)],
                len(grid)
            )
        wanted = sorted(wanted)

        if not wanted:
            return Grid.from_cells(grid.cells)

        positions = np.asarray(wanted, dtype=np.int64) - 1
        keep = np.ones(len(grid), dtype=bool)
        keep[positions] = False

        parent_x = grid.xs[positions]
        parent_y = grid.ys[positions]
        parent_size = grid.sizes[positions]
        offset = parent_size / 4

        # Shape (n_parents, 4) then flattened
        child_x = (parent_x[:, None] + _QUADRANT_SIGNS[None, :, 0] * offset[:, None]).ravel()
        child_y = (parent_y[:, None] + _QUADRANT_SIGNS[None, :, 1] * offset[:, None]).ravel()
        child_size = np.repeat(parent_size / 2, 4)

        refined = Grid.from_arrays(
            np.concatenate([grid.xs[keep], child_x]),
            np.concatenate([grid.ys[keep], child_y]),
            np.concatenate([grid.sizes[keep], child_size])
        )

        logger.debug(
            f"Subdivided {len(wanted)} cells: {len(grid)} -> {len(refined)} cells"
        )
        return refined


def subdivide(grid: Grid, ids: Iterable[int]) -> Grid:
    """Module-level shortcut for ``QuadSubdivider().subdivide``."""
    return QuadSubdivider().subdivide(grid, ids)
