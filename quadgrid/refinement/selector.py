"""Selection of the cells that must be subdivided around each point."""

from abc import ABC, abstractmethod
from typing import Optional, Set, Union

import numpy as np

from ..abstractions.types import Grid, RefinementPolicy, RefinementRegion
from ..config import config
from ..grid_systems.bounds_manager import PointsLike, coerce_points
from ..infrastructure.logging import get_logger, log_operation
from .registry import parse_policy, policy_registry

logger = get_logger(__name__)


class SelectionStrategy(ABC):
    """Picks cell positions (0-based, canonical order) for a set of points."""

    policy: RefinementPolicy

    @abstractmethod
    def select_positions(self, grid: Grid, xs: np.ndarray, ys: np.ndarray) -> Set[int]:
        """
        Positions of the cells selected for all points.

        Args:
            grid: Current grid (non-empty)
            xs: Point x coordinates
            ys: Point y coordinates

        Returns:
            Deduplicated set of cell positions
        """
        pass


@policy_registry.register_decorator()
class NearestCellStrategy(SelectionStrategy):
    """
    Selects, per point, the finest cell whose footprint holds it.

    Footprints are tested with inclusive bounds, so a point on a shared edge
    qualifies for several cells; the smallest size wins and remaining ties go
    to the first cell in x-then-y order. Points outside every cell select
    nothing.
    """

    policy = RefinementPolicy.NEAREST_CELL

    def select_positions(self, grid: Grid, xs: np.ndarray, ys: np.ndarray) -> Set[int]:
        selected: Set[int] = set()
        sizes = grid.sizes

        for x, y in zip(xs, ys):
            candidates = np.flatnonzero(grid.containing_mask(x, y))
            if candidates.size == 0:
                logger.debug(f"Point ({x}, {y}) lies outside the grid; nothing selected")
                continue

            candidate_sizes = sizes[candidates]
            # argmin returns the first minimum, i.e. canonical order among ties
            selected.add(int(candidates[np.argmin(candidate_sizes)]))

        return selected


@policy_registry.register_decorator()
class NeighborhoodBoxStrategy(SelectionStrategy):
    """
    Selects every cell whose center falls in a box of 1.5 finest-cell widths
    around each point.

    The finest size is taken over the whole grid, not the point's locality.
    Inclusive bounds pull in extra rows and columns when a point sits exactly
    on a center or an edge, growing the usual 3x3 block up to 4x4.
    """

    policy = RefinementPolicy.NEIGHBORHOOD_BOX

    # Half-width of the box in units of the finest cell size
    reach = 1.5

    def select_positions(self, grid: Grid, xs: np.ndarray, ys: np.ndarray) -> Set[int]:
        selected: Set[int] = set()
        half_width = self.reach * grid.min_cell_size
        cx, cy = grid.xs, grid.ys

        for x, y in zip(xs, ys):
            mask = (
                (cx >= x - half_width) & (cx <= x + half_width) &
                (cy >= y - half_width) & (cy <= y + half_width)
            )
            selected.update(int(i) for i in np.flatnonzero(mask))

        return selected


class RefinementRegionSelector:
    """Chooses the refinement region of a grid under a named policy."""

    def __init__(self, default_policy: Optional[Union[str, RefinementPolicy]] = None):
        """
        Initialize selector.

        Args:
            default_policy: Policy used when ``select`` gets none (config default otherwise)
        """
        self.default_policy = (
            default_policy if default_policy is not None
            else config.get('refinement.default_policy', RefinementPolicy.NEIGHBORHOOD_BOX.value)
        )

    @log_operation("select_refinement_region")
    def select(self,
               grid: Grid,
               points: PointsLike,
               policy: Optional[Union[str, RefinementPolicy]] = None) -> RefinementRegion:
        """
        Select the ids of cells to subdivide.

        Args:
            grid: Current grid
            points: Points driving the refinement
            policy: 'nearest_cell' / 'neighborhood_box' (or enum member)

        Returns:
            Frozen set of cell ids; a cell chosen by several points appears once

        Raises:
            InvalidPolicyError: unknown policy name
            ValidationError: malformed points
        """
        strategy = policy_registry.get_instance(
            parse_policy(self.default_policy if policy is None else policy)
        )
        xs, ys = coerce_points(points)

        if len(grid) == 0:
            return frozenset()

        positions = strategy.select_positions(grid, xs, ys)
        region = frozenset(pos + 1 for pos in positions)

        logger.debug(
            f"Selected {len(region)} of {len(grid)} cells for {len(xs)} points "
            f"using {strategy.policy.display_name}"
        )
        return region


def select_refinement_region(grid: Grid,
                             points: PointsLike,
                             policy: Union[str, RefinementPolicy]) -> RefinementRegion:
    """Module-level shortcut for ``RefinementRegionSelector().select``."""
    return RefinementRegionSelector().select(grid, points, policy)
