"""Iterative refinement driver: build once, then select and subdivide N times."""

import numbers
from typing import Optional, Union

from ..abstractions.types import Grid, RefinementPolicy, RefinementResult, RefinementStep
from ..config import config
from ..grid_systems.bounds_manager import PointsLike, coerce_points
from ..grid_systems.exceptions import ValidationError
from ..grid_systems.grid_builder import GridBuilder
from ..infrastructure.logging import LoggingContext, get_logger
from .registry import parse_policy
from .selector import RefinementRegionSelector
from .subdivider import QuadSubdivider

logger = get_logger(__name__)


def validate_iterations(iterations: int) -> int:
    """Check that the pass count is a non-negative integer."""
    if isinstance(iterations, bool) or not isinstance(iterations, numbers.Integral):
        raise ValidationError(f"Iterations must be an integer, got: {iterations!r}")
    if iterations < 0:
        raise ValidationError(
            f"Iterations must be non-negative, got: {iterations}",
            details={'iterations': iterations}
        )
    return int(iterations)


class RefinementDriver:
    """
    Orchestrates repeated selection and subdivision passes.

    Handles:
    - Building the uniform starting grid
    - Running ``iterations`` select -> subdivide passes
    - Optional retention of every intermediate grid for diagnostics

    Any error aborts the whole run; no partial grid is returned.
    """

    def __init__(self,
                 builder: Optional[GridBuilder] = None,
                 selector: Optional[RefinementRegionSelector] = None,
                 subdivider: Optional[QuadSubdivider] = None):
        self.builder = builder or GridBuilder()
        self.selector = selector or RefinementRegionSelector()
        self.subdivider = subdivider or QuadSubdivider()
        self.max_cells_warning = config.get('refinement.max_cells_warning', 1_000_000)

    def refine(self,
               points: PointsLike,
               cell_size: Optional[float] = None,
               buffer: Optional[int] = None,
               iterations: Optional[int] = None,
               policy: Optional[Union[str, RefinementPolicy]] = None) -> Grid:
        """
        Build and refine a grid around the points.

        Args:
            points: Points driving the refinement
            cell_size: Initial cell size (> 0)
            buffer: Extra rows/columns around the point extent (>= 0)
            iterations: Number of refinement passes (>= 0); 0 returns the uniform grid
            policy: 'nearest_cell' or 'neighborhood_box'

        Returns:
            Final Grid

        Raises:
            ValidationError: malformed points, cell size, buffer or iterations
            InvalidPolicyError: unknown policy
        """
        retain = config.get('refinement.retain_history', False)
        return self._run(points, cell_size, buffer, iterations, policy, retain_history=retain).grid

    def refine_with_history(self,
                            points: PointsLike,
                            cell_size: Optional[float] = None,
                            buffer: Optional[int] = None,
                            iterations: Optional[int] = None,
                            policy: Optional[Union[str, RefinementPolicy]] = None) -> RefinementResult:
        """Same as ``refine`` but keeps every intermediate grid and per-pass diagnostics."""
        return self._run(points, cell_size, buffer, iterations, policy, retain_history=True)

    def _run(self,
             points: PointsLike,
             cell_size: Optional[float],
             buffer: Optional[int],
             iterations: Optional[int],
             policy: Optional[Union[str, RefinementPolicy]],
             retain_history: bool) -> RefinementResult:
        # Resolve everything that can fail on bad input before doing any work
        resolved_policy = parse_policy(
            config.get('refinement.default_policy', RefinementPolicy.NEIGHBORHOOD_BOX.value)
            if policy is None else policy
        )
        iterations = validate_iterations(
            config.get('refinement.default_iterations', 1) if iterations is None else iterations
        )
        xs, ys = coerce_points(points)
        point_pairs = list(zip(xs.tolist(), ys.tolist()))

        ctx = LoggingContext()
        parameters = {
            'cell_size': cell_size if cell_size is not None else self.builder.default_cell_size,
            'buffer': buffer if buffer is not None else self.builder.default_buffer,
            'iterations': iterations,
            'policy': resolved_policy.value,
            'point_count': len(point_pairs)
        }

        with ctx.pipeline('refine', **parameters):
            with ctx.stage('build'):
                grid = self.builder.build(point_pairs, cell_size, buffer)

            result = RefinementResult(grid=grid, parameters=parameters)
            if retain_history:
                result.history.append(grid)

            for iteration in range(1, iterations + 1):
                with ctx.stage(f"pass_{iteration}"):
                    region = self.selector.select(grid, point_pairs, resolved_policy)
                    refined = self.subdivider.subdivide(grid, region)

                step = RefinementStep(
                    iteration=iteration,
                    policy=resolved_policy,
                    selected_count=len(region),
                    cells_before=len(grid),
                    cells_after=len(refined),
                    min_cell_size=refined.min_cell_size
                )
                result.steps.append(step)
                grid = refined
                if retain_history:
                    result.history.append(grid)

                logger.info(
                    f"Pass {iteration}/{iterations}: refined {step.selected_count} cells, "
                    f"{step.cells_before} -> {step.cells_after} cells",
                    extra={'context': step.to_dict()}
                )

                if len(grid) > self.max_cells_warning:
                    logger.warning(
                        f"Grid has {len(grid)} cells after pass {iteration}, "
                        f"above the warning threshold of {self.max_cells_warning}"
                    )

                if not region:
                    # Selection depends only on grid and points; later passes would repeat this one
                    logger.info(f"No cells selected in pass {iteration}; stopping early")
                    break

            result.grid = grid

        return result


def refine(points: PointsLike,
           cell_size: float,
           buffer: int,
           iterations: int,
           policy: Union[str, RefinementPolicy]) -> Grid:
    """Module-level shortcut for ``RefinementDriver().refine``."""
    return RefinementDriver().refine(points, cell_size, buffer, iterations, policy)
