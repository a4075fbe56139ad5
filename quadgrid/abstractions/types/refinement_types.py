# quadgrid/abstractions/types/refinement_types.py
"""Refinement policy and run history types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from .grid_types import Grid

RefinementRegion = FrozenSet[int]


class RefinementPolicy(Enum):
    """Strategies deciding which cells around each point get subdivided."""
    NEAREST_CELL = "nearest_cell"
    NEIGHBORHOOD_BOX = "neighborhood_box"

    @property
    def display_name(self) -> str:
        return ''.join(part.title() for part in self.value.split('_'))


@dataclass(frozen=True)
class RefinementStep:
    """Diagnostics for one selection + subdivision pass."""
    iteration: int
    policy: RefinementPolicy
    selected_count: int
    cells_before: int
    cells_after: int
    min_cell_size: float

    @property
    def cells_added(self) -> int:
        return self.cells_after - self.cells_before

    def to_dict(self) -> Dict[str, Any]:
        return {
            'iteration': self.iteration,
            'policy': self.policy.value,
            'selected_count': self.selected_count,
            'cells_before': self.cells_before,
            'cells_after': self.cells_after,
            'cells_added': self.cells_added,
            'min_cell_size': self.min_cell_size
        }


@dataclass
class RefinementResult:
    """Final grid plus every intermediate snapshot of a refinement run."""
    grid: Grid
    history: List[Grid] = field(default_factory=list)
    steps: List[RefinementStep] = field(default_factory=list)
    parameters: Optional[Dict[str, Any]] = None

    @property
    def initial_grid(self) -> Grid:
        return self.history[0] if self.history else self.grid

    @property
    def iterations_run(self) -> int:
        return len(self.steps)

    def cell_counts(self) -> Tuple[int, ...]:
        """Cell count of every retained snapshot, build included."""
        return tuple(len(g) for g in self.history)

    def summary(self) -> Dict[str, Any]:
        return {
            'parameters': self.parameters or {},
            'iterations_run': self.iterations_run,
            'final_cell_count': len(self.grid),
            'steps': [step.to_dict() for step in self.steps]
        }
