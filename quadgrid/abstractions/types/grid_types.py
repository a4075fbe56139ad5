# quadgrid/abstractions/types/grid_types.py
"""Grid system type definitions."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from shapely.geometry import Polygon, box

# Column order of the interchange table shared with every external consumer
RECORD_COLUMNS = ['x', 'y', 'cell_size', 'cell_id']

CellKey = Tuple[float, float, float]


def order_violations(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Positions of rows that sort before their predecessor in x-then-y order."""
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    return np.flatnonzero(
        (xs[1:] < xs[:-1]) | ((xs[1:] == xs[:-1]) & (ys[1:] < ys[:-1]))
    ) + 1


class Point(NamedTuple):
    """Immutable input coordinate."""
    x: float
    y: float


@dataclass(frozen=True)
class Cell:
    """Axis-aligned square cell of a grid snapshot.

    ``cell_id`` is only meaningful inside the Grid that produced it; use
    ``key`` to follow the same square across refinement passes.
    """
    x: float
    y: float
    size: float
    cell_id: int

    @property
    def half(self) -> float:
        return self.size / 2

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Footprint as (minx, miny, maxx, maxy)."""
        h = self.half
        return (self.x - h, self.y - h, self.x + h, self.y + h)

    @property
    def area(self) -> float:
        return self.size * self.size

    @property
    def key(self) -> CellKey:
        """Identity of the cell across refinement passes."""
        return (self.x, self.y, self.size)

    @property
    def polygon(self) -> Polygon:
        return box(*self.bounds)

    def contains(self, x: float, y: float) -> bool:
        """Check if point lies in the footprint, edges included."""
        minx, miny, maxx, maxy = self.bounds
        return minx <= x <= maxx and miny <= y <= maxy

    def to_record(self) -> Dict[str, Any]:
        """Convert to interchange record."""
        return {
            'x': self.x,
            'y': self.y,
            'cell_size': self.size,
            'cell_id': self.cell_id
        }


@dataclass(frozen=True)
class Grid:
    """
    Flat table of leaf cells at one refinement state.

    Cells are kept sorted by x then y with ids 1..N assigned in that
    order. Grids are never edited; every operation returns a new Grid.
    Direct construction only accepts cells already in that form; use
    ``from_cells`` or ``from_arrays`` to canonicalise.
    """
    cells: Tuple[Cell, ...]
    _xs: np.ndarray = field(init=False, repr=False, compare=False)
    _ys: np.ndarray = field(init=False, repr=False, compare=False)
    _sizes: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        xs = np.array([c.x for c in self.cells], dtype=float)
        ys = np.array([c.y for c in self.cells], dtype=float)
        sizes = np.array([c.size for c in self.cells], dtype=float)
        ids = [c.cell_id for c in self.cells]
        if ids != list(range(1, len(ids) + 1)):
            raise ValueError(
                "Cell ids must be dense 1..N in storage order; use Grid.from_cells to reindex"
            )
        unsorted = order_violations(xs, ys)
        if unsorted.size:
            raise ValueError(
                f"Cell {int(unsorted[0]) + 1} is out of x-then-y order; use Grid.from_cells to sort"
            )
        for arr in (xs, ys, sizes):
            arr.setflags(write=False)
        object.__setattr__(self, '_xs', xs)
        object.__setattr__(self, '_ys', ys)
        object.__setattr__(self, '_sizes', sizes)

    # Construction

    @classmethod
    def from_arrays(cls,
                    xs: Union[Sequence[float], np.ndarray],
                    ys: Union[Sequence[float], np.ndarray],
                    sizes: Union[Sequence[float], np.ndarray]) -> 'Grid':
        """Build a canonical grid: sort by x then y and assign dense ids."""
        xs = np.asarray(xs, dtype=float)
        ys = np.asarray(ys, dtype=float)
        sizes = np.asarray(sizes, dtype=float)
        if not (xs.shape == ys.shape == sizes.shape):
            raise ValueError(
                f"Coordinate arrays differ in shape: {xs.shape}, {ys.shape}, {sizes.shape}"
            )

        # lexsort uses the last key as primary
        order = np.lexsort((ys, xs))
        cells = tuple(
            Cell(x=float(xs[i]), y=float(ys[i]), size=float(sizes[i]), cell_id=rank)
            for rank, i in enumerate(order, start=1)
        )
        return cls(cells)

    @classmethod
    def from_cells(cls, cells: Iterable[Cell]) -> 'Grid':
        """Canonicalise arbitrary cells, discarding their old ids."""
        cells = list(cells)
        return cls.from_arrays(
            [c.x for c in cells],
            [c.y for c in cells],
            [c.size for c in cells]
        )

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> 'Grid':
        """Rebuild a grid from an interchange table (x, y, cell_size)."""
        missing = [col for col in ('x', 'y', 'cell_size') if col not in df.columns]
        if missing:
            raise ValueError(f"Grid table missing columns: {missing}")
        return cls.from_arrays(
            df['x'].to_numpy(dtype=float),
            df['y'].to_numpy(dtype=float),
            df['cell_size'].to_numpy(dtype=float)
        )

    # Container protocol

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __getitem__(self, index: int) -> Cell:
        return self.cells[index]

    # Array views

    @property
    def xs(self) -> np.ndarray:
        return self._xs

    @property
    def ys(self) -> np.ndarray:
        return self._ys

    @property
    def sizes(self) -> np.ndarray:
        return self._sizes

    @property
    def ids(self) -> np.ndarray:
        return np.arange(1, len(self.cells) + 1, dtype=np.int64)

    # Queries

    @property
    def min_cell_size(self) -> float:
        if not self.cells:
            raise ValueError("Empty grid has no cell size")
        return float(self._sizes.min())

    @property
    def max_cell_size(self) -> float:
        if not self.cells:
            raise ValueError("Empty grid has no cell size")
        return float(self._sizes.max())

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Envelope of all cell footprints."""
        if not self.cells:
            raise ValueError("Empty grid has no bounds")
        half = self._sizes / 2
        return (
            float((self._xs - half).min()),
            float((self._ys - half).min()),
            float((self._xs + half).max()),
            float((self._ys + half).max())
        )

    @property
    def total_area(self) -> float:
        return float(np.sum(self._sizes * self._sizes))

    def has_id(self, cell_id: int) -> bool:
        return 1 <= cell_id <= len(self.cells)

    def cell_by_id(self, cell_id: int) -> Optional[Cell]:
        """Get cell by id (ids are positions + 1)."""
        if not self.has_id(cell_id):
            return None
        return self.cells[cell_id - 1]

    def containing_mask(self, x: float, y: float) -> np.ndarray:
        """Boolean mask of cells whose footprint contains the point, edges included."""
        half = self._sizes / 2
        return (
            (self._xs - half <= x) & (x <= self._xs + half) &
            (self._ys - half <= y) & (y <= self._ys + half)
        )

    def cells_containing(self, x: float, y: float) -> List[Cell]:
        """All cells whose inclusive footprint holds the point, in canonical order."""
        return [self.cells[i] for i in np.flatnonzero(self.containing_mask(x, y))]

    def size_counts(self) -> Dict[float, int]:
        """Number of cells per cell size, finest first."""
        sizes, counts = np.unique(self._sizes, return_counts=True)
        return {float(s): int(c) for s, c in zip(sizes, counts)}

    def keys(self) -> frozenset:
        """Identity set of (x, y, size) triples."""
        return frozenset(c.key for c in self.cells)

    # Export views

    def to_records(self) -> List[Dict[str, Any]]:
        """Interchange representation consumed by exporters and plotting."""
        return [c.to_record() for c in self.cells]

    def to_dataframe(self) -> pd.DataFrame:
        """Interchange table as a pandas DataFrame."""
        return pd.DataFrame({
            'x': self._xs.copy(),
            'y': self._ys.copy(),
            'cell_size': self._sizes.copy(),
            'cell_id': self.ids
        }, columns=RECORD_COLUMNS)

    def to_geometries(self) -> List[Polygon]:
        """Cell footprints as shapely polygons, in canonical order."""
        return [c.polygon for c in self.cells]
