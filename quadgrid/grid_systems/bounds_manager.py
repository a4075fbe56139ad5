"""Bounds management and point coercion for grid generation."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from shapely.geometry import Polygon, box

from .exceptions import ValidationError

PointsLike = Union[Sequence[Sequence[float]], np.ndarray, pd.DataFrame]


@dataclass(frozen=True)
class BoundsDefinition:
    """Structured bounds definition."""
    name: str
    bounds: Tuple[float, float, float, float]  # minx, miny, maxx, maxy
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_points(cls,
                    xs: np.ndarray,
                    ys: np.ndarray,
                    margin: float = 0.0,
                    name: str = 'points') -> 'BoundsDefinition':
        """Bounding box of the points expanded by ``margin`` on every side."""
        return cls(
            name=name,
            bounds=(
                float(np.min(xs)) - margin,
                float(np.min(ys)) - margin,
                float(np.max(xs)) + margin,
                float(np.max(ys)) + margin
            ),
            metadata={'point_count': int(len(xs)), 'margin': margin}
        )

    @property
    def width(self) -> float:
        return self.bounds[2] - self.bounds[0]

    @property
    def height(self) -> float:
        return self.bounds[3] - self.bounds[1]

    @property
    def polygon(self) -> Polygon:
        """Get bounds as polygon (degenerate for a single point with no margin)."""
        return box(*self.bounds)

    def contains(self, x: float, y: float) -> bool:
        """Check if point is within bounds."""
        return (self.bounds[0] <= x <= self.bounds[2] and
                self.bounds[1] <= y <= self.bounds[3])

    def covered_by(self, bounds: Tuple[float, float, float, float]) -> bool:
        """Check if these bounds lie entirely within ``bounds``."""
        minx, miny, maxx, maxy = bounds
        return (minx <= self.bounds[0] and miny <= self.bounds[1] and
                self.bounds[2] <= maxx and self.bounds[3] <= maxy)


def coerce_coordinates(x: Sequence[float], y: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate separate x and y coordinate sequences.

    Args:
        x: X coordinates
        y: Y coordinates

    Returns:
        Tuple of float arrays (xs, ys)

    Raises:
        ValidationError: lengths differ, sequences are empty or hold non-finite values
    """
    try:
        xs = np.asarray(x, dtype=float).ravel()
        ys = np.asarray(y, dtype=float).ravel()
    except (TypeError, ValueError) as e:
        raise ValidationError("Coordinates must be numeric", original_exception=e)

    if len(xs) != len(ys):
        raise ValidationError(
            f"x and y coordinate sequences differ in length: {len(xs)} != {len(ys)}",
            details={'x_length': len(xs), 'y_length': len(ys)}
        )

    if len(xs) == 0:
        raise ValidationError("At least one point is required")

    if not (np.all(np.isfinite(xs)) and np.all(np.isfinite(ys))):
        raise ValidationError("Coordinates must be finite numbers")

    return xs, ys


def coerce_points(points: PointsLike) -> Tuple[np.ndarray, np.ndarray]:
    """
    Normalise caller points into x and y arrays.

    Accepts a sequence of (x, y) pairs, an (N, 2) array, or a DataFrame with
    ``x`` and ``y`` columns.

    Raises:
        ValidationError: points are empty, ragged, non-numeric or non-finite
    """
    if isinstance(points, pd.DataFrame):
        missing = [col for col in ('x', 'y') if col not in points.columns]
        if missing:
            raise ValidationError(f"Point table missing columns: {missing}")
        return coerce_coordinates(points['x'].to_numpy(), points['y'].to_numpy())

    if points is None:
        raise ValidationError("At least one point is required")

    pairs = list(points)
    if not pairs:
        raise ValidationError("At least one point is required")

    bad = [i for i, p in enumerate(pairs) if np.ndim(p) != 1 or len(p) != 2]
    if bad:
        raise ValidationError(
            f"Points must be (x, y) pairs; malformed entries at positions {bad[:10]}",
            details={'malformed_positions': bad}
        )

    return coerce_coordinates([p[0] for p in pairs], [p[1] for p in pairs])
