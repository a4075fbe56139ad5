"""Grid refinement exceptions for consistent error handling."""

from typing import Any, Dict, Iterable, Optional


class GridError(Exception):
    """Base grid error."""
    def __init__(self,
                 message: str,
                 details: Optional[Dict[str, Any]] = None,
                 original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_exception = original_exception


class ValidationError(GridError):
    """Raised when grid inputs are malformed (coordinates, cell size, buffer, iterations)."""
    pass


class InvalidPolicyError(GridError):
    """Raised when a refinement policy name cannot be resolved."""
    def __init__(self, policy: Any, available: Iterable[str]):
        self.policy = policy
        self.available = sorted(available)
        super().__init__(
            f"Unknown refinement policy: {policy!r}. Available: {self.available}",
            details={'policy': repr(policy), 'available': self.available}
        )


class NotFoundError(GridError):
    """Raised when subdivision targets cell ids absent from the grid.

    Signals that selection and subdivision ran against different grid
    snapshots; it is a consistency bug, not a user input problem.
    """
    def __init__(self, missing_ids: Iterable[Any], cell_count: int):
        self.missing_ids = list(missing_ids)
        self.cell_count = cell_count
        preview = self.missing_ids[:10]
        suffix = "..." if len(self.missing_ids) > 10 else ""
        super().__init__(
            f"Cell ids not found in grid of {cell_count} cells: {preview}{suffix}",
            details={'missing_ids': self.missing_ids, 'cell_count': cell_count}
        )
