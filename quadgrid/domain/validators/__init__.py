"""Validators for grid integrity."""

from .grid_integrity import GridIntegrityValidator

__all__ = ['GridIntegrityValidator']
