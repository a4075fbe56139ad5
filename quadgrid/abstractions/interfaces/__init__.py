"""Interfaces for the abstractions layer."""

from .validator import (
    BaseValidator, ValidationIssue, ValidationResult, ValidationSeverity, ValidationType
)

__all__ = [
    'BaseValidator',
    'ValidationIssue',
    'ValidationResult',
    'ValidationSeverity',
    'ValidationType',
]
