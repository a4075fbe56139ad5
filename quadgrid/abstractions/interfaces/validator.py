"""Validator interface for checking grids after construction or refinement."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ValidationType(Enum):
    """Grid invariant a check covers."""
    CELL_ORDERING = "cell_ordering"
    CELL_SIZE = "cell_size"
    OVERLAP = "overlap"
    EXTENT_COVERAGE = "extent_coverage"
    POINT_COVERAGE = "point_coverage"


class ValidationSeverity(Enum):
    ERROR = "error"      # invariant broken; the grid must not be used
    WARNING = "warning"  # usable but suspicious
    INFO = "info"


@dataclass
class ValidationIssue:
    """One finding, located by cell id(s) or point index where possible."""
    validator_name: str
    validation_type: ValidationType
    severity: ValidationSeverity
    message: str
    location: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        where = f" at {self.location}" if self.location else ""
        return f"[{self.severity.value.upper()}] {self.validator_name}: {self.message}{where}"


@dataclass
class ValidationResult:
    """Outcome of validating one grid."""
    validator_name: str
    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None

    def _count(self, severity: ValidationSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    @property
    def error_count(self) -> int:
        return self._count(ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(ValidationSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def issues_of_type(self, validation_type: ValidationType) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.validation_type == validation_type]

    def merge(self, other: 'ValidationResult') -> 'ValidationResult':
        """Combine two results; valid only if both are."""
        return ValidationResult(
            validator_name=f"{self.validator_name}+{other.validator_name}",
            is_valid=self.is_valid and other.is_valid,
            issues=self.issues + other.issues,
            metadata={**(self.metadata or {}), **(other.metadata or {})}
        )


class BaseValidator(ABC):
    """
    Base class for grid validators.

    Validators only inspect; they never repair or modify the grid.
    Subclasses implement ``validate`` and build their output with
    ``create_issue`` and ``create_result``.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__

    @abstractmethod
    def validate(self, data: Any) -> ValidationResult:
        """Check ``data`` and report every issue found."""
        pass

    def create_issue(self,
                     validation_type: ValidationType,
                     severity: ValidationSeverity,
                     message: str,
                     location: Optional[str] = None,
                     details: Optional[Dict[str, Any]] = None) -> ValidationIssue:
        return ValidationIssue(self.name, validation_type, severity, message, location, details)

    def create_result(self,
                      issues: Optional[List[ValidationIssue]] = None,
                      metadata: Optional[Dict[str, Any]] = None) -> ValidationResult:
        """Wrap issues in a result that is valid when none of them is an ERROR."""
        issues = issues or []
        return ValidationResult(
            validator_name=self.name,
            is_valid=not any(issue.severity == ValidationSeverity.ERROR for issue in issues),
            issues=issues,
            metadata=metadata
        )
