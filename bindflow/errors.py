"""
bindflow/errors.py - Error taxonomy

All bindflow-specific errors inherit from BindflowError. Per-edge failures
are not raised out of the engine; they are converted into
ValidationErrorEvent records tagged with an ErrorKind.
"""

from __future__ import annotations
from enum import Enum
from typing import List, Optional


class ErrorKind(Enum):
    """Classification of a failed edge application."""
    UNSAFE_CODE = "unsafe_code"
    TRANSFORM_FAILED = "transform_failed"
    VALIDATION_FAILED = "validation_failed"


class BindflowError(Exception):
    """Base exception for all bindflow errors."""
    pass


class ConfigError(BindflowError):
    """Invalid engine configuration."""
    pass


# =============================================================================
# GRAPH ERRORS
# =============================================================================

class DependencyGraphError(BindflowError):
    """Base exception for dependency graph errors."""
    pass


class CyclicDependencyError(DependencyGraphError):
    """Raised when an edge would close a cycle between entities."""

    def __init__(
        self,
        source: str,
        target: str,
        cycle: Optional[List[str]] = None,
    ):
        self.source = source
        self.target = target
        self.cycle = cycle or []
        message = f"Circular dependency detected: {source} -> {target}"
        if self.cycle:
            message += f" (cycle: {' -> '.join(self.cycle)})"
        super().__init__(message)


class ConstructionError(BindflowError):
    """The engine could not be built from the supplied graph spec."""
    pass


# =============================================================================
# EXECUTION ERRORS
# =============================================================================

class ExecutionError(BindflowError):
    """Base exception for failures while applying a single edge."""

    kind: ErrorKind = ErrorKind.TRANSFORM_FAILED


class UnsafeCodeError(ExecutionError):
    """Snippet rejected by the denylist or the grammar check."""

    kind = ErrorKind.UNSAFE_CODE

    def __init__(self, keyword: str, detail: Optional[str] = None):
        self.keyword = keyword
        message = f"Unsafe code detected: {keyword}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class TransformExecutionError(ExecutionError):
    """Snippet raised, built-in raised, or transform is unsupported."""

    kind = ErrorKind.TRANSFORM_FAILED


class ValidationFailure(ExecutionError):
    """A validate edge evaluated to False."""

    kind = ErrorKind.VALIDATION_FAILED
