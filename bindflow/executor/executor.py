"""
BINDFLOW Dependency Executor

Computes the effect of one edge for one input value.

Failures never propagate out of execute(): unsafe snippets, raising
transforms, unsupported relationship types and failed validations all come
back as `validation_error` results carrying a message and an ErrorKind.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
import logging

from bindflow.errors import (
    ErrorKind,
    ExecutionError,
    TransformExecutionError,
    ValidationFailure,
)
from bindflow.schema import (
    CallableRelationship,
    DependencySpec,
    JavaScriptRelationship,
    LLMRelationship,
    Mechanism,
    RelationshipSpec,
    TransformRelationship,
)
from .builtin import TransformRegistry, create_default_registry
from .sandbox import run_snippet

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================

class UpdateType(str, Enum):
    UPDATE = "update"
    VALIDATION_ERROR = "validation_error"


@dataclass
class TransformResult:
    """Outcome of running a relationship's transform."""
    success: bool
    value: Any = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "value": self.value,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


@dataclass
class UpdateResult:
    """Effect of one edge: a new target value or a validation error."""
    type: UpdateType
    target: str
    value: Any = None
    message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def is_update(self) -> bool:
        return self.type == UpdateType.UPDATE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "target": self.target,
            "value": self.value,
            "message": self.message,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


def _check_verdict(dependency: DependencySpec, verdict: Any) -> None:
    """Raise ValidationFailure when a validate edge returned exactly False."""
    if verdict is False:
        raise ValidationFailure(f"Validation failed for {dependency.target}")


# =============================================================================
# EXECUTOR
# =============================================================================

class DependencyExecutor:
    """
    Applies DependencySpec edges.

    - update:   target receives the transformed value
    - validate: transform result False (or a failure) is a validation error;
                otherwise the original source value passes through unchanged
    """

    def __init__(self, registry: Optional[TransformRegistry] = None):
        self._registry = registry or create_default_registry()

    @property
    def registry(self) -> TransformRegistry:
        return self._registry

    def execute(self, dependency: DependencySpec, source_value: Any) -> UpdateResult:
        """Compute the effect of one edge for one input value."""
        if dependency.mechanism == Mechanism.VALIDATE:
            return self._execute_validation(dependency, source_value)
        return self._execute_update(dependency, source_value)

    def _execute_validation(self, dependency: DependencySpec, source_value: Any) -> UpdateResult:
        result = self.execute_transform(dependency.relationship, source_value)

        if not result.success:
            return UpdateResult(
                type=UpdateType.VALIDATION_ERROR,
                target=dependency.target,
                message=result.error or "Validation failed",
                error_kind=result.error_kind or ErrorKind.TRANSFORM_FAILED,
            )

        try:
            _check_verdict(dependency, result.value)
        except ValidationFailure as e:
            return UpdateResult(
                type=UpdateType.VALIDATION_ERROR,
                target=dependency.target,
                message=str(e),
                error_kind=e.kind,
            )

        return UpdateResult(
            type=UpdateType.UPDATE,
            target=dependency.target,
            value=source_value,
        )

    def _execute_update(self, dependency: DependencySpec, source_value: Any) -> UpdateResult:
        result = self.execute_transform(dependency.relationship, source_value)

        if not result.success:
            return UpdateResult(
                type=UpdateType.VALIDATION_ERROR,
                target=dependency.target,
                message=result.error or "Transform failed",
                error_kind=result.error_kind or ErrorKind.TRANSFORM_FAILED,
            )

        return UpdateResult(
            type=UpdateType.UPDATE,
            target=dependency.target,
            value=result.value,
        )

    def execute_transform(self, relationship: RelationshipSpec, source_value: Any) -> TransformResult:
        """Run a relationship's transform, capturing any failure."""
        try:
            value = self._apply(relationship, source_value)
        except ExecutionError as e:
            logger.warning(f"Transform failed ({relationship.type}): {e}")
            return TransformResult(success=False, error=str(e), error_kind=e.kind)
        except Exception as e:
            logger.warning(f"Transform raised ({relationship.type}): {e}")
            return TransformResult(
                success=False,
                error=f"{type(e).__name__}: {e}",
                error_kind=ErrorKind.TRANSFORM_FAILED,
            )

        return TransformResult(success=True, value=value)

    def _apply(self, relationship: RelationshipSpec, source_value: Any) -> Any:
        if isinstance(relationship, JavaScriptRelationship):
            return run_snippet(relationship.javascript, source_value)

        if isinstance(relationship, TransformRelationship):
            func = self._registry.get_transform(relationship.transform)
            if func is None:
                raise TransformExecutionError(f"Unknown transform: {relationship.transform}")
            return func(source_value)

        if isinstance(relationship, CallableRelationship):
            return relationship.func(source_value)

        if isinstance(relationship, LLMRelationship):
            raise TransformExecutionError(
                "LLM transform not supported in synchronous execution"
            )

        raise TransformExecutionError(f"Unsupported relationship: {relationship!r}")
