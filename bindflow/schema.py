"""
bindflow/schema.py - Dependency graph spec models

Pydantic models for the graph spec supplied by the surrounding application,
plus readers for the two reserved port payloads.

Port keys have the form "<entityId>.<propertyName>". The entity id is the
text before the first dot and is the unit of cycle and ordering logic.
"""

from __future__ import annotations

from enum import Enum
from collections.abc import Mapping
from typing import Annotated, Any, Callable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# PORT KEYS
# =============================================================================

RESERVED_ERROR = "_error"
RESERVED_COMPLETED = "_completed"

RESERVED_PORTS = {
    "ERROR": RESERVED_ERROR,
    "COMPLETED": RESERVED_COMPLETED,
}


def parse_port_key(port_key: str) -> Tuple[str, str]:
    """Split "widget.prop.sub" into ("widget", "prop.sub")."""
    entity_id, _, property_name = port_key.partition(".")
    return entity_id, property_name


def entity_of(port_key: str) -> str:
    """Entity id of a port key."""
    return port_key.split(".", 1)[0]


def is_reserved_port(port_key: str) -> bool:
    _, property_name = parse_port_key(port_key)
    return property_name in RESERVED_PORTS.values()


# =============================================================================
# ENUMS
# =============================================================================

class Mechanism(str, Enum):
    """How an edge affects its target."""
    UPDATE = "update"        # target receives the transformed value
    VALIDATE = "validate"    # transform gates the source value


class UpdateMode(str, Enum):
    """When an edge fires after its source is written."""
    REALTIME = "realtime"
    DEBOUNCED = "debounced"
    ON_CONFIRM = "on_confirm"


# =============================================================================
# RELATIONSHIPS
# =============================================================================

class _SpecModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class JavaScriptRelationship(_SpecModel):
    """Inline snippet evaluated by the restricted snippet interpreter."""

    type: Literal["javascript"] = "javascript"
    javascript: str = Field(..., description="Snippet body; receives `source`")


class TransformRelationship(_SpecModel):
    """Named transform looked up in the TransformRegistry."""

    type: Literal["transform"] = "transform"
    transform: str = Field(..., min_length=1)


class CallableRelationship(_SpecModel):
    """Inline Python callable applied to the source value."""

    type: Literal["callable"] = "callable"
    func: Callable[[Any], Any]


class LLMRelationship(_SpecModel):
    """LLM-backed relationship. Not executable synchronously."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    type: Literal["llm"] = "llm"
    prompt: Optional[str] = None


RelationshipSpec = Annotated[
    Union[
        JavaScriptRelationship,
        TransformRelationship,
        CallableRelationship,
        LLMRelationship,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# DEPENDENCY SPEC
# =============================================================================

class DependencySpec(_SpecModel):
    """One directed edge between two ports."""

    source: str
    target: str
    mechanism: Mechanism = Mechanism.UPDATE
    relationship: RelationshipSpec
    update_mode: UpdateMode = UpdateMode.DEBOUNCED
    debounce_ms: Optional[int] = Field(None, ge=0)
    enabled: bool = True
    id: Optional[str] = None

    @field_validator("source", "target")
    @classmethod
    def _check_port_key(cls, v: str) -> str:
        entity_id, property_name = parse_port_key(v)
        if not entity_id or not property_name:
            raise ValueError(f"port key must look like 'entity.property', got {v!r}")
        return v

    @field_validator("relationship", mode="before")
    @classmethod
    def _inline_callable(cls, v: Any) -> Any:
        # {"type": "transform", "transform": <callable>} -> callable variant
        if isinstance(v, Mapping) and v.get("type") == "transform":
            transform = v.get("transform")
            if callable(transform):
                return {"type": "callable", "func": transform}
        return v

    @property
    def dependency_id(self) -> str:
        return self.id or f"{self.source}->{self.target}"

    @property
    def source_entity(self) -> str:
        return entity_of(self.source)

    @property
    def target_entity(self) -> str:
        return entity_of(self.target)


class DependencyGraphSpec(_SpecModel):
    """Edge list supplied once per flow."""

    dependencies: List[DependencySpec] = Field(default_factory=list)


# =============================================================================
# RESERVED PORT PAYLOADS
# =============================================================================

class ErrorPortValue(BaseModel):
    """Payload of a `<widget>._error` port."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_error: bool = False
    messages: List[str] = Field(default_factory=list)


class CompletedPortValue(BaseModel):
    """Payload of a `<widget>._completed` port."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_completed: Optional[bool] = None
    required_fields: Optional[List[str]] = None


def read_error_port(value: Any) -> Optional[ErrorPortValue]:
    """Interpret an `_error` payload; None when it carries no usable data."""
    if value is None:
        return None
    if isinstance(value, ErrorPortValue):
        return value
    if isinstance(value, bool):
        return ErrorPortValue(has_error=value)
    if isinstance(value, Mapping):
        return ErrorPortValue.model_validate(dict(value))
    return None


def read_completed_port(value: Any) -> Optional[CompletedPortValue]:
    """Interpret a `_completed` payload; None when it carries no usable data."""
    if value is None:
        return None
    if isinstance(value, CompletedPortValue):
        return value
    if isinstance(value, bool):
        return CompletedPortValue(is_completed=value)
    if isinstance(value, Mapping):
        return CompletedPortValue.model_validate(dict(value))
    return None
