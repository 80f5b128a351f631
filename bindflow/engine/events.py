"""
BINDFLOW Engine Events

Records delivered to collaborators:
- PropagationEvent: one edge applied during a cascade
- ValidationErrorEvent: one edge that failed during a cascade
- CascadeResult: summary of one settled cascade
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import uuid

from bindflow.errors import ErrorKind


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PropagationEvent:
    """One edge actually applied during a settled cascade."""
    source_port_key: str
    target_port_key: str
    value: Any
    dependency_id: str = ""
    depth: int = 1
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_port_key": self.source_port_key,
            "target_port_key": self.target_port_key,
            "value": self.value,
            "dependency_id": self.dependency_id,
            "depth": self.depth,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ValidationErrorEvent:
    """One failed edge; the target port was left unchanged."""
    source_port_key: str
    target_port_key: str
    message: str
    kind: ErrorKind = ErrorKind.VALIDATION_FAILED
    dependency_id: str = ""
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_port_key": self.source_port_key,
            "target_port_key": self.target_port_key,
            "message": self.message,
            "kind": self.kind.value,
            "dependency_id": self.dependency_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class CascadeResult:
    """Result of one propagation pass."""
    trigger_port: str
    cascade_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    started_at: datetime = field(default_factory=_now)
    completed_at: Optional[datetime] = None

    events: List[PropagationEvent] = field(default_factory=list)
    errors: List[ValidationErrorEvent] = field(default_factory=list)

    # Ports whose outgoing edges were skipped by the depth limit
    truncated_branches: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def updated_ports(self) -> List[str]:
        return [e.target_port_key for e in self.events]

    def get_summary(self) -> Dict[str, Any]:
        return {
            "cascade_id": self.cascade_id,
            "trigger_port": self.trigger_port,
            "success": self.success,
            "applied": len(self.events),
            "failed": len(self.errors),
            "truncated": len(self.truncated_branches),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.get_summary(),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "events": [e.to_dict() for e in self.events],
            "errors": [e.to_dict() for e in self.errors],
            "truncated_branches": list(self.truncated_branches),
        }


PropagationCallback = Callable[[List[PropagationEvent]], None]
ValidationErrorCallback = Callable[[ValidationErrorEvent], None]
