"""
BINDFLOW Reactive Binding Engine

Provides:
- ReactiveBindingEngine: port store with debounced propagation
- FlowValidationState: aggregate widget readiness
- PropagationEvent / ValidationErrorEvent / CascadeResult: cascade records
- DebounceScheduler: per-port asyncio timers
"""

from .engine import (
    ReactiveBindingEngine,
    create_engine,
)
from .events import (
    CascadeResult,
    PropagationEvent,
    ValidationErrorEvent,
)
from .readiness import (
    FlowValidationState,
    compute_flow_validation_state,
)
from .scheduler import DebounceScheduler

__all__ = [
    "ReactiveBindingEngine",
    "create_engine",
    "CascadeResult",
    "PropagationEvent",
    "ValidationErrorEvent",
    "FlowValidationState",
    "compute_flow_validation_state",
    "DebounceScheduler",
]
