"""
BINDFLOW - Reactive port binding for multi-widget UI flows

Widgets expose named ports ("widget.property"). A declarative dependency
graph says how a change on one port updates or validates another; the
engine propagates writes in topological order with per-port debouncing
and aggregates widget readiness from the reserved `_completed` / `_error`
ports.
"""

__version__ = "0.4.0"

from .config import EngineConfig
from .dependencies import DependencyGraph
from .engine import (
    CascadeResult,
    FlowValidationState,
    PropagationEvent,
    ReactiveBindingEngine,
    ValidationErrorEvent,
    create_engine,
)
from .errors import (
    BindflowError,
    ConfigError,
    ConstructionError,
    CyclicDependencyError,
    ErrorKind,
)
from .executor import DependencyExecutor, TransformRegistry
from .schema import (
    DependencyGraphSpec,
    DependencySpec,
    Mechanism,
    UpdateMode,
)

__all__ = [
    "__version__",
    "EngineConfig",
    "DependencyGraph",
    "CascadeResult",
    "FlowValidationState",
    "PropagationEvent",
    "ReactiveBindingEngine",
    "ValidationErrorEvent",
    "create_engine",
    "BindflowError",
    "ConfigError",
    "ConstructionError",
    "CyclicDependencyError",
    "ErrorKind",
    "DependencyExecutor",
    "TransformRegistry",
    "DependencyGraphSpec",
    "DependencySpec",
    "Mechanism",
    "UpdateMode",
]
