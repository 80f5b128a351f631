"""
BINDFLOW Reactive Binding Engine

Owns port values for one flow and propagates writes along the dependency
graph.

Flow:
1. update_port() writes the value and (re)arms a debounce timer for the port
2. When the timer fires, a cascade runs from that port
3. Dirty ports are processed by ascending topological index of their entity
4. Each applied edge becomes a PropagationEvent; failed edges become
   ValidationErrorEvents and never touch their target
5. Events of the pass are delivered once to on_propagate

Writes to reserved ports (`_completed`, `_error`) also recompute the flow
readiness synchronously.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
import asyncio
import heapq
import logging

from pydantic import ValidationError

from bindflow.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from bindflow.dependencies.graph import DependencyGraph
from bindflow.errors import ConstructionError, CyclicDependencyError, ErrorKind
from bindflow.executor import DependencyExecutor
from bindflow.schema import (
    DependencyGraphSpec,
    DependencySpec,
    UpdateMode,
    entity_of,
    is_reserved_port,
    parse_port_key,
)
from .events import (
    CascadeResult,
    PropagationCallback,
    PropagationEvent,
    ValidationErrorCallback,
    ValidationErrorEvent,
)
from .readiness import (
    FlowValidationState,
    ValidationStateCallback,
    compute_flow_validation_state,
)
from .scheduler import DebounceScheduler

logger = logging.getLogger(__name__)


class ReactiveBindingEngine:
    """
    Reactive port store with debounced, depth-limited propagation.

    Single-threaded: all work happens in the caller's thread or inside timer
    callbacks on the asyncio event loop.
    """

    def __init__(
        self,
        spec: Union[DependencyGraphSpec, Dict[str, Any]],
        config: Optional[Union[EngineConfig, Dict[str, Any]]] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        executor: Optional[DependencyExecutor] = None,
    ):
        if config is None:
            config = DEFAULT_ENGINE_CONFIG
        elif not isinstance(config, EngineConfig):
            config = EngineConfig.from_dict(config)
        self._config = config

        try:
            self._graph = DependencyGraph.from_spec(spec)
        except ValidationError as e:
            raise ConstructionError(f"Invalid dependency spec: {e.error_count()} errors") from e
        except CyclicDependencyError as e:
            raise ConstructionError(f"Cannot build engine: {e}") from e

        self._executor = executor or DependencyExecutor()
        self._scheduler = DebounceScheduler(loop)

        self._port_values: Dict[str, Any] = {}
        # Reserved ports ever written, so readiness stays O(reserved ports)
        self._reserved_keys: Dict[str, None] = {}

        # Ordered sets of source ports awaiting propagation
        self._pending_updates: Dict[str, None] = {}
        self._pending_confirm: Dict[str, None] = {}

        self._on_propagate: Optional[PropagationCallback] = None
        self._on_validation_error: Optional[ValidationErrorCallback] = None
        self._on_validation_state_change: Optional[ValidationStateCallback] = None

        self._disposed = False

        logger.debug(
            f"Engine created: {self._graph.get_node_count()} entities, "
            f"{self._graph.get_edge_count()} edges"
        )

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def set_on_propagate(self, callback: Optional[PropagationCallback]) -> None:
        self._on_propagate = callback

    def set_on_validation_error(self, callback: Optional[ValidationErrorCallback]) -> None:
        self._on_validation_error = callback

    def set_on_validation_state_change(self, callback: Optional[ValidationStateCallback]) -> None:
        self._on_validation_state_change = callback

    def _notify(self, name: str, callback, payload: Any) -> None:
        if callback is None:
            return
        try:
            callback(payload)
        except Exception as e:
            logger.error(f"{name} callback error: {e}")

    def _notify_validation_state(self) -> None:
        if self._on_validation_state_change is None:
            return
        self._notify(
            "on_validation_state_change",
            self._on_validation_state_change,
            self.get_flow_validation_state(),
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    def _write(self, port_key: str, value: Any) -> None:
        self._port_values[port_key] = value
        if self._config.debug:
            logger.debug(f"Port write: {port_key} = {value!r}")
        if is_reserved_port(port_key):
            self._reserved_keys[port_key] = None
            self._notify_validation_state()

    def init_port(self, port_key: str, value: Any) -> None:
        """Set an initial value without triggering propagation."""
        if self._disposed:
            return
        self._write(port_key, value)

    def update_port(self, port_key: str, value: Any) -> None:
        """
        Write a port and schedule propagation from it.

        Rapid writes to the same port coalesce: the timer is re-armed and
        only the latest value propagates.
        """
        if self._disposed:
            return

        self._write(port_key, value)

        edges = self._enabled_edges(port_key)
        if not edges:
            return

        if any(e.update_mode == UpdateMode.ON_CONFIRM for e in edges):
            self._pending_confirm[port_key] = None

        delay_ms = self._timer_delay_ms(edges)
        if delay_ms is None:
            return

        self._pending_updates[port_key] = None
        armed = self._scheduler.schedule(port_key, delay_ms / 1000.0, self._on_timer)

        if not armed and delay_ms == 0:
            # realtime without an event loop
            self._pending_updates.pop(port_key, None)
            self._run_cascade(port_key)

    def _enabled_edges(self, port_key: str) -> List[DependencySpec]:
        return [e for e in self._graph.get_dependencies(port_key) if e.enabled]

    def _timer_delay_ms(self, edges: List[DependencySpec]) -> Optional[int]:
        delays = []
        for edge in edges:
            if edge.update_mode == UpdateMode.ON_CONFIRM:
                continue
            if edge.update_mode == UpdateMode.REALTIME:
                delays.append(0)
            elif edge.debounce_ms is not None:
                delays.append(edge.debounce_ms)
            else:
                delays.append(self._config.default_debounce_ms)
        return min(delays) if delays else None

    def _on_timer(self, port_key: str) -> None:
        if self._disposed or port_key not in self._pending_updates:
            return
        del self._pending_updates[port_key]
        self._run_cascade(port_key)

    # =========================================================================
    # FLUSH / CONFIRM
    # =========================================================================

    def flush(self) -> List[CascadeResult]:
        """Apply every pending update now, then every pending confirmation."""
        if self._disposed:
            return []

        self._scheduler.cancel_all()
        results = []
        while self._pending_updates:
            port_key = next(iter(self._pending_updates))
            del self._pending_updates[port_key]
            results.append(self._run_cascade(port_key))

        results.extend(self.confirm())
        return results

    def confirm(self, port_key: Optional[str] = None) -> List[CascadeResult]:
        """
        Apply pending on_confirm edges.

        Args:
            port_key: Source port to confirm; None confirms all of them.
        """
        if self._disposed:
            return []

        if port_key is not None:
            if port_key not in self._pending_confirm:
                return []
            del self._pending_confirm[port_key]
            return [self._run_cascade(port_key, confirming=True)]

        results = []
        while self._pending_confirm:
            key = next(iter(self._pending_confirm))
            del self._pending_confirm[key]
            results.append(self._run_cascade(key, confirming=True))
        return results

    def cancel_pending_confirm(self, port_key: str) -> bool:
        if port_key in self._pending_confirm:
            del self._pending_confirm[port_key]
            return True
        return False

    def get_pending_confirm_ports(self) -> List[str]:
        return list(self._pending_confirm)

    def get_pending_ports(self) -> List[str]:
        return list(self._pending_updates)

    # =========================================================================
    # PROPAGATION
    # =========================================================================

    def _run_cascade(self, trigger_port: str, confirming: bool = False) -> CascadeResult:
        """
        Propagate from one port until the pass settles.

        Ports are visited in ascending topological index of their entity, so
        every port is visited at most once per pass and only after all of
        its sources in the pass.
        """
        result = CascadeResult(trigger_port=trigger_port)
        logger.debug(f"Cascade {result.cascade_id} started from {trigger_port}")

        order_index = {
            entity: i for i, entity in enumerate(self._graph.get_update_order())
        }
        max_depth = self._config.max_propagation_depth

        hops: Dict[str, int] = {trigger_port: 0}
        heap = [(order_index.get(entity_of(trigger_port), 0), 0, trigger_port)]
        seq = 0

        while heap and not self._disposed:
            _, _, port_key = heapq.heappop(heap)
            hop = hops.pop(port_key)
            is_trigger = port_key == trigger_port and hop == 0

            edges = self._enabled_edges(port_key)
            if is_trigger:
                # Trigger applies its timer edges, or its on_confirm edges when confirming
                edges = [e for e in edges if (e.update_mode == UpdateMode.ON_CONFIRM) == confirming]
            else:
                if any(e.update_mode == UpdateMode.ON_CONFIRM for e in edges):
                    self._pending_confirm[port_key] = None
                edges = [e for e in edges if e.update_mode != UpdateMode.ON_CONFIRM]

            if not edges:
                continue

            if hop >= max_depth:
                logger.warning(
                    f"Max propagation depth ({max_depth}) reached at {port_key}; "
                    f"branch halted"
                )
                result.truncated_branches.append(port_key)
                continue

            for edge in edges:
                # A callback may dispose the engine mid-cascade
                if self._disposed:
                    break
                update = self._executor.execute(edge, self._port_values.get(port_key))

                if not update.is_update:
                    error = ValidationErrorEvent(
                        source_port_key=port_key,
                        target_port_key=edge.target,
                        message=update.message or "Validation failed",
                        kind=update.error_kind or ErrorKind.VALIDATION_FAILED,
                        dependency_id=edge.dependency_id,
                    )
                    result.errors.append(error)
                    self._notify("on_validation_error", self._on_validation_error, error)
                    continue

                self._write(edge.target, update.value)
                result.events.append(PropagationEvent(
                    source_port_key=port_key,
                    target_port_key=edge.target,
                    value=update.value,
                    dependency_id=edge.dependency_id,
                    depth=hop + 1,
                ))
                if self._config.debug:
                    logger.debug(f"Propagated {port_key} -> {edge.target}")

                if edge.target in hops:
                    hops[edge.target] = max(hops[edge.target], hop + 1)
                else:
                    hops[edge.target] = hop + 1
                    seq += 1
                    heapq.heappush(
                        heap,
                        (order_index.get(entity_of(edge.target), 0), seq, edge.target),
                    )

        result.completed_at = datetime.now(timezone.utc)
        logger.debug(
            f"Cascade {result.cascade_id} finished: {len(result.events)} applied, "
            f"{len(result.errors)} failed"
        )

        if result.events:
            self._notify("on_propagate", self._on_propagate, list(result.events))

        return result

    # =========================================================================
    # READS
    # =========================================================================

    def get_port_value(self, port_key: str, default: Any = None) -> Any:
        return self._port_values.get(port_key, default)

    def get_all_port_values(self) -> Dict[str, Any]:
        return dict(self._port_values)

    def get_widget_port_values(self, entity_id: str) -> Dict[str, Any]:
        """Values of one entity's ports, keyed by property name."""
        values = {}
        for port_key, value in self._port_values.items():
            owner, property_name = parse_port_key(port_key)
            if owner == entity_id:
                values[property_name] = value
        return values

    def get_flow_validation_state(self) -> FlowValidationState:
        return compute_flow_validation_state(
            {k: self._port_values.get(k) for k in self._reserved_keys}
        )

    def get_graph(self) -> DependencyGraph:
        return self._graph

    def get_config(self) -> EngineConfig:
        return self._config

    def is_disposed(self) -> bool:
        return self._disposed

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def dispose(self) -> None:
        """Cancel timers, drop callbacks and ignore further writes."""
        if self._disposed:
            return
        cancelled = self._scheduler.cancel_all()
        self._pending_updates.clear()
        self._pending_confirm.clear()
        self._on_propagate = None
        self._on_validation_error = None
        self._on_validation_state_change = None
        self._disposed = True
        logger.debug(f"Engine disposed ({cancelled} timers cancelled)")


def create_engine(
    spec: Union[DependencyGraphSpec, Dict[str, Any]],
    config: Optional[Union[EngineConfig, Dict[str, Any]]] = None,
    **kwargs: Any,
) -> ReactiveBindingEngine:
    """Factory for ReactiveBindingEngine."""
    return ReactiveBindingEngine(spec, config, **kwargs)
