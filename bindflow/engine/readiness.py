"""
BINDFLOW Readiness Aggregator

Aggregates every widget's `_completed` / `_error` port into one
FlowValidationState. Used to gate navigation: the flow can proceed unless
some widget reports an error or explicitly reports itself incomplete.
Widgets that never wrote a reserved port do not block.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping
import logging

from pydantic import ValidationError

from bindflow.schema import (
    RESERVED_COMPLETED,
    RESERVED_ERROR,
    parse_port_key,
    read_completed_port,
    read_error_port,
)

logger = logging.getLogger(__name__)


@dataclass
class FlowValidationState:
    """Aggregate readiness of all widgets in a flow."""
    can_proceed: bool
    incomplete_widgets: List[str] = field(default_factory=list)
    widget_errors: Dict[str, List[str]] = field(default_factory=dict)
    completed_widgets: List[str] = field(default_factory=list)
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_blocking_messages(self) -> List[str]:
        """Messages explaining why the flow cannot proceed."""
        messages = []
        for widget_id, errors in self.widget_errors.items():
            if errors:
                messages.extend(f"[{widget_id}] {m}" for m in errors)
            else:
                messages.append(f"[{widget_id}] Has errors")
        for widget_id in self.incomplete_widgets:
            messages.append(f"[{widget_id}] Not completed")
        return messages

    def to_dict(self) -> Dict[str, Any]:
        return {
            "can_proceed": self.can_proceed,
            "incomplete_widgets": list(self.incomplete_widgets),
            "widget_errors": {k: list(v) for k, v in self.widget_errors.items()},
            "completed_widgets": list(self.completed_widgets),
            "blocking_messages": self.get_blocking_messages(),
            "checked_at": self.checked_at.isoformat(),
        }


def compute_flow_validation_state(reserved_values: Mapping[str, Any]) -> FlowValidationState:
    """
    Build a FlowValidationState from reserved port values.

    Args:
        reserved_values: port key -> value; non-reserved keys are ignored.
    """
    widget_errors: Dict[str, List[str]] = {}
    incomplete: List[str] = []
    completed: List[str] = []

    for port_key, value in reserved_values.items():
        widget_id, property_name = parse_port_key(port_key)

        try:
            if property_name == RESERVED_ERROR:
                error_value = read_error_port(value)
                if error_value is not None and error_value.has_error:
                    widget_errors[widget_id] = list(error_value.messages)

            elif property_name == RESERVED_COMPLETED:
                completed_value = read_completed_port(value)
                if completed_value is None or completed_value.is_completed is None:
                    continue
                if completed_value.is_completed:
                    completed.append(widget_id)
                else:
                    incomplete.append(widget_id)

        except ValidationError as e:
            logger.warning(f"Ignoring malformed reserved port {port_key}: {e.error_count()} errors")

    return FlowValidationState(
        can_proceed=not widget_errors and not incomplete,
        incomplete_widgets=incomplete,
        widget_errors=widget_errors,
        completed_widgets=completed,
    )


ValidationStateCallback = Callable[[FlowValidationState], None]
