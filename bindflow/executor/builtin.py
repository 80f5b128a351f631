"""
BINDFLOW Built-in Transforms

Named transforms available to `{"type": "transform", "transform": <name>}`
relationships, and the registry that resolves those names.

Built-ins:
    calculate_ranking      slider axis scores -> ranked items
    calculate_balance      weights -> balance in [-1, 1]
    filter_high_priority   matrix items in the upper-right quadrant
    generate_summary       short text summary of any value
    detect_gaps            missing SWOT quadrants
"""

from __future__ import annotations
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

TransformFunc = Callable[[Any], Any]


# =============================================================================
# TRANSFORMS
# =============================================================================

def calculate_ranking(values: Mapping) -> List[Dict[str, Any]]:
    """
    Rank items by the sum of their axis scores.

    Args:
        values: {item_id: {axis: score}}

    Returns:
        [{id, label, score, metadata: {axisValues}}] sorted by score, highest first.
    """
    if not isinstance(values, Mapping):
        raise TypeError(f"calculate_ranking expects a mapping, got {type(values).__name__}")

    items = []
    for item_id, axis_values in values.items():
        items.append({
            "id": item_id,
            "label": item_id,
            "score": sum(axis_values.values()),
            "metadata": {"axisValues": axis_values},
        })

    return sorted(items, key=lambda item: item["score"], reverse=True)


def calculate_balance(weights: Mapping) -> float:
    """
    Balance of a two-pan scale.

    The weight list is split at its midpoint index: the first half is the
    left pan, the rest the right pan. Returns (right - left) / (left + right),
    or 0 when both pans are empty.
    """
    if not isinstance(weights, Mapping):
        raise TypeError(f"calculate_balance expects a mapping, got {type(weights).__name__}")

    values = list(weights.values())
    midpoint = len(values) // 2

    left = sum(values[:midpoint])
    right = sum(values[midpoint:])

    total = left + right
    if total == 0:
        return 0
    return (right - left) / total


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def filter_high_priority(items: List[Any]) -> List[Any]:
    """Keep items positioned in the important-and-urgent quadrant (x > 0.5, y > 0.5)."""
    result = []
    for item in items:
        position = _field(item, "position")
        if not position:
            continue
        x = _field(position, "x")
        y = _field(position, "y")
        if x is not None and y is not None and x > 0.5 and y > 0.5:
            result.append(item)
    return result


def generate_summary(data: Any) -> str:
    if isinstance(data, str):
        return data

    if isinstance(data, (list, tuple)):
        return f"{len(data)}個のアイテム"

    if isinstance(data, Mapping):
        keys = [str(k) for k in data.keys()]
        suffix = "..." if len(keys) > 3 else ""
        return f"{len(keys)}個のプロパティ: {', '.join(keys[:3])}{suffix}"

    return str(data)


SWOT_QUADRANTS = ("strengths", "weaknesses", "opportunities", "threats")


def detect_gaps(data: Mapping) -> List[str]:
    """Return the SWOT quadrants that are missing or empty."""
    if not isinstance(data, Mapping):
        raise TypeError(f"detect_gaps expects a mapping, got {type(data).__name__}")
    return [q for q in SWOT_QUADRANTS if not data.get(q)]


# =============================================================================
# TRANSFORM REGISTRY
# =============================================================================

class TransformRegistry:
    """Registry of named transform functions."""

    def __init__(self):
        self._transforms: Dict[str, TransformFunc] = {}
        self._descriptions: Dict[str, str] = {}

    def register(
        self,
        name: str,
        func: TransformFunc,
        description: str = "",
    ) -> None:
        """Register (or replace) a transform under a name."""
        if not callable(func):
            raise TypeError(f"Transform {name!r} is not callable")
        self._transforms[name] = func
        self._descriptions[name] = description

    def unregister(self, name: str) -> bool:
        self._descriptions.pop(name, None)
        return self._transforms.pop(name, None) is not None

    def has_transform(self, name: str) -> bool:
        return name in self._transforms

    def get_transform(self, name: str) -> Optional[TransformFunc]:
        return self._transforms.get(name)

    def get_description(self, name: str) -> str:
        return self._descriptions.get(name, "")

    def list_transforms(self) -> List[str]:
        return list(self._transforms.keys())


BUILTIN_TRANSFORMS: Dict[str, TransformFunc] = {
    "calculate_ranking": calculate_ranking,
    "calculate_balance": calculate_balance,
    "filter_high_priority": filter_high_priority,
    "generate_summary": generate_summary,
    "detect_gaps": detect_gaps,
}


def create_default_registry() -> TransformRegistry:
    """Registry pre-populated with the built-in transforms."""
    registry = TransformRegistry()
    for name, func in BUILTIN_TRANSFORMS.items():
        registry.register(name, func, description=(func.__doc__ or "").strip().split("\n")[0])
    return registry
