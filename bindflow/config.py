"""
bindflow/config.py - Engine configuration

Provides configuration loading from dictionaries, environment variables,
and defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Optional
import os

from .errors import ConfigError


# camelCase keys used by the UI layer -> field names
_CAMEL_KEYS = {
    "defaultDebounceMs": "default_debounce_ms",
    "maxPropagationDepth": "max_propagation_depth",
}


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for a ReactiveBindingEngine."""

    # Debounce applied to "debounced" edges without their own debounce_ms
    default_debounce_ms: int = 300

    # Hop limit for a single cascade (infinite-loop guard)
    max_propagation_depth: int = 10

    # Verbose per-write logging
    debug: bool = False

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError if any value is out of range."""
        if self.default_debounce_ms < 0:
            raise ConfigError(
                f"default_debounce_ms must be >= 0, got {self.default_debounce_ms}"
            )
        if self.max_propagation_depth < 1:
            raise ConfigError(
                f"max_propagation_depth must be >= 1, got {self.max_propagation_depth}"
            )

    def merged(self, **overrides: Any) -> "EngineConfig":
        """Return a copy with the given fields replaced."""
        if not overrides:
            return self
        return replace(self, **_normalize_keys(overrides))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EngineConfig":
        """Build a config from a partial dict; missing keys keep defaults."""
        if not data:
            return cls()
        return cls().merged(**data)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        try:
            return cls(
                default_debounce_ms=int(os.getenv("BINDFLOW_DEBOUNCE_MS", "300")),
                max_propagation_depth=int(os.getenv("BINDFLOW_MAX_DEPTH", "10")),
                debug=os.getenv("BINDFLOW_DEBUG", "false").lower() == "true",
            )
        except ValueError as e:
            raise ConfigError(f"Invalid BINDFLOW_* environment value: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    known = {"default_debounce_ms", "max_propagation_depth", "debug"}
    result: Dict[str, Any] = {}
    for key, value in data.items():
        name = _CAMEL_KEYS.get(key, key)
        if name not in known:
            raise ConfigError(f"Unknown engine config key: {key}")
        result[name] = value
    return result


DEFAULT_ENGINE_CONFIG = EngineConfig()
