"""
BINDFLOW Test Configuration and Fixtures

Provides small dependency specs and an engine factory that disposes every
engine it built.
"""

import pytest
from typing import Any, Dict, List

from bindflow.config import EngineConfig


def make_dep(
    source: str,
    target: str,
    relationship: Any = None,
    **extra: Any,
) -> Dict[str, Any]:
    """
    Build one dependency dict.

    Usage:
        make_dep("a.x", "b.y", {"type": "javascript", "javascript": "source.value * 2"},
                 updateMode="realtime")
    """
    if relationship is None:
        relationship = {"type": "javascript", "javascript": "source.value"}
    dep = {
        "source": source,
        "target": target,
        "mechanism": extra.pop("mechanism", "update"),
        "relationship": relationship,
    }
    dep.update(extra)
    return dep


def make_spec(*deps: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    return {"dependencies": list(deps)}


@pytest.fixture
def linear_spec():
    """a.out -> b.in (x2) -> c.in (+1), default debounce."""
    return make_spec(
        make_dep("a.out", "b.in", {"type": "javascript", "javascript": "source.value * 2"}),
        make_dep("b.in", "c.in", {"type": "javascript", "javascript": "source.value + 1"}),
    )


@pytest.fixture
def fast_config():
    """Config with a short debounce for timer tests."""
    return EngineConfig(default_debounce_ms=10, max_propagation_depth=10)


@pytest.fixture
def engine_factory():
    """Create engines and dispose them after the test."""
    from bindflow.engine import create_engine

    engines = []

    def _factory(spec, config=None, **kwargs):
        engine = create_engine(spec, config, **kwargs)
        engines.append(engine)
        return engine

    yield _factory

    for engine in engines:
        engine.dispose()


@pytest.fixture
def dep():
    """The make_dep helper."""
    return make_dep


@pytest.fixture
def spec():
    """The make_spec helper."""
    return make_spec
