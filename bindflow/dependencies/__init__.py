"""
BINDFLOW Dependency Graph

Provides:
- DependencyGraph: entity-level DAG of port dependencies
"""

from .graph import DependencyGraph

__all__ = [
    "DependencyGraph",
]
