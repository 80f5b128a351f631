"""
BINDFLOW Dependency Graph

Directed graph of port-to-port dependencies between widgets.

Edges are stored at full port-key granularity ("widget.prop") but cycle
detection and update ordering work on entity ids ("widget"), because one
widget usually exposes several ports that all settle together.

Invariant: the entity-level graph is acyclic. add_dependency() checks
reachability before mutating anything, so a rejected edge leaves the graph
exactly as it was.
"""

from __future__ import annotations
from collections import deque
from typing import Any, Dict, List, Optional, Set, Union
import logging

from bindflow.errors import CyclicDependencyError
from bindflow.schema import DependencyGraphSpec, DependencySpec, entity_of

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    Entity-level DAG of DependencySpec edges.

    Adjacency maps source entity id -> edges whose `source` belongs to that
    entity. The node set holds every entity id referenced by any edge.
    """

    def __init__(self, spec: Optional[DependencyGraphSpec] = None):
        self._dependencies: Dict[str, List[DependencySpec]] = {}
        # dict keeps insertion order, used as a tiebreak by get_update_order()
        self._nodes: Dict[str, None] = {}

        if spec is not None:
            for dep in spec.dependencies:
                self.add_dependency(dep)

    @classmethod
    def from_spec(cls, spec: Union[DependencyGraphSpec, Dict[str, Any]]) -> "DependencyGraph":
        """Build a graph from a spec model or its dict form."""
        if not isinstance(spec, DependencyGraphSpec):
            spec = DependencyGraphSpec.model_validate(spec)
        return cls(spec)

    # =========================================================================
    # MUTATION
    # =========================================================================

    def add_dependency(self, spec: DependencySpec) -> None:
        """
        Register an edge.

        Raises:
            CyclicDependencyError: target entity already reaches source entity.
                The graph is not modified.
        """
        source_id = entity_of(spec.source)
        target_id = entity_of(spec.target)

        path = self._find_path(target_id, source_id)
        if path is not None:
            raise CyclicDependencyError(spec.source, spec.target, cycle=[source_id] + path)

        self._dependencies.setdefault(source_id, []).append(spec)
        self._nodes.setdefault(source_id)
        self._nodes.setdefault(target_id)

    def remove_dependency(self, source: str, target: str) -> bool:
        """Remove edges matching source and target exactly."""
        source_id = entity_of(source)
        deps = self._dependencies.get(source_id)
        if not deps:
            return False

        remaining = [d for d in deps if d.source != source or d.target != target]
        self._dependencies[source_id] = remaining
        return len(remaining) < len(deps)

    def clear(self) -> None:
        self._dependencies.clear()
        self._nodes.clear()

    # =========================================================================
    # CYCLES
    # =========================================================================

    def _find_path(self, start: str, goal: str) -> Optional[List[str]]:
        """Entity path start -> ... -> goal, or None if goal is unreachable."""
        visited: Set[str] = set()

        def dfs(node: str, path: List[str]) -> Optional[List[str]]:
            path = path + [node]
            if node == goal:
                return path
            if node in visited:
                return None
            visited.add(node)

            for dep in self._dependencies.get(node, []):
                found = dfs(entity_of(dep.target), path)
                if found is not None:
                    return found
            return None

        return dfs(start, [])

    def find_cycle(self) -> Optional[List[str]]:
        """Return the entity path of the first cycle found, or None."""
        visited: Set[str] = set()
        rec_stack: List[str] = []

        def dfs(node: str) -> Optional[List[str]]:
            if node in rec_stack:
                return rec_stack[rec_stack.index(node):] + [node]
            if node in visited:
                return None

            visited.add(node)
            rec_stack.append(node)

            for dep in self._dependencies.get(node, []):
                cycle = dfs(entity_of(dep.target))
                if cycle is not None:
                    return cycle

            rec_stack.pop()
            return None

        for node in self._nodes:
            cycle = dfs(node)
            if cycle is not None:
                return cycle
        return None

    def detect_cycle(self) -> bool:
        """Whole-graph DFS check, independent of the add-time guard."""
        return self.find_cycle() is not None

    # =========================================================================
    # ORDERING
    # =========================================================================

    def get_update_order(self) -> List[str]:
        """
        Topological order of entity ids (Kahn's algorithm).

        For every edge s -> t, s appears before t.
        """
        in_degree: Dict[str, int] = {node: 0 for node in self._nodes}
        for deps in self._dependencies.values():
            for dep in deps:
                target_id = entity_of(dep.target)
                in_degree[target_id] = in_degree.get(target_id, 0) + 1

        queue = deque(node for node, degree in in_degree.items() if degree == 0)
        order: List[str] = []

        while queue:
            node = queue.popleft()
            order.append(node)

            for dep in self._dependencies.get(node, []):
                target_id = entity_of(dep.target)
                in_degree[target_id] -= 1
                if in_degree[target_id] == 0:
                    queue.append(target_id)

        if len(order) < len(in_degree):
            # Only reachable if the add-time guard was bypassed
            logger.warning(
                f"Update order incomplete: {len(in_degree) - len(order)} "
                f"entities are part of a cycle"
            )

        return order

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_dependencies(self, source_key: str) -> List[DependencySpec]:
        """Edges whose source equals source_key exactly."""
        deps = self._dependencies.get(entity_of(source_key), [])
        return [d for d in deps if d.source == source_key]

    def get_dependents(self, target_key: str) -> List[DependencySpec]:
        """Edges whose target equals target_key exactly."""
        return [d for d in self.get_all_dependencies() if d.target == target_key]

    def get_all_dependencies(self) -> List[DependencySpec]:
        result: List[DependencySpec] = []
        for deps in self._dependencies.values():
            result.extend(deps)
        return result

    def get_nodes(self) -> List[str]:
        return list(self._nodes)

    def has_node(self, entity_id: str) -> bool:
        return entity_id in self._nodes

    def get_edge_count(self) -> int:
        return sum(len(deps) for deps in self._dependencies.values())

    def get_node_count(self) -> int:
        return len(self._nodes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize graph structure for diagnostics."""
        return {
            "nodes": self.get_nodes(),
            "edges": [
                {
                    "id": d.dependency_id,
                    "source": d.source,
                    "target": d.target,
                    "mechanism": d.mechanism.value,
                    "update_mode": d.update_mode.value,
                    "relationship": d.relationship.type,
                    "enabled": d.enabled,
                }
                for d in self.get_all_dependencies()
            ],
            "update_order": self.get_update_order(),
        }
