"""
Entity dependency graph and generation ordering.

An edge ``source -> target`` means the source entity's rows must exist
before the target entity's referencing column is finalized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple

from sor_synth.models import Diagnostic, RelationshipLink

logger = logging.getLogger(__name__)


class DependencyCycleError(RuntimeError):
    """Raised when no safe generation order exists."""

    def __init__(self, remaining: Iterable[str]):
        self.remaining = sorted(remaining)
        super().__init__(
            f"Cannot determine generation order; dependency cycle among: {', '.join(self.remaining)}"
        )


@dataclass
class DependencyGraph:
    """Directed graph over entity ids, acyclic when ``prevent_cycles`` is set."""
    prevent_cycles: bool = True
    _adjacency: Dict[str, Set[str]] = field(default_factory=dict, init=False, repr=False)

    @property
    def vertices(self) -> List[str]:
        return sorted(self._adjacency)

    @property
    def edges(self) -> List[Tuple[str, str]]:
        return sorted(
            (source, target)
            for source, targets in self._adjacency.items()
            for target in targets
        )

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._adjacency.values())

    def add_vertex(self, vertex: str) -> None:
        """Add a vertex (idempotent)."""
        self._adjacency.setdefault(vertex, set())

    def has_edge(self, source: str, target: str) -> bool:
        return target in self._adjacency.get(source, ())

    def successors(self, vertex: str) -> List[str]:
        return sorted(self._adjacency.get(vertex, ()))

    def has_path(self, source: str, target: str) -> bool:
        """Whether target is reachable from source."""
        stack = [source]
        seen: Set[str] = set()
        while stack:
            node = stack.pop()
            if node == target:
                return True
            if node in seen:
                continue
            seen.add(node)
            stack.extend(self._adjacency.get(node, ()))
        return False

    def add_edge(self, source: str, target: str) -> bool:
        """
        Add a directed edge.

        Returns:
            True if the edge was added; False if it already existed or
            would have created a cycle (only when ``prevent_cycles``).
        """
        self.add_vertex(source)
        self.add_vertex(target)

        if self.has_edge(source, target):
            return False

        if self.prevent_cycles and (source == target or self.has_path(target, source)):
            return False

        self._adjacency[source].add(target)
        return True

    def topological_sort(self) -> List[str]:
        """
        Stable topological order; ties broken by ascending entity id.

        Raises:
            DependencyCycleError: if the graph contains a cycle
        """
        in_degree: Dict[str, int] = {v: 0 for v in self._adjacency}
        for targets in self._adjacency.values():
            for target in targets:
                in_degree[target] += 1

        # Kahn's algorithm
        queue = [v for v, degree in in_degree.items() if degree == 0]
        result = []

        while queue:
            # Sort for determinism
            queue.sort()
            node = queue.pop(0)
            result.append(node)

            for neighbor in self._adjacency[node]:
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if len(result) != len(self._adjacency):
            raise DependencyCycleError(set(self._adjacency) - set(result))

        return result


def build_dependency_graph(
    entity_ids: Iterable[str],
    links: Iterable[RelationshipLink],
    prevent_cycles: bool = True,
) -> Tuple[DependencyGraph, List[Diagnostic]]:
    """
    Build the entity dependency graph from resolved links.

    Every entity becomes a vertex. Each link between two different
    entities contributes the edge ``to_entity -> from_entity`` (the
    referenced entity is generated first). Duplicate edges collapse, and
    an edge that would close a cycle is rejected, so of two opposite
    relationships between the same pair only the first one survives.

    Returns:
        Tuple of (graph, diagnostics for rejected edges)
    """
    graph = DependencyGraph(prevent_cycles=prevent_cycles)
    diagnostics: List[Diagnostic] = []

    for entity_id in entity_ids:
        graph.add_vertex(entity_id)

    for link in links:
        if link.from_entity == link.to_entity:
            continue

        source, target = link.to_entity, link.from_entity
        graph.add_vertex(source)
        graph.add_vertex(target)

        if graph.has_edge(source, target):
            continue

        if not graph.add_edge(source, target):
            logger.warning(
                f"Skipping edge {source} -> {target} for {link.relationship_id}: it would create a cycle"
            )
            diagnostics.append(Diagnostic(
                kind="cycle_edge_rejected",
                message=f"Edge {source} -> {target} ({link}) rejected: it would create a cycle",
                entity_id=target,
            ))

    logger.debug(f"Dependency graph: {len(graph.vertices)} entities, {graph.edge_count} edges")
    return graph, diagnostics
