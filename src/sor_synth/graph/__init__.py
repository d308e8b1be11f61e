"""
Graph module: entity dependency graph and stable topological ordering.
"""

from sor_synth.graph.dependency import (
    DependencyCycleError,
    DependencyGraph,
    build_dependency_graph,
)

__all__ = [
    "DependencyCycleError",
    "DependencyGraph",
    "build_dependency_graph",
]
