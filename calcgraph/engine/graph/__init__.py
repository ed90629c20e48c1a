"""
Dependency graph construction and analysis.

Components:
    DependencyGraphBuilder: Configurations -> DependencyGraph
    DependencyGraphAnalyzer: Closures, paths, critical path, validation

Example:
    >>> from calcgraph.engine.graph import DependencyGraphAnalyzer, build_dependency_graph
    >>> graph = build_dependency_graph(configs)
    >>> DependencyGraphAnalyzer().validate(graph).valid
    True
"""

from .analyzer import DependencyGraphAnalyzer, to_networkx
from .builder import DependencyGraphBuilder, build_dependency_graph

__all__ = [
    "DependencyGraphAnalyzer",
    "DependencyGraphBuilder",
    "build_dependency_graph",
    "to_networkx",
]
