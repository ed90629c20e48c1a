"""
Dependency Graph Analyzer — Structural Queries over a Built Graph.

This module answers questions about a DependencyGraph produced by the
builder:
1. Upstream / downstream closures (what feeds X, what X feeds)
2. Path finding between two configurations
3. Critical path (longest dependency chain)
4. Structural validation (cycles, dangling edges, unreachable nodes)

Closures are delegated to NetworkX; path search walks an explicit stack.
All traversal state is per call, so a single analyzer can be shared across
threads for read-only use. None of the queries raise on cyclic graphs or
on chains deeper than the interpreter's recursion limit.

Version: dep_graph_analyzer_v1
"""

from typing import Optional

import networkx as nx
import structlog

from calcgraph.models.graph import DependencyGraph, DependencyNode, GraphValidationResult

logger = structlog.get_logger()

_UPSTREAM = "upstream_dependencies"
_DOWNSTREAM = "downstream_dependents"


class DependencyGraphAnalyzer:
    """
    Structural query operations over a DependencyGraph.

    Example:
        >>> analyzer = DependencyGraphAnalyzer()
        >>> upstream = analyzer.get_upstream_dependencies("calc-nox-rate", graph)
        >>> [node.id for node in upstream]
        ['calc-heat-input']
        >>> analyzer.find_path("calc-heat-input", "calc-nox-rate", graph)
        ['calc-heat-input', 'calc-nox-rate']
    """

    def __init__(self):
        self.logger = structlog.get_logger()

    # =========================================================================
    # Closures
    # =========================================================================

    def get_upstream_dependencies(
        self, calculation_id: str, graph: DependencyGraph
    ) -> list[DependencyNode]:
        """
        Get every configuration the given one transitively depends on.

        Args:
            calculation_id: Configuration ID
            graph: Built dependency graph

        Returns:
            Ancestor nodes in execution order, each listed once.
            Empty if the ID is not in the graph.
        """
        return self._collect_reachable(calculation_id, graph, _UPSTREAM)

    def get_downstream_dependents(
        self, calculation_id: str, graph: DependencyGraph
    ) -> list[DependencyNode]:
        """
        Get every configuration that transitively depends on the given one.

        Args:
            calculation_id: Configuration ID
            graph: Built dependency graph

        Returns:
            Descendant nodes in execution order, each listed once.
            Empty if the ID is not in the graph.
        """
        return self._collect_reachable(calculation_id, graph, _DOWNSTREAM)

    def get_direct_upstream(self, calculation_id: str, graph: DependencyGraph) -> list[str]:
        """Get IDs of the configurations feeding the given one directly."""
        node = graph.get_node(calculation_id)
        return list(node.upstream_dependencies) if node else []

    def get_direct_downstream(self, calculation_id: str, graph: DependencyGraph) -> list[str]:
        """Get IDs of the configurations fed directly by the given one."""
        node = graph.get_node(calculation_id)
        return list(node.downstream_dependents) if node else []

    def _collect_reachable(
        self, calculation_id: str, graph: DependencyGraph, direction: str
    ) -> list[DependencyNode]:
        index = graph.node_index()
        if calculation_id not in index:
            self.logger.warning(
                "calculation_not_in_graph",
                calculation_id=calculation_id,
                direction=direction,
            )
            return []

        nx_graph = to_networkx(graph)
        if direction == _UPSTREAM:
            reachable = nx.ancestors(nx_graph, calculation_id)
        else:
            reachable = nx.descendants(nx_graph, calculation_id)
        reachable.discard(calculation_id)

        position = {node_id: i for i, node_id in enumerate(graph.execution_order)}
        ordered = sorted(reachable, key=lambda node_id: position.get(node_id, len(position)))
        result = [index[node_id] for node_id in ordered]

        self.logger.debug(
            "reachable_nodes_computed",
            calculation_id=calculation_id,
            direction=direction,
            node_count=len(result),
        )
        return result

    # =========================================================================
    # Paths
    # =========================================================================

    def find_path(
        self, from_id: str, to_id: str, graph: DependencyGraph
    ) -> Optional[list[str]]:
        """
        Find a dependency path from one configuration to another.

        Depth-first search over downstream edges; the first path discovered
        is returned, which is not necessarily the shortest.

        Args:
            from_id: Upstream configuration ID
            to_id: Downstream configuration ID
            graph: Built dependency graph

        Returns:
            Ordered list of IDs from ``from_id`` to ``to_id``, ``[from_id]``
            when both are equal, or None when ``to_id`` is unreachable
        """
        if from_id == to_id:
            return [from_id]

        path = self._search_path(from_id, to_id, graph.node_index())

        self.logger.debug(
            "dependency_path_searched",
            from_id=from_id,
            to_id=to_id,
            found=path is not None,
            path_length=len(path) if path else None,
        )
        return path

    def _search_path(
        self, from_id: str, to_id: str, index: dict[str, DependencyNode]
    ) -> Optional[list[str]]:
        start = index.get(from_id)
        if start is None:
            return None

        # path[i] is the node whose downstream iterator sits at stack[i].
        path = [from_id]
        stack = [iter(start.downstream_dependents)]
        visited = {from_id}

        while stack:
            next_id = next(stack[-1], None)
            if next_id is None:
                stack.pop()
                path.pop()
                continue
            if next_id == to_id:
                return [*path, next_id]
            if next_id in visited:
                continue
            visited.add(next_id)

            node = index.get(next_id)
            if node is None:
                continue
            path.append(next_id)
            stack.append(iter(node.downstream_dependents))

        return None

    def calculate_critical_path(self, graph: DependencyGraph) -> list[str]:
        """
        Calculate the critical path: the longest chain of dependent configurations.

        Unweighted longest-path dynamic programming over the execution order,
        relaxing distances to downstream neighbors and keeping predecessor
        pointers. Ties resolve to the first node in execution order reaching
        the maximum distance.

        Args:
            graph: Built dependency graph

        Returns:
            IDs on the critical path from its first to its last configuration.
            Empty for an empty graph.
        """
        index = graph.node_index()
        distances = {node.id: 0 for node in graph.nodes}
        predecessors: dict[str, str] = {}

        for node_id in graph.execution_order:
            node = index.get(node_id)
            if node is None:
                continue
            for next_id in node.downstream_dependents:
                if next_id not in distances:
                    continue
                candidate = distances[node_id] + 1
                if candidate > distances[next_id]:
                    distances[next_id] = candidate
                    predecessors[next_id] = node_id

        end_id: Optional[str] = None
        max_distance = -1
        for node_id in graph.execution_order:
            if node_id in distances and distances[node_id] > max_distance:
                max_distance = distances[node_id]
                end_id = node_id

        path: list[str] = []
        seen: set[str] = set()
        current = end_id
        # Predecessor pointers can loop when the graph is cyclic.
        while current is not None and current not in seen:
            seen.add(current)
            path.append(current)
            current = predecessors.get(current)
        path.reverse()

        self.logger.debug(
            "critical_path_computed",
            path_length=len(path),
            start=path[0] if path else None,
            end=path[-1] if path else None,
        )
        return path

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, graph: DependencyGraph) -> GraphValidationResult:
        """
        Validate graph structure.

        Errors:
            - one per reported cycle, naming its ID sequence
            - one per edge endpoint missing from the node list
        Warnings:
            - nodes not reachable from any root node

        Args:
            graph: Built dependency graph

        Returns:
            GraphValidationResult; ``valid`` is True when there are no errors
        """
        errors: list[str] = []
        warnings: list[str] = []

        for cycle in graph.cycles:
            errors.append(f"Circular dependency detected: {' -> '.join(cycle)}")

        node_ids = {node.id for node in graph.nodes}
        for edge in graph.edges:
            if edge.source_id not in node_ids:
                errors.append(f"Edge references non-existent source node: {edge.source_id}")
            if edge.target_id not in node_ids:
                errors.append(f"Edge references non-existent target node: {edge.target_id}")

        nx_graph = to_networkx(graph)
        reachable: set[str] = set()
        for root_id in graph.root_nodes:
            if root_id in nx_graph:
                reachable.add(root_id)
                reachable.update(nx.descendants(nx_graph, root_id))

        unreachable = [node.id for node in graph.nodes if node.id not in reachable]
        if unreachable:
            warnings.append(
                f"{len(unreachable)} node(s) not reachable from root nodes: "
                f"{', '.join(unreachable)}"
            )

        result = GraphValidationResult(valid=not errors, errors=errors, warnings=warnings)

        self.logger.info(
            "dependency_graph_validated",
            valid=result.valid,
            error_count=len(errors),
            warning_count=len(warnings),
        )
        return result


def to_networkx(graph: DependencyGraph) -> nx.DiGraph:
    """
    Convert a DependencyGraph into a NetworkX DiGraph.

    Node attributes carry name, formula, level and status. Parallel edges
    between the same pair of configurations collapse into one edge whose
    ``data_flows`` attribute lists every parameter slot. Edges whose
    endpoints are not graph nodes are skipped.

    Args:
        graph: Built dependency graph

    Returns:
        Directed graph with an edge source → target per dependency
    """
    nx_graph = nx.DiGraph()
    for node in graph.nodes:
        nx_graph.add_node(
            node.id,
            name=node.name,
            formula_id=node.formula_id,
            level=node.level,
            status=node.metadata.status.value,
        )

    for edge in graph.edges:
        if edge.source_id not in nx_graph or edge.target_id not in nx_graph:
            continue
        if nx_graph.has_edge(edge.source_id, edge.target_id):
            nx_graph[edge.source_id][edge.target_id]["data_flows"].append(edge.data_flow)
        else:
            nx_graph.add_edge(edge.source_id, edge.target_id, data_flows=[edge.data_flow])

    return nx_graph
