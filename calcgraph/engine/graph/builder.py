"""
Dependency Graph Builder — Configuration Cross-Reference Graph.

This module converts a working set of calculation configurations into a
directed dependency graph. An edge X → Y exists when one of Y's parameter
slots is bound to the output of configuration X and X is part of the
working set. References to configurations outside the working set are
treated as unresolved external sources, not errors.

Derived structure:
1. Nodes in input order, one per configuration
2. Edges, one per referencing parameter slot
3. Execution levels (tiers) propagated outward from dependency-free nodes
4. Execution order via depth-first traversal of upstream dependencies
5. Root / leaf sets
6. Cycles via depth-first search with an in-progress set

Depth-first walks use explicit stacks, so reference chains of any length
build without hitting the interpreter's recursion limit.

Every step is total: cyclic input yields a partial-but-safe result
(an execution order that cannot respect the cycle, under-determined levels
and a non-empty ``cycles`` list) instead of an exception.

Version: dep_graph_builder_v1
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Iterable

import structlog

from calcgraph.models.configuration import CalculationConfiguration
from calcgraph.models.enums import DependencyType
from calcgraph.models.graph import (
    CalculationDependency,
    DependencyGraph,
    DependencyNode,
    NodeMetadata,
)

logger = structlog.get_logger()


@dataclass
class _TraversalState:
    """Per-call depth-first traversal bookkeeping."""

    visited: set[str] = field(default_factory=set)
    in_progress: set[str] = field(default_factory=set)
    order: list[str] = field(default_factory=list)


class DependencyGraphBuilder:
    """
    Builds DependencyGraph values from calculation configurations.

    The builder holds no state between calls; every call to ``build`` works
    on the configurations it is given, so one instance can be shared freely.

    Example:
        >>> builder = DependencyGraphBuilder()
        >>> graph = builder.build([heat_input, nox_rate])
        >>> graph.execution_order
        ['calc-heat-input', 'calc-nox-rate']
    """

    VERSION = "dep_graph_builder_v1"

    def __init__(self):
        self.logger = structlog.get_logger()

    def build(self, configs: Iterable[CalculationConfiguration]) -> DependencyGraph:
        """
        Build the dependency graph for a working set of configurations.

        Args:
            configs: Complete working set of configurations

        Returns:
            DependencyGraph with nodes, edges, execution order, roots, leaves
            and detected cycles
        """
        configurations = self._unique_configurations(configs)
        nodes = {
            config.id: DependencyNode(
                id=config.id,
                name=config.name,
                formula_id=config.formula_id,
                metadata=NodeMetadata(
                    frequency=config.frequency,
                    status=config.status,
                    programs=list(config.programs),
                ),
            )
            for config in configurations
        }

        edges = self._build_edges(configurations, nodes)
        self._compute_levels(nodes)
        execution_order = self._compute_execution_order(nodes)
        cycles = self._detect_cycles(nodes)

        graph = DependencyGraph(
            nodes=list(nodes.values()),
            edges=edges,
            execution_order=execution_order,
            root_nodes=[n.id for n in nodes.values() if not n.upstream_dependencies],
            leaf_nodes=[n.id for n in nodes.values() if not n.downstream_dependents],
            cycles=cycles,
        )

        if cycles:
            self.logger.warning(
                "dependency_cycles_detected",
                cycle_count=len(cycles),
                cycles=[" -> ".join(cycle) for cycle in cycles[:5]],
            )

        self.logger.info(
            "dependency_graph_built",
            version=self.VERSION,
            node_count=len(graph.nodes),
            edge_count=len(graph.edges),
            root_count=len(graph.root_nodes),
            leaf_count=len(graph.leaf_nodes),
            cycle_count=len(cycles),
        )

        return graph

    # =========================================================================
    # Nodes and edges
    # =========================================================================

    def _unique_configurations(
        self, configs: Iterable[CalculationConfiguration]
    ) -> list[CalculationConfiguration]:
        seen: set[str] = set()
        unique = []
        for config in configs:
            if config.id in seen:
                self.logger.warning("duplicate_configuration_ignored", configuration_id=config.id)
                continue
            seen.add(config.id)
            unique.append(config)
        return unique

    def _build_edges(
        self,
        configurations: list[CalculationConfiguration],
        nodes: dict[str, DependencyNode],
    ) -> list[CalculationDependency]:
        """
        Create one edge per parameter slot bound to an in-set configuration output.

        Also fills the upstream/downstream ID lists on the nodes, keeping
        them duplicate-free when several slots reference the same source.
        """
        edges = []
        for config in configurations:
            target = nodes[config.id]
            for slot, source_id in config.referenced_configuration_ids():
                source = nodes.get(source_id)
                if source is None:
                    self.logger.debug(
                        "unresolved_configuration_reference",
                        configuration_id=config.id,
                        parameter=slot,
                        referenced_id=source_id,
                    )
                    continue

                edges.append(
                    CalculationDependency(
                        source_id=source.id,
                        source_name=source.name,
                        target_id=target.id,
                        target_name=target.name,
                        type=DependencyType.OUTPUT,
                        data_flow=slot,
                        required=True,
                        description=(
                            f"{target.name} depends on {source.name} for parameter {slot}"
                        ),
                    )
                )
                if source.id not in target.upstream_dependencies:
                    target.upstream_dependencies.append(source.id)
                if target.id not in source.downstream_dependents:
                    source.downstream_dependents.append(target.id)
        return edges

    # =========================================================================
    # Levels and ordering
    # =========================================================================

    def _compute_levels(self, nodes: dict[str, DependencyNode]) -> None:
        """
        Propagate execution levels outward from dependency-free nodes.

        A node is expanded once all of its upstream nodes have been expanded,
        so on a DAG its level is the longest distance from a root. Nodes on
        or downstream of a cycle are never fully resolved and keep the level
        given by their resolved predecessors.
        """
        pending = {node_id: len(node.upstream_dependencies) for node_id, node in nodes.items()}
        queue = deque(node_id for node_id, count in pending.items() if count == 0)
        expanded: set[str] = set()

        while queue:
            node_id = queue.popleft()
            if node_id in expanded:
                continue
            expanded.add(node_id)
            node = nodes[node_id]

            for downstream_id in node.downstream_dependents:
                downstream = nodes[downstream_id]
                downstream.level = max(downstream.level, node.level + 1)
                pending[downstream_id] -= 1
                if pending[downstream_id] == 0 and downstream_id not in expanded:
                    queue.append(downstream_id)

        unresolved = len(nodes) - len(expanded)
        if unresolved:
            self.logger.debug("execution_levels_underdetermined", node_count=unresolved)

    def _compute_execution_order(self, nodes: dict[str, DependencyNode]) -> list[str]:
        state = _TraversalState()
        for node_id in nodes:
            if node_id not in state.visited:
                self._visit_upstream_first(node_id, nodes, state)
        return state.order

    def _visit_upstream_first(
        self,
        root_id: str,
        nodes: dict[str, DependencyNode],
        state: _TraversalState,
    ) -> None:
        """Append ``root_id`` and its unvisited ancestors in post-order."""
        state.in_progress.add(root_id)
        stack = [(root_id, iter(nodes[root_id].upstream_dependencies))]

        while stack:
            node_id, upstream = stack[-1]
            upstream_id = next(upstream, None)
            if upstream_id is None:
                stack.pop()
                state.in_progress.discard(node_id)
                state.visited.add(node_id)
                state.order.append(node_id)
                continue

            # Re-entering an in-progress node means a cycle; it is appended
            # once when its own frame completes.
            if upstream_id in state.visited or upstream_id in state.in_progress:
                continue
            state.in_progress.add(upstream_id)
            stack.append((upstream_id, iter(nodes[upstream_id].upstream_dependencies)))

    # =========================================================================
    # Cycle detection
    # =========================================================================

    def _detect_cycles(self, nodes: dict[str, DependencyNode]) -> list[list[str]]:
        """
        Find cycles over the upstream relation.

        Each cycle is a closed walk that starts and ends with the same ID and
        follows upstream edges (each ID depends on the next one).
        """
        state = _TraversalState()
        cycles: list[list[str]] = []
        for node_id in nodes:
            if node_id not in state.visited:
                self._find_cycles_from(node_id, nodes, state, cycles)
        return cycles

    def _find_cycles_from(
        self,
        root_id: str,
        nodes: dict[str, DependencyNode],
        state: _TraversalState,
        cycles: list[list[str]],
    ) -> None:
        state.visited.add(root_id)
        state.in_progress.add(root_id)
        # path mirrors the stack: path[i] owns the iterator at stack[i].
        path = [root_id]
        stack = [iter(nodes[root_id].upstream_dependencies)]

        while stack:
            upstream_id = next(stack[-1], None)
            if upstream_id is None:
                stack.pop()
                state.in_progress.discard(path.pop())
                continue

            if upstream_id not in state.visited:
                state.visited.add(upstream_id)
                state.in_progress.add(upstream_id)
                path.append(upstream_id)
                stack.append(iter(nodes[upstream_id].upstream_dependencies))
            elif upstream_id in state.in_progress:
                start = path.index(upstream_id)
                cycles.append([*path[start:], upstream_id])


def build_dependency_graph(configs: Iterable[CalculationConfiguration]) -> DependencyGraph:
    """Build a dependency graph with a default builder."""
    return DependencyGraphBuilder().build(configs)
