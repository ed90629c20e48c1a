"""
Dependency graph models.

A DependencyGraph is a derived, read-only view over a set of calculation
configurations: one node per configuration and one edge per parameter slot
that references another configuration's output.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .enums import CalculationFrequency, CalculationStatus, DependencyType


class NodeMetadata(BaseModel):
    """Passthrough configuration attributes carried on a graph node."""

    frequency: CalculationFrequency
    status: CalculationStatus
    programs: list[str] = Field(default_factory=list)


class DependencyNode(BaseModel):
    """
    One calculation configuration in the dependency graph.

    Attributes:
        id: Configuration ID
        name: Configuration display name
        formula_id: Formula the configuration evaluates
        level: Execution tier (0 = no upstream dependencies)
        upstream_dependencies: IDs of configurations this one consumes
        downstream_dependents: IDs of configurations consuming this one
        metadata: Frequency, status and program tags
    """

    id: str
    name: str
    formula_id: str
    level: int = Field(default=0, ge=0, description="Execution tier")
    upstream_dependencies: list[str] = Field(default_factory=list)
    downstream_dependents: list[str] = Field(default_factory=list)
    metadata: NodeMetadata


class CalculationDependency(BaseModel):
    """A directed edge: the source's output feeds a parameter slot of the target."""

    source_id: str
    source_name: str
    target_id: str
    target_name: str
    type: DependencyType = DependencyType.OUTPUT
    data_flow: str = Field(description="Parameter slot carrying the data")
    required: bool = True
    description: str


class DependencyGraph(BaseModel):
    """
    Complete dependency graph over a working set of configurations.

    ``cycles`` is empty if and only if the edge relation is acyclic.
    ``execution_order`` contains every node ID exactly once; absent cycles it
    is a valid topological order.
    """

    nodes: list[DependencyNode] = Field(default_factory=list)
    edges: list[CalculationDependency] = Field(default_factory=list)
    execution_order: list[str] = Field(default_factory=list)
    root_nodes: list[str] = Field(default_factory=list)
    leaf_nodes: list[str] = Field(default_factory=list)
    cycles: list[list[str]] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[DependencyNode]:
        """Return the node with the given ID, or None."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_index(self) -> dict[str, DependencyNode]:
        """Map node IDs to nodes."""
        return {node.id: node for node in self.nodes}

    @property
    def is_acyclic(self) -> bool:
        return not self.cycles


class GraphValidationResult(BaseModel):
    """Outcome of a structural graph validation."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
