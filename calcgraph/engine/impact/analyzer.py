"""
Impact Analyzer — Blast Radius of a Proposed Configuration Change.

Given a target configuration, a proposed edit and the full working set,
the analyzer builds a fresh dependency graph and reports:
1. Direct impacts on the target (formula change, parameter change)
2. Indirect impacts on every transitive downstream dependent
3. Overall risk level with recommendations and a validation checklist

Nothing is cached between calls; callers pass a consistent snapshot of the
working set on every call.

Version: change_impact_v1
"""

from typing import Iterable, Optional, Union

import structlog

from calcgraph.engine.configuration_store import describe_changes
from calcgraph.engine.formula_registry import FormulaRegistry
from calcgraph.engine.graph.analyzer import DependencyGraphAnalyzer
from calcgraph.engine.graph.builder import DependencyGraphBuilder
from calcgraph.errors import ConfigurationNotFoundError
from calcgraph.models.configuration import CalculationConfiguration, ConfigurationUpdate
from calcgraph.models.enums import ImpactSeverity, ImpactType
from calcgraph.models.impact import ImpactAnalysis, ImpactedCalculation

from .risk import ChangeRiskScorer

logger = structlog.get_logger()


FORMULA_CHANGE_ACTIONS = [
    "Revalidate calculation",
    "Update test cases",
    "Review regulatory compliance",
]

PARAMETER_CHANGE_ACTIONS = [
    "Verify data sources",
    "Update dependencies",
    "Run validation tests",
]

DEPENDENCY_CHANGE_ACTIONS = [
    "Review calculation results",
    "Verify data consistency",
]


class ImpactAnalyzer:
    """
    Forecasts which configurations a proposed change affects and how risky it is.

    Attributes:
        builder: Dependency graph builder
        graph_analyzer: Dependency graph query engine
        scorer: Risk classification engine
        registry: Optional formula registry used to cite regulatory bases
        logger: Structured logger

    Example:
        >>> analyzer = ImpactAnalyzer(registry=create_standard_registry())
        >>> report = analyzer.analyze_impact(
        ...     "calc-unit-1-heat-input", {"formula_id": "heat-input-v2"}, configs
        ... )
        >>> report.risk_level
        <RiskLevel.CRITICAL: 'critical'>
    """

    def __init__(
        self,
        builder: Optional[DependencyGraphBuilder] = None,
        graph_analyzer: Optional[DependencyGraphAnalyzer] = None,
        scorer: Optional[ChangeRiskScorer] = None,
        registry: Optional[FormulaRegistry] = None,
    ):
        self.builder = builder or DependencyGraphBuilder()
        self.graph_analyzer = graph_analyzer or DependencyGraphAnalyzer()
        self.scorer = scorer or ChangeRiskScorer()
        self.registry = registry
        self.logger = structlog.get_logger()

    def analyze_impact(
        self,
        target_id: str,
        proposed_change: Union[ConfigurationUpdate, dict],
        all_configs: Iterable[CalculationConfiguration],
    ) -> ImpactAnalysis:
        """
        Analyze the impact of changing one configuration.

        Args:
            target_id: ID of the configuration to change
            proposed_change: Proposed field values (model or dict)
            all_configs: Complete working set, including the target

        Returns:
            ImpactAnalysis report

        Raises:
            ConfigurationNotFoundError: If ``target_id`` is not in ``all_configs``
            pydantic.ValidationError: If the proposed change is malformed
        """
        configs_by_id: dict[str, CalculationConfiguration] = {}
        for config in all_configs:
            configs_by_id.setdefault(config.id, config)

        target = configs_by_id.get(target_id)
        if target is None:
            self.logger.warning(
                "impact_target_not_found",
                target_id=target_id,
                config_count=len(configs_by_id),
            )
            raise ConfigurationNotFoundError(target_id)

        proposed = ConfigurationUpdate.model_validate(proposed_change)

        self.logger.info(
            "impact_analysis_started",
            target_id=target_id,
            proposed_fields=sorted(proposed.model_fields_set),
        )

        graph = self.builder.build(configs_by_id.values())
        downstream = self.graph_analyzer.get_downstream_dependents(target_id, graph)

        formula_changed = proposed.is_formula_change(target)
        direct_impacts: list[ImpactedCalculation] = []
        if formula_changed:
            direct_impacts.append(self._formula_change_impact(target, proposed))
        if proposed.is_parameter_change(target):
            direct_impacts.append(
                ImpactedCalculation(
                    id=target.id,
                    name=target.name,
                    impact_type=ImpactType.PARAMETER_CHANGE,
                    description="Parameter mappings modified",
                    severity=ImpactSeverity.MEDIUM,
                    affected_programs=list(target.programs),
                    required_actions=list(PARAMETER_CHANGE_ACTIONS),
                )
            )

        indirect_impacts = [
            ImpactedCalculation(
                id=node.id,
                name=node.name,
                impact_type=ImpactType.DEPENDENCY_CHANGE,
                description=f"Depends on {target.name} which is being modified",
                severity=ImpactSeverity.MEDIUM,
                affected_programs=list(configs_by_id[node.id].programs),
                required_actions=list(DEPENDENCY_CHANGE_ACTIONS),
            )
            for node in downstream
        ]

        all_impacts = direct_impacts + indirect_impacts
        risk_level = self.scorer.classify_risk(formula_changed, all_impacts)

        analysis = ImpactAnalysis(
            configuration_id=target_id,
            change_description=describe_changes(target, proposed),
            direct_impacts=direct_impacts,
            indirect_impacts=indirect_impacts,
            total_impact_count=len(all_impacts),
            risk_level=risk_level,
            recommendations=self.scorer.build_recommendations(
                formula_changed, len(all_impacts), risk_level
            ),
            required_validations=self.scorer.build_required_validations(
                formula_changed, has_downstream=bool(downstream)
            ),
        )

        self.logger.info(
            "impact_analysis_completed",
            target_id=target_id,
            direct_count=len(direct_impacts),
            indirect_count=len(indirect_impacts),
            risk_level=risk_level.value,
        )
        return analysis

    def _formula_change_impact(
        self, target: CalculationConfiguration, proposed: ConfigurationUpdate
    ) -> ImpactedCalculation:
        new_formula_id = proposed.formula_id or target.formula_id
        new_version = proposed.formula_version or target.formula_version

        description = (
            f"Formula change from {target.formula_id} v{target.formula_version} "
            f"to {new_formula_id} v{new_version}"
        )
        if self.registry is not None:
            old_formula = self.registry.get_formula(target.formula_id)
            new_formula = self.registry.get_formula(new_formula_id)
            if old_formula and new_formula:
                description += (
                    f" ({old_formula.regulatory_basis} → {new_formula.regulatory_basis})"
                )

        return ImpactedCalculation(
            id=target.id,
            name=target.name,
            impact_type=ImpactType.FORMULA_CHANGE,
            description=description,
            severity=ImpactSeverity.HIGH,
            affected_programs=list(target.programs),
            required_actions=list(FORMULA_CHANGE_ACTIONS),
        )
