"""
Golden Path (End-to-End) Tests for the calculation dependency engine.

These tests exercise complete workflows over a fixed monitoring-plan
dataset for one unit: configurations are created through the store, wired
together by output references, built into a dependency graph, analyzed
for change impact, and archived with their audit trail.

Unit 1 working set:
    heat        Heat input (Appendix F)            no upstream
    nox_mass    NOx mass emission                  no upstream
    nox_rate    NOx emission rate                  nox_mass, heat
    nox_qtr     LME quarterly NOx rate             nox_rate, heat
    so2         Appendix D SO2 mass                no upstream
"""

import json

import pytest

from calcgraph.engine.audit_log import get_field_history, get_field_value_at
from calcgraph.engine.formula_registry import create_standard_registry
from calcgraph.engine.graph.analyzer import DependencyGraphAnalyzer, to_networkx
from calcgraph.engine.graph.builder import DependencyGraphBuilder
from calcgraph.engine.impact.analyzer import ImpactAnalyzer
from calcgraph.engine.impact.risk import BASELINE_VALIDATIONS, DOWNSTREAM_VALIDATION
from calcgraph.models.configuration import ConfigurationOutput
from calcgraph.models.enums import AuditAction, CalculationStatus, ImpactType, RiskLevel
from tests.conftest import BASE_TIME, make_configuration_input

AUTHOR = ("u-100", "Dana Reyes")


def create_unit_working_set(store) -> dict:
    """Create the Unit 1 configurations in dependency order."""
    heat = store.create(
        make_configuration_input(
            name="Unit 1 Heat Input",
            formula_id="heat-input-appendix-f",
            parameter_mappings={"Qh": "stack_flow_monitor", "Fd": 1040, "O2": "o2_analyzer"},
            programs=["ARP", "CSAPR"],
        ),
        *AUTHOR,
    )
    nox_mass = store.create(
        make_configuration_input(
            name="Unit 1 NOx Mass",
            formula_id="nox-mass-emission",
            parameter_mappings={"NOX_conc": "nox_analyzer", "Qh": "stack_flow_monitor", "K": 1.194e-7},
            programs=["ARP"],
        ),
        *AUTHOR,
    )
    nox_rate = store.create(
        make_configuration_input(
            name="Unit 1 NOx Rate",
            formula_id="nox-emission-rate",
            parameter_mappings={
                "NOX_mass": ConfigurationOutput(configuration_id=nox_mass.id).encode(),
                "HI": ConfigurationOutput(configuration_id=heat.id).encode(),
            },
            programs=["ARP", "CSAPR"],
        ),
        *AUTHOR,
    )
    nox_qtr = store.create(
        make_configuration_input(
            name="Unit 1 Quarterly NOx Rate",
            formula_id="lme-nox-rate-quarterly",
            frequency="quarterly",
            parameter_mappings={
                "NOX_rate": f"calc:{nox_rate.id}",
                "sum_HI": f"calc:{heat.id}:output",
            },
            programs=["CSAPR", "RGGI"],
        ),
        *AUTHOR,
    )
    so2 = store.create(
        make_configuration_input(
            name="Unit 1 SO2 Mass",
            formula_id="appendix-d-so2-mass",
            parameter_mappings={"fuel_flow": "fuel_flowmeter", "sulfur_content": "fuel_sample_lab", "K": 2.0},
        ),
        *AUTHOR,
    )
    return {"heat": heat, "nox_mass": nox_mass, "nox_rate": nox_rate, "nox_qtr": nox_qtr, "so2": so2}


@pytest.fixture
def unit(store):
    return create_unit_working_set(store)


# ============================================================================
# Scenario 1: Working set → Graph → Verify structure
# ============================================================================


def test_golden_unit_graph_structure(unit):
    """
    Golden path: build the Unit 1 graph and verify every derived property.
    """
    ids = {key: config.id for key, config in unit.items()}
    graph = DependencyGraphBuilder().build(list(unit.values()))

    assert len(graph.nodes) == 5
    assert len(graph.edges) == 4
    assert graph.cycles == []

    levels = {node.id: node.level for node in graph.nodes}
    assert levels == {
        ids["heat"]: 0,
        ids["nox_mass"]: 0,
        ids["nox_rate"]: 1,
        ids["nox_qtr"]: 2,
        ids["so2"]: 0,
    }
    assert graph.execution_order == [
        ids["heat"], ids["nox_mass"], ids["nox_rate"], ids["nox_qtr"], ids["so2"]
    ]
    assert set(graph.root_nodes) == {ids["heat"], ids["nox_mass"], ids["so2"]}
    assert set(graph.leaf_nodes) == {ids["nox_qtr"], ids["so2"]}

    heat_node = graph.get_node(ids["heat"])
    assert heat_node.downstream_dependents == [ids["nox_rate"], ids["nox_qtr"]]
    assert heat_node.metadata.programs == ["ARP", "CSAPR"]

    flows = {(e.source_id, e.target_id): e.data_flow for e in graph.edges}
    assert flows[(ids["heat"], ids["nox_rate"])] == "HI"
    assert flows[(ids["nox_rate"], ids["nox_qtr"])] == "NOX_rate"


def test_golden_unit_graph_queries(unit):
    """
    Golden path: closures, paths, critical path and validation on Unit 1.
    """
    ids = {key: config.id for key, config in unit.items()}
    graph = DependencyGraphBuilder().build(list(unit.values()))
    analyzer = DependencyGraphAnalyzer()

    upstream = {n.id for n in analyzer.get_upstream_dependencies(ids["nox_qtr"], graph)}
    assert upstream == {ids["heat"], ids["nox_mass"], ids["nox_rate"]}

    downstream = [n.id for n in analyzer.get_downstream_dependents(ids["heat"], graph)]
    assert downstream == [ids["nox_rate"], ids["nox_qtr"]]

    assert analyzer.get_downstream_dependents(ids["so2"], graph) == []
    assert analyzer.find_path(ids["nox_mass"], ids["nox_qtr"], graph) == [
        ids["nox_mass"], ids["nox_rate"], ids["nox_qtr"]
    ]
    assert analyzer.find_path(ids["so2"], ids["nox_qtr"], graph) is None
    assert analyzer.calculate_critical_path(graph) == [ids["heat"], ids["nox_rate"], ids["nox_qtr"]]

    result = analyzer.validate(graph)
    assert result.valid is True
    assert result.errors == []
    assert result.warnings == []

    nx_graph = to_networkx(graph)
    assert nx_graph.number_of_edges() == 4
    assert nx_graph.nodes[ids["nox_qtr"]]["level"] == 2


# ============================================================================
# Scenario 2: Proposed change → Impact analysis
# ============================================================================


def test_golden_heat_input_parameter_change(unit):
    """
    Golden path: rewiring the heat input O2 source impacts both NOx rates.
    """
    ids = {key: config.id for key, config in unit.items()}
    analyzer = ImpactAnalyzer(registry=create_standard_registry())

    mappings = {"Qh": "stack_flow_monitor", "Fd": 1040, "O2": "o2_backup_analyzer"}
    report = analyzer.analyze_impact(ids["heat"], {"parameter_mappings": mappings}, unit.values())

    assert report.configuration_id == ids["heat"]
    assert report.change_description == "Parameter mappings updated"
    assert [i.impact_type for i in report.direct_impacts] == [ImpactType.PARAMETER_CHANGE]
    assert [i.id for i in report.indirect_impacts] == [ids["nox_rate"], ids["nox_qtr"]]
    assert report.indirect_impacts[1].affected_programs == ["CSAPR", "RGGI"]
    assert all(
        i.description == "Depends on Unit 1 Heat Input which is being modified"
        for i in report.indirect_impacts
    )
    assert report.total_impact_count == 3
    assert report.risk_level == RiskLevel.MEDIUM
    assert report.recommendations == []
    assert report.required_validations == BASELINE_VALIDATIONS + [DOWNSTREAM_VALIDATION]


def test_golden_so2_methodology_switch(unit):
    """
    Golden path: moving SO2 from Appendix D to CEMS is a critical formula change
    with no downstream dependents.
    """
    ids = {key: config.id for key, config in unit.items()}
    analyzer = ImpactAnalyzer(registry=create_standard_registry())

    report = analyzer.analyze_impact(
        ids["so2"], {"formula_id": "so2-mass-emission"}, list(unit.values())
    )

    assert report.risk_level == RiskLevel.CRITICAL
    assert report.indirect_impacts == []
    assert report.direct_impacts[0].description == (
        "Formula change from appendix-d-so2-mass v1.0.0 to so2-mass-emission v1.0.0 "
        "(40 CFR 75 Appendix D → 40 CFR 75 Appendix F, Equation F-2)"
    )
    assert DOWNSTREAM_VALIDATION not in report.required_validations
    assert "Create rollback plan" in report.recommendations


# ============================================================================
# Scenario 3: Lifecycle → Audit trail → Export
# ============================================================================


def test_golden_configuration_lifecycle(store, unit):
    """
    Golden path: edit, activate and approve heat input, then archive it.
    """
    heat = unit["heat"]
    original_o2 = heat.parameter_mappings["O2"]

    edited = store.update(
        heat,
        {"parameter_mappings": {**heat.parameter_mappings, "O2": "o2_backup_analyzer"}},
        *AUTHOR,
        "Primary O2 analyzer failed linearity check",
    )
    active = store.change_status(edited, CalculationStatus.ACTIVE, *AUTHOR, "Go live")
    approved = store.approve(active, "u-200", "Sam Ortiz", "Meets Appendix F requirements")

    assert heat.parameter_mappings["O2"] == original_o2
    assert [e.action for e in approved.audit.history] == [
        AuditAction.CREATED,
        AuditAction.UPDATED,
        AuditAction.ACTIVATED,
        AuditAction.VALIDATED,
    ]

    mapping_history = get_field_history(approved, "parameter_mappings")
    assert len(mapping_history) == 1
    assert mapping_history[0].old_value["O2"] == {"kind": "external", "name": "o2_analyzer"}
    assert mapping_history[0].new_value["O2"] == {"kind": "external", "name": "o2_backup_analyzer"}

    assert get_field_value_at(approved, "status", BASE_TIME) == "testing"
    assert get_field_value_at(approved, "status", approved.audit.last_modified_at) == "active"

    document = store.export(approved)
    payload = json.loads(document)
    assert payload["configuration"]["id"] == heat.id
    assert payload["audit"]["approved_by_name"] == "Sam Ortiz"

    parsed = store.parse_export(document)
    assert parsed.configuration.status == CalculationStatus.ACTIVE
    assert len(parsed.audit.history) == 4


# ============================================================================
# Scenario 4: Update introduces a cycle → Degraded but total analysis
# ============================================================================


def test_golden_cycle_introduced_by_update(store, unit):
    """
    Golden path: wiring heat input to the quarterly rate closes a loop; the
    graph still builds, validation reports it, and impact analysis terminates.
    """
    ids = {key: config.id for key, config in unit.items()}
    looped_heat = store.update(
        unit["heat"],
        {"parameter_mappings": {"Qh": "stack_flow_monitor", "O2": f"calc:{ids['nox_qtr']}:output"}},
        *AUTHOR,
        "Experimental feedback correction",
    )
    configs = [looped_heat if c.id == ids["heat"] else c for c in unit.values()]

    graph = DependencyGraphBuilder().build(configs)
    assert graph.cycles
    assert sorted(graph.execution_order) == sorted(ids.values())

    result = DependencyGraphAnalyzer().validate(graph)
    assert result.valid is False
    assert all(error.startswith("Circular dependency detected: ") for error in result.errors)

    report = ImpactAnalyzer().analyze_impact(ids["heat"], {"name": "Heat Input v2"}, configs)
    assert {i.id for i in report.indirect_impacts} == {ids["nox_rate"], ids["nox_qtr"]}
    assert report.risk_level == RiskLevel.LOW
