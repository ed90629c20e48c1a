"""
Pytest configuration and shared fixtures for the calcgraph test suite.

Provides model factories, a deterministic clock, and reusable working sets
(linear chains, diamonds, cycles) across unit, property and golden tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from calcgraph.config import get_settings
from calcgraph.engine.configuration_store import ConfigurationStore
from calcgraph.engine.graph.analyzer import DependencyGraphAnalyzer
from calcgraph.engine.graph.builder import DependencyGraphBuilder
from calcgraph.models.configuration import (
    AuditLogEntry,
    AuditTrail,
    CalculationConfiguration,
    ConfigurationInput,
)
from calcgraph.models.enums import AuditAction, CalculationFrequency, CalculationStatus

BASE_TIME = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock advancing one minute per reading."""

    def __init__(self, start: datetime = BASE_TIME, step: timedelta = timedelta(minutes=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + self.step
        return now


def ref(config_id: str) -> str:
    """Encode a reference to another configuration's output."""
    return f"calc:{config_id}:output"


# ---------------------------------------------------------------------------
# Pydantic model factories
# ---------------------------------------------------------------------------


def make_configuration_input(
    name: str = "Unit 1 NOx Rate",
    formula_id: str = "nox-emission-rate",
    parameter_mappings: Optional[dict] = None,
    programs: Optional[list[str]] = None,
    **overrides,
) -> ConfigurationInput:
    """Factory function for creating test ConfigurationInput objects."""
    defaults = dict(
        name=name,
        formula_id=formula_id,
        formula_version="1.0.0",
        frequency=CalculationFrequency.HOURLY,
        parameter_mappings=parameter_mappings if parameter_mappings is not None else {
            "NOX_mass": "nox_cems_channel",
            "HI": "heat_input_channel",
        },
        status=CalculationStatus.TESTING,
        location_id="unit-1",
        programs=programs if programs is not None else ["ARP"],
        satisfies_requirements=["req-75-10"],
        validation_rule_ids=["nox-rate-hi-nonzero"],
        metadata={"description": "NOx emission rate for unit 1"},
    )
    defaults.update(overrides)
    return ConfigurationInput(**defaults)


def make_configuration(
    config_id: str,
    parameter_mappings: Optional[dict] = None,
    name: Optional[str] = None,
    formula_id: str = "nox-emission-rate",
    programs: Optional[list[str]] = None,
    status: CalculationStatus = CalculationStatus.ACTIVE,
    **overrides,
) -> CalculationConfiguration:
    """Factory function for creating test CalculationConfiguration objects with a fixed ID."""
    entry = AuditLogEntry(
        timestamp=BASE_TIME,
        action=AuditAction.CREATED,
        author_id="u-factory",
        author_name="Factory",
        reason="Initial configuration creation",
    )
    defaults = dict(
        id=config_id,
        name=name or f"Calc {config_id}",
        formula_id=formula_id,
        formula_version="1.0.0",
        frequency=CalculationFrequency.HOURLY,
        parameter_mappings=parameter_mappings or {},
        status=status,
        programs=programs if programs is not None else ["ARP"],
        audit=AuditTrail(
            created_at=BASE_TIME,
            created_by="u-factory",
            created_by_name="Factory",
            last_modified_at=BASE_TIME,
            last_modified_by="u-factory",
            last_modified_by_name="Factory",
            history=[entry],
        ),
    )
    defaults.update(overrides)
    return CalculationConfiguration(**defaults)


def make_chain(*config_ids: str) -> list[CalculationConfiguration]:
    """Linear chain: each configuration consumes the previous one's output."""
    configs = []
    previous = None
    for config_id in config_ids:
        mappings = {"input": ref(previous)} if previous else {"input": "stack_flow_monitor"}
        configs.append(make_configuration(config_id, mappings))
        previous = config_id
    return configs


def make_diamond() -> list[CalculationConfiguration]:
    """A -> B, A -> C, B -> D, C -> D."""
    return [
        make_configuration("A", {"flow": "stack_flow_monitor"}),
        make_configuration("B", {"x": ref("A")}),
        make_configuration("C", {"x": ref("A")}),
        make_configuration("D", {"left": ref("B"), "right": ref("C")}),
    ]


def make_cycle() -> list[CalculationConfiguration]:
    """A -> B -> C -> A."""
    return [
        make_configuration("A", {"x": ref("C")}),
        make_configuration("B", {"x": ref("A")}),
        make_configuration("C", {"x": ref("B")}),
    ]


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Isolate settings between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store(clock):
    return ConfigurationStore(clock=clock)


@pytest.fixture
def builder():
    return DependencyGraphBuilder()


@pytest.fixture
def analyzer():
    return DependencyGraphAnalyzer()


@pytest.fixture
def chain_configs():
    return make_chain("A", "B", "C")


@pytest.fixture
def chain_graph(builder, chain_configs):
    return builder.build(chain_configs)
