"""Unit tests for the read-only formula registry."""

import pytest

from calcgraph.engine.formula_registry import (
    STANDARD_FORMULAS,
    FormulaRegistry,
    create_standard_registry,
)
from calcgraph.models.formula import Formula, FormulaParameter


@pytest.fixture
def registry():
    return create_standard_registry()


class TestFormulaRegistryLookup:
    """Test formula lookup and search."""

    def test_standard_registry_contents(self, registry):
        assert len(registry) == len(STANDARD_FORMULAS) == 7
        assert "heat-input-appendix-f" in registry
        assert "unknown" not in registry

    def test_get_formula(self, registry):
        formula = registry.get_formula("nox-emission-rate")
        assert formula.regulatory_basis == "40 CFR 75.10(d)"
        assert formula.output_parameter.units == "lb/MMBtu"
        assert [p.name for p in formula.input_parameters] == ["NOX_mass", "HI"]

    def test_get_unknown_formula_is_none(self, registry):
        assert registry.get_formula("missing") is None

    def test_heat_input_fd_default(self, registry):
        fd = registry.get_formula("heat-input-appendix-f").input_parameters[1]
        assert fd.default_value == 1040
        assert fd.range.min == 1000
        assert fd.range.max == 2000

    def test_by_category(self, registry):
        ids = [f.id for f in registry.get_formulas_by_category("mass-emissions")]
        assert ids == ["so2-mass-emission", "nox-mass-emission", "co2-mass-emission"]
        assert registry.get_formulas_by_category("missing") == []

    def test_search_is_case_insensitive(self, registry):
        ids = {f.id for f in registry.search("APPENDIX D")}
        assert ids == {"appendix-d-so2-mass"}
        assert registry.search("lme")[0].id == "lme-nox-rate-quarterly"

    def test_formula_versions(self):
        output = FormulaParameter(name="HI", description="Heat input", units="MMBtu")
        base = Formula(
            id="heat", name="Heat", expression="a", output_parameter=output, regulatory_basis="F"
        )
        v2 = base.model_copy(update={"id": "heat-v2", "version": "2.0.0"})
        other = base.model_copy(update={"id": "heating"})
        registry = FormulaRegistry([base, v2, other])
        assert [f.id for f in registry.get_formula_versions("heat")] == ["heat", "heat-v2"]
