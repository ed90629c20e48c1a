"""
Formula Registry — Read-Only Part 75 Formula Reference Data.

The engine does not evaluate formulas. The registry is consulted for
reference data only, e.g. to cite the regulatory basis of the old and new
formula when an impact analysis covers a formula change.
"""

from typing import Iterable, Optional

import structlog

from calcgraph.models.formula import Formula, FormulaCategory, FormulaParameter, ParameterRange

logger = structlog.get_logger()


def _param(name: str, description: str, units: str, **kwargs) -> FormulaParameter:
    return FormulaParameter(name=name, description=description, units=units, **kwargs)


_STACK_FLOW = _param("Qh", "Stack gas flow rate", "scfh", range=ParameterRange(min=0))
_CONVERSION = _param("K", "Conversion factor", "dimensionless")

STANDARD_FORMULAS = [
    Formula(
        id="heat-input-appendix-f",
        name="Heat Input (Appendix F)",
        expression="Qh * Fd * (20.9 / (20.9 - O2)) * 1e-6",
        input_parameters=[
            _STACK_FLOW,
            _param(
                "Fd",
                "F-factor for fuel type",
                "dimensionless",
                range=ParameterRange(min=1000, max=2000),
                default_value=1040,
            ),
            _param("O2", "Oxygen concentration", "percent", range=ParameterRange(min=0, max=20.9)),
        ],
        output_parameter=_param("HI", "Heat input", "MMBtu"),
        regulatory_basis="40 CFR 75 Appendix F, Section 3.3.6",
        description=(
            "Calculates heat input using flow rate, F-factor, and oxygen "
            "concentration per Appendix F methodology"
        ),
    ),
    Formula(
        id="so2-mass-emission",
        name="SO2 Mass Emission",
        expression="SO2_conc * Qh * K",
        input_parameters=[_param("SO2_conc", "SO2 concentration", "ppm"), _STACK_FLOW, _CONVERSION],
        output_parameter=_param("SO2_mass", "SO2 mass emission rate", "lb/hr"),
        regulatory_basis="40 CFR 75 Appendix F, Equation F-2",
        description="Calculates SO2 mass emission rate from concentration and flow",
    ),
    Formula(
        id="nox-mass-emission",
        name="NOx Mass Emission",
        expression="NOX_conc * Qh * K",
        input_parameters=[_param("NOX_conc", "NOx concentration", "ppm"), _STACK_FLOW, _CONVERSION],
        output_parameter=_param("NOX_mass", "NOx mass emission rate", "lb/hr"),
        regulatory_basis="40 CFR 75 Appendix F, Equation F-2",
        description="Calculates NOx mass emission rate from concentration and flow",
    ),
    Formula(
        id="nox-emission-rate",
        name="NOx Emission Rate",
        expression="NOX_mass / HI",
        input_parameters=[
            _param("NOX_mass", "NOx mass emission", "lb"),
            _param("HI", "Heat input", "MMBtu"),
        ],
        output_parameter=_param("NOX_rate", "NOx emission rate", "lb/MMBtu"),
        regulatory_basis="40 CFR 75.10(d)",
        description="Calculates NOx emission rate in lb/MMBtu",
    ),
    Formula(
        id="co2-mass-emission",
        name="CO2 Mass Emission",
        expression="CO2_conc * Qh * K",
        input_parameters=[_param("CO2_conc", "CO2 concentration", "percent"), _STACK_FLOW, _CONVERSION],
        output_parameter=_param("CO2_mass", "CO2 mass emission rate", "tons/hr"),
        regulatory_basis="40 CFR 75 Appendix F, Equation F-3",
        description="Calculates CO2 mass emission rate from concentration and flow",
    ),
    Formula(
        id="lme-nox-rate-quarterly",
        name="LME NOx Rate (Quarterly)",
        expression="sum_NOX_mass / sum_HI",
        input_parameters=[
            _param("sum_NOX_mass", "Sum of NOx mass for quarter", "lb"),
            _param("sum_HI", "Sum of heat input for quarter", "MMBtu"),
        ],
        output_parameter=_param("NOX_rate_quarterly", "Quarterly average NOx emission rate", "lb/MMBtu"),
        regulatory_basis="40 CFR 75 Appendix E",
        description="Calculates quarterly average NOx rate for Low Mass Emissions methodology",
    ),
    Formula(
        id="appendix-d-so2-mass",
        name="Appendix D SO2 Mass",
        expression="fuel_flow * sulfur_content * K",
        input_parameters=[
            _param("fuel_flow", "Fuel flow rate", "lb"),
            _param("sulfur_content", "Sulfur content of fuel", "percent"),
            _param("K", "Fuel-specific conversion factor", "dimensionless"),
        ],
        output_parameter=_param("SO2_mass_appendix_d", "SO2 mass calculated per Appendix D", "lb"),
        regulatory_basis="40 CFR 75 Appendix D",
        description="Calculates SO2 mass from fuel flow and sulfur content per Appendix D",
    ),
]

STANDARD_CATEGORIES = [
    FormulaCategory(
        id="heat-input",
        name="Heat Input Calculations",
        description="Formulas for calculating heat input using various methodologies",
        formula_ids=["heat-input-appendix-f"],
        regulatory_context="40 CFR 75 Appendix F",
    ),
    FormulaCategory(
        id="mass-emissions",
        name="Mass Emissions",
        description="Mass emission rate calculations for SO2, NOx and CO2",
        formula_ids=["so2-mass-emission", "nox-mass-emission", "co2-mass-emission"],
        regulatory_context="40 CFR 75 Appendix F",
    ),
    FormulaCategory(
        id="emission-rates",
        name="Emission Rates",
        description="Emission rate calculations in lb/MMBtu",
        formula_ids=["nox-emission-rate", "lme-nox-rate-quarterly"],
        regulatory_context="40 CFR 75.10",
    ),
    FormulaCategory(
        id="appendix-d",
        name="Appendix D Calculations",
        description="Fuel sampling based calculations for oil and gas-fired units",
        formula_ids=["appendix-d-so2-mass"],
        regulatory_context="40 CFR 75 Appendix D",
    ),
]


class FormulaRegistry:
    """
    Lookup over a fixed set of formula definitions.

    Example:
        >>> registry = create_standard_registry()
        >>> registry.get_formula("nox-emission-rate").regulatory_basis
        '40 CFR 75.10(d)'
    """

    def __init__(
        self,
        formulas: Iterable[Formula],
        categories: Iterable[FormulaCategory] = (),
        name: str = "Formula Registry",
    ):
        self.name = name
        self.formulas = list(formulas)
        self.categories = list(categories)
        self._by_id = {formula.id: formula for formula in self.formulas}

    def get_formula(self, formula_id: str) -> Optional[Formula]:
        """Return the formula with the given ID, or None."""
        return self._by_id.get(formula_id)

    def get_formulas_by_category(self, category_id: str) -> list[Formula]:
        """Return the formulas in a category; empty for an unknown category."""
        for category in self.categories:
            if category.id == category_id:
                return [self._by_id[fid] for fid in category.formula_ids if fid in self._by_id]
        logger.debug("formula_category_not_found", category_id=category_id)
        return []

    def search(self, query: str) -> list[Formula]:
        """Case-insensitive search over name, description and regulatory basis."""
        needle = query.lower()
        return [
            formula
            for formula in self.formulas
            if needle in formula.name.lower()
            or needle in formula.description.lower()
            or needle in formula.regulatory_basis.lower()
        ]

    def get_formula_versions(self, base_id: str) -> list[Formula]:
        """Return the formula and any ``<base_id>-v<N>`` variants."""
        return [
            formula
            for formula in self.formulas
            if formula.id == base_id or formula.id.startswith(f"{base_id}-v")
        ]

    def __contains__(self, formula_id: str) -> bool:
        return formula_id in self._by_id

    def __len__(self) -> int:
        return len(self.formulas)


def create_standard_registry() -> FormulaRegistry:
    """Registry of the standard ECMPS / Part 75 formulas."""
    return FormulaRegistry(
        STANDARD_FORMULAS,
        STANDARD_CATEGORIES,
        name="ECMPS/Part 75 Standard Formula Registry",
    )
