"""
Formula reference data models.

Formulas are read-only reference data consumed by the engine (for example to
cite regulatory bases in impact reports); the engine never evaluates them.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field

from .enums import ParameterType


class ParameterRange(BaseModel):
    """Valid numeric range of a formula parameter."""

    min: Optional[float] = None
    max: Optional[float] = None


class FormulaParameter(BaseModel):
    """Input or output parameter of a formula."""

    name: str
    description: str
    type: ParameterType = ParameterType.NUMBER
    units: str = "dimensionless"
    required: bool = True
    range: Optional[ParameterRange] = None
    default_value: Optional[Union[bool, int, float, str]] = None


class Formula(BaseModel):
    """
    A formula definition from the registry.

    Attributes:
        id: Formula identifier referenced by configurations
        name: Display name
        version: Formula version
        expression: Formula expression (opaque to the engine)
        input_parameters: Parameter slots a configuration must map
        output_parameter: Produced value
        regulatory_basis: Regulatory citation, e.g. "40 CFR 75 Appendix F"
        description: Usage notes
    """

    id: str
    name: str
    version: str = "1.0.0"
    expression: str
    input_parameters: list[FormulaParameter] = Field(default_factory=list)
    output_parameter: FormulaParameter
    regulatory_basis: str
    description: str = ""


class FormulaCategory(BaseModel):
    """Grouping of related formulas."""

    id: str
    name: str
    description: str = ""
    formula_ids: list[str] = Field(default_factory=list)
    regulatory_context: Optional[str] = None
