"""
Change impact models.

An ImpactAnalysis forecasts which calculation configurations are affected
by a proposed edit and classifies the overall risk of applying it.
"""

from pydantic import BaseModel, Field, model_validator

from .enums import ImpactSeverity, ImpactType, RiskLevel


class ImpactedCalculation(BaseModel):
    """
    A configuration affected by a proposed change.

    Attributes:
        id: Affected configuration ID
        name: Affected configuration name
        impact_type: How the configuration is affected
        description: Human-readable explanation
        severity: Severity of the impact on this configuration
        affected_programs: Regulatory programs of the affected configuration
        required_actions: Follow-up actions for the configuration owner
    """

    id: str
    name: str
    impact_type: ImpactType
    description: str
    severity: ImpactSeverity
    affected_programs: list[str] = Field(default_factory=list)
    required_actions: list[str] = Field(default_factory=list)


class ImpactAnalysis(BaseModel):
    """
    Risk report for a proposed configuration change.

    Attributes:
        configuration_id: Configuration being changed
        change_description: Summary of the proposed change
        direct_impacts: Impacts on the changed configuration itself
        indirect_impacts: Impacts on transitive downstream dependents
        total_impact_count: len(direct_impacts) + len(indirect_impacts)
        risk_level: Overall risk classification
        recommendations: Advisory actions
        required_validations: Validation checklist before applying the change
    """

    configuration_id: str
    change_description: str
    direct_impacts: list[ImpactedCalculation] = Field(default_factory=list)
    indirect_impacts: list[ImpactedCalculation] = Field(default_factory=list)
    total_impact_count: int = Field(ge=0)
    risk_level: RiskLevel
    recommendations: list[str] = Field(default_factory=list)
    required_validations: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_total_impact_count(self) -> "ImpactAnalysis":
        """Ensure the total matches the impact lists."""
        expected = len(self.direct_impacts) + len(self.indirect_impacts)
        if self.total_impact_count != expected:
            raise ValueError(
                f"total_impact_count {self.total_impact_count} does not match "
                f"{expected} listed impacts"
            )
        return self
