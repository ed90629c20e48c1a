"""
Change Risk Scorer — Deterministic Risk Classification.

Classifies the overall risk of a proposed configuration change and selects
the advisory recommendations and validation checklist that go with it.

Risk classification:
- CRITICAL: the formula reference changes, or any impact has HIGH severity
- HIGH: total impact count > high threshold (default 5)
- MEDIUM: total impact count > medium threshold (default 2)
- LOW: otherwise

Version: change_risk_v1
"""

from typing import Optional

import structlog

from calcgraph.config import get_settings
from calcgraph.models.enums import ImpactSeverity, RiskLevel
from calcgraph.models.impact import ImpactedCalculation

logger = structlog.get_logger()


FORMULA_CHANGE_RECOMMENDATIONS = [
    "Conduct thorough testing with historical data",
    "Review regulatory compliance of new formula",
    "Update documentation and training materials",
]

COORDINATION_RECOMMENDATIONS = [
    "Coordinate with downstream calculation owners",
    "Schedule maintenance window for validation",
]

ESCALATION_RECOMMENDATIONS = [
    "Require approval from regulatory compliance team",
    "Create rollback plan",
]

BASELINE_VALIDATIONS = [
    "Formula syntax validation",
    "Parameter type validation",
    "Unit consistency check",
]

FORMULA_CHANGE_VALIDATIONS = [
    "Regulatory basis verification",
    "Test case execution",
]

DOWNSTREAM_VALIDATION = "Downstream calculation validation"


class ChangeRiskScorer:
    """
    Risk classification and advisory catalogs for configuration changes.

    Attributes:
        high_risk_threshold: Impact count above which risk is HIGH
        medium_risk_threshold: Impact count above which risk is MEDIUM
        coordination_threshold: Impact count above which owners must coordinate
        logger: Structured logger

    Example:
        >>> scorer = ChangeRiskScorer()
        >>> scorer.classify_risk(formula_changed=False, impacts=impacts)
        <RiskLevel.MEDIUM: 'medium'>
    """

    def __init__(
        self,
        high_risk_threshold: Optional[int] = None,
        medium_risk_threshold: Optional[int] = None,
        coordination_threshold: Optional[int] = None,
    ):
        """
        Initialize the scorer. Unset thresholds come from settings.

        Raises:
            ValueError: If the medium threshold exceeds the high threshold
        """
        settings = get_settings()
        self.high_risk_threshold = (
            settings.impact_high_risk_threshold if high_risk_threshold is None else high_risk_threshold
        )
        self.medium_risk_threshold = (
            settings.impact_medium_risk_threshold
            if medium_risk_threshold is None
            else medium_risk_threshold
        )
        self.coordination_threshold = (
            settings.impact_coordination_threshold
            if coordination_threshold is None
            else coordination_threshold
        )

        if self.medium_risk_threshold > self.high_risk_threshold:
            raise ValueError(
                f"medium_risk_threshold ({self.medium_risk_threshold}) must not exceed "
                f"high_risk_threshold ({self.high_risk_threshold})"
            )

        self.logger = structlog.get_logger()

    def classify_risk(
        self, formula_changed: bool, impacts: list[ImpactedCalculation]
    ) -> RiskLevel:
        """
        Classify the overall risk of a change.

        Args:
            formula_changed: Whether the formula reference changes
            impacts: Direct and indirect impacts combined

        Returns:
            RiskLevel
        """
        total = len(impacts)
        has_high_severity = any(i.severity == ImpactSeverity.HIGH for i in impacts)

        if formula_changed or has_high_severity:
            risk = RiskLevel.CRITICAL
        elif total > self.high_risk_threshold:
            risk = RiskLevel.HIGH
        elif total > self.medium_risk_threshold:
            risk = RiskLevel.MEDIUM
        else:
            risk = RiskLevel.LOW

        self.logger.debug(
            "change_risk_classified",
            risk_level=risk.value,
            total_impacts=total,
            formula_changed=formula_changed,
            has_high_severity=has_high_severity,
        )
        return risk

    def build_recommendations(
        self, formula_changed: bool, total_impacts: int, risk_level: RiskLevel
    ) -> list[str]:
        """Select advisory recommendations for a classified change."""
        recommendations: list[str] = []
        if formula_changed:
            recommendations.extend(FORMULA_CHANGE_RECOMMENDATIONS)
        if total_impacts > self.coordination_threshold:
            recommendations.extend(COORDINATION_RECOMMENDATIONS)
        if risk_level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
            recommendations.extend(ESCALATION_RECOMMENDATIONS)
        return recommendations

    def build_required_validations(
        self, formula_changed: bool, has_downstream: bool
    ) -> list[str]:
        """Select the validation checklist for a change."""
        validations = list(BASELINE_VALIDATIONS)
        if formula_changed:
            validations.extend(FORMULA_CHANGE_VALIDATIONS)
        if has_downstream:
            validations.append(DOWNSTREAM_VALIDATION)
        return validations
