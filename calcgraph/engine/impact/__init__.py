"""
Change Impact Assessment Engine.

Components:
    ImpactAnalyzer: Direct/indirect impact discovery over the dependency graph
    ChangeRiskScorer: Risk classification, recommendations and validations

Example:
    >>> from calcgraph.engine.impact import ImpactAnalyzer
    >>> report = ImpactAnalyzer().analyze_impact(target_id, {"frequency": "daily"}, configs)
    >>> print(f"{report.total_impact_count} calculations affected ({report.risk_level.value})")
"""

from .analyzer import ImpactAnalyzer
from .risk import ChangeRiskScorer

__all__ = [
    "ChangeRiskScorer",
    "ImpactAnalyzer",
]
