"""
Portfolio Module

Read-side portfolio logic:
- Aggregation of holdings into totals and allocation
- Advisory risk score
- Rebalancing suggestions
- Portfolio query service
"""
from tradeledger.core.portfolio.aggregator import (
    HoldingValuation,
    PortfolioAggregator,
    PortfolioSummary,
)
from tradeledger.core.portfolio.risk import (
    RiskAssessment,
    RiskInput,
    RiskLevel,
    calculate_risk_score,
)
from tradeledger.core.portfolio.rebalancing import (
    RebalanceSuggestion,
    generate_rebalancing_suggestions,
)
from tradeledger.core.portfolio.service import PortfolioService

__all__ = [
    "HoldingValuation",
    "PortfolioAggregator",
    "PortfolioSummary",
    "RiskAssessment",
    "RiskInput",
    "RiskLevel",
    "calculate_risk_score",
    "RebalanceSuggestion",
    "generate_rebalancing_suggestions",
    "PortfolioService",
]
