"""
Portfolio Risk Score

Advisory 0-100 score blending two measures:
- volatility: allocation-weighted absolute 24h change, doubled and capped at 100
- concentration: Herfindahl index of allocation weights, scaled to 100

The score is the mean of the two. It is never used to validate trades.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable


LOW_RISK_BELOW = Decimal("30")
HIGH_RISK_FROM = Decimal("70")


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


RECOMMENDATIONS = {
    RiskLevel.LOW: [
        "Your portfolio has low risk",
        "Consider adding growth assets for higher returns",
    ],
    RiskLevel.MEDIUM: [
        "Balanced risk profile",
        "Monitor volatility and rebalance periodically",
    ],
    RiskLevel.HIGH: [
        "High risk portfolio detected",
        "Consider reducing concentration in volatile assets",
        "Add stable assets to reduce risk",
    ],
}
EMPTY_PORTFOLIO_RECOMMENDATIONS = ["Start investing to build your portfolio"]


@dataclass(frozen=True)
class RiskInput:
    """One holding's contribution to portfolio risk."""
    symbol: str
    allocation_percent: Decimal
    volatility_24h: Decimal = Decimal("0")


@dataclass
class RiskAssessment:
    """Portfolio risk score."""
    score: Decimal = Decimal("0")
    level: RiskLevel = RiskLevel.LOW
    volatility_score: Decimal = Decimal("0")
    concentration_score: Decimal = Decimal("0")
    recommendations: list[str] = field(default_factory=lambda: list(EMPTY_PORTFOLIO_RECOMMENDATIONS))

    def to_dict(self) -> dict:
        return {
            "score": str(self.score),
            "level": self.level.value,
            "volatility_score": str(self.volatility_score),
            "concentration_score": str(self.concentration_score),
            "recommendations": list(self.recommendations),
        }


def _round(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def risk_level(score: Decimal) -> RiskLevel:
    if score < LOW_RISK_BELOW:
        return RiskLevel.LOW
    if score < HIGH_RISK_FROM:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def calculate_risk_score(positions: Iterable[RiskInput]) -> RiskAssessment:
    """
    Score a portfolio from its allocation and 24h volatility.

    Args:
        positions: Allocation percent (0-100) and 24h change percent per holding

    Returns:
        RiskAssessment; an empty portfolio scores 0 (Low)
    """
    positions = list(positions)
    if not positions:
        return RiskAssessment()

    weighted_volatility = sum(
        (p.allocation_percent / 100 * abs(p.volatility_24h) for p in positions),
        Decimal("0"),
    )
    herfindahl = sum(
        ((p.allocation_percent / 100) ** 2 for p in positions),
        Decimal("0"),
    )

    volatility_score = min(Decimal("100"), weighted_volatility * 2)
    concentration_score = herfindahl * 100
    score = (volatility_score + concentration_score) / 2
    level = risk_level(score)

    return RiskAssessment(
        score=_round(score),
        level=level,
        volatility_score=_round(volatility_score),
        concentration_score=_round(concentration_score),
        recommendations=list(RECOMMENDATIONS[level]),
    )
