"""
Portfolio Aggregator

Derives portfolio totals, allocation and risk from a user's holdings.
Prices come from the caller; staleness is the caller's concern.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional, Sequence

from tradeledger.core.portfolio.risk import RiskAssessment, RiskInput, calculate_risk_score
from tradeledger.core.trading.snapshots import CashSnapshot, HoldingSnapshot
from tradeledger.market.price_cache import Quote


ZERO = Decimal("0")


def _pct(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass
class HoldingValuation:
    """Holding valued at the latest price."""
    holding: HoldingSnapshot
    allocation_percent: Decimal = ZERO
    volatility_24h: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            **self.holding.to_dict(),
            "allocation_percent": str(self.allocation_percent),
            "volatility_24h": str(self.volatility_24h),
        }


@dataclass
class PortfolioSummary:
    """Aggregates over all open holdings of a user."""
    total_value: Decimal = ZERO
    total_invested: Decimal = ZERO
    total_pnl: Decimal = ZERO
    total_pnl_percent: Decimal = ZERO
    holdings_count: int = 0
    holdings: list[HoldingValuation] = field(default_factory=list)
    best_performer: Optional[str] = None
    worst_performer: Optional[str] = None
    risk: RiskAssessment = field(default_factory=RiskAssessment)
    cash: Optional[CashSnapshot] = None
    as_of: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "total_value": str(self.total_value),
            "total_invested": str(self.total_invested),
            "total_pnl": str(self.total_pnl),
            "total_pnl_percent": str(self.total_pnl_percent),
            "holdings_count": self.holdings_count,
            "holdings": [h.to_dict() for h in self.holdings],
            "best_performer": self.best_performer,
            "worst_performer": self.worst_performer,
            "risk": self.risk.to_dict(),
            "cash_available": str(self.cash.available) if self.cash else None,
            "as_of": self.as_of.isoformat(),
        }


class PortfolioAggregator:
    """Pure aggregation; performs no I/O."""

    def refresh_prices(
        self,
        holdings: Sequence[HoldingSnapshot],
        prices: Mapping[str, Quote],
    ) -> list[HoldingSnapshot]:
        """Replace current_price from the price map, keeping the stored price when no quote exists."""
        refreshed = []
        for holding in holdings:
            quote = prices.get(holding.symbol)
            refreshed.append(holding.with_price(quote.price) if quote else holding)
        return refreshed

    def summarize(
        self,
        holdings: Sequence[HoldingSnapshot],
        prices: Optional[Mapping[str, Quote]] = None,
    ) -> PortfolioSummary:
        """
        Build the portfolio summary.

        Args:
            holdings: The user's holdings; closed ones are skipped
            prices: Latest quotes by symbol

        Returns:
            PortfolioSummary with totals, per-holding allocation and risk
        """
        prices = prices or {}
        open_holdings = [h for h in holdings if not h.is_closed]
        open_holdings = self.refresh_prices(open_holdings, prices)

        total_value = sum((h.current_value for h in open_holdings), ZERO)
        total_invested = sum((h.total_invested for h in open_holdings), ZERO)
        total_pnl = total_value - total_invested
        total_pnl_percent = _pct(total_pnl / total_invested * 100) if total_invested != 0 else ZERO

        valuations = []
        for holding in open_holdings:
            allocation = holding.current_value / total_value * 100 if total_value != 0 else ZERO
            quote = prices.get(holding.symbol)
            volatility = quote.change_24h_percent if quote and quote.change_24h_percent is not None else ZERO
            valuations.append(HoldingValuation(
                holding=holding,
                allocation_percent=_pct(allocation),
                volatility_24h=volatility,
            ))

        risk = calculate_risk_score(
            RiskInput(
                symbol=v.holding.symbol,
                allocation_percent=v.allocation_percent,
                volatility_24h=v.volatility_24h,
            )
            for v in valuations
        )

        best = worst = None
        if open_holdings:
            ranked = sorted(open_holdings, key=lambda h: h.unrealized_pnl_percent)
            worst = ranked[0].symbol
            best = ranked[-1].symbol

        return PortfolioSummary(
            total_value=total_value,
            total_invested=total_invested,
            total_pnl=total_pnl,
            total_pnl_percent=total_pnl_percent,
            holdings_count=len(open_holdings),
            holdings=valuations,
            best_performer=best,
            worst_performer=worst,
            risk=risk,
        )

    def with_cash(self, summary: PortfolioSummary, cash: CashSnapshot) -> PortfolioSummary:
        return replace(summary, cash=cash)
