"""
Portfolio Service

Read side of the ledger: holdings, summary, cash, wallet and trade history,
realized P&L, fee report, rebalancing and export. Never mutates ledger state.
"""
import csv
import io
import json
from decimal import Decimal
from typing import Mapping, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from tradeledger.core.portfolio.aggregator import PortfolioAggregator, PortfolioSummary
from tradeledger.core.portfolio.rebalancing import RebalanceSuggestion, generate_rebalancing_suggestions
from tradeledger.core.trading.fee_report import FeePeriod, FeeReport, calculate_fee_report, period_start
from tradeledger.core.trading.pnl import RealizedPnL, calculate_realized_pnl
from tradeledger.core.trading.snapshots import (
    CashSnapshot, HoldingSnapshot, TradeRecord, WalletTransactionRecord,
)
from tradeledger.db.models.trade import TradeSide, TradeStatus
from tradeledger.db.models.wallet_transaction import WalletTransactionType
from tradeledger.db.repositories.cash_balance import CashBalanceRepository
from tradeledger.db.repositories.holding import HoldingRepository
from tradeledger.db.repositories.trade import TradeRepository
from tradeledger.db.repositories.wallet_transaction import WalletTransactionRepository
from tradeledger.market.price_cache import PriceCache
from tradeledger.utils.exceptions import InvalidInputError, NotFoundError


EXPORT_HEADERS = [
    "Symbol", "Name", "Asset Type", "Quantity", "Avg Buy Price", "Current Price",
    "Value", "P&L", "P&L %", "Allocation %",
]


class PortfolioService:
    """
    Service for portfolio queries.

    Responsible for:
    - Loading holdings and valuing them at cached prices
    - Portfolio summary with risk
    - Trade and wallet history, realized P&L and fees
    - Rebalancing suggestions and export
    """

    def __init__(
        self,
        db: AsyncSession,
        price_cache: PriceCache,
        currency: str = "INR",
        aggregator: Optional[PortfolioAggregator] = None,
    ):
        self.db = db
        self.price_cache = price_cache
        self.currency = currency
        self.aggregator = aggregator or PortfolioAggregator()
        self.holding_repo = HoldingRepository(db)
        self.trade_repo = TradeRepository(db)
        self.cash_repo = CashBalanceRepository(db)
        self.wallet_repo = WalletTransactionRepository(db)

    # ==================== HOLDINGS ====================

    async def get_holdings(self, user_id: str) -> list[HoldingSnapshot]:
        """Open holdings valued at the latest cached prices."""
        holdings = [HoldingSnapshot.from_model(h) for h in await self.holding_repo.list_for_user(user_id)]
        prices = self.price_cache.get_many(h.symbol for h in holdings)
        return self.aggregator.refresh_prices(holdings, prices)

    async def get_portfolio_summary(self, user_id: str) -> PortfolioSummary:
        holdings = [HoldingSnapshot.from_model(h) for h in await self.holding_repo.list_for_user(user_id)]
        prices = self.price_cache.get_many(h.symbol for h in holdings)
        missing = sorted({h.symbol for h in holdings} - set(prices))
        if missing:
            logger.debug(f"No fresh quote for {missing}; valuing at last settlement price")

        summary = self.aggregator.summarize(holdings, prices)
        return self.aggregator.with_cash(summary, await self.get_cash_balance(user_id))

    async def get_cash_balance(self, user_id: str) -> CashSnapshot:
        balance = await self.cash_repo.get(user_id, self.currency)
        if balance is None:
            return CashSnapshot.empty(user_id, self.currency)
        return CashSnapshot.from_model(balance)

    # ==================== TRADES ====================

    async def get_trade_history(
        self,
        user_id: str,
        symbol: Optional[str] = None,
        side: Optional[TradeSide] = None,
        status: Optional[TradeStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[TradeRecord]:
        trades = await self.trade_repo.list_for_user(
            user_id, symbol=symbol, side=side, status=status, limit=limit, offset=offset
        )
        return [TradeRecord.from_model(t) for t in trades]

    async def get_trade(self, user_id: str, trade_id: int) -> TradeRecord:
        trade = await self.trade_repo.get_by_id(user_id, trade_id)
        if trade is None:
            raise NotFoundError(f"Trade {trade_id} not found")
        return TradeRecord.from_model(trade)

    async def get_realized_pnl(self, user_id: str) -> RealizedPnL:
        sells = await self.trade_repo.list_completed_sells(user_id)
        return calculate_realized_pnl(TradeRecord.from_model(t) for t in sells)

    async def get_fee_report(self, user_id: str, period: FeePeriod | str = FeePeriod.ALL) -> FeeReport:
        """
        Fees paid on completed buys and sells since the start of the period.

        Raises:
            InvalidInputError: Unknown period
        """
        start = period_start(period)
        trades = await self.trade_repo.list_completed_since(user_id, start)
        return calculate_fee_report((TradeRecord.from_model(t) for t in trades), period, start)

    # ==================== WALLET ====================

    async def get_wallet_transactions(
        self,
        user_id: str,
        type: Optional[WalletTransactionType] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WalletTransactionRecord]:
        transactions = await self.wallet_repo.list_for_user(user_id, type=type, limit=limit, offset=offset)
        return [WalletTransactionRecord.from_model(t) for t in transactions]

    # ==================== ANALYTICS ====================

    async def get_rebalancing_suggestions(
        self,
        user_id: str,
        targets: Mapping[str, Decimal],
    ) -> list[RebalanceSuggestion]:
        summary = await self.get_portfolio_summary(user_id)
        current = {}
        for valuation in summary.holdings:
            symbol = valuation.holding.symbol
            current[symbol] = current.get(symbol, Decimal("0")) + valuation.allocation_percent
        return generate_rebalancing_suggestions(current, targets, summary.total_value)

    async def export_holdings(self, user_id: str, fmt: str = "csv") -> str:
        """
        Export holdings as CSV or JSON.

        Raises:
            InvalidInputError: Unsupported format
        """
        fmt = fmt.lower()
        if fmt not in ("csv", "json"):
            raise InvalidInputError(f"Unsupported export format: {fmt}")

        summary = await self.get_portfolio_summary(user_id)
        if fmt == "json":
            return json.dumps(summary.to_dict(), indent=2)

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(EXPORT_HEADERS)
        for valuation in summary.holdings:
            h = valuation.holding
            writer.writerow([
                h.symbol,
                h.name or "",
                h.asset_type.value,
                h.quantity,
                h.average_cost,
                h.current_price,
                h.current_value,
                h.unrealized_pnl,
                round(h.unrealized_pnl_percent, 2),
                valuation.allocation_percent,
            ])
        return buffer.getvalue()
