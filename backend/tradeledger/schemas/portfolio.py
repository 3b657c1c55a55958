"""
Heights Ledger - Portfolio Schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from tradeledger.core.trading.fee_report import FeePeriod
from tradeledger.db.models.wallet_transaction import WalletTransactionStatus, WalletTransactionType
from tradeledger.schemas.trade import HoldingResponse


class CashBalanceResponse(BaseModel):
    """Wallet balance."""
    currency: str
    available: Decimal
    locked: Decimal
    total: Decimal
    total_deposited: Decimal

    model_config = {"from_attributes": True}


class DepositRequest(BaseModel):
    """Request to fund the wallet."""
    amount: Decimal = Field(..., gt=0, description="Amount to credit")
    notes: Optional[str] = Field(None, max_length=500)


class WithdrawRequest(BaseModel):
    """Request to take cash out of the wallet."""
    amount: Decimal = Field(..., gt=0, description="Amount to debit")
    notes: Optional[str] = Field(None, max_length=500)


class WalletTransactionResponse(BaseModel):
    """Deposit or withdrawal record."""
    id: int
    type: WalletTransactionType
    status: WalletTransactionStatus
    amount: Decimal
    currency: str
    balance_after: Optional[Decimal] = None
    notes: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HoldingValuationResponse(HoldingResponse):
    """Holding with its share of the portfolio."""
    allocation_percent: Decimal
    volatility_24h: Decimal


class RiskResponse(BaseModel):
    score: Decimal
    level: str
    volatility_score: Decimal
    concentration_score: Decimal
    recommendations: list[str]


class PortfolioSummaryResponse(BaseModel):
    """Portfolio totals, allocation and risk."""
    total_value: Decimal
    total_invested: Decimal
    total_pnl: Decimal
    total_pnl_percent: Decimal
    holdings_count: int
    holdings: list[HoldingValuationResponse]
    best_performer: Optional[str] = None
    worst_performer: Optional[str] = None
    risk: RiskResponse
    cash: CashBalanceResponse
    as_of: datetime


class RealizedPnLResponse(BaseModel):
    """Realized P&L statistics over completed sells."""
    total: Decimal
    gross_profit: Decimal
    gross_loss: Decimal
    total_fees: Decimal
    trade_count: int
    winning_trades: int
    losing_trades: int
    win_rate: Decimal
    avg_win: Decimal
    avg_loss: Decimal
    profit_factor: Optional[Decimal] = None
    largest_win: Decimal
    largest_loss: Decimal

    model_config = {"from_attributes": True}


class RebalanceRequest(BaseModel):
    """Target allocation percentages by symbol."""
    targets: dict[str, Decimal] = Field(..., min_length=1)


class RebalanceSuggestionResponse(BaseModel):
    symbol: str
    action: str
    amount: Decimal
    current_allocation: Decimal
    target_allocation: Decimal
    reason: str


class FeeReportResponse(BaseModel):
    """Fees paid on completed trades over a period."""
    period: FeePeriod
    start: Optional[datetime] = None
    total_fees: Decimal
    fees_by_side: dict[str, Decimal]
    fees_by_asset: dict[str, Decimal]
    trade_count: int
    average_fee_per_trade: Decimal

    model_config = {"from_attributes": True}
