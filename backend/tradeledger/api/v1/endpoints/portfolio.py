"""
Heights Ledger - Portfolio Endpoints

Holdings, summary, cash and wallet history, realized P&L, fees,
rebalancing and export.
"""
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from tradeledger.core.portfolio.aggregator import PortfolioSummary
from tradeledger.core.portfolio.service import PortfolioService
from tradeledger.core.trading.fee_report import FeePeriod
from tradeledger.core.trading.settlement import SettlementService
from tradeledger.db.models.wallet_transaction import WalletTransactionType
from tradeledger.dependencies import get_current_user_id, get_portfolio_service, get_settlement_service
from tradeledger.schemas.portfolio import (
    CashBalanceResponse,
    DepositRequest,
    FeeReportResponse,
    HoldingValuationResponse,
    PortfolioSummaryResponse,
    RealizedPnLResponse,
    RebalanceRequest,
    RebalanceSuggestionResponse,
    RiskResponse,
    WalletTransactionResponse,
    WithdrawRequest,
)
from tradeledger.schemas.trade import HoldingResponse

router = APIRouter()


def to_summary_response(summary: PortfolioSummary) -> PortfolioSummaryResponse:
    return PortfolioSummaryResponse(
        total_value=summary.total_value,
        total_invested=summary.total_invested,
        total_pnl=summary.total_pnl,
        total_pnl_percent=summary.total_pnl_percent,
        holdings_count=summary.holdings_count,
        holdings=[
            HoldingValuationResponse(
                **HoldingResponse.model_validate(v.holding).model_dump(),
                allocation_percent=v.allocation_percent,
                volatility_24h=v.volatility_24h,
            )
            for v in summary.holdings
        ],
        best_performer=summary.best_performer,
        worst_performer=summary.worst_performer,
        risk=RiskResponse(
            score=summary.risk.score,
            level=summary.risk.level.value,
            volatility_score=summary.risk.volatility_score,
            concentration_score=summary.risk.concentration_score,
            recommendations=summary.risk.recommendations,
        ),
        cash=CashBalanceResponse.model_validate(summary.cash),
        as_of=summary.as_of,
    )


@router.get("/holdings", response_model=List[HoldingResponse])
async def get_holdings(
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Open holdings valued at the latest prices."""
    holdings = await service.get_holdings(user_id)
    return [HoldingResponse.model_validate(h) for h in holdings]


@router.get("/summary", response_model=PortfolioSummaryResponse)
async def get_portfolio_summary(
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Portfolio totals, allocation, risk score and cash."""
    return to_summary_response(await service.get_portfolio_summary(user_id))


@router.get("/balance", response_model=CashBalanceResponse)
async def get_balance(
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    return CashBalanceResponse.model_validate(await service.get_cash_balance(user_id))


@router.post("/deposit", response_model=CashBalanceResponse)
async def deposit(
    body: DepositRequest,
    user_id: str = Depends(get_current_user_id),
    service: SettlementService = Depends(get_settlement_service),
):
    """Credit the user's cash wallet."""
    return CashBalanceResponse.model_validate(await service.deposit(user_id, body.amount, body.notes))


@router.post("/withdraw", response_model=CashBalanceResponse)
async def withdraw(
    body: WithdrawRequest,
    user_id: str = Depends(get_current_user_id),
    service: SettlementService = Depends(get_settlement_service),
):
    """Debit the user's cash wallet."""
    return CashBalanceResponse.model_validate(await service.withdraw(user_id, body.amount, body.notes))


@router.get("/transactions", response_model=List[WalletTransactionResponse])
async def get_wallet_transactions(
    type: Optional[WalletTransactionType] = Query(None, description="deposit or withdrawal"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Deposit and withdrawal history, newest first."""
    transactions = await service.get_wallet_transactions(user_id, type=type, limit=limit, offset=offset)
    return [WalletTransactionResponse.model_validate(t) for t in transactions]


@router.get("/pnl", response_model=RealizedPnLResponse)
async def get_realized_pnl(
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Realized P&L statistics over completed sells."""
    return RealizedPnLResponse.model_validate(await service.get_realized_pnl(user_id))


@router.get("/fees", response_model=FeeReportResponse)
async def get_fee_report(
    period: FeePeriod = Query(FeePeriod.ALL, description="day, week, month or all"),
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Fees paid on completed buys and sells over the period."""
    return FeeReportResponse.model_validate(await service.get_fee_report(user_id, period))


@router.post("/rebalance", response_model=List[RebalanceSuggestionResponse])
async def get_rebalancing_suggestions(
    body: RebalanceRequest,
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Suggest trades for holdings more than 5 points away from target."""
    suggestions = await service.get_rebalancing_suggestions(user_id, body.targets)
    return [RebalanceSuggestionResponse(**s.to_dict()) for s in suggestions]


@router.get("/export")
async def export_holdings(
    format: Literal["csv", "json"] = Query("csv", description="Export format"),
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Download holdings as CSV or JSON."""
    content = await service.export_holdings(user_id, format)
    media_type = "text/csv" if format == "csv" else "application/json"
    return StreamingResponse(
        iter([content]),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename=portfolio.{format}"},
    )
