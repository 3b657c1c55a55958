"""
Heights Ledger - Trade Endpoints

Trade settlement and trade history.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status

from tradeledger.core.portfolio.service import PortfolioService
from tradeledger.core.trading.settlement import SettlementRequest, SettlementResult, SettlementService
from tradeledger.db.models.trade import TradeSide, TradeStatus
from tradeledger.dependencies import get_current_user_id, get_portfolio_service, get_settlement_service
from tradeledger.schemas.trade import HoldingResponse, SettlementResponse, TradeCreateRequest, TradeResponse

router = APIRouter()


def to_settlement_response(result: SettlementResult) -> SettlementResponse:
    return SettlementResponse(
        holding=HoldingResponse.model_validate(result.holding),
        trade=TradeResponse.model_validate(result.trade),
        realized_pnl=result.realized_pnl,
        fee=result.fee,
        cash_available=result.cash.available,
        holding_closed=result.holding_closed,
        replayed=result.replayed,
    )


# ==================== ENDPOINTS ====================

@router.post("/", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED)
async def settle_trade(
    body: TradeCreateRequest,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    service: SettlementService = Depends(get_settlement_service),
):
    """
    Settle a buy or sell at the supplied execution price.

    A repeated idempotency key returns the original settlement with 200.
    """
    request = SettlementRequest(
        user_id=user_id,
        symbol=body.symbol,
        asset_type=body.asset_type,
        side=body.side,
        quantity=body.quantity,
        price=body.price_at_execution,
        wallet_address=body.wallet_address or "",
        name=body.name,
        details=body.details,
        idempotency_key=body.idempotency_key,
    )
    result = await service.settle(request)
    if result.replayed:
        response.status_code = status.HTTP_200_OK
    return to_settlement_response(result)


@router.get("/", response_model=List[TradeResponse])
async def list_trades(
    symbol: Optional[str] = Query(None, description="Filter by symbol"),
    side: Optional[TradeSide] = Query(None, description="Filter by side (buy/sell)"),
    trade_status: Optional[TradeStatus] = Query(None, alias="status", description="Filter by status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """List the user's trades, newest first."""
    trades = await service.get_trade_history(
        user_id, symbol=symbol, side=side, status=trade_status, limit=limit, offset=offset
    )
    return [TradeResponse.model_validate(t) for t in trades]


@router.get("/{trade_id}", response_model=TradeResponse)
async def get_trade(
    trade_id: int,
    user_id: str = Depends(get_current_user_id),
    service: PortfolioService = Depends(get_portfolio_service),
):
    """Get a single trade."""
    return TradeResponse.model_validate(await service.get_trade(user_id, trade_id))
