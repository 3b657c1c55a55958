"""
Heights Ledger - Trade Schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, Field

from tradeledger.db.models.holding import AssetType
from tradeledger.db.models.trade import TradeSide, TradeStatus


class TradeCreateRequest(BaseModel):
    """Request to settle a trade at a known execution price."""
    symbol: str = Field(..., min_length=1, max_length=32, description="Asset symbol")
    asset_type: AssetType = Field(..., description="crypto, stock, commodity, mutual_fund or bond")
    side: TradeSide = Field(..., description="buy or sell")
    quantity: Decimal = Field(..., gt=0, description="Units to trade")
    price_at_execution: Decimal = Field(..., gt=0, description="Execution price per unit")
    wallet_address: Optional[str] = Field(None, max_length=128, description="On-chain wallet (crypto only)")
    name: Optional[str] = Field(None, max_length=100, description="Display name of the asset")
    details: Optional[dict[str, Any]] = Field(None, description="Asset-type specific fields")
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=128)


class HoldingResponse(BaseModel):
    """Holding valued at its current price."""
    id: Optional[int] = None
    symbol: str
    name: Optional[str] = None
    asset_type: AssetType
    wallet_address: str = ""
    details: dict[str, Any] = {}
    quantity: Decimal
    average_cost: Decimal
    total_invested: Decimal
    current_price: Decimal
    current_value: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_percent: Decimal

    model_config = {"from_attributes": True}


class TradeResponse(BaseModel):
    """Trade record."""
    id: int
    symbol: str
    asset_type: AssetType
    wallet_address: str = ""
    side: TradeSide
    status: TradeStatus
    quantity: Decimal
    price_at_execution: Decimal
    gross_amount: Decimal
    fee: Decimal
    net_amount: Decimal
    realized_pnl: Decimal
    currency: str
    idempotency_key: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    executed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SettlementResponse(BaseModel):
    """Outcome of a settlement."""
    holding: HoldingResponse
    trade: TradeResponse
    realized_pnl: Decimal
    fee: Decimal
    cash_available: Decimal
    holding_closed: bool
    replayed: bool = False
