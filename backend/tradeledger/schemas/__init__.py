"""
Heights Ledger - Pydantic Schemas
"""
from tradeledger.schemas.trade import (
    TradeCreateRequest,
    HoldingResponse,
    TradeResponse,
    SettlementResponse,
)
from tradeledger.schemas.portfolio import (
    CashBalanceResponse,
    DepositRequest,
    HoldingValuationResponse,
    RiskResponse,
    PortfolioSummaryResponse,
    RealizedPnLResponse,
    RebalanceRequest,
    RebalanceSuggestionResponse,
)
from tradeledger.schemas.market import (
    QuoteIn,
    PriceUpdateRequest,
    QuoteResponse,
    PriceUpdateResponse,
)

__all__ = [
    # Trade schemas
    "TradeCreateRequest",
    "HoldingResponse",
    "TradeResponse",
    "SettlementResponse",
    # Portfolio schemas
    "CashBalanceResponse",
    "DepositRequest",
    "HoldingValuationResponse",
    "RiskResponse",
    "PortfolioSummaryResponse",
    "RealizedPnLResponse",
    "RebalanceRequest",
    "RebalanceSuggestionResponse",
    # Market schemas
    "QuoteIn",
    "PriceUpdateRequest",
    "QuoteResponse",
    "PriceUpdateResponse",
]
