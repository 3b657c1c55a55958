"""
Heights Ledger - API v1 Router
"""
from fastapi import APIRouter

from tradeledger.api.v1.endpoints import trades, portfolio, market

api_router = APIRouter()


# API v1 root endpoint
@api_router.get("/", tags=["API Info"])
async def api_root():
    """API v1 root - returns version info."""
    return {
        "api": "Heights Ledger",
        "version": "v1",
        "status": "operational"
    }


# Include all endpoint routers
api_router.include_router(trades.router, prefix="/trades", tags=["Trades"])
api_router.include_router(portfolio.router, prefix="/portfolio", tags=["Portfolio"])
api_router.include_router(market.router, prefix="/market", tags=["Market Prices"])
