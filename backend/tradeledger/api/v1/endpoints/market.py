"""
Heights Ledger - Market Price Endpoints

Intake for externally fetched prices. The ledger does not poll any
market-data source itself.
"""
from fastapi import APIRouter, Depends

from tradeledger.dependencies import get_current_user_id, get_price_cache
from tradeledger.market.price_cache import PriceCache, Quote
from tradeledger.schemas.market import PriceUpdateRequest, PriceUpdateResponse, QuoteResponse
from tradeledger.utils.exceptions import NotFoundError

router = APIRouter()


@router.put("/prices", response_model=PriceUpdateResponse)
async def update_prices(
    body: PriceUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    cache: PriceCache = Depends(get_price_cache),
):
    """Push latest quotes into the price cache."""
    updated = cache.put_many(
        Quote(symbol=q.symbol.upper(), price=q.price, change_24h_percent=q.change_24h_percent)
        for q in body.quotes
    )
    return PriceUpdateResponse(updated=updated, cache_size=len(cache))


@router.get("/prices/{symbol}", response_model=QuoteResponse)
async def get_price(
    symbol: str,
    user_id: str = Depends(get_current_user_id),
    cache: PriceCache = Depends(get_price_cache),
):
    quote = cache.get(symbol)
    if quote is None:
        raise NotFoundError(f"No fresh price for {symbol.upper()}")
    return QuoteResponse.model_validate(quote)


@router.get("/cache/stats")
async def get_cache_stats(
    user_id: str = Depends(get_current_user_id),
    cache: PriceCache = Depends(get_price_cache),
):
    return cache.get_stats()
