"""
Heights Ledger - Market Price Schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class QuoteIn(BaseModel):
    """Externally supplied price."""
    symbol: str = Field(..., min_length=1, max_length=32)
    price: Decimal = Field(..., gt=0)
    change_24h_percent: Optional[Decimal] = Field(None, description="24h change in percent")


class PriceUpdateRequest(BaseModel):
    quotes: list[QuoteIn] = Field(..., min_length=1, max_length=1000)


class QuoteResponse(BaseModel):
    symbol: str
    price: Decimal
    change_24h_percent: Optional[Decimal] = None
    timestamp: datetime

    model_config = {"from_attributes": True}


class PriceUpdateResponse(BaseModel):
    updated: int
    cache_size: int
