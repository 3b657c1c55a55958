"""
Heights Ledger - Dependencies
Dependency injection for FastAPI endpoints
"""
from typing import AsyncGenerator

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tradeledger.config import settings
from tradeledger.core.portfolio.service import PortfolioService
from tradeledger.core.security import verify_token
from tradeledger.core.trading.settlement import SettlementService
from tradeledger.market.price_cache import PriceCache
from tradeledger.utils.exceptions import AuthenticationError


# Tokens are issued by the identity service; tokenUrl is only for the docs UI
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login",
    auto_error=False,
)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Read-only database session dependency.

    Yields:
        AsyncSession: Database session
    """
    async with request.app.state.session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user_id(token: str | None = Depends(oauth2_scheme)) -> str:
    """
    Get the authenticated user id from the bearer token.

    Raises:
        AuthenticationError: If the token is missing or invalid
    """
    if not token:
        raise AuthenticationError("Not authenticated")
    user_id = verify_token(token, token_type="access")
    if user_id is None:
        raise AuthenticationError()
    return user_id


def get_price_cache(request: Request) -> PriceCache:
    return request.app.state.price_cache


def get_settlement_service(request: Request) -> SettlementService:
    return request.app.state.settlement_service


async def get_portfolio_service(
    db: AsyncSession = Depends(get_db),
    price_cache: PriceCache = Depends(get_price_cache),
) -> PortfolioService:
    return PortfolioService(db, price_cache, currency=settings.BASE_CURRENCY)
