"""
Heights Ledger - Trade Repository

Repository for trade database operations.
Handles trade logging and history queries.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc

from tradeledger.db.models.trade import Trade, TradeSide, TradeStatus


class TradeRepository:
    """
    Trade Repository

    Handles all database operations for trades:
    - Append-only creation
    - Lookup by id and idempotency key
    - History retrieval
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== CREATE ====================

    async def create(self, trade: Trade) -> Trade:
        """Create a new trade record."""
        self.db.add(trade)
        await self.db.flush()
        await self.db.refresh(trade)
        return trade

    async def record_failed(self, trade: Trade, reason: str) -> Trade:
        """Append a failed trade record for audit."""
        trade.transition_to(TradeStatus.FAILED, reason=reason)
        self.db.add(trade)
        await self.db.flush()
        return trade

    # ==================== READ ====================

    async def get_by_id(self, user_id: str, trade_id: int) -> Optional[Trade]:
        """Get a trade owned by the user."""
        result = await self.db.execute(
            select(Trade).where(and_(Trade.id == trade_id, Trade.user_id == user_id))
        )
        return result.scalar_one_or_none()

    async def get_by_idempotency_key(self, user_id: str, idempotency_key: str) -> Optional[Trade]:
        result = await self.db.execute(
            select(Trade).where(
                and_(
                    Trade.user_id == user_id,
                    Trade.idempotency_key == idempotency_key,
                )
            )
        )
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: str,
        symbol: Optional[str] = None,
        side: Optional[TradeSide] = None,
        status: Optional[TradeStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Trade]:
        """Get trade history, newest first."""
        conditions = [Trade.user_id == user_id]
        if symbol:
            conditions.append(Trade.symbol == symbol.upper())
        if side:
            conditions.append(Trade.side == side)
        if status:
            conditions.append(Trade.status == status)

        result = await self.db.execute(
            select(Trade)
            .where(and_(*conditions))
            .order_by(desc(Trade.created_at), desc(Trade.id))
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def list_completed_sells(self, user_id: str) -> list[Trade]:
        """Get completed sells in execution order, for realized P&L."""
        result = await self.db.execute(
            select(Trade)
            .where(
                and_(
                    Trade.user_id == user_id,
                    Trade.side == TradeSide.SELL,
                    Trade.status == TradeStatus.COMPLETED,
                )
            )
            .order_by(Trade.executed_at, Trade.id)
        )
        return list(result.scalars().all())

    async def list_completed_since(self, user_id: str, start: Optional[datetime] = None) -> list[Trade]:
        """Get completed trades created at or after `start` (all time when None)."""
        conditions = [Trade.user_id == user_id, Trade.status == TradeStatus.COMPLETED]
        if start is not None:
            conditions.append(Trade.created_at >= start)

        result = await self.db.execute(
            select(Trade).where(and_(*conditions)).order_by(Trade.created_at, Trade.id)
        )
        return list(result.scalars().all())
