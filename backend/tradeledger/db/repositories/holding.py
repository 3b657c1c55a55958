"""
Holding Repository

Database operations for holdings. Methods never commit; the settlement
unit of work owns the transaction.
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_

from tradeledger.db.models.holding import Holding, AssetType


class HoldingRepository:
    """
    Repository for Holding database operations.

    For ledger mutations, go through SettlementService instead.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(
        self,
        user_id: str,
        symbol: str,
        asset_type: AssetType,
        wallet_address: str = "",
        for_update: bool = False,
    ) -> Optional[Holding]:
        """Get a holding by its identity key, optionally row-locked."""
        query = select(Holding).where(
            and_(
                Holding.user_id == user_id,
                Holding.symbol == symbol.upper(),
                Holding.asset_type == asset_type,
                Holding.wallet_address == wallet_address,
            )
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> list[Holding]:
        """Get all open holdings for a user."""
        result = await self.db.execute(
            select(Holding)
            .where(and_(Holding.user_id == user_id, Holding.quantity > 0))
            .order_by(Holding.symbol, Holding.asset_type)
        )
        return list(result.scalars().all())

    def add(self, holding: Holding) -> Holding:
        self.db.add(holding)
        return holding

    async def delete(self, holding: Holding) -> None:
        await self.db.delete(holding)
