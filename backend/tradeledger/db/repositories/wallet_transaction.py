"""
Wallet Transaction Repository
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, desc

from tradeledger.db.models.wallet_transaction import WalletTransaction, WalletTransactionType


class WalletTransactionRepository:
    """Repository for deposit and withdrawal records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, transaction: WalletTransaction) -> WalletTransaction:
        self.db.add(transaction)
        await self.db.flush()
        await self.db.refresh(transaction)
        return transaction

    async def list_for_user(
        self,
        user_id: str,
        type: Optional[WalletTransactionType] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WalletTransaction]:
        """Get wallet history, newest first."""
        conditions = [WalletTransaction.user_id == user_id]
        if type:
            conditions.append(WalletTransaction.type == type)

        result = await self.db.execute(
            select(WalletTransaction)
            .where(and_(*conditions))
            .order_by(desc(WalletTransaction.created_at), desc(WalletTransaction.id))
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def record_failed(self, transaction: WalletTransaction, reason: str) -> WalletTransaction:
        """Append a failed deposit or withdrawal for audit."""
        transaction.fail(reason)
        self.db.add(transaction)
        await self.db.flush()
        return transaction
