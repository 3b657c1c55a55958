"""
Cash Balance Repository
"""
from decimal import Decimal
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_

from tradeledger.db.models.cash_balance import CashBalance


class CashBalanceRepository:
    """Repository for CashBalance database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(
        self,
        user_id: str,
        currency: str,
        for_update: bool = False,
    ) -> Optional[CashBalance]:
        """Get the wallet for a user and currency, optionally row-locked."""
        query = select(CashBalance).where(
            and_(
                CashBalance.user_id == user_id,
                CashBalance.currency == currency,
            )
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        user_id: str,
        currency: str,
        for_update: bool = False,
    ) -> CashBalance:
        """Get the wallet, creating an empty one in the current transaction if missing."""
        balance = await self.get(user_id, currency, for_update=for_update)
        if balance is None:
            balance = CashBalance(
                user_id=user_id,
                currency=currency,
                available=Decimal("0"),
                locked=Decimal("0"),
                total_deposited=Decimal("0"),
            )
            self.db.add(balance)
        return balance
