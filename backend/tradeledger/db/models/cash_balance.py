"""
Heights Ledger - Cash Balance Model

Single-currency wallet per user. Only `available` is spendable; `locked`
holds funds reserved by flows outside the ledger.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, DateTime, UniqueConstraint, CheckConstraint

from tradeledger.db.database import Base


class CashBalance(Base):
    """User cash wallet."""

    __tablename__ = "cash_balances"
    __table_args__ = (
        UniqueConstraint("user_id", "currency", name="uq_cash_balances_user_currency"),
        CheckConstraint("available >= 0", name="ck_cash_balances_available_non_negative"),
        CheckConstraint("locked >= 0", name="ck_cash_balances_locked_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    currency = Column(String(3), nullable=False, default="INR")

    available = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))
    locked = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))
    total_deposited = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))

    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    @property
    def total(self) -> Decimal:
        return self.available + self.locked

    def __repr__(self):
        return f"<CashBalance {self.user_id} {self.currency} available={self.available}>"
