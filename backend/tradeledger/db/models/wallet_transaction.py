"""
Heights Ledger - Wallet Transaction Model

Append-only record of cash moving into or out of a wallet. Together with
completed trades these rows reproduce the cash balance.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Index, Enum as SQLEnum
import enum

from tradeledger.db.database import Base


class WalletTransactionType(str, enum.Enum):
    """Direction of a wallet movement."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class WalletTransactionStatus(str, enum.Enum):
    """Wallet transaction status."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class WalletTransaction(Base):
    """Deposit or withdrawal record."""

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        Index("ix_wallet_transactions_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False)

    type = Column(SQLEnum(WalletTransactionType), nullable=False)
    status = Column(
        SQLEnum(WalletTransactionStatus), nullable=False, default=WalletTransactionStatus.PENDING
    )
    amount = Column(Numeric(28, 8), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")

    # Wallet available cash right after the movement (completed rows only)
    balance_after = Column(Numeric(28, 8), nullable=True)

    notes = Column(String(500), nullable=True)
    failure_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    def complete(self, balance_after: Decimal) -> None:
        self.status = WalletTransactionStatus.COMPLETED
        self.balance_after = balance_after
        self.completed_at = datetime.utcnow()

    def fail(self, reason: str) -> None:
        self.status = WalletTransactionStatus.FAILED
        self.failure_reason = reason[:500]

    def __repr__(self):
        return f"<WalletTransaction {self.type.value} {self.amount} status={self.status.value}>"
