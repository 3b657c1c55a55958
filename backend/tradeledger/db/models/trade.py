"""
Heights Ledger - Trade Model

Trades are append-only settlement records. Status moves pending -> completed
or pending -> failed; once completed a row is never updated or deleted, and
corrections are booked as new offsetting trades.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Index, UniqueConstraint, event, inspect,
    Enum as SQLEnum,
)
import enum

from tradeledger.db.database import Base
from tradeledger.db.models.holding import AssetType
from tradeledger.utils.exceptions import InvariantViolationError


class TradeSide(str, enum.Enum):
    """Trade side."""
    BUY = "buy"
    SELL = "sell"


class TradeStatus(str, enum.Enum):
    """Trade status."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


ALLOWED_TRANSITIONS = {
    TradeStatus.PENDING: {TradeStatus.COMPLETED, TradeStatus.FAILED},
    TradeStatus.COMPLETED: set(),
    TradeStatus.FAILED: set(),
}


class Trade(Base):
    """Trade settlement record."""

    __tablename__ = "trades"
    __table_args__ = (
        Index("ix_trades_user_created", "user_id", "created_at"),
        UniqueConstraint("user_id", "idempotency_key", name="uq_trades_user_idempotency_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False)

    # Asset identity
    symbol = Column(String(32), nullable=False, index=True)
    asset_type = Column(SQLEnum(AssetType), nullable=False)
    wallet_address = Column(String(128), nullable=False, default="")

    # Trade details
    side = Column(SQLEnum(TradeSide), nullable=False)
    status = Column(SQLEnum(TradeStatus), nullable=False, default=TradeStatus.PENDING)
    quantity = Column(Numeric(28, 8), nullable=False)
    price_at_execution = Column(Numeric(28, 8), nullable=False)

    # Financials
    gross_amount = Column(Numeric(28, 8), nullable=False)
    fee = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))
    net_amount = Column(Numeric(28, 8), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")

    # P&L (sells only; zero for buys)
    realized_pnl = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))

    idempotency_key = Column(String(128), nullable=True)
    failure_reason = Column(String(500), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    executed_at = Column(DateTime, nullable=True)

    def transition_to(self, new_status: TradeStatus, reason: str | None = None) -> None:
        """Move the trade along the status state machine."""
        current = self.status or TradeStatus.PENDING
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvariantViolationError(
                f"Illegal trade status transition {current.value} -> {new_status.value}"
            )
        self.status = new_status
        if new_status == TradeStatus.COMPLETED:
            self.executed_at = datetime.utcnow()
        elif reason:
            self.failure_reason = reason[:500]

    def __repr__(self):
        return f"<Trade {self.side.value} {self.symbol} qty={self.quantity} status={self.status.value}>"


def _persisted_status(target: Trade) -> TradeStatus | None:
    history = inspect(target).attrs.status.history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return None


@event.listens_for(Trade, "before_update")
def _reject_completed_update(mapper, connection, target):
    if _persisted_status(target) != TradeStatus.COMPLETED:
        return
    state = inspect(target)
    if any(state.attrs[prop.key].history.has_changes() for prop in mapper.column_attrs):
        raise InvariantViolationError(f"Completed trade {target.id} cannot be modified")


@event.listens_for(Trade, "before_delete")
def _reject_completed_delete(mapper, connection, target):
    if _persisted_status(target) == TradeStatus.COMPLETED:
        raise InvariantViolationError(f"Completed trade {target.id} cannot be deleted")
