"""
Heights Ledger - Ledger Snapshots

Detached, immutable views of ledger rows returned to callers so that no
component outside the settlement service holds a live ORM object.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from tradeledger.db.models.cash_balance import CashBalance
from tradeledger.db.models.holding import AssetType, Holding
from tradeledger.db.models.trade import Trade, TradeSide, TradeStatus
from tradeledger.db.models.wallet_transaction import (
    WalletTransaction, WalletTransactionStatus, WalletTransactionType,
)


@dataclass(frozen=True)
class HoldingSnapshot:
    """Point-in-time holding state."""
    user_id: str
    symbol: str
    asset_type: AssetType
    quantity: Decimal
    average_cost: Decimal
    total_invested: Decimal
    current_price: Decimal
    wallet_address: str = ""
    name: Optional[str] = None
    details: dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[str, str, AssetType, str]:
        return (self.user_id, self.symbol, self.asset_type, self.wallet_address)

    @property
    def is_closed(self) -> bool:
        return self.quantity == 0

    @property
    def current_value(self) -> Decimal:
        return self.quantity * self.current_price

    @property
    def unrealized_pnl(self) -> Decimal:
        return self.current_value - self.total_invested

    @property
    def unrealized_pnl_percent(self) -> Decimal:
        if self.total_invested == 0:
            return Decimal("0")
        return self.unrealized_pnl / self.total_invested * 100

    @classmethod
    def from_model(cls, holding: Holding) -> "HoldingSnapshot":
        return cls(
            id=holding.id,
            user_id=holding.user_id,
            symbol=holding.symbol,
            asset_type=holding.asset_type,
            wallet_address=holding.wallet_address or "",
            name=holding.name,
            details=dict(holding.details or {}),
            quantity=Decimal(holding.quantity),
            average_cost=Decimal(holding.average_cost),
            total_invested=Decimal(holding.total_invested),
            current_price=Decimal(holding.current_price),
            updated_at=holding.updated_at,
        )

    def with_price(self, price: Decimal) -> "HoldingSnapshot":
        return replace(self, current_price=price)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "asset_type": self.asset_type.value,
            "wallet_address": self.wallet_address or None,
            "details": self.details,
            "quantity": str(self.quantity),
            "average_cost": str(self.average_cost),
            "total_invested": str(self.total_invested),
            "current_price": str(self.current_price),
            "current_value": str(self.current_value),
            "unrealized_pnl": str(self.unrealized_pnl),
            "unrealized_pnl_percent": str(round(self.unrealized_pnl_percent, 4)),
        }


@dataclass(frozen=True)
class TradeRecord:
    """Settled (or failed) trade."""
    id: int
    user_id: str
    symbol: str
    asset_type: AssetType
    side: TradeSide
    status: TradeStatus
    quantity: Decimal
    price_at_execution: Decimal
    gross_amount: Decimal
    fee: Decimal
    net_amount: Decimal
    realized_pnl: Decimal
    created_at: datetime
    executed_at: Optional[datetime] = None
    wallet_address: str = ""
    currency: str = "INR"
    idempotency_key: Optional[str] = None
    failure_reason: Optional[str] = None

    @classmethod
    def from_model(cls, trade: Trade) -> "TradeRecord":
        return cls(
            id=trade.id,
            user_id=trade.user_id,
            symbol=trade.symbol,
            asset_type=trade.asset_type,
            side=trade.side,
            status=trade.status,
            quantity=Decimal(trade.quantity),
            price_at_execution=Decimal(trade.price_at_execution),
            gross_amount=Decimal(trade.gross_amount),
            fee=Decimal(trade.fee),
            net_amount=Decimal(trade.net_amount),
            realized_pnl=Decimal(trade.realized_pnl or 0),
            created_at=trade.created_at,
            executed_at=trade.executed_at,
            wallet_address=trade.wallet_address or "",
            currency=trade.currency,
            idempotency_key=trade.idempotency_key,
            failure_reason=trade.failure_reason,
        )


@dataclass(frozen=True)
class CashSnapshot:
    """Wallet state."""
    user_id: str
    currency: str
    available: Decimal
    locked: Decimal
    total_deposited: Decimal

    @property
    def total(self) -> Decimal:
        return self.available + self.locked

    @classmethod
    def from_model(cls, balance: CashBalance) -> "CashSnapshot":
        return cls(
            user_id=balance.user_id,
            currency=balance.currency,
            available=Decimal(balance.available),
            locked=Decimal(balance.locked),
            total_deposited=Decimal(balance.total_deposited),
        )

    @classmethod
    def empty(cls, user_id: str, currency: str) -> "CashSnapshot":
        zero = Decimal("0")
        return cls(user_id=user_id, currency=currency, available=zero, locked=zero, total_deposited=zero)


@dataclass(frozen=True)
class WalletTransactionRecord:
    """Deposit or withdrawal."""
    id: int
    user_id: str
    type: WalletTransactionType
    status: WalletTransactionStatus
    amount: Decimal
    currency: str
    created_at: datetime
    balance_after: Optional[Decimal] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    failure_reason: Optional[str] = None

    @classmethod
    def from_model(cls, transaction: WalletTransaction) -> "WalletTransactionRecord":
        return cls(
            id=transaction.id,
            user_id=transaction.user_id,
            type=transaction.type,
            status=transaction.status,
            amount=Decimal(transaction.amount),
            currency=transaction.currency,
            created_at=transaction.created_at,
            balance_after=(
                Decimal(transaction.balance_after) if transaction.balance_after is not None else None
            ),
            completed_at=transaction.completed_at,
            notes=transaction.notes,
            failure_reason=transaction.failure_reason,
        )
