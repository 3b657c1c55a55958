"""
Heights Ledger - Holding Model

One row per (user, symbol, asset type, wallet address). On-chain crypto
holdings carry the wallet address in their key; every other holding stores
an empty string there so the unique constraint still applies.

Invariant kept by the settlement engine: total_invested == quantity * average_cost.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, JSON, UniqueConstraint, CheckConstraint,
    Enum as SQLEnum,
)
import enum

from tradeledger.db.database import Base


class AssetType(str, enum.Enum):
    """Tradable asset classes."""
    CRYPTO = "crypto"
    STOCK = "stock"
    COMMODITY = "commodity"
    MUTUAL_FUND = "mutual_fund"
    BOND = "bond"


class Holding(Base):
    """A user's open position in one asset."""

    __tablename__ = "holdings"
    __table_args__ = (
        UniqueConstraint("user_id", "symbol", "asset_type", "wallet_address", name="uq_holdings_identity"),
        CheckConstraint("quantity >= 0", name="ck_holdings_quantity_non_negative"),
        CheckConstraint("average_cost >= 0", name="ck_holdings_average_cost_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)

    # Asset identity
    symbol = Column(String(32), nullable=False)
    name = Column(String(100), nullable=True)
    asset_type = Column(SQLEnum(AssetType), nullable=False)
    wallet_address = Column(String(128), nullable=False, default="")
    details = Column(JSON, nullable=False, default=dict)

    # Cost basis
    quantity = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))
    average_cost = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))
    total_invested = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))
    current_price = Column(Numeric(28, 8), nullable=False, default=Decimal("0"))

    # Optimistic concurrency
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    @property
    def current_value(self) -> Decimal:
        return self.quantity * self.current_price

    @property
    def unrealized_pnl(self) -> Decimal:
        return self.current_value - self.total_invested

    @property
    def unrealized_pnl_percent(self) -> Decimal:
        if not self.total_invested:
            return Decimal("0")
        return self.unrealized_pnl / self.total_invested * 100

    def __repr__(self):
        return f"<Holding {self.symbol} ({self.asset_type.value}) qty={self.quantity}>"
