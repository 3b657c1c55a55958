"""
Heights Ledger - Database Models
"""
from tradeledger.db.models.holding import Holding, AssetType
from tradeledger.db.models.trade import Trade, TradeSide, TradeStatus
from tradeledger.db.models.cash_balance import CashBalance
from tradeledger.db.models.wallet_transaction import (
    WalletTransaction,
    WalletTransactionStatus,
    WalletTransactionType,
)

__all__ = [
    "Holding",
    "AssetType",
    "Trade",
    "TradeSide",
    "TradeStatus",
    "CashBalance",
    "WalletTransaction",
    "WalletTransactionStatus",
    "WalletTransactionType",
]
