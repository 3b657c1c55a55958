"""
Heights Ledger - Data Repositories

Repository pattern implementations for database operations.
"""
from tradeledger.db.repositories.holding import HoldingRepository
from tradeledger.db.repositories.trade import TradeRepository
from tradeledger.db.repositories.cash_balance import CashBalanceRepository
from tradeledger.db.repositories.wallet_transaction import WalletTransactionRepository

__all__ = [
    "HoldingRepository",
    "TradeRepository",
    "CashBalanceRepository",
    "WalletTransactionRepository",
]
