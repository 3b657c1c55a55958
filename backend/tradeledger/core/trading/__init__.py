"""
Heights Ledger - Trading Engine Module

Core settlement functionality including:
- Fee calculation
- Balance validation
- Weighted-average cost basis
- Atomic trade settlement
- Realized P&L statistics
"""
from tradeledger.core.trading.fees import FeeCalculator, FeeConfig
from tradeledger.core.trading.validation import BalanceValidator
from tradeledger.core.trading.cost_basis import (
    CostBasisUpdate,
    HoldingState,
    apply_trade,
)
from tradeledger.core.trading.settlement import (
    SettlementRequest,
    SettlementResult,
    SettlementService,
)
from tradeledger.core.trading.snapshots import CashSnapshot, HoldingSnapshot, TradeRecord
from tradeledger.core.trading.notifications import SettlementNotifier
from tradeledger.core.trading.locks import KeyedLockRegistry
from tradeledger.core.trading.pnl import RealizedPnL, calculate_realized_pnl

__all__ = [
    # Fees & validation
    "FeeCalculator",
    "FeeConfig",
    "BalanceValidator",

    # Cost basis
    "CostBasisUpdate",
    "HoldingState",
    "apply_trade",

    # Settlement
    "SettlementRequest",
    "SettlementResult",
    "SettlementService",
    "SettlementNotifier",
    "KeyedLockRegistry",

    # Snapshots
    "CashSnapshot",
    "HoldingSnapshot",
    "TradeRecord",

    # P&L
    "RealizedPnL",
    "calculate_realized_pnl",
]
