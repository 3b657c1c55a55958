"""
Heights Ledger - Realized P&L Statistics

Trading statistics over completed sells. Fees are reported separately and
are not netted into realized P&L.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from tradeledger.core.trading.snapshots import TradeRecord
from tradeledger.db.models.trade import TradeSide, TradeStatus


def _round(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass
class RealizedPnL:
    """Realized P&L from completed sells."""
    total: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    gross_loss: Decimal = Decimal("0")
    total_fees: Decimal = Decimal("0")
    trade_count: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: Decimal = Decimal("0")
    avg_win: Decimal = Decimal("0")
    avg_loss: Decimal = Decimal("0")
    profit_factor: Optional[Decimal] = None
    largest_win: Decimal = Decimal("0")
    largest_loss: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        return {
            "total": str(self.total),
            "gross_profit": str(self.gross_profit),
            "gross_loss": str(self.gross_loss),
            "total_fees": str(self.total_fees),
            "trade_count": self.trade_count,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "win_rate": str(self.win_rate),
            "avg_win": str(self.avg_win),
            "avg_loss": str(self.avg_loss),
            "profit_factor": str(self.profit_factor) if self.profit_factor is not None else None,
            "largest_win": str(self.largest_win),
            "largest_loss": str(self.largest_loss),
        }


def calculate_realized_pnl(trades: Iterable[TradeRecord]) -> RealizedPnL:
    """
    Aggregate realized P&L over trade records.

    Only completed sells count; other records are ignored.
    """
    sells = [
        t for t in trades
        if t.side == TradeSide.SELL and t.status == TradeStatus.COMPLETED
    ]
    if not sells:
        return RealizedPnL()

    total_pnl = Decimal("0")
    gross_profit = Decimal("0")
    gross_loss = Decimal("0")
    total_fees = Decimal("0")
    winning_trades = 0
    losing_trades = 0
    largest_win = Decimal("0")
    largest_loss = Decimal("0")

    for trade in sells:
        pnl = trade.realized_pnl
        total_pnl += pnl
        total_fees += trade.fee

        if pnl > 0:
            gross_profit += pnl
            winning_trades += 1
            largest_win = max(largest_win, pnl)
        elif pnl < 0:
            gross_loss += abs(pnl)
            losing_trades += 1
            largest_loss = max(largest_loss, abs(pnl))

    trade_count = len(sells)
    win_rate = Decimal(winning_trades) / Decimal(trade_count) * 100
    avg_win = gross_profit / Decimal(winning_trades) if winning_trades > 0 else Decimal("0")
    avg_loss = gross_loss / Decimal(losing_trades) if losing_trades > 0 else Decimal("0")
    profit_factor = _round(gross_profit / gross_loss) if gross_loss > 0 else None

    return RealizedPnL(
        total=total_pnl,
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        total_fees=total_fees,
        trade_count=trade_count,
        winning_trades=winning_trades,
        losing_trades=losing_trades,
        win_rate=_round(win_rate),
        avg_win=_round(avg_win),
        avg_loss=_round(avg_loss),
        profit_factor=profit_factor,
        largest_win=largest_win,
        largest_loss=largest_loss,
    )
