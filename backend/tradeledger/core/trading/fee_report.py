"""
Heights Ledger - Fee Report

Fees paid on completed buys and sells over a reporting period. Fees are
booked on the trade record and never netted into realized P&L.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Optional

from tradeledger.core.trading.snapshots import TradeRecord
from tradeledger.db.models.trade import TradeStatus
from tradeledger.utils.exceptions import InvalidInputError


class FeePeriod(str, Enum):
    """Reporting window, counted back from now."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


PERIOD_LENGTHS = {
    FeePeriod.DAY: timedelta(days=1),
    FeePeriod.WEEK: timedelta(days=7),
    FeePeriod.MONTH: timedelta(days=30),
}


def period_start(period: FeePeriod | str, now: Optional[datetime] = None) -> Optional[datetime]:
    """First instant covered by the period; None for all time."""
    try:
        period = FeePeriod(period)
    except ValueError:
        raise InvalidInputError(f"Unknown fee report period: {period}")
    if period == FeePeriod.ALL:
        return None
    return (now or datetime.utcnow()) - PERIOD_LENGTHS[period]


@dataclass
class FeeReport:
    """Fees paid over a period."""
    period: FeePeriod
    start: Optional[datetime] = None
    total_fees: Decimal = Decimal("0")
    fees_by_side: dict[str, Decimal] = field(default_factory=dict)
    fees_by_asset: dict[str, Decimal] = field(default_factory=dict)
    trade_count: int = 0
    average_fee_per_trade: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        return {
            "period": self.period.value,
            "start": self.start.isoformat() if self.start else None,
            "total_fees": str(self.total_fees),
            "fees_by_side": {k: str(v) for k, v in self.fees_by_side.items()},
            "fees_by_asset": {k: str(v) for k, v in self.fees_by_asset.items()},
            "trade_count": self.trade_count,
            "average_fee_per_trade": str(self.average_fee_per_trade),
        }


def calculate_fee_report(
    trades: Iterable[TradeRecord],
    period: FeePeriod | str = FeePeriod.ALL,
    start: Optional[datetime] = None,
) -> FeeReport:
    """
    Total fees over completed trades of either side.

    Records that are not completed, or were created before `start`, are ignored.
    """
    period = FeePeriod(period)
    report = FeeReport(period=period, start=start)

    for trade in trades:
        if trade.status != TradeStatus.COMPLETED:
            continue
        if start is not None and trade.created_at < start:
            continue
        report.total_fees += trade.fee
        report.trade_count += 1
        side = trade.side.value
        report.fees_by_side[side] = report.fees_by_side.get(side, Decimal("0")) + trade.fee
        report.fees_by_asset[trade.symbol] = report.fees_by_asset.get(trade.symbol, Decimal("0")) + trade.fee

    if report.trade_count:
        report.average_fee_per_trade = (report.total_fees / report.trade_count).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
    return report
