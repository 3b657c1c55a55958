"""
Unit Tests - Fee Report
"""
from datetime import datetime, timedelta
from decimal import Decimal
import pytest

from tradeledger.core.trading.fee_report import FeePeriod, calculate_fee_report, period_start
from tradeledger.core.trading.snapshots import TradeRecord
from tradeledger.db.models.holding import AssetType
from tradeledger.db.models.trade import TradeSide, TradeStatus
from tradeledger.utils.exceptions import InvalidInputError


NOW = datetime(2024, 6, 15, 12, 0, 0)

_ids = iter(range(1, 1000))


def trade(side, fee, symbol="BTC", status=TradeStatus.COMPLETED, created_at=NOW):
    return TradeRecord(
        id=next(_ids),
        user_id="user-123",
        symbol=symbol,
        asset_type=AssetType.CRYPTO,
        side=side,
        status=status,
        quantity=Decimal("1"),
        price_at_execution=Decimal("100"),
        gross_amount=Decimal("100"),
        fee=Decimal(fee),
        net_amount=Decimal("110"),
        realized_pnl=Decimal("0"),
        created_at=created_at,
    )


class TestFeeReport:

    def test_empty(self):
        report = calculate_fee_report([])
        assert report.total_fees == 0
        assert report.trade_count == 0
        assert report.average_fee_per_trade == 0
        assert report.fees_by_side == {}

    def test_buy_and_sell_fees_both_counted(self):
        report = calculate_fee_report([trade(TradeSide.BUY, "10"), trade(TradeSide.SELL, "10")])

        assert report.total_fees == Decimal("20")
        assert report.trade_count == 2
        assert report.fees_by_side == {"buy": Decimal("10"), "sell": Decimal("10")}
        assert report.average_fee_per_trade == Decimal("10.00")

    def test_grouped_by_asset(self):
        report = calculate_fee_report([
            trade(TradeSide.BUY, "10", symbol="BTC"),
            trade(TradeSide.BUY, "25.50", symbol="ETH"),
            trade(TradeSide.SELL, "12", symbol="BTC"),
        ])

        assert report.fees_by_asset == {"BTC": Decimal("22"), "ETH": Decimal("25.50")}
        assert report.average_fee_per_trade == Decimal("15.83")

    def test_failed_trades_ignored(self):
        report = calculate_fee_report([
            trade(TradeSide.BUY, "10"),
            trade(TradeSide.BUY, "10", status=TradeStatus.FAILED),
        ])
        assert report.trade_count == 1
        assert report.total_fees == Decimal("10")

    def test_trades_before_start_ignored(self):
        start = NOW - timedelta(days=7)
        report = calculate_fee_report(
            [trade(TradeSide.BUY, "10"), trade(TradeSide.BUY, "99", created_at=NOW - timedelta(days=8))],
            FeePeriod.WEEK,
            start,
        )
        assert report.total_fees == Decimal("10")
        assert report.to_dict()["period"] == "week"


class TestPeriodStart:

    @pytest.mark.parametrize("period,days", [("day", 1), ("week", 7), ("month", 30)])
    def test_window(self, period, days):
        assert period_start(period, now=NOW) == NOW - timedelta(days=days)

    def test_all_time(self):
        assert period_start(FeePeriod.ALL, now=NOW) is None

    def test_unknown_period(self):
        with pytest.raises(InvalidInputError):
            period_start("year", now=NOW)
