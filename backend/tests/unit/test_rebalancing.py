"""
Unit Tests - Rebalancing Suggestions
"""
import pytest
from decimal import Decimal

from tradeledger.core.portfolio.rebalancing import generate_rebalancing_suggestions, validate_targets
from tradeledger.db.models.trade import TradeSide
from tradeledger.utils.exceptions import InvalidInputError


class TestRebalancing:

    def test_overweight_and_underweight(self):
        suggestions = generate_rebalancing_suggestions(
            {"BTC": Decimal("70"), "ETH": Decimal("30")},
            {"BTC": Decimal("50"), "ETH": Decimal("50")},
            Decimal("10000"),
        )

        assert [s.symbol for s in suggestions] == ["BTC", "ETH"]
        btc, eth = suggestions
        assert btc.action == TradeSide.SELL
        assert btc.amount == Decimal("2000.00")
        assert btc.reason == "Overweight by 20.0% - reduce position"
        assert eth.action == TradeSide.BUY
        assert eth.reason == "Underweight by 20.0% - increase position"

    def test_drift_within_threshold_ignored(self):
        suggestions = generate_rebalancing_suggestions(
            {"BTC": Decimal("55"), "ETH": Decimal("45")},
            {"BTC": Decimal("50"), "ETH": Decimal("50")},
            Decimal("10000"),
        )
        assert suggestions == []

    def test_untargeted_holding_sold_down(self):
        suggestions = generate_rebalancing_suggestions(
            {"BTC": Decimal("80"), "DOGE": Decimal("20")},
            {"btc": Decimal("80")},
            Decimal("1000"),
        )
        assert len(suggestions) == 1
        assert suggestions[0].symbol == "DOGE"
        assert suggestions[0].action == TradeSide.SELL
        assert suggestions[0].amount == Decimal("200.00")

    def test_target_not_held_is_bought(self):
        suggestions = generate_rebalancing_suggestions({}, {"SOL": Decimal("10")}, Decimal("5000"))
        assert suggestions[0].action == TradeSide.BUY
        assert suggestions[0].amount == Decimal("500.00")

    def test_sorted_by_amount(self):
        suggestions = generate_rebalancing_suggestions(
            {"BTC": Decimal("60"), "ETH": Decimal("40")},
            {"BTC": Decimal("30"), "ETH": Decimal("30"), "SOL": Decimal("40")},
            Decimal("100"),
        )
        amounts = [s.amount for s in suggestions]
        assert amounts == sorted(amounts, reverse=True)
        assert suggestions[0].symbol == "SOL"


class TestTargetValidation:

    def test_targets_over_100_rejected(self):
        with pytest.raises(InvalidInputError):
            validate_targets({"BTC": Decimal("60"), "ETH": Decimal("50")})

    def test_negative_target_rejected(self):
        with pytest.raises(InvalidInputError):
            validate_targets({"BTC": Decimal("-1")})

    def test_symbols_upper_cased(self):
        assert validate_targets({"eth": 40}) == {"ETH": Decimal("40")}
