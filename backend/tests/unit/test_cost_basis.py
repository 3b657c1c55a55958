"""
Unit Tests - Cost-Basis Updater
Tests for weighted-average cost accounting.
"""
import random
import pytest
from decimal import Decimal

from tradeledger.core.trading.cost_basis import HoldingState, apply_trade, quantize
from tradeledger.db.models.trade import TradeSide
from tradeledger.utils.exceptions import InvalidInputError, InvariantViolationError


def D(value) -> Decimal:
    return Decimal(str(value))


class TestBuys:

    def test_first_buy_opens_holding_at_price(self):
        update = apply_trade(None, TradeSide.BUY, D("1.0"), D("100"))

        assert update.holding.quantity == D("1")
        assert update.holding.average_cost == D("100")
        assert update.holding.total_invested == D("100")
        assert update.realized_pnl == 0

    def test_second_buy_averages_cost(self):
        first = apply_trade(None, TradeSide.BUY, D("1.0"), D("100")).holding
        update = apply_trade(first, TradeSide.BUY, D("1.0"), D("200"))

        assert update.holding.quantity == D("2")
        assert update.holding.average_cost == D("150")
        assert update.holding.total_invested == D("300")
        assert update.realized_pnl == 0

    def test_closed_holding_treated_as_new(self):
        update = apply_trade(HoldingState.empty(), TradeSide.BUY, D("2"), D("50"))
        assert update.holding.average_cost == D("50")
        assert update.holding.total_invested == D("100")

    def test_no_drift_over_many_small_buys(self):
        price = D("123.45678")
        holding = None
        for _ in range(10_000):
            holding = apply_trade(holding, TradeSide.BUY, D("0.001"), price).holding

        assert holding.quantity == D("10")
        assert holding.total_invested == D("1234.5678")
        assert holding.average_cost == price

    def test_alternating_prices_average_exactly(self):
        holding = None
        for i in range(1_000):
            price = D("100") if i % 2 == 0 else D("200")
            holding = apply_trade(holding, TradeSide.BUY, D("0.001"), price).holding

        assert holding.quantity == D("1")
        assert holding.average_cost == D("150")


class TestSells:

    @pytest.fixture
    def two_units_at_150(self):
        return HoldingState(quantity=D("2"), average_cost=D("150"), total_invested=D("300"))

    def test_partial_sell_keeps_average_cost(self, two_units_at_150):
        update = apply_trade(two_units_at_150, TradeSide.SELL, D("1.0"), D("250"))

        assert update.holding.quantity == D("1")
        assert update.holding.average_cost == D("150")
        assert update.holding.total_invested == D("150")
        assert update.realized_pnl == D("100")
        assert not update.closed

    def test_full_sell_closes_holding(self, two_units_at_150):
        partial = apply_trade(two_units_at_150, TradeSide.SELL, D("1.0"), D("250")).holding
        update = apply_trade(partial, TradeSide.SELL, D("1.0"), D("150"))

        assert update.closed
        assert update.holding == HoldingState.empty()
        assert update.realized_pnl == 0

    def test_sell_at_loss(self, two_units_at_150):
        update = apply_trade(two_units_at_150, TradeSide.SELL, D("0.5"), D("110"))
        assert update.realized_pnl == D("-20")

    def test_round_trip_at_same_price_realizes_zero(self):
        bought = apply_trade(None, TradeSide.BUY, D("2"), D("100")).holding
        update = apply_trade(bought, TradeSide.SELL, D("2"), D("100"))
        assert update.realized_pnl == 0
        assert update.closed

    def test_oversell_is_invariant_violation(self):
        holding = HoldingState(quantity=D("1"), average_cost=D("100"), total_invested=D("100"))
        with pytest.raises(InvariantViolationError):
            apply_trade(holding, TradeSide.SELL, D("5"), D("100"))

    def test_sell_without_holding_is_invariant_violation(self):
        with pytest.raises(InvariantViolationError):
            apply_trade(None, TradeSide.SELL, D("1"), D("100"))


class TestInputValidation:

    @pytest.mark.parametrize("quantity,price", [
        (D("0"), D("100")),
        (D("-1"), D("100")),
        (D("1"), D("0")),
        (D("1"), D("-5")),
    ])
    def test_non_positive_inputs_rejected(self, quantity, price):
        with pytest.raises(InvalidInputError):
            apply_trade(None, TradeSide.BUY, quantity, price)


class TestInvariants:
    """Randomized trade sequences must keep the holding consistent."""

    @pytest.mark.parametrize("seed", [1, 7, 42, 2024])
    def test_random_sequence_keeps_invariants(self, seed):
        rng = random.Random(seed)
        holding = None
        expected_quantity = D("0")

        for _ in range(500):
            held = holding.quantity if holding else D("0")
            price = D(rng.randint(100, 100_000)) / 100

            if held == 0 or rng.random() < 0.55:
                quantity = D(rng.randint(1, 1_000)) / 100
                update = apply_trade(holding, TradeSide.BUY, quantity, price)
                expected_quantity += quantity
                assert update.realized_pnl == 0
            else:
                quantity = min(held, D(rng.randint(1, 1_000)) / 100)
                update = apply_trade(holding, TradeSide.SELL, quantity, price)
                expected_quantity -= quantity
                assert update.realized_pnl == quantize(quantity * (price - holding.average_cost))
                if not update.closed:
                    assert update.holding.average_cost == holding.average_cost

            holding = update.holding
            assert holding.quantity == expected_quantity
            assert holding.quantity >= 0
            if holding.is_closed:
                assert holding.average_cost == 0
                assert holding.total_invested == 0
            else:
                assert holding.average_cost > 0
                # average cost is rounded to 8 places, so the product can differ by half a unit per share
                tolerance = holding.quantity * D("0.000000005") + D("0.00000001")
                assert abs(holding.total_invested - holding.quantity * holding.average_cost) <= tolerance
