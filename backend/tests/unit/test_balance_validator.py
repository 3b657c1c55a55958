"""
Unit Tests - Balance Validator
"""
import pytest
from decimal import Decimal

from tradeledger.core.trading.validation import BalanceValidator
from tradeledger.db.models.trade import TradeSide
from tradeledger.utils.exceptions import InsufficientFundsError, InsufficientHoldingsError


@pytest.fixture
def validator():
    return BalanceValidator()


class TestBuyValidation:

    def test_exact_cash_is_enough(self, validator):
        validator.validate(
            side=TradeSide.BUY,
            notional=Decimal("100"),
            fee=Decimal("10"),
            available_cash=Decimal("110"),
            available_quantity=Decimal("0"),
            quantity=Decimal("1"),
        )

    def test_fee_counts_towards_required_cash(self, validator):
        with pytest.raises(InsufficientFundsError) as exc_info:
            validator.validate(
                side=TradeSide.BUY,
                notional=Decimal("100"),
                fee=Decimal("10"),
                available_cash=Decimal("109.99"),
                available_quantity=Decimal("0"),
                quantity=Decimal("1"),
            )
        assert exc_info.value.details["required"] == "110"
        assert exc_info.value.status_code == 422


class TestSellValidation:

    def test_oversell_rejected(self, validator):
        with pytest.raises(InsufficientHoldingsError):
            validator.validate(
                side=TradeSide.SELL,
                notional=Decimal("500"),
                fee=Decimal("10"),
                available_cash=Decimal("1000000"),
                available_quantity=Decimal("1"),
                quantity=Decimal("5"),
            )

    def test_full_sell_allowed(self, validator):
        validator.validate(
            side=TradeSide.SELL,
            notional=Decimal("100"),
            fee=Decimal("10"),
            available_cash=Decimal("0"),
            available_quantity=Decimal("1"),
            quantity=Decimal("1"),
        )

    def test_fee_above_proceeds_needs_cash_for_shortfall(self, validator):
        with pytest.raises(InsufficientFundsError):
            validator.validate(
                side=TradeSide.SELL,
                notional=Decimal("5"),
                fee=Decimal("10"),
                available_cash=Decimal("4.99"),
                available_quantity=Decimal("1"),
                quantity=Decimal("1"),
            )

    def test_fee_shortfall_covered_by_cash(self, validator):
        validator.validate(
            side=TradeSide.SELL,
            notional=Decimal("5"),
            fee=Decimal("10"),
            available_cash=Decimal("5"),
            available_quantity=Decimal("1"),
            quantity=Decimal("1"),
        )
