"""
Integration Tests - Settlement Flow
End-to-end settlement against a real database.
"""
import pytest
from decimal import Decimal
from sqlalchemy import func, select

from tradeledger.db.models import (
    CashBalance,
    Trade,
    TradeSide,
    TradeStatus,
    WalletTransaction,
    WalletTransactionStatus,
    WalletTransactionType,
)
from tradeledger.db.repositories import HoldingRepository
from tradeledger.db.models.holding import AssetType
from tradeledger.utils.exceptions import (
    InsufficientFundsError,
    InsufficientHoldingsError,
    InvalidInputError,
)


TEST_USER_ID = "user-123"


async def load_holding(session_maker, symbol="BTC", asset_type=AssetType.CRYPTO, wallet_address=""):
    async with session_maker() as session:
        return await HoldingRepository(session).get(TEST_USER_ID, symbol, asset_type, wallet_address)


async def load_cash(session_maker) -> Decimal:
    async with session_maker() as session:
        result = await session.execute(select(CashBalance).where(CashBalance.user_id == TEST_USER_ID))
        return Decimal(result.scalar_one().available)


async def count_trades(session_maker, status=None) -> int:
    async with session_maker() as session:
        query = select(func.count(Trade.id)).where(Trade.user_id == TEST_USER_ID)
        if status is not None:
            query = query.where(Trade.status == status)
        return (await session.execute(query)).scalar_one()


async def wallet_transactions(session_maker) -> list[WalletTransaction]:
    async with session_maker() as session:
        result = await session.execute(
            select(WalletTransaction)
            .where(WalletTransaction.user_id == TEST_USER_ID)
            .order_by(WalletTransaction.id)
        )
        return list(result.scalars().all())


class TestSettlementScenarios:
    """Buy, average up, partial sell, close."""

    async def test_first_buy(self, funded_service, make_request, session_maker):
        result = await funded_service.settle(make_request("buy", "1.0", "100"))

        assert result.holding.quantity == Decimal("1")
        assert result.holding.average_cost == Decimal("100")
        assert result.holding.total_invested == Decimal("100")
        assert result.fee == Decimal("10.00")
        assert result.realized_pnl == 0
        assert result.trade.status == TradeStatus.COMPLETED
        assert result.trade.net_amount == Decimal("110")
        assert result.cash.available == Decimal("99890")
        assert await load_cash(session_maker) == Decimal("99890")

    async def test_buy_buy_sell_sell(self, funded_service, make_request, session_maker):
        await funded_service.settle(make_request("buy", "1.0", "100"))
        second = await funded_service.settle(make_request("buy", "1.0", "200"))
        assert second.holding.quantity == Decimal("2")
        assert second.holding.average_cost == Decimal("150")
        assert second.holding.total_invested == Decimal("300")

        partial = await funded_service.settle(make_request("sell", "1.0", "250"))
        assert partial.holding.quantity == Decimal("1")
        assert partial.holding.average_cost == Decimal("150")
        assert partial.holding.total_invested == Decimal("150")
        assert partial.realized_pnl == Decimal("100")
        assert partial.trade.realized_pnl == Decimal("100")

        final = await funded_service.settle(make_request("sell", "1.0", "150"))
        assert final.holding_closed
        assert final.realized_pnl == 0
        assert await load_holding(session_maker) is None

        # 100000 - 110 - 210 + 240 + 140
        assert await load_cash(session_maker) == Decimal("100060")
        assert await count_trades(session_maker, TradeStatus.COMPLETED) == 4

    async def test_oversell_rejected_without_mutation(self, funded_service, make_request, session_maker):
        await funded_service.settle(make_request("buy", "1.0", "100"))

        with pytest.raises(InsufficientHoldingsError):
            await funded_service.settle(make_request("sell", "5", "100"))

        holding = await load_holding(session_maker)
        assert Decimal(holding.quantity) == Decimal("1")
        assert await load_cash(session_maker) == Decimal("99890")
        assert await count_trades(session_maker) == 1

    async def test_insufficient_funds_creates_no_trade(self, funded_service, make_request, session_maker):
        with pytest.raises(InsufficientFundsError):
            await funded_service.settle(make_request("buy", "1000", "100"))

        assert await load_holding(session_maker) is None
        assert await load_cash(session_maker) == Decimal("100000")
        assert await count_trades(session_maker) == 0

    async def test_buy_without_wallet_rejected(self, settlement_service, make_request, session_maker):
        with pytest.raises(InsufficientFundsError):
            await settlement_service.settle(make_request("buy", "1", "100"))
        assert await count_trades(session_maker) == 0

    async def test_fee_capped_on_large_trade(self, settlement_service, make_request):
        await settlement_service.deposit(TEST_USER_ID, Decimal("5000000"))
        result = await settlement_service.settle(make_request("buy", "1", "2000000"))
        assert result.fee == Decimal("1000.00")
        assert result.cash.available == Decimal("2999000")


class TestHoldingIdentity:

    async def test_wallets_are_separate_holdings(self, funded_service, make_request, session_maker):
        await funded_service.settle(make_request("buy", "1", "100", wallet_address="0xaaa"))
        await funded_service.settle(make_request("buy", "2", "100", wallet_address="0xbbb"))

        first = await load_holding(session_maker, wallet_address="0xaaa")
        second = await load_holding(session_maker, wallet_address="0xbbb")
        assert Decimal(first.quantity) == Decimal("1")
        assert Decimal(second.quantity) == Decimal("2")

    async def test_symbol_is_normalized(self, funded_service, make_request, session_maker):
        await funded_service.settle(make_request("buy", "1", "100", symbol=" btc "))
        await funded_service.settle(make_request("buy", "1", "100", symbol="BTC"))

        holding = await load_holding(session_maker)
        assert Decimal(holding.quantity) == Decimal("2")

    async def test_asset_details_stored(self, funded_service, make_request, session_maker):
        await funded_service.settle(make_request(
            "buy", "10", "100", symbol="GOI2030", asset_type="bond", name="GOI 2030",
            details={"maturity_date": "2030-03-31", "coupon_rate": "7.25"},
        ))

        holding = await load_holding(session_maker, symbol="GOI2030", asset_type=AssetType.BOND)
        assert holding.name == "GOI 2030"
        assert holding.details == {"maturity_date": "2030-03-31", "coupon_rate": "7.25"}


class TestRequestValidation:

    @pytest.mark.parametrize("quantity,price", [("0", "100"), ("-1", "100"), ("1", "0"), ("1", "NaN")])
    def test_non_positive_or_non_finite_rejected(self, make_request, quantity, price):
        with pytest.raises(InvalidInputError):
            make_request("buy", quantity, price)

    def test_too_many_decimal_places_rejected(self, make_request):
        with pytest.raises(InvalidInputError):
            make_request("buy", "0.000000001", "100")

    def test_trailing_zeros_within_precision_accepted(self, make_request):
        request = make_request("buy", "1.000000000", "100.0000000000")
        assert request.quantity == Decimal("1")
        assert request.price == Decimal("100")

    async def test_trailing_zero_quantity_settles(self, funded_service, make_request):
        result = await funded_service.settle(make_request("buy", "1.000000000", "100"))
        assert result.holding.quantity == Decimal("1")
        assert result.fee == Decimal("10.00")

    @pytest.mark.parametrize("quantity,price", [("1e20", "1"), ("1", "1e21"), ("1e12", "1e9")])
    def test_values_beyond_ledger_range_rejected(self, make_request, quantity, price):
        with pytest.raises(InvalidInputError):
            make_request("buy", quantity, price)

    def test_unknown_asset_type_rejected(self, make_request):
        with pytest.raises(InvalidInputError):
            make_request("buy", asset_type="options")

    def test_unknown_side_rejected(self, make_request):
        with pytest.raises(InvalidInputError):
            make_request("hold")

    def test_wallet_on_stock_rejected(self, make_request):
        with pytest.raises(InvalidInputError):
            make_request("buy", symbol="TCS", asset_type="stock", wallet_address="0xabc")


class TestWalletFunding:

    async def test_deposit_credits_wallet(self, settlement_service):
        await settlement_service.deposit(TEST_USER_ID, Decimal("500"))
        cash = await settlement_service.deposit(TEST_USER_ID, "250.50")

        assert cash.available == Decimal("750.50")
        assert cash.total_deposited == Decimal("750.50")
        assert cash.locked == 0

    @pytest.mark.parametrize("amount", ["0", "-10", "abc"])
    async def test_invalid_deposit_rejected(self, settlement_service, session_maker, amount):
        with pytest.raises(InvalidInputError):
            await settlement_service.deposit(TEST_USER_ID, amount)

        assert await wallet_transactions(session_maker) == []

    async def test_deposit_records_completed_transaction(self, settlement_service, session_maker):
        await settlement_service.deposit(TEST_USER_ID, "1000", notes="bank transfer")

        (row,) = await wallet_transactions(session_maker)
        assert row.type == WalletTransactionType.DEPOSIT
        assert row.status == WalletTransactionStatus.COMPLETED
        assert Decimal(row.amount) == Decimal("1000")
        assert Decimal(row.balance_after) == Decimal("1000")
        assert row.notes == "bank transfer"
        assert row.completed_at is not None

    async def test_withdrawal_debits_wallet(self, funded_service, session_maker):
        cash = await funded_service.withdraw(TEST_USER_ID, "2500")

        assert cash.available == Decimal("97500")
        assert cash.total_deposited == Decimal("100000")

        rows = await wallet_transactions(session_maker)
        assert [r.type for r in rows] == [WalletTransactionType.DEPOSIT, WalletTransactionType.WITHDRAWAL]
        assert Decimal(rows[1].balance_after) == Decimal("97500")

    async def test_withdraw_entire_balance(self, funded_service):
        cash = await funded_service.withdraw(TEST_USER_ID, "100000")
        assert cash.available == 0

    async def test_overdrawn_withdrawal_rejected_without_mutation(self, funded_service, session_maker):
        with pytest.raises(InsufficientFundsError):
            await funded_service.withdraw(TEST_USER_ID, "100000.01")

        assert await load_cash(session_maker) == Decimal("100000")
        rows = await wallet_transactions(session_maker)
        assert [r.type for r in rows] == [WalletTransactionType.DEPOSIT]

    async def test_withdrawal_from_unfunded_wallet_rejected(self, settlement_service, session_maker):
        with pytest.raises(InsufficientFundsError):
            await settlement_service.withdraw(TEST_USER_ID, "1")
        assert await wallet_transactions(session_maker) == []

    async def test_cash_rebuilt_from_ledger(self, funded_service, make_request, session_maker):
        await funded_service.settle(make_request("buy", "2", "100"))
        await funded_service.settle(make_request("sell", "1", "150"))
        await funded_service.withdraw(TEST_USER_ID, "300")
        await funded_service.deposit(TEST_USER_ID, "42.5")

        rebuilt = Decimal("0")
        for row in await wallet_transactions(session_maker):
            if row.type == WalletTransactionType.DEPOSIT:
                rebuilt += Decimal(row.amount)
            else:
                rebuilt -= Decimal(row.amount)

        async with session_maker() as session:
            result = await session.execute(
                select(Trade).where(Trade.user_id == TEST_USER_ID, Trade.status == TradeStatus.COMPLETED)
            )
            for trade in result.scalars():
                if trade.side == TradeSide.BUY:
                    rebuilt -= Decimal(trade.net_amount)
                else:
                    rebuilt += Decimal(trade.net_amount)

        assert rebuilt == await load_cash(session_maker)
