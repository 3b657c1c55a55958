"""
Heights Ledger - Trade Settlement

Turns a buy/sell instruction plus an execution price into a consistent
ledger state. Each settlement is one database transaction:

1. Load the holding and the cash balance (row-locked)
2. Compute gross amount, fee and net amount
3. Validate against the balances read in step 1
4. Apply the weighted-average cost-basis update
5. Write the holding (or delete it when closed), move cash, append the trade
6. Return the holding snapshot, trade record and realized P&L

Either every write in step 5 commits or none does.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from tradeledger.core.trading.assets import (
    details_to_dict, parse_asset_details, parse_asset_type, wallet_key,
)
from tradeledger.core.trading.cost_basis import CostBasisUpdate, HoldingState, apply_trade
from tradeledger.core.trading.fees import FeeCalculator, gross_amount, net_amount
from tradeledger.core.trading.locks import KeyedLockRegistry
from tradeledger.core.trading.notifications import SettlementNotifier
from tradeledger.core.trading.snapshots import CashSnapshot, HoldingSnapshot, TradeRecord
from tradeledger.core.trading.validation import BalanceValidator
from tradeledger.db.models.holding import AssetType, Holding
from tradeledger.db.models.trade import Trade, TradeSide, TradeStatus
from tradeledger.db.models.wallet_transaction import WalletTransaction, WalletTransactionType
from tradeledger.db.repositories.cash_balance import CashBalanceRepository
from tradeledger.db.repositories.holding import HoldingRepository
from tradeledger.db.repositories.trade import TradeRepository
from tradeledger.db.repositories.wallet_transaction import WalletTransactionRepository
from tradeledger.utils.exceptions import (
    ConflictError, InsufficientFundsError, InvalidInputError, PersistenceFailureError,
)


MAX_DECIMAL_PLACES = 8

# Integer range of the Numeric(28, 8) ledger columns
MAX_AMOUNT = Decimal("1e20")


def _decimal_places(number: Decimal) -> int:
    """Significant decimal places, ignoring trailing zeros."""
    _, digits, exponent = number.as_tuple()
    while exponent < 0 and len(digits) > 1 and digits[-1] == 0:
        digits = digits[:-1]
        exponent += 1
    return max(0, -exponent)


def _positive_decimal(name: str, value: Any) -> Decimal:
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"{name} must be a decimal number", details={name: str(value)})
    if not number.is_finite() or number <= 0:
        raise InvalidInputError(f"{name} must be positive", details={name: str(value)})
    if number >= MAX_AMOUNT:
        raise InvalidInputError(f"{name} is out of range", details={name: str(value)})
    if _decimal_places(number) > MAX_DECIMAL_PLACES:
        raise InvalidInputError(
            f"{name} supports at most {MAX_DECIMAL_PLACES} decimal places",
            details={name: str(value)},
        )
    return number


@dataclass
class SettlementRequest:
    """Validated settlement instruction."""
    user_id: str
    symbol: str
    asset_type: AssetType
    side: TradeSide
    quantity: Decimal
    price: Decimal
    wallet_address: str = ""
    name: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    idempotency_key: Optional[str] = None

    def __post_init__(self):
        """Normalize and validate the instruction."""
        if not self.user_id:
            raise InvalidInputError("User id is required")
        self.symbol = (self.symbol or "").strip().upper()
        if not self.symbol:
            raise InvalidInputError("Symbol is required")

        self.asset_type = parse_asset_type(self.asset_type)
        try:
            self.side = TradeSide(self.side)
        except ValueError:
            raise InvalidInputError(f"Unknown trade side: {self.side}")

        self.quantity = _positive_decimal("quantity", self.quantity)
        self.price = _positive_decimal("price", self.price)
        if self.quantity * self.price >= MAX_AMOUNT:
            raise InvalidInputError(
                "Trade value is out of range",
                details={"quantity": str(self.quantity), "price": str(self.price)},
            )
        self.wallet_address = wallet_key(self.asset_type, self.wallet_address)
        if self.details is not None:
            self.details = details_to_dict(parse_asset_details(self.asset_type, self.details))

    @property
    def lock_key(self) -> tuple[str, str, AssetType, str]:
        return (self.user_id, self.symbol, self.asset_type, self.wallet_address)


@dataclass
class SettlementResult:
    """Outcome of a committed settlement."""
    holding: HoldingSnapshot
    trade: TradeRecord
    realized_pnl: Decimal
    fee: Decimal
    cash: CashSnapshot
    replayed: bool = False

    @property
    def holding_closed(self) -> bool:
        return self.holding.is_closed

    def to_dict(self) -> dict:
        return {
            "holding": self.holding.to_dict(),
            "trade_id": self.trade.id,
            "realized_pnl": str(self.realized_pnl),
            "fee": str(self.fee),
            "cash_available": str(self.cash.available),
            "replayed": self.replayed,
        }


class SettlementService:
    """
    Trade Settlement Orchestrator.

    Responsible for:
    - Serializing settlements per holding key
    - Running validate -> fee -> cost basis -> persist as one transaction
    - Mapping storage errors to Conflict (retried) or PersistenceFailure
    - Recording failed attempts for audit
    - Publishing committed settlements to the notifier

    The only writer of holdings and cash balances.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        fee_calculator: Optional[FeeCalculator] = None,
        validator: Optional[BalanceValidator] = None,
        currency: str = "INR",
        max_retries: int = 3,
        locks: Optional[KeyedLockRegistry] = None,
        notifier: Optional[SettlementNotifier] = None,
    ):
        self.session_factory = session_factory
        self.fee_calculator = fee_calculator or FeeCalculator()
        self.validator = validator or BalanceValidator()
        self.currency = currency
        self.max_retries = max(1, max_retries)
        self.locks = locks or KeyedLockRegistry()
        self.notifier = notifier or SettlementNotifier()

    # ==================== SETTLEMENT ====================

    async def settle(self, request: SettlementRequest) -> SettlementResult:
        """
        Settle a trade.

        Raises:
            InvalidInputError: Bad instruction or reused idempotency key
            InsufficientFundsError: Cash does not cover a buy
            InsufficientHoldingsError: Held quantity does not cover a sell
            ConflictError: Lost a concurrency race on every retry
            PersistenceFailureError: Storage failed during the atomic write
        """
        async with self.locks.hold(request.lock_key):
            result = await self._with_retries(
                lambda: self._settle_once(request),
                f"settlement of {request.side.value} {request.symbol} for user {request.user_id}",
            )

        if not result.replayed:
            await self.notifier.publish(result)
        return result

    async def _with_retries(self, operation, description: str):
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except ConflictError:
                if attempt >= self.max_retries:
                    logger.warning(f"Giving up on {description} after {attempt} conflicting attempts")
                    raise
                logger.warning(f"Conflict during {description}, retrying ({attempt}/{self.max_retries})")

    async def _settle_once(self, request: SettlementRequest) -> SettlementResult:
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    return await self._apply(session, request)
            except (StaleDataError, IntegrityError) as e:
                raise ConflictError(
                    f"Concurrent update on {request.symbol} for user {request.user_id}"
                ) from e
            except SQLAlchemyError as e:
                logger.error(f"Persistence failure settling {request.symbol} for user {request.user_id}: {e}")
                await self._record_failure(request, e)
                raise PersistenceFailureError(f"Settlement could not be persisted: {type(e).__name__}") from e

    async def _apply(self, session: AsyncSession, request: SettlementRequest) -> SettlementResult:
        holdings = HoldingRepository(session)
        balances = CashBalanceRepository(session)
        trades = TradeRepository(session)

        if request.idempotency_key:
            previous = await trades.get_by_idempotency_key(request.user_id, request.idempotency_key)
            if previous is not None:
                return await self._replay(request, previous, holdings, balances)

        # 1. Load current state under row locks
        holding = await holdings.get(
            request.user_id, request.symbol, request.asset_type, request.wallet_address, for_update=True
        )
        cash = await balances.get_or_create(request.user_id, self.currency, for_update=True)
        state = _holding_state(holding)

        # 2. Amounts
        gross = gross_amount(request.quantity, request.price)
        fee = self.fee_calculator.calculate(gross)
        net = net_amount(request.side, gross, fee)

        # 3. Validate against this transaction's snapshot
        self.validator.validate(
            side=request.side,
            notional=gross,
            fee=fee,
            available_cash=Decimal(cash.available),
            available_quantity=state.quantity if state else Decimal("0"),
            quantity=request.quantity,
        )

        # 4. Cost basis
        update = apply_trade(state, request.side, request.quantity, request.price)

        # 5. Persist
        holding = await self._write_holding(holdings, holding, request, update)
        if request.side == TradeSide.BUY:
            cash.available = Decimal(cash.available) - net
        else:
            cash.available = Decimal(cash.available) + net

        trade = await trades.create(Trade(
            user_id=request.user_id,
            symbol=request.symbol,
            asset_type=request.asset_type,
            wallet_address=request.wallet_address,
            side=request.side,
            status=TradeStatus.PENDING,
            quantity=request.quantity,
            price_at_execution=request.price,
            gross_amount=gross,
            fee=fee,
            net_amount=net,
            currency=self.currency,
            realized_pnl=update.realized_pnl,
            idempotency_key=request.idempotency_key,
        ))
        trade.transition_to(TradeStatus.COMPLETED)
        await session.flush()

        # 6. Result
        if holding is None:
            snapshot = _closed_snapshot(request)
        else:
            snapshot = HoldingSnapshot.from_model(holding)

        logger.info(
            f"Settled {request.side.value} {request.quantity} {request.symbol} @ {request.price} "
            f"for user {request.user_id}: fee={fee} net={net} realized={update.realized_pnl}"
        )
        return SettlementResult(
            holding=snapshot,
            trade=TradeRecord.from_model(trade),
            realized_pnl=update.realized_pnl,
            fee=fee,
            cash=CashSnapshot.from_model(cash),
        )

    async def _write_holding(
        self,
        holdings: HoldingRepository,
        holding: Optional[Holding],
        request: SettlementRequest,
        update: CostBasisUpdate,
    ) -> Optional[Holding]:
        """Apply the new cost basis to the row; returns None when the holding closed."""
        if update.closed:
            if holding is not None:
                await holdings.delete(holding)
            return None

        if holding is None:
            holding = holdings.add(Holding(
                user_id=request.user_id,
                symbol=request.symbol,
                asset_type=request.asset_type,
                wallet_address=request.wallet_address,
                name=request.name,
                details=request.details or {},
            ))
        else:
            if request.name:
                holding.name = request.name
            if request.details:
                holding.details = {**(holding.details or {}), **request.details}

        holding.quantity = update.holding.quantity
        holding.average_cost = update.holding.average_cost
        holding.total_invested = update.holding.total_invested
        holding.current_price = request.price
        return holding

    async def _replay(
        self,
        request: SettlementRequest,
        previous: Trade,
        holdings: HoldingRepository,
        balances: CashBalanceRepository,
    ) -> SettlementResult:
        """Return the original outcome for a repeated idempotency key."""
        same_request = (
            previous.symbol == request.symbol
            and previous.asset_type == request.asset_type
            and (previous.wallet_address or "") == request.wallet_address
            and previous.side == request.side
            and Decimal(previous.quantity) == request.quantity
            and Decimal(previous.price_at_execution) == request.price
        )
        if not same_request:
            raise InvalidInputError(
                "Idempotency key was already used for a different trade",
                details={"idempotency_key": request.idempotency_key, "trade_id": previous.id},
            )

        holding = await holdings.get(
            request.user_id, request.symbol, request.asset_type, request.wallet_address
        )
        cash = await balances.get(request.user_id, self.currency)
        logger.info(f"Replaying trade {previous.id} for idempotency key {request.idempotency_key}")
        return SettlementResult(
            holding=HoldingSnapshot.from_model(holding) if holding else _closed_snapshot(request),
            trade=TradeRecord.from_model(previous),
            realized_pnl=Decimal(previous.realized_pnl),
            fee=Decimal(previous.fee),
            cash=CashSnapshot.from_model(cash) if cash else CashSnapshot.empty(request.user_id, self.currency),
            replayed=True,
        )

    async def _record_failure(self, request: SettlementRequest, error: Exception) -> None:
        """Append a failed trade in a fresh transaction after the settlement rolled back."""
        gross = gross_amount(request.quantity, request.price)
        fee = self.fee_calculator.calculate(gross)
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await TradeRepository(session).record_failed(
                        Trade(
                            user_id=request.user_id,
                            symbol=request.symbol,
                            asset_type=request.asset_type,
                            wallet_address=request.wallet_address,
                            side=request.side,
                            status=TradeStatus.PENDING,
                            quantity=request.quantity,
                            price_at_execution=request.price,
                            gross_amount=gross,
                            fee=fee,
                            net_amount=net_amount(request.side, gross, fee),
                            currency=self.currency,
                            realized_pnl=Decimal("0"),
                        ),
                        reason=f"{type(error).__name__}: {error}",
                    )
        except SQLAlchemyError:
            logger.exception(f"Could not record failed trade for {request.symbol} (user {request.user_id})")

    # ==================== FUNDING ====================

    async def deposit(self, user_id: str, amount: Decimal | str, notes: Optional[str] = None) -> CashSnapshot:
        """
        Credit available cash and record a completed deposit.

        Raises:
            InvalidInputError: Non-positive amount or balance out of range
            ConflictError: Lost a concurrency race on every retry
            PersistenceFailureError: Storage failure
        """
        return await self._move_cash(user_id, amount, WalletTransactionType.DEPOSIT, notes)

    async def withdraw(self, user_id: str, amount: Decimal | str, notes: Optional[str] = None) -> CashSnapshot:
        """
        Debit available cash and record a completed withdrawal.

        Raises:
            InvalidInputError: Non-positive amount
            InsufficientFundsError: Available cash is below the amount
            ConflictError: Lost a concurrency race on every retry
            PersistenceFailureError: Storage failure
        """
        return await self._move_cash(user_id, amount, WalletTransactionType.WITHDRAWAL, notes)

    async def _move_cash(
        self,
        user_id: str,
        amount: Decimal | str,
        kind: WalletTransactionType,
        notes: Optional[str],
    ) -> CashSnapshot:
        if not user_id:
            raise InvalidInputError("User id is required")
        amount = _positive_decimal("amount", amount)

        async with self.locks.hold((user_id, "cash", self.currency)):
            snapshot = await self._with_retries(
                lambda: self._move_cash_once(user_id, amount, kind, notes),
                f"{kind.value} for user {user_id}",
            )
        logger.info(f"{kind.value.capitalize()} of {amount} {self.currency} for user {user_id}")
        return snapshot

    async def _move_cash_once(
        self,
        user_id: str,
        amount: Decimal,
        kind: WalletTransactionType,
        notes: Optional[str],
    ) -> CashSnapshot:
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    cash = await CashBalanceRepository(session).get_or_create(
                        user_id, self.currency, for_update=True
                    )
                    available = Decimal(cash.available)
                    if kind == WalletTransactionType.WITHDRAWAL:
                        if available < amount:
                            logger.warning(
                                f"Withdrawal rejected for user {user_id}: requested {amount}, available {available}"
                            )
                            raise InsufficientFundsError(
                                f"Insufficient funds: required {amount}, available {available}",
                                details={"required": str(amount), "available": str(available)},
                            )
                        cash.available = available - amount
                    else:
                        if max(available, Decimal(cash.total_deposited)) + amount >= MAX_AMOUNT:
                            raise InvalidInputError(
                                "Deposit would take the balance out of range",
                                details={"amount": str(amount)},
                            )
                        cash.available = available + amount
                        cash.total_deposited = Decimal(cash.total_deposited) + amount

                    transaction = WalletTransaction(
                        user_id=user_id,
                        type=kind,
                        amount=amount,
                        currency=self.currency,
                        notes=notes,
                    )
                    transaction.complete(Decimal(cash.available))
                    await WalletTransactionRepository(session).create(transaction)
                    return CashSnapshot.from_model(cash)
            except (StaleDataError, IntegrityError) as e:
                raise ConflictError(f"Concurrent update on cash balance for user {user_id}") from e
            except SQLAlchemyError as e:
                logger.error(f"Persistence failure on {kind.value} for user {user_id}: {e}")
                await self._record_wallet_failure(user_id, amount, kind, notes, e)
                raise PersistenceFailureError(
                    f"{kind.value.capitalize()} could not be persisted: {type(e).__name__}"
                ) from e

    async def _record_wallet_failure(
        self,
        user_id: str,
        amount: Decimal,
        kind: WalletTransactionType,
        notes: Optional[str],
        error: Exception,
    ) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await WalletTransactionRepository(session).record_failed(
                        WalletTransaction(
                            user_id=user_id,
                            type=kind,
                            amount=amount,
                            currency=self.currency,
                            notes=notes,
                        ),
                        reason=f"{type(error).__name__}: {error}",
                    )
        except SQLAlchemyError:
            logger.exception(f"Could not record failed {kind.value} for user {user_id}")



def _holding_state(holding: Optional[Holding]) -> Optional[HoldingState]:
    if holding is None:
        return None
    return HoldingState(
        quantity=Decimal(holding.quantity),
        average_cost=Decimal(holding.average_cost),
        total_invested=Decimal(holding.total_invested),
    )


def _closed_snapshot(request: SettlementRequest) -> HoldingSnapshot:
    zero = Decimal("0")
    return HoldingSnapshot(
        user_id=request.user_id,
        symbol=request.symbol,
        asset_type=request.asset_type,
        wallet_address=request.wallet_address,
        name=request.name,
        quantity=zero,
        average_cost=zero,
        total_invested=zero,
        current_price=request.price,
    )
