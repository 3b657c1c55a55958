"""
Heights Ledger - Cost-Basis Updater

Weighted-average cost accounting for a single holding.

- Buys fold the new lot into the average cost and never realize P&L.
- Sells realize quantity * (price - average_cost) and leave the average
  cost of the remaining quantity unchanged.
- Selling the whole quantity closes the holding (all fields zero).

All arithmetic is Decimal at a fixed 8-digit scale so that long runs of
small trades do not drift.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Optional

from tradeledger.db.models.trade import TradeSide
from tradeledger.utils.exceptions import InvalidInputError, InvariantViolationError


LEDGER_QUANTUM = Decimal("0.00000001")
ZERO = Decimal("0")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(LEDGER_QUANTUM, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class HoldingState:
    """Cost-basis fields of a holding."""
    quantity: Decimal
    average_cost: Decimal
    total_invested: Decimal

    @property
    def is_closed(self) -> bool:
        return self.quantity == 0

    @classmethod
    def empty(cls) -> "HoldingState":
        return cls(quantity=ZERO, average_cost=ZERO, total_invested=ZERO)


@dataclass(frozen=True)
class CostBasisUpdate:
    """Result of applying one trade to a holding."""
    holding: HoldingState
    realized_pnl: Decimal

    @property
    def closed(self) -> bool:
        return self.holding.is_closed


def apply_trade(
    existing: Optional[HoldingState],
    side: TradeSide,
    quantity: Decimal,
    price: Decimal,
) -> CostBasisUpdate:
    """
    Apply a buy or sell to a holding.

    Args:
        existing: Current holding state, or None when nothing is held
        side: BUY or SELL
        quantity: Units traded, must be positive
        price: Execution price per unit, must be positive

    Returns:
        CostBasisUpdate with the new holding state and realized P&L delta

    Raises:
        InvalidInputError: Non-positive quantity or price
        InvariantViolationError: Sell larger than the held quantity
    """
    if quantity <= 0:
        raise InvalidInputError("Quantity must be positive")
    if price <= 0:
        raise InvalidInputError("Price must be positive")

    if existing is not None and existing.is_closed:
        existing = None

    if side == TradeSide.BUY:
        return _apply_buy(existing, quantity, price)
    return _apply_sell(existing, quantity, price)


def _apply_buy(existing: Optional[HoldingState], quantity: Decimal, price: Decimal) -> CostBasisUpdate:
    if existing is None:
        holding = HoldingState(
            quantity=quantity,
            average_cost=price,
            total_invested=quantize(quantity * price),
        )
        return CostBasisUpdate(holding=holding, realized_pnl=ZERO)

    new_quantity = existing.quantity + quantity
    new_total_invested = quantize(existing.total_invested + quantity * price)
    holding = HoldingState(
        quantity=new_quantity,
        average_cost=quantize(new_total_invested / new_quantity),
        total_invested=new_total_invested,
    )
    return CostBasisUpdate(holding=holding, realized_pnl=ZERO)


def _apply_sell(existing: Optional[HoldingState], quantity: Decimal, price: Decimal) -> CostBasisUpdate:
    held = existing.quantity if existing is not None else ZERO
    if existing is None or quantity > held:
        raise InvariantViolationError(
            f"Sell of {quantity} exceeds held quantity {held}; over-sells must be rejected before cost-basis update"
        )

    realized = quantize(quantity * (price - existing.average_cost))

    if quantity == existing.quantity:
        return CostBasisUpdate(holding=HoldingState.empty(), realized_pnl=realized)

    new_quantity = existing.quantity - quantity
    holding = HoldingState(
        quantity=new_quantity,
        average_cost=existing.average_cost,
        total_invested=quantize(new_quantity * existing.average_cost),
    )
    return CostBasisUpdate(holding=holding, realized_pnl=realized)
