"""
Rebalancing Suggestions

Compares current allocation percentages with target percentages and
suggests buy or sell amounts for holdings that drift past a threshold.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping

from tradeledger.db.models.trade import TradeSide
from tradeledger.utils.exceptions import InvalidInputError


REBALANCE_THRESHOLD = Decimal("5")  # percentage points


@dataclass
class RebalanceSuggestion:
    """Suggested trade to bring one holding back to target."""
    symbol: str
    action: TradeSide
    amount: Decimal
    current_allocation: Decimal
    target_allocation: Decimal
    reason: str

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "action": self.action.value,
            "amount": str(self.amount),
            "current_allocation": str(self.current_allocation),
            "target_allocation": str(self.target_allocation),
            "reason": self.reason,
        }


def _one_decimal(value: Decimal) -> str:
    return str(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def validate_targets(targets: Mapping[str, Decimal]) -> dict[str, Decimal]:
    """Normalize target allocations; each within 0-100 and summing to at most 100."""
    normalized = {}
    for symbol, target in targets.items():
        target = Decimal(str(target))
        if target < 0 or target > 100:
            raise InvalidInputError(f"Target allocation for {symbol} must be between 0 and 100")
        normalized[symbol.upper()] = target
    if sum(normalized.values(), Decimal("0")) > 100:
        raise InvalidInputError("Target allocations must not sum to more than 100")
    return normalized


def generate_rebalancing_suggestions(
    current_allocations: Mapping[str, Decimal],
    targets: Mapping[str, Decimal],
    total_value: Decimal,
    threshold: Decimal = REBALANCE_THRESHOLD,
) -> list[RebalanceSuggestion]:
    """
    Suggest trades for holdings whose allocation differs from target by
    more than `threshold` percentage points.

    Held symbols without a target are treated as target 0; targeted
    symbols that are not held are treated as current 0.

    Returns:
        Suggestions sorted by amount, largest first
    """
    targets = validate_targets(targets)
    current = {symbol.upper(): Decimal(value) for symbol, value in current_allocations.items()}
    suggestions = []

    for symbol in sorted(set(current) | set(targets)):
        current_pct = current.get(symbol, Decimal("0"))
        target_pct = targets.get(symbol, Decimal("0"))
        difference = current_pct - target_pct
        if abs(difference) <= threshold:
            continue

        amount = (abs(difference) / 100 * total_value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        if difference > 0:
            action = TradeSide.SELL
            reason = f"Overweight by {_one_decimal(difference)}% - reduce position"
        else:
            action = TradeSide.BUY
            reason = f"Underweight by {_one_decimal(abs(difference))}% - increase position"

        suggestions.append(RebalanceSuggestion(
            symbol=symbol,
            action=action,
            amount=amount,
            current_allocation=current_pct,
            target_allocation=target_pct,
            reason=reason,
        ))

    return sorted(suggestions, key=lambda s: s.amount, reverse=True)
