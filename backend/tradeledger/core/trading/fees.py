"""
Heights Ledger - Fee Calculator

Brokerage fee charged on every trade: a percentage of notional clamped to
a floor and a ceiling, e.g. 0.1% with a minimum of 10 and a maximum of 1000
in the ledger currency.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from tradeledger.db.models.trade import TradeSide
from tradeledger.utils.exceptions import InvalidInputError


FEE_QUANTUM = Decimal("0.01")
AMOUNT_QUANTUM = Decimal("0.00000001")


@dataclass(frozen=True)
class FeeConfig:
    """Fee schedule."""
    rate: Decimal = Decimal("0.001")  # 0.1%
    min_fee: Decimal = Decimal("10")
    max_fee: Decimal = Decimal("1000")

    def __post_init__(self):
        if self.rate < 0:
            raise InvalidInputError("Fee rate must not be negative")
        if self.min_fee < 0 or self.min_fee > self.max_fee:
            raise InvalidInputError("Fee bounds must satisfy 0 <= min_fee <= max_fee")

    @classmethod
    def from_settings(cls, settings) -> "FeeConfig":
        return cls(
            rate=settings.FEE_RATE,
            min_fee=settings.MIN_FEE,
            max_fee=settings.MAX_FEE,
        )


class FeeCalculator:
    """Pure fee computation; no I/O."""

    def __init__(self, config: FeeConfig | None = None):
        self.config = config or FeeConfig()

    def calculate(self, notional: Decimal) -> Decimal:
        """
        Brokerage fee for a trade notional.

        Args:
            notional: Gross trade value (quantity * price)

        Returns:
            Fee rounded to 0.01, always within [min_fee, max_fee]

        Raises:
            InvalidInputError: If notional is negative
        """
        if notional < 0:
            raise InvalidInputError("Notional must not be negative", details={"notional": str(notional)})

        fee = notional * self.config.rate
        fee = max(fee, self.config.min_fee)
        fee = min(fee, self.config.max_fee)
        return fee.quantize(FEE_QUANTUM, rounding=ROUND_HALF_UP)


def gross_amount(quantity: Decimal, price: Decimal) -> Decimal:
    """Trade notional at ledger scale."""
    return (quantity * price).quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def net_amount(side: TradeSide, gross: Decimal, fee: Decimal) -> Decimal:
    """Cash moved by a trade: buys pay gross + fee, sells receive gross - fee."""
    if side == TradeSide.BUY:
        return gross + fee
    return gross - fee
