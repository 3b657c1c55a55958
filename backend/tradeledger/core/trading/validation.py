"""
Heights Ledger - Balance Validator

Pre-settlement balance checks. Must be fed balances read inside the same
transaction that performs the mutation.
"""
from decimal import Decimal

from loguru import logger

from tradeledger.db.models.trade import TradeSide
from tradeledger.utils.exceptions import InsufficientFundsError, InsufficientHoldingsError


class BalanceValidator:
    """Checks a proposed trade against available cash or held quantity."""

    def validate(
        self,
        side: TradeSide,
        notional: Decimal,
        fee: Decimal,
        available_cash: Decimal,
        available_quantity: Decimal,
        quantity: Decimal,
    ) -> None:
        """
        Raise if the trade cannot be covered.

        Buy: available_cash >= notional + fee.
        Sell: available_quantity >= quantity. When the fee exceeds the
        proceeds the shortfall must also be covered by available cash.

        Raises:
            InsufficientFundsError: Cash does not cover the trade
            InsufficientHoldingsError: Held quantity does not cover the sell
        """
        if side == TradeSide.BUY:
            required = notional + fee
            if available_cash < required:
                logger.warning(f"Rejected buy: required {required}, available {available_cash}")
                raise InsufficientFundsError(
                    f"Insufficient funds: required {required}, available {available_cash}",
                    details={"required": str(required), "available": str(available_cash)},
                )
            return

        if available_quantity < quantity:
            logger.warning(f"Rejected sell: requested {quantity}, held {available_quantity}")
            raise InsufficientHoldingsError(
                f"Insufficient holdings: requested {quantity}, held {available_quantity}",
                details={"requested": str(quantity), "held": str(available_quantity)},
            )

        shortfall = fee - notional
        if shortfall > 0 and available_cash < shortfall:
            raise InsufficientFundsError(
                f"Insufficient funds to cover fee shortfall of {shortfall}",
                details={"required": str(shortfall), "available": str(available_cash)},
            )
