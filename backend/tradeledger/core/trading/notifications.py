"""
Heights Ledger - Settlement Notifier

Fan-out of committed settlements to subscribers (websocket pushers,
audit sinks). Runs after commit, so a failing subscriber cannot undo
a settlement.
"""
from typing import TYPE_CHECKING, Awaitable, Callable

from loguru import logger

if TYPE_CHECKING:
    from tradeledger.core.trading.settlement import SettlementResult


Subscriber = Callable[["SettlementResult"], Awaitable[None]]


class SettlementNotifier:
    """Manages settlement subscribers."""

    def __init__(self):
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    async def publish(self, result: "SettlementResult") -> None:
        """Deliver a committed settlement to every subscriber."""
        for callback in list(self._subscribers):
            try:
                await callback(result)
            except Exception:
                logger.exception(
                    f"Settlement subscriber {getattr(callback, '__name__', callback)!r} failed "
                    f"for trade {result.trade.id}"
                )

    def get_stats(self) -> dict:
        return {"subscribers": len(self._subscribers)}
