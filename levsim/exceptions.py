"""Error taxonomy for the trading simulator.

None of these errors is fatal: input errors are surfaced to the user,
storage errors degrade the session to in-memory state.
"""

from __future__ import annotations

from typing import Optional


class TradingSimError(Exception):
    """Base class for all simulator errors."""


class InvalidTradeInput(TradingSimError, ValueError):
    """Raised when a trade cannot be opened from the given input.

    Attributes:
        reason: Machine-readable rejection reason
        message: Human-readable explanation for the user
    """

    def __init__(self, reason, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


class TradeNotFound(TradingSimError, KeyError):
    """Raised when a close is requested for a trade that is not open."""

    def __init__(self, trade_id: str) -> None:
        super().__init__(trade_id)
        self.trade_id = trade_id

    def __str__(self) -> str:
        return f"No open trade with id '{self.trade_id}'"


class StorageError(TradingSimError):
    """Base class for persistence failures."""

    action = "Storage operation"

    def __init__(self, key: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{self.action} failed for key '{key}': {cause}")
        self.key = key
        self.cause = cause


class PersistenceReadError(StorageError):
    """Stored value is unreadable or corrupted."""

    action = "Read"


class PersistenceWriteError(StorageError):
    """Value could not be written to storage."""

    action = "Write"
