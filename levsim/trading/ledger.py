"""Balance ledger for the simulated account."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal

from levsim.storage.storage import IStorageService, PersistentValue

from .calculations import to_decimal

logger = logging.getLogger(__name__)

BALANCE_KEY = "balance"
ZERO = Decimal("0")


def _decode_balance(data) -> Decimal:
    balance = to_decimal(data)
    if balance is None:
        raise ValueError(f"Stored balance is not a finite number: {data!r}")
    return balance


class IBalanceLedger(ABC):
    """Interface for balance ledger operations."""

    @abstractmethod
    def get_balance(self) -> Decimal:
        """Get the realized account balance."""
        ...

    @abstractmethod
    def credit(self, delta: Decimal) -> Decimal:
        """Apply a signed amount to the balance."""
        ...

    @abstractmethod
    def reset(self, new_balance: Decimal) -> None:
        """Set the balance unconditionally."""
        ...


class BalanceLedger(IBalanceLedger):
    """Persistent account balance.

    Opening a trade does not change the balance; only closing does.
    The balance never goes below zero: a loss larger than the balance
    empties the account (there is no margin call or liquidation).
    """

    def __init__(self, storage: IStorageService, initial_balance: Decimal = Decimal("10000")) -> None:
        """Initialize the ledger, restoring a stored balance if present.

        Args:
            storage: Storage service holding the balance
            initial_balance: Balance used when none is stored
        """
        self._balance: PersistentValue[Decimal] = PersistentValue(
            storage,
            BALANCE_KEY,
            Decimal(str(initial_balance)),
            decode=_decode_balance,
            encode=str,
        )

    def get_balance(self) -> Decimal:
        return self._balance.get()

    def credit(self, delta: Decimal) -> Decimal:
        """Apply a signed amount to the balance, clamping at zero.

        Args:
            delta: Net PnL or other adjustment; negative for a loss

        Returns:
            The new balance

        Raises:
            ValueError: If delta is not a finite number
        """
        amount = to_decimal(delta)
        if amount is None:
            raise ValueError(f"Balance delta must be a finite number, got {delta!r}")
        new_balance = max(ZERO, self._balance.get() + amount)
        self._balance.set(new_balance)
        return new_balance

    def reset(self, new_balance: Decimal) -> None:
        amount = to_decimal(new_balance)
        if amount is None:
            raise ValueError(f"Balance must be a finite number, got {new_balance!r}")
        self._balance.set(amount)
        logger.info(f"Balance reset to {amount}")
