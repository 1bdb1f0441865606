"""Trading session: the single entry point for presentation code.

The session owns one settings store, balance ledger, and trade book,
all backed by the same injected storage, and coordinates operations
that touch more than one of them.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, List, Optional

from levsim.config import AppConfig
from levsim.exceptions import TradeNotFound
from levsim.storage.storage import IStorageService, JsonFileStorage, MemoryStorage

from .analytics import (
    TradeAnalytics,
    TradeStatistics,
    calculate_available_balance,
    calculate_locked_amount,
)
from .book import TradeBook
from .calculations import TradeEstimate, estimate_trade, to_decimal
from .ledger import BalanceLedger
from .models import ClosedTrade, Trade, TradeOutcome
from .settings import SettingsStore, TradingSettings
from .validation import parse_leverage

logger = logging.getLogger(__name__)


class TradingSession:
    """Coordinates the settings store, balance ledger, and trade book.

    Closing a trade and crediting its net PnL happen together in
    ``settle_trade``: if the credit fails, the trade book is restored
    so that a trade is never closed without its PnL reaching the
    balance.
    """

    def __init__(
        self,
        storage: IStorageService,
        book: Optional[TradeBook] = None,
        analytics: Optional[TradeAnalytics] = None,
    ) -> None:
        """Initialize the session from stored state.

        Args:
            storage: Storage service shared by all stores
            book: Trade book (default: TradeBook over ``storage``)
            analytics: Analytics service (default: TradeAnalytics())
        """
        self._storage = storage
        self._settings = SettingsStore(storage)
        self._ledger = BalanceLedger(storage, self._settings.get().initial_balance)
        self._book = book or TradeBook(storage)
        self._analytics = analytics or TradeAnalytics()

    @property
    def storage(self) -> IStorageService:
        return self._storage

    @property
    def analytics(self) -> TradeAnalytics:
        return self._analytics

    # Trades

    def place_trade(
        self,
        pair: Any,
        entry_amount: Any,
        leverage: Any = None,
        tp_percentage: Any = None,
        sl_percentage: Any = None,
    ) -> Trade:
        """Open a trade against the available balance.

        Leverage defaults to the configured default leverage and the
        TP/SL percentages to the configured profit/loss percentage.

        Raises:
            InvalidTradeInput: If the input is rejected
        """
        settings = self._settings.get()
        return self._book.place_trade(
            pair=pair,
            entry_amount=entry_amount,
            leverage=settings.default_leverage if leverage is None else leverage,
            tp_percentage=settings.profit_loss_percentage if tp_percentage is None else tp_percentage,
            sl_percentage=settings.profit_loss_percentage if sl_percentage is None else sl_percentage,
            available_balance=self.get_available_balance(),
            maker_fee=settings.maker_fee,
            taker_fee=settings.taker_fee,
        )

    def estimate_trade(
        self,
        entry_amount: Any,
        leverage: Any = None,
        tp_percentage: Any = None,
        sl_percentage: Any = None,
    ) -> Optional[TradeEstimate]:
        """Preview fee and outcomes of a trade with the current fee rates.

        Returns:
            The estimate, or None if any input is not a finite number or
            the leverage is not a whole number in the allowed range
        """
        settings = self._settings.get()
        amount = to_decimal(entry_amount)
        lev = parse_leverage(settings.default_leverage if leverage is None else leverage)
        tp = to_decimal(settings.profit_loss_percentage if tp_percentage is None else tp_percentage)
        sl = to_decimal(settings.profit_loss_percentage if sl_percentage is None else sl_percentage)
        if amount is None or lev is None or tp is None or sl is None:
            return None
        return estimate_trade(amount, lev, tp, sl, settings.maker_fee, settings.taker_fee)

    def settle_trade(self, trade_id: str, outcome: TradeOutcome | str) -> Optional[ClosedTrade]:
        """Close a trade and apply its net PnL to the balance.

        Args:
            trade_id: Id of an open trade
            outcome: "profit" (take-profit) or "loss" (stop-loss)

        Returns:
            The closed trade, or None if no open trade has this id
        """
        snapshot = self._book.snapshot()
        try:
            closed = self._book.close_trade(trade_id, outcome)
        except TradeNotFound as e:
            logger.warning(f"Ignoring close request: {e}")
            return None

        try:
            self._ledger.credit(closed.pnl)
        except Exception:
            logger.error(f"Failed to credit PnL for trade {trade_id}, restoring trade book")
            self._book.restore(snapshot)
            raise
        return closed

    def take_profit(self, trade_id: str) -> Optional[ClosedTrade]:
        return self.settle_trade(trade_id, TradeOutcome.PROFIT)

    def stop_loss(self, trade_id: str) -> Optional[ClosedTrade]:
        return self.settle_trade(trade_id, TradeOutcome.LOSS)

    def clear_history(self) -> None:
        """Remove all open and closed trades. The balance is unchanged."""
        self._book.clear_all()

    # Balance

    def credit_balance(self, delta: Any) -> Decimal:
        return self._ledger.credit(delta)

    def reset_balance(self, amount: Any = None) -> Decimal:
        """Set the balance, by default to the configured initial balance."""
        if amount is None:
            amount = self._settings.get().initial_balance
        self._ledger.reset(amount)
        return self._ledger.get_balance()

    # Settings

    def update_settings(self, partial: Optional[dict] = None, **kwargs: Any) -> TradingSettings:
        """Merge settings; a new initial balance also resets the balance."""
        changes = dict(partial or {}, **kwargs)
        updated, applied = self._settings.apply(changes)
        if "initial_balance" in applied:
            self._ledger.reset(updated.initial_balance)
        return updated

    def reset_settings(self) -> TradingSettings:
        return self._settings.reset()

    # Read accessors

    def get_balance(self) -> Decimal:
        return self._ledger.get_balance()

    def get_locked_amount(self) -> Decimal:
        return calculate_locked_amount(self._book.get_open_trades())

    def get_available_balance(self) -> Decimal:
        return calculate_available_balance(self._ledger.get_balance(), self._book.get_open_trades())

    def get_open_trades(self) -> List[Trade]:
        return self._book.get_open_trades()

    def get_closed_trades(self) -> List[ClosedTrade]:
        return self._book.get_closed_trades()

    def get_settings(self) -> TradingSettings:
        return self._settings.get()

    def get_statistics(self) -> TradeStatistics:
        return self._analytics.calculate_statistics(self._book.get_closed_trades())


def open_session(config: Optional[AppConfig] = None) -> TradingSession:
    """Create a session persisted under the configured data directory.

    Falls back to non-durable in-memory storage if the directory cannot
    be created.
    """
    config = config or AppConfig.from_env()
    try:
        storage: IStorageService = JsonFileStorage(config.data_dir)
    except OSError as e:
        logger.error(f"Cannot use data directory {config.data_dir}, state will not be saved: {e}")
        storage = MemoryStorage()
    return TradingSession(storage)
