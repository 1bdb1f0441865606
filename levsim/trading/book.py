"""Trade book: open and closed trade collections."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, List, Optional

from levsim.exceptions import InvalidTradeInput, TradeNotFound
from levsim.storage.storage import IStorageService, PersistentValue

from .calculations import (
    calculate_gross_pnl,
    calculate_net_pnl,
    calculate_position_size,
    calculate_trading_fee,
)
from .models import ClosedTrade, Trade, TradeOutcome, TradeSerializer
from .validation import TradeInputValidator

logger = logging.getLogger(__name__)

OPEN_TRADES_KEY = "open_trades"
CLOSED_TRADES_KEY = "closed_trades"


@dataclass(frozen=True)
class TradeBookSnapshot:
    """Point-in-time copy of both collections, used to undo a close."""
    open_trades: tuple
    closed_trades: tuple


class ITradeBook(ABC):
    """Interface for trade book operations."""

    @abstractmethod
    def place_trade(
        self,
        pair: Any,
        entry_amount: Any,
        leverage: Any,
        tp_percentage: Any,
        sl_percentage: Any,
        available_balance: Decimal,
        maker_fee: Decimal,
        taker_fee: Decimal,
    ) -> Trade:
        """Open a new trade."""
        ...

    @abstractmethod
    def close_trade(self, trade_id: str, outcome: TradeOutcome | str) -> ClosedTrade:
        """Close an open trade at its take-profit or stop-loss."""
        ...

    @abstractmethod
    def clear_all(self) -> None:
        """Remove every open and closed trade."""
        ...

    @abstractmethod
    def get_open_trades(self) -> List[Trade]:
        """Get open trades, oldest first."""
        ...

    @abstractmethod
    def get_closed_trades(self) -> List[ClosedTrade]:
        """Get closed trades, most recent first."""
        ...


class TradeBook(ITradeBook):
    """Persistent trade book.

    A trade lives in exactly one collection: it is appended to the open
    collection when placed and moved, as a ClosedTrade, to the head of
    the closed collection when closed. The book never touches the
    balance; callers apply the returned net PnL themselves.
    """

    def __init__(
        self,
        storage: IStorageService,
        validator: Optional[TradeInputValidator] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the trade book, restoring any stored trades.

        Args:
            storage: Storage service holding the trade collections
            validator: Input validator (default: TradeInputValidator())
            clock: Source of open/close timestamps
        """
        self._validator = validator or TradeInputValidator()
        self._clock = clock
        self._open: PersistentValue[List[Trade]] = PersistentValue(
            storage,
            OPEN_TRADES_KEY,
            [],
            decode=TradeSerializer.deserialize_list,
            encode=TradeSerializer.serialize_list,
        )
        self._closed: PersistentValue[List[ClosedTrade]] = PersistentValue(
            storage,
            CLOSED_TRADES_KEY,
            [],
            decode=TradeSerializer.deserialize_list,
            encode=TradeSerializer.serialize_list,
        )
        self._reconcile()

    def _reconcile(self) -> None:
        """Drop open trades that the closed collection already holds.

        Closing writes the closed collection before the open one, so an
        interrupted or failed second write leaves the trade in both.
        """
        closed_ids = {t.id for t in self._closed.get()}
        open_trades = self._open.get()
        kept = [t for t in open_trades if t.id not in closed_ids]
        if len(kept) != len(open_trades):
            stale = [t.id for t in open_trades if t.id in closed_ids]
            logger.warning(f"Dropping open trades already closed: {', '.join(stale)}")
            self._open.set(kept)

    def place_trade(
        self,
        pair: Any,
        entry_amount: Any,
        leverage: Any,
        tp_percentage: Any,
        sl_percentage: Any,
        available_balance: Decimal,
        maker_fee: Decimal,
        taker_fee: Decimal,
    ) -> Trade:
        """Open a new trade.

        The fee is computed once, here, from the rates passed in. Later
        changes to the fee settings do not affect it.

        Args:
            pair: Instrument label
            entry_amount: Margin to commit
            leverage: Leverage multiplier (1-100)
            tp_percentage: Take-profit percentage of position size
            sl_percentage: Stop-loss percentage of position size
            available_balance: Balance not locked by open trades
            maker_fee: Maker fee rate in percent
            taker_fee: Taker fee rate in percent

        Returns:
            The newly opened trade

        Raises:
            InvalidTradeInput: If validation fails; nothing is created
        """
        result = self._validator.validate(
            pair, entry_amount, leverage, tp_percentage, sl_percentage, available_balance
        )
        if not result.is_valid:
            raise InvalidTradeInput(result.reason, result.message)

        position_size = calculate_position_size(result.entry_amount, result.leverage)
        trade = Trade(
            pair=result.pair,
            entry_amount=result.entry_amount,
            leverage=result.leverage,
            tp_percentage=result.tp_percentage,
            sl_percentage=result.sl_percentage,
            fee=calculate_trading_fee(position_size, maker_fee, taker_fee),
            timestamp=self._clock(),
        )
        self._open.set(self._open.get() + [trade])
        logger.info(
            f"Opened trade {trade.id}: {trade.pair} {trade.entry_amount} x{trade.leverage}"
        )
        return trade

    def close_trade(self, trade_id: str, outcome: TradeOutcome | str) -> ClosedTrade:
        """Close an open trade at its take-profit or stop-loss.

        Args:
            trade_id: Id of an open trade
            outcome: PROFIT closes at tp_percentage, LOSS at sl_percentage

        Returns:
            The closed trade, carrying the net PnL to apply to the balance

        Raises:
            TradeNotFound: If no open trade has this id
            ValueError: If outcome is not "profit" or "loss"
        """
        outcome = TradeOutcome.parse(outcome)
        trade = self.get_open_trade(trade_id)
        if trade is None:
            raise TradeNotFound(trade_id)

        percentage = trade.tp_percentage if outcome is TradeOutcome.PROFIT else trade.sl_percentage
        gross_pnl = calculate_gross_pnl(trade.position_size, percentage, outcome)
        closed = ClosedTrade.from_trade(
            trade,
            outcome=outcome,
            gross_pnl=gross_pnl,
            pnl=calculate_net_pnl(gross_pnl, trade.fee),
            close_timestamp=self._clock(),
        )

        self._closed.set([closed] + self._closed.get())
        self._open.set([t for t in self._open.get() if t.id != trade_id])
        logger.info(f"Closed trade {trade_id} at {outcome.value}: net PnL {closed.pnl}")
        return closed

    def clear_all(self) -> None:
        self._open.set([])
        self._closed.set([])
        logger.info("Cleared all trades")

    def get_open_trades(self) -> List[Trade]:
        return list(self._open.get())

    def get_closed_trades(self) -> List[ClosedTrade]:
        return list(self._closed.get())

    def get_open_trade(self, trade_id: str) -> Optional[Trade]:
        for trade in self._open.get():
            if trade.id == trade_id:
                return trade
        return None

    def snapshot(self) -> TradeBookSnapshot:
        return TradeBookSnapshot(tuple(self._open.get()), tuple(self._closed.get()))

    def restore(self, snapshot: TradeBookSnapshot) -> None:
        """Replace both collections with a previously taken snapshot."""
        self._open.set(list(snapshot.open_trades))
        self._closed.set(list(snapshot.closed_trades))
