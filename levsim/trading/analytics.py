"""Derived views and performance analytics for simulated trading."""

from __future__ import annotations

import csv
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .models import ClosedTrade, Trade, TradeOutcome

ZERO = Decimal("0")


def calculate_locked_amount(open_trades: Iterable[Trade]) -> Decimal:
    """Margin locked by open trades: the sum of their entry amounts."""
    return sum((trade.entry_amount for trade in open_trades), ZERO)


def calculate_available_balance(balance: Decimal, open_trades: Iterable[Trade]) -> Decimal:
    """Balance that can still be committed to new trades."""
    return balance - calculate_locked_amount(open_trades)


class Timeframe(Enum):
    """Bucket size for grouping PnL over time."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass
class TradeStatistics:
    """Performance statistics over closed trades.

    Attributes:
        total_trades: Number of closed trades
        winning_trades: Number closed at take-profit
        win_rate: Percentage of winning trades (0-100)
        total_pnl: Sum of net PnL
        total_fees: Sum of fees paid
        pnl_last_7_days: Net PnL of trades closed in the last 7 days
        pnl_last_30_days: Net PnL of trades closed in the last 30 days
    """
    total_trades: int
    winning_trades: int
    win_rate: Decimal
    total_pnl: Decimal
    total_fees: Decimal
    pnl_last_7_days: Decimal
    pnl_last_30_days: Decimal


class ITradeAnalytics(ABC):
    """Interface for trade analytics operations."""

    @abstractmethod
    def calculate_statistics(
        self, trades: List[ClosedTrade], now: Optional[datetime] = None
    ) -> TradeStatistics:
        """Calculate performance statistics from closed trades.

        Args:
            trades: Closed trades
            now: Reference time for the rolling windows (default: now)

        Returns:
            TradeStatistics with calculated values
        """
        ...

    @abstractmethod
    def group_pnl(
        self, trades: List[ClosedTrade], timeframe: Timeframe | str
    ) -> List[Tuple[str, Decimal]]:
        """Sum net PnL per day, week, or month of closing."""
        ...

    @abstractmethod
    def export_to_csv(self, trades: List[ClosedTrade], filepath: str) -> None:
        """Export closed trade history to a CSV file."""
        ...


class TradeAnalytics(ITradeAnalytics):
    """Concrete implementation of trade analytics."""

    def calculate_statistics(
        self, trades: List[ClosedTrade], now: Optional[datetime] = None
    ) -> TradeStatistics:
        now = now or datetime.now()
        total_trades = len(trades)
        winning_trades = sum(1 for t in trades if t.outcome is TradeOutcome.PROFIT)

        if total_trades > 0:
            win_rate = (Decimal(winning_trades) / Decimal(total_trades)) * Decimal("100")
        else:
            win_rate = ZERO

        return TradeStatistics(
            total_trades=total_trades,
            winning_trades=winning_trades,
            win_rate=win_rate,
            total_pnl=sum((t.pnl for t in trades), ZERO),
            total_fees=sum((t.fee for t in trades), ZERO),
            pnl_last_7_days=self._pnl_since(trades, now - timedelta(days=7)),
            pnl_last_30_days=self._pnl_since(trades, now - timedelta(days=30)),
        )

    @staticmethod
    def _pnl_since(trades: List[ClosedTrade], since: datetime) -> Decimal:
        return sum((t.pnl for t in trades if t.close_timestamp > since), ZERO)

    def group_pnl(
        self, trades: List[ClosedTrade], timeframe: Timeframe | str
    ) -> List[Tuple[str, Decimal]]:
        """Sum net PnL per period of closing.

        Labels are ``YYYY-MM-DD`` (daily), ``YYYY - Wnn`` with the ISO week
        (weekly), or ``YYYY-MM`` (monthly). Periods are returned oldest
        first, whatever the order of ``trades``.

        Args:
            trades: Closed trades
            timeframe: DAILY, WEEKLY, or MONTHLY (or its string value)

        Returns:
            List of (label, net PnL) pairs
        """
        timeframe = Timeframe(timeframe)
        buckets: Dict[str, Decimal] = {}
        for trade in self.sort_trades_by_close_time(trades, descending=False):
            label = self._period_label(trade.close_timestamp, timeframe)
            buckets[label] = buckets.get(label, ZERO) + trade.pnl
        return list(buckets.items())

    @staticmethod
    def _period_label(moment: datetime, timeframe: Timeframe) -> str:
        if timeframe is Timeframe.DAILY:
            return moment.date().isoformat()
        if timeframe is Timeframe.WEEKLY:
            year, week, _ = moment.isocalendar()
            return f"{year} - W{week}"
        return f"{moment.year}-{moment.month:02d}"

    def sort_trades_by_close_time(
        self, trades: List[ClosedTrade], descending: bool = True
    ) -> List[ClosedTrade]:
        return sorted(trades, key=lambda t: t.close_timestamp, reverse=descending)

    def export_to_csv(self, trades: List[ClosedTrade], filepath: str) -> None:
        """Export closed trade history to a CSV file.

        Args:
            trades: Closed trades to export
            filepath: Path to output CSV file
        """
        fieldnames = [
            "id", "pair", "outcome", "entry_amount", "leverage", "position_size",
            "tp_percentage", "sl_percentage", "fee", "gross_pnl", "pnl",
            "timestamp", "close_timestamp",
        ]

        with open(filepath, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
            writer.writeheader()

            for trade in trades:
                writer.writerow({
                    "id": trade.id,
                    "pair": trade.pair,
                    "outcome": trade.outcome.value,
                    "entry_amount": str(trade.entry_amount),
                    "leverage": trade.leverage,
                    "position_size": str(trade.position_size),
                    "tp_percentage": str(trade.tp_percentage),
                    "sl_percentage": str(trade.sl_percentage),
                    "fee": str(trade.fee),
                    "gross_pnl": str(trade.gross_pnl),
                    "pnl": str(trade.pnl),
                    "timestamp": trade.timestamp.isoformat(),
                    "close_timestamp": trade.close_timestamp.isoformat(),
                })
