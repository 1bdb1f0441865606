"""Data models for simulated leveraged trading."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict
import uuid


class TradeStatus(Enum):
    """Lifecycle state of a trade."""
    OPEN = "open"
    CLOSED = "closed"


class TradeOutcome(Enum):
    """Which boundary closed a trade."""
    PROFIT = "profit"
    LOSS = "loss"

    @classmethod
    def parse(cls, value: "TradeOutcome | str") -> "TradeOutcome":
        """Accept an outcome or its string value ("profit" / "loss")."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown trade outcome: {value!r}") from None


@dataclass
class Trade:
    """An open leveraged trade.

    Attributes:
        pair: Instrument label, uppercased (e.g., "BTC/USDT")
        entry_amount: Margin committed from the balance
        leverage: Multiplier applied to the margin (1-100)
        tp_percentage: Take-profit target, percent of position size
        sl_percentage: Stop-loss target, percent of position size
        fee: Total trading fee reserved at open time
        timestamp: Time the trade was opened
        id: Unique trade identifier (UUID)
        status: Always OPEN for trades in the open collection
    """
    pair: str
    entry_amount: Decimal
    leverage: int
    tp_percentage: Decimal
    sl_percentage: Decimal
    fee: Decimal
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: TradeStatus = TradeStatus.OPEN

    @property
    def position_size(self) -> Decimal:
        """Notional size the TP/SL percentages apply to."""
        return self.entry_amount * self.leverage


@dataclass
class ClosedTrade(Trade):
    """A trade that was closed at its take-profit or stop-loss.

    Attributes:
        outcome: PROFIT or LOSS
        gross_pnl: Signed PnL before the fee
        pnl: Net PnL (gross_pnl - fee), the amount applied to the balance
        close_timestamp: Time the trade was closed
    """
    outcome: TradeOutcome = TradeOutcome.PROFIT
    gross_pnl: Decimal = Decimal("0")
    pnl: Decimal = Decimal("0")
    close_timestamp: datetime = field(default_factory=datetime.now)
    status: TradeStatus = TradeStatus.CLOSED

    @classmethod
    def from_trade(
        cls,
        trade: Trade,
        outcome: TradeOutcome,
        gross_pnl: Decimal,
        pnl: Decimal,
        close_timestamp: datetime,
    ) -> "ClosedTrade":
        return cls(
            pair=trade.pair,
            entry_amount=trade.entry_amount,
            leverage=trade.leverage,
            tp_percentage=trade.tp_percentage,
            sl_percentage=trade.sl_percentage,
            fee=trade.fee,
            timestamp=trade.timestamp,
            id=trade.id,
            outcome=outcome,
            gross_pnl=gross_pnl,
            pnl=pnl,
            close_timestamp=close_timestamp,
        )


class TradeSerializer:
    """Serializer for trades to/from JSON-compatible dictionaries."""

    @staticmethod
    def serialize(trade: Trade) -> Dict[str, Any]:
        data = {
            "id": trade.id,
            "pair": trade.pair,
            "entry_amount": str(trade.entry_amount),
            "leverage": trade.leverage,
            "position_size": str(trade.position_size),
            "tp_percentage": str(trade.tp_percentage),
            "sl_percentage": str(trade.sl_percentage),
            "fee": str(trade.fee),
            "timestamp": trade.timestamp.isoformat(),
            "status": trade.status.value,
        }
        if isinstance(trade, ClosedTrade):
            data.update({
                "outcome": trade.outcome.value,
                "gross_pnl": str(trade.gross_pnl),
                "pnl": str(trade.pnl),
                "close_timestamp": trade.close_timestamp.isoformat(),
            })
        return data

    @staticmethod
    def deserialize(data: Dict[str, Any]) -> Trade:
        """Restore a trade from a dictionary.

        ``position_size`` is ignored; it is always recomputed from
        entry amount and leverage.

        Raises:
            KeyError, ValueError, ArithmeticError: If the data is malformed
        """
        fields = dict(
            id=str(data["id"]),
            pair=str(data["pair"]),
            entry_amount=Decimal(str(data["entry_amount"])),
            leverage=int(data["leverage"]),
            tp_percentage=Decimal(str(data["tp_percentage"])),
            sl_percentage=Decimal(str(data["sl_percentage"])),
            fee=Decimal(str(data.get("fee", "0"))),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
        if data.get("status") == TradeStatus.CLOSED.value:
            return ClosedTrade(
                outcome=TradeOutcome(data["outcome"]),
                gross_pnl=Decimal(str(data["gross_pnl"])),
                pnl=Decimal(str(data["pnl"])),
                close_timestamp=datetime.fromisoformat(data["close_timestamp"]),
                **fields,
            )
        return Trade(**fields)

    @classmethod
    def serialize_list(cls, trades: list[Trade]) -> list[Dict[str, Any]]:
        return [cls.serialize(t) for t in trades]

    @classmethod
    def deserialize_list(cls, data: list[Dict[str, Any]]) -> list[Trade]:
        if not isinstance(data, list):
            raise TypeError(f"Expected a list of trades, got {type(data).__name__}")
        return [cls.deserialize(item) for item in data]
