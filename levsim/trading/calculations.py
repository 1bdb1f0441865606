"""PnL and fee calculations.

All functions are pure and operate on ``Decimal`` values. Percentages are
expressed in percent (``5`` means 5%), and TP/SL percentages always apply
to the position size, which already includes leverage.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .models import TradeOutcome

HUNDRED = Decimal("100")
# Largest magnitude a double can hold is ~1.8e308
MAX_EXPONENT = 308


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a user-supplied number to a finite Decimal.

    Values beyond the range of a double are treated as not finite.

    Returns:
        The Decimal value, or None if the value is not a finite number
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite() or (number and number.adjusted() > MAX_EXPONENT):
        return None
    return number


def calculate_position_size(entry_amount: Decimal, leverage: int) -> Decimal:
    return entry_amount * leverage


def calculate_trading_fee(position_size: Decimal, maker_fee: Decimal, taker_fee: Decimal) -> Decimal:
    """Fee for a full round trip: maker rate at open plus taker rate at close."""
    return position_size * (maker_fee + taker_fee) / HUNDRED


def calculate_gross_pnl(position_size: Decimal, percentage: Decimal, outcome: TradeOutcome) -> Decimal:
    """Signed PnL before fees: positive for PROFIT, negative for LOSS."""
    pnl = position_size * percentage / HUNDRED
    return pnl if outcome is TradeOutcome.PROFIT else -pnl


def calculate_net_pnl(gross_pnl: Decimal, fee: Decimal) -> Decimal:
    """The fee always reduces the result, shrinking a profit or enlarging a loss."""
    return gross_pnl - fee


@dataclass
class TradeEstimate:
    """Preview of a trade before it is placed.

    Attributes:
        position_size: entry_amount x leverage
        fee: Total fee the trade would reserve
        total_fee_percentage: maker_fee + taker_fee
        net_pnl_at_tp: Net PnL if closed at take-profit
        net_pnl_at_sl: Net PnL if closed at stop-loss (negative)
    """
    position_size: Decimal
    fee: Decimal
    total_fee_percentage: Decimal
    net_pnl_at_tp: Decimal
    net_pnl_at_sl: Decimal


def estimate_trade(
    entry_amount: Decimal,
    leverage: int,
    tp_percentage: Decimal,
    sl_percentage: Decimal,
    maker_fee: Decimal,
    taker_fee: Decimal,
) -> TradeEstimate:
    position_size = calculate_position_size(entry_amount, leverage)
    fee = calculate_trading_fee(position_size, maker_fee, taker_fee)
    return TradeEstimate(
        position_size=position_size,
        fee=fee,
        total_fee_percentage=maker_fee + taker_fee,
        net_pnl_at_tp=calculate_net_pnl(
            calculate_gross_pnl(position_size, tp_percentage, TradeOutcome.PROFIT), fee
        ),
        net_pnl_at_sl=calculate_net_pnl(
            calculate_gross_pnl(position_size, sl_percentage, TradeOutcome.LOSS), fee
        ),
    )
