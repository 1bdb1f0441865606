"""Validation of trade entry input.

This module provides:
- ValidationState: Enum for input validation states
- TradeRejectionReason: Why a trade request was refused
- TradeInputValidator: Checks raw trade input and parses it
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .calculations import to_decimal

MIN_LEVERAGE = 1
MAX_LEVERAGE = 100


class ValidationState(Enum):
    """Input validation states."""
    VALID = "valid"
    INVALID = "invalid"


class TradeRejectionReason(Enum):
    """Reason a trade request was rejected."""
    EMPTY_PAIR = "empty_pair"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_TAKE_PROFIT = "invalid_take_profit"
    INVALID_STOP_LOSS = "invalid_stop_loss"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INVALID_LEVERAGE = "invalid_leverage"


@dataclass
class ValidationResult:
    """Outcome of validating trade input.

    Parsed values are only populated when ``state`` is VALID.
    """
    state: ValidationState
    reason: Optional[TradeRejectionReason] = None
    message: str = ""
    pair: str = ""
    entry_amount: Decimal = Decimal("0")
    leverage: int = 0
    tp_percentage: Decimal = Decimal("0")
    sl_percentage: Decimal = Decimal("0")

    @property
    def is_valid(self) -> bool:
        return self.state is ValidationState.VALID


def _invalid(reason: TradeRejectionReason, message: str) -> ValidationResult:
    return ValidationResult(state=ValidationState.INVALID, reason=reason, message=message)


def _parse_leverage(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    number = to_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def parse_leverage(value: Any) -> Optional[int]:
    """Parse a whole-number leverage within MIN_LEVERAGE..MAX_LEVERAGE, or None."""
    lev = _parse_leverage(value)
    if lev is None or not MIN_LEVERAGE <= lev <= MAX_LEVERAGE:
        return None
    return lev


class TradeInputValidator:
    """Validates trade entry input.

    Checks run in a fixed order and the first failure is reported:
    pair, entry amount, take-profit, stop-loss, available balance,
    leverage.
    """

    def validate(
        self,
        pair: Any,
        entry_amount: Any,
        leverage: Any,
        tp_percentage: Any,
        sl_percentage: Any,
        available_balance: Decimal,
    ) -> ValidationResult:
        """Validate and parse trade input.

        Args:
            pair: Instrument label
            entry_amount: Margin to commit
            leverage: Leverage multiplier
            tp_percentage: Take-profit percentage
            sl_percentage: Stop-loss percentage
            available_balance: Balance not locked by open trades

        Returns:
            ValidationResult, VALID with parsed values or INVALID with a reason
        """
        pair_str = str(pair).strip() if pair is not None else ""
        if not pair_str:
            return _invalid(TradeRejectionReason.EMPTY_PAIR, "Trading pair is required")

        amount = to_decimal(entry_amount)
        if amount is None or amount <= Decimal("0"):
            return _invalid(
                TradeRejectionReason.INVALID_AMOUNT,
                "Entry amount must be a number greater than zero",
            )

        tp = to_decimal(tp_percentage)
        if tp is None or tp <= Decimal("0"):
            return _invalid(
                TradeRejectionReason.INVALID_TAKE_PROFIT,
                "Take-profit percentage must be a number greater than zero",
            )

        sl = to_decimal(sl_percentage)
        if sl is None or sl <= Decimal("0"):
            return _invalid(
                TradeRejectionReason.INVALID_STOP_LOSS,
                "Stop-loss percentage must be a number greater than zero",
            )

        if amount > available_balance:
            return _invalid(
                TradeRejectionReason.INSUFFICIENT_BALANCE,
                f"Insufficient balance: need {amount}, have {available_balance}",
            )

        lev = parse_leverage(leverage)
        if lev is None:
            return _invalid(
                TradeRejectionReason.INVALID_LEVERAGE,
                f"Leverage must be a whole number between {MIN_LEVERAGE} and {MAX_LEVERAGE}",
            )

        return ValidationResult(
            state=ValidationState.VALID,
            pair=pair_str.upper(),
            entry_amount=amount,
            leverage=lev,
            tp_percentage=tp,
            sl_percentage=sl,
        )
