# Trading module
"""Simulated leveraged trading: trade book, balance ledger, settings, and analytics."""

from .models import ClosedTrade, Trade, TradeOutcome, TradeSerializer, TradeStatus
from .calculations import (
    TradeEstimate,
    calculate_gross_pnl,
    calculate_net_pnl,
    calculate_position_size,
    calculate_trading_fee,
    estimate_trade,
)
from .validation import TradeInputValidator, TradeRejectionReason, ValidationResult, ValidationState
from .book import ITradeBook, TradeBook
from .ledger import BalanceLedger, IBalanceLedger
from .settings import SettingsStore, TradingSettings
from .analytics import (
    ITradeAnalytics,
    Timeframe,
    TradeAnalytics,
    TradeStatistics,
    calculate_available_balance,
    calculate_locked_amount,
)
from .session import TradingSession, open_session

__all__ = [
    "ClosedTrade",
    "Trade",
    "TradeOutcome",
    "TradeSerializer",
    "TradeStatus",
    "TradeEstimate",
    "calculate_gross_pnl",
    "calculate_net_pnl",
    "calculate_position_size",
    "calculate_trading_fee",
    "estimate_trade",
    "TradeInputValidator",
    "TradeRejectionReason",
    "ValidationResult",
    "ValidationState",
    "ITradeBook",
    "TradeBook",
    "BalanceLedger",
    "IBalanceLedger",
    "SettingsStore",
    "TradingSettings",
    "ITradeAnalytics",
    "Timeframe",
    "TradeAnalytics",
    "TradeStatistics",
    "calculate_available_balance",
    "calculate_locked_amount",
    "TradingSession",
    "open_session",
]
