"""Command-line front end for the trading simulator.

Usage:
    python -m levsim status
    python -m levsim open BTC/USDT 1000 --leverage 10 --tp 5 --sl 2
    python -m levsim tp <trade-id>
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from levsim.config import AppConfig
from levsim.exceptions import InvalidTradeInput
from levsim.trading.models import ClosedTrade, Trade
from levsim.trading.session import TradingSession, open_session
from levsim.util.logging import configure_logging


def _fmt(amount) -> str:
    return f"{amount:,.2f}"


def _print_trade(trade: Trade) -> None:
    print(
        f"{trade.id}  {trade.pair:<12} entry {_fmt(trade.entry_amount)} x{trade.leverage}"
        f"  size {_fmt(trade.position_size)}  TP {trade.tp_percentage}%  SL {trade.sl_percentage}%"
        f"  fee {_fmt(trade.fee)}"
    )


def _print_closed(trade: ClosedTrade) -> None:
    print(
        f"{trade.close_timestamp:%Y-%m-%d %H:%M}  {trade.id}  {trade.pair:<12}"
        f" {trade.outcome.value:<6} gross {_fmt(trade.gross_pnl)}  fee {_fmt(trade.fee)}"
        f"  net {_fmt(trade.pnl)}"
    )


def cmd_status(session: TradingSession, args: argparse.Namespace) -> int:
    print(f"Balance:   {_fmt(session.get_balance())}")
    print(f"Locked:    {_fmt(session.get_locked_amount())}")
    print(f"Available: {_fmt(session.get_available_balance())}")
    print(f"Open trades: {len(session.get_open_trades())}")
    return 0


def cmd_open(session: TradingSession, args: argparse.Namespace) -> int:
    try:
        trade = session.place_trade(args.pair, args.amount, args.leverage, args.tp, args.sl)
    except InvalidTradeInput as e:
        print(f"Rejected: {e.message}", file=sys.stderr)
        return 1
    _print_trade(trade)
    return 0


def _settle(session: TradingSession, trade_id: str, outcome: str) -> int:
    closed = session.settle_trade(trade_id, outcome)
    if closed is None:
        print(f"No open trade with id '{trade_id}'", file=sys.stderr)
        return 1
    _print_closed(closed)
    print(f"Balance: {_fmt(session.get_balance())}")
    return 0


def cmd_take_profit(session: TradingSession, args: argparse.Namespace) -> int:
    return _settle(session, args.trade_id, "profit")


def cmd_stop_loss(session: TradingSession, args: argparse.Namespace) -> int:
    return _settle(session, args.trade_id, "loss")


def cmd_trades(session: TradingSession, args: argparse.Namespace) -> int:
    trades = session.get_open_trades()
    if not trades:
        print("No open trades.")
    for trade in trades:
        _print_trade(trade)
    return 0


def cmd_history(session: TradingSession, args: argparse.Namespace) -> int:
    trades = session.get_closed_trades()
    if not trades:
        print("No closed trades.")
    for trade in trades:
        _print_closed(trade)
    return 0


def cmd_stats(session: TradingSession, args: argparse.Namespace) -> int:
    stats = session.get_statistics()
    print(f"Total trades:     {stats.total_trades}")
    print(f"Win rate:         {stats.win_rate:.1f}%")
    print(f"Total P&L:        {_fmt(stats.total_pnl)}")
    print(f"Total fees:       {_fmt(stats.total_fees)}")
    print(f"Last 7 days P&L:  {_fmt(stats.pnl_last_7_days)}")
    print(f"Last 30 days P&L: {_fmt(stats.pnl_last_30_days)}")
    if args.timeframe:
        for label, pnl in session.analytics.group_pnl(session.get_closed_trades(), args.timeframe):
            print(f"  {label:<12} {_fmt(pnl)}")
    return 0


def cmd_settings(session: TradingSession, args: argparse.Namespace) -> int:
    if args.assignments:
        changes = {}
        for item in args.assignments:
            key, sep, value = item.partition("=")
            if not sep:
                print(f"Expected KEY=VALUE, got '{item}'", file=sys.stderr)
                return 2
            changes[key.strip()] = value.strip()
        session.update_settings(changes)
    for key, value in session.get_settings().to_dict().items():
        print(f"{key} = {value}")
    return 0


def cmd_reset_settings(session: TradingSession, args: argparse.Namespace) -> int:
    session.reset_settings()
    print("Settings restored to defaults.")
    return 0


def cmd_reset_balance(session: TradingSession, args: argparse.Namespace) -> int:
    try:
        balance = session.reset_balance(args.amount)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(f"Balance: {_fmt(balance)}")
    return 0


def cmd_clear_history(session: TradingSession, args: argparse.Namespace) -> int:
    session.clear_history()
    print("Trade history cleared.")
    return 0


def cmd_export(session: TradingSession, args: argparse.Namespace) -> int:
    trades = session.get_closed_trades()
    try:
        session.analytics.export_to_csv(trades, args.path)
    except OSError as e:
        print(f"Export failed: {e}", file=sys.stderr)
        return 1
    print(f"Exported {len(trades)} trades to {args.path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="levsim", description="Leveraged trading practice simulator")
    parser.add_argument("--data-dir", type=Path, help="Directory for saved state")
    parser.add_argument("--log-level", help="Logging level (e.g. INFO, DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show balance and locked margin").set_defaults(func=cmd_status)

    p = sub.add_parser("open", help="Open a trade")
    p.add_argument("pair")
    p.add_argument("amount")
    p.add_argument("--leverage", "-l")
    p.add_argument("--tp", help="Take-profit percentage")
    p.add_argument("--sl", help="Stop-loss percentage")
    p.set_defaults(func=cmd_open)

    p = sub.add_parser("tp", help="Close a trade at its take-profit")
    p.add_argument("trade_id")
    p.set_defaults(func=cmd_take_profit)

    p = sub.add_parser("sl", help="Close a trade at its stop-loss")
    p.add_argument("trade_id")
    p.set_defaults(func=cmd_stop_loss)

    sub.add_parser("trades", help="List open trades").set_defaults(func=cmd_trades)
    sub.add_parser("history", help="List closed trades").set_defaults(func=cmd_history)

    p = sub.add_parser("stats", help="Show performance statistics")
    p.add_argument("--timeframe", choices=["daily", "weekly", "monthly"])
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("settings", help="Show or change settings")
    p.add_argument("assignments", nargs="*", metavar="KEY=VALUE")
    p.set_defaults(func=cmd_settings)

    sub.add_parser("reset-settings", help="Restore default settings").set_defaults(func=cmd_reset_settings)

    p = sub.add_parser("reset-balance", help="Reset the balance")
    p.add_argument("amount", nargs="?")
    p.set_defaults(func=cmd_reset_balance)

    sub.add_parser("clear-history", help="Delete all trades").set_defaults(func=cmd_clear_history)

    p = sub.add_parser("export", help="Export closed trades to CSV")
    p.add_argument("path")
    p.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = AppConfig.from_env()
    if args.data_dir is not None:
        config = replace(config, data_dir=args.data_dir)
    if args.log_level:
        config = replace(config, log_level=args.log_level.upper())
    configure_logging(config.log_level)

    session = open_session(config)
    return args.func(session, args)


if __name__ == "__main__":
    raise SystemExit(main())
