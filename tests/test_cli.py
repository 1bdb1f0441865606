from __future__ import annotations

import csv

import pytest

from levsim.cli import main


@pytest.fixture
def run(tmp_path, capsys):
    def _run(*args: str) -> tuple[int, str, str]:
        code = main(["--data-dir", str(tmp_path), *args])
        out, err = capsys.readouterr()
        return code, out, err
    return _run


def _open_trade_id(run) -> str:
    code, out, _ = run("open", "btc/usdt", "1000", "--leverage", "10", "--tp", "5", "--sl", "2")
    assert code == 0
    return out.split()[0]


def test_status_on_fresh_data_dir(run):
    code, out, _ = run("status")
    assert code == 0
    assert "Balance:   10,000.00" in out
    assert "Available: 10,000.00" in out


def test_open_and_take_profit(run):
    trade_id = _open_trade_id(run)

    code, out, _ = run("status")
    assert "Locked:    1,000.00" in out

    code, out, _ = run("tp", trade_id)
    assert code == 0
    assert "net 493.00" in out
    assert "Balance: 10,493.00" in out

    code, out, _ = run("history")
    assert trade_id in out and "profit" in out


def test_stop_loss(run):
    trade_id = _open_trade_id(run)
    code, out, _ = run("sl", trade_id)
    assert code == 0
    assert "Balance: 9,793.00" in out


def test_rejected_trade_exits_with_error(run):
    code, _, err = run("open", "BTC", "20000")
    assert code == 1
    assert "Insufficient balance" in err


def test_closing_unknown_trade_exits_with_error(run):
    code, _, err = run("tp", "nope")
    assert code == 1
    assert "nope" in err


def test_settings_update_and_reset(run):
    code, out, _ = run("settings", "maker_fee=0.1", "default_leverage=25")
    assert code == 0
    assert "maker_fee = 0.1" in out
    assert "default_leverage = 25" in out
    assert "taker_fee = 0.05" in out

    code, out, _ = run("reset-settings")
    code, out, _ = run("settings")
    assert "default_leverage = 10" in out


def test_settings_requires_key_value(run):
    code, _, err = run("settings", "maker_fee")
    assert code == 2
    assert "KEY=VALUE" in err


def test_reset_balance_and_clear_history(run):
    trade_id = _open_trade_id(run)
    run("tp", trade_id)

    code, out, _ = run("reset-balance", "500")
    assert "Balance: 500.00" in out

    run("clear-history")
    code, out, _ = run("history")
    assert "No closed trades." in out


def test_stats_and_export(run, tmp_path):
    run("tp", _open_trade_id(run))
    run("sl", _open_trade_id(run))

    code, out, _ = run("stats", "--timeframe", "monthly")
    assert code == 0
    assert "Total trades:     2" in out
    assert "Win rate:         50.0%" in out
    assert "Total P&L:        286.00" in out

    export_path = tmp_path / "export"
    export_path.mkdir()
    target = export_path / "history.csv"
    code, out, _ = run("export", str(target))
    assert code == 0
    with target.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert {row["outcome"] for row in rows} == {"profit", "loss"}


def test_export_to_missing_directory_fails_cleanly(run, tmp_path):
    run("tp", _open_trade_id(run))
    target = tmp_path / "missing" / "history.csv"

    code, out, err = run("export", str(target))

    assert code == 1
    assert "Export failed" in err
    assert "Exported" not in out
    assert not target.exists()
