"""Property-based tests for storage module.

Tests the storage service round-trip and fallback properties using Hypothesis.
"""

from __future__ import annotations

import json
import tempfile
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

import pytest
from hypothesis import given, settings, strategies as st

from levsim.exceptions import PersistenceReadError, PersistenceWriteError
from levsim.storage import JsonFileStorage, MemoryStorage, PersistentValue


@st.composite
def trade_state_strategy(draw):
    """Generate stored trade collections as they are written by the trade book."""
    num_trades = draw(st.integers(min_value=0, max_value=10))
    trades = []
    for i in range(num_trades):
        trades.append({
            "id": f"trade-{i}-{draw(st.uuids())}",
            "pair": draw(st.sampled_from(["BTC/USDT", "ETH/USDT", "SOL/USDT"])),
            "entry_amount": str(draw(st.decimals(
                min_value=Decimal("0.01"),
                max_value=Decimal("100000"),
                places=2
            ))),
            "leverage": draw(st.integers(min_value=1, max_value=100)),
            "tp_percentage": str(draw(st.decimals(
                min_value=Decimal("0.1"),
                max_value=Decimal("100"),
                places=1
            ))),
            "sl_percentage": str(draw(st.decimals(
                min_value=Decimal("0.1"),
                max_value=Decimal("100"),
                places=1
            ))),
            "fee": "0.70",
            "timestamp": datetime.now().isoformat(),
            "status": "open",
        })

    return {
        "balance": str(draw(st.decimals(min_value=Decimal("0"), max_value=Decimal("10000000"), places=2))),
        "open_trades": trades,
    }


@given(state=trade_state_strategy())
@settings(max_examples=100)
def test_json_storage_round_trip(state: Dict[str, Any]):
    """
    For any stored state, saving it under a key and loading the key back
    SHALL return equal data.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = JsonFileStorage(tmpdir)

        storage.save("balance", state["balance"])
        storage.save("open_trades", state["open_trades"])

        assert storage.load("balance") == state["balance"]
        assert storage.load("open_trades") == state["open_trades"]


@given(key=st.text(min_size=1, max_size=50, alphabet=st.characters(whitelist_categories=('L', 'N'))))
@settings(max_examples=100)
def test_storage_delete_removes_data(key: str):
    """Test that delete properly removes stored data."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = JsonFileStorage(tmpdir)
        test_data = {"test": "value"}

        storage.save(key, test_data)
        assert storage.load(key) == test_data

        storage.delete(key)

        assert storage.load(key) is None


def test_storage_load_nonexistent_returns_none(tmp_path):
    storage = JsonFileStorage(tmp_path)
    assert storage.load("nonexistent_key") is None


def test_storage_load_corrupted_raises_read_error(tmp_path):
    storage = JsonFileStorage(tmp_path)
    (tmp_path / "balance.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceReadError):
        storage.load("balance")


def test_storage_save_unserializable_raises_write_error(tmp_path):
    storage = JsonFileStorage(tmp_path)

    with pytest.raises(PersistenceWriteError):
        storage.save("settings", {"value": object()})

    # No partial file is left behind
    assert list(tmp_path.iterdir()) == []


def test_storage_save_replaces_previous_value(tmp_path):
    storage = JsonFileStorage(tmp_path)
    storage.save("balance", "100")
    storage.save("balance", "250")

    assert json.loads((tmp_path / "balance.json").read_text(encoding="utf-8")) == "250"


def test_memory_storage_does_not_alias_saved_data():
    storage = MemoryStorage()
    data = {"trades": [1, 2]}
    storage.save("k", data)
    data["trades"].append(3)

    assert storage.load("k") == {"trades": [1, 2]}


def test_persistent_value_uses_default_when_missing():
    value = PersistentValue(MemoryStorage(), "balance", "10000")
    assert value.get() == "10000"


def test_persistent_value_reads_through_and_writes_through():
    storage = MemoryStorage()
    storage.save("balance", "42")

    value = PersistentValue(storage, "balance", "0")
    assert value.get() == "42"

    assert value.set("43") is True
    assert storage.load("balance") == "43"
    assert PersistentValue(storage, "balance", "0").get() == "43"


def test_persistent_value_falls_back_on_corrupted_file(tmp_path):
    (tmp_path / "settings.json").write_text("corrupted!", encoding="utf-8")
    value = PersistentValue(JsonFileStorage(tmp_path), "settings", {"a": 1})

    assert value.get() == {"a": 1}


def test_persistent_value_falls_back_when_decode_fails():
    storage = MemoryStorage()
    storage.save("balance", "not a number")

    value = PersistentValue(storage, "balance", Decimal("5"), decode=Decimal)

    assert value.get() == Decimal("5")


def test_persistent_value_default_is_not_shared():
    storage = MemoryStorage()
    default: list = []
    first = PersistentValue(storage, "open_trades", default)
    first.get().append("x")

    assert PersistentValue(MemoryStorage(), "open_trades", default).get() == []


class _FailingStorage(MemoryStorage):
    def save(self, key: str, data: Any) -> None:
        raise PersistenceWriteError(key, OSError("disk full"))


def test_persistent_value_write_failure_keeps_value_in_memory():
    value = PersistentValue(_FailingStorage(), "balance", "100")

    assert value.set("200") is False
    assert value.get() == "200"
    assert value.durable is False
