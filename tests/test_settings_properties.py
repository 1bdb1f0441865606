"""Property-based tests for the settings store."""

from __future__ import annotations

from dataclasses import asdict, fields
from decimal import Decimal

from hypothesis import given, settings, strategies as st

from levsim.storage import MemoryStorage
from levsim.trading.settings import SettingsStore, TradingSettings

SETTING_NAMES = [f.name for f in fields(TradingSettings)]

finite_number_strategy = st.one_of(
    st.integers(min_value=-10**9, max_value=10**9),
    st.decimals(allow_nan=False, allow_infinity=False, min_value=Decimal("-1e9"), max_value=Decimal("1e9"), places=4),
    st.floats(allow_nan=False, allow_infinity=False, min_value=-1e9, max_value=1e9),
)


def test_defaults():
    store = SettingsStore(MemoryStorage())
    current = store.get()

    assert current.initial_balance == Decimal("10000")
    assert current.default_leverage == 10
    assert current.profit_loss_percentage == Decimal("10")
    assert current.maker_fee == Decimal("0.02")
    assert current.taker_fee == Decimal("0.05")


def test_update_maker_fee_keeps_other_fields():
    store = SettingsStore(MemoryStorage())
    before = asdict(store.get())

    store.update({"maker_fee": 0.1})

    after = asdict(store.get())
    assert after["maker_fee"] == Decimal("0.1")
    for name in SETTING_NAMES:
        if name != "maker_fee":
            assert after[name] == before[name]


@given(
    name=st.sampled_from(SETTING_NAMES),
    value=finite_number_strategy,
)
@settings(max_examples=100)
def test_update_accepts_any_finite_number(name: str, value):
    """
    The store SHALL accept any finite numeric value for any field without
    raising, and SHALL leave the other fields unchanged.
    """
    store = SettingsStore(MemoryStorage())
    before = asdict(store.get())

    store.update(**{name: value})

    after = asdict(store.get())
    for other in SETTING_NAMES:
        if other != name:
            assert after[other] == before[other]


def test_update_ignores_unknown_and_non_numeric_fields():
    store = SettingsStore(MemoryStorage())

    updated = store.update({"theme": "dark", "taker_fee": "oops", "default_leverage": 20})

    assert updated.default_leverage == 20
    assert updated.taker_fee == Decimal("0.05")


def test_reset_restores_defaults():
    store = SettingsStore(MemoryStorage())
    store.update(initial_balance=5000, default_leverage=50)

    assert store.reset() == TradingSettings()
    assert store.get() == TradingSettings()


def test_settings_survive_reload():
    storage = MemoryStorage()
    SettingsStore(storage).update(maker_fee="0.1", default_leverage=25)

    reloaded = SettingsStore(storage).get()
    assert reloaded.maker_fee == Decimal("0.1")
    assert reloaded.default_leverage == 25
    assert reloaded.taker_fee == Decimal("0.05")


def test_partially_stored_settings_fill_in_defaults():
    storage = MemoryStorage()
    storage.save("settings", {"initialBalance": "1", "maker_fee": "0.3", "taker_fee": "bad"})

    loaded = SettingsStore(storage).get()
    assert loaded.maker_fee == Decimal("0.3")
    assert loaded.taker_fee == Decimal("0.05")
    assert loaded.initial_balance == Decimal("10000")


def test_corrupted_settings_fall_back_to_defaults():
    storage = MemoryStorage()
    storage.save("settings", ["not", "a", "mapping"])

    assert SettingsStore(storage).get() == TradingSettings()
