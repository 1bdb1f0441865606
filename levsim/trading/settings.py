"""User-configurable trading settings."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields, replace
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from levsim.storage.storage import IStorageService, PersistentValue

from .calculations import to_decimal

logger = logging.getLogger(__name__)

SETTINGS_STORAGE_KEY = "settings"


@dataclass(frozen=True)
class TradingSettings:
    """Trading settings model.

    Fee rates are percentages: maker is charged at open, taker at close.
    """
    initial_balance: Decimal = Decimal("10000")
    default_leverage: int = 10
    profit_loss_percentage: Decimal = Decimal("10")
    maker_fee: Decimal = Decimal("0.02")  # 0.0200%
    taker_fee: Decimal = Decimal("0.05")  # 0.0500%

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            key: value if isinstance(value, int) else str(value)
            for key, value in asdict(self).items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TradingSettings":
        """Create from dictionary, using defaults for missing or unreadable fields."""
        if not isinstance(data, Mapping):
            raise TypeError(f"Expected a settings mapping, got {type(data).__name__}")
        defaults = cls()
        values: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            coerced = _coerce(f.name, data[f.name])
            if coerced is None:
                logger.warning(f"Ignoring unreadable stored setting {f.name}={data[f.name]!r}")
                continue
            values[f.name] = coerced
        return replace(defaults, **values)


def _coerce(name: str, value: Any) -> Optional[Any]:
    number = to_decimal(value)
    if number is None:
        return None
    if name == "default_leverage":
        return int(number)
    return number


class SettingsStore:
    """Persistent settings with shallow partial updates.

    No range validation is done here; callers are expected to check
    ranges before updating. Any finite numeric value is accepted.
    """

    def __init__(self, storage: IStorageService) -> None:
        self._settings: PersistentValue[TradingSettings] = PersistentValue(
            storage,
            SETTINGS_STORAGE_KEY,
            TradingSettings(),
            decode=TradingSettings.from_dict,
            encode=TradingSettings.to_dict,
        )

    def get(self) -> TradingSettings:
        return self._settings.get()

    def update(self, partial: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> TradingSettings:
        """Merge the given fields over the current settings.

        Fields not given keep their current values. Unknown field names
        and values that are not finite numbers are logged and skipped.

        Returns:
            The updated settings
        """
        updated, _ = self.apply(dict(partial or {}, **kwargs))
        return updated

    def apply(self, changes: Mapping[str, Any]) -> Tuple[TradingSettings, FrozenSet[str]]:
        """Merge fields like ``update`` and report which ones were applied.

        Returns:
            The updated settings and the names of the fields that were accepted
        """
        known = {f.name for f in fields(TradingSettings)}
        values: Dict[str, Any] = {}
        for name, value in changes.items():
            if name not in known:
                logger.warning(f"Ignoring unknown setting '{name}'")
                continue
            coerced = _coerce(name, value)
            if coerced is None:
                logger.warning(f"Ignoring non-numeric value for setting '{name}': {value!r}")
                continue
            values[name] = coerced
        updated = replace(self._settings.get(), **values)
        self._settings.set(updated)
        return updated, frozenset(values)

    def reset(self) -> TradingSettings:
        """Restore the default settings."""
        defaults = TradingSettings()
        self._settings.set(defaults)
        return defaults
