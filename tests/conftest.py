from __future__ import annotations

import pytest

from levsim.storage import MemoryStorage
from levsim.trading.session import TradingSession


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def session(storage: MemoryStorage) -> TradingSession:
    return TradingSession(storage)
