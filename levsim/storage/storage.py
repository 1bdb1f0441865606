"""Storage service interfaces and implementations.

Provides an abstract key-value storage interface, a JSON file-based
implementation, an in-memory implementation, and ``PersistentValue``,
a read-through/write-through wrapper that gives any in-memory value
durable storage under a key.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from levsim.exceptions import PersistenceReadError, PersistenceWriteError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class IStorageService(ABC):
    """Abstract base class for storage services.

    Defines the interface for saving, loading, and deleting data
    with string keys.
    """

    @abstractmethod
    def save(self, key: str, data: Any) -> None:
        """Save data with the given key.

        Args:
            key: Unique identifier for the data
            data: JSON-serializable data to store

        Raises:
            PersistenceWriteError: If the data cannot be stored
        """
        ...

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Load data for the given key.

        Args:
            key: Unique identifier for the data

        Returns:
            The stored data, or None if not found

        Raises:
            PersistenceReadError: If the stored data is unreadable
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete data for the given key.

        Args:
            key: Unique identifier for the data to delete
        """
        ...


class JsonFileStorage(IStorageService):
    """JSON file-based storage implementation.

    Stores each key as a separate JSON file in the specified base directory.
    Writes go to a temporary file first and are moved into place, so a
    crash mid-write never leaves a half-written value behind.
    """

    def __init__(self, base_path: str | Path) -> None:
        """Initialize the JSON file storage.

        Args:
            base_path: Directory path where JSON files will be stored

        Raises:
            OSError: If the directory cannot be created
        """
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base_path

    def _get_file_path(self, key: str) -> Path:
        """Get the file path for a given key.

        Args:
            key: Storage key

        Returns:
            Path to the JSON file for this key
        """
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._base_path / f"{safe_key}.json"

    def save(self, key: str, data: Any) -> None:
        file_path = self._get_file_path(key)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._base_path, prefix=f".{file_path.stem}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, file_path)
        except (TypeError, ValueError, OSError) as e:
            logger.error(f"Failed to save data for key '{key}': {e}")
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceWriteError(key, e) from e

    def load(self, key: str) -> Optional[Any]:
        file_path = self._get_file_path(key)
        if not file_path.exists():
            return None

        try:
            with file_path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted data for key '{key}': {e}")
            raise PersistenceReadError(key, e) from e
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to load data for key '{key}': {e}")
            raise PersistenceReadError(key, e) from e

    def delete(self, key: str) -> None:
        file_path = self._get_file_path(key)
        try:
            if file_path.exists():
                file_path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete data for key '{key}': {e}")


class MemoryStorage(IStorageService):
    """Non-durable storage kept in a dictionary.

    Used in tests and as a fallback when no data directory is available.
    Values are round-tripped through JSON so that the same inputs fail
    here as would fail in ``JsonFileStorage``.
    """

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def save(self, key: str, data: Any) -> None:
        try:
            self._data[key] = json.dumps(data)
        except (TypeError, ValueError) as e:
            raise PersistenceWriteError(key, e) from e

    def load(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceReadError(key, e) from e

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class PersistentValue(Generic[T]):
    """A value held in memory and mirrored to storage under one key.

    The stored value is read once at construction. Every ``set`` updates
    memory first and then writes through to storage. Neither operation
    raises: a missing, unreadable, or undecodable stored value yields
    ``default``, and a failed write leaves the in-memory value in place
    (the session continues, but the change is lost on restart).

    Args:
        storage: Backing storage service
        key: Storage key owned by this value
        default: Value used when nothing usable is stored
        decode: Converts loaded JSON data to the in-memory value
        encode: Converts the in-memory value to JSON-compatible data
    """

    def __init__(
        self,
        storage: IStorageService,
        key: str,
        default: T,
        decode: Optional[Callable[[Any], T]] = None,
        encode: Optional[Callable[[T], Any]] = None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._default = default
        self._decode = decode or (lambda data: data)
        self._encode = encode or (lambda value: value)
        self._durable = True
        self._value = self._read()

    @property
    def key(self) -> str:
        return self._key

    @property
    def durable(self) -> bool:
        """False once a write has failed since the last successful one."""
        return self._durable

    def _read(self) -> T:
        try:
            data = self._storage.load(self._key)
        except StorageError as e:
            logger.error(f"Falling back to default for '{self._key}': {e}")
            return copy.deepcopy(self._default)
        if data is None:
            return copy.deepcopy(self._default)
        try:
            return self._decode(data)
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.error(f"Stored value for '{self._key}' is malformed, using default: {e}")
            return copy.deepcopy(self._default)

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Replace the value and persist it.

        Returns:
            True if the value was written to storage, False otherwise
        """
        self._value = value
        try:
            self._storage.save(self._key, self._encode(value))
        except (StorageError, TypeError, ValueError, ArithmeticError) as e:
            logger.error(f"Value for '{self._key}' kept in memory only: {e}")
            self._durable = False
            return False
        self._durable = True
        return True
