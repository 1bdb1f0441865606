# Storage module
"""Persistence services for simulator state."""

from levsim.storage.storage import IStorageService, JsonFileStorage, MemoryStorage, PersistentValue

__all__ = ["IStorageService", "JsonFileStorage", "MemoryStorage", "PersistentValue"]
