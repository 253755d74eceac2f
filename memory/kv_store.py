"""Key-value persistence interface for conversation contexts."""

from abc import ABC, abstractmethod
from typing import Optional


class PersistenceError(Exception):
    """Raised when the backing store cannot read or write."""


class KeyValueStore(ABC):
    """Abstract base class for key-value persistence backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """
        Fetch a value.

        Args:
            key: Entry key

        Returns:
            Stored bytes, or None if absent
        """
        pass

    @abstractmethod
    def set(self, key: str, value: bytes):
        """Store a value, replacing any existing entry."""
        pass

    @abstractmethod
    def remove(self, key: str):
        """Remove an entry; missing keys are ignored."""
        pass

    @abstractmethod
    def list_keys(self) -> list[str]:
        """List all stored keys."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store, lives as long as the process."""

    def __init__(self):
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes):
        self._data[key] = bytes(value)

    def remove(self, key: str):
        self._data.pop(key, None)

    def list_keys(self) -> list[str]:
        return list(self._data.keys())
