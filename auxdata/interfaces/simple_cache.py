"""
SimpleCache abstract base class for cache-style key-value stores.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any


class SimpleCache(ABC):
    """
    Abstract base class for simple cache stores.

    Keys are non-empty strings. A TTL is None (never expires), a number of
    seconds or a timedelta.

    Implementations:
    - Store: SQLite-backed persistent store
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve the value for a key.

        Args:
            key: The key to look up.
            default: Returned when the key is missing or expired.

        Returns:
            The stored value, or default.
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Any = None) -> bool:
        """
        Store a value, replacing any previous value and TTL.

        Args:
            key: The key to store.
            value: The value to associate with the key.
            ttl: Time-to-live; None means never expires.

        Returns:
            True on success.
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key. Removing a missing key is not an error.

        Returns:
            True on success.
        """
        pass

    @abstractmethod
    def clear(self) -> bool:
        """Remove every key."""
        pass

    @abstractmethod
    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        """
        Retrieve several keys at once.

        Returns:
            Mapping of every requested key to its value or default, in
            request order.
        """
        pass

    @abstractmethod
    def set_multiple(
        self, values: Mapping[str, Any] | Iterable[tuple[str, Any]], ttl: Any = None
    ) -> bool:
        """Store several key-value pairs with a shared TTL, all or nothing."""
        pass

    @abstractmethod
    def delete_multiple(self, keys: Iterable[str]) -> bool:
        """Remove several keys, all or nothing."""
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        """
        Check whether a non-expired value exists for a key.

        Returns:
            True if the key exists, False otherwise.
        """
        pass
