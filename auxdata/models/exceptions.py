"""
Custom exceptions for the key-value store.
"""


class AuxDataError(Exception):
    """Base class for every error raised by auxdata."""


class InvalidArgumentError(AuxDataError, ValueError):
    """
    Raised for caller bugs: bad keys, non-positive chunk sizes, bad TTLs.

    Never retried.
    """


class InvalidKeyError(InvalidArgumentError):
    """Raised when a key is empty, not a string, or not encodable as UTF-8."""

    def __init__(self, key: object, reason: str = "Keys must be non-empty strings") -> None:
        self.key = key
        super().__init__(f"{reason}, got {key!r}")


class ValueTooLargeError(InvalidArgumentError):
    """
    Raised when an encoded value exceeds the size ceiling.

    The payload must be shrunk by the caller.
    """

    def __init__(self, size: int, limit: int):
        """
        Initialize size error.

        Args:
            size: Encoded size of the rejected value in bytes.
            limit: Maximum allowed encoded size in bytes.
        """
        self.size = size
        self.limit = limit
        super().__init__(
            f"Value too large ({size} bytes). Maximum size is {limit} bytes."
        )


class EncodingError(AuxDataError, ValueError):
    """Raised when a value cannot be serialized by the codec."""


class DecodingError(AuxDataError, ValueError):
    """
    Raised when a stored value cannot be deserialized.

    Values written by this package always decode, so this points at a
    corrupted record.
    """


class StorageError(AuxDataError):
    """Raised for failures reported by the underlying database."""


class StorageUnavailableError(StorageError, OSError):
    """Raised when the backing file or directory cannot be created or opened."""


class StoragePermissionError(StorageUnavailableError, PermissionError):
    """Raised when the backing file or directory lacks the required permissions."""


class StorageBusyError(StorageError):
    """
    Raised when the writer lock is not acquired within the busy-wait budget.

    Transient: callers may retry with backoff.
    """


class TransactionError(AuxDataError, RuntimeError):
    """Base class for transaction misuse."""


class TransactionAlreadyActiveError(TransactionError):
    """Raised when a transaction is started while another one is open."""

    def __init__(self) -> None:
        super().__init__(
            "A transaction is already active on this store; nested "
            "transaction() calls are not supported"
        )


class TransactionNotActiveError(TransactionError):
    """Raised when commit or rollback is requested without an open transaction."""
