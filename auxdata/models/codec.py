"""
JsonCodec - Serialization of stored values.
"""

import json
from typing import Any

from auxdata.models.exceptions import DecodingError, EncodingError, ValueTooLargeError

# Maximum encoded size (10MB). SQLite TEXT holds far more, but large
# values hurt every read of the row.
MAX_VALUE_SIZE = 10 * 1024 * 1024


class JsonCodec:
    """
    Encodes values as JSON text for the value column.

    Supported values form a closed set:
    - None, bool, int, finite float, str
    - list / tuple of supported values (decoded as list)
    - dict with str keys and supported values

    Anything else is rejected at encode time instead of being coerced.
    """

    def __init__(self, max_size: int = MAX_VALUE_SIZE) -> None:
        """
        Initialize the codec.

        Args:
            max_size: Maximum UTF-8 encoded size in bytes.
        """
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size

    def encode(self, value: Any) -> str:
        """
        Serialize a value to JSON text.

        Args:
            value: The value to serialize.

        Returns:
            JSON text.

        Raises:
            EncodingError: If the value contains unsupported types.
            ValueTooLargeError: If the encoded value exceeds max_size.
        """
        self._check(value)
        try:
            text = json.dumps(value, ensure_ascii=False, allow_nan=False)
            # Lone surrogates survive dumps but cannot be stored as UTF-8
            size = len(text.encode("utf-8"))
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Value is not JSON serializable: {e}") from e

        if size > self.max_size:
            raise ValueTooLargeError(size, self.max_size)
        return text

    def decode(self, data: str | bytes) -> Any:
        """
        Deserialize JSON text produced by encode().

        Raises:
            DecodingError: If the data is not valid JSON.
        """
        try:
            return json.loads(data)
        except (TypeError, ValueError) as e:
            raise DecodingError(f"Stored value is not valid JSON: {e}") from e

    def _check(self, value: Any, depth: int = 0) -> None:
        """Reject values outside the supported set."""
        if depth > 512:
            raise EncodingError("Value nesting exceeds 512 levels")

        if value is None or isinstance(value, (bool, int, float, str)):
            return

        if isinstance(value, (list, tuple)):
            for item in value:
                self._check(item, depth + 1)
            return

        if isinstance(value, dict):
            for key, item in value.items():
                if not isinstance(key, str):
                    raise EncodingError(
                        f"Mapping keys must be strings, got {type(key).__name__}"
                    )
                self._check(item, depth + 1)
            return

        raise EncodingError(f"Unsupported value type: {type(value).__name__}")
