"""
Data models for the key-value store.
"""

from auxdata.models.codec import MAX_VALUE_SIZE, JsonCodec
from auxdata.models.record import Record, Stats, TableName
from auxdata.models.ttl import NEVER_EXPIRES, expiry_instant, is_expired, normalize_ttl

__all__ = [
    "MAX_VALUE_SIZE",
    "JsonCodec",
    "Record",
    "Stats",
    "TableName",
    "NEVER_EXPIRES",
    "expiry_instant",
    "is_expired",
    "normalize_ttl",
]
