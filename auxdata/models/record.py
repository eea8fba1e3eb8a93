"""
Record, TableName and Stats - the shapes data takes on its way to and from storage.
"""

import re
from dataclasses import dataclass

from auxdata.models.ttl import NEVER_EXPIRES, is_expired

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_]")


@dataclass(frozen=True)
class Record:
    """
    A row of the key-value table.

    Attributes:
        key: Primary key.
        value: Encoded value (codec output).
        exp: Expiry instant in epoch seconds, or NEVER_EXPIRES.
    """

    key: str
    value: str
    exp: int = NEVER_EXPIRES

    def is_permanent(self) -> bool:
        return self.exp == NEVER_EXPIRES

    def is_expired(self, now: int) -> bool:
        return is_expired(self.exp, now)


@dataclass(frozen=True)
class TableName:
    """
    A table identifier that is safe to interpolate into SQL.

    Only letters, digits and underscores survive; any other character is
    replaced by an underscore. A leading digit (or an empty name) gets an
    underscore prefix.
    """

    name: str

    @classmethod
    def sanitize(cls, raw: str) -> "TableName":
        name = _UNSAFE_CHARS.sub("_", raw)
        if name == "" or name[0].isdigit():
            name = "_" + name
        return cls(name)

    @property
    def index_name(self) -> str:
        return f"idx_{self.name}_exp"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Stats:
    """
    Snapshot of a table's contents.

    Attributes:
        total: Number of rows, expired ones included.
        active: Number of non-expired rows.
        expired: Number of expired rows not yet swept.
        size: Approximate on-disk size of the database in bytes.
    """

    total: int
    active: int
    expired: int
    size: int

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "active": self.active,
            "expired": self.expired,
            "size": self.size,
        }
