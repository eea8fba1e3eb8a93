"""
TTL policy: turns caller TTLs into stored expiry instants and checks expiry.

Expiry instants are integer epoch seconds. The sentinel NEVER_EXPIRES marks
records without a time limit. A record is expired once "now" is strictly
past its expiry instant.
"""

import time
from datetime import datetime, timedelta, timezone

from auxdata.models.exceptions import InvalidArgumentError

# Stored in the exp column for records that never expire
NEVER_EXPIRES = -1

# Largest value the exp column (a signed 64-bit INTEGER) can hold
MAX_EXPIRY = 2**63 - 1

TTL = int | timedelta | None


def current_time() -> int:
    """Current wall-clock time as integer epoch seconds."""
    return int(time.time())


def normalize_ttl(ttl: TTL, now: int | None = None) -> int | None:
    """
    Normalize a TTL into a number of seconds.

    Args:
        ttl: None (never expires), a count of seconds, or a timedelta.
        now: Reference instant in epoch seconds used to resolve timedeltas.

    Returns:
        Seconds (possibly zero or negative for integer input), or None.

    Raises:
        InvalidArgumentError: If ttl is not one of the accepted types, or is
            a timedelta reaching past the end of the calendar.
    """
    if ttl is None:
        return None

    if isinstance(ttl, bool):
        raise InvalidArgumentError(f"TTL must be an int, a timedelta or None, got {ttl!r}")

    if isinstance(ttl, int):
        return ttl

    if isinstance(ttl, timedelta):
        reference = datetime.fromtimestamp(
            current_time() if now is None else now, tz=timezone.utc
        )
        try:
            target = reference + ttl
        except OverflowError:
            if ttl < timedelta(0):
                return 0
            raise InvalidArgumentError(f"TTL is too far in the future: {ttl}") from None
        seconds = int(target.timestamp()) - int(reference.timestamp())
        return 0 if seconds < 0 else seconds

    raise InvalidArgumentError(
        f"TTL must be an int, a timedelta or None, got {type(ttl).__name__}"
    )


def expiry_instant(seconds: int | None, now: int) -> int:
    """
    Convert normalized TTL seconds into the value stored in the exp column.

    None or a negative count never expires; 0 expires at exactly `now`.

    Raises:
        InvalidArgumentError: If the instant does not fit the exp column.
    """
    if seconds is None or seconds < 0:
        return NEVER_EXPIRES
    if seconds == 0:
        return now
    if now + seconds > MAX_EXPIRY:
        raise InvalidArgumentError(f"TTL of {seconds} seconds is too far in the future")
    return now + seconds


def is_expired(exp: int, now: int) -> bool:
    if exp == NEVER_EXPIRES:
        return False
    return exp < now
