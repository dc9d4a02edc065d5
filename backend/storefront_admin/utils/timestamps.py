"""UTC clock helpers shared by the credential store and the token issuer.

Credential timestamps are stored as naive UTC datetimes and embedded in tokens
as integer milliseconds since the Unix epoch, so both sides of the freshness
comparison must go through :func:`to_epoch_ms`.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

_EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the form stored in the database)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to whole milliseconds since the epoch (naive = UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    delta = value - _EPOCH
    return delta.days * 86_400_000 + delta.seconds * 1000 + delta.microseconds // 1000


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Return "now", nudged forward so it lands in a later millisecond than ``previous``."""
    now = utcnow()
    if previous is None:
        return now
    floor = previous + timedelta(milliseconds=1)
    if to_epoch_ms(now) <= to_epoch_ms(previous):
        return floor
    return now
