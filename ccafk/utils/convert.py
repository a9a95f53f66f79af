from datetime import datetime, timezone

__all__ = ["to_timestamp", "from_timestamp"]


def to_timestamp(dt: datetime) -> str:
    """
    Convert a datetime to the sortable text form used in the database.
    Naive datetimes are treated as UTC. The result always has microsecond
    precision and a +00:00 offset so lexical order equals time order.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_timestamp(data: str) -> datetime:
    return datetime.fromisoformat(data)
