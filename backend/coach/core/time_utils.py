from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def to_iso(dt) -> str | None:
    """Format a datetime as ISO-8601 for JSON bodies.

    Naive datetimes are assumed to be UTC. Returns None if dt is None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def parse_iso(value: str | None):
    """Parse an ISO-8601 timestamp as returned by PostgREST.

    Accepts a trailing 'Z'. Returns None for empty values.
    """
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
