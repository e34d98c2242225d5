from pathlib import Path
from datetime import datetime, timezone


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Resolve 'sqlite:///./relative/path' to an absolute sqlite:/// URL.

    Keeps other URL forms unchanged.
    """
    prefix = "sqlite:///./"
    if not url.startswith(prefix):
        return url
    rel = url[len(prefix) :]
    return f"sqlite:///{(project_root / rel).resolve()}"


def to_epoch_millis(dt: datetime) -> int:
    """Convert a datetime to integer milliseconds since the Unix epoch.

    Naive datetimes are assumed to be UTC, which is how SQLite hands
    timezone-aware columns back.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * 1000))


def from_epoch_millis(value: int) -> datetime:
    """Inverse of :func:`to_epoch_millis`, returning an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def to_local_time(dt: datetime) -> datetime:
    """Convert a stored timestamp to the local timezone for display.

    Naive datetimes are treated as UTC, as in :func:`to_epoch_millis`.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone()
