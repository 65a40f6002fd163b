"""UTC timestamp helpers.

Every timestamp written to the database goes through ``format_ts`` so that
string comparison in SQL matches chronological order.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_ts(value: datetime) -> str:
    """Render an aware (or naive-UTC) datetime as a fixed-width ISO string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def now_iso() -> str:
    return format_ts(utc_now())


def parse_ts(value) -> Optional[datetime]:
    """Parse an ISO-8601 string from the API into an aware datetime, or None."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_ts(value) -> Optional[str]:
    """Normalise an API timestamp to the stored format; unparseable values become None."""
    parsed = parse_ts(value)
    return format_ts(parsed) if parsed else None
