"""Human-readable formatting for repository metadata."""

from datetime import datetime, timezone

_UNITS = "KMGTPE"


def format_size(size: int) -> str:
    """Format a byte count with binary units, e.g. ``1.5 KB``."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit and exp < len(_UNITS) - 1:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {_UNITS[exp]}B"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'} ago"


def format_age(when: datetime | None, now: datetime | None = None) -> str:
    """Format a timestamp relative to ``now``.

    Falls back to the plain date once it is more than 30 days old.
    """
    if when is None:
        return "never"
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    seconds = (now - when).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return _plural(int(seconds // 60), "minute")
    if seconds < 86400:
        return _plural(int(seconds // 3600), "hour")
    if seconds < 30 * 86400:
        return _plural(int(seconds // 86400), "day")
    return when.strftime("%Y-%m-%d")
