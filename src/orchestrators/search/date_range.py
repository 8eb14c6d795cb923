"""Date range resolver: symbolic range -> absolute lower bound at query time.

``today`` is local calendar midnight; ``week`` and ``month`` are rolling windows
(7 and 30 days) from the current instant. No upper bound is ever applied.
"""

from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from src.contracts.search_v1 import DateRange
from src.core.config import config

_ROLLING_WINDOWS: dict[DateRange, timedelta] = {
    DateRange.WEEK: timedelta(days=7),
    DateRange.MONTH: timedelta(days=30),  # fixed approximation, not calendar-aware
}


def local_timezone() -> tzinfo:
    return ZoneInfo(config.user_timezone)


def resolve_date_lower_bound(
    date_range: DateRange | str,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> datetime | None:
    """Return the aware lower bound for ``date_range``, or None for ``all``."""
    date_range = DateRange(date_range)
    if date_range == DateRange.ALL:
        return None
    zone = tz or local_timezone()
    if now is None:
        now = datetime.now(zone)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=zone)

    if date_range == DateRange.TODAY:
        local_now = now.astimezone(zone)
        return local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return now - _ROLLING_WINDOWS[date_range]
