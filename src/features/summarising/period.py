import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from .models import TimeWindow

logger = logging.getLogger('DiscordBot')

DIGEST_PERIOD_DAYS = 7


def get_target_period(now: Optional[datetime] = None, days: int = DIGEST_PERIOD_DAYS,
                      display_tz: tzinfo = timezone.utc) -> TimeWindow:
    """
    Window covering the `days` leading up to `now`.

    The run is triggered on a fixed weekly schedule, so the invocation time
    is the end of the window. Naive datetimes are treated as UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    window = TimeWindow(start=now - timedelta(days=days), end=now)
    logger.info(
        f"📅 Target period: {window.start.astimezone(display_tz):%Y-%m-%d %H:%M} "
        f"to {window.end.astimezone(display_tz):%Y-%m-%d %H:%M} ({display_tz})"
    )
    return window
